# -*- coding: utf-8 -*-

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TimerState(str, Enum):
    IDLE = "idle"
    WORK = "work"
    REST = "rest"


class TimerEvent(str, Enum):
    START_STOP = "startStop"
    TIMER_FIRED = "timerFired"
    SKIP_REST = "skipRest"
    START_BREAK = "startBreak"


class IconKind(str, Enum):
    IDLE = "idle"
    WORK = "work"
    SHORT_REST = "shortRest"
    LONG_REST = "longRest"


class SoundKind(str, Enum):
    WINDUP = "windup"
    DING = "ding"
    TICKING = "ticking"


class NotificationCategory(str, Enum):
    WORK_FINISHED = "workFinished"
    REST_STARTED = "restStarted"
    REST_FINISHED = "restFinished"


class NotificationAction(str, Enum):
    SKIP_REST = "skipRest"


class TransitionPolicy(str, Enum):
    # work and rest always elapse to idle, rest only via start_break
    SIMPLE = "simple"
    # work -> rest -> work, gated by auto_start_break / stop_after_break
    AUTO_CHAIN = "auto_chain"


@dataclass(frozen=True)
class Settings:
    work_interval_length: int = 25  # minutes
    short_rest_interval_length: int = 5
    long_rest_interval_length: int = 15
    work_intervals_in_set: int = 4
    auto_start_break: bool = True
    stop_after_break: bool = False
    overrun_time_limit: float = -60.0  # seconds past zero
    show_timer_in_menu_bar: bool = True
    debug_mode: bool = False
    windup_volume: float = 1.0
    ding_volume: float = 1.0
    ticking_volume: float = 1.0

    def volume_for(self, kind: SoundKind) -> float:
        if kind == SoundKind.WINDUP:
            return self.windup_volume
        if kind == SoundKind.DING:
            return self.ding_volume
        return self.ticking_volume


@dataclass(frozen=True)
class LogEvent:
    type: str  # appstart | transition
    timestamp: float
    event: Optional[str] = None
    from_state: Optional[str] = None
    to_state: Optional[str] = None

    @classmethod
    def app_start(cls, timestamp: float) -> "LogEvent":
        return cls(type="appstart", timestamp=timestamp)

    @classmethod
    def transition(
        cls,
        timestamp: float,
        event: TimerEvent,
        from_state: TimerState,
        to_state: TimerState,
    ) -> "LogEvent":
        return cls(
            type="transition",
            timestamp=timestamp,
            event=event.value,
            from_state=from_state.value,
            to_state=to_state.value,
        )
