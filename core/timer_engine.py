# -*- coding: utf-8 -*-

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from core.errors import IllegalTransitionError
from core.ticker import Ticker
from core.transitions import (
    GuardContext,
    TransitionContext,
    TransitionTable,
    build_transition_table,
)
from domain.models import (
    IconKind,
    LogEvent,
    NotificationCategory,
    Settings,
    SoundKind,
    TimerEvent,
    TimerState,
    TransitionPolicy,
)

logger = logging.getLogger(__name__)

DEBUG_INTERVAL_SEC = 5
PENDING_BREAK_TITLE = "Break pending"

WORK_FINISHED_TITLE = "Work interval finished"
WORK_FINISHED_BODY = "Nice work!"
WORK_FINISHED_PENDING_BODY = "Nice work! Start your break when you are ready."
REST_STARTED_TITLE = "Time's up"
REST_STARTED_SHORT_BODY = "It's time for a short break!"
REST_STARTED_LONG_BODY = "It's time for a long break!"
REST_FINISHED_TITLE = "Break is over"
REST_FINISHED_BODY = "Keep up the good work!"


# ----- collaborator interfaces -----
class SettingsProvider(Protocol):
    def snapshot(self) -> Settings: ...


class DisplaySink(Protocol):
    def set_remaining_time(self, text: Optional[str]) -> None: ...


class IconSink(Protocol):
    def set_icon(self, kind: IconKind) -> None: ...


class SoundSink(Protocol):
    def play_once(self, kind: SoundKind) -> None: ...
    def start_loop(self, kind: SoundKind) -> None: ...
    def stop_loop(self, kind: SoundKind) -> None: ...


class NotificationSink(Protocol):
    def send(self, title: str, body: str, category: NotificationCategory) -> None: ...


class TransitionLog(Protocol):
    def append(self, event: LogEvent) -> None: ...


def format_time(seconds: float) -> str:
    total = max(0, int(math.ceil(seconds)))
    m, s = divmod(total, 60)
    return f"{m:02d}:{s:02d}"


@dataclass(frozen=True)
class EngineSnapshot:
    state: TimerState
    remaining_sec: Optional[int]
    is_interval_active: bool
    pending_break: bool
    is_resting: bool
    consecutive_work_intervals: int


class TimerEngine:
    """
    Pomodoro state machine over idle / work / rest.

    All ingress (start_stop, skip_rest, start_break and ticker callbacks)
    goes through one re-entrant lock, held for guard evaluation, the state
    change and every handler of that transition. Side effects go to the
    injected sinks; a failing sink is logged and never stops a transition.
    """

    def __init__(
        self,
        settings: SettingsProvider,
        display: DisplaySink,
        icons: IconSink,
        sounds: SoundSink,
        notifications: NotificationSink,
        transition_log: Optional[TransitionLog] = None,
        policy: TransitionPolicy = TransitionPolicy.AUTO_CHAIN,
        clock: Callable[[], float] = time.time,
        ticker_factory: Optional[Callable[[Callable[[int], None]], Ticker]] = None,
        strict: bool = False,
    ):
        self._settings = settings
        self._display = display
        self._icons = icons
        self._sounds = sounds
        self._notifications = notifications
        self._transition_log = transition_log
        self._clock = clock
        self.strict = strict

        self._lock = threading.RLock()
        if ticker_factory is None:
            self._ticker = Ticker(self.tick, clock=clock)
        else:
            self._ticker = ticker_factory(self.tick)
        self._table: TransitionTable = build_transition_table(policy, self)
        self._listeners: List[Callable[[EngineSnapshot], None]] = []

        # settings snapshot taken when the current transition was resolved
        self._current: Settings = Settings()

        self.state = TimerState.IDLE
        self.consecutive_work_intervals = 0
        self.pending_break = False
        self.is_resting = False
        self.deadline: Optional[float] = None

    @property
    def policy(self) -> TransitionPolicy:
        return self._table.policy

    @property
    def table(self) -> TransitionTable:
        return self._table

    @property
    def ticker(self) -> Ticker:
        return self._ticker

    @property
    def is_interval_active(self) -> bool:
        return self.deadline is not None

    def add_listener(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._listeners.append(fn)

    def snapshot(self) -> EngineSnapshot:
        with self._lock:
            remaining = None
            if self.deadline is not None:
                remaining = max(0, int(math.ceil(self.deadline - self._clock())))
            return EngineSnapshot(
                state=self.state,
                remaining_sec=remaining,
                is_interval_active=self.is_interval_active,
                pending_break=self.pending_break,
                is_resting=self.is_resting,
                consecutive_work_intervals=self.consecutive_work_intervals,
            )

    # ----- Public actions -----
    def start_stop(self) -> bool:
        return self._fire(TimerEvent.START_STOP)

    def skip_rest(self) -> bool:
        return self._fire(TimerEvent.SKIP_REST)

    def start_break(self) -> bool:
        return self._fire(TimerEvent.START_BREAK)

    def refresh_display(self) -> None:
        with self._lock:
            self._update_display(self._settings.snapshot())

    def shutdown(self) -> None:
        """Stop the ticker and the ticking loop. Safe to call more than once."""
        with self._lock:
            if self.deadline is None:
                return
            self._disarm()
            if self.state == TimerState.WORK:
                self._sink("sound", self._sounds.stop_loop, SoundKind.TICKING)

    def tick(self, generation: Optional[int] = None) -> None:
        """
        Ticker callback. Ticks from a cancelled or replaced interval are
        dropped, so a late tick can never reopen an interval.
        """
        with self._lock:
            if generation is not None and not self._ticker.is_current(generation):
                logger.debug("Dropping stale tick (generation=%s)", generation)
                return
            if self.deadline is None:
                return

            settings = self._settings.snapshot()
            remaining = self.deadline - self._clock()
            if remaining > 0:
                self._update_display(settings, remaining)
                return

            if remaining < settings.overrun_time_limit:
                # likely woke up from sleep long after the deadline
                logger.warning(
                    "Interval overran its deadline by %.0fs; stopping timer",
                    -remaining,
                )
                self._fire(TimerEvent.START_STOP, synthesized=True)
            else:
                self._fire(TimerEvent.TIMER_FIRED, synthesized=True)

    # ----- Transition application -----
    def _fire(self, event: TimerEvent, synthesized: bool = False) -> bool:
        with self._lock:
            settings = self._settings.snapshot()
            guard_ctx = GuardContext(settings=settings, pending_break=self.pending_break)
            transition = self._table.resolve(self.state, event, guard_ctx)

            if transition is None:
                if synthesized:
                    if self.strict:
                        raise IllegalTransitionError(self.state, event)
                    logger.warning(
                        "No transition for %s from %s", event.value, self.state.value
                    )
                else:
                    logger.debug(
                        "Ignoring %s in state %s", event.value, self.state.value
                    )
                return False

            ctx = TransitionContext(
                event=event, from_state=self.state, to_state=transition.target
            )
            self._current = settings
            self.state = transition.target
            for handler in transition.handlers:
                handler(ctx)

            self._update_display(settings)
            self._emit(self.snapshot())
            return True

    def _emit(self, snap: EngineSnapshot) -> None:
        for fn in list(self._listeners):
            try:
                fn(snap)
            except Exception:
                logger.exception("Engine listener failed")

    def _sink(self, name: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("%s sink failed", name)

    def _arm(self, seconds: float) -> None:
        self.deadline = self._ticker.arm(seconds)

    def _disarm(self) -> None:
        self._ticker.cancel()
        self.deadline = None

    def _interval_seconds(self, minutes: int) -> int:
        if self._current.debug_mode:
            return DEBUG_INTERVAL_SEC
        return minutes * 60

    def _update_display(
        self, settings: Settings, remaining: Optional[float] = None
    ) -> None:
        if self.deadline is not None and settings.show_timer_in_menu_bar:
            if remaining is None:
                remaining = self.deadline - self._clock()
            text: Optional[str] = format_time(remaining)
        elif self.pending_break:
            text = PENDING_BREAK_TITLE
        else:
            text = None
        self._sink("display", self._display.set_remaining_time, text)

    # ----- Transition handlers -----
    def on_work_start(self, ctx: TransitionContext) -> None:
        self.pending_break = False
        self.is_resting = False
        self._sink("icon", self._icons.set_icon, IconKind.WORK)
        self._sink("sound", self._sounds.play_once, SoundKind.WINDUP)
        self._sink("sound", self._sounds.start_loop, SoundKind.TICKING)
        self._arm(self._interval_seconds(self._current.work_interval_length))

    def on_work_finish(self, ctx: TransitionContext) -> None:
        self.consecutive_work_intervals += 1
        body = WORK_FINISHED_BODY
        if ctx.to_state == TimerState.IDLE:
            self.pending_break = True
            body = WORK_FINISHED_PENDING_BODY
        self._sink("sound", self._sounds.play_once, SoundKind.DING)
        self._sink(
            "notification",
            self._notifications.send,
            WORK_FINISHED_TITLE,
            body,
            NotificationCategory.WORK_FINISHED,
        )

    def on_work_end(self, ctx: TransitionContext) -> None:
        self._sink("sound", self._sounds.stop_loop, SoundKind.TICKING)

    def on_rest_start(self, ctx: TransitionContext) -> None:
        self.pending_break = False
        self.is_resting = True

        s = self._current
        if self.consecutive_work_intervals >= s.work_intervals_in_set:
            self.consecutive_work_intervals = 0
            body = REST_STARTED_LONG_BODY
            length = s.long_rest_interval_length
            icon = IconKind.LONG_REST
        else:
            body = REST_STARTED_SHORT_BODY
            length = s.short_rest_interval_length
            icon = IconKind.SHORT_REST

        self._sink(
            "notification",
            self._notifications.send,
            REST_STARTED_TITLE,
            body,
            NotificationCategory.REST_STARTED,
        )
        self._sink("icon", self._icons.set_icon, icon)
        self._arm(self._interval_seconds(length))

    def on_rest_finish(self, ctx: TransitionContext) -> None:
        self._sink("sound", self._sounds.play_once, SoundKind.DING)
        self._sink(
            "notification",
            self._notifications.send,
            REST_FINISHED_TITLE,
            REST_FINISHED_BODY,
            NotificationCategory.REST_FINISHED,
        )

    def on_idle_start(self, ctx: TransitionContext) -> None:
        self._disarm()
        self.is_resting = False
        self._sink("icon", self._icons.set_icon, IconKind.IDLE)
        if not self.pending_break:
            self.consecutive_work_intervals = 0

    def on_transition(self, ctx: TransitionContext) -> None:
        logger.info(
            "Transition %s: %s -> %s",
            ctx.event.value,
            ctx.from_state.value,
            ctx.to_state.value,
        )
        if self._transition_log is not None:
            self._sink(
                "log",
                self._transition_log.append,
                LogEvent.transition(
                    self._clock(), ctx.event, ctx.from_state, ctx.to_state
                ),
            )
