# -*- coding: utf-8 -*-

from dataclasses import replace
from typing import List, Optional, Tuple

import pytest

from core.timer_engine import TimerEngine
from domain.models import Settings, TransitionPolicy
from storage.db import Database
from storage.repos import AppStateRepo, EventLogRepo


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTicker:
    """Same surface as core.ticker.Ticker, but ticks only when fire() is called."""

    def __init__(self, callback, clock):
        self.callback = callback
        self.clock = clock
        self.generation = 0
        self.deadline: Optional[float] = None
        self.armed_durations: List[float] = []
        self.cancel_count = 0

    @property
    def is_armed(self) -> bool:
        return self.deadline is not None

    def arm(self, duration: float) -> float:
        self.generation += 1
        self.deadline = self.clock() + duration
        self.armed_durations.append(duration)
        return self.deadline

    def cancel(self) -> None:
        if self.deadline is None:
            return
        self.cancel_count += 1
        self.deadline = None
        self.generation += 1

    def is_current(self, generation: int) -> bool:
        return self.deadline is not None and generation == self.generation

    def fire(self) -> None:
        self.callback(self.generation)


class StaticSettings:
    def __init__(self, settings: Optional[Settings] = None):
        self.current = settings or Settings()

    def snapshot(self) -> Settings:
        return self.current

    def update(self, **changes) -> None:
        self.current = replace(self.current, **changes)


class Recorder:
    """Plays every sink role and records calls in order."""

    def __init__(self):
        self.calls: List[Tuple[str, object]] = []

    def set_remaining_time(self, text):
        self.calls.append(("display", text))

    def set_icon(self, kind):
        self.calls.append(("icon", kind))

    def play_once(self, kind):
        self.calls.append(("play", kind))

    def start_loop(self, kind):
        self.calls.append(("loop_start", kind))

    def stop_loop(self, kind):
        self.calls.append(("loop_stop", kind))

    def send(self, title, body, category):
        self.calls.append(("notify", category))

    def append(self, event):
        self.calls.append(("log", event))

    def of(self, name: str) -> list:
        return [arg for n, arg in self.calls if n == name]

    def names(self) -> List[str]:
        return [n for n, _ in self.calls]

    def clear(self) -> None:
        self.calls.clear()


class FailingSinks:
    def _boom(self, *args):
        raise RuntimeError("sink is broken")

    set_remaining_time = set_icon = play_once = start_loop = stop_loop = _boom
    send = append = _boom


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return StaticSettings()


@pytest.fixture
def sinks():
    return Recorder()


@pytest.fixture
def make_engine(clock, settings, sinks):
    def _make(
        policy=TransitionPolicy.AUTO_CHAIN,
        strict=True,
        sink=None,
        transition_log=None,
        notifications=None,
        settings_provider=None,
        **overrides,
    ):
        settings.update(**overrides)
        s = sink or sinks
        return TimerEngine(
            settings=settings_provider or settings,
            display=s,
            icons=s,
            sounds=s,
            notifications=notifications or s,
            transition_log=transition_log or s,
            policy=policy,
            clock=clock,
            ticker_factory=lambda cb: ManualTicker(cb, clock),
            strict=strict,
        )

    return _make


def elapse(engine, clock, overshoot: float = 0.0) -> None:
    """Move the clock to the current deadline (plus overshoot) and tick once."""
    clock.now = engine.deadline + overshoot
    engine.ticker.fire()


@pytest.fixture
def db():
    database = Database(":memory:")
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def app_state(db):
    return AppStateRepo(db)


@pytest.fixture
def event_log(db):
    return EventLogRepo(db)
