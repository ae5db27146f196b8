# -*- coding: utf-8 -*-

"""
Declarative transition table for the pomodoro state machine.

Each (state, event) key maps to an ordered list of candidate transitions.
The first candidate whose guard accepts the current GuardContext wins; an
empty or fully rejected list means the event is not legal right now.

Handlers on one edge run in a fixed order:
    1. edge-specific "finish" handlers
    2. the source state's exit handler
    3. the target state's entry handler
    4. the transition log handler
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from domain.models import Settings, TimerEvent, TimerState, TransitionPolicy


@dataclass(frozen=True)
class GuardContext:
    settings: Settings
    pending_break: bool


@dataclass(frozen=True)
class TransitionContext:
    event: TimerEvent
    from_state: TimerState
    to_state: TimerState


Guard = Callable[[GuardContext], bool]
Handler = Callable[[TransitionContext], None]


@dataclass(frozen=True)
class Transition:
    source: TimerState
    event: TimerEvent
    target: TimerState
    guard: Optional[Guard] = None
    handlers: Tuple[Handler, ...] = field(default_factory=tuple)

    def permits(self, ctx: GuardContext) -> bool:
        return self.guard is None or bool(self.guard(ctx))


class TransitionHooks(Protocol):
    def on_work_start(self, ctx: TransitionContext) -> None: ...
    def on_work_finish(self, ctx: TransitionContext) -> None: ...
    def on_work_end(self, ctx: TransitionContext) -> None: ...
    def on_rest_start(self, ctx: TransitionContext) -> None: ...
    def on_rest_finish(self, ctx: TransitionContext) -> None: ...
    def on_idle_start(self, ctx: TransitionContext) -> None: ...
    def on_transition(self, ctx: TransitionContext) -> None: ...


class TransitionTable:
    def __init__(self, policy: TransitionPolicy):
        self.policy = policy
        self._routes: Dict[Tuple[TimerState, TimerEvent], List[Transition]] = {}

    def add(self, transition: Transition) -> None:
        key = (transition.source, transition.event)
        self._routes.setdefault(key, []).append(transition)

    def candidates(self, state: TimerState, event: TimerEvent) -> List[Transition]:
        return list(self._routes.get((state, event), []))

    def has_route(self, state: TimerState, event: TimerEvent) -> bool:
        return (state, event) in self._routes

    def resolve(
        self, state: TimerState, event: TimerEvent, ctx: GuardContext
    ) -> Optional[Transition]:
        for t in self.candidates(state, event):
            if t.permits(ctx):
                return t
        return None

    def edges(self) -> List[Transition]:
        out: List[Transition] = []
        for routes in self._routes.values():
            out.extend(routes)
        return out


# ----- guards -----
def _break_pending(ctx: GuardContext) -> bool:
    return ctx.pending_break


def _auto_start_break(ctx: GuardContext) -> bool:
    return ctx.settings.auto_start_break


def _no_auto_start_break(ctx: GuardContext) -> bool:
    return not ctx.settings.auto_start_break


def _continue_after_break(ctx: GuardContext) -> bool:
    return not ctx.settings.stop_after_break


def _stop_after_break(ctx: GuardContext) -> bool:
    return ctx.settings.stop_after_break


def build_transition_table(
    policy: TransitionPolicy, hooks: TransitionHooks
) -> TransitionTable:
    entry = {
        TimerState.WORK: hooks.on_work_start,
        TimerState.REST: hooks.on_rest_start,
        TimerState.IDLE: hooks.on_idle_start,
    }
    exit_ = {
        TimerState.WORK: hooks.on_work_end,
    }

    def edge(
        source: TimerState,
        event: TimerEvent,
        target: TimerState,
        guard: Optional[Guard] = None,
        finish: Tuple[Handler, ...] = (),
    ) -> Transition:
        handlers: List[Handler] = list(finish)
        if source in exit_:
            handlers.append(exit_[source])
        handlers.append(entry[target])
        handlers.append(hooks.on_transition)
        return Transition(source, event, target, guard, tuple(handlers))

    S, E = TimerState, TimerEvent
    table = TransitionTable(policy)

    # manual start/stop always wins, no guards
    table.add(edge(S.IDLE, E.START_STOP, S.WORK))
    table.add(edge(S.WORK, E.START_STOP, S.IDLE))
    table.add(edge(S.REST, E.START_STOP, S.IDLE))

    table.add(edge(S.IDLE, E.START_BREAK, S.REST, guard=_break_pending))

    work_done = (hooks.on_work_finish,)
    rest_done = (hooks.on_rest_finish,)

    if policy == TransitionPolicy.SIMPLE:
        table.add(edge(S.WORK, E.TIMER_FIRED, S.IDLE, finish=work_done))
        table.add(edge(S.REST, E.TIMER_FIRED, S.IDLE, finish=rest_done))
        table.add(edge(S.REST, E.SKIP_REST, S.IDLE))
    elif policy == TransitionPolicy.AUTO_CHAIN:
        table.add(
            edge(S.WORK, E.TIMER_FIRED, S.REST, _auto_start_break, work_done)
        )
        table.add(
            edge(S.WORK, E.TIMER_FIRED, S.IDLE, _no_auto_start_break, work_done)
        )
        table.add(
            edge(S.REST, E.TIMER_FIRED, S.WORK, _continue_after_break, rest_done)
        )
        table.add(
            edge(S.REST, E.TIMER_FIRED, S.IDLE, _stop_after_break, rest_done)
        )
        table.add(edge(S.REST, E.SKIP_REST, S.WORK))
    else:
        raise ValueError(f"Unknown transition policy: {policy!r}")

    return table
