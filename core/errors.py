# -*- coding: utf-8 -*-


class TimerError(Exception):
    pass


class IllegalTransitionError(TimerError):
    """Raised in strict mode when the engine feeds itself an event that has
    no edge from the current state."""

    def __init__(self, state, event):
        super().__init__(f"No transition for {event.value!r} from {state.value!r}")
        self.state = state
        self.event = event
