# -*- coding: utf-8 -*-

import asyncio
import functools
import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from domain.models import NotificationAction, NotificationCategory

logger = logging.getLogger(__name__)

APP_NAME = "Tomato Timer"
ACTION_SEND_TIMEOUT = 10.0

CATEGORY_ACTIONS: Dict[NotificationCategory, Tuple[NotificationAction, ...]] = {
    NotificationCategory.WORK_FINISHED: (),
    NotificationCategory.REST_STARTED: (NotificationAction.SKIP_REST,),
    NotificationCategory.REST_FINISHED: (),
}

ACTION_TITLES: Dict[NotificationAction, str] = {
    NotificationAction.SKIP_REST: "Skip rest",
}

ActionHandler = Callable[[NotificationAction], None]
ButtonSpec = Tuple[str, Callable[[], None]]
Backend = Callable[[str, str], None]
ActionBackend = Callable[[str, str, Sequence[ButtonSpec]], None]


def _plyer_notify(title: str, body: str) -> None:
    from plyer import notification

    notification.notify(title=title, message=body, app_name=APP_NAME, timeout=10)


class DesktopNotifierBackend:
    """
    Notifications with clickable buttons through desktop-notifier.

    desktop-notifier is asyncio based and only dispatches button presses
    while its event loop runs, so the backend keeps a private loop alive on
    a daemon thread. Button callbacks run on that thread.
    """

    def __init__(self, app_name: str = APP_NAME):
        self.app_name = app_name
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._notifier = None

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                threading.Thread(
                    target=loop.run_forever, name="notifier-loop", daemon=True
                ).start()
                self._notifier = asyncio.run_coroutine_threadsafe(
                    self._create_notifier(), loop
                ).result(ACTION_SEND_TIMEOUT)
                self._loop = loop
            return self._loop

    async def _create_notifier(self):
        from desktop_notifier import DesktopNotifier

        return DesktopNotifier(app_name=self.app_name)

    def __call__(self, title: str, body: str, buttons: Sequence[ButtonSpec]) -> None:
        from desktop_notifier import Button

        loop = self._ensure_started()
        widgets = [Button(title=label, on_pressed=cb) for label, cb in buttons]
        future = asyncio.run_coroutine_threadsafe(
            self._notifier.send(title=title, message=body, buttons=widgets), loop
        )
        future.result(ACTION_SEND_TIMEOUT)


class NotificationCenter:
    """
    Desktop notifications plus the inbound action channel.

    send() never blocks the caller: delivery happens on a short-lived daemon
    thread and any backend error (no notification daemon, permission
    denied, ...) is logged and dropped. Categories that carry actions go
    through the action backend, whose buttons call perform_action(); if it
    fails the notification is still shown through the plain backend,
    without buttons.
    """

    def __init__(
        self,
        backend: Optional[Backend] = None,
        action_backend: Optional[ActionBackend] = None,
        threaded: bool = True,
    ):
        self._backend = backend or _plyer_notify
        self._action_backend = action_backend or DesktopNotifierBackend()
        self._threaded = threaded
        self._handler: Optional[ActionHandler] = None

    def set_action_handler(self, handler: ActionHandler) -> None:
        self._handler = handler

    def actions_for(self, category: NotificationCategory) -> Tuple[NotificationAction, ...]:
        return CATEGORY_ACTIONS.get(category, ())

    def buttons_for(self, category: NotificationCategory) -> List[ButtonSpec]:
        return [
            (ACTION_TITLES[action], functools.partial(self.perform_action, action))
            for action in self.actions_for(category)
        ]

    def send(self, title: str, body: str, category: NotificationCategory) -> None:
        logger.debug("Notification [%s]: %s", category.value, title)
        if self._threaded:
            threading.Thread(
                target=self._deliver,
                args=(title, body, category),
                name="notification",
                daemon=True,
            ).start()
        else:
            self._deliver(title, body, category)

    def _deliver(self, title: str, body: str, category: NotificationCategory) -> None:
        buttons = self.buttons_for(category)
        if buttons:
            try:
                self._action_backend(title, body, buttons)
                return
            except Exception:
                logger.warning(
                    "Cannot show actions for %r, sending without buttons",
                    title,
                    exc_info=True,
                )
        try:
            self._backend(title, body)
        except Exception:
            logger.exception("Error delivering notification %r", title)

    def perform_action(self, action: Union[NotificationAction, str]) -> None:
        """Called when the user clicks an action on a delivered notification."""
        try:
            action = NotificationAction(action)
        except ValueError:
            logger.warning("Unknown notification action: %r", action)
            return
        if self._handler is None:
            logger.debug("No handler for notification action %s", action.value)
            return
        self._handler(action)
