# -*- coding: utf-8 -*-

import logging
import time
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from core.timer_engine import EngineSnapshot, TimerEngine
from domain.models import LogEvent, NotificationAction, TimerState
from services.notifications import NotificationCenter
from services.settings_service import SettingsService
from storage.repos import EventLogRepo

logger = logging.getLogger(__name__)

URL_SCHEME = "tomatotimer"


class TimerService:
    """
    Orchestrates:
    - TimerEngine actions (every ingress goes through the engine lock)
    - notification actions fed back as skip-rest
    - the tomatotimer:// command surface
    - preference changes, redrawn right away
    - callbacks for UI
    """

    def __init__(
        self,
        engine: TimerEngine,
        notifications: NotificationCenter,
        event_log: Optional[EventLogRepo] = None,
        settings: Optional[SettingsService] = None,
    ):
        self.engine = engine
        self.notifications = notifications
        self.event_log = event_log
        self.settings = settings

        self._on_state_change: Optional[Callable[[EngineSnapshot], None]] = None

        self.notifications.set_action_handler(self._on_notification_action)
        self.engine.add_listener(self._emit_state_change)

        if self.event_log is not None:
            self.event_log.append(LogEvent.app_start(time.time()))

    # ----- Callbacks -----
    def set_on_state_change(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_state_change = fn

    def _emit_state_change(self, snap: EngineSnapshot) -> None:
        if self._on_state_change:
            self._on_state_change(snap)

    # ----- Public API -----
    def get_snapshot(self) -> EngineSnapshot:
        return self.engine.snapshot()

    def start_stop(self) -> bool:
        return self.engine.start_stop()

    def skip_rest(self) -> bool:
        return self.engine.skip_rest()

    def start_break(self) -> bool:
        return self.engine.start_break()

    def get_setting(self, name: str) -> Any:
        return self._settings_store().get(name)

    def set_setting(self, name: str, value: Any) -> None:
        self._settings_store().set(name, value)
        # interval lengths take effect from the next transition
        self.engine.refresh_display()

    def shutdown(self) -> None:
        self.engine.shutdown()

    def _settings_store(self) -> SettingsService:
        if self.settings is None:
            raise RuntimeError("TimerService has no settings store")
        return self.settings

    def handle_url(self, url: str) -> bool:
        """
        tomatotimer://startstop -> start_stop(). Anything else is ignored.
        Returns True when the URL was recognised.
        """
        parts = urlsplit((url or "").strip())
        if parts.scheme.lower() != URL_SCHEME:
            logger.debug("Ignoring URL with foreign scheme: %r", url)
            return False

        command = (parts.netloc or parts.path.strip("/")).lower()
        if command == "startstop":
            self.start_stop()
            return True

        logger.warning("Unknown URL command: %s", command)
        return False

    # ----- Notification actions -----
    def _on_notification_action(self, action: NotificationAction) -> None:
        if action == NotificationAction.SKIP_REST:
            # stale "skip" buttons on old notifications do nothing
            if self.engine.state == TimerState.REST:
                self.engine.skip_rest()
            else:
                logger.debug("Ignoring skip-rest action outside of rest")
