#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import logging
from typing import List, Optional

from core.timer_engine import TimerEngine
from domain.models import TransitionPolicy
from services.notifications import NotificationCenter
from services.player import SoundPlayer
from services.settings_service import SettingsService
from services.timer_service import TimerService
from storage.db import Database
from storage.repos import AppStateRepo, EventLogRepo
from ui.status_window import StatusWindow


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pomodoro timer")
    parser.add_argument("url", nargs="?", help="command URL, e.g. tomatotimer://startstop")
    parser.add_argument("--db", default="tomatotimer.db", help="SQLite database path")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in TransitionPolicy],
        default=TransitionPolicy.AUTO_CHAIN.value,
        help="what happens when an interval elapses",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = Database(db_path=args.db)
    db.init_schema()

    settings = SettingsService(AppStateRepo(db))
    event_log = EventLogRepo(db)
    notifications = NotificationCenter()
    player = SoundPlayer(settings)

    window = StatusWindow()
    engine = TimerEngine(
        settings=settings,
        display=window,
        icons=window,
        sounds=player,
        notifications=notifications,
        transition_log=event_log,
        policy=TransitionPolicy(args.policy),
    )
    service = TimerService(engine, notifications, event_log, settings)
    window.bind_service(service)

    if args.url:
        service.handle_url(args.url)

    try:
        window.run()
    finally:
        service.shutdown()
        db.close()


if __name__ == "__main__":
    main()
