# services/settings_service.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Callable, Dict, Optional, Tuple

from domain.models import Settings
from storage.repos import AppStateRepo

logger = logging.getLogger(__name__)


class SettingsError(ValueError):
    pass


def _parse_bool(raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _int_range(lo: int, hi: int) -> Callable[[Any], bool]:
    return lambda v: lo <= v <= hi


def _float_range(lo: float, hi: float) -> Callable[[Any], bool]:
    return lambda v: lo <= v <= hi


# field name -> (stored key, parser, validator)
SETTING_KEYS: Dict[str, Tuple[str, Callable[[str], Any], Callable[[Any], bool]]] = {
    "work_interval_length": ("workIntervalLength", int, _int_range(1, 60)),
    "short_rest_interval_length": ("shortRestIntervalLength", int, _int_range(1, 60)),
    "long_rest_interval_length": ("longRestIntervalLength", int, _int_range(1, 60)),
    "work_intervals_in_set": ("workIntervalsInSet", int, _int_range(1, 10)),
    "auto_start_break": ("autoStartBreak", _parse_bool, lambda v: True),
    "stop_after_break": ("stopAfterBreak", _parse_bool, lambda v: True),
    "overrun_time_limit": ("overrunTimeLimit", float, lambda v: v <= 0),
    "show_timer_in_menu_bar": ("showTimerInMenuBar", _parse_bool, lambda v: True),
    "debug_mode": ("debugMode", _parse_bool, lambda v: True),
    "windup_volume": ("windupVolume", float, _float_range(0.0, 2.0)),
    "ding_volume": ("dingVolume", float, _float_range(0.0, 2.0)),
    "ticking_volume": ("tickingVolume", float, _float_range(0.0, 2.0)),
}


def _coerce(parse: Callable[[str], Any], value: Any) -> Any:
    if isinstance(value, str):
        return parse(value)
    if parse is _parse_bool:
        if isinstance(value, bool):
            return value
        raise ValueError(value)
    if isinstance(value, bool):
        raise ValueError(value)
    v = parse(value)
    if v != value:
        raise ValueError(value)
    return v


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SettingsService:
    """
    Persisted preferences, read fresh on every snapshot() so a change made
    mid-session applies to the next transition without a restart.
    """

    def __init__(self, state: AppStateRepo):
        self.state = state
        self._defaults = Settings()

    def snapshot(self) -> Settings:
        stored = self.state.all()
        values: Dict[str, Any] = {}
        for f in fields(Settings):
            key, parse, valid = SETTING_KEYS[f.name]
            raw = stored.get(key)
            if raw is None:
                continue
            try:
                v = parse(raw)
            except ValueError:
                logger.warning("Ignoring unparsable setting %s=%r", key, raw)
                continue
            if not valid(v):
                logger.warning("Ignoring out-of-range setting %s=%r", key, raw)
                continue
            values[f.name] = v
        return replace(self._defaults, **values)

    def get(self, name: str) -> Any:
        self._key(name)
        return getattr(self.snapshot(), name)

    def set(self, name: str, value: Any) -> None:
        key, parse, valid = self._key(name)
        try:
            v = _coerce(parse, value)
        except (TypeError, ValueError):
            raise SettingsError(f"Invalid value for {name}: {value!r}")
        if not valid(v):
            raise SettingsError(f"Value out of range for {name}: {value!r}")
        self.state.set(key, _to_text(v))
        logger.info("Setting %s changed to %r", key, v)

    def reset(self, name: Optional[str] = None) -> None:
        names = [name] if name else list(SETTING_KEYS)
        for n in names:
            key, _, _ = self._key(n)
            self.state.delete(key)

    def _key(self, name: str):
        try:
            return SETTING_KEYS[name]
        except KeyError:
            raise SettingsError(f"Unknown setting: {name}")
