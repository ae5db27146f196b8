# -*- coding: utf-8 -*-

import logging
import os
import threading
from typing import Dict, Optional, Tuple

import numpy as np

from domain.models import Settings, SoundKind

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
MAX_VOLUME = 2.0

DEFAULT_ASSETS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "assets"
)


def _envelope(n: int, fade: int) -> np.ndarray:
    env = np.ones(n)
    fade = min(fade, n // 2)
    if fade > 0:
        env[:fade] = np.linspace(0, 1, fade)
        env[-fade:] = np.linspace(1, 0, fade)
    return env


def synthesize(kind: SoundKind, volume: float = 1.0) -> np.ndarray:
    """Stereo int16 samples used when no wav asset is available."""
    sr = SAMPLE_RATE
    if kind == SoundKind.WINDUP:
        duration = 0.6
        n = int(duration * sr)
        freq = np.linspace(300, 900, n)
        wave = np.sin(2 * np.pi * np.cumsum(freq) / sr) * _envelope(n, sr // 100)
    elif kind == SoundKind.DING:
        duration = 0.8
        n = int(duration * sr)
        t = np.linspace(0, duration, n, False)
        wave = np.sin(2 * np.pi * 880 * t) * np.exp(-4 * t) * _envelope(n, sr // 200)
    else:
        # one click per second, played on loop
        n = sr
        click = int(0.02 * sr)
        t = np.linspace(0, 0.02, click, False)
        wave = np.zeros(n)
        wave[:click] = np.sin(2 * np.pi * 1500 * t) * np.exp(-200 * t)

    volume = min(max(volume, 0.0), MAX_VOLUME)
    scaled = np.clip(wave * volume * 0.5, -1.0, 1.0)
    mono = (scaled * 32767).astype(np.int16)
    return np.repeat(mono.reshape(-1, 1), 2, axis=1)


class SoundPlayer:
    """
    Windup / ding / ticking through pygame.mixer.

    Volumes (0..2, default 1) are read from settings on every play. A
    missing wav asset falls back to a synthesized tone; a mixer that cannot
    be opened disables sound for the rest of the process.
    """

    def __init__(self, settings, assets_dir: Optional[str] = None, mixer=None):
        self._settings = settings
        self.assets_dir = assets_dir or DEFAULT_ASSETS_DIR
        self._mixer = mixer
        self._enabled: Optional[bool] = None
        self._lock = threading.Lock()
        self._cache: Dict[Tuple[SoundKind, float], object] = {}
        self._loops: Dict[SoundKind, object] = {}

    @property
    def enabled(self) -> bool:
        return bool(self._ensure_mixer())

    def _ensure_mixer(self) -> bool:
        if self._enabled is None:
            try:
                if self._mixer is None:
                    import pygame

                    self._mixer = pygame.mixer
                if not self._mixer.get_init():
                    self._mixer.init(
                        frequency=SAMPLE_RATE, size=-16, channels=2, buffer=512
                    )
                self._enabled = True
            except Exception:
                logger.warning("Audio unavailable, sounds disabled", exc_info=True)
                self._enabled = False
        return self._enabled

    def _asset_path(self, kind: SoundKind) -> str:
        return os.path.join(self.assets_dir, f"{kind.value}.wav")

    def _sound(self, kind: SoundKind):
        settings: Settings = self._settings.snapshot()
        volume = settings.volume_for(kind)
        path = self._asset_path(kind)

        if os.path.exists(path):
            key = (kind, -1.0)
            sound = self._cache.get(key)
            if sound is None:
                sound = self._mixer.Sound(path)
                self._cache[key] = sound
            sound.set_volume(min(volume, 1.0))
            return sound

        key = (kind, volume)
        sound = self._cache.get(key)
        if sound is None:
            samples = synthesize(kind, volume)
            sound = self._mixer.Sound(buffer=samples.tobytes())
            self._cache[key] = sound
        return sound

    def play_once(self, kind: SoundKind) -> None:
        with self._lock:
            if not self._ensure_mixer():
                return
            try:
                self._sound(kind).play()
            except Exception:
                logger.exception("Cannot play %s", kind.value)

    def start_loop(self, kind: SoundKind) -> None:
        with self._lock:
            if not self._ensure_mixer():
                return
            try:
                self._stop_locked(kind)
                sound = self._sound(kind)
                sound.play(loops=-1)
                self._loops[kind] = sound
            except Exception:
                logger.exception("Cannot loop %s", kind.value)

    def stop_loop(self, kind: SoundKind) -> None:
        with self._lock:
            try:
                self._stop_locked(kind)
            except Exception:
                logger.exception("Cannot stop %s", kind.value)

    def _stop_locked(self, kind: SoundKind) -> None:
        sound = self._loops.pop(kind, None)
        if sound is not None:
            sound.stop()

    def is_looping(self, kind: SoundKind) -> bool:
        return kind in self._loops
