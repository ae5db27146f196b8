# -*- coding: utf-8 -*-

from unittest.mock import MagicMock

import numpy as np
import pytest

from conftest import StaticSettings
from domain.models import SoundKind
from services.player import SAMPLE_RATE, SoundPlayer, synthesize


@pytest.fixture
def mixer():
    m = MagicMock()
    m.get_init.return_value = True
    return m


@pytest.fixture
def settings():
    return StaticSettings()


@pytest.fixture
def player(settings, mixer, tmp_path):
    return SoundPlayer(settings, assets_dir=str(tmp_path), mixer=mixer)


class TestSynthesize:
    def test_stereo_int16(self):
        samples = synthesize(SoundKind.DING)
        assert samples.dtype == np.int16
        assert samples.shape[1] == 2

    def test_ticking_lasts_one_second(self):
        assert synthesize(SoundKind.TICKING).shape[0] == SAMPLE_RATE

    def test_volume_scales_amplitude(self):
        quiet = np.abs(synthesize(SoundKind.DING, 0.5)).max()
        normal = np.abs(synthesize(SoundKind.DING, 1.0)).max()
        loud = np.abs(synthesize(SoundKind.DING, 2.0)).max()
        assert quiet < normal < loud

    def test_silent_at_zero_volume(self):
        assert np.abs(synthesize(SoundKind.WINDUP, 0.0)).max() == 0


class TestPlayback:
    def test_play_once_uses_synthesized_tone(self, player, mixer):
        player.play_once(SoundKind.WINDUP)

        mixer.Sound.assert_called_once()
        assert "buffer" in mixer.Sound.call_args.kwargs
        mixer.Sound.return_value.play.assert_called_once_with()

    def test_asset_file_is_preferred(self, player, mixer, tmp_path, settings):
        asset = tmp_path / "ding.wav"
        asset.write_bytes(b"RIFF")
        settings.update(ding_volume=1.5)

        player.play_once(SoundKind.DING)

        mixer.Sound.assert_called_once_with(str(asset))
        mixer.Sound.return_value.set_volume.assert_called_once_with(1.0)

    def test_loop_start_and_stop(self, player, mixer):
        player.start_loop(SoundKind.TICKING)
        sound = mixer.Sound.return_value
        sound.play.assert_called_once_with(loops=-1)
        assert player.is_looping(SoundKind.TICKING)

        player.stop_loop(SoundKind.TICKING)

        sound.stop.assert_called_once_with()
        assert not player.is_looping(SoundKind.TICKING)

    def test_stop_without_loop_is_harmless(self, player, mixer):
        player.stop_loop(SoundKind.TICKING)
        mixer.Sound.return_value.stop.assert_not_called()

    def test_sounds_are_cached_per_volume(self, player, mixer, settings):
        player.play_once(SoundKind.DING)
        player.play_once(SoundKind.DING)
        assert mixer.Sound.call_count == 1

        settings.update(ding_volume=0.5)
        player.play_once(SoundKind.DING)
        assert mixer.Sound.call_count == 2


class TestFailures:
    def test_mixer_init_failure_disables_sound(self, settings, tmp_path):
        mixer = MagicMock()
        mixer.get_init.return_value = False
        mixer.init.side_effect = RuntimeError("no audio device")
        player = SoundPlayer(settings, assets_dir=str(tmp_path), mixer=mixer)

        player.play_once(SoundKind.DING)
        player.start_loop(SoundKind.TICKING)

        assert player.enabled is False
        mixer.Sound.assert_not_called()

    def test_playback_error_is_swallowed(self, player, mixer):
        mixer.Sound.return_value.play.side_effect = RuntimeError("device lost")

        player.play_once(SoundKind.DING)
        player.start_loop(SoundKind.TICKING)

        assert not player.is_looping(SoundKind.TICKING)
