# -*- coding: utf-8 -*-

import pytest

from domain.models import Settings
from services.settings_service import SettingsError, SettingsService


@pytest.fixture
def service(app_state):
    return SettingsService(app_state)


class TestSnapshot:
    def test_defaults_when_nothing_stored(self, service):
        assert service.snapshot() == Settings()

    def test_reads_stored_values(self, service, app_state):
        app_state.set("workIntervalLength", "50")
        app_state.set("autoStartBreak", "false")
        app_state.set("overrunTimeLimit", "-120")
        app_state.set("dingVolume", "1.5")

        s = service.snapshot()

        assert s.work_interval_length == 50
        assert s.auto_start_break is False
        assert s.overrun_time_limit == -120.0
        assert s.ding_volume == 1.5

    def test_invalid_stored_values_fall_back_to_default(self, service, app_state):
        app_state.set("workIntervalLength", "ninety")
        app_state.set("workIntervalsInSet", "11")
        app_state.set("tickingVolume", "3")

        s = service.snapshot()

        assert s.work_interval_length == 25
        assert s.work_intervals_in_set == 4
        assert s.ticking_volume == 1.0

    def test_every_snapshot_sees_latest_write(self, service):
        assert service.snapshot().stop_after_break is False
        service.set("stop_after_break", True)
        assert service.snapshot().stop_after_break is True


class TestSet:
    def test_round_trips_through_storage(self, service, app_state):
        service.set("short_rest_interval_length", 7)
        assert app_state.get("shortRestIntervalLength") == "7"
        assert service.get("short_rest_interval_length") == 7

    def test_accepts_text(self, service):
        service.set("debug_mode", "yes")
        service.set("long_rest_interval_length", "20")
        s = service.snapshot()
        assert s.debug_mode is True
        assert s.long_rest_interval_length == 20

    @pytest.mark.parametrize(
        "name, value",
        [
            ("work_interval_length", 0),
            ("work_interval_length", 61),
            ("work_intervals_in_set", 11),
            ("overrun_time_limit", 5),
            ("windup_volume", 2.5),
            ("windup_volume", -0.1),
        ],
    )
    def test_rejects_out_of_range(self, service, name, value):
        with pytest.raises(SettingsError):
            service.set(name, value)

    @pytest.mark.parametrize(
        "name, value",
        [
            ("work_interval_length", "abc"),
            ("work_interval_length", 2.5),
            ("work_interval_length", True),
            ("auto_start_break", 1),
            ("auto_start_break", "maybe"),
        ],
    )
    def test_rejects_wrong_types(self, service, name, value):
        with pytest.raises(SettingsError):
            service.set(name, value)

    def test_unknown_setting(self, service):
        with pytest.raises(SettingsError):
            service.set("volume", 1)
        with pytest.raises(SettingsError):
            service.get("volume")

    def test_settings_error_is_value_error(self):
        assert issubclass(SettingsError, ValueError)


def test_reset_restores_defaults(service):
    service.set("work_interval_length", 45)
    service.set("ding_volume", 0.5)

    service.reset("work_interval_length")
    assert service.snapshot().work_interval_length == 25
    assert service.snapshot().ding_volume == 0.5

    service.reset()
    assert service.snapshot() == Settings()
