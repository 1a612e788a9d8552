from datetime import datetime, timedelta, timezone
import uuid

import pendulum
import pytest

from models.creatives import Creative
from services.targeting import (
    is_scheduled_at,
    normalize_device,
    parse_clock,
    resolve_creatives,
    slot_matches,
    targets_device,
    weekday_name,
)

CAMPAIGN_ID = uuid.UUID("6d3c4b8e-2a8f-4e55-9a0a-6b1f0e4c2d11")

# 2025-03-03 is a Monday
MONDAY = pendulum.datetime(2025, 3, 3, tz="UTC")
TUESDAY = pendulum.datetime(2025, 3, 4, tz="UTC")


def at(day, hhmm: str):
    hour, minute = (int(p) for p in hhmm.split(":"))
    return day.set(hour=hour, minute=minute)


def make_creative(**kwargs) -> Creative:
    values = dict(
        name="Spring promo",
        campaign_id=CAMPAIGN_ID,
        selected_days=["Monday"],
        time_slots=["08:00-10:00"],
        devices=["kiosk-1"],
    )
    values.update(kwargs)
    return Creative(**values)


@pytest.mark.parametrize("hhmm", ["23:30", "00:15", "02:00", "22:00"])
def test_overnight_window_matches_both_sides_of_midnight(hhmm):
    assert slot_matches("22:00-02:00", at(MONDAY, hhmm))


@pytest.mark.parametrize("hhmm", ["02:01", "12:00", "21:59"])
def test_overnight_window_rejects_outside_times(hhmm):
    assert not slot_matches("22:00-02:00", at(MONDAY, hhmm))


@pytest.mark.parametrize("hhmm", ["09:00", "12:30", "17:00"])
def test_normal_window_bounds_are_inclusive(hhmm):
    assert slot_matches("09:00-17:00", at(MONDAY, hhmm))


@pytest.mark.parametrize("hhmm", ["08:59", "17:01", "00:00"])
def test_normal_window_rejects_outside_times(hhmm):
    assert not slot_matches("09:00-17:00", at(MONDAY, hhmm))


def test_window_compares_at_minute_resolution():
    instant = at(MONDAY, "17:00").set(second=59)
    assert slot_matches("09:00-17:00", instant)


def test_window_tolerates_whitespace():
    assert slot_matches(" 08:00 - 10:00 ", at(MONDAY, "09:30"))


def test_window_ending_at_midnight():
    assert slot_matches("22:00-24:00", at(MONDAY, "23:59"))
    assert not slot_matches("22:00-24:00", at(MONDAY, "00:00"))


def test_single_minute_window():
    assert slot_matches("12:00-12:00", at(MONDAY, "12:00"))
    assert not slot_matches("12:00-12:00", at(MONDAY, "12:01"))


@pytest.mark.parametrize(
    "slot", ["25:00-26:00", "aa:bb-10:00", "08:00-", "-10:00", "08:00-10:00-12:00", ""]
)
def test_malformed_slot_never_matches(slot):
    assert not slot_matches(slot, at(MONDAY, "09:00"))


def test_bare_label_matches_current_clock_label():
    assert slot_matches("09:00", at(MONDAY, "09:00"))
    assert not slot_matches("09:00", at(MONDAY, "09:01"))
    assert not slot_matches("morning", at(MONDAY, "09:00"))


def test_parse_clock():
    assert parse_clock("00:00") == 0
    assert parse_clock("8:05") == 8 * 60 + 5
    assert parse_clock("23:59") == 23 * 60 + 59
    assert parse_clock("24:00") == 24 * 60
    assert parse_clock("24:01") is None
    assert parse_clock("12:60") is None
    assert parse_clock("noon") is None


def test_weekday_uses_instant_civil_time():
    # Sunday 23:30 UTC is already Monday 01:30 in UTC+2
    sunday_night = pendulum.datetime(2025, 3, 2, 23, 30, tz="UTC")
    assert weekday_name(sunday_night) == "sunday"
    assert weekday_name(sunday_night.in_timezone("Europe/Helsinki")) == "monday"
    assert weekday_name(datetime(2025, 3, 3, 9, 0)) == "monday"


def test_device_match_ignores_case_and_whitespace():
    creative = make_creative(devices=[" Lobby-A "])
    assert normalize_device("  LOBBY-a") == "lobby-a"
    assert targets_device(creative, "lobby-a")
    assert not targets_device(creative, "lobby-b")
    assert not targets_device(creative, "   ")


def test_creative_without_devices_targets_nothing():
    creative = make_creative(devices=[])
    assert not targets_device(creative, "kiosk-1")


def test_empty_selected_days_is_never_active():
    creative = make_creative(selected_days=[])
    assert not is_scheduled_at(creative, at(MONDAY, "09:00"))


def test_selected_days_are_case_insensitive():
    creative = make_creative(selected_days=[" MONDAY "])
    assert is_scheduled_at(creative, at(MONDAY, "09:00"))


def test_any_matching_slot_is_enough():
    creative = make_creative(time_slots=["garbage", "06:00-07:00", "08:30-09:30"])
    assert is_scheduled_at(creative, at(MONDAY, "09:00"))


def test_overnight_slot_is_tied_to_selected_day():
    creative = make_creative(time_slots=["22:00-02:00"])
    assert is_scheduled_at(creative, at(MONDAY, "00:30"))
    # early Tuesday morning belongs to Tuesday, which is not selected
    assert not is_scheduled_at(creative, at(TUESDAY, "00:30"))


def test_scenario_monday_morning_kiosk():
    creative = make_creative()

    assert resolve_creatives([creative], "kiosk-1", True, at(MONDAY, "09:00")) == [
        creative
    ]
    assert resolve_creatives([creative], "kiosk-1", True, at(TUESDAY, "09:00")) == []
    assert resolve_creatives([creative], "kiosk-1", False) == [creative]
    assert resolve_creatives([creative], "KIOSK-1", False, at(TUESDAY, "03:00")) == [
        creative
    ]


def test_resolve_keeps_input_order_and_drops_other_devices():
    newest = make_creative(name="newest")
    other_device = make_creative(name="other", devices=["kiosk-2"])
    oldest = make_creative(name="oldest")

    result = resolve_creatives([newest, other_device, oldest], "kiosk-1")

    assert [c.name for c in result] == ["newest", "oldest"]


def test_resolve_requires_instant_when_filtering():
    with pytest.raises(ValueError):
        resolve_creatives([make_creative()], "kiosk-1", True, None)


def test_resolve_with_offset_aware_instant():
    creative = make_creative(time_slots=["08:00-10:00"])
    # 09:00 at UTC+2 is 07:00 UTC, the instant's own offset decides
    instant = datetime(2025, 3, 3, 9, 0, tzinfo=timezone(timedelta(hours=2)))
    assert resolve_creatives([creative], "kiosk-1", True, instant) == [creative]

    utc_instant = instant.astimezone(timezone.utc)
    assert resolve_creatives([creative], "kiosk-1", True, utc_instant) == []
