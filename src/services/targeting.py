"""
Creative targeting

Decides which creatives a device should show at a given instant, based on
each creative's device list, selected weekdays and time slots.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional

from core.constants import TIME_SLOT_SEPARATOR, WEEKDAYS
from models.creatives import Creative

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_END_OF_DAY = 24 * 60


def normalize_device(device: Optional[str]) -> str:
    return (device or "").strip().lower()


def weekday_name(instant: datetime) -> str:
    """Weekday of the instant in its own civil time, e.g. "monday"."""
    return WEEKDAYS[instant.isoweekday() - 1]


def clock_label(instant: datetime) -> str:
    return instant.strftime("%H:%M")


def parse_clock(value: str) -> Optional[int]:
    """Parse HH:MM into minutes since midnight, None when malformed.

    24:00 is accepted as the end of the day.
    """
    match = _CLOCK_PATTERN.match((value or "").strip())
    if match is None:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour == 24 and minute == 0:
        return _END_OF_DAY
    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def slot_matches(slot: str, instant: datetime) -> bool:
    if not slot:
        return False

    slot = slot.strip()
    if TIME_SLOT_SEPARATOR not in slot:
        # bare label, compared against the instant's HH:MM label
        return slot.lower() == clock_label(instant).lower()

    start_raw, _, end_raw = slot.partition(TIME_SLOT_SEPARATOR)
    start = parse_clock(start_raw)
    end = parse_clock(end_raw)
    if start is None or end is None:
        logger.debug("Ignoring malformed time slot %r", slot)
        return False

    now = instant.hour * 60 + instant.minute
    if start <= end:
        return start <= now <= end

    # overnight window: [start, 24:00) or [00:00, end]
    return now >= start or now <= end


def is_scheduled_at(creative: Creative, instant: datetime) -> bool:
    today = weekday_name(instant)
    days = {(d or "").strip().lower() for d in creative.selected_days or []}
    if today not in days:
        return False

    return any(slot_matches(slot, instant) for slot in creative.time_slots or [])


def targets_device(creative: Creative, device: str) -> bool:
    wanted = normalize_device(device)
    if not wanted:
        return False
    return any(normalize_device(d) == wanted for d in creative.devices or [])


def resolve_creatives(
    creatives: Iterable[Creative],
    device: str,
    active_filter: bool = False,
    instant: Optional[datetime] = None,
) -> List[Creative]:
    """Filter creatives down to those eligible on `device`.

    With `active_filter` set, only creatives whose selected days and time
    slots cover `instant` are kept. Input order is preserved.
    """
    if active_filter and instant is None:
        raise ValueError("instant is required when active_filter is set")

    result = []
    for creative in creatives:
        if not targets_device(creative, device):
            continue
        if active_filter and not is_scheduled_at(creative, instant):
            continue
        result.append(creative)
    return result
