from datetime import date, datetime
import logging
from typing import Tuple
from zoneinfo import ZoneInfoNotFoundError

import pendulum
from pendulum import DateTime

from core.constants import DEFAULT_SCHEDULER_TZ

logger = logging.getLogger(__name__)


def parse_hhmm(value: str, default_hour: int, default_minute: int) -> Tuple[int, int]:
    parts = (value or "").strip().split(":")
    if len(parts) == 2:
        try:
            hour, minute = int(parts[0]), int(parts[1])
        except ValueError:
            hour, minute = -1, -1

        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return hour, minute

    logger.warning(
        "Invalid fire time %r, falling back to %02d:%02d",
        value,
        default_hour,
        default_minute,
    )
    return default_hour, default_minute


def resolve_timezone(name: str):
    """Return (tz_name, timezone), falling back to UTC for unknown names."""
    if name:
        try:
            return name, pendulum.timezone(name)
        except (ValueError, OSError, ZoneInfoNotFoundError) as e:
            logger.warning("Invalid timezone %r, falling back to UTC: %s", name, e)
    else:
        logger.warning("Empty timezone name, falling back to UTC")

    return DEFAULT_SCHEDULER_TZ, pendulum.UTC


def next_run_at(now: datetime, tz, hour: int, minute: int) -> DateTime:
    """Next instant at which the local clock in `tz` reads HH:MM.

    Today's HH:MM when it is still ahead of `now`, otherwise tomorrow's.
    """
    local_now = pendulum.instance(now).in_timezone(tz)
    run_at = local_now.set(hour=hour, minute=minute, second=0, microsecond=0)
    if run_at <= local_now:
        run_at = run_at.add(days=1).set(hour=hour, minute=minute)
    return run_at


def seconds_until(run_at: datetime, now: datetime) -> float:
    return max(0.0, (run_at - pendulum.instance(now)).total_seconds())


def civil_today(now: datetime, tz) -> date:
    local_now = pendulum.instance(now).in_timezone(tz)
    return date(local_now.year, local_now.month, local_now.day)
