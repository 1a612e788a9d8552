from enum import Enum

# Weekday names as stored in creative.selected_days, Monday first
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

TIME_SLOT_SEPARATOR = "-"

DEFAULT_SCHEDULER_TZ = "UTC"

# Fallback fire times (hour, minute) when the configured HH:MM is malformed
DEFAULT_ACTIVATION_TIME = (0, 1)
DEFAULT_COMPLETION_TIME = (0, 2)

DEFAULT_SCHEDULED_STATUS = "scheduled"
DEFAULT_ACTIVE_STATUS = "active"
DEFAULT_COMPLETED_STATUS = "completed"

CREATIVES_DEFAULT_PAGE_SIZE = 50
CREATIVES_MAX_PAGE_SIZE = 200


class TransitionName(str, Enum):
    ACTIVATE = "activate_scheduled_campaigns"
    COMPLETE = "complete_ended_campaigns"


