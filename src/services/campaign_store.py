from datetime import date
import logging

import pendulum
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from core.constants import (
    DEFAULT_ACTIVE_STATUS,
    DEFAULT_COMPLETED_STATUS,
    DEFAULT_SCHEDULED_STATUS,
    DEFAULT_SCHEDULER_TZ,
)
from models.campaigns import Campaign
from services.exceptions import StoreError

logger = logging.getLogger(__name__)


class CampaignStore:
    def __init__(self, session: Session):
        self.session = session

    def activate_scheduled(
        self,
        today: date,
        from_status: str = DEFAULT_SCHEDULED_STATUS,
        to_status: str = DEFAULT_ACTIVE_STATUS,
        timezone: str = DEFAULT_SCHEDULER_TZ,
    ) -> int:
        """Move campaigns starting on `today` from `from_status` to `to_status`.

        `today` is the civil date in `timezone`. Returns the number of
        campaigns transitioned.
        """
        from_status = from_status or DEFAULT_SCHEDULED_STATUS
        to_status = to_status or DEFAULT_ACTIVE_STATUS
        statement = (
            update(Campaign)
            .where(Campaign.status == from_status)
            .where(Campaign.start_date == today)
            .values(status=to_status, updated_at=pendulum.now(tz=pendulum.UTC))
            .execution_options(synchronize_session=False)
        )
        description = (
            f"activate {from_status}->{to_status} on {today} "
            f"({timezone or DEFAULT_SCHEDULER_TZ})"
        )
        return self._apply(statement, description)

    def complete_ended(
        self,
        today: date,
        from_status: str = DEFAULT_ACTIVE_STATUS,
        to_status: str = DEFAULT_COMPLETED_STATUS,
        timezone: str = DEFAULT_SCHEDULER_TZ,
    ) -> int:
        """Move campaigns whose end date is strictly before `today` to `to_status`."""
        from_status = from_status or DEFAULT_ACTIVE_STATUS
        to_status = to_status or DEFAULT_COMPLETED_STATUS
        statement = (
            update(Campaign)
            .where(Campaign.status == from_status)
            .where(Campaign.end_date < today)
            .values(status=to_status, updated_at=pendulum.now(tz=pendulum.UTC))
            .execution_options(synchronize_session=False)
        )
        description = (
            f"complete {from_status}->{to_status} before {today} "
            f"({timezone or DEFAULT_SCHEDULER_TZ})"
        )
        return self._apply(statement, description)

    def _apply(self, statement, description: str) -> int:
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to {description}: {e}") from e

        rows = result.rowcount or 0
        logger.debug("%s: %d row(s)", description, rows)
        return rows
