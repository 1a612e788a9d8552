from datetime import date, datetime, timezone
import enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class CampaignStatus(str, enum.Enum):
    draft = "draft"
    scheduled = "scheduled"
    active = "active"
    paused = "paused"
    completed = "completed"


class Campaign(SQLModel, table=True):
    __tablename__ = "campaigns"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(nullable=False)
    # Kept as plain text so status names can be overridden by configuration
    status: str = Field(
        default=CampaignStatus.draft.value, nullable=False, index=True
    )
    start_date: date = Field(nullable=False, index=True)
    end_date: date = Field(nullable=False, index=True)
    budget: float = Field(default=0.0, nullable=False)
    spent: float = Field(default=0.0)
    impressions: int = Field(default=0)
    clicks: int = Field(default=0)
    ctr: float = Field(default=0.0)
    advertiser_id: UUID = Field(nullable=False, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
