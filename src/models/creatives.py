from datetime import datetime, timezone
import enum
from typing import List
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class CreativeType(str, enum.Enum):
    image = "image"
    video = "video"


class Creative(SQLModel, table=True):
    __tablename__ = "creatives"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(nullable=False)
    type: str = Field(default=CreativeType.image.value, nullable=False)
    url: str = Field(default="", nullable=False)
    file_path: str = Field(default="", nullable=False)
    size: int = Field(default=0, nullable=False)
    campaign_id: UUID = Field(foreign_key="campaigns.id", nullable=False, index=True)
    # e.g. ["monday", "friday"]
    selected_days: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    # e.g. ["08:00-10:00", "22:00-02:00"]
    time_slots: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    devices: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
