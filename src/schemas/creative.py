from datetime import datetime
import math
from typing import List
import uuid

from pydantic import BaseModel, ConfigDict


class CreativeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    type: str
    url: str
    size: int
    campaign_id: uuid.UUID
    selected_days: List[str] = []
    time_slots: List[str] = []
    devices: List[str] = []
    uploaded_at: datetime


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / page_size) if page_size > 0 else 0
        return cls(
            page=page, page_size=page_size, total=total, total_pages=total_pages
        )


class PaginatedCreativesResponse(BaseModel):
    data: List[CreativeResponse]
    pagination: Pagination
