from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse
import pendulum

import schemas
from api.api_v1.deps import SessionDep
from core import constants
from core.config import settings
from services.creative_store import CreativeStore
from services.exceptions import StoreError
from services.targeting import normalize_device
from utils.schedule_utils import resolve_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_truthy(value: Optional[str]) -> bool:
    return value is not None and (value.lower() == "true" or value == "1")


@router.get("/device/{device}", response_model=schemas.PaginatedCreativesResponse)
def list_creatives_by_device(
    device: str,
    session: SessionDep,
    active_now: Optional[str] = None,
    at: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(constants.CREATIVES_DEFAULT_PAGE_SIZE, ge=1),
):
    if not normalize_device(device):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="device is required"
        )

    page_size = min(page_size, constants.CREATIVES_MAX_PAGE_SIZE)
    offset = (page - 1) * page_size
    active_filter = _is_truthy(active_now)

    instant = None
    if active_filter:
        if at is None:
            _, tz = resolve_timezone(settings.CREATIVE_TARGETING_TZ)
            instant = pendulum.now(tz=tz)
        elif at.tzinfo is None:
            instant = at.replace(tzinfo=timezone.utc)
        else:
            instant = at

    store = CreativeStore(session)
    try:
        creatives, total = store.page_creatives_for_device(
            device, active_filter, instant, limit=page_size, offset=offset
        )
    except StoreError as e:
        logger.error("Failed to list creatives by device %s: %s", device, e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "list_creatives_failed",
                "message": "Failed to list creatives",
            },
        )

    return schemas.PaginatedCreativesResponse(
        data=[schemas.CreativeResponse.model_validate(c) for c in creatives],
        pagination=schemas.Pagination.build(page, page_size, total),
    )
