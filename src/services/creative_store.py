from datetime import datetime
import logging
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models.creatives import Creative
from services.exceptions import StoreError
from services.targeting import normalize_device, resolve_creatives

logger = logging.getLogger(__name__)


def _device_prefilter(device: str):
    """SQL predicate keeping rows whose device list text contains `device`.

    Only a coarse superset of the real match; exact matching is left to the
    resolver. None when the name would not appear verbatim in the stored
    JSON text.
    """
    needle = normalize_device(device)
    if not needle or not needle.isascii() or '"' in needle or "\\" in needle:
        return None
    devices_text = func.lower(cast(Creative.devices, String), type_=String)
    return devices_text.contains(needle, autoescape=True)


def _paginate(creatives: List[Creative], limit: int, offset: int) -> List[Creative]:
    if offset > 0:
        creatives = creatives[offset:]
    if limit > 0:
        creatives = creatives[:limit]
    return creatives


class CreativeStore:
    def __init__(self, session: Session):
        self.session = session

    def list_creatives_for_device(
        self,
        device: str,
        active_filter: bool = False,
        instant: Optional[datetime] = None,
        limit: int = 0,
        offset: int = 0,
    ) -> List[Creative]:
        creatives = self._get_targeted_creatives(device, active_filter, instant)
        return _paginate(creatives, limit, offset)

    def count_creatives_for_device(
        self,
        device: str,
        active_filter: bool = False,
        instant: Optional[datetime] = None,
    ) -> int:
        return len(self._get_targeted_creatives(device, active_filter, instant))

    def page_creatives_for_device(
        self,
        device: str,
        active_filter: bool = False,
        instant: Optional[datetime] = None,
        limit: int = 0,
        offset: int = 0,
    ) -> Tuple[List[Creative], int]:
        """One page of eligible creatives plus the total, from a single read."""
        creatives = self._get_targeted_creatives(device, active_filter, instant)
        return _paginate(creatives, limit, offset), len(creatives)

    def _get_targeted_creatives(
        self, device: str, active_filter: bool, instant: Optional[datetime]
    ) -> List[Creative]:
        # newest uploads first
        statement = select(Creative).order_by(
            Creative.uploaded_at.desc(), Creative.id.asc()
        )
        prefilter = _device_prefilter(device)
        if prefilter is not None:
            statement = statement.where(prefilter)

        try:
            creatives = self.session.exec(statement).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to load creatives for device %s: %s", device, e)
            raise StoreError(f"Failed to list creatives for device {device}") from e

        return resolve_creatives(creatives, device, active_filter, instant)
