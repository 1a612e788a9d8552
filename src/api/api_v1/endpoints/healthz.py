import logging

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api.api_v1.deps import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    database: str


@router.get("/", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
def health_check(session: SessionDep):
    try:
        session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        database = "unavailable"
    return HealthCheckResponse(status="ok", database=database)
