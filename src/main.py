from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.api_v1.api import api_router
from campaign_scheduler import CampaignScheduler
from core.config import settings
from core.db import init_db
from log import setup_logging_to_console

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging_to_console()
    init_db()

    scheduler = None
    if settings.CAMPAIGN_SCHEDULER_ENABLED:
        scheduler = CampaignScheduler()
        scheduler.start()
    else:
        logger.info("Campaign scheduler disabled")

    yield

    if scheduler is not None:
        logger.info("Stopping campaign scheduler...")
        await scheduler.stop()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
