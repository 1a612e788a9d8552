from sqlmodel import SQLModel, create_engine

from core.config import settings

# make sure all SQLModel models are imported (models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly
from models import Campaign, Creative  # noqa: F401


def _connect_args(database_uri: str) -> dict:
    if database_uri.startswith("postgresql"):
        timeout_ms = settings.STORE_TIMEOUT_SECONDS * 1000
        return {"options": f"-c statement_timeout={timeout_ms}"}
    return {}


engine = create_engine(
    str(settings.SQLALCHEMY_DATABASE_URI),
    pool_pre_ping=True,
    connect_args=_connect_args(str(settings.SQLALCHEMY_DATABASE_URI)),
)


def init_db(db_engine=None):
    SQLModel.metadata.create_all(db_engine or engine)
