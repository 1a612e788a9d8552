from typing import Any, List, Optional, Union

from pydantic import AnyHttpUrl, Field, PostgresDsn, ValidationInfo, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "SCM Ads API"
    # BACKEND_CORS_ORIGINS is a JSON-formatted list of origins
    # e.g: '["http://localhost", "http://localhost:3000"]'
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "scm_ads"
    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    # Bound on store calls issued by background jobs, in seconds
    STORE_TIMEOUT_SECONDS: int = 30

    # Campaign lifecycle scheduler
    CAMPAIGN_SCHEDULER_ENABLED: bool = True
    CAMPAIGN_SCHEDULER_TZ: str = "UTC"
    CAMPAIGN_SCHEDULER_TIME: str = "00:01"
    CAMPAIGN_COMPLETER_TIME: str = "00:02"
    CAMPAIGN_SCHEDULED_STATUS: str = "scheduled"
    CAMPAIGN_ACTIVE_STATUS: str = "active"
    CAMPAIGN_COMPLETED_STATUS: str = "completed"

    # Timezone used to express "now" when listing creatives active on a device
    CREATIVE_TARGETING_TZ: str = "UTC"

    # Seq log
    SEQ_SERVER_URL: Optional[str] = None
    SEQ_SERVER_API_KEY: Optional[str] = None

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v
        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=info.data.get("POSTGRES_USER"),
                password=info.data.get("POSTGRES_PASSWORD"),
                host=info.data.get("POSTGRES_SERVER"),
                path=f"{info.data.get('POSTGRES_DB') or ''}",
            )
        )

    class Config:

        case_sensitive = True
        env_file = "../.env"
        extra = "allow"


settings = Settings()
