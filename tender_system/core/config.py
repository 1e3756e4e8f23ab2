from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "Tender System"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api"
    request_id_header: str = "X-Request-Id"
    default_page_limit: int = 5

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── DECISIONS ───────────
    decision_quorum_cap: int = 3
    # "global": one vote per employee across all bids; "bid": one per bid
    vote_scope: Literal["global", "bid"] = "global"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
