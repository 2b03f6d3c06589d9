from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BorderExplorerSettings(BaseSettings):
    """Unified configuration for border-explorer.

    Environment variables are prefixed with BORDER_EXPLORER_.
    """

    model_config = SettingsConfigDict(env_prefix="BORDER_EXPLORER_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Storage ---
    db_path: str = Field(default="border-explorer.db")
    commit_every: int = Field(default=10_000, description="Records per ingestion transaction")

    # --- Ingestion ---
    decompressor: str = Field(default="lbzcat", description="Parallel bzip2 decompressor binary")
    natures: str = Field(default="", description="Comma separated Q ids; empty keeps every place")
    cutoff: datetime = Field(default=datetime(2025, 1, 1, tzinfo=timezone.utc))
    banned_categories_file: str | None = Field(
        default=None, description="TSV overriding the packaged banned category list"
    )

    # --- Export ---
    output_dir: str = Field(default="web/geojson")
    max_categories: int = Field(default=600)

    # --- Label service ---
    label_service_url: str = Field(default="https://www.wikidata.org/w/rest.php/wikibase/v1")
    label_timeout_s: float = Field(default=20.0)
    user_agent: str | None = Field(default=None, description="Defaults to border-explorer v<version>")


settings = BorderExplorerSettings()
