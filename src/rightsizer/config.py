# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Service configuration loaded from the environment or a YAML file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Settings read from ``DB_*`` style environment variables and ``.env``.

    Defaults target a local PostgreSQL instance.  ``DATABASE_URL`` wins
    over the individual connection fields when set.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Connection
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432, ge=1, le=65535)
    db_user: str = Field(default="postgres")
    db_password: str = Field(default="password")
    db_name: str = Field(default="resource_utilization")
    db_ssl: bool = Field(default=False, description="Require TLS to the database")
    database_url: str | None = Field(default=None)

    # Layout
    db_schema: str | None = Field(default=None, description="Schema holding both tables")
    db_table: str = Field(default="resource_utilization")
    db_history_table: str = Field(default="optimization_history")
    db_create_tables: bool = Field(
        default=True, description="Create tables on startup; off for externally managed tables"
    )
    seed_sample_data: bool = Field(default=False)

    # Pool
    db_pool_size: int = Field(default=20, ge=1)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_connect_timeout: int = Field(default=30, ge=1)

    # Service
    dump_dir: Path = Field(default=Path("dumps"))
    overprovision_threshold: float = Field(default=50.0, ge=0, le=100)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)

    @property
    def url(self) -> str | URL:
        """SQLAlchemy URL for the configured store."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def schema_label(self) -> str:
        return self.db_schema or "public"


def load_config(path: str | Path) -> Settings:
    """Load Settings from a YAML file; environment values fill the gaps."""
    import yaml

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return Settings(**raw)


@lru_cache
def get_settings() -> Settings:
    """Cached settings built from the environment."""
    return Settings()
