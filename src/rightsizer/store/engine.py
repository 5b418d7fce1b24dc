# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Database engine factory with a bounded connection pool."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from rightsizer.config import Settings

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings, **overrides: Any) -> Engine:
    """Build the engine described by *settings*.

    PostgreSQL gets a ``QueuePool`` bounded at ``db_pool_size`` with a
    checkout timeout and a connect timeout; TLS is required when
    ``db_ssl`` is set.  Other backends (SQLite in tests and local runs)
    use SQLAlchemy's defaults plus any *overrides*.
    """
    url = make_url(settings.url)
    kwargs: dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        # Handlers run in a threadpool; connections move between threads.
        kwargs["connect_args"] = {"check_same_thread": False}
    elif url.get_backend_name() == "postgresql":
        connect_args: dict[str, Any] = {"connect_timeout": settings.db_connect_timeout}
        if settings.db_ssl:
            connect_args["sslmode"] = "require"
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            connect_args=connect_args,
        )

    kwargs.update(overrides)
    logger.info(
        "Connecting to %s (schema=%s, table=%s)",
        url.render_as_string(hide_password=True),
        settings.schema_label,
        settings.db_table,
    )
    return create_engine(url, **kwargs)
