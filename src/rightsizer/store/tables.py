# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""SQLAlchemy Core table definitions.

The utilization table name and schema are configurable because some
deployments point the service at a table owned by another system.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Tables:
    """The two tables the service reads and writes."""

    metadata: MetaData
    resource_utilization: Table
    optimization_history: Table


def build_tables(
    table_name: str = "resource_utilization",
    history_table_name: str = "optimization_history",
    schema: str | None = None,
) -> Tables:
    metadata = MetaData(schema=schema or None)

    resource_utilization = Table(
        table_name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("app_uniq", String(255), nullable=False),
        Column("project", String(255)),
        Column("pr_url", Text),
        Column("pr_status", String(50), default="Open"),
        Column("app_name", String(255)),
        Column("app_id", String(50), nullable=False, index=True),
        Column("env", String(50), nullable=False, index=True),
        Column("tier", String(50)),
        Column("max_cpu", Float),
        Column("avg_cpu", Float),
        Column("req_cpu", Float, nullable=False),
        Column("new_req_cpu", Float),
        Column("max_cpu_utilz_percent", Float),
        Column("created_at", DateTime(timezone=True), default=utcnow, server_default=func.now()),
        Column(
            "updated_at",
            DateTime(timezone=True),
            default=utcnow,
            onupdate=utcnow,
            server_default=func.now(),
        ),
    )

    optimization_history = Table(
        history_table_name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("app_uniq", String(255), nullable=False),
        Column("app_id", String(50), nullable=False),
        Column("env", String(50), nullable=False),
        Column("old_req_cpu", Float, nullable=False),
        Column("new_req_cpu", Float, nullable=False),
        Column(
            "optimization_date",
            DateTime(timezone=True),
            default=utcnow,
            server_default=func.now(),
        ),
        Column("status", String(50), nullable=False, default="pending"),
        Column("pr_url", Text),
        Column("notes", Text),
        Column(
            "updated_at",
            DateTime(timezone=True),
            default=utcnow,
            onupdate=utcnow,
            server_default=func.now(),
        ),
    )

    return Tables(metadata, resource_utilization, optimization_history)


# Columns an insert may supply; ids and timestamps are server-assigned
# unless a restore carries them over.
RESOURCE_COLUMNS = (
    "app_uniq", "project", "pr_url", "pr_status", "app_name", "app_id", "env",
    "tier", "max_cpu", "avg_cpu", "req_cpu", "new_req_cpu", "max_cpu_utilz_percent",
)
HISTORY_COLUMNS = (
    "app_uniq", "app_id", "env", "old_req_cpu", "new_req_cpu", "status", "pr_url", "notes",
)
