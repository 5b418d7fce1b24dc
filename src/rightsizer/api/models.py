# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""API response models that are not plain data records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DatabaseInfo(BaseModel):
    """Identity of the configured store."""

    model_config = {"populate_by_name": True}

    schema_: str = Field(..., alias="schema", description="Schema holding the tables")
    table: str = Field(..., description="Utilization table name")


class HealthResponse(BaseModel):
    """Response body returned by ``GET /api/health``."""

    status: str = Field(..., description="Service health status ('OK').")
    timestamp: datetime
    version: str
    database: DatabaseInfo


class DumpCreatedResponse(BaseModel):
    """Response body returned by ``POST /api/dump``."""

    message: str
    file: str


class RestoreResponse(BaseModel):
    """Response body returned by ``POST /api/restore/{file}``."""

    message: str
    file: str
    resource_utilization: int = Field(..., ge=0, description="Rows restored")
    optimization_history: int = Field(..., ge=0, description="History records restored")


class ErrorResponse(BaseModel):
    """Uniform error body."""

    error: str
