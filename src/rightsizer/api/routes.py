# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""FastAPI router with the REST endpoints of the rightsizing API.

Handlers are plain ``def`` functions: FastAPI runs them in its threadpool
and each one checks a connection out of the engine pool for the duration
of a single query.  Errors are not caught here; the handlers registered
in :mod:`rightsizer.api.server` turn them into ``{"error": ...}`` bodies.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

import rightsizer
from rightsizer.api.models import (
    DatabaseInfo,
    DumpCreatedResponse,
    ErrorResponse,
    HealthResponse,
    RestoreResponse,
)
from rightsizer.config import Settings
from rightsizer.data.models import (
    DumpInfo,
    EnvironmentStats,
    OptimizationCreate,
    OptimizationHistoryRecord,
    OptimizationStatusUpdate,
    ProjectStats,
    RecommendationRecord,
    ResourceUtilizationRecord,
    SummaryStats,
)
from rightsizer.store.dumps import DumpManager
from rightsizer.store.service import ResourceService

router = APIRouter(
    prefix="/api",
    tags=["rightsizer"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

ThresholdParam = Query(
    default=None, ge=0, le=100,
    description="Utilization percent below which a row counts as over-provisioned.",
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_service(request: Request) -> ResourceService:
    """Return the service attached to the app; overridable in tests."""
    return request.app.state.service


def get_dumps(request: Request) -> DumpManager:
    return request.app.state.dumps


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Liveness plus the configured store identity."""
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        version=rightsizer.__version__,
        database=DatabaseInfo(schema=settings.schema_label, table=settings.db_table),
    )


# ---------------------------------------------------------------------------
# Resource utilization
# ---------------------------------------------------------------------------

@router.get("/resource-utilization", response_model=list[ResourceUtilizationRecord])
def resource_utilization(service: ResourceService = Depends(get_service)):
    return service.list_all()


@router.get("/resource-utilization/env/{env}", response_model=list[ResourceUtilizationRecord])
def resource_utilization_by_env(env: str, service: ResourceService = Depends(get_service)):
    return service.list_by_env(env)


@router.get(
    "/resource-utilization/project/{project}",
    response_model=list[ResourceUtilizationRecord],
)
def resource_utilization_by_project(
    project: str, service: ResourceService = Depends(get_service)
):
    return service.list_by_project(project)


@router.get("/resource-utilization/app/{app_id}", response_model=list[ResourceUtilizationRecord])
def resource_utilization_by_app(app_id: str, service: ResourceService = Depends(get_service)):
    return service.list_by_app_id(app_id)


@router.get("/overprovisioned-apps", response_model=list[ResourceUtilizationRecord])
def overprovisioned_apps(
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    """Rows using less than *threshold* % of their request, largest waste first."""
    return service.list_overprovisioned(threshold)


@router.get("/optimization-recommendations", response_model=list[RecommendationRecord])
def optimization_recommendations(
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    return service.optimization_recommendations(threshold)


# ---------------------------------------------------------------------------
# Project / environment statistics
# ---------------------------------------------------------------------------

@router.get("/projects/stats", response_model=list[ProjectStats])
def projects_stats(
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    return service.project_stats(threshold)


@router.get("/environments/stats", response_model=list[EnvironmentStats])
def environments_stats(
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    return service.environment_stats(threshold)


@router.get("/projects/{project}", response_model=list[ResourceUtilizationRecord])
def project_records(project: str, service: ResourceService = Depends(get_service)):
    return service.list_by_project(project)


@router.get("/projects/{project}/stats", response_model=ProjectStats)
def project_stats(
    project: str,
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    return service.project_stats_for(project, threshold)


@router.get("/stats/summary", response_model=SummaryStats)
def stats_summary(
    threshold: Optional[float] = ThresholdParam,
    service: ResourceService = Depends(get_service),
):
    """Counts and totals for the dashboard header."""
    return service.summary(threshold)


# ---------------------------------------------------------------------------
# Optimization history
# ---------------------------------------------------------------------------

@router.get("/optimization-history", response_model=list[OptimizationHistoryRecord])
def optimization_history(service: ResourceService = Depends(get_service)):
    return service.list_optimization_history()


@router.get("/optimization-history/{record_id}", response_model=OptimizationHistoryRecord)
def optimization_record(record_id: int, service: ResourceService = Depends(get_service)):
    return service.get_optimization_record(record_id)


@router.post(
    "/optimization-history",
    response_model=OptimizationHistoryRecord,
    status_code=201,
)
def create_optimization_record(
    body: OptimizationCreate, service: ResourceService = Depends(get_service)
):
    """Record an optimization action.  Posting the same body twice creates two rows."""
    return service.insert_optimization_record(body)


@router.put("/optimization-history/{record_id}", response_model=OptimizationHistoryRecord)
def update_optimization_record(
    record_id: int,
    body: OptimizationStatusUpdate,
    service: ResourceService = Depends(get_service),
):
    return service.update_optimization_status(record_id, body.status, body.pr_url)


# ---------------------------------------------------------------------------
# Dumps
# ---------------------------------------------------------------------------

@router.post("/dump", response_model=DumpCreatedResponse)
def create_dump(dumps: DumpManager = Depends(get_dumps)) -> DumpCreatedResponse:
    filename = dumps.create_dump()
    return DumpCreatedResponse(message="Database dump created successfully", file=filename)


@router.get("/dumps", response_model=list[DumpInfo])
def list_dumps(dumps: DumpManager = Depends(get_dumps)):
    return dumps.list_dumps()


@router.post("/restore/{dump_file}", response_model=RestoreResponse)
def restore_dump(dump_file: str, dumps: DumpManager = Depends(get_dumps)) -> RestoreResponse:
    """Replace both tables with the snapshot in *dump_file*."""
    rows, history = dumps.restore(dump_file)
    return RestoreResponse(
        message=f"Database restored from {dump_file}",
        file=dump_file,
        resource_utilization=rows,
        optimization_history=history,
    )
