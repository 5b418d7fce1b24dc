# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Core Pydantic v2 data models for the rightsizing service.

This module defines the record shapes shared by the store, the API,
the dump files and the terminal reports.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, computed_field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OptimizationStatus(str, Enum):
    """Lifecycle of a manually recorded optimization action."""

    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"

    @property
    def color(self) -> str:
        """Terminal color associated with this status."""
        return {
            OptimizationStatus.pending: "yellow",
            OptimizationStatus.in_progress: "cyan",
            OptimizationStatus.completed: "green",
            OptimizationStatus.failed: "red",
        }[self]


# ---------------------------------------------------------------------------
# Resource utilization
# ---------------------------------------------------------------------------

class ResourceUtilizationRecord(BaseModel):
    """One application + environment row of CPU request and usage figures.

    ``max_cpu`` and ``max_cpu_utilz_percent`` are two representations of
    the same observation; the store fills in whichever one the backing
    table does not provide, and sets ``actual_cpu_used``.
    """

    model_config = {"from_attributes": True, "populate_by_name": True}

    id: Optional[int] = Field(default=None, description="Row identity")
    app_uniq: str = Field(..., description="Composite human-readable key")
    app_id: str = Field(..., description="Application identifier")
    app_name: Optional[str] = Field(default=None)
    project: Optional[str] = Field(default=None)
    env: str = Field(..., description="Free-text environment label (dit, uat, prod)")
    tier: Optional[str] = Field(default=None)

    req_cpu: float = Field(..., ge=0, description="Requested CPU")
    new_req_cpu: Optional[float] = Field(
        default=None, ge=0, description="Recommended replacement request"
    )

    max_cpu: Optional[float] = Field(default=None, ge=0, description="Peak absolute usage")
    avg_cpu: Optional[float] = Field(default=None, ge=0, description="Average absolute usage")
    max_cpu_utilz_percent: Optional[float] = Field(
        default=None, ge=0, description="Peak usage as a percentage of the request"
    )
    actual_cpu_used: Optional[float] = Field(
        default=None, description="Peak usage in request units, derived when not stored"
    )
    usage_source: Optional[Literal["absolute", "percent"]] = Field(
        default=None, description="Which stored figure the usage was read from"
    )

    pr_url: Optional[str] = Field(default=None)
    pr_status: Optional[str] = Field(default=None, description="Open, Merged, ...")

    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)


class RecommendationRecord(ResourceUtilizationRecord):
    """A utilization row annotated with its potential CPU savings."""

    cpu_savings_percent: float = Field(
        ..., description="round((req_cpu - new_req_cpu) / req_cpu * 100, 2)"
    )


# ---------------------------------------------------------------------------
# Optimization history
# ---------------------------------------------------------------------------

class OptimizationCreate(BaseModel):
    """Fields accepted when an operator records an optimization action."""

    app_uniq: str
    app_id: str
    env: str
    old_req_cpu: float = Field(..., ge=0)
    new_req_cpu: float = Field(..., ge=0)
    status: OptimizationStatus = Field(default=OptimizationStatus.pending)
    pr_url: Optional[str] = None
    notes: Optional[str] = None


class OptimizationStatusUpdate(BaseModel):
    """Body of a status transition request."""

    status: OptimizationStatus
    pr_url: Optional[str] = None


class OptimizationHistoryRecord(OptimizationCreate):
    """A stored optimization action."""

    model_config = {"from_attributes": True}

    id: Optional[int] = None
    optimization_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cpu_reduction(self) -> float:
        """Absolute CPU request reduction targeted by this action."""
        return round(self.old_req_cpu - self.new_req_cpu, 2)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

class GroupStats(BaseModel):
    """Per-project or per-environment aggregate over utilization rows."""

    total_entries: int = Field(..., ge=0)
    overprovisioned_apps: int = Field(..., ge=0)
    properly_provisioned_apps: int = Field(..., ge=0)
    unique_apps: int = Field(..., ge=0)
    avg_cpu_utilization: Optional[float] = Field(
        default=None, description="Mean peak utilization percent over rows with usage data"
    )
    potential_cpu_savings: float = Field(
        default=0.0, description="Sum of req_cpu - new_req_cpu over over-provisioned rows"
    )


class ProjectStats(GroupStats):
    project: Optional[str]


class EnvironmentStats(GroupStats):
    environment: Optional[str]


class SummaryStats(BaseModel):
    """Cross-cutting counts for the dashboard header."""

    total_apps: int
    total_projects: int
    environments: list[Optional[str]] = Field(default_factory=list)
    projects: list[Optional[str]] = Field(default_factory=list)
    overprovisioned_count: int
    avg_cpu_utilization: float
    total_cpu_savings: float
    threshold: float
    project_breakdown: list[ProjectStats] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Dumps
# ---------------------------------------------------------------------------

class DumpMetadata(BaseModel):
    """Summary computed when a snapshot is written."""

    total_apps: int
    total_optimizations: int
    environments: list[Optional[str]] = Field(default_factory=list)
    projects: list[Optional[str]] = Field(default_factory=list)


class DumpSnapshot(BaseModel):
    """Full point-in-time export of both tables."""

    resource_utilization: list[dict[str, Any]]
    optimization_history: list[dict[str, Any]]
    timestamp: datetime
    metadata: Optional[DumpMetadata] = None


class DumpInfo(BaseModel):
    """A snapshot file on disk."""

    filename: str
    path: str
    size: int
    created: datetime


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class DashboardReport(BaseModel):
    """Everything the terminal dashboard and the chart export render."""

    summary: SummaryStats
    environment_stats: list[EnvironmentStats] = Field(default_factory=list)
    overprovisioned: list[ResourceUtilizationRecord] = Field(default_factory=list)
    recommendations: list[RecommendationRecord] = Field(default_factory=list)
    history: list[OptimizationHistoryRecord] = Field(default_factory=list)
    utilization_percents: list[float] = Field(default_factory=list)
    pr_status_counts: dict[str, int] = Field(default_factory=dict)
    history_status_counts: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
