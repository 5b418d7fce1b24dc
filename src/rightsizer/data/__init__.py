# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Data models and the bundled sample dataset."""

from rightsizer.data.models import (
    DashboardReport,
    DumpInfo,
    DumpMetadata,
    DumpSnapshot,
    EnvironmentStats,
    GroupStats,
    OptimizationCreate,
    OptimizationHistoryRecord,
    OptimizationStatus,
    OptimizationStatusUpdate,
    ProjectStats,
    RecommendationRecord,
    ResourceUtilizationRecord,
    SummaryStats,
)
from rightsizer.data.sample import SAMPLE_RECORDS

__all__ = [
    "DashboardReport",
    "DumpInfo",
    "DumpMetadata",
    "DumpSnapshot",
    "EnvironmentStats",
    "GroupStats",
    "OptimizationCreate",
    "OptimizationHistoryRecord",
    "OptimizationStatus",
    "OptimizationStatusUpdate",
    "ProjectStats",
    "RecommendationRecord",
    "ResourceUtilizationRecord",
    "SAMPLE_RECORDS",
    "SummaryStats",
]
