# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Rightsizer - CPU request vs. usage reporting service."""

__version__ = "0.1.0"

from rightsizer.analysis.overprovisioning import (
    DEFAULT_THRESHOLD,
    cpu_savings_percent,
    is_overprovisioned,
)
from rightsizer.config import Settings, load_config
from rightsizer.data.models import (
    OptimizationHistoryRecord,
    OptimizationStatus,
    RecommendationRecord,
    ResourceUtilizationRecord,
)
from rightsizer.errors import NotFoundError, RecordValidationError, RightsizerError
from rightsizer.store.dumps import DumpManager
from rightsizer.store.service import ResourceService

__all__ = [
    "DEFAULT_THRESHOLD",
    "DumpManager",
    "NotFoundError",
    "OptimizationHistoryRecord",
    "OptimizationStatus",
    "RecommendationRecord",
    "RecordValidationError",
    "ResourceService",
    "ResourceUtilizationRecord",
    "RightsizerError",
    "Settings",
    "cpu_savings_percent",
    "is_overprovisioned",
    "load_config",
]
