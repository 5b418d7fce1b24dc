# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Over-provisioning rule and savings math."""

from rightsizer.analysis.overprovisioning import (
    DEFAULT_THRESHOLD,
    actual_cpu_used,
    cpu_savings_percent,
    is_overprovisioned,
    normalize_usage,
    overprovisioned_clause,
    utilization_percent,
)

__all__ = [
    "DEFAULT_THRESHOLD",
    "actual_cpu_used",
    "cpu_savings_percent",
    "is_overprovisioned",
    "normalize_usage",
    "overprovisioned_clause",
    "utilization_percent",
]
