# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Collects the dashboard view from the query façade."""

from __future__ import annotations

from collections import Counter

from rightsizer.data.models import DashboardReport
from rightsizer.store.service import ResourceService


def build_dashboard(
    service: ResourceService,
    threshold: float | None = None,
) -> DashboardReport:
    """Run the report queries and group rows into chart-ready counts."""
    records = service.list_all()
    history = service.list_optimization_history()

    pr_status = Counter(r.pr_status or "Unknown" for r in records)
    history_status = Counter(h.status.value for h in history)

    return DashboardReport(
        summary=service.summary(threshold),
        environment_stats=service.environment_stats(threshold),
        overprovisioned=service.list_overprovisioned(threshold),
        recommendations=service.optimization_recommendations(threshold),
        history=history,
        utilization_percents=[
            r.max_cpu_utilz_percent for r in records if r.max_cpu_utilz_percent is not None
        ],
        pr_status_counts=dict(pr_status.most_common()),
        history_status_counts=dict(history_status.most_common()),
    )
