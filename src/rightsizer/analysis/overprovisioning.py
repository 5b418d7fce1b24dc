# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Over-provisioned workload detection and CPU savings math.

A workload is over-provisioned when its peak CPU usage, in request units,
is strictly below ``threshold`` percent of its CPU request::

    actual_cpu_used < req_cpu * threshold / 100

``actual_cpu_used`` is the stored absolute peak (``max_cpu``) when the
backing table has it, otherwise ``max_cpu_utilz_percent / 100 * req_cpu``.
The comparison itself is done on the stored figure so that equality is
exact: ``max_cpu * 100 < req_cpu * threshold`` for absolute usage and
``max_cpu_utilz_percent < threshold`` (with ``req_cpu > 0``) for percent.

The rule is provided both as a Python predicate (for in-memory records)
and as SQLAlchemy expressions (for queries).  Listing, recommendations
and grouped stats all build on these, so their counts always agree.
"""

from __future__ import annotations

from sqlalchemy import Table, and_, case, func, or_
from sqlalchemy.sql.elements import ColumnElement

from rightsizer.data.models import ResourceUtilizationRecord

DEFAULT_THRESHOLD = 50.0


# ---------------------------------------------------------------------------
# Python side
# ---------------------------------------------------------------------------

def actual_cpu_used(
    req_cpu: float,
    max_cpu: float | None = None,
    utilz_percent: float | None = None,
) -> float | None:
    """Peak usage in request units, or ``None`` when nothing was observed."""
    if max_cpu is not None:
        return float(max_cpu)
    if utilz_percent is not None:
        return utilz_percent / 100.0 * req_cpu
    return None


def utilization_percent(
    req_cpu: float,
    max_cpu: float | None = None,
    utilz_percent: float | None = None,
) -> float | None:
    """Peak usage as a percentage of the request."""
    if utilz_percent is not None:
        return float(utilz_percent)
    if max_cpu is not None and req_cpu > 0:
        return max_cpu * 100.0 / req_cpu
    return None


def usage_source(record: ResourceUtilizationRecord) -> str | None:
    """Which stored figure the usage of *record* comes from."""
    if record.usage_source is not None:
        return record.usage_source
    if record.max_cpu is not None:
        return "absolute"
    if record.max_cpu_utilz_percent is not None:
        return "percent"
    return None


def is_overprovisioned(
    record: ResourceUtilizationRecord,
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    """Return True when *record* uses less than *threshold* % of its request.

    Records without any usage figure are never over-provisioned.
    """
    threshold = float(threshold)
    source = usage_source(record)
    if source == "absolute":
        return record.max_cpu * 100.0 < record.req_cpu * threshold
    if source == "percent":
        return record.req_cpu > 0 and record.max_cpu_utilz_percent < threshold
    return False


def cpu_savings_percent(req_cpu: float, new_req_cpu: float) -> float:
    """Percentage of the current request saved by moving to *new_req_cpu*.

    >>> cpu_savings_percent(512, 100)
    80.47
    """
    if req_cpu <= 0:
        raise ValueError(f"req_cpu must be positive, got {req_cpu}")
    return round((req_cpu - new_req_cpu) / req_cpu * 100, 2)


def normalize_usage(record: ResourceUtilizationRecord) -> ResourceUtilizationRecord:
    """Fill in the usage representation the backing table did not provide.

    Returns a copy with ``max_cpu``, ``max_cpu_utilz_percent`` and
    ``actual_cpu_used`` populated wherever they can be derived.
    """
    used = actual_cpu_used(record.req_cpu, record.max_cpu, record.max_cpu_utilz_percent)
    updates: dict[str, float | str | None] = {
        "actual_cpu_used": used,
        "usage_source": usage_source(record),
    }

    if record.max_cpu is None and used is not None:
        updates["max_cpu"] = used
    if record.max_cpu_utilz_percent is None:
        pct = utilization_percent(record.req_cpu, record.max_cpu)
        if pct is not None:
            updates["max_cpu_utilz_percent"] = round(pct, 2)

    return record.model_copy(update=updates)


# ---------------------------------------------------------------------------
# SQL side
# ---------------------------------------------------------------------------

def actual_cpu_used_expr(table: Table) -> ColumnElement:
    c = table.c
    return func.coalesce(c.max_cpu, c.max_cpu_utilz_percent / 100.0 * c.req_cpu)


def utilization_percent_expr(table: Table) -> ColumnElement:
    c = table.c
    return func.coalesce(
        c.max_cpu_utilz_percent,
        c.max_cpu * 100.0 / func.nullif(c.req_cpu, 0),
    )


def overprovisioned_clause(
    table: Table,
    threshold: float = DEFAULT_THRESHOLD,
) -> ColumnElement:
    """SQL form of :func:`is_overprovisioned`.

    Rows with no usage data never match.
    """
    c = table.c
    threshold = float(threshold)
    return or_(
        and_(c.max_cpu.isnot(None), c.max_cpu * 100.0 < c.req_cpu * threshold),
        and_(
            c.max_cpu.is_(None),
            c.req_cpu > 0,
            c.max_cpu_utilz_percent < threshold,
        ),
    )


def waste_expr(table: Table) -> ColumnElement:
    """Requested minus actually used CPU; larger means more waste."""
    return table.c.req_cpu - actual_cpu_used_expr(table)


def recommendation_clause(
    table: Table,
    threshold: float = DEFAULT_THRESHOLD,
) -> ColumnElement:
    """Over-provisioned rows with a smaller replacement request on file."""
    c = table.c
    return and_(
        overprovisioned_clause(table, threshold),
        c.req_cpu > 0,
        c.new_req_cpu < c.req_cpu,
    )


def savings_ratio_expr(table: Table) -> ColumnElement:
    c = table.c
    return (c.req_cpu - c.new_req_cpu) / c.req_cpu


def overprovisioned_count_expr(
    table: Table,
    threshold: float = DEFAULT_THRESHOLD,
) -> ColumnElement:
    return func.sum(case((overprovisioned_clause(table, threshold), 1), else_=0))


def potential_savings_expr(
    table: Table,
    threshold: float = DEFAULT_THRESHOLD,
) -> ColumnElement:
    c = table.c
    return func.sum(
        case(
            (overprovisioned_clause(table, threshold), c.req_cpu - c.new_req_cpu),
            else_=0,
        )
    )
