# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Query and aggregation façade over the utilization and history tables.

Each public method runs one parameterized statement inside its own
connection checkout, so no state is shared between calls beyond the
engine's pool.  Store errors propagate unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError
from sqlalchemy import ColumnElement, delete, distinct, func, insert, select, update
from sqlalchemy.engine import Engine, RowMapping

from rightsizer.analysis.overprovisioning import (
    DEFAULT_THRESHOLD,
    cpu_savings_percent,
    is_overprovisioned,
    normalize_usage,
    overprovisioned_clause,
    overprovisioned_count_expr,
    potential_savings_expr,
    recommendation_clause,
    savings_ratio_expr,
    utilization_percent_expr,
    waste_expr,
)
from rightsizer.config import Settings
from rightsizer.data.models import (
    EnvironmentStats,
    OptimizationCreate,
    OptimizationHistoryRecord,
    OptimizationStatus,
    ProjectStats,
    RecommendationRecord,
    ResourceUtilizationRecord,
    SummaryStats,
)
from rightsizer.data.sample import SAMPLE_RECORDS
from rightsizer.errors import NotFoundError, RecordValidationError
from rightsizer.store.engine import create_db_engine
from rightsizer.store.tables import (
    HISTORY_COLUMNS,
    RESOURCE_COLUMNS,
    Tables,
    build_tables,
    utcnow,
)

logger = logging.getLogger(__name__)


def _validation_error(exc: ValidationError) -> RecordValidationError:
    missing = [
        ".".join(str(p) for p in err["loc"])
        for err in exc.errors()
        if err["type"] == "missing"
    ]
    if missing:
        return RecordValidationError(
            f"Missing required fields: {', '.join(missing)}", missing
        )
    invalid = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
    return RecordValidationError(f"Invalid fields: {', '.join(invalid)}", invalid)


def _split_key(groups: list[dict[str, Any]]) -> list[tuple[Any, dict[str, Any]]]:
    return [(g["key"], {k: v for k, v in g.items() if k != "key"}) for g in groups]


class ResourceService:
    """Data-access façade: one method per report shape."""

    def __init__(
        self,
        engine: Engine,
        tables: Tables | None = None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.engine = engine
        self.tables = tables or build_tables()
        self.threshold = threshold

    @classmethod
    def from_settings(cls, settings: Settings, **engine_overrides: Any) -> ResourceService:
        tables = build_tables(
            settings.db_table,
            settings.db_history_table,
            settings.db_schema,
        )
        engine = create_db_engine(settings, **engine_overrides)
        return cls(engine, tables, threshold=settings.overprovision_threshold)

    @property
    def _ru(self):
        return self.tables.resource_utilization

    @property
    def _hist(self):
        return self.tables.optimization_history

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create both tables if they do not exist yet."""
        self.tables.metadata.create_all(self.engine, checkfirst=True)
        logger.info("Tables ready: %s, %s", self._ru.fullname, self._hist.fullname)

    def seed_sample_data(self) -> int:
        """Insert the bundled sample rows when the table is empty.

        Returns the number of rows inserted (0 when data already exists).
        """
        if self.count_resources() > 0:
            logger.info("Sample data already exists, skipping")
            return 0
        for raw in SAMPLE_RECORDS:
            self.insert_resource_record(raw)
        logger.info("Inserted %d sample rows", len(SAMPLE_RECORDS))
        return len(SAMPLE_RECORDS)

    def dispose(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Resource utilization reads
    # ------------------------------------------------------------------

    def _fetch_records(self, stmt) -> list[ResourceUtilizationRecord]:
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: RowMapping | Mapping[str, Any]) -> ResourceUtilizationRecord:
        return normalize_usage(ResourceUtilizationRecord.model_validate(dict(row)))

    def count_resources(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(self._ru)).scalar_one()

    def list_all(self) -> list[ResourceUtilizationRecord]:
        return self._fetch_records(select(self._ru).order_by(self._ru.c.id))

    def list_by_env(self, env: str) -> list[ResourceUtilizationRecord]:
        t = self._ru
        return self._fetch_records(select(t).where(t.c.env == env).order_by(t.c.id))

    def list_by_project(self, project: str) -> list[ResourceUtilizationRecord]:
        t = self._ru
        return self._fetch_records(select(t).where(t.c.project == project).order_by(t.c.id))

    def list_by_app_id(self, app_id: str) -> list[ResourceUtilizationRecord]:
        t = self._ru
        return self._fetch_records(select(t).where(t.c.app_id == app_id).order_by(t.c.id))

    def list_overprovisioned(
        self, threshold: float | None = None
    ) -> list[ResourceUtilizationRecord]:
        """Rows below *threshold* % utilization, largest waste first."""
        t = self._ru
        thr = self.threshold if threshold is None else threshold
        stmt = (
            select(t)
            .where(overprovisioned_clause(t, thr))
            .order_by(waste_expr(t).desc(), t.c.id)
        )
        return self._fetch_records(stmt)

    def optimization_recommendations(
        self, threshold: float | None = None
    ) -> list[RecommendationRecord]:
        """Over-provisioned rows with a smaller replacement request, best savings first."""
        t = self._ru
        thr = self.threshold if threshold is None else threshold
        stmt = (
            select(t)
            .where(recommendation_clause(t, thr))
            .order_by(savings_ratio_expr(t).desc(), t.c.id)
        )
        return [
            RecommendationRecord(
                **record.model_dump(),
                cpu_savings_percent=cpu_savings_percent(record.req_cpu, record.new_req_cpu),
            )
            for record in self._fetch_records(stmt)
        ]

    # ------------------------------------------------------------------
    # Grouped statistics
    # ------------------------------------------------------------------

    def _group_stats(
        self,
        key: ColumnElement,
        threshold: float | None,
        where: ColumnElement | None = None,
    ) -> list[dict[str, Any]]:
        t = self._ru
        thr = self.threshold if threshold is None else threshold
        stmt = select(
            key.label("key"),
            func.count().label("total_entries"),
            overprovisioned_count_expr(t, thr).label("overprovisioned_apps"),
            func.count(distinct(t.c.app_id)).label("unique_apps"),
            func.avg(utilization_percent_expr(t)).label("avg_cpu_utilization"),
            potential_savings_expr(t, thr).label("potential_cpu_savings"),
        )
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.group_by(key).order_by(key)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        groups = []
        for row in rows:
            total = int(row["total_entries"])
            over = int(row["overprovisioned_apps"] or 0)
            avg = row["avg_cpu_utilization"]
            groups.append(
                {
                    "key": row["key"],
                    "total_entries": total,
                    "overprovisioned_apps": over,
                    "properly_provisioned_apps": total - over,
                    "unique_apps": int(row["unique_apps"]),
                    "avg_cpu_utilization": round(float(avg), 2) if avg is not None else None,
                    "potential_cpu_savings": round(float(row["potential_cpu_savings"] or 0), 2),
                }
            )
        return groups

    def project_stats(self, threshold: float | None = None) -> list[ProjectStats]:
        """Aggregates per raw ``project`` value; no case folding."""
        return [
            ProjectStats(project=key, **g)
            for key, g in _split_key(self._group_stats(self._ru.c.project, threshold))
        ]

    def environment_stats(self, threshold: float | None = None) -> list[EnvironmentStats]:
        """Aggregates per raw ``env`` value; no case folding."""
        return [
            EnvironmentStats(environment=key, **g)
            for key, g in _split_key(self._group_stats(self._ru.c.env, threshold))
        ]

    def project_stats_for(self, project: str, threshold: float | None = None) -> ProjectStats:
        groups = self._group_stats(self._ru.c.project, threshold, self._ru.c.project == project)
        if not groups:
            raise NotFoundError(f"Project not found: {project}")
        [(key, g)] = _split_key(groups[:1])
        return ProjectStats(project=key, **g)

    def summary(self, threshold: float | None = None) -> SummaryStats:
        """Dashboard header numbers, computed from the full row set."""
        thr = self.threshold if threshold is None else threshold
        records = self.list_all()
        projects = self.project_stats(thr)
        envs = self.environment_stats(thr)

        over = [r for r in records if is_overprovisioned(r, thr)]
        with self.engine.connect() as conn:
            avg = conn.execute(
                select(func.avg(utilization_percent_expr(self._ru)))
            ).scalar_one()
        savings = sum(r.req_cpu - r.new_req_cpu for r in over if r.new_req_cpu is not None)

        return SummaryStats(
            total_apps=len(records),
            total_projects=len(projects),
            environments=[e.environment for e in envs],
            projects=[p.project for p in projects],
            overprovisioned_count=len(over),
            avg_cpu_utilization=round(float(avg), 2) if avg is not None else 0.0,
            total_cpu_savings=round(savings, 2),
            threshold=thr,
            project_breakdown=projects,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _resource_values(
        self, record: ResourceUtilizationRecord, keep_timestamps: bool = False
    ) -> dict[str, Any]:
        values = {col: getattr(record, col) for col in RESOURCE_COLUMNS}
        if keep_timestamps:
            now = utcnow()
            values["created_at"] = record.created_at or now
            values["updated_at"] = record.updated_at or values["created_at"]
        return values

    def _history_values(
        self, record: OptimizationCreate, keep_timestamps: bool = False
    ) -> dict[str, Any]:
        values = record.model_dump(mode="json", include=set(HISTORY_COLUMNS))
        if keep_timestamps and isinstance(record, OptimizationHistoryRecord):
            now = utcnow()
            values["optimization_date"] = record.optimization_date or now
            values["updated_at"] = record.updated_at or values["optimization_date"]
        return values

    def insert_resource_record(
        self, data: ResourceUtilizationRecord | Mapping[str, Any]
    ) -> ResourceUtilizationRecord:
        if not isinstance(data, ResourceUtilizationRecord):
            try:
                data = ResourceUtilizationRecord.model_validate(data)
            except ValidationError as exc:
                raise _validation_error(exc) from exc

        t = self._ru
        with self.engine.begin() as conn:
            result = conn.execute(insert(t).values(**self._resource_values(data)))
            new_id = result.inserted_primary_key[0]
            row = conn.execute(select(t).where(t.c.id == new_id)).mappings().one()
        return self._to_record(row)

    def list_optimization_history(self) -> list[OptimizationHistoryRecord]:
        h = self._hist
        stmt = select(h).order_by(h.c.optimization_date.desc(), h.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [OptimizationHistoryRecord.model_validate(dict(row)) for row in rows]

    def get_optimization_record(self, record_id: int) -> OptimizationHistoryRecord:
        h = self._hist
        with self.engine.connect() as conn:
            row = conn.execute(select(h).where(h.c.id == record_id)).mappings().first()
        if row is None:
            raise NotFoundError(f"Optimization record not found: {record_id}")
        return OptimizationHistoryRecord.model_validate(dict(row))

    def insert_optimization_record(
        self, data: OptimizationCreate | Mapping[str, Any]
    ) -> OptimizationHistoryRecord:
        """Record an optimization action; ``status`` defaults to ``pending``.

        Raises :class:`RecordValidationError` naming any missing required
        field.  Re-submitting the same data creates another row.
        """
        if not isinstance(data, OptimizationCreate):
            try:
                data = OptimizationCreate.model_validate(data)
            except ValidationError as exc:
                raise _validation_error(exc) from exc

        h = self._hist
        with self.engine.begin() as conn:
            result = conn.execute(insert(h).values(**self._history_values(data)))
            new_id = result.inserted_primary_key[0]
            row = conn.execute(select(h).where(h.c.id == new_id)).mappings().one()

        logger.info("Recorded optimization %s for %s/%s", new_id, data.app_uniq, data.env)
        return OptimizationHistoryRecord.model_validate(dict(row))

    def update_optimization_status(
        self,
        record_id: int,
        status: OptimizationStatus | str,
        pr_url: str | None = None,
    ) -> OptimizationHistoryRecord:
        """Move a history record to *status*, optionally setting its PR URL.

        Only ``status``, ``pr_url`` (when given) and ``updated_at`` change.
        """
        try:
            status = OptimizationStatus(status)
        except ValueError as exc:
            raise RecordValidationError(f"Invalid status: {status}", ["status"]) from exc

        h = self._hist
        values: dict[str, Any] = {"status": status.value, "updated_at": utcnow()}
        if pr_url is not None:
            values["pr_url"] = pr_url

        with self.engine.begin() as conn:
            result = conn.execute(update(h).where(h.c.id == record_id).values(**values))
            if result.rowcount == 0:
                raise NotFoundError(f"Optimization record not found: {record_id}")
            row = conn.execute(select(h).where(h.c.id == record_id)).mappings().one()

        logger.info("Optimization %s moved to %s", record_id, status.value)
        return OptimizationHistoryRecord.model_validate(dict(row))

    # ------------------------------------------------------------------
    # Bulk export / replace (used by dumps)
    # ------------------------------------------------------------------

    def export_rows(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Raw rows of both tables, read inside one transaction."""
        t, h = self._ru, self._hist
        with self.engine.begin() as conn:
            resources = conn.execute(select(t).order_by(t.c.id)).mappings().all()
            history = conn.execute(select(h).order_by(h.c.id)).mappings().all()
        return [dict(r) for r in resources], [dict(r) for r in history]

    def replace_all(
        self,
        resources: Sequence[ResourceUtilizationRecord],
        history: Sequence[OptimizationHistoryRecord],
    ) -> tuple[int, int]:
        """Swap the contents of both tables in a single transaction.

        Any failure rolls the whole operation back, so readers never see
        a half-restored dataset.  Ids are regenerated; timestamps are kept.
        """
        t, h = self._ru, self._hist
        with self.engine.begin() as conn:
            conn.execute(delete(h))
            conn.execute(delete(t))
            if resources:
                conn.execute(
                    insert(t),
                    [self._resource_values(r, keep_timestamps=True) for r in resources],
                )
            if history:
                conn.execute(
                    insert(h),
                    [self._history_values(r, keep_timestamps=True) for r in history],
                )
        return len(resources), len(history)
