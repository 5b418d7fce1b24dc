# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Tests for core Pydantic data models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rightsizer.data.models import (
    DumpSnapshot,
    OptimizationCreate,
    OptimizationHistoryRecord,
    OptimizationStatus,
    ResourceUtilizationRecord,
)
from rightsizer.data.sample import SAMPLE_RECORDS


class TestOptimizationStatus:
    def test_values(self):
        assert [s.value for s in OptimizationStatus] == [
            "pending", "in_progress", "completed", "failed",
        ]

    def test_colors(self):
        assert OptimizationStatus.completed.color == "green"
        assert OptimizationStatus.failed.color == "red"


class TestOptimizationModels:
    def test_status_defaults_to_pending(self):
        body = OptimizationCreate(
            app_uniq="a-uat", app_id="AP1", env="uat", old_req_cpu=500, new_req_cpu=100
        )
        assert body.status is OptimizationStatus.pending

    def test_missing_required_field(self):
        with pytest.raises(ValidationError):
            OptimizationCreate(app_uniq="a-uat", env="uat", old_req_cpu=500, new_req_cpu=100)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            OptimizationCreate(
                app_uniq="a-uat", app_id="AP1", env="uat",
                old_req_cpu=500, new_req_cpu=100, status="done",
            )

    def test_cpu_reduction(self):
        rec = OptimizationHistoryRecord(
            app_uniq="a-uat", app_id="AP1", env="uat", old_req_cpu=512, new_req_cpu=100
        )
        assert rec.cpu_reduction == 412.0
        assert rec.model_dump()["cpu_reduction"] == 412.0


class TestResourceUtilizationRecord:
    def test_optional_usage_fields(self):
        rec = ResourceUtilizationRecord(app_uniq="a", app_id="AP1", env="dit", req_cpu=100)
        assert rec.max_cpu is None
        assert rec.max_cpu_utilz_percent is None

    def test_negative_request_rejected(self):
        with pytest.raises(ValidationError):
            ResourceUtilizationRecord(app_uniq="a", app_id="AP1", env="dit", req_cpu=-1)

    def test_sample_records_are_valid(self):
        for raw in SAMPLE_RECORDS:
            ResourceUtilizationRecord.model_validate(raw)


class TestDumpSnapshot:
    def test_json_round_trip_keeps_datetimes_parseable(self):
        snap = DumpSnapshot(
            resource_utilization=[{"app_uniq": "a", "created_at": datetime(2026, 1, 2, 3, 4, 5)}],
            optimization_history=[],
            timestamp=datetime(2026, 1, 2, 3, 5, tzinfo=timezone.utc),
        )
        loaded = DumpSnapshot.model_validate_json(snap.model_dump_json())
        row = loaded.resource_utilization[0]
        assert row["created_at"] == "2026-01-02T03:04:05"
        assert isinstance(loaded.timestamp, datetime)

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"owner": "ops"},
            {"resource_utilization": [], "optimization_history": []},
        ],
    )
    def test_requires_tables_and_timestamp(self, raw):
        with pytest.raises(ValidationError):
            DumpSnapshot.model_validate(raw)
