# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Tests for the over-provisioning rule and savings math."""

from __future__ import annotations

import pytest

from rightsizer.analysis.overprovisioning import (
    actual_cpu_used,
    cpu_savings_percent,
    is_overprovisioned,
    normalize_usage,
    utilization_percent,
)
from rightsizer.data.models import ResourceUtilizationRecord


def _record(**overrides) -> ResourceUtilizationRecord:
    defaults = {
        "app_uniq": "app-uat",
        "app_id": "AP1",
        "env": "uat",
        "req_cpu": 500.0,
        "new_req_cpu": 150.0,
    }
    defaults.update(overrides)
    return ResourceUtilizationRecord(**defaults)


class TestActualCpuUsed:
    def test_prefers_absolute_usage(self):
        assert actual_cpu_used(500, max_cpu=120, utilz_percent=90) == 120.0

    def test_derived_from_percent(self):
        assert actual_cpu_used(500, utilz_percent=20) == 100.0

    def test_unknown(self):
        assert actual_cpu_used(500) is None

    def test_utilization_percent_from_absolute(self):
        assert utilization_percent(400, max_cpu=100) == 25.0

    def test_utilization_percent_zero_request(self):
        assert utilization_percent(0, max_cpu=100) is None


class TestIsOverprovisioned:
    def test_percent_below_threshold(self):
        assert is_overprovisioned(_record(max_cpu_utilz_percent=20)) is True

    def test_percent_above_threshold(self):
        assert is_overprovisioned(_record(max_cpu_utilz_percent=60)) is False

    def test_boundary_is_excluded(self):
        # 250 == 500 * 50 / 100, the comparison is strict
        assert is_overprovisioned(_record(max_cpu=250)) is False
        assert is_overprovisioned(_record(max_cpu_utilz_percent=50)) is False

    @pytest.mark.parametrize(
        "req_cpu, threshold",
        [(3, 30), (7, 70), (10, 10), (3, 33), (9, 90), (4999, 70)],
    )
    def test_boundary_excluded_at_any_threshold(self, req_cpu, threshold):
        by_percent = _record(req_cpu=req_cpu, max_cpu_utilz_percent=threshold)
        assert is_overprovisioned(by_percent, threshold) is False
        assert is_overprovisioned(normalize_usage(by_percent), threshold) is False
        by_absolute = _record(req_cpu=req_cpu * 100, max_cpu=req_cpu * threshold)
        assert is_overprovisioned(by_absolute, threshold) is False

    def test_just_below_boundary(self):
        assert is_overprovisioned(_record(req_cpu=3, max_cpu_utilz_percent=29.99), 30) is True

    def test_percent_with_zero_request(self):
        assert is_overprovisioned(_record(req_cpu=0, max_cpu_utilz_percent=10)) is False

    def test_custom_threshold(self):
        rec = _record(max_cpu_utilz_percent=60)
        assert is_overprovisioned(rec, threshold=80) is True
        assert is_overprovisioned(rec, threshold=60) is False

    def test_zero_threshold_never_matches(self):
        assert is_overprovisioned(_record(max_cpu=0), threshold=0) is False

    def test_no_usage_data(self):
        assert is_overprovisioned(_record(), threshold=100) is False


class TestCpuSavingsPercent:
    def test_rounds_to_two_decimals(self):
        assert cpu_savings_percent(512, 100) == 80.47

    def test_scenario_value(self):
        assert cpu_savings_percent(500, 150) == 70.0

    def test_negative_when_request_grows(self):
        assert cpu_savings_percent(100, 150) == -50.0

    def test_zero_request_rejected(self):
        with pytest.raises(ValueError, match="req_cpu must be positive"):
            cpu_savings_percent(0, 0)


class TestNormalizeUsage:
    def test_fills_absolute_from_percent(self):
        rec = normalize_usage(_record(max_cpu_utilz_percent=20))
        assert rec.max_cpu == 100.0
        assert rec.actual_cpu_used == 100.0
        assert rec.max_cpu_utilz_percent == 20

    def test_fills_percent_from_absolute(self):
        rec = normalize_usage(_record(req_cpu=512, max_cpu=100))
        assert rec.max_cpu_utilz_percent == 19.53
        assert rec.actual_cpu_used == 100.0

    def test_leaves_unknown_usage_empty(self):
        rec = normalize_usage(_record())
        assert rec.max_cpu is None
        assert rec.max_cpu_utilz_percent is None
        assert rec.actual_cpu_used is None

    def test_records_usage_source(self):
        assert normalize_usage(_record(max_cpu_utilz_percent=20)).usage_source == "percent"
        assert normalize_usage(_record(max_cpu=100)).usage_source == "absolute"
        assert normalize_usage(_record()).usage_source is None

    def test_does_not_change_classification(self):
        raw = _record(req_cpu=300, max_cpu_utilz_percent=49.99)
        assert is_overprovisioned(raw) == is_overprovisioned(normalize_usage(raw))
