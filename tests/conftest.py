# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Shared test fixtures for the rightsizer test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rightsizer.api.server import create_app
from rightsizer.config import Settings
from rightsizer.store.dumps import DumpManager
from rightsizer.store.service import ResourceService

# Hand-built rows covering both usage representations and the edge cases
# of the over-provisioning rule at the default 50 % threshold.
FIXTURE_ROWS = [
    # over-provisioned (100 < 250), savings 70.0
    {"app_uniq": "ledger-uat", "app_id": "AP100", "app_name": "ledger", "project": "ledger",
     "env": "uat", "req_cpu": 500, "new_req_cpu": 150, "max_cpu_utilz_percent": 20,
     "pr_status": "Open"},
    # 300 >= 250, properly provisioned
    {"app_uniq": "ledger-prod", "app_id": "AP100", "app_name": "ledger", "project": "ledger",
     "env": "prod", "req_cpu": 500, "new_req_cpu": 200, "max_cpu_utilz_percent": 60,
     "pr_status": "Merged"},
    # absolute usage, over-provisioned (100 < 256), savings 80.47
    {"app_uniq": "payments-dit", "app_id": "AP200", "app_name": "payments",
     "project": "payments", "env": "dit", "req_cpu": 512, "new_req_cpu": 100,
     "max_cpu": 100, "avg_cpu": 12.5, "pr_status": "Open"},
    # exactly at the threshold (200 == 200), not over-provisioned
    {"app_uniq": "payments-uat", "app_id": "AP201", "app_name": "payments",
     "project": "payments", "env": "uat", "req_cpu": 400, "new_req_cpu": 100,
     "max_cpu_utilz_percent": 50},
    # over-provisioned but no smaller request on file; different casing of project
    {"app_uniq": "payments-batch-dit", "app_id": "AP202", "app_name": "payments-batch",
     "project": "Payments", "env": "dit", "req_cpu": 300, "new_req_cpu": 300, "max_cpu": 30},
    # no usage data at all
    {"app_uniq": "payments-prod", "app_id": "AP203", "app_name": "payments",
     "project": "payments", "env": "prod", "req_cpu": 200, "new_req_cpu": 100},
    # busy app
    {"app_uniq": "ledger-dit", "app_id": "AP101", "app_name": "ledger", "project": "ledger",
     "env": "dit", "req_cpu": 1000, "new_req_cpu": 500, "max_cpu": 900},
]

_HISTORY_BODY = {
    "app_uniq": "ledger-uat",
    "app_id": "AP100",
    "env": "uat",
    "old_req_cpu": 500,
    "new_req_cpu": 150,
    "notes": "halve the request",
}


@pytest.fixture()
def fixture_rows() -> list[dict]:
    return [dict(row) for row in FIXTURE_ROWS]


@pytest.fixture()
def history_body() -> dict:
    """A valid optimization-history payload (status omitted)."""
    return dict(_HISTORY_BODY)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file and dump directory."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'rightsizer.db'}",
        db_schema=None,
        db_table="resource_utilization",
        dump_dir=tmp_path / "dumps",
        overprovision_threshold=50.0,
    )


@pytest.fixture()
def service(settings: Settings):
    """An empty service with both tables created."""
    svc = ResourceService.from_settings(settings)
    svc.init_schema()
    yield svc
    svc.dispose()


@pytest.fixture()
def seeded_service(service: ResourceService) -> ResourceService:
    """The service loaded with FIXTURE_ROWS."""
    for row in FIXTURE_ROWS:
        service.insert_resource_record(row)
    return service


@pytest.fixture()
def dump_manager(seeded_service: ResourceService, settings: Settings) -> DumpManager:
    return DumpManager(seeded_service, settings.dump_dir)


@pytest.fixture()
def client(settings: Settings, seeded_service: ResourceService) -> TestClient:
    app = create_app(settings, seeded_service)
    return TestClient(app, raise_server_exceptions=False)
