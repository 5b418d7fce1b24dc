# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Tests for the FastAPI REST endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import rightsizer
from rightsizer.api.server import create_app


def _uniqs(body) -> list[str]:
    return [r["app_uniq"] for r in body]


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert body["version"] == rightsizer.__version__
        assert body["database"] == {"schema": "public", "table": "resource_utilization"}
        assert "timestamp" in body

    def test_schema_reported(self, settings, seeded_service):
        settings.db_schema = "capacity"
        client = TestClient(create_app(settings, seeded_service))
        assert client.get("/api/health").json()["database"]["schema"] == "capacity"


class TestResourceRoutes:
    def test_list_all(self, client):
        body = client.get("/api/resource-utilization").json()
        assert len(body) == 7
        assert body[0]["app_uniq"] == "ledger-uat"
        assert body[0]["actual_cpu_used"] == 100.0

    def test_by_env(self, client):
        resp = client.get("/api/resource-utilization/env/uat")
        assert _uniqs(resp.json()) == ["ledger-uat", "payments-uat"]

    def test_by_env_no_match(self, client):
        resp = client.get("/api/resource-utilization/env/UAT")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_by_project(self, client):
        resp = client.get("/api/resource-utilization/project/Payments")
        assert _uniqs(resp.json()) == ["payments-batch-dit"]

    def test_by_app_id(self, client):
        resp = client.get("/api/resource-utilization/app/AP100")
        assert _uniqs(resp.json()) == ["ledger-uat", "ledger-prod"]

    def test_project_records(self, client):
        assert len(client.get("/api/projects/ledger").json()) == 3


class TestOverprovisionedRoutes:
    def test_default_threshold(self, client):
        body = client.get("/api/overprovisioned-apps").json()
        assert _uniqs(body) == ["payments-dit", "ledger-uat", "payments-batch-dit"]

    def test_custom_threshold(self, client):
        body = client.get("/api/overprovisioned-apps", params={"threshold": 0}).json()
        assert body == []

    @pytest.mark.parametrize("value", ["150", "-1", "abc"])
    def test_invalid_threshold(self, client, value):
        resp = client.get("/api/overprovisioned-apps", params={"threshold": value})
        assert resp.status_code == 400
        assert "threshold" in resp.json()["error"]

    def test_boundary_at_other_threshold(self, client, seeded_service):
        seeded_service.insert_resource_record(
            {"app_uniq": "edge-dit", "app_id": "AP1", "env": "dit",
             "req_cpu": 3, "new_req_cpu": 1, "max_cpu_utilz_percent": 30}
        )
        body = client.get("/api/overprovisioned-apps", params={"threshold": 30}).json()
        assert "edge-dit" not in _uniqs(body)
        summary = client.get("/api/stats/summary", params={"threshold": 30}).json()
        assert summary["overprovisioned_count"] == len(body)

    def test_recommendations(self, client):
        body = client.get("/api/optimization-recommendations").json()
        assert _uniqs(body) == ["payments-dit", "ledger-uat"]
        assert body[0]["cpu_savings_percent"] == 80.47


class TestStatsRoutes:
    def test_project_stats(self, client):
        body = client.get("/api/projects/stats").json()
        assert [p["project"] for p in body] == ["Payments", "ledger", "payments"]
        for group in body:
            assert (
                group["overprovisioned_apps"] + group["properly_provisioned_apps"]
                == group["total_entries"]
            )

    def test_environment_stats(self, client):
        body = client.get("/api/environments/stats").json()
        dit = next(e for e in body if e["environment"] == "dit")
        assert dit["overprovisioned_apps"] == 2

    def test_single_project_stats(self, client):
        body = client.get("/api/projects/ledger/stats").json()
        assert body["project"] == "ledger"
        assert body["potential_cpu_savings"] == 350.0

    def test_single_project_stats_missing(self, client):
        resp = client.get("/api/projects/nope/stats")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Project not found: nope"}

    def test_summary(self, client):
        body = client.get("/api/stats/summary").json()
        assert body["total_apps"] == 7
        assert body["overprovisioned_count"] == 3
        assert body["total_cpu_savings"] == 762.0


class TestHistoryRoutes:
    def test_create(self, client, history_body):
        resp = client.post("/api/optimization-history", json=history_body)
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "pending"
        assert body["id"] is not None
        assert body["optimization_date"] is not None
        assert body["cpu_reduction"] == 350.0

    def test_create_missing_fields(self, client):
        resp = client.post("/api/optimization-history", json={"app_uniq": "ledger-uat"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error.startswith("Missing required fields")
        assert "app_id" in error

    def test_create_invalid_status(self, client, history_body):
        history_body["status"] = "shipped"
        resp = client.post("/api/optimization-history", json=history_body)
        assert resp.status_code == 400

    def test_list_and_get(self, client, history_body):
        created = client.post("/api/optimization-history", json=history_body).json()
        listed = client.get("/api/optimization-history").json()
        assert [r["id"] for r in listed] == [created["id"]]
        one = client.get(f"/api/optimization-history/{created['id']}").json()
        assert one["notes"] == "halve the request"

    def test_get_missing(self, client):
        resp = client.get("/api/optimization-history/999")
        assert resp.status_code == 404
        assert "error" in resp.json()

    def test_update(self, client, history_body):
        created = client.post("/api/optimization-history", json=history_body).json()
        resp = client.put(
            f"/api/optimization-history/{created['id']}",
            json={"status": "completed", "pr_url": "https://git.example.com/pr/3"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["pr_url"] == "https://git.example.com/pr/3"
        assert body["old_req_cpu"] == created["old_req_cpu"]
        assert body["optimization_date"] == created["optimization_date"]

    def test_update_missing(self, client):
        resp = client.put("/api/optimization-history/999", json={"status": "completed"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Optimization record not found: 999"}

    def test_update_invalid_status(self, client, history_body):
        created = client.post("/api/optimization-history", json=history_body).json()
        resp = client.put(
            f"/api/optimization-history/{created['id']}", json={"status": "shipped"}
        )
        assert resp.status_code == 400


class TestDumpRoutes:
    def test_dump_list_restore(self, client, seeded_service):
        resp = client.post("/api/dump")
        assert resp.status_code == 200
        filename = resp.json()["file"]
        assert resp.json()["message"] == "Database dump created successfully"

        listed = client.get("/api/dumps").json()
        assert [d["filename"] for d in listed] == [filename]

        seeded_service.insert_resource_record(
            {"app_uniq": "extra-dit", "app_id": "AP9", "env": "dit", "req_cpu": 10}
        )
        resp = client.post(f"/api/restore/{filename}")
        assert resp.status_code == 200
        assert resp.json()["message"] == f"Database restored from {filename}"
        assert resp.json()["resource_utilization"] == 7
        assert len(client.get("/api/resource-utilization").json()) == 7

    def test_restore_missing(self, client):
        resp = client.post("/api/restore/resource-dump-nope.json")
        assert resp.status_code == 404
        assert "error" in resp.json()

    def test_restore_rejects_foreign_json(self, client, settings):
        settings.dump_dir.mkdir(parents=True, exist_ok=True)
        (settings.dump_dir / "notes.json").write_text('{"owner": "ops"}')
        (settings.dump_dir / "resource-dump-broken.json").write_text('{"owner": "ops"}')

        assert client.get("/api/dumps").json() == []
        assert client.post("/api/restore/notes.json").status_code == 404
        resp = client.post("/api/restore/resource-dump-broken.json")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Not a valid dump file: resource-dump-broken.json"}
        assert len(client.get("/api/resource-utilization").json()) == 7

    def test_no_dumps(self, client):
        assert client.get("/api/dumps").json() == []


class TestErrors:
    def test_unknown_route(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Route not found"}

    def test_store_failure(self, client, seeded_service):
        seeded_service.tables.optimization_history.drop(seeded_service.engine)
        resp = client.get("/api/optimization-history")
        assert resp.status_code == 500
        assert "optimization_history" in resp.json()["error"]

    def test_unexpected_failure(self, client, seeded_service, monkeypatch):
        def boom():
            raise RuntimeError("boom")

        monkeypatch.setattr(seeded_service, "list_all", boom)
        resp = client.get("/api/resource-utilization")
        assert resp.status_code == 500
        assert resp.json() == {"error": "boom"}
