# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Sample utilization rows for local development.

The first five rows carry absolute usage figures, the rest only carry the
percent-of-request representation, so a freshly seeded database exercises
both storage variants.
"""

from __future__ import annotations

from typing import Any

_GITHUB = "https://github.com/example-org"

SAMPLE_RECORDS: list[dict[str, Any]] = [
    {
        "app_uniq": "aaoesigcloud-dit", "project": "filiannaccop-api",
        "pr_url": f"{_GITHUB}/filiannaccop-api/pull/12", "pr_status": "Merged",
        "app_name": "aaoesigcloud", "app_id": "AP153454", "env": "dit",
        "max_cpu": 481.24, "avg_cpu": 10.55, "req_cpu": 512, "new_req_cpu": 100,
        "max_cpu_utilz_percent": 93.99,
    },
    {
        "app_uniq": "acctbenasset-uat", "project": "nextgensp-api",
        "pr_url": f"{_GITHUB}/nextgensp-api/pull/3", "pr_status": "Open",
        "app_name": "aaogateway", "app_id": "AP155472", "env": "uat",
        "max_cpu": 281.44, "avg_cpu": 11.07, "req_cpu": 250, "new_req_cpu": 100,
        "max_cpu_utilz_percent": 112.58,
    },
    {
        "app_uniq": "acctbenasset-uat", "project": "faa-retail-api",
        "pr_url": f"{_GITHUB}/faa-retail-api/pull/41", "pr_status": "Merged",
        "app_name": "acctbenasset", "app_id": "AP158019", "env": "uat",
        "max_cpu": 536.47, "avg_cpu": 11.22, "req_cpu": 500, "new_req_cpu": 100,
        "max_cpu_utilz_percent": 107.29,
    },
    {
        "app_uniq": "aaoesigcloud-dit", "project": "filiannaccop-api",
        "pr_url": f"{_GITHUB}/filiannaccop-api/pull/13", "pr_status": "Open",
        "app_name": "aaoesigcloud", "app_id": "AP153455", "env": "dit",
        "max_cpu": 45.67, "avg_cpu": 8.92, "req_cpu": 300, "new_req_cpu": 100,
    },
    {
        "app_uniq": "acctbenasset-uat", "project": "nextgensp-api",
        "pr_url": f"{_GITHUB}/nextgensp-api/pull/4", "pr_status": "Merged",
        "app_name": "aaogateway", "app_id": "AP155473", "env": "uat",
        "max_cpu": 89.34, "avg_cpu": 7.45, "req_cpu": 200, "new_req_cpu": 120,
    },
    {
        "app_uniq": "ledgersync-prod", "project": "ledger-api",
        "pr_status": "Open", "app_name": "ledgersync", "app_id": "AP160001",
        "env": "prod", "req_cpu": 1000, "new_req_cpu": 250,
        "max_cpu_utilz_percent": 18.5, "tier": "gold",
    },
    {
        "app_uniq": "ledgersync-uat", "project": "ledger-api",
        "app_name": "ledgersync", "app_id": "AP160001", "env": "uat",
        "req_cpu": 500, "new_req_cpu": 150, "max_cpu_utilz_percent": 20.0,
    },
    {
        "app_uniq": "notifyhub-prod", "project": "notify-api",
        "app_name": "notifyhub", "app_id": "AP160220", "env": "prod",
        "req_cpu": 500, "new_req_cpu": 500, "max_cpu_utilz_percent": 60.0,
        "tier": "silver",
    },
]
