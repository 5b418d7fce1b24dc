# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Persistence: tables, engine, query façade and dumps."""

from rightsizer.store.dumps import DumpManager
from rightsizer.store.engine import create_db_engine
from rightsizer.store.service import ResourceService
from rightsizer.store.tables import Tables, build_tables

__all__ = [
    "DumpManager",
    "ResourceService",
    "Tables",
    "build_tables",
    "create_db_engine",
]
