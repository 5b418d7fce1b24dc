# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Point-in-time JSON snapshots of both tables.

Dumps are written to ``<dump_dir>/resource-dump-<timestamp>.json``.  A
snapshot is never modified after it is written.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from rightsizer.data.models import (
    DumpInfo,
    DumpMetadata,
    DumpSnapshot,
    OptimizationHistoryRecord,
    ResourceUtilizationRecord,
)
from rightsizer.errors import NotFoundError, RecordValidationError
from rightsizer.store.service import ResourceService

logger = logging.getLogger(__name__)

DUMP_PREFIX = "resource-dump-"
DUMP_SUFFIX = ".json"


class DumpManager:
    """Create, list and restore snapshots for a :class:`ResourceService`.

    Listing only touches the dump directory, so *service* may be None
    when nothing else is needed.
    """

    def __init__(self, service: ResourceService | None, dump_dir: str | Path) -> None:
        self.service = service
        self.dump_dir = Path(dump_dir)

    def _ensure_dir(self) -> Path:
        self.dump_dir.mkdir(parents=True, exist_ok=True)
        return self.dump_dir

    def _new_path(self, now: datetime) -> Path:
        stamp = now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        path = self.dump_dir / f"{DUMP_PREFIX}{stamp}{DUMP_SUFFIX}"
        counter = 1
        while path.exists():
            path = self.dump_dir / f"{DUMP_PREFIX}{stamp}-{counter}{DUMP_SUFFIX}"
            counter += 1
        return path

    def create_dump(self) -> str:
        """Write a snapshot of both tables and return its file name."""
        self._ensure_dir()
        resources, history = self.service.export_rows()
        now = datetime.now(timezone.utc)

        snapshot = DumpSnapshot(
            resource_utilization=resources,
            optimization_history=history,
            timestamp=now,
            metadata=DumpMetadata(
                total_apps=len(resources),
                total_optimizations=len(history),
                environments=list(dict.fromkeys(r.get("env") for r in resources)),
                projects=list(dict.fromkeys(r.get("project") for r in resources)),
            ),
        )

        path = self._new_path(now)
        path.write_text(snapshot.model_dump_json(indent=2))
        logger.info(
            "Wrote dump %s (%d rows, %d history records)",
            path.name, len(resources), len(history),
        )
        return path.name

    def list_dumps(self) -> list[DumpInfo]:
        """Snapshot files on disk, newest first."""
        if not self.dump_dir.exists():
            return []
        infos = []
        for path in self.dump_dir.glob(f"{DUMP_PREFIX}*{DUMP_SUFFIX}"):
            stat = path.stat()
            infos.append(
                DumpInfo(
                    filename=path.name,
                    path=str(path),
                    size=stat.st_size,
                    created=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return sorted(infos, key=lambda d: (d.created, d.filename), reverse=True)

    def resolve(self, filename: str) -> Path:
        """Map a dump name to its path, rejecting anything outside dump_dir."""
        if (
            not filename
            or Path(filename).name != filename
            or not filename.startswith(DUMP_PREFIX)
            or not filename.endswith(DUMP_SUFFIX)
        ):
            raise NotFoundError(f"Dump file not found: {filename}")
        path = self.dump_dir / filename
        if not path.is_file():
            raise NotFoundError(f"Dump file not found: {filename}")
        return path

    def load_dump(self, filename: str) -> DumpSnapshot:
        """Parse *filename*; anything that is not a snapshot is rejected."""
        path = self.resolve(filename)
        try:
            return DumpSnapshot.model_validate_json(path.read_text())
        except ValidationError as exc:
            raise RecordValidationError(f"Not a valid dump file: {filename}") from exc

    def restore(self, filename: str) -> tuple[int, int]:
        """Replace both tables with the contents of *filename*.

        The file is fully parsed before anything is deleted, and the delete
        and re-insert run in one transaction; on failure the previous data
        is left untouched and the store error propagates.
        Returns ``(resource_rows, history_rows)`` restored.
        """
        snapshot = self.load_dump(filename)
        try:
            resources = [
                ResourceUtilizationRecord.model_validate(row)
                for row in snapshot.resource_utilization
            ]
            history = [
                OptimizationHistoryRecord.model_validate(row)
                for row in snapshot.optimization_history
            ]
        except ValidationError as exc:
            raise RecordValidationError(f"Not a valid dump file: {filename}") from exc
        counts = self.service.replace_all(resources, history)
        logger.info("Restored %s: %d rows, %d history records", filename, *counts)
        return counts
