# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Exception types raised by the service layer.

Store failures are not wrapped: SQLAlchemy errors propagate unchanged and
the HTTP layer turns them into a 500 response.
"""

from __future__ import annotations


class RightsizerError(Exception):
    """Base class for errors raised by rightsizer itself."""


class NotFoundError(RightsizerError):
    """A referenced record or dump file does not exist."""


class RecordValidationError(RightsizerError):
    """A write was rejected because required fields are missing or invalid."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []
