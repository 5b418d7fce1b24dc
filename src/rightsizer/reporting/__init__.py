# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Terminal dashboard and chart export."""

from rightsizer.reporting.dashboard import build_dashboard
from rightsizer.reporting.terminal import TerminalRenderer

__all__ = ["TerminalRenderer", "build_dashboard"]
