# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Terminal-friendly visualizations using Unicode characters.

These functions return Rich-markup strings that render as bars in the
terminal via the Rich library.
"""

from __future__ import annotations

_FULL = "█"
_EMPTY = "░"


def horizontal_bar(
    label: str,
    value: float,
    max_value: float,
    width: int = 40,
    color: str = "green",
) -> str:
    """Render a horizontal bar chart line using Unicode block characters.

    Returns a Rich-markup string like:
        nextgensp-api......... [green]████████████░░░░░░░░[/]  312.0
    """
    if max_value <= 0:
        return f"  {label:.<30} [dim]no data[/]"
    ratio = max(0.0, min(value / max_value, 1.0))
    filled = int(ratio * width)
    bar = _FULL * filled + _EMPTY * (width - filled)
    return f"  {label:.<30} [{color}]{bar}[/] {value:>8.1f}"


def utilization_color(pct: float, threshold: float = 50.0) -> str:
    """Red below the over-provisioning threshold, yellow up to 80 %, else green."""
    if pct < threshold:
        return "red"
    if pct < 80:
        return "yellow"
    return "green"


def percentage_bar(
    label: str,
    pct: float,
    width: int = 20,
    threshold: float = 50.0,
) -> str:
    """Simple percentage bar: [label] ████░░░░ 45%"""
    clamped = max(0.0, min(100.0, pct))
    filled = int(clamped / 100 * width)
    color = utilization_color(pct, threshold)
    bar = _FULL * filled + _EMPTY * (width - filled)
    return f"{label} [{color}]{bar}[/] {pct:.0f}%".lstrip()


def split_bar(over: int, proper: int, width: int = 20) -> str:
    """Two-tone bar of over-provisioned (red) vs. properly sized (green) rows."""
    total = over + proper
    if total <= 0:
        return "[dim]" + _EMPTY * width + "[/]"
    red = round(over / total * width)
    return f"[red]{_FULL * red}[/][green]{_FULL * (width - red)}[/]"
