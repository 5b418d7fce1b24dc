# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Matplotlib chart generators for the rightsizing dashboard.

``ChartGenerator`` turns a ``DashboardReport`` into the figures the web
dashboard shows (provisioning split per project, utilization spread,
savings per environment, top recommendations) and saves them as PNG.

The Agg backend is selected unconditionally so that chart rendering works
in headless / server environments without a display.
"""

from __future__ import annotations

import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from rightsizer.data.models import DashboardReport  # noqa: E402

# ---------------------------------------------------------------------------
# Style / palette constants
# ---------------------------------------------------------------------------

_STYLE_CANDIDATES = ["seaborn-v0_8-whitegrid", "seaborn-whitegrid"]

_BLUE = "#2196F3"
_GREEN = "#4CAF50"
_ORANGE = "#FF9800"
_RED = "#F44336"
_PURPLE = "#9C27B0"

_DPI = 150


def _apply_style() -> None:
    """Apply the best available Matplotlib style."""
    for style in _STYLE_CANDIDATES:
        if style in plt.style.available:
            plt.style.use(style)
            return


_apply_style()


def _empty(ax, message: str = "No data") -> None:
    ax.text(0.5, 0.5, message, ha="center", va="center", fontsize=14, color="grey")
    ax.set_xticks([])
    ax.set_yticks([])


class ChartGenerator:
    """Generate the dashboard charts.

    Parameters
    ----------
    report:
        A dashboard report built by :func:`rightsizer.reporting.dashboard.build_dashboard`.
    """

    def __init__(self, report: DashboardReport, top_n: int = 10) -> None:
        self.report = report
        self.top_n = top_n

    # -- 1. Provisioning split per project ---------------------------------

    def project_provisioning_bar(self) -> Figure:
        """Stacked bars of over-provisioned vs. properly sized rows per project."""
        projects = self.report.summary.project_breakdown
        fig, ax = plt.subplots(figsize=(10, 6), dpi=_DPI)

        if not projects:
            _empty(ax)
            return fig

        labels = [p.project or "(none)" for p in projects]
        over = np.array([p.overprovisioned_apps for p in projects])
        proper = np.array([p.properly_provisioned_apps for p in projects])
        x = np.arange(len(labels))

        ax.bar(x, proper, color=_GREEN, label="Properly provisioned")
        ax.bar(x, over, bottom=proper, color=_RED, label="Over-provisioned")

        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=30, ha="right", fontsize=9)
        ax.set_ylabel("Rows", fontsize=12)
        ax.set_title("Provisioning by Project", fontsize=16, fontweight="bold")
        ax.legend(fontsize=10)

        fig.tight_layout()
        return fig

    # -- 2. Utilization distribution ---------------------------------------

    def utilization_histogram(self) -> Figure:
        """Histogram of peak utilization percent, color-coded by threshold."""
        threshold = self.report.summary.threshold
        values = self.report.utilization_percents
        fig, ax = plt.subplots(figsize=(10, 6), dpi=_DPI)

        if not values:
            _empty(ax)
            return fig

        upper = max(100.0, float(np.max(values)))
        bins = np.linspace(0, upper, 21)
        _, edges, patches = ax.hist(values, bins=bins, edgecolor="white", linewidth=0.8)

        for patch, left_edge in zip(patches, edges[:-1]):
            if left_edge < threshold:
                patch.set_facecolor(_RED)
            elif left_edge < 80:
                patch.set_facecolor(_ORANGE)
            else:
                patch.set_facecolor(_GREEN)

        ax.axvline(
            threshold, color=_PURPLE, linewidth=2, linestyle="--",
            label=f"Threshold: {threshold:g}%",
        )
        ax.axvline(
            float(np.mean(values)), color=_BLUE, linewidth=2, linestyle=":",
            label=f"Mean: {np.mean(values):.1f}%",
        )

        ax.set_xlabel("Peak CPU Utilization (% of request)", fontsize=12)
        ax.set_ylabel("Applications", fontsize=12)
        ax.set_title("CPU Utilization Distribution", fontsize=16, fontweight="bold")
        ax.legend(fontsize=11, loc="upper right")

        fig.tight_layout()
        return fig

    # -- 3. Savings per environment ----------------------------------------

    def environment_savings_bar(self) -> Figure:
        envs = self.report.environment_stats
        fig, ax = plt.subplots(figsize=(8, 5), dpi=_DPI)

        if not envs:
            _empty(ax)
            return fig

        labels = [(e.environment or "(none)").upper() for e in envs]
        savings = [e.potential_cpu_savings for e in envs]
        bars = ax.bar(labels, savings, color=_BLUE)
        for bar, value in zip(bars, savings):
            ax.annotate(
                f"{value:,.0f}",
                xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                ha="center", va="bottom", fontsize=9,
            )

        ax.set_ylabel("Reclaimable CPU", fontsize=12)
        ax.set_title("Potential Savings by Environment", fontsize=16, fontweight="bold")

        fig.tight_layout()
        return fig

    # -- 4. Top recommendations --------------------------------------------

    def top_recommendations_barh(self) -> Figure:
        recs = self.report.recommendations[: self.top_n]
        fig, ax = plt.subplots(figsize=(10, 6), dpi=_DPI)

        if not recs:
            _empty(ax, "No rightsizing candidates")
            return fig

        labels = [f"{r.app_uniq} ({r.app_id})" for r in reversed(recs)]
        values = [r.cpu_savings_percent for r in reversed(recs)]
        ax.barh(labels, values, color=_GREEN)
        ax.set_xlim(0, 100)
        ax.set_xlabel("CPU Savings (%)", fontsize=12)
        ax.set_title("Top Rightsizing Recommendations", fontsize=16, fontweight="bold")

        fig.tight_layout()
        return fig

    # -- Convenience methods ----------------------------------------------

    def generate_all(self) -> dict[str, Figure]:
        """Generate all charts and return as a name -> figure dict."""
        return {
            "project_provisioning": self.project_provisioning_bar(),
            "utilization_histogram": self.utilization_histogram(),
            "environment_savings": self.environment_savings_bar(),
            "top_recommendations": self.top_recommendations_barh(),
        }

    def save_all(self, output_dir: str) -> dict[str, str]:
        """Save all charts as PNG files.

        Returns a mapping of chart name to the absolute path of its PNG.
        """
        os.makedirs(output_dir, exist_ok=True)
        paths: dict[str, str] = {}
        for name, fig in self.generate_all().items():
            filepath = os.path.join(output_dir, f"{name}.png")
            fig.savefig(filepath, dpi=_DPI, bbox_inches="tight", facecolor="white")
            plt.close(fig)
            paths[name] = os.path.abspath(filepath)
        return paths
