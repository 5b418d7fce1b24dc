# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Rich terminal report renderer.

Composes Rich tables, panels and Unicode bars into the terminal view of
the rightsizing dashboard.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

import rightsizer
from rightsizer.data.models import (
    DashboardReport,
    OptimizationHistoryRecord,
    RecommendationRecord,
    ResourceUtilizationRecord,
)
from rightsizer.reporting.ascii_charts import horizontal_bar, percentage_bar, split_bar


def _fmt(value: float | None, spec: str = ",.1f") -> str:
    return "-" if value is None else format(value, spec)


class TerminalRenderer:
    """Renders dashboard reports to the terminal using Rich."""

    def __init__(self, console: Console | None = None, limit: int = 15) -> None:
        self.console = console or Console()
        self.limit = limit

    def render(self, report: DashboardReport, show_details: bool = True) -> None:
        """Render the full dashboard."""
        self._render_header(report)
        self._render_key_metrics(report)
        self._render_project_breakdown(report)
        if show_details:
            self._render_environments(report)
            self.render_overprovisioned(report.overprovisioned, report.summary.threshold)
        self.render_recommendations(report.recommendations)
        if show_details and report.history:
            self.render_history(report.history)
        self._render_footer(report)

    # ------------------------------------------------------------------
    # Public section renderers (also used by single-purpose CLI commands)
    # ------------------------------------------------------------------

    def render_overprovisioned(
        self, records: list[ResourceUtilizationRecord], threshold: float
    ) -> None:
        self.console.print()
        self.console.print(Rule(f"[bold]OVER-PROVISIONED (< {threshold:g}% of request)[/bold]"))
        if not records:
            self.console.print("  [green]No over-provisioned applications.[/green]")
            return

        table = Table(show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("App", style="bold", min_width=18)
        table.add_column("Env", justify="center")
        table.add_column("Project", min_width=14)
        table.add_column("Requested", justify="right")
        table.add_column("Peak Used", justify="right")
        table.add_column("Utilization", min_width=22)
        table.add_column("Waste", justify="right")

        for rec in records[: self.limit]:
            pct = rec.max_cpu_utilz_percent or 0.0
            waste = rec.req_cpu - (rec.actual_cpu_used or 0.0)
            table.add_row(
                rec.app_uniq,
                rec.env,
                rec.project or "-",
                _fmt(rec.req_cpu),
                _fmt(rec.actual_cpu_used),
                percentage_bar("", pct, width=12, threshold=threshold),
                f"[red]{waste:,.1f}[/red]",
            )
        self.console.print(table)
        if len(records) > self.limit:
            self.console.print(f"  [dim]... and {len(records) - self.limit} more[/dim]")

    def render_recommendations(self, recommendations: list[RecommendationRecord]) -> None:
        self.console.print()
        self.console.print(Rule("[bold]RECOMMENDATIONS[/bold]"))
        if not recommendations:
            self.console.print("  [dim]No rightsizing candidates.[/dim]")
            return

        table = Table(show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("#", justify="right", style="bold", width=3)
        table.add_column("App", min_width=18)
        table.add_column("Env", justify="center")
        table.add_column("Current", justify="right")
        table.add_column("Proposed", justify="right")
        table.add_column("Savings", justify="right")
        table.add_column("PR", justify="center")

        for rank, rec in enumerate(recommendations[: self.limit], start=1):
            table.add_row(
                str(rank),
                rec.app_uniq,
                rec.env,
                _fmt(rec.req_cpu),
                _fmt(rec.new_req_cpu),
                f"[green]{rec.cpu_savings_percent:.2f}%[/green]",
                rec.pr_status or "-",
            )
        self.console.print(table)

        total = sum(r.req_cpu - (r.new_req_cpu or r.req_cpu) for r in recommendations)
        self.console.print(
            f"\n  [bold]Total Reclaimable CPU:[/bold] [green]{total:,.1f}[/green] "
            f"across {len(recommendations)} applications"
        )

    def render_history(self, history: list[OptimizationHistoryRecord]) -> None:
        self.console.print()
        self.console.print(Rule("[bold]OPTIMIZATION HISTORY[/bold]"))

        table = Table(show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("ID", justify="right", style="dim")
        table.add_column("App", min_width=18)
        table.add_column("Env", justify="center")
        table.add_column("Old", justify="right")
        table.add_column("New", justify="right")
        table.add_column("Status", justify="center")
        table.add_column("Date")

        for item in history[: self.limit]:
            color = item.status.color
            date = item.optimization_date.strftime("%Y-%m-%d") if item.optimization_date else "-"
            table.add_row(
                str(item.id),
                item.app_uniq,
                item.env,
                _fmt(item.old_req_cpu),
                _fmt(item.new_req_cpu),
                f"[{color}]{item.status.value}[/{color}]",
                date,
            )
        self.console.print(table)

    # ------------------------------------------------------------------
    # Private rendering methods
    # ------------------------------------------------------------------

    def _render_header(self, report: DashboardReport) -> None:
        s = report.summary
        header_text = Text()
        header_text.append("RIGHTSIZER", style="bold cyan")
        header_text.append(" | ", style="dim")
        header_text.append(f"{s.total_apps} apps", style="bold")
        header_text.append(f" | {s.total_projects} projects")
        header_text.append(f" | {len(s.environments)} environments")
        header_text.append(f" | threshold {s.threshold:g}%", style="dim")

        self.console.print()
        self.console.print(Panel(header_text, title="CPU Utilization Dashboard"))

    def _render_key_metrics(self, report: DashboardReport) -> None:
        s = report.summary
        table = Table(show_header=False, padding=(0, 2), box=None)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row(
            "Avg Peak Utilization",
            percentage_bar("", s.avg_cpu_utilization, width=15, threshold=s.threshold),
        )
        table.add_row(
            "Over-provisioned",
            f"[red]{s.overprovisioned_count}[/red] / {s.total_apps}",
        )
        table.add_row("Potential CPU Savings", f"[green]{s.total_cpu_savings:,.1f}[/green]")
        if report.pr_status_counts:
            table.add_row(
                "PR Status",
                ", ".join(f"{k}: {v}" for k, v in report.pr_status_counts.items()),
            )
        if report.history_status_counts:
            table.add_row(
                "Optimizations",
                ", ".join(f"{k}: {v}" for k, v in report.history_status_counts.items()),
            )

        self.console.print()
        self.console.print(Panel(table, title="[bold]KEY METRICS[/bold]"))

    def _render_project_breakdown(self, report: DashboardReport) -> None:
        projects = report.summary.project_breakdown
        if not projects:
            return
        self.console.print()
        self.console.print(Rule("[bold]PROJECTS[/bold]"))

        table = Table(show_header=True, header_style="bold", padding=(0, 1))
        table.add_column("Project", style="bold", min_width=16)
        table.add_column("Apps", justify="right")
        table.add_column("Over / Proper", min_width=20)
        table.add_column("Avg Util", justify="right")
        table.add_column("Savings", justify="right")

        for p in projects:
            table.add_row(
                p.project or "(none)",
                str(p.unique_apps),
                f"{split_bar(p.overprovisioned_apps, p.properly_provisioned_apps, 12)} "
                f"{p.overprovisioned_apps}/{p.properly_provisioned_apps}",
                _fmt(p.avg_cpu_utilization, ".1f") + "%",
                _fmt(p.potential_cpu_savings),
            )
        self.console.print(table)

    def _render_environments(self, report: DashboardReport) -> None:
        envs = report.environment_stats
        if not envs:
            return
        self.console.print()
        self.console.print(Rule("[bold]POTENTIAL SAVINGS BY ENVIRONMENT[/bold]"))
        top = max(e.potential_cpu_savings for e in envs)
        for e in envs:
            self.console.print(
                horizontal_bar(e.environment or "(none)", e.potential_cpu_savings, top, width=30)
            )

    def _render_footer(self, report: DashboardReport) -> None:
        self.console.print()
        self.console.print(Rule(style="dim"))
        self.console.print(
            f"  [dim]Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M UTC')} | "
            f"rightsizer v{rightsizer.__version__}[/dim]"
        )
        self.console.print()
