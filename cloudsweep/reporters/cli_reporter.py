"""
CLI Reporter Module
===================

Displays sweep results in the terminal using Rich.

Output includes:
- A header panel naming the regions and resource types covered
- A table of matching resources
- A table of per-identifier deletion outcomes with a summary
- Failed pipelines, listed separately from empty results

Classes
-------
CLIReporter
    Reporter for terminal output.

Example
-------
>>> reporter = CLIReporter()
>>> reporter.report_candidates(result)
>>> reporter.report_outcomes(result)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cloudsweep.core.ledger import OutcomeStatus
from cloudsweep.core.region_manager import PipelineResult, SweepRunResult

logger = logging.getLogger(__name__)


class CLIReporter:
    """
    Reporter for displaying sweep results in the terminal.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_header(self, title: str, result: SweepRunResult) -> None:
        """Print the report header panel."""
        regions = result.regions
        region_text = (
            ", ".join(regions) if len(regions) <= 5
            else f"{len(regions)} regions"
        )

        header_text = Text()
        header_text.append(f"\n{title}\n", style="bold blue")
        header_text.append(f"Regions: {region_text}\n", style="dim")
        header_text.append(f"Resource types: {', '.join(result.resource_types)}", style="dim")

        self.console.print(Panel(header_text, border_style="blue"))

    def report_candidates(self, result: SweepRunResult) -> None:
        """Print the resources matched by every successful pipeline."""
        self.print_header("Matching Resources", result)

        table = Table(show_lines=False)
        table.add_column("#", style="dim", width=4)
        table.add_column("Resource Type", style="magenta", no_wrap=True)
        table.add_column("Region", style="yellow", no_wrap=True)
        table.add_column("Identifier", style="cyan")
        table.add_column("Name", style="white", max_width=40)

        row = 0
        for pipeline in result.pipelines:
            for candidate in pipeline.candidates:
                row += 1
                table.add_row(
                    str(row),
                    pipeline.resource_type,
                    pipeline.region,
                    candidate.identifier,
                    escape(self._truncate(candidate.label or "", 40)),
                )

        if row:
            self.console.print(table)
        else:
            self.console.print("\n[green]No matching resources found.[/green]")

        self.print_pipeline_failures(result.failed_pipelines)

    def report_outcomes(self, result: SweepRunResult) -> None:
        """Print every deletion outcome and the run summary."""
        entries = result.ledger.entries()

        if entries:
            table = Table(title="\nDeletion Results", title_style="bold", show_lines=False)
            table.add_column("Resource Type", style="magenta", no_wrap=True)
            table.add_column("Region", style="yellow", no_wrap=True)
            table.add_column("Identifier", style="cyan")
            table.add_column("Status")
            table.add_column("Error", style="dim", max_width=60)

            for entry in entries:
                status = (
                    "[green]deleted[/green]" if entry.status == OutcomeStatus.DELETED
                    else "[red]failed[/red]"
                )
                table.add_row(
                    entry.resource_type,
                    entry.region or "N/A",
                    entry.identifier,
                    status,
                    escape(self._truncate(entry.error or "", 60)),
                )
            self.console.print(table)

        summary = result.ledger.summary()
        self.console.print("\n[bold]Summary[/bold]")
        self.console.print(f"  Deleted:  [green]{summary['deleted']}[/green]")
        self.console.print(f"  Failed:   [red]{summary['failed']}[/red]")
        self.console.print(f"  Total:    {summary['total']}")

        self.print_pipeline_failures(result.failed_pipelines)

    def print_pipeline_failures(self, pipelines: List[PipelineResult]) -> None:
        """Print pipelines that aborted with a hard error."""
        if not pipelines:
            return

        self.console.print("\n[yellow bold]Failed pipelines:[/yellow bold]")
        for pipeline in pipelines:
            self.console.print(
                f"  [red]• {pipeline.resource_type} ({pipeline.region}): "
                f"{pipeline.error_type}: {escape(pipeline.error or '')}[/red]"
            )

    def print_error(self, message: str) -> None:
        self.console.print(f"\n[red bold]Error:[/red bold] {escape(message)}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"\n[yellow bold]Warning:[/yellow bold] {escape(message)}")

    @staticmethod
    def _truncate(text: str, max_length: int) -> str:
        if len(text) <= max_length:
            return text
        return text[:max_length - 3] + "..."

    def __repr__(self) -> str:
        return "CLIReporter()"
