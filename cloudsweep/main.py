"""
CloudSweep CLI

Main entry point for the command-line interface.
"""

import signal
import sys
from contextlib import contextmanager
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from cloudsweep import __version__
from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.config import SweepConfig, load_config, parse_duration
from cloudsweep.core.exceptions import AWSClientError, CloudSweepError, ConfigError
from cloudsweep.core.logging import setup_logging
from cloudsweep.core.models import RunConfig
from cloudsweep.core.region_manager import RegionManager, SweepRunResult
from cloudsweep.reporters.cli_reporter import CLIReporter
from cloudsweep.reporters.json_reporter import JSONReporter
from cloudsweep.resources import RESOURCE_TYPES, select_resource_types

console = Console()


def validate_duration(ctx, param, value: Optional[str]):
    """Parse a duration option such as 24h or 7d."""
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ConfigError as e:
        raise click.BadParameter(e.message)


def sweep_options(func):
    """Options shared by the inspect and nuke commands."""
    options = [
        click.option("--region", "-r", "regions", multiple=True,
                     help="AWS region to sweep (repeatable, default: us-east-1)"),
        click.option("--all-regions", is_flag=True,
                     help="Sweep every region enabled for the account"),
        click.option("--resource-type", "-t", "resource_types", multiple=True,
                     help="Resource type to sweep (repeatable, default: all)"),
        click.option("--exclude-resource-type", "excluded_types", multiple=True,
                     help="Resource type to skip (repeatable)"),
        click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False),
                     help="YAML file with include/exclude rules per resource type"),
        click.option("--older-than", callback=validate_duration,
                     help="Only match resources older than this (e.g. 24h, 7d)"),
        click.option("--newer-than", callback=validate_duration,
                     help="Only match resources newer than this (e.g. 1h)"),
        click.option("--exclude-first-seen", is_flag=True,
                     help="Do not tag resources with the first-seen timestamp"),
        click.option("--profile", "-p", default=None,
                     help="AWS profile name from ~/.aws/credentials"),
        click.option("--max-workers", default=10, type=int,
                     help="Maximum pipelines running in parallel (default: 10)"),
        click.option("--timeout", default=None, type=float,
                     help="Cancel the run after this many seconds"),
        click.option("--output", "-o", default=None,
                     help="Write the run result as JSON to this path"),
        click.option("--log-level", default="INFO",
                     type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
                     help="Log verbosity (default: INFO)"),
        click.option("--log-file", default=None, help="Also write logs to this file"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_resource_classes(resource_types: Tuple[str, ...], excluded_types: Tuple[str, ...]):
    try:
        classes = select_resource_types(resource_types, excluded_types)
    except KeyError as e:
        raise click.BadParameter(
            f"Unknown resource type {e.args[0]!r}. "
            f"Available: {', '.join(sorted(RESOURCE_TYPES))}"
        )
    if not classes:
        raise click.BadParameter("No resource types selected")
    return classes


def _build_sweep_config(config_path, resource_classes, older_than, newer_than) -> SweepConfig:
    sweep_config = load_config(config_path) if config_path else SweepConfig()
    sweep_config.apply_age_overrides(
        [cls.resource_type for cls in resource_classes],
        older_than=older_than,
        newer_than=newer_than,
    )
    return sweep_config


@contextmanager
def cancel_on_interrupt(run_config: RunConfig):
    """Turn Ctrl-C into run cancellation so workers stop promptly."""

    def handler(signum, frame):
        console.print("\n[yellow]Cancelling... waiting for running pipelines to stop.[/yellow]")
        run_config.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield run_config
    finally:
        signal.signal(signal.SIGINT, previous)


def _prepare_run(
    regions: Tuple[str, ...],
    all_regions: bool,
    profile: Optional[str],
    max_workers: int,
) -> Tuple[RegionManager, List[str]]:
    client = AWSClient(region=regions[0] if regions else "us-east-1", profile=profile)
    client.validate_credentials()

    region_manager = RegionManager(profile=profile, max_workers=max_workers)
    if all_regions:
        target_regions = region_manager.get_all_regions()
    else:
        target_regions = list(regions) or ["us-east-1"]
    return region_manager, target_regions


def _progress_printer():
    def progress_callback(resource_type: str, region: str, status: str):
        if status in ("listed", "done"):
            console.print(f"  [dim]{resource_type} in {region}: {status}[/dim]")
        elif status == "error":
            console.print(f"  [yellow]{resource_type} in {region}: failed[/yellow]")

    return progress_callback


def _write_output(result: SweepRunResult, output: Optional[str]) -> None:
    if output:
        path = JSONReporter(output_path=output).report(result)
        console.print(f"[dim]Results saved to: {path}[/dim]")


@click.group()
@click.version_option(version=__version__, prog_name="cloudsweep")
def cli():
    """
    CloudSweep: AWS Resource Cleanup

    Finds AWS resources matching include/exclude rules and deletes them.
    Resources without a creation timestamp are tagged the first time they
    are seen so that age filters work on later runs.
    """
    pass


@cli.command("inspect")
@sweep_options
def inspect_resources(
    regions, all_regions, resource_types, excluded_types, config_path,
    older_than, newer_than, exclude_first_seen, profile, max_workers,
    timeout, output, log_level, log_file,
):
    """
    List resources that would be deleted, without deleting anything.

    Examples:

        cloudsweep inspect --region us-east-1 --resource-type elb

        cloudsweep inspect --all-regions --older-than 7d -o matches.json
    """
    setup_logging(level=log_level, log_file=log_file)
    reporter = CLIReporter(console)
    resource_classes = _resolve_resource_classes(resource_types, excluded_types)

    try:
        sweep_config = _build_sweep_config(config_path, resource_classes, older_than, newer_than)
        region_manager, target_regions = _prepare_run(regions, all_regions, profile, max_workers)

        run_config = RunConfig.with_timeout(
            timeout, exclude_first_seen_tag=exclude_first_seen, dry_run=True
        )
        with cancel_on_interrupt(run_config):
            result = region_manager.run(
                resource_classes,
                target_regions,
                sweep_config,
                run_config,
                progress_callback=_progress_printer(),
            )
        reporter.report_candidates(result)
        _write_output(result, output)

        if run_config.cancelled:
            reporter.print_warning("Run cancelled; remaining work was skipped.")
            sys.exit(130)
        if result.failed_pipelines:
            sys.exit(1)

    except ConfigError as e:
        reporter.print_error(f"Invalid configuration: {e}")
        sys.exit(2)
    except AWSClientError as e:
        reporter.print_error(f"AWS error: {e}")
        sys.exit(1)
    except CloudSweepError as e:
        reporter.print_error(str(e))
        sys.exit(1)


@cli.command("nuke")
@sweep_options
@click.option("--force", "-f", is_flag=True, default=False,
              help="Delete without asking for confirmation (dangerous!)")
@click.option("--dry-run", is_flag=True, default=False,
              help="Only show what would be deleted")
def nuke_resources(
    regions, all_regions, resource_types, excluded_types, config_path,
    older_than, newer_than, exclude_first_seen, profile, max_workers,
    timeout, output, log_level, log_file, force, dry_run,
):
    """
    Delete resources matching the configured rules.

    First lists and filters every selected resource type in every region,
    shows the matches, asks for confirmation, then deletes them.

    Examples:

        # Preview only
        cloudsweep nuke --dry-run --older-than 24h

        # Delete old load balancers in two regions
        cloudsweep nuke -t elb -r us-east-1 -r eu-west-1 --older-than 7d

        # Use a rule file and skip the prompt
        cloudsweep nuke --all-regions -c cloudsweep.yaml --force
    """
    setup_logging(level=log_level, log_file=log_file)
    reporter = CLIReporter(console)
    resource_classes = _resolve_resource_classes(resource_types, excluded_types)

    try:
        sweep_config = _build_sweep_config(config_path, resource_classes, older_than, newer_than)
        region_manager, target_regions = _prepare_run(regions, all_regions, profile, max_workers)

        run_config = RunConfig.with_timeout(
            timeout, exclude_first_seen_tag=exclude_first_seen, dry_run=dry_run
        )
        progress = _progress_printer()

        if dry_run:
            console.print(Panel(
                "[yellow bold]DRY-RUN MODE[/yellow bold]\nNothing will be deleted.",
                border_style="yellow",
            ))
        elif force:
            console.print(Panel(
                "[red bold]FORCE MODE[/red bold]\nResources will be deleted WITHOUT confirmation!",
                border_style="red",
            ))

        console.print("\n[bold]Step 1: Listing resources...[/bold]")
        with cancel_on_interrupt(run_config):
            result = region_manager.inspect(
                resource_classes, target_regions, sweep_config, run_config, progress
            )
        reporter.report_candidates(result)

        if run_config.cancelled:
            reporter.print_warning("Run cancelled; remaining work was skipped.")
            _write_output(result, output)
            sys.exit(130)
        if result.total_matched == 0:
            console.print("\n[green]Nothing to delete.[/green]")
            result.complete()
            _write_output(result, output)
            sys.exit(1 if result.failed_pipelines else 0)
        if dry_run:
            result.complete()
            _write_output(result, output)
            return

        if not force:
            confirmed = Confirm.ask(
                f"\n[yellow]Delete all {result.total_matched} resource(s)?[/yellow]",
                default=False,
            )
            if not confirmed:
                console.print("\n[yellow]Deletion cancelled by user.[/yellow]")
                return

        console.print("\n[bold]Step 2: Deleting resources...[/bold]")
        with cancel_on_interrupt(run_config):
            result = region_manager.nuke(result, run_config, progress)

        reporter.report_outcomes(result)
        _write_output(result, output)

        if run_config.cancelled:
            reporter.print_warning("Run cancelled; remaining work was skipped.")
            sys.exit(130)
        if result.has_errors:
            sys.exit(1)

    except ConfigError as e:
        reporter.print_error(f"Invalid configuration: {e}")
        sys.exit(2)
    except AWSClientError as e:
        reporter.print_error(f"AWS error: {e}")
        sys.exit(1)
    except CloudSweepError as e:
        reporter.print_error(str(e))
        sys.exit(1)


@cli.command("resource-types")
def list_resource_types():
    """List the resource types that can be swept."""
    console.print(f"\n[bold]Resource types ({len(RESOURCE_TYPES)} total):[/bold]\n")
    for name, cls in sorted(RESOURCE_TYPES.items()):
        age_source = "first-seen tag" if cls.supports_tagging else "creation time"
        console.print(f"  • {name} [dim]({age_source})[/dim]")
    console.print()


@cli.command("regions")
@click.option("--profile", "-p", default=None,
              help="AWS profile name from ~/.aws/credentials")
def list_regions(profile: Optional[str]):
    """List all enabled AWS regions."""
    try:
        regions = RegionManager(profile=profile).get_all_regions()
    except AWSClientError as e:
        console.print(f"\n[red bold]Error:[/red bold] {escape(str(e))}")
        sys.exit(1)

    console.print(f"\n[bold]Available AWS Regions ({len(regions)} total):[/bold]\n")
    for region in regions:
        console.print(f"  • {region}")
    console.print()


@cli.command("validate")
@click.option("--profile", "-p", default=None,
              help="AWS profile name from ~/.aws/credentials")
@click.option("--region", "-r", default="us-east-1",
              help="AWS region to use for validation")
def validate_credentials(profile: Optional[str], region: str):
    """Validate AWS credentials and show account info."""
    try:
        client = AWSClient(region=region, profile=profile)
        client.validate_credentials()
        account_id = client.get_account_id()
    except AWSClientError as e:
        console.print(f"\n[red bold]Validation Failed:[/red bold] {escape(str(e))}")
        sys.exit(1)

    console.print("\n[green bold]AWS credentials are valid![/green bold]")
    console.print(f"\n  Account ID: {account_id}")
    console.print(f"  Region: {region}")
    if profile:
        console.print(f"  Profile: {profile}")
    console.print()


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
