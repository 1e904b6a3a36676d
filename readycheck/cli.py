"""
readycheck CLI entry point.
"""
import os
import sys
from dataclasses import replace
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from readycheck import __version__, directory
from readycheck.client import SupabaseProbeClient
from readycheck.config import DEFAULT_ENV_FILE, ENV_VARS, Settings, is_placeholder, load_env_file, mask
from readycheck.models.outcome import Report
from readycheck.reporters import json_reporter, markdown, text
from readycheck.verifier import Verifier

_STATUS_COLORS = {
    "Reachable": "green",
    "Unreachable": "red",
}


def _print_banner(no_color: bool = False) -> None:
    c = Console(stderr=True, no_color=no_color)
    c.print(f"[bold cyan]readycheck[/bold cyan] [dim]v{__version__}[/dim]  backend readiness verification\n")


def _print_summary_table(report: Report, no_color: bool) -> None:
    """Print a rich summary table to stderr."""
    tbl = Table(title="Readiness Summary", show_header=True, header_style="bold")
    tbl.add_column("#", style="dim", width=4)
    tbl.add_column("Kind", width=8)
    tbl.add_column("Resource", width=24)
    tbl.add_column("Status", width=12)
    tbl.add_column("Detail")

    for i, o in enumerate(report.outcomes, 1):
        color = _STATUS_COLORS.get(o.status.value, "") if not no_color else ""
        detail = o.detail or (o.visibility.value if o.visibility else "")
        tbl.add_row(
            str(i),
            o.spec.kind.value,
            o.resource_name,
            f"[{color}]{o.status.value}[/{color}]" if color else o.status.value,
            detail[:80] + "…" if len(detail) > 80 else detail,
        )

    Console(stderr=True, no_color=no_color).print(tbl)


def _render(report: Report, output_format: str, ascii_mode: bool) -> str:
    fmt = output_format.lower()
    if fmt == "json":
        return json_reporter.build_report(report)
    if fmt == "markdown":
        return markdown.build_report(report, ascii_mode=ascii_mode)
    return text.build_report(report, ascii_mode=ascii_mode)


@click.group(
    invoke_without_command=True,
    context_settings=dict(help_option_names=["-h", "--help"]),
)
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """readycheck: verify that a Supabase backend has the expected tables, buckets and auth."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(check)


@cli.command()
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_ENV_FILE,
    show_default=True,
    help="Dotenv file to load before reading settings (skipped if absent).",
)
@click.option(
    "--resources", "resources_file",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"YAML file declaring the expected resources (default: ./{directory.DEFAULT_RESOURCE_FILE} if present).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json", "markdown"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write report to this file (default: stdout).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-probe deadline in seconds (overrides READYCHECK_TIMEOUT).",
)
@click.option(
    "--summary",
    is_flag=True,
    default=False,
    help="Also print a summary table to stderr.",
)
@click.option(
    "--ascii",
    is_flag=True,
    default=False,
    help="Use ASCII-only status markers (no emojis).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable rich terminal color output.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Print debug notes to stderr.",
)
def check(
    env_file: str = DEFAULT_ENV_FILE,
    resources_file: Optional[str] = None,
    output_format: str = "text",
    output: Optional[str] = None,
    timeout: Optional[float] = None,
    summary: bool = False,
    ascii: bool = False,
    no_color: bool = False,
    verbose: bool = False,
) -> None:
    """
    Probe every expected backend resource and print a readiness report.

    Failures are reported, never fatal: the exit code is 0 whenever a report
    was produced.
    """
    _print_banner(no_color)
    stderr = Console(stderr=True, no_color=no_color)

    try:
        load_env_file(env_file)
        settings = Settings.from_env()
        if timeout is not None:
            settings = replace(settings, timeout=timeout)

        resources = directory.list_resources(resources_file)
        with SupabaseProbeClient(settings) as client:
            verifier = Verifier(settings, client, resources, verbose=verbose)
            with stderr.status(f"[bold]Probing {len(resources)} resource(s)…"):
                report = verifier.run()
    except Exception as exc:
        stderr.print(f"[red]Readiness check failed:[/red] {exc}")
        sys.exit(1)

    if summary:
        _print_summary_table(report, no_color)

    content = _render(report, output_format, ascii)
    if output:
        with open(output, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content + "\n")
        stderr.print(f"Report written to [bold]{output}[/bold]")
    else:
        click.echo(content)

    sys.exit(0)


@cli.command()
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_ENV_FILE,
    show_default=True,
    help="Dotenv file to load before checking (skipped if absent).",
)
@click.option("--ascii", is_flag=True, default=False, help="Use ASCII-only status markers.")
def env(env_file: str, ascii: bool) -> None:
    """Show which backend environment variables are set."""
    load_env_file(env_file)
    ok, fail, warn = ("[OK]", "[MISSING]", "[--]") if ascii else ("✅", "❌", "⚠️")

    missing = []
    for var in ENV_VARS:
        value = os.environ.get(var.name)
        if value and not is_placeholder(var.name, value):
            click.echo(f"{ok} {var.name.ljust(35)} - {mask(value, var.secret)}")
        elif var.required:
            click.echo(f"{fail} {var.name.ljust(35)} - MISSING (Required)")
            missing.append(var)
        else:
            click.echo(f"{warn} {var.name.ljust(35)} - Not set (Optional)")

    click.echo("")
    if not missing:
        click.echo("All required environment variables are set.")
        return
    click.echo("Missing required variables:")
    for var in missing:
        click.echo(f"   {var.name} - {var.description}")
        if var.example:
            click.echo(f"   Example: {var.example}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
