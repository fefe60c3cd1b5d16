"""CLI interface for carriage congestion analysis."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .analyzer import CongestionAnalyzer
from .config import load_settings
from .exceptions import NoProvidersAvailableError
from .frames import QUALITY_PRESETS, FrameLoader
from .result import AnalysisResult, CongestionStatus

console = Console()
log_console = Console(stderr=True)

STATUS_STYLES = {
    CongestionStatus.EMPTY: "green",
    CongestionStatus.FEW_PEOPLE: "cyan",
    CongestionStatus.MODERATE: "yellow",
    CongestionStatus.FULL: "red",
}


def setup_logging(verbose: bool = False):
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True, show_time=False)],
    )


def _resolve_source(source: str, quality: str) -> str:
    """Turn a CLI argument into a frame reference for the analyzer."""
    if source.startswith(("data:", "http://", "https://")):
        return source
    return FrameLoader(quality=quality).load(Path(source))


def _build_analyzer(ctx: click.Context) -> CongestionAnalyzer:
    try:
        settings = load_settings(env_file=ctx.obj.get("env_file"))
    except FileNotFoundError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    try:
        return CongestionAnalyzer.from_settings(settings)
    except NoProvidersAvailableError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("\nSet credentials for at least one provider, e.g.:")
        console.print("  export SAMBANOVA_API_KEY=...")
        sys.exit(1)


@click.group()
@click.option("--env-file", type=click.Path(path_type=Path, dir_okay=False), help="Load settings from this dotenv file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: bool):
    """Classify train carriage congestion from still frames.

    Frames are sent to a hosted vision model; if the primary provider
    fails the next configured provider is tried.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("source")
@click.option("--quality", "-q", type=click.Choice(list(QUALITY_PRESETS)), default="normal", help="Image quality preset for local files")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def analyze(ctx: click.Context, source: str, quality: str, as_json: bool):
    """Analyze a single frame.

    SOURCE can be a file path, an image URL or a data URL.

    Examples:

        carriage-vision analyze carriage.jpg

        carriage-vision analyze https://example.com/cam/latest.jpg --json
    """
    analyzer = _build_analyzer(ctx)

    try:
        image = _resolve_source(source, quality)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
        disable=as_json,
    ) as progress:
        progress.add_task("Analyzing...", total=None)
        result = asyncio.run(analyzer.analyze(image))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _display_result(result, source)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print provider info as JSON")
@click.pass_context
def providers(ctx: click.Context, as_json: bool):
    """Show the provider fallback chain."""
    analyzer = _build_analyzer(ctx)
    info = analyzer.describe_providers()

    if as_json:
        click.echo(json.dumps(info, indent=2))
        return

    console.print(f"[cyan]Primary:[/cyan] {info['primary']}")
    console.print(f"[cyan]Fallback:[/cyan] {info['fallback'] or '(registry order)'}")

    table = Table(title=f"Providers ({info['total']})")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Model")
    table.add_column("Configured")
    table.add_column("Enabled")

    for i, provider in enumerate(info["available"], 1):
        table.add_row(
            str(i),
            provider["name"],
            provider["model"],
            "yes" if provider["configured"] else "no",
            "yes" if provider["enabled"] else "no",
        )

    console.print(table)


@cli.command()
@click.argument("source")
@click.option("--quality", "-q", type=click.Choice(list(QUALITY_PRESETS)), default="normal", help="Image quality preset for local files")
@click.pass_context
def check(ctx: click.Context, source: str, quality: str):
    """Run every provider on SOURCE and report which ones work."""
    analyzer = _build_analyzer(ctx)

    try:
        image = _resolve_source(source, quality)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    checks = asyncio.run(analyzer.test_all_providers(image))

    table = Table(title="Provider check")
    table.add_column("Provider")
    table.add_column("Result")
    table.add_column("Details")

    for item in checks:
        if item.success:
            details = f"{item.result.status.value}, {item.result.capacity}% ({item.result.confidence}% confident)"
            table.add_row(item.provider, "[green]ok[/green]", details)
        else:
            table.add_row(item.provider, "[red]failed[/red]", escape(item.error or ""))

    console.print(table)

    if not all(item.success for item in checks):
        sys.exit(1)


def _display_result(result: AnalysisResult, source: str):
    """Display analysis result."""
    style = STATUS_STYLES.get(result.status, "white")

    body = (
        f"[bold {style}]{result.status.value}[/bold {style}]\n"
        f"Capacity: {result.capacity}%\n"
        f"Confidence: {result.confidence}%\n\n"
        f"{escape(result.reasoning)}"
    )
    console.print(Panel(body, title=f"Analysis: {escape(source[:60])}", border_style=style))


def main():
    """Entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
