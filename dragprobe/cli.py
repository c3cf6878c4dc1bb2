import asyncio
import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dragprobe import __version__
from dragprobe.browser.models import BrowserSessionConfig, BrowserType
from dragprobe.logging_config import setup_logging

console = Console()

STATUS_STYLES = {
    "passed": "[green]✓ passed[/green]",
    "failed": "[red]✗ failed[/red]",
    "error": "[red]! error[/red]",
    "skipped": "[dim]- skipped[/dim]",
}


@click.group()
@click.version_option(version=__version__, prog_name="dragprobe")
@click.option("--log-level", default=None, envvar="DRAGPROBE_LOG_LEVEL", help="Logging level")
@click.option("--log-json", is_flag=True, envvar="DRAGPROBE_LOG_JSON", help="Emit logs as JSON lines")
def main(log_level: str, log_json: bool):
    """dragprobe - cross-browser drag-and-drop conformance suite."""
    setup_logging(level=log_level, json_format=log_json)


@main.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]dragprobe[/bold cyan] v{__version__}")


@main.command("list")
def list_scenarios():
    """List the registered scenarios."""
    from dragprobe.scenarios import SCENARIOS

    table = Table(title="dragprobe scenarios")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Ignored on", style="yellow")
    table.add_column("Session", style="dim")

    for scenario in SCENARIOS.values():
        flags = []
        if scenario.needs_fresh_session:
            flags.append("fresh")
        if scenario.discard_session_after:
            flags.append("discard after")
        if scenario.switch_to_top_after:
            flags.append("top after")
        ignored = [b.value for b in scenario.ignored_on] + list(scenario.skip_platforms)
        table.add_row(scenario.name, scenario.description, ", ".join(ignored), ", ".join(flags))

    console.print(table)


@main.command()
@click.option(
    "--browser", "-b",
    type=click.Choice([b.value for b in BrowserType]),
    default=None,
    envvar="DRAGPROBE_BROWSER",
    help="Browser engine to drive",
)
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--only", "-k", "names", multiple=True, help="Run only this scenario (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def run(browser: str, headed: bool, names: tuple, as_json: bool):
    """Run the drag-and-drop scenarios."""
    from dragprobe.errors import DragProbeError

    config = BrowserSessionConfig.from_env()
    if browser:
        config.browser_type = BrowserType(browser)
    if headed:
        config.headless = False

    if not as_json:
        console.print(Panel.fit(
            f"[bold cyan]dragprobe[/bold cyan] v{__version__}\n"
            f"[dim]Running on {config.browser_type.value}"
            f"{' (headed)' if not config.headless else ''}[/dim]",
            border_style="cyan",
        ))

    try:
        suite = asyncio.run(_run(config, list(names)))
    except DragProbeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)
    except Exception as e:
        console.print(f"[red]Could not run scenarios:[/red] {e}")
        console.print("[dim]Browsers may need installing: playwright install[/dim]")
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(suite.to_dict(), indent=2))
    else:
        _print_suite(suite)

    if not suite.passed:
        sys.exit(1)


async def _run(config: BrowserSessionConfig, names: list):
    from dragprobe.browser.manager import browser_manager
    from dragprobe.runner import run_scenarios

    try:
        return await run_scenarios(config=config, names=names or None)
    finally:
        await browser_manager.close_all()


def _print_suite(suite):
    table = Table(title=f"Results on {suite.browser_type}")
    table.add_column("Scenario", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Time", justify="right", style="dim")
    table.add_column("Message")

    for result in suite.results:
        table.add_row(
            result.name,
            STATUS_STYLES.get(result.status.value, result.status.value),
            f"{result.duration_ms / 1000:.2f}s",
            result.message[:120],
        )

    console.print(table)
    counts = suite.to_dict()["counts"]
    summary = ", ".join(f"{n} {status}" for status, n in counts.items() if n)
    if suite.passed:
        console.print(f"\n[bold green]All good:[/bold green] {summary}")
    else:
        console.print(f"\n[bold red]Failures:[/bold red] {summary}")


@main.command()
@click.option("--host", default="127.0.0.1", envvar="DRAGPROBE_HOST", help="Host to bind to")
@click.option("--port", default=8420, envvar="DRAGPROBE_PORT", help="Port to bind to")
def serve(host: str, port: int):
    """Serve the fixture pages and the browser control API."""
    from dragprobe.server import run_server

    console.print(Panel.fit(
        "[bold cyan]dragprobe[/bold cyan] fixture server\n"
        f"[dim]Pages at http://{host}:{port}/pages/[/dim]",
        border_style="cyan",
    ))
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")
    run_server(host=host, port=port)


if __name__ == "__main__":
    main()
