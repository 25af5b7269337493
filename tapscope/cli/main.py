"""
tapscope CLI.

Commands:
- manifest: Validate a scope manifest and show its taps
- config: Configuration management
- demo: Capture from a simulated scope and write a VCD
- version: Show version
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config import ScopeConfig, load_config, generate_default_config
from ..core.errors import ScopeError
from ..manifest import Manifest, load_manifest
from ..session import ScopeSession
from ..testing import SimulatedScopeDevice, random_captures, get_scenario, list_scenarios


app = typer.Typer(
    name="tapscope",
    help="Trace capture and waveform reconstruction for on-chip scopes",
    add_completion=False,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _manifest_table(manifest: Manifest) -> Table:
    table = Table(title=f"Taps ({len(manifest)})")
    table.add_column("ID", justify="right")
    table.add_column("Path")
    table.add_column("Width", justify="right")
    table.add_column("Signals")

    for tap in manifest:
        signals = ", ".join(f"{s.name}[{s.width}]" for s in tap.signals)
        table.add_row(str(tap.id), tap.path, str(tap.width), signals)
    return table


# === MANIFEST COMMAND ===

@app.command()
def manifest(
    path: Path = typer.Argument(..., help="Scope manifest (JSON or YAML)"),
    as_json: bool = typer.Option(False, "--json", help="Print taps as JSON"),
):
    """Validate a scope manifest and list its taps."""
    try:
        parsed = load_manifest(path)
    except ScopeError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    if as_json:
        taps = [
            {
                'id': t.id,
                'width': t.width,
                'path': t.path,
                'signals': [[s.name, s.width] for s in t.signals],
            }
            for t in parsed
        ]
        console.print_json(json.dumps({'taps': taps}))
        return

    console.print(_manifest_table(parsed))
    console.print(f"[green]Valid:[/] {path} ({parsed.total_signals} signals)")


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        console.print(generate_default_config())

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        try:
            cfg = ScopeConfig.load(path)
        except Exception as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        errors = cfg.validate()
        if errors:
            console.print("[red]Invalid configuration:[/]")
            for e in errors:
                console.print(f"  - {e}")
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        cfg = ScopeConfig.load(path) if path else load_config()
        console.print(cfg.to_yaml())

    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === DEMO COMMAND ===

@app.command()
def demo(
    output_dir: Path = typer.Option(Path("./demo_output"), "-o", "--output-dir"),
    scenario: str = typer.Option("demo", "--scenario", "-s", help="Built-in manifest"),
    samples: int = typer.Option(200, "--samples", help="Samples per tap"),
    seed: int = typer.Option(42, "--seed"),
    idle_gap: int = typer.Option(0, "--idle-gap", help="Insert a long idle gap (cycles)"),
    auto_stop: Optional[float] = typer.Option(
        None, "--auto-stop", help="Leave the stop to the watchdog after N seconds"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Capture from a simulated scope and write a VCD."""
    _setup_logging(verbose)

    console.print(Panel.fit(f"[bold blue]tapscope v{__version__} Demo[/]", border_style="blue"))

    try:
        manifest_data = get_scenario(scenario)
    except KeyError:
        console.print(f"[red]Unknown scenario:[/] {scenario}")
        console.print(f"Available: {', '.join(list_scenarios())}")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / "scope.json"
    manifest_path.write_text(json.dumps(manifest_data, indent=2))
    console.print(f"   [green]✓[/] Manifest: {manifest_path}")

    cfg = ScopeConfig()
    cfg.capture.manifest_path = str(manifest_path)
    cfg.waveform.output_path = str(output_dir / "scope.vcd")

    parsed = load_manifest(manifest_path)
    device = SimulatedScopeDevice(
        random_captures(parsed, samples_per_tap=samples, seed=seed, idle_gap=idle_gap),
        word_width=cfg.device.word_width,
    )

    try:
        session = ScopeSession(device, cfg)
        if auto_stop is not None:
            cfg.capture.timeout_seconds = auto_stop
            session.start()
            session.wait()
            report = session.last_report
            if report is None:
                console.print("[red]Error:[/] auto-stop failed, see log")
                raise typer.Exit(1)
        else:
            session.start()
            report = session.stop()
    except ScopeError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    report_path = output_dir / "capture.json"
    report_path.write_text(report.to_json(indent=2))

    table = Table(title="Capture")
    table.add_column("Tap", justify="right")
    table.add_column("Path")
    table.add_column("Samples", justify="right")
    table.add_column("First cycle", justify="right")
    for tap in report.taps:
        first = "-" if tap.first_cycle is None else str(tap.first_cycle)
        table.add_row(str(tap.tap_id), tap.path, f"{tap.samples:,}", first)
    console.print(table)

    console.print(f"   [green]✓[/] Waveform: {report.output_path} ({report.cycles:,} cycles)")
    console.print(f"   [green]✓[/] Report: {report_path}")


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]tapscope v{__version__}[/]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
