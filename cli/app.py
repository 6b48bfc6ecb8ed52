from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from app.main import run as run_service
from app.main import service_lifespan
from cli.daemon import daemonize
from cli.render import render_cycle, render_failure, render_reading
from logging_config import configure_logging
from models.records import ParseFailure
from services.report_parser import build_default_parser
from settings import STRATEGIES


@dataclass
class CLIState:
    base_path: Optional[str]
    output_path: Optional[str]
    strategy: Optional[str]


app = typer.Typer(
    help="Publish 1-Wire temperature sensor readings as a JSON snapshot.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _check_strategy(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    lowered = value.lower()
    if lowered not in STRATEGIES:
        raise typer.BadParameter(f"must be one of: {', '.join(STRATEGIES)}")
    return lowered


@app.callback()
def main(
    ctx: typer.Context,
    base_path: Optional[str] = typer.Option(
        None,
        "--base-path",
        "-b",
        help="1-Wire device directory (defaults to W1_BASE_PATH env or /sys/devices/w1_bus_master1).",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Snapshot file to publish (defaults to SNAPSHOT_OUTPUT_PATH env or /tmp/kure.json).",
    ),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        "-s",
        callback=_check_strategy,
        help="Report parsing strategy: 'scan' or 'tail' (defaults to PARSE_STRATEGY env or scan).",
    ),
) -> None:
    """Entry point for the CLI."""
    ctx.obj = CLIState(base_path=base_path, output_path=output, strategy=strategy)


@app.command("run")
def run_command(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-i",
        min=0.1,
        help="Seconds between cycles (defaults to POLL_INTERVAL_SECONDS env or 30).",
    ),
    daemon: bool = typer.Option(
        False,
        "--daemon/--foreground",
        help="Detach from the terminal before starting the loop.",
    ),
    workdir: Path = typer.Option(
        Path("/"),
        "--workdir",
        file_okay=False,
        help="Working directory of the detached process.",
    ),
    stdout: Optional[Path] = typer.Option(
        None, "--stdout", dir_okay=False, help="Redirect standard output of the detached process."
    ),
    stderr: Optional[Path] = typer.Option(
        None, "--stderr", dir_okay=False, help="Redirect standard error of the detached process."
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", dir_okay=False, help="Write log records to this file instead of stderr."
    ),
) -> None:
    """Publish a snapshot every interval until interrupted."""
    state = _get_state(ctx)
    if log_file is not None:
        log_file = log_file.absolute()
    if daemon:
        if stderr is None and log_file is None:
            raise typer.BadParameter(
                "a detached process needs --stderr or --log-file to keep its logs.",
                param_hint="--daemon",
            )
        daemonize(
            workdir=workdir,
            stdout=stdout.absolute() if stdout else None,
            stderr=stderr.absolute() if stderr else None,
        )
    run_service(
        base_path=state.base_path,
        output_path=state.output_path,
        interval=interval,
        strategy=state.strategy,
        log_file=str(log_file) if log_file else None,
    )


@app.command("once")
def once_command(ctx: typer.Context) -> None:
    """Run a single cycle, publish it and show what was read."""
    state = _get_state(ctx)
    configure_logging()
    with service_lifespan(state.base_path, state.output_path, state.strategy) as service:
        report = service.run_once()
        render_cycle(report.readings, report.failures)
        typer.echo()
        if not report.published:
            typer.secho(f"Could not write {service.output.path}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        typer.secho(
            f"Published {len(report.snapshot.root)} reading(s) to {service.output.path}",
            fg=typer.colors.GREEN,
        )


@app.command("read")
def read_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., dir_okay=False, help="Path to a w1_slave report file."),
) -> None:
    """Parse one report file and print the reading."""
    state = _get_state(ctx)
    parser = build_default_parser(state.strategy)
    result = parser.parse(path)
    if isinstance(result, ParseFailure):
        render_failure(result)
        raise typer.Exit(code=1)
    render_reading(result)
