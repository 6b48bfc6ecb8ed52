from __future__ import annotations

from typing import Iterable, Sequence

import typer

from models.records import ParseFailure, SensorReading


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def render_reading(reading: SensorReading) -> None:
    typer.echo(
        f"  - {reading.sensor_id}: {reading.temperature_c:.3f} C "
        f"at {reading.timestamp.isoformat()}"
    )


def render_failure(failure: ParseFailure) -> None:
    typer.secho(f"  - {failure.path}: {failure.reason}", fg=typer.colors.YELLOW)


def render_cycle(
    readings: Sequence[SensorReading], failures: Iterable[ParseFailure]
) -> None:
    echo_heading("Readings")
    if readings:
        for reading in readings:
            render_reading(reading)
    else:
        typer.echo("No readings available.")

    failures = list(failures)
    typer.echo()
    echo_heading("Skipped")
    if failures:
        for failure in failures:
            render_failure(failure)
    else:
        typer.echo("No sensors skipped.")
