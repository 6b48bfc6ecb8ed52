from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app

VALID_REPORT = (
    "aa bb cc dd ee ff 00 11 22 : crc=4f YES\n"
    "01 02 03 04 05 06 07 08 ff t=23562\n"
)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr("cli.app.configure_logging", lambda *args, **kwargs: None)


def _sensor_tree(tmp_path: Path) -> Path:
    base = tmp_path / "bus"
    directory = base / "28-0000001a2b3c"
    directory.mkdir(parents=True)
    (directory / "w1_slave").write_text(VALID_REPORT)
    return base


def test_once_publishes_snapshot(runner: CliRunner, tmp_path: Path) -> None:
    base = _sensor_tree(tmp_path)
    output = tmp_path / "kure.json"

    result = runner.invoke(app, ["--base-path", str(base), "--output", str(output), "once"])

    assert result.exit_code == 0
    assert "0000001a2b3c: 23.562 C" in result.stdout
    assert "Published 1 reading(s)" in result.stdout
    assert json.loads(output.read_text())["0000001a2b3c"]["temperature"] == 23.562


def test_once_with_no_sensors_publishes_empty_object(runner: CliRunner, tmp_path: Path) -> None:
    output = tmp_path / "kure.json"

    result = runner.invoke(
        app, ["--base-path", str(tmp_path / "absent"), "--output", str(output), "once"]
    )

    assert result.exit_code == 0
    assert "No readings available." in result.stdout
    assert output.read_text() == "{}\n"


def test_once_fails_when_output_unwritable(runner: CliRunner, tmp_path: Path) -> None:
    base = _sensor_tree(tmp_path)

    result = runner.invoke(
        app, ["-b", str(base), "-o", str(tmp_path / "missing" / "kure.json"), "once"]
    )

    assert result.exit_code == 1


def test_read_prints_reading(runner: CliRunner, tmp_path: Path) -> None:
    report = _sensor_tree(tmp_path) / "28-0000001a2b3c" / "w1_slave"

    result = runner.invoke(app, ["read", str(report)])

    assert result.exit_code == 0
    assert "0000001a2b3c: 23.562 C" in result.stdout


def test_read_with_tail_strategy_uses_embedded_id(runner: CliRunner, tmp_path: Path) -> None:
    report = _sensor_tree(tmp_path) / "28-0000001a2b3c" / "w1_slave"

    result = runner.invoke(app, ["--strategy", "tail", "read", str(report)])

    assert result.exit_code == 0
    assert "0102030405060708: 23.562 C" in result.stdout


def test_read_reports_skipped_file(runner: CliRunner, tmp_path: Path) -> None:
    report = _sensor_tree(tmp_path) / "28-0000001a2b3c" / "w1_slave"
    report.write_text(VALID_REPORT.replace("YES", "NO"))

    result = runner.invoke(app, ["read", str(report)])

    assert result.exit_code == 1
    assert "crc check failed" in result.stdout


def test_unknown_strategy_is_rejected(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--strategy", "guess", "read", str(tmp_path / "x")])

    assert result.exit_code == 2


def test_run_passes_options_through(monkeypatch, runner: CliRunner) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr("cli.app.run_service", lambda **kwargs: calls.append(kwargs))

    result = runner.invoke(
        app, ["-b", "/srv/w1", "-o", "/srv/out.json", "-s", "tail", "run", "--interval", "5"]
    )

    assert result.exit_code == 0
    assert calls == [
        {
            "base_path": "/srv/w1",
            "output_path": "/srv/out.json",
            "interval": 5.0,
            "strategy": "tail",
            "log_file": None,
        }
    ]


def test_run_daemonizes_before_starting(monkeypatch, runner: CliRunner, tmp_path: Path) -> None:
    events: List[Any] = []
    monkeypatch.setattr(
        "cli.app.daemonize",
        lambda **kwargs: events.append(("daemonize", kwargs)),
    )
    monkeypatch.setattr("cli.app.run_service", lambda **kwargs: events.append(("run", kwargs)))
    log_path = tmp_path / "out.log"

    result = runner.invoke(
        app,
        [
            "run",
            "--daemon",
            "--workdir",
            str(tmp_path),
            "--stdout",
            str(log_path),
            "--log-file",
            str(tmp_path / "w1.log"),
        ],
    )

    assert result.exit_code == 0
    assert events[0] == (
        "daemonize",
        {"workdir": tmp_path, "stdout": log_path, "stderr": None},
    )
    assert events[1][0] == "run"
    assert events[1][1]["log_file"] == str(tmp_path / "w1.log")


def test_run_daemon_requires_a_log_sink(monkeypatch, runner: CliRunner, tmp_path: Path) -> None:
    events: List[Any] = []
    monkeypatch.setattr("cli.app.daemonize", lambda **kwargs: events.append("daemonize"))
    monkeypatch.setattr("cli.app.run_service", lambda **kwargs: events.append("run"))

    result = runner.invoke(app, ["run", "--daemon", "--workdir", str(tmp_path)])

    assert result.exit_code == 2
    assert events == []


def test_run_daemon_with_stderr_only(monkeypatch, runner: CliRunner, tmp_path: Path) -> None:
    events: List[Any] = []
    monkeypatch.setattr("cli.app.daemonize", lambda **kwargs: events.append(("daemonize", kwargs)))
    monkeypatch.setattr("cli.app.run_service", lambda **kwargs: events.append(("run", kwargs)))
    err_path = tmp_path / "err.log"

    result = runner.invoke(
        app, ["run", "--daemon", "--workdir", str(tmp_path), "--stderr", str(err_path)]
    )

    assert result.exit_code == 0
    assert events[0] == ("daemonize", {"workdir": tmp_path, "stdout": None, "stderr": err_path})
    assert events[1][1]["log_file"] is None


def test_read_reports_oversized_temperature(runner: CliRunner, tmp_path: Path) -> None:
    report = _sensor_tree(tmp_path) / "28-0000001a2b3c" / "w1_slave"
    report.write_text(VALID_REPORT.replace("t=23562", "t=" + "9" * 400))

    result = runner.invoke(app, ["read", str(report)])

    assert result.exit_code == 1
    assert "temperature outside plausible range" in result.stdout
