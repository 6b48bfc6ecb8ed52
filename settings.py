from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache


_BASE_PATH_ENV = "W1_BASE_PATH"
_DEVICE_PREFIX_ENV = "W1_DEVICE_PREFIX"
_REPORT_NAME_ENV = "W1_REPORT_NAME"
_OUTPUT_PATH_ENV = "SNAPSHOT_OUTPUT_PATH"
_ATOMIC_WRITE_ENV = "SNAPSHOT_ATOMIC_WRITE"
_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_STRATEGY_ENV = "PARSE_STRATEGY"
_TAIL_BYTES_ENV = "TAIL_BYTES"
_MIN_CELSIUS_ENV = "TEMP_MIN_CELSIUS"
_MAX_CELSIUS_ENV = "TEMP_MAX_CELSIUS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

STRATEGIES = ("scan", "tail")


@dataclass(frozen=True)
class Settings:
    base_path: str
    device_prefix: str
    report_name: str
    output_path: str
    atomic_write: bool
    poll_interval: float
    strategy: str
    tail_bytes: int
    min_celsius: float
    max_celsius: float
    log_level: str


def _read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_str_env(name: str, default: str) -> str:
    return _read_env(name) or default


def _read_bool_env(name: str, default: bool) -> bool:
    candidate = _read_env(name)
    if candidate is None:
        return default
    lowered = candidate.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return default


def _read_positive_int(name: str, default: int) -> int:
    candidate = _read_env(name)
    if candidate is None:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float, positive: bool = False) -> float:
    candidate = _read_env(name)
    if candidate is None:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if not math.isfinite(parsed):
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_strategy(default: str) -> str:
    candidate = _read_env(_STRATEGY_ENV)
    if candidate is None:
        return default
    lowered = candidate.lower()
    return lowered if lowered in STRATEGIES else default


def _read_celsius_range(default: tuple[float, float]) -> tuple[float, float]:
    low = _read_float(_MIN_CELSIUS_ENV, default[0])
    high = _read_float(_MAX_CELSIUS_ENV, default[1])
    if not low < high:
        return default
    return low, high


def _read_log_level(default: str) -> str:
    candidate = _read_env(_LOG_LEVEL_ENV)
    if candidate is None:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    min_celsius, max_celsius = _read_celsius_range((-100.0, 100.0))
    return Settings(
        base_path=_read_str_env(_BASE_PATH_ENV, "/sys/devices/w1_bus_master1"),
        device_prefix=_read_str_env(_DEVICE_PREFIX_ENV, "28-"),
        report_name=_read_str_env(_REPORT_NAME_ENV, "w1_slave"),
        output_path=_read_str_env(_OUTPUT_PATH_ENV, "/tmp/kure.json"),
        atomic_write=_read_bool_env(_ATOMIC_WRITE_ENV, True),
        poll_interval=_read_float(_INTERVAL_ENV, 30.0, positive=True),
        strategy=_read_strategy("scan"),
        tail_bytes=_read_positive_int(_TAIL_BYTES_ENV, 200),
        min_celsius=min_celsius,
        max_celsius=max_celsius,
        log_level=_read_log_level("INFO"),
    )
