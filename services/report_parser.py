"""Decoding of w1_therm report files into temperature readings.

A report looks like::

    72 01 4b 46 7f ff 0e 10 57 : crc=57 YES
    72 01 4b 46 7f ff 0e 10 57 t=23125

The first line is the raw scratchpad followed by the driver's CRC verdict,
the second repeats the scratchpad and carries the temperature in
millidegrees Celsius.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from models.records import FailureKind, ParseFailure, ParseResult, SensorReading
from settings import STRATEGIES, get_settings


_HEX = r"[0-9A-Fa-f]{2}"

REPORT_PATTERN = re.compile(
    rf"{_HEX}(?: {_HEX}){{8}} : crc={_HEX} (?P<verdict>YES|NO)\r?\n"
    rf"(?P<scratchpad>{_HEX}(?: {_HEX}){{7}}) {_HEX} t=(?P<raw>\S+)"
)
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportParser:
    """Turn one report file into a reading or a tagged failure.

    ``scan`` reads the whole file, takes the sensor id from the parent
    directory name and stamps the reading with the parse time. ``tail``
    reads at most the last ``tail_bytes`` bytes, takes the id from the
    scratchpad bytes in the report and stamps the reading with the file's
    modification time.
    """

    def __init__(
        self,
        strategy: str = "scan",
        tail_bytes: int = 200,
        min_celsius: float = -100.0,
        max_celsius: float = 100.0,
        device_prefix: str = "28-",
        clock: Clock = _utcnow,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown parse strategy {strategy!r}.")
        if tail_bytes <= 0:
            raise ValueError("tail_bytes must be positive.")
        if not min_celsius < max_celsius:
            raise ValueError("min_celsius must be below max_celsius.")
        self.strategy = strategy
        self.tail_bytes = tail_bytes
        self.min_celsius = min_celsius
        self.max_celsius = max_celsius
        self._clock = clock
        self._id_pattern = re.compile(re.escape(device_prefix) + r"([0-9A-Fa-f]+)")

    def parse(self, path: Path) -> ParseResult:
        if self.strategy == "tail":
            return self._parse_tail(path)
        return self._parse_scan(path)

    def _parse_scan(self, path: Path) -> ParseResult:
        id_match = self._id_pattern.fullmatch(path.parent.name)
        if id_match is None:
            return ParseFailure(path, FailureKind.missing_id, path.parent.name)

        try:
            handle = path.open("rb")
        except OSError as exc:
            return ParseFailure(path, FailureKind.open_failed, str(exc))
        with handle:
            try:
                raw = handle.read()
            except OSError as exc:
                return ParseFailure(path, FailureKind.read_failed, str(exc))

        return self._decode(path, raw, sensor_id=id_match.group(1), timestamp=self._clock())

    def _parse_tail(self, path: Path) -> ParseResult:
        try:
            handle = path.open("rb")
        except OSError as exc:
            return ParseFailure(path, FailureKind.open_failed, str(exc))
        with handle:
            try:
                stat = os.fstat(handle.fileno())
            except OSError as exc:
                return ParseFailure(path, FailureKind.metadata_failed, str(exc))
            try:
                raw = b""
                if stat.st_size > self.tail_bytes:
                    handle.seek(stat.st_size - self.tail_bytes)
                    raw = handle.read(self.tail_bytes)
                if not raw:
                    # sysfs reports a fixed st_size, so the seek can land
                    # past the real content.
                    handle.seek(0)
                    raw = handle.read()[-self.tail_bytes:]
            except OSError as exc:
                return ParseFailure(path, FailureKind.read_failed, str(exc))

        timestamp = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return self._decode(path, raw, sensor_id=None, timestamp=timestamp)

    def _decode(
        self,
        path: Path,
        raw: bytes,
        sensor_id: Optional[str],
        timestamp: datetime,
    ) -> ParseResult:
        text = raw.decode("ascii", errors="replace")
        matches = list(REPORT_PATTERN.finditer(text))
        if not matches:
            return ParseFailure(path, FailureKind.grammar_mismatch)
        # Later records are newer.
        match = matches[-1]
        if match.group("verdict") != "YES":
            return ParseFailure(path, FailureKind.crc_mismatch)

        token = match.group("raw")
        if not _INTEGER_PATTERN.fullmatch(token):
            return ParseFailure(path, FailureKind.invalid_integer, token)
        try:
            temperature = int(token) / 1000.0
        except (OverflowError, ValueError):
            # Too many digits for int() or for a float.
            return ParseFailure(path, FailureKind.out_of_range, token[:32])
        if not self.min_celsius <= temperature <= self.max_celsius:
            return ParseFailure(path, FailureKind.out_of_range, str(temperature))

        if sensor_id is None:
            sensor_id = match.group("scratchpad").replace(" ", "").lower()
        return SensorReading(sensor_id=sensor_id, temperature_c=temperature, timestamp=timestamp)


@lru_cache
def build_default_parser(strategy: Optional[str] = None) -> ReportParser:
    settings = get_settings()
    return ReportParser(
        strategy=settings.strategy if strategy is None else strategy,
        tail_bytes=settings.tail_bytes,
        min_celsius=settings.min_celsius,
        max_celsius=settings.max_celsius,
        device_prefix=settings.device_prefix,
    )
