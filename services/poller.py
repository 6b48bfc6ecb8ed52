"""Periodic discovery, parsing and publishing of sensor readings."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from app.schemas import Snapshot
from models.records import ParseFailure, SensorReading
from services.report_parser import ReportParser, build_default_parser
from services.snapshot import SnapshotBuilder, render_snapshot
from storage.snapshot_file import SnapshotFile, build_default_output
from storage.w1_bus import OneWireBus, build_default_bus

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """What one cycle read, skipped and published."""

    readings: List[SensorReading]
    failures: List[ParseFailure]
    snapshot: Snapshot
    published: bool


class SnapshotService:
    """Runs the enumerate, parse and publish pipeline on a fixed interval."""

    def __init__(
        self,
        bus: OneWireBus,
        parser: ReportParser,
        builder: SnapshotBuilder,
        output: SnapshotFile,
    ) -> None:
        self.bus = bus
        self.parser = parser
        self.builder = builder
        self.output = output
        self._stop_event = threading.Event()

    def collect(self) -> Tuple[List[SensorReading], List[ParseFailure]]:
        readings: List[SensorReading] = []
        failures: List[ParseFailure] = []
        for path in self.bus.report_files():
            result = self.parser.parse(path)
            if isinstance(result, ParseFailure):
                logger.warning(
                    "Skipping sensor this cycle",
                    extra={"sensor_path": str(result.path), "reason": result.reason},
                )
                failures.append(result)
                continue
            readings.append(result)
        return readings, failures

    def run_once(self) -> CycleReport:
        """Run a single cycle and publish its snapshot."""
        start_time = time.perf_counter()
        readings, failures = self.collect()
        snapshot = self.builder.build(readings)
        published = self.output.write(render_snapshot(snapshot))

        summary = self.builder.last_summary
        logger.info(
            "Published snapshot" if published else "Snapshot not published",
            extra={
                "sensor_count": summary.sensor_count,
                "failure_count": len(failures),
                "duplicate_count": len(summary.duplicate_ids) or None,
                "output_path": str(self.output.path),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return CycleReport(
            readings=readings, failures=failures, snapshot=snapshot, published=published
        )

    def run_forever(self, interval: float) -> None:
        """Repeat cycles every ``interval`` seconds until :meth:`stop` is called."""
        logger.info(
            "Starting poll loop",
            extra={"interval_s": interval, "strategy": self.parser.strategy},
        )
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:  # noqa: BLE001 - the loop must outlive any single cycle
                logger.exception("Poll cycle failed")
            self._stop_event.wait(interval)
        logger.info("Poll loop stopped")

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()


@lru_cache
def build_default_service(
    base_path: Optional[str] = None,
    output_path: Optional[str] = None,
    strategy: Optional[str] = None,
) -> SnapshotService:
    """Factory that wires the service from settings."""
    return SnapshotService(
        bus=build_default_bus(base_path),
        parser=build_default_parser(strategy),
        builder=SnapshotBuilder(),
        output=build_default_output(output_path),
    )
