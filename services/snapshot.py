"""Aggregation of one cycle's readings into the published snapshot."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from app.schemas import Snapshot, SnapshotEntry
from models.records import SensorReading

logger = logging.getLogger(__name__)


@dataclass
class SnapshotSummary:
    """Counts and extremes for a built snapshot."""

    sensor_count: int = 0
    min_temperature: float | None = None
    max_temperature: float | None = None
    duplicate_ids: List[str] = field(default_factory=list)


class SnapshotBuilder:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(self) -> None:
        self.last_summary = SnapshotSummary()

    def build(self, readings: Iterable[SensorReading]) -> Snapshot:
        """Key readings by sensor id; the first reading for an id wins."""
        entries: Dict[str, SnapshotEntry] = {}
        summary = SnapshotSummary()

        for reading in readings:
            if reading.sensor_id in entries:
                summary.duplicate_ids.append(reading.sensor_id)
                logger.warning(
                    "Dropping reading with duplicate sensor id",
                    extra={"sensor_id": reading.sensor_id},
                )
                continue

            entries[reading.sensor_id] = SnapshotEntry(
                timestamp=reading.timestamp,
                temperature=reading.temperature_c,
            )
            value = reading.temperature_c
            if summary.min_temperature is None or value < summary.min_temperature:
                summary.min_temperature = value
            if summary.max_temperature is None or value > summary.max_temperature:
                summary.max_temperature = value

        summary.sensor_count = len(entries)
        self.last_summary = summary
        return Snapshot(entries)


def render_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot as indented JSON with a trailing newline."""
    payload = snapshot.model_dump(mode="json")
    if not payload:
        return "{}\n"
    return json.dumps(payload, indent=2) + "\n"
