from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional

from settings import get_settings

logger = logging.getLogger(__name__)


class OneWireBus:
    """Filesystem view of the kernel's 1-Wire bus directory.

    Each attached device shows up as a directory named with its family
    prefix and a hex serial, for example ``28-0000001a2b3c``, holding a
    report file the driver regenerates on every read.
    """

    def __init__(
        self,
        base_path: Path,
        device_prefix: str = "28-",
        report_name: str = "w1_slave",
    ) -> None:
        self.base_path = base_path
        self.device_prefix = device_prefix
        self.report_name = report_name
        self._name_pattern = re.compile(re.escape(device_prefix) + r"[0-9A-Fa-f]+")

    def list_sensor_dirs(self) -> List[Path]:
        """Return device directories under the base path, sorted by name."""
        try:
            entries = sorted(self.base_path.iterdir())
        except OSError as exc:
            logger.error(
                "Cannot read sensor base directory: %s",
                exc,
                extra={"sensor_path": str(self.base_path)},
            )
            return []

        sensor_dirs: List[Path] = []
        for entry in entries:
            if not self._name_pattern.fullmatch(entry.name):
                continue
            try:
                is_dir = entry.is_dir()
            except OSError as exc:
                logger.error(
                    "Bad entry in sensor directory: %s",
                    exc,
                    extra={"sensor_path": str(entry)},
                )
                continue
            if is_dir:
                sensor_dirs.append(entry)

        logger.debug(
            "Enumerated sensor directories",
            extra={"sensor_path": str(self.base_path), "sensor_count": len(sensor_dirs)},
        )
        return sensor_dirs

    def locate_report(self, sensor_dir: Path) -> Optional[Path]:
        path = sensor_dir / self.report_name
        try:
            if path.is_file():
                return path
        except OSError as exc:
            logger.error(
                "Cannot stat report file: %s", exc, extra={"sensor_path": str(path)}
            )
            return None
        logger.debug("Sensor has no report file", extra={"sensor_path": str(sensor_dir)})
        return None

    def report_files(self) -> Iterator[Path]:
        for sensor_dir in self.list_sensor_dirs():
            report = self.locate_report(sensor_dir)
            if report is not None:
                yield report


@lru_cache
def build_default_bus(base_path: Optional[str] = None) -> OneWireBus:
    settings = get_settings()
    root = settings.base_path if base_path is None else base_path
    return OneWireBus(
        base_path=Path(root),
        device_prefix=settings.device_prefix,
        report_name=settings.report_name,
    )
