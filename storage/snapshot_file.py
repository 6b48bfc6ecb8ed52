from __future__ import annotations

import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

from settings import get_settings

logger = logging.getLogger(__name__)


class SnapshotFile:
    """The published JSON document other processes read.

    With ``atomic`` set the text goes to a temporary file in the same
    directory which then replaces the target, so readers never see a
    partially written snapshot.
    """

    def __init__(self, path: Path, atomic: bool = True) -> None:
        self.path = path
        self.atomic = atomic

    def write(self, text: str) -> bool:
        try:
            if self.atomic:
                self._replace(text)
            else:
                self.path.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.error(
                "Cannot write snapshot: %s", exc, extra={"output_path": str(self.path)}
            )
            return False
        return True

    def read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _replace(self, text: str) -> None:
        directory = self.path.parent
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


@lru_cache
def build_default_output(path: Optional[str] = None) -> SnapshotFile:
    settings = get_settings()
    target = settings.output_path if path is None else path
    return SnapshotFile(path=Path(target), atomic=settings.atomic_write)
