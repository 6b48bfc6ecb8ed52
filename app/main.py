from __future__ import annotations

import signal
from contextlib import contextmanager
from typing import Iterator, Optional

from logging_config import configure_logging
from services.poller import SnapshotService, build_default_service
from settings import get_settings


@contextmanager
def service_lifespan(
    base_path: Optional[str] = None,
    output_path: Optional[str] = None,
    strategy: Optional[str] = None,
) -> Iterator[SnapshotService]:
    service = build_default_service(base_path, output_path, strategy)
    try:
        yield service
    finally:
        service.stop()
        build_default_service.cache_clear()


def install_signal_handlers(service: SnapshotService) -> None:
    """Stop the poll loop on SIGINT or SIGTERM."""

    def _handle(_signum: int, _frame: object) -> None:
        service.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def run(
    base_path: Optional[str] = None,
    output_path: Optional[str] = None,
    interval: Optional[float] = None,
    strategy: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    configure_logging(log_file=log_file)
    poll_interval = interval if interval is not None else get_settings().poll_interval
    with service_lifespan(base_path, output_path, strategy) as service:
        install_signal_handlers(service)
        service.run_forever(poll_interval)


if __name__ == "__main__":
    run()
