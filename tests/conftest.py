from __future__ import annotations

import pytest

from services.poller import build_default_service
from services.report_parser import build_default_parser
from settings import get_settings
from storage.snapshot_file import build_default_output
from storage.w1_bus import build_default_bus

_CACHES = (
    get_settings,
    build_default_bus,
    build_default_parser,
    build_default_output,
    build_default_service,
)


@pytest.fixture(autouse=True)
def clear_factory_caches():
    for cache in _CACHES:
        cache.cache_clear()
    yield
    for cache in _CACHES:
        cache.cache_clear()
