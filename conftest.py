from datetime import datetime, timedelta

import pytest

from library_catalog.library import Library
from library_catalog.main import LibraryManager
from library_catalog.ui_helpers import OUTPUT_MODE_ENV


class FakeClock:
    """Deterministic clock: returns a fixed time until advanced."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 10, 30))


@pytest.fixture
def lib(clock):
    # Each test gets its own store
    return Library(clock=clock)


@pytest.fixture(autouse=True)
def clean_cli_state(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
    LibraryManager.reset_instance()
    yield
    LibraryManager.reset_instance()
