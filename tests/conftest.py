"""Shared fixtures for wifi-radar tests."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest


class FakeClock:
    """Manually stepped clock; sleep() advances time instead of waiting."""

    def __init__(self, start: datetime | None = None) -> None:
        self.start = start or datetime(2024, 1, 1, tzinfo=UTC)
        self.offset = 0.0
        self.sleeps: list[float] = []

    def advance(self, seconds: float) -> None:
        self.offset += seconds

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.offset)

    def monotonic(self) -> float:
        return self.offset

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.offset += seconds
        # Let other tasks run, as a real sleep would.
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep the developer's own config file out of the tests."""
    monkeypatch.delenv("WIFIRADAR_CONFIG_PATH", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
