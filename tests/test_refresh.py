"""Tests for the periodic refresh wrapper."""

import asyncio
from typing import Optional

from opendata_catalog.config import RefreshConfig
from opendata_catalog.entities import Entity, EntityKind, EntityMetadata, SystemSpec
from opendata_catalog.errors import DiscoveryError
from opendata_catalog.scheduler import FetchScheduler
from opendata_catalog.sync import EntityProvider, ProviderState, RecordingConnection, ScheduledRefresh


class StubProvider(EntityProvider[str]):
    def __init__(self, items: list[str], delay: float = 0.0, fail: bool = False):
        super().__init__("test", FetchScheduler())
        self.items = items
        self.delay = delay
        self.fail = fail

    @property
    def provider_name(self) -> str:
        return "stub-test"

    async def discover(self) -> list[str]:
        await asyncio.sleep(self.delay)
        if self.fail:
            raise DiscoveryError("listing down")
        return self.items

    async def process_item(self, item: str) -> Optional[list[Entity]]:
        return [Entity(
            kind=EntityKind.SYSTEM,
            metadata=EntityMetadata(name=item),
            spec=SystemSpec(owner="someone"),
        )]


def connected(provider: StubProvider) -> RecordingConnection:
    connection = RecordingConnection()
    asyncio.run(provider.connect(connection))
    return connection


def test_from_config_uses_minutes():
    refresh = ScheduledRefresh.from_config(StubProvider([]), RefreshConfig())

    assert refresh.frequency == 3600
    assert refresh.timeout == 1200


def test_successful_run_returns_report():
    provider = StubProvider(["a", "b"])
    connection = connected(provider)

    report = asyncio.run(ScheduledRefresh(provider).run_once())

    assert report.entities_published == 2
    assert [d.entity.name for d in connection.last_full.entities] == ["a", "b"]


def test_timeout_is_swallowed_and_no_full_is_sent():
    provider = StubProvider(["a"], delay=0.5)
    connection = connected(provider)
    refresh = ScheduledRefresh(provider, frequency=60, timeout=0.01)

    assert asyncio.run(refresh.run_once()) is None
    assert refresh.failures == 1
    assert connection.fulls == []
    assert provider.state is ProviderState.FAILED

    # the next tick can run again
    provider.delay = 0
    assert asyncio.run(refresh.run_once()) is not None
    assert len(connection.fulls) == 1


def test_failure_is_swallowed():
    provider = StubProvider(["a"], fail=True)
    connected(provider)
    refresh = ScheduledRefresh(provider)

    assert asyncio.run(refresh.run_once()) is None
    assert refresh.failures == 1


def test_run_forever_repeats_until_stopped():
    provider = StubProvider(["a"])
    connection = connected(provider)
    refresh = ScheduledRefresh(provider, frequency=0.01, timeout=1)

    async def scenario():
        refresh.start()
        await asyncio.sleep(0.1)
        await refresh.stop()

    asyncio.run(scenario())

    assert refresh.runs >= 2
    assert len(connection.fulls) >= 2
    assert not refresh.is_running
