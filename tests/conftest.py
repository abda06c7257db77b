from datetime import datetime, timedelta, timezone

import pytest

from quicket.infrastructure.storage import InMemoryKeyValueStore
from quicket.tickets.application import TicketCreateDTO
from quicket.tickets.infrastructure import ConfigStore, TicketRepository

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock the tests move by hand."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def config_store(store):
    return ConfigStore(store)


@pytest.fixture
def repository(store, config_store, clock):
    return TicketRepository(store, config_store=config_store, clock=clock)


@pytest.fixture
def submission():
    def _build(**overrides):
        data = {
            "title": "Printer jam",
            "description": "Third floor printer is jammed.",
            "name": "Alex Kim",
            "contact_type": "email",
            "contact_value": "alex@example.com",
        }
        data.update(overrides)
        return TicketCreateDTO(**data)

    return _build
