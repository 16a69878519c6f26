import random

import pytest

from systems.event_queue import EventQueue, EventType
from systems.rules import load_rules
from systems.session import GameSession


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def rules():
    return load_rules()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def events():
    return EventQueue()


@pytest.fixture
def session(rules, rng, clock, events):
    return GameSession(rules=rules, rng=rng, clock=clock, events=events)


@pytest.fixture
def notifications(events):
    received = []
    events.subscribe(
        EventType.NOTIFICATION,
        lambda e: received.append((e.payload["message"], e.payload["severity"])),
    )
    return received
