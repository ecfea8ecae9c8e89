import itertools
import json

import pytest

from dispatcher import Dispatcher
from registry import ClientRegistry

_ids = itertools.count(1)


class FakeConnection:
    """In-memory stand-in for a transport connection that records what it was sent."""

    def __init__(self, is_open=True):
        self.id = next(_ids)
        self.display_name = None
        self.is_open = is_open
        self.sent = []

    def send(self, text):
        self.sent.append(text)

    @property
    def messages(self):
        return [json.loads(text) for text in self.sent]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def registry():
    return ClientRegistry()


@pytest.fixture
def dispatcher(registry):
    return Dispatcher(registry)


@pytest.fixture
def join(dispatcher):
    """Join a fresh connection under ``nickname`` and discard its welcome."""
    def _join(nickname):
        connection = FakeConnection()
        dispatcher.on_parsed(connection, {"action": "joinChat", "nickname": nickname})
        connection.clear()
        return connection
    return _join
