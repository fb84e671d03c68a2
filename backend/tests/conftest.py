import pytest
from fastapi.testclient import TestClient

from connect4.main import create_app
from connect4.pairing import Lobby


# Ничья: пары колонок (0,1), (2,3) и тройка (4,5,6), ни одной линии из четырёх.
DRAW_SEQUENCE = (
    [0, 1, 0, 1, 1, 0, 1, 0, 0, 1, 1, 0]
    + [2, 3, 2, 3, 3, 2, 3, 2, 2, 3, 3, 2]
    + [4, 5, 6, 5, 4, 4, 6, 6, 5, 4, 5, 6, 4, 5, 6, 4, 5, 6]
)


class Outbox(list):
    """Собирает уведомления, отправленные одной сессии."""

    def last(self):
        return self[-1]

    def take(self):
        items = list(self)
        self.clear()
        return items


@pytest.fixture()
def draw_sequence():
    return list(DRAW_SEQUENCE)


@pytest.fixture()
def lobby():
    return Lobby()


@pytest.fixture()
def connect(lobby):
    def _connect(nickname=None):
        outbox = Outbox()
        session = lobby.connect(outbox.append)
        if nickname is not None:
            session.nick(nickname)
        outbox.clear()
        return session, outbox
    return _connect


@pytest.fixture()
def pair(connect):
    """Две сессии в игре: alice приняла вызов bob, значит alice — player-one."""
    def _pair():
        bob, bob_out = connect("bob")
        alice, alice_out = connect("alice")
        bob.challenge("alice")
        alice.accept()
        bob_out.clear()
        alice_out.clear()
        return (alice, alice_out), (bob, bob_out)
    return _pair


@pytest.fixture()
def client():
    # один портал на все подключения: сессии делят event loop
    with TestClient(create_app()) as test_client:
        yield test_client
