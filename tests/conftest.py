"""
Test doubles for the MPD server, dialer and password prompt.
"""

import pytest

from errors import AuthenticationError, ConnectError
from mpd_controller import QueueSnapshot

ALL_COMMANDS = frozenset(['add', 'status', 'play', 'pause', 'idle', 'commands', 'listallinfo', 'find'])
REQUIRED = frozenset(['add', 'status', 'play', 'pause', 'idle'])


def song(uri, **tags):
    entry = {'file': uri}
    entry.update(tags)
    return entry


class FakeMPD:
    """In-memory MPD server: library, queue, player state and users."""

    def __init__(self):
        self.db = []
        self.queue = []
        self.position = None
        self.state = 'stop'
        # password -> allowed commands; None is the anonymous user
        self.users = {None: set(ALL_COMMANDS)}
        self.idle_events = ['playlist']
        self.idle_calls = 0

    def play_at(self, index):
        self.position = index
        self.state = 'play'

    def playing(self):
        if self.position is None or self.position >= len(self.queue):
            return None
        return self.queue[self.position]


class FakeSession:
    def __init__(self, mpd, password=None):
        self.mpd = mpd
        self.password = password
        self.closed = False

    def permissions(self):
        return set(self.mpd.users.get(self.password, set()))

    def queue_snapshot(self):
        return QueueSnapshot(self.mpd.queue, self.mpd.position, self.mpd.state)

    def enqueue(self, track):
        self.mpd.queue.append(track)

    def play_at(self, index):
        self.mpd.play_at(index)

    def await_change(self, interest=None):
        self.mpd.idle_calls += 1
        return set(self.mpd.idle_events)

    def list_songs(self):
        return iter(self.mpd.db)

    def close(self):
        self.closed = True


class FakeDialer:
    """Dials a FakeMPD, optionally checking the host and port it was given."""

    def __init__(self, mpd, expect=None):
        self.mpd = mpd
        self.expect = expect
        self.dialed = []
        self.sessions = []

    def dial(self, address):
        self.dialed.append(address)
        if self.expect is not None and (address.host, address.port) != self.expect:
            raise ConnectError(f"could not connect to mpd at {address}")
        if address.password is not None and address.password not in self.mpd.users:
            raise AuthenticationError("incorrect password")
        session = FakeSession(self.mpd, address.password)
        self.sessions.append(session)
        return session


class CountingPasswordProvider:
    """Always returns the same password and counts how often it was asked."""

    def __init__(self, password):
        self.password = password
        self.call_count = 0

    def __call__(self):
        self.call_count += 1
        return self.password


def failing_password_provider():
    pytest.fail("password provider should not have been called")


def restrict_anonymous(mpd, **users):
    """Give the anonymous user no commands and add password users."""
    mpd.users = {None: set()}
    for password, commands in users.items():
        mpd.users[password] = set(commands)


@pytest.fixture
def mpd():
    return FakeMPD()


@pytest.fixture
def session(mpd):
    return FakeSession(mpd)
