"""
MPD Controller - Integration layer for Music Player Daemon
Wraps a python-mpd2 client in the small session interface the shuffler needs.
"""

import sys
from typing import Dict, Iterable, Iterator, List, Optional, Set

from mpd import CommandError, ConnectionError as MPDConnectionError, MPDClient

from config import config
from errors import AuthenticationError, ConnectError
from options import Address


class QueueSnapshot:
    """
    One reading of the MPD play queue.
    position is None when MPD reports no current song or a pointer past the end.
    """

    def __init__(self, tracks: List[str], position: Optional[int], state: str = 'stop'):
        self.tracks = list(tracks)
        if position is not None and not 0 <= position < len(self.tracks):
            position = None
        self.position = position
        self.state = state

    @property
    def active(self) -> bool:
        """Playing or deliberately paused by the user."""
        return self.state in ('play', 'pause')

    @property
    def remaining(self) -> int:
        """Tracks from the current position to the end, current one included."""
        if self.position is None:
            return 0
        return len(self.tracks) - self.position

    def __len__(self):
        return len(self.tracks)

    def __repr__(self):
        return f"QueueSnapshot(tracks={len(self.tracks)}, position={self.position}, state={self.state!r})"


class MPDSession:
    """Manages all interaction with one connected MPD server."""

    def __init__(self, client: MPDClient, address: Address):
        self.client = client
        self.address = address

    def permissions(self) -> Set[str]:
        """Commands this connection is allowed to run."""
        return set(self.client.commands())

    def queue_snapshot(self) -> QueueSnapshot:
        """Poll MPD for the queue and playback state."""
        status = self.client.status()
        tracks = [song.get('file', '') for song in self.client.playlistinfo()]
        song = status.get('song')
        position = int(song) if song is not None else None
        return QueueSnapshot(tracks, position, status.get('state', 'stop'))

    def enqueue(self, track: str):
        """Add track to the end of the queue."""
        self.client.add(track)

    def play_at(self, index: int):
        """Start playback at a queue position."""
        self.client.play(index)

    def await_change(self, interest: Iterable[str] = None) -> Set[str]:
        """Block until MPD reports a change in one of the given subsystems."""
        if interest is None:
            interest = config.idle_subsystems
        return set(self.client.idle(*interest))

    def list_songs(self) -> Iterator[Dict]:
        """Every song in the MPD database, with its tags."""
        for entry in self.client.listallinfo():
            if 'file' in entry:
                yield entry

    def close(self):
        try:
            self.client.close()
        except (MPDConnectionError, OSError) as e:
            print(f"Error closing MPD connection: {e}", file=sys.stderr)
        finally:
            self.client.disconnect()


class MPDDialer:
    """Opens MPDSession objects, sending a password when the address has one."""

    def __init__(self, timeout: Optional[float] = 10):
        self.timeout = timeout

    def dial(self, address: Address) -> MPDSession:
        client = MPDClient()
        client.timeout = self.timeout
        # idle must block until MPD has something to report
        client.idletimeout = None
        try:
            if address.is_socket:
                client.connect(address.host)
            else:
                client.connect(address.host, address.port)
        except (MPDConnectionError, OSError) as e:
            raise ConnectError(f"could not connect to mpd at {address}: {e}")

        session = MPDSession(client, address)
        if address.password is not None:
            try:
                client.password(address.password)
            except CommandError as e:
                session.close()
                raise AuthenticationError(f"MPD rejected the password: {e}")
        return session
