"""
Queue Manager - Keeps the MPD queue filled from the shuffle chain
Maintains a rolling buffer of upcoming tracks and keeps playback going.
"""

import sys
from typing import Callable, List

from config import config
from mpd_controller import QueueSnapshot
from options import Options


def _forever() -> bool:
    return True


class LoopHooks:
    """
    Controls for the main loop.
    keep_running is asked once per iteration, before waiting on MPD.
    """

    def __init__(self, skip_init: bool = False, keep_running: Callable[[], bool] = _forever):
        self.skip_init = skip_init
        self.keep_running = keep_running


class QueueManager:
    """
    Keeps queue_buffer + 1 tracks queued from the current position onward
    (the +1 being the track that is playing).
    """

    def __init__(self, session, chain, options: Options, hooks: LoopHooks = None):
        self.session = session
        self.chain = chain
        self.queue_buffer = options.queue_buffer
        self.hooks = hooks or LoopHooks()

    def tracks_needed(self, snapshot: QueueSnapshot) -> int:
        return self.queue_buffer + 1 - snapshot.remaining

    def _enqueue(self, count: int) -> List[str]:
        added = []
        for _ in range(count):
            track = self.chain.pick()
            self.session.enqueue(track)
            added.append(track)
        return added

    def initialize_queue(self):
        """
        Attach to MPD at startup.
        Leaves an active player alone; otherwise queues a fresh track after
        whatever is already there, plays it, and fills the buffer.
        """
        snapshot = self.session.queue_snapshot()
        if snapshot.active:
            print("MPD is already playing, attaching silently", file=sys.stderr)
            return

        start = len(snapshot)
        self._enqueue(1)
        self.session.play_at(start)
        print(f"Started playback at queue position {start}", file=sys.stderr)
        self.check_and_refill()

    def check_and_refill(self) -> int:
        """
        Top the queue back up after a change.
        Playback is only started when MPD has no current position, i.e. the
        queue was empty or has been played through. Returns tracks added.
        """
        snapshot = self.session.queue_snapshot()
        needed = self.tracks_needed(snapshot)
        if needed <= 0:
            return 0

        start = len(snapshot)
        added = self._enqueue(needed)
        print(f"Added {len(added)} tracks to the queue", file=sys.stderr)

        if snapshot.position is None:
            self.session.play_at(start)
        return len(added)

    def enqueue_only(self, count: int):
        """Add count tracks and return, leaving playback as it is."""
        self._enqueue(count)
        print(f"Added {count} tracks to the queue", file=sys.stderr)

    def run(self):
        """Main event loop: initial fill, then refill on every MPD change."""
        if not self.hooks.skip_init:
            self.initialize_queue()

        while self.hooks.keep_running():
            self.session.await_change(config.idle_subsystems)
            self.check_and_refill()
