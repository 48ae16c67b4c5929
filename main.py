"""
Main Orchestration - MPD shuffle feeder
Connects to MPD, loads the library into a shuffle chain, and keeps the queue full.
"""

import sys
from typing import Sequence

from mpd import MPDError

from config import config
from errors import ShuffleError
from mpd_controller import MPDDialer
from negotiator import connect, prompt_password
from options import parse_args
from queue_manager import LoopHooks, QueueManager
from track_library import load_chain


class ShuffleFeeder:
    """Main orchestrator for one shuffle session."""

    def __init__(self, options, dialer=None, password_provider=prompt_password, hooks: LoopHooks = None):
        self.options = options
        self.dialer = dialer or MPDDialer()
        self.password_provider = password_provider
        self.hooks = hooks
        self.session = None

    def print_songs(self, chain, out):
        """Print every chain entry; with group_by, a '---' line ends each group."""
        for pool in chain.pools:
            for track in pool.tracks:
                print(track, file=out)
            if self.options.group_by:
                print('---', file=out)

    def run(self, out=None):
        """Connect, build the chain, then feed MPD until told to stop."""
        out = out or sys.stdout
        self.session = connect(self.dialer, self.options, self.password_provider)
        try:
            chain = load_chain(self.session, self.options)

            if self.options.print_all_songs_and_exit:
                self.print_songs(chain, out)
                return

            queue_manager = QueueManager(self.session, chain, self.options, self.hooks)
            if self.options.only is not None:
                queue_manager.enqueue_only(self.options.only)
                return

            queue_manager.run()
        finally:
            self.session.close()


def main(argv: Sequence[str] = None) -> int:
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]

    try:
        config.validate()
        options = parse_args(argv)
        ShuffleFeeder(options).run()
    except ShuffleError as e:
        print(f"ERROR: {e.check} check failed: {e}", file=sys.stderr)
        return 1
    except MPDError as e:
        print(f"ERROR: MPD command failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
