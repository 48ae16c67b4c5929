"""
Configuration Management for the MPD shuffle feeder
Provides default values and environment lookups for the system.
"""

import os


class Config:
    """Central configuration defaults for the shuffle feeder."""

    def __init__(self, environ=None):
        environ = os.environ if environ is None else environ

        # MPD Connection Settings
        self.default_host = 'localhost'
        self.default_port = 6600
        self.env_host = environ.get('MPD_HOST') or None
        self.env_port = environ.get('MPD_PORT') or None

        # Queue Management
        self.queue_buffer = 0                  # Upcoming tracks kept beyond the current one

        # Repetition Avoidance
        self.window_size = 7                   # Picks remembered by the shuffle chain

        # Grouping used by --by-album
        self.album_group_tags = ['album', 'date']

        # Commands the MPD user must be allowed to run
        self.required_commands = frozenset(['add', 'status', 'play', 'pause', 'idle'])

        # MPD subsystems that wake the loop
        self.idle_subsystems = ('playlist', 'player')

    def validate(self):
        """Validate configuration parameters."""
        assert self.queue_buffer >= 0
        assert self.window_size >= 1
        assert 0 < self.default_port < 65536

        return True


# Global config instance
config = Config()
