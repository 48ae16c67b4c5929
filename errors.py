"""
Errors - Fatal conditions raised by the shuffle feeder
Each class names the check that failed; main.py reports it and exits.
"""


class ShuffleError(Exception):
    """Base class for every fatal condition."""

    check = 'error'


class ConfigError(ShuffleError):
    """Invalid flags, tweaks or environment values."""

    check = 'configuration'


class ConnectError(ShuffleError):
    """The MPD server could not be reached."""

    check = 'connection'


class AuthenticationError(ShuffleError):
    """MPD rejected a supplied password."""

    check = 'authentication'


class PermissionsError(ShuffleError):
    """The session lacks commands needed to run."""

    check = 'permissions'

    def __init__(self, missing):
        self.missing = sorted(missing)
        super().__init__(
            "MPD user is missing required commands: " + ", ".join(self.missing)
        )


class EmptyChainError(ShuffleError):
    """A pick was requested from a shuffle chain with no tracks."""

    check = 'empty chain'
