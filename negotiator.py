"""
Connection Negotiator - Authenticated MPD session with the required commands
Dials once, and prompts for a password at most once when permissions fall short.
"""

import getpass
import sys
from typing import Callable

from config import config
from errors import PermissionsError
from options import Options

PasswordProvider = Callable[[], str]


def prompt_password() -> str:
    """Ask the user for the MPD password on the terminal."""
    return getpass.getpass('mpd password: ')


def missing_commands(session) -> set:
    return set(config.required_commands) - session.permissions()


def connect(dialer, options: Options, password_provider: PasswordProvider = prompt_password):
    """
    Return a session that may run every required command.

    Any authentication failure is fatal straight away. If the first
    session lacks commands and its address had no password, the provider
    is asked once and the server is dialed again with that password;
    otherwise a PermissionsError ends the attempt.
    """
    address = options.address
    session = dialer.dial(address)

    missing = missing_commands(session)
    if not missing:
        print(f"Connected to MPD at {address}", file=sys.stderr)
        return session

    session.close()
    if address.password is not None:
        raise PermissionsError(missing)

    print(f"MPD at {address} requires a password for: {', '.join(sorted(missing))}", file=sys.stderr)
    session = dialer.dial(address.with_password(password_provider()))

    missing = missing_commands(session)
    if missing:
        session.close()
        raise PermissionsError(missing)

    print(f"Connected to MPD at {address} with password", file=sys.stderr)
    return session
