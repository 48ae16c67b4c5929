"""
Options - Command line and environment parsing
Builds the immutable per-run Options; precedence is flag > environment > default.
"""

import argparse
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from config import Config
from errors import ConfigError
from rules import Rule

PRINT_ALL_SONGS_AND_EXIT = 'print_all_songs_and_exit'
TEST_OPTIONS = (PRINT_ALL_SONGS_AND_EXIT,)


@dataclass(frozen=True)
class Address:
    """MPD server location: hostname or unix socket path, port, optional password."""

    host: str
    port: int
    password: Optional[str] = None

    @classmethod
    def parse(cls, host: str, port: int) -> 'Address':
        """Split an MPD_HOST style `password@host` string."""
        password = None
        # A leading '@' is an abstract socket name, not a password separator.
        if '@' in host[1:]:
            password, _, host = host.rpartition('@')
        return cls(host=host, port=port, password=password or None)

    def with_password(self, password: str) -> 'Address':
        return Address(host=self.host, port=self.port, password=password)

    @property
    def is_socket(self) -> bool:
        return self.host.startswith('/') or self.host.startswith('@')

    def __str__(self):
        if self.is_socket:
            return self.host
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Options:
    """Read-only configuration shared by every component for one run."""

    address: Address = field(default_factory=lambda: Address('localhost', 6600))
    queue_buffer: int = 0
    window_size: int = 7
    only: Optional[int] = None
    file_in: Optional[str] = None
    check_files: bool = True
    exclude: Tuple[Rule, ...] = ()
    group_by: Tuple[str, ...] = ()
    test_options: Tuple[str, ...] = ()

    @property
    def print_all_songs_and_exit(self) -> bool:
        return PRINT_ALL_SONGS_AND_EXIT in self.test_options


class _RaisingParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigError instead of exiting."""

    def error(self, message):
        raise ConfigError(message)


def _non_negative(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {number}")
    return number


def _port(value) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid port {value!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"port out of range: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = _RaisingParser(
        prog='mpd-shuffle',
        description='Keep the MPD queue filled with random tracks',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shuffle the whole library, keeping 3 upcoming tracks queued
  mpd-shuffle --queue-buffer 3

  # Skip an artist, and one album of another artist
  mpd-shuffle -e artist tours -e artist jahzzar album traveller

  # Add 10 random tracks from a list and exit
  mpd-shuffle -f tracks.txt --only 10
        """
    )

    parser.add_argument('--host', help='MPD host, socket path, or password@host')
    parser.add_argument('-p', '--port', help='MPD port')
    parser.add_argument(
        '-q', '--queue-buffer',
        type=_non_negative,
        default=None,
        help='Upcoming tracks to keep queued after the current one (default: 0)'
    )
    parser.add_argument(
        '-o', '--only',
        type=_non_negative,
        default=None,
        help='Add this many tracks to the queue and exit'
    )
    parser.add_argument('-f', '--file', dest='file_in', help="Read track URIs from a file ('-' for stdin)")
    parser.add_argument(
        '-n', '--no-check',
        dest='check_files',
        action='store_false',
        help='Do not check URIs read with --file against the MPD library'
    )
    parser.add_argument(
        '-e', '--exclude',
        nargs='+',
        action='append',
        default=[],
        metavar='TAG VALUE',
        help='Exclude songs whose tags match every TAG VALUE pair (repeatable)'
    )
    parser.add_argument('-g', '--group-by', nargs='+', default=[], metavar='TAG', help='Group picks by these tags')
    parser.add_argument('--by-album', action='store_true', help='Same as --group-by album date')
    parser.add_argument('-t', '--tweak', action='append', default=[], metavar='KEY=VALUE', help='window-size=N')
    parser.add_argument('--test_enable_option_do_not_use', action='append', default=[], help=argparse.SUPPRESS)
    return parser


def _parse_rules(groups: List[List[str]]) -> Tuple[Rule, ...]:
    rules = []
    for group in groups:
        if len(group) % 2:
            raise ConfigError(f"--exclude needs TAG VALUE pairs, got {' '.join(group)!r}")
        rules.append(Rule(zip(group[0::2], group[1::2])))
    return tuple(rules)


def _parse_tweaks(tweaks: List[str], window_size: int) -> int:
    for tweak in tweaks:
        key, sep, value = tweak.partition('=')
        if not sep:
            raise ConfigError(f"tweak must be KEY=VALUE, got {tweak!r}")
        if key.strip() in ('window-size', 'window_size'):
            try:
                window_size = int(value)
            except ValueError:
                raise ConfigError(f"window-size must be an integer, got {value!r}")
            if window_size < 1:
                raise ConfigError(f"window-size must be at least 1, got {window_size}")
        else:
            raise ConfigError(f"unknown tweak {key!r}")
    return window_size


def resolve_address(flag_host: Optional[str], flag_port, defaults: Config) -> Address:
    """Pick host and port with precedence flag > environment > default."""
    host = flag_host or defaults.env_host or defaults.default_host
    if flag_port is not None:
        port = _port(flag_port)
    elif defaults.env_port is not None:
        port = _port(defaults.env_port)
    else:
        port = defaults.default_port
    return Address.parse(host, port)


def parse_args(argv: Sequence[str] = (), environ: Optional[Mapping[str, str]] = None) -> Options:
    """Turn argv and environment into Options. Raises ConfigError on bad input."""
    defaults = Config(environ)
    args = build_parser().parse_args(list(argv))

    group_by = list(args.group_by)
    if args.by_album:
        group_by = list(defaults.album_group_tags)

    for test_option in args.test_enable_option_do_not_use:
        if test_option not in TEST_OPTIONS:
            raise ConfigError(f"unknown test option {test_option!r}")

    if group_by and not args.check_files:
        raise ConfigError("group-by not supported with no-check")

    return Options(
        address=resolve_address(args.host, args.port, defaults),
        queue_buffer=defaults.queue_buffer if args.queue_buffer is None else args.queue_buffer,
        window_size=_parse_tweaks(args.tweak, defaults.window_size),
        only=args.only,
        file_in=args.file_in,
        check_files=args.check_files,
        exclude=_parse_rules(args.exclude),
        group_by=tuple(tag.lower() for tag in group_by),
        test_options=tuple(args.test_enable_option_do_not_use),
    )
