"""
Track Library - Candidate enumeration and shuffle chain loading
Reads songs from the MPD database or a URI list, applies exclusion rules,
and groups the survivors into shuffle chain pools.
"""

import sys
from collections import OrderedDict
from typing import Dict, Iterable, Iterator, Optional, Sequence, TextIO

from errors import ConfigError
from options import Options
from rules import Rule, accepts_all
from shuffle_chain import ShuffleChain


def songs_from_mpd(session, rules: Sequence[Rule] = ()) -> Iterator[Dict]:
    """Songs from the MPD database that no rule excludes."""
    for song in session.list_songs():
        if accepts_all(rules, song):
            yield song


def songs_from_file(lines: Iterable[str],
                    rules: Sequence[Rule] = (),
                    session=None,
                    check: bool = True) -> Iterator[Dict]:
    """
    Songs named by a list of URIs, one per line.

    With check, the library is listed once and URIs missing from it are
    dropped; the library's tags are then matched against the rules.
    Without check, every URI is taken as is and rules are not applied.
    """
    library = None
    if check:
        if session is None:
            raise ConfigError("checking URIs against the library needs an MPD connection")
        library = {song['file']: song for song in session.list_songs()}

    missing = 0
    for line in lines:
        uri = line.strip()
        if not uri:
            continue
        if library is None:
            yield {'file': uri}
            continue
        song = library.get(uri)
        if song is None:
            missing += 1
            continue
        if accepts_all(rules, song):
            yield song

    if missing:
        print(f"Warning: {missing} URIs not found in the MPD library were skipped", file=sys.stderr)


def group_key(song: Dict, group_by: Sequence[str]) -> tuple:
    key = []
    for tag in group_by:
        value = song.get(tag)
        if isinstance(value, list):
            value = value[0] if value else None
        key.append(value)
    return tuple(key)


def build_chain(songs: Iterable[Dict], chain: ShuffleChain, group_by: Sequence[str] = ()) -> int:
    """
    Add songs to the chain, one pool per distinct group_by key.
    Without group_by every song goes to the default pool.
    Returns the number of songs added.
    """
    if not group_by:
        count = 0
        for song in songs:
            chain.add(song['file'])
            count += 1
        return count

    groups = OrderedDict()
    for song in songs:
        groups.setdefault(group_key(song, group_by), []).append(song['file'])

    for key, tracks in groups.items():
        chain.add_group(tracks, group=key)
    return sum(len(tracks) for tracks in groups.values())


def load_chain(session, options: Options, stdin: Optional[TextIO] = None) -> ShuffleChain:
    """Build the shuffle chain for a run from the configured library source."""
    chain = ShuffleChain(window_size=options.window_size)

    if options.file_in is None:
        print("Loading tracks from the MPD database...", file=sys.stderr)
        songs = songs_from_mpd(session, options.exclude)
        count = build_chain(songs, chain, options.group_by)
    elif options.file_in == '-':
        print("Loading tracks from stdin...", file=sys.stderr)
        stdin = stdin if stdin is not None else sys.stdin
        songs = songs_from_file(stdin, options.exclude, session, options.check_files)
        count = build_chain(songs, chain, options.group_by)
    else:
        print(f"Loading tracks from {options.file_in}...", file=sys.stderr)
        with open(options.file_in, encoding='utf-8') as f:
            songs = songs_from_file(f, options.exclude, session, options.check_files)
            count = build_chain(songs, chain, options.group_by)

    print(f"Loaded {count} tracks in {len(chain.pools)} pools", file=sys.stderr)
    return chain
