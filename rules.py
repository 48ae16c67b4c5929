"""
Rules - Tag based exclusion predicates
A rule excludes a song when every one of its patterns matches the song's tags.
"""

from typing import Dict, Iterable, List, Tuple, Union

TagValue = Union[str, List[str], None]


def _tag_values(value: TagValue) -> List[str]:
    # python-mpd2 returns a list when a tag appears more than once
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


class Rule:
    """
    Exclusion rule built from (tag, value) patterns.
    Matching is a case-insensitive substring test, so a partial album name
    is enough to match it.
    """

    def __init__(self, patterns: Iterable[Tuple[str, str]] = ()):
        self.patterns: List[Tuple[str, str]] = []
        for tag, value in patterns:
            self.add_pattern(tag, value)

    def add_pattern(self, tag: str, value: str):
        self.patterns.append((tag.lower(), value.lower()))

    def matches(self, tags: Dict[str, TagValue]) -> bool:
        """True when every pattern of the rule is found in the song's tags."""
        if not self.patterns:
            return False
        lowered = {key.lower(): value for key, value in tags.items()}
        for tag, value in self.patterns:
            if not any(value in candidate.lower() for candidate in _tag_values(lowered.get(tag))):
                return False
        return True

    def accepts(self, tags: Dict[str, TagValue]) -> bool:
        return not self.matches(tags)

    def __eq__(self, other):
        return isinstance(other, Rule) and self.patterns == other.patterns

    def __repr__(self):
        return f"Rule({self.patterns!r})"


def accepts_all(rules: Iterable[Rule], tags: Dict[str, TagValue]) -> bool:
    """True when no rule excludes the song."""
    return all(rule.accepts(tags) for rule in rules)
