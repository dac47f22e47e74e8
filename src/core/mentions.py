"""Identity reference scanning (core domain).

A mention is `@` followed by exactly 66 hexadecimal characters. The scanner
walks the text by index instead of using a regex so the matching rules are
explicit: a hex run that is shorter or longer than a key is never a mention,
and a match is never trimmed out of a longer run.
"""

from __future__ import annotations

from typing import Iterator, List

from core.models import Mention, Segment

MENTION_MARKER = "@"
KEY_LENGTH = 66
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

TRUNCATE_PREFIX = 4
TRUNCATE_SUFFIX = 4


def _hex_run_length(text: str, start: int, limit: int) -> int:
    """Count consecutive hex characters from `start`, stopping at `limit`."""

    end = start
    stop = min(len(text), start + limit)
    while end < stop and text[end] in HEX_DIGITS:
        end += 1
    return end - start


def is_identity_key(value: str) -> bool:
    """Return True if `value` is exactly one 66-character hex key."""

    return len(value) == KEY_LENGTH and all(ch in HEX_DIGITS for ch in value)


def scan(text: str) -> List[Mention]:
    """Return all mentions in `text`, left to right and non-overlapping."""

    mentions: List[Mention] = []
    index = 0
    while True:
        at = text.find(MENTION_MARKER, index)
        if at == -1:
            return mentions

        key_start = at + 1
        # One extra character tells an exact key apart from a longer run.
        run = _hex_run_length(text, key_start, KEY_LENGTH + 1)
        if run == KEY_LENGTH:
            key_end = key_start + KEY_LENGTH
            mentions.append(Mention(key=text[key_start:key_end], start_index=at, end_index=key_end))
            index = key_end
        else:
            # A hex run holds no "@", so the next candidate is after it.
            index = key_start + run


def iter_segments(text: str) -> Iterator[Segment]:
    """Yield literal and mention segments lazily; call again to restart."""

    last_index = 0
    for mention in scan(text):
        if mention.start_index > last_index:
            yield Segment(text=text[last_index : mention.start_index])
        yield Segment(text=text[mention.start_index : mention.end_index], key=mention.key)
        last_index = mention.end_index
    if last_index < len(text):
        yield Segment(text=text[last_index:])


def annotate(text: str) -> List[Segment]:
    """Split `text` into segments whose texts join back to `text` exactly."""

    return list(iter_segments(text))


def truncate_for_display(key: str, max_length: int = 20) -> str:
    """Shorten a key to `abcd...wxyz` once it exceeds `max_length`.

    `max_length` only decides whether truncation happens; the shortened form
    always keeps four characters on each side.
    """

    if len(key) <= max_length:
        return key
    return f"{key[:TRUNCATE_PREFIX]}...{key[-TRUNCATE_SUFFIX:]}"
