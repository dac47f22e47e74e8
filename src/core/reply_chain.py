"""Reply-chain mention propagation and payload decoding (core domain).

Every reply carries the full list of participants to notify. Building that
list is a set union of the target's author and the target's own stored list,
so the chain stays addressable without any server-side graph. The union
trusts upstream writers: a list that was built wrongly further up the chain
is carried forward as-is.

Payload layout:
- post:  k:1:post:<sender>:<signature>:<base64 message>:<mentions JSON>
- reply: k:1:reply:<sender>:<signature>:<post id>:<base64 message>:<mentions JSON>
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional

from core.models import ConversationRecord, PayloadEnvelope

LOGGER = logging.getLogger(__name__)

PROTOCOL = "k"
VERSION = "1"
SEPARATOR = ":"

# Minimum field counts and the index of the mentions JSON for each action.
ACTION_LAYOUTS = {
    "post": (7, 6),
    "reply": (8, 7),
}

# Placeholder written by old clients before the author key was resolved.
UNRESOLVED_USER_PLACEHOLDER = "you"

RAW_KEY_LENGTH = 64
_HEX = frozenset("0123456789abcdefABCDEF")


def build_reply_mentions(target: ConversationRecord) -> List[str]:
    """Return the mention list to embed when replying to `target`."""

    ordered: dict[str, None] = {}
    if target.author_key:
        ordered[target.author_key] = None
    for key in target.mentioned_keys:
        if key and key.strip():
            ordered[key] = None

    ordered.pop(UNRESOLVED_USER_PLACEHOLDER, None)
    ordered.pop("", None)
    return list(ordered)


def _parse_key_list(raw: str) -> Optional[tuple[str, ...]]:
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return tuple(value)


def parse_envelope(envelope: str) -> Optional[PayloadEnvelope]:
    """Parse a post/reply payload, or return None if it is not one."""

    if not isinstance(envelope, str):
        return None

    parts = envelope.split(SEPARATOR)
    if len(parts) < 3 or parts[0] != PROTOCOL or parts[1] != VERSION:
        return None

    action = parts[2]
    layout = ACTION_LAYOUTS.get(action)
    if layout is None:
        return None
    min_fields, mentions_index = layout
    if len(parts) < min_fields:
        LOGGER.debug("Payload too short for %s: %s fields", action, len(parts))
        return None

    mentioned_keys = _parse_key_list(parts[mentions_index])
    if mentioned_keys is None:
        LOGGER.debug("Unparseable mention list in %s payload", action)
        return None

    return PayloadEnvelope(
        action=action,
        sender_key=parts[3],
        signature=parts[4],
        post_id=parts[5] if action == "reply" else None,
        message=parts[mentions_index - 1],
        mentioned_keys=mentioned_keys,
    )


def decode_mentions(envelope: str) -> List[str]:
    """Return the mention list embedded in a payload; never raises."""

    parsed = parse_envelope(envelope)
    if parsed is None:
        return []
    return list(parsed.mentioned_keys)


def validate_keys(keys: Iterable[str]) -> bool:
    """Check that every entry is a raw 64-character hex public key.

    Ledger payloads store unprefixed keys, unlike the 66-character form used
    in `@` mentions.
    """

    if not isinstance(keys, (list, tuple)):
        return False
    return all(
        isinstance(key, str) and len(key) == RAW_KEY_LENGTH and all(ch in _HEX for ch in key)
        for key in keys
    )


def describe_reply_chain(
    target: ConversationRecord,
    mentioned_keys: List[str],
    current_user_key: Optional[str] = None,
) -> str:
    """Render a debugging summary of how a reply's mention list was built."""

    lines = [
        "Reply chain:",
        f"Target post: {target.post_id or 'N/A'}",
        f"Target parent: {target.parent_post_id or 'N/A'}",
        f"Target author: {target.author_key or 'N/A'}",
        f"Target mentions: {json.dumps(list(target.mentioned_keys))}",
        f"Current user: {current_user_key or 'N/A'}",
        f"Final mentions: {json.dumps(mentioned_keys)}",
        # The replying user is the extra link in the chain.
        f"Chain length: {len(mentioned_keys) + 1} users",
    ]
    return "\n".join(lines)
