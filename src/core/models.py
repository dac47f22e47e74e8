"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any transport-specific types.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Optional

# Identity keys are plain strings; equality is exact and case is preserved.
IdentityKey = str


@dataclass(frozen=True)
class Mention:
    """One `@<key>` occurrence inside a text buffer."""

    key: IdentityKey
    start_index: int
    end_index: int


@dataclass(frozen=True)
class Segment:
    """A slice of scanned text; `key` is set only for mention segments.

    Mention segments keep the raw `@<key>` slice in `text` so the source can
    always be rebuilt by joining segment texts.
    """

    text: str
    key: Optional[IdentityKey] = None

    @property
    def is_mention(self) -> bool:
        return self.key is not None


@dataclass(frozen=True)
class ConversationRecord:
    """Subset of a post needed to extend its reply chain."""

    author_key: IdentityKey
    mentioned_keys: tuple[IdentityKey, ...] = ()
    post_id: Optional[str] = None
    parent_post_id: Optional[str] = None


@dataclass(frozen=True)
class PayloadEnvelope:
    """Parsed view of a `k:1:<action>:...` transaction payload."""

    action: str
    sender_key: str
    signature: str
    message: str
    mentioned_keys: tuple[IdentityKey, ...]
    post_id: Optional[str] = None

    @property
    def decoded_message(self) -> Optional[str]:
        try:
            return base64.b64decode(self.message, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None


@dataclass(frozen=True)
class NotificationData:
    """One item returned by the notification detail endpoint."""

    id: str
    user_public_key: str
    post_content: str
    timestamp: int
    content_type: str
    cursor: str
    user_nickname: Optional[str] = None
    user_profile_image: Optional[str] = None
    vote_type: Optional[str] = None
    mention_block_time: Optional[int] = None
    content_id: Optional[str] = None
    post_id: Optional[str] = None
    voted_content: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NotificationData":
        """Build from the server's camelCase JSON object.

        Raises KeyError/TypeError/ValueError when required fields are missing
        or malformed; callers translate those into fetch errors.
        """

        return cls(
            id=str(payload["id"]),
            user_public_key=str(payload["userPublicKey"]),
            post_content=str(payload.get("postContent") or ""),
            timestamp=int(payload["timestamp"]),
            content_type=str(payload["contentType"]),
            cursor=str(payload["cursor"]),
            user_nickname=payload.get("userNickname"),
            user_profile_image=payload.get("userProfileImage"),
            vote_type=payload.get("voteType"),
            mention_block_time=payload.get("mentionBlockTime"),
            content_id=payload.get("contentId"),
            post_id=payload.get("postId"),
            voted_content=payload.get("votedContent"),
        )


@dataclass(frozen=True)
class NotificationPage:
    """A page of notifications plus the server's pagination cursors."""

    notifications: list[NotificationData] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None

    @property
    def latest_cursor(self) -> Optional[str]:
        # The server returns newest first.
        if not self.notifications:
            return None
        return self.notifications[0].cursor
