"""Shared mention and notification formatting helpers.

Keeping formatting here prevents drift between output channels. Every
rendered mention shows `@` plus the truncated key and carries the full key
alongside it (HTML title, Markdown link title, rich style metadata).
"""

from __future__ import annotations

import base64
import binascii
import html
from typing import Iterable, Optional

from rich.style import Style
from rich.text import Text

from core.mentions import annotate, truncate_for_display
from core.models import NotificationData, Segment

MENTION_STYLE = Style(bold=True, color="cyan")
DEFAULT_MAX_LENGTH = 20


def _escape_md(value: str) -> str:
    for ch in r"\*_[]`":
        value = value.replace(ch, f"\\{ch}")
    return value


def _format_plain(segments: Iterable[Segment], max_length: int) -> str:
    parts = []
    for segment in segments:
        if segment.key is None:
            parts.append(segment.text)
        else:
            parts.append(f"@{truncate_for_display(segment.key, max_length)}")
    return "".join(parts)


def _format_markdown(segments: Iterable[Segment], max_length: int) -> str:
    parts = []
    for segment in segments:
        if segment.key is None:
            parts.append(_escape_md(segment.text))
        else:
            short = truncate_for_display(segment.key, max_length)
            parts.append(f'[@{short}](#{segment.key} "{segment.key}")')
    return "".join(parts)


def _format_html(segments: Iterable[Segment], max_length: int) -> str:
    parts = []
    for segment in segments:
        if segment.key is None:
            parts.append(html.escape(segment.text))
        else:
            key = html.escape(segment.key)
            short = html.escape(truncate_for_display(segment.key, max_length))
            parts.append(f'<span class="mention" title="{key}" data-key="{key}">@{short}</span>')
    return "".join(parts)


def format_segments(segments: Iterable[Segment], mode: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Return the segments rendered for the requested mode."""

    if mode == "plain":
        return _format_plain(segments, max_length)
    if mode == "markdown":
        return _format_markdown(segments, max_length)
    if mode == "html":
        return _format_html(segments, max_length)
    raise ValueError(f"Unsupported mention format: {mode}")


def format_mention_text(text: str, mode: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    return format_segments(annotate(text), mode, max_length)


def to_rich_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> Text:
    """Build a rich Text with mention spans styled and tagged with their key."""

    rendered = Text()
    for segment in annotate(text):
        if segment.key is None:
            rendered.append(segment.text)
        else:
            style = MENTION_STYLE + Style(meta={"key": segment.key})
            rendered.append(f"@{truncate_for_display(segment.key, max_length)}", style=style)
    return rendered


def decode_base64_text(value: Optional[str]) -> str:
    """Decode base64 UTF-8 content from the API; undecodable input yields ''."""

    if not value:
        return ""
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return ""


def format_age(timestamp_ms: int, now_ms: int) -> str:
    """Compact relative age: `3d`, `5h`, `12m` or `now`."""

    diff_ms = max(0, now_ms - timestamp_ms)
    minutes = diff_ms // (1000 * 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return "now"


def describe_action(notification: NotificationData) -> str:
    if notification.content_type == "post":
        return "mentioned you in a post:"
    if notification.content_type == "reply":
        return "mentioned you in a reply:"
    if notification.content_type == "vote":
        verb = "liked" if notification.vote_type == "upvote" else "disliked"
        return f"{verb} your content:"
    return "interacted with your content"


def _notification_header(notification: NotificationData, now_ms: int, max_length: int) -> str:
    nickname = decode_base64_text(notification.user_nickname)
    author = nickname or truncate_for_display(notification.user_public_key, max_length)
    age = format_age(notification.timestamp, now_ms)
    return f"[{age}] {author} {describe_action(notification)}"


def _notification_content(notification: NotificationData) -> str:
    if notification.content_type == "vote":
        return decode_base64_text(notification.voted_content)
    return decode_base64_text(notification.post_content)


def format_notification_line(
    notification: NotificationData,
    now_ms: int,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """One-line plain summary of a notification for terminal output."""

    header = _notification_header(notification, now_ms, max_length)
    excerpt = format_mention_text(_notification_content(notification), "plain", max_length)
    return f"{header} {excerpt}".rstrip()


def notification_to_rich_text(
    notification: NotificationData,
    now_ms: int,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> Text:
    """Rich variant of format_notification_line with styled mentions."""

    rendered = Text(_notification_header(notification, now_ms, max_length), style="dim")
    content = _notification_content(notification)
    if content:
        rendered.append(" ")
        rendered.append_text(to_rich_text(content, max_length))
    return rendered
