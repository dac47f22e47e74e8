from __future__ import annotations

import base64

import pytest

from adapters.mention_formatting import (
    format_age,
    format_mention_text,
    format_notification_line,
    notification_to_rich_text,
    to_rich_text,
)
from core.models import NotificationData

KEY = "02" + "ab" * 32
SHORT = KEY[:4] + "..." + KEY[-4:]


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _notification(**overrides) -> NotificationData:
    fields = dict(
        id="n1",
        user_public_key=KEY,
        post_content=_b64(f"hello @{KEY}"),
        timestamp=1_700_000_000_000,
        content_type="post",
        cursor="c1",
    )
    fields.update(overrides)
    return NotificationData(**fields)


def test_plain_mentions_are_truncated() -> None:
    assert format_mention_text(f"hi @{KEY}!", "plain") == f"hi @{SHORT}!"


def test_html_mention_carries_full_key() -> None:
    rendered = format_mention_text(f"<b> @{KEY}", "html")
    assert rendered.startswith("&lt;b&gt; ")
    assert f'title="{KEY}"' in rendered
    assert f">@{SHORT}</span>" in rendered


def test_markdown_mention_carries_full_key() -> None:
    rendered = format_mention_text(f"*bold* @{KEY}", "markdown")
    assert rendered.startswith("\\*bold\\* ")
    assert f'[@{SHORT}](#{KEY} "{KEY}")' in rendered


def test_unknown_mode_raises() -> None:
    with pytest.raises(ValueError):
        format_mention_text("text", "bbcode")


def test_rich_text_styles_mentions() -> None:
    rendered = to_rich_text(f"hey @{KEY} there")
    assert rendered.plain == f"hey @{SHORT} there"
    assert len(rendered.spans) == 1
    span = rendered.spans[0]
    assert rendered.plain[span.start : span.end] == f"@{SHORT}"
    assert span.style.meta == {"key": KEY}


def test_format_age() -> None:
    now = 10 * 24 * 60 * 60 * 1000
    assert format_age(now, now) == "now"
    assert format_age(now - 5 * 60 * 1000, now) == "5m"
    assert format_age(now - 3 * 60 * 60 * 1000, now) == "3h"
    assert format_age(now - 2 * 24 * 60 * 60 * 1000, now) == "2d"
    assert format_age(now + 1000, now) == "now"


def test_notification_line_for_post() -> None:
    line = format_notification_line(_notification(), now_ms=1_700_000_000_000)
    assert line == f"[now] {SHORT} mentioned you in a post: hello @{SHORT}"


def test_notification_line_prefers_nickname_and_vote_content() -> None:
    notification = _notification(
        content_type="vote",
        vote_type="downvote",
        user_nickname=_b64("alice"),
        voted_content=_b64("my take"),
    )
    line = format_notification_line(notification, now_ms=1_700_000_000_000 + 60_000)
    assert line == "[1m] alice disliked your content: my take"


def test_notification_rich_text_matches_plain_line() -> None:
    notification = _notification()
    now_ms = 1_700_000_000_000
    assert notification_to_rich_text(notification, now_ms).plain == format_notification_line(notification, now_ms)
