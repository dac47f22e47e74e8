from __future__ import annotations

import base64
import json

from core.models import ConversationRecord
from core.reply_chain import (
    build_reply_mentions,
    decode_mentions,
    describe_reply_chain,
    parse_envelope,
    validate_keys,
)

RAW_A = "a" * 64
RAW_B = "b" * 64
RAW_C = "c" * 64


def test_build_reply_mentions_dedups_and_strips_placeholders() -> None:
    target = ConversationRecord(author_key="A", mentioned_keys=("B", "A", "", "you"))
    result = build_reply_mentions(target)
    assert set(result) == {"A", "B"}
    assert result[0] == "A"
    assert len(result) == 2


def test_build_reply_mentions_keeps_insertion_order() -> None:
    target = ConversationRecord(author_key=RAW_C, mentioned_keys=(RAW_A, RAW_B, RAW_A))
    assert build_reply_mentions(target) == [RAW_C, RAW_A, RAW_B]


def test_build_reply_mentions_skips_whitespace_and_empty_author() -> None:
    target = ConversationRecord(author_key="", mentioned_keys=("  ", RAW_A, "\t"))
    assert build_reply_mentions(target) == [RAW_A]


def test_build_reply_mentions_extends_chain_by_union() -> None:
    root = ConversationRecord(author_key=RAW_A)
    first_reply = ConversationRecord(author_key=RAW_B, mentioned_keys=tuple(build_reply_mentions(root)))
    second_reply = ConversationRecord(author_key=RAW_C, mentioned_keys=tuple(build_reply_mentions(first_reply)))
    assert build_reply_mentions(second_reply) == [RAW_C, RAW_B, RAW_A]


def test_decode_post_mentions() -> None:
    assert decode_mentions('k:1:post:SENDER:SIG:bXNn:["A","B"]') == ["A", "B"]


def test_decode_reply_mentions() -> None:
    payload = f"k:1:reply:SENDER:SIG:POSTID:bXNn:{json.dumps([RAW_A, RAW_B])}"
    assert decode_mentions(payload) == [RAW_A, RAW_B]


def test_decode_rejects_wrong_protocol_or_version() -> None:
    assert decode_mentions('x:1:post:SENDER:SIG:bXNn:["A"]') == []
    assert decode_mentions('k:2:post:SENDER:SIG:bXNn:["A"]') == []


def test_decode_degrades_on_bad_input() -> None:
    assert decode_mentions("k:1:post:SENDER:SIG") == []
    assert decode_mentions('k:1:reply:SENDER:SIG:bXNn:["A"]') == []
    assert decode_mentions("k:1:post:SENDER:SIG:bXNn:[not json") == []
    assert decode_mentions('k:1:post:SENDER:SIG:bXNn:{"a":1}') == []
    assert decode_mentions("k:1:vote:SENDER:SIG:POSTID:upvote") == []
    assert decode_mentions("") == []
    assert decode_mentions("k") == []
    assert decode_mentions(None) == []  # type: ignore[arg-type]


def test_parse_envelope_fields() -> None:
    message = base64.b64encode("hello there".encode("utf-8")).decode("ascii")
    payload = f"k:1:reply:SENDER:SIG:POSTID:{message}:{json.dumps([RAW_A])}"
    envelope = parse_envelope(payload)
    assert envelope is not None
    assert envelope.action == "reply"
    assert envelope.sender_key == "SENDER"
    assert envelope.signature == "SIG"
    assert envelope.post_id == "POSTID"
    assert envelope.mentioned_keys == (RAW_A,)
    assert envelope.decoded_message == "hello there"


def test_parse_envelope_post_has_no_post_id() -> None:
    envelope = parse_envelope('k:1:post:SENDER:SIG:bXNn:[]')
    assert envelope is not None
    assert envelope.post_id is None
    assert envelope.decoded_message == "msg"
    assert envelope.mentioned_keys == ()


def test_validate_keys() -> None:
    assert validate_keys([RAW_A])
    assert validate_keys([])
    assert validate_keys(["0123456789abcdefABCDEF" * 2 + "0" * 20])
    assert not validate_keys(["a" * 66])
    assert not validate_keys(["g" * 64])
    assert not validate_keys([RAW_A, 42])  # type: ignore[list-item]
    assert not validate_keys(RAW_A)  # type: ignore[arg-type]
    assert not validate_keys(None)  # type: ignore[arg-type]


def test_describe_reply_chain() -> None:
    target = ConversationRecord(author_key=RAW_A, mentioned_keys=(RAW_B,), post_id="p1")
    mentions = build_reply_mentions(target)
    summary = describe_reply_chain(target, mentions, current_user_key=RAW_C)
    assert "Target post: p1" in summary
    assert f"Current user: {RAW_C}" in summary
    assert "Chain length: 3 users" in summary
