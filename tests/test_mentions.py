from __future__ import annotations

from core.mentions import annotate, is_identity_key, iter_segments, scan, truncate_for_display

KEY_A = "02" + "a" * 64
KEY_B = "03" + "0123456789abcdefABCDEF" * 2 + "0" * 20


def test_scan_single_key_spans_whole_match() -> None:
    text = "@" + "a" * 66
    mentions = scan(text)
    assert len(mentions) == 1
    assert mentions[0].key == "a" * 66
    assert mentions[0].start_index == 0
    assert mentions[0].end_index == 67


def test_scan_rejects_short_and_long_runs() -> None:
    assert scan("@" + "a" * 65) == []
    assert scan("@" + "a" * 67) == []
    assert scan("@" + "a" * 60 + "zzzzzz") == []


def test_scan_without_mentions_is_empty() -> None:
    assert scan("") == []
    assert scan("hello world, mail me at x@y.z") == []
    assert scan("@@@") == []


def test_scan_multiple_mentions_left_to_right() -> None:
    text = f"hi @{KEY_A} and @{KEY_B}!"
    mentions = scan(text)
    assert [m.key for m in mentions] == [KEY_A, KEY_B]
    assert mentions[0].start_index == 3
    assert mentions[0].end_index == 3 + 1 + 66
    assert mentions[1].start_index > mentions[0].end_index
    for mention in mentions:
        assert text[mention.start_index : mention.end_index] == "@" + mention.key


def test_scan_preserves_case() -> None:
    upper = "02" + "A" * 64
    assert scan("@" + upper)[0].key == upper


def test_scan_after_stray_marker() -> None:
    text = f"@@{KEY_A}"
    mentions = scan(text)
    assert len(mentions) == 1
    assert mentions[0].start_index == 1


def test_adjacent_mentions() -> None:
    text = f"@{KEY_A}@{KEY_B}"
    assert [m.key for m in scan(text)] == [KEY_A, KEY_B]


def test_annotate_reconstructs_input() -> None:
    samples = [
        "",
        "plain text",
        f"@{KEY_A}",
        f"start @{KEY_A} middle @{KEY_B} end",
        f"@{KEY_A}@{KEY_B} tail",
        "@" + "a" * 67 + " not a mention",
    ]
    for text in samples:
        segments = annotate(text)
        assert "".join(segment.text for segment in segments) == text
        assert all(segment.text for segment in segments)


def test_annotate_marks_mention_segments() -> None:
    segments = annotate(f"hey @{KEY_A}.")
    assert [segment.is_mention for segment in segments] == [False, True, False]
    assert segments[1].key == KEY_A
    assert segments[1].text == f"@{KEY_A}"


def test_iter_segments_is_restartable() -> None:
    text = f"a @{KEY_A} b"
    first = list(iter_segments(text))
    second = list(iter_segments(text))
    assert first == second
    assert len(first) == 3


def test_truncate_for_display() -> None:
    assert truncate_for_display(KEY_A) == KEY_A[:4] + "..." + KEY_A[-4:]
    assert len(truncate_for_display(KEY_A)) == 11
    assert truncate_for_display("short") == "short"
    assert truncate_for_display("x" * 20) == "x" * 20
    # max_length only gates truncation; the 4+4 shape is fixed.
    assert truncate_for_display(KEY_A, max_length=25) == KEY_A[:4] + "..." + KEY_A[-4:]
    assert truncate_for_display(KEY_A, max_length=66) == KEY_A


def test_is_identity_key() -> None:
    assert is_identity_key(KEY_A)
    assert not is_identity_key("a" * 64)
    assert not is_identity_key("g" * 66)
