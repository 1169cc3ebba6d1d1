"""Tests for caretpop.utils -- terminal text utilities."""

from __future__ import annotations

from caretpop.tui import CURSOR_MARKER
from caretpop.utils import (
    extract_ansi_code,
    extract_segments,
    graphemes_with_index,
    is_whitespace_char,
    strip_ansi,
    truncate_to_width,
    visible_width,
)


class TestVisibleWidth:
    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_ansi_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[1m\x1b[31mabc\x1b[0m") == 3

    def test_cursor_marker_does_not_count(self) -> None:
        assert visible_width("ab" + CURSOR_MARKER + "c") == 3

    def test_wide_cjk_characters_count_as_two(self) -> None:
        assert visible_width("A世B") == 4

    def test_tab_counts_as_three_cells(self) -> None:
        assert visible_width("a\tb") == 5

    def test_combining_mark_is_zero_width(self) -> None:
        assert visible_width("e\u0301") == 1


class TestAnsi:
    def test_strip_ansi(self) -> None:
        assert strip_ansi("\x1b[7mx\x1b[0m") == "x"

    def test_extract_csi(self) -> None:
        assert extract_ansi_code("\x1b[31mred", 0) == ("\x1b[31m", 5)

    def test_extract_apc(self) -> None:
        code = extract_ansi_code(CURSOR_MARKER + "x", 0)
        assert code == (CURSOR_MARKER, len(CURSOR_MARKER))

    def test_plain_text_is_not_a_code(self) -> None:
        assert extract_ansi_code("abc", 0) is None


class TestTruncateToWidth:
    def test_short_text_unchanged(self) -> None:
        assert truncate_to_width("abc", 10) == "abc"

    def test_pad(self) -> None:
        assert truncate_to_width("abc", 5, pad=True) == "abc  "

    def test_truncates_with_ellipsis(self) -> None:
        assert truncate_to_width("abcdefgh", 6) == "abc..."

    def test_custom_ellipsis(self) -> None:
        assert truncate_to_width("abcdefgh", 4, "…") == "abc…"

    def test_wide_characters_are_not_split(self) -> None:
        result = truncate_to_width("日本語", 3, "")
        assert result == "日"
        assert visible_width(result) == 2

    def test_zero_width(self) -> None:
        assert truncate_to_width("abc", 0) == ""


class TestExtractSegments:
    def test_splits_around_overlay_columns(self) -> None:
        before, after = extract_segments("abcdefghij", 2, 5, 5)
        assert before == "ab"
        assert after == "fghij"

    def test_wide_character_cut_becomes_spaces(self) -> None:
        before, after = extract_segments("a日b", 2, 2, 2)
        assert before == "a "
        assert after == " b"

    def test_ansi_codes_kept_in_before(self) -> None:
        before, _ = extract_segments("\x1b[1mabc", 2, 3, 0)
        assert before == "\x1b[1mab"


class TestGraphemes:
    def test_indices_follow_code_units(self) -> None:
        assert graphemes_with_index("ae\u0301b") == [("a", 0), ("e\u0301", 1), ("b", 3)]

    def test_whitespace(self) -> None:
        assert is_whitespace_char(" ")
        assert is_whitespace_char("\t")
        assert not is_whitespace_char("a")
