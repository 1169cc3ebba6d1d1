"""Tests for caretpop.keys and caretpop.keybindings."""

from __future__ import annotations

import pytest

from caretpop.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    EditorKeybindingsManager,
    get_editor_keybindings,
    set_editor_keybindings,
)
from caretpop.keys import Key, is_printable, matches_key, parse_key, raw_ctrl_char


class TestMatchesKey:
    @pytest.mark.parametrize(
        ("data", "key_id"),
        [
            ("\x1b[A", Key.UP),
            ("\x1bOB", Key.DOWN),
            ("\x1b[H", Key.HOME),
            ("\x1b[4~", Key.END),
            ("\r", Key.ENTER),
            ("\t", Key.TAB),
            ("\x1b", Key.ESCAPE),
            ("\x7f", Key.BACKSPACE),
            ("\x1b[3~", Key.DELETE),
            ("\x1b[Z", "shift+tab"),
            ("\x1b\r", "alt+enter"),
        ],
    )
    def test_legacy_sequences(self, data: str, key_id: str) -> None:
        assert matches_key(data, key_id)

    def test_ctrl_letters(self) -> None:
        assert matches_key("\x01", "ctrl+a")
        assert matches_key("\x03", "ctrl+c")
        assert not matches_key("a", "ctrl+a")

    def test_alt_letter(self) -> None:
        assert matches_key("\x1bx", "alt+x")

    def test_aliases(self) -> None:
        assert matches_key("\x1b", "esc")
        assert matches_key("\r", "return")

    def test_plain_character(self) -> None:
        assert matches_key(".", ".")
        assert not matches_key(".", ",")

    def test_raw_ctrl_char(self) -> None:
        assert raw_ctrl_char("a") == "\x01"
        assert raw_ctrl_char("[") == "\x1b"
        assert raw_ctrl_char("ab") is None


class TestParseKey:
    def test_known_sequences(self) -> None:
        assert parse_key("\x1b[A") == "up"
        assert parse_key("\x04") == "ctrl+d"
        assert parse_key("q") == "q"

    def test_unknown_sequence(self) -> None:
        assert parse_key("\x1b[99~") is None


class TestIsPrintable:
    def test_text_is_printable(self) -> None:
        assert is_printable("a")
        assert is_printable("hello world")
        assert is_printable("日本")

    def test_control_input_is_not_printable(self) -> None:
        for data in ("", "\x1b", "\x1b[A", "\x7f", "\t", "\x03"):
            assert not is_printable(data), repr(data)


class TestEditorKeybindings:
    def test_defaults_cover_popup_navigation(self) -> None:
        for action in ("selectUp", "selectDown", "selectConfirm", "selectAccept", "selectCancel"):
            assert action in DEFAULT_EDITOR_KEYBINDINGS

    def test_matches_default_keys(self) -> None:
        kb = EditorKeybindingsManager()
        assert kb.matches("\t", "selectAccept")
        assert kb.matches("\x1b", "selectCancel")
        assert kb.matches("\x0a", "newLine")
        assert kb.matches("\x04", "exit")

    def test_config_overrides_defaults(self) -> None:
        kb = EditorKeybindingsManager({"selectAccept": ["tab", "right"]})
        assert kb.matches("\x1b[C", "selectAccept")
        assert kb.get_keys("selectAccept") == ["tab", "right"]
        kb.set_config({})
        assert kb.get_keys("selectAccept") == ["tab"]

    def test_global_manager_can_be_replaced(self) -> None:
        original = get_editor_keybindings()
        try:
            custom = EditorKeybindingsManager({"submit": "ctrl+s"})
            set_editor_keybindings(custom)
            assert get_editor_keybindings() is custom
            assert get_editor_keybindings().matches("\x13", "submit")
        finally:
            set_editor_keybindings(original)
