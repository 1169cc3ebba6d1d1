"""Keybindings for the text field and the suggestion popup."""

from __future__ import annotations

from typing import Literal

from caretpop.keys import KeyId, matches_key

EditorAction = Literal[
    # Cursor movement
    "cursorUp",
    "cursorDown",
    "cursorLeft",
    "cursorRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteToLineStart",
    # Text input
    "newLine",
    "submit",
    # Suggestion popup
    "selectUp",
    "selectDown",
    "selectConfirm",
    "selectAccept",
    "selectCancel",
    # Application
    "exit",
]

EditorKeybindingsConfig = dict[EditorAction, KeyId | list[KeyId]]

DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyId | list[KeyId]] = {
    "cursorUp": "up",
    "cursorDown": "down",
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    "deleteCharBackward": "backspace",
    "deleteCharForward": "delete",
    "deleteToLineStart": "ctrl+u",
    "newLine": ["shift+enter", "alt+enter", "ctrl+j"],
    "submit": "enter",
    "selectUp": "up",
    "selectDown": "down",
    "selectConfirm": "enter",
    "selectAccept": "tab",
    "selectCancel": "escape",
    "exit": ["ctrl+c", "ctrl+d"],
}


class EditorKeybindingsManager:
    """Resolves raw input to editor actions, defaults overridden by *config*."""

    def __init__(self, config: EditorKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[EditorAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: EditorKeybindingsConfig) -> None:
        self._action_to_keys.clear()
        for source in (DEFAULT_EDITOR_KEYBINDINGS, config):
            for action, keys in source.items():
                self._action_to_keys[action] = list(keys) if isinstance(keys, list) else [keys]

    def matches(self, data: str, action: EditorAction) -> bool:
        """Check if input matches a specific action."""
        return any(matches_key(data, key) for key in self._action_to_keys.get(action, []))

    def get_keys(self, action: EditorAction) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def set_config(self, config: EditorKeybindingsConfig) -> None:
        self._build_maps(config)


_global_editor_keybindings: EditorKeybindingsManager | None = None


def get_editor_keybindings() -> EditorKeybindingsManager:
    global _global_editor_keybindings
    if _global_editor_keybindings is None:
        _global_editor_keybindings = EditorKeybindingsManager()
    return _global_editor_keybindings


def set_editor_keybindings(manager: EditorKeybindingsManager) -> None:
    global _global_editor_keybindings
    _global_editor_keybindings = manager
