"""Raw terminal key matching.

Maps key identifiers such as ``"up"``, ``"ctrl+a"`` or ``"shift+tab"`` to
the byte sequences legacy (xterm-style) terminals send for them.
"""

from __future__ import annotations

from typing import Final


class Key:
    """Common key identifiers."""

    UP: Final = "up"
    DOWN: Final = "down"
    LEFT: Final = "left"
    RIGHT: Final = "right"
    HOME: Final = "home"
    END: Final = "end"
    ENTER: Final = "enter"
    TAB: Final = "tab"
    ESCAPE: Final = "escape"
    BACKSPACE: Final = "backspace"
    DELETE: Final = "delete"


KeyId = str

_LEGACY_SEQUENCES: dict[str, tuple[str, ...]] = {
    "up": ("\x1b[A", "\x1bOA"),
    "down": ("\x1b[B", "\x1bOB"),
    "right": ("\x1b[C", "\x1bOC"),
    "left": ("\x1b[D", "\x1bOD"),
    "home": ("\x1b[H", "\x1bOH", "\x1b[1~", "\x1b[7~"),
    "end": ("\x1b[F", "\x1bOF", "\x1b[4~", "\x1b[8~"),
    "delete": ("\x1b[3~",),
    "pageUp": ("\x1b[5~",),
    "pageDown": ("\x1b[6~",),
    "enter": ("\r",),
    "shift+enter": ("\x1b[13;2~", "\x1b[13;2u"),
    "alt+enter": ("\x1b\r",),
    "tab": ("\t",),
    "shift+tab": ("\x1b[Z",),
    "escape": ("\x1b",),
    "backspace": ("\x7f", "\x08"),
    "space": (" ",),
    "ctrl+left": ("\x1b[1;5D",),
    "ctrl+right": ("\x1b[1;5C",),
    "alt+left": ("\x1b[1;3D", "\x1bb"),
    "alt+right": ("\x1b[1;3C", "\x1bf"),
}

_ALIASES = {"esc": "escape", "return": "enter", "del": "delete"}


def raw_ctrl_char(key: str) -> str | None:
    """Return the control character for ``ctrl+<key>``, or ``None``."""
    if len(key) != 1:
        return None
    ch = key.lower()
    if "a" <= ch <= "z":
        return chr(ord(ch) - ord("a") + 1)
    if ch in "[\\]^_":
        return chr(ord(ch) - 0x40)
    if ch == "-":
        return "\x1f"
    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Return ``True`` if raw terminal input *data* is the key *key_id*."""
    key_id = _ALIASES.get(key_id, key_id)

    sequences = _LEGACY_SEQUENCES.get(key_id)
    if sequences is not None:
        return data in sequences

    if key_id.startswith("ctrl+"):
        ctrl = raw_ctrl_char(key_id[5:])
        return ctrl is not None and data == ctrl

    if key_id.startswith("alt+") and len(key_id) == 5:
        return data == "\x1b" + key_id[4]

    return len(key_id) == 1 and data == key_id


def parse_key(data: str) -> KeyId | None:
    """Return the identifier of the key *data* encodes, if it is known."""
    for key_id, sequences in _LEGACY_SEQUENCES.items():
        if data in sequences:
            return key_id
    if len(data) == 1:
        cp = ord(data)
        if 1 <= cp <= 26:
            return "ctrl+" + chr(cp + ord("a") - 1)
        if cp >= 32:
            return data
    return None


def is_printable(data: str) -> bool:
    """Return ``True`` for text input (typed or pasted) rather than a key."""
    if not data or data.startswith("\x1b") or data in ("\x7f", "\t"):
        return False
    return all(ch in "\n\t" or (ord(ch) >= 32 and ch != "\x7f") for ch in data)
