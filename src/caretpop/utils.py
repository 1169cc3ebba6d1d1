"""Terminal text utilities: width measurement, ANSI handling, column slicing.

Widths are measured per grapheme cluster so that combining marks, emoji
sequences and East Asian wide characters occupy the same number of cells
the terminal draws for them.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# CSI (SGR and erase), OSC 8 hyperlinks, APC (our cursor marker)
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"
    r"|\x1b\]8;;[^\x07]*\x07"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

TAB_WIDTH = 3

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Graphemes
# ---------------------------------------------------------------------------


def graphemes_with_index(text: str) -> list[tuple[str, int]]:
    """Split *text* into ``(grapheme, start_index)`` pairs."""
    result: list[tuple[str, int]] = []
    idx = 0
    for g in grapheme.graphemes(text):
        result.append((g, idx))
        idx += len(g)
    return result


def grapheme_width(g: str) -> int:
    """Return the terminal cell width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if g == "\t":
            return TAB_WIDTH
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    category = unicodedata.category(g[0])
    if category.startswith("M") or category == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI escape sequences are ignored and tabs count as ``TAB_WIDTH``
    cells.  Non-ASCII results are cached.
    """
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from *text*."""
    return _STRIP_RE.sub("", text)


# ---------------------------------------------------------------------------
# ANSI sequence extraction
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Return ``(code, length)`` for an escape sequence starting at *pos*.

    Recognises CSI sequences ending in ``m``/``G``/``K``/``H``/``J`` and
    OSC / APC strings terminated by BEL or ST.  Returns ``None`` when
    *pos* does not start a recognised sequence.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b":
        return None

    kind = text[pos + 1]
    i = pos + 2

    if kind == "[":
        while i < len(text):
            ch = text[i]
            if ch in "mGKHJ":
                return (text[pos : i + 1], i + 1 - pos)
            if not (ch.isdigit() or ch == ";"):
                return None
            i += 1
        return None

    if kind in "]_":
        while i < len(text):
            if text[i] == "\x07":
                return (text[pos : i + 1], i + 1 - pos)
            if text[i] == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return (text[pos : i + 2], i + 2 - pos)
            i += 1

    return None


def _tokens(line: str) -> list[tuple[str, int]]:
    """Split *line* into ``(token, width)`` where escape codes have width 0."""
    tokens: list[tuple[str, int]] = []
    plain_start = 0
    i = 0
    while i < len(line):
        extracted = extract_ansi_code(line, i)
        if extracted is None:
            i += 1
            continue
        if plain_start < i:
            tokens.extend(
                (g, grapheme_width(g)) for g in grapheme.graphemes(line[plain_start:i])
            )
        code, length = extracted
        tokens.append((code, 0))
        i += length
        plain_start = i
    if plain_start < len(line):
        tokens.extend(
            (g, grapheme_width(g)) for g in grapheme.graphemes(line[plain_start:])
        )
    return tokens


# ---------------------------------------------------------------------------
# Truncation / slicing
# ---------------------------------------------------------------------------


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Truncate *text* to at most *max_width* cells, appending *ellipsis*.

    With *pad* the result is right-padded with spaces to exactly
    *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        return text + " " * (max_width - text_width) if pad else text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)

    result = _take_columns(text, target) + ellipsis
    if pad:
        result += " " * max(0, max_width - visible_width(result))
    return result


def _take_columns(text: str, max_cols: int) -> str:
    parts: list[str] = []
    cols = 0
    for token, width in _tokens(text):
        if cols + width > max_cols:
            break
        parts.append(token)
        cols += width
    return "".join(parts)


def extract_segments(
    line: str,
    before_end: int,
    after_start: int,
    after_len: int,
) -> tuple[str, str]:
    """Return the columns ``[0, before_end)`` and
    ``[after_start, after_start + after_len)`` of *line*.

    Used when compositing an overlay over a base line.  Wide characters cut
    by the *after* boundaries are replaced with spaces so the columns stay
    aligned.
    """
    before: list[str] = []
    after: list[str] = []
    after_end = after_start + after_len
    col = 0

    for token, width in _tokens(line):
        end = col + width
        if width == 0:
            if col < before_end:
                before.append(token)
            elif after_start <= col < after_end:
                after.append(token)
            continue

        if col < before_end:
            if end <= before_end:
                before.append(token)
            else:
                before.append(" " * (before_end - col))

        if end > after_start and col < after_end:
            if col < after_start or end > after_end:
                after.append(" " * (min(end, after_end) - max(col, after_start)))
            else:
                after.append(token)

        col = end

    return ("".join(before), "".join(after))


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is a whitespace character."""
    return char in (" ", "\t", "\n", "\r", "\f", "\v")
