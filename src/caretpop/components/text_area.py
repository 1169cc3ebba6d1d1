"""Multi-line text input with word wrap, vertical scrolling and a bordered box.

The control holds a single :class:`~caretpop.types.EditorState` (text plus
caret) that is replaced wholesale on every edit.  Its box model (border
row, vertical padding, horizontal padding, one reserved caret column when
there is no horizontal padding) is exposed through :attr:`content_insets`
and :attr:`caret_reserve` so the caret can be located from outside.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

import grapheme as _grapheme

from caretpop.errors import InvalidIndex
from caretpop.keybindings import get_editor_keybindings
from caretpop.keys import is_printable
from caretpop.measure import CaretAffinity, CellFontMetrics
from caretpop.tui import CURSOR_MARKER
from caretpop.types import EdgeInsets, EditorState
from caretpop.utils import is_whitespace_char, visible_width

if TYPE_CHECKING:
    from caretpop.terminal import Terminal

logger = logging.getLogger(__name__)

_PASTE_START = "\x1b[200~"
_PASTE_END = "\x1b[201~"

# Rows taken by the horizontal rule above and below the text
BORDER_ROWS = 1


class _Host(Protocol):
    @property
    def terminal(self) -> Terminal: ...

    def request_render(self) -> None: ...


@dataclass
class TextChunk:
    """A chunk of a logical line produced by word wrapping."""

    text: str
    start_index: int
    end_index: int


@dataclass
class LayoutLine:
    """A single visual line produced by :meth:`TextArea._layout_text`."""

    text: str
    has_cursor: bool
    cursor_pos: int | None = None


@dataclass
class TextAreaOptions:
    padding_x: int = 0
    padding_y: int = 0


# ---------------------------------------------------------------------------
# word_wrap_line
# ---------------------------------------------------------------------------


def word_wrap_line(line: str, max_width: int) -> list[TextChunk]:
    """Split a line into word-wrapped chunks.

    Wraps after the last whitespace run when possible, falling back to a
    grapheme-level break for words longer than the available width.
    Chunks are contiguous: each one starts where the previous one ended.
    """
    if not line or max_width <= 0:
        return [TextChunk(text=line, start_index=0, end_index=len(line))]

    if visible_width(line) <= max_width:
        return [TextChunk(text=line, start_index=0, end_index=len(line))]

    chunks: list[TextChunk] = []

    segments: list[tuple[str, int]] = []
    idx = 0
    for g in _grapheme.graphemes(line):
        segments.append((g, idx))
        idx += len(g)

    current_width = 0
    chunk_start = 0

    # Wrap opportunity: first grapheme after a whitespace run
    wrap_opp_index = -1
    wrap_opp_width = 0

    for i, (grapheme_str, char_index) in enumerate(segments):
        g_width = visible_width(grapheme_str)

        if current_width + g_width > max_width:
            if wrap_opp_index >= 0:
                chunks.append(
                    TextChunk(
                        text=line[chunk_start:wrap_opp_index],
                        start_index=chunk_start,
                        end_index=wrap_opp_index,
                    )
                )
                chunk_start = wrap_opp_index
                current_width -= wrap_opp_width
            elif chunk_start < char_index:
                chunks.append(
                    TextChunk(
                        text=line[chunk_start:char_index],
                        start_index=chunk_start,
                        end_index=char_index,
                    )
                )
                chunk_start = char_index
                current_width = 0
            wrap_opp_index = -1

        current_width += g_width

        if is_whitespace_char(grapheme_str) and i + 1 < len(segments):
            next_g, next_idx = segments[i + 1]
            if not is_whitespace_char(next_g):
                wrap_opp_index = next_idx
                wrap_opp_width = current_width

    chunks.append(
        TextChunk(
            text=line[chunk_start:],
            start_index=chunk_start,
            end_index=len(line),
        )
    )

    return chunks


# ---------------------------------------------------------------------------
# TextArea
# ---------------------------------------------------------------------------


class TextArea:
    """Bordered multi-line text input.

    Implements the Component and Focusable interfaces for TUI integration.
    Callbacks:

    * ``on_change(text)`` after every text change,
    * ``on_selection_change(caret)`` after every caret move,
    * ``on_focus()`` / ``on_blur()`` on focus transitions,
    * ``on_submit(text)`` on Enter,
    * ``on_exit()`` on the exit keys.

    ``input_interceptor(data)`` sees raw input first and returns ``True``
    to consume it.
    """

    def __init__(self, tui: _Host, options: TextAreaOptions | None = None) -> None:
        if options is None:
            options = TextAreaOptions()

        self._tui = tui
        self._state = EditorState()
        self._revision = 0
        self._focused = False

        self._padding_x: int = max(0, int(options.padding_x))
        self._padding_y: int = max(0, int(options.padding_y))
        self._effective_padding_x: int = self._padding_x

        self._last_width: int = 80
        self._scroll_offset: int = 0
        self._rendered_revision: int = -1
        self._rendered_state: EditorState | None = None

        self._paste_buffer: str = ""
        self._is_in_paste: bool = False

        self.font = CellFontMetrics()
        self.caret_affinity: CaretAffinity = "downstream"

        self.on_change: Callable[[str], None] | None = None
        self.on_selection_change: Callable[[int], None] | None = None
        self.on_focus: Callable[[], None] | None = None
        self.on_blur: Callable[[], None] | None = None
        self.on_submit: Callable[[str], None] | None = None
        self.on_exit: Callable[[], None] | None = None
        self.input_interceptor: Callable[[str], bool] | None = None

    # -- Focus ---------------------------------------------------------------

    @property
    def focused(self) -> bool:
        return self._focused

    @focused.setter
    def focused(self, value: bool) -> None:
        if value == self._focused:
            return
        self._focused = value
        logger.debug("text area %s", "focused" if value else "blurred")
        callback = self.on_focus if value else self.on_blur
        if callback is not None:
            callback()
        self._tui.request_render()

    # -- State ---------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def text(self) -> str:
        return self._state.text

    @property
    def caret(self) -> int:
        return self._state.caret

    @property
    def revision(self) -> int:
        """Incremented on every text change."""
        return self._revision

    @property
    def rendered_revision(self) -> int:
        """Text revision painted by the last render, ``-1`` before the first."""
        return self._rendered_revision

    @property
    def rendered_state(self) -> EditorState | None:
        return self._rendered_state

    def set_state(self, state: EditorState) -> None:
        """Replace text and caret, then notify listeners.

        Raises :class:`InvalidIndex` for a caret outside the text.
        """
        state.validated()
        previous = self._state
        if state == previous:
            return
        self._state = state
        if state.text != previous.text:
            self._revision += 1
            if self.on_change is not None:
                self.on_change(state.text)
        if state.caret != previous.caret and self.on_selection_change is not None:
            self.on_selection_change(state.caret)
        self._tui.request_render()

    def set_text(self, text: str) -> None:
        """Replace the text and put the caret at its end."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        self._scroll_offset = 0
        self.set_state(EditorState.at_end(text))

    # -- Box model -----------------------------------------------------------

    @property
    def content_insets(self) -> EdgeInsets:
        """Distance from the rendered box to the text, border rows included."""
        top = BORDER_ROWS + self._padding_y
        return EdgeInsets(self._effective_padding_x, top, self._effective_padding_x, top)

    @property
    def caret_reserve(self) -> int:
        # Without padding one column is kept free for the caret at line end
        return 0 if self._effective_padding_x else 1

    @property
    def scroll_y(self) -> float:
        return self._scroll_offset * self.font.line_height

    # -- Component interface -------------------------------------------------

    def invalidate(self) -> None:
        """No cached state to invalidate."""

    def render(self, width: int) -> list[str]:
        max_padding = max(0, (width - 1) // 2)
        padding_x = min(self._padding_x, max_padding)
        self._effective_padding_x = padding_x
        content_width = max(1, width - padding_x * 2)

        # With padding the cursor can overflow into it, without padding we
        # reserve 1 column for the cursor.
        layout_width = max(1, content_width - (0 if padding_x else 1))
        self._last_width = layout_width
        self._rendered_revision = self._revision
        self._rendered_state = self._state

        layout_lines = self._layout_text(layout_width)

        terminal_rows = self._tui.terminal.rows
        max_visible_lines = max(5, terminal_rows * 3 // 10)

        cursor_line_index = 0
        for i, ll in enumerate(layout_lines):
            if ll.has_cursor:
                cursor_line_index = i
                break

        if cursor_line_index < self._scroll_offset:
            self._scroll_offset = cursor_line_index
        elif cursor_line_index >= self._scroll_offset + max_visible_lines:
            self._scroll_offset = cursor_line_index - max_visible_lines + 1

        max_scroll_offset = max(0, len(layout_lines) - max_visible_lines)
        self._scroll_offset = max(0, min(self._scroll_offset, max_scroll_offset))

        visible_lines = layout_lines[self._scroll_offset : self._scroll_offset + max_visible_lines]

        result: list[str] = []
        left_padding = " " * padding_x
        blank = " " * width

        if self._scroll_offset > 0:
            indicator = f"─── ↑ {self._scroll_offset} more "
            result.append(indicator + "─" * max(0, width - visible_width(indicator)))
        else:
            result.append("─" * width)
        result.extend(blank for _ in range(self._padding_y))

        for layout_line in visible_lines:
            display_text = layout_line.text
            line_visible_width = visible_width(layout_line.text)
            cursor_in_padding = False

            if layout_line.has_cursor and layout_line.cursor_pos is not None:
                before = display_text[: layout_line.cursor_pos]
                after = display_text[layout_line.cursor_pos :]
                marker = CURSOR_MARKER if self._focused else ""

                if after:
                    first_grapheme = next(iter(_grapheme.graphemes(after)))
                    rest_after = after[len(first_grapheme) :]
                    display_text = before + marker + f"\x1b[7m{first_grapheme}\x1b[0m" + rest_after
                else:
                    display_text = before + marker + "\x1b[7m \x1b[0m"
                    line_visible_width += 1
                    if line_visible_width > content_width and padding_x > 0:
                        cursor_in_padding = True

            fill = " " * max(0, content_width - line_visible_width)
            right_padding = left_padding[1:] if cursor_in_padding else left_padding
            result.append(f"{left_padding}{display_text}{fill}{right_padding}")

        result.extend(blank for _ in range(self._padding_y))
        lines_below = len(layout_lines) - (self._scroll_offset + len(visible_lines))
        if lines_below > 0:
            indicator = f"─── ↓ {lines_below} more "
            result.append(indicator + "─" * max(0, width - visible_width(indicator)))
        else:
            result.append("─" * width)

        return result

    def _layout_text(self, content_width: int) -> list[LayoutLine]:
        layout_lines: list[LayoutLine] = []
        caret = self._state.caret
        offset = 0

        for line in self._state.text.split("\n"):
            line_end = offset + len(line)
            is_current_line = offset <= caret <= line_end
            cursor_col = caret - offset
            chunks = word_wrap_line(line, content_width)

            for chunk_index, chunk in enumerate(chunks):
                is_last_chunk = chunk_index == len(chunks) - 1
                # The caret at a soft-wrap boundary belongs to the next chunk
                if is_last_chunk:
                    has_cursor = is_current_line and cursor_col >= chunk.start_index
                else:
                    has_cursor = (
                        is_current_line and chunk.start_index <= cursor_col < chunk.end_index
                    )
                if has_cursor:
                    layout_lines.append(
                        LayoutLine(
                            text=chunk.text,
                            has_cursor=True,
                            cursor_pos=cursor_col - chunk.start_index,
                        )
                    )
                else:
                    layout_lines.append(LayoutLine(text=chunk.text, has_cursor=False))

            offset = line_end + 1

        return layout_lines

    def visual_lines(self) -> list[tuple[int, int]]:
        """``(start, end)`` text indices of every visual line at the last
        rendered width."""
        spans: list[tuple[int, int]] = []
        offset = 0
        for line in self._state.text.split("\n"):
            for chunk in word_wrap_line(line, self._last_width):
                spans.append((offset + chunk.start_index, offset + chunk.end_index))
            offset += len(line) + 1
        return spans

    # -- Input handling ------------------------------------------------------

    def handle_input(self, data: str) -> None:  # noqa: C901
        if self.input_interceptor is not None and self.input_interceptor(data):
            return

        # Bracketed paste, possibly split across several reads
        if _PASTE_START in data:
            self._is_in_paste = True
            self._paste_buffer = ""
            data = data.replace(_PASTE_START, "")
        if self._is_in_paste:
            self._paste_buffer += data
            end = self._paste_buffer.find(_PASTE_END)
            if end == -1:
                return
            pasted = self._paste_buffer[:end]
            remaining = self._paste_buffer[end + len(_PASTE_END) :]
            self._paste_buffer = ""
            self._is_in_paste = False
            self.insert_text(pasted.replace("\r\n", "\n").replace("\r", "\n").replace("\t", "    "))
            if remaining:
                self.handle_input(remaining)
            return

        kb = get_editor_keybindings()

        if kb.matches(data, "exit"):
            if self.on_exit is not None:
                self.on_exit()
        elif kb.matches(data, "newLine"):
            self.insert_text("\n")
        elif kb.matches(data, "submit"):
            if self.on_submit is not None:
                self.on_submit(self.text)
        elif kb.matches(data, "deleteCharBackward"):
            self._delete_backward()
        elif kb.matches(data, "deleteCharForward"):
            self._delete_forward()
        elif kb.matches(data, "deleteToLineStart"):
            self._delete_to_line_start()
        elif kb.matches(data, "cursorLeft"):
            self._move_horizontal(-1)
        elif kb.matches(data, "cursorRight"):
            self._move_horizontal(1)
        elif kb.matches(data, "cursorUp"):
            self._move_vertical(-1)
        elif kb.matches(data, "cursorDown"):
            self._move_vertical(1)
        elif kb.matches(data, "cursorLineStart"):
            self._set_caret(self._line_start(self.caret))
        elif kb.matches(data, "cursorLineEnd"):
            self._set_caret(self._line_end(self.caret))
        elif is_printable(data):
            self.insert_text(data.replace("\r\n", "\n").replace("\r", "\n"))

    # -- Editing -------------------------------------------------------------

    def insert_text(self, text: str) -> None:
        """Insert *text* at the caret and move the caret past it."""
        if not text:
            return
        caret = self.caret
        current = self.text
        new_text = current[:caret] + text + current[caret:]
        self.set_state(EditorState(new_text, caret + len(text), caret + len(text)))

    def _set_caret(self, caret: int) -> None:
        try:
            self.set_state(self._state.with_caret(caret))
        except InvalidIndex:
            logger.debug("caret move to %d ignored", caret)

    def _delete_backward(self) -> None:
        caret = self.caret
        if caret == 0:
            return
        before = self.text[:caret]
        last = list(_grapheme.graphemes(before))[-1]
        start = caret - len(last)
        self.set_state(EditorState(self.text[:start] + self.text[caret:], start, start))

    def _delete_forward(self) -> None:
        caret = self.caret
        if caret >= len(self.text):
            return
        first = next(iter(_grapheme.graphemes(self.text[caret:])))
        self.set_state(
            EditorState(self.text[:caret] + self.text[caret + len(first) :], caret, caret)
        )

    def _delete_to_line_start(self) -> None:
        caret = self.caret
        start = self._line_start(caret)
        if start == caret:
            # At line start, join with the previous line like backspace
            self._delete_backward()
            return
        self.set_state(EditorState(self.text[:start] + self.text[caret:], start, start))

    # -- Cursor movement -----------------------------------------------------

    def _line_start(self, index: int) -> int:
        return self.text.rfind("\n", 0, index) + 1

    def _line_end(self, index: int) -> int:
        end = self.text.find("\n", index)
        return len(self.text) if end == -1 else end

    def _move_horizontal(self, direction: int) -> None:
        caret = self.caret
        if direction > 0:
            if caret >= len(self.text):
                return
            step = len(next(iter(_grapheme.graphemes(self.text[caret:]))))
            self._set_caret(caret + step)
        else:
            if caret == 0:
                return
            step = len(list(_grapheme.graphemes(self.text[:caret]))[-1])
            self._set_caret(caret - step)

    def _current_visual_line(self, spans: list[tuple[int, int]]) -> int:
        caret = self.caret
        for i, (start, end) in enumerate(spans):
            last_of_logical = i + 1 == len(spans) or spans[i + 1][0] != end
            if start <= caret < end or (last_of_logical and caret == end):
                return i
        return len(spans) - 1

    def _move_vertical(self, direction: int) -> None:
        spans = self.visual_lines()
        current = self._current_visual_line(spans)
        target = current + direction
        if not 0 <= target < len(spans):
            return
        column = self.caret - spans[current][0]
        start, end = spans[target]
        last_of_logical = target + 1 == len(spans) or spans[target + 1][0] != end
        max_column = (end - start) if last_of_logical else max(0, end - start - 1)
        self._set_caret(start + min(column, max_column))
