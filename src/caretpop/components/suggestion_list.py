"""SuggestionList component: the popup body with keyboard navigation."""

from __future__ import annotations

from typing import Callable

from caretpop.keybindings import get_editor_keybindings
from caretpop.utils import truncate_to_width, visible_width

_SELECTED = "\x1b[7m"
_DIM = "\x1b[2m"
_RESET = "\x1b[0m"


class SuggestionList:
    """Boxed list of suggestions with a highlighted entry.

    Never focused: the owning controller forwards navigation keys to
    :meth:`handle_input`.
    """

    def __init__(self, items: list[str], max_visible: int = 5, max_width: int = 40) -> None:
        self._items = list(items)
        self._selected_index = 0
        self._max_visible = max(1, max_visible)
        self._max_width = max_width

        self.on_select: Callable[[str], None] | None = None
        self.on_cancel: Callable[[], None] | None = None
        self.on_selection_change: Callable[[str], None] | None = None

    @property
    def items(self) -> tuple[str, ...]:
        return tuple(self._items)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    def set_selected_index(self, index: int) -> None:
        self._selected_index = max(0, min(index, len(self._items) - 1))

    def get_selected_item(self) -> str | None:
        if 0 <= self._selected_index < len(self._items):
            return self._items[self._selected_index]
        return None

    def preferred_width(self) -> int:
        """Width the popup needs: widest item plus prefix and border."""
        widest = max((visible_width(item) for item in self._items), default=0)
        return min(self._max_width, widest + 4)

    def preferred_height(self) -> int:
        visible = min(self._max_visible, len(self._items))
        scroll_row = 1 if len(self._items) > self._max_visible else 0
        return visible + scroll_row + 2

    def invalidate(self) -> None:
        pass

    def render(self, width: int) -> list[str]:
        inner = max(1, width - 2)
        lines: list[str] = ["┌" + "─" * inner + "┐"]

        # Visible window centred on the selection
        start_index = max(
            0,
            min(
                self._selected_index - self._max_visible // 2,
                len(self._items) - self._max_visible,
            ),
        )
        end_index = min(start_index + self._max_visible, len(self._items))

        for i in range(start_index, end_index):
            prefix = "→ " if i == self._selected_index else "  "
            text = truncate_to_width(prefix + self._items[i], inner, "…", pad=True)
            if i == self._selected_index:
                text = f"{_SELECTED}{text}{_RESET}"
            lines.append(f"│{text}│")

        if start_index > 0 or end_index < len(self._items):
            info = f"  ({self._selected_index + 1}/{len(self._items)})"
            lines.append(f"│{_DIM}{truncate_to_width(info, inner, '', pad=True)}{_RESET}│")

        lines.append("└" + "─" * inner + "┘")
        return lines

    def handle_input(self, key_data: str) -> bool:
        """Apply a navigation key; returns ``True`` if it was consumed."""
        kb = get_editor_keybindings()

        if not self._items:
            return False
        if kb.matches(key_data, "selectUp"):
            self._selected_index = (
                len(self._items) - 1 if self._selected_index == 0 else self._selected_index - 1
            )
            self._notify_selection_change()
        elif kb.matches(key_data, "selectDown"):
            self._selected_index = (
                0 if self._selected_index == len(self._items) - 1 else self._selected_index + 1
            )
            self._notify_selection_change()
        elif kb.matches(key_data, "selectConfirm") or kb.matches(key_data, "selectAccept"):
            if self.on_select is not None:
                self.on_select(self._items[self._selected_index])
        elif kb.matches(key_data, "selectCancel"):
            if self.on_cancel is not None:
                self.on_cancel()
        else:
            return False
        return True

    def _notify_selection_change(self) -> None:
        if self.on_selection_change is not None:
            self.on_selection_change(self._items[self._selected_index])
