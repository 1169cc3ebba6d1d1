"""Single-line text component truncated to the viewport width."""

from __future__ import annotations

from caretpop.utils import truncate_to_width


class StatusLine:
    """One line of text; anything after the first newline is dropped."""

    def __init__(self, text: str = "", padding_x: int = 0) -> None:
        self._text = text
        self._padding_x = padding_x

    @property
    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        self._text = text

    def invalidate(self) -> None:
        pass

    def render(self, width: int) -> list[str]:
        available_width = max(1, width - self._padding_x * 2)
        first_line = self._text.split("\n", 1)[0]
        display_text = truncate_to_width(first_line, available_width, pad=True)
        padding = " " * self._padding_x
        return [padding + display_text + padding]
