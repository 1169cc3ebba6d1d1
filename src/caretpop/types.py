"""Value types shared by the measurer, locator, resolver and controller."""

from __future__ import annotations

from dataclasses import dataclass, replace

from caretpop.errors import InvalidIndex


@dataclass(frozen=True)
class EditorState:
    """Text plus a single collapsed selection (the caret).

    Replaced wholesale on every keystroke and suggestion acceptance.  The
    host control only ever holds valid states; see :meth:`validated`.
    """

    text: str = ""
    selection_start: int = 0
    selection_end: int = 0

    @classmethod
    def at_end(cls, text: str) -> EditorState:
        return cls(text, len(text), len(text))

    @property
    def caret(self) -> int:
        return self.selection_end

    @property
    def is_valid(self) -> bool:
        return 0 <= self.selection_start == self.selection_end <= len(self.text)

    def with_caret(self, caret: int) -> EditorState:
        return replace(self, selection_start=caret, selection_end=caret)

    def validated(self) -> EditorState:
        """Return self, raising :class:`InvalidIndex` if the caret is out of
        range or the selection is not collapsed."""
        if not self.is_valid:
            raise InvalidIndex(self.selection_end, len(self.text))
        return self


@dataclass(frozen=True)
class EdgeInsets:
    left: float = 0
    top: float = 0
    right: float = 0
    bottom: float = 0

    @classmethod
    def symmetric(cls, horizontal: float = 0, vertical: float = 0) -> EdgeInsets:
        return cls(horizontal, vertical, horizontal, vertical)

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom


@dataclass(frozen=True)
class FieldGeometry:
    """Bounding box of the rendered text control in screen coordinates.

    ``scroll_y`` is how far the control has scrolled its content up to keep
    the caret in view, in the same units as the font's line height.
    """

    origin_x: float
    origin_y: float
    width: float
    height: float
    scroll_y: float = 0

    @property
    def is_laid_out(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class ScreenPoint:
    x: float
    y: float
