"""Error taxonomy for caret tracking.

Empty candidate lists are *not* errors -- they are the normal signal that
suppresses the popup -- so they have no exception type here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from caretpop.types import ScreenPoint


class CaretError(Exception):
    """Base class for caret-tracking failures."""


class InvalidIndex(CaretError, IndexError):
    """A caret index outside ``[0, len(text)]``."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"caret index {index} outside [0, {length}]")
        self.index = index
        self.length = length


class GeometryUnavailable(CaretError):
    """The text field has not been laid out yet."""


class CaretNotVisible(CaretError):
    """The caret row lies outside the part of the field shown on screen.

    *nearest* is the caret point clamped into the visible content box.
    """

    def __init__(self, row: float, nearest: ScreenPoint) -> None:
        super().__init__(f"caret row {row} outside the visible content box")
        self.row = row
        self.nearest = nearest
