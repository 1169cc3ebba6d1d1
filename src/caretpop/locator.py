"""Caret locator: editor state + field geometry -> absolute screen point."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from caretpop.errors import CaretNotVisible, GeometryUnavailable, InvalidIndex
from caretpop.measure import CaretAffinity, FontMetrics, caret_offset, measure
from caretpop.types import EdgeInsets, EditorState, FieldGeometry, ScreenPoint

if TYPE_CHECKING:
    from caretpop.components.text_area import TextArea

logger = logging.getLogger(__name__)


class CaretLocator:
    """Maps a caret index to screen coordinates inside a padded text field.

    *padding* is the distance from the field's bounding box to its text
    (borders included).  *caret_reserve* is extra width the control keeps
    free at the right edge so a caret after the last column stays on its
    line.  With *strict* an out-of-range caret raises
    :class:`InvalidIndex`; otherwise it is clamped.
    """

    def __init__(
        self,
        padding: EdgeInsets | None = None,
        caret_reserve: float = 0,
        affinity: CaretAffinity = "downstream",
        strict: bool = False,
    ) -> None:
        self.padding = padding or EdgeInsets()
        self.caret_reserve = caret_reserve
        self.affinity: CaretAffinity = affinity
        self.strict = strict

    @classmethod
    def for_field(cls, field: TextArea, strict: bool = False) -> CaretLocator:
        """Build a locator that matches *field*'s box model."""
        return cls(
            padding=field.content_insets,
            caret_reserve=field.caret_reserve,
            affinity=field.caret_affinity,
            strict=strict,
        )

    def layout_width(self, geometry: FieldGeometry) -> float:
        return geometry.width - self.padding.horizontal - self.caret_reserve

    def locate(
        self,
        state: EditorState,
        geometry: FieldGeometry | None,
        font: FontMetrics,
    ) -> ScreenPoint:
        """Absolute position of the caret's top-left corner.

        Falls back to the field origin (or ``(0, 0)`` without any geometry)
        when the field has not been laid out yet, and to the nearest visible
        row when the caret is scrolled or cut off screen.
        """
        try:
            return self.locate_checked(state, geometry, font)
        except CaretNotVisible as exc:
            logger.debug("%s, using nearest visible row", exc)
            return exc.nearest
        except GeometryUnavailable:
            logger.debug("field not laid out, using origin fallback")
            if geometry is None:
                return ScreenPoint(0, 0)
            return ScreenPoint(geometry.origin_x, geometry.origin_y)

    def locate_checked(
        self,
        state: EditorState,
        geometry: FieldGeometry | None,
        font: FontMetrics,
    ) -> ScreenPoint:
        """Like :meth:`locate` but raises instead of falling back.

        :class:`GeometryUnavailable` means the field has no usable layout;
        :class:`CaretNotVisible` means the caret row is outside the visible
        content box (scrolled away or below the screen bottom).
        """
        if geometry is None or not geometry.is_laid_out:
            raise GeometryUnavailable()

        max_width = self.layout_width(geometry)
        if max_width <= 0:
            raise GeometryUnavailable()

        layout = measure(state.text, font, max_width)
        index = state.caret
        try:
            offset = caret_offset(layout, index, self.affinity)
        except InvalidIndex:
            if self.strict:
                raise
            clamped = max(0, min(index, len(state.text)))
            logger.warning(
                "caret index %d out of range for %d chars, clamped to %d",
                index,
                len(state.text),
                clamped,
            )
            offset = caret_offset(layout, clamped, self.affinity)

        pad = self.padding
        x = geometry.origin_x + pad.left + offset.dx
        y = geometry.origin_y + pad.top + offset.dy - geometry.scroll_y

        # Visible content box, inset by the padding on every side
        min_x = geometry.origin_x + pad.left
        max_x = geometry.origin_x + geometry.width - pad.right
        min_y = geometry.origin_y + pad.top
        max_y = geometry.origin_y + geometry.height - pad.bottom - font.line_height
        x = max(min_x, min(x, max_x))
        if not min_y <= y <= max_y:
            nearest = ScreenPoint(x, max(min_y, min(y, max(min_y, max_y))))
            raise CaretNotVisible(y, nearest)

        return ScreenPoint(x, y)


def locate(
    state: EditorState,
    geometry: FieldGeometry | None,
    font: FontMetrics,
    padding: EdgeInsets | None = None,
) -> ScreenPoint:
    """Convenience wrapper around :meth:`CaretLocator.locate`."""
    return CaretLocator(padding).locate(state, geometry, font)
