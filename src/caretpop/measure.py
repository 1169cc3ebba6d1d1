"""Text measurement: line wrapping and caret offsets under a font.

The wrapping here shadows :func:`caretpop.components.text_area.word_wrap_line`
grapheme for grapheme.  The caret position the overlay is anchored to is
only correct while both agree, so any change to the host control's wrap
rules has to be mirrored in :func:`measure`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

from caretpop.errors import InvalidIndex
from caretpop.utils import graphemes_with_index, is_whitespace_char, visible_width

CaretAffinity = Literal["downstream", "upstream"]


# ---------------------------------------------------------------------------
# Font metrics
# ---------------------------------------------------------------------------


class FontMetrics(Protocol):
    """String width and line height for a single text style."""

    @property
    def line_height(self) -> float: ...

    def text_width(self, text: str) -> float: ...


@dataclass(frozen=True)
class CellFontMetrics:
    """Metrics of a terminal's monospaced cell grid.

    With the default 1x1 cell every unit is one terminal column or row.
    Pass the cell size in pixels to measure in pixels instead.
    """

    cell_width: float = 1
    cell_height: float = 1

    @classmethod
    def from_cell_dimensions(cls, width_px: int, height_px: int) -> CellFontMetrics:
        return cls(cell_width=width_px, cell_height=height_px)

    @property
    def line_height(self) -> float:
        return self.cell_height

    def text_width(self, text: str) -> float:
        return visible_width(text) * self.cell_width


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineSegment:
    """One visual line: ``text[start_index:end_index]`` drawn at ``y_offset``.

    ``end_index`` never includes a hard newline.
    """

    start_index: int
    end_index: int
    y_offset: float
    line_height: float


@dataclass(frozen=True)
class TextLayout:
    text: str
    max_width: float
    segments: tuple[LineSegment, ...]
    font: FontMetrics = field(default_factory=CellFontMetrics, compare=False, repr=False)

    @property
    def line_count(self) -> int:
        return len(self.segments)

    @property
    def height(self) -> float:
        if not self.segments:
            return 0
        last = self.segments[-1]
        return last.y_offset + last.line_height

    def line_text(self, line: int) -> str:
        seg = self.segments[line]
        return self.text[seg.start_index : seg.end_index]


@dataclass(frozen=True)
class CaretPoint:
    """Caret offset relative to the content origin of the text block."""

    dx: float
    dy: float


def _wrap_paragraph(
    paragraph: str,
    offset: int,
    font: FontMetrics,
    max_width: float,
) -> list[tuple[int, int]]:
    """Return ``(start, end)`` index pairs for the visual lines of one
    newline-free paragraph, shifted by *offset*.
    """
    if not paragraph or max_width <= 0 or font.text_width(paragraph) <= max_width:
        return [(offset, offset + len(paragraph))]

    graphemes = graphemes_with_index(paragraph)
    spans: list[tuple[int, int]] = []
    line_start = 0
    line_width = 0.0
    # Index of the first grapheme after a whitespace run, and the width up to it
    break_index = -1
    break_width = 0.0

    for i, (g, index) in enumerate(graphemes):
        width = font.text_width(g)

        if line_width + width > max_width:
            if break_index >= 0:
                spans.append((line_start, break_index))
                line_start = break_index
                line_width -= break_width
            elif line_start < index:
                spans.append((line_start, index))
                line_start = index
                line_width = 0.0
            break_index = -1

        line_width += width

        if is_whitespace_char(g) and i + 1 < len(graphemes):
            next_g, next_index = graphemes[i + 1]
            if not is_whitespace_char(next_g):
                break_index = next_index
                break_width = line_width

    spans.append((line_start, len(paragraph)))
    return [(offset + start, offset + end) for start, end in spans]


def measure(text: str, font: FontMetrics, max_width: float) -> TextLayout:
    """Lay *text* out in lines no wider than *max_width*.

    Hard newlines always start a new line.  A *max_width* of zero or less
    disables soft wrapping.
    """
    line_height = font.line_height
    segments: list[LineSegment] = []
    y = 0.0
    offset = 0

    for paragraph in text.split("\n"):
        for start, end in _wrap_paragraph(paragraph, offset, font, max_width):
            segments.append(
                LineSegment(
                    start_index=start,
                    end_index=end,
                    y_offset=y,
                    line_height=line_height,
                )
            )
            y += line_height
        offset += len(paragraph) + 1

    return TextLayout(
        text=text, max_width=max_width, segments=tuple(segments), font=font
    )


def find_segment(
    layout: TextLayout,
    index: int,
    affinity: CaretAffinity = "downstream",
) -> int:
    """Return the line number the caret at *index* is drawn on.

    At a soft-wrap boundary *index* is both the end of line N and the start
    of line N+1.  ``"downstream"`` (the default) picks line N+1, where the
    TextArea draws its cursor.  ``"upstream"`` keeps it at the trailing edge
    of line N, for hosts that park the cursor at the end of the wrapped line.
    """
    if not 0 <= index <= len(layout.text):
        raise InvalidIndex(index, len(layout.text))

    segments = layout.segments
    for i, seg in enumerate(segments):
        if not seg.start_index <= index <= seg.end_index:
            continue
        if (
            affinity == "downstream"
            and index == seg.end_index
            and i + 1 < len(segments)
            and segments[i + 1].start_index == index
        ):
            return i + 1
        return i

    raise InvalidIndex(index, len(layout.text))


def caret_offset(
    layout: TextLayout,
    index: int,
    affinity: CaretAffinity = "downstream",
) -> CaretPoint:
    """Offset of the caret at *index* from the layout's top-left corner.

    Raises :class:`InvalidIndex` when *index* is outside
    ``[0, len(layout.text)]``.
    """
    seg = layout.segments[find_segment(layout, index, affinity)]
    dx = layout.font.text_width(layout.text[seg.start_index : index])
    return CaretPoint(dx=dx, dy=seg.y_offset)
