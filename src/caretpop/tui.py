"""Host TUI framework with differential rendering and an overlay layer.

Provides the ``Component`` and ``Focusable`` protocols, a ``Container``
that records where each child landed in the last frame, and the ``TUI``
class that drives rendering, input dispatch, overlays, post-render
callbacks and hardware-cursor positioning against a ``Terminal``.
"""

from __future__ import annotations

import logging
import os
from typing import (
    TYPE_CHECKING,
    Callable,
    Protocol,
    TypedDict,
    runtime_checkable,
)

from caretpop.scheduler import LoopScheduler, Scheduler
from caretpop.types import FieldGeometry
from caretpop.utils import extract_segments, visible_width

if TYPE_CHECKING:
    from caretpop.terminal import Terminal

logger = logging.getLogger(__name__)

__all__ = [
    "Component",
    "Focusable",
    "is_focusable",
    "CURSOR_MARKER",
    "OverlayOptions",
    "OverlayHandle",
    "Container",
    "TUI",
]


class Component(Protocol):
    """A renderable terminal component.

    ``handle_input`` is optional and looked up with ``getattr``.
    """

    def render(self, width: int) -> list[str]:
        """Render the component into a list of terminal lines."""
        ...

    def invalidate(self) -> None:
        """Mark the component as needing a re-render."""
        ...


@runtime_checkable
class Focusable(Protocol):
    focused: bool


def is_focusable(component: object | None) -> bool:
    return component is not None and hasattr(component, "focused")


# Zero-width APC sequence marking where the hardware cursor goes
CURSOR_MARKER = "\x1b_caretpop:c\x07"

_SEGMENT_RESET = "\x1b[0m"


class OverlayOptions(TypedDict, total=False):
    """Placement in screen cells; a missing row or col centres the overlay."""

    row: int
    col: int
    width: int
    max_height: int
    # Non-capturing overlays never take focus or receive input
    non_capturing: bool


class OverlayHandle:
    """Handle returned by :meth:`TUI.show_overlay`."""

    def __init__(self, tui: TUI, component: object) -> None:
        self._tui = tui
        self._component = component

    @property
    def component(self) -> object:
        return self._component

    def hide(self) -> None:
        """Remove the overlay from the stack."""
        self._tui.hide_overlay(self._component)

    def is_visible(self) -> bool:
        return self._tui.is_overlay_visible(self._component)


class _OverlayEntry(TypedDict):
    component: object
    options: OverlayOptions
    pre_focus: object | None


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class Container:
    """Renders its children one below the other.

    Each render records the ``(first_line, line_count)`` span of every
    child so the host can answer geometry queries after the frame.
    """

    def __init__(self) -> None:
        self.children: list[object] = []
        self._child_spans: dict[int, tuple[int, int]] = {}

    def add_child(self, component: object) -> None:
        self.children.append(component)

    def remove_child(self, component: object) -> None:
        try:
            self.children.remove(component)
        except ValueError:
            pass
        self._child_spans.pop(id(component), None)

    def clear(self) -> None:
        self.children.clear()
        self._child_spans.clear()

    def invalidate(self) -> None:
        for child in self.children:
            inv = getattr(child, "invalidate", None)
            if inv is not None:
                inv()

    def render(self, width: int) -> list[str]:
        lines: list[str] = []
        spans: dict[int, tuple[int, int]] = {}
        for child in self.children:
            render = getattr(child, "render", None)
            if render is None:
                continue
            child_lines = render(width)
            spans[id(child)] = (len(lines), len(child_lines))
            lines.extend(child_lines)
        self._child_spans = spans
        return lines

    def child_span(self, component: object) -> tuple[int, int] | None:
        """Line span of *component* in this container's last render,
        searching nested containers.
        """
        span = self._child_spans.get(id(component))
        if span is not None:
            return span
        for child in self.children:
            if isinstance(child, Container):
                nested = child.child_span(component)
                outer = self._child_spans.get(id(child))
                if nested is not None and outer is not None:
                    return (outer[0] + nested[0], nested[1])
        return None


# ---------------------------------------------------------------------------
# TUI
# ---------------------------------------------------------------------------


class TUI(Container):
    """Main TUI controller: rendering, input, overlays, cursor management.

    * Differential rendering -- only changed lines are re-written.
    * Overlays composited on top of the base content.
    * Post-render callbacks that run once the frame they were registered
      in has been laid out and written, so they observe final geometry.
    """

    def __init__(
        self,
        terminal: Terminal,
        show_hardware_cursor: bool | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__()

        self.terminal: Terminal = terminal
        self.scheduler: Scheduler = scheduler or LoopScheduler()

        self._previous_lines: list[str] = []
        self._previous_width: int = 0
        self._cursor_row: int = 0
        self._max_lines_rendered: int = 0
        self._full_redraw_count: int = 0

        self._focused_component: object | None = None
        self._render_requested: bool = False
        self._stopped: bool = False
        self._frame: int = 0
        self._frame_width: int = 0
        self._frame_height: int = 0

        self._show_hardware_cursor: bool = (
            show_hardware_cursor
            if show_hardware_cursor is not None
            else os.environ.get("CARETPOP_HARDWARE_CURSOR") == "1"
        )
        self._clear_on_shrink: bool = os.environ.get("CARETPOP_CLEAR_ON_SHRINK") == "1"

        self._overlay_stack: list[_OverlayEntry] = []
        self._post_render_callbacks: list[Callable[[], None]] = []
        self._frame_listeners: list[Callable[[], None]] = []

    # -- Properties ----------------------------------------------------------

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    @property
    def frame(self) -> int:
        """Number of completed render passes."""
        return self._frame

    @property
    def focused_component(self) -> object | None:
        return self._focused_component

    # -- Focus ---------------------------------------------------------------

    def set_focus(self, component: object | None) -> None:
        """Set the focused component, unfocusing the previous one."""
        if self._focused_component is component:
            return
        prev = self._focused_component
        self._focused_component = component
        if is_focusable(prev):
            prev.focused = False  # type: ignore[union-attr]
        if is_focusable(component):
            component.focused = True  # type: ignore[union-attr]

    # -- Overlays ------------------------------------------------------------

    def show_overlay(
        self,
        component: object,
        options: OverlayOptions | None = None,
    ) -> OverlayHandle:
        """Push an overlay onto the stack.

        Capturing overlays (the default) take focus; non-capturing ones
        are purely visual.
        """
        options = options or {}
        self._overlay_stack.append(
            {
                "component": component,
                "options": options,
                "pre_focus": self._focused_component,
            }
        )
        if not options.get("non_capturing"):
            self.set_focus(component)
        self.invalidate()
        return OverlayHandle(self, component)

    def hide_overlay(self, component: object) -> None:
        """Remove *component* from the overlay stack and restore focus."""
        for i, entry in enumerate(self._overlay_stack):
            if entry["component"] is component:
                break
        else:
            return

        entry = self._overlay_stack.pop(i)
        if self._focused_component is component:
            topmost = self._get_topmost_capturing_overlay()
            self.set_focus(topmost if topmost is not None else entry["pre_focus"])
        self.invalidate()

    def has_overlay(self) -> bool:
        return len(self._overlay_stack) > 0

    def overlay_count(self) -> int:
        return len(self._overlay_stack)

    def is_overlay_visible(self, component: object) -> bool:
        return any(entry["component"] is component for entry in self._overlay_stack)

    def _get_topmost_capturing_overlay(self) -> object | None:
        for entry in reversed(self._overlay_stack):
            if not entry["options"].get("non_capturing"):
                return entry["component"]
        return None

    # -- Geometry ------------------------------------------------------------

    def geometry_of(self, component: object) -> FieldGeometry | None:
        """Bounding box of *component* in the most recent completed frame.

        ``None`` until the component has been rendered, or when it was
        pushed entirely below the visible screen.
        """
        if self._frame == 0:
            return None
        span = self.child_span(component)
        if span is None:
            return None
        start, count = span
        height = min(count, self._frame_height - start)
        if height <= 0:
            return None
        return FieldGeometry(
            origin_x=0,
            origin_y=start,
            width=self._frame_width,
            height=height,
            scroll_y=getattr(component, "scroll_y", 0),
        )

    # -- Lifecycle -----------------------------------------------------------

    def invalidate(self) -> None:
        """Schedule a re-render (no-op if stopped)."""
        if self._stopped:
            return
        self.request_render()

    def start(self) -> None:
        """Start the terminal and the render loop."""
        self._stopped = False
        self.terminal.start(self.handle_input, self.request_render)
        if self._show_hardware_cursor:
            self.terminal.show_cursor()
        else:
            self.terminal.hide_cursor()
        self.request_render()

    def stop(self) -> None:
        """Stop rendering and leave the terminal cursor below the content."""
        self._stopped = True
        self._post_render_callbacks.clear()
        lines_below = len(self._previous_lines) - self._cursor_row - 1
        if lines_below > 0:
            self.terminal.write(f"\x1b[{lines_below}B")
        self.terminal.write("\r\n")
        self.terminal.show_cursor()
        self.terminal.stop()

    # -- Scheduling ----------------------------------------------------------

    def request_render(self) -> None:
        """Schedule a render on the next event-loop tick.

        Multiple calls coalesce into a single render pass.
        """
        if self._render_requested:
            return
        self._render_requested = True
        self.scheduler.call_soon(self._do_render_tick)

    def _do_render_tick(self) -> None:
        self._render_requested = False
        if self._stopped:
            return
        self.do_render()

    def add_post_render_callback(self, callback: Callable[[], None]) -> None:
        """Run *callback* once, right after the next completed render pass,
        and make sure that pass happens.
        """
        self._post_render_callbacks.append(callback)
        self.request_render()

    def add_frame_listener(self, listener: Callable[[], None]) -> None:
        """Call *listener* after every completed render pass."""
        self._frame_listeners.append(listener)

    def remove_frame_listener(self, listener: Callable[[], None]) -> None:
        try:
            self._frame_listeners.remove(listener)
        except ValueError:
            pass

    # -- Input ---------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Send input to the topmost capturing overlay, else the focused
        component.
        """
        if self._stopped:
            return
        target = self._get_topmost_capturing_overlay() or self._focused_component
        handler = getattr(target, "handle_input", None)
        if callable(handler):
            handler(data)

    # -- Overlay layout ------------------------------------------------------

    def _resolve_overlay_layout(
        self,
        options: OverlayOptions,
        term_width: int,
        term_height: int,
        content_height: int,
    ) -> dict[str, int]:
        """Absolute ``row``/``col`` and clamped ``width``/``height``."""
        width = max(1, min(options.get("width", term_width), term_width))

        height = min(content_height, options.get("max_height", content_height))
        height = max(1, min(height, term_height))

        row = options.get("row")
        if row is None:
            row = max(0, (term_height - height) // 2)
        col = options.get("col")
        if col is None:
            col = max(0, (term_width - width) // 2)

        row = max(0, min(row, term_height - 1))
        col = max(0, min(col, term_width - width))
        return {"row": row, "col": col, "width": width, "height": height}

    # -- Compositing ---------------------------------------------------------

    def _composite_overlays(
        self,
        base_lines: list[str],
        term_width: int,
        term_height: int,
    ) -> list[str]:
        result = list(base_lines)
        while len(result) < term_height:
            result.append("")

        for entry in self._overlay_stack:
            component = entry["component"]
            options = entry["options"]
            render = getattr(component, "render", None)
            if render is None:
                continue

            # Render at the provisional width first to learn the height
            provisional = self._resolve_overlay_layout(
                options, term_width, term_height, term_height
            )
            overlay_lines: list[str] = render(provisional["width"])
            layout = self._resolve_overlay_layout(
                options, term_width, term_height, len(overlay_lines)
            )

            for i, overlay_line in enumerate(overlay_lines[: layout["height"]]):
                row = layout["row"] + i
                if 0 <= row < len(result):
                    result[row] = self._composite_line_at(
                        result[row], overlay_line, layout["col"], layout["width"], term_width
                    )

        return result

    @staticmethod
    def _apply_line_resets(line: str) -> str:
        """Terminate any SGR styling so it cannot leak past the segment."""
        if "\x1b[" not in line or line.endswith(_SEGMENT_RESET):
            return line
        return line + _SEGMENT_RESET

    def _composite_line_at(
        self,
        base_line: str,
        overlay_line: str,
        col: int,
        overlay_width: int,
        term_width: int,
    ) -> str:
        after_start = col + overlay_width
        before, after = extract_segments(
            base_line, col, after_start, max(0, term_width - after_start)
        )
        before_width = visible_width(before)
        if before_width < col:
            before += " " * (col - before_width)

        overlay_vis_w = visible_width(overlay_line)
        if overlay_vis_w < overlay_width:
            overlay_line += " " * (overlay_width - overlay_vis_w)

        return (
            self._apply_line_resets(before)
            + self._apply_line_resets(overlay_line)
            + after
        )

    @staticmethod
    def _extract_cursor_position(lines: list[str]) -> tuple[list[str], int, int]:
        """Find and remove ``CURSOR_MARKER``; returns ``(lines, row, col)``."""
        for row, line in enumerate(lines):
            pos = line.find(CURSOR_MARKER)
            if pos == -1:
                continue
            cleaned = list(lines)
            cleaned[row] = line[:pos] + line[pos + len(CURSOR_MARKER) :]
            return cleaned, row, visible_width(line[:pos])
        return lines, max(0, len(lines) - 1), 0

    # -- Render --------------------------------------------------------------

    def do_render(self) -> None:
        """Perform a differential (or full) render pass.

        Renders the children, composites overlays, writes only changed lines
        (everything when the width changed), places the cursor and finally
        runs the post-render callbacks registered before this pass.
        """
        if self._stopped:
            return

        term_width = self.terminal.columns
        term_height = self.terminal.rows
        if term_width <= 0 or term_height <= 0:
            return

        base_lines = self.render(term_width)
        self._frame_width = term_width
        self._frame_height = term_height

        lines = (
            self._composite_overlays(base_lines, term_width, term_height)
            if self._overlay_stack
            else base_lines
        )
        lines = lines[:term_height]
        lines, cursor_row, cursor_col = self._extract_cursor_position(lines)

        force_full = term_width != self._previous_width or (
            self._clear_on_shrink and len(lines) < self._max_lines_rendered
        )
        if force_full:
            self._full_redraw_count += 1
            logger.debug("full redraw at %dx%d", term_width, term_height)

        out: list[str] = []
        if self._cursor_row > 0:
            out.append(f"\x1b[{self._cursor_row}A")
        out.append("\r")

        num_new = len(lines)
        num_old = len(self._previous_lines)

        if force_full:
            out.append("\x1b[J")
            for i, line in enumerate(lines):
                if i > 0:
                    out.append("\n")
                out.append(line + "\x1b[K")
            last_row = max(0, num_new - 1)
        else:
            for i in range(max(num_new, num_old)):
                if i > 0:
                    out.append("\n")
                if i >= num_new:
                    out.append("\r\x1b[K")
                elif i >= num_old or lines[i] != self._previous_lines[i]:
                    out.append("\r" + lines[i] + "\x1b[K")
            last_row = max(0, max(num_new, num_old) - 1)

        delta = last_row - cursor_row
        if delta > 0:
            out.append(f"\x1b[{delta}A")
        elif delta < 0:
            out.append(f"\x1b[{-delta}B")
        out.append("\r")
        if cursor_col > 0:
            out.append(f"\x1b[{cursor_col}C")
        if self._show_hardware_cursor:
            out.append("\x1b[?25h")

        self.terminal.write("".join(out))

        self._previous_lines = lines
        self._previous_width = term_width
        self._max_lines_rendered = max(self._max_lines_rendered, num_new)
        self._cursor_row = cursor_row
        self._frame += 1

        self._run_post_render_callbacks()

    def _run_post_render_callbacks(self) -> None:
        callbacks = self._post_render_callbacks
        self._post_render_callbacks = []
        for callback in callbacks:
            callback()
        for listener in list(self._frame_listeners):
            listener()
