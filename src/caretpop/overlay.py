"""Overlay controller: the single owner of the suggestion popup.

Text, selection and focus events never touch the popup directly.  They
schedule a recompute that runs after the next completed render pass, so
the caret is always located against the geometry of the text that was
actually painted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Union

from caretpop.components.suggestion_list import SuggestionList
from caretpop.config import OverlayConfig
from caretpop.errors import CaretNotVisible, GeometryUnavailable
from caretpop.locator import CaretLocator
from caretpop.suggest import SuggestionResolver
from caretpop.types import FieldGeometry, ScreenPoint

if TYPE_CHECKING:
    from caretpop.components.text_area import TextArea
    from caretpop.measure import FontMetrics
    from caretpop.scheduler import Cancellable
    from caretpop.tui import TUI, OverlayHandle, OverlayOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Absent:
    """No popup on screen."""


@dataclass(frozen=True)
class Visible:
    anchor: ScreenPoint
    items: tuple[str, ...]


OverlayState = Union[Absent, Visible]

ABSENT = Absent()


class PopupSlot:
    """Owns at most one overlay on the host's overlay stack.

    :meth:`replace` hides the current overlay before showing the new one,
    so two popups never coexist.
    """

    def __init__(self, tui: TUI) -> None:
        self._tui = tui
        self._handle: OverlayHandle | None = None

    @property
    def component(self) -> object | None:
        return self._handle.component if self._handle is not None else None

    @property
    def is_occupied(self) -> bool:
        return self._handle is not None

    def replace(self, component: object, options: OverlayOptions) -> OverlayHandle:
        self.release()
        self._handle = self._tui.show_overlay(component, options)
        return self._handle

    def release(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            handle.hide()


class OverlayController:
    """Keeps a suggestion popup anchored below the caret of a :class:`TextArea`.

    *font* must measure in the units of the host's geometry; it defaults
    to the field's own font.  Call :meth:`attach` to start listening and
    :meth:`dispose` to stop.
    """

    def __init__(
        self,
        tui: TUI,
        field: TextArea,
        resolver: SuggestionResolver | None = None,
        font: FontMetrics | None = None,
        config: OverlayConfig | None = None,
    ) -> None:
        self._tui = tui
        self._field = field
        self._resolver = resolver or SuggestionResolver()
        self._font = font
        self._config = config or OverlayConfig()
        self._scheduler = tui.scheduler

        self._state: OverlayState = ABSENT
        self._slot = PopupSlot(tui)
        self._popup: SuggestionList | None = None
        self._anchored_geometry: FieldGeometry | None = None

        self._recompute_pending = False
        self._stale_retries = 0
        self._blur_timer: Cancellable | None = None
        self._attached = False
        self._disposed = False
        self._saved_hooks: list[tuple[str, object]] = []

        self.on_state_change: Callable[[OverlayState], None] | None = None

    # -- Properties ----------------------------------------------------------

    @property
    def state(self) -> OverlayState:
        return self._state

    @property
    def popup(self) -> SuggestionList | None:
        return self._popup

    @property
    def font(self) -> FontMetrics:
        return self._font if self._font is not None else self._field.font

    @property
    def blur_pending(self) -> bool:
        return self._blur_timer is not None

    # -- Lifecycle -----------------------------------------------------------

    def attach(self) -> OverlayController:
        """Subscribe to the field's events and the host's frames."""
        if self._attached:
            return self
        self._attached = True
        self._hook("on_change", self._on_text_change)
        self._hook("on_selection_change", self._on_selection_change)
        self._hook("on_focus", self._on_focus)
        self._hook("on_blur", self._on_blur)

        previous = self._field.input_interceptor
        self._saved_hooks.append(("input_interceptor", previous))

        def intercept(data: str) -> bool:
            if self._intercept(data):
                return True
            return previous(data) if previous is not None else False

        self._field.input_interceptor = intercept
        self._tui.add_frame_listener(self._on_frame)
        logger.debug("overlay controller attached")
        return self

    def dispose(self) -> None:
        """Cancel pending work, remove the popup and unhook from the field."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_blur_timer()
        self._set_absent("disposed")
        for name, previous in reversed(self._saved_hooks):
            setattr(self._field, name, previous)
        self._saved_hooks.clear()
        self._tui.remove_frame_listener(self._on_frame)
        logger.debug("overlay controller disposed")

    def _hook(self, name: str, handler: Callable[..., None]) -> None:
        previous = getattr(self._field, name)
        self._saved_hooks.append((name, previous))

        def chained(*args: object) -> None:
            handler(*args)
            if previous is not None:
                previous(*args)

        setattr(self._field, name, chained)

    # -- Field events --------------------------------------------------------

    def _on_text_change(self, text: str) -> None:
        self.schedule_recompute()

    def _on_selection_change(self, caret: int) -> None:
        self.schedule_recompute()

    def _on_focus(self) -> None:
        if self._cancel_blur_timer():
            logger.debug("focus regained within grace period")
        self.schedule_recompute()

    def _on_blur(self) -> None:
        if self._disposed or self._blur_timer is not None:
            return
        try:
            self._blur_timer = self._scheduler.call_later(
                self._config.blur_grace_seconds, self._on_blur_timeout
            )
        except RuntimeError:
            logger.debug("no event loop for the grace timer, releasing popup now")
            self._set_absent("focus lost")
            return
        logger.debug("focus lost, grace timer started (%d ms)", self._config.blur_grace_ms)

    def _on_blur_timeout(self) -> None:
        self._blur_timer = None
        if self._field.focused:
            return
        self._set_absent("grace period expired")

    def _cancel_blur_timer(self) -> bool:
        if self._blur_timer is None:
            return False
        timer, self._blur_timer = self._blur_timer, None
        timer.cancel()
        return True

    def _on_frame(self) -> None:
        # Resize or scroll moved the field under a visible popup
        if self._recompute_pending or not isinstance(self._state, Visible):
            return
        if self._tui.geometry_of(self._field) != self._anchored_geometry:
            self.schedule_recompute()

    def _intercept(self, data: str) -> bool:
        popup = self._popup
        if popup is None or not isinstance(self._state, Visible):
            return False
        consumed = popup.handle_input(data)
        if consumed and self._popup is popup:
            self._tui.request_render()
        return consumed

    # -- Recompute -----------------------------------------------------------

    def schedule_recompute(self) -> None:
        """Recompute after the next completed render pass.

        Requests coalesce: only one recompute is pending at a time and it
        reads whatever state is current when it runs.
        """
        if self._disposed or self._recompute_pending:
            return
        self._recompute_pending = True
        self._tui.add_post_render_callback(self._run_recompute)

    def _run_recompute(self) -> None:
        self._recompute_pending = False
        if self._disposed:
            return
        if not self._field.focused and self._blur_timer is None:
            logger.debug("recompute skipped, field not focused")
            return

        geometry = self._tui.geometry_of(self._field)
        if self._is_stale(geometry):
            self._retry_stale()
            return
        self._stale_retries = 0

        state = self._field.state
        items = self._resolver.resolve(state.text[: state.caret])
        if not items:
            self._set_absent("no candidates")
            return

        locator = CaretLocator.for_field(self._field, strict=self._config.debug)
        try:
            anchor = locator.locate_checked(state, geometry, self.font)
        except GeometryUnavailable:
            self._retry_stale()
            return
        except CaretNotVisible:
            self._set_absent("caret off screen")
            return

        self._show(anchor, tuple(items), geometry)

    def _is_stale(self, geometry: FieldGeometry | None) -> bool:
        if geometry is None or not geometry.is_laid_out:
            return True
        field = self._field
        return field.rendered_revision != field.revision or field.rendered_state != field.state

    def _retry_stale(self) -> None:
        if self._stale_retries < self._config.max_stale_retries:
            self._stale_retries += 1
            logger.debug(
                "field geometry stale, retrying after next frame (%d/%d)",
                self._stale_retries,
                self._config.max_stale_retries,
            )
            self.schedule_recompute()
            return
        logger.debug("field geometry still stale, dropping popup")
        self._stale_retries = 0
        self._set_absent("stale geometry")

    # -- Popup ---------------------------------------------------------------

    def _show(
        self,
        anchor: ScreenPoint,
        items: tuple[str, ...],
        geometry: FieldGeometry | None,
    ) -> None:
        self._anchored_geometry = geometry
        new_state = Visible(anchor=anchor, items=items)
        if new_state == self._state and self._slot.is_occupied:
            return

        popup = SuggestionList(
            list(items),
            max_visible=self._config.max_visible,
            max_width=self._config.popup_max_width,
        )
        popup.on_select = self.tap
        popup.on_cancel = self.dismiss
        self._slot.replace(popup, self._popup_options(anchor, popup))
        self._popup = popup
        self._transition(new_state)

    def _popup_options(self, anchor: ScreenPoint, popup: SuggestionList) -> OverlayOptions:
        height = popup.preferred_height()
        line_height = self.font.line_height
        row = anchor.y + line_height
        # Flip above the caret line when there is no room below
        if row + height > self._tui.terminal.rows and anchor.y - height >= 0:
            row = anchor.y - height
        return {
            "row": int(row),
            "col": int(anchor.x),
            "width": popup.preferred_width(),
            "max_height": height,
            "non_capturing": True,
        }

    def tap(self, suggestion: str) -> None:
        """Accept *suggestion* into the field and refocus it."""
        if self._disposed:
            return
        logger.debug("accepting suggestion %r", suggestion)
        self._field.set_state(self._resolver.accept(self._field.state, suggestion))
        if not self._field.focused:
            self._tui.set_focus(self._field)
        self.schedule_recompute()

    def dismiss(self) -> None:
        """Hide the popup until the next qualifying edit."""
        self._set_absent("dismissed")

    def _set_absent(self, reason: str) -> None:
        self._slot.release()
        self._popup = None
        self._anchored_geometry = None
        self._transition(ABSENT, reason)

    def _transition(self, new_state: OverlayState, reason: str = "") -> None:
        if new_state == self._state:
            return
        if isinstance(new_state, Visible):
            logger.debug(
                "popup visible at (%g, %g) with %d items",
                new_state.anchor.x,
                new_state.anchor.y,
                len(new_state.items),
            )
        else:
            logger.debug("popup absent (%s)", reason)
        self._state = new_state
        if self.on_state_change is not None:
            self.on_state_change(new_state)
