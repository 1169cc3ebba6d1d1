"""Tests for the TUI host: rendering, geometry, post-render callbacks, overlays."""

from __future__ import annotations

from caretpop.tui import CURSOR_MARKER, TUI, Container, OverlayHandle
from caretpop.types import FieldGeometry

from .manual_scheduler import ManualScheduler
from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Minimal test components
# ---------------------------------------------------------------------------


class SimpleComponent:
    """A minimal component that renders a fixed set of lines."""

    def __init__(self, lines: list[str] | None = None, text: str = "") -> None:
        if lines is not None:
            self._lines = lines
        else:
            self._lines = [text] if text else [""]
        self.focused = False
        self.input_log: list[str] = []

    def render(self, width: int) -> list[str]:
        return list(self._lines)

    def invalidate(self) -> None:
        pass

    def handle_input(self, data: str) -> None:
        self.input_log.append(data)


class ScrolledComponent(SimpleComponent):
    scroll_y = 2


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class TestContainer:
    def test_children_render_in_order(self) -> None:
        container = Container()
        container.add_child(SimpleComponent(text="a"))
        container.add_child(SimpleComponent(lines=["b", "c"]))
        assert container.render(10) == ["a", "b", "c"]

    def test_child_span_recorded_by_render(self) -> None:
        container = Container()
        first = SimpleComponent(lines=["a", "b"])
        second = SimpleComponent(lines=["c", "d", "e"])
        container.add_child(first)
        container.add_child(second)
        assert container.child_span(second) is None
        container.render(10)
        assert container.child_span(first) == (0, 2)
        assert container.child_span(second) == (2, 3)

    def test_remove_child_forgets_span(self) -> None:
        container = Container()
        child = SimpleComponent(text="a")
        container.add_child(child)
        container.render(10)
        container.remove_child(child)
        assert container.child_span(child) is None
        container.remove_child(child)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestTUIRender:
    def test_render_writes_lines(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term)
        tui.add_child(SimpleComponent(lines=["hello", "world"]))
        tui.do_render()
        assert "hello" in term.output
        assert "world" in term.output

    def test_unchanged_lines_are_not_rewritten(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term)
        tui.add_child(SimpleComponent(text="hello"))
        tui.do_render()
        term.clear_buffer()
        tui.do_render()
        assert "hello" not in term.output
        assert tui.full_redraws == 1

    def test_frame_counter(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term)
        assert tui.frame == 0
        tui.do_render()
        tui.do_render()
        assert tui.frame == 2

    def test_zero_columns_does_not_render(self) -> None:
        tui = TUI(VirtualTerminal(rows=24, columns=0))
        tui.do_render()
        assert tui.frame == 0

    def test_cursor_marker_is_stripped_and_positions_cursor(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term, show_hardware_cursor=True)
        tui.add_child(SimpleComponent(text="ab" + CURSOR_MARKER + "c"))
        tui.do_render()
        assert CURSOR_MARKER not in term.output
        assert "\x1b[2C" in term.output

    def test_stop_prevents_render(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term)
        tui.start()
        tui.stop()
        term.clear_buffer()
        tui.add_child(SimpleComponent(text="late"))
        tui.invalidate()
        assert "late" not in term.output


class TestRenderScheduling:
    def test_requests_coalesce_into_one_tick(self) -> None:
        scheduler = ManualScheduler()
        tui = TUI(VirtualTerminal(), scheduler=scheduler)
        tui.request_render()
        tui.request_render()
        tui.invalidate()
        assert scheduler.ready_count == 1
        scheduler.run_ready()
        assert tui.frame == 1

    def test_without_running_loop_render_is_synchronous(self) -> None:
        tui = TUI(VirtualTerminal())
        tui.request_render()
        assert tui.frame == 1


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class TestGeometry:
    def test_none_before_first_frame(self) -> None:
        tui = TUI(VirtualTerminal(), scheduler=ManualScheduler())
        field = SimpleComponent(text="x")
        tui.add_child(field)
        assert tui.geometry_of(field) is None

    def test_reports_row_offset_and_size(self) -> None:
        term = VirtualTerminal(rows=24, columns=40)
        tui = TUI(term)
        header = SimpleComponent(text="header")
        field = SimpleComponent(lines=["a", "b", "c"])
        tui.add_child(header)
        tui.add_child(field)
        tui.do_render()
        assert tui.geometry_of(field) == FieldGeometry(0, 1, 40, 3, 0)
        assert tui.geometry_of(header) == FieldGeometry(0, 0, 40, 1, 0)

    def test_unknown_component(self) -> None:
        tui = TUI(VirtualTerminal())
        tui.do_render()
        assert tui.geometry_of(SimpleComponent()) is None

    def test_nested_containers_add_offsets(self) -> None:
        tui = TUI(VirtualTerminal(rows=24, columns=40))
        field = SimpleComponent(lines=["x", "y"])
        inner = Container()
        inner.add_child(SimpleComponent(text="label"))
        inner.add_child(field)
        outer = Container()
        outer.add_child(inner)
        tui.add_child(SimpleComponent(text="header"))
        tui.add_child(outer)
        tui.do_render()
        assert tui.geometry_of(field) == FieldGeometry(0, 2, 40, 2, 0)

    def test_component_below_screen_has_no_geometry(self) -> None:
        tui = TUI(VirtualTerminal(rows=3, columns=40))
        field = SimpleComponent(lines=["x", "y"])
        tui.add_child(SimpleComponent(lines=["1", "2", "3"]))
        tui.add_child(field)
        tui.do_render()
        assert tui.geometry_of(field) is None

    def test_height_is_cut_at_screen_bottom(self) -> None:
        tui = TUI(VirtualTerminal(rows=4, columns=40))
        field = SimpleComponent(lines=["x", "y"])
        tui.add_child(SimpleComponent(lines=["1", "2", "3"]))
        tui.add_child(field)
        tui.do_render()
        assert tui.geometry_of(field) == FieldGeometry(0, 3, 40, 1, 0)

    def test_scroll_offset_comes_from_component(self) -> None:
        tui = TUI(VirtualTerminal(rows=24, columns=40))
        field = ScrolledComponent(lines=["x"])
        tui.add_child(field)
        tui.do_render()
        geometry = tui.geometry_of(field)
        assert geometry is not None
        assert geometry.scroll_y == 2


# ---------------------------------------------------------------------------
# Post-render callbacks
# ---------------------------------------------------------------------------


class TestPostRenderCallbacks:
    def test_runs_once_after_next_frame(self) -> None:
        scheduler = ManualScheduler()
        tui = TUI(VirtualTerminal(), scheduler=scheduler)
        seen: list[int] = []
        tui.add_post_render_callback(lambda: seen.append(tui.frame))
        assert seen == []
        scheduler.run_ready()
        assert seen == [1]
        tui.request_render()
        scheduler.run_ready()
        assert seen == [1]

    def test_sees_geometry_of_the_same_frame(self) -> None:
        scheduler = ManualScheduler()
        tui = TUI(VirtualTerminal(rows=24, columns=40), scheduler=scheduler)
        field = SimpleComponent(lines=["a"])
        tui.add_child(field)
        seen: list[FieldGeometry | None] = []
        tui.add_post_render_callback(lambda: seen.append(tui.geometry_of(field)))
        scheduler.run_ready()
        assert seen == [FieldGeometry(0, 0, 40, 1, 0)]

    def test_run_in_registration_order(self) -> None:
        scheduler = ManualScheduler()
        tui = TUI(VirtualTerminal(), scheduler=scheduler)
        order: list[str] = []
        tui.add_post_render_callback(lambda: order.append("first"))
        tui.add_post_render_callback(lambda: order.append("second"))
        scheduler.run_ready()
        assert order == ["first", "second"]

    def test_callback_added_during_callback_waits_for_next_frame(self) -> None:
        scheduler = ManualScheduler()
        tui = TUI(VirtualTerminal(), scheduler=scheduler)
        frames: list[tuple[str, int]] = []

        def outer() -> None:
            frames.append(("outer", tui.frame))
            tui.add_post_render_callback(lambda: frames.append(("inner", tui.frame)))

        tui.add_post_render_callback(outer)
        scheduler.run_ready()
        assert frames == [("outer", 1), ("inner", 2)]

    def test_frame_listener_runs_every_frame(self) -> None:
        tui = TUI(VirtualTerminal())
        calls: list[int] = []

        def listener() -> None:
            calls.append(tui.frame)

        tui.add_frame_listener(listener)
        tui.do_render()
        tui.do_render()
        tui.remove_frame_listener(listener)
        tui.do_render()
        assert calls == [1, 2]


# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------


class TestOverlays:
    def test_show_overlay_returns_handle(self) -> None:
        tui = TUI(VirtualTerminal())
        comp = SimpleComponent(text="overlay")
        handle = tui.show_overlay(comp)
        assert isinstance(handle, OverlayHandle)
        assert handle.is_visible()
        handle.hide()
        assert not tui.has_overlay()

    def test_overlay_composited_at_row_and_col(self) -> None:
        term = VirtualTerminal(rows=5, columns=10)
        tui = TUI(term)
        tui.add_child(SimpleComponent(lines=["abcdefghij"] * 3))
        tui.show_overlay(
            SimpleComponent(text="XX"),
            {"row": 1, "col": 3, "width": 2, "non_capturing": True},
        )
        assert "abcXXfghij" in term.output

    def test_overlay_without_position_is_centred(self) -> None:
        term = VirtualTerminal(rows=5, columns=10)
        tui = TUI(term)
        tui.add_child(SimpleComponent(lines=["." * 10] * 5))
        tui.show_overlay(SimpleComponent(text="XX"), {"width": 2, "non_capturing": True})
        assert "....XX...." in term.output

    def test_overlay_pushed_back_inside_right_edge(self) -> None:
        term = VirtualTerminal(rows=3, columns=10)
        tui = TUI(term)
        tui.add_child(SimpleComponent(lines=["abcdefghij"]))
        tui.show_overlay(
            SimpleComponent(text="XYZ"),
            {"row": 0, "col": 9, "width": 3, "non_capturing": True},
        )
        assert "abcdefgXYZ" in term.output

    def test_overlay_max_height_cuts_lines(self) -> None:
        term = VirtualTerminal(rows=6, columns=10)
        tui = TUI(term)
        tui.show_overlay(
            SimpleComponent(lines=["one", "two", "three"]),
            {"row": 0, "col": 0, "width": 5, "max_height": 2, "non_capturing": True},
        )
        assert "two" in term.output
        assert "three" not in term.output

    def test_overlay_below_content_pads_screen(self) -> None:
        term = VirtualTerminal(rows=6, columns=20)
        tui = TUI(term)
        tui.add_child(SimpleComponent(text="top"))
        tui.show_overlay(SimpleComponent(text="POPUP"), {"row": 4, "col": 0, "width": 5})
        assert "POPUP" in term.output

    def test_capturing_overlay_takes_focus_and_input(self) -> None:
        term = VirtualTerminal()
        tui = TUI(term)
        field = SimpleComponent(text="field")
        tui.add_child(field)
        tui.set_focus(field)
        tui.start()
        dialog = SimpleComponent(text="dialog")
        tui.show_overlay(dialog)
        assert tui.focused_component is dialog
        term.simulate_input("x")
        assert dialog.input_log == ["x"]
        tui.hide_overlay(dialog)
        assert tui.focused_component is field
        assert field.focused is True

    def test_non_capturing_overlay_leaves_focus_and_input(self) -> None:
        term = VirtualTerminal()
        tui = TUI(term)
        field = SimpleComponent(text="field")
        tui.add_child(field)
        tui.set_focus(field)
        tui.start()
        popup = SimpleComponent(text="popup")
        tui.show_overlay(popup, {"non_capturing": True})
        term.simulate_input("x")
        assert tui.focused_component is field
        assert field.input_log == ["x"]
        assert popup.input_log == []
        assert popup.focused is False

    def test_hidden_overlay_not_rendered(self) -> None:
        term = VirtualTerminal()
        tui = TUI(term)
        comp = SimpleComponent(text="HIDDEN_MARKER")
        handle = tui.show_overlay(comp)
        handle.hide()
        term.clear_buffer()
        tui.do_render()
        assert "HIDDEN_MARKER" not in term.output
