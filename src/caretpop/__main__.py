"""Interactive demo: a text area with a caret-anchored suggestion popup."""

from __future__ import annotations

import argparse
import asyncio
import logging

from caretpop.components import StatusLine, TextArea, TextAreaOptions
from caretpop.config import OverlayConfig
from caretpop.overlay import OverlayController, OverlayState, Visible
from caretpop.suggest import SuggestionResolver
from caretpop.terminal import ProcessTerminal
from caretpop.tui import TUI

logger = logging.getLogger(__name__)

_HELP = "type, '.' opens the next level, Tab/Enter accepts, Esc hides, Ctrl+C quits"


async def run(args: argparse.Namespace) -> None:
    config = OverlayConfig.from_env()
    if args.grace_ms is not None:
        config.blur_grace_ms = args.grace_ms
    if args.debug:
        config.debug = True

    terminal = ProcessTerminal()
    tui = TUI(terminal)
    status = StatusLine(_HELP)
    field = TextArea(tui, TextAreaOptions(padding_x=args.padding_x, padding_y=args.padding_y))
    tui.add_child(status)
    tui.add_child(field)
    tui.set_focus(field)

    controller = OverlayController(tui, field, SuggestionResolver(), config=config)

    def on_state_change(state: OverlayState) -> None:
        if isinstance(state, Visible):
            status.set_text(f"caret at ({state.anchor.x:g}, {state.anchor.y:g}), {len(state.items)} suggestions")
        else:
            status.set_text(_HELP)

    controller.on_state_change = on_state_change
    controller.attach()

    done = asyncio.get_running_loop().create_future()

    def on_exit() -> None:
        if not done.done():
            done.set_result(None)

    field.on_exit = on_exit

    terminal.clear_screen()
    tui.start()
    logger.info("demo started")
    try:
        await done
    finally:
        controller.dispose()
        tui.stop()
        logger.info("demo stopped")


def main() -> None:
    parser = argparse.ArgumentParser(description="caretpop: caret-anchored suggestion popup demo")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    parser.add_argument(
        "--log-file",
        default="caretpop.log",
        help="Log file; stderr shares the terminal with the UI (default: caretpop.log)",
    )
    parser.add_argument("--grace-ms", type=int, default=None, help="Focus-loss grace period in ms")
    parser.add_argument("--padding-x", type=int, default=0, help="Horizontal padding of the text area")
    parser.add_argument("--padding-y", type=int, default=0, help="Vertical padding of the text area")
    parser.add_argument("--debug", action="store_true", help="Fail fast on invalid caret indices")
    args = parser.parse_args()

    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
