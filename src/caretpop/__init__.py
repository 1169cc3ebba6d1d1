"""caretpop: caret-anchored suggestion popups for terminal text inputs."""

# Components (re-exported from components package)
from caretpop.components import (
    StatusLine,
    SuggestionList,
    TextArea,
    TextAreaOptions,
    TextChunk,
    word_wrap_line,
)

# Configuration
from caretpop.config import OverlayConfig

# Errors
from caretpop.errors import CaretError, CaretNotVisible, GeometryUnavailable, InvalidIndex

# Keybindings
from caretpop.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    EditorAction,
    EditorKeybindingsManager,
    get_editor_keybindings,
    set_editor_keybindings,
)

# Keyboard input handling
from caretpop.keys import Key, KeyId, is_printable, matches_key, parse_key

# Caret location
from caretpop.locator import CaretLocator, locate

# Text measurement
from caretpop.measure import (
    CaretAffinity,
    CaretPoint,
    CellFontMetrics,
    FontMetrics,
    LineSegment,
    TextLayout,
    caret_offset,
    find_segment,
    measure,
)

# Overlay lifecycle
from caretpop.overlay import (
    ABSENT,
    Absent,
    OverlayController,
    OverlayState,
    PopupSlot,
    Visible,
)

# Scheduling
from caretpop.scheduler import Cancellable, LoopScheduler, Scheduler

# Suggestions
from caretpop.suggest import SuggestionResolver

# Terminal interface and implementations
from caretpop.terminal import ProcessTerminal, Terminal

# TUI core
from caretpop.tui import (
    CURSOR_MARKER,
    TUI,
    Component,
    Container,
    Focusable,
    OverlayHandle,
    OverlayOptions,
    is_focusable,
)

# Value types
from caretpop.types import EdgeInsets, EditorState, FieldGeometry, ScreenPoint

# Utilities
from caretpop.utils import truncate_to_width, visible_width

__all__ = [
    # Components
    "StatusLine",
    "SuggestionList",
    "TextArea",
    "TextAreaOptions",
    "TextChunk",
    "word_wrap_line",
    # Configuration
    "OverlayConfig",
    # Errors
    "CaretError",
    "CaretNotVisible",
    "GeometryUnavailable",
    "InvalidIndex",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "EditorAction",
    "EditorKeybindingsManager",
    "get_editor_keybindings",
    "set_editor_keybindings",
    # Keys
    "Key",
    "KeyId",
    "is_printable",
    "matches_key",
    "parse_key",
    # Caret location
    "CaretLocator",
    "locate",
    # Text measurement
    "CaretAffinity",
    "CaretPoint",
    "CellFontMetrics",
    "FontMetrics",
    "LineSegment",
    "TextLayout",
    "caret_offset",
    "find_segment",
    "measure",
    # Overlay lifecycle
    "ABSENT",
    "Absent",
    "OverlayController",
    "OverlayState",
    "PopupSlot",
    "Visible",
    # Scheduling
    "Cancellable",
    "LoopScheduler",
    "Scheduler",
    # Suggestions
    "SuggestionResolver",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # TUI core
    "CURSOR_MARKER",
    "TUI",
    "Component",
    "Container",
    "Focusable",
    "OverlayHandle",
    "OverlayOptions",
    "is_focusable",
    # Value types
    "EdgeInsets",
    "EditorState",
    "FieldGeometry",
    "ScreenPoint",
    # Utilities
    "truncate_to_width",
    "visible_width",
]
