"""TUI components."""

from caretpop.components.status_line import StatusLine
from caretpop.components.suggestion_list import SuggestionList
from caretpop.components.text_area import TextArea, TextAreaOptions, TextChunk, word_wrap_line

__all__ = [
    "StatusLine",
    "SuggestionList",
    "TextArea",
    "TextAreaOptions",
    "TextChunk",
    "word_wrap_line",
]
