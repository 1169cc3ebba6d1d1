"""Suggestion resolver for delimiter-separated tokens.

Text is read as a path of tokens joined by a delimiter (``"banana.ora"``).
A trailing delimiter opens the next menu level; otherwise the trailing
token filters the base candidates.
"""

from __future__ import annotations

from collections.abc import Iterable

from caretpop.types import EditorState

DEFAULT_DELIMITER = "."
DEFAULT_CANDIDATES = ("apple", "banana", "cherry", "grape", "orange")
DEFAULT_NEXT_LEVEL = ("banana", "orange", "grape")


class SuggestionResolver:
    """Pure, stateless candidate lookup.

    ``resolve`` never looks at anything but its argument, so calling it
    twice with the same text yields equal lists in the same order.
    """

    def __init__(
        self,
        candidates: Iterable[str] = DEFAULT_CANDIDATES,
        next_level: Iterable[str] = DEFAULT_NEXT_LEVEL,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string")
        self._candidates = tuple(candidates)
        self._next_level = tuple(next_level)
        self.delimiter = delimiter

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates

    @property
    def next_level(self) -> tuple[str, ...]:
        return self._next_level

    def trailing_token(self, text: str) -> str:
        """The text after the last delimiter (all of *text* if none)."""
        return text.rsplit(self.delimiter, 1)[-1]

    def resolve(self, text: str) -> list[str]:
        """Return the candidates for *text*; an empty list means no popup."""
        if not text:
            return []
        if text.endswith(self.delimiter):
            return list(self._next_level)
        token = self.trailing_token(text)
        return [c for c in self._candidates if token in c]

    def accept(self, state: EditorState, suggestion: str) -> EditorState:
        """Insert *suggestion* in place of the token before the caret.

        After a delimiter the token is empty, so the suggestion is
        appended.  Text after the caret is kept, and the new caret sits at
        the end of the inserted suggestion.
        """
        before = state.text[: state.caret]
        after = state.text[state.caret :]
        token_start = len(before) - len(self.trailing_token(before))
        new_before = before[:token_start] + suggestion
        return EditorState.at_end(new_before + after).with_caret(len(new_before))
