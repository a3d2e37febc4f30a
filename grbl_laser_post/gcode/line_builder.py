"""Assemble tokens and comments into G-code lines.

Grbl treats ``(`` ... ``)`` as a comment, so parentheses inside comment
text are removed here, once, for every line the encoder writes.
"""

from __future__ import annotations

from dataclasses import dataclass


def strip_comment(text: str) -> str:
    """Remove comment delimiters and surrounding whitespace."""
    return text.replace("(", "").replace(")", "").strip()


def build_line(*tokens: str | None, comment: str | None = None) -> str | None:
    """Join non-empty tokens with single spaces and append a comment.

    Returns
    -------
    str | None
        The line, or ``None`` when there are no tokens and no comment
        (a blank line is never produced).
    """
    parts = [token for token in tokens if token]
    text = strip_comment(comment) if comment else ""
    if text:
        parts.append(f"({text})")
    if not parts:
        return None
    return " ".join(parts)


def comment_line(text: str) -> str | None:
    """Render a pure comment line, ``None`` if *text* strips to nothing."""
    return build_line(comment=text)


@dataclass(frozen=True)
class CommandLine:
    """Ordered optional tokens plus an optional inline comment."""

    tokens: tuple[str | None, ...] = ()
    comment: str | None = None

    @classmethod
    def of(cls, *tokens: str | None, comment: str | None = None) -> CommandLine:
        return cls(tokens=tokens, comment=comment)

    def render(self) -> str | None:
        return build_line(*self.tokens, comment=self.comment)
