"""Comment rendering and per-line comment deferral."""

from __future__ import annotations

import logging
from typing import Protocol

from tlaglyph.errors import InvariantViolation
from tlaglyph.types import CommentToken, Token, TokenGrid

log = logging.getLogger(__name__)

TRAILING_SUBTYPES = frozenset({"BEGIN_OVERRUN", "LINE"})


class TextBuffer(Protocol):
    def append(self, text: str) -> None: ...


def format_comment(token: CommentToken) -> str:
    """Render a comment in place, according to how it joins adjacent lines."""
    text = token.text
    match token.comment_subtype:
        case "NORMAL":
            return "(*" + text + "*)"
        case "LINE":
            return "\\*" + text
        case "BEGIN_OVERRUN":
            # A zero-width opener only marks where the block starts.
            return "(*" + text if token.width > 0 else ""
        case "END_OVERRUN":
            return text + "*)"
        case "OVERRUN":
            return text


def format_deferred_comment(token: CommentToken) -> str:
    """Render a relocated comment as a self-contained block."""
    return " (*" + token.text + "*)"


def is_trailing_marker(token: Token) -> bool:
    """True for a comment that must stay last on its line (open block or line comment)."""
    return isinstance(token, CommentToken) and token.comment_subtype in TRAILING_SUBTYPES


class CommentDeferralQueue:
    """Leading comments of one output line that may have to move to its end.

    Built fresh for every line. Comments are collected while nothing but
    comments has been written; once real content appears the list is only
    kept if a realign has already erased those comments from the buffer.
    """

    __slots__ = ("leading_comments", "only_comments_so_far", "deferring")

    def __init__(self) -> None:
        self.leading_comments: list[CommentToken] | None = []
        self.only_comments_so_far = True
        self.deferring = False

    def observe(self, token: Token) -> None:
        if not token.is_comment:
            self.only_comments_so_far = False
            if not self.deferring:
                self.leading_comments = None
            return
        if (
            self.only_comments_so_far
            and self.leading_comments is not None
            and isinstance(token, CommentToken)
        ):
            self.leading_comments.append(token)

    def arm(self) -> None:
        """Mark every queued comment as erased; they are replayed by ``flush``."""
        self.deferring = True
        for token in self.leading_comments or ():
            token.output_column = None

    @property
    def first_leading_comment(self) -> CommentToken | None:
        if not self.leading_comments:
            return None
        return self.leading_comments[0]

    def flush(self, line_buffer: TextBuffer) -> int:
        """Append the deferred comments; returns how many were written."""
        if not self.deferring or not self.leading_comments:
            return 0
        for token in self.leading_comments:
            line_buffer.append(format_deferred_comment(token))
        log.debug("Moved %d leading comment(s) to end of line", len(self.leading_comments))
        return len(self.leading_comments)


def check_overrun_sequence(grid: TokenGrid) -> None:
    """Validate that multi-line comment pieces open and close in row order.

    Raises InvariantViolation on an interior or closing piece with no open
    block, a second opener while a block is open, or a block never closed.
    """
    open_at: tuple[int, int] | None = None
    for line_idx, row in enumerate(grid):
        for item_idx, token in enumerate(row):
            if not isinstance(token, CommentToken):
                continue
            subtype = token.comment_subtype
            if subtype == "BEGIN_OVERRUN":
                if open_at is not None:
                    raise InvariantViolation(
                        "block comment opened while another is still open",
                        line=line_idx,
                        item=item_idx,
                        context=f"open since line {open_at[0] + 1}",
                    )
                open_at = (line_idx, item_idx)
            elif subtype in ("OVERRUN", "END_OVERRUN"):
                if open_at is None:
                    raise InvariantViolation(
                        f"{subtype} comment without an open block comment",
                        line=line_idx,
                        item=item_idx,
                        context=repr(token.text),
                    )
                if subtype == "END_OVERRUN":
                    open_at = None
    if open_at is not None:
        raise InvariantViolation(
            "block comment never closed",
            line=open_at[0],
            item=open_at[1],
        )
