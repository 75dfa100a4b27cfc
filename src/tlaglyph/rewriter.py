"""Alignment-preserving rewriter for converting TLA+ between ASCII and Unicode.

Lines are rewritten top to bottom. Each token is placed either under the
output position of its alignment anchor (always on an earlier, finished
line) or at its original distance from its predecessor, then emitted in the
target encoding.

Glyphs are never wider than their ASCII spellings, so converting to Unicode
can only pull a token left. When a line starts with comments and its first
real token can no longer reach its anchor column, the comments are erased,
the token is put in place, and the comments are re-appended at the end of
the line as self-contained ``(* ... *)`` blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tlaglyph.alignment import reconcile_spacing
from tlaglyph.comments import (
    CommentDeferralQueue,
    format_comment,
    is_trailing_marker,
)
from tlaglyph.errors import InvariantViolation
from tlaglyph.sinks import ListSink, OutputSink
from tlaglyph.symbols import translate
from tlaglyph.types import DIRECTIONS, CommentToken, Direction, Token, TokenGrid

log = logging.getLogger(__name__)


class LineBuffer:
    """Append-only line under construction that tracks its own length."""

    __slots__ = ("_parts", "_length")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._length = 0

    def __len__(self) -> int:
        return self._length

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)

    def pad(self, count: int) -> None:
        self.append(" " * count)

    def clear(self) -> None:
        self._parts.clear()
        self._length = 0

    def getvalue(self) -> str:
        return "".join(self._parts)


@dataclass(frozen=True, slots=True)
class LineResult:
    text: str
    realigned: bool
    deferred_comments: int


@dataclass(slots=True)
class ConversionStats:
    """Summary of one ``convert`` run."""

    direction: Direction
    lines_written: int = 0
    realigned_lines: int = 0
    deferred_comments: int = 0


def render_token(token: Token, direction: Direction) -> str:
    """Text of ``token`` in the target encoding."""
    match token.kind:
        case "BUILTIN":
            alt = translate(token.text, direction)
            return alt if alt is not None else token.text
        case "STRING":
            return '"' + token.text + '"'
        case (
            "NUMBER"
            | "IDENT"
            | "LABEL"
            | "DASHES"
            | "END_MARKER"
            | "PROLOG"
            | "EPILOG"
            | "PROOF_STEP"
        ):
            return token.text
        case "COMMENT":
            if not isinstance(token, CommentToken):
                raise InvariantViolation("COMMENT token without a comment subtype")
            return format_comment(token)
        case _:
            raise InvariantViolation(f"bad token kind {token.kind!r}")


def _describe(row: list[Token], item: int) -> str:
    token = row[item]
    text = f"{token.kind} {token.text!r} at column {token.column}"
    if item > 0:
        prev = row[item - 1]
        text += f" :: {prev.kind} {prev.text!r} at column {prev.column} width {prev.width}"
    return text


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {sorted(DIRECTIONS)}, got {direction!r}")


def _realign(out: LineBuffer, queue: CommentDeferralQueue, space: int) -> int:
    """Erase the leading comments and return the new spacing for the token."""
    out.clear()
    queue.arm()
    first = queue.first_leading_comment
    if first is not None and first.comment_subtype == "END_OVERRUN":
        # The block was opened on an earlier line; its closer cannot move.
        out.append("*)")
        space -= 2
    return space


def rewrite_line_detailed(grid: TokenGrid, line: int, direction: Direction) -> LineResult:
    """Rewrite ``grid[line]``, filling in ``output_column`` of its tokens."""
    _check_direction(direction)
    row = grid[line]
    last = len(row) - 1
    out = LineBuffer()
    queue = CommentDeferralQueue()
    realigned = False

    for item, token in enumerate(row):
        # An open-block or line comment ending the line must follow the
        # relocated comments.
        if queue.deferring and item == last and is_trailing_marker(token):
            continue

        decision = reconcile_spacing(
            grid,
            line,
            item,
            len(out),
            direction,
            only_comments_so_far=queue.only_comments_so_far,
        )
        space = decision.space
        if decision.realign:
            space = _realign(out, queue, space)
            realigned = True
            log.debug(
                "Realigned line %d at item %d to column %d",
                line + 1,
                item + 1,
                decision.space,
            )

        if space < 0:
            raise InvariantViolation(
                f"negative spacing {space} before token",
                line=line,
                item=item,
                context=_describe(row, item),
            )
        out.pad(space)
        queue.observe(token)

        token.output_column = len(out)
        moved_wrong_way = (
            token.output_column > token.column
            if direction == "TO_UNICODE"
            else token.output_column < token.column
        )
        if moved_wrong_way:
            raise InvariantViolation(
                f"token moved to output column {token.output_column} converting {direction}",
                line=line,
                item=item,
                context=_describe(row, item),
            )

        try:
            out.append(render_token(token, direction))
        except InvariantViolation as exc:
            raise InvariantViolation(
                exc.reason, line=line, item=item, context=_describe(row, item)
            ) from exc

    deferred = queue.flush(out)
    if queue.deferring and row and is_trailing_marker(row[last]):
        trailing = row[last]
        assert isinstance(trailing, CommentToken)
        out.append(" ")
        out.append(format_comment(trailing))

    return LineResult(text=out.getvalue(), realigned=realigned, deferred_comments=deferred)


def rewrite_line(grid: TokenGrid, line: int, direction: Direction) -> str:
    """Rewrite one line; earlier lines must already have been rewritten."""
    return rewrite_line_detailed(grid, line, direction).text


def convert(grid: TokenGrid, direction: Direction, sink: OutputSink) -> ConversionStats:
    """Rewrite every line of ``grid`` into ``sink`` and close it.

    The sink is closed even when an InvariantViolation aborts the run; lines
    finished before the fault stay written, the faulty line is dropped.
    """
    _check_direction(direction)
    stats = ConversionStats(direction=direction)
    try:
        for line in range(len(grid)):
            result = rewrite_line_detailed(grid, line, direction)
            sink.put_line(result.text)
            stats.lines_written += 1
            if result.realigned:
                stats.realigned_lines += 1
            stats.deferred_comments += result.deferred_comments
    finally:
        sink.close()
    log.debug(
        "Converted %d line(s) %s: %d realigned, %d comment(s) deferred",
        stats.lines_written,
        direction,
        stats.realigned_lines,
        stats.deferred_comments,
    )
    return stats


def convert_to_lines(grid: TokenGrid, direction: Direction) -> list[str]:
    """Convenience wrapper around ``convert`` collecting lines in memory."""
    sink = ListSink()
    convert(grid, direction, sink)
    return sink.lines
