"""Spacing decisions that keep tokens under the tokens they were aligned with."""

from __future__ import annotations

from dataclasses import dataclass

from tlaglyph.errors import InvariantViolation
from tlaglyph.types import Direction, Token, TokenGrid


@dataclass(frozen=True, slots=True)
class SpacingDecision:
    """How many spaces go before a token, and why.

    ``realign`` is set when the token is the first real content on a line of
    leading comments and its anchor column is already behind the buffer end;
    ``space`` is then measured from the start of an emptied buffer.
    """

    space: int
    aligned: bool = False
    realign: bool = False


def original_gap(row: list[Token], item: int) -> int:
    """Spaces between a token and its predecessor in the source line."""
    token = row[item]
    if item == 0:
        return token.column
    return token.column - row[item - 1].end_column


def resolve_anchor(grid: TokenGrid, line: int, item: int) -> Token | None:
    """Anchor token of ``grid[line][item]``, or None when it is unaligned."""
    ref = grid[line][item].alignment_anchor
    if ref is None:
        return None
    if not grid.has_token(ref):
        raise InvariantViolation(
            f"alignment anchor ({ref.line + 1}, {ref.item + 1}) does not exist",
            line=line,
            item=item,
        )
    if ref.line >= line:
        raise InvariantViolation(
            f"alignment anchor on line {ref.line + 1} is not on an earlier line",
            line=line,
            item=item,
        )
    return grid.resolve(ref)


def reconcile_spacing(
    grid: TokenGrid,
    line: int,
    item: int,
    buffer_length: int,
    direction: Direction,
    *,
    only_comments_so_far: bool,
) -> SpacingDecision:
    """Decide the spacing before ``grid[line][item]``.

    An anchor is honoured only when it sits on the same original column and
    was itself placed. If honouring it would need negative spacing, the
    first non-comment token after leading comments asks for a realign;
    anywhere else the original gap to the predecessor is kept.
    """
    row = grid[line]
    token = row[item]
    anchor = resolve_anchor(grid, line, item)
    if (
        anchor is not None
        and anchor.column == token.column
        and anchor.output_column is not None
        and anchor.output_column >= 0
    ):
        space = anchor.output_column - buffer_length
        if space >= 0:
            return SpacingDecision(space=space, aligned=True)
        if only_comments_so_far and not token.is_comment:
            # Leading comments keep their width when converting to ASCII,
            # so only a shrinking conversion can get here.
            if direction == "TO_ASCII":
                raise InvariantViolation(
                    "alignment infeasible after leading comments while converting to ASCII",
                    line=line,
                    item=item,
                    context=f"anchor output column {anchor.output_column}, buffer at {buffer_length}",
                )
            return SpacingDecision(space=anchor.output_column, aligned=True, realign=True)
    return SpacingDecision(space=original_gap(row, item))
