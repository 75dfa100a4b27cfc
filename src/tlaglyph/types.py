"""Core types for the token grid consumed by the line rewriter."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal, get_args


type TokenKind = Literal[
    "BUILTIN",
    "NUMBER",
    "IDENT",
    "LABEL",
    "DASHES",
    "END_MARKER",
    "PROLOG",
    "EPILOG",
    "PROOF_STEP",
    "STRING",
    "COMMENT",
]
type CommentSubtype = Literal["NORMAL", "LINE", "BEGIN_OVERRUN", "END_OVERRUN", "OVERRUN"]
type Direction = Literal["TO_UNICODE", "TO_ASCII"]

TOKEN_KINDS: frozenset[str] = frozenset(get_args(TokenKind.__value__))
COMMENT_SUBTYPES: frozenset[str] = frozenset(get_args(CommentSubtype.__value__))
DIRECTIONS: frozenset[str] = frozenset(get_args(Direction.__value__))


@dataclass(frozen=True, slots=True)
class AnchorRef:
    """Index pair (line, item) of the token another token is aligned with."""

    line: int
    item: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.item < 0:
            raise ValueError(f"anchor indices must be >= 0, got ({self.line}, {self.item})")


@dataclass(slots=True)
class Token:
    """One lexical unit of a spec line.

    Every field except ``output_column`` is fixed by the upstream tokenizer.
    ``output_column`` is written exactly once, by the rewriter, when the
    token is placed in its output line.
    """

    kind: TokenKind
    text: str
    column: int
    width: int
    alignment_anchor: AnchorRef | None = None
    output_column: int | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.kind not in TOKEN_KINDS:
            raise ValueError(f"unknown token kind {self.kind!r}")
        if self.column < 0:
            raise ValueError(f"column must be >= 0, got {self.column}")
        if self.width < 0:
            raise ValueError(f"width must be >= 0, got {self.width}")

    @property
    def is_comment(self) -> bool:
        return self.kind == "COMMENT"

    @property
    def end_column(self) -> int:
        return self.column + self.width


@dataclass(slots=True)
class CommentToken(Token):
    """Comment token; ``comment_subtype`` says how it joins neighbouring lines."""

    comment_subtype: CommentSubtype = "NORMAL"

    def __post_init__(self) -> None:
        Token.__post_init__(self)
        if self.kind != "COMMENT":
            raise ValueError(f"CommentToken must have kind COMMENT, got {self.kind!r}")
        if self.comment_subtype not in COMMENT_SUBTYPES:
            raise ValueError(f"unknown comment subtype {self.comment_subtype!r}")


def default_width(kind: TokenKind, text: str, subtype: CommentSubtype | None = None) -> int:
    """Rendered width of a token in its original source spelling."""
    if kind == "STRING":
        return len(text) + 2
    if kind != "COMMENT":
        return len(text)
    match subtype:
        case "NORMAL":
            return len(text) + 4
        case "LINE" | "BEGIN_OVERRUN" | "END_OVERRUN":
            return len(text) + 2
        case _:
            return len(text)


def make_token(
    kind: TokenKind,
    text: str,
    column: int,
    *,
    width: int | None = None,
    anchor: AnchorRef | tuple[int, int] | None = None,
    subtype: CommentSubtype | None = None,
) -> Token:
    """Build a ``Token`` (or ``CommentToken``) filling in the default width."""
    if isinstance(anchor, tuple):
        anchor = AnchorRef(line=anchor[0], item=anchor[1])
    if width is None:
        width = default_width(kind, text, subtype)
    if kind == "COMMENT":
        return CommentToken(
            kind=kind,
            text=text,
            column=column,
            width=width,
            alignment_anchor=anchor,
            comment_subtype=subtype or "NORMAL",
        )
    if subtype is not None:
        raise ValueError(f"subtype is only valid for COMMENT tokens, got {kind!r}")
    return Token(kind=kind, text=text, column=column, width=width, alignment_anchor=anchor)


class TokenGrid:
    """Ordered lines of tokens; ``grid[i][j]`` is item ``j`` on line ``i``.

    Anchors are index pairs resolved through the grid, so several tokens can
    share one anchor without holding references to each other.
    """

    __slots__ = ("_lines",)

    def __init__(self, lines: list[list[Token]] | None = None) -> None:
        self._lines: list[list[Token]] = [list(row) for row in (lines or [])]

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, line: int) -> list[Token]:
        return self._lines[line]

    def __iter__(self) -> Iterator[list[Token]]:
        return iter(self._lines)

    def resolve(self, ref: AnchorRef) -> Token:
        return self._lines[ref.line][ref.item]

    def has_token(self, ref: AnchorRef) -> bool:
        return ref.line < len(self._lines) and ref.item < len(self._lines[ref.line])

    def reset_output_columns(self) -> None:
        """Forget every ``output_column`` so the grid can be converted again."""
        for row in self._lines:
            for token in row:
                token.output_column = None
