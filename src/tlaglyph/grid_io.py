"""JSON interchange for token grids produced by an external tokenizer.

Document shape::

    {"format": "tlaglyph.token_grid/v1",
     "lines": [[{"kind": "BUILTIN", "text": "\\\\A", "column": 0,
                 "width": 2, "anchor": [0, 1]}, ...], ...]}

``width`` defaults to the token's rendered source width, ``anchor`` to
none. ``subtype`` is required for COMMENT tokens and rejected elsewhere.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import orjson

from tlaglyph.comments import check_overrun_sequence
from tlaglyph.errors import TokenGridFormatError
from tlaglyph.types import (
    COMMENT_SUBTYPES,
    TOKEN_KINDS,
    AnchorRef,
    CommentToken,
    Token,
    TokenGrid,
    make_token,
)

GRID_FORMAT = "tlaglyph.token_grid/v1"


def _token_from_dict(row: Any, line: int, item: int) -> Token:
    where = f"line {line + 1}, item {item + 1}"
    if not isinstance(row, dict):
        raise TokenGridFormatError(f"{where}: token must be an object")
    data = cast(dict[str, Any], row)
    for key in ("kind", "text", "column"):
        if key not in data:
            raise TokenGridFormatError(f"{where}: missing key {key!r}")
    kind = data["kind"]
    if kind not in TOKEN_KINDS:
        raise TokenGridFormatError(f"{where}: unknown kind {kind!r}")
    text = data["text"]
    column = data["column"]
    if not isinstance(text, str):
        raise TokenGridFormatError(f"{where}: text must be a string")
    if not isinstance(column, int) or isinstance(column, bool):
        raise TokenGridFormatError(f"{where}: column must be an integer")

    subtype = data.get("subtype")
    if kind == "COMMENT":
        if subtype not in COMMENT_SUBTYPES:
            raise TokenGridFormatError(f"{where}: unknown comment subtype {subtype!r}")
    elif subtype is not None:
        raise TokenGridFormatError(f"{where}: subtype given for {kind} token")

    anchor: AnchorRef | None = None
    raw_anchor = data.get("anchor")
    if raw_anchor is not None:
        if (
            not isinstance(raw_anchor, list)
            or len(cast(list[Any], raw_anchor)) != 2
            or not all(isinstance(v, int) for v in cast(list[Any], raw_anchor))
        ):
            raise TokenGridFormatError(f"{where}: anchor must be [line, item]")
        anchor_line, anchor_item = cast(list[int], raw_anchor)
        if anchor_line >= line:
            raise TokenGridFormatError(f"{where}: anchor must point to an earlier line")
        try:
            anchor = AnchorRef(line=anchor_line, item=anchor_item)
        except ValueError as exc:
            raise TokenGridFormatError(f"{where}: {exc}") from exc

    width = data.get("width")
    if width is not None and (not isinstance(width, int) or isinstance(width, bool)):
        raise TokenGridFormatError(f"{where}: width must be an integer")
    try:
        return make_token(kind, text, column, width=width, anchor=anchor, subtype=subtype)
    except ValueError as exc:
        raise TokenGridFormatError(f"{where}: {exc}") from exc


def parse_token_grid(payload: Any, *, check_comments: bool = True) -> TokenGrid:
    """Build a ``TokenGrid`` from a decoded JSON document.

    Raises TokenGridFormatError for a malformed document and
    InvariantViolation for a broken multi-line comment sequence.
    """
    if not isinstance(payload, dict):
        raise TokenGridFormatError("token grid must be a JSON object")
    doc = cast(dict[str, Any], payload)
    fmt = doc.get("format", GRID_FORMAT)
    if fmt != GRID_FORMAT:
        raise TokenGridFormatError(f"unsupported token grid format {fmt!r}")
    raw_lines = doc.get("lines")
    if not isinstance(raw_lines, list):
        raise TokenGridFormatError("'lines' must be a list of token lists")

    lines: list[list[Token]] = []
    for line_idx, raw_row in enumerate(cast(list[Any], raw_lines)):
        if not isinstance(raw_row, list):
            raise TokenGridFormatError(f"line {line_idx + 1}: must be a list of tokens")
        lines.append(
            [
                _token_from_dict(raw_token, line_idx, item_idx)
                for item_idx, raw_token in enumerate(cast(list[Any], raw_row))
            ],
        )

    grid = TokenGrid(lines)
    for line_idx, row in enumerate(grid):
        for item_idx, token in enumerate(row):
            ref = token.alignment_anchor
            if ref is not None and not grid.has_token(ref):
                raise TokenGridFormatError(
                    f"line {line_idx + 1}, item {item_idx + 1}: "
                    f"anchor [{ref.line}, {ref.item}] does not exist",
                )
    if check_comments:
        check_overrun_sequence(grid)
    return grid


def load_token_grid(path: Path, *, check_comments: bool = True) -> TokenGrid:
    """Load a token grid JSON file."""
    try:
        payload = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        raise TokenGridFormatError(f"{path}: invalid JSON: {exc}") from exc
    return parse_token_grid(payload, check_comments=check_comments)


def token_grid_to_dict(grid: TokenGrid) -> dict[str, Any]:
    """Serializable form of ``grid``; widths and anchors are always written."""
    lines: list[list[dict[str, Any]]] = []
    for row in grid:
        out_row: list[dict[str, Any]] = []
        for token in row:
            entry: dict[str, Any] = {
                "kind": token.kind,
                "text": token.text,
                "column": token.column,
                "width": token.width,
            }
            if token.alignment_anchor is not None:
                entry["anchor"] = [token.alignment_anchor.line, token.alignment_anchor.item]
            if isinstance(token, CommentToken):
                entry["subtype"] = token.comment_subtype
            out_row.append(entry)
        lines.append(out_row)
    return {"format": GRID_FORMAT, "lines": lines}


def dump_token_grid(grid: TokenGrid, path: Path, *, pretty: bool = True) -> None:
    """Write ``grid`` as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_INDENT_2 if pretty else 0
    path.write_bytes(orjson.dumps(token_grid_to_dict(grid), option=opts))
