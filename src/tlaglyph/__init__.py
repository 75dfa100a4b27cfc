"""Convert TLA+ token grids between ASCII and Unicode, keeping alignment."""

from tlaglyph.alignment import SpacingDecision, reconcile_spacing
from tlaglyph.comments import (
    CommentDeferralQueue,
    check_overrun_sequence,
    format_comment,
)
from tlaglyph.errors import CommandLineError, InvariantViolation, TokenGridFormatError
from tlaglyph.grid_io import (
    dump_token_grid,
    load_token_grid,
    parse_token_grid,
    token_grid_to_dict,
)
from tlaglyph.rewriter import (
    ConversionStats,
    convert,
    convert_to_lines,
    render_token,
    rewrite_line,
)
from tlaglyph.sinks import FileSink, ListSink, OutputSink, StreamSink
from tlaglyph.symbols import translate
from tlaglyph.types import (
    AnchorRef,
    CommentSubtype,
    CommentToken,
    Direction,
    Token,
    TokenGrid,
    TokenKind,
    make_token,
)

__all__ = [
    "AnchorRef",
    "CommandLineError",
    "CommentDeferralQueue",
    "CommentSubtype",
    "CommentToken",
    "ConversionStats",
    "Direction",
    "FileSink",
    "InvariantViolation",
    "ListSink",
    "OutputSink",
    "SpacingDecision",
    "StreamSink",
    "Token",
    "TokenGrid",
    "TokenGridFormatError",
    "TokenKind",
    "check_overrun_sequence",
    "convert",
    "convert_to_lines",
    "dump_token_grid",
    "format_comment",
    "load_token_grid",
    "make_token",
    "parse_token_grid",
    "reconcile_spacing",
    "render_token",
    "rewrite_line",
    "token_grid_to_dict",
    "translate",
]
