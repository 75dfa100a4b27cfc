"""Exception types raised by the converter."""

from __future__ import annotations


class InvariantViolation(RuntimeError):
    """An upstream collaborator handed the rewriter a grid it cannot trust.

    ``line`` and ``item`` are 0-based; the message shows them 1-based, the
    way editors number lines.
    """

    def __init__(
        self,
        reason: str,
        *,
        line: int | None = None,
        item: int | None = None,
        context: str = "",
    ) -> None:
        self.reason = reason
        self.line = line
        self.item = item
        self.context = context
        where = ""
        if line is not None:
            where = f"line {line + 1}"
            if item is not None:
                where += f", item {item + 1}"
            where += ": "
        message = f"{where}{reason}"
        if context:
            message += f" [{context}]"
        super().__init__(message)


class TokenGridFormatError(ValueError):
    """Raised when a serialized token grid does not decode into tokens."""


class CommandLineError(ValueError):
    """Raised for invalid command-line usage."""
