"""Exception types raised by the conversion pipeline."""

from __future__ import annotations


class FlowbridgeError(Exception):
    """Base class for all pipeline errors."""


class ParseError(FlowbridgeError):
    """Raised when markup or stylesheet source cannot be parsed at all."""

    def __init__(
        self, message: str, line: int | None = None, column: int | None = None
    ):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class MediaQueryError(FlowbridgeError):
    """Raised when a media query does not match the supported grammar."""

    def __init__(self, query: str, detail: str = "") -> None:
        self.query = query
        self.detail = detail
        super().__init__(f"Unsupported media query {query!r}" + (f": {detail}" if detail else ""))


class SizeLimitExceeded(FlowbridgeError):
    """Raised when an embed chunk is still larger than the hard ceiling."""

    def __init__(self, kind: str, index: int, size: int, limit: int) -> None:
        self.kind = kind
        self.index = index
        self.size = size
        self.limit = limit
        super().__init__(
            f"{kind} embed chunk {index + 1} is {size} bytes, above the {limit} byte limit"
        )


class ConfigError(FlowbridgeError):
    """Raised when a configuration file is malformed."""
