"""Exceptions for tzdecode library."""

from __future__ import annotations


class TzDecodeError(Exception):
    """Base exception for all tzdecode errors."""


class TzifError(TzDecodeError):
    """Exception raised when decoding a TZif binary buffer."""


class HeaderError(TzifError):
    """Exception raised when a TZif header is invalid.

    A version 2+ file carries two headers: the version 1 header at the start
    of the file and a second header after the skipped version 1 data block.
    The 'header_pass' attribute is 1 or 2 for the header that failed.
    """

    def __init__(self, message: str, *, header_pass: int) -> None:
        """Initialize HeaderError."""
        super().__init__(f"{message} (header pass {header_pass})")
        self.message = message
        self.header_pass = header_pass


class DataBlockError(TzifError):
    """Exception raised when the data block is truncated or malformed."""


class ValidationError(TzifError):
    """Exception raised when a decoded data block violates a format invariant."""


class FooterError(TzifError):
    """Exception raised when the version 2+ footer is not wrapped in newlines."""


class TzRuleError(TzDecodeError):
    """Exception raised when parsing a POSIX TZ string.

    The 'message' attribute contains a human-readable message about the
    error. The 'line' and 'column' attributes (1-based) locate where the
    error occurred and 'rest' holds the input that was not consumed.
    """

    def __init__(self, message: str, *, line: int, column: int, rest: str) -> None:
        """Initialize the TzRuleError with a message and position."""
        super().__init__(f"Error at ({line}:{column}) of '{rest}': {message}")
        self.message = message
        self.line = line
        self.column = column
        self.rest = rest


class GrammarError(TzRuleError):
    """The TZ string does not match the grammar at some position."""


class RangeError(TzRuleError):
    """An offset is outside the bound permitted by the parse options."""
