"""Custom error classes for scss-guard."""

from typing import Optional, Dict, Any


class ScssGuardError(Exception):
    """Base exception class for scss-guard."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParseError(ScssGuardError):
    """Exception raised when a stylesheet cannot be parsed.

    Fatal for the file it came from only: the linter records it against that
    file and carries on with the rest of the run.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        filename: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.line = line
        self.column = column
        self.filename = filename

    @property
    def reason(self) -> str:
        return self.message


class UnsupportedSyntaxError(ParseError):
    """Exception raised for sources written in the indented .sass syntax."""

    pass


class ConfigurationError(ScssGuardError):
    """Exception raised when configuration or invocation is invalid."""

    pass


class ToolExecutionError(ScssGuardError):
    """Exception raised when MCP tool execution fails."""

    def __init__(self, tool_name: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.tool_name = tool_name


def format_parse_error(error: ParseError) -> str:
    """Format a parse error as ``file:line:column: reason``."""
    parts = [error.filename or "<string>"]
    if error.line is not None:
        parts.append(str(error.line))
        if error.column is not None:
            parts.append(str(error.column))
    return f"{':'.join(parts)}: {error.message}"

