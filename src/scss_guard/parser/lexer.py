"""Tokenizer for SCSS sources.

The lexer only finds the structure the parser needs: whitespace, comments,
braces, semicolons and "chunks" of everything else. A chunk swallows strings,
parenthesized/bracketed groups and ``#{...}`` interpolation whole, so braces
and semicolons inside them never reach the parser.
"""

from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple

from ..utils.errors import ParseError
from .nodes import Position

WHITESPACE_CHARS = " \t\n\r\f"


class TokenKind(str, Enum):
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    SEMICOLON = "semicolon"
    CHUNK = "chunk"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    start: int
    end: int


class ScanError(Exception):
    """Raised by the scanning helpers; carries the offset of the problem."""

    def __init__(self, offset: int, reason: str):
        super().__init__(reason)
        self.offset = offset
        self.reason = reason


class LineIndex:
    """Maps string offsets to 1-based line/column positions."""

    def __init__(self, source: str):
        self._starts = [0]
        self._starts.extend(i + 1 for i, char in enumerate(source) if char == "\n")

    def position(self, offset: int) -> Position:
        line = bisect_right(self._starts, offset)
        return Position(line=line, column=offset - self._starts[line - 1] + 1, offset=offset)

    def line_start(self, offset: int) -> int:
        return self._starts[bisect_right(self._starts, offset) - 1]


def skip_string(text: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        if char == "\n":
            break
        i += 1
    raise ScanError(start, "unterminated string")


def skip_interpolation(text: str, start: int) -> int:
    """Return the index just past the ``#{...}`` opening at ``start``."""
    depth = 0
    i = start + 1
    while i < len(text):
        char = text[i]
        if char in "\"'":
            i = skip_string(text, i)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise ScanError(start, "unterminated interpolation '#{'")


def skip_group(text: str, start: int) -> int:
    """Return the index just past the ``(...)`` or ``[...]`` opening at ``start``."""
    opener = text[start]
    closer = ")" if opener == "(" else "]"
    i = start + 1
    while i < len(text):
        char = text[i]
        if char in "\"'":
            i = skip_string(text, i)
        elif char == "#" and text.startswith("{", i + 1):
            i = skip_interpolation(text, i)
        elif char in "([":
            i = skip_group(text, i)
        elif char == closer:
            return i + 1
        elif char in ")]":
            raise ScanError(i, f"unexpected '{char}'")
        elif char in "{}":
            break
        else:
            i += 1
    raise ScanError(start, f"unclosed '{opener}'")


def iter_top_level(text: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(index, char)`` for characters outside strings, groups and interpolation."""
    i = 0
    while i < len(text):
        char = text[i]
        try:
            if char in "\"'":
                i = skip_string(text, i)
                continue
            if char == "#" and text.startswith("{", i + 1):
                i = skip_interpolation(text, i)
                continue
            if char in "([":
                i = skip_group(text, i)
                continue
        except ScanError:
            return
        yield i, char
        i += 1


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs outside strings and groups to single spaces."""
    segments: List[str] = []
    last = 0
    for index, char in iter_top_level(text):
        if char in WHITESPACE_CHARS:
            segments.append(text[last:index])
            last = index + 1
    segments.append(text[last:])
    return " ".join(segment for segment in segments if segment)


class Lexer:
    """Splits SCSS source into structural tokens."""

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename
        self.index = LineIndex(source)

    def tokenize(self) -> List[Token]:
        try:
            return list(self._scan())
        except ScanError as e:
            position = self.index.position(min(e.offset, len(self.source)))
            raise ParseError(
                e.reason, line=position.line, column=position.column, filename=self.filename
            )

    def _scan(self) -> Iterator[Token]:
        source = self.source
        length = len(source)
        i = 0
        while i < length:
            char = source[i]
            if char in WHITESPACE_CHARS:
                end = i
                while end < length and source[end] in WHITESPACE_CHARS:
                    end += 1
                yield Token(TokenKind.WHITESPACE, source[i:end], i, end)
            elif source.startswith("//", i):
                end = source.find("\n", i)
                if end == -1:
                    end = length
                yield Token(TokenKind.COMMENT, source[i:end].rstrip(), i, end)
            elif source.startswith("/*", i):
                close = source.find("*/", i + 2)
                if close == -1:
                    raise ScanError(i, "unterminated block comment")
                end = close + 2
                yield Token(TokenKind.COMMENT, source[i:end], i, end)
            elif char == "{":
                end = i + 1
                yield Token(TokenKind.LBRACE, char, i, end)
            elif char == "}":
                end = i + 1
                yield Token(TokenKind.RBRACE, char, i, end)
            elif char == ";":
                end = i + 1
                yield Token(TokenKind.SEMICOLON, char, i, end)
            else:
                end = self._scan_chunk(i)
                yield Token(TokenKind.CHUNK, source[i:end], i, end)
            i = end

    def _scan_chunk(self, start: int) -> int:
        source = self.source
        i = start
        while i < len(source):
            char = source[i]
            if char in WHITESPACE_CHARS or char in "{};":
                break
            if source.startswith("//", i) or source.startswith("/*", i):
                break
            if char in "\"'":
                i = skip_string(source, i)
            elif char in "([":
                i = skip_group(source, i)
            elif char == "#" and source.startswith("{", i + 1):
                i = skip_interpolation(source, i)
            elif char in ")]":
                raise ScanError(i, f"unexpected '{char}'")
            elif char == "\\":
                i += 2
            else:
                i += 1
        return min(i, len(source))
