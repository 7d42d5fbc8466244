"""Recursive-descent parser turning SCSS source into a ``StyleSheet`` tree."""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..utils.errors import ParseError
from ..utils.logging_config import LoggerMixin
from .lexer import Lexer, LineIndex, Token, TokenKind, collapse_whitespace, iter_top_level
from .nodes import (
    AtRule,
    Block,
    Comment,
    Extend,
    Include,
    NestedProperty,
    Node,
    Position,
    Property,
    RuleDeclaration,
    Selector,
    StyleSheet,
    Variable,
    block_of,
)
from .selectors import SelectorSyntaxError, parse_selector_list

DEFAULT_MAX_NESTING_DEPTH = 32

_AT_NAME_RE = re.compile(r"@([A-Za-z_-][\w-]*)")
_INCLUDE_RE = re.compile(r"@include\s+([\w-]+(?:\.[\w-]+)?)\s*(.*)\Z", re.DOTALL)
_VARIABLE_NAME_RE = re.compile(r"^[\w-]+$")
_VARIABLE_FLAGS_RE = re.compile(r"((?:\s*!(?:default|global))+)\s*\Z")
# "font: {" or "margin: 0 {"; "a:hover {" has no space after the colon
_NESTED_PROPERTY_RE = re.compile(r"([A-Za-z-][\w-]*)\s*:(?=\s|\Z)(.*)\Z", re.DOTALL)

_TRIVIA = (TokenKind.WHITESPACE, TokenKind.COMMENT)


@dataclass
class _Prelude:
    """The tokens of one statement or block header, before its terminator."""

    tokens: List[Token] = field(default_factory=list)

    def add(self, token: Token) -> None:
        self.tokens.append(token)

    def __bool__(self) -> bool:
        return any(token.kind == TokenKind.CHUNK for token in self.tokens)

    @property
    def significant(self) -> List[Token]:
        tokens = list(self.tokens)
        while tokens and tokens[-1].kind in _TRIVIA:
            tokens.pop()
        while tokens and tokens[0].kind in _TRIVIA:
            tokens.pop(0)
        return tokens

    @property
    def comments(self) -> List[Token]:
        return [token for token in self.tokens if token.kind == TokenKind.COMMENT]

    @property
    def start(self) -> int:
        return self.significant[0].start

    @property
    def end(self) -> int:
        return self.significant[-1].end

    def clean_text(self, source: str) -> str:
        """Source slice with any embedded comments blanked out (offsets preserved)."""
        tokens = self.significant
        start = tokens[0].start
        chars = list(source[start : tokens[-1].end])
        for token in tokens:
            if token.kind == TokenKind.COMMENT:
                for i in range(token.start - start, token.end - start):
                    if chars[i] != "\n":
                        chars[i] = " "
        return "".join(chars)


@dataclass
class _Layout:
    """Layout facts shared by every node, computed at the node's first token."""

    position: Position
    depth: int
    blank_lines_before: int
    first_on_line: bool
    indent: str

    def as_kwargs(self) -> dict:
        return {
            "position": self.position,
            "depth": self.depth,
            "blank_lines_before": self.blank_lines_before,
            "first_on_line": self.first_on_line,
            "indent": self.indent,
        }


class Parser(LoggerMixin):
    """Parser for the SCSS (brace) syntax.

    Comments are kept as nodes in source position, ``//`` and ``/* */`` are
    told apart, and ``#{...}`` interpolation is never mistaken for a block or
    an ID selector.
    """

    def __init__(
        self,
        source: str,
        filename: str = "<string>",
        max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
    ):
        self.source = source.replace("\r\n", "\n").replace("\r", "\n")
        self.filename = filename
        self.max_nesting_depth = max_nesting_depth
        self._index = LineIndex(self.source)
        self._tokens: List[Token] = []
        self._pos = 0

    def parse(self) -> StyleSheet:
        """Parse the source.

        Raises:
            ParseError: on unbalanced braces, unterminated strings/comments,
                invalid selectors or declarations, or excessive nesting
        """
        self._tokens = Lexer(self.source, self.filename).tokenize()
        self._pos = 0
        children, _ = self._parse_children(depth=0, opener=None)
        return StyleSheet(filename=self.filename, source=self.source, children=children)

    # Helpers

    def _error(self, reason: str, offset: int) -> ParseError:
        position = self._index.position(min(offset, len(self.source)))
        return ParseError(reason, line=position.line, column=position.column, filename=self.filename)

    def _line_prefix(self, offset: int) -> str:
        return self.source[self._index.line_start(offset) : offset]

    def _layout(self, offset: int, depth: int, newlines: int) -> _Layout:
        prefix = self._line_prefix(offset)
        on_own_line = prefix.strip() == ""
        return _Layout(
            position=self._index.position(offset),
            depth=depth,
            blank_lines_before=max(0, newlines - 1),
            first_on_line=on_own_line,
            indent=prefix if on_own_line else "",
        )

    def _comment(self, token: Token, depth: int, newlines: int = 0, trailing: Optional[bool] = None) -> Comment:
        layout = self._layout(token.start, depth, newlines)
        if trailing is None:
            trailing = not layout.first_on_line
        return Comment(
            text=token.value,
            style="line" if token.value.startswith("//") else "block",
            trailing=trailing,
            **layout.as_kwargs(),
        )

    def _selectors(self, text: str, start: int) -> List[Selector]:
        try:
            return parse_selector_list(text, start, self._index.position)
        except SelectorSyntaxError as e:
            raise self._error(e.reason, start + e.offset)

    def _next(self) -> Optional[Token]:
        if self._pos >= len(self._tokens):
            return None
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    # Blocks

    def _parse_children(self, depth: int, opener: Optional[Token]) -> Tuple[List[Node], Optional[Token]]:
        children: List[Node] = []
        prelude = _Prelude()
        prelude_newlines = 0
        newlines = 0
        # Whether code precedes the next token on its line (block opener or a terminator)
        after_code = opener is not None
        declarations = 0

        def push(node: Node) -> None:
            nonlocal declarations
            if not isinstance(node, Comment):
                if isinstance(node, Property):
                    node.index = declarations
                declarations += 1
            children.append(node)

        def push_with_comments(node: Node, prelude: _Prelude) -> None:
            # Comments written inside the header or statement: own-line ones go
            # above the node, same-line ones trail it (or its opening brace).
            comments = [self._comment(token, depth) for token in prelude.comments]
            leading = [comment for comment in comments if not comment.trailing]
            trailing = [comment for comment in comments if comment.trailing]
            if leading:
                leading[0].blank_lines_before = node.blank_lines_before
                node.blank_lines_before = 0
            for comment in leading:
                push(comment)
            push(node)
            block = block_of(node)
            if block is not None:
                for comment in trailing:
                    comment.depth = depth + 1
                block.children[:0] = trailing
            else:
                for comment in trailing:
                    push(comment)

        while True:
            token = self._next()

            if token is None:
                if opener is not None:
                    raise self._error("unclosed block, expected '}'", opener.start)
                if prelude:
                    push_with_comments(
                        self._statement(prelude, depth, prelude_newlines, terminated=False), prelude
                    )
                return children, None

            kind = token.kind
            if kind == TokenKind.WHITESPACE:
                if prelude.tokens:
                    prelude.add(token)
                else:
                    newlines += token.value.count("\n")
                    if "\n" in token.value:
                        after_code = False
                continue

            if kind == TokenKind.COMMENT:
                if prelude.tokens:
                    prelude.add(token)
                    continue
                push(self._comment(token, depth, newlines, trailing=after_code))
                newlines = 0
                continue

            if kind == TokenKind.CHUNK:
                if not prelude.tokens:
                    prelude_newlines = newlines
                prelude.add(token)
                continue

            if kind == TokenKind.SEMICOLON:
                if prelude:
                    push_with_comments(
                        self._statement(prelude, depth, prelude_newlines, terminated=True), prelude
                    )
                prelude = _Prelude()
                newlines = 0
                after_code = True
                continue

            if kind == TokenKind.LBRACE:
                if not prelude:
                    raise self._error("expected selector before '{'", token.start)
                if depth + 1 > self.max_nesting_depth:
                    raise self._error(
                        f"maximum nesting depth of {self.max_nesting_depth} exceeded", token.start
                    )
                block_children, closer = self._parse_children(depth + 1, token)
                assert closer is not None
                close_prefix = self._line_prefix(closer.start)
                close_on_own_line = close_prefix.strip() == ""
                block = Block(
                    open_brace=self._index.position(token.start),
                    space_before=self.source[prelude.end : token.start],
                    close_brace=self._index.position(closer.start),
                    close_on_own_line=close_on_own_line,
                    close_indent=close_prefix if close_on_own_line else "",
                    children=block_children,
                )
                push_with_comments(self._block_node(prelude, depth, prelude_newlines, block), prelude)
                prelude = _Prelude()
                newlines = 0
                after_code = True
                continue

            # RBRACE
            if opener is None:
                raise self._error("unexpected '}'", token.start)
            if prelude:
                push_with_comments(
                    self._statement(prelude, depth, prelude_newlines, terminated=False), prelude
                )
            return children, token

    # Statements

    def _statement(self, prelude: _Prelude, depth: int, newlines: int, terminated: bool) -> Node:
        start = prelude.start
        text = prelude.clean_text(self.source)
        layout = self._layout(start, depth, newlines)

        if text.startswith("$"):
            return self._variable(text, start, layout, terminated)

        if text.startswith("@"):
            name = self._at_name(text, start)
            if name == "include":
                return self._include(text, start, layout, None, terminated)
            if name == "extend":
                target = collapse_whitespace(text[len("@extend") :])
                if not target:
                    raise self._error("expected selector after @extend", start)
                return Extend(target=target, terminated=terminated, **layout.as_kwargs())
            prelude_text = collapse_whitespace(text[len(name) + 1 :])
            return AtRule(name=name, prelude=prelude_text, terminated=terminated, **layout.as_kwargs())

        if depth == 0:
            raise self._error("property declaration outside of a rule", start)
        return self._property(text, start, layout, terminated)

    def _block_node(self, prelude: _Prelude, depth: int, newlines: int, block: Block) -> Node:
        start = prelude.start
        text = prelude.clean_text(self.source)
        layout = self._layout(start, depth, newlines)

        if text.startswith("@"):
            name = self._at_name(text, start)
            if name == "include":
                return self._include(text, start, layout, block, True)
            rest = text[len(name) + 1 :]
            node = AtRule(name=name, prelude=collapse_whitespace(rest), block=block, **layout.as_kwargs())
            if node.is_at_root and node.prelude:
                offset = len(text) - len(rest.lstrip())
                node.selectors = self._selectors(rest.strip(), start + offset)
            return node

        match = _NESTED_PROPERTY_RE.match(text)
        if match:
            if depth == 0:
                raise self._error("property declaration outside of a rule", start)
            return NestedProperty(
                name=match.group(1),
                value=collapse_whitespace(match.group(2)),
                block=block,
                **layout.as_kwargs(),
            )

        return RuleDeclaration(selectors=self._selectors(text, start), block=block, **layout.as_kwargs())

    def _at_name(self, text: str, start: int) -> str:
        match = _AT_NAME_RE.match(text)
        if not match:
            raise self._error("expected at-rule name after '@'", start)
        return match.group(1)

    def _include(
        self, text: str, start: int, layout: _Layout, block: Optional[Block], terminated: bool
    ) -> Include:
        match = _INCLUDE_RE.match(text)
        if not match:
            raise self._error("expected mixin name after @include", start)
        arguments = match.group(2).strip() or None
        return Include(
            name=match.group(1),
            arguments=arguments,
            block=block,
            terminated=terminated,
            **layout.as_kwargs(),
        )

    def _split_colon(self, text: str, start: int) -> Tuple[int, str, str, str]:
        """Locate the separating colon; returns (index, name, whitespace after, value)."""
        colon = next((i for i, char in iter_top_level(text) if char == ":"), None)
        if colon is None:
            raise self._error("expected ':' in declaration", start)
        name = text[:colon].strip()
        rest = text[colon + 1 :]
        value = rest.strip()
        after = rest[: len(rest) - len(rest.lstrip())]
        return colon, name, after, value

    def _property(self, text: str, start: int, layout: _Layout, terminated: bool) -> Property:
        colon, name, after, value = self._split_colon(text, start)
        if not name:
            raise self._error("expected property name before ':'", start)
        if not value:
            raise self._error(f"missing value for property '{name}'", start + colon)
        value_start = len(text) - len(text[colon + 1 :].lstrip())
        for index, char in iter_top_level(value):
            if char == ":" and "\n" in value[:index]:
                line_break = value.rfind("\n", 0, index)
                raise self._error("expected ';' between declarations", start + value_start + line_break + 1)
        return Property(
            name=name,
            value=value,
            colon=self._index.position(start + colon),
            space_before_colon=colon > 0 and text[colon - 1].isspace(),
            space_after_colon=after,
            terminated=terminated,
            **layout.as_kwargs(),
        )

    def _variable(self, text: str, start: int, layout: _Layout, terminated: bool) -> Variable:
        colon, name, after, value = self._split_colon(text, start)
        name = name[1:].strip()
        if not _VARIABLE_NAME_RE.match(name):
            raise self._error(f"invalid variable name '${name}'", start)

        flags: List[str] = []
        match = _VARIABLE_FLAGS_RE.search(value)
        if match:
            flags = match.group(1).split()
            value = value[: match.start()].strip()
        if not value:
            raise self._error(f"missing value for variable '${name}'", start + colon)

        return Variable(
            name=name,
            value=value,
            flags=flags,
            colon=self._index.position(start + colon),
            space_before_colon=colon > 0 and text[colon - 1].isspace(),
            space_after_colon=after,
            terminated=terminated,
            **layout.as_kwargs(),
        )


def parse(
    source: str,
    filename: str = "<string>",
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> StyleSheet:
    """Parse SCSS source into a ``StyleSheet``; raises ``ParseError`` on malformed input."""
    return Parser(source, filename, max_nesting_depth).parse()
