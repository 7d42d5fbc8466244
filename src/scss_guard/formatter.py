"""Canonical pretty-printer for parsed stylesheets.

The formatter ignores the layout recorded on nodes (apart from blank lines
the author put between declarations) and rebuilds the text line by line, so
formatting already-canonical output gives the same text back.
"""

from typing import List, Optional

from .parser import parse
from .parser.nodes import (
    AtRule,
    Block,
    Comment,
    Extend,
    Include,
    NestedProperty,
    Node,
    Property,
    RuleDeclaration,
    StyleSheet,
    Unit,
    Variable,
    group_units,
    is_block_node,
    order_group,
)

# Sort key for a comment that trails a block's opening brace
_BRACE_COMMENT_GROUP = -1
# Sort key for a free comment group with no declaration after it
_END_GROUP = 3


class Formatter:
    """Re-emit a ``StyleSheet`` in canonical form."""

    def __init__(self, indent_width: int = 2):
        self.indent_width = indent_width

    def format(self, sheet: StyleSheet) -> str:
        lines: List[str] = []
        self._emit_children(sheet.children, 0, None, lines)
        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def _pad(self, depth: int) -> str:
        return " " * (self.indent_width * depth)

    def _sorted_units(self, units: List[Unit]) -> List[Unit]:
        keys = []
        for i, unit in enumerate(units):
            if unit.node is not None:
                keys.append(order_group(unit.node))
            elif not unit.comments:
                keys.append(_BRACE_COMMENT_GROUP)
            else:
                following = next((u.node for u in units[i + 1 :] if u.node is not None), None)
                keys.append(order_group(following) if following is not None else _END_GROUP)
        order = sorted(range(len(units)), key=lambda i: keys[i])
        return [units[i] for i in order]

    def _emit_children(
        self, children: List[Node], depth: int, owner: Optional[Node], lines: List[str]
    ) -> None:
        units = group_units(children)
        if isinstance(owner, RuleDeclaration):
            units = self._sorted_units(units)

        previous: Optional[Unit] = None
        for unit in units:
            if unit.node is None and not unit.comments:
                self._emit_trailing(unit.trailing, lines)
                previous = unit
                continue

            joins_else = (
                isinstance(unit.node, AtRule)
                and unit.node.name == "else"
                and not unit.comments
                and previous is not None
                and isinstance(previous.node, AtRule)
                and previous.node.name in ("if", "else")
                and not previous.trailing
            )

            if previous is not None and not joins_else:
                if (
                    is_block_node(unit.node)
                    or is_block_node(previous.node)
                    or unit.first.blank_lines_before > 0
                ):
                    lines.append("")

            for comment in unit.comments:
                self._emit_comment(comment, depth, lines)
            if unit.node is not None:
                self._emit_node(unit.node, depth, lines, join=joins_else)
            self._emit_trailing(unit.trailing, lines)
            previous = unit

    def _emit_trailing(self, comments: List[Comment], lines: List[str]) -> None:
        for comment in comments:
            if lines:
                lines[-1] += " " + comment.text
            else:
                lines.append(comment.text)

    def _emit_comment(self, comment: Comment, depth: int, lines: List[str]) -> None:
        lines.append(self._pad(depth) + comment.text)

    def _emit_node(self, node: Node, depth: int, lines: List[str], join: bool = False) -> None:
        pad = self._pad(depth)

        if isinstance(node, Property):
            lines.append(f"{pad}{node.name}: {node.value};")
        elif isinstance(node, Variable):
            flags = "".join(f" {flag}" for flag in node.flags)
            lines.append(f"{pad}${node.name}: {node.value}{flags};")
        elif isinstance(node, Extend):
            lines.append(f"{pad}@extend {node.target};")
        elif isinstance(node, Include):
            header = f"@include {node.name}"
            if node.arguments:
                separator = "" if node.arguments.startswith("(") else " "
                header += separator + node.arguments
            self._emit_statement(node, header, node.block, depth, lines, join)
        elif isinstance(node, AtRule):
            header = f"@{node.name}"
            if node.prelude:
                header += f" {node.prelude}"
            self._emit_statement(node, header, node.block, depth, lines, join)
        elif isinstance(node, RuleDeclaration):
            selectors = node.selectors
            for selector in selectors[:-1]:
                lines.append(f"{pad}{selector.text},")
            self._emit_block(node, selectors[-1].text, node.block, depth, lines, False)
        elif isinstance(node, NestedProperty):
            header = f"{node.name}: {node.value}" if node.value else f"{node.name}:"
            self._emit_block(node, header, node.block, depth, lines, False)
        else:
            raise TypeError(f"Cannot format node of type {type(node).__name__}")

    def _emit_statement(
        self, node: Node, header: str, block: Optional[Block], depth: int, lines: List[str], join: bool
    ) -> None:
        if block is None:
            lines.append(f"{self._pad(depth)}{header};")
            return
        self._emit_block(node, header, block, depth, lines, join)

    def _emit_block(
        self,
        owner: Node,
        header: str,
        block: Block,
        depth: int,
        lines: List[str],
        join: bool,
    ) -> None:
        if join:
            lines[-1] += f" {header} {{"
        else:
            lines.append(f"{self._pad(depth)}{header} {{")
        self._emit_children(block.children, depth + 1, owner, lines)
        lines.append(f"{self._pad(depth)}}}")


def format_source(source: str, filename: str = "<string>", indent_width: int = 2) -> str:
    """Parse and format SCSS text; raises ``ParseError`` on malformed input."""
    return Formatter(indent_width).format(parse(source, filename))
