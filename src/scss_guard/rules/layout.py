"""Rules about whitespace, braces, comments and the order of declarations."""

from typing import Iterable, List, Optional

from ..parser.nodes import (
    Assignment,
    AtRule,
    Block,
    Comment,
    Extend,
    Include,
    NestedProperty,
    Node,
    NodeContext,
    Property,
    RuleDeclaration,
    StyleSheet,
    Variable,
    block_of,
    group_units,
    iter_blocks,
    order_group,
)
from ..violations import Severity, Violation
from .base import Rule, is_hex_color, register


def describe_node(node: Node) -> str:
    if isinstance(node, (Property, NestedProperty)):
        return f"Declaration '{node.name}'"
    if isinstance(node, Variable):
        return f"Variable '${node.name}'"
    if isinstance(node, RuleDeclaration):
        return f"Rule '{node.selectors[0].text}'"
    if isinstance(node, Include):
        return f"@include {node.name}"
    if isinstance(node, Extend):
        return "@extend"
    if isinstance(node, AtRule):
        return f"@{node.name}"
    return "Comment"


@register
class FormattingRule(Rule):
    id = "formatting"
    description = (
        "Soft-tab indentation, one space before '{' and after ':', "
        "'}' on its own line, one declaration per line, semicolons"
    )

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        violations: List[Violation] = []

        if isinstance(node, Comment) and node.trailing:
            return violations

        if not node.first_on_line:
            if not (isinstance(node, AtRule) and node.name == "else"):
                violations.append(
                    self.violation(sheet, node.position, f"{describe_node(node)} should start on its own line")
                )
        else:
            message = self._check_indent(node.indent, node.depth)
            if message:
                violations.append(self.violation(sheet, node.position, message))

        if isinstance(node, Assignment):
            violations.extend(self._check_colon(node, sheet))

        if not getattr(node, "terminated", True) and block_of(node) is None:
            violations.append(
                self.violation(sheet, node.position, f"Missing semicolon after {describe_node(node)}")
            )

        block = block_of(node)
        if block is not None:
            violations.extend(self._check_braces(node, block, sheet))
        return violations

    def _check_indent(self, indent: str, depth: int) -> Optional[str]:
        width = self.config.indent_width
        if "\t" in indent:
            return f"Use soft tabs ({width} spaces) for indentation"
        expected = width * depth
        if len(indent) != expected:
            return f"Expected indentation of {expected} spaces, found {len(indent)}"
        return None

    def _check_colon(self, node: Assignment, sheet: StyleSheet) -> Iterable[Violation]:
        if node.space_before_colon:
            yield self.violation(sheet, node.colon, "Unexpected space before ':'")
        after = node.space_after_colon
        if after == "":
            yield self.violation(sheet, node.colon, "Missing space after ':'")
        elif after != " " and "\n" not in after:
            yield self.violation(sheet, node.colon, "Expected a single space after ':'")

    def _check_braces(self, node: Node, block: Block, sheet: StyleSheet) -> Iterable[Violation]:
        space = block.space_before
        if "\n" in space:
            yield self.violation(
                sheet, block.open_brace, "Opening brace should be on the same line as the selector"
            )
        elif space == "":
            yield self.violation(sheet, block.open_brace, "Missing space before '{'")
        elif space != " ":
            yield self.violation(sheet, block.open_brace, "Expected a single space before '{'")

        if not block.close_on_own_line:
            yield self.violation(sheet, block.close_brace, "Closing brace should be on its own line")
        else:
            message = self._check_indent(block.close_indent, node.depth)
            if message:
                yield self.violation(sheet, block.close_brace, message)


@register
class BlankLineBetweenRulesRule(Rule):
    id = "blank-line-between-rules"
    description = "Sibling rule declarations are separated by a blank line"

    def check(self, sheet: StyleSheet) -> List[Violation]:
        violations: List[Violation] = []
        for _, children in iter_blocks(sheet):
            units = group_units(children)
            for previous, current in zip(units, units[1:]):
                if not isinstance(previous.node, RuleDeclaration):
                    continue
                if not isinstance(current.node, RuleDeclaration):
                    continue
                if current.first.blank_lines_before == 0:
                    violations.append(
                        self.violation(
                            sheet,
                            current.first.position,
                            f"Expected a blank line before {describe_node(current.node)}",
                        )
                    )
        return violations


@register
class CommentPlacementRule(Rule):
    id = "comment-placement"
    description = "Comments go on their own line, written with '//'"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if not isinstance(node, Comment) or node.text.startswith("/*!"):
            return
        if node.trailing and not self._is_color_annotation(context):
            yield self.violation(
                sheet, node.position, "Place comments on their own line, above the code they describe"
            )
        if node.style == "block" and self.config.comment_style == "line":
            yield self.violation(sheet, node.position, "Use '//' line comments instead of '/* */'")

    def _is_color_annotation(self, context: NodeContext) -> bool:
        previous = context.previous
        return (
            self.config.allow_color_annotations
            and isinstance(previous, Variable)
            and is_hex_color(previous.value)
        )


@register
class DeclarationOrderRule(Rule):
    id = "declaration-order"
    description = "Properties first, then @include, then nested rules"

    def check(self, sheet: StyleSheet) -> List[Violation]:
        violations: List[Violation] = []
        for owner, children in iter_blocks(sheet):
            if not isinstance(owner, RuleDeclaration):
                continue
            highest = 0
            for child in children:
                if isinstance(child, Comment):
                    continue
                group = order_group(child)
                message = None
                if isinstance(child, (Property, NestedProperty)) and highest >= 1:
                    message = f"Property '{child.name}' should come before @include and nested rules"
                elif group == 1 and highest == 2:
                    message = f"{describe_node(child)} should come before nested rules"
                if message:
                    violations.append(self.violation(sheet, child.position, message))
                highest = max(highest, group)
        return violations


@register
class NestingDepthRule(Rule):
    id = "nesting-depth"
    description = "Selectors nest at most three levels deep"
    default_severity = Severity.ERROR

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        if not isinstance(context.node, RuleDeclaration):
            return ()
        depth = context.rule_depth
        limit = self.config.max_nesting_depth
        if depth <= limit:
            return ()
        return [
            self.violation(
                sheet,
                context.node.position,
                f"Selector nesting depth {depth} exceeds the maximum of {limit}",
            )
        ]
