"""Rules for Sass constructs: variables, @extend, @media placement, border values."""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from ..parser.nodes import (
    AtRule,
    Comment,
    Extend,
    NodeContext,
    Property,
    RuleDeclaration,
    StyleSheet,
    Variable,
    iter_nodes,
)
from ..violations import Fix, Severity, Violation
from .base import ProjectRule, Rule, is_hex_color, register

_DASH_CASE_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_BORDER_PROPERTIES = {"border", "border-top", "border-right", "border-bottom", "border-left"}


@register
class NoExtendRule(Rule):
    id = "no-extend"
    description = "@extend produces unintuitive selectors; use a mixin"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if isinstance(node, Extend):
            yield self.violation(
                sheet,
                node.position,
                f"Avoid '@extend {node.target}', use a mixin instead",
            )


@register
class PreferZeroBorderRule(Rule):
    id = "prefer-zero-border"
    description = "Use '0' instead of 'none' to remove a border"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if not isinstance(node, Property):
            return
        if node.name.lower() not in _BORDER_PROPERTIES or node.value.lower() != "none":
            return
        yield self.violation(
            sheet,
            node.position,
            f"Use '{node.name}: 0' instead of '{node.name}: none'",
            fix=self._fix(node, sheet),
        )

    @staticmethod
    def _fix(node: Property, sheet: StyleSheet) -> Optional[Fix]:
        start = node.colon.offset + 1 + len(node.space_after_colon)
        end = start + len(node.value)
        if sheet.source[start:end] != node.value:
            return None
        return Fix(start=start, end=end, replacement="0")


def _dash_case(name: str) -> str:
    name = re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", name)
    return re.sub(r"[_-]+", "-", name).strip("-").lower()


@register
class VariableNamingRule(Rule):
    id = "variable-naming"
    description = "Variable names are dash-case; a leading '_' marks a file-local variable"
    default_severity = Severity.ERROR

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if not isinstance(node, Variable):
            return
        prefix = "_" if node.scope == "file-local" else ""
        name = node.name[len(prefix) :]
        if _DASH_CASE_RE.match(name):
            return
        if any(char.isupper() for char in name):
            style = "camelCase"
        elif "_" in name:
            style = "snake_case"
        else:
            style = "an invalid name"
        yield self.violation(
            sheet,
            node.position,
            f"Variable '${node.name}' uses {style}, use dash-case "
            f"(e.g. '${prefix}{_dash_case(name)}')",
        )


@register
class UndocumentedColorVariableRule(Rule):
    id = "undocumented-color-variable"
    description = "Hex color variables carry a trailing comment naming the color"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if not isinstance(node, Variable) or not is_hex_color(node.value):
            return
        following = context.next
        if isinstance(following, Comment) and following.trailing:
            return
        yield self.violation(
            sheet,
            node.position,
            f"Color variable '${node.name}' should have a trailing comment describing the color",
        )


@register
class MediaQueryLocalityRule(ProjectRule):
    id = "media-query-locality"
    description = "Media queries sit in the same file as the rules they adjust"

    def check_project(self, sheets: Sequence[StyleSheet]) -> List[Violation]:
        ordered = sorted(sheets, key=lambda sheet: sheet.filename)

        declared_in: Dict[str, str] = {}
        for sheet in ordered:
            for node in sheet.children:
                if isinstance(node, RuleDeclaration):
                    for selector in node.selectors:
                        declared_in.setdefault(selector.text, sheet.filename)

        violations: List[Violation] = []
        for sheet in ordered:
            for node in sheet.children:
                if not (isinstance(node, AtRule) and node.name == "media" and node.block):
                    continue
                for child in iter_nodes(node.block.children):
                    # Rules nested in another rule are relative to it
                    if not isinstance(child.node, RuleDeclaration) or child.rule_depth != 1:
                        continue
                    for selector in child.node.selectors:
                        home = declared_in.get(selector.text)
                        if home is None or home == sheet.filename:
                            continue
                        violations.append(
                            self.violation(
                                sheet,
                                selector.position,
                                f"Media query for '{selector.text}' should live next to "
                                f"its base rule in {home}",
                            )
                        )
        self.logger.debug(f"Checked media query locality across {len(ordered)} files")
        return violations
