"""Rules about how selectors are written and named."""

import re
from typing import Iterable, List

from ..parser.nodes import AtRule, NodeContext, RuleDeclaration, Selector, SimpleSelector, StyleSheet
from ..violations import Severity, Violation
from .base import Rule, offset_position, register

_SEGMENT = r"[a-z0-9]+(?:-[a-z0-9]+)*"
_CLASS_NAME_RE = re.compile(rf"^{_SEGMENT}(?:__{_SEGMENT})?(?:--{_SEGMENT})*$")
_PARENT_SUFFIX_RE = re.compile(rf"^(?:-{_SEGMENT})*(?:__{_SEGMENT})?(?:--{_SEGMENT})*$")


def _selectors(context: NodeContext) -> List[Selector]:
    if isinstance(context.node, (RuleDeclaration, AtRule)):
        return context.node.selectors
    return []


@register
class SelectorNamingRule(Rule):
    id = "selector-naming"
    description = "Class names are dash-case; '__' and '--' only as BEM element/modifier markers"
    default_severity = Severity.ERROR

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        for selector in _selectors(context):
            for part in selector.parts_of_kind("class", "parent"):
                if "#{" in part.name or not self._is_invalid(part):
                    continue
                written = f".{part.name}" if part.kind == "class" else f"&{part.name}"
                yield self.violation(
                    sheet,
                    offset_position(sheet, selector.position, part.offset),
                    f"Selector '{written}' should be dash-case "
                    "(lowercase words joined by '-', with optional BEM '__element' and '--modifier')",
                )

    @staticmethod
    def _is_invalid(part: SimpleSelector) -> bool:
        if part.kind == "class":
            return not _CLASS_NAME_RE.match(part.name)
        return bool(part.name) and not _PARENT_SUFFIX_RE.match(part.name)


@register
class NoIdSelectorRule(Rule):
    id = "no-id-selector"
    description = "ID selectors are too specific to reuse"
    default_severity = Severity.ERROR

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        node = context.node
        if isinstance(node, AtRule) and node.is_at_root:
            nested = False
        else:
            nested = context.rule_depth > 1 or bool(context.parents)
        for selector in _selectors(context):
            for part in selector.parts_of_kind("id"):
                if nested:
                    message = (
                        f"Nested ID selector '#{part.name}': the ID is unique already, "
                        "nesting it only raises specificity further"
                    )
                else:
                    message = f"Avoid ID selector '#{part.name}', use a class instead"
                yield self.violation(
                    sheet, offset_position(sheet, selector.position, part.offset), message
                )


@register
class OneSelectorPerLineRule(Rule):
    id = "one-selector-per-line"
    description = "Each selector in a selector list goes on its own line"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        selectors = _selectors(context)
        for previous, selector in zip(selectors, selectors[1:]):
            if selector.position.line == previous.position.line:
                yield self.violation(
                    sheet,
                    selector.position,
                    f"Selector '{selector.text}' should be on its own line",
                )


@register
class NoJsHookStylesRule(Rule):
    id = "no-js-hook-styles"
    description = "Classes prefixed 'js-' are JavaScript hooks and must not be styled"

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        for selector in _selectors(context):
            for part in selector.parts_of_kind("class"):
                if part.name.startswith("js-"):
                    yield self.violation(
                        sheet,
                        offset_position(sheet, selector.position, part.offset),
                        f"Do not style JavaScript hook class '.{part.name}'",
                    )
