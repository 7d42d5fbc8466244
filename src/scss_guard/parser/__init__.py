"""SCSS tokenizer, syntax tree and parser."""

from .nodes import (
    AtRule,
    Block,
    Comment,
    Extend,
    Include,
    NestedProperty,
    Node,
    NodeContext,
    Position,
    Property,
    RuleDeclaration,
    Selector,
    SimpleSelector,
    StyleSheet,
    Variable,
)
from .parser import Parser, parse
from .selectors import calculate_specificity, normalize_selector, parse_selector_list

__all__ = [
    "AtRule",
    "Block",
    "Comment",
    "Extend",
    "Include",
    "NestedProperty",
    "Node",
    "NodeContext",
    "Position",
    "Property",
    "RuleDeclaration",
    "Selector",
    "SimpleSelector",
    "StyleSheet",
    "Variable",
    "Parser",
    "parse",
    "calculate_specificity",
    "normalize_selector",
    "parse_selector_list",
]
