"""Base classes and registry for lint rules."""

import re
from typing import ClassVar, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from ..config import RulesConfig
from ..parser.nodes import NodeContext, Position, StyleSheet
from ..utils.logging_config import LoggerMixin
from ..violations import Fix, Severity, Violation

RULES: Dict[str, Type["Rule"]] = {}

R = TypeVar("R", bound=Type["Rule"])


def register(rule_class: R) -> R:
    """Class decorator adding a rule to the catalog under its ``id``."""
    if rule_class.id in RULES:
        raise ValueError(f"Duplicate rule id: {rule_class.id}")
    RULES[rule_class.id] = rule_class
    return rule_class


class Rule(LoggerMixin):
    """A single, independent check over a parsed stylesheet.

    Subclasses either override ``check_node``, which is called for every node
    in the tree, or override ``check`` entirely. A node that makes
    ``check_node`` raise is reported as ``unevaluable`` and the walk goes on.
    """

    id: ClassVar[str]
    description: ClassVar[str]
    default_severity: ClassVar[Severity] = Severity.WARNING

    def __init__(self, config: Optional[RulesConfig] = None):
        self.config = config or RulesConfig()
        override = self.config.severity.get(self.id)
        self.severity = Severity(override) if override else self.default_severity

    def check(self, sheet: StyleSheet) -> List[Violation]:
        violations: List[Violation] = []
        for context in sheet.walk():
            try:
                violations.extend(self.check_node(context, sheet))
            except Exception as e:
                self.logger.warning(
                    f"{self.id} could not evaluate node at "
                    f"{sheet.filename}:{context.node.position.line}: {e}"
                )
                violations.append(self.unevaluable(sheet, context.node.position, e))
        return violations

    def check_node(self, context: NodeContext, sheet: StyleSheet) -> Iterable[Violation]:
        return ()

    def violation(
        self,
        sheet: StyleSheet,
        position: Position,
        message: str,
        fix: Optional[Fix] = None,
    ) -> Violation:
        return Violation(
            rule_id=self.id,
            severity=self.severity,
            file=sheet.filename,
            line=position.line,
            column=position.column,
            message=message,
            fix=fix,
        )

    def unevaluable(self, sheet: StyleSheet, position: Position, error: Exception) -> Violation:
        return Violation(
            rule_id=self.id,
            severity=Severity.ERROR,
            file=sheet.filename,
            line=position.line,
            column=position.column,
            message=f"unevaluable: {error}",
        )

    @classmethod
    def describe(cls) -> Dict[str, str]:
        return {
            "id": cls.id,
            "description": cls.description,
            "default_severity": cls.default_severity.value,
        }


class ProjectRule(Rule):
    """A rule that needs every stylesheet of the run at once."""

    def check(self, sheet: StyleSheet) -> List[Violation]:
        return []

    def check_project(self, sheets: Sequence[StyleSheet]) -> List[Violation]:
        raise NotImplementedError


def offset_position(sheet: StyleSheet, base: Position, delta: int) -> Position:
    """Position ``delta`` characters after ``base`` (may cross newlines)."""
    text = sheet.source[base.offset : base.offset + delta]
    newlines = text.count("\n")
    if not newlines:
        return Position(line=base.line, column=base.column + delta, offset=base.offset + delta)
    return Position(
        line=base.line + newlines,
        column=len(text) - text.rfind("\n"),
        offset=base.offset + delta,
    )


_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def is_hex_color(value: str) -> bool:
    return bool(_HEX_COLOR_RE.match(value.strip()))
