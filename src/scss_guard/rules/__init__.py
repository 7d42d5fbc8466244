"""Lint rules and the engine that runs them."""

from typing import Any, Dict, List, Optional, Sequence

from ..config import RulesConfig
from ..parser.nodes import Position, StyleSheet
from ..utils.logging_config import LoggerMixin
from ..violations import Violation
from . import layout, sass, selectors  # noqa: F401  (registers the rules)
from .base import RULES, ProjectRule, Rule, register

_START = Position(line=1, column=1, offset=0)


class RuleEngine(LoggerMixin):
    """Runs every enabled rule against parsed stylesheets.

    Rules are independent: one rule failing is reported as an ``unevaluable``
    violation and never stops the others.
    """

    def __init__(self, config: Optional[RulesConfig] = None):
        self.config = config or RulesConfig()
        disabled = set(self.config.disabled)
        self.rules: List[Rule] = [
            rule_class(self.config)
            for rule_id, rule_class in sorted(RULES.items())
            if rule_id not in disabled
        ]
        self.logger.debug(f"Enabled {len(self.rules)} of {len(RULES)} rules")

    def check(self, sheet: StyleSheet) -> List[Violation]:
        """Run the single-file rules against one stylesheet."""
        violations: List[Violation] = []
        for rule in self.rules:
            if isinstance(rule, ProjectRule):
                continue
            try:
                violations.extend(rule.check(sheet))
            except Exception as e:
                self.logger.warning(f"Rule {rule.id} failed on {sheet.filename}: {e}")
                violations.append(rule.unevaluable(sheet, _START, e))
        return violations

    def check_project(self, sheets: Sequence[StyleSheet]) -> List[Violation]:
        """Run the cross-file rules once over every parsed stylesheet."""
        violations: List[Violation] = []
        for rule in self.rules:
            if not isinstance(rule, ProjectRule):
                continue
            try:
                violations.extend(rule.check_project(sheets))
            except Exception as e:
                self.logger.warning(f"Project rule {rule.id} failed: {e}")
                if sheets:
                    first = min(sheets, key=lambda sheet: sheet.filename)
                    violations.append(rule.unevaluable(first, _START, e))
        return violations

    def catalog(self) -> List[Dict[str, Any]]:
        """Every known rule with its effective severity and whether it is enabled."""
        enabled = {rule.id: rule for rule in self.rules}
        entries = []
        for rule_id, rule_class in sorted(RULES.items()):
            entry: Dict[str, Any] = rule_class.describe()
            rule = enabled.get(rule_id)
            entry["enabled"] = rule is not None
            entry["severity"] = (rule.severity if rule else rule_class.default_severity).value
            entries.append(entry)
        return entries


__all__ = ["RULES", "Rule", "ProjectRule", "RuleEngine", "register"]
