"""Aggregation and rendering of lint results."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .parser.nodes import StyleSheet
from .utils.errors import ParseError
from .violations import Severity, Violation

PARSE_ERROR_ID = "parse-error"


@dataclass
class FileResult:
    """Outcome of linting one file."""

    path: str
    violations: List[Violation] = field(default_factory=list)
    parse_error: Optional[ParseError] = None
    formatted: Optional[str] = None
    changed: bool = False
    sheet: Optional[StyleSheet] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.parse_error is None


class Reporter:
    """Collects per-file results and renders them.

    Violations are deduplicated and sorted by file, line, column and rule id,
    so the order in which files finished never shows in the output.
    """

    def __init__(self, results: List[FileResult], min_severity: str = "warning"):
        self.results = sorted(results, key=lambda result: result.path)
        self.min_severity = Severity(min_severity)

    @property
    def violations(self) -> List[Violation]:
        unique = dict.fromkeys(v for result in self.results for v in result.violations)
        return sorted(unique, key=lambda v: v.sort_key)

    @property
    def visible_violations(self) -> List[Violation]:
        return [v for v in self.violations if v.severity.rank >= self.min_severity.rank]

    @property
    def parse_errors(self) -> List[ParseError]:
        return [result.parse_error for result in self.results if result.parse_error is not None]

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if not v.is_error)

    @property
    def exit_code(self) -> int:
        """2 if any file failed to parse, 1 if any error-severity violation, else 0."""
        if self.parse_errors:
            return 2
        if self.error_count:
            return 1
        return 0

    def render(self, format: str = "human") -> str:
        if format == "structured":
            return self.render_structured()
        return self.render_human()

    def records(self) -> List[Dict[str, Any]]:
        """Flat list of violation and parse-error records, in report order."""
        records = []
        for error in self.parse_errors:
            records.append(
                {
                    "file": error.filename or "<string>",
                    "line": error.line or 1,
                    "column": error.column or 1,
                    "rule_id": PARSE_ERROR_ID,
                    "severity": Severity.ERROR.value,
                    "message": error.reason,
                }
            )
        for violation in self.visible_violations:
            records.append(
                {
                    "file": violation.file,
                    "line": violation.line,
                    "column": violation.column,
                    "rule_id": violation.rule_id,
                    "severity": violation.severity.value,
                    "message": violation.message,
                    "fixable": violation.fix is not None,
                }
            )
        records.sort(key=lambda r: (r["file"], r["line"], r["column"], r["rule_id"], r["message"]))
        return records

    def render_structured(self) -> str:
        return json.dumps(self.records(), indent=2)

    def render_human(self) -> str:
        lines: List[str] = []
        current_file = None
        for record in self.records():
            if record["file"] != current_file:
                if current_file is not None:
                    lines.append("")
                current_file = record["file"]
                lines.append(current_file)
            lines.append(
                f"  {record['line']}:{record['column']}  {record['severity']:<7}  "
                f"{record['message']}  [{record['rule_id']}]"
            )
        if lines:
            lines.append("")
        lines.append(self.summary())
        return "\n".join(lines)

    def summary(self) -> str:
        checked = len(self.results)
        if not self.violations and not self.parse_errors:
            return f"No problems found in {checked} file(s)"
        parts = [f"{self.error_count} error(s)", f"{self.warning_count} warning(s)"]
        if self.parse_errors:
            parts.append(f"{len(self.parse_errors)} file(s) could not be parsed")
        return f"{', '.join(parts)} in {checked} file(s)"
