"""Lint orchestration: path resolution, parsing, rules, formatting and fixes."""

import fnmatch
import glob
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import ScssGuardConfig
from .formatter import Formatter
from .parser import Parser
from .parser.nodes import Position, StyleSheet
from .reporter import FileResult, Reporter
from .rules import RuleEngine
from .utils.cache import LRUCache, content_key
from .utils.errors import ConfigurationError, ParseError, UnsupportedSyntaxError
from .utils.logging_config import LoggerMixin, log_lint_result
from .violations import Fix, Violation

FORMATTING_RULE_ID = "formatting"


def apply_fixes(source: str, fixes: Sequence[Fix]) -> str:
    """Apply fixes back to front; a fix overlapping one already applied is skipped."""
    limit = len(source)
    for fix in sorted(fixes, key=lambda f: (f.start, f.end), reverse=True):
        if fix.end > limit:
            continue
        source = source[: fix.start] + fix.replacement + source[fix.end :]
        limit = fix.start
    return source


def _first_difference(source: str, formatted: str) -> int:
    """1-based number of the first line where ``formatted`` departs from ``source``."""
    original = source.split("\n")
    for number, (before, after) in enumerate(zip(original, formatted.split("\n")), start=1):
        if before != after:
            return number
    return min(len(original), len(formatted.split("\n")))


class Linter(LoggerMixin):
    """Runs the parser, rule engine and formatter over sources and files."""

    def __init__(self, config: Optional[ScssGuardConfig] = None):
        self.config = config or ScssGuardConfig()
        self.engine = RuleEngine(self.config.rules)
        self.formatter = Formatter(self.config.rules.indent_width)
        performance = self.config.performance
        self.cache: Optional[LRUCache[str, StyleSheet]] = (
            LRUCache(max_size=performance.cache_size, ttl=performance.cache_ttl)
            if performance.cache_enabled
            else None
        )

    # Single sources

    def parse(self, source: str, filename: str = "<string>") -> StyleSheet:
        """Parse with the size guard, the ``.sass`` check and the parse cache."""
        limit = self.config.parser.max_file_size
        if len(source.encode("utf-8")) > limit:
            raise ParseError(f"file exceeds maximum size of {limit} bytes", filename=filename)
        if filename.endswith(".sass"):
            raise UnsupportedSyntaxError(
                "indented .sass syntax is not supported, convert the file to .scss",
                line=1,
                column=1,
                filename=filename,
            )

        key = content_key(filename, source)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.debug(f"Parse cache hit for {filename}")
                return cached
            self.logger.debug(f"Parse cache miss for {filename}")

        sheet = Parser(source, filename, self.config.parser.max_nesting_depth).parse()
        if self.cache is not None:
            self.cache.put(key, sheet)
        return sheet

    def lint_source(self, source: str, filename: str = "<string>") -> FileResult:
        """Lint one source text. Parse failures are returned, not raised."""
        start_time = time.time()
        try:
            sheet = self.parse(source, filename)
        except ParseError as e:
            if e.filename is None:
                e.filename = filename
            self.logger.info(f"Could not parse {filename}: {e}")
            return FileResult(path=filename, parse_error=e)

        violations = self.engine.check(sheet)
        formatted = self.formatter.format(sheet)
        violations.extend(self._formatting_violations(sheet, formatted, violations))

        log_lint_result(
            filename,
            len(source),
            sum(1 for v in violations if v.is_error),
            sum(1 for v in violations if not v.is_error),
            time.time() - start_time,
        )
        return FileResult(path=filename, violations=violations, formatted=formatted, sheet=sheet)

    def _formatting_violations(
        self, sheet: StyleSheet, formatted: str, violations: List[Violation]
    ) -> List[Violation]:
        """One catch-all ``formatting`` violation when only the formatter sees a difference."""
        if formatted == sheet.source:
            return []
        if any(v.rule_id == FORMATTING_RULE_ID for v in violations):
            return []
        rule = next((r for r in self.engine.rules if r.id == FORMATTING_RULE_ID), None)
        if rule is None:
            return []
        line = _first_difference(sheet.source, formatted)
        offset = sum(len(text) + 1 for text in sheet.lines[: line - 1])
        return [
            rule.violation(
                sheet,
                Position(line=line, column=1, offset=offset),
                "File is not in canonical format (run 'scss-guard fix')",
            )
        ]

    # Files

    def resolve_paths(self, paths: Sequence[str]) -> List[str]:
        """Expand files, directories and glob patterns into a sorted list of files.

        Raises:
            ConfigurationError: for a path that does not exist, cannot be read,
                or a pattern that matches nothing
        """
        extensions = tuple(self.config.files.extensions)
        found: List[str] = []

        for raw in paths:
            path = Path(raw)
            if path.is_file():
                if not os.access(path, os.R_OK):
                    raise ConfigurationError(f"Cannot read file: {raw}")
                found.append(path.as_posix())
                continue

            if path.is_dir():
                candidates = [p for p in path.rglob("*") if p.is_file() and p.name.endswith(extensions)]
            elif any(char in raw for char in "*?["):
                candidates = [Path(p) for p in glob.glob(raw, recursive=True) if Path(p).is_file()]
                if not candidates:
                    raise ConfigurationError(f"No files match pattern: {raw}")
            else:
                raise ConfigurationError(f"Path not found: {raw}")

            for candidate in candidates:
                name = candidate.as_posix()
                if not self._is_excluded(name):
                    found.append(name)

        return sorted(set(found))

    def _is_excluded(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.config.files.exclude)

    def _read(self, path: str) -> str:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ParseError(f"file is not valid UTF-8: {e.reason}", filename=path)
        except OSError as e:
            raise ParseError(f"cannot read file: {e.strerror}", filename=path)

    def _lint_file(self, path: str) -> FileResult:
        try:
            source = self._read(path)
        except ParseError as e:
            return FileResult(path=path, parse_error=e)
        return self.lint_source(source, path)

    def _fix_file(self, path: str) -> FileResult:
        try:
            original = self._read(path)
        except ParseError as e:
            return FileResult(path=path, parse_error=e)

        result = self.lint_source(original, path)
        if result.sheet is None:
            return result

        fixes = [v.fix for v in result.violations if v.fix is not None]
        fixed = apply_fixes(result.sheet.source, fixes)
        try:
            formatted = self.formatter.format(self.parse(fixed, path))
        except ParseError as e:
            self.logger.warning(f"Fixes left {path} unparseable, formatting only: {e}")
            formatted = result.formatted or original

        changed = formatted != original
        if changed:
            with open(path, "w", encoding="utf-8") as f:
                f.write(formatted)
            self.logger.info(f"Rewrote {path} ({len(fixes)} fix(es) applied)")

        final = self.lint_source(formatted, path)
        final.changed = changed
        return final

    def _run(self, files: List[str], worker: Callable[[str], FileResult]) -> Reporter:
        if self.cache is not None:
            expired = self.cache.cleanup_expired()
            if expired:
                self.logger.debug(f"Dropped {expired} expired parse cache entries")
        max_workers = max(1, self.config.performance.max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(worker, files))

        sheets = [result.sheet for result in results if result.sheet is not None]
        by_path = {result.path: result for result in results}
        for violation in self.engine.check_project(sheets):
            by_path[violation.file].violations.append(violation)

        return Reporter(results, min_severity=self.config.reporter.min_severity)

    def lint_paths(self, paths: Sequence[str]) -> Reporter:
        """Lint every file the paths resolve to and report the combined results."""
        files = self.resolve_paths(paths)
        self.logger.info(f"Linting {len(files)} file(s)")
        return self._run(files, self._lint_file)

    def fix_paths(self, paths: Sequence[str]) -> Reporter:
        """Apply auto-fixes and canonical formatting in place, then report what remains."""
        files = self.resolve_paths(paths)
        self.logger.info(f"Fixing {len(files)} file(s)")
        return self._run(files, self._fix_file)
