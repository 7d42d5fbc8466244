"""Tests for lint orchestration over sources and files."""

import time
from pathlib import Path

import pytest

from scss_guard.config import ParserConfig, PerformanceConfig, ScssGuardConfig
from scss_guard.linter import Linter, apply_fixes
from scss_guard.utils.errors import ConfigurationError, ParseError, UnsupportedSyntaxError
from scss_guard.violations import Fix


class TestApplyFixes:
    """Test cases for apply_fixes."""

    def test_applies_back_to_front(self):
        """Test several fixes keep their offsets valid."""
        source = "a none b none"

        assert apply_fixes(source, [Fix(2, 6, "0"), Fix(9, 13, "0")]) == "a 0 b 0"

    def test_overlapping_fix_is_skipped(self):
        """Test a fix overlapping an applied one is dropped."""
        assert apply_fixes("abcdef", [Fix(1, 4, "X"), Fix(3, 5, "Y")]) == "abcYf"

    def test_no_fixes(self):
        """Test the source is returned untouched."""
        assert apply_fixes("abc", []) == "abc"


class TestLintSource:
    """Test cases for Linter.lint_source."""

    def test_clean_source(self, linter: Linter, sample_scss: str):
        """Test canonical, rule-abiding source has no violations."""
        result = linter.lint_source(sample_scss, "sample.scss")

        assert result.ok
        assert result.violations == []
        assert result.formatted == sample_scss

    def test_bad_source(self, linter: Linter, bad_scss: str):
        """Test several rules report on a bad source."""
        result = linter.lint_source(bad_scss, "bad.scss")
        rule_ids = {v.rule_id for v in result.violations}

        assert {"no-id-selector", "selector-naming", "prefer-zero-border", "formatting"} <= rule_ids
        assert all(v.file == "bad.scss" for v in result.violations)

    def test_parse_error_is_returned(self, linter: Linter):
        """Test malformed input yields a result carrying the error."""
        result = linter.lint_source(".a {", "broken.scss")

        assert not result.ok
        assert result.violations == []
        assert result.parse_error.filename == "broken.scss"
        assert result.parse_error.reason == "unclosed block, expected '}'"

    def test_sass_syntax_is_rejected(self, linter: Linter):
        """Test the indented syntax is reported as unsupported."""
        result = linter.lint_source(".a\n  color: red\n", "legacy.sass")

        assert isinstance(result.parse_error, UnsupportedSyntaxError)
        assert "not supported" in result.parse_error.reason

    def test_max_file_size(self):
        """Test oversized input is refused."""
        linter = Linter(ScssGuardConfig(parser=ParserConfig(max_file_size=10)))

        result = linter.lint_source(".a {\n  color: red;\n}\n")

        assert "maximum size of 10 bytes" in result.parse_error.reason

    def test_max_nesting_depth(self):
        """Test the parser nesting guard is configurable."""
        linter = Linter(ScssGuardConfig(parser=ParserConfig(max_nesting_depth=1)))

        result = linter.lint_source(".a {\n  .b {\n    color: red;\n  }\n}\n")

        assert result.parse_error.reason == "maximum nesting depth of 1 exceeded"

    def test_parse_cache(self, linter: Linter, sample_scss: str):
        """Test an unchanged source is parsed once."""
        first = linter.parse(sample_scss, "sample.scss")
        second = linter.parse(sample_scss, "sample.scss")

        assert first is second
        assert linter.cache.hits == 1
        assert linter.cache.misses == 1

    def test_parse_cache_keys_on_content(self, linter: Linter):
        """Test edited content is parsed again."""
        first = linter.parse(".a {\n  color: red;\n}\n", "a.scss")
        second = linter.parse(".a {\n  color: blue;\n}\n", "a.scss")

        assert first is not second

    def test_cache_disabled(self):
        """Test the cache can be switched off."""
        linter = Linter(ScssGuardConfig(performance=PerformanceConfig(cache_enabled=False)))

        assert linter.cache is None
        assert linter.parse(".a {\n  color: red;\n}\n") is not linter.parse(".a {\n  color: red;\n}\n")

    def test_cache_ttl(self, temp_dir: Path):
        """Test the configured TTL reaches the parse cache and stale entries are dropped."""
        linter = Linter(ScssGuardConfig(performance=PerformanceConfig(cache_ttl=0.05)))
        path = temp_dir / "a.scss"
        path.write_text(".a {\n  color: red;\n}\n")

        assert linter.cache.ttl == 0.05
        linter.lint_paths([str(path)])
        assert linter.cache.size() == 1

        time.sleep(0.1)
        linter.lint_paths([str(path)])

        assert linter.cache.hits == 0
        assert linter.cache.size() == 1

    def test_parse_raises(self, linter: Linter):
        """Test Linter.parse raises rather than returning errors."""
        with pytest.raises(ParseError):
            linter.parse("}")


class TestResolvePaths:
    """Test cases for Linter.resolve_paths."""

    def test_directory_expansion(self, linter: Linter, temp_dir: Path):
        """Test directories expand to stylesheet files only, sorted."""
        (temp_dir / "b.scss").write_text("")
        (temp_dir / "sub").mkdir()
        (temp_dir / "sub" / "a.scss").write_text("")
        (temp_dir / "notes.txt").write_text("")

        files = linter.resolve_paths([str(temp_dir)])

        assert files == sorted([(temp_dir / "b.scss").as_posix(), (temp_dir / "sub" / "a.scss").as_posix()])

    def test_node_modules_excluded(self, linter: Linter, temp_dir: Path, monkeypatch):
        """Test vendored packages are skipped by default."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "node_modules" / "pkg").mkdir(parents=True)
        (temp_dir / "node_modules" / "pkg" / "x.scss").write_text("")
        (temp_dir / "app" / "node_modules").mkdir(parents=True)
        (temp_dir / "app" / "node_modules" / "y.scss").write_text("")
        (temp_dir / "app" / "main.scss").write_text("")

        assert linter.resolve_paths(["."]) == ["app/main.scss"]

    def test_glob_pattern(self, linter: Linter, temp_dir: Path, monkeypatch):
        """Test glob patterns expand."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "a.scss").write_text("")
        (temp_dir / "b.scss").write_text("")

        assert linter.resolve_paths(["*.scss"]) == ["a.scss", "b.scss"]

    def test_explicit_file_is_deduplicated(self, linter: Linter, temp_dir: Path, monkeypatch):
        """Test a file named twice is linted once."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "a.scss").write_text("")

        assert linter.resolve_paths(["a.scss", "a.scss", "*.scss"]) == ["a.scss"]

    def test_missing_path(self, linter: Linter, temp_dir: Path):
        """Test a missing path is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            linter.resolve_paths([str(temp_dir / "missing.scss")])

        assert "Path not found" in exc_info.value.message

    def test_pattern_without_matches(self, linter: Linter, temp_dir: Path):
        """Test a glob matching nothing is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            linter.resolve_paths([str(temp_dir / "*.scss")])

        assert "No files match pattern" in exc_info.value.message


class TestLintPaths:
    """Test cases for Linter.lint_paths."""

    def test_clean_file(self, linter: Linter, sample_scss_file: Path):
        """Test a clean file exits 0."""
        reporter = linter.lint_paths([str(sample_scss_file)])

        assert reporter.exit_code == 0
        assert reporter.violations == []

    def test_bad_file(self, linter: Linter, bad_scss_file: Path):
        """Test error-severity violations exit 1."""
        reporter = linter.lint_paths([str(bad_scss_file)])

        assert reporter.exit_code == 1
        assert reporter.error_count > 0

    def test_parse_failure_does_not_stop_the_run(self, linter: Linter, temp_dir: Path, bad_scss: str):
        """Test other files are still linted when one cannot be parsed."""
        (temp_dir / "broken.scss").write_text(".a {\n")
        (temp_dir / "bad.scss").write_text(bad_scss)

        reporter = linter.lint_paths([str(temp_dir)])

        assert reporter.exit_code == 2
        assert len(reporter.parse_errors) == 1
        assert any(v.rule_id == "no-id-selector" for v in reporter.violations)

    def test_media_query_locality_across_files(self, linter: Linter, temp_dir: Path, monkeypatch):
        """Test project rules see every parsed file."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "a").mkdir()
        (temp_dir / "b").mkdir()
        (temp_dir / "a" / "base.scss").write_text(".card {\n  margin: 0;\n}\n")
        (temp_dir / "b" / "responsive.scss").write_text(
            "@media (min-width: 768px) {\n  .card {\n    margin: 8px;\n  }\n}\n"
        )

        reporter = linter.lint_paths(["."])
        locality = [v for v in reporter.violations if v.rule_id == "media-query-locality"]

        assert len(locality) == 1
        assert locality[0].file == "b/responsive.scss"
        assert (locality[0].line, locality[0].column) == (2, 3)

    def test_undecodable_file(self, linter: Linter, temp_dir: Path):
        """Test a file that is not UTF-8 is a parse failure."""
        path = temp_dir / "latin.scss"
        path.write_bytes(b".a {\n  content: '\xff';\n}\n")

        reporter = linter.lint_paths([str(path)])

        assert reporter.exit_code == 2
        assert "UTF-8" in reporter.parse_errors[0].reason


class TestFixPaths:
    """Test cases for Linter.fix_paths."""

    def test_fix_rewrites_file(self, linter: Linter, temp_dir: Path):
        """Test auto-fixes and formatting are written back."""
        path = temp_dir / "a.scss"
        path.write_text(".a{border:none}")

        reporter = linter.fix_paths([str(path)])

        assert path.read_text() == ".a {\n  border: 0;\n}\n"
        assert reporter.results[0].changed is True
        assert reporter.violations == []
        assert reporter.exit_code == 0

    def test_fix_keeps_comments_inside_declarations(self, linter: Linter, temp_dir: Path):
        """Test fixing never deletes comments written inside a header or declaration."""
        path = temp_dir / "a.scss"
        path.write_text(".a, // primary\n.b {\n  border: none /* reset from vendor */;\n}\n")

        linter.fix_paths([str(path)])

        assert path.read_text() == ".a,\n.b { // primary\n  border: 0; /* reset from vendor */\n}\n"

    def test_fix_leaves_canonical_file_alone(self, linter: Linter, sample_scss_file: Path, sample_scss: str):
        """Test a canonical file is not rewritten."""
        reporter = linter.fix_paths([str(sample_scss_file)])

        assert sample_scss_file.read_text() == sample_scss
        assert reporter.results[0].changed is False

    def test_fix_reports_what_remains(self, linter: Linter, temp_dir: Path):
        """Test violations without a fix survive and are reported."""
        path = temp_dir / "a.scss"
        path.write_text("#main{color:red}")

        reporter = linter.fix_paths([str(path)])

        assert path.read_text() == "#main {\n  color: red;\n}\n"
        assert [v.rule_id for v in reporter.violations] == ["no-id-selector"]
        assert reporter.exit_code == 1

    def test_fix_skips_unparseable_file(self, linter: Linter, temp_dir: Path):
        """Test a file that cannot be parsed is left untouched."""
        path = temp_dir / "broken.scss"
        path.write_text(".a {")

        reporter = linter.fix_paths([str(path)])

        assert path.read_text() == ".a {"
        assert reporter.exit_code == 2
