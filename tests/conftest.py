"""Pytest configuration and fixtures for scss-guard tests."""

import pytest
import tempfile
import os
from pathlib import Path
from typing import Callable, Generator, List

from scss_guard.config import ScssGuardConfig, PerformanceConfig
from scss_guard.linter import Linter
from scss_guard.rules import RuleEngine
from scss_guard.violations import Violation


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_scss() -> str:
    """Canonically formatted SCSS that follows every rule."""
    return """// Colors
$bitter-lemon: #dde80c; // Dark yellow
$gutter: 8px;

.avatar {
  border-radius: 50%;
  border: 2px solid white;
}

.listing {
  font-size: 18px;
  @include transition(all 0.3s ease);

  &__title {
    margin: 0;
  }

  &:hover {
    border: 0;
  }
}

@media (min-width: 768px) {
  .avatar {
    border-radius: 25%;
  }
}
"""


@pytest.fixture
def bad_scss() -> str:
    """SCSS that breaks several rules at once."""
    return """#header{color:red}
.fooBar {
  @include clearfix;
  margin: 0;
}
.baz { border: none; }
"""


@pytest.fixture
def test_config() -> ScssGuardConfig:
    """Test configuration."""
    return ScssGuardConfig(performance=PerformanceConfig(max_workers=2))


@pytest.fixture
def engine(test_config: ScssGuardConfig) -> RuleEngine:
    """Rule engine with every rule enabled."""
    return RuleEngine(test_config.rules)


@pytest.fixture
def linter(test_config: ScssGuardConfig) -> Linter:
    """Linter instance for testing."""
    return Linter(test_config)


@pytest.fixture
def lint(linter: Linter) -> Callable[..., List[Violation]]:
    """Lint a source string and return its violations, optionally for one rule."""

    def _lint(source: str, rule_id: str = None, filename: str = "test.scss") -> List[Violation]:
        result = linter.lint_source(source, filename)
        assert result.parse_error is None, result.parse_error
        if rule_id is None:
            return result.violations
        return [v for v in result.violations if v.rule_id == rule_id]

    return _lint


@pytest.fixture
def sample_scss_file(temp_dir: Path, sample_scss: str) -> Path:
    """Create a temporary SCSS file with sample content."""
    scss_file = temp_dir / "sample.scss"
    scss_file.write_text(sample_scss)
    return scss_file


@pytest.fixture
def bad_scss_file(temp_dir: Path, bad_scss: str) -> Path:
    """Create a temporary SCSS file with violations."""
    scss_file = temp_dir / "bad.scss"
    scss_file.write_text(bad_scss)
    return scss_file


# Environment setup
@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    # Disable logging during tests
    os.environ["LOG_LEVEL"] = "CRITICAL"

    yield

    # Clean up
    os.environ.pop("LOG_LEVEL", None)
