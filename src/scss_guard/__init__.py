"""scss-guard - linter and formatter for the CSS/Sass style guide."""

__version__ = "0.1.0"
__author__ = "scss-guard maintainers"

from .config import ScssGuardConfig, load_config
from .formatter import Formatter, format_source
from .linter import Linter
from .parser import parse
from .reporter import FileResult, Reporter
from .violations import Fix, Severity, Violation

__all__ = [
    "Fix",
    "FileResult",
    "Formatter",
    "Linter",
    "Reporter",
    "ScssGuardConfig",
    "Severity",
    "Violation",
    "format_source",
    "load_config",
    "parse",
    "__version__",
]
