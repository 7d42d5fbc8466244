"""Configuration management for scss-guard."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Literal
from pydantic import BaseModel, Field, field_validator

from .utils.errors import ConfigurationError


SeverityName = Literal["error", "warning"]


class ParserConfig(BaseModel):
    """Configuration for the stylesheet parser."""

    max_file_size: int = 1048576  # 1MB
    max_nesting_depth: int = 32


class RulesConfig(BaseModel):
    """Configuration for the rule engine."""

    disabled: List[str] = Field(default_factory=list)
    severity: Dict[str, SeverityName] = Field(default_factory=dict)
    max_nesting_depth: int = 3
    comment_style: Literal["line", "any"] = "line"
    indent_width: int = 2
    allow_color_annotations: bool = True

    @field_validator("max_nesting_depth", "indent_width")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value


class ReporterConfig(BaseModel):
    """Configuration for report rendering."""

    format: Literal["human", "structured"] = "human"
    min_severity: SeverityName = "warning"


class FilesConfig(BaseModel):
    """Configuration for input file discovery."""

    extensions: List[str] = Field(default_factory=lambda: [".scss", ".sass"])
    exclude: List[str] = Field(default_factory=lambda: ["node_modules/*", "*/node_modules/*"])


class PerformanceConfig(BaseModel):
    """Configuration for performance settings."""

    cache_enabled: bool = True
    cache_size: int = 256
    # Seconds a parsed sheet stays cached; None keeps it until evicted
    cache_ttl: Optional[float] = None
    max_workers: int = 4


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "text"
    file: Optional[str] = None


class ScssGuardConfig(BaseModel):
    """Main configuration class for scss-guard."""

    parser: ParserConfig = Field(default_factory=ParserConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    reporter: ReporterConfig = Field(default_factory=ReporterConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Check for config in current directory first
    current_dir = Path.cwd()
    config_files = [
        current_dir / "scss-guard.yaml",
        current_dir / ".scss-guard.yaml",
        current_dir / "scss-guard.yml",
        current_dir / "config" / "scss-guard.yaml",
    ]

    for config_file in config_files:
        if config_file.exists():
            return config_file

    # Return default path in config directory
    return current_dir / "config" / "scss-guard.yaml"


def load_config(config_path: Optional[str] = None) -> ScssGuardConfig:
    """Load configuration from file or environment variables."""
    path: Path
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

    # Start with default configuration
    config_dict: Dict[str, Any] = {}

    # Load from file if it exists
    if path.exists():
        try:
            with open(path, "r") as f:
                file_config = yaml.safe_load(f)
                if file_config:
                    if not isinstance(file_config, dict):
                        raise ValueError("top-level YAML value must be a mapping")
                    config_dict.update(file_config)
        except Exception as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}")

    # Override with environment variables
    env_overrides = _get_env_overrides()
    _deep_update(config_dict, env_overrides)

    # Create and validate configuration
    try:
        config = ScssGuardConfig(**config_dict)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {e}")

    _check_rule_ids(config.rules)
    return config


def _check_rule_ids(rules: RulesConfig) -> None:
    """Reject configuration that names rules the engine does not know."""
    from .rules import RULES

    unknown = sorted(
        (set(rules.disabled) | set(rules.severity)) - set(RULES),
    )
    if unknown:
        raise ConfigurationError(
            f"Invalid configuration: unknown rule id(s): {', '.join(unknown)}",
            details={"unknown_rules": unknown},
        )


def _get_env_overrides() -> Dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: Dict[str, Any] = {}

    # Logging configuration
    if os.getenv("LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    if os.getenv("LOG_FILE"):
        overrides.setdefault("logging", {})["file"] = os.getenv("LOG_FILE")

    # Reporter configuration
    if os.getenv("SCSS_GUARD_FORMAT"):
        overrides.setdefault("reporter", {})["format"] = os.getenv("SCSS_GUARD_FORMAT")

    # Performance configuration
    if os.getenv("CACHE_SIZE"):
        try:
            overrides.setdefault("performance", {})["cache_size"] = int(os.getenv("CACHE_SIZE", ""))
        except ValueError:
            pass

    if os.getenv("CACHE_TTL"):
        try:
            overrides.setdefault("performance", {})["cache_ttl"] = float(os.getenv("CACHE_TTL", ""))
        except ValueError:
            pass

    if os.getenv("MAX_WORKERS"):
        try:
            overrides.setdefault("performance", {})["max_workers"] = int(
                os.getenv("MAX_WORKERS", "")
            )
        except ValueError:
            pass

    return overrides


def _deep_update(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> None:
    """Deep update a dictionary with another dictionary."""
    for key, value in update_dict.items():
        if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
            _deep_update(base_dict[key], value)
        else:
            base_dict[key] = value


def save_config(config: ScssGuardConfig, config_path: Optional[str] = None) -> None:
    """Save configuration to file."""
    path: Path
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    # Convert to dictionary and save
    config_dict = config.model_dump()

    with open(path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)


# Default configuration instance
DEFAULT_CONFIG = ScssGuardConfig()
