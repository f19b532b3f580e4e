"""Configuration classes for friendly XML services.

This module provides configuration objects for the friendly view builder,
parse diagnostics, scope scanning and file-set search, enabling callers to
tune behaviour without touching the algorithms themselves.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

_VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_COMPONENTS = ["friendly", "diagnostics", "scopes", "search", "global_"]


@dataclass
class FriendlyViewConfig:
    """Configuration for building friendly views."""

    prohibit_dtd: bool = True
    min_repeat_count: int = 2

    def __post_init__(self) -> None:
        """Validate friendly view configuration."""
        if self.min_repeat_count < 2:
            raise ValueError("min_repeat_count must be >= 2")


@dataclass
class DiagnosticsConfig:
    """Configuration for parse diagnostics and the lint pass."""

    prohibit_dtd: bool = True
    enable_lint: bool = True
    max_lint_findings: int = 50

    def __post_init__(self) -> None:
        """Validate diagnostics configuration."""
        if self.max_lint_findings < 0:
            raise ValueError("max_lint_findings must be >= 0")


@dataclass
class ScopeConfig:
    """Configuration for scope range scanning."""

    prefer_conformant: bool = True


@dataclass
class SearchConfig:
    """Configuration for raw and friendly file-set search."""

    max_results: int = 1000
    preview_length: int = 240
    use_parallel: bool = True
    max_workers: Optional[int] = None
    encoding: str = "utf-8-sig"

    def __post_init__(self) -> None:
        """Validate search configuration."""
        if self.max_results <= 0:
            raise ValueError("max_results must be > 0")
        if self.preview_length <= 0:
            raise ValueError("preview_length must be > 0")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError("max_workers must be > 0 or None")
        if not self.encoding:
            raise ValueError("encoding cannot be empty")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in _VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {_VALID_LOGGING_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ToolkitConfig:
    """Configuration for all friendly XML services.

    Immutable and therefore safe to share between search workers.
    """

    friendly: FriendlyViewConfig = field(default_factory=FriendlyViewConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    scopes: ScopeConfig = field(default_factory=ScopeConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.friendly.__post_init__()
            self.diagnostics.__post_init__()
            self.search.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.friendly.prohibit_dtd != self.diagnostics.prohibit_dtd:
            raise ConfigValidationError(
                "friendly.prohibit_dtd and diagnostics.prohibit_dtd must agree",
                field_name="prohibit_dtd",
                suggestions=["Set both prohibit_dtd flags to the same value"],
            )

    def override(self, **kwargs: Any) -> "ToolkitConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Keyword arguments for configuration fields to override

        Returns:
            New ToolkitConfig instance with overrides applied

        Example:
            >>> config = ToolkitConfig()
            >>> new_config = config.override(
            ...     search__max_results=50,
            ...     diagnostics__max_lint_findings=10
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=_COMPONENTS,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for field_name in _COMPONENTS:
                current_config = getattr(self, field_name)
                if field_name in nested_overrides:
                    new_fields[field_name] = replace(
                        current_config, **nested_overrides[field_name]
                    )
                else:
                    new_fields[field_name] = current_config
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

        for key, value in nested_overrides.items():
            if key not in _COMPONENTS:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolkitConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in config files are reported
        instead of silently ignored.
        """
        component_types = {
            "friendly": FriendlyViewConfig,
            "diagnostics": DiagnosticsConfig,
            "scopes": ScopeConfig,
            "search": SearchConfig,
            "global_": GlobalConfig,
        }

        values: Dict[str, Any] = {}
        try:
            for key, value in data.items():
                if key in component_types:
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"Section '{key}' must be an object", field_name=key
                        )
                    values[key] = component_types[key](**value)
                elif key in ("name", "description"):
                    values[key] = value
                else:
                    raise ConfigValidationError(
                        f"Unknown configuration key: {key}",
                        field_name=key,
                        suggestions=sorted(component_types) + ["name", "description"],
                    )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ToolkitConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ToolkitConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "ToolkitConfig":
        """Create preset with deterministic search and a short lint list."""
        return cls(
            diagnostics=DiagnosticsConfig(max_lint_findings=10),
            search=SearchConfig(use_parallel=False),
            name="strict",
            description="Sequential search and at most 10 lint findings",
        )

    @classmethod
    def fast_search(cls) -> "ToolkitConfig":
        """Create preset for searching large file sets."""
        return cls(
            search=SearchConfig(max_results=5000, use_parallel=True),
            name="fast_search",
            description="Parallel friendly search with a larger result cap",
        )
