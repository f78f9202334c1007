"""Configuration classes for fluidxml.

This module provides configuration objects for the traversal engine, the
XPath templater, the document loader and process-wide settings.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

_QUOTE_CHARACTERS = ("'", '"')
_COMPONENTS = ("traversal", "query", "tree", "global_")


@dataclass
class TraversalConfig:
    """Configuration for document-order traversal."""

    # Raise TreeMutationError when a frame's child count changes mid-walk
    detect_mutation: bool = True
    # Begin document traversals at the document element, not the wrapper
    start_at_document_element: bool = True

    def __post_init__(self) -> None:
        """Validate traversal configuration."""
        if not isinstance(self.detect_mutation, bool):
            raise ValueError("detect_mutation must be a bool")
        if not isinstance(self.start_at_document_element, bool):
            raise ValueError("start_at_document_element must be a bool")


@dataclass
class QueryConfig:
    """Configuration for XPath template substitution."""

    sigil: str = "$"
    strip_argument_quotes: bool = True
    escape_embedded_quotes: bool = False

    def __post_init__(self) -> None:
        """Validate query configuration."""
        if not isinstance(self.sigil, str) or len(self.sigil) != 1:
            raise ValueError("sigil must be a single character")
        if self.sigil.isalnum():
            raise ValueError("sigil cannot be a letter or digit")
        if self.sigil in _QUOTE_CHARACTERS:
            raise ValueError("sigil cannot be a quote character")


@dataclass
class TreeConfig:
    """Configuration for loading documents into the node model."""

    drop_whitespace_text: bool = False
    remove_comments: bool = False
    remove_processing_instructions: bool = False
    resolve_entities: bool = False
    huge_tree: bool = False

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        for name in (
            "drop_whitespace_text",
            "remove_comments",
            "remove_processing_instructions",
            "resolve_entities",
            "huge_tree",
        ):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool")


@dataclass
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "WARNING"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


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
class FluidConfig:
    """Immutable configuration bundle for every fluidxml component.

    Thread-safe due to the frozen dataclass; derive variants with
    :meth:`override` instead of mutating.
    """

    traversal: TraversalConfig = field(default_factory=TraversalConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    version: str = "1.0.0"
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.traversal.__post_init__()
            self.query.__post_init__()
            self.tree.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.query.escape_embedded_quotes and not self.query.strip_argument_quotes:
            raise ConfigValidationError(
                "escape_embedded_quotes requires strip_argument_quotes",
                field_name="query.escape_embedded_quotes",
                suggestions=[
                    "Enable query.strip_argument_quotes",
                    "Disable query.escape_embedded_quotes",
                ],
            )

    def override(self, **kwargs: Any) -> "FluidConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; nested fields use ``component__field``

        Returns:
            New FluidConfig instance with overrides applied

        Example:
            >>> config = FluidConfig()
            >>> config.override(query__sigil="%").query.sigil
            '%'
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=[f"Use one of {list(_COMPONENTS)}"],
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS and isinstance(value, dict):
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        result: Dict[str, Any] = {}
        for name in _COMPONENTS:
            component = getattr(self, name)
            result[name] = {
                field_name: getattr(component, field_name)
                for field_name in component.__dataclass_fields__
            }
        result["version"] = self.version
        result["name"] = self.name
        result["description"] = self.description
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FluidConfig":
        """Create configuration from a dictionary produced by :meth:`to_dict`.

        Unknown keys are rejected so typos do not silently fall back to
        defaults.
        """
        component_classes = {
            "traversal": TraversalConfig,
            "query": QueryConfig,
            "tree": TreeConfig,
            "global_": GlobalConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_classes:
                try:
                    values[key] = component_classes[key](**value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in ("version", "name", "description"):
                values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}", field_name=key
                )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "FluidConfig":
        """Create configuration from a JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict_queries(cls) -> "FluidConfig":
        """Preset that quotes argument values safely for XPath."""
        return cls(
            query=QueryConfig(escape_embedded_quotes=True),
            name="strict_queries",
            description="Escapes embedded quotes in substituted XPath arguments",
        )

    @classmethod
    def compact_documents(cls) -> "FluidConfig":
        """Preset that drops formatting whitespace, comments and PIs on load."""
        return cls(
            tree=TreeConfig(
                drop_whitespace_text=True,
                remove_comments=True,
                remove_processing_instructions=True,
            ),
            name="compact_documents",
            description="Loads documents without formatting-only nodes",
        )
