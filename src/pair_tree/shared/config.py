"""Configuration classes for pair-tree building.

Each build stage has its own small dataclass that validates itself in
``__post_init__``; ``BuilderConfig`` composes them into one immutable object.
"""

import json
import string
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

# Characters with a fixed role in the pair token grammar
RESERVED_CHARACTERS = frozenset("(),")

SERIALIZATION_STRATEGIES = ("recursive", "iterative")


@dataclass
class ExtractionConfig:
    """Configuration for splitting input into pair tokens."""

    alphabet: str = string.ascii_uppercase
    pair_separator: str = " "

    def __post_init__(self) -> None:
        """Validate extraction configuration."""
        if not isinstance(self.alphabet, str) or not isinstance(self.pair_separator, str):
            raise TypeError("alphabet and pair_separator must be strings")
        if len(self.pair_separator) != 1:
            raise ValueError("pair_separator must be exactly one character")
        if not self.alphabet:
            raise ValueError("alphabet cannot be empty")
        if len(set(self.alphabet)) != len(self.alphabet):
            raise ValueError("alphabet symbols must be unique")

        forbidden = RESERVED_CHARACTERS | {self.pair_separator}
        clashes = sorted(forbidden.intersection(self.alphabet))
        if clashes:
            raise ValueError(
                f"alphabet cannot contain grammar characters: {''.join(clashes)!r}"
            )


@dataclass
class TreeConfig:
    """Configuration for tree serialization."""

    serialization_strategy: str = "recursive"

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if self.serialization_strategy not in SERIALIZATION_STRATEGIES:
            raise ValueError(
                f"serialization_strategy must be one of {list(SERIALIZATION_STRATEGIES)}"
            )


@dataclass
class ApiConfig:
    """Configuration for result objects returned by the API layer."""

    include_diagnostic_info: bool = True


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

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


_COMPONENTS = ("extraction", "tree", "api", "global_")


@dataclass(frozen=True)
class BuilderConfig:
    """Complete, immutable configuration for a pair-tree build.

    Thread-safe due to frozen dataclass implementation; use ``override`` to
    derive a modified copy.
    """

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Re-validate components, which may have been mutated after creation."""
        try:
            self.extraction.__post_init__()
            self.tree.__post_init__()
            self.global_.__post_init__()
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "BuilderConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = BuilderConfig()
            >>> config.override(tree__serialization_strategy="iterative")
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                # global_ ends in an underscore, so global___x must split after it
                component = next(
                    (name for name in _COMPONENTS if key.startswith(name + "__")),
                    key.split("__", 1)[0],
                )
                field_name = key[len(component) + 2:]
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for key, value in nested_overrides.items():
                if key in _COMPONENTS and isinstance(value, dict):
                    new_fields[key] = replace(getattr(self, key), **value)
                else:
                    new_fields[key] = value
            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuilderConfig":
        """Create configuration from a dictionary.

        Unknown keys are ignored; missing keys take their defaults.
        """
        def _dict_to_dataclass(
            data_dict: Any, target_class: type, path: Optional[str] = None
        ) -> Any:
            if not isinstance(data_dict, dict):
                raise ConfigValidationError(
                    f"{path or target_class.__name__} must be an object, "
                    f"got {type(data_dict).__name__}",
                    field_name=path,
                )
            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                if hasattr(field_info.type, "__dataclass_fields__"):
                    value = _dict_to_dataclass(value, field_info.type, field_name)
                field_values[field_name] = value
            return target_class(**field_values)

        try:
            return _dict_to_dataclass(data, cls)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "BuilderConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def default(cls) -> "BuilderConfig":
        """Uppercase alphabet, recursive serialization, full diagnostics."""
        return cls(name="default")

    @classmethod
    def deep_trees(cls) -> "BuilderConfig":
        """Create preset that serializes with an explicit stack."""
        return cls(
            tree=TreeConfig(serialization_strategy="iterative"),
            name="deep_trees",
            description="Serialization without interpreter recursion limits",
        )

    @classmethod
    def quiet(cls) -> "BuilderConfig":
        """Create preset for batch use: no diagnostics, warnings only."""
        return cls(
            api=ApiConfig(include_diagnostic_info=False),
            global_=GlobalConfig(logging_level="WARNING"),
            name="quiet",
            description="Minimal result payloads and logging",
        )
