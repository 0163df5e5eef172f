"""Tests for the configuration system."""

import dataclasses
import json
import string

import pytest

from pair_tree.shared.config import (
    ApiConfig,
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    ExtractionConfig,
    GlobalConfig,
    TreeConfig,
)


class TestExtractionConfig:
    """Test suite for ExtractionConfig."""

    def test_default_configuration(self):
        """Test default extraction values."""
        config = ExtractionConfig()

        assert config.alphabet == string.ascii_uppercase
        assert config.pair_separator == " "

    def test_custom_alphabet_accepted(self):
        """Test a custom finite alphabet."""
        config = ExtractionConfig(alphabet="abc", pair_separator=";")

        assert config.alphabet == "abc"
        assert config.pair_separator == ";"

    def test_separator_must_be_single_character(self):
        """Test separator length validation."""
        with pytest.raises(ValueError, match="pair_separator must be exactly one character"):
            ExtractionConfig(pair_separator="")

        with pytest.raises(ValueError, match="pair_separator must be exactly one character"):
            ExtractionConfig(pair_separator="  ")

    def test_alphabet_validation_failures(self):
        """Test alphabet validation."""
        with pytest.raises(ValueError, match="alphabet cannot be empty"):
            ExtractionConfig(alphabet="")

        with pytest.raises(ValueError, match="alphabet symbols must be unique"):
            ExtractionConfig(alphabet="AAB")

        with pytest.raises(ValueError, match="alphabet cannot contain grammar characters"):
            ExtractionConfig(alphabet="AB(")

    def test_alphabet_cannot_contain_separator(self):
        """Test the separator is treated as a grammar character."""
        with pytest.raises(ValueError, match="grammar characters"):
            ExtractionConfig(alphabet="A B")

    def test_non_string_fields_rejected(self):
        """Test wrongly typed alphabet or separator fails with TypeError."""
        with pytest.raises(TypeError, match="must be strings"):
            ExtractionConfig(alphabet=5)
        with pytest.raises(TypeError, match="must be strings"):
            ExtractionConfig(pair_separator=None)


class TestTreeAndGlobalConfig:
    """Test suite for TreeConfig and GlobalConfig."""

    def test_tree_defaults(self):
        """Test default serialization strategy."""
        assert TreeConfig().serialization_strategy == "recursive"
        assert TreeConfig(serialization_strategy="iterative").serialization_strategy == "iterative"

    def test_tree_invalid_strategy(self):
        """Test unknown strategies are rejected."""
        with pytest.raises(ValueError, match="serialization_strategy must be one of"):
            TreeConfig(serialization_strategy="breadth_first")

    def test_global_defaults(self):
        """Test global defaults."""
        config = GlobalConfig()

        assert config.logging_level == "INFO"
        assert config.enable_correlation_tracking is True

    def test_global_invalid_level(self):
        """Test logging level validation."""
        with pytest.raises(ValueError, match="logging_level must be one of"):
            GlobalConfig(logging_level="VERBOSE")

    def test_api_defaults(self):
        """Test API defaults."""
        assert ApiConfig().include_diagnostic_info is True


class TestBuilderConfig:
    """Test suite for the composed BuilderConfig."""

    def test_default_composition(self):
        """Test default components are created."""
        config = BuilderConfig()

        assert isinstance(config.extraction, ExtractionConfig)
        assert isinstance(config.tree, TreeConfig)
        assert isinstance(config.api, ApiConfig)
        assert isinstance(config.global_, GlobalConfig)
        assert config.name is None

    def test_config_is_frozen(self):
        """Test immutability of the top-level config."""
        config = BuilderConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.name = "changed"  # type: ignore[misc]

    def test_override_nested_field(self):
        """Test override creates a modified copy."""
        config = BuilderConfig()
        new_config = config.override(
            tree__serialization_strategy="iterative",
            api__include_diagnostic_info=False,
            name="custom",
        )

        assert new_config.tree.serialization_strategy == "iterative"
        assert new_config.api.include_diagnostic_info is False
        assert new_config.name == "custom"
        assert config.tree.serialization_strategy == "recursive"
        assert config.api.include_diagnostic_info is True

    def test_override_global_component(self):
        """Test the trailing underscore component name is handled."""
        new_config = BuilderConfig().override(
            global___enable_correlation_tracking=False,
            global___logging_level="DEBUG",
        )

        assert new_config.global_.enable_correlation_tracking is False
        assert new_config.global_.logging_level == "DEBUG"

    def test_override_invalid_value(self):
        """Test override validation failures are wrapped."""
        with pytest.raises(ConfigValidationError, match="serialization_strategy"):
            BuilderConfig().override(tree__serialization_strategy="bogus")

    def test_override_unknown_component(self):
        """Test unknown component names are rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            BuilderConfig().override(bogus__value=1)

        assert exc_info.value.field_name == "bogus__value"
        assert "tree" in exc_info.value.suggestions

    def test_override_unknown_field(self):
        """Test unknown field names are rejected."""
        with pytest.raises(ConfigValidationError):
            BuilderConfig().override(tree__nope=True)

    def test_mutated_component_is_revalidated(self):
        """Test invalid component values are caught on composition."""
        tree = TreeConfig()
        tree.serialization_strategy = "bogus"

        with pytest.raises(ConfigValidationError):
            BuilderConfig(tree=tree)

    def test_to_dict_layout(self):
        """Test dictionary layout."""
        data = BuilderConfig().to_dict()

        assert data["extraction"]["alphabet"] == string.ascii_uppercase
        assert data["tree"]["serialization_strategy"] == "recursive"
        assert data["api"]["include_diagnostic_info"] is True
        assert data["global_"]["logging_level"] == "INFO"

    def test_json_round_trip(self):
        """Test serialization to and from JSON."""
        config = BuilderConfig.deep_trees().override(extraction__alphabet="xyz")

        restored = BuilderConfig.from_json(config.to_json())

        assert restored == config
        assert json.loads(config.to_json())["extraction"]["alphabet"] == "xyz"

    def test_from_dict_partial(self):
        """Test missing keys take defaults and unknown keys are ignored."""
        config = BuilderConfig.from_dict({"tree": {"serialization_strategy": "iterative"}, "extra": 1})

        assert config.tree.serialization_strategy == "iterative"
        assert config.extraction == ExtractionConfig()

    def test_from_dict_invalid(self):
        """Test invalid values raise ConfigValidationError."""
        with pytest.raises(ConfigValidationError):
            BuilderConfig.from_dict({"global_": {"logging_level": "LOUD"}})

    @pytest.mark.parametrize("data, field_name", [
        (None, None),
        ([1, 2], None),
        ({"tree": None}, "tree"),
        ({"extraction": "ABC"}, "extraction"),
    ])
    def test_from_dict_rejects_non_objects(self, data, field_name):
        """Test component values that are not objects are reported."""
        with pytest.raises(ConfigValidationError, match="must be an object") as exc_info:
            BuilderConfig.from_dict(data)

        assert exc_info.value.field_name == field_name

    @pytest.mark.parametrize("data", [
        {"extraction": {"alphabet": 5}},
        {"extraction": {"pair_separator": None}},
        {"tree": {"serialization_strategy": ["recursive"]}},
    ])
    def test_from_dict_wrong_field_types(self, data):
        """Test wrongly typed fields raise a ConfigError, not TypeError."""
        with pytest.raises(ConfigError):
            BuilderConfig.from_dict(data)

    def test_presets(self):
        """Test preset factory methods."""
        assert BuilderConfig.default().name == "default"

        deep = BuilderConfig.deep_trees()
        assert deep.tree.serialization_strategy == "iterative"

        quiet = BuilderConfig.quiet()
        assert quiet.api.include_diagnostic_info is False
        assert quiet.global_.logging_level == "WARNING"

    def test_exception_hierarchy(self):
        """Test validation errors are config errors."""
        assert issubclass(ConfigValidationError, ConfigError)
