"""Tests for configuration management."""

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_edge_threshold,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
    load_environment,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("COMPOSER_EDGE_THRESHOLD", raising=False)
        assert get_environment(EnvVar.EDGE_THRESHOLD) == 30

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("COMPOSER_EDGE_THRESHOLD", "99")
        assert get_environment(EnvVar.EDGE_THRESHOLD, override=5) == 5

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("COMPOSER_EDGE_THRESHOLD", "12")
        result = get_environment(EnvVar.EDGE_THRESHOLD)
        assert result == 12
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Unparseable integers fall back to the default."""
        monkeypatch.setenv("COMPOSER_EDGE_THRESHOLD", "wide")
        assert get_environment(EnvVar.EDGE_THRESHOLD) == 30

    @pytest.mark.unit
    def test_bool_type_conversion(self, monkeypatch):
        """Boolean values accept the usual spellings."""
        for value in ("false", "0", "no", "FALSE"):
            monkeypatch.setenv("COMPOSER_LOCKED_BLOCKS_POINTER", value)
            assert get_environment(EnvVar.LOCKED_BLOCKS_POINTER) is False
        for value in ("true", "1", "Yes"):
            monkeypatch.setenv("COMPOSER_LOCKED_BLOCKS_POINTER", value)
            assert get_environment(EnvVar.LOCKED_BLOCKS_POINTER) is True

    @pytest.mark.unit
    def test_unrecognized_bool_returns_default(self, monkeypatch):
        """Unrecognized boolean strings fall back to the default."""
        monkeypatch.setenv("COMPOSER_BUILTIN_SCHEMAS", "maybe")
        assert get_environment(EnvVar.BUILTIN_SCHEMAS) is True


class TestConvenienceFunctions:
    """Tests for typed convenience accessors."""

    @pytest.mark.unit
    def test_edge_threshold_clamped(self, monkeypatch):
        """Negative thresholds are clamped to zero."""
        monkeypatch.setenv("COMPOSER_EDGE_THRESHOLD", "-4")
        assert get_edge_threshold() == 0

    @pytest.mark.unit
    def test_edge_threshold_override(self):
        """Override bypasses the environment."""
        assert get_edge_threshold(override=8) == 8

    @pytest.mark.unit
    def test_log_level_upper_cased(self, monkeypatch):
        """Log level names are normalised to upper case."""
        monkeypatch.setenv("COMPOSER_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"

    @pytest.mark.unit
    def test_load_environment_from_file(self, tmp_path, monkeypatch):
        """A .env file populates unset variables."""
        monkeypatch.delenv("COMPOSER_LOG_LEVEL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("COMPOSER_LOG_LEVEL=warning\n")

        assert load_environment(env_file) is True
        assert get_log_level() == "WARNING"
        monkeypatch.delenv("COMPOSER_LOG_LEVEL", raising=False)


class TestIntrospection:
    """Tests for variable metadata listing."""

    @pytest.mark.unit
    def test_info_returns_config(self):
        """Metadata is exposed as EnvConfig."""
        info = get_environment_info(EnvVar.EDGE_THRESHOLD)
        assert isinstance(info, EnvConfig)
        assert info.name == "COMPOSER_EDGE_THRESHOLD"
        assert info.var_type is int

    @pytest.mark.unit
    def test_list_by_category(self):
        """Category filter narrows the listing."""
        interaction = list_environment_variables("interaction")
        assert EnvVar.EDGE_THRESHOLD in interaction
        assert EnvVar.LOG_LEVEL not in interaction
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    def test_all_names_prefixed(self):
        """Every variable uses the COMPOSER_ prefix."""
        for var in EnvVar:
            assert var.value.name.startswith("COMPOSER_")
