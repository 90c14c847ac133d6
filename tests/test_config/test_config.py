"""
Configuration system unit tests
"""

import pytest
import yaml
from pydantic import ValidationError

from config import (
    AuditConfig,
    BudgetConfig,
    CatalogConfig,
    Config,
    ConfigManager,
    LoggingConfig,
    TokenConfig,
    get_config,
    get_config_manager,
    reload_config,
)


class TestBudgetConfig:
    """Test budget configuration"""

    def test_default_values(self):
        config = BudgetConfig()
        assert config.budget == 8000
        assert config.identity_overhead == 500
        assert config.recency_floor_turns == 1
        assert config.composition_weight == 50

    def test_positive_budget(self):
        with pytest.raises(ValidationError):
            BudgetConfig(budget=0)

    def test_negative_overhead(self):
        with pytest.raises(ValidationError):
            BudgetConfig(identity_overhead=-1)


class TestCatalogConfig:
    """Test catalog configuration"""

    def test_default_values(self):
        config = CatalogConfig()
        assert config.pack_dirs == ["./packs"]
        assert config.enabled_packs is None
        assert config.strict is False
        assert config.lint is True


class TestTokenConfig:
    """Test token configuration"""

    def test_default_values(self):
        config = TokenConfig()
        assert config.model is None
        assert config.chars_per_token == 4.0


class TestLoggingConfig:
    """Test logging configuration"""

    def test_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestConfig:
    """Test the main configuration"""

    def test_default_values(self):
        config = Config()
        assert config.environment == "development"
        assert config.debug is False
        assert config.identity == ""
        assert isinstance(config.audit, AuditConfig)
        assert config.audit.file is None

    def test_environment_validation(self):
        Config(environment="production")
        Config(environment="test")
        with pytest.raises(ValidationError):
            Config(environment="staging")

    def test_config_from_dict(self):
        config = Config(**{
            "identity": "Mapping service",
            "budget": {"budget": 4000, "identity_overhead": 100},
            "catalog": {"pack_dirs": ["/opt/packs"], "enabled_packs": ["mapping"]},
        })
        assert config.budget.budget == 4000
        assert config.catalog.enabled_packs == ["mapping"]

    def test_config_serialization(self):
        data = Config().model_dump()
        assert data["budget"]["budget"] == 8000
        assert "catalog" in data


class TestConfigManager:
    """Test the configuration manager"""

    def test_explicit_path(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("# test config")

        manager = ConfigManager(str(config_file))
        assert manager.config_path == str(config_file)

    def test_load_yaml(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"budget": {"budget": 1200}}))

        loaded = ConfigManager(str(config_file)).load_yaml()
        assert loaded["budget"]["budget"] == 1200

    def test_load_yaml_nonexistent(self):
        assert ConfigManager("/nonexistent/config.yaml").load_yaml() == {}

    def test_parse_env_value(self):
        parse = ConfigManager._parse_env_value

        assert parse("true") is True
        assert parse("YES") is True
        assert parse("false") is False
        assert parse("no") is False

        assert parse("123") == 123
        assert parse("12.5") == 12.5

        assert parse("mapping, review") == ["mapping", "review"]
        assert parse("hello") == "hello"

    def test_override_from_env(self, tmp_path, monkeypatch):
        config_data = {"environment": "development", "budget": {"budget": 1000}}

        monkeypatch.setenv("SKE_ENVIRONMENT", "production")
        monkeypatch.setenv("SKE_BUDGET__IDENTITY_OVERHEAD", "50")
        monkeypatch.setenv("SKE_CATALOG__ENABLED_PACKS", "mapping,review")

        manager = ConfigManager(str(tmp_path / "settings.yaml"))
        merged = manager._override_from_env(config_data)

        assert merged["environment"] == "production"
        assert merged["budget"] == {"budget": 1000, "identity_overhead": 50}
        assert merged["catalog"]["enabled_packs"] == ["mapping", "review"]
        # Input is not modified
        assert config_data["budget"] == {"budget": 1000}

    def test_load_config(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({
            "environment": "production",
            "budget": {"budget": 3000, "recency_floor_turns": 2},
            "audit": {"file": "logs/transitions.jsonl"},
        }))

        config = ConfigManager(str(config_file)).load()

        assert config.environment == "production"
        assert config.budget.budget == 3000
        assert config.budget.recency_floor_turns == 2
        assert config.audit.file == "logs/transitions.jsonl"

    def test_load_config_caching(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("environment: production")

        manager = ConfigManager(str(config_file))
        assert manager.load() is manager.load()

    def test_reload_config(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("environment: production")

        manager = ConfigManager(str(config_file))
        config1 = manager.load()
        config_file.write_text("environment: test")
        config2 = manager.reload()

        assert config1.environment == "production"
        assert config2.environment == "test"


class TestGlobalConfig:
    """Test global configuration helpers"""

    def test_get_config(self):
        assert isinstance(get_config(), Config)

    def test_config_manager_singleton(self):
        assert get_config_manager() is get_config_manager()

    def test_reload_global_config(self):
        assert isinstance(reload_config(), Config)
