"""
Configuration management

Loads configuration from a YAML file and environment variables.
"""

import os
import yaml
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

# Load .env file
load_dotenv()

ENV_PREFIX = "SKE_"


class BudgetConfig(BaseModel):
    """Context budget configuration"""

    budget: int = Field(default=8000, gt=0, description="Total weight units for context")
    identity_overhead: int = Field(default=500, ge=0, description="Weight reserved for the Identity layer")
    recency_floor_turns: int = Field(default=1, ge=0, description="Turns a new admission is protected from eviction")
    composition_weight: int = Field(default=50, gt=0, description="Fixed weight of a recipe entry")


class CatalogConfig(BaseModel):
    """Skill catalog configuration"""

    pack_dirs: List[str] = Field(
        default_factory=lambda: ["./packs"],
        description="Directories searched for packs"
    )
    enabled_packs: Optional[List[str]] = Field(
        default=None,
        description="Pack ids enabled for the session; None uses each pack's own flag"
    )
    strict: bool = Field(default=False, description="Fail on the first malformed descriptor")
    lint: bool = Field(default=True, description="Run scope lint when loading the catalog")


class TokenConfig(BaseModel):
    """Token counting configuration"""

    model: Optional[str] = Field(default=None, description="Model used to pick a tokenizer")
    chars_per_token: float = Field(default=4.0, gt=0, description="Ratio for approximate counting")


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        description="Log format"
    )
    file: Optional[str] = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Maximum log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of log backups")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AuditConfig(BaseModel):
    """Mode transition audit configuration"""

    file: Optional[str] = Field(default=None, description="JSONL file for transition records")


class Config(BaseModel):
    """Skill engine configuration"""

    environment: str = Field(default="development", description="Environment (development, production, test)")
    debug: bool = Field(default=False, description="Debug mode")

    identity: str = Field(default="", description="Project identity text, always resident")

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    token: TokenConfig = Field(default_factory=TokenConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name"""
        valid_envs = ["development", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v


class ConfigManager:
    """
    Configuration manager

    Loads YAML configuration and applies environment variable overrides
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager

        Args:
            config_path: YAML configuration path, defaults to config/settings.yaml
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Config] = None

    @staticmethod
    def _find_config_file() -> str:
        """
        Find the configuration file

        Search order:
        1. ./config/settings.yaml
        2. ./settings.yaml
        3. ~/.config/skill_engine/settings.yaml
        """
        possible_paths = [
            "./config/settings.yaml",
            "./settings.yaml",
            os.path.expanduser("~/.config/skill_engine/settings.yaml"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return "./config/settings.yaml"

    def load_yaml(self) -> Dict[str, Any]:
        """
        Load configuration from the YAML file

        Returns:
            Configuration dict
        """
        if not os.path.exists(self.config_path):
            return {}

        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _override_from_env(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Override configuration from environment variables

        Nested keys use __ as separator, for example:
        SKE_BUDGET__BUDGET=12000
        SKE_CATALOG__STRICT=true

        Args:
            config_dict: Original configuration dict

        Returns:
            Overridden configuration dict
        """
        result = config_dict.copy()

        for env_key, env_value in os.environ.items():
            if env_key.startswith(ENV_PREFIX):
                key = env_key[len(ENV_PREFIX):]
                key = key.replace("__", ".").lower()
                parts = key.split(".")

                current = result
                for part in parts[:-1]:
                    if not isinstance(current.get(part), dict):
                        current[part] = {}
                    else:
                        current[part] = dict(current[part])
                    current = current[part]
                current[parts[-1]] = self._parse_env_value(env_value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """
        Parse an environment variable value

        Comma separated values become lists.
        """
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if "," in value:
            return [item.strip() for item in value.split(",") if item.strip()]

        return value

    def load(self) -> Config:
        """
        Load configuration

        Loads the YAML file and applies environment overrides

        Returns:
            Configuration object
        """
        if self._config is not None:
            return self._config

        yaml_config = self.load_yaml()
        merged_config = self._override_from_env(yaml_config)

        self._config = Config(**merged_config)
        return self._config

    def reload(self) -> Config:
        """
        Reload configuration

        Returns:
            Configuration object
        """
        self._config = None
        return self.load()


# Global configuration manager
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get the global configuration

    Args:
        config_path: Optional configuration file path

    Returns:
        Configuration object
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager.load()


def get_config_manager() -> ConfigManager:
    """
    Get the global configuration manager

    Returns:
        Configuration manager
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def reload_config() -> Config:
    """
    Reload the global configuration

    Returns:
        Configuration object
    """
    global _config_manager

    if _config_manager is not None:
        return _config_manager.reload()

    return get_config()
