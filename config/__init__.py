"""
Configuration module

Exports configuration classes and helpers
"""

from .config import (
    Config,
    ConfigManager,
    BudgetConfig,
    CatalogConfig,
    TokenConfig,
    LoggingConfig,
    AuditConfig,
    get_config,
    get_config_manager,
    reload_config,
)

__all__ = [
    "Config",
    "ConfigManager",
    "BudgetConfig",
    "CatalogConfig",
    "TokenConfig",
    "LoggingConfig",
    "AuditConfig",
    "get_config",
    "get_config_manager",
    "reload_config",
]
