"""Configuration package for the interview orchestrator."""
from .providers import (
    AppConfig,
    ProviderRoute,
    default_config,
    default_providers,
    load_config,
    load_config_or_default,
)
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "ProviderRoute",
    "default_config",
    "default_providers",
    "load_config",
    "load_config_or_default",
    "Settings",
    "settings",
]
