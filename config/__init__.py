import importlib
import os
from types import ModuleType
from typing import Optional

_ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
    "dev": "config.development",
    "development": "config.development",
}


def get_settings_module(env: Optional[str] = None) -> str:
    """Settings module for env (default: $APP_ENV); unknown names mean development."""
    name = (env or os.getenv("APP_ENV") or "development").strip().lower()
    return _ENVIRONMENTS.get(name, "config.development")


def load_settings(env: Optional[str] = None) -> ModuleType:
    return importlib.import_module(get_settings_module(env))
