"""Configuration package for the interview coach."""
from .llm import AppConfig, LlmRoute, default_route, load_config
from .registry import GENERATOR_KEY, STORE_KEY, bind_model, get_model, is_bound
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "default_route",
    "load_config",
    "GENERATOR_KEY",
    "STORE_KEY",
    "bind_model",
    "get_model",
    "is_bound",
    "Settings",
    "settings",
]
