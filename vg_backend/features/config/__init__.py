"""User configuration: schema and hot-reload lifecycle."""
from .lifecycle import ConfigLifecycle
from .schema import AppConfig, parse_config_text

__all__ = ["AppConfig", "ConfigLifecycle", "parse_config_text"]
