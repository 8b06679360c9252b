"""Configuration management for the relay server."""

from .environment import (
    get_env_config,
    load_env_file,
)

__all__ = [
    "get_env_config",
    "load_env_file",
]
