"""Configuration module for devstack-net."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
