"""Configuration management for winrmkrb.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from winrmkrb.config.settings import ClientConfig, Settings, load_settings

__all__ = ["ClientConfig", "Settings", "load_settings"]
