"""Configuration management for winrmkrb.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files. Connection parameters live in the
immutable ``ClientConfig`` model which the client receives at
construction time.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/winrmkrb.yaml")


class ClientConfig(BaseModel):
    """Connection parameters for a single WinRM endpoint.

    Set once when the client is built and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1, description="Target Windows host name")
    port: int = Field(default=5985, ge=1, le=65535)
    service_principal_name: str | None = Field(
        default=None, description="Kerberos SPN, defaults to HTTP/<host>"
    )
    use_ssl: bool = Field(default=False)
    verify_ssl: bool = Field(default=True, description="Validate the server certificate when use_ssl is set")
    path: str = Field(default="/wsman")
    timeout_ms: int = Field(default=60000, gt=0)
    max_negotiation_rounds: int = Field(default=3, gt=0)
    auth_protocol: Literal["kerberos", "negotiate"] = Field(default="kerberos")

    @field_validator("path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def endpoint_url(self) -> str:
        """URL the SOAP requests are posted to, also used as the wsa:To address."""
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def spn(self) -> str:
        return self.service_principal_name or f"HTTP/{self.host}"


class RunConfig(BaseModel):
    poll_interval: float = Field(default=1.0, ge=0)
    max_polls: int = Field(default=600, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for winrmkrb.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "WINRMKRB_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    winrm: ClientConfig | None = Field(default=None)
    run: RunConfig = Field(default_factory=RunConfig)
    network_adapter: str | None = Field(default=None)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    # WINRM_HOST / WINRM_SPN mirror the names commonly used by WinRM tooling
    host = os.environ.get("WINRM_HOST", "")
    spn = os.environ.get("WINRM_SPN", "")

    if not host and not spn:
        return

    winrm = yaml_data.get("winrm") or {}
    if host and not winrm.get("host"):
        winrm["host"] = host
    if spn and not winrm.get("service_principal_name"):
        winrm["service_principal_name"] = spn
    yaml_data["winrm"] = winrm
