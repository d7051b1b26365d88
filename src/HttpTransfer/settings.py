"""Environment-driven configuration for :class:`HttpTransfer.client.HttpClient`.

Every field can be supplied through an ``HTTPTRANSFER_``-prefixed environment
variable (``HTTPTRANSFER_CA_CERT``, ``HTTPTRANSFER_PROTOCOLS=https`` ...) or as
keyword overrides to :func:`load_settings`.  Invalid input is reported as
:class:`~HttpTransfer.errors.ConfigError`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .engine.options import Protocol
from .errors import ConfigError

__all__ = ["TransferSettings", "load_settings"]

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class TransferSettings(BaseSettings):
    """Client defaults resolved from the environment."""

    ca_cert: Optional[str] = Field(default=None, description="CA bundle used to verify servers")
    client_cert: Optional[str] = Field(default=None, description="Client certificate (PEM)")
    client_key: Optional[str] = Field(default=None, description="Private key for client_cert")
    protocols: str = Field(default="all", description="Comma separated list: http, https, all")
    connect_timeout_ms: Optional[int] = Field(default=None, ge=0)
    timeout_ms: Optional[int] = Field(default=None, ge=0)
    user_agent: Optional[str] = None
    log_level: str = "INFO"
    verbose: bool = False

    model_config = SettingsConfigDict(env_prefix="HTTPTRANSFER_", case_sensitive=False, extra="ignore")

    @field_validator("protocols")
    @classmethod
    def _check_protocols(cls, value: str) -> str:
        Protocol.parse(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @field_validator("client_key")
    @classmethod
    def _key_needs_cert(cls, value: Optional[str], info: Any) -> Optional[str]:
        if value and not info.data.get("client_cert"):
            raise ValueError("client_key requires client_cert")
        return value

    @property
    def protocol_mask(self) -> Protocol:
        return Protocol.parse(self.protocols)


def load_settings(**overrides: Any) -> TransferSettings:
    """Resolve settings from the environment, applying non-``None`` ``overrides`` on top."""

    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = TransferSettings(**values)
    except ValidationError as exc:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "settings"
            messages.append(f"{location}: {error.get('msg')}")
        raise ConfigError("Invalid transfer settings: " + "; ".join(messages)) from exc
    if overrides:
        logger.debug("Settings overridden", extra={"fields": sorted(values)})
    return settings
