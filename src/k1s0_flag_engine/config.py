"""Local flag evaluation configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import httpx

LIB_NAME = "python"
LIB_VERSION = "0.1.0"

DEFAULT_API_HOST = "api.mixpanel.com"
DEFAULT_REQUEST_TIMEOUT = timedelta(seconds=10)
DEFAULT_POLLING_INTERVAL = timedelta(seconds=60)

FLAGS_DEFINITIONS_PATH = "/flags/definitions"


@dataclass
class LocalFlagsConfig:
    """Configuration for local flag evaluation.

    Empty or zero values are replaced by the defaults, so a partially
    filled config behaves like ``LocalFlagsConfig()`` for the omitted fields.
    """

    api_host: str = DEFAULT_API_HOST
    request_timeout: timedelta = field(default_factory=lambda: DEFAULT_REQUEST_TIMEOUT)
    enable_polling: bool = True
    polling_interval: timedelta = field(default_factory=lambda: DEFAULT_POLLING_INTERVAL)
    http_client: httpx.AsyncClient | None = None

    def __post_init__(self) -> None:
        if not self.api_host:
            self.api_host = DEFAULT_API_HOST
        if not self.request_timeout:
            self.request_timeout = DEFAULT_REQUEST_TIMEOUT
        if not self.polling_interval:
            self.polling_interval = DEFAULT_POLLING_INTERVAL

    @property
    def definitions_url(self) -> str:
        return f"https://{self.api_host}{FLAGS_DEFINITIONS_PATH}"
