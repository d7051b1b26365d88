"""Public API for the HttpTransfer synchronous HTTP client.

The facade exposes the client, its request/response values, the error
hierarchy, and the process-wide engine lifecycle.  Call :func:`global_init`
once before creating clients and :func:`global_cleanup` at shutdown.
"""

from __future__ import annotations

from .client import HttpClient
from .engine import Protocol, global_cleanup, global_init, initialized
from .errors import ConfigError, HttpError, HttpFileDownloadError, HttpRequestError
from .request import Request
from .resources import HeaderList, ScopedResource
from .response import Response
from .settings import TransferSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "HttpClient",
    "Request",
    "Response",
    "Protocol",
    "HttpError",
    "HttpRequestError",
    "HttpFileDownloadError",
    "ConfigError",
    "ScopedResource",
    "HeaderList",
    "TransferSettings",
    "load_settings",
    "global_init",
    "global_cleanup",
    "initialized",
    "__version__",
]
