"""Exception hierarchy raised by the HTTP transfer client.

Every failure the client reports is an :class:`HttpError`.  Failures tied to a
specific call carry the originating :class:`~HttpTransfer.request.Request`
so callers can log or retry with full context, and file downloads additionally
remember where the payload was meant to land and, when cleanup failed, which
temporary file was left behind.  Messages always contain the transfer engine's
own diagnostic text verbatim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import for annotations only
    from .request import Request

__all__ = [
    "HttpError",
    "HttpRequestError",
    "HttpFileDownloadError",
    "ConfigError",
]


class HttpError(RuntimeError):
    """Base exception for transfer failures; also raised when a client cannot be initialised."""


class HttpRequestError(HttpError):
    """Raised when configuring or performing a single request fails."""

    def __init__(self, request: "Request", message: str) -> None:
        super().__init__(message)
        self.request = request


class HttpFileDownloadError(HttpRequestError):
    """Raised when :meth:`HttpClient.download_file` cannot materialise the destination.

    ``temp_path`` is empty unless the temporary file could not be removed, in
    which case it names the file the caller has to clean up manually.
    """

    def __init__(
        self,
        request: "Request",
        file_path: str,
        message: str,
        *,
        temp_path: str = "",
    ) -> None:
        super().__init__(request, message)
        self.file_path = file_path
        self.temp_path = temp_path


class ConfigError(HttpError):
    """Raised when settings or CLI inputs cannot be turned into client configuration."""


# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.errors",
#   "purpose": "Define the exception hierarchy raised by the HTTP transfer client",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "request", "name": "Request & Download Errors", "anchor": "REQ", "kind": "api"},
#     {"id": "configuration", "name": "Configuration Errors", "anchor": "CFG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
