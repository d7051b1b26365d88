# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.client",
#   "purpose": "Synchronous HTTP client built on the transfer engine handle.",
#   "sections": [
#     {
#       "id": "httpclient",
#       "name": "HttpClient",
#       "anchor": "class-httpclient",
#       "kind": "class"
#     },
#     {
#       "id": "transfercontext",
#       "name": "_TransferContext",
#       "anchor": "class-transfercontext",
#       "kind": "class"
#     },
#     {
#       "id": "callbacks",
#       "name": "Engine callbacks",
#       "anchor": "callbacks",
#       "kind": "section"
#     }
#   ]
# }
# === /NAVMAP ===

"""Synchronous HTTP client built on the transfer engine handle.

:class:`HttpClient` turns a :class:`~HttpTransfer.request.Request` into engine
options, runs exactly one blocking transfer, and returns a
:class:`~HttpTransfer.response.Response` (or, for :meth:`HttpClient.download_file`,
a file on disk).  Engine result codes never leak to the caller: any failing
option or transfer raises :class:`~HttpTransfer.errors.HttpRequestError` carrying
the request and the engine's diagnostic text.

Key design:
- **One handle per client**: created at construction, reused for every call,
  released by :meth:`HttpClient.close`.
- **Per-call context**: header lines, read offset, and the response live in a
  :class:`_TransferContext` that outlives the blocking ``perform()`` call and
  is released right after it.
- **No retries, no redirects, no pooling**: a call either fully succeeds or raises.
- **Not thread-safe**: use one client per thread.

Example:
    >>> from HttpTransfer import HttpClient, Request, global_init
    >>> global_init()
    >>> with HttpClient() as client:
    ...     response = client.get(Request("https://example.com/"))
    ...     print(response.status_code, response.header("Content-Type"))
"""

from __future__ import annotations

import enum
import functools
import logging
import os
from typing import Any, Callable, Optional

import httpx

from .download import TempFileDownload
from .engine import Info, InfoType, Option, Protocol, SeekResult, TransferError, TransferHandle
from .engine.policy import SEEK_SET
from .errors import HttpError, HttpFileDownloadError, HttpRequestError
from .logging_utils import mask_header_line, redact_url
from .request import Request
from .resources import HeaderList, ScopedResource
from .response import Response
from .settings import TransferSettings

__all__ = ["HttpClient"]

logger = logging.getLogger(__name__)


class _Method(enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


class _TransferContext:
    """State shared with the engine callbacks for the duration of one call."""

    def __init__(self, request: Request, response: Response) -> None:
        self.request = request
        self.response = response
        self.read_offset = 0
        self.request_headers = HeaderList()

    def close(self) -> None:
        self.request_headers.release()


class HttpClient:
    """Perform GET/POST/PUT requests and file downloads, one at a time.

    Args:
        transport: Optional HTTPX transport handed to the engine handle (tests use
            ``httpx.MockTransport``).
        user_agent: User-Agent sent when a request does not set its own.

    Raises:
        HttpError: When the engine handle cannot be created, e.g. because
            :func:`HttpTransfer.engine.global_init` was not called.
    """

    def __init__(
        self,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self._ca_cert = ""
        self._client_cert = ""
        self._client_key = ""
        self._client_protocols = Protocol.ALL
        self._user_agent = user_agent
        self._handle: ScopedResource[TransferHandle] = ScopedResource.create(
            lambda: TransferHandle(transport), TransferHandle.close
        )

    @classmethod
    def from_settings(
        cls,
        settings: TransferSettings,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "HttpClient":
        """Build a client whose TLS and protocol configuration comes from ``settings``."""

        client = cls(transport=transport, user_agent=settings.user_agent)
        if settings.ca_cert:
            client.set_ca_cert(settings.ca_cert)
        if settings.client_cert:
            client.set_client_cert(settings.client_cert, settings.client_key or "")
        client.set_supported_protocols(settings.protocol_mask)
        return client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the engine handle; safe to call more than once."""

        self._handle.release()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def handle(self) -> TransferHandle:
        """The engine handle used for transfers (exposed primarily for testing).

        Raises:
            HttpError: Once the client has been closed.
        """
        if self._handle.empty:
            raise HttpError("HttpClient has been closed")
        return self._handle.value

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_ca_cert(self, cert_file: str) -> None:
        """Use ``cert_file`` instead of the bundled CA certificates for HTTPS."""

        self._ca_cert = cert_file

    def set_client_cert(self, client_cert: str, client_key: Optional[str] = None) -> None:
        """Present ``client_cert`` (and ``client_key`` when given) to HTTPS servers."""

        self._client_cert = client_cert
        if client_key is not None:
            self._client_key = client_key

    def set_client_key(self, client_key: str) -> None:
        self._client_key = client_key

    def set_supported_protocols(self, client_protocols: Protocol | int) -> None:
        """Restrict transfers to the schemes in the ``client_protocols`` mask."""

        self._client_protocols = Protocol(client_protocols)

    @property
    def ca_cert(self) -> str:
        return self._ca_cert

    @property
    def client_cert(self) -> str:
        return self._client_cert

    @property
    def client_key(self) -> str:
        return self._client_key

    @property
    def supported_protocols(self) -> Protocol:
        return self._client_protocols

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def get(self, request: Request) -> Response:
        return self._perform(_Method.GET, request)

    def post(self, request: Request) -> Response:
        return self._perform(_Method.POST, request)

    def put(self, request: Request) -> Response:
        return self._perform(_Method.PUT, request)

    def download_file(
        self,
        request: Request,
        file_path: str | os.PathLike,
        perms: Optional[int] = None,
    ) -> None:
        """Download ``request`` into ``file_path`` via a temporary file.

        The destination only appears once the whole payload was received; it
        gets ``perms`` applied first when given (ignored outside POSIX).

        Raises:
            HttpFileDownloadError: For every failure; see
                :mod:`HttpTransfer.download` for the message rules.
        """
        handle = self.handle
        download = TempFileDownload(request, file_path, perms)
        download.open()

        ctx = _TransferContext(request, Response())
        try:
            try:
                self._configure(ctx, _Method.GET, download.write)
            except HttpRequestError as exc:
                download.fail_configure(str(exc), exc)
            download.start_transfer()
            try:
                handle.perform()
            except TransferError as exc:
                logger.warning(
                    "Download failed",
                    extra={"url": redact_url(request.url), "error": str(exc), "code": exc.code.name},
                )
                download.fail_transfer(str(exc), exc)
            except OSError as exc:
                download.fail_external(exc)
        except HttpFileDownloadError:
            raise
        except BaseException:
            download.abandon()
            raise
        finally:
            ctx.close()

        download.finish()
        logger.debug(
            "HTTP download completed",
            extra={
                "url": redact_url(request.url),
                "status": handle.getinfo(Info.RESPONSE_CODE),
                "bytes": handle.getinfo(Info.SIZE_DOWNLOAD),
                "destination": download.file_path,
            },
        )

    # ------------------------------------------------------------------
    # Implementation details
    # ------------------------------------------------------------------

    def _perform(self, method: _Method, request: Request) -> Response:
        response = Response()
        ctx = _TransferContext(request, response)
        try:
            self._configure(ctx, method, functools.partial(_write_body, ctx))
            try:
                self.handle.perform()
            except TransferError as exc:
                logger.warning(
                    "HTTP request failed",
                    extra={
                        "method": method.value,
                        "url": redact_url(request.url),
                        "error": str(exc),
                        "code": exc.code.name,
                    },
                )
                raise HttpRequestError(request, str(exc)) from exc
        finally:
            ctx.close()

        response.status_code = self.handle.getinfo(Info.RESPONSE_CODE)
        logger.debug(
            "HTTP request completed",
            extra={
                "method": method.value,
                "url": redact_url(request.url),
                "status": response.status_code,
                "bytes": len(response.body),
            },
        )
        return response

    def _configure(self, ctx: _TransferContext, method: _Method, write_body: Callable[[bytes], int]) -> None:
        self._checked(ctx, self.handle.reset)
        self._set_method(ctx, method)
        self._setopt(ctx, Option.URL, ctx.request.url)
        self._set_headers(ctx)
        self._set_cookies(ctx)
        self._set_body(ctx)
        self._set_write_callbacks(ctx, write_body)
        self._set_timeouts(ctx)
        self._set_ca_info(ctx)
        self._set_client_info(ctx)
        self._setopt(ctx, Option.PROTOCOLS, self._client_protocols)
        self._set_debug(ctx)

    def _set_method(self, ctx: _TransferContext, method: _Method) -> None:
        if method is _Method.POST:
            self._setopt(ctx, Option.POST, True)
        elif method is _Method.PUT:
            self._setopt(ctx, Option.UPLOAD, True)
        else:
            self._setopt(ctx, Option.HTTPGET, True)

    def _set_headers(self, ctx: _TransferContext) -> None:
        for name, value in ctx.request.headers:
            ctx.request_headers.append(f"{name}: {value}")
        if ctx.request_headers:
            self._setopt(ctx, Option.HTTPHEADER, ctx.request_headers.value)
        if self._user_agent:
            self._setopt(ctx, Option.USERAGENT, self._user_agent)

    def _set_cookies(self, ctx: _TransferContext) -> None:
        cookies = ctx.request.cookie_header()
        if cookies:
            self._setopt(ctx, Option.COOKIE, cookies)

    def _set_body(self, ctx: _TransferContext) -> None:
        body = ctx.request.body
        if body is None:
            return
        self._setopt(ctx, Option.READFUNCTION, functools.partial(_read_body, ctx))
        self._setopt(ctx, Option.SEEKFUNCTION, functools.partial(_seek_body, ctx))
        self._setopt(ctx, Option.INFILESIZE, len(body))

    def _set_timeouts(self, ctx: _TransferContext) -> None:
        if ctx.request.connection_timeout is not None:
            self._setopt(ctx, Option.CONNECTTIMEOUT_MS, ctx.request.connection_timeout)
        if ctx.request.timeout is not None:
            self._setopt(ctx, Option.TIMEOUT_MS, ctx.request.timeout)

    def _set_write_callbacks(self, ctx: _TransferContext, write_body: Callable[[bytes], int]) -> None:
        self._setopt(ctx, Option.HEADERFUNCTION, functools.partial(_write_header, ctx))
        self._setopt(ctx, Option.WRITEFUNCTION, write_body)

    def _set_client_info(self, ctx: _TransferContext) -> None:
        if self._client_cert:
            self._setopt(ctx, Option.SSLCERT, self._client_cert)
        if self._client_key:
            self._setopt(ctx, Option.SSLKEY, self._client_key)

    def _set_ca_info(self, ctx: _TransferContext) -> None:
        if self._ca_cert:
            self._setopt(ctx, Option.CAINFO, self._ca_cert)

    def _set_debug(self, ctx: _TransferContext) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            self._setopt(ctx, Option.DEBUGFUNCTION, _log_debug)
            self._setopt(ctx, Option.VERBOSE, True)

    def _setopt(self, ctx: _TransferContext, option: Option, value: Any) -> None:
        self._checked(ctx, self.handle.setopt, option, value)

    @staticmethod
    def _checked(ctx: _TransferContext, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except TransferError as exc:
            raise HttpRequestError(ctx.request, str(exc)) from exc


# ============================================================================
# Engine callbacks
# ============================================================================


def _read_body(ctx: _TransferContext, size: int) -> bytes:
    body = ctx.request.body or b""
    chunk = body[ctx.read_offset : ctx.read_offset + size]
    ctx.read_offset += len(chunk)
    return chunk


def _seek_body(ctx: _TransferContext, offset: int, origin: int) -> SeekResult:
    body = ctx.request.body or b""
    if origin != SEEK_SET or offset < 0 or offset > len(body):
        return SeekResult.FAIL
    ctx.read_offset = offset
    return SeekResult.OK


def _write_header(ctx: _TransferContext, line: bytes) -> int:
    text = line.decode("latin-1").strip()
    if not text:
        # Blank line separating headers from the body.
        return len(line)
    name, sep, value = text.partition(":")
    if sep and name.strip():
        ctx.response.add_header(name.strip(), value.strip())
    return len(line)


def _write_body(ctx: _TransferContext, chunk: bytes) -> int:
    ctx.response.append_body(chunk)
    return len(chunk)


_DEBUG_PREFIXES = {InfoType.TEXT: "*", InfoType.HEADER_IN: "<", InfoType.HEADER_OUT: ">"}


def _log_debug(kind: InfoType, text: str) -> None:
    prefix = _DEBUG_PREFIXES.get(kind, "*")
    for line in mask_header_line(text).splitlines():
        if line.strip():
            logger.debug("%s %s", prefix, line.rstrip())
