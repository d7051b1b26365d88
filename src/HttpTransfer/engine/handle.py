# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.engine.handle",
#   "purpose": "Option/callback transfer handle on top of HTTPX.",
#   "sections": [
#     {
#       "id": "transferhandle",
#       "name": "TransferHandle",
#       "anchor": "class-transferhandle",
#       "kind": "class"
#     },
#     {
#       "id": "map-httpx-error",
#       "name": "_map_httpx_error",
#       "anchor": "function-map-httpx-error",
#       "kind": "function"
#     },
#     {
#       "id": "split-header-lines",
#       "name": "_split_header_lines",
#       "anchor": "function-split-header-lines",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Option/callback transfer handle on top of HTTPX.

A :class:`TransferHandle` is configured one option at a time and then runs a
single blocking transfer with :meth:`TransferHandle.perform`.  All data moves
through caller-supplied callbacks:

- ``READFUNCTION(size) -> bytes`` supplies the upload body (``b""`` ends it)
- ``SEEKFUNCTION(offset, origin) -> SeekResult`` rewinds the upload body
- ``HEADERFUNCTION(line) -> int`` receives the status line, every header line
  and the blank delimiter line
- ``WRITEFUNCTION(chunk) -> int`` receives raw body chunks
- ``DEBUGFUNCTION(InfoType, text)`` receives trace records when ``VERBOSE`` is on

Write callbacks must report the number of bytes they consumed; any other value
aborts the transfer with :attr:`TransferCode.WRITE_ERROR`.  Every failing
primitive raises :class:`TransferError`.  Exceptions raised by the callbacks
themselves are not engine failures and propagate out of ``perform()``
unchanged.

The handle is reusable: ``reset()`` clears all options, and a new transfer may
be performed once the previous ``perform()`` returned.  It is not thread-safe.
"""

from __future__ import annotations

import logging
import socket
import ssl
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import httpx

from HttpTransfer.engine import runtime
from HttpTransfer.engine.codes import TransferCode, TransferError
from HttpTransfer.engine.options import Info, InfoType, Option, Protocol, SeekResult
from HttpTransfer.engine.policy import (
    DEFAULT_USER_AGENT,
    FOLLOW_REDIRECTS,
    READ_CHUNK_SIZE,
    SEEK_SET,
    WRITE_CHUNK_SIZE,
)

logger = logging.getLogger(__name__)

_CALLBACK_OPTIONS = frozenset(
    {
        Option.READFUNCTION,
        Option.SEEKFUNCTION,
        Option.HEADERFUNCTION,
        Option.WRITEFUNCTION,
        Option.DEBUGFUNCTION,
    }
)
_FLAG_OPTIONS = frozenset({Option.HTTPGET, Option.POST, Option.UPLOAD, Option.VERBOSE})
_STRING_OPTIONS = frozenset(
    {Option.URL, Option.COOKIE, Option.USERAGENT, Option.CAINFO, Option.SSLCERT, Option.SSLKEY}
)
_INTEGER_OPTIONS = frozenset({Option.INFILESIZE, Option.CONNECTTIMEOUT_MS, Option.TIMEOUT_MS})


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _valid_option_value(option: Option, value: Any) -> bool:
    if value is None:
        return option is not Option.PROTOCOLS
    if option in _CALLBACK_OPTIONS:
        return callable(value)
    if option in _FLAG_OPTIONS:
        return isinstance(value, bool)
    if option in _STRING_OPTIONS:
        return isinstance(value, str)
    if option is Option.INFILESIZE:
        return _is_int(value) and value >= -1
    if option in _INTEGER_OPTIONS:
        return _is_int(value) and value >= 0
    if option is Option.HTTPHEADER:
        return isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and all(
            isinstance(item, str) for item in value
        )
    if option is Option.PROTOCOLS:
        return _is_int(value) and value >= 0 and not int(value) & ~int(Protocol.ALL)
    return False


class TransferHandle:
    """Reusable handle that performs one synchronous HTTP transfer at a time.

    Args:
        transport: Optional HTTPX transport.  Tests pass ``httpx.MockTransport``
            to run transfers without a network; production code leaves it unset
            so every ``perform()`` opens (and closes) its own connection.

    Raises:
        TransferError: ``FAILED_INIT`` when the engine has not been initialised
            with :func:`HttpTransfer.engine.global_init`.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        if not runtime.is_initialized():
            raise TransferError(
                TransferCode.FAILED_INIT, "transfer engine is not initialized; call global_init() first"
            )
        self._transport = transport
        self._options: Dict[Option, Any] = {}
        self._info: Dict[Info, Any] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Option handling
    # ------------------------------------------------------------------

    def setopt(self, option: Option, value: Any) -> None:
        """Set ``option`` to ``value``; ``None`` restores the default.

        Raises:
            TransferError: ``UNKNOWN_OPTION`` for anything that is not an
                :class:`Option`, ``BAD_FUNCTION_ARGUMENT`` for values of the wrong
                type or range, or when the handle has been closed.
        """
        self._ensure_open()
        if not isinstance(option, Option):
            raise TransferError(TransferCode.UNKNOWN_OPTION, repr(option))
        if not _valid_option_value(option, value):
            raise TransferError(
                TransferCode.BAD_FUNCTION_ARGUMENT,
                f"invalid value for {option.name}: {value!r}",
            )
        if value is None:
            self._options.pop(option, None)
            return
        if option in (Option.HTTPGET, Option.POST, Option.UPLOAD) and value:
            for other in (Option.HTTPGET, Option.POST, Option.UPLOAD):
                self._options.pop(other, None)
        self._options[option] = value

    def getopt(self, option: Option) -> Any:
        """Return the current value of ``option`` (``None`` when unset)."""

        if option is Option.PROTOCOLS:
            return Protocol(self._options.get(Option.PROTOCOLS, Protocol.ALL))
        return self._options.get(option)

    def reset(self) -> None:
        """Restore every option to its default and forget the previous transfer's info."""

        self._ensure_open()
        self._options.clear()
        self._info.clear()

    def getinfo(self, info: Info) -> Any:
        """Return information about the last performed transfer."""

        if not isinstance(info, Info):
            raise TransferError(TransferCode.BAD_FUNCTION_ARGUMENT, repr(info))
        defaults = {
            Info.RESPONSE_CODE: 0,
            Info.EFFECTIVE_URL: "",
            Info.SIZE_DOWNLOAD: 0,
            Info.SIZE_UPLOAD: 0,
            Info.TOTAL_TIME: 0.0,
        }
        return self._info.get(info, defaults[info])

    def close(self) -> None:
        """Release the handle; further calls fail and repeated closes are no-ops."""

        if self._closed:
            return
        self._closed = True
        self._options.clear()
        self._info.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def perform(self) -> None:
        """Run the configured transfer, blocking until it completes or fails."""

        self._ensure_open()
        url = self._options.get(Option.URL, "")
        self._info = {
            Info.RESPONSE_CODE: 0,
            Info.EFFECTIVE_URL: url,
            Info.SIZE_DOWNLOAD: 0,
            Info.SIZE_UPLOAD: 0,
            Info.TOTAL_TIME: 0.0,
        }
        started = time.monotonic()
        try:
            self._perform(url, started)
        finally:
            self._info[Info.TOTAL_TIME] = time.monotonic() - started

    def _perform(self, url: str, started: float) -> None:
        target = self._check_url(url)
        method = self._method()
        verify = self._ssl_context(target.scheme)

        connect_ms = self._options.get(Option.CONNECTTIMEOUT_MS) or None
        total_ms = self._options.get(Option.TIMEOUT_MS) or None
        deadline = started + total_ms / 1000.0 if total_ms else None
        timeout = httpx.Timeout(
            total_ms / 1000.0 if total_ms else None,
            connect=connect_ms / 1000.0 if connect_ms else None,
        )

        headers = _split_header_lines(self._options.get(Option.HTTPHEADER) or ())
        cookie = self._options.get(Option.COOKIE)
        if cookie:
            headers.append(("Cookie", cookie))

        content = None
        if method in ("POST", "PUT"):
            content = self._upload_body()
            size = self._options.get(Option.INFILESIZE, -1)
            if size >= 0 and not _has_header(headers, "content-length"):
                headers.append(("Content-Length", str(size)))

        client = httpx.Client(
            transport=self._transport,
            verify=verify,
            timeout=timeout,
            follow_redirects=FOLLOW_REDIRECTS,
            headers={"User-Agent": self._options.get(Option.USERAGENT) or DEFAULT_USER_AGENT},
        )
        try:
            request = client.build_request(method, url, headers=headers, content=content)
            if not _has_header(headers, "accept-encoding") and "Accept-Encoding" in request.headers:
                # Only negotiate compression the caller asked for.
                del request.headers["Accept-Encoding"]
            self._debug_request(request)
            try:
                response = client.send(request, stream=True)
            except httpx.HTTPError as exc:
                raise _map_httpx_error(exc) from exc
            try:
                self._info[Info.RESPONSE_CODE] = response.status_code
                self._debug(InfoType.TEXT, f"Connected to {target.host}")
                self._deliver_headers(response)
                self._deliver_body(response, deadline, started)
            except httpx.HTTPError as exc:
                raise _map_httpx_error(exc) from exc
            finally:
                response.close()
        finally:
            if self._transport is None:
                client.close()

    def _check_url(self, url: str) -> httpx.URL:
        if not url:
            raise TransferError(TransferCode.URL_MALFORMAT, "no URL set")
        try:
            target = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise TransferError(TransferCode.URL_MALFORMAT, str(exc)) from exc
        if not target.scheme:
            raise TransferError(TransferCode.URL_MALFORMAT, f"missing scheme in {url!r}")
        allowed = Protocol(self._options.get(Option.PROTOCOLS, Protocol.ALL))
        flag = Protocol.from_scheme(target.scheme)
        if flag is None or not allowed & flag:
            raise TransferError(
                TransferCode.UNSUPPORTED_PROTOCOL,
                f'Protocol "{target.scheme}" not supported or disabled',
            )
        if not target.host:
            raise TransferError(TransferCode.URL_MALFORMAT, f"no host part in {url!r}")
        return target

    def _method(self) -> str:
        if self._options.get(Option.UPLOAD):
            return "PUT"
        if self._options.get(Option.POST):
            return "POST"
        return "GET"

    def _ssl_context(self, scheme: str) -> ssl.SSLContext:
        default = runtime.default_ssl_context()
        if default is None:
            raise TransferError(TransferCode.FAILED_INIT, "transfer engine was shut down")
        cainfo = self._options.get(Option.CAINFO)
        certfile = self._options.get(Option.SSLCERT)
        if scheme != "https" or not (cainfo or certfile):
            return default
        try:
            ctx = runtime.create_ssl_context(cafile=cainfo) if cainfo else runtime.create_ssl_context()
        except (OSError, ssl.SSLError) as exc:
            raise TransferError(TransferCode.SSL_CACERT_BADFILE, f"{cainfo}: {exc}") from exc
        if certfile:
            try:
                ctx.load_cert_chain(certfile, self._options.get(Option.SSLKEY) or None)
            except (OSError, ssl.SSLError) as exc:
                raise TransferError(TransferCode.SSL_CERTPROBLEM, f"{certfile}: {exc}") from exc
        return ctx

    def _upload_body(self) -> Iterator[bytes]:
        read = self._options.get(Option.READFUNCTION)
        seek = self._options.get(Option.SEEKFUNCTION)
        if read is None:
            return iter(())
        if seek is not None:
            result = seek(0, SEEK_SET)
            if result != SeekResult.OK:
                raise TransferError(TransferCode.SEND_FAIL_REWIND, f"seek callback returned {result!r}")
        return self._pull(read)

    def _pull(self, read: Callable[[int], bytes]) -> Iterator[bytes]:
        while True:
            chunk = read(READ_CHUNK_SIZE)
            if not isinstance(chunk, (bytes, bytearray)) or len(chunk) > READ_CHUNK_SIZE:
                raise TransferError(TransferCode.READ_ERROR, "read function returned funny value")
            if not chunk:
                return
            self._info[Info.SIZE_UPLOAD] += len(chunk)
            yield bytes(chunk)

    def _deliver_headers(self, response: httpx.Response) -> None:
        write_header = self._options.get(Option.HEADERFUNCTION)
        lines = [
            f"{response.http_version} {response.status_code} {response.reason_phrase}\r\n".encode(
                "latin-1", "replace"
            )
        ]
        lines.extend(name + b": " + value + b"\r\n" for name, value in response.headers.raw)
        lines.append(b"\r\n")
        for line in lines:
            self._debug(InfoType.HEADER_IN, line.decode("latin-1"))
            if write_header is None:
                continue
            written = write_header(line)
            if written != len(line):
                raise TransferError(TransferCode.WRITE_ERROR, "Failed writing header")

    def _deliver_body(self, response: httpx.Response, deadline: Optional[float], started: float) -> None:
        write_body = self._options.get(Option.WRITEFUNCTION)
        for chunk in response.iter_bytes(WRITE_CHUNK_SIZE):
            if not chunk:
                continue
            if deadline is not None and time.monotonic() > deadline:
                elapsed_ms = int((time.monotonic() - started) * 1000)
                raise TransferError(
                    TransferCode.OPERATION_TIMEDOUT,
                    f"Operation timed out after {elapsed_ms} milliseconds with "
                    f"{self._info[Info.SIZE_DOWNLOAD]} bytes received",
                )
            if write_body is not None:
                written = write_body(chunk)
                if written != len(chunk):
                    raise TransferError(
                        TransferCode.WRITE_ERROR,
                        f"Failure writing output to destination, passed {len(chunk)} returned {written}",
                    )
            self._info[Info.SIZE_DOWNLOAD] += len(chunk)

    def _debug_request(self, request: httpx.Request) -> None:
        if not self._verbose():
            return
        lines = [f"{request.method} {request.url.raw_path.decode('ascii')} HTTP/1.1"]
        lines.extend(f"{name}: {value}" for name, value in request.headers.multi_items())
        self._debug(InfoType.HEADER_OUT, "\r\n".join(lines) + "\r\n\r\n")

    def _debug(self, kind: InfoType, text: str) -> None:
        if not self._verbose():
            return
        self._options[Option.DEBUGFUNCTION](kind, text)

    def _verbose(self) -> bool:
        return bool(self._options.get(Option.VERBOSE)) and Option.DEBUGFUNCTION in self._options

    def _ensure_open(self) -> None:
        if self._closed:
            raise TransferError(TransferCode.BAD_FUNCTION_ARGUMENT, "handle is closed")


def _split_header_lines(lines: Sequence[str]) -> List[Tuple[str, str]]:
    """Turn ``"Name: value"`` lines into header pairs, skipping lines without a colon."""

    pairs: List[Tuple[str, str]] = []
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            logger.debug("Skipping malformed request header line", extra={"line": line})
            continue
        pairs.append((name.strip(), value.strip()))
    return pairs


def _has_header(pairs: Sequence[Tuple[str, str]], name: str) -> bool:
    return any(key.lower() == name for key, _ in pairs)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _map_httpx_error(exc: httpx.HTTPError) -> TransferError:
    """Translate an HTTPX exception into the matching :class:`TransferError`."""

    detail = str(exc) or exc.__class__.__name__
    if isinstance(exc, httpx.UnsupportedProtocol):
        return TransferError(TransferCode.UNSUPPORTED_PROTOCOL, detail)
    if isinstance(exc, httpx.TimeoutException):
        return TransferError(TransferCode.OPERATION_TIMEDOUT, detail)
    if isinstance(exc, httpx.ConnectError):
        for cause in _exception_chain(exc):
            if isinstance(cause, ssl.SSLCertVerificationError):
                return TransferError(TransferCode.PEER_FAILED_VERIFICATION, detail)
            if isinstance(cause, ssl.SSLError):
                return TransferError(TransferCode.SSL_CONNECT_ERROR, detail)
            if isinstance(cause, socket.gaierror):
                return TransferError(TransferCode.COULDNT_RESOLVE_HOST, detail)
        return TransferError(TransferCode.COULDNT_CONNECT, detail)
    if isinstance(exc, httpx.ReadError):
        return TransferError(TransferCode.RECV_ERROR, detail)
    if isinstance(exc, (httpx.WriteError, httpx.LocalProtocolError)):
        return TransferError(TransferCode.SEND_ERROR, detail)
    if isinstance(exc, httpx.RemoteProtocolError):
        if "without sending" in detail:
            return TransferError(TransferCode.GOT_NOTHING, detail)
        return TransferError(TransferCode.WEIRD_SERVER_REPLY, detail)
    if isinstance(exc, httpx.ProxyError):
        return TransferError(TransferCode.COULDNT_CONNECT, detail)
    return TransferError(TransferCode.RECV_ERROR, detail)


__all__ = ["TransferHandle"]
