"""Request value consumed by :class:`HttpTransfer.client.HttpClient`."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

__all__ = ["Request"]


class Request:
    """An HTTP request: target URL, headers, cookies, body, and timeouts.

    Headers are kept as ordered ``(name, value)`` pairs and may repeat.  Cookies
    are a name → value mapping kept in insertion order.  Timeouts are in
    milliseconds; ``None`` leaves the engine default in place.
    """

    def __init__(
        self,
        url: str,
        *,
        connection_timeout: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self._url = url
        self._headers: List[Tuple[str, str]] = []
        self._cookies: Dict[str, str] = {}
        self._body: Optional[bytes] = None
        self._body_label: Optional[str] = None
        self.connection_timeout = connection_timeout
        self.timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    # Headers ----------------------------------------------------------

    def add_header(self, name: str, value: str) -> None:
        self._headers.append((name, value))

    def remove_header(self, name: str) -> None:
        """Remove every header called ``name``."""

        self._headers = [(key, value) for key, value in self._headers if key != name]

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header ``name``, or ``None``."""

        for key, value in self._headers:
            if key == name:
                return value
        return None

    def each_header(self, callback: Callable[[str, str], bool]) -> None:
        """Call ``callback(name, value)`` for each header until it returns ``False``."""

        for name, value in list(self._headers):
            if not callback(name, value):
                break

    @property
    def headers(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(self._headers)

    # Cookies ----------------------------------------------------------

    def add_cookie(self, name: str, value: str) -> None:
        self._cookies[name] = value

    def remove_cookie(self, name: str) -> None:
        self._cookies.pop(name, None)

    def cookie(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def each_cookie(self, callback: Callable[[str, str], bool]) -> None:
        """Call ``callback(name, value)`` for each cookie until it returns ``False``."""

        for name, value in list(self._cookies.items()):
            if not callback(name, value):
                break

    def cookie_header(self) -> str:
        """Serialise the cookies as ``name=value`` pairs joined by ``"; "``."""

        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    # Body -------------------------------------------------------------

    def set_body(self, data: bytes | str, label: Optional[str] = None) -> None:
        """Attach ``data`` as the request body.

        ``label`` is a human-readable description (for example a content type or
        file name) that only shows up in error context and logs.  Text is
        encoded as UTF-8.
        """
        self._body = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self._body_label = label

    @property
    def body(self) -> Optional[bytes]:
        return self._body

    @property
    def body_label(self) -> Optional[str]:
        return self._body_label

    def describe(self) -> str:
        """Short description used in log records and error context."""

        text = self._url
        if self._body is not None:
            label = f" {self._body_label}" if self._body_label else ""
            text += f" (body{label}, {len(self._body)} bytes)"
        return text

    def __repr__(self) -> str:
        return f"Request({self._url!r})"
