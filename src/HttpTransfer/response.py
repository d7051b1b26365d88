"""Response value filled in by :class:`HttpTransfer.client.HttpClient` during a transfer."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

__all__ = ["Response"]


class Response:
    """Status code, headers, and body of a completed transfer.

    Header lookup is case-insensitive and returns the first matching value;
    :meth:`each_header` walks every header in the order it was received.
    """

    def __init__(self) -> None:
        self.status_code = 0
        self._headers: List[Tuple[str, str]] = []
        self._body = bytearray()

    # Headers ----------------------------------------------------------

    def add_header(self, name: str, value: str) -> None:
        self._headers.append((name, value))

    def remove_header(self, name: str) -> None:
        lowered = name.lower()
        self._headers = [(key, value) for key, value in self._headers if key.lower() != lowered]

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self._headers:
            if key.lower() == lowered:
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

    # Body -------------------------------------------------------------

    def append_body(self, chunk: bytes) -> None:
        self._body.extend(chunk)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @body.setter
    def body(self, data: bytes) -> None:
        self._body = bytearray(data)

    @property
    def text(self) -> str:
        """Body decoded with the ``charset`` from ``Content-Type`` (UTF-8 by default)."""

        charset = "utf-8"
        content_type = self.header("Content-Type") or ""
        for param in content_type.split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "charset" and value.strip():
                charset = value.strip().strip('"')
        try:
            return self._body.decode(charset, errors="replace")
        except LookupError:
            return self._body.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"
