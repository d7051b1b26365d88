"""Option, information, and callback vocabularies understood by :class:`TransferHandle`."""

from __future__ import annotations

import enum
from typing import Iterable, Optional, Union

__all__ = ["Option", "Info", "InfoType", "Protocol", "SeekResult"]


class Option(enum.Enum):
    """Settings accepted by :meth:`TransferHandle.setopt`."""

    URL = "url"
    HTTPGET = "httpget"
    POST = "post"
    UPLOAD = "upload"
    HTTPHEADER = "httpheader"
    COOKIE = "cookie"
    USERAGENT = "useragent"
    READFUNCTION = "readfunction"
    SEEKFUNCTION = "seekfunction"
    INFILESIZE = "infilesize"
    HEADERFUNCTION = "headerfunction"
    WRITEFUNCTION = "writefunction"
    DEBUGFUNCTION = "debugfunction"
    VERBOSE = "verbose"
    CONNECTTIMEOUT_MS = "connecttimeout_ms"
    TIMEOUT_MS = "timeout_ms"
    CAINFO = "cainfo"
    SSLCERT = "sslcert"
    SSLKEY = "sslkey"
    PROTOCOLS = "protocols"


class Info(enum.Enum):
    """Values readable through :meth:`TransferHandle.getinfo` after ``perform()``."""

    RESPONSE_CODE = "response_code"
    EFFECTIVE_URL = "effective_url"
    SIZE_DOWNLOAD = "size_download"
    SIZE_UPLOAD = "size_upload"
    TOTAL_TIME = "total_time"


class InfoType(enum.IntEnum):
    """Kind of record passed to the debug callback."""

    TEXT = 0
    HEADER_IN = 1
    HEADER_OUT = 2


class SeekResult(enum.IntEnum):
    """Return contract of the upload seek callback."""

    OK = 0
    FAIL = 1
    CANTSEEK = 2


class Protocol(enum.IntFlag):
    """Bitmask of URL schemes a transfer may use."""

    HTTP = 1
    HTTPS = 2
    ALL = HTTP | HTTPS

    @classmethod
    def from_scheme(cls, scheme: str) -> Optional["Protocol"]:
        """Return the flag for ``scheme`` or ``None`` when the engine does not speak it."""

        if scheme.upper() == "ALL":
            return None
        try:
            return cls[scheme.upper()]
        except KeyError:
            return None

    @classmethod
    def parse(cls, value: Union[str, Iterable[str]]) -> "Protocol":
        """Build a mask from ``"http,https"`` style input; ``"all"`` enables everything."""

        names = value.split(",") if isinstance(value, str) else list(value)
        mask = cls(0)
        for raw in names:
            name = raw.strip()
            if not name:
                continue
            if name.lower() == "all":
                mask |= cls.ALL
                continue
            flag = cls.from_scheme(name)
            if flag is None:
                raise ValueError(f"unknown protocol: {name!r}")
            mask |= flag
        if not mask:
            raise ValueError("at least one protocol must be enabled")
        return mask
