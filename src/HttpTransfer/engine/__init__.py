"""Transfer engine: option/callback HTTP transfers and process-wide setup.

This package hides HTTPX behind a small handle-based protocol:
- codes: result codes, diagnostic strings, and ``TransferError``
- options: option, info, protocol, and seek vocabularies
- handle: ``TransferHandle`` (setopt / perform / getinfo / reset / close)
- runtime: explicit ``global_init`` / ``global_cleanup`` and TLS context setup
- policy: buffer sizes, default User-Agent, TLS behaviour

Example:
    >>> from HttpTransfer.engine import Option, TransferHandle, global_init
    >>> global_init()
    >>> handle = TransferHandle()
    >>> handle.setopt(Option.URL, "https://example.com/")
    >>> handle.setopt(Option.WRITEFUNCTION, lambda chunk: len(chunk))
    >>> handle.perform()
"""

from HttpTransfer.engine.codes import TransferCode, TransferError, strerror
from HttpTransfer.engine.handle import TransferHandle
from HttpTransfer.engine.options import Info, InfoType, Option, Protocol, SeekResult
from HttpTransfer.engine.runtime import (
    global_cleanup,
    global_init,
    initialized,
    is_initialized,
    reset_engine,
)

__all__ = [
    # Result codes
    "TransferCode",
    "TransferError",
    "strerror",
    # Handle
    "TransferHandle",
    "Option",
    "Info",
    "InfoType",
    "Protocol",
    "SeekResult",
    # Lifecycle
    "global_init",
    "global_cleanup",
    "initialized",
    "is_initialized",
    "reset_engine",
]
