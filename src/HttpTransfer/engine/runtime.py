# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.engine.runtime",
#   "purpose": "Process-wide transfer engine initialisation.",
#   "sections": [
#     {
#       "id": "global-init",
#       "name": "global_init",
#       "anchor": "function-global-init",
#       "kind": "function"
#     },
#     {
#       "id": "global-cleanup",
#       "name": "global_cleanup",
#       "anchor": "function-global-cleanup",
#       "kind": "function"
#     },
#     {
#       "id": "initialized",
#       "name": "initialized",
#       "anchor": "function-initialized",
#       "kind": "function"
#     },
#     {
#       "id": "create-ssl-context",
#       "name": "create_ssl_context",
#       "anchor": "function-create-ssl-context",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Process-wide transfer engine initialisation.

The engine keeps exactly one piece of shared state: the default verified TLS
context built from the certifi bundle.  It is created by :func:`global_init`
and dropped by the matching :func:`global_cleanup`; handles refuse to start
while the engine is down.  Nothing happens implicitly at import time.

Key design:
- **Explicit**: The host application calls ``global_init()`` once at startup and
  ``global_cleanup()`` at shutdown (or uses the ``initialized()`` context manager).
- **Counted**: Nested init/cleanup pairs are safe; the state is released when the
  last holder cleans up, and extra cleanups are ignored.
- **Thread-safe**: A ``threading.Lock`` guards the counter and the shared context.

Example:
    >>> from HttpTransfer.engine import global_init, global_cleanup
    >>> global_init()
    >>> # ... create clients, perform transfers ...
    >>> global_cleanup()
"""

from __future__ import annotations

import logging
import ssl
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import certifi

logger = logging.getLogger(__name__)


# ============================================================================
# Global Engine State
# ============================================================================

_init_lock = threading.Lock()
_init_count = 0
_default_ssl_context: Optional[ssl.SSLContext] = None


# ============================================================================
# Public API
# ============================================================================


def global_init() -> None:
    """Initialise the engine for this process.

    The first call builds the shared TLS context; later calls only bump the
    reference count so that every ``global_init()`` can be paired with a
    ``global_cleanup()``.
    """
    global _init_count, _default_ssl_context

    with _init_lock:
        if _init_count == 0:
            _default_ssl_context = create_ssl_context()
            logger.debug("Transfer engine initialized")
        _init_count += 1


def global_cleanup() -> None:
    """Release the engine state acquired by :func:`global_init`.

    Safe to call more times than ``global_init()``; surplus calls are no-ops.
    """
    global _init_count, _default_ssl_context

    with _init_lock:
        if _init_count == 0:
            return
        _init_count -= 1
        if _init_count == 0:
            _default_ssl_context = None
            logger.debug("Transfer engine shut down")


def is_initialized() -> bool:
    """Return ``True`` while at least one ``global_init()`` is outstanding."""

    with _init_lock:
        return _init_count > 0


def default_ssl_context() -> Optional[ssl.SSLContext]:
    """Return the shared TLS context, or ``None`` when the engine is not initialised."""

    with _init_lock:
        return _default_ssl_context


@contextmanager
def initialized() -> Iterator[None]:
    """Hold the engine initialised for the duration of a ``with`` block."""

    global_init()
    try:
        yield
    finally:
        global_cleanup()


def create_ssl_context(cafile: Optional[str] = None) -> ssl.SSLContext:
    """Create an SSL context with verification enabled.

    Uses the certifi bundle unless ``cafile`` overrides it.  Errors from the
    ``ssl`` module propagate to the caller, which maps them onto engine result
    codes.
    """
    ctx = ssl.create_default_context(cafile=cafile or certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def reset_engine() -> None:
    """Drop all engine state regardless of the reference count (test isolation only)."""
    global _init_count, _default_ssl_context

    with _init_lock:
        _init_count = 0
        _default_ssl_context = None


__all__ = [
    "global_init",
    "global_cleanup",
    "is_initialized",
    "default_ssl_context",
    "initialized",
    "create_ssl_context",
    "reset_engine",
]
