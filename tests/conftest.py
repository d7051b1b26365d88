# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "transfer-engine",
#       "name": "transfer_engine",
#       "anchor": "function-transfer-engine",
#       "kind": "function"
#     },
#     {
#       "id": "isolated-logger",
#       "name": "isolated_logger",
#       "anchor": "function-isolated-logger",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` on ``sys.path``, initialises the transfer engine around every
test, and restores the ``HttpTransfer`` logger so CLI tests that call
``setup_logging`` do not leak handlers into later tests.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for _path in (SRC, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from HttpTransfer.engine import global_init, reset_engine  # noqa: E402

from tests.fixtures.http_mocking import (  # noqa: E402,F401
    http_mock,
    mock_server,
    setopt_spy,
    transfer_client,
)


@pytest.fixture(autouse=True)
def transfer_engine():
    """Initialise the engine for each test and drop all state afterwards."""

    reset_engine()
    global_init()
    yield
    reset_engine()


@pytest.fixture(autouse=True)
def isolated_logger():
    """Restore the package logger's handlers, level, and propagation."""

    logger = logging.getLogger("HttpTransfer")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        if handler not in saved[0]:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
