# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.engine.policy",
#   "purpose": "Transfer engine constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""Transfer engine constants and defaults.

Buffer sizes, identification strings, and redirect behaviour shared by the engine
handle and the client built on top of it.  Timeouts are intentionally absent:
when a request does not specify one the engine waits as long as the network
primitive does.
"""

import os

# ============================================================================
# Buffer Sizes (bytes)
# ============================================================================

#: Largest chunk handed to a write callback in one invocation
WRITE_CHUNK_SIZE = 16 * 1024

#: Largest chunk requested from a read callback in one invocation
READ_CHUNK_SIZE = 64 * 1024


# ============================================================================
# Identification
# ============================================================================

#: Version reported in the default User-Agent
ENGINE_VERSION = "0.1.0"

#: Default User-Agent sent when a request does not provide one
DEFAULT_USER_AGENT = f"httptransfer/{ENGINE_VERSION}"


# ============================================================================
# Upload Rewind
# ============================================================================

#: Only absolute positioning is supported by the upload seek callback
SEEK_SET = os.SEEK_SET


# ============================================================================
# Redirects
# ============================================================================

#: Redirects are reported to the caller as-is, never followed
FOLLOW_REDIRECTS = False


__all__ = [
    "WRITE_CHUNK_SIZE",
    "READ_CHUNK_SIZE",
    "ENGINE_VERSION",
    "DEFAULT_USER_AGENT",
    "SEEK_SET",
    "FOLLOW_REDIRECTS",
]
