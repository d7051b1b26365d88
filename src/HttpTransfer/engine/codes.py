"""Result codes reported by the transfer engine and their diagnostic text."""

from __future__ import annotations

import enum
from typing import Optional

__all__ = ["TransferCode", "TransferError", "strerror"]


class TransferCode(enum.IntEnum):
    """Numeric outcome of an engine primitive; ``OK`` is the only success value."""

    OK = 0
    UNSUPPORTED_PROTOCOL = 1
    FAILED_INIT = 2
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    WEIRD_SERVER_REPLY = 8
    WRITE_ERROR = 23
    READ_ERROR = 26
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    ABORTED_BY_CALLBACK = 42
    BAD_FUNCTION_ARGUMENT = 43
    UNKNOWN_OPTION = 48
    GOT_NOTHING = 52
    SEND_ERROR = 55
    RECV_ERROR = 56
    SSL_CERTPROBLEM = 58
    PEER_FAILED_VERIFICATION = 60
    SEND_FAIL_REWIND = 65
    SSL_CACERT_BADFILE = 77


_MESSAGES = {
    TransferCode.OK: "No error",
    TransferCode.UNSUPPORTED_PROTOCOL: "Unsupported protocol",
    TransferCode.FAILED_INIT: "Failed initialization",
    TransferCode.URL_MALFORMAT: "URL using bad/illegal format or missing URL",
    TransferCode.COULDNT_RESOLVE_HOST: "Couldn't resolve host name",
    TransferCode.COULDNT_CONNECT: "Couldn't connect to server",
    TransferCode.WEIRD_SERVER_REPLY: "Weird server reply",
    TransferCode.WRITE_ERROR: "Failed writing received data to disk/application",
    TransferCode.READ_ERROR: "Failed to open/read local data from file/application",
    TransferCode.OPERATION_TIMEDOUT: "Timeout was reached",
    TransferCode.SSL_CONNECT_ERROR: "SSL connect error",
    TransferCode.ABORTED_BY_CALLBACK: "Operation was aborted by an application callback",
    TransferCode.BAD_FUNCTION_ARGUMENT: "An engine function was given a bad argument",
    TransferCode.UNKNOWN_OPTION: "An unknown option was passed to the transfer engine",
    TransferCode.GOT_NOTHING: "Server returned nothing (no headers, no data)",
    TransferCode.SEND_ERROR: "Failed sending data to the peer",
    TransferCode.RECV_ERROR: "Failure when receiving data from the peer",
    TransferCode.SSL_CERTPROBLEM: "Problem with the local SSL certificate",
    TransferCode.PEER_FAILED_VERIFICATION: "SSL peer certificate or SSH remote key was not OK",
    TransferCode.SEND_FAIL_REWIND: "Send failed since rewinding of the data stream failed",
    TransferCode.SSL_CACERT_BADFILE: "Problem with the SSL CA cert (path? access rights?)",
}


def strerror(code: TransferCode) -> str:
    """Return the human-readable description of ``code``."""

    try:
        return _MESSAGES[TransferCode(code)]
    except ValueError:
        return f"Unknown error ({int(code)})"


class TransferError(Exception):
    """Raised by engine primitives; ``str()`` is the engine's diagnostic text.

    Attributes:
        code: The :class:`TransferCode` describing the failure class.
        detail: Optional context appended to the generic description, such as
            the offending URL scheme or the underlying socket error.
    """

    def __init__(self, code: TransferCode, detail: Optional[str] = None) -> None:
        self.code = TransferCode(code)
        self.detail = detail
        message = strerror(self.code)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
