# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.download",
#   "purpose": "Temporary-file workflow behind HttpClient.download_file",
#   "sections": [
#     {
#       "id": "downloadstate",
#       "name": "DownloadState",
#       "anchor": "class-downloadstate",
#       "kind": "class"
#     },
#     {
#       "id": "tempfiledownload",
#       "name": "TempFileDownload",
#       "anchor": "class-tempfiledownload",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Temporary-file workflow behind :meth:`HttpClient.download_file`.

**Purpose**
-----------
Downloads never write to the destination path directly.  The payload is
streamed into a temporary file next to the destination and only renamed into
place once the transfer succeeded, so the destination either holds the complete
payload or does not exist at all.

**States**
----------
``OPEN``
  Create the temporary file.  Failure raises "Failed to open temporary file for
  writing" before any network activity.
``CONFIGURE``
  The client configures the engine with the temporary file as body sink.  A
  configuration failure removes the temporary file and reports the engine text.
``PERFORM``
  The blocking transfer runs.  Engine failures remove the temporary file; the
  message is the engine text, extended with the temporary path when removal
  failed too.  A temporary file that is already gone counts as removed.
  Filesystem failures that did not come from the engine (a full disk, the
  destination directory vanishing before the rename) are reported with the
  operating system's own message.
``COMPLETE`` / ``FAILED``
  Terminal states.  ``COMPLETE`` means the destination exists with the requested
  permissions; ``FAILED`` means an :class:`HttpFileDownloadError` was raised and
  no temporary file remains unless its path is on the exception.

**Safety**
----------
- Temporary files live in the destination directory so ``os.replace`` is atomic
- The file is fsynced before the rename and its directory after it
- Permissions are applied to the temporary file before the rename (POSIX only)
- The temporary file is created with mode ``0600`` and keeps it unless
  ``perms`` says otherwise
"""

from __future__ import annotations

import enum
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, NoReturn, Optional

from .errors import HttpFileDownloadError
from .request import Request
from .resources import ScopedResource

__all__ = ["DownloadState", "TempFileDownload", "OPEN_FAILURE_MESSAGE"]

logger = logging.getLogger(__name__)

#: Message raised when the temporary file cannot be created
OPEN_FAILURE_MESSAGE = "Failed to open temporary file for writing"

_TEMP_PREFIX = ".part-"
_TEMP_SUFFIX = ".tmp"


class DownloadState(enum.Enum):
    """Position of a :class:`TempFileDownload` in its workflow."""

    OPEN = "open"
    CONFIGURE = "configure"
    PERFORM = "perform"
    COMPLETE = "complete"
    FAILED = "failed"


class TempFileDownload:
    """Drive one download through ``OPEN → CONFIGURE → PERFORM → COMPLETE | FAILED``.

    Every ``fail_*`` method moves the download to ``FAILED``, cleans up, and
    raises the matching :class:`HttpFileDownloadError`.

    Args:
        request: Request being downloaded; carried on raised errors.
        file_path: Destination path.
        perms: Optional permission bits (e.g. ``0o644``) applied on POSIX.
    """

    def __init__(self, request: Request, file_path: str | os.PathLike, perms: Optional[int] = None) -> None:
        self.request = request
        self.file_path = os.fspath(file_path)
        self.perms = perms
        self.state = DownloadState.OPEN
        self.temp_path: Optional[Path] = None
        self._sink: Optional[ScopedResource[BinaryIO]] = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def open(self) -> BinaryIO:
        """Create the temporary file and return it opened for binary writing."""

        self._expect(DownloadState.OPEN)
        destination_dir = os.path.dirname(os.path.abspath(self.file_path))
        try:
            fd, temp_name = tempfile.mkstemp(dir=destination_dir, prefix=_TEMP_PREFIX, suffix=_TEMP_SUFFIX)
        except OSError as exc:
            self.state = DownloadState.FAILED
            logger.warning(
                "Could not create temporary download file",
                extra={"destination": self.file_path, "error": str(exc)},
            )
            raise HttpFileDownloadError(self.request, self.file_path, OPEN_FAILURE_MESSAGE) from exc
        self.temp_path = Path(temp_name)
        self._sink = ScopedResource(os.fdopen(fd, "wb"), _close_quietly)
        self.state = DownloadState.CONFIGURE
        logger.debug(
            "Opened temporary download file",
            extra={"destination": self.file_path, "temp_path": temp_name},
        )
        return self._sink.value

    def write(self, chunk: bytes) -> int:
        """Body sink for the transfer engine; returns the number of bytes written."""

        assert self._sink is not None
        return self._sink.value.write(chunk)

    def start_transfer(self) -> None:
        self._expect(DownloadState.CONFIGURE)
        self.state = DownloadState.PERFORM

    def finish(self) -> None:
        """Sync and close the temporary file, apply permissions, and rename it into place."""

        self._expect(DownloadState.PERFORM)
        assert self.temp_path is not None
        try:
            self._close_sink(strict=True)
            if self.perms is not None and os.name == "posix":
                os.chmod(self.temp_path, self.perms)
            os.replace(self.temp_path, self.file_path)
            _fsync_directory(os.path.dirname(os.path.abspath(self.file_path)))
        except OSError as exc:
            self.fail_external(exc)
        self.state = DownloadState.COMPLETE
        logger.debug("Download complete", extra={"destination": self.file_path})

    def fail_configure(self, engine_message: str, cause: Optional[BaseException] = None) -> NoReturn:
        """Abort after a configuration failure; the transfer never started."""

        self._expect(DownloadState.CONFIGURE)
        self._fail_with_cleanup(engine_message, cause)

    def fail_transfer(self, engine_message: str, cause: Optional[BaseException] = None) -> NoReturn:
        """Abort after the engine reported a failed transfer."""

        self._expect(DownloadState.PERFORM)
        self._fail_with_cleanup(engine_message, cause)

    def fail_external(self, error: OSError) -> NoReturn:
        """Abort after a filesystem failure that did not originate in the engine.

        The operating system's message is passed through unchanged.
        """
        self.state = DownloadState.FAILED
        self._close_sink()
        leftover = ""
        if self.temp_path is not None:
            try:
                self.temp_path.unlink(missing_ok=True)
            except OSError as exc:
                leftover = str(self.temp_path)
                logger.error(
                    "Failed to remove temporary file",
                    extra={"temp_path": leftover, "error": str(exc)},
                )
        logger.warning(
            "Download failed outside the transfer engine",
            extra={"destination": self.file_path, "error": str(error)},
        )
        raise HttpFileDownloadError(
            self.request, self.file_path, str(error), temp_path=leftover
        ) from error

    def abandon(self) -> None:
        """Best-effort cleanup when an unexpected exception escapes the transfer."""

        self.state = DownloadState.FAILED
        self._close_sink()
        if self.temp_path is not None:
            try:
                self.temp_path.unlink(missing_ok=True)
            except OSError:
                logger.error(
                    "Failed to remove temporary file",
                    extra={"temp_path": str(self.temp_path)},
                )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fail_with_cleanup(self, engine_message: str, cause: Optional[BaseException]) -> NoReturn:
        assert self.temp_path is not None
        self._close_sink()
        try:
            self.temp_path.unlink(missing_ok=True)
        except OSError as exc:
            self.state = DownloadState.FAILED
            temp = str(self.temp_path)
            logger.error(
                "Failed to remove temporary file",
                extra={"temp_path": temp, "error": str(exc)},
            )
            raise HttpFileDownloadError(
                self.request,
                self.file_path,
                f"{engine_message} and failed to remove temporary file {temp}",
                temp_path=temp,
            ) from (cause or exc)
        self.state = DownloadState.FAILED
        raise HttpFileDownloadError(self.request, self.file_path, engine_message) from cause

    def _close_sink(self, strict: bool = False) -> None:
        if self._sink is None:
            return
        sink, self._sink = self._sink, None
        try:
            if strict:
                # Flush errors (e.g. disk full) must reach the caller.
                handle = sink.value
                handle.flush()
                os.fsync(handle.fileno())
                handle.close()
        finally:
            sink.release()

    def _expect(self, state: DownloadState) -> None:
        if self.state is not state:
            raise RuntimeError(f"download is in state {self.state.value}, expected {state.value}")


def _fsync_directory(directory: str) -> None:
    """Make a completed rename durable; no-op where directories cannot be opened."""

    if not hasattr(os, "O_DIRECTORY"):
        return
    dir_fd = os.open(directory, os.O_DIRECTORY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def _close_quietly(handle: BinaryIO) -> None:
    try:
        handle.close()
    except OSError:
        logger.debug("Error closing temporary download file", exc_info=True)
