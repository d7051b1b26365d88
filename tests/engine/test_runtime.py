"""Tests for engine initialisation, TLS context creation, and result codes.

Tests cover:
- Counted global_init/global_cleanup pairs
- The initialized() context manager
- Handles refusing to start while the engine is down
- SSL context defaults
- Result code descriptions and protocol masks
"""

import ssl
import threading

import certifi
import pytest

from HttpTransfer.engine import (
    Protocol,
    TransferCode,
    TransferError,
    TransferHandle,
    global_cleanup,
    global_init,
    initialized,
    is_initialized,
    reset_engine,
    strerror,
)
from HttpTransfer.engine.runtime import create_ssl_context, default_ssl_context


class TestLifecycle:
    """The autouse fixture leaves exactly one outstanding global_init()."""

    def test_nested_init_requires_matching_cleanups(self):
        global_init()
        global_cleanup()
        assert is_initialized()

        global_cleanup()
        assert not is_initialized()
        assert default_ssl_context() is None

    def test_surplus_cleanup_is_ignored(self):
        global_cleanup()
        global_cleanup()
        global_cleanup()
        assert not is_initialized()

        global_init()
        assert is_initialized()

    def test_initialized_context_manager(self):
        reset_engine()

        with initialized():
            assert is_initialized()
            TransferHandle().close()

        assert not is_initialized()

    def test_handle_requires_engine(self):
        reset_engine()

        with pytest.raises(TransferError) as excinfo:
            TransferHandle()

        assert excinfo.value.code is TransferCode.FAILED_INIT

    def test_concurrent_init_and_cleanup(self):
        def worker():
            for _ in range(50):
                global_init()
                global_cleanup()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert is_initialized()
        global_cleanup()
        assert not is_initialized()


class TestSslContext:
    def test_default_context_verifies(self):
        ctx = default_ssl_context()

        assert isinstance(ctx, ssl.SSLContext)
        assert ctx.verify_mode == ssl.CERT_REQUIRED
        assert ctx.check_hostname is True

    def test_custom_ca_file_still_verifies(self):
        ctx = create_ssl_context(cafile=certifi.where())

        assert ctx.verify_mode == ssl.CERT_REQUIRED
        assert ctx.check_hostname is True

    def test_missing_ca_file_raises(self, tmp_path):
        with pytest.raises((OSError, ssl.SSLError)):
            create_ssl_context(cafile=str(tmp_path / "missing.pem"))


class TestCodes:
    def test_error_message_includes_detail(self):
        error = TransferError(TransferCode.COULDNT_CONNECT, "refused")

        assert str(error) == "Couldn't connect to server: refused"
        assert error.code is TransferCode.COULDNT_CONNECT
        assert error.detail == "refused"

    def test_error_message_without_detail(self):
        assert str(TransferError(TransferCode.WRITE_ERROR)) == strerror(TransferCode.WRITE_ERROR)

    def test_unknown_code(self):
        assert strerror(999) == "Unknown error (999)"


class TestProtocol:
    @pytest.mark.parametrize(
        ("text", "mask"),
        [
            ("all", Protocol.ALL),
            ("http", Protocol.HTTP),
            ("HTTPS", Protocol.HTTPS),
            ("http, https", Protocol.HTTP | Protocol.HTTPS),
        ],
    )
    def test_parse(self, text, mask):
        assert Protocol.parse(text) == mask

    @pytest.mark.parametrize("text", ["", "ftp", "http,gopher"])
    def test_parse_rejects_unknown(self, text):
        with pytest.raises(ValueError):
            Protocol.parse(text)

    def test_from_scheme(self):
        assert Protocol.from_scheme("https") is Protocol.HTTPS
        assert Protocol.from_scheme("ftp") is None
