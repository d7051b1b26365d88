"""Tests for the Request and Response value types."""

from HttpTransfer.request import Request
from HttpTransfer.response import Response


class TestRequest:
    def test_defaults(self):
        request = Request("http://example.com/")

        assert request.url == "http://example.com/"
        assert request.headers == ()
        assert request.cookie_header() == ""
        assert request.body is None
        assert request.connection_timeout is None
        assert request.timeout is None

    def test_headers_keep_order_and_duplicates(self):
        request = Request("http://example.com/")
        request.add_header("Accept", "text/html")
        request.add_header("X-Trace", "a")
        request.add_header("Accept", "application/json")

        assert request.headers == (
            ("Accept", "text/html"),
            ("X-Trace", "a"),
            ("Accept", "application/json"),
        )
        assert request.header("Accept") == "text/html"

    def test_remove_header_removes_every_value(self):
        request = Request("http://example.com/")
        request.add_header("Accept", "text/html")
        request.add_header("X-Trace", "a")
        request.add_header("Accept", "application/json")

        request.remove_header("Accept")

        assert request.headers == (("X-Trace", "a"),)
        assert request.header("Accept") is None

    def test_each_header_stops_when_callback_returns_false(self):
        request = Request("http://example.com/")
        for index in range(3):
            request.add_header(f"X-{index}", str(index))
        seen = []

        request.each_header(lambda name, value: seen.append(name) or len(seen) < 2)

        assert seen == ["X-0", "X-1"]

    def test_cookies(self):
        request = Request("http://example.com/")
        request.add_cookie("cookie_0", "cookie_val_0")
        request.add_cookie("cookie_1", "cookie_val_1")
        request.add_cookie("cookie_2", "cookie_val_2")
        request.remove_cookie("cookie_1")
        request.remove_cookie("never-set")

        assert request.cookie("cookie_0") == "cookie_val_0"
        assert request.cookie("cookie_1") is None
        assert request.cookie_header() == "cookie_0=cookie_val_0; cookie_2=cookie_val_2"

    def test_adding_cookie_again_replaces_value(self):
        request = Request("http://example.com/")
        request.add_cookie("session", "old")
        request.add_cookie("session", "new")

        seen = []
        request.each_cookie(lambda name, value: seen.append((name, value)) or True)
        assert seen == [("session", "new")]

    def test_body_and_label(self):
        request = Request("http://example.com/upload")
        request.set_body("naïve", label="text/plain")

        assert request.body == "naïve".encode("utf-8")
        assert request.body_label == "text/plain"
        assert request.describe() == "http://example.com/upload (body text/plain, 6 bytes)"

    def test_describe_without_body(self):
        assert Request("http://example.com/").describe() == "http://example.com/"


class TestResponse:
    def test_defaults(self):
        response = Response()

        assert response.status_code == 0
        assert response.body == b""
        assert response.headers == ()
        assert repr(response) == "<Response [0]>"

    def test_header_lookup_is_case_insensitive(self):
        response = Response()
        response.add_header("Content-Type", "text/plain")
        response.add_header("content-type", "text/html")

        assert response.header("CONTENT-TYPE") == "text/plain"

        response.remove_header("Content-Type")
        assert response.header("content-type") is None

    def test_body_accumulates_and_can_be_replaced(self):
        response = Response()
        response.append_body(b"ab")
        response.append_body(b"cd")
        assert response.body == b"abcd"

        response.body = b"replaced"
        assert response.body == b"replaced"

    def test_text_uses_declared_charset(self):
        response = Response()
        response.add_header("Content-Type", "text/plain; charset=latin-1")
        response.body = "café".encode("latin-1")

        assert response.text == "café"

    def test_text_with_unknown_charset_falls_back_to_utf8(self):
        response = Response()
        response.add_header("Content-Type", 'text/plain; charset="bogus"')
        response.body = "café".encode("utf-8")

        assert response.text == "café"
