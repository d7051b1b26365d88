# === NAVMAP v1 ===
# {
#   "module": "HttpTransfer.cli",
#   "purpose": "Command line front end: get, post, put, download.",
#   "sections": [
#     {
#       "id": "main",
#       "name": "main",
#       "anchor": "function-main",
#       "kind": "function"
#     },
#     {
#       "id": "get",
#       "name": "get_command",
#       "anchor": "function-get-command",
#       "kind": "function"
#     },
#     {
#       "id": "post",
#       "name": "post_command",
#       "anchor": "function-post-command",
#       "kind": "function"
#     },
#     {
#       "id": "put",
#       "name": "put_command",
#       "anchor": "function-put-command",
#       "kind": "function"
#     },
#     {
#       "id": "download",
#       "name": "download_command",
#       "anchor": "function-download-command",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Command line front end for :class:`HttpTransfer.client.HttpClient`.

Provides:
- httptransfer get URL - Print the response body
- httptransfer post URL --data TEXT - Send a body with POST
- httptransfer put URL --data TEXT - Send a body with PUT
- httptransfer download URL DEST [--mode 0644] - Save the body to a file

TLS, protocol, and timeout options are global and sit before the command
(``httptransfer --ca-cert ca.pem get https://...``).  Every option falls back
to the matching ``HTTPTRANSFER_*`` environment variable.  Failures print the
error on stderr and exit with code 1.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List

import typer

from HttpTransfer.client import HttpClient
from HttpTransfer.engine import initialized
from HttpTransfer.errors import ConfigError, HttpError
from HttpTransfer.logging_utils import setup_logging
from HttpTransfer.request import Request
from HttpTransfer.response import Response
from HttpTransfer.settings import TransferSettings, load_settings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="httptransfer",
    help="Synchronous HTTP transfers: GET, POST, PUT, and file downloads",
    no_args_is_help=True,
)


@dataclass
class _CliState:
    settings: TransferSettings


# ============================================================================
# Helper Functions
# ============================================================================


def _make_client(settings: TransferSettings) -> HttpClient:
    """Build the client used by every command."""

    return HttpClient.from_settings(settings)


def _build_request(
    settings: TransferSettings,
    url: str,
    headers: List[str],
    cookies: List[str],
) -> Request:
    request = Request(
        url,
        connection_timeout=settings.connect_timeout_ms,
        timeout=settings.timeout_ms,
    )
    for line in headers:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid header {line!r}; expected 'Name: value'")
        request.add_header(name.strip(), value.strip())
    for pair in cookies:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid cookie {pair!r}; expected 'name=value'")
        request.add_cookie(name.strip(), value.strip())
    return request


def _parse_mode(mode: str | None) -> int | None:
    if mode is None:
        return None
    try:
        perms = int(mode, 8)
    except ValueError as exc:
        raise ConfigError(f"Invalid file mode {mode!r}; expected octal such as 0644") from exc
    if not 0 <= perms <= 0o7777:
        raise ConfigError(f"Invalid file mode {mode!r}; expected octal such as 0644")
    return perms


def _run(ctx: typer.Context, action: Callable[[HttpClient], None]) -> None:
    """Run ``action`` with an initialised engine, turning client errors into exit code 1."""

    state: _CliState = ctx.obj
    try:
        with initialized(), _make_client(state.settings) as client:
            action(client)
    except HttpError as exc:
        typer.echo(f"❌ Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _print_response(response: Response, include: bool) -> None:
    if include:
        typer.echo(f"HTTP {response.status_code}")
        for name, value in response.headers:
            typer.echo(f"{name}: {value}")
        typer.echo("")
    typer.echo(response.text, nl=False)


# ============================================================================
# Global options
# ============================================================================


@app.callback()
def main(
    ctx: typer.Context,
    ca_cert: str | None = typer.Option(None, "--ca-cert", help="CA bundle used to verify HTTPS servers"),
    cert: str | None = typer.Option(None, "--cert", help="Client certificate (PEM)"),
    key: str | None = typer.Option(None, "--key", help="Private key for --cert"),
    protocol: str | None = typer.Option(
        None,
        "--protocol",
        help="Allowed protocols: http, https, or all (comma separated)",
    ),
    connect_timeout: int | None = typer.Option(
        None, "--connect-timeout", help="Connection timeout in milliseconds"
    ),
    timeout: int | None = typer.Option(None, "--timeout", help="Total transfer timeout in milliseconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log transfer details to stderr"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit log records as JSON"),
) -> None:
    """Resolve settings and logging shared by every command."""

    try:
        settings = load_settings(
            ca_cert=ca_cert,
            client_cert=cert,
            client_key=key,
            protocols=protocol,
            connect_timeout_ms=connect_timeout,
            timeout_ms=timeout,
            verbose=verbose or None,
        )
    except ConfigError as exc:
        typer.echo(f"❌ Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    setup_logging(level="DEBUG" if settings.verbose else settings.log_level, json_output=json_logs)
    ctx.obj = _CliState(settings=settings)


# ============================================================================
# Commands
# ============================================================================


@app.command(name="get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to fetch"),
    header: List[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'"),
    cookie: List[str] = typer.Option([], "--cookie", "-b", help="Cookie 'name=value'"),
    include: bool = typer.Option(False, "--include", "-i", help="Print status and headers"),
) -> None:
    """Fetch URL and print the response body."""

    def action(client: HttpClient) -> None:
        request = _build_request(ctx.obj.settings, url, header, cookie)
        _print_response(client.get(request), include)

    _run(ctx, action)


@app.command(name="post")
def post_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to post to"),
    data: str = typer.Option("", "--data", "-d", help="Request body; '@file' reads it from a file"),
    header: List[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'"),
    cookie: List[str] = typer.Option([], "--cookie", "-b", help="Cookie 'name=value'"),
    include: bool = typer.Option(False, "--include", "-i", help="Print status and headers"),
) -> None:
    """Send --data to URL with POST and print the response body."""

    _send(ctx, "post", url, data, header, cookie, include)


@app.command(name="put")
def put_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to upload to"),
    data: str = typer.Option("", "--data", "-d", help="Request body; '@file' reads it from a file"),
    header: List[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'"),
    cookie: List[str] = typer.Option([], "--cookie", "-b", help="Cookie 'name=value'"),
    include: bool = typer.Option(False, "--include", "-i", help="Print status and headers"),
) -> None:
    """Send --data to URL with PUT and print the response body."""

    _send(ctx, "put", url, data, header, cookie, include)


def _send(
    ctx: typer.Context,
    method: str,
    url: str,
    data: str,
    headers: List[str],
    cookies: List[str],
    include: bool,
) -> None:
    def action(client: HttpClient) -> None:
        request = _build_request(ctx.obj.settings, url, headers, cookies)
        if data.startswith("@"):
            source = Path(data[1:])
            try:
                request.set_body(source.read_bytes(), label=source.name)
            except OSError as exc:
                raise ConfigError(f"Cannot read request body from {source}: {exc}") from exc
        else:
            request.set_body(data)
        _print_response(getattr(client, method)(request), include)

    _run(ctx, action)


@app.command(name="download")
def download_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to download"),
    destination: Path = typer.Argument(..., help="File to create"),
    mode: str | None = typer.Option(None, "--mode", "-m", help="Octal permissions, e.g. 0644"),
    header: List[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'"),
    cookie: List[str] = typer.Option([], "--cookie", "-b", help="Cookie 'name=value'"),
) -> None:
    """Download URL into DEST; DEST only appears once the transfer succeeded."""

    def action(client: HttpClient) -> None:
        perms = _parse_mode(mode)
        request = _build_request(ctx.obj.settings, url, header, cookie)
        client.download_file(request, destination, perms)
        typer.echo(f"✅ Saved {destination}")

    _run(ctx, action)


if __name__ == "__main__":  # pragma: no cover
    app()
