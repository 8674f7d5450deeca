"""CLI entry point for oidclite."""

from __future__ import annotations

import asyncio
import json
import logging
import webbrowser
from pathlib import Path
from typing import Any, NoReturn

import click

from . import __version__
from .client import OIDCLiteClient
from .config import ClientConfiguration, load_config
from .errors import ConfigError, ErrorKind, OIDCLiteError
from .output import OutputHandler
from .session import AuthorizationSession
from .tokens import TokenResponse

# Logger for CLI
logger = logging.getLogger("oidclite")

ERROR_HELP = {
    ErrorKind.INVALID_ENDPOINT_URL: "Check the discovery URL and the endpoints the provider publishes.",
    ErrorKind.MISSING_TOKEN_ENDPOINT: "The discovery document has no token_endpoint. Check the discovery URL.",
    ErrorKind.TRANSPORT_FAILURE: "Check your network connection and that the provider is reachable.",
    ErrorKind.NON_SUCCESS_STATUS: "The provider rejected the request. Run with -v to see its error response.",
    ErrorKind.RESPONSE_DECODE_FAILURE: "The provider did not answer with JSON. Check the token endpoint.",
    ErrorKind.DISCOVERY_PARSE_FAILURE: "The discovery URL did not return a JSON object. Is it the openid-configuration URL?",
    ErrorKind.AUTHORIZATION_DENIED: "The provider refused the login. Check the client ID, redirect URI and scopes.",
    ErrorKind.STATE_MISMATCH: "The redirect does not belong to this login. Start the login again.",
    ErrorKind.MISSING_CODE: "The redirect URL has no code parameter. Paste the full URL.",
    ErrorKind.REDIRECT_MISMATCH: "The pasted URL is not the configured redirect URI. Paste the URL the browser was sent to.",
}


@click.group()
@click.option("--json", "json_mode", is_flag=True, help="Output in JSON format")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to oidclite config file")
@click.option("--env-file", "env_path", type=click.Path(exists=True), help="Path to .env file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, json_mode: bool, config_path: str | None, env_path: str | None, verbose: bool) -> None:
    """oidclite - OpenID Connect login with PKCE from the command line."""
    ctx.ensure_object(dict)
    ctx.obj["json_mode"] = json_mode
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["env_path"] = Path(env_path) if env_path else None
    ctx.obj["output"] = OutputHandler(json_mode)

    # Configure logging based on verbosity
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING)


def get_config(ctx: click.Context) -> ClientConfiguration | NoReturn:
    """Get config from context, handling errors."""
    output: OutputHandler = ctx.obj["output"]
    try:
        return load_config(ctx.obj["config_path"], ctx.obj["env_path"])
    except ConfigError as e:
        output.error(e, error_type="ConfigError", help_text=str(e))
        raise SystemExit(1)  # Never reached due to sys.exit in output.error
    except json.JSONDecodeError as e:
        output.error(
            e,
            error_type="ConfigParseError",
            help_text="The config file contains invalid JSON. Check for syntax errors.",
        )
        raise SystemExit(1)  # Never reached due to sys.exit in output.error


def _fail(output: OutputHandler, error: OIDCLiteError) -> NoReturn:
    output.error(error, error_type=type(error).__name__, help_text=ERROR_HELP.get(error.kind))
    raise SystemExit(1)  # Never reached due to sys.exit in output.error


def _format_tokens(tokens: TokenResponse) -> str:
    lines = [click.style("Received tokens", fg="green", bold=True)]
    for name, value in tokens.to_dict().items():
        lines.append(f"  {name}: {value}")
    if not tokens.to_dict():
        lines.append("  (response contained no tokens)")
    return "\n".join(lines)


@main.command()
@click.pass_context
def discover(ctx: click.Context) -> None:
    """Resolve and show the provider's endpoints."""
    output: OutputHandler = ctx.obj["output"]
    config = get_config(ctx)

    async def run() -> dict[str, Any]:
        async with OIDCLiteClient(config) as client:
            document = await client.resolve()
            return document.to_dict()

    try:
        data = asyncio.run(run())
    except OIDCLiteError as e:
        _fail(output, e)

    lines = [f"{key}: {value or '(not published)'}" for key, value in data.items()]
    output.success(data, "\n".join(lines))


@main.command("login-url")
@click.pass_context
def login_url(ctx: click.Context) -> None:
    """Print a login URL with its state, nonce and code verifier."""
    output: OutputHandler = ctx.obj["output"]
    config = get_config(ctx)

    async def run() -> tuple[str | None, AuthorizationSession]:
        async with OIDCLiteClient(config) as client:
            await client.resolve()
            session = client.start_session()
            return client.create_login_url(session), session

    try:
        url, session = asyncio.run(run())
    except OIDCLiteError as e:
        _fail(output, e)

    if url is None:
        output.error(
            ValueError("Provider did not publish a usable authorization_endpoint"),
            help_text=ERROR_HELP[ErrorKind.INVALID_ENDPOINT_URL],
        )
        return

    data = {
        "url": url,
        "state": session.state,
        "nonce": session.nonce,
        "code_verifier": session.code_verifier,
    }
    human = (
        f"{url}\n\n"
        f"state:         {session.state}\n"
        f"nonce:         {session.nonce}\n"
        f"code_verifier: {session.code_verifier}\n\n"
        f"Exchange the returned code with:\n"
        f"  oidclite exchange <code> --verifier {session.code_verifier}"
    )
    output.success(data, human)


@main.command()
@click.argument("code")
@click.option("--verifier", required=True, help="Code verifier printed by 'oidclite login-url'")
@click.pass_context
def exchange(ctx: click.Context, code: str, verifier: str) -> None:
    """Exchange an authorization CODE for tokens."""
    output: OutputHandler = ctx.obj["output"]
    config = get_config(ctx)

    async def run() -> TokenResponse:
        async with OIDCLiteClient(config) as client:
            await client.resolve()
            return await client.exchange_code(code, AuthorizationSession.start(verifier))

    try:
        tokens = asyncio.run(run())
    except OIDCLiteError as e:
        _fail(output, e)

    output.success(tokens.to_dict(), _format_tokens(tokens))


@main.command()
@click.option("--no-browser", is_flag=True, help="Print the login URL instead of opening a browser")
@click.pass_context
def login(ctx: click.Context, no_browser: bool) -> None:
    """Run the full login: open the browser, then paste the redirect URL."""
    output: OutputHandler = ctx.obj["output"]
    config = get_config(ctx)

    async def run() -> TokenResponse:
        async with OIDCLiteClient(config) as client:
            output.status("Discovering provider endpoints...")
            await client.resolve()

            url = client.create_login_url()
            if url is None:
                raise OIDCLiteError(
                    "Provider did not publish a usable authorization_endpoint",
                    ErrorKind.INVALID_ENDPOINT_URL,
                )

            if no_browser or not webbrowser.open(url):
                output.status(f"Open this URL to log in:\n{url}")
            else:
                output.status("Opened browser for login...")

            redirect_url = click.prompt("Paste the URL you were redirected to", err=True)
            output.status("Exchanging code for tokens...")
            return await client.handle_redirect(redirect_url.strip())

    try:
        tokens = asyncio.run(run())
    except OIDCLiteError as e:
        _fail(output, e)

    output.success(tokens.to_dict(), _format_tokens(tokens))


if __name__ == "__main__":
    main()
