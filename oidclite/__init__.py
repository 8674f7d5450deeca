"""oidclite - OpenID Connect authorization code flow with PKCE.

Main Components:
    OIDCLiteClient: Discovery, login URL and token exchange for one client
    ClientConfiguration: Immutable client settings
    AuthorizationSession: Verifier, state and nonce of one login attempt
    TokenResponse: Tokens returned by the provider

Quick Start:
    from oidclite import OIDCLiteClient

    client = OIDCLiteClient.create(
        "https://idp.example.com/.well-known/openid-configuration",
        client_id="my-client",
    )
    await client.resolve()
    url = client.create_login_url()
    # open url in a browser, then with the redirect it lands on:
    tokens = await client.handle_redirect(redirect_url)
"""

from importlib.metadata import version, PackageNotFoundError

from .callback import CallbackResult, parse_callback_url
from .client import ClientState, OIDCLiteClient
from .config import (
    DEFAULT_REDIRECT_URI,
    DEFAULT_SCOPES,
    ClientConfiguration,
    load_config,
)
from .discovery import DiscoveryDocument, fetch_discovery_document
from .errors import (
    CallbackError,
    ConfigError,
    DiscoveryError,
    ErrorKind,
    OIDCLiteError,
    TokenExchangeError,
)
from .exchange import exchange_code_for_tokens
from .pkce import generate_code_challenge, generate_code_verifier
from .request import QueryParam, build_authorization_url
from .result import CallbackChannel, ResultChannel, TokenResult
from .session import AuthorizationSession
from .tokens import TokenResponse

try:
    __version__ = version("oidclite")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

__all__ = [
    "__version__",
    # Client (main entry point)
    "OIDCLiteClient",
    "ClientState",
    # Configuration
    "ClientConfiguration",
    "load_config",
    "DEFAULT_REDIRECT_URI",
    "DEFAULT_SCOPES",
    # Discovery
    "DiscoveryDocument",
    "fetch_discovery_document",
    # PKCE and sessions
    "AuthorizationSession",
    "generate_code_verifier",
    "generate_code_challenge",
    # Authorization request
    "QueryParam",
    "build_authorization_url",
    # Token exchange
    "exchange_code_for_tokens",
    "TokenResponse",
    # Results
    "ResultChannel",
    "CallbackChannel",
    "TokenResult",
    # Callback
    "CallbackResult",
    "parse_callback_url",
    # Errors
    "ErrorKind",
    "OIDCLiteError",
    "DiscoveryError",
    "TokenExchangeError",
    "CallbackError",
    "ConfigError",
]
