"""OpenID Connect authorization code client with PKCE.

OIDCLiteClient ties the pieces together:
1. Resolve the provider's endpoints from the discovery URL
2. Build the login URL for a browser to open
3. Validate the redirect the browser returns
4. Exchange the authorization code for tokens

Usage:
    async with OIDCLiteClient(config) as client:
        await client.resolve()
        url = client.create_login_url()
        # ... open url, wait for the redirect ...
        tokens = await client.handle_redirect(redirect_url)
"""

import asyncio
import logging
from enum import Enum
from typing import Any

import httpx

from .callback import parse_callback_url
from .config import ClientConfiguration
from .discovery import DiscoveryDocument, fetch_discovery_document
from .errors import CallbackError, DiscoveryError, ErrorKind, OIDCLiteError
from .exchange import exchange_code_for_tokens
from .pkce import generate_code_verifier
from .request import build_authorization_url
from .result import ResultChannel, TokenResult, notify_discovery_failure
from .session import AuthorizationSession
from .tokens import TokenResponse
from .transport import create_http_client

logger = logging.getLogger(__name__)


class ClientState(Enum):
    """Where the client is in the login flow."""

    INITIALIZED = "initialized"
    ENDPOINTS_UNRESOLVED = "endpoints_unresolved"
    ENDPOINTS_RESOLVED = "endpoints_resolved"
    LOGIN_URL_ISSUED = "login_url_issued"
    TOKEN_EXCHANGE_PENDING = "token_exchange_pending"
    TOKEN_RECEIVED = "token_received"
    EXCHANGE_FAILED = "exchange_failed"


class OIDCLiteClient:
    """Client for one OpenID Connect provider and client registration.

    The configuration and the instance code verifier are fixed for the
    lifetime of the client. Resolved endpoints are kept once discovery
    succeeds. Each login URL gets a fresh state and nonce; pass an
    AuthorizationSession of your own to isolate concurrent attempts.
    """

    def __init__(
        self,
        config: ClientConfiguration,
        result_channel: ResultChannel | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            config: Client configuration
            result_channel: Optional consumer of token exchange outcomes
            http_client: Optional HTTP client; one without cookie storage
                is created (and owned) when omitted
        """
        self.config = config
        self.result_channel = result_channel
        self.code_verifier = generate_code_verifier()

        self.discovery: DiscoveryDocument | None = None
        self.discovery_error: DiscoveryError | None = None
        self.last_session: AuthorizationSession | None = None
        self.pending_exchange: asyncio.Task[TokenResult] | None = None
        self.state = ClientState.INITIALIZED

        self._http = http_client
        self._owns_http = http_client is None

    @classmethod
    def create(
        cls,
        discovery_url: str,
        client_id: str,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        scopes: list[str] | None = None,
        **kwargs: Any,
    ) -> "OIDCLiteClient":
        """Build a client straight from settings, using defaults for omitted ones."""
        config = ClientConfiguration(
            discovery_url=discovery_url,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,  # type: ignore[arg-type]
            scopes=tuple(scopes) if scopes is not None else None,  # type: ignore[arg-type]
        )
        return cls(config, **kwargs)

    async def __aenter__(self) -> "OIDCLiteClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = create_http_client(self.config.timeout)
        return self._http

    def set_result_channel(self, channel: ResultChannel | None) -> None:
        """Register the consumer of token exchange outcomes."""
        self.result_channel = channel

    @property
    def authorization_endpoint(self) -> str | None:
        return self.discovery.authorization_endpoint if self.discovery else None

    @property
    def token_endpoint(self) -> str | None:
        return self.discovery.token_endpoint if self.discovery else None

    @property
    def is_ready(self) -> bool:
        """True once discovery has succeeded."""
        return self.discovery is not None

    async def resolve(self, force: bool = False) -> DiscoveryDocument:
        """Resolve the provider's endpoints from the discovery URL.

        A successful result is kept for the lifetime of the client; later
        calls return it without a request unless force is set.

        Returns:
            The resolved DiscoveryDocument

        Raises:
            DiscoveryError: If discovery fails. Endpoints stay unset, so login
                URLs come back as None and exchanges fail with a missing endpoint.
        """
        if self.discovery is not None and not force:
            return self.discovery

        try:
            document = await fetch_discovery_document(
                self.config.discovery_url,
                http_client=self._get_http(),
                timeout=self.config.timeout,
            )
        except DiscoveryError as e:
            logger.warning(f"Discovery failed for {self.config.discovery_url}: {e}")
            self.discovery_error = e
            if self.discovery is None:
                self.state = ClientState.ENDPOINTS_UNRESOLVED
            notify_discovery_failure(self.result_channel, e)
            raise

        self.discovery = document
        self.discovery_error = None
        self.state = ClientState.ENDPOINTS_RESOLVED
        logger.debug(f"Resolved endpoints for {self.config.discovery_url}")
        return document

    def start_session(self) -> AuthorizationSession:
        """New attempt with the instance verifier and a fresh state and nonce."""
        return AuthorizationSession.start(self.code_verifier)

    def create_login_url(self, session: AuthorizationSession | None = None) -> str | None:
        """Build the login URL for a browser to open.

        When a URL is issued its session becomes last_session, replacing
        the previous one. A failed build leaves last_session alone.

        Args:
            session: Attempt to build the URL for; a fresh one is started if omitted

        Returns:
            The authorization URL, or None if the authorization endpoint
            has not been resolved or is not a valid URL
        """
        session = session or self.start_session()

        url = build_authorization_url(self.authorization_endpoint, self.config, session)
        if url is None:
            logger.debug("No usable authorization endpoint, cannot build login URL")
            return None

        self.last_session = session
        self.state = ClientState.LOGIN_URL_ISSUED
        return url

    def _verifier_for(self, session: AuthorizationSession | None) -> str:
        session = session or self.last_session
        return session.code_verifier if session else self.code_verifier

    async def exchange_code(
        self,
        code: str,
        session: AuthorizationSession | None = None,
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the redirect
            session: Attempt the code belongs to; defaults to last_session

        Returns:
            TokenResponse

        Raises:
            TokenExchangeError: If the exchange fails
        """
        self.state = ClientState.TOKEN_EXCHANGE_PENDING
        try:
            tokens = await exchange_code_for_tokens(
                self.token_endpoint,
                self.config,
                code,
                self._verifier_for(session),
                http_client=self._get_http(),
            )
        except OIDCLiteError:
            self.state = ClientState.EXCHANGE_FAILED
            raise

        self.state = ClientState.TOKEN_RECEIVED
        return tokens

    async def _run_exchange(
        self,
        code: str,
        session: AuthorizationSession | None,
    ) -> TokenResult:
        try:
            result = TokenResult.ok(await self.exchange_code(code, session))
        except OIDCLiteError as e:
            logger.info(f"Token exchange failed: {e}")
            result = TokenResult.fail(e)
        result.deliver(self.result_channel)
        return result

    def request_tokens(
        self,
        code: str,
        session: AuthorizationSession | None = None,
    ) -> "asyncio.Task[TokenResult]":
        """Start a token exchange in the background.

        The outcome is delivered to the result channel and is also the
        task's result. A new request replaces pending_exchange without
        cancelling an exchange already in flight.

        Must be called from a running event loop.
        """
        if self.pending_exchange is not None and not self.pending_exchange.done():
            logger.debug("Replacing in-flight token exchange without cancelling it")
        self.state = ClientState.TOKEN_EXCHANGE_PENDING
        # Resolve the session now so a later login URL cannot change it
        session = session or self.last_session
        self.pending_exchange = asyncio.create_task(self._run_exchange(code, session))
        return self.pending_exchange

    async def handle_redirect(
        self,
        callback_url: str,
        session: AuthorizationSession | None = None,
    ) -> TokenResponse:
        """Validate the login redirect and exchange its code for tokens.

        Args:
            callback_url: The full redirect URL the browser landed on
            session: Attempt the redirect answers; defaults to last_session

        Returns:
            TokenResponse

        Raises:
            CallbackError: If the provider denied the request, the state does
                not match or there is no code
            TokenExchangeError: If the exchange fails
        """
        session = session or self.last_session
        if session is None:
            raise CallbackError("No login in progress to match the redirect", ErrorKind.STATE_MISMATCH)

        result = parse_callback_url(callback_url, self.config.redirect_uri)

        if result.error:
            message = f"Authorization failed: {result.error}"
            if result.error_description:
                message += f" - {result.error_description}"
            raise CallbackError(message, ErrorKind.AUTHORIZATION_DENIED)

        if not session.matches_state(result.state):
            raise CallbackError(
                "State mismatch in callback - possible CSRF attack",
                ErrorKind.STATE_MISMATCH,
            )

        if result.code is None:
            raise CallbackError("No authorization code in callback", ErrorKind.MISSING_CODE)

        return await self.exchange_code(result.code, session)

    async def _run_redirect(
        self,
        callback_url: str,
        session: AuthorizationSession | None,
    ) -> TokenResult:
        try:
            result = TokenResult.ok(await self.handle_redirect(callback_url, session))
        except OIDCLiteError as e:
            logger.info(f"Login redirect failed: {e}")
            result = TokenResult.fail(e)
        result.deliver(self.result_channel)
        return result

    def complete_login(
        self,
        callback_url: str,
        session: AuthorizationSession | None = None,
    ) -> "asyncio.Task[TokenResult]":
        """Validate the login redirect and exchange its code in the background.

        Same checks as handle_redirect; a redirect that fails them is
        delivered to the result channel as a failure and never reaches
        the token endpoint. Replaces pending_exchange like request_tokens.

        Must be called from a running event loop.
        """
        if self.pending_exchange is not None and not self.pending_exchange.done():
            logger.debug("Replacing in-flight token exchange without cancelling it")
        session = session or self.last_session
        self.pending_exchange = asyncio.create_task(self._run_redirect(callback_url, session))
        return self.pending_exchange
