"""Delivery of exchange outcomes to the caller.

A ResultChannel is registered on the client and receives exactly one
call per completed token exchange: token_response() on success or
auth_failure() on failure. Discovery failures go to the optional
discovery_failure() hook instead.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from .errors import OIDCLiteError
from .tokens import TokenResponse

logger = logging.getLogger(__name__)


@runtime_checkable
class ResultChannel(Protocol):
    """Consumer of token exchange outcomes."""

    def auth_failure(self, error: OIDCLiteError) -> None: ...

    def token_response(self, tokens: TokenResponse) -> None: ...


class CallbackChannel:
    """ResultChannel built from plain callables."""

    def __init__(
        self,
        on_tokens: Callable[[TokenResponse], None],
        on_failure: Callable[[OIDCLiteError], None],
        on_discovery_failure: Callable[[OIDCLiteError], None] | None = None,
    ):
        self._on_tokens = on_tokens
        self._on_failure = on_failure
        self._on_discovery_failure = on_discovery_failure

    def auth_failure(self, error: OIDCLiteError) -> None:
        self._on_failure(error)

    def token_response(self, tokens: TokenResponse) -> None:
        self._on_tokens(tokens)

    def discovery_failure(self, error: OIDCLiteError) -> None:
        if self._on_discovery_failure is not None:
            self._on_discovery_failure(error)


def notify_discovery_failure(channel: ResultChannel | None, error: OIDCLiteError) -> None:
    """Call the channel's discovery_failure hook if it has one."""
    hook = getattr(channel, "discovery_failure", None)
    if callable(hook):
        hook(error)


@dataclass(frozen=True)
class TokenResult:
    """Outcome of one token exchange: tokens or an error, never both."""

    tokens: TokenResponse | None = None
    error: OIDCLiteError | None = None

    def __post_init__(self) -> None:
        if (self.tokens is None) == (self.error is None):
            raise ValueError("TokenResult needs exactly one of tokens or error")

    @classmethod
    def ok(cls, tokens: TokenResponse) -> "TokenResult":
        return cls(tokens=tokens)

    @classmethod
    def fail(cls, error: OIDCLiteError) -> "TokenResult":
        return cls(error=error)

    def is_success(self) -> bool:
        """Check if the exchange produced tokens."""
        return self.tokens is not None

    def deliver(self, channel: ResultChannel | None) -> None:
        """Fire exactly one channel method for this outcome."""
        if channel is None:
            logger.debug("No result channel registered, dropping token result")
            return
        if self.tokens is not None:
            channel.token_response(self.tokens)
        else:
            channel.auth_failure(self.error)  # type: ignore[arg-type]
