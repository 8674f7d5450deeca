"""Per-attempt authorization session state.

An AuthorizationSession holds the values that must survive between
building the login URL and handling the redirect: the PKCE verifier,
the state and the nonce.
"""

import hmac
from dataclasses import dataclass

from .pkce import generate_code_challenge, generate_code_verifier, generate_nonce, generate_state


@dataclass(frozen=True)
class AuthorizationSession:
    """Verifier, state and nonce for a single login attempt."""

    code_verifier: str
    state: str
    nonce: str

    @property
    def code_challenge(self) -> str:
        """S256 challenge derived from the verifier."""
        return generate_code_challenge(self.code_verifier)

    @classmethod
    def start(cls, code_verifier: str) -> "AuthorizationSession":
        """Start an attempt reusing an existing verifier, with fresh state and nonce."""
        return cls(code_verifier=code_verifier, state=generate_state(), nonce=generate_nonce())

    @classmethod
    def generate(cls) -> "AuthorizationSession":
        """Start an attempt with a fresh verifier, state and nonce."""
        return cls.start(generate_code_verifier())

    def matches_state(self, state: str | None) -> bool:
        """Check a returned state against ours in constant time."""
        return hmac.compare_digest((state or "").encode("utf-8"), self.state.encode("utf-8"))
