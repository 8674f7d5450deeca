"""Secrets for one login attempt: PKCE verifier, state and nonce.

The verifier stays on this side and is sent only with the token
request; the login URL carries its S256 challenge instead. See
AuthorizationSession for how the three values travel together.
"""

import base64
import hashlib
import secrets
import string

# RFC 7636 bounds on the verifier length
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
DEFAULT_VERIFIER_LENGTH = 72

VERIFIER_CHARS = string.ascii_letters + string.digits + "-._~"

CODE_CHALLENGE_METHOD = "S256"


def generate_code_verifier(length: int = DEFAULT_VERIFIER_LENGTH) -> str:
    """Draw a random verifier of the given length from VERIFIER_CHARS.

    Raises:
        ValueError: If length is outside MIN_VERIFIER_LENGTH..MAX_VERIFIER_LENGTH
    """
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"Code verifier length must be between {MIN_VERIFIER_LENGTH} "
            f"and {MAX_VERIFIER_LENGTH}, got {length}"
        )
    return "".join(secrets.choice(VERIFIER_CHARS) for _ in range(length))


def generate_code_challenge(verifier: str) -> str:
    """S256 challenge for a verifier: unpadded base64url of its SHA-256 digest."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    # 128 bits, hex so it survives any redirect untouched
    return secrets.token_hex(16)


def generate_nonce() -> str:
    return secrets.token_urlsafe(24)
