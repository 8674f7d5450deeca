"""Token endpoint response data structure."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TokenResponse:
    """Tokens returned by a successful authorization code exchange.

    Each field is None when the provider's response did not contain it
    as a string. Tokens are not validated.
    """

    access_token: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenResponse":
        """Create from the token endpoint's JSON response."""

        def _get(key: str) -> str | None:
            value = data.get(key)
            return value if isinstance(value, str) else None

        return cls(
            access_token=_get("access_token"),
            id_token=_get("id_token"),
            refresh_token=_get("refresh_token"),
        )

    def has_refresh_token(self) -> bool:
        """Check if the response carried a refresh token."""
        return self.refresh_token is not None and len(self.refresh_token) > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize present tokens only."""
        data: dict[str, Any] = {}
        if self.access_token is not None:
            data["access_token"] = self.access_token
        if self.id_token is not None:
            data["id_token"] = self.id_token
        if self.refresh_token is not None:
            data["refresh_token"] = self.refresh_token
        return data

    def __repr__(self) -> str:
        # Never put token values in logs or tracebacks
        present = ", ".join(f"{k}=<redacted>" for k in self.to_dict())
        return f"TokenResponse({present})"
