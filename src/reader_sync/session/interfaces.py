"""Interface definitions for persisted session state."""

from typing import Optional


# Storage keys
AUTH_TOKEN_KEY = "authToken"
DEVICE_ID_KEY = "deviceId"


class TokenStoreInterface:
    """Interface for durable auth-token storage."""

    def load(self) -> Optional[str]:
        """Return the persisted token, or None."""
        raise NotImplementedError

    def save(self, token: str) -> None:
        """Persist the token, replacing any previous one."""
        raise NotImplementedError

    def clear(self) -> None:
        """Remove the persisted token."""
        raise NotImplementedError
