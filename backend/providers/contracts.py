from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from notifications.models import CallerIdentity, MulticastMessage, MulticastOutcome


class PushProvider(Protocol):
    async def send_multicast(self, message: MulticastMessage) -> MulticastOutcome:
        ...


class IdentityVerifier(Protocol):
    def identify(self, authorization: Optional[str]) -> CallerIdentity:
        ...


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
