from __future__ import annotations

from typing import Callable, FrozenSet, Iterable, List, Optional

from notifications.models import (
    CallerIdentity,
    MulticastMessage,
    MulticastOutcome,
    TokenOutcome,
)

from .contracts import IdentityVerifier, PushProvider, bearer_token

DEMO_UID = "demo-user"


class FakePushProvider(PushProvider):
    """In-process push provider. Records every multicast it is asked to send."""

    def __init__(
        self,
        outcome: Optional[Callable[[int, str], bool]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.outcome = outcome
        self.error = error
        self.calls: List[MulticastMessage] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def send_multicast(self, message: MulticastMessage) -> MulticastOutcome:
        self.calls.append(message)
        if self.error is not None:
            raise self.error
        responses = []
        for index, token in enumerate(message.tokens):
            ok = self.outcome(index, token) if self.outcome else True
            responses.append(
                TokenOutcome(
                    token=token,
                    success=ok,
                    error=None if ok else "messaging/registration-token-not-registered",
                )
            )
        return MulticastOutcome(responses=tuple(responses))


class FakeIdentityVerifier(IdentityVerifier):
    """Accepts a fixed set of bearer tokens, all mapped to the demo user."""

    def __init__(self, allowed_tokens: Optional[Iterable[str]] = None) -> None:
        self.allowed_tokens: FrozenSet[str] = frozenset(allowed_tokens or {"demo-token"})

    def identify(self, authorization: Optional[str]) -> CallerIdentity:
        token = bearer_token(authorization)
        if token is None or token not in self.allowed_tokens:
            return CallerIdentity.anonymous()
        return CallerIdentity(uid=DEMO_UID, claims={"demo": True})
