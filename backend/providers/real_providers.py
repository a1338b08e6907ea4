from __future__ import annotations

import asyncio
import logging
from typing import Optional

from firebase_admin import auth, messaging

from common.errors import InternalError, PushProviderError
from notifications.models import (
    CallerIdentity,
    MulticastMessage,
    MulticastOutcome,
    TokenOutcome,
)

from .contracts import IdentityVerifier, PushProvider, bearer_token
from .firebase_app import get_firebase_app

logger = logging.getLogger(__name__)


def _describe_exception(exc: Optional[BaseException]) -> Optional[str]:
    if exc is None:
        return None
    code = getattr(exc, "code", None)
    return f"{code}: {exc}" if code else str(exc)


class FcmPushProvider(PushProvider):
    """Multicast send through Firebase Cloud Messaging (firebase-admin SDK)."""

    def __init__(self, credentials_path: Optional[str] = None) -> None:
        self.credentials_path = credentials_path

    def _build_message(self, message: MulticastMessage) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            notification=messaging.Notification(title=message.title, body=message.body),
            data=dict(message.data),
            tokens=list(message.tokens),
        )

    async def send_multicast(self, message: MulticastMessage) -> MulticastOutcome:
        app = get_firebase_app(self.credentials_path)
        # The SDK call blocks on HTTP, keep it off the event loop
        batch = await asyncio.to_thread(
            messaging.send_each_for_multicast, self._build_message(message), app=app
        )
        if len(batch.responses) != len(message.tokens):
            raise PushProviderError(
                f"FCM returned {len(batch.responses)} responses "
                f"for {len(message.tokens)} tokens"
            )
        responses = tuple(
            TokenOutcome(
                token=token,
                success=response.success,
                error=_describe_exception(response.exception),
            )
            for token, response in zip(message.tokens, batch.responses)
        )
        logger.debug(
            f"FCM multicast: {batch.success_count} ok, {batch.failure_count} failed"
        )
        return MulticastOutcome(responses=responses)


class FirebaseIdentityVerifier(IdentityVerifier):
    """Checks Firebase ID tokens sent as `Authorization: Bearer <token>`."""

    def __init__(self, credentials_path: Optional[str] = None) -> None:
        self.credentials_path = credentials_path

    def identify(self, authorization: Optional[str]) -> CallerIdentity:
        """
        Resolve the caller from a bearer ID token.

        Returns the anonymous identity for a missing, malformed, expired,
        revoked or disabled-user token.

        Raises:
            InternalError: If the token could not be checked at all (Firebase
                app bootstrap failed, public certificates unreachable)
        """
        token = bearer_token(authorization)
        if token is None:
            return CallerIdentity.anonymous()
        try:
            app = get_firebase_app(self.credentials_path)
        except Exception as e:
            logger.error(f"Firebase app unavailable for ID token checks: {e}", exc_info=True)
            raise InternalError() from e
        try:
            claims = auth.verify_id_token(token, app=app)
        except (ValueError, auth.InvalidIdTokenError, auth.UserDisabledError) as e:
            logger.debug(f"Rejected ID token: {e}")
            return CallerIdentity.anonymous()
        except Exception as e:
            logger.error(f"Could not verify ID token: {e}", exc_info=True)
            raise InternalError() from e
        return CallerIdentity(uid=claims.get("uid"), claims=claims)
