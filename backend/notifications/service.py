"""
SOS Dispatch Service - Sends one emergency push notification to many devices.

Handles, in order:
- Authorization of the caller
- Validation of the untyped request payload
- A single multicast send through the configured push provider
- Reduction of per-token outcomes into success/failure counts
- Translation of provider failures into an internal error
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from common.config import DEFAULT_PUSH_TIMEOUT_SECONDS
from common.errors import InternalError, PushProviderError, UnauthenticatedError
from providers.contracts import PushProvider

from .models import (
    CallerIdentity,
    DispatchResult,
    MulticastMessage,
    MulticastOutcome,
    NotificationRequest,
    parse_request,
)

logger = logging.getLogger(__name__)


def _is_authenticated(identity: Optional[CallerIdentity]) -> bool:
    return identity is not None and identity.is_authenticated


class SOSDispatchService:
    """Dispatches SOS notifications. Holds no per-call state."""

    def __init__(
        self,
        provider: PushProvider,
        timeout_seconds: float = DEFAULT_PUSH_TIMEOUT_SECONDS,
        auth_check: Optional[Callable[[Optional[CallerIdentity]], bool]] = None,
        log: Optional[logging.Logger] = None,
    ):
        """
        Initialize dispatch service.

        Args:
            provider: Push provider used for the multicast send
            timeout_seconds: Upper bound on the provider call
            auth_check: Predicate deciding whether an identity may dispatch
                (default: identity.is_authenticated)
            log: Logger for operator diagnostics (default: module logger)
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.auth_check = auth_check or _is_authenticated
        self.logger = log or logger

    async def dispatch(
        self, identity: Optional[CallerIdentity], payload: Any
    ) -> DispatchResult:
        """
        Send an SOS notification on behalf of a caller.

        Args:
            identity: Caller identity from the identity verifier
            payload: Request body ({tokens, title, body, sosId}) or a
                NotificationRequest

        Returns:
            DispatchResult with counts summing to len(tokens)

        Raises:
            UnauthenticatedError: Caller is not authenticated
            InvalidArgumentError: Payload is malformed
            InternalError: Provider call failed, timed out or returned a
                malformed response
        """
        if not self.auth_check(identity):
            raise UnauthenticatedError()

        request = parse_request(payload)
        message = MulticastMessage.for_request(request)

        try:
            outcome = await asyncio.wait_for(
                self._send(message),
                timeout=self.timeout_seconds,
            )
            return self._aggregate(request, outcome)
        except asyncio.TimeoutError:
            # Only the deadline above lands here, see _send
            self.logger.error(
                f"Error sending notifications for SOS {request.sos_id}: "
                f"provider did not respond within {self.timeout_seconds}s"
            )
            raise InternalError() from None
        except Exception as e:
            self.logger.error(
                f"Error sending notifications for SOS {request.sos_id}: {e}",
                exc_info=True,
            )
            raise InternalError() from e

    async def _send(self, message: MulticastMessage) -> MulticastOutcome:
        try:
            return await self.provider.send_multicast(message)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise PushProviderError(f"Provider call timed out: {e!r}") from e

    @staticmethod
    def _aggregate(
        request: NotificationRequest, outcome: MulticastOutcome
    ) -> DispatchResult:
        expected = len(request.tokens)

        if not isinstance(outcome, MulticastOutcome):
            raise PushProviderError(
                f"Unexpected provider response type: {type(outcome).__name__}"
            )

        if outcome.is_aggregate_only:
            # Totals only: pass them through, never invent per-token detail
            success_count = outcome.success_count
            failure_count = outcome.failure_count
            if (
                failure_count is None
                or success_count < 0
                or failure_count < 0
                or success_count + failure_count != expected
            ):
                raise PushProviderError(
                    f"Provider counts {success_count}/{failure_count} "
                    f"do not cover {expected} tokens"
                )
            return DispatchResult(success_count, failure_count)

        if len(outcome.responses) != expected:
            raise PushProviderError(
                f"Provider returned {len(outcome.responses)} responses "
                f"for {expected} tokens"
            )

        success_count = sum(1 for r in outcome.responses if r.success)
        return DispatchResult(
            success_count=success_count,
            failure_count=expected - success_count,
        )
