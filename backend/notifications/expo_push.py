"""
Expo Push Notifications Provider

Sends multicast push notifications via the Expo Push API.
https://docs.expo.dev/push-notifications/sending-notifications/

All messages of one multicast go out in a single request; Expo answers with
one ticket per message, in the same order.
"""

import httpx
import logging
from typing import Any, Dict, List, Optional

from common.errors import PushProviderError

from .models import MulticastMessage, MulticastOutcome, TokenOutcome

logger = logging.getLogger(__name__)

# Expo Push API endpoint
EXPO_PUSH_API_URL = "https://exp.host/--/api/v2/push/send"


class ExpoPushProvider:
    """Push provider backed by Expo."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Expo push provider.

        Args:
            access_token: Optional Expo access token (required only when
                push security is enabled for the project)
            timeout: HTTP timeout in seconds
            client: Optional shared HTTP client (default: one per send)
        """
        self.access_token = access_token
        self.timeout = timeout
        self.client = client

    def _build_messages(self, message: MulticastMessage) -> List[Dict[str, Any]]:
        return [
            {
                "to": token,
                "title": message.title,
                "body": message.body,
                "data": dict(message.data),
                "sound": "default",
                "priority": "high",
            }
            for token in message.tokens
        ]

    async def send_multicast(self, message: MulticastMessage) -> MulticastOutcome:
        """
        Send one notification to every token of the message.

        Returns:
            MulticastOutcome with one TokenOutcome per token

        Raises:
            PushProviderError: If Expo rejects the request or answers with a
                malformed body
            httpx.HTTPError: On transport failures
        """
        payload = self._build_messages(message)

        if self.client is not None:
            response = await self.client.post(
                EXPO_PUSH_API_URL, json=payload, headers=self._get_headers()
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    EXPO_PUSH_API_URL, json=payload, headers=self._get_headers()
                )

        if response.status_code != 200:
            raise PushProviderError(
                f"Expo push API error: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

        tickets = self._parse_tickets(response)
        if len(tickets) != len(message.tokens):
            raise PushProviderError(
                f"Expo returned {len(tickets)} tickets for {len(message.tokens)} messages"
            )

        outcomes = []
        for token, ticket in zip(message.tokens, tickets):
            if ticket.get("status") == "ok":
                outcomes.append(TokenOutcome(token=token, success=True))
            else:
                error = (ticket.get("details") or {}).get("error") or ticket.get("message")
                outcomes.append(
                    TokenOutcome(token=token, success=False, error=error or "Unknown error")
                )

        logger.debug(
            f"Expo multicast: {sum(o.success for o in outcomes)}/{len(outcomes)} accepted"
        )
        return MulticastOutcome(responses=tuple(outcomes))

    @staticmethod
    def _parse_tickets(response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            raise PushProviderError("Expo push API returned a non-JSON body") from None

        tickets = body.get("data") if isinstance(body, dict) else None
        if not isinstance(tickets, list) or not all(isinstance(t, dict) for t in tickets):
            raise PushProviderError("Expo push API response has no ticket list")
        return tickets

    def _get_headers(self) -> dict:
        """Get HTTP headers for Expo API."""
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def aclose(self):
        """Close the shared HTTP client, if any."""
        if self.client is not None:
            await self.client.aclose()
