"""
Notifications package - SOS push notification dispatch

Submodules:
- models: Request, identity, multicast message and result models
- service: SOS dispatch service (auth, validation, send, aggregation)
- expo_push: Expo push provider
"""

from .models import (
    CallerIdentity,
    DispatchResult,
    MulticastMessage,
    MulticastOutcome,
    NotificationRequest,
    TokenOutcome,
    parse_request,
)
from .service import SOSDispatchService

__all__ = [
    "CallerIdentity",
    "DispatchResult",
    "MulticastMessage",
    "MulticastOutcome",
    "NotificationRequest",
    "TokenOutcome",
    "parse_request",
    "SOSDispatchService",
]
