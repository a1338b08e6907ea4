"""
Notification domain models for SOS dispatch.

Defines the validated request, the caller identity, the outbound multicast
message and the per-token/aggregate outcomes reported by push providers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from common.errors import InvalidArgumentError

# Reporting order for validation failures
REQUEST_FIELDS = ("tokens", "title", "body", "sosId")


class NotificationRequest(BaseModel):
    """A validated SOS notification request."""

    model_config = ConfigDict(frozen=True)

    tokens: Tuple[StrictStr, ...] = Field(..., min_length=1)
    title: StrictStr = Field(..., min_length=1)
    body: StrictStr = Field(..., min_length=1)
    sos_id: StrictStr = Field(..., alias="sosId", min_length=1)


def parse_request(payload: Any) -> NotificationRequest:
    """
    Validate an untyped request payload.

    Args:
        payload: Decoded JSON body, or an already-built NotificationRequest

    Returns:
        NotificationRequest

    Raises:
        InvalidArgumentError: Naming the first failing field in
            tokens, title, body, sosId order
    """
    if isinstance(payload, NotificationRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidArgumentError("request")

    # Validation works on a copy; the caller's payload is left untouched
    try:
        return NotificationRequest.model_validate(dict(payload))
    except ValidationError as e:
        raise InvalidArgumentError(_first_failing_field(e)) from None


def _first_failing_field(error: ValidationError) -> str:
    failed = {
        str(err["loc"][0])
        for err in error.errors()
        if err.get("loc")
    }
    for name in REQUEST_FIELDS:
        if name in failed:
            return name
    return "request"


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, as reported by the identity verifier."""
    uid: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self.uid, str) and len(self.uid) > 0

    @classmethod
    def anonymous(cls) -> "CallerIdentity":
        return cls()


@dataclass(frozen=True)
class MulticastMessage:
    """One multicast send: a shared notification fanned out to every token."""
    title: str
    body: str
    data: Dict[str, str]
    tokens: Tuple[str, ...]

    @classmethod
    def for_request(cls, request: NotificationRequest) -> "MulticastMessage":
        return cls(
            title=request.title,
            body=request.body,
            data={"sosId": request.sos_id},
            tokens=tuple(request.tokens),
        )


@dataclass(frozen=True)
class TokenOutcome:
    """Provider verdict for a single device token."""
    token: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class MulticastOutcome:
    """
    Provider response to a multicast send.

    Providers that report per-token detail fill `responses`, aligned with the
    message tokens. Providers that only report totals leave `responses` empty
    and set both counts.
    """
    responses: Tuple[TokenOutcome, ...] = ()
    success_count: Optional[int] = None
    failure_count: Optional[int] = None

    @property
    def is_aggregate_only(self) -> bool:
        return not self.responses and self.success_count is not None


@dataclass(frozen=True)
class DispatchResult:
    """Aggregate result of one dispatch."""
    success_count: int
    failure_count: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "successCount": self.success_count,
            "failureCount": self.failure_count,
        }
