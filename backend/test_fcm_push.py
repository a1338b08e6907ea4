"""
Tests for providers/real_providers.py - FCM push and Firebase identity

The firebase-admin network calls are monkeypatched; message building runs
against the real SDK types.
"""

import logging
from types import SimpleNamespace

import pytest
from firebase_admin import auth, exceptions, messaging

from common.errors import InternalError, PushProviderError
from notifications.models import MulticastMessage
from providers import real_providers
from providers.real_providers import FcmPushProvider, FirebaseIdentityVerifier

MESSAGE = MulticastMessage(
    title="New Emergency Alert!",
    body="Medical - critical priority",
    data={"sosId": "sos-7"},
    tokens=("fcm-a", "fcm-b", "fcm-c", "fcm-d"),
)

FAKE_APP = object()


def send_response(success, exception=None):
    return SimpleNamespace(success=success, exception=exception, message_id="m" if success else None)


@pytest.fixture(autouse=True)
def _no_firebase_app(monkeypatch):
    monkeypatch.setattr(real_providers, "get_firebase_app", lambda path=None: FAKE_APP)


class TestFcmPushProvider:
    @pytest.mark.asyncio
    async def test_one_multicast_call(self, monkeypatch):
        calls = []

        def fake_send(multicast, app=None):
            calls.append((multicast, app))
            responses = [
                send_response(index % 2 == 0) for index in range(len(multicast.tokens))
            ]
            return SimpleNamespace(
                responses=responses,
                success_count=sum(r.success for r in responses),
                failure_count=sum(not r.success for r in responses),
            )

        monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

        outcome = await FcmPushProvider().send_multicast(MESSAGE)

        assert len(calls) == 1
        multicast, app = calls[0]
        assert app is FAKE_APP
        assert isinstance(multicast, messaging.MulticastMessage)
        assert multicast.tokens == list(MESSAGE.tokens)
        assert multicast.data == {"sosId": "sos-7"}
        assert multicast.notification.title == MESSAGE.title
        assert multicast.notification.body == MESSAGE.body
        assert [r.success for r in outcome.responses] == [True, False, True, False]
        assert [r.token for r in outcome.responses] == list(MESSAGE.tokens)

    @pytest.mark.asyncio
    async def test_failure_detail_kept_on_outcome(self, monkeypatch):
        error = exceptions.NotFoundError("Requested entity was not found.")

        def fake_send(multicast, app=None):
            return SimpleNamespace(
                responses=[send_response(True)] * 3 + [send_response(False, error)],
                success_count=3,
                failure_count=1,
            )

        monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

        outcome = await FcmPushProvider().send_multicast(MESSAGE)

        assert outcome.responses[3].success is False
        assert "NOT_FOUND" in outcome.responses[3].error

    @pytest.mark.asyncio
    async def test_misaligned_batch_raises(self, monkeypatch):
        def fake_send(multicast, app=None):
            return SimpleNamespace(responses=[send_response(True)], success_count=1, failure_count=0)

        monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

        with pytest.raises(PushProviderError):
            await FcmPushProvider().send_multicast(MESSAGE)

    @pytest.mark.asyncio
    async def test_sdk_error_propagates(self, monkeypatch):
        def fake_send(multicast, app=None):
            raise exceptions.UnavailableError("FCM backend unavailable")

        monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

        with pytest.raises(exceptions.UnavailableError):
            await FcmPushProvider().send_multicast(MESSAGE)


class TestFirebaseIdentityVerifier:
    def test_valid_token(self, monkeypatch):
        monkeypatch.setattr(
            real_providers.auth,
            "verify_id_token",
            lambda token, app=None: {"uid": "user-1", "email": "r@example.com"},
        )

        identity = FirebaseIdentityVerifier().identify("Bearer good-token")

        assert identity.is_authenticated
        assert identity.uid == "user-1"
        assert identity.claims["email"] == "r@example.com"

    def test_rejected_token(self, monkeypatch):
        def reject(token, app=None):
            raise ValueError("Token expired")

        monkeypatch.setattr(real_providers.auth, "verify_id_token", reject)

        identity = FirebaseIdentityVerifier().identify("Bearer stale-token")

        assert not identity.is_authenticated

    CASES = [
        ("missing", None),
        ("empty", ""),
        ("wrong_scheme", "Basic abc"),
        ("no_token", "Bearer "),
    ]

    @pytest.mark.parametrize("name,header", CASES)
    def test_no_bearer_token(self, monkeypatch, name, header):
        def must_not_call(token, app=None):
            raise AssertionError("verify_id_token called")

        monkeypatch.setattr(real_providers.auth, "verify_id_token", must_not_call)

        assert not FirebaseIdentityVerifier().identify(header).is_authenticated, f"Failed on {name}"


class TestIdentityVerificationOutages:
    """Failures to check a token are operator errors, not anonymous callers."""

    def test_expired_token_is_anonymous(self, monkeypatch):
        def expired(token, app=None):
            raise auth.ExpiredIdTokenError("Token expired", cause=None)

        monkeypatch.setattr(real_providers.auth, "verify_id_token", expired)

        assert not FirebaseIdentityVerifier().identify("Bearer old").is_authenticated

    def test_disabled_user_is_anonymous(self, monkeypatch):
        def disabled(token, app=None):
            raise auth.UserDisabledError("The user record is disabled.")

        monkeypatch.setattr(real_providers.auth, "verify_id_token", disabled)

        assert not FirebaseIdentityVerifier().identify("Bearer banned").is_authenticated

    def test_certificate_fetch_failure(self, monkeypatch, caplog):
        def unreachable(token, app=None):
            raise auth.CertificateFetchError("googleapis unreachable", cause=None)

        monkeypatch.setattr(real_providers.auth, "verify_id_token", unreachable)

        with caplog.at_level(logging.WARNING):
            with pytest.raises(InternalError) as exc_info:
                FirebaseIdentityVerifier().identify("Bearer valid-but-unverifiable")

        assert "googleapis" not in str(exc_info.value.detail)
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "googleapis unreachable" in errors[0].getMessage()
        assert errors[0].exc_info is not None

    def test_firebase_app_bootstrap_failure(self, monkeypatch, caplog):
        def no_credentials(path=None):
            raise ValueError("Invalid service account certificate")

        def must_not_call(token, app=None):
            raise AssertionError("verify_id_token called")

        monkeypatch.setattr(real_providers, "get_firebase_app", no_credentials)
        monkeypatch.setattr(real_providers.auth, "verify_id_token", must_not_call)

        with caplog.at_level(logging.WARNING):
            with pytest.raises(InternalError):
                FirebaseIdentityVerifier("/secrets/missing.json").identify("Bearer token")

        assert any(r.levelno == logging.ERROR for r in caplog.records)
