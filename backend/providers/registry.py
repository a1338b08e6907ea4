from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from common.config import Settings, load_settings
from notifications.expo_push import ExpoPushProvider

from .contracts import IdentityVerifier, PushProvider
from .fake_providers import FakeIdentityVerifier, FakePushProvider
from .real_providers import FcmPushProvider, FirebaseIdentityVerifier


@dataclass
class ProviderSet:
    push: PushProvider
    identity: IdentityVerifier


def _build_prod(settings: Settings) -> ProviderSet:
    if settings.push_provider == "expo":
        push: PushProvider = ExpoPushProvider(
            access_token=settings.expo_access_token,
            timeout=settings.push_timeout_seconds,
        )
    else:
        push = FcmPushProvider(settings.firebase_credentials)
    return ProviderSet(
        push=push,
        identity=FirebaseIdentityVerifier(settings.firebase_credentials),
    )


def _build_fake(settings: Settings) -> ProviderSet:
    return ProviderSet(
        push=FakePushProvider(),
        identity=FakeIdentityVerifier(settings.demo_auth_tokens),
    )


_provider_cache: Optional[ProviderSet] = None


def load_providers(
    mode: Optional[str] = None, settings: Optional[Settings] = None
) -> ProviderSet:
    global _provider_cache
    if _provider_cache and mode is None and settings is None:
        return _provider_cache
    settings = settings or load_settings()
    active_mode = (mode or settings.mode).lower()
    if active_mode in {"demo", "test"}:
        _provider_cache = _build_fake(settings)
    else:
        _provider_cache = _build_prod(settings)
    return _provider_cache


def get_providers() -> ProviderSet:
    return load_providers()


def reload_providers(
    mode: Optional[str] = None, settings: Optional[Settings] = None
) -> ProviderSet:
    global _provider_cache
    _provider_cache = None
    return load_providers(mode, settings)
