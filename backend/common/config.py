"""
Runtime settings

Reads the backend configuration from environment variables, after loading
backend/.env when present.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Mapping, Optional

from dotenv import load_dotenv

from .logging_config import Severity

ROOT_DIR = Path(__file__).resolve().parent.parent

MODES = {"prod", "demo", "test"}
PUSH_PROVIDERS = {"fcm", "expo"}
DEFAULT_PUSH_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class Settings:
    """Backend settings."""
    mode: str = "prod"
    environment: str = "development"
    log_level: Severity = Severity.DEBUG
    push_provider: str = "fcm"
    push_timeout_seconds: float = DEFAULT_PUSH_TIMEOUT_SECONDS
    expo_access_token: Optional[str] = None
    firebase_credentials: Optional[str] = None
    demo_auth_tokens: FrozenSet[str] = field(default_factory=lambda: frozenset({"demo-token"}))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_fakes(self) -> bool:
        return self.mode in {"demo", "test"}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read instead of os.environ (dotenv is skipped)

    Returns:
        Settings instance

    Raises:
        ValueError: If a variable has an unsupported value
    """
    if environ is None:
        load_dotenv(ROOT_DIR / ".env")
        environ = os.environ

    mode = environ.get("SAVIOUR_MODE", "prod").strip().lower()
    if mode not in MODES:
        raise ValueError(f"SAVIOUR_MODE must be one of {sorted(MODES)}, got {mode!r}")

    environment = environ.get("SAVIOUR_ENV", "development").strip().lower()

    # Production keeps warnings and errors only unless told otherwise
    default_level = "WARN" if environment == "production" else "DEBUG"
    log_level = Severity.parse(environ.get("LOG_LEVEL") or default_level)

    push_provider = environ.get("PUSH_PROVIDER", "fcm").strip().lower()
    if push_provider not in PUSH_PROVIDERS:
        raise ValueError(
            f"PUSH_PROVIDER must be one of {sorted(PUSH_PROVIDERS)}, got {push_provider!r}"
        )

    raw_timeout = environ.get("PUSH_TIMEOUT_SECONDS") or str(DEFAULT_PUSH_TIMEOUT_SECONDS)
    try:
        push_timeout_seconds = float(raw_timeout)
    except ValueError:
        raise ValueError(f"PUSH_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}") from None
    if push_timeout_seconds <= 0:
        raise ValueError("PUSH_TIMEOUT_SECONDS must be positive")

    demo_tokens = frozenset(
        token.strip()
        for token in environ.get("DEMO_AUTH_TOKENS", "demo-token").split(",")
        if token.strip()
    )

    return Settings(
        mode=mode,
        environment=environment,
        log_level=log_level,
        push_provider=push_provider,
        push_timeout_seconds=push_timeout_seconds,
        expo_access_token=environ.get("EXPO_ACCESS_TOKEN") or None,
        firebase_credentials=(
            environ.get("FIREBASE_CREDENTIALS")
            or environ.get("GOOGLE_APPLICATION_CREDENTIALS")
            or None
        ),
        demo_auth_tokens=demo_tokens,
    )
