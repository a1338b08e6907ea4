from fastapi import FastAPI, APIRouter, Header, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
import asyncio
import json
from dataclasses import replace
from typing import Any, Optional

from common.config import Settings, load_settings
from common.errors import DispatchError
from common.logging_config import configure_logging
from notifications import SOSDispatchService
from providers import get_providers, reload_providers

settings: Settings = load_settings()

# Set up logging
logger = configure_logging(settings.log_level)

# Create the main app
app = FastAPI(title="Saviour Backend")

# Create routers
api_router = APIRouter(prefix="/api")
callable_router = APIRouter()

_dispatch_service_instance: Optional[SOSDispatchService] = None


def get_dispatch_service() -> SOSDispatchService:
    """Get or create the SOSDispatchService instance."""
    global _dispatch_service_instance
    if _dispatch_service_instance is None:
        _dispatch_service_instance = SOSDispatchService(
            provider=get_providers().push,
            timeout_seconds=settings.push_timeout_seconds,
            log=logger,
        )
    return _dispatch_service_instance


def reset_dispatch_service(mode: Optional[str] = None, new_settings: Optional[Settings] = None):
    """Drop cached providers and service (used when settings change)."""
    global _dispatch_service_instance, settings
    if new_settings is not None:
        settings = new_settings
    if mode is not None:
        settings = replace(settings, mode=mode.lower())
    _dispatch_service_instance = None
    reload_providers(settings=settings)


async def _read_json(request: Request) -> Any:
    """Decode the body without validating it; a bad body becomes None."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


async def _dispatch(authorization: Optional[str], payload: Any):
    # Token checks may fetch certificates over HTTP, keep them off the event loop
    identity = await asyncio.to_thread(get_providers().identity.identify, authorization)
    return await get_dispatch_service().dispatch(identity, payload)


# ==================== SOS Notification Endpoints ====================

@api_router.post("/notifications/sos")
async def send_sos_notification(
    request: Request,
    authorization: Optional[str] = Header(None),
):
    """Send an SOS push notification to a list of device tokens."""
    payload = await _read_json(request)
    result = await _dispatch(authorization, payload)
    return result.to_dict()


@callable_router.post("/sendSOSNotification")
async def send_sos_notification_callable(
    request: Request,
    authorization: Optional[str] = Header(None),
):
    """Same operation, spoken in the Firebase callable protocol ({data} -> {result})."""
    body = await _read_json(request)
    payload = body.get("data") if isinstance(body, dict) else None
    try:
        result = await _dispatch(authorization, payload)
    except DispatchError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": {"status": e.kind.callable_status, "message": e.message}},
        )
    return {"result": result.to_dict()}


@api_router.get("/health")
async def health():
    return {
        "status": "ok",
        "mode": settings.mode,
        "push_provider": "fake" if settings.uses_fakes else settings.push_provider,
    }


# Add CORS middleware first, before including router
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers in the main app
app.include_router(api_router)
app.include_router(callable_router)
