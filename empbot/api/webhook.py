"""
LINE webhook endpoint.

The raw body is read unparsed so the signature can be computed over the
exact bytes that were sent. Store and messenger handles are created once
per process and resolved only after the method check, so a store that
cannot be opened still yields 405 or an empty 500.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from .schemas import WebhookAck, WebhookRequest
from ..core import config
from ..core.errors import SignatureError
from ..core.messaging import LineMessagingClient
from ..core.router import EventRouter
from ..core.signature import verify_signature
from ..core.store import DocumentStore
from ..util.logging import logger, sanitize_payload

router = APIRouter()

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

_store = None
_messenger = None

def get_store() -> DocumentStore:
    """Lazy initialization of the process-wide document store."""
    global _store
    if _store is None:
        _store = DocumentStore()
    return _store

def get_messenger() -> LineMessagingClient:
    """Lazy initialization of the process-wide LINE client."""
    global _messenger
    if _messenger is None:
        _messenger = LineMessagingClient()
    return _messenger

async def close_messenger():
    """Close the shared LINE client, if one was created."""
    global _messenger
    if _messenger is not None:
        await _messenger.aclose()
        _messenger = None

def _provide(request: Request, provider):
    # Honour app.dependency_overrides so tests can swap the shared handles
    return request.app.dependency_overrides.get(provider, provider)()

def build_event_router(request: Request) -> EventRouter:
    return EventRouter(store=_provide(request, get_store), messenger=_provide(request, get_messenger))

@router.api_route("/webhook", methods=ALL_METHODS)
async def line_webhook(request: Request):
    """Receive a batch of LINE events and reply to each text message."""
    if request.method != "POST":
        return Response(status_code=405)

    body = await request.body()
    signature = request.headers.get("x-line-signature")

    if config.signature_validation_enabled():
        try:
            verify_signature(config.LINE_CHANNEL_SECRET, body, signature)
        except SignatureError as e:
            logger.log_signature_check("rejected", str(e))
            return Response(status_code=400)
        logger.log_signature_check("validated")
    elif not signature:
        logger.debug("Webhook request without X-Line-Signature (validation disabled)")

    try:
        event_router = build_event_router(request)
        payload = WebhookRequest.model_validate_json(body)
        if config.debug_enabled():
            logger.debug(f"Webhook payload: {sanitize_payload(payload.model_dump(by_alias=True))}")
        await event_router.handle_batch(payload.events)
    except Exception as e:
        logger.error(f"Webhook Error: {type(e).__name__}: {e}")
        return Response(status_code=500)

    return JSONResponse(status_code=200, content=WebhookAck().model_dump())
