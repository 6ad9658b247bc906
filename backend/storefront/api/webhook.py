"""
WhatsApp Webhook Endpoints

Endpoints:
- GET  /webhook - Meta verification handshake
- POST /webhook - Inbound messages (text, buttons, catalog selections)

Author: TM3
Date: 2025-11-28
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from storefront.api.dependencies import get_app_settings, get_chat_bot_service, get_whatsapp_connector
from storefront.connectors.whatsapp_connector import WhatsAppConnector
from storefront.core.config import Settings
from storefront.services.chat_bot_service import ChatBotService

logger = logging.getLogger(__name__)

# ============================================================================
# ROUTER
# ============================================================================

router = APIRouter(prefix="/webhook", tags=["WhatsApp"])


# ============================================================================
# ENDPOINT: GET /webhook
# ============================================================================

@router.get("", response_class=PlainTextResponse)
async def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    settings: Settings = Depends(get_app_settings),
):
    """
    Subscription handshake: echo hub.challenge when the verify token matches
    """
    if mode == "subscribe" and settings.VERIFY_TOKEN and token == settings.VERIFY_TOKEN:
        logger.info("Webhook verified!")
        return PlainTextResponse(challenge or "")

    logger.warning("Webhook verification failed")
    raise HTTPException(status_code=403, detail="Verification failed")


# ============================================================================
# ENDPOINT: POST /webhook
# ============================================================================

@router.post("", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    bot: ChatBotService = Depends(get_chat_bot_service),
    whatsapp: WhatsAppConnector = Depends(get_whatsapp_connector),
):
    """
    Handle inbound WhatsApp messages

    Each message is handled in the threadpool (database work), then the
    reply is sent back through the Cloud API. Status callbacks carry no
    messages and are acknowledged as-is.
    """
    raw_body = await request.body()

    if not whatsapp.verify_signature(raw_body, request.headers.get("X-Hub-Signature-256")):
        logger.warning("Rejected webhook call with invalid signature")
        raise HTTPException(status_code=403, detail="Invalid signature")

    try:
        body = json.loads(raw_body or b"{}")
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    try:
        events = whatsapp.parse_webhook_payload(body)
    except Exception:
        logger.exception("Could not parse webhook payload")
        events = []

    # Signed calls are always acknowledged with 200; failures are logged per event
    for event in events:
        logger.info(f"Webhook event {event.kind} from {event.sender}")
        try:
            reply = await run_in_threadpool(bot.handle, event)
            if reply is not None:
                await whatsapp.send_reply(event.sender, reply)
        except Exception:
            logger.exception(f"Failed to handle {event.kind} from {event.sender}")

    return PlainTextResponse("OK")
