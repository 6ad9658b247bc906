"""
WhatsApp Cloud API Connector
Handles all interactions with the WhatsApp Business Cloud API

Author: TM3
Date: 2025-11-28
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from storefront.domain.messages import (
    ButtonMenuReply,
    ButtonReply,
    CatalogItemSelected,
    CatalogOrder,
    CatalogOrderItem,
    ProductListReply,
    TextMessage,
    TextReply,
)

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com"


class WhatsAppConnector:
    """
    Connector for the WhatsApp Cloud API

    Handles:
    - Webhook signature verification (X-Hub-Signature-256)
    - Webhook payload parsing into inbound events
    - Rendering and sending outbound replies
    """

    def __init__(
        self,
        access_token: str = "",
        phone_number_id: str = "",
        api_version: str = "v19.0",
        app_secret: str = "",
        catalog_id: str = "",
        timeout: float = 10.0,
    ):
        """
        Initialize WhatsApp connector

        Args:
            access_token: Permanent or system-user access token
            phone_number_id: Business phone number ID that sends replies
            api_version: Graph API version (e.g., 'v19.0')
            app_secret: Meta app secret used to sign webhook calls (empty disables the check)
            catalog_id: Commerce catalog linked to the WhatsApp Business account
        """
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.app_secret = app_secret
        self.catalog_id = catalog_id
        self.timeout = timeout

        self.api_url = f"{GRAPH_API_URL}/{api_version}/{phone_number_id}/messages"
        self.headers = {
            'Authorization': f'Bearer {access_token}',
            'Content-Type': 'application/json',
        }

    # ========================================================================
    # Inbound
    # ========================================================================

    def verify_signature(self, raw_body: bytes, signature_header: Optional[str]) -> bool:
        """
        Verify the X-Hub-Signature-256 header of a webhook call

        Returns True when no app secret is configured.
        """
        if not self.app_secret:
            return True

        if not signature_header or not signature_header.startswith("sha256="):
            return False

        expected = hmac.new(
            self.app_secret.encode("utf-8"),
            raw_body,
            hashlib.sha256,
        ).hexdigest()

        return hmac.compare_digest(expected, signature_header[len("sha256="):])

    @staticmethod
    def parse_webhook_payload(body: Dict[str, Any]) -> List[Any]:
        """
        Extract inbound events from a webhook body

        Status callbacks (sent/delivered/read) and unsupported message types
        are skipped.

        Returns:
            List of TextMessage, ButtonReply, CatalogItemSelected or CatalogOrder
        """
        events = []
        if not isinstance(body, dict):
            return events

        for entry in body.get('entry') or []:
            for change in entry.get('changes') or []:
                value = change.get('value') or {}
                for message in value.get('messages') or []:
                    try:
                        event = WhatsAppConnector._parse_message(message)
                    except (ValidationError, ValueError, TypeError, AttributeError) as e:
                        logger.warning(f"Skipping malformed WhatsApp message: {e}")
                        continue
                    if event is not None:
                        events.append(event)

        return events

    @staticmethod
    def _parse_message(message: Dict[str, Any]):
        sender = message.get('from')
        msg_type = message.get('type')
        if not sender:
            return None

        if msg_type == 'text':
            return TextMessage(sender=sender, text=message.get('text', {}).get('body', ''))

        if msg_type == 'button':
            # Quick-reply button on a template message
            button = message.get('button', {})
            return ButtonReply(sender=sender, button_id=button.get('payload', ''), title=button.get('text'))

        if msg_type == 'interactive':
            interactive = message.get('interactive', {})
            kind = interactive.get('type')

            if kind in ('button_reply', 'list_reply'):
                reply = interactive.get(kind, {})
                return ButtonReply(sender=sender, button_id=reply.get('id', ''), title=reply.get('title'))

            if kind == 'product_action':
                retailer_id = interactive.get('product_action', {}).get('product_retailer_id')
                if retailer_id:
                    return CatalogItemSelected(sender=sender, retailer_id=str(retailer_id))

        if msg_type == 'order':
            items = []
            for item in message.get('order', {}).get('product_items', []):
                if not item.get('product_retailer_id'):
                    continue
                try:
                    items.append(CatalogOrderItem(
                        retailer_id=str(item['product_retailer_id']),
                        quantity=int(item.get('quantity', 1)),
                    ))
                except (ValidationError, ValueError, TypeError) as e:
                    logger.warning(f"Skipping order item {item.get('product_retailer_id')} from {sender}: {e}")
            if items:
                return CatalogOrder(sender=sender, items=items)

        logger.debug(f"Skipping WhatsApp message type {msg_type} from {sender}")
        return None

    # ========================================================================
    # Outbound
    # ========================================================================

    def render_reply(self, to: str, reply) -> Dict[str, Any]:
        """Build the Cloud API /messages body for a reply"""
        payload: Dict[str, Any] = {
            'messaging_product': 'whatsapp',
            'recipient_type': 'individual',
            'to': to,
        }

        if isinstance(reply, TextReply):
            payload['type'] = 'text'
            payload['text'] = {'body': reply.body}

        elif isinstance(reply, ButtonMenuReply):
            interactive = {
                'type': 'button',
                'body': {'text': reply.body},
                'action': {
                    'buttons': [
                        {'type': 'reply', 'reply': {'id': b.id, 'title': b.title}}
                        for b in reply.buttons
                    ]
                },
            }
            if reply.footer:
                interactive['footer'] = {'text': reply.footer}
            payload['type'] = 'interactive'
            payload['interactive'] = interactive

        elif isinstance(reply, ProductListReply):
            interactive = {
                'type': 'product_list',
                'header': {'type': 'text', 'text': reply.header},
                'body': {'text': reply.body},
                'action': {
                    'catalog_id': self.catalog_id,
                    'sections': [{
                        'title': reply.section_title,
                        'product_items': [{'product_retailer_id': rid} for rid in reply.retailer_ids],
                    }],
                },
            }
            if reply.footer:
                interactive['footer'] = {'text': reply.footer}
            payload['type'] = 'interactive'
            payload['interactive'] = interactive

        else:
            raise TypeError(f"Unsupported reply type: {type(reply).__name__}")

        return payload

    async def send_reply(self, to: str, reply) -> bool:
        """
        Send a reply to a WhatsApp user

        Delivery failures are logged and reported as False; the webhook
        must still acknowledge the inbound call.
        """
        payload = self.render_reply(to, reply)

        if isinstance(reply, ProductListReply) and not self.catalog_id:
            logger.warning("WHATSAPP_CATALOG_ID not configured, product list will be rejected")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers=self.headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()

            logger.info(f"Message sent to {to} ({payload['type']})")
            return True

        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to send message to {to}: {e.response.status_code} {e.response.text}")
            return False

        except httpx.HTTPError as e:
            logger.error(f"Failed to send message to {to}: {e}")
            return False
