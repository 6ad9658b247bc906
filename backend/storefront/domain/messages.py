"""
Chat channel messages

Inbound events parsed from the WhatsApp webhook and the closed set of
outbound replies the chat bot can produce. Replies are rendered to the
Cloud API wire format by WhatsAppConnector, never here.

Author: TM3
Date: 2025-11-28
"""
from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union

from storefront.domain.product import MAX_DB_INT


# ============================================================================
# INBOUND EVENTS
# ============================================================================

class TextMessage(BaseModel):
    kind: Literal["text"] = "text"
    sender: str
    text: str


class ButtonReply(BaseModel):
    kind: Literal["button_reply"] = "button_reply"
    sender: str
    button_id: str
    title: Optional[str] = None


class CatalogItemSelected(BaseModel):
    """Customer tapped a single product in a product list"""
    kind: Literal["catalog_item"] = "catalog_item"
    sender: str
    retailer_id: str


class CatalogOrderItem(BaseModel):
    retailer_id: str
    quantity: int = Field(1, ge=1, le=MAX_DB_INT)


class CatalogOrder(BaseModel):
    """Customer sent a multi-item cart from the WhatsApp catalog"""
    kind: Literal["catalog_order"] = "catalog_order"
    sender: str
    items: List[CatalogOrderItem]


InboundEvent = Annotated[
    Union[TextMessage, ButtonReply, CatalogItemSelected, CatalogOrder],
    Field(discriminator="kind"),
]


# ============================================================================
# OUTBOUND REPLIES
# ============================================================================

class Button(BaseModel):
    id: str = Field(..., max_length=256)
    title: str = Field(..., max_length=20)


class TextReply(BaseModel):
    kind: Literal["text"] = "text"
    body: str


class ButtonMenuReply(BaseModel):
    kind: Literal["button_menu"] = "button_menu"
    body: str
    buttons: List[Button] = Field(..., min_length=1, max_length=3)
    footer: Optional[str] = None


class ProductListReply(BaseModel):
    kind: Literal["product_list"] = "product_list"
    header: str
    body: str
    section_title: str = "All Items"
    retailer_ids: List[str] = Field(..., min_length=1, max_length=30)
    footer: Optional[str] = None


OutboundReply = Annotated[
    Union[TextReply, ButtonMenuReply, ProductListReply],
    Field(discriminator="kind"),
]
