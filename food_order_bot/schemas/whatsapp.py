"""
WhatsApp Schemas for Food Order Bot
===================================

The webhook itself takes the transport's form fields (From, Body,
ButtonPayload, MessageSid) and answers plain text, so only the
flow-start endpoint has JSON models.
"""

from pydantic import BaseModel, Field


class StartOrderRequest(BaseModel):
    """Request body for POST /whatsapp/start-order."""
    phone: str = Field(..., min_length=1, description="Customer phone, 10 digits or with country code")


class StartOrderResponse(BaseModel):
    success: bool
    message: str
