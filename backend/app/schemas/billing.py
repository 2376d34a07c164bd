"""Payment gateway request/response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from common.utils.json_model import JsonModel


class GatewayCustomer(BaseModel):
    name: str
    email: str
    phone: str | None = None


class GatewayLineItem(BaseModel):
    id: str
    name: str
    price: Decimal
    quantity: int = Field(1, ge=1)


class GatewayTransaction(JsonModel):
    """A hosted payment page issued by the gateway."""

    token: str = Field(..., description="Gateway-side transaction/session id")
    redirect_url: str = Field(..., description="URL the student follows to pay")
    expires_at: datetime | None = Field(None, description="When the hosted page stops accepting payment")
