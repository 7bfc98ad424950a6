from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

PRICE_ID = r"^price_[A-Za-z0-9]+$"
PRODUCT_ID = r"^prod_[A-Za-z0-9]+$"
EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

class _Wire(BaseModel):
    # camelCase on the wire, snake_case in code
    model_config = ConfigDict(populate_by_name=True)

class CartItem(_Wire):
    price_id: str = Field(..., alias="priceId", pattern=PRICE_ID)
    product_id: str = Field(..., alias="productId", pattern=PRODUCT_ID)
    quantity: int = Field(..., ge=1, le=20)

class CheckoutCreateRequest(_Wire):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")  # reject unknown fields

    items: List[CartItem] = Field(..., min_length=1, max_length=50)
    customer_email: Optional[str] = Field(default=None, alias="customerEmail", pattern=EMAIL)
    metadata: Optional[Dict[str, str]] = None

class CheckoutCreateResponse(_Wire):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    session_id: str = Field(..., alias="sessionId")
    url: str = Field(..., pattern=r"^https?://")

class LineItemSummary(_Wire):
    id: str
    quantity: int = 0
    name: str
    unit_amount: int = Field(0, alias="unitAmount")
    currency: str

class CheckoutSummary(_Wire):
    session_id: str = Field(..., alias="sessionId")
    status: str
    amount_total: int = Field(0, alias="amountTotal")
    currency: str
    display_total: str = Field(..., alias="displayTotal")
    line_items: List[LineItemSummary] = Field(default_factory=list, alias="lineItems")
