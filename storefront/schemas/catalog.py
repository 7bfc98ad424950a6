from __future__ import annotations
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator

class Price(BaseModel):
    id: str
    unit_amount: Optional[int] = None
    currency: str

class Product(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    default_price: Optional[Price] = None

    @field_validator("images", mode="before")
    @classmethod
    def _images_default(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("default_price", mode="before")
    @classmethod
    def _unexpanded_price(cls, v: Any) -> Any:
        # an unexpanded price is just its id; treat it as missing
        return None if isinstance(v, str) else v

class ProductOut(Product):
    display_price: Optional[str] = None

class ProductList(BaseModel):
    count: int
    products: List[ProductOut]
