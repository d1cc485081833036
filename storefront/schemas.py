# storefront/schemas.py
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, EmailStr, Field, computed_field, field_validator

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_product_id(value: Union[int, str]) -> str:
    return str(value).strip()


# 🛒 Cart line
class CartItem(BaseModel):
    product_id: str = Field(validation_alias=AliasChoices("product_id", "id"))
    name: str
    unit_price: Decimal = Field(ge=0, validation_alias=AliasChoices("unit_price", "price"))
    quantity: int = Field(default=1, ge=1)
    image_url: Optional[str] = None
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    size: Optional[str] = None
    color: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _product_id(cls, v):
        return normalize_product_id(v) if v is not None else v

    @field_validator("unit_price")
    @classmethod
    def _unit_price(cls, v: Decimal) -> Decimal:
        return to_money(v)

    @computed_field
    @property
    def effective_price(self) -> Decimal:
        if self.discount_percentage > 0:
            return to_money(self.unit_price * (1 - self.discount_percentage / 100))
        return self.unit_price

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return to_money(self.effective_price * self.quantity)


# ❤️ Wishlist entry: id plus whatever was shown when it was saved
class WishlistItem(BaseModel):
    product_id: str = Field(validation_alias=AliasChoices("product_id", "id"))
    name: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0, validation_alias=AliasChoices("unit_price", "price"))
    image_url: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _product_id(cls, v):
        return normalize_product_id(v) if v is not None else v


# 📊 Cart summary (single response shape for /api/cart)
class CartSummary(BaseModel):
    items: List[CartItem]
    count: int
    total: Decimal


class WishlistSummary(BaseModel):
    items: List[WishlistItem]
    count: int


class QuantityUpdate(BaseModel):
    quantity: int


class CartReplace(BaseModel):
    items: List[CartItem]


# 🧾 Checkout
class CheckoutRequest(BaseModel):
    email: EmailStr
    address: str = Field(min_length=1)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    shipping_fee: Decimal = Field(default=Decimal("0"), ge=0)
    payment_reference: Optional[str] = None


class Order(BaseModel):
    id: Optional[Union[int, str]] = None
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: str
    items: List[CartItem]
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal
    status: str = "awaiting payment"
    payment_reference: Optional[str] = None
    created_at: datetime

    class Config:
        frozen = True


# ✉️ Notifications (fields optional so the handler can answer 400 itself)
class ReceiptEmailRequest(BaseModel):
    email: Optional[str] = None
    order: Optional[Dict[str, Any]] = None
    receipt_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("receiptUrl", "receipt_url"))


class OtpEmailRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[Union[str, int]] = None


# 💳 Payments
class PaymentVerifyRequest(BaseModel):
    reference: Optional[Any] = None
