# module backend.checkout.schemas
"""
Contrats de requête typés du tunnel de commande.
Les corps JSON sont validés ici, à la frontière HTTP, avant d'atteindre le moteur de prix.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from .pricing import coerce_quantity, to_money


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class CartItemIn(BaseModel):
    """Ligne de panier envoyée par le front; le prix n'est qu'indicatif."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    name: Optional[str] = ""
    price: Optional[Decimal] = None
    qty: int = Field(default=1, validation_alias=AliasChoices("qty", "quantity"))
    thumb: Optional[str] = None

    @field_validator("qty", mode="before")
    def quantity_at_least_one(cls, v):
        return coerce_quantity(v)

    @field_validator("price", mode="before")
    def claimed_price(cls, v):
        return to_money(v)


class AddressIn(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    def empty_email(cls, v):
        return _blank_to_none(v)


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: Optional[List[CartItemIn]] = None
    address: Optional[AddressIn] = None
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    def empty_email(cls, v):
        return _blank_to_none(v)


class VerifyPaymentRequest(BaseModel):
    """Retour du widget Razorpay (noms génériques ou noms Razorpay acceptés)."""
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    order_id: str = Field(min_length=1, validation_alias=AliasChoices("orderId", "order_id"))
    gateway_order_ref: str = Field(
        min_length=1,
        validation_alias=AliasChoices("gatewayOrderRef", "razorpayOrderId", "razorpay_order_id"),
    )
    gateway_payment_ref: str = Field(
        min_length=1,
        validation_alias=AliasChoices("gatewayPaymentRef", "razorpayPaymentId", "razorpay_payment_id"),
    )
    gateway_signature: str = Field(
        min_length=1,
        validation_alias=AliasChoices("gatewaySignature", "razorpaySignature", "razorpay_signature"),
    )
