# orderflow/domain/schemas.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional
from decimal import Decimal
from datetime import datetime


# Decimal in, JSON number out
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """External JSON is camelCase; snake_case is accepted as well."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Cart / checkout input
# ---------------------------------------------------------------------------
class CartItemIn(CamelModel):
    id: str = Field(..., min_length=1, description="Product id")
    name: str = ""
    price: Money = Field(..., ge=0, description="Live unit price supplied by the storefront")
    quantity: int = Field(..., gt=0)
    size: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None


class ShippingAddressIn(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    apartment: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class OrderRequest(CamelModel):
    """Cart payload shared by create-order, test payment and provider create calls.

    Everything is optional at the schema level; the services report missing
    pieces with their own messages.
    """

    order_number: Optional[str] = None
    items: Optional[List[CartItemIn]] = None
    shipping_address: Optional[ShippingAddressIn] = None
    subtotal: Optional[Money] = None
    shipping: Optional[Money] = None
    tax: Optional[Money] = None
    discount: Optional[Money] = None
    total: Optional[Money] = None
    discount_code: Optional[str] = None
    payment_method: Optional[str] = None
    payment_intent_id: Optional[str] = None
    shipping_method: Optional[str] = None


class CaptureRequest(CamelModel):
    provider_order_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("providerOrderId", "provider_order_id", "orderID"),
    )
    cart: Optional[OrderRequest] = None


# ---------------------------------------------------------------------------
# Order output
# ---------------------------------------------------------------------------
class OrderSummaryOut(CamelModel):
    id: int
    order_number: str
    status: str
    total: Money
    created_at: datetime


class OrderCreatedOut(CamelModel):
    success: bool = True
    order: OrderSummaryOut
    payment_intent_id: Optional[str] = None
    message: Optional[str] = None


class ProviderOrderOut(CamelModel):
    id: str
    approval_url: str


class CaptureOut(CamelModel):
    success: bool = True
    order_number: str
    payment_intent_id: Optional[str] = None
    total: Money


class CheckoutSessionOut(CamelModel):
    url: str
    order_number: str


class WebhookAck(CamelModel):
    received: bool = True


class OrderStatusUpdate(CamelModel):
    status: Optional[str] = None
    tracking_number: Optional[str] = None
    shipping_method: Optional[str] = None


class OrderStatusOut(CamelModel):
    id: int
    order_number: str
    status: str
    tracking_number: Optional[str] = None
    shipping_method: Optional[str] = None
    paid_at: Optional[datetime] = None


class OrderItemOut(CamelModel):
    id: int
    product_id: Optional[str] = None
    name: str
    price: Money
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None


class AddressOut(CamelModel):
    full_name: str
    street: str
    apartment: Optional[str] = None
    city: str
    province: Optional[str] = None
    postal_code: str
    country: str
    phone: Optional[str] = None


class OrderDetailOut(CamelModel):
    id: int
    order_number: str
    status: str
    subtotal: Money
    shipping: Money
    tax: Money
    discount: Money
    total: Money
    currency: str
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    payment_method: str
    payment_reference: Optional[str] = None
    discount_code: Optional[str] = None
    shipping_method: Optional[str] = None
    tracking_number: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItemOut]
    shipping_address: Optional[AddressOut] = None


# ---------------------------------------------------------------------------
# Pricing, discounts, shipping
# ---------------------------------------------------------------------------
class DiscountValidateIn(CamelModel):
    code: Optional[str] = None
    subtotal: Optional[Money] = None


class DiscountValidationOut(CamelModel):
    valid: bool
    code: Optional[str] = None
    type: Optional[str] = None
    discount_amount: Optional[Money] = None
    original_subtotal: Optional[Money] = None
    discounted_subtotal: Optional[Money] = None
    error: Optional[str] = None


class DiscountEcho(CamelModel):
    code: str
    type: str


class ShippingItemIn(CamelModel):
    category: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0)


class ShippingCalculationIn(CamelModel):
    items: Optional[List[ShippingItemIn]] = None
    zone: Optional[str] = None
    country_name: Optional[str] = None


class ShippingQuoteOut(CamelModel):
    cost: Money
    method: str
    estimated_days: Optional[str] = None


class QuoteIn(CamelModel):
    items: List[CartItemIn] = Field(..., min_length=1)
    zone: Optional[str] = None
    country: Optional[str] = None
    discount_code: Optional[str] = None


class QuoteOut(CamelModel):
    subtotal: Money
    discount: Money
    discount_code: Optional[DiscountEcho] = None
    shipping: ShippingQuoteOut
    tax: Money
    total: Money
