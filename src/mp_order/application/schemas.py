# src/mp_order/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.mp_common.enums import PaymentMethod
from src.mp_order.domain.models import CustomerInfo, Order, OrderItem


class _CamelModel(BaseModel):
    """Storefront payloads are camelCase; snake_case is accepted too."""

    model_config = ConfigDict(populate_by_name=True)


class CartLine(_CamelModel):
    id: str = Field(min_length=1)
    name: str
    price: int = Field(ge=0, description="Unit price quoted to the buyer, whole XAF")
    quantity: int = Field(gt=0)
    image: str | None = None


class CustomerInfoIn(_CamelModel):
    name: str
    phone: str = ""
    address: str = ""
    city: str = ""
    email: str | None = None
    whatsapp: str | None = None

    @field_validator("name", "phone", "address", "city")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()

    def to_domain(self) -> CustomerInfo:
        return CustomerInfo(
            name=self.name,
            phone=self.phone,
            address=self.address,
            city=self.city,
            email=self.email or None,
            whatsapp=self.whatsapp or None,
        )


class CheckoutRequest(_CamelModel):
    """Hosted checkout (card / PayPal)."""

    items: list[CartLine]
    customer_info: CustomerInfoIn = Field(alias="customerInfo")
    payment_method: PaymentMethod = Field(PaymentMethod.CARD, alias="paymentMethod")


class ManualOrderRequest(_CamelModel):
    """Manual rail (mobile money / crypto) with the buyer's transaction reference."""

    items: list[CartLine]
    customer_info: CustomerInfoIn = Field(alias="customerInfo")
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    # Optional here so a missing reference surfaces as the domain error, not a 422 from pydantic
    payment_reference: str | None = Field(None, alias="paymentReference")


class OrderRefResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    checkout_url: str | None = None
    verification_message: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    product_image: str | None
    vendor_id: str
    unit_price: int
    quantity: int
    line_total: int

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            product_id=item.product_id,
            product_name=item.product_name,
            product_image=item.product_image,
            vendor_id=item.vendor_id,
            unit_price=item.unit_price,
            quantity=item.quantity,
            line_total=item.line_total,
        )


class CustomerResponse(BaseModel):
    name: str
    phone: str
    address: str
    city: str
    email: str | None
    whatsapp: str | None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    buyer_id: str | None
    vendor_id: str
    status: str
    payment_status: str
    payment_method: str
    payment_reference: str | None
    checkout_url: str | None
    subtotal: int
    total: int
    currency: str
    customer: CustomerResponse
    items: list[OrderItemResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        c = order.customer
        return cls(
            id=order.id,
            order_number=order.order_number,
            buyer_id=order.buyer_id,
            vendor_id=order.vendor_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method.value,
            payment_reference=order.payment_reference,
            checkout_url=order.checkout_url,
            subtotal=order.subtotal,
            total=order.total,
            currency=order.currency,
            customer=CustomerResponse(
                name=c.name, phone=c.phone, address=c.address, city=c.city,
                email=c.email, whatsapp=c.whatsapp,
            ),
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool
