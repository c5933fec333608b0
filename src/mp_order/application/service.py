# src/mp_order/application/service.py
"""Order Intake: turns a cart into a persisted order and a payment path.

Input is validated before anything is written, so a rejected checkout leaves
no trace. The order row is committed before the gateway is contacted: if the
hosted session cannot be created the order survives and the buyer retries
payment for the same order id.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import (
    OrderStatus,
    PaymentChannel,
    PaymentMethod,
    PaymentStatus,
)
from src.mp_common.errors import (
    EmptyCartError,
    FieldTooLongError,
    ForbiddenError,
    InternalError,
    MissingCustomerFieldError,
    MissingPaymentReferenceError,
    MixedVendorCartError,
    OrderNotFoundError,
    PriceChangedError,
    ProductWithoutVendorError,
    TransitionConflictError,
    UnknownProductError,
    ValidationError,
)
from src.mp_common.id_generator import generate_id, make_order_number
from src.mp_gateway.auth.actor import Actor
from src.mp_order.application.schemas import (
    CartLine,
    CheckoutRequest,
    CustomerInfoIn,
    ManualOrderRequest,
    OrderListResponse,
    OrderRefResponse,
    OrderResponse,
)
from src.mp_order.domain.models import CustomerInfo, Order, OrderItem
from src.mp_order.domain.repository import (
    CatalogLookupProtocol,
    OrderRepositoryProtocol,
)
from src.mp_order.infrastructure.catalog import CatalogLookup
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.application.service import PaymentService, get_payment_service
from src.mp_payment.domain.normalize import VERIFICATION_MESSAGES, manual_outcome
from src.mp_settlement.domain.invariants import check_order

logger = logging.getLogger(__name__)

_RETRYABLE_PAYMENT = frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED})

# column widths of the orders table
CUSTOMER_FIELD_LIMITS = {"name": 200, "phone": 50, "city": 100, "email": 255, "whatsapp": 50}
PAYMENT_REFERENCE_LIMIT = 255


def validate_cart(cart: list[CartLine]) -> None:
    if not cart:
        raise EmptyCartError()


def validate_customer(customer: CustomerInfo) -> None:
    for field in ("phone", "address", "city"):
        if not getattr(customer, field):
            raise MissingCustomerFieldError(field)
    for field, limit in CUSTOMER_FIELD_LIMITS.items():
        if len(getattr(customer, field) or "") > limit:
            raise FieldTooLongError(f"Customer {field}", limit)


def _to_ref(order: Order, verification_message: str | None = None) -> OrderRefResponse:
    return OrderRefResponse(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status.value,
        payment_status=order.payment_status.value,
        checkout_url=order.checkout_url,
        verification_message=verification_message,
    )


def _can_read(order: Order, actor: Actor) -> bool:
    return actor.is_admin or (order.buyer_id is not None and order.buyer_id == actor.id)


class OrderIntakeService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        catalog: CatalogLookupProtocol | None = None,
        payments: PaymentService | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._catalog: CatalogLookupProtocol = catalog or CatalogLookup()
        self._payments = payments

    @property
    def payments(self) -> PaymentService:
        return self._payments or get_payment_service()

    # ------------------------------------------------------------------
    # createOrder
    # ------------------------------------------------------------------

    async def create_order(
        self,
        cart: list[CartLine],
        customer: CustomerInfoIn,
        payment_method: PaymentMethod,
        actor: Actor | None,
        db: AsyncSession,
        payment_reference: str | None = None,
    ) -> Order:
        """Validate, snapshot and persist a new order (committed on return)."""
        validate_cart(cart)
        info = customer.to_domain()
        validate_customer(info)
        reference = (payment_reference or "").strip()
        if payment_method.channel == PaymentChannel.MANUAL and not reference:
            raise MissingPaymentReferenceError()
        if len(reference) > PAYMENT_REFERENCE_LIMIT:
            raise FieldTooLongError("Transaction reference", PAYMENT_REFERENCE_LIMIT)

        products = await self._catalog.get_products([line.id for line in cart], db)
        vendor_ids: set[str] = set()
        for line in cart:
            product = products.get(line.id)
            if product is None:
                raise UnknownProductError(line.id)
            if not product.vendor_id:
                raise ProductWithoutVendorError(line.id)
            if product.price != line.price:
                raise PriceChangedError(line.id, line.price, product.price)
            vendor_ids.add(product.vendor_id)
        if len(vendor_ids) > 1:
            raise MixedVendorCartError(list(vendor_ids))

        order_id = generate_id()
        now = utc_now()
        items = [
            OrderItem(
                order_id=order_id,
                product_id=line.id,
                product_name=products[line.id].name,
                product_image=products[line.id].image_url or line.image,
                vendor_id=products[line.id].vendor_id,
                unit_price=products[line.id].price,
                quantity=line.quantity,
            )
            for line in cart
        ]
        subtotal = sum(item.line_total for item in items)
        manual = payment_method.channel == PaymentChannel.MANUAL
        order = Order(
            id=order_id,
            order_number=make_order_number(order_id, now),
            vendor_id=vendor_ids.pop(),
            customer=info,
            payment_method=payment_method,
            items=items,
            buyer_id=actor.id if actor is not None else None,
            status=OrderStatus.PENDING,
            payment_status=(
                PaymentStatus.PENDING_VERIFICATION if manual else PaymentStatus.PENDING
            ),
            payment_reference=(
                manual_outcome(order_id, reference).gateway_reference if manual else None
            ),
            subtotal=subtotal,
            total=subtotal,
            currency=settings.CURRENCY,
            created_at=now,
            updated_at=now,
        )
        if check_order(order):
            raise InternalError(f"Refusing to persist inconsistent order {order_id}")

        try:
            await self._repo.save(order, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order %s created: vendor=%s total=%d %s method=%s buyer=%s",
            order.id, order.vendor_id, order.total, order.currency,
            payment_method.value, order.buyer_id or "guest",
        )
        return order

    async def checkout(
        self, req: CheckoutRequest, actor: Actor | None, db: AsyncSession
    ) -> OrderRefResponse:
        """Hosted path: persist the order, then redirect the buyer to the gateway."""
        if req.payment_method.channel != PaymentChannel.HOSTED:
            raise ValidationError(
                f"{req.payment_method.value} is a manual rail; submit it with a reference"
            )
        order = await self.create_order(req.items, req.customer_info, req.payment_method, actor, db)
        await self.payments.open_checkout_session(order, db)
        return _to_ref(order)

    async def submit_manual(
        self, req: ManualOrderRequest, actor: Actor | None, db: AsyncSession
    ) -> OrderRefResponse:
        """Manual path: the order waits in pending_verification for an admin."""
        if req.payment_method.channel != PaymentChannel.MANUAL:
            raise ValidationError(
                f"{req.payment_method.value} is paid through hosted checkout"
            )
        order = await self.create_order(
            req.items, req.customer_info, req.payment_method, actor, db,
            payment_reference=req.payment_reference,
        )
        return _to_ref(order, VERIFICATION_MESSAGES.get(order.payment_method))

    async def retry_checkout(
        self, order_id: str, actor: Actor | None, db: AsyncSession
    ) -> OrderRefResponse:
        """Open a fresh hosted session for an order whose payment never went through."""
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.buyer_id is not None and (
            actor is None or (actor.id != order.buyer_id and not actor.is_admin)
        ):
            raise ForbiddenError("Order belongs to another buyer")
        if order.channel != PaymentChannel.HOSTED:
            raise ValidationError("Manual-rail orders have no checkout session")
        if order.status != OrderStatus.PENDING or order.payment_status not in _RETRYABLE_PAYMENT:
            raise TransitionConflictError(
                order_id,
                f"payment cannot be retried in state "
                f"{order.status.value}/{order.payment_status.value}",
            )
        await self.payments.open_checkout_session(order, db)
        return _to_ref(order)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_order(self, order_id: str, actor: Actor, db: AsyncSession) -> OrderResponse:
        order = await self.get_readable(order_id, actor, db)
        return OrderResponse.from_domain(order)

    async def get_readable(self, order_id: str, actor: Actor, db: AsyncSession) -> Order:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not _can_read(order, actor):
            raise ForbiddenError("Order belongs to another buyer")
        return order

    async def list_my_orders(
        self, actor: Actor, limit: int, cursor: str | None, db: AsyncSession
    ) -> OrderListResponse:
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        orders = await self._repo.list_by_buyer(actor.id, limit + 1, cursor, db)
        has_more = len(orders) > limit
        if has_more:
            orders = orders[:limit]
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in orders],
            next_cursor=orders[-1].id if has_more else None,
            has_more=has_more,
        )


_service: OrderIntakeService | None = None


def get_order_service() -> OrderIntakeService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = OrderIntakeService()
    return _service
