"""Unit tests for OrderIntakeService with in-memory store, fake catalog and gateway."""
from unittest.mock import AsyncMock

import pytest

from src.mp_common.enums import ActorRole, OrderStatus, PaymentMethod, PaymentStatus
from src.mp_common.errors import (
    CheckoutTimeoutError,
    EmptyCartError,
    FieldTooLongError,
    ForbiddenError,
    MissingCustomerFieldError,
    MissingPaymentReferenceError,
    MixedVendorCartError,
    OrderNotFoundError,
    PaymentChannelError,
    PriceChangedError,
    ProductWithoutVendorError,
    TransitionConflictError,
    UnknownProductError,
    ValidationError,
)
from src.mp_gateway.auth.actor import Actor
from src.mp_order.application.schemas import (
    CartLine,
    CheckoutRequest,
    CustomerInfoIn,
    ManualOrderRequest,
)
from src.mp_order.application.service import OrderIntakeService
from src.mp_order.domain.repository import CatalogProduct
from src.mp_payment.application.service import PaymentService
from src.mp_payment.gateway.fake_adapter import FakeGateway
from tests.fakes import FakeCatalog, InMemoryOrderRepository, make_order

BUYER = Actor(id="buyer-1", role=ActorRole.BUYER)
OTHER = Actor(id="buyer-2", role=ActorRole.BUYER)
ADMIN = Actor(id="admin-1", role=ActorRole.ADMIN)

CUSTOMER = CustomerInfoIn(
    name="Awa Ndongo", phone="+237690000000", address="Rue 1.234", city="Douala",
    email="awa@example.com",
)


def _catalog() -> FakeCatalog:
    return FakeCatalog(
        CatalogProduct(id="prod-1", name="Wax print dress", price=100000, vendor_id="vendor-1"),
        CatalogProduct(id="prod-2", name="Head wrap", price=7500, vendor_id="vendor-1",
                       image_url="https://cdn.example/wrap.jpg"),
        CatalogProduct(id="prod-3", name="Sandals", price=15000, vendor_id="vendor-2"),
        CatalogProduct(id="orphan", name="Orphan", price=100, vendor_id=None),
    )


def _cart(*lines: tuple[str, int, int]) -> list[CartLine]:
    return [CartLine(id=pid, name=pid, price=price, quantity=qty) for pid, price, qty in lines]


def _service(
    repo: InMemoryOrderRepository | None = None,
    gateway: FakeGateway | None = None,
    timeout_s: float = 1.0,
) -> tuple[OrderIntakeService, InMemoryOrderRepository, FakeGateway]:
    repo = repo or InMemoryOrderRepository()
    gateway = gateway or FakeGateway()
    payments = PaymentService(gateway=gateway, engine=AsyncMock(), repo=repo, timeout_s=timeout_s)
    return OrderIntakeService(repo=repo, catalog=_catalog(), payments=payments), repo, gateway


class TestCreateOrderValidation:
    @pytest.mark.asyncio
    async def test_empty_cart(self) -> None:
        svc, repo, _ = _service()
        with pytest.raises(EmptyCartError):
            await svc.create_order([], CUSTOMER, PaymentMethod.CARD, None, AsyncMock())
        assert repo.orders == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["phone", "address", "city"])
    async def test_missing_customer_field(self, field: str) -> None:
        svc, repo, _ = _service()
        customer = CUSTOMER.model_copy(update={field: ""})
        with pytest.raises(MissingCustomerFieldError, match=field):
            await svc.create_order(
                _cart(("prod-1", 100000, 1)), customer, PaymentMethod.CARD, None, AsyncMock()
            )
        assert repo.orders == {}

    @pytest.mark.asyncio
    async def test_email_optional_for_guest_manual(self) -> None:
        svc, repo, _ = _service()
        customer = CUSTOMER.model_copy(update={"email": None})
        order = await svc.create_order(
            _cart(("prod-1", 100000, 1)), customer, PaymentMethod.ORANGE_MONEY, None,
            AsyncMock(), payment_reference="OM-778812",
        )
        assert order.customer.email is None
        assert order.is_guest

    @pytest.mark.asyncio
    async def test_scenario_b_manual_without_reference(self) -> None:
        svc, repo, _ = _service()
        db = AsyncMock()
        with pytest.raises(MissingPaymentReferenceError) as exc_info:
            await svc.create_order(
                _cart(("prod-1", 100000, 1)), CUSTOMER, PaymentMethod.MTN_MOMO, BUYER, db,
                payment_reference="   ",
            )
        assert isinstance(exc_info.value, ValidationError)
        assert repo.orders == {}
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_overlong_reference_rejected_before_write(self) -> None:
        svc, repo, _ = _service()
        db = AsyncMock()
        with pytest.raises(FieldTooLongError, match="at most 255"):
            await svc.create_order(
                _cart(("prod-1", 100000, 1)), CUSTOMER, PaymentMethod.ORANGE_MONEY, BUYER, db,
                payment_reference="R" * 300,
            )
        assert repo.orders == {}
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("field", "limit"), [("name", 200), ("phone", 50), ("city", 100)])
    async def test_overlong_customer_field_rejected(self, field: str, limit: int) -> None:
        svc, repo, _ = _service()
        customer = CUSTOMER.model_copy(update={field: "x" * (limit + 1)})
        with pytest.raises(FieldTooLongError) as exc_info:
            await svc.create_order(
                _cart(("prod-1", 100000, 1)), customer, PaymentMethod.CARD, None, AsyncMock()
            )
        assert exc_info.value.code == 2008
        assert repo.orders == {}

    @pytest.mark.asyncio
    async def test_reference_at_limit_accepted(self) -> None:
        svc, repo, _ = _service()
        order = await svc.create_order(
            _cart(("prod-1", 100000, 1)), CUSTOMER, PaymentMethod.BINANCE, None, AsyncMock(),
            payment_reference="R" * 255,
        )
        assert repo.orders[order.id].payment_reference == "R" * 255

    @pytest.mark.asyncio
    async def test_unknown_product(self) -> None:
        svc, _, _ = _service()
        with pytest.raises(UnknownProductError):
            await svc.create_order(
                _cart(("ghost", 1, 1)), CUSTOMER, PaymentMethod.CARD, None, AsyncMock()
            )

    @pytest.mark.asyncio
    async def test_product_without_vendor(self) -> None:
        svc, _, _ = _service()
        with pytest.raises(ProductWithoutVendorError):
            await svc.create_order(
                _cart(("orphan", 100, 1)), CUSTOMER, PaymentMethod.CARD, None, AsyncMock()
            )

    @pytest.mark.asyncio
    async def test_mixed_vendor_cart(self) -> None:
        svc, repo, _ = _service()
        with pytest.raises(MixedVendorCartError, match="vendor-1, vendor-2"):
            await svc.create_order(
                _cart(("prod-1", 100000, 1), ("prod-3", 15000, 1)),
                CUSTOMER, PaymentMethod.CARD, None, AsyncMock(),
            )
        assert repo.orders == {}

    @pytest.mark.asyncio
    async def test_stale_price(self) -> None:
        svc, _, _ = _service()
        with pytest.raises(PriceChangedError, match="quoted 90000, current 100000"):
            await svc.create_order(
                _cart(("prod-1", 90000, 1)), CUSTOMER, PaymentMethod.CARD, None, AsyncMock()
            )


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_snapshots_lines_and_totals(self) -> None:
        svc, repo, _ = _service()
        db = AsyncMock()
        order = await svc.create_order(
            _cart(("prod-1", 100000, 2), ("prod-2", 7500, 3)),
            CUSTOMER, PaymentMethod.CARD, BUYER, db,
        )

        stored = repo.orders[order.id]
        assert stored.subtotal == stored.total == 222500
        assert stored.vendor_id == "vendor-1"
        assert stored.buyer_id == "buyer-1"
        assert (stored.status, stored.payment_status) == (OrderStatus.PENDING, PaymentStatus.PENDING)
        assert [(i.product_name, i.line_total) for i in stored.items] == [
            ("Wax print dress", 200000),
            ("Head wrap", 22500),
        ]
        assert stored.items[1].product_image == "https://cdn.example/wrap.jpg"
        assert stored.order_number.startswith("ORD-")
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_manual_order_awaits_verification(self) -> None:
        svc, repo, _ = _service()
        order = await svc.create_order(
            _cart(("prod-1", 100000, 1)), CUSTOMER, PaymentMethod.BINANCE, BUYER, AsyncMock(),
            payment_reference=" TX-0xabc ",
        )
        stored = repo.orders[order.id]
        assert stored.payment_status == PaymentStatus.PENDING_VERIFICATION
        assert stored.payment_reference == "TX-0xabc"


class TestCheckout:
    @pytest.mark.asyncio
    async def test_hosted_checkout_returns_redirect(self) -> None:
        svc, repo, gateway = _service()
        req = CheckoutRequest(
            items=_cart(("prod-1", 100000, 2)), customerInfo=CUSTOMER, paymentMethod="card"
        )
        ref = await svc.checkout(req, None, AsyncMock())

        assert ref.checkout_url is not None
        assert ref.checkout_url.startswith("https://checkout.fake.local/pay/cs_fake_")
        assert (ref.status, ref.payment_status) == ("pending", "pending")
        stored = repo.orders[ref.order_id]
        assert stored.checkout_attempts == 1
        assert stored.payment_reference.startswith("cs_fake_")
        request = gateway.calls[0]
        assert request.order_id == ref.order_id
        assert request.idempotency_key == f"checkout-{ref.order_id}-0"
        assert request.lines[0].unit_amount == 100000

    @pytest.mark.asyncio
    async def test_gateway_failure_keeps_order(self) -> None:
        gateway = FakeGateway()
        gateway.configure(should_succeed=False)
        svc, repo, _ = _service(gateway=gateway)
        req = CheckoutRequest(
            items=_cart(("prod-1", 100000, 1)), customerInfo=CUSTOMER, paymentMethod="paypal"
        )
        with pytest.raises(PaymentChannelError) as exc_info:
            await svc.checkout(req, BUYER, AsyncMock())

        order_id = exc_info.value.order_id
        assert exc_info.value.data == {"order_id": order_id}
        stored = repo.orders[order_id]
        assert (stored.status, stored.payment_status) == (OrderStatus.PENDING, PaymentStatus.PENDING)
        assert stored.checkout_attempts == 0

    @pytest.mark.asyncio
    async def test_gateway_timeout_is_distinguishable(self) -> None:
        gateway = FakeGateway()
        gateway.configure(delay_s=1.0)
        svc, repo, _ = _service(gateway=gateway, timeout_s=0.01)
        req = CheckoutRequest(
            items=_cart(("prod-1", 100000, 1)), customerInfo=CUSTOMER, paymentMethod="card"
        )
        with pytest.raises(CheckoutTimeoutError) as exc_info:
            await svc.checkout(req, BUYER, AsyncMock())
        assert exc_info.value.code == 3002
        assert exc_info.value.http_status == 504
        assert exc_info.value.order_id in repo.orders

    @pytest.mark.asyncio
    async def test_manual_method_rejected_on_hosted_path(self) -> None:
        svc, repo, _ = _service()
        req = CheckoutRequest(
            items=_cart(("prod-1", 100000, 1)), customerInfo=CUSTOMER, paymentMethod="mtn_momo"
        )
        with pytest.raises(ValidationError):
            await svc.checkout(req, None, AsyncMock())
        assert repo.orders == {}

    @pytest.mark.asyncio
    async def test_submit_manual_returns_verification_message(self) -> None:
        svc, repo, gateway = _service()
        req = ManualOrderRequest(
            items=_cart(("prod-1", 100000, 1)), customerInfo=CUSTOMER,
            paymentMethod="orange_money", paymentReference="OM-1",
        )
        ref = await svc.submit_manual(req, None, AsyncMock())
        assert ref.payment_status == "pending_verification"
        assert "Orange Money" in ref.verification_message
        assert ref.checkout_url is None
        assert gateway.calls == []


class TestRetryCheckout:
    @pytest.mark.asyncio
    async def test_retry_after_failure_increments_attempts(self) -> None:
        repo = InMemoryOrderRepository(
            make_order(id="2001", payment_status=PaymentStatus.FAILED, checkout_attempts=1)
        )
        svc, _, gateway = _service(repo=repo)
        ref = await svc.retry_checkout("2001", BUYER, AsyncMock())
        assert ref.checkout_url is not None
        assert gateway.calls[0].idempotency_key == "checkout-2001-1"
        assert repo.orders["2001"].checkout_attempts == 2

    @pytest.mark.asyncio
    async def test_guest_order_retry_without_token(self) -> None:
        repo = InMemoryOrderRepository(make_order(id="2002", buyer_id=None))
        svc, _, _ = _service(repo=repo)
        ref = await svc.retry_checkout("2002", None, AsyncMock())
        assert ref.order_id == "2002"

    @pytest.mark.asyncio
    async def test_other_buyer_forbidden(self) -> None:
        repo = InMemoryOrderRepository(make_order(id="2003"))
        svc, _, _ = _service(repo=repo)
        with pytest.raises(ForbiddenError):
            await svc.retry_checkout("2003", OTHER, AsyncMock())

    @pytest.mark.asyncio
    async def test_paid_order_cannot_retry(self) -> None:
        repo = InMemoryOrderRepository(make_order(id="2004", payment_status=PaymentStatus.PAID))
        svc, _, _ = _service(repo=repo)
        with pytest.raises(TransitionConflictError):
            await svc.retry_checkout("2004", BUYER, AsyncMock())

    @pytest.mark.asyncio
    async def test_manual_order_has_no_session(self) -> None:
        repo = InMemoryOrderRepository(
            make_order(id="2005", payment_method=PaymentMethod.MTN_MOMO,
                       payment_status=PaymentStatus.PENDING_VERIFICATION)
        )
        svc, _, _ = _service(repo=repo)
        with pytest.raises(ValidationError):
            await svc.retry_checkout("2005", BUYER, AsyncMock())

    @pytest.mark.asyncio
    async def test_unknown_order(self) -> None:
        svc, _, _ = _service()
        with pytest.raises(OrderNotFoundError):
            await svc.retry_checkout("404", BUYER, AsyncMock())


class TestReads:
    @pytest.mark.asyncio
    async def test_owner_and_admin_can_read(self) -> None:
        repo = InMemoryOrderRepository(make_order(id="3001"))
        svc, _, _ = _service(repo=repo)
        assert (await svc.get_order("3001", BUYER, AsyncMock())).id == "3001"
        assert (await svc.get_order("3001", ADMIN, AsyncMock())).total == 200000

    @pytest.mark.asyncio
    async def test_other_buyer_cannot_read(self) -> None:
        repo = InMemoryOrderRepository(make_order(id="3002"))
        svc, _, _ = _service(repo=repo)
        with pytest.raises(ForbiddenError):
            await svc.get_order("3002", OTHER, AsyncMock())

    @pytest.mark.asyncio
    async def test_list_my_orders_paginates_newest_first(self) -> None:
        repo = InMemoryOrderRepository(
            *[make_order(id=str(4000 + i)) for i in range(5)],
            make_order(id="4999", buyer_id="someone-else"),
        )
        svc, _, _ = _service(repo=repo)
        page = await svc.list_my_orders(BUYER, 2, None, AsyncMock())
        assert [o.id for o in page.items] == ["4004", "4003"]
        assert page.has_more and page.next_cursor == "4003"

        last = await svc.list_my_orders(BUYER, 2, "4001", AsyncMock())
        assert [o.id for o in last.items] == ["4000"]
        assert not last.has_more and last.next_cursor is None
