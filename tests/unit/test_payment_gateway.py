"""Unit tests for event normalization and the gateway adapters."""
import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from src.mp_common.enums import PaymentMethod, Verdict
from src.mp_common.errors import PaymentChannelError, SignatureError
from src.mp_payment.domain.models import CheckoutLine, CheckoutSessionRequest, GatewayEvent
from src.mp_payment.domain.normalize import manual_outcome, normalize_event
from src.mp_payment.gateway import get_gateway, reset_gateway, set_gateway
from src.mp_payment.gateway.fake_adapter import FakeGateway, sign_payload
from src.mp_payment.gateway.stripe_adapter import StripeGateway, parse_event


def _event_body(event_type: str = "payment_intent.succeeded", order_id: str | None = "1001") -> bytes:
    metadata = {"order_id": order_id} if order_id else {}
    return json.dumps({
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {"id": "pi_1", "metadata": metadata}},
    }).encode()


def _session_request(method: PaymentMethod = PaymentMethod.CARD) -> CheckoutSessionRequest:
    return CheckoutSessionRequest(
        order_id="1001",
        payment_method=method,
        currency="XAF",
        lines=(CheckoutLine(name="Dress", unit_amount=100000, quantity=2, image="https://img/x.jpg"),),
        customer_email="awa@example.com",
        idempotency_key="checkout-1001-0",
    )


class TestNormalize:
    def test_succeeded(self) -> None:
        outcome = normalize_event(parse_event(_event_body().decode()))
        assert outcome is not None
        assert outcome.order_id == "1001"
        assert outcome.verdict == Verdict.SUCCEEDED
        assert outcome.gateway_reference == "pi_1"
        assert outcome.raw_event_id == "evt_1"

    def test_payment_failed(self) -> None:
        event = parse_event(_event_body("payment_intent.payment_failed").decode())
        assert normalize_event(event).verdict == Verdict.FAILED

    def test_unhandled_type_ignored(self) -> None:
        event = parse_event(_event_body("charge.refunded").decode())
        assert normalize_event(event) is None

    def test_missing_order_metadata_ignored(self) -> None:
        event = GatewayEvent(id="evt_2", type="payment_intent.succeeded", object_id="pi_2")
        assert normalize_event(event) is None

    def test_manual_reference_stays_pending(self) -> None:
        outcome = manual_outcome("1001", "OM-1")
        assert outcome.verdict == Verdict.PENDING
        assert outcome.raw_event_id is None


class TestFakeGateway:
    def test_valid_signature(self) -> None:
        gateway = FakeGateway(webhook_secret="s3cret")
        body = _event_body()
        event = gateway.construct_event(body, sign_payload(body, "s3cret"))
        assert event.id == "evt_1"
        assert event.order_id == "1001"

    def test_wrong_secret_rejected(self) -> None:
        gateway = FakeGateway(webhook_secret="s3cret")
        body = _event_body()
        with pytest.raises(SignatureError):
            gateway.construct_event(body, sign_payload(body, "other"))

    def test_tampered_body_rejected(self) -> None:
        gateway = FakeGateway(webhook_secret="s3cret")
        signature = sign_payload(_event_body(order_id="1001"), "s3cret")
        with pytest.raises(SignatureError):
            gateway.construct_event(_event_body(order_id="9999"), signature)

    def test_missing_signature_rejected(self) -> None:
        with pytest.raises(SignatureError, match="Missing"):
            FakeGateway().construct_event(_event_body(), "")

    @pytest.mark.asyncio
    async def test_same_idempotency_key_same_session(self) -> None:
        gateway = FakeGateway()
        first = await gateway.create_checkout_session(_session_request())
        second = await gateway.create_checkout_session(_session_request())
        assert first == second

    @pytest.mark.asyncio
    async def test_configured_failure(self) -> None:
        gateway = FakeGateway()
        gateway.configure(should_succeed=False)
        with pytest.raises(PaymentChannelError):
            await gateway.create_checkout_session(_session_request())


class TestStripeGateway:
    def _gateway(self) -> StripeGateway:
        return StripeGateway(
            api_key="sk_test_x",
            webhook_secret="whsec_x",
            success_url="https://shop/ok?order_id={order_id}",
            cancel_url="https://shop/cancel",
        )

    @pytest.mark.asyncio
    async def test_session_params(self) -> None:
        fake_session = SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")
        with patch.object(stripe.checkout.Session, "create", return_value=fake_session) as create:
            session = await self._gateway().create_checkout_session(_session_request(PaymentMethod.PAYPAL))

        assert session.session_id == "cs_test_1"
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_x"
        assert kwargs["idempotency_key"] == "checkout-1001-0"
        assert kwargs["payment_method_types"] == ["paypal"]
        assert kwargs["success_url"] == "https://shop/ok?order_id=1001"
        assert kwargs["metadata"] == {"order_id": "1001"}
        assert kwargs["payment_intent_data"] == {"metadata": {"order_id": "1001"}}
        line = kwargs["line_items"][0]
        assert line["price_data"]["currency"] == "xaf"
        assert line["price_data"]["unit_amount"] == 100000
        assert line["quantity"] == 2

    @pytest.mark.asyncio
    async def test_stripe_error_becomes_channel_error(self) -> None:
        with patch.object(
            stripe.checkout.Session, "create", side_effect=stripe.APIConnectionError("down")
        ):
            with pytest.raises(PaymentChannelError) as exc_info:
                await self._gateway().create_checkout_session(_session_request())
        assert exc_info.value.order_id == "1001"

    def test_verified_event_parsed(self) -> None:
        body = _event_body()
        with patch.object(stripe.WebhookSignature, "verify_header", return_value=True) as verify:
            event = self._gateway().construct_event(body, "t=1,v1=abc")
        verify.assert_called_once_with(body.decode(), "t=1,v1=abc", "whsec_x", 300)
        assert event.type == "payment_intent.succeeded"

    def test_bad_signature_rejected(self) -> None:
        error = stripe.SignatureVerificationError("no match", "t=1,v1=abc")
        with patch.object(stripe.WebhookSignature, "verify_header", side_effect=error):
            with pytest.raises(SignatureError):
                self._gateway().construct_event(_event_body(), "t=1,v1=abc")

    def test_missing_header_rejected(self) -> None:
        with pytest.raises(SignatureError):
            self._gateway().construct_event(_event_body(), "")

    def test_non_utf8_body_rejected(self) -> None:
        with patch.object(stripe.WebhookSignature, "verify_header") as verify:
            with pytest.raises(SignatureError, match="UTF-8"):
                self._gateway().construct_event(b"\xff\xfe garbage", "t=1,v1=abc")
        verify.assert_not_called()


class TestGatewayFactory:
    def test_override_and_reset(self) -> None:
        custom = FakeGateway(webhook_secret="x")
        set_gateway(custom)
        assert get_gateway() is custom
        reset_gateway()
        assert isinstance(get_gateway(), FakeGateway)
        reset_gateway()

    def test_malformed_body_rejected(self) -> None:
        with pytest.raises(SignatureError, match="Malformed"):
            parse_event("{not json")

    def test_signed_non_utf8_body_rejected(self) -> None:
        body = b"\xff\xfe garbage"
        gateway = FakeGateway(webhook_secret="whsec_x")
        with pytest.raises(SignatureError, match="Malformed"):
            gateway.construct_event(body, sign_payload(body, "whsec_x"))

    def test_parse_accepts_bytes(self) -> None:
        assert parse_event(_event_body()).order_id == "1001"
