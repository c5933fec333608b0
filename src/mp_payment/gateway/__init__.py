"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StripeGateway when PAYMENT_GATEWAY=stripe
- FakeGateway for development and testing
"""

from config.settings import settings
from src.mp_payment.gateway.fake_adapter import FakeGateway
from src.mp_payment.gateway.port import PaymentGateway
from src.mp_payment.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    if settings.PAYMENT_GATEWAY == "stripe":
        return StripeGateway(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            success_url=settings.CHECKOUT_SUCCESS_URL,
            cancel_url=settings.CHECKOUT_CANCEL_URL,
            tolerance_s=settings.WEBHOOK_TOLERANCE_SECONDS,
        )
    return FakeGateway(webhook_secret=settings.STRIPE_WEBHOOK_SECRET or "whsec_fake")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway  # noqa: PLW0603
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway  # noqa: PLW0603
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway  # noqa: PLW0603
    _current_gateway = None
