"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity / access
  2xxx: Validation (checkout input)
  3xxx: Payment channel / webhook
  4xxx: Order & state transitions
  9xxx: System
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.data = data
        super().__init__(message)


# --- 1xxx: Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1002, detail, 403)


# --- 2xxx: Validation ---

class ValidationError(AppError):
    """Malformed or incomplete checkout input. Never mutates state."""

    def __init__(self, message: str, code: int = 2000) -> None:
        super().__init__(code, message, 422)


class EmptyCartError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Cart is empty", 2001)


class UnknownProductError(ValidationError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}", 2002)


class ProductWithoutVendorError(ValidationError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product has no vendor: {product_id}", 2003)


class MixedVendorCartError(ValidationError):
    def __init__(self, vendor_ids: list[str]) -> None:
        super().__init__(
            f"Cart mixes several vendors ({', '.join(sorted(vendor_ids))}); "
            "place one order per vendor",
            2004,
        )


class PriceChangedError(ValidationError):
    def __init__(self, product_id: str, quoted: int, current: int) -> None:
        super().__init__(
            f"Price changed for {product_id}: quoted {quoted}, current {current}",
            2005,
        )


class MissingCustomerFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Customer {field} is required", 2006)


class MissingPaymentReferenceError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Transaction reference is required for manual payment", 2007)


class FieldTooLongError(ValidationError):
    def __init__(self, field: str, limit: int) -> None:
        super().__init__(f"{field} must be at most {limit} characters", 2008)


# --- 3xxx: Payment channel / webhook ---

class PaymentChannelError(AppError):
    """Gateway unreachable during session creation. The order stays persisted."""

    def __init__(
        self,
        order_id: str,
        detail: str = "Payment gateway unavailable",
        code: int = 3001,
        http_status: int = 502,
    ) -> None:
        super().__init__(code, detail, http_status, data={"order_id": order_id})
        self.order_id = order_id


class CheckoutTimeoutError(PaymentChannelError):
    def __init__(self, order_id: str, timeout_s: float) -> None:
        super().__init__(
            order_id,
            f"Payment gateway timed out after {timeout_s:g}s",
            code=3002,
            http_status=504,
        )


class SignatureError(AppError):
    def __init__(self, detail: str = "Webhook signature verification failed") -> None:
        super().__init__(3003, detail, 400)


# --- 4xxx: Order ---

class TransitionConflictError(AppError):
    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(4001, f"Order {order_id}: {reason}", 409)
        self.order_id = order_id
        self.reason = reason


class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(4004, message, 404)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order not found: {order_id}")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
