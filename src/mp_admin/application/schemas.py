from datetime import datetime

from pydantic import BaseModel

from src.mp_common.amounts import format_amount
from src.mp_common.enums import OrderStatus, PaymentStatus
from src.mp_order.application.schemas import OrderResponse
from src.mp_settlement.domain.aggregates import SettlementSummary, VendorSummary
from src.mp_settlement.domain.commission import OrderSettlement


class SetPaymentStatusRequest(BaseModel):
    status: PaymentStatus


class SetOrderStatusRequest(BaseModel):
    status: OrderStatus


class SettlementResponse(BaseModel):
    commission_rate: str  # percent, e.g. "15.00"
    commission: int
    net_vendor_amount: int

    @classmethod
    def from_domain(cls, s: OrderSettlement) -> "SettlementResponse":
        return cls(
            commission_rate=f"{s.rate_bps / 100:.2f}",
            commission=s.commission,
            net_vendor_amount=s.net_vendor_amount,
        )


class OverrideResponse(BaseModel):
    """Result of an admin override; changed=False means the target was already satisfied."""

    changed: bool
    previous_status: str
    previous_payment_status: str
    order: OrderResponse
    settlement: SettlementResponse


class SummaryResponse(BaseModel):
    currency: str
    total_processed: int
    in_escrow: int
    platform_revenue: int
    payout_ready: int
    valid_orders: int
    delivered_orders: int
    display: dict[str, str]

    @classmethod
    def from_domain(cls, s: SettlementSummary, currency: str) -> "SummaryResponse":
        return cls(
            currency=currency,
            total_processed=s.total_processed,
            in_escrow=s.in_escrow,
            platform_revenue=s.platform_revenue,
            payout_ready=s.payout_ready,
            valid_orders=s.valid_orders,
            delivered_orders=s.delivered_orders,
            display={
                "total_processed": format_amount(s.total_processed, currency),
                "in_escrow": format_amount(s.in_escrow, currency),
                "platform_revenue": format_amount(s.platform_revenue, currency),
                "payout_ready": format_amount(s.payout_ready, currency),
            },
        )


class VendorSummaryResponse(BaseModel):
    vendor_id: str
    vendor_name: str | None
    commission_rate: str
    summary: SummaryResponse

    @classmethod
    def from_domain(cls, v: VendorSummary, currency: str) -> "VendorSummaryResponse":
        return cls(
            vendor_id=v.vendor_id,
            vendor_name=v.vendor_name,
            commission_rate=f"{v.rate_bps / 100:.2f}",
            summary=SummaryResponse.from_domain(v.summary, currency),
        )


class InvariantReport(BaseModel):
    ok: bool
    violations: list[str]


class AuditEntryResponse(BaseModel):
    id: int
    actor_id: str
    action: str
    from_status: str
    to_status: str
    from_payment_status: str
    to_payment_status: str
    created_at: datetime
