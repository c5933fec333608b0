"""Escrow / commission aggregates over the valid-sale set.

Everything here is recomputed from committed order rows on every read; no
running counters exist. Commission is rounded per order, then summed, so a
batch total never drifts from the per-order figures shown in exports.

Reconciliation identity (checked in invariants.py):
    in_escrow + payout_ready + released_commission == total_processed
"""
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from src.mp_common.datetime_utils import to_date_str
from src.mp_common.enums import CAPTURED_PAYMENT_STATUSES, OrderStatus, PaymentStatus
from src.mp_settlement.domain.commission import OrderSettlement, settle_order


@dataclass(frozen=True)
class SaleRecord:
    """One order as the settlement read-side sees it: totals, states and resolved rate."""

    order_id: str
    vendor_id: str
    total: int
    status: OrderStatus
    payment_status: PaymentStatus
    rate_bps: int
    vendor_name: str | None = None
    created_at: datetime | None = None

    @property
    def is_valid_sale(self) -> bool:
        return (
            self.payment_status in CAPTURED_PAYMENT_STATUSES
            and self.status != OrderStatus.CANCELLED
        )

    @property
    def settlement(self) -> OrderSettlement:
        return settle_order(self.total, self.rate_bps)


@dataclass
class SettlementSummary:
    total_processed: int = 0
    in_escrow: int = 0
    platform_revenue: int = 0
    payout_ready: int = 0
    released_commission: int = 0  # commission on delivered valid sales
    valid_orders: int = 0
    delivered_orders: int = 0

    def add(self, record: SaleRecord) -> None:
        if not record.is_valid_sale:
            return
        s = record.settlement
        self.valid_orders += 1
        self.total_processed += s.total
        self.platform_revenue += s.commission
        if record.status == OrderStatus.DELIVERED:
            self.delivered_orders += 1
            self.payout_ready += s.net_vendor_amount
            self.released_commission += s.commission
        else:
            self.in_escrow += s.total


@dataclass
class VendorSummary:
    vendor_id: str
    vendor_name: str | None
    rate_bps: int
    summary: SettlementSummary = field(default_factory=SettlementSummary)


@dataclass(frozen=True)
class ReportRow:
    order_id: str
    date: str
    vendor: str
    gross: int
    commission: int
    net: int
    status: str
    payment_status: str


def summarize(records: Iterable[SaleRecord]) -> SettlementSummary:
    summary = SettlementSummary()
    for record in records:
        summary.add(record)
    return summary


def summarize_by_vendor(records: Iterable[SaleRecord]) -> list[VendorSummary]:
    """Per-vendor aggregates; payout_ready is the net currently owed to each vendor."""
    by_vendor: dict[str, VendorSummary] = {}
    for record in records:
        entry = by_vendor.get(record.vendor_id)
        if entry is None:
            entry = VendorSummary(
                vendor_id=record.vendor_id,
                vendor_name=record.vendor_name,
                rate_bps=record.rate_bps,
            )
            by_vendor[record.vendor_id] = entry
        entry.summary.add(record)
    return sorted(by_vendor.values(), key=lambda v: v.vendor_id)


def to_report_row(record: SaleRecord) -> ReportRow:
    s = record.settlement
    return ReportRow(
        order_id=record.order_id,
        date=to_date_str(record.created_at),
        vendor=record.vendor_name or record.vendor_id,
        gross=s.total,
        commission=s.commission,
        net=s.net_vendor_amount,
        status=record.status.value,
        payment_status=record.payment_status.value,
    )
