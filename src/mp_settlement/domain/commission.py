"""Commission profile resolution and the per-order commission/net split."""
from dataclasses import dataclass
from decimal import Decimal

from src.mp_common.amounts import percent_to_bps, split_total


@dataclass(frozen=True)
class OrderSettlement:
    total: int
    rate_bps: int
    commission: int
    net_vendor_amount: int


def resolve_rate_bps(vendor_rate: Decimal | None, default_rate: Decimal) -> int:
    """Vendor override when set (0 is a real 0% override), platform default otherwise."""
    if vendor_rate is None:
        return percent_to_bps(default_rate)
    return percent_to_bps(vendor_rate)


def settle_order(total: int, rate_bps: int) -> OrderSettlement:
    commission, net = split_total(total, rate_bps)
    return OrderSettlement(
        total=total, rate_bps=rate_bps, commission=commission, net_vendor_amount=net
    )
