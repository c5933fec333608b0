"""Integer money arithmetic.

All amounts are int in the smallest unit of the operating currency (XAF has
no subdivision, so 1 unit == 1 franc). No float anywhere on the money path.
Commission rates are percentages in [0, 100] with at most two decimals,
carried internally as integer basis points.
"""

from decimal import Decimal, InvalidOperation

BPS_PER_PERCENT = 100
MAX_RATE_BPS = 100 * BPS_PER_PERCENT


def percent_to_bps(rate: Decimal | int | str) -> int:
    """Convert a percentage (e.g. Decimal("12.5")) to basis points (1250)."""
    try:
        value = Decimal(rate)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid commission rate: {rate!r}") from exc
    bps = value * BPS_PER_PERCENT
    if bps != bps.to_integral_value():
        raise ValueError(f"Commission rate has more than 2 decimals: {rate}")
    result = int(bps)
    if not (0 <= result <= MAX_RATE_BPS):
        raise ValueError(f"Commission rate must be between 0 and 100, got {rate}")
    return result


def calc_commission(total: int, rate_bps: int) -> int:
    """Commission for one order, rounded half up.

    commission = round_half_up(total * rate_bps / 10000)
    Integer form: (2 * total * bps + 10000) // 20000
    """
    if total < 0:
        raise ValueError(f"Order total must be >= 0, got {total}")
    if total == 0 or rate_bps == 0:
        return 0
    return (2 * total * rate_bps + MAX_RATE_BPS) // (2 * MAX_RATE_BPS)


def split_total(total: int, rate_bps: int) -> tuple[int, int]:
    """Return (commission, net_vendor_amount); the two always sum to total."""
    commission = calc_commission(total, rate_bps)
    return commission, total - commission


def format_amount(amount: int, currency: str = "XAF") -> str:
    """200000 -> '200,000 XAF', -1500 -> '-1,500 XAF'."""
    if amount < 0:
        return f"-{-amount:,} {currency}"
    return f"{amount:,} {currency}"
