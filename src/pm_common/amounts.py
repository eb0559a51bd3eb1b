"""Integer arithmetic utilities for settlement amounts.

All stakes, pools and payouts are int in the token's smallest unit.
No float, no Decimal: Python int never overflows.
"""

BPS_DENOMINATOR = 10_000


def validate_amount(amount: int) -> None:
    """Validate that a stake amount is a positive integer."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Amount must be a positive integer, got {amount!r}")


def bps_of(amount: int, bps: int) -> int:
    """Floor division share: amount * bps // 10000 (remainder stays with the payer).

    Commission is floored, unlike a ceiling fee: the house never takes more
    than its basis points.
    """
    if amount == 0 or bps == 0:
        return 0
    return amount * bps // BPS_DENOMINATOR


def validate_bps(bps: int) -> None:
    """Validate basis points are in [0, 10000]."""
    if not (0 <= bps <= BPS_DENOMINATOR):
        raise ValueError(f"Basis points must be between 0 and {BPS_DENOMINATOR}, got {bps}")
