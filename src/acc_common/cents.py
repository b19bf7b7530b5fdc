"""Integer arithmetic utilities for cents-based accounting.

All balances, deltas and deposit amounts use int (cents). No float, no Decimal.
"""


def validate_amount(amount: int) -> None:
    """Validate that a transfer amount is a positive number of cents."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer number of cents, got {amount!r}")
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
