"""Integer arithmetic for cents-denominated share prices.

Every price, amount and total in the engine is an int number of cents.
No float, no Decimal for money.
"""


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def line_total(quantity: int, unit_price_cents: int) -> int:
    """Total amount due for `quantity` shares at `unit_price_cents` each."""
    if quantity < 0 or unit_price_cents < 0:
        raise ValueError(
            f"quantity and unit price must be non-negative, got {quantity} x {unit_price_cents}"
        )
    return quantity * unit_price_cents
