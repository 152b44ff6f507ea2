from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a number to a two-place Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_amount(quantity: int, unit_cost) -> Decimal:
    """amount = quantity * unit_cost, always recomputed server-side."""
    return to_money(Decimal(int(quantity)) * Decimal(str(unit_cost)))


def format_peso(amount: Decimal) -> str:
    if amount is None:
        return "₱ 0.00"
    amount = to_money(amount)
    amount_str = f"{amount:.2f}"
    integer_part, decimal_part = amount_str.split(".")
    negative = integer_part.startswith("-")
    if negative:
        integer_part = integer_part[1:]

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    sign = "-" if negative else ""
    return f"₱ {sign}{','.join(groups)}.{decimal_part}"
