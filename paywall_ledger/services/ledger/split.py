"""Сплит платежа между платформой и автором."""

FEE_RATE_DENOMINATOR = 1000


def split_payment(amount: int, fee_rate_ppt: int) -> tuple[int, int]:
    """
    Вернуть (platform_fee, author_amount).

    platform_fee = floor(amount * rate / 1000), author_amount = amount - platform_fee,
    поэтому сумма частей всегда равна amount.
    """
    if amount < 0:
        raise ValueError("amount must be non-negative")
    if not 0 <= fee_rate_ppt <= FEE_RATE_DENOMINATOR:
        raise ValueError("fee_rate_ppt must be within 0..1000")
    platform_fee = amount * fee_rate_ppt // FEE_RATE_DENOMINATOR
    return platform_fee, amount - platform_fee
