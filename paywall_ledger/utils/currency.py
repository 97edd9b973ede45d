"""Форматирование сумм из минимальных единиц в отображаемые."""
from decimal import Decimal


def format_amount(amount: int, decimals: int) -> str:
    """Вернуть строку вида «1.000000» для amount=1_000_000 при decimals=6."""
    if decimals <= 0:
        return str(int(amount))
    value = Decimal(int(amount)).scaleb(-decimals)
    return f"{value:.{decimals}f}"
