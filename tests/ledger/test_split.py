"""Tests for split_payment: floor-комиссия и точное разбиение суммы."""
import random

import pytest

from paywall_ledger.services.ledger.split import split_payment


def test_ten_percent_of_one_unit():
    assert split_payment(1_000_000, 100) == (100_000, 900_000)


def test_fee_is_floored():
    # 999 * 15 / 1000 = 14.985 -> 14
    assert split_payment(999, 15) == (14, 985)


def test_zero_rate_goes_to_author():
    assert split_payment(500, 0) == (0, 500)


def test_full_rate_goes_to_platform():
    assert split_payment(500, 1000) == (500, 0)


def test_parts_always_sum_to_amount():
    rng = random.Random(7)
    for _ in range(500):
        amount = rng.randint(0, 10**12)
        rate = rng.randint(0, 1000)
        fee, author = split_payment(amount, rate)
        assert fee + author == amount
        assert fee == amount * rate // 1000


@pytest.mark.parametrize("amount,rate", [(-1, 10), (10, -1), (10, 1001)])
def test_invalid_inputs(amount, rate):
    with pytest.raises(ValueError):
        split_payment(amount, rate)
