"""Unit tests for payment split calculation."""

import pytest

from blinks.errors import InvalidRecipientsError, NegativeAmountError
from blinks.svm.split import PaymentSplit, calculate_payment_shares, distribute_amount

from conftest import new_address


class TestCalculatePaymentShares:
    def test_seller_and_platform(self):
        shares = calculate_payment_shares([("Seller", 1700), ("Platform", 1800)])
        assert shares == {"Seller": 1700, "Platform": 1800}

    def test_duplicate_recipients_are_merged(self):
        shares = calculate_payment_shares([("A", 100), ("B", 50), ("A", 25)])
        assert shares == {"A": 125, "B": 50}
        assert list(shares) == ["A", "B"]

    def test_total_preserved(self):
        beneficiaries = [("A", 333), ("B", 333), ("C", 334), ("A", 1), ("D", 0)]
        shares = calculate_payment_shares(beneficiaries)
        assert sum(shares.values()) == sum(amount for _, amount in beneficiaries)

    def test_zero_amount_allowed(self):
        assert calculate_payment_shares([("A", 0)]) == {"A": 0}

    def test_negative_amount_rejected(self):
        with pytest.raises(NegativeAmountError, match="negative amount -1"):
            calculate_payment_shares([("A", 10), ("B", -1)])

    def test_empty(self):
        assert calculate_payment_shares([]) == {}


class TestDistributeAmount:
    def test_proportional(self):
        amounts = distribute_amount(1000, {"A": 70, "B": 20, "C": 10})
        assert amounts == {"A": 700, "B": 200, "C": 100}

    def test_dust_to_last(self):
        amounts = distribute_amount(100, {"A": 1, "B": 1, "C": 1})
        # floor(100 / 3) = 33 each, last gets 34
        assert amounts == {"A": 33, "B": 33, "C": 34}
        assert sum(amounts.values()) == 100

    def test_odd_weights_sum_exactly(self):
        weights = {"A": 1700, "B": 1800}
        for total in (1, 7, 357_000_000, 999_999_999):
            assert sum(distribute_amount(total, weights).values()) == total

    def test_zero_weights(self):
        assert distribute_amount(10, {"A": 0, "B": 0}) == {"A": 0, "B": 10}

    def test_empty(self):
        assert distribute_amount(10, {}) == {}


class TestPaymentSplit:
    def test_total(self):
        split = PaymentSplit(amounts={"A": 5, "B": 7})
        assert split.total == 12

    def test_validate_valid(self):
        split = PaymentSplit(amounts={new_address(): 5, new_address(): 7})
        split.validate()  # Should not raise

    def test_validate_lists_every_invalid_recipient(self):
        split = PaymentSplit(amounts={"not-a-key": 1, new_address(): 2, "0OIl": 3})
        with pytest.raises(InvalidRecipientsError) as exc_info:
            split.validate()
        assert len(exc_info.value.problems) == 2
        assert "not-a-key" in exc_info.value.message
        assert "0OIl" in exc_info.value.message

    def test_from_dict(self):
        split = PaymentSplit.from_dict({"A": "10", "B": 3})
        assert split.amounts == {"A": 10, "B": 3}
