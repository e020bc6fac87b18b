"""Payment split calculation."""

from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidRecipientsError, NegativeAmountError
from .utils import parse_pubkey


def calculate_payment_shares(beneficiaries: list[tuple[str, int]]) -> dict[str, int]:
    """Merge beneficiary amounts into a recipient -> amount mapping.

    Amounts for a recipient listed more than once are summed, so the output
    always totals exactly the input. Insertion order follows first appearance.

    Args:
        beneficiaries: (recipient, amount) pairs in any integer unit (e.g. cents).

    Returns:
        Mapping of recipient to amount.

    Raises:
        NegativeAmountError: If any amount is negative.
    """
    shares: dict[str, int] = {}
    for recipient, amount in beneficiaries:
        if amount < 0:
            raise NegativeAmountError(recipient, amount)
        shares[recipient] = shares.get(recipient, 0) + amount
    return shares


def distribute_amount(total_amount: int, weights: dict[str, int]) -> dict[str, int]:
    """Distribute ``total_amount`` proportionally to integer weights.

    Uses floor division. Remainder (dust) goes to the last recipient, so the
    result sums exactly to ``total_amount``. Zero total weight puts
    everything on the last recipient.
    """
    if not weights:
        return {}

    total_weight = sum(weights.values())
    items = list(weights.items())
    amounts: dict[str, int] = {}
    allocated = 0

    for i, (recipient, weight) in enumerate(items):
        # Last recipient gets remainder to handle dust
        if i == len(items) - 1:
            amount = total_amount - allocated
        elif total_weight == 0:
            amount = 0
        else:
            amount = (total_amount * weight) // total_weight
        allocated += amount
        amounts[recipient] = amount

    return amounts


@dataclass
class PaymentSplit:
    """Ordered mapping of recipient address to lamports."""

    amounts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.amounts.values())

    def items(self):
        return self.amounts.items()

    def validate(self) -> None:
        """Check every recipient address and amount.

        Raises:
            InvalidRecipientsError: Listing every invalid entry.
        """
        problems: list[str] = []
        for address, lamports in self.amounts.items():
            try:
                parse_pubkey(address)
            except ValueError as e:
                problems.append(str(e))
                continue
            if lamports < 0:
                problems.append(f"negative amount {lamports} for {address}")
        if problems:
            raise InvalidRecipientsError(problems)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.amounts)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentSplit":
        return cls(amounts={address: int(amount) for address, amount in data.items()})
