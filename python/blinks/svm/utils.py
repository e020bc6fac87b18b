"""Utility functions for Solana addresses and amounts."""

import re
from decimal import ROUND_HALF_UP, Decimal

from solders.pubkey import Pubkey  # type: ignore
from solders.signature import Signature  # type: ignore

from ..constants import LAMPORTS_PER_SOL

SVM_ADDRESS_REGEX = r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"


def parse_pubkey(address: str) -> Pubkey:
    """Parse a base58 address.

    Raises:
        ValueError: If the address is not a valid 32-byte public key.
    """
    if not isinstance(address, str) or not re.match(SVM_ADDRESS_REGEX, address):
        raise ValueError(f"could not parse {address!r} as pubkey: not a base58 address")
    try:
        return Pubkey.from_string(address)
    except Exception as e:
        raise ValueError(f"could not parse {address} as pubkey: {e}") from None


def validate_svm_address(address: str) -> bool:
    try:
        parse_pubkey(address)
    except ValueError:
        return False
    return True


def validate_signature(signature: str) -> bool:
    """Check that ``signature`` is a base58 transaction signature."""
    try:
        Signature.from_string(signature)
    except Exception:
        return False
    return True


def sol_to_lamports(sol: Decimal | float | str) -> int:
    return int((Decimal(str(sol)) * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_HALF_UP))


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / LAMPORTS_PER_SOL
