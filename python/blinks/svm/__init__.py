"""Solana payment mechanics: splits, pricing, transactions and verification."""

from .pricing import CurrencyConverter, RateQuote
from .split import PaymentSplit, calculate_payment_shares, distribute_amount
from .transaction import TransactionBuilder
from .utils import lamports_to_sol, sol_to_lamports, validate_signature, validate_svm_address
from .verifier import PaymentVerifier

__all__ = [
    # Split
    "PaymentSplit",
    "calculate_payment_shares",
    "distribute_amount",
    # Pricing
    "CurrencyConverter",
    "RateQuote",
    # Transactions
    "TransactionBuilder",
    "PaymentVerifier",
    # Utils
    "lamports_to_sol",
    "sol_to_lamports",
    "validate_signature",
    "validate_svm_address",
]
