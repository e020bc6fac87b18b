"""Error taxonomy for the blinks engine.

Validation errors are raised before any side effect. Domain errors reject
a request with no partial state change. Collaborator errors wrap failures
of the RPC node, the shipping carrier or the metadata index and are never
retried here. Data integrity errors signal corrupt stored data and are
deliberately outside the ``BlinkError`` hierarchy.
"""

from typing import Any

from .constants import (
    ERR_ALREADY_PAID,
    ERR_BLOCKHASH_UNAVAILABLE,
    ERR_INSUFFICIENT_BALANCE,
    ERR_INVALID_RECIPIENTS,
    ERR_NEGATIVE_AMOUNT,
    ERR_PAYMENT_MISMATCH,
    ERR_PAYMENT_NOT_FOUND,
    ERR_SERIALIZATION_FAILED,
)


class BlinkError(Exception):
    """Base class for request-level failures.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable message, safe to show to the buyer.
        context: Identifiers of the failing entities (order_id, product_id).
    """

    def __init__(self, code: str, message: str, **context: Any):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, context={self.context!r})"


class ValidationError(BlinkError):
    """Malformed input."""


class DomainError(BlinkError):
    """Well-formed request that the current state does not allow."""


class CollaboratorError(BlinkError):
    """An external dependency failed."""


class NegativeAmountError(ValidationError):
    def __init__(self, recipient: str, amount: int):
        super().__init__(ERR_NEGATIVE_AMOUNT, f"negative amount {amount} for recipient {recipient}")


class InvalidRecipientsError(ValidationError):
    """One or more split recipients are not valid addresses.

    Lists every offending entry, not only the first.
    """

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(
            ERR_INVALID_RECIPIENTS,
            "invalid recipients:\n" + "\n".join(f"  {p}" for p in problems),
        )


class AlreadyPaidError(DomainError):
    def __init__(self, order_id: int, payment_reference: str | None = None):
        message = f"order {order_id} already paid"
        if payment_reference:
            message += f" by tx {payment_reference}"
        super().__init__(ERR_ALREADY_PAID, message, order_id=order_id)


class InsufficientBalanceError(DomainError):
    def __init__(self, account: str, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            ERR_INSUFFICIENT_BALANCE,
            f"insufficient balance for {account}: required {required} lamports, available {available}",
        )


class PaymentMismatchError(DomainError):
    """The payment reference exists but does not satisfy the order. Terminal."""

    def __init__(self, reason: str, order_id: int | None = None):
        self.reason = reason
        super().__init__(ERR_PAYMENT_MISMATCH, f"payment does not satisfy order: {reason}", order_id=order_id)


class PaymentNotFoundError(CollaboratorError):
    """The payment reference is not visible on chain yet. The caller may retry."""

    retryable = True

    def __init__(self, payment_reference: str, order_id: int | None = None):
        super().__init__(
            ERR_PAYMENT_NOT_FOUND,
            f"transaction {payment_reference} not found",
            order_id=order_id,
        )


class BlockhashUnavailableError(CollaboratorError):
    def __init__(self, cause: Exception):
        super().__init__(ERR_BLOCKHASH_UNAVAILABLE, f"could not fetch latest blockhash: {cause}")


class TransactionSerializationError(CollaboratorError):
    def __init__(self, cause: Exception):
        super().__init__(ERR_SERIALIZATION_FAILED, f"could not serialize transaction: {cause}")


class DataIntegrityError(RuntimeError):
    """Stored data violates an invariant, e.g. an unknown fulfillment type."""
