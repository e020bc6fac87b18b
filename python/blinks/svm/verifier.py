"""On-chain verification of blink payments."""

import logging

from ..constants import ERR_RPC_FAILED
from ..errors import BlinkError, CollaboratorError, PaymentMismatchError, PaymentNotFoundError
from ..interfaces import ConfirmedPayment, SolanaNetwork
from ..models import Order

logger = logging.getLogger(__name__)


class PaymentVerifier:
    """Checks that a payment reference pays an order's split."""

    def __init__(self, network: SolanaNetwork):
        self._network = network

    async def verify(
        self,
        payment_reference: str,
        order: Order,
        payer: str | None = None,
    ) -> ConfirmedPayment:
        """Verify a payment reference against an order.

        Every recipient in the order's split must have received at least its
        share. When ``payer`` is given it must be the transaction fee payer.

        Returns:
            The confirmed payment.

        Raises:
            PaymentNotFoundError: The transaction is not visible yet (retryable).
            PaymentMismatchError: The transaction does not satisfy the order.
            CollaboratorError: The RPC lookup failed.
        """
        try:
            payment = await self._network.get_payment(payment_reference)
        except BlinkError:
            raise
        except Exception as e:
            raise CollaboratorError(
                ERR_RPC_FAILED,
                f"could not fetch transaction {payment_reference}: {e}",
                order_id=order.id,
            ) from e

        if payment is None:
            raise PaymentNotFoundError(payment_reference, order_id=order.id)

        if payment.error is not None:
            raise PaymentMismatchError(f"transaction failed: {payment.error}", order_id=order.id)

        if payer is not None and payment.fee_payer != payer:
            raise PaymentMismatchError(
                f"fee payer mismatch: expected {payer}, got {payment.fee_payer}",
                order_id=order.id,
            )

        shortfalls = []
        for recipient, expected in order.payment_splits.items():
            received = payment.balance_changes.get(recipient, 0)
            if received < expected:
                shortfalls.append(f"{recipient} expected {expected}, got {received}")

        if shortfalls:
            raise PaymentMismatchError("amount_insufficient: " + "; ".join(shortfalls), order_id=order.id)

        logger.info("payment %s verified for order %s", payment_reference, order.id)
        return payment
