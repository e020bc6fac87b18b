"""Unsigned payment transaction assembly."""

import base64
import logging

from solders.compute_budget import set_compute_unit_price  # type: ignore
from solders.instruction import Instruction  # type: ignore
from solders.message import Message  # type: ignore
from solders.pubkey import Pubkey  # type: ignore
from solders.system_program import TransferParams, transfer  # type: ignore
from solders.transaction import Transaction  # type: ignore

from ..constants import COMPUTE_UNIT_PRICE_MICRO_LAMPORTS
from ..errors import (
    BlockhashUnavailableError,
    InvalidRecipientsError,
    TransactionSerializationError,
)
from ..interfaces import SolanaNetwork
from .split import PaymentSplit
from .utils import parse_pubkey

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """Builds the buyer -> recipients transfer transaction for a payment split.

    The transaction is returned unsigned; the buyer's wallet signs it.
    """

    def __init__(
        self,
        network: SolanaNetwork,
        compute_unit_price: int = COMPUTE_UNIT_PRICE_MICRO_LAMPORTS,
    ):
        self._network = network
        self._compute_unit_price = compute_unit_price

    def build_instructions(self, payer: Pubkey, split: PaymentSplit) -> list[Instruction]:
        """Priority fee instruction first, then one transfer per recipient.

        Raises:
            InvalidRecipientsError: Listing every recipient that failed to parse.
        """
        instructions = [set_compute_unit_price(self._compute_unit_price)]
        invalid: list[str] = []

        for address, lamports in split.items():
            try:
                recipient = parse_pubkey(address)
            except ValueError as e:
                invalid.append(str(e))
                continue
            instructions.append(
                transfer(TransferParams(from_pubkey=payer, to_pubkey=recipient, lamports=lamports))
            )

        if invalid:
            raise InvalidRecipientsError(invalid)

        return instructions

    async def build(self, payer_address: str, split: PaymentSplit) -> str:
        """Build and serialize an unsigned transaction.

        Args:
            payer_address: Buyer wallet, used as fee payer and transfer source.
            split: Recipient address to lamports.

        Returns:
            Base64 of the bincode-serialized transaction.

        Raises:
            InvalidRecipientsError: If the payer or any recipient is invalid.
            BlockhashUnavailableError: If the blockhash fetch fails.
            TransactionSerializationError: If serialization fails.
        """
        try:
            payer = parse_pubkey(payer_address)
        except ValueError as e:
            raise InvalidRecipientsError([f"invalid buyer pubkey: {e}"]) from None

        # Validate before touching the network
        instructions = self.build_instructions(payer, split)

        try:
            blockhash = await self._network.get_latest_blockhash()
        except Exception as e:
            raise BlockhashUnavailableError(e) from e

        try:
            message = Message.new_with_blockhash(instructions, payer, blockhash)
            tx = Transaction.new_unsigned(message)
            tx_bytes = bytes(tx)
        except Exception as e:
            raise TransactionSerializationError(e) from e

        logger.debug(
            "built unsigned transaction for %s with %d transfers", payer_address, len(instructions) - 1
        )
        return base64.b64encode(tx_bytes).decode()


def decode_transaction(encoded: str) -> Transaction:
    """Parse a base64 transaction produced by ``TransactionBuilder.build``."""
    return Transaction.from_bytes(base64.b64decode(encoded))
