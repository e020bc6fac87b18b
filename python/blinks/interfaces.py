"""Protocols for the collaborators the blinks engine depends on."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from solders.hash import Hash  # type: ignore

from .models import (
    NewNft,
    NewOrder,
    Nft,
    NftMetadata,
    Order,
    PrintEdition,
    Product,
    User,
)


@dataclass
class ConfirmedPayment:
    """What the chain reports for a payment reference.

    Attributes:
        signature: The transaction signature.
        fee_payer: Base58 address of the fee payer.
        balance_changes: Lamport delta per account (post minus pre balance).
        error: On-chain execution error, None when the transaction succeeded.
    """

    signature: str
    fee_payer: str
    balance_changes: dict[str, int] = field(default_factory=dict)
    error: Any = None


class SolanaNetwork(Protocol):
    """Read-only access to a Solana cluster."""

    async def get_latest_blockhash(self) -> Hash:
        ...

    async def get_balance(self, address: str) -> int:
        """Balance of an account in lamports."""
        ...

    async def get_payment(self, signature: str) -> ConfirmedPayment | None:
        """Look up a confirmed transaction; None when it is not visible yet."""
        ...


class RateSource(Protocol):
    async def get_sol_to_usd_rate(self) -> float:
        """US dollars per SOL."""
        ...


class BlinkStore(Protocol):
    """Data access for users, products, NFTs and orders.

    ``claim_order_payment`` is the compare-and-set that enforces at-most-once
    confirmation: it attaches the payment reference and moves the order to
    ``paid`` only while the order's reference is still unset and the
    reference is not attached to any other order. It returns the updated
    order, or None when the condition did not hold.
    """

    async def get_product(self, product_id: int) -> Product:
        ...

    async def get_user(self, user_id: int) -> User | None:
        ...

    async def get_user_by_wallet(self, wallet_id: str) -> User | None:
        ...

    async def create_user(self, wallet_id: str, email: str | None) -> User:
        ...

    async def create_order(self, order: NewOrder) -> Order:
        ...

    async def get_order(self, order_id: int) -> Order:
        ...

    async def claim_order_payment(self, order_id: int, payment_reference: str) -> Order | None:
        ...

    async def complete_order(self, order_id: int, external_order_id: str) -> Order:
        ...

    async def fail_order(self, order_id: int) -> Order:
        ...

    async def get_nft(self, token_id: str) -> Nft:
        ...

    async def record_minted_nft(self, nft: NewNft) -> None:
        ...


class NftIndex(Protocol):
    """Read-only NFT metadata indexer (DAS)."""

    async def get_asset(self, token_id: str) -> NftMetadata:
        ...


class FulfillmentService(Protocol):
    async def create_order(self, request: dict[str, Any]) -> str:
        """Submit a fulfillment request; returns the external order id."""
        ...


class EditionService(Protocol):
    async def create_print(self, master_token_id: str, buyer: str, count: int = 1) -> list[PrintEdition]:
        ...


class NotificationPublisher(Protocol):
    async def publish(self, topic: str, payload: dict[str, Any], idempotency_key: str) -> None:
        ...
