"""In-memory implementation of the ``BlinkStore`` protocol.

Used by tests and local runs. A production store must give
``claim_order_payment`` the same conditional-write semantics, e.g.
``UPDATE orders SET transaction_id = :ref, status = 'paid'
WHERE id = :id AND transaction_id IS NULL`` with a unique index on
``transaction_id``.
"""

import asyncio
import copy
import itertools
from dataclasses import replace

from .constants import ERR_NOT_FOUND
from .errors import DomainError
from .models import NewNft, NewOrder, Nft, Order, OrderStatus, Product, User


class MemoryStore:
    def __init__(
        self,
        products: list[Product] | None = None,
        users: list[User] | None = None,
        nfts: list[Nft] | None = None,
    ):
        self.products = {p.id: p for p in products or []}
        self.users = {u.id: u for u in users or []}
        self.nfts = {n.token_id: n for n in nfts or []}
        self.orders: dict[int, Order] = {}
        self.minted: dict[str, NewNft] = {}
        self._order_ids = itertools.count(1)
        self._user_ids = itertools.count(max(self.users, default=0) + 1)
        self._lock = asyncio.Lock()

    async def get_product(self, product_id: int) -> Product:
        try:
            return self.products[product_id]
        except KeyError:
            raise DomainError(ERR_NOT_FOUND, f"product {product_id} not found", product_id=product_id) from None

    async def get_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def get_user_by_wallet(self, wallet_id: str) -> User | None:
        for user in self.users.values():
            if user.wallet_id == wallet_id:
                return user
        return None

    async def create_user(self, wallet_id: str, email: str | None) -> User:
        user = User(id=next(self._user_ids), wallet_id=wallet_id, email=email)
        self.users[user.id] = user
        return user

    async def create_order(self, order: NewOrder) -> Order:
        created = Order(
            id=next(self._order_ids),
            user_id=order.user_id,
            product_id=order.product_id,
            status=order.status,
            total_amount_usd=order.total_amount_usd,
            total_amount_token=order.total_amount_token,
            payment_splits=dict(order.payment_splits),
            shipping_address=copy.deepcopy(order.shipping_address),
            payment_method=order.payment_method,
        )
        self.orders[created.id] = created
        return replace(created)

    async def get_order(self, order_id: int) -> Order:
        try:
            return replace(self.orders[order_id])
        except KeyError:
            raise DomainError(ERR_NOT_FOUND, f"could not find order with id {order_id}", order_id=order_id) from None

    async def claim_order_payment(self, order_id: int, payment_reference: str) -> Order | None:
        async with self._lock:
            order = self.orders.get(order_id)
            if order is None or order.transaction_id is not None:
                return None
            if any(o.transaction_id == payment_reference for o in self.orders.values()):
                return None
            order.transaction_id = payment_reference
            order.status = OrderStatus.PAID
            return replace(order)

    async def complete_order(self, order_id: int, external_order_id: str) -> Order:
        order = self.orders[order_id]
        order.external_order_id = external_order_id
        order.status = OrderStatus.FULFILLED
        return replace(order)

    async def fail_order(self, order_id: int) -> Order:
        order = self.orders[order_id]
        order.status = OrderStatus.ERROR
        return replace(order)

    async def get_nft(self, token_id: str) -> Nft:
        try:
            return self.nfts[token_id]
        except KeyError:
            raise DomainError(ERR_NOT_FOUND, f"nft {token_id} not found") from None

    async def record_minted_nft(self, nft: NewNft) -> None:
        self.minted[nft.token_id] = nft
