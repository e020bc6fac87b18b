"""Merch order lifecycle for blinks: created -> paid -> fulfilled.

An order enters ``error`` when a step after its creation fails in a way
that cannot be retried safely (transaction assembly after the order row
exists, or the fulfillment call after the payment was claimed).

At-most-once confirmation is enforced solely by the store's
``claim_order_payment`` compare-and-set, which runs after the payment is
verified and before the fulfillment service is called. The earlier
``transaction_id`` check only produces a friendlier error.
"""

import logging
from datetime import datetime
from urllib.parse import urlencode

from ..actions import ensure_purchasable, get_image_for_product, utcnow
from ..config import Settings
from ..constants import (
    ERR_FULFILLMENT_FAILED,
    ERR_INVALID_ACCOUNT,
    ERR_INVALID_FIELD,
    ERR_MISSING_FIELD,
    ERR_NOT_FOUND,
    ERR_ORDER_OWNER_MISMATCH,
    ERR_PAYMENT_REFERENCE_IN_USE,
    ERR_RPC_FAILED,
    PAYMENT_METHOD_SOL,
    SHIPPING_SURCHARGE_CENTS,
    SIZE_OPTIONS,
    TRANSACTION_FEE_BUFFER_LAMPORTS,
)
from ..errors import (
    AlreadyPaidError,
    BlinkError,
    CollaboratorError,
    DomainError,
    InsufficientBalanceError,
    ValidationError,
)
from ..interfaces import BlinkStore, FulfillmentService, SolanaNetwork
from ..models import FulfillmentType, NewOrder, Order, Product, User
from ..schemas import ActionGetResponse, ActionPostLinks, ActionPostResponse, NextAction
from ..svm.pricing import CurrencyConverter
from ..svm.split import PaymentSplit, calculate_payment_shares
from ..svm.transaction import TransactionBuilder
from ..svm.utils import validate_signature, validate_svm_address
from ..svm.verifier import PaymentVerifier
from .shipstation import build_fulfillment_request

logger = logging.getLogger(__name__)

VALID_SIZES = {value for _, value in SIZE_OPTIONS}


def _require(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(ERR_MISSING_FIELD, f"invalid request: missing {name}")
    return value


class OrderFulfillmentCoordinator:
    def __init__(
        self,
        settings: Settings,
        store: BlinkStore,
        network: SolanaNetwork,
        converter: CurrencyConverter,
        builder: TransactionBuilder,
        verifier: PaymentVerifier,
        fulfillment: FulfillmentService,
    ):
        self._settings = settings
        self._store = store
        self._network = network
        self._converter = converter
        self._builder = builder
        self._verifier = verifier
        self._fulfillment = fulfillment

    def checkout_href(self, order_id: int, email: str, size: str | None) -> str:
        query = {"email": email}
        if size:
            query["size"] = size
        return f"{self._settings.base_path}/merch/{order_id}/checkout?{urlencode(query)}"

    async def initiate(
        self,
        item_id: int,
        account: str,
        email: str,
        address: str,
        size: str | None = None,
        now: datetime | None = None,
    ) -> ActionPostResponse:
        """Create a pending order and return the unsigned payment transaction.

        Raises:
            ValidationError: Missing fields, bad size, bad account or recipients.
            DomainError: Product unavailable or buyer balance too low.
            CollaboratorError: RPC failure.
        """
        email = _require(email, "email")
        address = _require(address, "address")
        if not validate_svm_address(account):
            raise ValidationError(ERR_INVALID_ACCOUNT, f"invalid account: {account}")

        product = await self._store.get_product(item_id)
        if product.fulfillment_type is FulfillmentType.FOSTER:
            size = _require(size, "size")
        if size and size not in VALID_SIZES:
            raise ValidationError(ERR_INVALID_FIELD, f"invalid size: {size}", product_id=product.id)

        ensure_purchasable(product, now)

        split, usd_amount = await self._compute_split(product)
        await self._assert_minimum_balance(account, split.total + TRANSACTION_FEE_BUFFER_LAMPORTS)

        user = await self._store.get_user_by_wallet(account)
        if user is None:
            user = await self._store.create_user(account, email)

        order = await self._store.create_order(
            NewOrder(
                user_id=user.id,
                product_id=product.id,
                total_amount_usd=usd_amount,
                total_amount_token=split.total,
                payment_splits=split.to_dict(),
                shipping_address={"rawAddress": address},
                payment_method=PAYMENT_METHOD_SOL,
            )
        )

        try:
            transaction = await self._builder.build(account, split)
        except BlinkError as e:
            await self._store.fail_order(order.id)
            e.context.setdefault("order_id", order.id)
            e.context.setdefault("product_id", product.id)
            raise

        logger.info("order %s created for product %s: %d lamports", order.id, product.id, split.total)

        message = f"Placing Order #{order.id}: {product.name}"
        if size:
            message += f" | {size}"

        return ActionPostResponse(
            blockchain_id=self._settings.blockchain_id,
            transaction=transaction,
            message=message,
            links=ActionPostLinks(next=NextAction(href=self.checkout_href(order.id, email, size))),
        )

    async def _compute_split(self, product: Product) -> tuple[PaymentSplit, int]:
        seller_amount = product.selling_price - product.foster_amount
        platform_amount = product.foster_amount + SHIPPING_SURCHARGE_CENTS

        seller = await self._store.get_user(product.user_id)
        if seller is None:
            raise DomainError(ERR_NOT_FOUND, f"seller of product {product.id} not found", product_id=product.id)

        rate = await self._converter.get_rate()
        try:
            shares = calculate_payment_shares(
                [
                    (seller.wallet_id, seller_amount),
                    (self._settings.merch_payment_address, platform_amount),
                ]
            )
            split = self._converter.split_to_lamports(shares, rate)
            split.validate()
        except ValidationError as e:
            e.context["product_id"] = product.id
            raise
        return split, sum(shares.values())

    async def _assert_minimum_balance(self, account: str, required: int) -> None:
        try:
            balance = await self._network.get_balance(account)
        except Exception as e:
            raise CollaboratorError(ERR_RPC_FAILED, f"could not fetch balance of {account}: {e}") from e
        if balance < required:
            raise InsufficientBalanceError(account, required, balance)

    async def confirm(
        self,
        order_id: int,
        account: str,
        signature: str | None,
        email: str,
        size: str | None = None,
        now: datetime | None = None,
    ) -> ActionGetResponse:
        """Verify the payment and hand the order to fulfillment, once.

        Raises:
            ValidationError: Missing signature or malformed signature.
            AlreadyPaidError: The order already carries a payment reference.
            DomainError: Unknown order or user, wrong owner, reference reused.
            PaymentNotFoundError: Transaction not visible yet; retry later.
            PaymentMismatchError: Transaction does not pay the order.
            CollaboratorError: Fulfillment service failed; order is in ``error``.
        """
        payment_reference = _require(signature, "signature")
        if not validate_signature(payment_reference):
            raise ValidationError(ERR_INVALID_FIELD, f"invalid signature: {payment_reference}", order_id=order_id)

        order = await self._store.get_order(order_id)
        if order.transaction_id is not None:
            raise AlreadyPaidError(order_id, order.transaction_id)

        user = await self._store.get_user_by_wallet(account)
        if user is None:
            raise DomainError(ERR_NOT_FOUND, f"could not find user with account {account}", order_id=order_id)
        if user.id != order.user_id:
            raise DomainError(
                ERR_ORDER_OWNER_MISMATCH, f"order {order_id} does not belong to account {account}", order_id=order_id
            )

        await self._verifier.verify(payment_reference, order, payer=account)

        claimed = await self._store.claim_order_payment(order_id, payment_reference)
        if claimed is None:
            current = await self._store.get_order(order_id)
            if current.transaction_id is not None:
                raise AlreadyPaidError(order_id, current.transaction_id)
            raise DomainError(
                ERR_PAYMENT_REFERENCE_IN_USE,
                f"transaction {payment_reference} already used for another order",
                order_id=order_id,
            )

        product = await self._store.get_product(claimed.product_id)
        external_order_id = await self._request_fulfillment(claimed, product, user, email, size, payment_reference, now)

        await self._store.complete_order(order_id, external_order_id)
        logger.info("order %s fulfilled as %s", order_id, external_order_id)

        return ActionGetResponse(
            blockchain_id=self._settings.blockchain_id,
            action_type="completed",
            title=f"Order #{order_id}",
            icon=get_image_for_product(product) or "",
            description=f"Manage your order at {self._settings.marketplace_url}/orders/{order_id}",
            label="Order placed successfully!",
            disabled=True,
        )

    async def _request_fulfillment(
        self,
        order: Order,
        product: Product,
        user: User,
        email: str,
        size: str | None,
        payment_reference: str,
        now: datetime | None,
    ) -> str:
        request = build_fulfillment_request(
            order=order,
            product=product,
            user=user,
            email=email,
            size=size,
            payment_reference=payment_reference,
            settings=self._settings,
            now=now or utcnow(),
        )
        try:
            return await self._fulfillment.create_order(request)
        except Exception as e:
            # Paid but not fulfilled: park in error for manual follow-up.
            await self._store.fail_order(order.id)
            logger.error("fulfillment failed for order %s (product %s): %s", order.id, product.id, e)
            if isinstance(e, BlinkError):
                e.context.setdefault("order_id", order.id)
                e.context.setdefault("product_id", product.id)
                raise
            raise CollaboratorError(
                ERR_FULFILLMENT_FAILED,
                f"failed to create fulfillment order: {e}",
                order_id=order.id,
                product_id=product.id,
            ) from e
