"""Transport-agnostic entry points for blink requests.

A web layer maps its routes onto these methods, renders
``to_dict()`` as the JSON body and ``headers()`` as response headers, and
turns a raised ``BlinkError`` into an error response with
``error.to_payload()``. Describe methods never raise for missing or
inactive entities.
"""

import asyncio

from .actions import ActionResolver
from .config import Settings
from .errors import BlinkError
from .interfaces import (
    BlinkStore,
    EditionService,
    FulfillmentService,
    NftIndex,
    NotificationPublisher,
    RateSource,
    SolanaNetwork,
)
from .models import Nft
from .orders.coordinator import OrderFulfillmentCoordinator
from .prints import NftActionHandler, NotificationDispatcher
from .schemas import ActionGetResponse, ActionPostRequest, ActionPostResponse
from .svm.pricing import CurrencyConverter
from .svm.rpc import SolanaRpcNetwork
from .svm.transaction import TransactionBuilder
from .svm.verifier import PaymentVerifier


class BlinksService:
    def __init__(
        self,
        settings: Settings,
        store: BlinkStore,
        network: SolanaNetwork,
        rate_source: RateSource,
        fulfillment: FulfillmentService,
        editions: EditionService,
        index: NftIndex,
        publisher: NotificationPublisher,
    ):
        self.settings = settings
        self._store = store
        self._index = index
        self.converter = CurrencyConverter(rate_source)
        self.resolver = ActionResolver(settings, self.converter)
        self.notifier = NotificationDispatcher(publisher)
        self.orders = OrderFulfillmentCoordinator(
            settings=settings,
            store=store,
            network=network,
            converter=self.converter,
            builder=TransactionBuilder(network),
            verifier=PaymentVerifier(network),
            fulfillment=fulfillment,
        )
        self.nft_actions = NftActionHandler(settings, store, editions, index, self.notifier)

    @classmethod
    def create(
        cls,
        settings: Settings,
        store: BlinkStore,
        rate_source: RateSource,
        fulfillment: FulfillmentService,
        editions: EditionService,
        index: NftIndex,
        publisher: NotificationPublisher,
    ) -> "BlinksService":
        """Wire the service against the configured Solana RPC endpoint."""
        return cls(
            settings=settings,
            store=store,
            network=SolanaRpcNetwork.from_url(settings.rpc_url),
            rate_source=rate_source,
            fulfillment=fulfillment,
            editions=editions,
            index=index,
            publisher=publisher,
        )

    # --- Merch ---

    async def describe_merch(self, artist: str, item_id: int) -> ActionGetResponse:
        try:
            product = await self._store.get_product(item_id)
        except BlinkError as e:
            return self.resolver.invalid_product(item_id, e.message)

        rate = await self.converter.get_rate()
        return self.resolver.describe_product(product, artist, rate)

    async def initiate_merch_purchase(
        self,
        item_id: int,
        request: ActionPostRequest,
        email: str,
        address: str,
        size: str | None = None,
    ) -> ActionPostResponse:
        return await self.orders.initiate(item_id, request.account, email, address, size)

    async def confirm_merch_payment(
        self,
        order_id: int,
        request: ActionPostRequest,
        email: str,
        size: str | None = None,
    ) -> ActionGetResponse:
        return await self.orders.confirm(order_id, request.account, request.signature, email, size)

    # --- NFTs ---

    async def _metadata_description(self, token_id: str) -> str:
        try:
            return (await self._index.get_asset(token_id)).description
        except Exception as e:
            return f"DAS error: {e}"

    async def _find_nft(self, token_id: str) -> Nft | BlinkError:
        try:
            return await self._store.get_nft(token_id)
        except BlinkError as e:
            return e

    async def describe_nft(self, token_id: str) -> ActionGetResponse:
        # Independent lookups
        description, nft = await asyncio.gather(
            self._metadata_description(token_id),
            self._find_nft(token_id),
        )
        if isinstance(nft, BlinkError):
            return self.resolver.invalid_nft(token_id, nft.message)

        artist = await self._store.get_user_by_wallet(nft.minter_id)
        artist_name = artist.username if artist and artist.username else nft.minter_id

        rate = await self.converter.get_rate()
        return self.resolver.describe_nft(nft, artist_name, description, rate)

    async def execute_nft_action(
        self,
        token_id: str,
        action: str,
        request: ActionPostRequest,
    ) -> ActionPostResponse:
        return await self.nft_actions.execute(token_id, action, request.account)

    async def index_print(self, token_id: str, request: ActionPostRequest) -> ActionGetResponse:
        return await self.nft_actions.index_print(token_id, request.account)
