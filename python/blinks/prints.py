"""NFT blink actions: buying print editions and indexing minted prints."""

import asyncio
import logging
from typing import Any

from .actions import get_image_for_nft
from .config import Settings
from .constants import (
    ACTION_BID,
    ACTION_BUY,
    ACTION_BUY_PRINT,
    ACTION_PLACE_OFFER,
    ERR_ACTION_NOT_IMPLEMENTED,
    ERR_INVALID_ACCOUNT,
    ERR_METADATA_UNAVAILABLE,
    ERR_NOT_A_PRINT,
    ERR_UNKNOWN_ACTION,
)
from .errors import BlinkError, CollaboratorError, DomainError, ValidationError
from .interfaces import BlinkStore, EditionService, NftIndex, NotificationPublisher
from .models import NewNft
from .schemas import ActionGetResponse, ActionPostLinks, ActionPostResponse, NextAction
from .svm.utils import validate_svm_address

logger = logging.getLogger(__name__)

MINT_EDITION_TOPIC = "mint_edition"


class NotificationDispatcher:
    """Publishes notifications in the background, at least once.

    Each message carries an idempotency key so consumers can drop
    duplicates. Publishing never blocks or fails the calling request; a
    message that still fails after ``max_attempts`` is logged as an error.
    """

    def __init__(
        self,
        publisher: NotificationPublisher,
        max_attempts: int = 5,
        base_delay: float = 0.5,
    ):
        self._publisher = publisher
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._pending: set[asyncio.Task] = set()

    def emit(self, topic: str, payload: dict[str, Any], idempotency_key: str) -> asyncio.Task:
        task = asyncio.create_task(self._deliver(topic, payload, idempotency_key))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, topic: str, payload: dict[str, Any], idempotency_key: str) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._publisher.publish(topic, payload, idempotency_key)
                return True
            except Exception as e:
                logger.warning(
                    "publish %s (%s) failed, attempt %d/%d: %s",
                    topic,
                    idempotency_key,
                    attempt,
                    self._max_attempts,
                    e,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._base_delay * 2 ** (attempt - 1))
        logger.error("giving up on %s notification %s", topic, idempotency_key)
        return False

    async def drain(self) -> None:
        """Wait for in-flight notifications, e.g. on shutdown."""
        if self._pending:
            await asyncio.gather(*self._pending)


class NftActionHandler:
    """Executes posted NFT actions and records minted prints."""

    def __init__(
        self,
        settings: Settings,
        store: BlinkStore,
        editions: EditionService,
        index: NftIndex,
        notifier: NotificationDispatcher,
    ):
        self._settings = settings
        self._store = store
        self._editions = editions
        self._index = index
        self._notifier = notifier

    def index_print_href(self, edition_mint: str) -> str:
        return f"{self._settings.base_path}/nft/index-print/{edition_mint}"

    async def execute(self, token_id: str, action: str, account: str) -> ActionPostResponse:
        """Run a posted NFT action.

        Only ``buy-print`` builds a transaction; fixed-price buys, bids and
        offers are advertised but not executable through blinks yet.
        """
        if not validate_svm_address(account):
            raise ValidationError(ERR_INVALID_ACCOUNT, f"invalid account: {account}")

        if action == ACTION_BUY_PRINT:
            return await self._buy_print(token_id, account)
        if action in (ACTION_BUY, ACTION_BID, ACTION_PLACE_OFFER):
            raise DomainError(ERR_ACTION_NOT_IMPLEMENTED, f"action not implemented: {action}")
        raise ValidationError(ERR_UNKNOWN_ACTION, f"unknown blink action: {action}")

    async def _buy_print(self, token_id: str, account: str) -> ActionPostResponse:
        prints = await self._editions.create_print(token_id, account, count=1)
        if not prints:
            raise CollaboratorError(ERR_METADATA_UNAVAILABLE, f"no print created for {token_id}")
        print_info = prints[0]

        return ActionPostResponse(
            blockchain_id=self._settings.blockchain_id,
            transaction=print_info.transaction,
            message=f"Minting Print Edition #{print_info.edition_number}",
            links=ActionPostLinks(next=NextAction(href=self.index_print_href(print_info.edition_mint))),
        )

    async def index_print(self, token_id: str, account: str) -> ActionGetResponse:
        """Record a print minted by ``account`` and notify its artist."""
        try:
            metadata = await self._index.get_asset(token_id)
        except BlinkError:
            raise
        except Exception as e:
            raise CollaboratorError(ERR_METADATA_UNAVAILABLE, f"DAS error: {e}") from e

        if not metadata.master_edition_mint:
            raise DomainError(ERR_NOT_A_PRINT, f"error: nft is not a print {token_id}")

        parent = await self._store.get_nft(metadata.master_edition_mint)

        new_nft = NewNft(
            token_id=token_id,
            owner_id=account,
            minter_id=account,
            nft_name=parent.nft_name,
            asset_url=parent.asset_url,
            asset_type=parent.asset_type,
            parent_nft=parent.token_id,
            edition=metadata.edition_number or 0,
            max_supply=metadata.print_max_supply,
            cover_image_url=parent.cover_image_url,
            collection_id=parent.collection_id,
            categories=list(parent.categories),
            royalties=parent.royalties,
        )
        await self._store.record_minted_nft(new_nft)

        self._notifier.emit(
            MINT_EDITION_TOPIC,
            {
                "token_id": new_nft.token_id,
                "parent_nft": new_nft.parent_nft,
                "owner_id": new_nft.owner_id,
                "edition": new_nft.edition,
                "artist_id": parent.minter_id,
            },
            idempotency_key=f"{MINT_EDITION_TOPIC}:{new_nft.token_id}",
        )

        return ActionGetResponse(
            blockchain_id=self._settings.blockchain_id,
            icon=get_image_for_nft(parent) or "",
            title=parent.nft_name,
            description=metadata.description,
            label="NFT bought successfully!",
        )
