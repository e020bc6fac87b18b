"""Domain types for merch products, NFTs and orders.

Records coming from storage are decoded once here via ``from_dict``.
Stored enumerations that fail to parse raise ``DataIntegrityError``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

from .errors import DataIntegrityError


class FulfillmentType(str, Enum):
    """Who ships a merch product."""

    FOSTER = "foster"  # operator-fulfilled
    USER = "user"  # seller-fulfilled

    @classmethod
    def parse(cls, value: str) -> "FulfillmentType":
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise DataIntegrityError(f"could not parse as FulfillmentType: {value!r}") from None


class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    FULFILLED = "fulfilled"
    ERROR = "error"


def _parse_datetime(value: Any) -> datetime | None:
    """Parse a stored timestamp as naive UTC, the convention of ``utcnow``."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_decimal(value: Any) -> Decimal:
    """Parse a stored decimal string; unparseable or missing values read as zero."""
    if value is None:
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


@dataclass
class User:
    id: int
    wallet_id: str
    username: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.username or self.wallet_id


@dataclass
class Product:
    """A merch product with its current supply count.

    Prices are in US cents. ``foster_amount`` is the platform fee included
    in ``selling_price``.
    """

    id: int
    name: str
    description: str
    selling_price: int
    foster_amount: int
    fulfillment_type: FulfillmentType
    user_id: int
    current_supply: int = 0
    supply: int | None = None
    sale_start_at: datetime | None = None
    sale_end_at: datetime | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def sold_out(self) -> bool:
        return self.supply is not None and self.current_supply >= self.supply

    @property
    def addons(self) -> list[dict[str, Any]]:
        addons = self.options.get("addons")
        return addons if isinstance(addons, list) else []

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            selling_price=int(data["selling_price"]),
            foster_amount=int(data.get("foster_amount", 0)),
            fulfillment_type=FulfillmentType.parse(data["fulfillment_type"]),
            user_id=int(data["user_id"]),
            current_supply=int(data.get("current_supply", 0)),
            supply=None if data.get("supply") is None else int(data["supply"]),
            sale_start_at=_parse_datetime(data.get("sale_start_at")),
            sale_end_at=_parse_datetime(data.get("sale_end_at")),
            options=data.get("options") or {},
        )


# --- NFT sale state -------------------------------------------------------


@dataclass(frozen=True)
class FixedPriceListing:
    """Listed at a fixed price (SOL)."""

    price: Decimal


@dataclass(frozen=True)
class ActiveAuction:
    """Running auction; prices in SOL."""

    reserve_price: Decimal
    highest_bid: Decimal | None = None


@dataclass(frozen=True)
class MasterEditionSale:
    """Master edition selling prints.

    ``merch_fee_cents`` is the platform fee of the merch product tied to
    the edition, if any.
    """

    price_lamports: int
    merch_fee_cents: int | None = None


@dataclass(frozen=True)
class OfferOnly:
    """No active sale mechanism."""


SaleState = Union[FixedPriceListing, ActiveAuction, MasterEditionSale, OfferOnly]


def sale_state_from_dict(data: dict[str, Any]) -> SaleState:
    """Collapse the nullable listing/auction/master_edition fields of a stored NFT.

    Precedence: listing, then auction, then master edition.
    """
    listing = data.get("listing")
    if listing:
        return FixedPriceListing(price=parse_decimal(listing.get("list_price")))

    auction = data.get("auction")
    if auction:
        highest_bid = auction.get("highest_bid")
        return ActiveAuction(
            reserve_price=parse_decimal((auction.get("auction") or {}).get("reserve_price")),
            highest_bid=None if not highest_bid else parse_decimal(highest_bid.get("amount")),
        )

    master_edition = data.get("master_edition")
    if master_edition:
        try:
            price = int(master_edition.get("price") or 0)
        except ValueError:
            price = 0
        merch_product = master_edition.get("merch_product")
        return MasterEditionSale(
            price_lamports=price,
            merch_fee_cents=None if not merch_product else int(merch_product.get("foster_amount", 0)),
        )

    return OfferOnly()


@dataclass
class Nft:
    token_id: str
    nft_name: str
    minter_id: str
    asset_url: str
    asset_type: str
    sale: SaleState = field(default_factory=OfferOnly)
    cover_image_url: str | None = None
    collection_id: int | None = None
    categories: list[str] = field(default_factory=list)
    royalties: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Nft":
        return cls(
            token_id=data["token_id"],
            nft_name=data["nft_name"],
            minter_id=data["minter_id"],
            asset_url=data.get("asset_url", ""),
            asset_type=data.get("asset_type", ""),
            sale=sale_state_from_dict(data),
            cover_image_url=data.get("cover_image_url"),
            collection_id=data.get("collection_id"),
            categories=list(data.get("categories") or []),
            royalties=data.get("royalties"),
        )


@dataclass
class NftMetadata:
    """Subset of the indexer (DAS) view of an asset."""

    description: str = ""
    master_edition_mint: str | None = None
    edition_number: int | None = None
    print_max_supply: int | None = None


@dataclass
class NewNft:
    """A freshly minted print to be recorded."""

    token_id: str
    owner_id: str
    minter_id: str
    nft_name: str
    asset_url: str
    asset_type: str
    parent_nft: str
    edition: int
    max_supply: int | None = None
    cover_image_url: str | None = None
    collection_id: int | None = None
    categories: list[str] = field(default_factory=list)
    royalties: Any = None
    minted_on_foster: bool = True


@dataclass
class PrintEdition:
    """A print prepared by the editions service, awaiting the buyer's signature."""

    transaction: str
    edition_number: int
    edition_mint: str


# --- Orders ---------------------------------------------------------------


@dataclass
class NewOrder:
    user_id: int
    product_id: int
    total_amount_usd: int
    total_amount_token: int
    payment_splits: dict[str, int]
    shipping_address: dict[str, Any]
    payment_method: str
    status: OrderStatus = OrderStatus.CREATED


@dataclass
class Order:
    """A merch order.

    ``payment_splits`` maps recipient address to lamports and is the amount
    set the payment is verified against.
    """

    id: int
    user_id: int
    product_id: int
    status: OrderStatus
    total_amount_usd: int
    total_amount_token: int
    payment_splits: dict[str, int]
    shipping_address: dict[str, Any] = field(default_factory=dict)
    payment_method: str = ""
    external_order_id: str | None = None
    transaction_id: str | None = None

    @property
    def raw_address(self) -> str | None:
        value = self.shipping_address.get("rawAddress")
        return value if isinstance(value, str) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "status": self.status.value,
            "total_amount_usd": self.total_amount_usd,
            "total_amount_token": self.total_amount_token,
            "payment_splits": dict(self.payment_splits),
            "shipping_address": dict(self.shipping_address),
            "payment_method": self.payment_method,
            "external_order_id": self.external_order_id,
            "transaction_id": self.transaction_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=int(data["id"]),
            user_id=int(data["user_id"]),
            product_id=int(data["product_id"]),
            status=OrderStatus(data["status"]),
            total_amount_usd=int(data["total_amount_usd"]),
            total_amount_token=int(data["total_amount_token"]),
            payment_splits={k: int(v) for k, v in (data.get("payment_splits") or {}).items()},
            shipping_address=data.get("shipping_address") or {},
            payment_method=data.get("payment_method", ""),
            external_order_id=data.get("external_order_id"),
            transaction_id=data.get("transaction_id"),
        )
