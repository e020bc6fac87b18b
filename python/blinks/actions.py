"""Action discovery: which blink actions an entity currently offers."""

from datetime import datetime, timezone
from decimal import Decimal

from .config import Settings
from .constants import (
    ACTION_BID,
    ACTION_BUY,
    ACTION_BUY_PRINT,
    ACTION_PLACE_OFFER,
    DEFAULT_RESERVE_PRICE,
    ERR_SALE_ENDED,
    ERR_SALE_NOT_STARTED,
    ERR_SOLD_OUT,
    MIN_BID_INCREMENT,
    MIN_OFFER_PRICE,
    NFT_CDN_PREFIX,
    SHIPPING_SURCHARGE_CENTS,
    SIZE_OPTIONS,
    SOL_SYMBOL,
)
from .errors import DomainError
from .models import (
    ActiveAuction,
    FixedPriceListing,
    FulfillmentType,
    MasterEditionSale,
    Nft,
    OfferOnly,
    Product,
)
from .schemas import (
    ActionError,
    ActionGetResponse,
    ActionParameter,
    ActionParameterOption,
    LinkActions,
    LinkedAction,
)
from .svm.pricing import CurrencyConverter, RateQuote
from .svm.utils import lamports_to_sol


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_purchasable(product: Product, now: datetime | None = None) -> None:
    """Reject sold-out products and purchases outside the sale window.

    Sale timestamps are naive UTC.

    Raises:
        DomainError: sold out, sale not started, or sale ended.
    """
    now = now or utcnow()
    if product.sold_out:
        raise DomainError(
            ERR_SOLD_OUT,
            f"product {product.name} has sold out; max supply: {product.supply}",
            product_id=product.id,
        )
    if product.sale_start_at is not None and now < product.sale_start_at:
        raise DomainError(
            ERR_SALE_NOT_STARTED,
            f"product {product.name} sale starts at {product.sale_start_at}",
            product_id=product.id,
        )
    if product.sale_end_at is not None and now > product.sale_end_at:
        raise DomainError(
            ERR_SALE_ENDED,
            f"product {product.name} sale ended at {product.sale_end_at}",
            product_id=product.id,
        )


def get_image_for_product(product: Product) -> str | None:
    if product.fulfillment_type is FulfillmentType.FOSTER:
        addons = product.addons
        url = addons[0].get("mockup_url") if addons and isinstance(addons[0], dict) else None
    else:
        images = product.options.get("product_images")
        url = images[0] if isinstance(images, list) and images else None
    return url if isinstance(url, str) else None


def get_image_for_nft(nft: Nft) -> str | None:
    asset_type = nft.asset_type or ""
    if asset_type.startswith("video") or asset_type.startswith("audio") or asset_type == "vr":
        url = nft.cover_image_url
    else:
        url = nft.asset_url
    if not url:
        return None
    return f"{NFT_CDN_PREFIX}{url}"


def _email_parameter() -> ActionParameter:
    return ActionParameter(parameter_type="email", name="email", label="Email", required=True)


def _address_parameter() -> ActionParameter:
    return ActionParameter(
        parameter_type="textarea", name="address", label="Shipping Address", required=True
    )


def _size_parameter() -> ActionParameter:
    return ActionParameter(
        parameter_type="select",
        name="size",
        label="Size",
        required=True,
        options=[ActionParameterOption(label=label, value=value) for label, value in SIZE_OPTIONS],
    )


def _price_parameter(minimum: Decimal) -> ActionParameter:
    return ActionParameter(
        parameter_type="number",
        name="price",
        label="Custom amount",
        required=True,
        min=float(minimum),
    )


class ActionResolver:
    """Builds action descriptors for merch products and NFTs.

    Pure apart from the rate quote handed in by the caller.
    """

    def __init__(self, settings: Settings, converter: CurrencyConverter):
        self._settings = settings
        self._converter = converter

    @property
    def blockchain_id(self) -> str:
        return self._settings.blockchain_id

    # --- Merch ---

    def invalid_product(self, item_id: int, error: str) -> ActionGetResponse:
        return ActionGetResponse(
            blockchain_id=self.blockchain_id,
            title="Invalid Product",
            description=f"Could not find product with id {item_id}",
            label="Buy",
            disabled=True,
            error=ActionError(message=error),
        )

    def merch_href(self, artist: str, product: Product) -> str:
        query = "email={email}&address={address}"
        if product.fulfillment_type is FulfillmentType.FOSTER:
            query = "size={size}&" + query
        return f"{self._settings.base_path}/{artist}/merch/{product.id}?{query}"

    def describe_product(
        self,
        product: Product,
        artist: str,
        rate: RateQuote,
        now: datetime | None = None,
    ) -> ActionGetResponse:
        icon = get_image_for_product(product) or ""

        try:
            ensure_purchasable(product, now)
        except DomainError as e:
            return ActionGetResponse(
                blockchain_id=self.blockchain_id,
                icon=icon,
                title=product.name,
                description=product.description,
                label="Unavailable",
                disabled=True,
                error=ActionError(message=e.message),
            )

        parameters = [_email_parameter(), _address_parameter()]
        if product.fulfillment_type is FulfillmentType.FOSTER:
            parameters.insert(0, _size_parameter())

        cents = product.selling_price + SHIPPING_SURCHARGE_CENTS
        usd_amount = Decimal(cents) / 100
        sol_amount = self._converter.usd_cents_to_sol(cents, rate)

        return ActionGetResponse(
            blockchain_id=self.blockchain_id,
            icon=icon,
            title=product.name,
            description=product.description,
            label="Buy",
            links=LinkActions(
                actions=[
                    LinkedAction(
                        label=f"Buy for {SOL_SYMBOL}{sol_amount:.2f} | ${usd_amount:.2f}",
                        href=self.merch_href(artist, product),
                        parameters=parameters,
                    )
                ]
            ),
        )

    # --- NFTs ---

    def invalid_nft(self, token_id: str, error: str) -> ActionGetResponse:
        return ActionGetResponse(
            blockchain_id=self.blockchain_id,
            title="Invalid NFT",
            description=f"Could not find nft with address {token_id}",
            label="Buy",
            disabled=True,
            error=ActionError(message=error),
        )

    def nft_href(self, token_id: str, action: str, price: str | None = None) -> str:
        href = f"{self._settings.base_path}/nft/{token_id}/{action}"
        if price is not None:
            href += f"?price={price}"
        return href

    def _price_label(self, prefix: str, sol_amount: Decimal, rate: RateQuote) -> str:
        usd_amount = self._converter.sol_to_usd(sol_amount, rate)
        return f"{prefix} {SOL_SYMBOL}{sol_amount:.2f} (~${usd_amount:.2f})"

    def nft_links(self, nft: Nft, rate: RateQuote) -> list[LinkedAction]:
        sale = nft.sale
        token_id = nft.token_id

        if isinstance(sale, FixedPriceListing):
            return [
                LinkedAction(
                    label=self._price_label("Buy now for", sale.price, rate),
                    href=self.nft_href(token_id, ACTION_BUY),
                )
            ]

        if isinstance(sale, ActiveAuction):
            minimum_bid = minimum_bid_for(sale)
            return [
                LinkedAction(
                    label=self._price_label("Place bid for", minimum_bid, rate),
                    href=self.nft_href(token_id, ACTION_BID, str(minimum_bid)),
                ),
                LinkedAction(
                    label="Place bid",
                    href=self.nft_href(token_id, ACTION_BID, "{price}"),
                    parameters=[_price_parameter(minimum_bid)],
                ),
            ]

        if isinstance(sale, MasterEditionSale):
            lamports = self.print_price_lamports(sale, rate)
            return [
                LinkedAction(
                    label=self._price_label("Buy for", lamports_to_sol(lamports), rate),
                    href=self.nft_href(token_id, ACTION_BUY_PRINT),
                )
            ]

        if isinstance(sale, OfferOnly):
            return [
                LinkedAction(
                    label="Place offer",
                    href=self.nft_href(token_id, ACTION_PLACE_OFFER, "{price}"),
                    parameters=[_price_parameter(MIN_OFFER_PRICE)],
                )
            ]

        raise TypeError(f"unhandled sale state: {sale!r}")

    def print_price_lamports(self, sale: MasterEditionSale, rate: RateQuote) -> int:
        """Edition price plus the tied merch product's platform fee, with slippage."""
        lamports = sale.price_lamports
        if sale.merch_fee_cents is not None:
            lamports += self._converter.usd_cents_to_lamports(sale.merch_fee_cents, rate)
        return lamports

    def describe_nft(
        self,
        nft: Nft,
        artist_name: str,
        metadata_description: str,
        rate: RateQuote,
    ) -> ActionGetResponse:
        return ActionGetResponse(
            blockchain_id=self.blockchain_id,
            icon=get_image_for_nft(nft) or "",
            title=nft.nft_name,
            description="\n".join([metadata_description, "", f"nft by {artist_name}"]),
            label="Buy",
            links=LinkActions(actions=self.nft_links(nft, rate)),
        )


def minimum_bid_for(auction: ActiveAuction) -> Decimal:
    """Highest bid plus the increment, else the reserve price (zero reserve means 0.1)."""
    if auction.highest_bid is not None:
        return auction.highest_bid + MIN_BID_INCREMENT
    if auction.reserve_price == 0:
        return DEFAULT_RESERVE_PRICE
    return auction.reserve_price
