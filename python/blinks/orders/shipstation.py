"""ShipStation fulfillment requests for blink merch orders."""

import logging
from datetime import datetime
from typing import Any

import httpx

from ..actions import get_image_for_product
from ..config import Settings
from ..constants import ERR_FULFILLMENT_FAILED, SHIPPING_AMOUNT_USD
from ..errors import CollaboratorError
from ..models import Order, Product, User

logger = logging.getLogger(__name__)

PLACEHOLDER_STREET = "could not get street1 of address"
PLACEHOLDER_CITY = "Blink City"


def shipstation_timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.0000000")


def _addon_urls(product: Product, key: str) -> str:
    return ",".join(
        addon[key] for addon in product.addons if isinstance(addon, dict) and isinstance(addon.get(key), str)
    )


def build_fulfillment_request(
    *,
    order: Order,
    product: Product,
    user: User,
    email: str,
    size: str | None,
    payment_reference: str,
    settings: Settings,
    now: datetime,
) -> dict[str, Any]:
    """Build a ShipStation ``createorder`` payload for a paid blink order.

    The buyer's address is free text, so it is passed through as street1.
    """
    address = {
        "name": user.display_name,
        "street1": order.raw_address or PLACEHOLDER_STREET,
        "city": PLACEHOLDER_CITY,
    }
    product_url = f"{settings.marketplace_url}/_/merch/{product.id}"
    image_url = get_image_for_product(product) or ""

    options = [
        {"name": "type", "value": product.fulfillment_type.value},
        {"name": "fosterUrl", "value": product_url},
        {"name": "assetUrl", "value": _addon_urls(product, "raw_url")},
        {"name": "mockupUrl", "value": _addon_urls(product, "mockup_url")},
    ]
    technique = product.options.get("print_technique")
    if isinstance(technique, str):
        options.append({"name": "technique", "value": technique})
    if size:
        options.append({"name": "size", "value": size})

    order_date = shipstation_timestamp(now)
    return {
        "orderNumber": f"foster/studio/{settings.network}/{order.id}",
        "orderKey": "",
        "orderDate": order_date,
        "paymentDate": order_date,
        "orderStatus": "awaiting_shipment",
        "customerEmail": user.email or email,
        "billTo": address,
        "shipTo": address,
        "items": [
            {
                "lineItemKey": str(product.id),
                "name": product.name,
                "imageUrl": image_url,
                "weight": {"value": 0.0, "units": "ounces"},
                "quantity": 1,
                "unitPrice": product.selling_price / 100,
                "options": options,
                "adjustment": False,
            }
        ],
        "amountPaid": order.total_amount_usd / 100,
        "taxAmount": 0.0,
        "shippingAmount": SHIPPING_AMOUNT_USD,
        "customerNotes": "ordered via blink!",
        "internalNotes": f"assetUrl: {image_url}",
        "gift": False,
        "paymentMethod": f"blinks: tx {payment_reference}",
        "requestedShippingService": "blinks",
        "weight": {"value": 0.5, "units": "ounces"},
    }


class ShipStationClient:
    """``FulfillmentService`` backed by the ShipStation REST API."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, timeout: float = 30.0) -> "ShipStationClient":
        client = httpx.AsyncClient(
            base_url=settings.shipstation_api_url,
            auth=(settings.shipstation_api_key, settings.shipstation_api_secret),
            timeout=timeout,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_order(self, request: dict[str, Any]) -> str:
        try:
            resp = await self._client.post("/orders/createorder", json=request)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError(ERR_FULFILLMENT_FAILED, f"failed to POST /orders/createorder: {e}") from e

        order_id = data.get("orderId") if isinstance(data, dict) else None
        if order_id is None:
            raise CollaboratorError(ERR_FULFILLMENT_FAILED, "failed to create order: response has no orderId")

        logger.info("created ShipStation order %s for %s", order_id, request.get("orderNumber"))
        return str(order_id)
