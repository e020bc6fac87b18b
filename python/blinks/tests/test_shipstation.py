"""Tests for ShipStation order payloads and the HTTP client."""

import json
from datetime import datetime

import httpx
import pytest

from blinks.errors import CollaboratorError
from blinks.models import FulfillmentType, Order, OrderStatus, User
from blinks.orders.shipstation import (
    PLACEHOLDER_CITY,
    ShipStationClient,
    build_fulfillment_request,
    shipstation_timestamp,
)

from conftest import make_product


@pytest.fixture
def order() -> Order:
    return Order(
        id=9,
        user_id=2,
        product_id=42,
        status=OrderStatus.PAID,
        total_amount_usd=3500,
        total_amount_token=357_000_000,
        payment_splits={},
        shipping_address={"rawAddress": "1 Main St"},
        transaction_id="sig1",
    )


@pytest.fixture
def buyer() -> User:
    return User(id=2, wallet_id="Buyer111", email="stored@example.com")


def build(order, buyer, settings, **overrides):
    params = dict(
        order=order,
        product=make_product(),
        user=buyer,
        email="form@example.com",
        size=None,
        payment_reference="sig1",
        settings=settings,
        now=datetime(2026, 6, 1, 12, 30, 5),
    )
    params.update(overrides)
    return build_fulfillment_request(**params)


class TestBuildFulfillmentRequest:
    def test_order_fields(self, order, buyer, settings):
        request = build(order, buyer, settings)

        assert request["orderNumber"] == "foster/studio/devnet/9"
        assert request["orderDate"] == "2026-06-01T12:30:05.0000000"
        assert request["amountPaid"] == 35.0
        assert request["shippingAmount"] == 15.0
        assert request["paymentMethod"] == "blinks: tx sig1"
        assert request["customerEmail"] == "stored@example.com"

    def test_address_passed_through(self, order, buyer, settings):
        request = build(order, buyer, settings)
        assert request["shipTo"]["street1"] == "1 Main St"
        assert request["shipTo"]["city"] == PLACEHOLDER_CITY
        assert request["billTo"] == request["shipTo"]

    def test_falls_back_to_form_email(self, order, settings):
        request = build(order, User(id=2, wallet_id="Buyer111"), settings)
        assert request["customerEmail"] == "form@example.com"

    def test_item_options(self, order, buyer, settings):
        product = make_product(
            fulfillment_type=FulfillmentType.FOSTER,
            options={
                "addons": [
                    {"raw_url": "https://img/raw1.png", "mockup_url": "https://img/mock1.png"},
                    {"raw_url": "https://img/raw2.png", "mockup_url": "https://img/mock2.png"},
                ],
            },
        )
        request = build(order, buyer, settings, product=product, size="L")

        item = request["items"][0]
        assert item["unitPrice"] == 20.0
        assert item["imageUrl"] == "https://img/mock1.png"
        options = {o["name"]: o["value"] for o in item["options"]}
        assert options == {
            "type": "foster",
            "fosterUrl": "https://devnet.fostermarketplace.app/_/merch/42",
            "assetUrl": "https://img/raw1.png,https://img/raw2.png",
            "mockupUrl": "https://img/mock1.png,https://img/mock2.png",
            "size": "L",
        }

    def test_timestamp_format(self):
        assert shipstation_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02T03:04:05.0000000"


def make_client(handler) -> ShipStationClient:
    transport = httpx.MockTransport(handler)
    return ShipStationClient(httpx.AsyncClient(base_url="https://ssapi.example", transport=transport))


class TestShipStationClient:
    async def test_create_order(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"orderId": 123456})

        client = make_client(handler)
        assert await client.create_order({"orderNumber": "foster/studio/devnet/9"}) == "123456"
        await client.aclose()

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/orders/createorder"
        assert json.loads(seen[0].content) == {"orderNumber": "foster/studio/devnet/9"}

    async def test_http_error(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(CollaboratorError, match="failed to POST /orders/createorder") as exc_info:
            await client.create_order({})
        assert exc_info.value.code == "fulfillment_failed"

    async def test_missing_order_id(self):
        client = make_client(lambda request: httpx.Response(200, json={"status": "ok"}))
        with pytest.raises(CollaboratorError, match="no orderId"):
            await client.create_order({})

    async def test_auth_from_settings(self, settings):
        settings.shipstation_api_key = "key"
        settings.shipstation_api_secret = "secret"
        client = ShipStationClient.from_settings(settings)
        try:
            assert client._client.auth is not None
            assert str(client._client.base_url).startswith(settings.shipstation_api_url)
        finally:
            await client.aclose()
