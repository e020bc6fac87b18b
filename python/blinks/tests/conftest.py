"""Shared fakes for blinks tests."""

from datetime import datetime

import pytest
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from blinks.config import Settings
from blinks.interfaces import ConfirmedPayment
from blinks.models import FulfillmentType, NftMetadata, PrintEdition, Product, User
from blinks.service import BlinksService
from blinks.store import MemoryStore


def new_address() -> str:
    return str(Pubkey.new_unique())


SIG1 = str(Signature.new_unique())
SIG2 = str(Signature.new_unique())


class FakeNetwork:
    def __init__(self):
        self.blockhash = Hash.new_unique()
        self.balances: dict[str, int] = {}
        self.payments: dict[str, ConfirmedPayment] = {}
        self.blockhash_error: Exception | None = None
        self.blockhash_calls = 0
        self.payment_error: Exception | None = None

    async def get_latest_blockhash(self) -> Hash:
        self.blockhash_calls += 1
        if self.blockhash_error is not None:
            raise self.blockhash_error
        return self.blockhash

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address, 0)

    async def get_payment(self, signature: str) -> ConfirmedPayment | None:
        if self.payment_error is not None:
            raise self.payment_error
        return self.payments.get(signature)

    def pay(self, signature: str, payer: str, splits: dict[str, int], error=None) -> None:
        changes = dict(splits)
        changes[payer] = -sum(splits.values()) - 5000
        self.payments[signature] = ConfirmedPayment(
            signature=signature, fee_payer=payer, balance_changes=changes, error=error
        )


class FakeRateSource:
    def __init__(self, rate: float = 100.0, error: Exception | None = None):
        self.rate = rate
        self.error = error

    async def get_sol_to_usd_rate(self) -> float:
        if self.error is not None:
            raise self.error
        return self.rate


class FakeFulfillment:
    def __init__(self):
        self.requests: list[dict] = []
        self.error: Exception | None = None

    async def create_order(self, request: dict) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return f"ss-{len(self.requests)}"


class FakeEditions:
    def __init__(self):
        self.calls: list[tuple[str, str, int]] = []

    async def create_print(self, master_token_id: str, buyer: str, count: int = 1) -> list[PrintEdition]:
        self.calls.append((master_token_id, buyer, count))
        return [PrintEdition(transaction="dHg=", edition_number=7, edition_mint="PrintMint111")]


class FakeIndex:
    def __init__(self):
        self.assets: dict[str, NftMetadata] = {}
        self.error: Exception | None = None

    async def get_asset(self, token_id: str) -> NftMetadata:
        if self.error is not None:
            raise self.error
        return self.assets[token_id]


class FakePublisher:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.published: list[tuple[str, dict, str]] = []

    async def publish(self, topic: str, payload: dict, idempotency_key: str) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionError("broker unavailable")
        self.published.append((topic, payload, idempotency_key))


@pytest.fixture
def platform_address() -> str:
    return new_address()


@pytest.fixture
def settings(platform_address) -> Settings:
    return Settings(network="devnet", merch_payment_address=platform_address)


@pytest.fixture
def seller() -> User:
    return User(id=1, wallet_id=new_address(), username="artist")


@pytest.fixture
def buyer_address() -> str:
    return new_address()


def make_product(**overrides) -> Product:
    values = dict(
        id=42,
        name="Tee",
        description="A shirt",
        selling_price=2000,
        foster_amount=300,
        fulfillment_type=FulfillmentType.USER,
        user_id=1,
        options={"product_images": ["https://img/tee.png"]},
    )
    values.update(overrides)
    return Product(**values)


@pytest.fixture
def product() -> Product:
    return make_product()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def fulfillment() -> FakeFulfillment:
    return FakeFulfillment()


@pytest.fixture
def index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def store(product, seller) -> MemoryStore:
    return MemoryStore(products=[product], users=[seller])


@pytest.fixture
def service(settings, store, network, rate_source, fulfillment, index, publisher) -> BlinksService:
    return BlinksService(
        settings=settings,
        store=store,
        network=network,
        rate_source=rate_source,
        fulfillment=fulfillment,
        editions=FakeEditions(),
        index=index,
        publisher=publisher,
    )


NOW = datetime(2026, 6, 1, 12, 0, 0)
