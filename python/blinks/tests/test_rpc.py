"""Unit tests for the JSON-RPC network adapter."""

from types import SimpleNamespace

import pytest
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from blinks.models import Order, OrderStatus
from blinks.svm.rpc import SolanaRpcNetwork
from blinks.svm.verifier import PaymentVerifier

from conftest import SIG1

STARTING_BALANCE = 5_000_000_000


class StubClient:
    """Returns canned responses shaped like solana-py's AsyncClient."""

    def __init__(self, transaction=None, balance: int = 0, blockhash: Hash | None = None):
        self.transaction = transaction
        self.balance = balance
        self.blockhash = blockhash or Hash.new_unique()
        self.calls: list[tuple] = []

    async def get_transaction(self, signature, **kwargs):
        self.calls.append((signature, kwargs))
        return SimpleNamespace(value=self.transaction)

    async def get_balance(self, pubkey):
        self.calls.append((pubkey,))
        return SimpleNamespace(value=self.balance)

    async def get_latest_blockhash(self):
        return SimpleNamespace(value=SimpleNamespace(blockhash=self.blockhash))


def transfer_transaction(payer: Pubkey, amounts: dict[Pubkey, int]) -> Transaction:
    instructions = [
        transfer(TransferParams(from_pubkey=payer, to_pubkey=recipient, lamports=lamports))
        for recipient, lamports in amounts.items()
    ]
    return Transaction.new_unsigned(Message.new_with_blockhash(instructions, payer, Hash.default()))


def confirmed(tx: Transaction, deltas: dict[str, int], loaded=None, err=None):
    """Wrap ``tx`` with pre/post balances following its account key order."""
    keys = [str(key) for key in tx.message.account_keys]
    if loaded is not None:
        keys += [str(key) for key in loaded.writable] + [str(key) for key in loaded.readonly]
    pre = [STARTING_BALANCE] * len(keys)
    post = [STARTING_BALANCE + deltas.get(key, 0) for key in keys]
    meta = SimpleNamespace(pre_balances=pre, post_balances=post, err=err, loaded_addresses=loaded)
    return SimpleNamespace(transaction=SimpleNamespace(transaction=tx, meta=meta))


@pytest.fixture
def payer() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture
def recipients() -> dict[Pubkey, int]:
    return {Pubkey.new_unique(): 100_000, Pubkey.new_unique(): 250_000}


class TestGetPayment:
    async def test_balance_changes_and_fee_payer(self, payer, recipients):
        tx = transfer_transaction(payer, recipients)
        deltas = {str(k): v for k, v in recipients.items()}
        deltas[str(payer)] = -(sum(recipients.values()) + 5000)
        client = StubClient(confirmed(tx, deltas))

        payment = await SolanaRpcNetwork(client).get_payment(SIG1)

        assert payment.signature == SIG1
        assert payment.fee_payer == str(payer)
        assert payment.error is None
        for recipient, lamports in recipients.items():
            assert payment.balance_changes[str(recipient)] == lamports
        assert payment.balance_changes[str(payer)] == -355_000
        assert payment.balance_changes["11111111111111111111111111111111"] == 0

    async def test_request_parameters(self, payer, recipients):
        client = StubClient(confirmed(transfer_transaction(payer, recipients), {}))
        await SolanaRpcNetwork(client).get_payment(SIG1)

        signature, kwargs = client.calls[0]
        assert signature == Signature.from_string(SIG1)
        assert kwargs["encoding"] == "base64"
        assert kwargs["max_supported_transaction_version"] == 0

    async def test_loaded_addresses_follow_static_keys(self, payer, recipients):
        lookup_writable = Pubkey.new_unique()
        lookup_readonly = Pubkey.new_unique()
        loaded = SimpleNamespace(writable=[lookup_writable], readonly=[lookup_readonly])
        tx = transfer_transaction(payer, recipients)
        client = StubClient(confirmed(tx, {str(lookup_writable): 42}, loaded=loaded))

        payment = await SolanaRpcNetwork(client).get_payment(SIG1)

        assert payment.balance_changes[str(lookup_writable)] == 42
        assert payment.balance_changes[str(lookup_readonly)] == 0
        assert payment.fee_payer == str(payer)

    async def test_failed_transaction_carries_error(self, payer, recipients):
        err = "InstructionError(0, InsufficientFunds)"
        client = StubClient(confirmed(transfer_transaction(payer, recipients), {}, err=err))
        payment = await SolanaRpcNetwork(client).get_payment(SIG1)
        assert payment.error == err

    async def test_unknown_signature(self):
        assert await SolanaRpcNetwork(StubClient()).get_payment(SIG1) is None

    async def test_verifies_order_end_to_end(self, payer, recipients):
        tx = transfer_transaction(payer, recipients)
        deltas = {str(k): v for k, v in recipients.items()}
        deltas[str(payer)] = -sum(recipients.values())
        network = SolanaRpcNetwork(StubClient(confirmed(tx, deltas)))
        order = Order(
            id=3,
            user_id=1,
            product_id=42,
            status=OrderStatus.CREATED,
            total_amount_usd=100,
            total_amount_token=350_000,
            payment_splits={str(k): v for k, v in recipients.items()},
        )

        payment = await PaymentVerifier(network).verify(SIG1, order, payer=str(payer))
        assert payment.fee_payer == str(payer)


class TestBalanceAndBlockhash:
    async def test_get_balance(self, payer):
        client = StubClient(balance=1234)
        assert await SolanaRpcNetwork(client).get_balance(str(payer)) == 1234
        assert client.calls == [(payer,)]

    async def test_get_balance_rejects_bad_address(self):
        with pytest.raises(ValueError, match="could not parse"):
            await SolanaRpcNetwork(StubClient()).get_balance("nope")

    async def test_latest_blockhash(self):
        client = StubClient()
        assert await SolanaRpcNetwork(client).get_latest_blockhash() == client.blockhash
