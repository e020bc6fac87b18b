"""Solana JSON-RPC implementation of the ``SolanaNetwork`` protocol."""

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.hash import Hash  # type: ignore
from solders.signature import Signature  # type: ignore

from ..interfaces import ConfirmedPayment
from .utils import parse_pubkey


class SolanaRpcNetwork:
    """Blockhash, balance and transaction lookups over an AsyncClient."""

    def __init__(self, client: AsyncClient):
        self._client = client

    @classmethod
    def from_url(cls, rpc_url: str) -> "SolanaRpcNetwork":
        return cls(AsyncClient(rpc_url, commitment=Confirmed))

    async def close(self) -> None:
        await self._client.close()

    async def get_latest_blockhash(self) -> Hash:
        resp = await self._client.get_latest_blockhash()
        return resp.value.blockhash

    async def get_balance(self, address: str) -> int:
        resp = await self._client.get_balance(parse_pubkey(address))
        return resp.value

    async def get_payment(self, signature: str) -> ConfirmedPayment | None:
        resp = await self._client.get_transaction(
            Signature.from_string(signature),
            encoding="base64",
            commitment=Confirmed,
            max_supported_transaction_version=0,
        )
        if resp.value is None:
            return None

        tx_with_meta = resp.value.transaction
        meta = tx_with_meta.meta
        message = tx_with_meta.transaction.message

        account_keys = [str(key) for key in message.account_keys]
        loaded = getattr(meta, "loaded_addresses", None)
        if loaded is not None:
            account_keys += [str(key) for key in loaded.writable]
            account_keys += [str(key) for key in loaded.readonly]

        balance_changes: dict[str, int] = {}
        for key, pre, post in zip(account_keys, meta.pre_balances, meta.post_balances):
            balance_changes[key] = balance_changes.get(key, 0) + (post - pre)

        return ConfirmedPayment(
            signature=signature,
            fee_payer=account_keys[0] if account_keys else "",
            balance_changes=balance_changes,
            error=meta.err,
        )
