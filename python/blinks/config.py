"""Runtime configuration for the blinks engine."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import SOLANA_DEVNET_CAIP2, SOLANA_MAINNET_CAIP2

MAINNET_MARKETPLACE_URL = "https://fostermarketplace.app"
DEVNET_MARKETPLACE_URL = "https://devnet.fostermarketplace.app"

DEFAULT_RPC_URLS = {
    "mainnet": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
}


@dataclass
class Settings:
    """Engine settings.

    Attributes:
        network: Solana cluster name ("mainnet" or "devnet").
        rpc_url: Solana JSON-RPC endpoint.
        merch_payment_address: Platform wallet receiving fees and shipping.
        base_path: Route prefix used when building action links.
        marketplace_url: Storefront used in order and product links.
        shipstation_api_url: ShipStation API root.
        shipstation_api_key: ShipStation basic-auth user.
        shipstation_api_secret: ShipStation basic-auth password.
    """

    network: str = "devnet"
    rpc_url: str = ""
    merch_payment_address: str = ""
    base_path: str = "/v1/blinks"
    marketplace_url: str = ""
    shipstation_api_url: str = "https://ssapi.shipstation.com"
    shipstation_api_key: str = ""
    shipstation_api_secret: str = ""

    def __post_init__(self) -> None:
        if not self.rpc_url:
            self.rpc_url = DEFAULT_RPC_URLS.get(self.network, DEFAULT_RPC_URLS["devnet"])
        if not self.marketplace_url:
            self.marketplace_url = (
                MAINNET_MARKETPLACE_URL if self.network == "mainnet" else DEVNET_MARKETPLACE_URL
            )

    @property
    def blockchain_id(self) -> str:
        """CAIP-2 id of the configured cluster; anything but mainnet is devnet."""
        if self.network == "mainnet":
            return SOLANA_MAINNET_CAIP2
        return SOLANA_DEVNET_CAIP2


def load_settings() -> Settings:
    """Build Settings from the environment, reading a .env file if present."""
    load_dotenv()

    return Settings(
        network=os.getenv("SOLANA_NETWORK", "devnet"),
        rpc_url=os.getenv("SOLANA_RPC_URL", ""),
        merch_payment_address=os.getenv("MERCH_PAYMENT_ADDRESS", ""),
        base_path=os.getenv("BLINKS_BASE_PATH", "/v1/blinks"),
        marketplace_url=os.getenv("MARKETPLACE_URL", ""),
        shipstation_api_url=os.getenv("SHIPSTATION_API_URL", "https://ssapi.shipstation.com"),
        shipstation_api_key=os.getenv("SHIPSTATION_API_KEY", ""),
        shipstation_api_secret=os.getenv("SHIPSTATION_API_SECRET", ""),
    )
