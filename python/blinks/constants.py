"""Constants for the blinks engine."""

from decimal import Decimal

# CAIP-2 network identifiers
SOLANA_MAINNET_CAIP2 = "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"
SOLANA_DEVNET_CAIP2 = "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1"

BLOCKCHAIN_IDS_HEADER = "x-blockchain-ids"

SOL_SYMBOL = "◎"
LAMPORTS_PER_SOL = 1_000_000_000

# Pricing
SLIPPAGE = Decimal("0.02")
SHIPPING_SURCHARGE_CENTS = 1500
SHIPPING_AMOUNT_USD = 15.0

# Transactions
COMPUTE_UNIT_PRICE_MICRO_LAMPORTS = 1_000_000
TRANSACTION_FEE_BUFFER_LAMPORTS = 20_000

# Auctions and offers (SOL)
MIN_BID_INCREMENT = Decimal("0.01")
DEFAULT_RESERVE_PRICE = Decimal("0.1")
MIN_OFFER_PRICE = Decimal("0.01")

SIZE_OPTIONS = [
    ("Small", "S"),
    ("Medium", "M"),
    ("Large", "L"),
    ("Extra Large", "XL"),
    ("2XL", "XXL"),
    ("3XL", "XXXL"),
]

NFT_CDN_PREFIX = "https://cdn.helius-rpc.com/cdn-cgi/image/quality=75/"

PAYMENT_METHOD_SOL = "SOL"

# NFT blink actions
ACTION_BUY = "buy"
ACTION_BID = "bid"
ACTION_BUY_PRINT = "buy-print"
ACTION_PLACE_OFFER = "place-offer"

# Error codes
# Validation
ERR_INVALID_ACCOUNT = "invalid_account"
ERR_INVALID_RECIPIENTS = "invalid_recipients"
ERR_MISSING_FIELD = "missing_field"
ERR_INVALID_FIELD = "invalid_field"
ERR_NEGATIVE_AMOUNT = "negative_amount"

# Domain
ERR_NOT_FOUND = "not_found"
ERR_SOLD_OUT = "sold_out"
ERR_SALE_NOT_STARTED = "sale_not_started"
ERR_SALE_ENDED = "sale_ended"
ERR_ALREADY_PAID = "already_paid"
ERR_ORDER_OWNER_MISMATCH = "order_owner_mismatch"
ERR_INSUFFICIENT_BALANCE = "insufficient_balance"
ERR_PAYMENT_MISMATCH = "payment_mismatch"
ERR_PAYMENT_REFERENCE_IN_USE = "payment_reference_in_use"
ERR_ACTION_NOT_IMPLEMENTED = "action_not_implemented"
ERR_UNKNOWN_ACTION = "unknown_action"
ERR_NOT_A_PRINT = "not_a_print"

# Collaborators
ERR_PAYMENT_NOT_FOUND = "payment_not_found"
ERR_BLOCKHASH_UNAVAILABLE = "blockhash_unavailable"
ERR_SERIALIZATION_FAILED = "serialization_failed"
ERR_RPC_FAILED = "rpc_failed"
ERR_FULFILLMENT_FAILED = "fulfillment_failed"
ERR_METADATA_UNAVAILABLE = "metadata_unavailable"
