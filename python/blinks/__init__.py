"""Solana Actions (blinks) engine for merch and NFT purchases.

Resolves which actions an entity offers, builds unsigned split-payment
transactions, and confirms payments into fulfilled orders exactly once.

Example:
    ```python
    from blinks import BlinksService, load_settings

    service = BlinksService.create(load_settings(), store, rates, shipstation, editions, das, publisher)
    descriptor = await service.describe_merch("artist", 42)
    body, headers = descriptor.to_dict(), descriptor.headers()
    ```
"""

from .config import Settings, load_settings
from .errors import (
    AlreadyPaidError,
    BlinkError,
    CollaboratorError,
    DataIntegrityError,
    DomainError,
    ValidationError,
)
from .service import BlinksService

__all__ = [
    "BlinksService",
    "Settings",
    "load_settings",
    # Errors
    "BlinkError",
    "ValidationError",
    "DomainError",
    "CollaboratorError",
    "AlreadyPaidError",
    "DataIntegrityError",
]
