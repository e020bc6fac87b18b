"""Merch order lifecycle and fulfillment."""

from .coordinator import OrderFulfillmentCoordinator
from .shipstation import ShipStationClient, build_fulfillment_request

__all__ = [
    "OrderFulfillmentCoordinator",
    "ShipStationClient",
    "build_fulfillment_request",
]
