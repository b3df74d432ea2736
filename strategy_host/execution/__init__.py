"""Order model and the simulated order server."""

from __future__ import annotations

from .models import Order, Side
from .order_server import OrderServer

__all__ = [
    "Order",
    "OrderServer",
    "Side",
]
