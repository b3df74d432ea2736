"""Order model shared by the host and strategy scripts."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class Side(IntEnum):
    """Order side. Scripts compare against the named members."""

    BUY = 0
    SELL = 1


class Order(BaseModel):
    """An acknowledged order.

    Only the order server creates orders. ``symbol``, ``side`` and ``order_id``
    are fixed at acknowledgement; ``size`` and ``price`` may be adjusted by the
    receiver of a copy.
    """

    model_config = ConfigDict(validate_assignment=True)

    symbol: str = Field(frozen=True)
    side: Side = Field(frozen=True)
    size: int
    price: float
    order_id: int = Field(frozen=True, ge=1)

    def __str__(self) -> str:
        return (
            f"Order(symbol={self.symbol!r}, side={self.side.name}, size={self.size}, "
            f"price={self.price}, order_id={self.order_id})"
        )
