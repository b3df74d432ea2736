from __future__ import annotations

from typing import Protocol

from strategy_host.strategies.logging_utils import get_json_logger

from .models import Order, Side


class OrderReceiver(Protocol):
    def on_order(self, order: Order) -> None: ...


class OrderServer:
    """Simulated order server: assigns ids and acknowledges synchronously.

    One instance exists per run and is shared by every strategy of that run.
    Ids start at 1 and strictly increase for the lifetime of the instance.
    """

    def __init__(self) -> None:
        self.next_order_id = 0

    @property
    def issued(self) -> int:
        return self.next_order_id

    def send_order(
        self,
        strategy: OrderReceiver,
        symbol: str,
        side: Side | int,
        size: int,
        price: float,
    ) -> Order:
        """Acknowledge an order request and deliver it to ``strategy.on_order``.

        The callback runs before this method returns; anything it raises
        propagates to the caller. A request that fails validation does not
        consume an id.
        """
        order = Order(
            symbol=symbol,
            side=side,
            size=size,
            price=price,
            order_id=self.next_order_id + 1,
        )
        self.next_order_id = order.order_id
        logger = get_json_logger("strategy_host.order_server")
        logger.info(
            "order_ack",
            extra={
                "order_id": order.order_id,
                "symbol": order.symbol,
                "side": order.side.name,
                "size": order.size,
                "price": order.price,
            },
        )
        strategy.on_order(order)
        return order
