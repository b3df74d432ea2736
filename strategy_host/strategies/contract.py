"""Strategy contract.

A strategy is anything that can be evaluated and receive order
acknowledgements. Host-side strategies subclass :class:`StrategyContract`
directly; script-resident strategies reach it through the script bridge.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, final

from strategy_host.execution.models import Order, Side
from strategy_host.execution.order_server import OrderServer

from .errors import BindingError


class StrategyContract(ABC):
    """Capability set every strategy variant implements.

    Holds a non-owning reference to an order server that outlives the strategy.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "send_order" in cls.__dict__:
            raise BindingError(f"{cls.__name__} may not override send_order")

    def __init__(self, server: OrderServer) -> None:
        self._server = server

    @property
    def server(self) -> OrderServer:
        return self._server

    @abstractmethod
    def eval(self) -> None:
        """Run the strategy's decision logic once."""

    @abstractmethod
    def on_order(self, order: Order) -> None:
        """Receive an acknowledged order."""

    @final
    def send_order(self, symbol: str, side: Side | int, size: int, price: float) -> Order:
        return self._server.send_order(self, symbol, side, size, price)


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    side: Side
    size: int
    price: float


class RecordingStrategy(StrategyContract):
    """Host-side strategy that submits a fixed list of requests and records the acks."""

    def __init__(self, server: OrderServer, requests: Iterable[OrderRequest] = ()) -> None:
        super().__init__(server)
        self.requests = list(requests)
        self.received: list[Order] = []

    def eval(self) -> None:
        for req in self.requests:
            self.send_order(req.symbol, req.side, req.size, req.price)

    def on_order(self, order: Order) -> None:
        self.received.append(order)
