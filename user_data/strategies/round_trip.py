"""Open a position, then close it once the entry is acknowledged."""

from dataclasses import dataclass


@dataclass
class Leg:
    symbol: str
    size: int
    price: float


class Strategy(Strategy):
    entry = Leg("AAPL", 50, 187.25)
    exit_markup = 1.01

    def __init__(self, server):
        super().__init__(server)
        self.fills = []

    def eval(self):
        self.send_order(self.entry.symbol, Side.BUY, self.entry.size, self.entry.price)

    def on_order(self, order):
        self.fills.append((order.order_id, order.side.name, order.size, order.price))
        print(f"ack #{order.order_id}: {order.side.name} {order.size} {order.symbol} @ {order.price}")
        if order.side == Side.BUY:
            self.send_order(order.symbol, Side.SELL, order.size, round(order.price * self.exit_markup, 2))
