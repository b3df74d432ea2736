"""Buy 100 GOOG once and print the acknowledgement.

Side, Order and Strategy are provided by the host; no imports needed.
"""


class Strategy(Strategy):
    def eval(self):
        self.send_order("GOOG", Side.BUY, 100, 759.11)

    def on_order(self, order):
        side = "BUY" if order.side == Side.BUY else "SELL"
        print(f"on_order: {order.symbol} {side} {order.size} @ {order.price} (id={order.order_id})")
