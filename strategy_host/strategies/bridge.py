"""Script bridge: forwards contract calls into script-resident strategy objects.

The bridge is the only object the order server ever sees for a script
strategy. Every contract call looks the override up on the script object at
call time, so a script may rebind a method between calls and the next call
picks it up.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from strategy_host.execution.models import Order, Side
from strategy_host.execution.order_server import OrderServer

from .contract import StrategyContract
from .errors import BindingError, PureVirtualCallError
from .logging_utils import get_json_logger

DEFAULT_METHOD_MAP: dict[str, str] = {
    "eval": "eval",
    "on_order": "on_order",
}

CONTRACT_NAME = "Strategy"


def _build_method_map(method_map: Mapping[str, str] | None) -> dict[str, str]:
    unknown = set(method_map or {}) - set(DEFAULT_METHOD_MAP)
    if unknown:
        raise BindingError(f"Unknown contract methods in method map: {sorted(unknown)}")
    return {**DEFAULT_METHOD_MAP, **(method_map or {})}


class ScriptBridge(StrategyContract):
    """Adapter implementing the contract over a script object.

    ``method_map`` maps contract method names to script attribute names; keys
    not given fall back to ``DEFAULT_METHOD_MAP``.
    """

    def __init__(
        self,
        target: Any,
        server: OrderServer,
        method_map: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(server)
        self._target = target
        self._methods = _build_method_map(method_map)

    @property
    def target(self) -> Any:
        return self._target

    @property
    def method_map(self) -> dict[str, str]:
        return dict(self._methods)

    def remap(self, method_map: Mapping[str, str]) -> None:
        """Override script attribute names for some contract methods."""
        self._methods = _build_method_map({**self._methods, **method_map})

    def _resolve(self, method: str):
        fn = getattr(self._target, self._methods[method], None)
        if fn is None or not callable(fn):
            raise PureVirtualCallError(CONTRACT_NAME, method)
        return fn

    def _dispatch(self, method: str, *args: Any) -> Any:
        fn = self._resolve(method)
        logger = get_json_logger("strategy_host.bridge")
        logger.debug(
            "bridge_dispatch",
            extra={
                "method": method,
                "target_attr": self._methods[method],
                "target_type": type(self._target).__name__,
            },
        )
        return fn(*args)

    def eval(self) -> None:
        self._dispatch("eval")

    def on_order(self, order: Order) -> None:
        self._dispatch("on_order", marshal_order(order))


def marshal_order(order: Order) -> Order:
    """Copy an order for delivery into script code.

    The script receives its own instance; mutating ``size`` or ``price`` on it
    never reaches the server's object.
    """
    return order.model_copy(deep=True)


class ScriptStrategy:
    """Base class scripts derive their ``Strategy`` from.

    Constructing an instance attaches a :class:`ScriptBridge`; ``send_order``
    routes through that bridge so acknowledgements come back via the bridge's
    override lookup. ``eval`` and ``on_order`` are intentionally not defined
    here: a subclass that omits one fails when it is called.
    """

    __bridge_method_map__: Mapping[str, str] | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "send_order" in cls.__dict__:
            raise BindingError(f"{cls.__name__} may not override send_order")

    def __init__(self, server: OrderServer) -> None:
        if not isinstance(server, OrderServer):
            raise BindingError(
                f"Strategy expects an OrderServer, got {type(server).__name__}"
            )
        self.__bridge = ScriptBridge(self, server, self.__bridge_method_map__)

    def send_order(self, symbol: str, side: Side | int, size: int, price: float) -> Order:
        return _bridge_of(self).send_order(symbol, side, size, price)


def _bridge_of(obj: ScriptStrategy) -> ScriptBridge:
    try:
        return obj._ScriptStrategy__bridge  # type: ignore[attr-defined]
    except AttributeError:
        raise BindingError(
            f"{type(obj).__name__} did not call Strategy.__init__(server)"
        ) from None


def bridge_for(obj: Any) -> ScriptBridge:
    """Return the bridge attached to a script strategy instance."""
    if not isinstance(obj, ScriptStrategy):
        raise BindingError(
            f"{type(obj).__name__} does not derive from the registered Strategy binding"
        )
    return _bridge_of(obj)
