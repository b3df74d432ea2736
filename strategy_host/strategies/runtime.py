from __future__ import annotations

import builtins
import types
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from strategy_host.execution.models import Order, Side
from strategy_host.execution.order_server import OrderServer

from .bridge import ScriptStrategy
from .errors import RuntimeStateError
from .loader import import_script as _import_script
from .logging_utils import get_json_logger


def default_bindings() -> dict[str, Any]:
    """Host types exposed to scripts by name."""
    return {
        "Side": Side,
        "Order": Order,
        "OrderServer": OrderServer,
        "Strategy": ScriptStrategy,
    }


class ScriptRuntime:
    """Global state of the script runtime.

    ``init`` acquires the global namespace; ``teardown`` releases it. A
    runtime that was torn down may be initialised again, a live one may not.
    """

    def __init__(self) -> None:
        self._globals: dict[str, Any] | None = None
        self._finalized = False

    @property
    def initialized(self) -> bool:
        return self._globals is not None

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def globals(self) -> dict[str, Any]:
        return self._require()

    def _require(self) -> dict[str, Any]:
        if self._globals is None:
            raise RuntimeStateError("script runtime is not initialized")
        return self._globals

    def init(self) -> None:
        if self._globals is not None:
            raise RuntimeStateError("script runtime is already initialized")
        self._globals = {"__builtins__": builtins}
        self._finalized = False
        get_json_logger("strategy_host.runtime").info("runtime_init")

    def register_bindings(self, bindings: Mapping[str, Any] | None = None) -> list[str]:
        """Bind host types into the global namespace. Returns the bound names."""
        ns = self._require()
        items = dict(default_bindings() if bindings is None else bindings)
        ns.update(items)
        names = sorted(items)
        get_json_logger("strategy_host.runtime").info("bindings_registered", extra={"names": names})
        return names

    def import_script(self, module_name: str, path: str | Path) -> types.ModuleType:
        return _import_script(module_name, path, self._require())

    def teardown(self) -> None:
        if self._globals is None:
            return
        self._globals.clear()
        self._globals = None
        self._finalized = True
        get_json_logger("strategy_host.runtime").info("runtime_teardown")


_process_runtime = ScriptRuntime()


def get_runtime() -> ScriptRuntime:
    """Return the process-wide script runtime."""
    return _process_runtime
