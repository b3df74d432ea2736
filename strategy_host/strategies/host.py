from __future__ import annotations

import argparse
import json
import sys
import traceback
import types
import uuid
from enum import Enum
from pathlib import Path
from typing import Any

from strategy_host.execution.order_server import OrderServer

from .bridge import ScriptBridge, bridge_for
from .config import HostConfig
from .errors import BindingError, HostStateError
from .introspect import inspect_script, to_json_dict
from .logging_utils import get_json_logger, set_host_log_level
from .runtime import ScriptRuntime, get_runtime


class HostState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RUNTIME_READY = "runtime_ready"
    BINDINGS_REGISTERED = "bindings_registered"
    MODULE_LOADED = "module_loaded"
    STRATEGY_CONSTRUCTED = "strategy_constructed"
    EVALUATED = "evaluated"
    TERMINATED = "terminated"


class StrategyHost:
    """Drives one strategy script from runtime init to termination.

    Steps must run in order; ``run`` performs all of them and always
    terminates, tearing the runtime down, whether or not a step failed.
    """

    def __init__(
        self,
        config: HostConfig | None = None,
        *,
        runtime: ScriptRuntime | None = None,
        server: OrderServer | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.config = config or HostConfig()
        self.runtime = runtime or get_runtime()
        self.server = server or OrderServer()
        self.correlation_id = correlation_id or uuid.uuid4().hex
        self.state = HostState.UNINITIALIZED
        self.failed_at: HostState | None = None
        self.module: types.ModuleType | None = None
        self.strategy: Any = None
        self.bridge: ScriptBridge | None = None
        self._owns_runtime = False
        self.logger = get_json_logger(
            "strategy_host.host",
            static_fields={"correlation_id": self.correlation_id},
        )

    def _expect(self, expected: HostState, step: str) -> None:
        if self.state is not expected:
            raise HostStateError(
                f"cannot {step}: host is {self.state.value}, expected {expected.value}"
            )

    def init_runtime(self) -> None:
        self._expect(HostState.UNINITIALIZED, "init runtime")
        self.runtime.init()
        self._owns_runtime = True
        self.state = HostState.RUNTIME_READY

    def register_bindings(self) -> None:
        self._expect(HostState.RUNTIME_READY, "register bindings")
        self.runtime.register_bindings()
        self.state = HostState.BINDINGS_REGISTERED

    def load_module(self) -> types.ModuleType:
        self._expect(HostState.BINDINGS_REGISTERED, "load module")
        self.module = self.runtime.import_script(self.config.module_name, self.config.script_path)
        self.state = HostState.MODULE_LOADED
        return self.module

    def construct_strategy(self) -> ScriptBridge:
        self._expect(HostState.MODULE_LOADED, "construct strategy")
        name = self.config.class_name
        cls = getattr(self.module, name, None)
        # a name the script never rebound still refers to the seeded binding
        if cls is None or cls is self.runtime.globals.get(name):
            raise BindingError(f"Script {self.config.script_path} defines no class named {name!r}")
        if not isinstance(cls, type):
            raise BindingError(f"{name!r} in {self.config.script_path} is not a class")

        self.strategy = cls(self.server)
        self.bridge = bridge_for(self.strategy)
        if self.config.method_map:
            self.bridge.remap(self.config.method_map)
        self.state = HostState.STRATEGY_CONSTRUCTED
        self.logger.info(
            "strategy_constructed",
            extra={"class_name": name, "method_map": self.bridge.method_map},
        )
        return self.bridge

    def evaluate(self) -> None:
        self._expect(HostState.STRATEGY_CONSTRUCTED, "evaluate")
        assert self.bridge is not None
        self.bridge.eval()
        self.state = HostState.EVALUATED
        self.logger.info("evaluated", extra={"orders_issued": self.server.issued})

    def terminate(self) -> None:
        if self.state is HostState.TERMINATED:
            return
        if self._owns_runtime:
            self.runtime.teardown()
            self._owns_runtime = False
        self.state = HostState.TERMINATED

    def run(self) -> None:
        self.logger.info(
            "host_start",
            extra={"script": str(self.config.script_path), "module_name": self.config.module_name},
        )
        try:
            self.init_runtime()
            self.register_bindings()
            self.load_module()
            self.construct_strategy()
            self.evaluate()
        except Exception as e:
            self.failed_at = self.state
            self.logger.error(
                "host_failed",
                extra={"state": self.state.value, "error": f"{type(e).__name__}: {e}"},
            )
            raise
        finally:
            self.terminate()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Run a strategy script against the simulated order server",
    )
    p.add_argument("--script", help="Path to the strategy script (env: STRATEGY_HOST_SCRIPT)")
    p.add_argument("--module-name", dest="module_name", help="Module name for the loaded script")
    p.add_argument("--class-name", dest="class_name", help="Strategy class to instantiate")
    p.add_argument(
        "--on-order",
        dest="on_order",
        help="Script method receiving acknowledgements (default: on_order)",
    )
    p.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--correlation-id", dest="cid", help="Optional correlation id for logs")
    p.add_argument(
        "--check",
        action="store_true",
        help="Only inspect the script statically and print a JSON report",
    )
    return p


def _config_from_args(args: argparse.Namespace) -> HostConfig:
    cfg = HostConfig.from_env()
    if args.script:
        cfg.script_path = Path(args.script)
    if args.module_name:
        cfg.module_name = args.module_name
    if args.class_name:
        cfg.class_name = args.class_name
    if args.on_order:
        cfg.method_map["on_order"] = args.on_order
    if args.log_level:
        cfg.log_level = set_host_log_level(args.log_level)
    else:
        set_host_log_level(cfg.log_level)
    return cfg


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        cfg = _config_from_args(args)
        if args.check:
            info = inspect_script(
                cfg.script_path, class_name=cfg.class_name, method_map=cfg.method_map
            )
            print(json.dumps(to_json_dict(info), indent=2))
            return 0 if info.complete else 1
        StrategyHost(cfg, correlation_id=args.cid).run()
    except Exception as e:
        print(f"!!! Strategy host failed: {type(e).__name__}: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
