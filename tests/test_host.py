from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from strategy_host.execution.models import Side
from strategy_host.execution.order_server import OrderServer
from strategy_host.strategies.config import HostConfig
from strategy_host.strategies.errors import BindingError, HostStateError, PureVirtualCallError
from strategy_host.strategies.host import HostState, StrategyHost, main
from strategy_host.strategies.runtime import ScriptRuntime

RECORDING_SCRIPT = """
received = []


class Strategy(Strategy):
    def eval(self):
        self.send_order("GOOG", Side.BUY, 100, 759.11)

    def on_order(self, order):
        received.append(order)
"""

NO_CALLBACK_SCRIPT = """
class Strategy(Strategy):
    def eval(self):
        self.send_order("GOOG", Side.BUY, 100, 759.11)
"""


def _host(path: Path, **kwargs) -> StrategyHost:
    return StrategyHost(HostConfig(script_path=path, **kwargs), runtime=ScriptRuntime())


def test_end_to_end_goog_buy(write_script) -> None:
    host = _host(write_script(RECORDING_SCRIPT))

    host.run()

    assert host.state is HostState.TERMINATED
    assert host.failed_at is None
    (order,) = host.module.received
    assert (order.symbol, order.side, order.size, order.price, order.order_id) == (
        "GOOG",
        Side.BUY,
        100,
        759.11,
        1,
    )
    assert host.runtime.finalized


def test_second_run_starts_ids_over(write_script) -> None:
    path = write_script(RECORDING_SCRIPT)
    first = _host(path)
    first.run()
    second = _host(path)
    second.run()

    assert [o.order_id for o in first.module.received] == [1]
    assert [o.order_id for o in second.module.received] == [1]
    assert first.module is not second.module


def test_steps_advance_through_every_state(write_script) -> None:
    host = _host(write_script(RECORDING_SCRIPT))
    seen = [host.state]
    for step in (
        host.init_runtime,
        host.register_bindings,
        host.load_module,
        host.construct_strategy,
        host.evaluate,
        host.terminate,
    ):
        step()
        seen.append(host.state)

    assert seen == list(HostState)


def test_steps_cannot_be_skipped(write_script) -> None:
    host = _host(write_script(RECORDING_SCRIPT))
    with pytest.raises(HostStateError, match="cannot load module"):
        host.load_module()

    host.init_runtime()
    with pytest.raises(HostStateError, match="cannot evaluate"):
        host.evaluate()
    host.terminate()


def test_missing_script_never_constructs(tmp_path: Path) -> None:
    host = _host(tmp_path / "missing.py")

    with pytest.raises(FileNotFoundError):
        host.run()

    assert host.failed_at is HostState.BINDINGS_REGISTERED
    assert host.strategy is None
    assert host.state is HostState.TERMINATED
    assert not host.runtime.initialized


def test_missing_on_order_fails_at_callback(write_script) -> None:
    host = _host(write_script(NO_CALLBACK_SCRIPT))

    with pytest.raises(PureVirtualCallError, match="on_order"):
        host.run()

    assert host.failed_at is HostState.STRATEGY_CONSTRUCTED
    assert host.server.issued == 1


def test_missing_strategy_class(write_script) -> None:
    host = _host(write_script("class Other(Strategy):\n    pass\n"))
    with pytest.raises(BindingError, match="no class named 'Strategy'"):
        host.run()
    assert host.failed_at is HostState.MODULE_LOADED


def test_strategy_name_bound_to_non_class(write_script) -> None:
    host = _host(write_script("Strategy = 3\n"))
    with pytest.raises(BindingError, match="is not a class"):
        host.run()


def test_strategy_not_derived_from_binding(write_script) -> None:
    script = """
    class Strategy:
        def __init__(self, server):
            self.server = server

        def eval(self):
            pass
    """
    host = _host(write_script(script))
    with pytest.raises(BindingError, match="does not derive"):
        host.run()


def test_runtime_error_in_eval_propagates(write_script) -> None:
    script = """
    class Strategy(Strategy):
        def eval(self):
            raise RuntimeError("no market data")

        def on_order(self, order):
            pass
    """
    host = _host(write_script(script))
    with pytest.raises(RuntimeError, match="no market data"):
        host.run()
    assert host.failed_at is HostState.STRATEGY_CONSTRUCTED


def test_configured_class_name_and_method_map(write_script) -> None:
    script = """
    acks = []

    class Momentum(Strategy):
        def eval(self):
            self.send_order("NVDA", Side.SELL, 5, 120.0)

        def handle_ack(self, order):
            acks.append(order.order_id)
    """
    host = _host(
        write_script(script),
        class_name="Momentum",
        method_map={"on_order": "handle_ack"},
    )
    host.run()
    assert host.module.acks == [1]


def test_shared_server_keeps_counting(write_script) -> None:
    server = OrderServer()
    path = write_script(RECORDING_SCRIPT)
    StrategyHost(HostConfig(script_path=path), runtime=ScriptRuntime(), server=server).run()
    host = StrategyHost(HostConfig(script_path=path), runtime=ScriptRuntime(), server=server)
    host.run()
    assert [o.order_id for o in host.module.received] == [2]


def test_host_does_not_tear_down_foreign_runtime(write_script) -> None:
    rt = ScriptRuntime()
    rt.init()
    host = StrategyHost(HostConfig(script_path=write_script(RECORDING_SCRIPT)), runtime=rt)
    try:
        with pytest.raises(Exception, match="already initialized"):
            host.run()
        assert rt.initialized
    finally:
        rt.teardown()


# --- CLI ---


def test_main_success(write_script, capsys: pytest.CaptureFixture[str]) -> None:
    script = """
    class Strategy(Strategy):
        def eval(self):
            self.send_order("GOOG", Side.BUY, 100, 759.11)

        def on_order(self, order):
            print(f"ack {order.symbol} {order.side.name} {order.size} {order.price} {order.order_id}")
    """
    rc = main(["--script", str(write_script(script))])

    out = capsys.readouterr().out
    assert rc == 0
    assert "ack GOOG BUY 100 759.11 1" in out


def test_main_reports_failures(write_script, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--script", str(write_script(NO_CALLBACK_SCRIPT))])

    err = capsys.readouterr().err
    assert rc == 1
    assert "!!! Strategy host failed: PureVirtualCallError" in err
    assert "Traceback (most recent call last)" in err


def test_main_syntax_error(write_script, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--script", str(write_script("class Strategy(:\n"))])
    assert rc == 1
    assert "SyntaxError" in capsys.readouterr().err


def test_main_check_mode(write_script, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--check", "--script", str(write_script(NO_CALLBACK_SCRIPT))])

    report = json.loads(capsys.readouterr().out)
    assert rc == 1
    assert report["found"] is True
    assert report["missing"] == ["on_order"]
    assert report["complete"] is False


def test_main_on_order_flag(write_script, capsys: pytest.CaptureFixture[str]) -> None:
    script = """
    class Strategy(Strategy):
        def eval(self):
            self.send_order("GOOG", Side.BUY, 1, 1.0)

        def ack(self, order):
            print("acked", order.order_id)
    """
    rc = main(["--script", str(write_script(script)), "--on-order", "ack"])
    assert rc == 0
    assert "acked 1" in capsys.readouterr().out


def test_script_overriding_send_order_fails_to_load(write_script) -> None:
    script = """
    class Strategy(Strategy):
        def send_order(self, symbol, side, size, price):
            pass

        def eval(self):
            pass
    """
    host = _host(write_script(script))
    with pytest.raises(BindingError, match="may not override send_order"):
        host.run()
    assert host.failed_at is HostState.BINDINGS_REGISTERED


def test_module_name_shadowing_imported_module(capsys: pytest.CaptureFixture[str]) -> None:
    real = sys.modules["dataclasses"]
    examples = Path(__file__).resolve().parents[1] / "user_data" / "strategies"
    host = _host(examples / "round_trip.py", module_name="dataclasses")

    host.run()

    assert [f[0] for f in host.strategy.fills] == [1, 2]
    assert sys.modules["dataclasses"] is real


def test_main_missing_script(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--script", str(tmp_path / "missing.py")])

    err = capsys.readouterr().err
    assert rc == 1
    assert "!!! Strategy host failed: FileNotFoundError" in err
