from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from strategy_host.strategies.runtime import ScriptRuntime


@pytest.fixture(autouse=True)
def _fresh_host_loggers() -> Iterator[None]:
    """Drop handlers bound to a previous test's captured stderr."""

    def _reset() -> None:
        for name in list(logging.root.manager.loggerDict):
            if name == "strategy_host" or name.startswith("strategy_host."):
                logger = logging.getLogger(name)
                for h in list(logger.handlers):
                    logger.removeHandler(h)
                    h.close()
                logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture
def runtime() -> Iterator[ScriptRuntime]:
    rt = ScriptRuntime()
    rt.init()
    rt.register_bindings()
    yield rt
    rt.teardown()


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(body: str, name: str = "strategy.py") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    return _write
