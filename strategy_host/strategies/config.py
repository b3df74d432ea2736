from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .logging_utils import get_json_logger

# strategy_host/strategies/ -> project root
_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SCRIPT = _ROOT / "user_data" / "strategies" / "goog_buy.py"


@dataclass
class HostConfig:
    """Host settings, loaded from environment or provided explicitly."""

    script_path: Path = DEFAULT_SCRIPT
    module_name: str = "user_strategy"
    class_name: str = "Strategy"
    # contract method -> script attribute, e.g. {"on_order": "handle_order"}
    method_map: dict[str, str] = field(default_factory=dict)
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls) -> HostConfig:
        logger = get_json_logger("strategy_host.config", static_fields={"op": "from_env"})
        defaults = cls()

        script_path = Path(os.getenv("STRATEGY_HOST_SCRIPT", str(defaults.script_path)))
        logger.debug("loaded_script_path", extra={"value": str(script_path)})

        module_name = os.getenv("STRATEGY_HOST_MODULE", "").strip()
        if not module_name.isidentifier():
            module_name = defaults.module_name
        logger.debug("loaded_module_name", extra={"value": module_name})

        class_name = os.getenv("STRATEGY_HOST_CLASS", "").strip()
        if not class_name.isidentifier():
            class_name = defaults.class_name
        logger.debug("loaded_class_name", extra={"value": class_name})

        method_map: dict[str, str] = {}
        on_order = os.getenv("STRATEGY_HOST_ON_ORDER", "").strip()
        if on_order.isidentifier():
            method_map["on_order"] = on_order
        logger.debug("loaded_method_map", extra={"value": method_map})

        raw_level = os.getenv("STRATEGY_HOST_LOG_LEVEL", "").strip().upper()
        level = logging.getLevelName(raw_level) if raw_level else defaults.log_level
        if not isinstance(level, int):
            level = defaults.log_level
        logger.debug("loaded_log_level", extra={"value": logging.getLevelName(level)})

        return cls(
            script_path=script_path,
            module_name=module_name,
            class_name=class_name,
            method_map=method_map,
            log_level=level,
        )
