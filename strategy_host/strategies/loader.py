"""Load strategy scripts as modules inside the script runtime.

Nothing here caches: each call compiles and executes the source again and
returns a new module object.
"""

from __future__ import annotations

import sys
import types
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from .logging_utils import get_json_logger

_RESERVED = {"__builtins__", "__name__", "__file__", "__doc__", "__loader__", "__spec__", "__package__"}


def load_module(
    source: str | bytes,
    module_name: str,
    namespace: MutableMapping[str, Any],
    *,
    filename: str | None = None,
) -> types.ModuleType:
    """Execute ``source`` as a new module named ``module_name``.

    The module's globals are seeded with the bindings found in ``namespace``
    (everything except module names bound there earlier), and the resulting
    module is bound into ``namespace[module_name]``.

    Raises SyntaxError for malformed source; exceptions raised by the
    script's top-level code propagate unchanged.
    """
    code_filename = filename or f"<{module_name}>"
    code = compile(source, code_filename, "exec", dont_inherit=True)

    module = types.ModuleType(module_name)
    for key, value in namespace.items():
        if key in _RESERVED or isinstance(value, types.ModuleType):
            continue
        module.__dict__[key] = value
    if "__builtins__" in namespace:
        module.__dict__["__builtins__"] = namespace["__builtins__"]
    if filename is not None:
        module.__file__ = filename

    # Visible in sys.modules only while executing (dataclasses and friends
    # look the defining module up there). A name already taken by an
    # imported module is left alone so the script can still import it.
    registered = module_name not in sys.modules
    if registered:
        sys.modules[module_name] = module
    try:
        exec(code, module.__dict__)
    finally:
        if registered and sys.modules.get(module_name) is module:
            del sys.modules[module_name]

    namespace[module_name] = module
    return module


def import_script(
    module_name: str,
    path: str | Path,
    namespace: MutableMapping[str, Any],
) -> types.ModuleType:
    """Read the script at ``path`` and load it as ``module_name``.

    Raises FileNotFoundError if the script is missing and OSError if it cannot
    be read.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Strategy script not found: {p}")

    logger = get_json_logger("strategy_host.loader")
    source = p.read_bytes()
    module = load_module(source, module_name, namespace, filename=str(p))
    logger.info(
        "module_loaded",
        extra={"module_name": module_name, "path": str(p), "bytes": len(source)},
    )
    return module
