from __future__ import annotations

import ast
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .bridge import DEFAULT_METHOD_MAP


@dataclass
class MethodInfo:
    name: str
    lineno: int
    params: list[str]


@dataclass
class ScriptInfo:
    file_path: str
    class_name: str
    found: bool
    bases: list[str] = field(default_factory=list)
    methods: list[MethodInfo] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    docstring: str | None = None

    @property
    def complete(self) -> bool:
        return self.found and not self.missing


def _get_name_from_node(node: ast.AST) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def inspect_script(
    path: Path,
    *,
    class_name: str = "Strategy",
    method_map: dict[str, str] | None = None,
) -> ScriptInfo:
    """Statically describe the strategy class in a script without executing it.

    Only top-level ``class`` statements are considered. Methods inherited from
    script-side base classes are not followed, so the report is advisory.
    Raises SyntaxError for malformed scripts.
    """
    src = path.read_text(encoding="utf-8")
    tree = ast.parse(src, filename=str(path))
    wanted = {**DEFAULT_METHOD_MAP, **(method_map or {})}

    target: ast.ClassDef | None = None
    for node in tree.body:
        # Last definition wins, as at runtime
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            target = node

    if target is None:
        return ScriptInfo(
            file_path=str(path),
            class_name=class_name,
            found=False,
            missing=sorted(wanted),
        )

    methods: list[MethodInfo] = []
    for stmt in target.body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            methods.append(
                MethodInfo(
                    name=stmt.name,
                    lineno=stmt.lineno,
                    params=[a.arg for a in stmt.args.args],
                )
            )
        elif isinstance(stmt, ast.Assign):
            # on_order = handle  (aliasing counts as defining)
            for t in stmt.targets:
                if isinstance(t, ast.Name):
                    methods.append(MethodInfo(name=t.id, lineno=stmt.lineno, params=[]))

    defined = {m.name for m in methods}
    missing = sorted(contract for contract, attr in wanted.items() if attr not in defined)
    bases = [b for b in (_get_name_from_node(n) for n in target.bases) if b]

    return ScriptInfo(
        file_path=str(path),
        class_name=class_name,
        found=True,
        bases=bases,
        methods=methods,
        missing=missing,
        docstring=ast.get_docstring(target),
    )


def to_json_dict(info: ScriptInfo) -> dict[str, Any]:
    payload = asdict(info)
    payload["complete"] = info.complete
    return payload
