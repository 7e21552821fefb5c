"""Conformance: environment variables are read only inside core/config.

Provider keys, DSNs and cache windows all reach the code through
``get_core_config()``. This test walks the package AST and fails on any
``os.getenv`` / ``os.environ`` access outside the two sanctioned files.
"""

from __future__ import annotations

import ast
from pathlib import Path

_PKG_ROOT = Path(__file__).resolve().parents[2] / "src" / "contextcache"

_ALLOWED_FILES = {
    _PKG_ROOT / "core" / "config" / "base.py",
    _PKG_ROOT / "core" / "config" / "main.py",
}


def _is_os_environ(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Attribute)
        and node.attr == "environ"
        and isinstance(node.value, ast.Name)
        and node.value.id == "os"
    )


def _env_accesses(path: Path) -> list[tuple[int, str]]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    found: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            if node.attr == "getenv" and isinstance(node.value, ast.Name) and node.value.id == "os":
                found.append((node.lineno, "os.getenv"))
            elif _is_os_environ(node.value):
                found.append((node.lineno, f"os.environ.{node.attr}"))
        elif isinstance(node, ast.Subscript) and _is_os_environ(node.value):
            found.append((node.lineno, "os.environ[...]"))
    return found


def test_allowed_files_exist():
    for path in _ALLOWED_FILES:
        assert path.exists(), f"sanctioned config file missing: {path}"


def test_no_direct_os_environ_usage():
    violations: list[str] = []
    for py_file in sorted(_PKG_ROOT.rglob("*.py")):
        if py_file.resolve() in _ALLOWED_FILES:
            continue
        for lineno, snippet in _env_accesses(py_file):
            violations.append(f"  {py_file.relative_to(_PKG_ROOT)}:{lineno} - {snippet}")

    assert not violations, (
        "Direct environment access outside core/config.\n"
        "Use `from contextcache.core import get_core_config` instead.\n" + "\n".join(violations)
    )
