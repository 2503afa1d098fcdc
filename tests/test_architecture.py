import ast
import os

import pytest

from conftest import ROOT_DIR

CORE_DIR = os.path.join(ROOT_DIR, "markova", "core")

FORBIDDEN_IMPORTS = ("fastapi", "starlette", "sqlalchemy", "google", "aiohttp", "requests", "PIL", "json_repair")


def core_modules():
    for dirpath, _, filenames in os.walk(CORE_DIR):
        for filename in sorted(filenames):
            if filename.endswith(".py"):
                yield os.path.relpath(os.path.join(dirpath, filename), ROOT_DIR)


def imported_names(path):
    with open(os.path.join(ROOT_DIR, path), encoding="utf-8") as f:
        tree = ast.parse(f.read(), filename=path)
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom) and node.module:
            yield node.module


@pytest.mark.parametrize("path", list(core_modules()))
def test_core_has_no_external_dependencies(path):
    violations = [
        name for name in imported_names(path)
        if name.split(".")[0] in FORBIDDEN_IMPORTS
    ]
    assert violations == []


@pytest.mark.parametrize("path", list(core_modules()))
def test_core_never_imports_adapters(path):
    violations = [
        name for name in imported_names(path)
        if name.startswith(("markova.adapters", "markova.infrastructure"))
    ]
    assert violations == []
