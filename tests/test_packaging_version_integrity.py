from __future__ import annotations

import ast
import re
import sys
import tomllib
from pathlib import Path

import travel_rules

ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT / "src" / "travel_rules"


def _project() -> dict[str, object]:
    return tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))["project"]


def _third_party_imports() -> set[str]:
    names: set[str] = set()
    for source in PACKAGE_DIR.rglob("*.py"):
        tree = ast.parse(source.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                names.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                names.add(node.module.split(".")[0])
    return {n for n in names if n != "travel_rules" and n not in sys.stdlib_module_names}


def test_version_matches_pyproject() -> None:
    assert travel_rules.__version__ == _project()["version"]


def test_runtime_imports_are_declared() -> None:
    declared = {
        re.split(r"[<>=!~\[ ;]", dep, maxsplit=1)[0].lower() for dep in _project()["dependencies"]
    }
    assert _third_party_imports() <= declared
    assert _third_party_imports() == {"click", "numpy", "pydantic"}


def test_test_extras_stay_separate() -> None:
    project = _project()
    extras = project["optional-dependencies"]
    assert all(not dep.startswith(project["name"]) for dep in extras["all"])
    assert any(dep.startswith("pytest") for dep in extras["test"])
    assert not any(dep.startswith("pytest") for dep in project["dependencies"])


def test_console_script_points_at_cli_main() -> None:
    assert _project()["scripts"]["travel-rules"] == "travel_rules.cli.main:main"
