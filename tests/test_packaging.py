"""The installed module list matches the flat modules under src/."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


def test_py_modules_match_source_tree():
    with open(ROOT / "pyproject.toml", "rb") as f:
        setuptools = tomllib.load(f)["tool"]["setuptools"]
    assert setuptools["package-dir"] == {"": "src"}
    assert sorted(setuptools["py-modules"]) == sorted(p.stem for p in (ROOT / "src").glob("*.py"))


def test_no_package_directories_under_src():
    assert not list((ROOT / "src").glob("*/__init__.py"))
