"""Shared fixtures: write synthesized class files into a temporary tree."""

from __future__ import annotations

from pathlib import Path

import pytest

from classgen import make_class


@pytest.fixture
def write_class(tmp_path: Path):
    """Write class bytes under ``tmp_path/classes`` at a path derived from the name."""

    root = tmp_path / "classes"

    def _write(name: str, data: bytes | None = None, **kwargs) -> Path:
        path = root / (name.replace(".", "/") + ".class")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data if data is not None else make_class(name, **kwargs))
        return path

    _write.root = root
    return _write


@pytest.fixture
def scenario_a(write_class):
    """P1 has two classes (one abstract) using P2; P2 has one class using P1."""
    write_class("p1.A", uses=("p2.C",))
    write_class("p1.B", abstract=True, uses=("p2.C",))
    write_class("p2.C", uses=("p1.A",))
    return write_class.root
