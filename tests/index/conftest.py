"""Shared fixtures for index tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from pkgindex.index.build_context import BuildContext
from pkgindex.index.cycle_guard import CycleGuard
from pkgindex.index.scanner import RootScanner

WriteGo = Callable[..., Path]


@pytest.fixture
def write_go() -> WriteGo:
    """Write a Go source file declaring ``pkg`` at ``root/rel``."""

    def _write(root: Path, rel: str, pkg: str, header: str = "") -> Path:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{header}package {pkg}\n\nfunc F() {{}}\n")
        return path

    return _write


@pytest.fixture
def gopath(tmp_path: Path) -> Path:
    """A GOPATH workspace with an empty ``src`` directory."""
    src = tmp_path / "gopath" / "src"
    src.mkdir(parents=True)
    return tmp_path / "gopath"


@pytest.fixture
def context(tmp_path: Path, gopath: Path) -> BuildContext:
    """linux/amd64 gc context whose GOROOT lives inside tmp_path."""
    goroot = tmp_path / "goroot"
    (goroot / "src").mkdir(parents=True)
    return BuildContext(
        compiler="gc",
        goos="linux",
        goarch="amd64",
        goroot=str(goroot),
        gopath=(str(gopath),),
    )


@pytest.fixture
def make_scanner(context: BuildContext) -> Callable[..., RootScanner]:
    def _make(root: Path, **kwargs: object) -> RootScanner:
        ctx = kwargs.pop("context", context)
        guard = kwargs.pop("guard", None) or CycleGuard()
        kwargs.setdefault("max_workers", 4)
        return RootScanner(os.fspath(root), ctx, guard, **kwargs)  # type: ignore[arg-type]

    return _make
