"""Tests for the symlink cycle guard."""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path

import pytest

from pkgindex.index.cycle_guard import CycleGuard

needs_symlinks = pytest.mark.skipif(
    sys.platform == "win32", reason="symlinks need privileges on Windows"
)


class TestTryEnter:
    """Tests for CycleGuard.try_enter."""

    def test_first_entry_wins(self) -> None:
        guard = CycleGuard()
        pass_id = guard.begin_pass()
        assert guard.try_enter(pass_id, "/real/a")
        assert not guard.try_enter(pass_id, "/real/a")
        assert guard.try_enter(pass_id, "/real/b")
        assert guard.entered(pass_id) == {"/real/a", "/real/b"}

    def test_racing_threads_admit_exactly_one(self) -> None:
        guard = CycleGuard()
        barrier = threading.Barrier(16)
        results: list[bool] = []
        results_lock = threading.Lock()

        def enter() -> None:
            barrier.wait()
            ok = guard.try_enter(1, "/real/shared")
            with results_lock:
                results.append(ok)

        threads = [threading.Thread(target=enter) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(results) == 16


class TestPasses:
    """Registry lifetime across refresh passes."""

    def test_passes_are_isolated(self) -> None:
        guard = CycleGuard()
        first = guard.begin_pass()
        second = guard.begin_pass()

        assert first != second
        assert guard.try_enter(first, "/real/a")
        assert guard.try_enter(second, "/real/a")
        assert len(guard) == 2

    def test_end_pass_forgets_entries(self) -> None:
        guard = CycleGuard()
        pass_id = guard.begin_pass()
        guard.try_enter(pass_id, "/real/a")

        guard.end_pass(pass_id)

        assert len(guard) == 0
        assert guard.entered(pass_id) == frozenset()
        assert guard.try_enter(guard.begin_pass(), "/real/a")

    def test_end_unknown_pass_is_noop(self) -> None:
        guard = CycleGuard()
        guard.end_pass(42)
        assert len(guard) == 0


@needs_symlinks
class TestShouldTraverse:
    """Tests for CycleGuard.should_traverse."""

    def test_link_to_directory_traversed_once(self, tmp_path: Path) -> None:
        target = tmp_path / "target"
        target.mkdir()
        (tmp_path / "walk").mkdir()
        link1 = tmp_path / "walk" / "l1"
        link2 = tmp_path / "walk" / "l2"
        os.symlink(target, link1)
        os.symlink(target, link2)
        guard = CycleGuard()

        assert guard.should_traverse(1, str(link1))
        assert not guard.should_traverse(1, str(link2))
        assert guard.entered(1) == {str(target.resolve())}

    def test_dangling_link_not_traversed(self, tmp_path: Path) -> None:
        link = tmp_path / "dangling"
        os.symlink(tmp_path / "missing", link)
        guard = CycleGuard()

        assert not guard.should_traverse(1, str(link))
        assert guard.entered(1) == frozenset()

    def test_link_to_file_not_traversed(self, tmp_path: Path) -> None:
        f = tmp_path / "file.go"
        f.write_text("package f\n")
        link = tmp_path / "link"
        os.symlink(f, link)

        assert not CycleGuard().should_traverse(1, str(link))

    def test_link_to_ancestor_not_traversed(self, tmp_path: Path) -> None:
        a = tmp_path / "a" / "b"
        a.mkdir(parents=True)
        up = a / "up"
        here = a / "here"
        os.symlink(tmp_path / "a", up)
        os.symlink(a, here)
        guard = CycleGuard()

        assert not guard.should_traverse(1, str(up))
        assert not guard.should_traverse(1, str(here))
        assert guard.entered(1) == frozenset()

    def test_self_loop_not_traversed(self, tmp_path: Path) -> None:
        loop = tmp_path / "loop"
        os.symlink(loop, loop)

        assert not CycleGuard().should_traverse(1, str(loop))
