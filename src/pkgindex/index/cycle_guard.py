"""Symlink cycle protection shared by every walk of a package index."""

from __future__ import annotations

import itertools
import os
import stat
import threading
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


class CycleGuard:
    """Registry of real directory paths already entered through a symlink.

    One guard is shared by all root scanners of a ``PackageIndex`` so that two
    roots linking to the same tree only walk it once. Entries are recorded
    against a pass opened with :meth:`begin_pass`. Within a pass the first
    caller to enter a real path wins and every later caller is refused, even
    if it raced the winner. :meth:`end_pass` drops the pass's entries so the
    next refresh follows the same links again.

    The guard only decides whether a symlink is followed. Regular files and
    directories are never gated by it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._passes: dict[int, set[str]] = {}
        self._ids = itertools.count(1)

    def begin_pass(self) -> int:
        """Open a new pass and return its id."""
        with self._lock:
            pass_id = next(self._ids)
            self._passes[pass_id] = set()
            return pass_id

    def end_pass(self, pass_id: int) -> None:
        """Forget every path entered during ``pass_id``."""
        with self._lock:
            self._passes.pop(pass_id, None)

    def try_enter(self, pass_id: int, real_path: str) -> bool:
        """Record ``real_path`` in a pass; True on first entry, False on any repeat."""
        with self._lock:
            entered = self._passes.setdefault(pass_id, set())
            if real_path in entered:
                return False
            entered.add(real_path)
            return True

    def should_traverse(self, pass_id: int, link_path: str) -> bool:
        """Decide whether the walker should descend through ``link_path``.

        Resolution failures (dangling links, loops, permission errors) and
        links to non-directories all mean "do not traverse".
        """
        try:
            target = Path(link_path).resolve(strict=True)
            if not stat.S_ISDIR(target.stat().st_mode):
                return False
            real_parent = Path(os.path.dirname(link_path)).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            log.debug("symlink_unresolvable", path=link_path, error=str(e))
            return False

        # A link back into its own ancestry would re-walk the current subtree.
        if real_parent == target or target in real_parent.parents:
            log.debug("symlink_cycle", path=link_path, target=str(target))
            return False

        return self.try_enter(pass_id, str(target))

    def entered(self, pass_id: int) -> frozenset[str]:
        """Real paths entered so far during ``pass_id``."""
        with self._lock:
            return frozenset(self._passes.get(pass_id, ()))

    def __len__(self) -> int:
        """Number of passes still open."""
        with self._lock:
            return len(self._passes)
