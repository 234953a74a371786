"""Parallel directory walker.

Directories are read by a pool of worker threads. The visitor is called from
whichever worker reads the parent directory, so it must synchronize any shared
state itself. A directory is always passed to the visitor before any of its
entries; sibling directories may be visited concurrently.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

import structlog

from pkgindex.core.errors import ScanError
from pkgindex.index.path import to_slash

log = structlog.get_logger(__name__)


class EntryType(Enum):
    """Kind of filesystem entry passed to a visitor (never follows links)."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"  # sockets, fifos, devices


class WalkAction(Enum):
    """What the walker should do after a visit."""

    CONTINUE = "continue"
    SKIP_DIR = "skip_dir"  # directories only: do not read it
    SKIP_FILES = "skip_files"  # stop visiting regular files in the current directory
    TRAVERSE_LINK = "traverse_link"  # symlinks only: read the link as a directory


Visitor = Callable[[str, EntryType], WalkAction | None]


def default_workers() -> int:
    return max(4, os.cpu_count() or 1)


def _join(dirname: str, name: str) -> str:
    if dirname.endswith("/"):
        return dirname + name
    return f"{dirname}/{name}"


def _entry_type(entry: os.DirEntry[str]) -> EntryType:
    try:
        if entry.is_symlink():
            return EntryType.SYMLINK
        if entry.is_dir(follow_symlinks=False):
            return EntryType.DIR
        if entry.is_file(follow_symlinks=False):
            return EntryType.FILE
    except OSError:
        pass
    return EntryType.OTHER


class _Walk:
    """State of one ``fast_walk`` call."""

    def __init__(self, visit: Visitor, max_workers: int) -> None:
        self._visit = visit
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="pkgindex-walk",
        )
        self._cond = threading.Condition()
        self._pending = 0
        self._error: BaseException | None = None
        self._aborted = threading.Event()

    def run(self, root: str) -> None:
        try:
            self._enqueue(root, visit_dir=False)
            with self._cond:
                while self._pending:
                    self._cond.wait()
        finally:
            self._executor.shutdown(wait=True)
        if self._error is not None:
            raise self._error

    def _enqueue(self, dirname: str, *, visit_dir: bool) -> None:
        with self._cond:
            self._pending += 1
        self._executor.submit(self._work, dirname, visit_dir)

    def _done(self) -> None:
        with self._cond:
            self._pending -= 1
            if not self._pending:
                self._cond.notify_all()

    def _fail(self, error: BaseException) -> None:
        with self._cond:
            if self._error is None:
                self._error = error
        self._aborted.set()

    def _work(self, dirname: str, visit_dir: bool) -> None:
        try:
            if self._aborted.is_set():
                return
            if visit_dir and self._visit(dirname, EntryType.DIR) is WalkAction.SKIP_DIR:
                return
            self._read_dir(dirname)
        except Exception as e:
            self._fail(e)
        finally:
            self._done()

    def _read_dir(self, dirname: str) -> None:
        try:
            with os.scandir(dirname) as it:
                entries = list(it)
        except OSError as e:
            log.debug("dir_unreadable", path=dirname, error=str(e))
            return

        skip_files = False
        for entry in entries:
            if self._aborted.is_set():
                return
            typ = _entry_type(entry)
            path = _join(dirname, entry.name)
            if typ is EntryType.DIR:
                self._enqueue(path, visit_dir=True)
                continue
            if skip_files and typ is EntryType.FILE:
                continue
            action = self._visit(path, typ)
            if action is WalkAction.SKIP_FILES:
                skip_files = True
            elif action is WalkAction.TRAVERSE_LINK and typ is EntryType.SYMLINK:
                self._enqueue(path, visit_dir=False)


def fast_walk(root: str | os.PathLike[str], visit: Visitor, *, max_workers: int | None = None) -> None:
    """Walk the tree under ``root`` calling ``visit(path, entry_type)`` for every entry.

    The root itself is not visited. Paths use forward slashes. Directories
    reached through a traversed symlink are read without a directory visit.

    Unreadable nested directories are skipped. The first exception raised by
    the visitor stops the walk and is re-raised once every worker has
    finished.

    Raises:
        ScanError: If ``root`` cannot be read.
    """
    root_path = to_slash(os.fspath(root))
    if len(root_path) > 1:
        root_path = root_path.rstrip("/")
    try:
        os.scandir(root_path).close()
    except OSError as e:
        raise ScanError.root_unreadable(root_path, e.strerror or str(e)) from e
    _Walk(visit, max_workers or default_workers()).run(root_path)
