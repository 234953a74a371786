"""Per-root incremental package scanner.

Each refresh is a mark-and-sweep pass:

- mark: both walks stamp every package they confirm with the pass's
  generation (creating entries for new directories);
- sweep: once the walks finish, entries still carrying an older generation
  are evicted.

The sweep runs even when a walk fails, so a partial pass never leaves
phantom entries behind.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Iterable
from dataclasses import replace
from functools import partial
from typing import TYPE_CHECKING

import structlog

from pkgindex.core.errors import PkgIndexError, ScanError
from pkgindex.core.excludes import ARTIFACT_SUFFIX, LOCK_FILE_PREFIX, is_package_source
from pkgindex.index.models import EntryOrigin, PackageEntry, ScanStats
from pkgindex.index.path import devendor, to_slash
from pkgindex.index.skip import SkipPolicy, visible_in_scope
from pkgindex.index.walker import EntryType, Visitor, WalkAction, fast_walk

if TYPE_CHECKING:
    from pkgindex.index.build_context import BuildContext
    from pkgindex.index.cycle_guard import CycleGuard

log = structlog.get_logger(__name__)


class RootScanner:
    """Discovers and tracks the packages under one source root.

    The entry map is keyed by absolute package directory and is only touched
    while holding ``_lock``. Refresh passes are serialized by
    ``_refresh_lock``; readers never wait for a whole pass, only for the
    entry lock.

    Raises:
        ConfigError: At construction, if the build context names an unknown
            compiler.
    """

    def __init__(
        self,
        src_dir: str,
        context: BuildContext,
        guard: CycleGuard,
        *,
        allow_binary: bool = True,
        skip_dir_names: Iterable[str] = (),
        ignored_dirs: Iterable[str] = (),
        max_workers: int | None = None,
    ) -> None:
        self.src_dir = to_slash(src_dir).rstrip("/")
        self.context = context
        self.allow_binary = allow_binary
        self.max_workers = max_workers

        artifact_dir = context.artifact_dir(self.src_dir)
        # The toolchain's own archives are never scanned.
        self.artifact_dir = None if context.is_stdlib_root(self.src_dir) else artifact_dir

        self._guard = guard
        self._policy = SkipPolicy(
            self.src_dir,
            skip_dir_names=skip_dir_names,
            ignored_dirs=ignored_dirs,
        )
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._packages: dict[str, PackageEntry] = {}
        self._generation = 0
        self._added = 0
        self._scope = ""
        self._pass_id = 0
        # Directories a source file confirmed during the current pass.
        self._source_seen: set[str] = set()
        self.last_stats: ScanStats | None = None

    def __repr__(self) -> str:
        return f"RootScanner({self.src_dir!r}, generation={self._generation})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._packages)

    @property
    def generation(self) -> int:
        return self._generation

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, scope: str = "", *, pass_id: int | None = None) -> ScanStats:
        """Re-walk the root, then evict packages this pass did not confirm.

        Both walks always run; the first error is raised after the sweep.
        ``last_stats`` is updated even when this raises.

        Args:
            scope: Import path the vendor/internal rule is evaluated against.
            pass_id: Cycle-guard pass shared with other roots. Without one the
                scanner opens and closes a pass of its own.

        Raises:
            ScanError: If either walk failed.
        """
        with self._refresh_lock:
            own_pass = pass_id is None
            if pass_id is None:
                pass_id = self._guard.begin_pass()
            with self._lock:
                self._generation += 1
                generation = self._generation
                self._added = 0
                self._source_seen = set()
            self._scope = scope
            self._pass_id = pass_id
            stats = ScanStats(root=self.src_dir, generation=generation)
            started = time.monotonic()
            log.debug("scan_started", root=self.src_dir, generation=generation, scope=scope)

            first_error: PkgIndexError | None = None
            artifact_dir = self.artifact_dir
            try:
                if artifact_dir is not None and os.path.isdir(artifact_dir):
                    first_error = self._walk(
                        artifact_dir, partial(self._visit_artifact, artifact_dir)
                    )
                error = self._walk(self.src_dir, self._visit_source)
                first_error = first_error or error
            finally:
                if own_pass:
                    self._guard.end_pass(pass_id)
                stats.evicted = self._sweep(generation)
                with self._lock:
                    stats.packages = len(self._packages)
                    stats.added = self._added
                stats.duration_seconds = time.monotonic() - started
                stats.error = first_error
                self.last_stats = stats

            if first_error is not None:
                log.warning("scan_failed", root=self.src_dir, error=str(first_error))
                raise first_error
            log.info(
                "scan_finished",
                root=self.src_dir,
                generation=generation,
                packages=stats.packages,
                added=stats.added,
                evicted=stats.evicted,
                duration=round(stats.duration_seconds, 3),
            )
            return stats

    def _walk(self, root: str, visit: Visitor) -> PkgIndexError | None:
        try:
            fast_walk(root, visit, max_workers=self.max_workers)
        except PkgIndexError as e:
            return e
        except Exception as e:
            log.exception("visit_crashed", root=root)
            return ScanError.visit_failed(root, str(e))
        return None

    def _sweep(self, generation: int) -> int:
        with self._lock:
            stale = [d for d, p in self._packages.items() if p.generation < generation]
            for d in stale:
                del self._packages[d]
            # Kept alive by its archive alone: fall back to what the archive says.
            demoted = [
                p
                for d, p in self._packages.items()
                if p.origin is EntryOrigin.SOURCE and d not in self._source_seen
            ]
            for p in demoted:
                p.name = os.path.basename(p.dir)
                p.origin = EntryOrigin.ARTIFACT
        for d in stale:
            log.debug("entry_evicted", dir=d)
        for p in demoted:
            log.debug("entry_source_lost", dir=p.dir)
        return len(stale)

    # ------------------------------------------------------------------
    # Visitors (called concurrently from walker threads)
    # ------------------------------------------------------------------

    def _record(self, dirname: str, name: str, origin: EntryOrigin) -> None:
        """Create or confirm the entry for ``dirname``.

        Source confirmations replace whatever an archive said about the
        package; archive confirmations only refresh the generation. A source
        entry that only its archive confirmed is demoted by the sweep.
        """
        with self._lock:
            if origin is EntryOrigin.SOURCE:
                self._source_seen.add(dirname)
            entry = self._packages.get(dirname)
            if entry is not None:
                entry.generation = self._generation
                if origin is EntryOrigin.SOURCE:
                    entry.name = name
                    entry.origin = origin
                return
            dir_import_path = self._policy.relative(dirname)
            import_path, vendored = devendor(dir_import_path)
            self._packages[dirname] = PackageEntry(
                name=name,
                dir=dirname,
                dir_import_path=dir_import_path,
                import_path=import_path,
                vendored=vendored,
                origin=origin,
                generation=self._generation,
            )
            self._added += 1

    def _visit_source(self, path: str, typ: EntryType) -> WalkAction | None:
        if typ is EntryType.FILE:
            dirname, _, filename = path.rpartition("/")
            # Files directly in the root belong to no importable package.
            if dirname == self.src_dir or not is_package_source(filename):
                return None
            name = self.context.classify(path)
            if name is None:
                return None
            self._record(dirname, name, EntryOrigin.SOURCE)
            # One good file proves the package; skip its siblings.
            return WalkAction.SKIP_FILES

        if typ is EntryType.DIR:
            if self._policy.should_skip(path, self._scope):
                return WalkAction.SKIP_DIR
            return None

        if typ is EntryType.SYMLINK:
            if os.path.basename(path).startswith(LOCK_FILE_PREFIX):
                return None
            if self._policy.should_skip(path, self._scope):
                return None
            if self._guard.should_traverse(self._pass_id, path):
                return WalkAction.TRAVERSE_LINK
        return None

    def _source_path(self, artifact_dir: str, artifact_path: str) -> str:
        """``$GOPATH/pkg/<target>/a/b`` -> ``$GOPATH/src/a/b``."""
        return self.src_dir + artifact_path[len(artifact_dir) :]

    def _visit_artifact(
        self, artifact_dir: str, path: str, typ: EntryType
    ) -> WalkAction | None:
        if typ is EntryType.DIR:
            if self._policy.should_skip(self._source_path(artifact_dir, path), self._scope):
                return WalkAction.SKIP_DIR
            return None
        if typ is not EntryType.FILE or not path.endswith(ARTIFACT_SUFFIX):
            return None
        dirname = self._source_path(artifact_dir, path)[: -len(ARTIFACT_SUFFIX)]
        if not self.allow_binary and not os.path.isdir(dirname):
            return None
        self._record(dirname, os.path.basename(dirname), EntryOrigin.ARTIFACT)
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def entries(self) -> list[PackageEntry]:
        """Snapshot copies of every entry."""
        with self._lock:
            return [replace(p) for p in self._packages.values()]

    def get(self, dirname: str) -> PackageEntry | None:
        with self._lock:
            entry = self._packages.get(to_slash(dirname).rstrip("/"))
            return replace(entry) if entry is not None else None

    def import_paths(self, scope: str = "") -> list[str]:
        """Import paths of importable packages visible from ``scope`` (unsorted)."""
        with self._lock:
            return [
                p.import_path
                for p in self._packages.values()
                if not p.is_command and visible_in_scope(p, scope)
            ]
