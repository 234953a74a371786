"""Package index over every configured source root."""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence

import structlog

from pkgindex.config.models import BuildConfig, IndexConfig, PkgIndexConfig, WalkerConfig
from pkgindex.core.errors import ConfigError, PkgIndexError
from pkgindex.core.logging import clear_scan_id, set_scan_id
from pkgindex.index.build_context import BuildContext
from pkgindex.index.cycle_guard import CycleGuard
from pkgindex.index.models import ImportListing, PackageEntry, UpdateResult
from pkgindex.index.path import to_slash
from pkgindex.index.scanner import RootScanner
from pkgindex.index.skip import visible_in_scope

log = structlog.get_logger(__name__)


class PackageIndex:
    """Deduplicated, sorted view of the packages under several roots.

    Every root gets its own ``RootScanner``; all scanners share one
    ``CycleGuard``. Roots whose scanner cannot be built (unknown compiler)
    are left out and reported in ``skipped_roots``.

    Usage::

        index = PackageIndex.from_config(load_config())
        listing = index.list_imports()
        for import_path in listing:
            ...
        listing.raise_for_errors()
    """

    def __init__(
        self,
        context: BuildContext | None = None,
        roots: Sequence[str] | None = None,
        *,
        index_config: IndexConfig | None = None,
        walker_config: WalkerConfig | None = None,
        guard: CycleGuard | None = None,
    ) -> None:
        self.context = context or BuildContext.from_config(BuildConfig())
        self.config = index_config or IndexConfig()
        walker_config = walker_config or WalkerConfig()
        self.guard = guard or CycleGuard()
        self.skipped_roots: dict[str, ConfigError] = {}

        self._scanners: list[RootScanner] = []
        seen: set[str] = set()
        for root in self.context.src_dirs() if roots is None else roots:
            root = to_slash(root).rstrip("/")
            if root in seen:
                continue
            seen.add(root)
            try:
                scanner = RootScanner(
                    root,
                    self.context,
                    self.guard,
                    allow_binary=self.config.allow_binary,
                    skip_dir_names=self.config.skip_dir_names,
                    ignored_dirs=self.config.ignored_dirs,
                    max_workers=walker_config.max_workers,
                )
            except ConfigError as e:
                log.warning("root_skipped", root=root, error=str(e))
                self.skipped_roots[root] = e
                continue
            self._scanners.append(scanner)

        self._update_lock = threading.Lock()
        self._last_update: float | None = None
        self._last_scope: str | None = None

    @classmethod
    def from_config(
        cls, config: PkgIndexConfig, roots: Sequence[str] | None = None
    ) -> PackageIndex:
        return cls(
            BuildContext.from_config(config.build),
            roots,
            index_config=config.index,
            walker_config=config.walker,
        )

    @property
    def roots(self) -> list[str]:
        return [s.src_dir for s in self._scanners]

    @property
    def scanners(self) -> list[RootScanner]:
        return list(self._scanners)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _is_fresh(self, scope: str) -> bool:
        interval = self.config.update_interval_sec
        if interval <= 0 or self._last_update is None or self._last_scope != scope:
            return False
        return time.monotonic() - self._last_update < interval

    def update(self, scope: str = "", *, force: bool = True) -> UpdateResult:
        """Refresh every root in turn.

        A failing root never stops the others; its error is collected in the
        result. All roots share one cycle-guard pass, so a tree linked from
        two roots is walked by the first only. Pass ``force=False`` to honor
        ``update_interval_sec``.
        """
        with self._update_lock:
            if not force and self._is_fresh(scope):
                return UpdateResult(skipped=True)

            result = UpdateResult()
            set_scan_id()
            pass_id = self.guard.begin_pass()
            try:
                for scanner in self._scanners:
                    try:
                        scanner.refresh(scope, pass_id=pass_id)
                    except PkgIndexError as e:
                        result.errors.append(e)
                    if scanner.last_stats is not None:
                        result.stats.append(scanner.last_stats)
                log.info(
                    "update_finished",
                    roots=len(self._scanners),
                    packages=sum(s.packages for s in result.stats),
                    errors=len(result.errors),
                )
            finally:
                self.guard.end_pass(pass_id)
                clear_scan_id()

            if result.ok:
                self._last_update = time.monotonic()
                self._last_scope = scope
            else:
                self._last_update = None
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_imports(self, scope: str = "") -> ImportListing:
        """Refresh, then return the sorted unique import paths visible from ``scope``.

        ``main`` packages are never listed. Errors from failing roots come back
        in the listing next to whatever those roots still hold.
        """
        result = self.update(scope, force=False)
        paths: set[str] = set()
        for scanner in self._scanners:
            paths.update(scanner.import_paths(scope))
        return ImportListing(import_paths=sorted(paths), errors=list(result.errors))

    def packages(self, scope: str = "", *, include_commands: bool = False) -> list[PackageEntry]:
        """Indexed entries visible from ``scope``, ordered by import path then root."""
        entries = [
            p
            for scanner in self._scanners
            for p in scanner.entries()
            if (include_commands or not p.is_command) and visible_in_scope(p, scope)
        ]
        entries.sort(key=lambda p: (p.import_path, p.dir))
        return entries

    def lookup(self, import_path: str) -> list[PackageEntry]:
        """Every root's entries for ``import_path``, in root order.

        Reads the current index without refreshing it.
        """
        found: list[PackageEntry] = []
        for scanner in self._scanners:
            matches = [p for p in scanner.entries() if p.import_path == import_path]
            found.extend(sorted(matches, key=lambda p: p.dir))
        return found

    def __contains__(self, import_path: object) -> bool:
        return isinstance(import_path, str) and bool(self.lookup(import_path))

    def dirs(self) -> list[str]:
        """Sorted directories of every indexed package, commands included."""
        return sorted(p.dir for scanner in self._scanners for p in scanner.entries())
