"""Directory skip policy and scope visibility rules."""

from __future__ import annotations

from collections.abc import Iterable

from pkgindex.core.excludes import (
    DEFAULT_SKIPPED_DIRS,
    ESCAPE_HATCH_DIRS,
    VISIBILITY_DIRS,
    is_hidden_dir,
)
from pkgindex.index.models import PackageEntry
from pkgindex.index.path import has_path_prefix, to_slash


class SkipPolicy:
    """Decides which directories under one root are never descended into.

    Paths are absolute with forward slashes. ``scope`` is the import path a
    listing was requested for ("" for everything).
    """

    def __init__(
        self,
        root: str,
        *,
        skip_dir_names: Iterable[str] = (),
        ignored_dirs: Iterable[str] = (),
    ) -> None:
        self._root = to_slash(root).rstrip("/")
        self._skip_names: frozenset[str] = DEFAULT_SKIPPED_DIRS | frozenset(skip_dir_names)
        self._ignored_dirs: frozenset[str] = frozenset(
            [f"{self._root}/{name}" for name in ESCAPE_HATCH_DIRS]
            + [to_slash(d).rstrip("/") for d in ignored_dirs]
        )

    @property
    def ignored_dirs(self) -> frozenset[str]:
        return self._ignored_dirs

    def relative(self, path: str) -> str:
        """Root-relative form of ``path`` ("" for the root itself)."""
        if path == self._root:
            return ""
        return path[len(self._root) + 1 :]

    def should_skip(self, path: str, scope: str = "") -> bool:
        name = path.rsplit("/", 1)[-1]
        if is_hidden_dir(name) or name in self._skip_names:
            return True
        if path in self._ignored_dirs:
            return True
        # vendor/ and internal/ trees are only walked for scopes inside them.
        return bool(
            name in VISIBILITY_DIRS and scope and not has_path_prefix(self.relative(path), scope)
        )


def visible_in_scope(entry: PackageEntry, scope: str) -> bool:
    """Apply the walk's vendor/internal rule to an already indexed entry.

    Entries found by an earlier, wider pass must not leak into a narrower
    listing. Vendored packages are never listed without a scope.
    """
    if not scope:
        return not entry.vendored
    parts = entry.dir_import_path.split("/")
    for i, part in enumerate(parts):
        if part in VISIBILITY_DIRS and not has_path_prefix("/".join(parts[: i + 1]), scope):
            return False
    return True
