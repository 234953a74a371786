"""Data model for the package index.

A ``PackageEntry`` is owned by exactly one ``RootScanner`` and keyed by its
absolute directory. The result types are plain snapshots handed to callers.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from pkgindex.core.errors import PkgIndexError

MAIN_PACKAGE = "main"
"""Declared name of command packages; never importable."""


class EntryOrigin(str, Enum):
    """Which walk created an entry."""

    SOURCE = "source"
    ARTIFACT = "artifact"


@dataclass(slots=True)
class PackageEntry:
    """One discovered package directory."""

    name: str
    dir: str  # absolute, forward slashes ("/usr/lib/go/src/net/http")
    dir_import_path: str  # root-relative ("foo/bar/vendor/a/b")
    import_path: str  # devendored ("a/b")
    vendored: bool
    origin: EntryOrigin
    generation: int

    @property
    def is_command(self) -> bool:
        return self.name == MAIN_PACKAGE


@dataclass
class ScanStats:
    """Outcome of one root refresh."""

    root: str
    generation: int
    packages: int = 0
    added: int = 0
    evicted: int = 0
    duration_seconds: float = 0.0
    error: PkgIndexError | None = None


@dataclass
class UpdateResult:
    """Outcome of refreshing every root."""

    stats: list[ScanStats] = field(default_factory=list)
    errors: list[PkgIndexError] = field(default_factory=list)
    skipped: bool = False  # throttled by update_interval_sec

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ImportListing:
    """Sorted, de-duplicated import paths plus any errors hit while refreshing.

    A listing with errors is still usable: it holds whatever the failing roots
    managed to confirm.
    """

    import_paths: list[str] = field(default_factory=list)
    errors: list[PkgIndexError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0]

    def __iter__(self) -> Iterator[str]:
        return iter(self.import_paths)

    def __len__(self) -> int:
        return len(self.import_paths)
