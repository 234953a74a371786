"""Incremental package index.

Public surface:
- ``PackageIndex``: aggregate over every source root
- ``RootScanner``: per-root mark-and-sweep scanner
- ``BuildContext``: file classification and root layout
- ``CycleGuard``: shared symlink cycle registry
"""

from pkgindex.index.build_context import BuildContext
from pkgindex.index.cycle_guard import CycleGuard
from pkgindex.index.models import (
    MAIN_PACKAGE,
    EntryOrigin,
    ImportListing,
    PackageEntry,
    ScanStats,
    UpdateResult,
)
from pkgindex.index.packages import PackageIndex
from pkgindex.index.path import devendor, has_path_prefix
from pkgindex.index.scanner import RootScanner
from pkgindex.index.walker import EntryType, WalkAction, fast_walk

__all__ = [
    "MAIN_PACKAGE",
    "BuildContext",
    "CycleGuard",
    "EntryOrigin",
    "EntryType",
    "ImportListing",
    "PackageEntry",
    "PackageIndex",
    "RootScanner",
    "ScanStats",
    "UpdateResult",
    "WalkAction",
    "devendor",
    "fast_walk",
    "has_path_prefix",
]
