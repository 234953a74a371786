"""Canonical exclude rules for package discovery.

Tier 0 (name prefixes): hidden and private directories ("." and "_").
    - Never traversed, not user-configurable.

Tier 1 (DEFAULT_SKIPPED_DIRS): non-package content.
    - Test fixtures and foreign dependency caches.
    - Users can add names via ``index.skip_dir_names``.

Tier 2 (ESCAPE_HATCH_DIRS): only skipped at specific paths.
    - ``<root>/v`` and ``<root>/mod`` hold module caches, not GOPATH packages.
    - Users can add absolute paths via ``index.ignored_dirs``.

Tier 3 (VISIBILITY_DIRS): scope-dependent.
    - ``vendor`` and ``internal`` subtrees are only walked for scopes they are
      visible to.
"""

from __future__ import annotations

# =============================================================================
# Tier 0: HIDDEN - never traverse
# =============================================================================

HIDDEN_DIR_PREFIXES: tuple[str, ...] = (".", "_")

# =============================================================================
# Tier 1: DEFAULT_SKIPPED - never contain importable packages
# =============================================================================

DEFAULT_SKIPPED_DIRS: frozenset[str] = frozenset(
    (
        "testdata",  # go tool ignores it by convention
        "node_modules",  # JavaScript dependency cache
    )
)

# =============================================================================
# Tier 2: ESCAPE_HATCH - skipped only at root-specific paths
# =============================================================================

ESCAPE_HATCH_DIRS: frozenset[str] = frozenset(("v", "mod"))

# =============================================================================
# Tier 3: VISIBILITY - surfaced only to scopes inside them
# =============================================================================

VISIBILITY_DIRS: frozenset[str] = frozenset(("vendor", "internal"))

# =============================================================================
# File naming
# =============================================================================

SOURCE_SUFFIX = ".go"
TEST_SOURCE_SUFFIX = "_test.go"
ARTIFACT_SUFFIX = ".a"
LOCK_FILE_PREFIX = ".#"  # emacs lock files are dangling symlinks


def is_hidden_dir(dirname: str) -> bool:
    """Check if directory name is empty, hidden, or private."""
    return not dirname or dirname.startswith(HIDDEN_DIR_PREFIXES)


def is_package_source(filename: str) -> bool:
    """Check if a file name qualifies as non-test Go source."""
    return filename.endswith(SOURCE_SUFFIX) and not filename.endswith(TEST_SOURCE_SUFFIX)


__all__ = [
    "ARTIFACT_SUFFIX",
    "DEFAULT_SKIPPED_DIRS",
    "ESCAPE_HATCH_DIRS",
    "HIDDEN_DIR_PREFIXES",
    "LOCK_FILE_PREFIX",
    "SOURCE_SUFFIX",
    "TEST_SOURCE_SUFFIX",
    "VISIBILITY_DIRS",
    "is_hidden_dir",
    "is_package_source",
]
