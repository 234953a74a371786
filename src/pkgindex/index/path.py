"""Path normalization for import paths.

Import paths always use forward slashes. Vendored packages are reachable under
the path that follows their innermost ``vendor`` directory.
"""

from __future__ import annotations

import os
from functools import lru_cache

VENDOR_SEGMENT = "/vendor/"
VENDOR_PREFIX = "vendor/"


def to_slash(path: str) -> str:
    """Return path with the OS separator replaced by ``/``."""
    if os.sep == "/":
        return path
    return path.replace(os.sep, "/")


def devendor(import_path: str) -> tuple[str, bool]:
    """Strip vendoring indirection from an import path.

    Returns the devendored path and whether any vendoring was stripped::

        devendor("foo/bar/vendor/a/b")  # ("a/b", True)
        devendor("vendor/a/b")          # ("a/b", True)
        devendor("net/http")            # ("net/http", False)
    """
    # str.rfind scans from the end without allocating; safe on any length.
    i = import_path.rfind(VENDOR_SEGMENT)
    if i >= 0:
        return import_path[i + len(VENDOR_SEGMENT) :], True
    if import_path.startswith(VENDOR_PREFIX):
        return import_path[len(VENDOR_PREFIX) :], True
    return import_path, False


def _swap_case(s: str) -> str:
    return "".join(c.lower() if c.isupper() else c.upper() if c.islower() else c for c in s)


@lru_cache(maxsize=1)
def filesystem_case_sensitive() -> bool:
    """Report whether the working directory's filesystem distinguishes case.

    Stats the case-swapped working directory: if it names the same file, the
    filesystem folds case. Any failure counts as case-sensitive.
    """
    try:
        wd = os.getcwd()
        st = os.stat(wd)
    except OSError:
        return True
    swapped = _swap_case(wd)
    if swapped == wd:
        return True
    try:
        return not os.path.samestat(st, os.stat(swapped))
    except OSError:
        return True


def has_path_prefix(path: str, prefix: str) -> bool:
    """Report whether ``path`` starts with ``prefix``.

    Comparison folds case on case-insensitive filesystems.
    """
    if len(path) < len(prefix):
        return False
    if filesystem_case_sensitive():
        return path.startswith(prefix)
    return path[: len(prefix)].casefold() == prefix.casefold()
