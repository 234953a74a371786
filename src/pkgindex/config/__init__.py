"""Config module exports."""

from pkgindex.config.loader import load_config
from pkgindex.config.models import (
    BuildConfig,
    IndexConfig,
    LoggingConfig,
    PkgIndexConfig,
    WalkerConfig,
)

__all__ = [
    "load_config",
    "PkgIndexConfig",
    "BuildConfig",
    "IndexConfig",
    "LoggingConfig",
    "WalkerConfig",
]
