"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (PKGINDEX__SECTION__KEY)
3. Explicit YAML file passed to load_config()
4. Global YAML (~/.config/pkgindex/config.yaml)
5. Built-in defaults (this file), which read the usual Go environment
   variables (GOROOT, GOPATH, GOOS, GOARCH, CGO_ENABLED)

Environment Variable Format:
    PKGINDEX__<SECTION>__<KEY>=<VALUE>

Examples:
    PKGINDEX__LOGGING__LEVEL=DEBUG
    PKGINDEX__BUILD__GOOS=windows
    PKGINDEX__WALKER__MAX_WORKERS=8
    PKGINDEX__INDEX__ALLOW_BINARY=false
"""

import os
import platform
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_GOOS_BY_PLATFORM = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "aix": "aix",
}

_GOARCH_BY_MACHINE = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "mips64": "mips64",
}


def _default_goos() -> str:
    if goos := os.environ.get("GOOS"):
        return goos
    for prefix in ("freebsd", "openbsd", "netbsd", "dragonfly", "sunos"):
        if sys.platform.startswith(prefix):
            return "solaris" if prefix == "sunos" else prefix
    return _GOOS_BY_PLATFORM.get(sys.platform, sys.platform)


def _default_goarch() -> str:
    if goarch := os.environ.get("GOARCH"):
        return goarch
    machine = platform.machine().lower()
    return _GOARCH_BY_MACHINE.get(machine, machine)


def _default_goroot() -> str:
    return os.environ.get("GOROOT") or str(Path("/usr/local/go"))


def _default_gopath() -> list[str]:
    if gopath := os.environ.get("GOPATH"):
        return [p for p in gopath.split(os.pathsep) if p]
    return [str(Path("~/go").expanduser())]


def _default_cgo_enabled() -> bool:
    return os.environ.get("CGO_ENABLED", "1") != "0"


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        PKGINDEX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG logs every unreadable directory and eviction.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class BuildConfig(BaseModel):
    """Build context used to classify source files and locate artifacts.

    Env vars:
        PKGINDEX__BUILD__COMPILER: gc or gccgo
        PKGINDEX__BUILD__GOOS / PKGINDEX__BUILD__GOARCH: Target platform
        PKGINDEX__BUILD__GOROOT: Toolchain root
        PKGINDEX__BUILD__BUILD_TAGS: JSON list of extra build tags
    """

    compiler: str = Field(
        default="gc",
        description="Toolchain compiler. Determines the compiled-archive directory layout.",
    )
    goos: str = Field(default_factory=_default_goos)
    goarch: str = Field(default_factory=_default_goarch)
    goroot: str = Field(default_factory=_default_goroot)
    gopath: list[str] = Field(default_factory=_default_gopath)
    install_suffix: str = Field(
        default="",
        description="Suffix appended to the archive directory (e.g. 'race').",
    )
    build_tags: list[str] = Field(default_factory=list)
    cgo_enabled: bool = Field(default_factory=_default_cgo_enabled)

    @field_validator("goroot")
    @classmethod
    def validate_goroot(cls, v: str) -> str:
        return str(Path(v).expanduser())

    @field_validator("gopath")
    @classmethod
    def validate_gopath(cls, v: list[str]) -> list[str]:
        return [str(Path(p).expanduser()) for p in v if p]


class WalkerConfig(BaseModel):
    """Parallel tree walker configuration.

    Env vars:
        PKGINDEX__WALKER__MAX_WORKERS: Worker threads per walk
    """

    max_workers: int | None = Field(
        default=None,
        description="Worker threads per walk. Default: max(4, cpu count).",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class IndexConfig(BaseModel):
    """Package index configuration.

    Env vars:
        PKGINDEX__INDEX__ALLOW_BINARY: Keep packages that only have archives
        PKGINDEX__INDEX__UPDATE_INTERVAL_SEC: Minimum age before re-scanning
    """

    allow_binary: bool = Field(
        default=True,
        description="Index packages whose source was deleted but whose compiled "
        "archive remains.",
    )
    update_interval_sec: float = Field(
        default=0.0,
        description="Listings reuse the index if the last update is younger than this. "
        "TRADEOFF: Higher values answer faster but may miss new packages.",
    )
    skip_dir_names: list[str] = Field(
        default_factory=list,
        description="Extra directory names never descended into.",
    )
    ignored_dirs: list[str] = Field(
        default_factory=list,
        description="Extra absolute directory paths never descended into.",
    )

    @field_validator("update_interval_sec")
    @classmethod
    def validate_update_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"update_interval_sec must be >= 0, got {v}")
        return v


class PkgIndexConfig(BaseModel):
    """Root configuration for pkgindex."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    walker: WalkerConfig = Field(default_factory=WalkerConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
