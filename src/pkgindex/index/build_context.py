"""Go build context: which files belong to a package, and where archives live.

``classify`` reads only the file header: comments, build constraints and the
package clause. It never raises; any file it cannot make sense of is simply
not a package file for this context.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from pkgindex.core.errors import ConfigError
from pkgindex.index.path import has_path_prefix, to_slash

if TYPE_CHECKING:
    from pkgindex.config.models import BuildConfig

KNOWN_OS: frozenset[str] = frozenset(
    (
        "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
        "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris", "wasip1",
        "windows", "zos",
    )
)  # fmt: skip

UNIX_OS: frozenset[str] = frozenset(
    (
        "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
        "linux", "netbsd", "openbsd", "solaris",
    )
)  # fmt: skip

KNOWN_ARCH: frozenset[str] = frozenset(
    (
        "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be", "loong64",
        "mips", "mipsle", "mips64", "mips64le", "mips64p32", "mips64p32le", "ppc",
        "ppc64", "ppc64le", "riscv", "riscv64", "s390", "s390x", "sparc", "sparc64",
        "wasm",
    )
)  # fmt: skip

# GOOS values that also satisfy another OS tag.
_OS_ALIASES = {"android": "linux", "illumos": "solaris", "ios": "darwin"}

LATEST_GO_MINOR = 23
RELEASE_TAGS: tuple[str, ...] = tuple(f"go1.{i}" for i in range(1, LATEST_GO_MINOR + 1))

COMPILERS = ("gc", "gccgo")

_PACKAGE_RE = re.compile(r"^package\s+([^\W\d]\w*)(?![\w.])")
_GO_BUILD_RE = re.compile(r"^//go:build(?:\s|$)")
_PLUS_BUILD_RE = re.compile(r"^//\s*\+build(?:\s|$)")
_EXPR_TOKEN_RE = re.compile(r"\s*(\(|\)|!|&&|\|\||[A-Za-z0-9_.]+)")


class _ExprSyntaxError(ValueError):
    pass


class _BuildExpr:
    """Evaluates a ``//go:build`` expression against a tag predicate.

    Grammar::

        or   := and ("||" and)*
        and  := not ("&&" not)*
        not  := "!" not | atom
        atom := "(" or ")" | tag
    """

    def __init__(self, text: str, match: _TagMatcher) -> None:
        self._tokens = self._tokenize(text)
        self._pos = 0
        self._match = match

    @staticmethod
    def _tokenize(text: str) -> list[str]:
        tokens: list[str] = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            m = _EXPR_TOKEN_RE.match(text, pos)
            if m is None:
                raise _ExprSyntaxError(f"unexpected input at {text[pos:]!r}")
            tokens.append(m.group(1))
            pos = m.end()
        return tokens

    def evaluate(self) -> bool:
        if not self._tokens:
            raise _ExprSyntaxError("empty expression")
        result = self._or()
        if self._pos != len(self._tokens):
            raise _ExprSyntaxError(f"unexpected token {self._tokens[self._pos]!r}")
        return result

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str:
        tok = self._peek()
        if tok is None:
            raise _ExprSyntaxError("unexpected end of expression")
        self._pos += 1
        return tok

    # Every operand is evaluated (no short-circuit) so syntax errors anywhere
    # in the expression are reported.
    def _or(self) -> bool:
        result = self._and()
        while self._peek() == "||":
            self._next()
            rhs = self._and()
            result = result or rhs
        return result

    def _and(self) -> bool:
        result = self._not()
        while self._peek() == "&&":
            self._next()
            rhs = self._not()
            result = result and rhs
        return result

    def _not(self) -> bool:
        if self._peek() == "!":
            self._next()
            return not self._not()
        return self._atom()

    def _atom(self) -> bool:
        tok = self._next()
        if tok == "(":
            result = self._or()
            if self._next() != ")":
                raise _ExprSyntaxError("missing ')'")
            return result
        if tok in (")", "!", "&&", "||"):
            raise _ExprSyntaxError(f"unexpected token {tok!r}")
        return self._match(tok)


class _TagMatcher:
    def __init__(self, tags: frozenset[str]) -> None:
        self._tags = tags

    def __call__(self, tag: str) -> bool:
        return tag in self._tags


def _plus_build_line(line: str, match: _TagMatcher) -> bool:
    """Evaluate one legacy ``// +build`` line: spaces OR, commas AND."""
    fields = line.split()[1:] if line.startswith("//+build") else line.split()[2:]
    if not fields:
        return True
    for option in fields:
        terms = option.split(",")
        if all(_plus_build_term(term, match) for term in terms):
            return True
    return False


def _plus_build_term(term: str, match: _TagMatcher) -> bool:
    if term.startswith("!!") or not term or term == "!":
        return False
    if term.startswith("!"):
        return not match(term[1:])
    return match(term)


def read_header(path: str) -> tuple[list[str], str | None]:
    """Return the ``//`` comment lines before the package clause, and its name.

    The name is None when the file has no well-formed package clause.

    Raises:
        OSError, UnicodeDecodeError: If the file cannot be read as UTF-8.
    """
    comments: list[str] = []
    in_block = False
    with open(path, encoding="utf-8-sig") as f:
        for raw in f:
            line = raw.strip()
            while True:
                if in_block:
                    end = line.find("*/")
                    if end < 0:
                        line = ""
                        break
                    line = line[end + 2 :].lstrip()
                    in_block = False
                if line.startswith("/*"):
                    in_block = True
                    line = line[2:]
                    continue
                break
            if not line:
                continue
            if line.startswith("//"):
                comments.append(line)
                continue
            m = _PACKAGE_RE.match(line)
            return comments, m.group(1) if m else None
    return comments, None


@dataclass(frozen=True)
class BuildContext:
    """Build parameters shared by every root of one index."""

    compiler: str = "gc"
    goos: str = "linux"
    goarch: str = "amd64"
    goroot: str = "/usr/local/go"
    gopath: tuple[str, ...] = ()
    install_suffix: str = ""
    build_tags: tuple[str, ...] = ()
    cgo_enabled: bool = True
    release_tags: tuple[str, ...] = field(default=RELEASE_TAGS)

    @classmethod
    def from_config(cls, config: BuildConfig) -> BuildContext:
        return cls(
            compiler=config.compiler,
            goos=config.goos,
            goarch=config.goarch,
            goroot=config.goroot,
            gopath=tuple(config.gopath),
            install_suffix=config.install_suffix,
            build_tags=tuple(config.build_tags),
            cgo_enabled=config.cgo_enabled,
        )

    @cached_property
    def _matcher(self) -> _TagMatcher:
        tags = {self.goos, self.goarch, self.compiler, *self.build_tags, *self.release_tags}
        if alias := _OS_ALIASES.get(self.goos):
            tags.add(alias)
        if self.goos in UNIX_OS:
            tags.add("unix")
        if self.cgo_enabled:
            tags.add("cgo")
        return _TagMatcher(frozenset(tags))

    def match_tag(self, tag: str) -> bool:
        return self._matcher(tag)

    # ------------------------------------------------------------------
    # Roots
    # ------------------------------------------------------------------

    def src_dirs(self) -> list[str]:
        """Source roots: ``$GOROOT/src`` then each ``$GOPATH/src`` that exists."""
        dirs: list[str] = []
        goroot = to_slash(self.goroot).rstrip("/")
        candidates = [f"{goroot}/src"]
        for p in self.gopath:
            p = to_slash(p).rstrip("/")
            if p and p != goroot:
                candidates.append(f"{p}/src")
        for d in candidates:
            if d not in dirs and os.path.isdir(d):
                dirs.append(d)
        return dirs

    def is_stdlib_root(self, path: str) -> bool:
        goroot = to_slash(self.goroot).rstrip("/")
        path = to_slash(path)
        if not goroot or not has_path_prefix(path, goroot):
            return False
        return len(path) == len(goroot) or path[len(goroot)] == "/"

    def artifact_target(self) -> str:
        """Directory of compiled archives relative to a workspace, e.g. ``pkg/linux_amd64``.

        Raises:
            ConfigError: If the compiler is not ``gc`` or ``gccgo``.
        """
        if self.compiler == "gc":
            target = f"pkg/{self.goos}_{self.goarch}"
        elif self.compiler == "gccgo":
            target = f"pkg/gccgo_{self.goos}_{self.goarch}"
        else:
            raise ConfigError.unknown_compiler(self.compiler)
        if self.install_suffix:
            target += f"_{self.install_suffix}"
        return target

    def artifact_dir(self, src_dir: str) -> str | None:
        """Archive directory paired with ``src_dir``, or None if it has none.

        Only roots named ``src`` have a sibling ``pkg`` tree.

        Raises:
            ConfigError: If the compiler is not ``gc`` or ``gccgo``.
        """
        target = self.artifact_target()
        src_dir = to_slash(src_dir).rstrip("/")
        if not src_dir.endswith("/src"):
            return None
        return src_dir[: -len("src")] + target

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def good_os_arch_file(self, filename: str) -> bool:
        """Check the ``_GOOS``, ``_GOARCH`` and ``_GOOS_GOARCH`` name suffixes."""
        name = filename.split(".", 1)[0]
        i = name.find("_")
        if i < 0:
            return True
        parts = name[i:].split("_")
        if parts[-1] == "test":
            parts.pop()
        n = len(parts)
        if n >= 2 and parts[n - 2] in KNOWN_OS and parts[n - 1] in KNOWN_ARCH:
            return self.match_tag(parts[n - 2]) and self.match_tag(parts[n - 1])
        if n >= 1 and (parts[n - 1] in KNOWN_OS or parts[n - 1] in KNOWN_ARCH):
            return self.match_tag(parts[n - 1])
        return True

    def should_build(self, comments: list[str]) -> bool:
        """Evaluate header build constraints; ``//go:build`` beats ``// +build``."""
        for line in comments:
            if _GO_BUILD_RE.match(line):
                try:
                    return _BuildExpr(line[len("//go:build") :], self._matcher).evaluate()
                except _ExprSyntaxError:
                    return False
        return all(
            _plus_build_line(line, self._matcher)
            for line in comments
            if _PLUS_BUILD_RE.match(line)
        )

    def classify(self, path: str) -> str | None:
        """Declared package name of the Go file at ``path`` for this context.

        Returns None for files excluded by name or build constraints, files
        without a package clause, and unreadable files.
        """
        filename = os.path.basename(path)
        if filename.startswith((".", "_")) or not self.good_os_arch_file(filename):
            return None
        try:
            comments, name = read_header(path)
        except (OSError, UnicodeDecodeError):
            return None
        if name is None or not self.should_build(comments):
            return None
        return name
