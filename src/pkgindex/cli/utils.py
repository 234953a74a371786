"""CLI utilities."""

from collections.abc import Sequence

import click
from rich.console import Console
from rich.markup import escape

from pkgindex.core.errors import PkgIndexError
from pkgindex.core.logging import get_log_file_path
from pkgindex.index.packages import PackageIndex

err_console = Console(stderr=True)


def build_index(ctx: click.Context) -> PackageIndex:
    """Create the package index for the group's config and roots.

    Raises:
        click.ClickException: If no root can be scanned.
    """
    index = PackageIndex.from_config(ctx.obj["config"], ctx.obj["roots"])
    for root, error in index.skipped_roots.items():
        err_console.print(
            f"[yellow]warning:[/yellow] skipping {escape(root)}: {escape(str(error))}",
            soft_wrap=True,
            highlight=False,
        )
    if not index.roots:
        raise click.ClickException("No source roots to scan. Set GOROOT/GOPATH or pass --root.")
    return index


def print_errors(errors: Sequence[PkgIndexError]) -> None:
    """Print scan errors to stderr, pointing at the log file when one is configured."""
    for error in errors:
        err_console.print(
            f"[red]error:[/red] {escape(str(error))}", soft_wrap=True, highlight=False
        )
    log_file = get_log_file_path()
    if errors and log_file:
        err_console.print(
            f"See {escape(str(log_file))} for details.", style="dim", soft_wrap=True, highlight=False
        )
