"""pkgindex list command - print importable packages."""

import json
import time

import click

from pkgindex.cli.utils import build_index, err_console, print_errors


@click.command()
@click.argument("scope", default="")
@click.option("--json", "as_json", is_flag=True, help="Output as a JSON array")
@click.option("--stats", is_flag=True, help="Print package count and elapsed time to stderr")
@click.pass_context
def list_command(ctx: click.Context, scope: str, as_json: bool, stats: bool) -> None:
    """List import paths, sorted and de-duplicated.

    SCOPE is the import path of the importing package. Vendored packages are
    only listed when they are visible from it.
    """
    index = build_index(ctx)

    started = time.monotonic()
    listing = index.list_imports(scope)
    elapsed = time.monotonic() - started

    if as_json:
        click.echo(json.dumps(listing.import_paths))
    else:
        for import_path in listing:
            click.echo(import_path)

    if stats:
        per_pkg = elapsed / len(listing) if len(listing) else 0.0
        err_console.print(
            f"[cyan]{len(listing)}[/cyan] packages in {elapsed:.3f}s "
            f"({per_pkg * 1e6:.1f}µs/pkg)",
            highlight=False,
        )
    print_errors(listing.errors)
    if not listing.ok:
        ctx.exit(1)
