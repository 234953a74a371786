"""pkgindex lookup command - locate a package by import path."""

import click

from pkgindex.cli.utils import build_index, print_errors


@click.command()
@click.argument("import_path")
@click.pass_context
def lookup_command(ctx: click.Context, import_path: str) -> None:
    """Print DIR<TAB>NAME for each root that provides IMPORT_PATH."""
    index = build_index(ctx)
    result = index.update()
    print_errors(result.errors)
    entries = index.lookup(import_path)
    if not entries:
        raise click.ClickException(f"package not found: {import_path}")
    for entry in entries:
        click.echo(f"{entry.dir}\t{entry.name}")
