"""pkgindex dirs command - print indexed package directories."""

import click

from pkgindex.cli.utils import build_index, print_errors


@click.command()
@click.pass_context
def dirs_command(ctx: click.Context) -> None:
    """Print the directory of every indexed package, commands included."""
    index = build_index(ctx)
    result = index.update()
    for d in index.dirs():
        click.echo(d)
    print_errors(result.errors)
    if not result.ok:
        ctx.exit(1)
