"""pkgindex CLI - list importable Go packages."""

from pathlib import Path

import click

from pkgindex.cli.dirs import dirs_command
from pkgindex.cli.list import list_command
from pkgindex.cli.lookup import lookup_command
from pkgindex.config.loader import load_config
from pkgindex.core.errors import ConfigError
from pkgindex.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="pkgindex")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file layered over ~/.config/pkgindex/config.yaml",
)
@click.option(
    "-r",
    "--root",
    "roots",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Source root to scan (repeatable). Default: GOROOT/src and each GOPATH/src.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None, roots: tuple[Path, ...]) -> None:
    """pkgindex - fast, incremental listing of Go import paths."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["roots"] = [str(r) for r in roots] or None


cli.add_command(list_command, name="list")
cli.add_command(dirs_command, name="dirs")
cli.add_command(lookup_command, name="lookup")


if __name__ == "__main__":
    cli()
