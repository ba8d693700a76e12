"""CLI entry point for aicomment."""

import logging

import click

from aicomment import __version__
from aicomment.cli.comment_cmd import comment_cmd


@click.group()
@click.version_option(version=__version__, prog_name="aicomment")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """aicomment: add AI-generated comments to source files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


cli.add_command(comment_cmd)


if __name__ == "__main__":
    cli()
