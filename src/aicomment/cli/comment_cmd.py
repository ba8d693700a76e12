"""CLI command for annotating files: aicomment comment <files...>."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from aicomment.core.annotator import annotate_files
from aicomment.core.config import API_KEY_ENV, ConfigError, load_config, load_env
from aicomment.llm.dashscope_client import ConfigurationError, DashScopeClient

log = logging.getLogger(__name__)


@click.command("comment")
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--no-backup", is_flag=True, help="Do not create .backup files (created by default).")
@click.option("--model", default=None, help="Override the model name.")
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of files processed in parallel (default: 1).",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config.yaml.",
)
def comment_cmd(
    files: tuple[Path, ...],
    no_backup: bool,
    model: str | None,
    jobs: int | None,
    config_file: Path | None,
) -> None:
    """Add AI-generated comments to code files.

    FILES are overwritten in place; a .backup copy is kept unless
    --no-backup is given.
    """
    load_env()
    try:
        config = load_config(config_file)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    llm_config = config["llm"]
    if model:
        llm_config["model"] = model

    if llm_config.get("debug"):
        logging.getLogger("aicomment").setLevel(logging.INFO)

    try:
        client = DashScopeClient(llm_config)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if not client.is_configured():
        raise click.ClickException(
            f"{API_KEY_ENV} is not set.\n"
            f"Set it with: export {API_KEY_ENV}=your_api_key\n"
            f"or add {API_KEY_ENV}=your_api_key to a .env file."
        )

    backup = not no_backup and bool(config["backup"].get("enabled", True))
    workers = jobs or int(config["batch"].get("workers", 1))

    click.echo(f"Processing {len(files)} file(s)...\n")
    try:
        outcomes = annotate_files(
            files, backup=backup, client=client, config=config, workers=workers,
        )
    except Exception as e:
        log.debug("Batch aborted", exc_info=True)
        raise click.ClickException(str(e)) from e

    click.echo("\nDone:")
    for outcome in outcomes:
        mark = "✓" if outcome.ok else "✗"
        click.echo(f"  {mark} {outcome}")
