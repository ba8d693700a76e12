"""Allow running as ``python -m aicomment``."""

from aicomment.cli.main import cli

cli()
