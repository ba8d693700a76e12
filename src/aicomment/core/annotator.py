"""Annotate files in place: read, generate comments, back up, overwrite."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from aicomment.core.fileutil import DEFAULT_BACKUP_SUFFIX, atomic_write, write_backup
from aicomment.core.models import FileOutcome
from aicomment.llm.dashscope_client import CompletionError, DashScopeClient
from aicomment.llm.prompting import resolve_language

log = logging.getLogger(__name__)


class AnnotationError(Exception):
    """Base error for annotating a single file."""


class NotFoundError(AnnotationError):
    """The path does not exist or is not a regular file."""


class EmptyFileError(AnnotationError):
    """The file has no non-whitespace content."""


class CommentGenerationError(AnnotationError):
    """The completion client failed; the original error is ``__cause__``."""


def _client_from(client: DashScopeClient | None, config: dict | None) -> DashScopeClient:
    if client is not None:
        return client
    return DashScopeClient((config or {}).get("llm", {}))


def annotate_file(
    path: Path | str,
    backup: bool = True,
    client: DashScopeClient | None = None,
    config: dict | None = None,
) -> str:
    """Add LLM-generated comments to one file, overwriting it.

    The backup (if enabled) is written and synced before the original is
    replaced, so the original content survives a failed overwrite.

    Args:
        path: File to annotate.
        backup: Write ``<path>.backup`` with the original content first.
        client: Completion client (created from config if not provided).
        config: Full config dict (used for the client and backup suffix).

    Returns:
        Success message naming the file.

    Raises:
        NotFoundError: File missing.
        EmptyFileError: File empty or whitespace only.
        CommentGenerationError: Comment generation failed.
    """
    path = Path(path)
    client = _client_from(client, config)
    suffix = (config or {}).get("backup", {}).get("suffix", DEFAULT_BACKUP_SUFFIX)

    if not path.is_file():
        raise NotFoundError(f"File not found: {path}")

    original = path.read_bytes().decode("utf-8")
    if not original.strip():
        raise EmptyFileError(f"File is empty, nothing to comment: {path}")

    extension = path.suffix
    language = resolve_language(extension)
    log.info("Generating comments for %s (type: %s)", path, extension or "unknown")

    try:
        commented = client.complete(original, language)
    except CompletionError as e:
        log.error("Comment generation failed for %s: %s", path, e)
        raise CommentGenerationError(f"Error generating comments: {e}") from e

    if backup:
        backup_file = write_backup(path, original, suffix=suffix)
        log.info("Backup created: %s", backup_file)

    atomic_write(path, commented)
    return f"Added comments to {path}"


def _annotate_one(
    path: Path | str,
    backup: bool,
    client: DashScopeClient,
    config: dict | None,
) -> FileOutcome:
    try:
        message = annotate_file(path, backup=backup, client=client, config=config)
    except Exception as e:
        log.debug("Failed to annotate %s", path, exc_info=True)
        return FileOutcome.failure(Path(path), str(e))
    return FileOutcome.success(Path(path), message)


def annotate_files(
    paths: Iterable[Path | str],
    backup: bool = True,
    client: DashScopeClient | None = None,
    config: dict | None = None,
    workers: int = 1,
) -> list[FileOutcome]:
    """Annotate each path independently, collecting one outcome per path.

    A failure on one path is recorded and processing moves on; this function
    does not raise for per-file errors. Outcomes keep input order. With
    ``workers > 1`` files are processed by a bounded thread pool. If the
    client cannot be built from ``config``, every path gets a failed outcome.
    """
    paths = list(paths)
    try:
        client = _client_from(client, config)
    except CompletionError as e:
        log.error("Cannot create completion client: %s", e)
        return [FileOutcome.failure(Path(p), str(e)) for p in paths]

    if workers <= 1 or len(paths) <= 1:
        return [_annotate_one(p, backup, client, config) for p in paths]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda p: _annotate_one(p, backup, client, config), paths))
