"""Core data models for aicomment."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AnnotationRequest:
    """Source text of one file plus the language label sent with it."""

    source_text: str
    language: str


@dataclass(frozen=True)
class FileOutcome:
    """Result of annotating a single path in a batch."""

    path: Path
    ok: bool
    message: str = ""
    error: str = ""

    @classmethod
    def success(cls, path: Path, message: str) -> FileOutcome:
        return cls(path=Path(path), ok=True, message=message)

    @classmethod
    def failure(cls, path: Path, error: str) -> FileOutcome:
        return cls(
            path=Path(path),
            ok=False,
            message=f"Error processing {path}: {error}",
            error=error,
        )

    def __str__(self) -> str:
        return self.message
