"""Tests for aicomment.core.models."""

import dataclasses
from pathlib import Path

import pytest

from aicomment.core.models import AnnotationRequest, FileOutcome


class TestAnnotationRequest:
    def test_fields(self):
        req = AnnotationRequest(source_text="x = 1", language="python")
        assert req.source_text == "x = 1"
        assert req.language == "python"

    def test_immutable(self):
        req = AnnotationRequest(source_text="x", language="text")
        with pytest.raises(dataclasses.FrozenInstanceError):
            req.language = "python"


class TestFileOutcome:
    def test_success(self):
        outcome = FileOutcome.success(Path("a.py"), "Added comments to a.py")
        assert outcome.ok is True
        assert outcome.path == Path("a.py")
        assert outcome.error == ""
        assert str(outcome) == "Added comments to a.py"

    def test_failure(self):
        outcome = FileOutcome.failure(Path("b.py"), "File not found: b.py")
        assert outcome.ok is False
        assert outcome.error == "File not found: b.py"
        assert str(outcome) == "Error processing b.py: File not found: b.py"

    def test_accepts_str_path(self):
        assert FileOutcome.success("c.py", "ok").path == Path("c.py")

    def test_immutable(self):
        outcome = FileOutcome.success(Path("a.py"), "ok")
        with pytest.raises(dataclasses.FrozenInstanceError):
            outcome.ok = False
