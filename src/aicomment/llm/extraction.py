"""Recover source code from free-form LLM replies.

Models wrap their output inconsistently: sometimes in a fence labeled with
the language, sometimes in a bare fence, sometimes not at all. Extraction
tries each form in turn and never fails.
"""

from __future__ import annotations

import re

_GENERIC_FENCE = re.compile(r"```\w*\n([\s\S]*?)\n```")


def _labeled_fence(language: str) -> re.Pattern:
    return re.compile(
        r"```" + re.escape(language) + r"\s*\n([\s\S]*?)\n```",
        re.IGNORECASE,
    )


def extract_code(raw_text: str, language: str) -> str:
    """Return the best-guess code payload from a model reply.

    Order:
    1. fence labeled with ``language`` (case-insensitive);
    2. the first fence with any label, or none;
    3. the whole reply.

    The result is always stripped of surrounding whitespace.
    """
    if language:
        match = _labeled_fence(language).search(raw_text)
        if match and match.group(1):
            return match.group(1).strip()

    match = _GENERIC_FENCE.search(raw_text)
    if match and match.group(1):
        return match.group(1).strip()

    return raw_text.strip()
