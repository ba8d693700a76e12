"""Language detection and prompt construction for comment generation."""

from __future__ import annotations

FALLBACK_LANGUAGE = "text"

LANGUAGE_MAP: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",  # React TypeScript
    ".js": "javascript",
    ".jsx": "javascript",  # React JavaScript
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
}

_COMMENT_PROMPT = """\
Add detailed {comment_language} comments to the following {language} code. Requirements:
1. Add a comment to every function, class, and method
2. Add inline comments for key logic and complex code sections
3. Keep comments clear and easy to understand, explaining what the code does and why
4. Preserve the original formatting and structure of the code
5. Return only the complete commented code, without any additional explanation

Code:
```{language}
{code}
```

Return the commented code directly:"""


def resolve_language(extension: str) -> str:
    """Map a file extension (with leading dot) to a language label.

    Matching is case-insensitive. Unknown or empty extensions map to "text".
    """
    return LANGUAGE_MAP.get((extension or "").lower(), FALLBACK_LANGUAGE)


def build_prompt(source_text: str, language: str, comment_language: str = "English") -> str:
    """Build the instruction prompt asking the model to comment ``source_text``.

    The code is embedded in a fence labeled with ``language``, the same label
    the response extractor looks for first.
    """
    return _COMMENT_PROMPT.format(
        comment_language=comment_language,
        language=language,
        code=source_text,
    )
