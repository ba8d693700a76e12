"""aicomment: annotate source files with LLM-generated inline comments."""

__version__ = "1.0.0"
