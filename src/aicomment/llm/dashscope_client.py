"""DashScope text-generation client for comment generation."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from aicomment.core.models import AnnotationRequest
from aicomment.llm.extraction import extract_code
from aicomment.llm.prompting import build_prompt

log = logging.getLogger(__name__)

GENERATION_PATH = "/api/v1/services/aigc/text-generation/generation"

# Characters of the serialized body kept in ResponseShapeError messages.
SHAPE_DUMP_LIMIT = 500


class CompletionError(Exception):
    """Base error for comment generation requests."""


class ConfigurationError(CompletionError):
    """No API key is available, or a client setting is invalid."""


class TransportError(CompletionError):
    """The request could not be completed or returned a non-success status."""


class ResponseShapeError(CompletionError):
    """No known field path in the response body holds text."""


class EmptyResponseError(CompletionError):
    """A known field path matched but its text was empty."""


_MISSING = object()


def _path(*keys: str | int) -> Callable[[object], object]:
    """Build an accessor that walks ``keys`` through dicts and lists.

    Returns ``_MISSING`` as soon as a key is absent.
    """

    def accessor(data: object) -> object:
        node = data
        for key in keys:
            if isinstance(key, int):
                if not isinstance(node, list) or len(node) <= key:
                    return _MISSING
            elif not isinstance(node, dict) or key not in node:
                return _MISSING
            node = node[key]
        return node

    return accessor


# Tried in order; first non-empty string wins.
FIELD_PATHS: tuple[tuple[str, Callable[[object], object]], ...] = (
    ("output.choices[0].message.content", _path("output", "choices", 0, "message", "content")),
    ("output.text", _path("output", "text")),
    ("choices[0].message.content", _path("choices", 0, "message", "content")),
    ("text", _path("text")),
)


def dump_body(body: object) -> str:
    """Pretty-print a response body for logs and error messages."""
    return json.dumps(body, indent=2, ensure_ascii=False, default=str)


def _parts_text(parts: list) -> str | None:
    """Join a list of content parts (strings or ``{"text": ...}`` dicts).

    Returns None if any part is neither.
    """
    texts = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and isinstance(part.get("text"), str):
            texts.append(part["text"])
        else:
            return None
    return "\n".join(texts)


def normalize_response(body: object) -> str:
    """Return the text payload of a DashScope response body.

    A field holding a list of content parts is joined into one string.

    Raises:
        ResponseShapeError: No known field path holds text.
        EmptyResponseError: A path holds text but every match is empty.
    """
    matched = False
    for label, accessor in FIELD_PATHS:
        value = accessor(body)
        if value is _MISSING or value is None:
            continue
        if isinstance(value, list):
            value = _parts_text(value)
        if not isinstance(value, str):
            log.debug("Response field %s is not text, skipping", label)
            continue
        matched = True
        if value.strip():
            log.debug("Response text found at %s", label)
            return value

    if matched:
        raise EmptyResponseError("API response contained no content")

    preview = dump_body(body)[:SHAPE_DUMP_LIMIT]
    log.error("Unrecognized API response structure:\n%s", dump_body(body))
    raise ResponseShapeError(
        "Unrecognized API response structure.\n"
        "Set DEBUG=1 to log the full response, or check the API documentation.\n"
        f"Response preview: {preview}"
    )


def _setting(config: dict, key: str, default, cast):
    value = config.get(key)
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for llm.{key}: {value!r}") from e


class DashScopeClient:
    """Wrapper around the DashScope text-generation HTTP API.

    Provides complete() which turns source code into commented source code.
    The API key and all request settings come from the ``llm`` section of
    the loaded configuration.
    """

    def __init__(self, config: dict | None = None) -> None:
        config = config or {}
        self._api_key = config.get("api_key")
        self._model = config.get("model", "qwen-plus")
        self._base_url = config.get("base_url", "https://dashscope.aliyuncs.com").rstrip("/")
        self._temperature = _setting(config, "temperature", 0.3, float)
        self._max_tokens = _setting(config, "max_tokens", 2000, int)
        self._timeout = _setting(config, "timeout", 120.0, float)
        self._max_retries = max(0, _setting(config, "max_retries", 0, int))
        self._retry_backoff = _setting(config, "retry_backoff", 1.0, float)
        self._debug = bool(config.get("debug", False))
        self._comment_language = config.get("comment_language", "English")

    @property
    def model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def complete(self, source_text: str, language: str) -> str:
        """Ask the model to comment ``source_text`` and return the code.

        Args:
            source_text: Original file content.
            language: Language label from resolve_language().

        Returns:
            The commented code, never empty.

        Raises:
            ConfigurationError: No API key configured.
            TransportError: Network failure or non-success HTTP status.
            ResponseShapeError: Response body in an unknown format.
            EmptyResponseError: Response body holds no text.
        """
        if not self._api_key:
            raise ConfigurationError(
                "DASHSCOPE_API_KEY is not set. Export it or add it to a .env file."
            )

        request = AnnotationRequest(source_text=source_text, language=language)
        body = self._post(self._payload(request))

        if self._debug:
            log.info("API response:\n%s", dump_body(body))

        content = normalize_response(body)
        code = extract_code(content, request.language)
        if not code:
            raise EmptyResponseError("API response contained no code after extraction")
        return code

    def _payload(self, request: AnnotationRequest) -> dict:
        prompt = build_prompt(
            request.source_text,
            request.language,
            comment_language=self._comment_language,
        )
        return {
            "model": self._model,
            "input": {
                "messages": [{"role": "user", "content": prompt}],
            },
            "parameters": {
                "temperature": self._temperature,
                "max_tokens": self._max_tokens,
            },
        }

    def _post(self, payload: dict) -> object:
        """POST the payload, retrying TransportError up to max_retries times."""
        attempt = 0
        while True:
            try:
                return self._post_once(payload)
            except TransportError as e:
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                log.warning(
                    "DashScope request failed (%s), retry %d/%d",
                    e, attempt, self._max_retries,
                )
                time.sleep(self._retry_backoff * attempt)

    def _post_once(self, payload: dict) -> object:
        import httpx

        url = f"{self._base_url}{GENERATION_PATH}"
        log.debug("POST %s model=%s", url, payload["model"])
        try:
            resp = httpx.post(
                url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                },
                json=payload,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"API request failed: {e.response.status_code} "
                f"{e.response.reason_phrase}\n{e.response.text}"
            ) from e
        except (httpx.HTTPError, OSError) as e:
            raise TransportError(f"DashScope API unreachable at {self._base_url}: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise ResponseShapeError(
                f"API response is not valid JSON: {resp.text[:SHAPE_DUMP_LIMIT]}"
            ) from e
