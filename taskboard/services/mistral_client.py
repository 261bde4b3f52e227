"""Thin wrapper around the Mistral Python SDK.

Provides a cached client and a chat-completion helper for the
translation service. SDK and transport failures are mapped onto
:class:`TranslationUpstreamFailed` so callers deal with one error type.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import httpx
import mistralai
from mistralai import Mistral

from taskboard.config import settings
from taskboard.errors import TranslationUnavailable, TranslationUpstreamFailed

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def get_client(api_key: str) -> Mistral:
    """Return a lazily-initialised Mistral client for *api_key*."""
    return Mistral(api_key=api_key)


def _upstream_status(error: mistralai.SDKError) -> int | None:
    status = getattr(error, "status_code", None)
    if status is None and getattr(error, "raw_response", None) is not None:
        status = getattr(error.raw_response, "status_code", None)
    return status


async def chat_completion(
    messages: list[dict[str, str]],
    *,
    model: str | None = None,
    api_key: str | None = None,
    temperature: float = 0.1,
    max_tokens: int | None = None,
) -> str:
    """Run a chat completion and return the assistant text."""
    key = api_key if api_key is not None else settings.mistral_api_key
    if not key:
        raise TranslationUnavailable("MISTRAL_API_KEY is not configured")

    effective_model = model or settings.mistral_translation_model
    kwargs: dict[str, Any] = {
        "model": effective_model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens or settings.translation_max_tokens,
    }

    try:
        response = await get_client(key).chat.complete_async(**kwargs)
    except mistralai.SDKError as e:
        status = _upstream_status(e)
        logger.warning("Mistral chat completion failed with %s", status)
        raise TranslationUpstreamFailed(f"Mistral API failed with {status}", upstream_status=status) from e
    except mistralai.models.HTTPValidationError as e:
        logger.warning("Mistral chat completion rejected the request (422)")
        raise TranslationUpstreamFailed("Mistral API rejected the request", upstream_status=422) from e
    except httpx.RequestError as e:
        logger.warning("Mistral chat completion could not reach the API: %s", e)
        raise TranslationUpstreamFailed(f"Mistral API unreachable: {e}") from e

    if not response or not response.choices:
        raise TranslationUpstreamFailed("Mistral API returned no choices")
    content = response.choices[0].message.content
    if isinstance(content, list):
        # Content chunks: keep the text parts only.
        content = "".join(getattr(chunk, "text", "") or "" for chunk in content)
    return content or ""
