"""Board translation service.

Translates section titles and task texts with a Mistral model, then maps
the answer back onto the ids of the request. The model is never trusted
with ids, counts or ordering: the result always has exactly the shape of
the input and only the text may differ.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from taskboard.config import settings
from taskboard.errors import (
    InvalidTranslationPayload,
    TranslationMalformedOutput,
    TranslationUnavailable,
)
from taskboard.models.board import (
    MAX_LANGUAGE_NAME,
    MAX_SECTION_TITLE,
    MAX_SECTIONS,
    MAX_TASK_TEXT,
    MAX_TASKS_PER_SECTION,
    UNTITLED,
)
from taskboard.models.translation import (
    TranslatedSnapshot,
    TranslationRequest,
    TranslationSection,
    TranslationTask,
)
from taskboard.services import mistral_client
from taskboard.services.normalizer import new_id, normalize_text

logger = logging.getLogger(__name__)

Complete = Callable[..., Awaitable[str]]

_OUTPUT_SCHEMA = '{"sections":[{"id":"...","title":"...","tasks":[{"id":"...","text":"..."}]}]}'


def _list(value: Any, limit: int) -> list[Any]:
    return list(value[:limit]) if isinstance(value, list) else []


def _id_or_new(value: Any, prefix: str) -> str:
    return value if isinstance(value, str) and value else new_id(prefix)


def sanitize_translation_input(raw: Any, default_language: str = "Polish") -> TranslationRequest | None:
    """Clamp a translation body with the board limits; ``None`` if not an object."""
    if not isinstance(raw, Mapping):
        return None

    sections: list[TranslationSection] = []
    for raw_section in _list(raw.get("sections"), MAX_SECTIONS):
        if not isinstance(raw_section, Mapping):
            continue
        tasks = []
        for raw_task in _list(raw_section.get("tasks"), MAX_TASKS_PER_SECTION):
            if not isinstance(raw_task, Mapping):
                continue
            text = normalize_text(raw_task.get("text"), MAX_TASK_TEXT)
            if text:
                tasks.append(TranslationTask(id=_id_or_new(raw_task.get("id"), "task"), text=text))
        sections.append(
            TranslationSection(
                id=_id_or_new(raw_section.get("id"), "section"),
                title=normalize_text(raw_section.get("title"), MAX_SECTION_TITLE) or UNTITLED,
                tasks=tasks,
            )
        )

    return TranslationRequest(
        target_language=normalize_text(raw.get("targetLanguage"), MAX_LANGUAGE_NAME) or default_language,
        sections=sections,
    )


def build_prompt(request: TranslationRequest) -> str:
    input_json = json.dumps(request.model_input(), ensure_ascii=False, separators=(",", ":"))
    return "\n".join(
        [
            f"Translate all text values to {request.target_language} for a construction todo board.",
            "Keep ids exactly unchanged.",
            "Keep the same JSON structure and ordering.",
            f"Return only strict JSON with this schema: {_OUTPUT_SCHEMA}",
            f"Input JSON: {input_json}",
        ]
    )


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Parse the first balanced ``{...}`` in *raw_text*, ignoring prose around it."""
    text = (raw_text or "").strip()
    if not text:
        raise TranslationMalformedOutput("Empty model output")

    start = text.find("{")
    if start < 0:
        raise TranslationMalformedOutput("Model output missing JSON object")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start : index + 1]
                break
    else:
        raise TranslationMalformedOutput("Model output has an unbalanced JSON object")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise TranslationMalformedOutput(f"Model output is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise TranslationMalformedOutput("Model output is not a JSON object")
    return parsed


def sanitize_translation_output(raw_output: Mapping[str, Any], source: list[TranslationSection]) -> TranslatedSnapshot:
    """Project the model's answer onto the source ids; fall back to source text."""
    titles: dict[str, str] = {}
    texts: dict[str, dict[str, str]] = {}

    translated_sections = raw_output.get("sections")
    for translated in translated_sections if isinstance(translated_sections, list) else []:
        if not isinstance(translated, Mapping) or not isinstance(translated.get("id"), str):
            continue
        task_texts: dict[str, str] = {}
        translated_tasks = translated.get("tasks")
        for task in translated_tasks if isinstance(translated_tasks, list) else []:
            if isinstance(task, Mapping) and isinstance(task.get("id"), str):
                task_texts[task["id"]] = normalize_text(task.get("text"), MAX_TASK_TEXT)
        titles[translated["id"]] = normalize_text(translated.get("title"), MAX_SECTION_TITLE)
        texts[translated["id"]] = task_texts

    return TranslatedSnapshot(
        sections=[
            TranslationSection(
                id=section.id,
                title=titles.get(section.id) or section.title,
                tasks=[
                    TranslationTask(id=task.id, text=texts.get(section.id, {}).get(task.id) or task.text)
                    for task in section.tasks
                ],
            )
            for section in source
        ]
    )


class TranslationService:
    """Stateless request/response translation of board text."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        target_language: str | None = None,
        complete: Complete | None = None,
    ) -> None:
        self.api_key = settings.mistral_api_key if api_key is None else api_key
        self.model = model or settings.mistral_translation_model
        self.target_language = target_language or settings.translation_target_language
        self._complete = complete or mistral_client.chat_completion

    async def translate(self, raw: Any) -> TranslatedSnapshot:
        request = sanitize_translation_input(raw, self.target_language)
        if request is None:
            raise InvalidTranslationPayload("Translation payload must be an object")
        if not self.api_key:
            raise TranslationUnavailable("MISTRAL_API_KEY is not configured")
        if not request.sections:
            return TranslatedSnapshot(sections=[])

        logger.info(
            "Translating %d section(s) to %s with %s",
            len(request.sections),
            request.target_language,
            self.model,
        )
        raw_text = await self._complete(
            messages=[{"role": "user", "content": build_prompt(request)}],
            model=self.model,
            api_key=self.api_key,
        )
        return sanitize_translation_output(extract_json_object(raw_text), request.sections)
