"""Error taxonomy for the task board.

Validation failures are recovered where they happen: normalisation returns
a ``Rejected`` result, the sync channel drops the message and the HTTP
layer answers with a status code. The exceptions below only travel inside
one component.

Usage:
    from taskboard.errors import TranslationError, TranslationUnavailable

    try:
        snapshot = await service.translate(body)
    except TranslationError as e:
        return JSONResponse({"error": e.public_message}, status_code=e.status_code)
"""

from __future__ import annotations


class TaskBoardError(Exception):
    """Base class for all task board errors."""


class InvalidInput(TaskBoardError):
    """Malformed mutation or translation payload."""


class StorageCorrupt(TaskBoardError):
    """The persisted board could not be read or parsed."""


class StorageWriteFailed(TaskBoardError):
    """Writing the board document failed; in-memory state is unaffected."""


# =============================================================================
# TRANSLATION
# =============================================================================


class TranslationError(TaskBoardError):
    """Base for failures surfaced by ``POST /api/translate``."""

    status_code = 500
    public_message = "Translation failed"


class InvalidTranslationPayload(InvalidInput, TranslationError):
    status_code = 400
    public_message = "Invalid translation payload"


class TranslationUnavailable(TranslationError):
    """No model credential is configured."""

    status_code = 503


class TranslationUpstreamFailed(TranslationError):
    """The model call failed (network error or non-2xx response)."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class TranslationMalformedOutput(TranslationUpstreamFailed):
    """The model answered, but not with the expected JSON object."""

    def __init__(self, message: str) -> None:
        super().__init__(message, upstream_status=None)


__all__ = [
    "InvalidInput",
    "InvalidTranslationPayload",
    "StorageCorrupt",
    "StorageWriteFailed",
    "TaskBoardError",
    "TranslationError",
    "TranslationMalformedOutput",
    "TranslationUnavailable",
    "TranslationUpstreamFailed",
]
