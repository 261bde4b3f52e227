"""Session-side board client: local mirror, translation overlay, transport."""

from taskboard.client.reconciler import ClientReconciler
from taskboard.client.translation_cache import GenerationToken, OverlayState, TranslationCache

__all__ = ["ClientReconciler", "GenerationToken", "OverlayState", "TranslationCache"]
