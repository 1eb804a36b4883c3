"""Derived values shared between audits through the run's computed cache."""

from typing import Any, Dict, Mapping

from pageaudit.core.types import AuditContext

TEXT_MIME_PREFIXES = ("text/",)
TEXT_MIME_TYPES = frozenset(
    {
        "application/javascript",
        "application/json",
        "application/xhtml+xml",
        "application/xml",
        "image/svg+xml",
    }
)


def main_document_summary(
    main_document: Mapping[str, Any], context: AuditContext
) -> Dict[str, Any]:
    """Classify the main document once per run, whichever audit asks first."""
    cache_key = (
        "MainDocumentSummary",
        main_document.get("finalUrl"),
        main_document.get("statusCode"),
    )
    cached = context.computed_cache.get(cache_key)
    if cached is not None:
        return cached

    mime_type = str(main_document.get("mimeType") or "").lower()
    status_code = int(main_document.get("statusCode") or 0)
    summary = {
        "status_code": status_code,
        "is_success": 200 <= status_code < 400,
        "mime_type": mime_type,
        "is_text": mime_type.startswith(TEXT_MIME_PREFIXES) or mime_type in TEXT_MIME_TYPES,
        "resource_size": int(main_document.get("resourceSize") or 0),
        "redirect_count": len(main_document.get("redirects") or []),
    }
    context.computed_cache[cache_key] = summary
    return summary
