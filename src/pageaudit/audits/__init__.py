"""Built-in audits and the default audit registry."""

from pageaudit.audits.document import (
    DocumentTitle,
    HtmlHasLang,
    MetaDescription,
    Viewport,
)
from pageaudit.audits.network import HttpStatusCode, IsOnHttps, UsesCompression
from pageaudit.core.registry import Registry

BUILTIN_AUDITS = {
    "network": (IsOnHttps, HttpStatusCode, UsesCompression),
    "document": (DocumentTitle, MetaDescription, Viewport, HtmlHasLang),
}


def create_audit_registry() -> Registry:
    """Registry of the built-in audits grouped by category."""
    registry = Registry("audit")
    for category, audits in BUILTIN_AUDITS.items():
        for audit in audits:
            registry.register(audit, category=category)
    return registry


__all__ = [
    "BUILTIN_AUDITS",
    "DocumentTitle",
    "HtmlHasLang",
    "HttpStatusCode",
    "IsOnHttps",
    "MetaDescription",
    "UsesCompression",
    "Viewport",
    "create_audit_registry",
]
