"""Audits over the document's head metadata."""

import re
from typing import Any, Dict, Mapping

from pageaudit.core.audit import Audit
from pageaudit.core.types import AuditContext
from pageaudit.i18n import UIString

VIEWPORT_WIDTH_PATTERN = re.compile(r"(^|[\s,;])(width|initial-scale)\s*=", re.IGNORECASE)


class DocumentTitle(Audit):
    id = "document-title"
    title = UIString("audits.document-title.title")
    failure_title = UIString("audits.document-title.failure_title")
    required_artifacts = ("MetaElements",)

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        title = artifacts["MetaElements"].get("title")
        return {"score": 1 if (title or "").strip() else 0}


class MetaDescription(Audit):
    id = "meta-description"
    title = UIString("audits.meta-description.title")
    failure_title = UIString("audits.meta-description.failure_title")
    required_artifacts = ("MetaElements",)
    default_options = {"min_length": 1}

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        description = artifacts["MetaElements"].get("description")
        if description is None:
            return {"score": 0}
        min_length = int(context.options["min_length"])
        if len(description.strip()) < min_length:
            return {
                "score": 0,
                "explanation": UIString(
                    "audits.meta-description.explanation_too_short",
                    {"min_length": min_length},
                ),
            }
        return {"score": 1}


class Viewport(Audit):
    id = "viewport"
    title = UIString("audits.viewport.title")
    failure_title = UIString("audits.viewport.failure_title")
    required_artifacts = ("MetaElements",)

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        content = artifacts["MetaElements"].get("viewport")
        if content is None:
            return {"score": 0}
        return {"score": 1 if VIEWPORT_WIDTH_PATTERN.search(content) else 0}


class HtmlHasLang(Audit):
    id = "html-has-lang"
    title = UIString("audits.html-has-lang.title")
    failure_title = UIString("audits.html-has-lang.failure_title")
    required_artifacts = ("MetaElements",)

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        lang = artifacts["MetaElements"].get("lang")
        return {"score": 1 if (lang or "").strip() else 0}
