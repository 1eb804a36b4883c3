"""Audits over the main document's transport."""

from typing import Any, Dict, Mapping
from urllib.parse import urlsplit

from pageaudit.audits.computed import main_document_summary
from pageaudit.core.audit import Audit
from pageaudit.core.types import AuditContext
from pageaudit.i18n import UIString

SECURE_SCHEMES = frozenset({"https", "wss", "data", "about", "chrome"})
LOCALHOST_NAMES = frozenset({"localhost", "127.0.0.1", "::1"})
COMPRESSION_ENCODINGS = frozenset({"gzip", "br", "deflate", "zstd"})
BYTES_PER_KIB = 1024


class IsOnHttps(Audit):
    id = "is-on-https"
    title = UIString("audits.is-on-https.title")
    failure_title = UIString("audits.is-on-https.failure_title")
    required_artifacts = ("URL",)

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        final_url = artifacts["URL"].get("finalUrl") or artifacts["URL"].get("requestedUrl")
        parsed = urlsplit(final_url or "")
        is_secure = (
            parsed.scheme.lower() in SECURE_SCHEMES
            or (parsed.hostname or "").lower() in LOCALHOST_NAMES
        )
        return {
            "score": 1 if is_secure else 0,
            "details": {"type": "debugdata", "url": final_url, "scheme": parsed.scheme},
        }


class HttpStatusCode(Audit):
    id = "http-status-code"
    title = UIString("audits.http-status-code.title")
    failure_title = UIString("audits.http-status-code.failure_title")
    required_artifacts = ("MainDocument",)

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        summary = main_document_summary(artifacts["MainDocument"], context)
        product: Dict[str, Any] = {"score": 1 if summary["is_success"] else 0}
        if not summary["is_success"]:
            product["display_value"] = UIString(
                "audits.http-status-code.display_value",
                {"status_code": summary["status_code"]},
            )
        return product


class UsesCompression(Audit):
    """Checks the main document was served with a content encoding."""

    id = "uses-compression"
    title = UIString("audits.uses-compression.title")
    required_artifacts = ("MainDocument", "ResponseHeaders")
    default_options = {"min_bytes": 1400}

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        summary = main_document_summary(artifacts["MainDocument"], context)
        if not summary["is_text"] or summary["resource_size"] < context.options["min_bytes"]:
            return {"score": None, "not_applicable": True}

        encoding = artifacts["ResponseHeaders"].get("content-encoding", "")
        encodings = {part.strip().lower() for part in encoding.split(",") if part.strip()}
        if encodings & COMPRESSION_ENCODINGS:
            return {"score": 1, "details": {"type": "debugdata", "encoding": encoding}}

        size_kb = round(summary["resource_size"] / BYTES_PER_KIB, 1)
        return {
            "score": 0,
            "display_value": UIString(
                "audits.uses-compression.display_value", {"size_kb": size_kb}
            ),
            "details": {"type": "debugdata", "resourceSize": summary["resource_size"]},
        }
