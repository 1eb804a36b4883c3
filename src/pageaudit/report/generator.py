"""Render a run result as JSON, CSV or a standalone HTML page."""

from __future__ import annotations

import csv
import html
import io
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Union

if TYPE_CHECKING:
    from pageaudit.core.types import RunResult

logger = logging.getLogger(__name__)

CSV_HEADER = ["requestedUrl", "finalUrl", "category", "name", "title", "type", "score"]
UNCATEGORIZED = "uncategorized"


def render_json(result: Dict[str, Any]) -> str:
    return json.dumps(result, indent=2)


def render_csv(result: Dict[str, Any]) -> str:
    """One row per audit per category; audits outside every category come last."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    audits = result["audits"]
    categorized: set[str] = set()

    def _row(category_id: str, audit: Dict[str, Any]) -> List[Any]:
        score = audit.get("score")
        return [
            result["requestedUrl"],
            result["finalUrl"],
            category_id,
            audit["id"],
            audit["title"],
            audit["scoreDisplayMode"],
            "" if score is None else score,
        ]

    for category_id, category in result["categories"].items():
        for ref in category["auditRefs"]:
            categorized.add(ref["id"])
            writer.writerow(_row(category_id, audits[ref["id"]]))
    for audit_id, audit in audits.items():
        if audit_id not in categorized:
            writer.writerow(_row(UNCATEGORIZED, audit))
    return buffer.getvalue()


def _format_score(score: Any) -> str:
    if score is None:
        return "-"
    return str(round(score * 100))


def render_html(result: Dict[str, Any]) -> str:
    strings = result.get("i18n", {}).get("rendererFormattedStrings", {})
    esc = html.escape
    parts: List[str] = []

    runtime_error = result.get("runtimeError")
    if runtime_error:
        parts.append(
            f'<div class="runtime-error"><strong>{esc(strings.get("runtimeErrorLabel", "Runtime error"))}'
            f"</strong> {esc(runtime_error['code'])}: {esc(runtime_error['message'])}</div>"
        )
    if result.get("runWarnings"):
        items = "".join(f"<li>{esc(str(w))}</li>" for w in result["runWarnings"])
        parts.append(
            f'<div class="warnings">{esc(strings.get("warningHeader", "Warnings: "))}<ul>{items}</ul></div>'
        )

    audits = result["audits"]
    for category in result["categories"].values():
        rows = []
        for ref in category["auditRefs"]:
            audit = audits[ref["id"]]
            if audit.get("errorMessage"):
                status = f'{esc(strings.get("errorLabel", "Error!"))} {esc(audit["errorMessage"])}'
            else:
                status = esc(str(audit.get("displayValue") or ""))
            rows.append(
                f'<tr class="audit mode-{esc(audit["scoreDisplayMode"])}">'
                f"<td>{_format_score(audit.get('score'))}</td>"
                f"<td>{esc(str(audit['title']))}</td><td>{status}</td></tr>"
            )
        parts.append(
            f'<section class="category" id="{esc(category["id"])}">'
            f"<h2>{esc(str(category['title']))} "
            f'<span class="score">{_format_score(category.get("score"))}</span></h2>'
            f"<table><thead><tr><th>{esc(strings.get('scoreLabel', 'Score'))}</th>"
            f"<th>{esc(strings.get('auditLabel', 'Audit'))}</th><th></th></tr></thead>"
            f"<tbody>{''.join(rows)}</tbody></table></section>"
        )

    title = esc(result["finalUrl"] or result["requestedUrl"])
    embedded = render_json(result).replace("</", "<\\/")
    return (
        "<!doctype html>\n"
        f'<html lang="{esc(result["configSettings"].get("locale", "en-US"))}">'
        f'<head><meta charset="utf-8"><title>pageaudit report: {title}</title></head>'
        f"<body><header><h1>{title}</h1>"
        f"<p>{esc(strings.get('generatedLabel', 'Generated'))} {esc(str(result.get('fetchTime') or ''))}</p>"
        f"</header>{''.join(parts)}"
        f'<script type="application/json" id="pageaudit-result">{embedded}</script>'
        "</body></html>\n"
    )


RENDERERS = {
    "json": render_json,
    "csv": render_csv,
    "html": render_html,
}


def generate_report(
    result: Union["RunResult", Dict[str, Any]], output_formats: Union[str, Sequence[str]]
) -> Union[str, List[str]]:
    """Render ``result`` once per requested format.

    A single format returns a string; several formats return a list in order.
    """
    payload = result.to_dict() if hasattr(result, "to_dict") else result
    formats = [output_formats] if isinstance(output_formats, str) else list(output_formats)
    reports = []
    for output_format in formats:
        renderer = RENDERERS.get(output_format)
        if renderer is None:
            raise ValueError(f"Unsupported output format: {output_format}")
        reports.append(renderer(payload))
    logger.debug("Rendered report formats: %s", formats)
    return reports[0] if len(reports) == 1 else reports
