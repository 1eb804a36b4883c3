import csv
import io
import json

import pytest

from pageaudit.report import generate_report
from pageaudit.report.generator import CSV_HEADER


@pytest.fixture
def result_dict():
    return {
        "requestedUrl": "https://example.com/",
        "finalUrl": "https://example.com/",
        "fetchTime": "2026-01-01T00:00:00+00:00",
        "runWarnings": ["Slow server"],
        "runtimeError": None,
        "configSettings": {"locale": "en-US"},
        "audits": {
            "document-title": {
                "id": "document-title",
                "title": "Document has a <title>",
                "score": 1.0,
                "scoreDisplayMode": "binary",
            },
            "viewport": {
                "id": "viewport",
                "title": "Has a viewport",
                "score": None,
                "scoreDisplayMode": "error",
                "errorMessage": "Required MetaElements gatherer did not run.",
            },
            "extra": {
                "id": "extra",
                "title": "Extra <check>",
                "score": 0.5,
                "scoreDisplayMode": "numeric",
            },
        },
        "categories": {
            "seo": {
                "id": "seo",
                "title": "SEO",
                "score": 0.5,
                "auditRefs": [
                    {"id": "document-title", "weight": 1.0},
                    {"id": "viewport", "weight": 1.0},
                ],
            }
        },
        "i18n": {"rendererFormattedStrings": {"errorLabel": "Error!", "scoreLabel": "Score"}},
    }


def test_json_report(result_dict):
    assert json.loads(generate_report(result_dict, "json")) == result_dict


def test_csv_report_rows(result_dict):
    rows = list(csv.reader(io.StringIO(generate_report(result_dict, ["csv"]))))

    assert rows[0] == CSV_HEADER
    assert [row[2:4] for row in rows[1:]] == [
        ["seo", "document-title"],
        ["seo", "viewport"],
        ["uncategorized", "extra"],
    ]
    assert rows[2][6] == ""


def test_html_report_escapes_and_embeds(result_dict):
    page = generate_report(result_dict, "html")

    assert page.startswith("<!doctype html>")
    assert "Document has a &lt;title&gt;" in page
    assert "Error! Required MetaElements gatherer did not run." in page
    assert "Slow server" in page
    assert 'id="pageaudit-result"' in page


def test_multiple_formats_return_list(result_dict):
    reports = generate_report(result_dict, ["json", "csv"])

    assert isinstance(reports, list)
    assert len(reports) == 2
    assert reports[1].startswith("requestedUrl,")


def test_unknown_format_rejected(result_dict):
    with pytest.raises(ValueError, match="Unsupported output format"):
        generate_report(result_dict, ["pdf"])
