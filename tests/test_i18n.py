from dataclasses import dataclass

from pageaudit.i18n import (
    UIString,
    format_message,
    get_renderer_formatted_strings,
    load_catalog,
    replace_message_refs,
)


def test_format_message_with_values():
    message = UIString("audits.http-status-code.display_value", {"status_code": 404})
    assert format_message(message) == "Status code 404"
    assert str(message) == "Status code 404"


def test_plain_values_pass_through():
    assert format_message("already text", "es") == "already text"
    assert format_message(None) is None


def test_missing_message_id_returns_id():
    assert format_message(UIString("audits.nope.title"), "en-US") == "audits.nope.title"


def test_locale_falls_back_to_language_then_default():
    catalog = load_catalog("es-MX")

    assert catalog["messages"]["audits.is-on-https.title"] == "Usa HTTPS"
    assert catalog["messages"]["audits.viewport.title"].startswith("Has a `<meta")


def test_renderer_strings_localized():
    assert get_renderer_formatted_strings("es")["errorLabel"] == "¡Error!"
    assert get_renderer_formatted_strings("es")["auditLabel"] == "Audit"
    assert get_renderer_formatted_strings()["errorLabel"] == "Error!"


@dataclass
class _Holder:
    title: object
    items: list


def test_replace_message_refs_records_paths():
    holder = _Holder(
        title=UIString("audits.is-on-https.title"),
        items=[{"label": UIString("audits.is-on-https.title")}, "plain"],
    )

    paths = replace_message_refs({"root": holder}, "es")

    assert holder.title == "Usa HTTPS"
    assert holder.items[0]["label"] == "Usa HTTPS"
    assert paths == {
        "audits.is-on-https.title": ["root.title", "root.items[0].label"],
    }
