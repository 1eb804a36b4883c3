import itertools
import json
from unittest.mock import patch

import pytest

from pageaudit.audits import DocumentTitle
from pageaudit.config.run_config import RunSettings
from pageaudit.core.audit import Audit
from pageaudit.core.exceptions import (
    ArtifactStorageError,
    ConfigurationError,
    NavigationError,
)
from pageaudit.core.runner import Runner, get_artifacts_path, run
from pageaudit.core.timing import RUNNER_RUN_SPAN, Timer
from pageaudit.storage.artifacts import ARTIFACTS_FILENAME, load_artifacts, save_artifacts

AUDIT_CALLS = []


class TitlePresent(Audit):
    id = "title-present"
    title = "Title present"
    required_artifacts = ("MetaElements",)

    @classmethod
    def audit(cls, artifacts, context):
        AUDIT_CALLS.append(cls.id)
        return {"score": 1 if artifacts["MetaElements"]["title"] else 0}


class StatusOk(Audit):
    id = "status-ok"
    title = "Status ok"
    required_artifacts = ("MainDocument",)

    @classmethod
    def audit(cls, artifacts, context):
        AUDIT_CALLS.append(cls.id)
        context.run_warnings.append("status checked")
        return {"score": 1 if artifacts["MainDocument"]["statusCode"] < 400 else 0}


CATEGORIES = {
    "basics": {
        "title": "Basics",
        "audit_refs": [
            {"id": "title-present", "weight": 1},
            {"id": "status-ok", "weight": 3},
        ],
    }
}


@pytest.fixture(autouse=True)
def reset_audit_calls():
    AUDIT_CALLS.clear()
    yield
    AUDIT_CALLS.clear()


def _timer():
    return Timer(clock=itertools.count(0, 0.001).__next__)


def _collect(make_run_config, driver, cwd, url="https://example.com", **settings):
    config = make_run_config([TitlePresent, StatusOk], settings={"collect_mode": True, **settings})
    return run(None, config, url=url, driver_override=driver, cwd=cwd)


def test_collect_only_saves_canonical_url(tmp_path, make_run_config, fake_driver):
    result = _collect(make_run_config, fake_driver, tmp_path, url="HTTPS://Example.com")

    assert result is None
    assert AUDIT_CALLS == []
    assert fake_driver.loaded == ["https://example.com/"]
    saved = load_artifacts(tmp_path / "latest-run")
    assert saved["URL"]["requestedUrl"] == "https://example.com/"
    assert saved["MetaElements"]["title"] == "Example Domain"


def test_collect_mode_path_chooses_directory(tmp_path, make_run_config, fake_driver):
    _collect(make_run_config, fake_driver, tmp_path, collect_mode="saved-run")

    assert (tmp_path / "saved-run" / ARTIFACTS_FILENAME).is_file()
    assert not (tmp_path / "latest-run").exists()


def test_analyze_only_rejects_saved_empty_url(tmp_path, make_run_config):
    save_artifacts(
        {"URL": {"requestedUrl": ""}, "MetaElements": {"title": "x"}},
        tmp_path / "latest-run",
    )
    config = make_run_config([TitlePresent], settings={"analyze_mode": True})

    with pytest.raises(ConfigurationError, match="empty URL"):
        run(None, config, cwd=tmp_path)
    assert AUDIT_CALLS == []


def test_analyze_only_ignores_fragment_difference(tmp_path, make_run_config, fake_driver):
    _collect(make_run_config, fake_driver, tmp_path)
    config = make_run_config([TitlePresent, StatusOk], settings={"analyze_mode": True})

    runner_result = run(None, config, url="https://example.com/#section", cwd=tmp_path)

    assert runner_result.result.requested_url == "https://example.com/"
    assert AUDIT_CALLS == ["title-present", "status-ok"]


def test_analyze_only_rejects_different_url(tmp_path, make_run_config, fake_driver):
    _collect(make_run_config, fake_driver, tmp_path)
    config = make_run_config([TitlePresent], settings={"analyze_mode": True})

    with pytest.raises(ConfigurationError, match="different URL"):
        run(None, config, url="https://other.com/", cwd=tmp_path)
    assert AUDIT_CALLS == []


def test_analyze_only_rejects_changed_settings(tmp_path, make_run_config, fake_driver):
    _collect(make_run_config, fake_driver, tmp_path, max_wait_for_load=1000)
    config = make_run_config([TitlePresent], settings={"analyze_mode": True})

    with pytest.raises(ConfigurationError, match="max_wait_for_load"):
        run(None, config, cwd=tmp_path)
    assert AUDIT_CALLS == []


def test_analyze_only_without_saved_artifacts(tmp_path, make_run_config):
    config = make_run_config([TitlePresent], settings={"analyze_mode": True})

    with pytest.raises(ArtifactStorageError):
        run(None, config, cwd=tmp_path)


def test_full_run_result(tmp_path, make_run_config, fake_driver):
    config = make_run_config([TitlePresent, StatusOk], categories=CATEGORIES)

    runner_result = Runner(
        config, driver_override=fake_driver, timer=_timer(), cwd=tmp_path
    ).run("https://example.com")
    result = runner_result.result

    assert list(result.audits) == ["title-present", "status-ok"]
    assert result.categories["basics"].score == 1.0
    assert result.final_url == "https://example.com/"
    assert result.runtime_error is None
    assert result.run_warnings == ["status checked"]
    assert result.environment["networkUserAgent"] == "FakeAgent/1.0"
    assert fake_driver.disconnected
    assert not (tmp_path / "latest-run").exists()

    report = json.loads(runner_result.report)
    assert report["requestedUrl"] == "https://example.com/"
    assert report["audits"]["status-ok"]["score"] == 1.0


def test_timing_deduplicated_with_run_total(tmp_path, make_run_config, fake_driver):
    config = make_run_config(
        [TitlePresent, StatusOk], settings={"collect_mode": True, "analyze_mode": True}
    )

    runner_result = Runner(
        config, driver_override=fake_driver, timer=_timer(), cwd=tmp_path
    ).run("https://example.com")
    timing = runner_result.result.timing

    start_times = [entry.start_time for entry in timing.entries]
    names = [entry.name for entry in timing.entries]
    assert len(start_times) == len(set(start_times))
    assert names.count("pageaudit:gather:run") == 1
    run_entry = next(entry for entry in timing.entries if entry.name == RUNNER_RUN_SPAN)
    assert timing.total == run_entry.duration > 0
    assert (tmp_path / "latest-run" / ARTIFACTS_FILENAME).is_file()


def test_page_load_failure_becomes_runtime_error(tmp_path, make_run_config, make_driver):
    driver = make_driver(error=NavigationError("Timed out", code="PAGE_HUNG"))
    config = make_run_config([TitlePresent, StatusOk])

    result = run(None, config, url="https://example.com", driver_override=driver, cwd=tmp_path).result

    assert result.runtime_error.code == "PAGE_HUNG"
    assert "PAGE_HUNG" in result.runtime_error.message
    assert all(audit.score_display_mode == "error" for audit in result.audits.values())
    assert AUDIT_CALLS == []
    assert any("defaultPass" in warning for warning in result.run_warnings)


def test_error_status_becomes_runtime_error(tmp_path, make_run_config, make_driver):
    config = make_run_config([StatusOk])

    result = run(
        None, config, url="https://example.com", driver_override=make_driver(status_code=404), cwd=tmp_path
    ).result

    assert result.runtime_error.code == "ERRORED_DOCUMENT_REQUEST"
    assert "404" in result.runtime_error.message


@pytest.mark.parametrize(
    "url, message",
    [
        (None, "You must provide a url"),
        ("", "You must provide a url"),
        ("not a url", "proper protocol and hostname"),
    ],
)
def test_invalid_url_rejected(tmp_path, make_run_config, fake_driver, url, message):
    config = make_run_config([TitlePresent])

    with pytest.raises(ConfigurationError, match=message):
        run(None, config, url=url, driver_override=fake_driver, cwd=tmp_path)
    assert fake_driver.loaded == []


def test_no_audits_rejected(tmp_path, make_run_config, fake_driver):
    with pytest.raises(ConfigurationError, match="No audits to evaluate"):
        run(None, make_run_config([]), url="https://example.com", driver_override=fake_driver, cwd=tmp_path)


def test_no_passes_rejected(tmp_path, make_run_config, fake_driver):
    config = make_run_config([TitlePresent], passes=[])

    with pytest.raises(ConfigurationError, match="No browser artifacts"):
        run(None, config, url="https://example.com", driver_override=fake_driver, cwd=tmp_path)


def test_fatal_error_annotated_and_reported(tmp_path, make_run_config, fake_driver):
    config = make_run_config([TitlePresent])

    with patch("pageaudit.core.runner.telemetry.capture_exception") as capture:
        with pytest.raises(ConfigurationError) as exc_info:
            run(None, config, url="", driver_override=fake_driver, cwd=tmp_path)

    assert exc_info.value.friendly_message.startswith(
        "Something went wrong while auditing the page"
    )
    capture.assert_called_once()
    assert capture.call_args.kwargs["level"] == "fatal"


def test_reanalysis_is_repeatable(tmp_path, make_run_config, fake_driver):
    _collect(make_run_config, fake_driver, tmp_path)
    config = make_run_config(
        [TitlePresent, StatusOk], settings={"analyze_mode": True}, categories=CATEGORIES
    )

    first = run(None, config, cwd=tmp_path).result.to_dict()
    second = run(None, config, cwd=tmp_path).result.to_dict()

    assert first["audits"] == second["audits"]
    assert first["categories"] == second["categories"]
    assert first["runtimeError"] == second["runtimeError"]


def test_analysis_localized_per_invocation(tmp_path, make_run_config, fake_driver):
    collect_config = make_run_config([DocumentTitle], settings={"collect_mode": True})
    run(None, collect_config, url="https://example.com", driver_override=fake_driver, cwd=tmp_path)
    config = make_run_config([DocumentTitle], settings={"analyze_mode": True, "locale": "es"})

    result = run(None, config, cwd=tmp_path).result

    assert result.audits["document-title"].title == "El documento tiene un elemento `<title>`"
    assert result.i18n["messagePaths"] == {
        "audits.document-title.title": ["audits.document-title.title"]
    }
    assert result.i18n["rendererFormattedStrings"]["scoreLabel"] == "Puntuación"


ERRORED_DOCUMENT_MESSAGES = {
    "en-US": (
        "Unable to reliably load the page you requested. "
        "The server responded with a status code of 404."
    ),
    "es": (
        "No se pudo cargar de forma fiable la página solicitada. "
        "El servidor respondió con el código de estado 404."
    ),
}
PAGE_LOAD_WARNINGS = {
    "en-US": 'Page failed to load in pass "defaultPass"; its artifacts are unavailable.',
    "es": 'La página no se cargó en el paso "defaultPass"; sus artefactos no están disponibles.',
}


@pytest.mark.parametrize("collect_locale, analyze_locale", [("es", "en-US"), ("en-US", "es")])
def test_page_load_error_localized_at_analysis(
    tmp_path, make_run_config, make_driver, collect_locale, analyze_locale
):
    driver = make_driver(status_code=404)
    _collect(make_run_config, driver, tmp_path, locale=collect_locale)
    config = make_run_config([StatusOk], settings={"analyze_mode": True, "locale": analyze_locale})

    result = run(None, config, cwd=tmp_path).result

    assert result.runtime_error.code == "ERRORED_DOCUMENT_REQUEST"
    assert result.runtime_error.message == ERRORED_DOCUMENT_MESSAGES[analyze_locale]
    assert result.run_warnings == [PAGE_LOAD_WARNINGS[analyze_locale]]
    paths = result.i18n["messagePaths"]
    assert paths["errors.errored_document_request"] == ["runtime_error.message"]
    assert paths["warnings.page_load_pass"] == ["run_warnings[0]"]
    assert result.to_dict()["runtimeError"]["message"] == ERRORED_DOCUMENT_MESSAGES[analyze_locale]


def test_unexpected_fatal_error_gets_generic_friendly_message(
    tmp_path, make_run_config, make_driver
):
    error = RuntimeError("socket reset")
    error.friendly_message = "left over from elsewhere"
    config = make_run_config([TitlePresent])

    with patch("pageaudit.core.runner.telemetry.capture_exception"):
        with pytest.raises(RuntimeError) as exc_info:
            run(None, config, url="https://example.com", driver_override=make_driver(error=error), cwd=tmp_path)

    assert exc_info.value.friendly_message == (
        "Something went wrong while auditing the page: socket reset"
    )


def test_get_artifacts_path(tmp_path):
    assert get_artifacts_path(RunSettings(), tmp_path) == tmp_path / "latest-run"
    assert get_artifacts_path(RunSettings(collect_mode="out"), tmp_path) == (tmp_path / "out").resolve()
    assert (
        get_artifacts_path(RunSettings(collect_mode="a", analyze_mode="b"), tmp_path)
        == (tmp_path / "b").resolve()
    )


def test_core_package_exports_runner():
    from pageaudit import core

    assert core.Runner is Runner
    assert core.run is run
    with pytest.raises(AttributeError):
        core.does_not_exist
