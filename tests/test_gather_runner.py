import pytest

from pageaudit.config.run_config import PassConfig, RunSettings
from pageaudit.core.exceptions import ArtifactError, ConfigurationError, NavigationError
from pageaudit.core.registry import Registry
from pageaudit.core.timing import Timer
from pageaudit.gather.gather_runner import GatherOptions, GatherRunner
from pageaudit.gather.gatherers import Gatherer, MainDocument

URL = "https://example.com/"
DEFAULT_PASSES = [
    PassConfig("defaultPass", ("MainDocument", "MetaElements", "ResponseHeaders"))
]


class Broken(Gatherer):
    name = "Broken"

    def after_pass(self, pass_context):
        raise RuntimeError("gatherer exploded")


class Marker(Gatherer):
    name = "Marker"

    def after_pass(self, pass_context):
        raise ArtifactError("not supported here", code="UNSUPPORTED")


def _options(driver, registry=None, **settings):
    return GatherOptions(
        driver=driver,
        requested_url=URL,
        settings=RunSettings(**settings),
        timer=Timer(),
        gatherer_registry=registry,
    )


def test_base_artifacts_and_gatherer_output(fake_driver):
    artifacts = GatherRunner.run(DEFAULT_PASSES, _options(fake_driver))

    assert artifacts["URL"] == {"requestedUrl": URL, "finalUrl": URL}
    assert artifacts["NetworkUserAgent"] == "FakeAgent/1.0"
    assert artifacts["HostUserAgent"]
    assert artifacts["fetchTime"]
    assert artifacts["settings"]["max_wait_for_load"] == 45000
    assert artifacts["MainDocument"]["statusCode"] == 200
    assert artifacts["MainDocument"]["mimeType"] == "text/html"
    assert artifacts["MetaElements"]["lang"] == "en"
    assert artifacts["ResponseHeaders"]["content-type"].startswith("text/html")
    assert artifacts["RunWarnings"] == []
    assert "pageaudit:gather:run" in [entry.name for entry in artifacts["Timing"]]
    assert fake_driver.disconnected


def test_final_url_follows_redirect(make_driver):
    driver = make_driver(final_url="https://www.example.com/home")

    artifacts = GatherRunner.run(DEFAULT_PASSES, _options(driver))

    assert artifacts["URL"]["finalUrl"] == "https://www.example.com/home"


def test_gatherer_failure_becomes_marker(fake_driver):
    registry = Registry("gatherer")
    for gatherer in (MainDocument, Broken, Marker):
        registry.register(gatherer)
    passes = [PassConfig("defaultPass", ("Broken", "MainDocument", "Marker"))]

    artifacts = GatherRunner.run(passes, _options(fake_driver, registry))

    assert isinstance(artifacts["Broken"], ArtifactError)
    assert artifacts["Broken"].code == "GATHERER_ERROR"
    assert artifacts["Broken"].message == "gatherer exploded"
    assert not artifacts["Broken"].promote
    assert artifacts["Marker"].code == "UNSUPPORTED"
    assert artifacts["MainDocument"]["statusCode"] == 200


def test_navigation_failure_marks_pass_artifacts(make_driver):
    driver = make_driver(error=NavigationError("Failed to load", code="FAILED_DOCUMENT_REQUEST"))

    artifacts = GatherRunner.run(DEFAULT_PASSES, _options(driver))

    page_load_error = artifacts["PageLoadError"]
    assert page_load_error.promote
    assert page_load_error.code == "FAILED_DOCUMENT_REQUEST"
    for name in ("MainDocument", "MetaElements", "ResponseHeaders"):
        assert artifacts[name] is page_load_error
    assert len(artifacts["RunWarnings"]) == 1
    assert driver.disconnected


def test_first_pass_load_error_kept(make_driver):
    driver = make_driver(status_code=500)
    passes = [
        PassConfig("defaultPass", ("MainDocument",)),
        PassConfig("secondPass", ("ResponseHeaders",)),
    ]

    artifacts = GatherRunner.run(passes, _options(driver))

    assert artifacts["PageLoadError"].code == "ERRORED_DOCUMENT_REQUEST"
    assert artifacts["PageLoadError"].friendly_message.values == {"status_code": 500}
    assert artifacts["ResponseHeaders"] is not artifacts["PageLoadError"]
    assert len(artifacts["RunWarnings"]) == 2
    assert driver.loaded == [URL, URL]


def test_driver_disconnected_when_gatherer_unknown(fake_driver):
    passes = [PassConfig("defaultPass", ("DoesNotExist",))]

    with pytest.raises(ConfigurationError, match="Unknown gatherer"):
        GatherRunner.run(passes, _options(fake_driver))
    assert fake_driver.disconnected
