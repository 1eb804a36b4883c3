import os
from typing import Dict, List, Optional
from unittest.mock import patch

import pytest

from pageaudit.config.run_config import build_run_config
from pageaudit.core.registry import Registry
from pageaudit.gather.driver import CollectionDriver, LoadedPage

HTML_PAGE = (
    "<!doctype html><html lang=\"en\"><head>"
    "<title>Example Domain</title>"
    "<meta name=\"description\" content=\"An example page for audits\">"
    "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">"
    "</head><body><p>Hello</p></body></html>"
)


class FakeDriver(CollectionDriver):
    """Driver returning a canned page without touching the network."""

    def __init__(
        self,
        *,
        body: str = HTML_PAGE,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        final_url: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.headers = headers or {"content-type": "text/html; charset=utf-8"}
        self.final_url = final_url
        self.error = error
        self.loaded: List[str] = []
        self.disconnected = False

    def get_user_agent(self) -> str:
        return "FakeAgent/1.0"

    def load_page(self, url, *, timeout_ms, extra_headers=None):
        self.loaded.append(url)
        if self.error is not None:
            raise self.error
        return LoadedPage(
            requested_url=url,
            final_url=self.final_url or url,
            status_code=self.status_code,
            headers=dict(self.headers),
            body=self.body,
            resource_size=len(self.body.encode("utf-8")),
        )

    def disconnect(self) -> None:
        self.disconnected = True


@pytest.fixture(autouse=True)
def mock_settings_env_vars(tmp_path):
    """Automatically mock HOME and environment variables to ensure test isolation."""
    fake_home = tmp_path / "fake_home"
    fake_home.mkdir()

    with patch("pathlib.Path.home", return_value=fake_home):
        with patch.dict(
            os.environ,
            {"HOME": str(fake_home), "PAGEAUDIT_SENTRY_DSN": ""},
        ):
            yield


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def make_driver():
    return FakeDriver


DEFAULT_GATHERERS = ["MainDocument", "MetaElements", "ResponseHeaders"]


@pytest.fixture
def make_run_config():
    """Build a RunConfig around the given audit classes."""

    def _make(audits, *, settings=None, passes=None, categories=None, audit_options=None):
        registry = Registry("audit")
        for audit in audits:
            registry.register(audit)
        raw = {
            "settings": dict(settings or {}),
            "passes": (
                passes
                if passes is not None
                else [{"pass_name": "defaultPass", "gatherers": DEFAULT_GATHERERS}]
            ),
            "audits": {"ids": [audit.id for audit in audits]},
            "audit_options": audit_options or {},
            "categories": categories or {},
        }
        return build_run_config(raw, audit_registry=registry)

    return _make
