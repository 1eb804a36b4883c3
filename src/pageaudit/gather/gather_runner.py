"""Runs collection passes and turns gatherer output into an artifact set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from pageaudit.core.exceptions import ArtifactError, NavigationError
from pageaudit.core.registry import Registry
from pageaudit.core.timing import Timer
from pageaudit.gather.driver import CollectionDriver, LoadedPage, get_host_user_agent
from pageaudit.gather.gatherers import PassContext, create_gatherer_registry
from pageaudit.i18n import UIString

if TYPE_CHECKING:
    from pageaudit.config.run_config import PassConfig, RunSettings

logger = logging.getLogger(__name__)

PAGE_LOAD_ERROR_ARTIFACT = "PageLoadError"
ERRORED_DOCUMENT_STATUS = 400


@dataclass
class GatherOptions:
    """Inputs shared by every pass of one collection."""

    driver: CollectionDriver
    requested_url: str
    settings: "RunSettings"
    timer: Timer
    gatherer_registry: Optional[Registry] = None


class GatherRunner:
    """Loads the page once per pass and collects each pass's artifacts."""

    @staticmethod
    def _load_page(
        pass_config: "PassConfig", options: GatherOptions
    ) -> Tuple[Optional[LoadedPage], Optional[ArtifactError]]:
        settings = options.settings
        span = options.timer.begin_span(f"pageaudit:gather:loadPage-{pass_config.pass_name}")
        try:
            page = options.driver.load_page(
                options.requested_url,
                timeout_ms=settings.max_wait_for_load,
                extra_headers=settings.extra_headers,
            )
        except NavigationError as e:
            logger.warning("Page load failed in pass %s: %s", pass_config.pass_name, e)
            return None, ArtifactError(
                e.message,
                code=e.code,
                friendly_message=UIString("errors.page_load_failed", {"details": e.code}),
                promote=True,
            )
        finally:
            options.timer.end_span(span)

        if page.status_code >= ERRORED_DOCUMENT_STATUS:
            logger.warning(
                "Main document returned status %s in pass %s",
                page.status_code,
                pass_config.pass_name,
            )
            return page, ArtifactError(
                f"Document request failed with status code {page.status_code}",
                code="ERRORED_DOCUMENT_REQUEST",
                friendly_message=UIString(
                    "errors.errored_document_request", {"status_code": page.status_code}
                ),
                promote=True,
            )
        return page, None

    @staticmethod
    def _collect_artifact(gatherer: Any, pass_context: PassContext, timer: Timer) -> Any:
        span = timer.begin_span(f"pageaudit:gather:getArtifact:{gatherer.name}")
        try:
            return gatherer.after_pass(pass_context)
        except ArtifactError as e:
            return e
        except Exception as e:
            logger.warning("%s gatherer failed: %s", gatherer.name, e)
            return ArtifactError(str(e) or type(e).__name__, code="GATHERER_ERROR")
        finally:
            timer.end_span(span)

    @classmethod
    def run(cls, passes: Sequence["PassConfig"], options: GatherOptions) -> Dict[str, Any]:
        """Run every pass in order and return the artifact set."""
        timer = options.timer
        registry = options.gatherer_registry or create_gatherer_registry()
        run_span = timer.begin_span("pageaudit:gather:run")
        run_warnings: List[Any] = []
        artifacts: Dict[str, Any] = {
            "fetchTime": datetime.now(timezone.utc).isoformat(),
            "URL": {"requestedUrl": options.requested_url, "finalUrl": options.requested_url},
            "settings": options.settings.to_dict(),
            "HostUserAgent": get_host_user_agent(),
            "NetworkUserAgent": options.driver.get_user_agent(),
        }

        try:
            for index, pass_config in enumerate(passes):
                page, load_error = cls._load_page(pass_config, options)
                if index == 0 and page is not None:
                    artifacts["URL"]["finalUrl"] = page.final_url

                if load_error is not None:
                    run_warnings.append(
                        UIString("warnings.page_load_pass", {"pass_name": pass_config.pass_name})
                    )
                    artifacts.setdefault(PAGE_LOAD_ERROR_ARTIFACT, load_error)
                    for gatherer_name in pass_config.gatherers:
                        artifacts[gatherer_name] = load_error
                    continue

                pass_context = PassContext(
                    pass_name=pass_config.pass_name,
                    url=options.requested_url,
                    page=page,
                    settings=options.settings,
                    driver=options.driver,
                )
                for gatherer_name in pass_config.gatherers:
                    gatherer = registry.resolve(gatherer_name)()
                    artifacts[gatherer_name] = cls._collect_artifact(gatherer, pass_context, timer)
        finally:
            options.driver.disconnect()

        timer.end_span(run_span)
        artifacts["RunWarnings"] = run_warnings
        artifacts["Timing"] = timer.entries
        return artifacts
