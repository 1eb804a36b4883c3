"""Run orchestration: phase control, audit execution and result assembly."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pageaudit import __version__, telemetry
from pageaudit.config import ARTIFACTS_DIR_NAME
from pageaudit.config.run_config import RunConfig, RunSettings
from pageaudit.core.audit_engine import run_audits
from pageaudit.core.exceptions import ConfigurationError, PageAuditError
from pageaudit.core.registry import Registry
from pageaudit.core.runtime_error import get_artifact_runtime_error
from pageaudit.core.scoring import score_all_categories
from pageaudit.core.settings_check import assert_settings_compatible
from pageaudit.core.timing import RUNNER_RUN_SPAN, Timer, aggregate_timing
from pageaudit.core.types import AuditResult, RunnerResult, RunResult
from pageaudit.gather.driver import CollectionDriver, HttpDriver
from pageaudit.gather.gather_runner import GatherOptions, GatherRunner
from pageaudit.i18n import (
    UIString,
    format_message,
    get_renderer_formatted_strings,
    replace_message_refs,
)
from pageaudit.report.generator import generate_report
from pageaudit.storage.artifacts import load_artifacts, save_artifacts
from pageaudit.url_utils import canonicalize_url, equal_with_excluded_fragments

logger = logging.getLogger(__name__)


def get_artifacts_path(settings: RunSettings, cwd: Optional[Union[str, Path]] = None) -> Path:
    """Directory for saved artifacts; a string collect/analyze mode overrides the default."""
    base_dir = Path(cwd or os.getcwd())
    if isinstance(settings.analyze_mode, str) and settings.analyze_mode:
        return (base_dir / settings.analyze_mode).resolve()
    if isinstance(settings.collect_mode, str) and settings.collect_mode:
        return (base_dir / settings.collect_mode).resolve()
    return base_dir / ARTIFACTS_DIR_NAME


class Runner:
    """Drives one run from artifact acquisition to the rendered report.

    A runner instance owns the timer of its run; create one per run.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        connection: Any = None,
        driver_override: Optional[CollectionDriver] = None,
        gatherer_registry: Optional[Registry] = None,
        timer: Optional[Timer] = None,
        cwd: Optional[Union[str, Path]] = None,
    ) -> None:
        self.config = config
        self.connection = connection
        self.driver_override = driver_override
        self.gatherer_registry = gatherer_registry
        self.timer = timer or Timer()
        self.cwd = cwd

    @property
    def settings(self) -> RunSettings:
        return self.config.settings

    def run(self, url: Optional[str] = None) -> Optional[RunnerResult]:
        """Execute the run; returns ``None`` in collect-only mode."""
        settings = self.settings
        try:
            run_span = self.timer.begin_span(RUNNER_RUN_SPAN)
            run_warnings: List[Any] = []
            telemetry.capture_breadcrumb(
                "Run started", category="lifecycle", data={"url": url or ""}
            )

            # -G collects only, -A analyzes saved artifacts only, -GA does both
            # and keeps the collected artifacts on disk.
            if settings.is_analyze_enabled and not settings.is_collect_enabled:
                artifacts, requested_url = self._load_saved_artifacts(url)
            else:
                requested_url = self._resolve_requested_url(url)
                artifacts = self._gather_artifacts(requested_url)
                if settings.is_collect_enabled:
                    save_artifacts(artifacts, get_artifacts_path(settings, self.cwd))

            if settings.is_collect_enabled and not settings.is_analyze_enabled:
                logger.info("Collect-only run finished for %s", requested_url)
                return None

            if not self.config.audits:
                raise ConfigurationError("No audits to evaluate.")
            audit_results = run_audits(
                settings, self.config.audits, artifacts, run_warnings, self.timer
            )

            result = self._assemble_result(
                artifacts, requested_url, audit_results, run_warnings, run_span
            )
            report = generate_report(result, settings.output_formats)
            return RunnerResult(result=result, artifacts=artifacts, report=report)
        except Exception as e:
            self._annotate_fatal_error(e)
            telemetry.capture_exception(e, level=telemetry.FATAL_LEVEL)
            raise

    def _annotate_fatal_error(self, error: Exception) -> None:
        friendly = error.friendly_message if isinstance(error, PageAuditError) else None
        if friendly is None:
            message = error.message if isinstance(error, PageAuditError) else str(error)
            friendly = UIString("errors.run_failed", {"message": message})
        error.friendly_message = format_message(friendly, self.settings.locale)
        logger.error("Run failed: %s", error.friendly_message)

    def _load_saved_artifacts(self, url: Optional[str]) -> tuple[Dict[str, Any], str]:
        path = get_artifacts_path(self.settings, self.cwd)
        artifacts = load_artifacts(path)
        requested_url = (artifacts.get("URL") or {}).get("requestedUrl")
        if not requested_url:
            raise ConfigurationError("Cannot run analyze mode on empty URL")
        if url and not equal_with_excluded_fragments(url, requested_url):
            raise ConfigurationError("Cannot run analyze mode on different URL")
        if artifacts.get("settings") is not None:
            assert_settings_compatible(artifacts["settings"], self.settings)
        return artifacts, requested_url

    @staticmethod
    def _resolve_requested_url(url: Optional[str]) -> str:
        if not isinstance(url, str) or not url:
            raise ConfigurationError(f"You must provide a url to the runner. '{url}' provided.")
        try:
            return canonicalize_url(url)
        except ValueError as e:
            raise ConfigurationError(
                "The url provided should have a proper protocol and hostname."
            ) from e

    def _gather_artifacts(self, requested_url: str) -> Dict[str, Any]:
        if not self.config.passes:
            raise ConfigurationError("No browser artifacts are either provided or requested.")
        driver = self.driver_override or HttpDriver(self.connection)
        options = GatherOptions(
            driver=driver,
            requested_url=requested_url,
            settings=self.settings,
            timer=self.timer,
            gatherer_registry=self.gatherer_registry,
        )
        return GatherRunner.run(self.config.passes, options)

    def _assemble_result(
        self,
        artifacts: Dict[str, Any],
        requested_url: str,
        audit_results: List[AuditResult],
        run_warnings: List[Any],
        run_span: Any,
    ) -> RunResult:
        settings = self.settings
        generate_span = self.timer.begin_span("pageaudit:runner:generate")

        run_warnings.extend(artifacts.get("RunWarnings") or [])
        results_by_id = {audit_result.id: audit_result for audit_result in audit_results}
        categories = (
            score_all_categories(self.config.categories, results_by_id)
            if self.config.categories
            else {}
        )

        self.timer.end_span(generate_span)
        self.timer.end_span(run_span)

        result = RunResult(
            user_agent=artifacts.get("HostUserAgent"),
            environment={
                "networkUserAgent": artifacts.get("NetworkUserAgent"),
                "hostUserAgent": artifacts.get("HostUserAgent"),
                "benchmarkIndex": artifacts.get("BenchmarkIndex"),
            },
            version=__version__,
            fetch_time=artifacts.get("fetchTime"),
            requested_url=requested_url,
            final_url=(artifacts.get("URL") or {}).get("finalUrl"),
            run_warnings=run_warnings,
            runtime_error=get_artifact_runtime_error(artifacts),
            audits=results_by_id,
            config_settings=settings.to_dict(),
            categories=categories,
            category_groups=self.config.groups or None,
            timing=aggregate_timing(artifacts.get("Timing"), self.timer.take_entries()),
            i18n={
                "rendererFormattedStrings": get_renderer_formatted_strings(settings.locale),
                "messagePaths": {},
            },
        )
        result.i18n["messagePaths"] = replace_message_refs(result, settings.locale)
        return result


def run(
    connection: Any,
    config: RunConfig,
    url: Optional[str] = None,
    driver_override: Optional[CollectionDriver] = None,
    **runner_options: Any,
) -> Optional[RunnerResult]:
    """Run collection and/or analysis for ``url`` according to ``config.settings``."""
    return Runner(
        config,
        connection=connection,
        driver_override=driver_override,
        **runner_options,
    ).run(url)
