"""Sequential audit execution with per-audit fault isolation."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence

from pageaudit import telemetry
from pageaudit.core.audit import (
    DEFAULT_PASS,
    AuditDefinition,
    generate_audit_result,
    generate_error_audit_result,
)
from pageaudit.core.exceptions import (
    ArtifactError,
    AuditExecutionError,
    ErrorKind,
    PageAuditError,
)
from pageaudit.core.timing import Timer
from pageaudit.core.types import AuditContext, AuditResult
from pageaudit.i18n import UIString, format_message

if TYPE_CHECKING:
    from pageaudit.config.run_config import RunSettings

logger = logging.getLogger(__name__)

TRACES_ARTIFACT = "traces"


def _check_required_artifacts(
    audit_defn: AuditDefinition, artifacts: Mapping[str, Any], locale: str
) -> None:
    """Raise when a required artifact is missing or carries an error marker."""
    for artifact_name in audit_defn.required_artifacts:
        missing = artifact_name not in artifacts
        missing_trace = (
            not missing
            and artifact_name == TRACES_ARTIFACT
            and not (
                isinstance(artifacts[artifact_name], Mapping)
                and DEFAULT_PASS in artifacts[artifact_name]
            )
        )
        if missing or missing_trace:
            logger.warning(
                "%s gatherer, required by audit %s, did not run.",
                artifact_name,
                audit_defn.id,
            )
            raise AuditExecutionError(
                f"Required {artifact_name} gatherer did not run.",
                code="MISSING_REQUIRED_ARTIFACT",
                kind=ErrorKind.ARTIFACT,
                friendly_message=format_message(
                    UIString("errors.missing_artifact", {"artifact_name": artifact_name}),
                    locale,
                ),
            )

        artifact = artifacts[artifact_name]
        if isinstance(artifact, ArtifactError):
            telemetry.capture_exception(
                artifact, tags={"gatherer": artifact_name}, level="error"
            )
            logger.warning(
                "%s gatherer, required by audit %s, encountered an error: %s",
                artifact_name,
                audit_defn.id,
                artifact.message,
            )
            # Already reported above under the gatherer tag.
            raise AuditExecutionError(
                f"Required {artifact_name} gatherer encountered an error: {artifact.message}",
                code=artifact.code,
                kind=ErrorKind.ARTIFACT,
                is_expected=True,
            )


def _error_message(error: Exception, locale: str) -> str:
    if isinstance(error, PageAuditError) and error.friendly_message:
        return str(format_message(error.friendly_message, locale))
    return str(error) or type(error).__name__


def run_audit(
    audit_defn: AuditDefinition,
    artifacts: Mapping[str, Any],
    shared_context: Dict[str, Any],
    timer: Timer,
) -> AuditResult:
    """Run one audit; any failure becomes an error result instead of propagating."""
    audit = audit_defn.implementation
    settings = shared_context["settings"]
    span = timer.begin_span(f"pageaudit:audit:{audit_defn.id}")
    logger.debug("Auditing: %s", format_message(audit_defn.title, "en-US"))

    try:
        _check_required_artifacts(audit_defn, artifacts, settings.locale)

        options = {**audit_defn.default_options, **audit_defn.options}
        context = AuditContext(options=options, **shared_context)
        # Only the declared artifacts are visible to the audit.
        required_view = MappingProxyType(
            {name: artifacts[name] for name in audit_defn.required_artifacts}
        )
        product = audit.audit(required_view, context)
        result = generate_audit_result(audit, product)
    except Exception as e:
        logger.warning("%s: caught exception: %s", audit_defn.id, e)
        telemetry.capture_exception(e, tags={"audit": audit_defn.id}, level="error")
        result = generate_error_audit_result(audit, _error_message(e, settings.locale))
    finally:
        timer.end_span(span)
    return result


def run_audits(
    settings: "RunSettings",
    audit_definitions: Sequence[AuditDefinition],
    artifacts: Mapping[str, Any],
    run_warnings: List[str],
    timer: Timer,
) -> List[AuditResult]:
    """Run every configured audit, one after another, in configured order.

    All audits share ``run_warnings`` and one fresh computed cache.
    """
    span = timer.begin_span("pageaudit:runner:auditing")
    shared_context: Dict[str, Any] = {
        "settings": settings,
        "run_warnings": run_warnings,
        "computed_cache": {},
    }

    results = [
        run_audit(audit_defn, artifacts, shared_context, timer)
        for audit_defn in audit_definitions
    ]
    timer.end_span(span)
    return results
