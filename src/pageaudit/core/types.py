"""Typed records exchanged between the phases of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, MutableMapping, Optional, Union

if TYPE_CHECKING:
    from pageaudit.config.run_config import RunSettings
    from pageaudit.core.timing import TimingSummary

# Artifact name -> success value or ArtifactError marker; absent key = not produced.
ArtifactSet = MutableMapping[str, Any]


@dataclass
class AuditContext:
    """Context handed to one audit.

    ``run_warnings`` and ``computed_cache`` are the same objects for every
    audit in a run and are never reused by another run.
    """

    options: Dict[str, Any]
    settings: "RunSettings"
    run_warnings: List[str]
    computed_cache: Dict[Any, Any]


@dataclass
class AuditResult:
    """Normalized outcome of one audit."""

    id: str
    title: Any
    score: Optional[float]
    score_display_mode: str
    details: Optional[Dict[str, Any]] = None
    display_value: Any = None
    explanation: Any = None
    warnings: List[Any] = field(default_factory=list)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "score": self.score,
            "scoreDisplayMode": self.score_display_mode,
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.display_value is not None:
            payload["displayValue"] = self.display_value
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        if self.error_message is not None:
            payload["errorMessage"] = self.error_message
        return payload


@dataclass
class RuntimeErrorInfo:
    """Run-level fatal page error promoted from the artifacts.

    ``message`` stays a ``UIString`` until the result is localized.
    """

    code: str
    message: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self.message)}


@dataclass
class ScoredCategory:
    """Category score computed from its weighted audit references."""

    id: str
    title: Any
    score: Optional[float]
    audit_refs: List[Dict[str, Any]]
    description: Any = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "score": self.score,
            "auditRefs": [dict(ref) for ref in self.audit_refs],
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload


@dataclass
class RunResult:
    """Final aggregate record of one successful run."""

    user_agent: Optional[str]
    environment: Dict[str, Any]
    version: str
    fetch_time: Optional[str]
    requested_url: str
    final_url: Optional[str]
    run_warnings: List[Any]
    runtime_error: Optional[RuntimeErrorInfo]
    audits: Dict[str, AuditResult]
    config_settings: Dict[str, Any]
    categories: Dict[str, ScoredCategory]
    category_groups: Optional[Dict[str, Any]]
    timing: "TimingSummary"
    i18n: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-ready representation of the result."""
        return {
            "userAgent": self.user_agent,
            "environment": dict(self.environment),
            "version": self.version,
            "fetchTime": self.fetch_time,
            "requestedUrl": self.requested_url,
            "finalUrl": self.final_url,
            "runWarnings": list(self.run_warnings),
            "runtimeError": self.runtime_error.to_dict() if self.runtime_error else None,
            "audits": {audit_id: result.to_dict() for audit_id, result in self.audits.items()},
            "configSettings": dict(self.config_settings),
            "categories": {
                category_id: category.to_dict()
                for category_id, category in self.categories.items()
            },
            "categoryGroups": self.category_groups,
            "timing": self.timing.to_dict(),
            "i18n": self.i18n,
        }


@dataclass
class RunnerResult:
    """Everything a completed run hands back to its caller."""

    result: RunResult
    artifacts: Mapping[str, Any]
    report: Union[str, List[str]]
