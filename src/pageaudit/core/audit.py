"""Audit base class and audit-result normalization."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type

from pageaudit.core.types import AuditContext, AuditResult

DEFAULT_PASS = "defaultPass"
SCORE_PRECISION_DIGITS = 2


class ScoreDisplayMode:
    """String constants for how an audit score is presented."""

    NUMERIC = "numeric"
    BINARY = "binary"
    INFORMATIVE = "informative"
    NOT_APPLICABLE = "notApplicable"
    ERROR = "error"


class Audit:
    """Base class for a self-contained diagnostic check.

    Subclasses declare ``id``, ``title``, the artifacts they read in
    ``required_artifacts`` and implement ``audit``. The artifacts mapping an
    audit receives contains exactly its required artifacts.
    """

    id: ClassVar[str] = ""
    title: ClassVar[Any] = ""
    failure_title: ClassVar[Any] = None
    description: ClassVar[Any] = None
    required_artifacts: ClassVar[Tuple[str, ...]] = ()
    default_options: ClassVar[Dict[str, Any]] = {}
    score_display_mode: ClassVar[str] = ScoreDisplayMode.BINARY

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: AuditContext) -> Dict[str, Any]:
        """Return the raw product: ``score`` plus optional ``details``,
        ``display_value``, ``explanation``, ``warnings`` and ``not_applicable``."""
        raise NotImplementedError


@dataclass(frozen=True)
class AuditDefinition:
    """A configured audit: its implementation plus per-run option overrides."""

    implementation: Type[Audit]
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.implementation.id

    @property
    def title(self) -> Any:
        return self.implementation.title

    @property
    def required_artifacts(self) -> Tuple[str, ...]:
        return tuple(self.implementation.required_artifacts)

    @property
    def default_options(self) -> Dict[str, Any]:
        return dict(self.implementation.default_options)


def _normalize_score(audit_id: str, score: Any) -> Optional[float]:
    if score is None:
        return None
    if isinstance(score, bool):
        score = 1.0 if score else 0.0
    if not isinstance(score, (int, float)) or math.isnan(score):
        raise ValueError(f"Invalid score for {audit_id}: {score!r}")
    if score < 0 or score > 1:
        raise ValueError(f"Score for {audit_id} is outside [0, 1]: {score}")
    return round(float(score), SCORE_PRECISION_DIGITS)


def generate_audit_result(audit: Type[Audit], product: Mapping[str, Any]) -> AuditResult:
    """Normalize a raw audit product into an ``AuditResult``."""
    if not isinstance(product, Mapping):
        raise TypeError(f"Audit {audit.id} returned {type(product).__name__}, expected a mapping")

    score_display_mode = audit.score_display_mode
    if product.get("not_applicable"):
        score_display_mode = ScoreDisplayMode.NOT_APPLICABLE
    score = _normalize_score(audit.id, product.get("score"))
    if score_display_mode in (ScoreDisplayMode.INFORMATIVE, ScoreDisplayMode.NOT_APPLICABLE):
        score = None

    title = audit.title
    if audit.failure_title is not None and score is not None and score < 1:
        title = audit.failure_title

    return AuditResult(
        id=audit.id,
        title=title,
        score=score,
        score_display_mode=score_display_mode,
        details=product.get("details"),
        display_value=product.get("display_value"),
        explanation=product.get("explanation"),
        warnings=list(product.get("warnings") or []),
    )


def generate_error_audit_result(audit: Type[Audit], error_message: str) -> AuditResult:
    """Build the result of an audit that could not be evaluated."""
    return AuditResult(
        id=audit.id,
        title=audit.title,
        score=None,
        score_display_mode=ScoreDisplayMode.ERROR,
        error_message=error_message,
    )
