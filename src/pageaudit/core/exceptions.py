"""Core exception types for pageaudit runs."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pageaudit.i18n import UIString


class ErrorKind:
    """String constants for the error taxonomy of a run."""

    CONFIGURATION = "configuration"
    ARTIFACT = "artifact"
    AUDIT = "audit"
    FATAL = "fatal"


class PageAuditError(Exception):
    """Base error for pageaudit runtime failures.

    ``friendly_message`` may be a plain string or a ``UIString`` that is
    localized at the top-level run boundary. ``is_expected`` marks errors that
    telemetry should not report again.
    """

    kind = ErrorKind.FATAL
    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        friendly_message: Any = None,
        is_expected: bool = False,
        kind: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.friendly_message = friendly_message
        self.is_expected = is_expected
        if kind is not None:
            self.kind = kind


class ConfigurationError(PageAuditError):
    """Raised for invalid run input; always aborts before any audit runs."""

    kind = ErrorKind.CONFIGURATION
    default_code = "CONFIGURATION_ERROR"


class AuditExecutionError(PageAuditError):
    """Raised inside the audit engine; converted into an error audit result."""

    kind = ErrorKind.AUDIT
    default_code = "AUDIT_ERROR"


class ArtifactError(PageAuditError):
    """Error marker stored in place of an artifact a gatherer failed to produce.

    When ``promote`` is set the marker is surfaced as the run-level runtime
    error of the result.
    """

    kind = ErrorKind.ARTIFACT
    default_code = "GATHERER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        friendly_message: Any = None,
        promote: bool = False,
        is_expected: bool = False,
    ) -> None:
        super().__init__(
            message,
            code=code,
            friendly_message=friendly_message,
            is_expected=is_expected,
        )
        self.promote = promote

    def to_dict(self) -> Dict[str, Any]:
        friendly = self.friendly_message
        if isinstance(friendly, UIString):
            friendly = {"messageId": friendly.message_id, "values": dict(friendly.values)}
        elif not isinstance(friendly, str):
            friendly = None
        return {
            "code": self.code,
            "message": self.message,
            "friendlyMessage": friendly,
            "promote": self.promote,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ArtifactError":
        friendly = payload.get("friendlyMessage")
        if isinstance(friendly, dict):
            friendly = UIString(friendly["messageId"], friendly.get("values") or {})
        return cls(
            str(payload.get("message", "")),
            code=payload.get("code"),
            friendly_message=friendly,
            promote=bool(payload.get("promote", False)),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArtifactError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = Exception.__hash__


class ArtifactStorageError(PageAuditError):
    """Raised when persisted artifacts cannot be read or written."""

    default_code = "ARTIFACT_STORAGE_ERROR"


class NavigationError(PageAuditError):
    """Raised by a collection driver when the page cannot be loaded."""

    default_code = "FAILED_DOCUMENT_REQUEST"
