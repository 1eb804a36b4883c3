"""Run orchestration for pageaudit (lazy exports)."""

from __future__ import annotations

from importlib import import_module
from typing import Dict, Tuple

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "run": ("pageaudit.core.runner", "run"),
    "Runner": ("pageaudit.core.runner", "Runner"),
    "run_audits": ("pageaudit.core.audit_engine", "run_audits"),
    "Audit": ("pageaudit.core.audit", "Audit"),
    "AuditDefinition": ("pageaudit.core.audit", "AuditDefinition"),
    "Timer": ("pageaudit.core.timing", "Timer"),
    "aggregate_timing": ("pageaudit.core.timing", "aggregate_timing"),
    "get_artifact_runtime_error": (
        "pageaudit.core.runtime_error",
        "get_artifact_runtime_error",
    ),
    "assert_settings_compatible": (
        "pageaudit.core.settings_check",
        "assert_settings_compatible",
    ),
    "PageAuditError": ("pageaudit.core.exceptions", "PageAuditError"),
    "ConfigurationError": ("pageaudit.core.exceptions", "ConfigurationError"),
    "ArtifactError": ("pageaudit.core.exceptions", "ArtifactError"),
}


def __getattr__(name: str):
    if name not in _EXPORTS:
        raise AttributeError(f"module 'pageaudit.core' has no attribute {name!r}")
    module_name, attr_name = _EXPORTS[name]
    module = import_module(module_name)
    return getattr(module, attr_name)


__all__ = sorted(_EXPORTS.keys())
