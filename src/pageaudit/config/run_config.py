"""Run settings and the resolved configuration of one run."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pageaudit.core.audit import AuditDefinition
from pageaudit.core.exceptions import ConfigurationError
from pageaudit.core.registry import Registry

logger = logging.getLogger(__name__)

SUPPORTED_OUTPUT_FORMATS = ("json", "html", "csv")
# Fields allowed to differ between a collection run and a later analysis run.
PER_INVOCATION_SETTINGS = (
    "locale",
    "collect_mode",
    "analyze_mode",
    "output_formats",
    "budgets",
)


def _as_tuple(value: Any) -> Optional[Tuple[Any, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(value)


@dataclass(frozen=True)
class RunSettings:
    """Settings for one run; immutable for its whole duration.

    ``collect_mode``/``analyze_mode`` are booleans or a directory path that
    overrides where artifacts are saved to or loaded from.
    """

    collect_mode: Union[bool, str] = False
    analyze_mode: Union[bool, str] = False
    locale: str = "en-US"
    output_formats: Tuple[str, ...] = ("json",)
    budgets: Optional[Tuple[Dict[str, Any], ...]] = None
    max_wait_for_load: int = 45000
    emulated_form_factor: str = "desktop"
    channel: str = "node"
    extra_headers: Optional[Dict[str, str]] = None
    only_audits: Optional[Tuple[str, ...]] = None
    skip_audits: Optional[Tuple[str, ...]] = None
    only_categories: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        for name in ("output_formats", "budgets", "only_audits", "skip_audits", "only_categories"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))
        if not self.output_formats:
            object.__setattr__(self, "output_formats", ("json",))
        unknown = [fmt for fmt in self.output_formats if fmt not in SUPPORTED_OUTPUT_FORMATS]
        if unknown:
            raise ConfigurationError(f"Unsupported output format(s): {', '.join(unknown)}")

    @property
    def is_collect_enabled(self) -> bool:
        return bool(self.collect_mode)

    @property
    def is_analyze_enabled(self) -> bool:
        return bool(self.analyze_mode)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunSettings":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown setting(s): {', '.join(unknown)}")
        return cls(**dict(data))

    def replace(self, **changes: Any) -> "RunSettings":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; tuples become lists."""
        payload: Dict[str, Any] = {}
        for data_field in dataclasses.fields(self):
            value = getattr(self, data_field.name)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            payload[data_field.name] = value
        return payload


@dataclass(frozen=True)
class PassConfig:
    """One collection sweep and the gatherers that run after it."""

    pass_name: str
    gatherers: Tuple[str, ...] = ()


@dataclass
class RunConfig:
    """Fully resolved configuration of a run."""

    settings: RunSettings
    passes: List[PassConfig] = field(default_factory=list)
    audits: List[AuditDefinition] = field(default_factory=list)
    categories: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    groups: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def _resolve_audits(
    raw: Mapping[str, Any], audit_registry: Registry
) -> List[AuditDefinition]:
    raw_audits = raw.get("audits") or {}
    audit_ids = raw_audits.get("ids", []) if isinstance(raw_audits, Mapping) else raw_audits
    audit_options = raw.get("audit_options") or {}
    definitions: List[AuditDefinition] = []
    seen: set[str] = set()
    for entry in audit_ids:
        if isinstance(entry, Mapping):
            audit_id = str(entry.get("id", ""))
            options = dict(entry.get("options") or {})
        else:
            audit_id = str(entry)
            options = {}
        if audit_id in seen:
            logger.warning("Audit '%s' configured twice; keeping the first", audit_id)
            continue
        seen.add(audit_id)
        options = {**dict(audit_options.get(audit_id) or {}), **options}
        definitions.append(
            AuditDefinition(implementation=audit_registry.resolve(audit_id), options=options)
        )
    return definitions


def _filter_by_settings(
    audits: List[AuditDefinition],
    categories: Dict[str, Dict[str, Any]],
    settings: RunSettings,
) -> Tuple[List[AuditDefinition], Dict[str, Dict[str, Any]]]:
    configured_ids = {audit.id for audit in audits}
    for option_name in ("only_audits", "skip_audits"):
        for audit_id in getattr(settings, option_name) or ():
            if audit_id not in configured_ids:
                raise ConfigurationError(f"{option_name} references unknown audit: {audit_id}")

    if settings.only_categories:
        unknown = [c for c in settings.only_categories if c not in categories]
        if unknown:
            raise ConfigurationError(f"Unknown categories: {', '.join(unknown)}")
        categories = {cid: categories[cid] for cid in categories if cid in settings.only_categories}

    keep_ids = set(configured_ids)
    if settings.only_categories:
        keep_ids = {
            ref["id"] for category in categories.values() for ref in category.get("audit_refs", [])
        }
    if settings.only_audits:
        if settings.only_categories:
            keep_ids |= set(settings.only_audits)
        else:
            keep_ids = set(settings.only_audits)
    keep_ids -= set(settings.skip_audits or ())

    filtered_audits = [audit for audit in audits if audit.id in keep_ids]
    filtered_categories = {}
    for category_id, category in categories.items():
        refs = [ref for ref in category.get("audit_refs", []) if ref["id"] in keep_ids]
        filtered_categories[category_id] = {**category, "audit_refs": refs}
    return filtered_audits, filtered_categories


def _filter_passes(
    passes: List[PassConfig], audits: List[AuditDefinition]
) -> List[PassConfig]:
    """Drop gatherers no remaining audit needs; the first pass always loads the page."""
    required = {name for audit in audits for name in audit.required_artifacts}
    filtered: List[PassConfig] = []
    for index, pass_config in enumerate(passes):
        gatherers = tuple(name for name in pass_config.gatherers if name in required)
        if gatherers or index == 0:
            filtered.append(PassConfig(pass_name=pass_config.pass_name, gatherers=gatherers))
    return filtered


def build_run_config(
    raw: Optional[Mapping[str, Any]] = None,
    *,
    settings_overrides: Optional[Mapping[str, Any]] = None,
    audit_registry: Optional[Registry] = None,
    gatherer_registry: Optional[Registry] = None,
) -> RunConfig:
    """Resolve a raw (TOML-shaped) config mapping into a ``RunConfig``."""
    if raw is None:
        from pageaudit.config import DEFAULT_RUN_CONFIG

        raw = DEFAULT_RUN_CONFIG
    if audit_registry is None:
        from pageaudit.audits import create_audit_registry

        audit_registry = create_audit_registry()
    if gatherer_registry is None:
        from pageaudit.gather.gatherers import create_gatherer_registry

        gatherer_registry = create_gatherer_registry()

    settings_data = dict(raw.get("settings") or {})
    settings_data.update({k: v for k, v in (settings_overrides or {}).items() if v is not None})
    settings = RunSettings.from_dict(settings_data)

    passes = []
    for raw_pass in raw.get("passes") or []:
        gatherers = tuple(str(name) for name in raw_pass.get("gatherers", []))
        for name in gatherers:
            gatherer_registry.resolve(name)
        passes.append(PassConfig(pass_name=str(raw_pass.get("pass_name", "")), gatherers=gatherers))

    audits = _resolve_audits(raw, audit_registry)
    audit_ids = {audit.id for audit in audits}

    categories: Dict[str, Dict[str, Any]] = {}
    for category_id, raw_category in (raw.get("categories") or {}).items():
        refs = []
        for ref in raw_category.get("audit_refs", []):
            if ref.get("id") not in audit_ids:
                raise ConfigurationError(
                    f"Category {category_id} references unconfigured audit: {ref.get('id')}"
                )
            refs.append(
                {"id": ref["id"], "weight": float(ref.get("weight", 1)), "group": ref.get("group")}
            )
        categories[category_id] = {**dict(raw_category), "audit_refs": refs}

    audits, categories = _filter_by_settings(audits, categories, settings)
    return RunConfig(
        settings=settings,
        passes=_filter_passes(passes, audits),
        audits=audits,
        categories=categories,
        groups={k: dict(v) for k, v in (raw.get("groups") or {}).items()},
    )
