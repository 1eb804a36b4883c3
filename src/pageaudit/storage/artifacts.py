"""Saving and loading artifact sets to a directory on disk."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pageaudit.core.exceptions import ArtifactError, ArtifactStorageError
from pageaudit.core.timing import TimingEntry
from pageaudit.i18n import UIString

logger = logging.getLogger(__name__)

ARTIFACTS_FILENAME = "artifacts.json"
TRACE_SUFFIX = ".trace.json"
ERROR_SENTINEL = "__PageAuditErrorSentinel"
MESSAGE_SENTINEL = "__PageAuditMessageSentinel"


def _encode(value: Any) -> Any:
    if isinstance(value, ArtifactError):
        return {"sentinel": ERROR_SENTINEL, **value.to_dict()}
    if isinstance(value, UIString):
        return {
            "sentinel": MESSAGE_SENTINEL,
            "messageId": value.message_id,
            "values": dict(value.values),
        }
    if isinstance(value, TimingEntry):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(k): _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if value.get("sentinel") == ERROR_SENTINEL:
            return ArtifactError.from_dict(value)
        if value.get("sentinel") == MESSAGE_SENTINEL:
            return UIString(value["messageId"], value.get("values") or {})
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def save_artifacts(artifacts: Mapping[str, Any], path: Union[str, Path]) -> None:
    """Write ``artifacts`` into directory ``path``, replacing a previous save.

    Traces are stored one file per pass next to ``artifacts.json``. Other files
    already in the directory are left alone.
    """
    base_dir = Path(path)
    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        for stale in [base_dir / ARTIFACTS_FILENAME, *base_dir.glob(f"*{TRACE_SUFFIX}")]:
            if stale.is_file():
                stale.unlink()

        payload = dict(artifacts)
        traces = payload.pop("traces", None)
        if isinstance(traces, Mapping):
            for pass_name, trace in traces.items():
                trace_path = base_dir / f"{pass_name}{TRACE_SUFFIX}"
                trace_path.write_text(json.dumps(_encode(trace)), encoding="utf-8")
        elif traces is not None:
            payload["traces"] = traces

        (base_dir / ARTIFACTS_FILENAME).write_text(
            json.dumps(_encode(payload), indent=2), encoding="utf-8"
        )
    except OSError as e:
        raise ArtifactStorageError(f"Failed to save artifacts to {base_dir}: {e}") from e
    logger.info("Saved artifacts to %s", base_dir)


def load_artifacts(path: Union[str, Path]) -> Dict[str, Any]:
    """Load an artifact set previously written by ``save_artifacts``."""
    base_dir = Path(path)
    artifacts_path = base_dir / ARTIFACTS_FILENAME
    if not base_dir.is_dir():
        raise ArtifactStorageError(f"No saved artifacts found at {base_dir}")
    if not artifacts_path.is_file():
        raise ArtifactStorageError(f"No {ARTIFACTS_FILENAME} found in {base_dir}")

    try:
        artifacts = _decode(json.loads(artifacts_path.read_text(encoding="utf-8")))
        trace_files = sorted(base_dir.glob(f"*{TRACE_SUFFIX}"))
        if trace_files:
            artifacts["traces"] = {
                trace_file.name[: -len(TRACE_SUFFIX)]: _decode(
                    json.loads(trace_file.read_text(encoding="utf-8"))
                )
                for trace_file in trace_files
            }
    except (OSError, json.JSONDecodeError) as e:
        raise ArtifactStorageError(f"Failed to load artifacts from {base_dir}: {e}") from e

    logger.info("Loaded artifacts from %s", base_dir)
    return artifacts
