"""Promotion of a fatal page error from the artifacts to the run result."""

from typing import Any, Mapping, Optional

from pageaudit.core.exceptions import ArtifactError
from pageaudit.core.types import RuntimeErrorInfo

PAGE_LOAD_ERROR_ARTIFACT = "PageLoadError"


def get_artifact_runtime_error(artifacts: Mapping[str, Any]) -> Optional[RuntimeErrorInfo]:
    """Return the first promotable error marker in the artifacts, if any.

    ``PageLoadError`` is checked first; after that artifacts are scanned in
    insertion order and the first promotable marker wins.
    """
    candidates = [artifacts.get(PAGE_LOAD_ERROR_ARTIFACT), *artifacts.values()]
    for candidate in candidates:
        if isinstance(candidate, ArtifactError) and candidate.promote:
            message = candidate.friendly_message or candidate.message
            return RuntimeErrorInfo(code=candidate.code, message=message)
    return None
