"""Artifact persistence for collect-only and analyze-only runs."""

from pageaudit.storage.artifacts import load_artifacts, save_artifacts

__all__ = ["load_artifacts", "save_artifacts"]
