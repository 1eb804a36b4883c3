"""Artifact collection: drivers, gatherers and the gather runner."""
