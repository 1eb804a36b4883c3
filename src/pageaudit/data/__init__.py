"""Packaged data files for pageaudit."""
