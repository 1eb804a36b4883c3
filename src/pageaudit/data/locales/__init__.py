"""Localized message catalogs."""
