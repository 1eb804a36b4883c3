"""Command-line interface for pageaudit."""

from pageaudit.cli.main import build_config_from_args, main, parse_args

__all__ = ["build_config_from_args", "main", "parse_args"]
