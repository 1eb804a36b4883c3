"""pageaudit - collect page artifacts, run audits against them, report results."""

__version__ = "0.1.0"


def main() -> None:
    """Run the CLI entry point with lazy import."""
    from pageaudit.cli.main import main as cli_main

    cli_main()


__all__ = ["main", "__version__"]
