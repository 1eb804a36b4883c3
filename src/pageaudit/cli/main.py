"""Command-line interface for pageaudit."""

import argparse
import copy
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from rich.console import Console
from rich.table import Table

from pageaudit.config import (
    DEFAULT_LOCALE,
    DEFAULT_RUN_CONFIG,
    LOG_FILE,
    LOG_LEVEL,
    SENTRY_DSN,
    SENTRY_ENVIRONMENT,
)
from pageaudit.config.loader import load_toml_file, merge
from pageaudit.config.run_config import SUPPORTED_OUTPUT_FORMATS, RunConfig, build_run_config
from pageaudit.core.exceptions import PageAuditError
from pageaudit.logger import setup_logging

console = Console()
logger = logging.getLogger(__name__)

FAILING_SCORE_THRESHOLD = 0.9


def _csv_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pageaudit",
        description="Collect artifacts about a web page and audit them.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("url", nargs="?", help="URL of the page to audit.")
    parser.add_argument(
        "-G",
        "--collect-mode",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Collect artifacts and save them to disk (default ./latest-run).\n"
        "Without -A the run stops after collection.",
    )
    parser.add_argument(
        "-A",
        "--analyze-mode",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Analyze artifacts saved on disk instead of collecting them.",
    )
    parser.add_argument(
        "--output",
        type=_csv_list,
        metavar="FORMATS",
        help=f"Comma-separated report formats ({', '.join(SUPPORTED_OUTPUT_FORMATS)}).",
    )
    parser.add_argument(
        "--output-path",
        metavar="FILE",
        help="Write the report to FILE; use 'stdout' to print it.",
    )
    parser.add_argument("--locale", default=None, help=f"Report locale (default {DEFAULT_LOCALE}).")
    parser.add_argument("--only-audits", type=_csv_list, metavar="IDS")
    parser.add_argument("--skip-audits", type=_csv_list, metavar="IDS")
    parser.add_argument("--only-categories", type=_csv_list, metavar="IDS")
    parser.add_argument(
        "--max-wait-for-load",
        type=int,
        metavar="MS",
        help="Milliseconds to wait for the page before giving up.",
    )
    parser.add_argument("--config", metavar="FILE", help="TOML run configuration to merge over the defaults.")
    parser.add_argument("--list-audits", action="store_true", help="List available audits and exit.")
    parser.add_argument("--list-gatherers", action="store_true", help="List available gatherers and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return parser.parse_args(argv)


def build_config_from_args(args: argparse.Namespace) -> RunConfig:
    """Merge defaults, an optional config file and CLI flags into a run config."""
    raw: Dict[str, Any] = copy.deepcopy(DEFAULT_RUN_CONFIG)
    if args.config:
        merge(raw, load_toml_file(args.config))
    overrides = {
        "collect_mode": args.collect_mode,
        "analyze_mode": args.analyze_mode,
        "locale": args.locale or raw.get("settings", {}).get("locale") or DEFAULT_LOCALE,
        "output_formats": args.output,
        "only_audits": args.only_audits,
        "skip_audits": args.skip_audits,
        "only_categories": args.only_categories,
        "max_wait_for_load": args.max_wait_for_load,
    }
    return build_run_config(raw, settings_overrides=overrides)


def list_available(kind: str) -> None:
    """Print registered audits or gatherers grouped by category."""
    if kind == "audits":
        from pageaudit.audits import create_audit_registry

        registry = create_audit_registry()
    else:
        from pageaudit.gather.gatherers import create_gatherer_registry

        registry = create_gatherer_registry()
    for category in registry.categories():
        console.print(f"[bold]{category}[/bold]")
        for name in registry.list_available(category):
            console.print(f"  {name}")


def write_reports(
    report: Union[str, List[str]], output_formats: Sequence[str], output_path: str
) -> List[Path]:
    """Write each rendered report; several formats get one file per extension."""
    reports = [report] if isinstance(report, str) else list(report)
    if output_path == "stdout":
        for text in reports:
            sys.stdout.write(text)
        return []

    base_path = Path(output_path).expanduser()
    written: List[Path] = []
    for text, output_format in zip(reports, output_formats):
        target = base_path if len(reports) == 1 else base_path.with_suffix(f".{output_format}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        written.append(target)
    return written


def print_summary(result: Dict[str, Any]) -> None:
    """Render category scores and failing audits to the terminal."""
    console.print(f"[bold]{result['finalUrl'] or result['requestedUrl']}[/bold]")
    if result.get("runtimeError"):
        error = result["runtimeError"]
        console.print(f"[bold red]Runtime error[/bold red] {error['code']}: {error['message']}")
    for warning in result.get("runWarnings", []):
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    table = Table(title="Categories")
    table.add_column("Category")
    table.add_column("Score", justify="right")
    for category in result["categories"].values():
        score = category["score"]
        table.add_row(str(category["title"]), "-" if score is None else str(round(score * 100)))
    console.print(table)

    failing = [
        audit
        for audit in result["audits"].values()
        if audit.get("errorMessage") or (audit["score"] is not None and audit["score"] < FAILING_SCORE_THRESHOLD)
    ]
    if failing:
        audits_table = Table(title="Audits needing attention")
        audits_table.add_column("Audit")
        audits_table.add_column("Result")
        for audit in failing:
            outcome = audit.get("errorMessage") or audit.get("displayValue") or audit.get("explanation") or ""
            audits_table.add_row(str(audit["title"]), str(outcome))
        console.print(audits_table)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else LOG_LEVEL, LOG_FILE)

    if args.list_audits or args.list_gatherers:
        list_available("audits" if args.list_audits else "gatherers")
        return

    from pageaudit import telemetry
    from pageaudit.core.runner import run

    telemetry.init_telemetry(SENTRY_DSN, SENTRY_ENVIRONMENT)
    try:
        config = build_config_from_args(args)
        runner_result = run(None, config, url=args.url)
    except PageAuditError as e:
        console.print(f"[bold red]Error:[/bold red] {e.friendly_message or e}")
        sys.exit(1)

    if runner_result is None:
        console.print("[green]Artifacts collected.[/green]")
        return

    if args.output_path:
        for path in write_reports(
            runner_result.report, config.settings.output_formats, args.output_path
        ):
            console.print(f"Report written to {path}")
    print_summary(runner_result.result.to_dict())


if __name__ == "__main__":
    main()
