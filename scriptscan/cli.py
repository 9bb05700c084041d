import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .core.catalog import Catalog
from .core.errors import CatalogError
from .core.loader import load_catalog
from .core.matcher import MatchBudget
from .core.models import Report, Severity
from .core.reporting import Reporter, exit_code, format_console
from .core.scanner import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_WORKERS,
    DirectoryScanner,
    SingleFileScanner,
    configure_logging,
)

SEVERITY_CHOICES = [s.value for s in Severity] + ["none"]


def _add_catalog_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--category", default="all", help="Comma-delimited rule categories to activate (e.g., 'eventSystem,debugging') or 'all'.")
    p.add_argument("--rules", type=Path, default=None, help="JSON file with extra rules, keyed by category name.")
    p.add_argument("--no-builtin", action="store_true", help="Use only the rules from --rules.")


def _add_scan_args(p: argparse.ArgumentParser) -> None:
    _add_catalog_args(p)
    p.add_argument("--out", type=Path, default=None, help="Directory for report.json, report.md and summary.md.")
    p.add_argument("--fail-on", choices=SEVERITY_CHOICES, default="critical", help="Exit with 1 when a finding at or above this severity exists ('none' never fails).")
    p.add_argument("--max-matches", type=int, default=None, help="Skip a rule on a file once it exceeds this many matches.")
    p.add_argument("--rule-timeout", type=float, default=None, help="Skip a rule on a file once it runs longer than this many seconds.")
    p.add_argument("--max-shown", type=int, default=20, help="Findings printed to the console (report files always hold all of them).")
    p.add_argument("--max-file-size", type=int, default=DEFAULT_MAX_FILE_SIZE, help="Max file size in bytes to scan (default 5MB).")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging output.")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scriptscan",
        description="Rule-based security scanner for FiveM/Lua game scripts.",
    )
    sub = p.add_subparsers(dest="mode", required=True)

    # dir mode
    d = sub.add_parser("dir", help="Scan a directory recursively.")
    d.add_argument("path", type=Path, help="Directory to scan recursively.")
    _add_scan_args(d)
    d.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Number of worker threads for scanning.")
    d.add_argument("--include", default=",".join(DEFAULT_INCLUDE), help="Glob(s) to include, comma-separated.")
    d.add_argument("--exclude", default=",".join(DEFAULT_EXCLUDE), help="Dir names to exclude, comma-separated.")
    d.add_argument("--no-progress", action="store_true", help="Disable the progress bar during directory scans.")

    # file mode
    f = sub.add_parser("file", help="Scan a single file.")
    f.add_argument("path", type=Path, help="File to scan.")
    _add_scan_args(f)

    # rules mode
    r = sub.add_parser("rules", help="List the rules that would be applied.")
    _add_catalog_args(r)
    r.add_argument("--json", action="store_true", help="Print the catalog as JSON.")

    return p


def _catalog_from_args(args: argparse.Namespace) -> Optional[Catalog]:
    try:
        catalog = load_catalog(args.category, args.rules, include_builtin=not args.no_builtin)
    except CatalogError as exc:
        print(f"Invalid rule catalog: {exc}", file=sys.stderr)
        return None
    if not catalog.rule_count:
        print("No rules selected. Exiting.", file=sys.stderr)
        return None
    return catalog


def _budget_from_args(args: argparse.Namespace) -> Optional[MatchBudget]:
    if args.max_matches is None and args.rule_timeout is None:
        return None
    return MatchBudget(max_seconds=args.rule_timeout, max_matches=args.max_matches)


def _finish(args: argparse.Namespace, report: Report) -> int:
    print(format_console(report, max_findings=args.max_shown))
    if args.out is not None:
        Reporter(args.out).write_all(report)
    return exit_code(report, None if args.fail_on == "none" else args.fail_on)


def run_dir(args: argparse.Namespace) -> int:
    if not args.path.is_dir():
        print(f"Not a directory: {args.path}", file=sys.stderr)
        return 2
    catalog = _catalog_from_args(args)
    if catalog is None:
        return 2

    scanner = DirectoryScanner(
        root=args.path,
        catalog=catalog,
        include_globs=[g.strip() for g in args.include.split(",") if g.strip()],
        exclude_dirs=[e.strip() for e in args.exclude.split(",") if e.strip()],
        max_file_size=args.max_file_size,
        workers=args.workers,
        budget=_budget_from_args(args),
        logger=configure_logging(verbose=args.verbose),
        verbose=args.verbose,
        show_progress=not args.no_progress,
    )
    return _finish(args, scanner.scan())


def run_file(args: argparse.Namespace) -> int:
    if not args.path.is_file():
        print(f"Not a file: {args.path}", file=sys.stderr)
        return 2
    catalog = _catalog_from_args(args)
    if catalog is None:
        return 2

    scanner = SingleFileScanner(
        file_path=args.path,
        catalog=catalog,
        max_file_size=args.max_file_size,
        budget=_budget_from_args(args),
        logger=configure_logging(verbose=args.verbose),
        verbose=args.verbose,
    )
    return _finish(args, scanner.scan())


def run_rules(args: argparse.Namespace) -> int:
    catalog = _catalog_from_args(args)
    if catalog is None:
        return 2
    if args.json:
        print(json.dumps(catalog.to_dict(), indent=2))
        return 0
    for category in catalog.categories:
        print(f"{category.name}")
        for rule in category.rules:
            print(f"  [{rule.severity.value}] {rule.title}  {rule.pattern}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.mode == "dir":
        return run_dir(args)
    elif args.mode == "file":
        return run_file(args)
    elif args.mode == "rules":
        return run_rules(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
