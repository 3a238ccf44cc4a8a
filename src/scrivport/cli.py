"""CLI for scrivport - import Scrivener projects as Markdown."""

import argparse
import json
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .core.utils import slugify
from .export.markdown_tree import MarkdownTreeWriter, history_summary
from .runtime import build_runtime
from .scrivener.bundle import bundle_root, validate_bundle
from .scrivener.errors import ScrivenerImportError
from .scrivener.history import find_history_file, parse_writing_history
from .scrivener.models import ImportOptions, ImportResult


def _version_text() -> str:
    return (
        f"scrivport {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.platform()}"
    )


def _print_error(e: ScrivenerImportError) -> None:
    print(f"Error: {e.message}", file=sys.stderr)
    if e.recovery_suggestion:
        print(f"  {e.recovery_suggestion}", file=sys.stderr)


def cmd_validate(args: argparse.Namespace, rt: Any) -> int:
    """Inspect a bundle without importing it."""
    result = validate_bundle(Path(args.bundle))

    if args.json:
        print(json.dumps({
            "valid": result.is_valid,
            "title": result.project_title,
            "items": result.item_count,
            "version": result.version,
            "warnings": result.warnings,
            "errors": result.errors,
        }, indent=2))
        return 0 if result.is_valid else 1

    if not args.quiet:
        mark = "✓" if result.is_valid else "✗"
        print(f"{mark} {result.project_title or args.bundle}")
        print(f"  Format: {result.version}")
        print(f"  Items: {result.item_count}")
    for warning in result.warnings:
        print(f"  warning: {warning}")
    for error in result.errors:
        print(f"  error: {error}", file=sys.stderr)
    return 0 if result.is_valid else 1


def _import_options(args: argparse.Namespace, defaults: ImportOptions) -> ImportOptions:
    return ImportOptions(
        import_research=defaults.import_research if args.research is None else args.research,
        import_trash=defaults.import_trash if args.trash is None else args.trash,
        import_snapshots=defaults.import_snapshots and not args.no_snapshots,
        preserve_source_ids=defaults.preserve_source_ids or args.preserve_ids,
    )


def _result_json(result: ImportResult, written: list[Path]) -> dict[str, Any]:
    return {
        "title": result.project.title,
        "summary": result.summary,
        "documents": result.imported_documents,
        "folders": result.imported_folders,
        "skipped": result.skipped_items,
        "warnings": [
            {"severity": w.severity, "item": w.item_title, "message": w.message}
            for w in result.warnings
        ],
        "written": [str(p) for p in written],
    }


def cmd_import(args: argparse.Namespace, rt: Any) -> int:
    """Import a bundle and write it as a Markdown tree."""
    options = _import_options(args, rt.config.import_.options())

    def progress(fraction: float, text: str) -> None:
        print(f"\r[{fraction:4.0%}] {text[:60]:<60}", end="", file=sys.stderr, flush=True)

    show_progress = not (args.quiet or args.json)
    try:
        result = rt.importer.import_project(
            Path(args.bundle),
            options,
            progress=progress if show_progress else None,
        )
    except ScrivenerImportError as e:
        if show_progress:
            print(file=sys.stderr)
        _print_error(e)
        return 1
    if show_progress:
        print(file=sys.stderr)

    written: list[Path] = []
    out = None
    if not args.dry_run:
        out = Path(args.out) if args.out else rt.config.output.dir / (slugify(result.project.title) or "project")
        try:
            written = MarkdownTreeWriter(out, overwrite=args.force).write(result)
        except FileExistsError as e:
            print(f"Error: {e} (use --force to overwrite)", file=sys.stderr)
            return 1

    if args.json:
        print(json.dumps(_result_json(result, written), indent=2))
        return 0

    if not args.quiet:
        print(result.summary)
        if out is not None:
            print(f"Wrote {len(written)} files to: {out}")
    for warning in result.warnings:
        print(f"  {warning}")
    return 0


def cmd_history(args: argparse.Namespace, rt: Any) -> int:
    """Print writing-history statistics."""
    target = Path(args.path)
    path = target if target.is_file() else find_history_file(bundle_root(target))
    if path is None:
        print(f"No writing history found in {target}", file=sys.stderr)
        return 1
    try:
        history = parse_writing_history(path)
    except ScrivenerImportError as e:
        _print_error(e)
        return 1

    summary = history_summary(history)
    best = history.best_day
    if args.json:
        summary["best_day"] = (
            {"date": best.day.isoformat(), "words": best.words_written} if best else None
        )
        longest = summary["longest_streak"]
        for key in ("start", "end"):
            longest[key] = longest[key].isoformat() if longest[key] else None
        print(json.dumps(summary, indent=2))
        return 0

    longest = history.longest_streak
    print(f"Days recorded: {len(history)}")
    print(f"Total words: {history.total_words}")
    print(f"Days written: {history.days_written}")
    print(f"Average words per day: {history.average_words_per_day:.1f}")
    print(f"Current streak: {history.current_streak}")
    if longest.length:
        print(f"Longest streak: {longest.length} ({longest.start} to {longest.end})")
    else:
        print("Longest streak: 0")
    if best is not None:
        print(f"Best day: {best.day} ({best.words_written} words)")
    return 0


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="scrivport", description="Import Scrivener projects as Markdown"
    )
    parser.add_argument(
        "--version", action="version", version=_version_text()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/scrivport.toml, next to the bundle)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress details to stderr"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # validate command
    parser_validate = subparsers.add_parser("validate", help="Check a bundle without importing")
    parser_validate.add_argument("bundle", help="Path to a .scriv bundle or its .scrivx file")

    # import command
    parser_import = subparsers.add_parser("import", help="Import a bundle as Markdown files")
    parser_import.add_argument("bundle", help="Path to a .scriv bundle or its .scrivx file")
    parser_import.add_argument(
        "--out", default=None,
        help="Output directory (default: [output] dir from config plus the project slug)",
    )
    parser_import.add_argument(
        "--research", action=argparse.BooleanOptionalAction, default=None,
        help="Import the Research folder",
    )
    parser_import.add_argument(
        "--trash", action=argparse.BooleanOptionalAction, default=None,
        help="Import the Trash folder",
    )
    parser_import.add_argument(
        "--no-snapshots", action="store_true", help="Do not look for snapshots"
    )
    parser_import.add_argument(
        "--preserve-ids", action="store_true", help="Request source id preservation"
    )
    parser_import.add_argument(
        "--dry-run", action="store_true", help="Import but do not write any files"
    )
    parser_import.add_argument(
        "--force", action="store_true", help="Write into a non-empty output directory"
    )

    # history command
    parser_history = subparsers.add_parser("history", help="Show writing-history statistics")
    parser_history.add_argument("path", help="A .scriv bundle or a writing.history file")

    args = parser.parse_args()

    bundle = getattr(args, "bundle", None)
    level = "ERROR" if args.quiet else ("INFO" if args.verbose else None)
    try:
        rt = build_runtime(
            config_path=args.config,
            bundle_path=Path(bundle) if bundle else None,
            log_level=level,
        )
    except Exception as e:
        print(f"Error: could not load configuration: {e}", file=sys.stderr)
        sys.exit(1)

    handlers = {
        "validate": cmd_validate,
        "import": cmd_import,
        "history": cmd_history,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except ScrivenerImportError as e:
            _print_error(e)
            sys.exit(1)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
