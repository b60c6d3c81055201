"""Main entry point for the test scaffold generator."""

import argparse
import sys
from pathlib import Path

import structlog

from .config import get_settings
from .discovery import select_files
from .errors import EnvironmentUnavailable
from .pipeline import BatchReport, FileResult, Outcome, ScaffoldPipeline
from .utils.logging import configure_logging
from .watch import SourceWatcher

logger = structlog.get_logger()

OUTCOME_LABELS = {
    Outcome.GENERATED: "generated",
    Outcome.SKIPPED_MANUAL: "skipped (hand-written test, left untouched)",
    Outcome.SKIPPED_NO_COMPONENTS: "skipped (no components)",
    Outcome.FAILED_UNREADABLE: "FAILED (unreadable)",
}


def print_summary(report: BatchReport, root: Path) -> None:
    """Per-file outcome block followed by the totals."""
    print("\n" + "=" * 50)
    print("TEST SCAFFOLD SUMMARY")
    print("=" * 50)

    for result in report.results:
        print(f"{_display(result.path, root)}: {OUTCOME_LABELS[result.outcome]}")
        if result.target and result.outcome is Outcome.GENERATED:
            print(f"    -> {_display(result.target, root)}")
        if result.coverage:
            loop = result.coverage
            if loop.initial_coverage is not None:
                line = f"    coverage: {loop.initial_coverage:.1f}% ({loop.state.value})"
                if loop.refined_coverage is not None:
                    line += f", after refinement {loop.refined_coverage:.1f}%"
                print(line)
            if loop.error:
                print(f"    coverage not measured: {loop.error}")
        if result.message and result.outcome is Outcome.FAILED_UNREADABLE:
            print(f"    {result.message}")

    counts = report.counts
    print("-" * 50)
    print(f"Files: {len(report.results)}")
    for outcome in Outcome:
        print(f"{outcome.value}: {counts[outcome.value]}")
    print(f"Duration: {report.duration_ms / 1000:.2f}s")
    print("=" * 50 + "\n")


def print_result(result: FileResult, root: Path) -> None:
    """Outcome lines of one file."""
    print(f"{_display(result.path, root)}: {OUTCOME_LABELS[result.outcome]}")
    if result.target and result.outcome is Outcome.GENERATED:
        print(f"    -> {_display(result.target, root)}")
    if result.coverage:
        loop = result.coverage
        if loop.initial_coverage is not None:
            line = f"    coverage: {loop.initial_coverage:.1f}% ({loop.state.value})"
            if loop.refined_coverage is not None:
                line += f", after refinement {loop.refined_coverage:.1f}%"
            print(line)
        if loop.error:
            print(f"    coverage not measured: {loop.error}")
    if result.message and result.outcome is Outcome.FAILED_UNREADABLE:
        print(f"    {result.message}")


def _display(path: Path, root: Path) -> str:
    try:
        return Path(path).resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return str(path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="testgen",
        description="Generate Jest + Testing Library scaffolds for React components",
    )
    parser.add_argument(
        "mode",
        choices=["all", "file", "changed", "watch"],
        help=(
            "all: scan the source directory; file: one path; changed: given paths or git changes; "
            "watch: process sources as they are added or modified"
        ),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Source path (file mode) or paths (changed mode)",
    )
    parser.add_argument(
        "--root", "-r",
        help="Project root (default: current directory)",
    )
    parser.add_argument(
        "--src-dir",
        help="Source directory scanned in 'all' mode (default: src)",
    )
    parser.add_argument(
        "--no-coverage",
        action="store_true",
        help="Skip the coverage feedback loop",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Line coverage (%%) below which the enriched pass is generated (default: 50)",
    )
    parser.add_argument(
        "--no-variants",
        action="store_true",
        help="Do not emit boolean prop variant renders",
    )
    parser.add_argument(
        "--render-helper-module",
        help="Import specifier of a custom render helper",
    )
    parser.add_argument(
        "--render-helper-name",
        help="Exported name of the custom render helper",
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with status 1 if any file could not be processed",
    )
    parser.add_argument(
        "--report",
        help="Save the batch report as JSON to this path",
    )
    parser.add_argument(
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Render logs as JSON",
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run one batch (or a watch session) and return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode == "file" and len(args.paths) != 1:
        parser.error("file mode takes exactly one path")
    if args.mode in ("all", "watch") and args.paths:
        parser.error(f"{args.mode} mode takes no paths")

    settings = get_settings(
        root_dir=Path(args.root) if args.root else None,
        src_dir=args.src_dir,
        coverage_enabled=False if args.no_coverage else None,
        coverage_threshold=args.threshold,
        variants_enabled=False if args.no_variants else None,
        render_helper_module=args.render_helper_module,
        render_helper_name=args.render_helper_name,
        log_level=args.log_level,
        json_logs=args.json_logs,
    )
    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    try:
        pipeline = ScaffoldPipeline(settings)
        if args.mode == "watch":
            watcher = SourceWatcher(
                pipeline,
                settings,
                on_result=lambda result: print_result(result, settings.root_dir),
            )
            print(f"Watching {_display(settings.source_root, settings.root_dir)} (Ctrl+C to stop)")
            report = watcher.run()
        else:
            paths = select_files(args.mode, settings, args.paths)
            if not paths:
                logger.info("No source files selected", mode=args.mode)
            report = pipeline.run_batch(paths)
    except EnvironmentUnavailable as e:
        logger.error("Parsing toolchain unavailable, aborting", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.report:
        saved = report.save(args.report)
        logger.info("Report saved", path=str(saved))

    print_summary(report, settings.root_dir)

    if args.fail_on_error and report.failed:
        return 1
    return 0


def cli():
    """Command-line interface."""
    sys.exit(run())


if __name__ == "__main__":
    cli()
