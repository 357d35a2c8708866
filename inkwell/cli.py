from __future__ import annotations

import argparse
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from .assembler import BuildResult, build_site, clean_site
from .config import SiteConfig, TypesetConfig, load_config
from .errors import (
    ConfigError,
    ExternalToolMissingError,
    OutputCollisionError,
    TypesettingFailedError,
    UnsafeCleanError,
)
from .log import setup_logger
from .typeset import BuildReport, build_document, clean_document

EXIT_FAILED = 1
EXIT_FATAL = 2
EXIT_TOOL_MISSING = 127


def site_config_from_args(args: argparse.Namespace, data: dict) -> SiteConfig:
    config = SiteConfig.from_mapping(data, root=Path(args.config).resolve().parent)
    overrides = {}
    for name in ("content", "layouts", "static", "output"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = Path(value).resolve()
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = args.workers
    if getattr(args, "strict", None) is not None:
        overrides["strict"] = args.strict
    if getattr(args, "drafts", None) is not None:
        overrides["include_drafts"] = args.drafts
    return replace(config, **overrides) if overrides else config


def print_summary(result: BuildResult, elapsed: float) -> None:
    if result.skipped:
        print(f"Skipped {len(result.skipped)} document(s):")
        for item in result.skipped:
            print(f"  {item.source}: [{item.kind}] {item.reason}")
    if result.warnings:
        print(f"{len(result.warnings)} warning(s):")
        for warning in result.warnings:
            print(f"  {warning}")
    status = "Build succeeded" if result.ok else "Build failed"
    print(
        f"{status}: {result.rendered} rendered, {len(result.skipped)} skipped, "
        f"{len(result.warnings)} warnings, {len(result.written)} files written in {elapsed:.2f}s."
    )


def print_report(report: BuildReport) -> None:
    for diagnostic in report.diagnostics:
        print(f"  {diagnostic}")
    if report.success:
        print(f"PDF generated: {report.pdf_path} ({len(report.diagnostics)} quality warnings)")
    else:
        print("Typesetting failed: no PDF produced.")


def cmd_build(args: argparse.Namespace, data: dict) -> int:
    config = site_config_from_args(args, data)
    start = time.perf_counter()
    try:
        result = build_site(config)
    except OutputCollisionError as exc:
        print(str(exc), file=sys.stderr)
        print("Build failed: no files written.", file=sys.stderr)
        return EXIT_FATAL
    print_summary(result, time.perf_counter() - start)
    if result.ok:
        print(f"Site generated in: {config.output}")
        return 0
    return EXIT_FAILED


def cmd_clean(args: argparse.Namespace, data: dict) -> int:
    config = site_config_from_args(args, data)
    clean_site(config)
    print(f"Cleaned: {config.output}")
    return 0


def cmd_cv_build(args: argparse.Namespace, data: dict) -> int:
    config = TypesetConfig.from_mapping(data, root=Path(args.config).resolve().parent)
    if args.source is not None:
        config = replace(config, source=Path(args.source).resolve())
    try:
        report = build_document(config)
    except ExternalToolMissingError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_TOOL_MISSING
    except TypesettingFailedError as exc:
        print(exc.output, file=sys.stderr)
        return exc.returncode
    print_report(report)
    return 0 if report.success else EXIT_FAILED


def cmd_cv_clean(args: argparse.Namespace, data: dict) -> int:
    config = TypesetConfig.from_mapping(data, root=Path(args.config).resolve().parent)
    if args.source is not None:
        config = replace(config, source=Path(args.source).resolve())
    removed = clean_document(config)
    print(f"Removed {len(removed)} typesetting artifact(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inkwell", description="Markdown blog and CV builder.")
    parser.add_argument("--config", default="site.toml", help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    commands = parser.add_subparsers(dest="command", required=True)

    def add_site_paths(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--content", default=None, help="Directory containing Markdown documents.")
        sub.add_argument("--layouts", default=None, help="Directory containing layout templates.")
        sub.add_argument("--static", default=None, help="Directory containing static assets.")
        sub.add_argument("--output", default=None, help="Output directory for the site.")

    build = commands.add_parser("build", help="Build the site.")
    add_site_paths(build)
    build.add_argument(
        "--workers", default=None, type=int, help="Number of worker threads for rendering (0 = auto)."
    )
    build.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Treat skipped documents and warnings as a failed build.",
    )
    build.add_argument(
        "--drafts", action=argparse.BooleanOptionalAction, default=None, help="Include draft documents."
    )
    build.set_defaults(handler=cmd_build)

    clean = commands.add_parser("clean", help="Empty the output directory.")
    add_site_paths(clean)
    clean.set_defaults(handler=cmd_clean)

    cv = commands.add_parser("cv", help="Typeset the CV.")
    cv_commands = cv.add_subparsers(dest="cv_command", required=True)
    cv_build = cv_commands.add_parser("build", help="Compile the CV and run the checker.")
    cv_build.add_argument("--source", default=None, help="Directory containing the CV sources.")
    cv_build.set_defaults(handler=cmd_cv_build)
    cv_clean = cv_commands.add_parser("clean", help="Remove typesetting artifacts.")
    cv_clean.add_argument("--source", default=None, help="Directory containing the CV sources.")
    cv_clean.set_defaults(handler=cmd_cv_clean)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(verbose=args.verbose)
    try:
        data = load_config(Path(args.config))
        return args.handler(args, data)
    except (ConfigError, UnsafeCleanError, FileNotFoundError) as exc:
        logger.error(str(exc))
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
