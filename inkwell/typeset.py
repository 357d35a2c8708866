"""
Typeset the CV.

Runs an external typesetting engine over a LaTeX source tree to produce a
PDF, then an external checker over the same sources. Checker diagnostics are
reported as warnings and never block the PDF.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import TypesetConfig
from .errors import ExternalToolMissingError, TypesettingFailedError

# Intermediate files the engine leaves next to the main source
ARTIFACTS = [".aux", ".log", ".out", ".toc", ".fls", ".fdb_latexmk", ".synctex.gz", ".bbl", ".blg", ".pdf"]
DIAGNOSTIC_RE = re.compile(r"^(?P<file>[^:\n]+):(?P<line>\d+):(?P<message>.*)$")


@dataclass(frozen=True)
class QualityWarning:
    file: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: {self.message}"


@dataclass
class BuildReport:
    """
    Result of one typesetting run.

    Attributes:
        success: Whether the engine produced a PDF
        pdf_path: Path to the generated PDF (None if it is missing)
        diagnostics: Checker findings, one per (file, line, message)
    """

    success: bool
    pdf_path: Optional[Path] = None
    diagnostics: List[QualityWarning] = field(default_factory=list)


def resolve_tool(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ExternalToolMissingError(name)
    return path


def parse_diagnostics(output: str, base: Optional[Path] = None) -> List[QualityWarning]:
    diagnostics = []
    for line in output.splitlines():
        match = DIAGNOSTIC_RE.match(line.strip())
        if not match:
            continue
        file_name = match.group("file").strip()
        if base is not None and Path(file_name).is_absolute():
            try:
                file_name = Path(file_name).relative_to(base.resolve()).as_posix()
            except ValueError:
                pass
        diagnostics.append(
            QualityWarning(file=file_name, line=int(match.group("line")), message=match.group("message").strip())
        )
    return diagnostics


def run_engine(engine: str, config: TypesetConfig) -> None:
    cmd = [engine, *config.engine_args, config.main]
    logger.info(f"Typesetting {config.main_file}")
    logger.debug(f"  Command: {' '.join(cmd)}")
    result = subprocess.run(
        cmd,
        cwd=config.source,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    if result.returncode != 0:
        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        raise TypesettingFailedError(result.returncode, output, config.main_file)


def run_checker(checker: str, config: TypesetConfig) -> List[QualityWarning]:
    sources = sorted(path.relative_to(config.source).as_posix() for path in config.source.rglob("*.tex"))
    if not sources:
        return []
    cmd = [checker, *config.checker_args, *sources]
    logger.debug(f"  Command: {' '.join(cmd)}")
    result = subprocess.run(
        cmd,
        cwd=config.source,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    # the checker exits non-zero when it has findings; only its output matters
    return parse_diagnostics(result.stdout, config.source)


def build_document(config: TypesetConfig) -> BuildReport:
    if not config.main_file.exists():
        raise FileNotFoundError(f"Typeset source not found: {config.main_file}")
    engine = resolve_tool(config.engine)
    checker = resolve_tool(config.checker)

    run_engine(engine, config)
    pdf_path = config.main_file.with_suffix(".pdf")
    diagnostics = run_checker(checker, config)
    for diagnostic in diagnostics:
        logger.warning(f"QualityWarning {diagnostic}")

    success = pdf_path.exists()
    if not success:
        logger.error(f"Engine finished but no PDF was produced at {pdf_path}")
    return BuildReport(success=success, pdf_path=pdf_path if success else None, diagnostics=diagnostics)


def clean_document(config: TypesetConfig) -> list[Path]:
    removed = []
    base = config.source / Path(config.main).stem
    for ext in ARTIFACTS:
        artifact = base.with_name(base.name + ext)
        if artifact.exists():
            artifact.unlink()
            removed.append(artifact)
    return removed
