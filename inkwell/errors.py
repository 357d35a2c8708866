"""Error kinds raised by the site build and the typesetting tool."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class InkwellError(Exception):
    """Base class for every error raised by inkwell."""


class ConfigError(InkwellError):
    pass


class UnsafeCleanError(InkwellError):
    pass


class DocumentError(InkwellError):
    """
    A failure confined to one source document.

    The assembler records these and keeps building the rest of the site.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class MalformedFrontMatterError(DocumentError):
    pass


class EmptyBodyError(DocumentError):
    pass


class UnsupportedMarkupError(DocumentError):
    def __init__(self, fmt: str, source: Optional[str] = None):
        self.fmt = fmt
        super().__init__(f"unsupported markup format: {fmt!r}", source)


class UnknownLayoutError(DocumentError):
    def __init__(self, layout: str, source: Optional[str] = None):
        self.layout = layout
        super().__init__(f"unknown layout: {layout!r}", source)


class OutputCollisionError(InkwellError):
    """Two or more sources map to the same output path."""

    def __init__(self, collisions: dict[str, list[str]]):
        self.collisions = collisions
        lines = [
            f"{output} <- {', '.join(sources)}" for output, sources in sorted(collisions.items())
        ]
        super().__init__("Output path collision:\n  " + "\n  ".join(lines))


class ExternalToolMissingError(InkwellError):
    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"External tool not found on PATH: {tool}")


class TypesettingFailedError(InkwellError):
    """
    The typesetting engine exited non-zero.

    Attributes:
        returncode: Exit status of the engine
        output: Engine stdout and stderr, verbatim
        tex_file: Main source file that was being compiled
    """

    def __init__(self, returncode: int, output: str, tex_file: Optional[Path] = None):
        self.returncode = returncode
        self.output = output
        self.tex_file = tex_file
        super().__init__(output or f"Typesetting engine exited with status {returncode}")
