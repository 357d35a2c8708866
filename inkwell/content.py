from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from loguru import logger

from .errors import DocumentError, EmptyBodyError, MalformedFrontMatterError
from .utils import parse_bool

MetaValue = Union[str, int, float, dt.date, dt.datetime, list[str]]

DELIMITER = "---"
DEFAULT_PATTERNS = ("*.md", "*.markdown", "*.html")
LIST_KEYS = {"tags", "categories"}
FORMAT_BY_SUFFIX = {".md": "markdown", ".markdown": "markdown", ".html": "html", ".htm": "html"}

KEY_RE = re.compile(r"^[A-Za-z_][\w.-]*$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
INT_RE = re.compile(r"^-?\d+$")
FLOAT_RE = re.compile(r"^-?\d+\.\d+$")


@dataclass
class Document:
    """
    One file under the content root.

    ``html`` and ``toc`` are filled in by the renderer; nothing else changes
    after loading.
    """

    source: str
    path: Path
    output_path: str
    meta: dict[str, MetaValue] = field(default_factory=dict)
    body: str = ""
    fmt: str = "markdown"
    passthrough: bool = False
    html: Optional[str] = None
    toc: str = ""

    @property
    def title(self) -> str:
        return str(self.meta.get("title", ""))

    @property
    def date(self) -> Optional[dt.date]:
        value = self.meta.get("date")
        return value if isinstance(value, dt.date) else None

    @property
    def layout(self) -> Optional[str]:
        value = self.meta.get("layout")
        return str(value) if value not in (None, "") else None

    @property
    def tags(self) -> list[str]:
        for key in ("tags", "categories"):
            value = self.meta.get(key)
            if isinstance(value, list):
                return value
            if isinstance(value, str) and value:
                return [value]
        return []

    @property
    def draft(self) -> bool:
        return parse_bool(self.meta.get("draft"))


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip().strip("'\"") for item in value.split(",")]
    return [item for item in items if item]


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def parse_date_value(value: str) -> Optional[dt.date]:
    if DATE_RE.match(value):
        try:
            return dt.date.fromisoformat(value)
        except ValueError:
            return None
    if DATETIME_RE.match(value):
        try:
            return dt.datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def parse_value(key: str, raw: str) -> MetaValue:
    raw = raw.strip()
    if key in LIST_KEYS or (raw.startswith("[") and raw.endswith("]")):
        return parse_list(raw)
    if raw[:1] in {'"', "'"}:
        text = unquote(raw)
        if key == "date":
            return parse_date_value(text) or text
        return text
    date_value = parse_date_value(raw)
    if date_value is not None:
        return date_value
    if INT_RE.match(raw):
        return int(raw)
    if FLOAT_RE.match(raw):
        return float(raw)
    return raw


def parse_front_matter(text: str, source: Optional[str] = None) -> tuple[Optional[dict], str]:
    """
    Split a leading ``---`` block from ``text``.

    Returns ``(None, text)`` when there is no block at all, so the caller can
    treat the file as a passthrough asset.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != DELIMITER:
        return None, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == DELIMITER:
            end = i
            break
    if end is None:
        raise MalformedFrontMatterError("front-matter block is never closed", source)

    meta: dict[str, MetaValue] = {}
    for lineno, line in enumerate(lines[1:end], start=2):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            raise MalformedFrontMatterError(f"line {lineno}: expected 'key: value'", source)
        key, value = line.split(":", 1)
        key = key.strip().lower()
        if not KEY_RE.match(key):
            raise MalformedFrontMatterError(f"line {lineno}: invalid key {key!r}", source)
        meta[key] = parse_value(key, value)

    if "date" in meta and not isinstance(meta["date"], dt.date):
        raise MalformedFrontMatterError(f"date is not an ISO date: {meta['date']!r}", source)
    body = "\n".join(lines[end + 1 :])
    return meta, body


def extract_title(meta: dict, body: str, fallback: str) -> tuple[str, str]:
    if meta.get("title") not in (None, ""):
        return str(meta["title"]), body
    lines = body.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip() or fallback
            new_body = "\n".join(lines[i + 1 :]).lstrip()
            return title, new_body
        if stripped:
            break
    return fallback, body


def output_path_for(source: str, meta: dict) -> str:
    permalink = meta.get("permalink")
    if isinstance(permalink, str) and permalink.strip():
        target = permalink.strip().lstrip("/")
        if ".." in PurePosixPath(target).parts:
            raise MalformedFrontMatterError(f"permalink escapes the site: {permalink!r}", source)
        if not target or target.endswith("/"):
            return target + "index.html"
        if not PurePosixPath(target).suffix:
            return target + ".html"
        return target
    return PurePosixPath(source).with_suffix(".html").as_posix()


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    files = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        files.append(path)
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def passthrough(path: Path, source: str) -> Document:
    return Document(source=source, path=path, output_path=source, passthrough=True)


def load_document(path: Path, root: Path, patterns=DEFAULT_PATTERNS) -> Document:
    source = path.relative_to(root).as_posix()
    if not any(PurePosixPath(source).match(pattern) for pattern in patterns):
        return passthrough(path, source)

    raw_text = path.read_text(encoding="utf-8")
    meta, body = parse_front_matter(raw_text, source)
    if meta is None:
        return passthrough(path, source)

    if not body.strip():
        raise EmptyBodyError("document body is empty", source)
    title, remaining = extract_title(meta, body, path.stem)
    meta["title"] = title
    # a lone heading that became the title still stays the body
    if remaining.strip():
        body = remaining

    fmt = meta.get("format") or FORMAT_BY_SUFFIX.get(path.suffix.lower(), "markdown")
    return Document(
        source=source,
        path=path,
        output_path=output_path_for(source, meta),
        meta=meta,
        body=body,
        fmt=str(fmt).lower(),
    )


def load_documents(
    root: Path, patterns=DEFAULT_PATTERNS
) -> tuple[list[Document], list[DocumentError]]:
    """Load every file under ``root``; per-file errors are returned, not raised."""
    documents: list[Document] = []
    failures: list[DocumentError] = []
    for path in list_files(root):
        try:
            document = load_document(path, root, patterns)
        except DocumentError as exc:
            logger.warning(f"Skipping {exc.source}: {exc.message}")
            failures.append(exc)
            continue
        logger.debug(f"Loaded {document.source} -> {document.output_path}")
        documents.append(document)
    return documents, failures
