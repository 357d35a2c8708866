"""
Site Assembler: load, render, collect, compose, write.

Rendering and writing run on a thread pool. Everything in between is a
barrier: derived collections need every rendered document, and the output
plan must be free of collisions before the output directory is touched.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger

from .config import SiteConfig
from .content import Document, list_files, load_documents
from .context import SiteContext
from .errors import ConfigError, DocumentError, OutputCollisionError, UnknownLayoutError
from .layouts import load_layouts
from .pages import Page, build_atom, build_index_pages, build_sitemap, build_tag_pages, compose_document
from .render import render_markup
from .utils import clean_output_dir, copy_file, write_text


@dataclass
class SkippedDocument:
    source: str
    kind: str
    reason: str


@dataclass
class BuildResult:
    strict: bool = False
    attempted: int = 0
    rendered: int = 0
    written: list[str] = field(default_factory=list)
    skipped: list[SkippedDocument] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def skip(self, error: DocumentError) -> None:
        self.skipped.append(SkippedDocument(error.source or "?", type(error).__name__, error.message))

    @property
    def ok(self) -> bool:
        if self.attempted and not self.rendered:
            return False
        if self.strict and (self.skipped or self.warnings):
            return False
        return True


@dataclass
class OutputEntry:
    output_path: str
    source: str
    page: Optional[Page] = None
    asset: Optional[Path] = None


def run_parallel(func: Callable, items: list, workers: int) -> list:
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(func, items))


def render_documents(
    documents: list[Document], config: SiteConfig
) -> list[Union[Document, DocumentError]]:
    def render_one(document: Document) -> Union[Document, DocumentError]:
        try:
            fragment = render_markup(
                document.body,
                document.fmt,
                extensions=config.markdown_extensions,
                highlight=config.highlight_code,
            )
        except DocumentError as exc:
            exc.source = exc.source or document.source
            return exc
        document.html = fragment.html
        document.toc = fragment.toc
        logger.debug(f"Rendered {document.source}")
        return document

    return run_parallel(render_one, documents, config.worker_count)


def plan_outputs(entries: list[OutputEntry]) -> dict[str, OutputEntry]:
    claimed: dict[str, list[OutputEntry]] = {}
    for entry in entries:
        claimed.setdefault(entry.output_path, []).append(entry)
    collisions = {
        path: [entry.source for entry in group] for path, group in claimed.items() if len(group) > 1
    }
    if collisions:
        raise OutputCollisionError(collisions)
    return {path: group[0] for path, group in sorted(claimed.items())}


def write_entry(output_dir: Path, entry: OutputEntry) -> str:
    dest = output_dir / entry.output_path
    if entry.page is not None:
        write_text(dest, entry.page.html)
    else:
        copy_file(entry.asset, dest)
    return entry.output_path


def build_site(config: SiteConfig) -> BuildResult:
    if not config.content.is_dir():
        raise ConfigError(f"Content directory not found: {config.content}")
    result = BuildResult(strict=config.strict)
    layouts = load_layouts(config.layouts)

    documents, failures = load_documents(config.content)
    for error in failures:
        result.skip(error)

    sources: list[Document] = []
    assets: list[Document] = []
    for document in documents:
        if document.passthrough:
            assets.append(document)
        elif document.draft and not config.include_drafts:
            logger.debug(f"Skipping draft {document.source}")
        else:
            sources.append(document)
    result.attempted = len(sources) + len(failures)

    rendered: list[Document] = []
    for outcome in render_documents(sources, config):
        if isinstance(outcome, DocumentError):
            logger.warning(f"Skipping {outcome.source}: {outcome.message}")
            result.skip(outcome)
            continue
        layout_name = outcome.layout or config.default_layout
        if layout_name not in layouts:
            error = UnknownLayoutError(layout_name, outcome.source)
            logger.warning(f"Skipping {outcome.source}: {error.message}")
            result.skip(error)
            continue
        rendered.append(outcome)
    result.rendered = len(rendered)

    context = SiteContext.build(config, rendered, layouts)
    pages = [compose_document(document, context) for document in rendered]
    claimed = {page.output_path for page in pages}
    for page in build_index_pages(context) + build_tag_pages(context):
        if page.output_path in claimed:
            logger.debug(f"{page.output_path} is provided by a document; not generating it")
            continue
        pages.append(page)
    sitemap = build_sitemap(context, pages)
    atom = build_atom(context)
    if atom is not None:
        pages.append(Page("atom.xml", atom, "<atom feed>"))
    if sitemap is not None:
        pages.append(Page("sitemap.xml", sitemap, "<sitemap>"))
    for page in pages:
        result.warnings.extend(f"{page.source}: unresolved '{key}'" for key in page.unresolved)

    entries = [OutputEntry(page.output_path, page.source, page=page) for page in pages]
    entries.extend(
        OutputEntry(asset.output_path, asset.source, asset=asset.path) for asset in assets
    )
    if config.static.is_dir():
        for path in list_files(config.static):
            rel = path.relative_to(config.static).as_posix()
            entries.append(OutputEntry(rel, f"static/{rel}", asset=path))
    plan = plan_outputs(entries)

    clean_output_dir(config.output, config.root)
    config.output.mkdir(parents=True, exist_ok=True)
    result.written = run_parallel(
        lambda entry: write_entry(config.output, entry), list(plan.values()), config.worker_count
    )
    return result


def clean_site(config: SiteConfig) -> None:
    clean_output_dir(config.output, config.root)
    config.output.mkdir(parents=True, exist_ok=True)
