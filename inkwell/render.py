from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass
from typing import Iterable

import markdown

from .errors import ConfigError, UnsupportedMarkupError

DEFAULT_EXTENSIONS = ("fenced_code", "tables")
LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
DOUBLE_QUOTE_RE = re.compile(r"^(?P<indent>[ \t]*)>>(?!>)(?P<rest>.*)$")
TAG_RE = re.compile(r"<[^>]+>")
SPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class RenderedFragment:
    html: str
    toc: str = ""


def normalize_list_spacing(text: str) -> str:
    """Insert the blank line Markdown needs before a list that follows a paragraph."""
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        quote_match = DOUBLE_QUOTE_RE.match(line)
        if quote_match:
            rest = quote_match.group("rest").lstrip()
            if rest:
                line = f'{quote_match.group("indent")}> {rest}'
            else:
                line = f'{quote_match.group("indent")}>'
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)


def validate_extensions(extensions: Iterable[str]) -> None:
    """Fail early, in the caller's thread, on extension names Python-Markdown can't load."""
    for name in extensions:
        try:
            markdown.Markdown(extensions=[name])
        except (ImportError, AttributeError, TypeError) as exc:
            raise ConfigError(f"Unknown Markdown extension {name!r}: {exc}") from exc


def render_markdown(
    body: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS, highlight: bool = False
) -> RenderedFragment:
    extensions = list(extensions)
    extension_configs = {}
    if highlight and "codehilite" not in extensions:
        extensions.append("codehilite")
    if "codehilite" in extensions:
        extension_configs["codehilite"] = {"guess_lang": False}
    md = markdown.Markdown(extensions=extensions, extension_configs=extension_configs)
    html_content = md.convert(normalize_list_spacing(body))
    toc_html = getattr(md, "toc", "")
    md.reset()
    return RenderedFragment(html=html_content, toc=toc_html)


def render_markup(
    body: str,
    fmt: str = "markdown",
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    highlight: bool = False,
) -> RenderedFragment:
    """Render a document body to an HTML fragment. Never fails on malformed markup."""
    if fmt in {"markdown", "md"}:
        return render_markdown(body, extensions, highlight)
    if fmt == "html":
        return RenderedFragment(html=body.strip())
    raise UnsupportedMarkupError(fmt)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def summarize(html_text: str, limit: int = 200) -> str:
    text = SPACE_RE.sub(" ", html_lib.unescape(strip_tags(html_text))).strip()
    return text[:limit] + ("..." if len(text) > limit else "")
