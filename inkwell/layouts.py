from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from loguru import logger

from .errors import UnknownLayoutError

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][\w.-]*)\s*\}\}")


@dataclass(frozen=True)
class Layout:
    name: str
    text: str

    @property
    def placeholders(self) -> list[str]:
        return PLACEHOLDER_RE.findall(self.text)


def load_layouts(layouts_dir: Path) -> dict[str, Layout]:
    if not layouts_dir.exists():
        return {}
    layouts = {}
    for path in sorted(layouts_dir.glob("*.html")):
        layouts[path.stem] = Layout(name=path.stem, text=path.read_text(encoding="utf-8"))
    return layouts


def render_template(template: str, variables: Mapping[str, str]) -> tuple[str, list[str]]:
    """
    Substitute ``{{ name }}`` placeholders in one pass.

    Substituted values are never scanned again, so a post body that talks
    about ``{{ title }}`` comes through untouched. Returns the output and the
    names that had no value (rendered as empty strings).
    """
    unresolved: list[str] = []

    def repl(match: re.Match) -> str:
        key = match.group(1)
        if key in variables:
            return variables[key]
        if key not in unresolved:
            unresolved.append(key)
        return ""

    return PLACEHOLDER_RE.sub(repl, template), unresolved


def compose(
    fragment: str,
    layout_name: str,
    variables: Mapping[str, str],
    layouts: Mapping[str, Layout],
    source: Optional[str] = None,
) -> tuple[str, list[str]]:
    layout = layouts.get(layout_name)
    if layout is None:
        raise UnknownLayoutError(layout_name, source)
    html_doc, unresolved = render_template(layout.text, {**variables, "content": fragment})
    for key in unresolved:
        logger.warning(f"{source or layout_name}: layout '{layout_name}' has no value for '{{{{{key}}}}}'")
    return html_doc, unresolved
