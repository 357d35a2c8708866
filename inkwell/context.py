"""
Site Context: configuration plus the full set of rendered documents.

Derived collections (the chronological post list and tag groupings) can only
be computed once every document has rendered, so the assembler builds the
context after the render barrier and passes it to every page it composes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import SiteConfig
from .content import Document
from .layouts import Layout
from .utils import as_datetime, slugify


def collect_posts(documents: list[Document]) -> list[Document]:
    posts = [doc for doc in documents if not doc.passthrough and doc.date is not None]
    posts.sort(key=lambda doc: doc.source)
    # newest first; the sort is stable, so equal dates keep source order
    posts.sort(key=lambda doc: as_datetime(doc.date), reverse=True)
    return posts


def group_tags(posts: list[Document]) -> dict[str, list[Document]]:
    """
    Map each tag to its posts; ``posts`` must already be in list order.

    Tags with the same slug ("Python", "python") form one group, shown under
    the first spelling met in list order.
    """
    names: dict[str, str] = {}
    groups: dict[str, list[Document]] = {}
    for post in posts:
        for tag in post.tags:
            slug = slugify(tag)
            name = names.setdefault(slug, tag)
            group = groups.setdefault(name, [])
            if not group or group[-1] is not post:
                group.append(post)
    return dict(sorted(groups.items(), key=lambda item: (item[0].lower(), item[0])))


@dataclass
class SiteContext:
    config: SiteConfig
    documents: list[Document] = field(default_factory=list)
    posts: list[Document] = field(default_factory=list)
    tags: dict[str, list[Document]] = field(default_factory=dict)
    layouts: dict[str, Layout] = field(default_factory=dict)

    @classmethod
    def build(
        cls, config: SiteConfig, documents: list[Document], layouts: dict[str, Layout]
    ) -> "SiteContext":
        posts = collect_posts(documents)
        return cls(
            config=config, documents=documents, posts=posts, tags=group_tags(posts), layouts=layouts
        )

    def recent_posts(self, limit: int | None = None) -> list[Document]:
        limit = self.config.recent_posts if limit is None else limit
        return self.posts[: max(0, limit)]
