from __future__ import annotations

import datetime as dt
import html
import math
from dataclasses import dataclass, field

from .content import Document, MetaValue
from .context import SiteContext
from .layouts import compose
from .render import summarize
from .utils import iso_date, join_url, relative_root, slugify

INDEX_LAYOUT = "index"
TAG_LAYOUT = "tag"


@dataclass
class Page:
    """A composed page waiting to be written."""

    output_path: str
    html: str
    source: str
    unresolved: list[str] = field(default_factory=list)


def format_meta_value(value: MetaValue) -> str:
    if isinstance(value, list):
        return ", ".join(html.escape(str(item)) for item in value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return html.escape(str(value))


def page_url(context: SiteContext, output_path: str) -> str:
    base_url = context.config.base_url
    return join_url(base_url, output_path) if base_url else output_path


def tag_path(tag: str) -> str:
    return f"tags/{slugify(tag)}.html"


def index_path(page: int) -> str:
    if page == 1:
        return "index.html"
    return f"page-{page}.html"


def build_tag_links(tags: list[str], root: str) -> str:
    return " ".join(
        f'<a class="tag" href="{root}/{tag_path(tag)}">{html.escape(tag)}</a>' for tag in tags
    )


def build_post_list(posts: list[Document], root: str) -> str:
    if not posts:
        return '<ul class="post-list"></ul>'
    items = []
    for post in posts:
        items.append(
            f'<li><span class="post-date">{post.date.isoformat()}</span>'
            f'<a href="{root}/{post.output_path}">{html.escape(post.title)}</a></li>'
        )
    return f'<ul class="post-list">{"".join(items)}</ul>'


def build_tag_list(tags: dict[str, list[Document]], root: str) -> str:
    items = []
    for name, posts in sorted(tags.items(), key=lambda x: (-len(x[1]), x[0].lower(), x[0])):
        items.append(
            f'<li><a href="{root}/{tag_path(name)}">{html.escape(name)}</a>'
            f'<span class="count">{len(posts)}</span></li>'
        )
    return f'<ul class="tag-list">{"".join(items)}</ul>'


def build_nav(context: SiteContext, root: str) -> str:
    items = []
    for item in context.config.nav:
        url = item.url
        if not url.startswith(("http://", "https://", "/", "#")):
            url = f"{root}/{url}"
        items.append(f'<li><a href="{html.escape(url)}">{html.escape(item.title)}</a></li>')
    return f'<ul class="nav">{"".join(items)}</ul>' if items else ""


def build_pagination(page: int, total_pages: int) -> str:
    if total_pages <= 1:
        return ""
    items = []
    if page > 1:
        items.append(f'<a class="page-link" href="./{index_path(page - 1)}">Previous</a>')
    else:
        items.append('<span class="page-link is-disabled">Previous</span>')
    numbers = []
    for num in range(1, total_pages + 1):
        if num == page:
            numbers.append(f'<span class="page-number is-active">{num}</span>')
        else:
            numbers.append(f'<a class="page-number" href="./{index_path(num)}">{num}</a>')
    items.append(f'<div class="page-numbers">{"".join(numbers)}</div>')
    if page < total_pages:
        items.append(f'<a class="page-link" href="./{index_path(page + 1)}">Next</a>')
    else:
        items.append('<span class="page-link is-disabled">Next</span>')
    return f'<nav class="pagination">{"".join(items)}</nav>'


def site_variables(context: SiteContext, root: str) -> dict[str, str]:
    config = context.config
    return {
        "site.title": html.escape(config.site_title),
        "site.description": html.escape(config.site_description),
        "site.base_url": html.escape(config.base_url),
        "nav": build_nav(context, root),
        "recent_posts": build_post_list(context.recent_posts(), root),
        "tag_list": build_tag_list(context.tags, root),
        "root": root,
    }


def page_variables(document: Document, context: SiteContext) -> dict[str, str]:
    root = relative_root(document.output_path)
    variables = {key: format_meta_value(value) for key, value in document.meta.items()}
    variables.update(
        {
            "title": html.escape(document.title),
            "date": document.date.isoformat() if document.date else "",
            "url": page_url(context, document.output_path),
            "toc": document.toc,
            "tag_links": build_tag_links(document.tags, root),
            "summary": html.escape(str(document.meta.get("summary") or summarize(document.html or ""))),
        }
    )
    variables.update(site_variables(context, root))
    return variables


def compose_document(document: Document, context: SiteContext) -> Page:
    layout_name = document.layout or context.config.default_layout
    html_doc, unresolved = compose(
        document.html or "",
        layout_name,
        page_variables(document, context),
        context.layouts,
        source=document.source,
    )
    return Page(document.output_path, html_doc, document.source, unresolved)


def build_index_pages(context: SiteContext) -> list[Page]:
    if INDEX_LAYOUT not in context.layouts:
        return []
    per_page = max(1, context.config.posts_per_page)
    total_pages = max(1, math.ceil(len(context.posts) / per_page))
    pages = []
    for page in range(1, total_pages + 1):
        output_path = index_path(page)
        root = relative_root(output_path)
        page_posts = context.posts[(page - 1) * per_page : page * per_page]
        title = context.config.site_title if page == 1 else f"{context.config.site_title} | Page {page}"
        variables = {
            "title": html.escape(title),
            "url": page_url(context, output_path),
            "post_list": build_post_list(page_posts, root),
            "pagination": build_pagination(page, total_pages),
            "page_number": str(page),
            "total_pages": str(total_pages),
            **site_variables(context, root),
        }
        html_doc, unresolved = compose(
            variables["post_list"], INDEX_LAYOUT, variables, context.layouts, source=output_path
        )
        pages.append(Page(output_path, html_doc, f"<index page {page}>", unresolved))
    return pages


def build_tag_pages(context: SiteContext) -> list[Page]:
    if TAG_LAYOUT not in context.layouts:
        return []
    pages = []
    for tag, posts in context.tags.items():
        output_path = tag_path(tag)
        root = relative_root(output_path)
        variables = {
            "title": html.escape(f"{tag} | {context.config.site_title}"),
            "tag": html.escape(tag),
            "url": page_url(context, output_path),
            "post_list": build_post_list(posts, root),
            **site_variables(context, root),
        }
        html_doc, unresolved = compose(
            variables["post_list"], TAG_LAYOUT, variables, context.layouts, source=output_path
        )
        pages.append(Page(output_path, html_doc, f"<tag {tag}>", unresolved))
    return pages


def build_atom(context: SiteContext) -> str | None:
    site_url = context.config.base_url.rstrip("/")
    if not site_url or not context.posts:
        return None
    entries = []
    for post in context.posts[: context.config.feed_limit]:
        link = join_url(site_url, post.output_path)
        summary = post.meta.get("summary") or summarize(post.html or "")
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(post.title)}</title>",
                    f'<link href="{link}" />',
                    f"<id>{link}</id>",
                    f"<updated>{iso_date(post.date)}</updated>",
                    f"<summary>{html.escape(str(summary))}</summary>",
                    "</entry>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"<title>{html.escape(context.config.site_title)}</title>",
            f"<id>{site_url}/</id>",
            f"<updated>{iso_date(context.posts[0].date)}</updated>",
            f'<link href="{site_url}/atom.xml" rel="self" />',
            f'<link href="{site_url}/" />',
            "\n".join(entries),
            "</feed>",
        ]
    )


def build_sitemap(context: SiteContext, pages: list[Page]) -> str | None:
    site_url = context.config.base_url.rstrip("/")
    if not site_url:
        return None
    lastmod = {post.output_path: post.date for post in context.posts}
    items = []
    for output_path in sorted(page.output_path for page in pages):
        lines = ["<url>", f"<loc>{join_url(site_url, output_path)}</loc>"]
        if output_path in lastmod:
            lines.append(f"<lastmod>{lastmod[output_path].isoformat()[:10]}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(items),
            "</urlset>",
        ]
    )
