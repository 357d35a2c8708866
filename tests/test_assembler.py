"""Integration tests for the full site build"""

from dataclasses import replace

import pytest

from conftest import post, read_tree, write
from inkwell.assembler import build_site, clean_site
from inkwell.errors import ConfigError, OutputCollisionError


def squash(text: str) -> str:
    return "".join(text.split())


def test_example_page(site_config):
    result = build_site(site_config)

    assert result.ok
    assert result.rendered == 1
    html = (site_config.output / "posts" / "a.html").read_text(encoding="utf-8")
    assert squash(html) == "<html><body>A<h1>Hi</h1></body></html>"


def test_build_is_idempotent(site_root, site_config):
    write(site_root, "content/posts/b.md", post("B", "2023-02-01", "Text with `code`", extra="tags: x, y\n"))
    write(site_root, "layouts/index.html", "{{site.title}}{{post_list}}{{pagination}}")
    write(site_root, "layouts/tag.html", "{{tag}}{{content}}")
    write(site_root, "static/css/site.css", "body {}")
    config = replace(site_config, base_url="https://example.com", posts_per_page=1)

    build_site(config)
    first = read_tree(config.output)
    build_site(config)
    second = read_tree(config.output)

    assert first == second
    assert "page-2.html" in first
    assert "tags/x.html" in first
    assert "atom.xml" in first and "sitemap.xml" in first


def test_page_contains_title_and_body(site_root, site_config):
    write(site_root, "content/posts/b.md", post("Second Post", "2023-02-01", "Some *body* text"))
    build_site(site_config)
    html = (site_config.output / "posts" / "b.html").read_text(encoding="utf-8")
    assert "Second Post" in html
    assert "Some <em>body</em> text" in html


def test_recent_posts_order(site_root, site_config):
    write(site_root, "layouts/home.html", "{{recent_posts}}")
    write(site_root, "content/posts/b.md", post("B", "2023-01-01", "b"))
    write(site_root, "content/posts/c.md", post("C", "2024-01-01", "c"))
    write(site_root, "content/index.md", "---\ntitle: Home\nlayout: home\n---\nwelcome\n")

    build_site(site_config)

    html = (site_config.output / "index.html").read_text(encoding="utf-8")
    positions = [html.index(f"./posts/{name}.html") for name in ("c", "a", "b")]
    assert positions == sorted(positions)


def test_collision_is_fatal_and_writes_nothing(site_root, site_config):
    write(site_root, "content/posts/a.html", "---\ntitle: Other\nlayout: post\n---\n<p>x</p>\n")

    with pytest.raises(OutputCollisionError) as excinfo:
        build_site(site_config)

    assert "posts/a.html" in excinfo.value.collisions
    assert not site_config.output.exists()


def test_collision_leaves_previous_output_untouched(site_root, site_config):
    write(site_root, "dist/keep.html", "previous build")
    write(site_root, "content/posts/dup.md", post("Dup", "2023-01-01", "x", extra="permalink: posts/a.html\n"))

    with pytest.raises(OutputCollisionError):
        build_site(site_config)

    assert read_tree(site_config.output) == {"keep.html": b"previous build"}


def test_failed_documents_are_skipped(site_root, site_config):
    write(site_root, "content/posts/bad.md", "---\ntitle: Bad\nno colon here\n---\nbody\n")
    write(site_root, "content/posts/weird.md", post("W", "2023-01-01", "x", extra="format: rst\n"))
    write(site_root, "content/posts/nolayout.md", post("N", "2023-01-01", "x", layout="missing"))

    result = build_site(site_config)

    assert result.ok
    assert result.rendered == 1
    assert {item.source: item.kind for item in result.skipped} == {
        "posts/bad.md": "MalformedFrontMatterError",
        "posts/weird.md": "UnsupportedMarkupError",
        "posts/nolayout.md": "UnknownLayoutError",
    }
    assert read_tree(site_config.output).keys() == {"posts/a.html"}


def test_strict_build_fails_on_warnings(site_root, site_config):
    write(site_root, "layouts/post.html", "{{title}}{{content}}{{undefined_thing}}")

    assert build_site(site_config).ok
    result = build_site(replace(site_config, strict=True))

    assert not result.ok
    assert result.warnings == ["posts/a.md: unresolved 'undefined_thing'"]


def test_build_fails_when_nothing_renders(site_root, site_config):
    write(site_root, "content/posts/a.md", post("A", "2023-01-01", "x", layout="missing"))
    result = build_site(site_config)
    assert not result.ok
    assert result.rendered == 0


def test_stale_output_is_removed(site_config):
    write(site_config.output, "old/page.html", "stale")
    build_site(site_config)
    assert not (site_config.output / "old").exists()


def test_assets_are_copied_verbatim(site_root, site_config):
    write(site_root, "static/css/site.css", "body { color: red; }")
    write(site_root, "content/images/pic.svg", "<svg/>")
    write(site_root, "content/notes.md", "# not a page, no front matter\n")

    build_site(site_config)

    tree = read_tree(site_config.output)
    assert tree["css/site.css"] == b"body { color: red; }"
    assert tree["images/pic.svg"] == b"<svg/>"
    assert tree["notes.md"] == b"# not a page, no front matter\n"


def test_static_and_content_collision(site_root, site_config):
    write(site_root, "static/posts/a.html", "static copy")
    with pytest.raises(OutputCollisionError):
        build_site(site_config)


def test_drafts_are_excluded_unless_enabled(site_root, site_config):
    write(site_root, "content/posts/wip.md", post("WIP", "2023-03-01", "x", extra="draft: true\n"))

    build_site(site_config)
    assert not (site_config.output / "posts" / "wip.html").exists()

    build_site(replace(site_config, include_drafts=True))
    assert (site_config.output / "posts" / "wip.html").exists()


def test_document_index_wins_over_generated_index(site_root, site_config):
    write(site_root, "layouts/index.html", "generated {{post_list}}")
    write(site_root, "content/index.md", "---\ntitle: Home\nlayout: post\n---\nhand written\n")

    build_site(site_config)

    html = (site_config.output / "index.html").read_text(encoding="utf-8")
    assert "hand written" in html
    assert "generated" not in html


def test_page_variables(site_root, site_config):
    write(
        site_root,
        "layouts/full.html",
        "{{site.title}}|{{date}}|{{tags}}|{{tag_links}}|{{root}}|{{nav}}|{{series}}|{{url}}",
    )
    write(
        site_root,
        "content/posts/deep/v.md",
        post("V", "2023-04-05", "body", layout="full", extra="tags: [one]\nseries: <Intro>\n"),
    )
    config = replace(site_config, site_title="My Blog", base_url="https://example.com")

    build_site(config)

    parts = (config.output / "posts" / "deep" / "v.html").read_text(encoding="utf-8").split("|")
    assert parts[0] == "My Blog"
    assert parts[1] == "2023-04-05"
    assert parts[2] == "one"
    assert parts[3] == '<a class="tag" href="../../tags/one.html">one</a>'
    assert parts[4] == "../.."
    assert parts[5] == ""
    assert parts[6] == "&lt;Intro&gt;"
    assert parts[7] == "https://example.com/posts/deep/v.html"


def test_missing_content_dir(tmp_path):
    from inkwell.config import SiteConfig

    with pytest.raises(ConfigError):
        build_site(SiteConfig(root=tmp_path))


def test_clean_site_empties_output(site_config):
    build_site(site_config)
    clean_site(site_config)
    assert site_config.output.exists()
    assert list(site_config.output.iterdir()) == []


def test_post_with_only_a_heading_is_built(site_root, site_config):
    write(site_root, "content/posts/h.md", "---\ndate: 2023-01-02\nlayout: post\n---\n# Hi\n")

    result = build_site(site_config)

    assert result.skipped == []
    html = (site_config.output / "posts" / "h.html").read_text(encoding="utf-8")
    assert squash(html) == "<html><body>Hi<h1>Hi</h1></body></html>"


def test_tags_differing_in_case_share_one_page(site_root, site_config):
    write(site_root, "layouts/tag.html", "{{tag}}|{{content}}")
    write(site_root, "content/posts/b.md", post("B", "2023-02-01", "b", extra="tags: Python\n"))
    write(site_root, "content/posts/c.md", post("C", "2023-01-01", "c", extra="tags: python\n"))

    result = build_site(site_config)

    assert result.ok
    tag_pages = [name for name in read_tree(site_config.output) if name.startswith("tags/")]
    assert tag_pages == ["tags/python.html"]
    html = (site_config.output / "tags" / "python.html").read_text(encoding="utf-8")
    heading, listing = html.split("|", 1)
    assert heading == "Python"
    assert "posts/b.html" in listing and "posts/c.html" in listing
