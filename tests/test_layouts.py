"""Unit tests for layout loading and composition"""

import pytest

from conftest import write
from inkwell.errors import UnknownLayoutError
from inkwell.layouts import Layout, compose, load_layouts, render_template


def test_render_template_substitutes_placeholders():
    output, unresolved = render_template("<h1>{{ title }}</h1>{{site.title}}", {"title": "T", "site.title": "S"})
    assert output == "<h1>T</h1>S"
    assert unresolved == []


def test_unresolved_placeholders_render_empty():
    output, unresolved = render_template("[{{missing}}][{{ missing }}][{{other}}]", {})
    assert output == "[][][]"
    assert unresolved == ["missing", "other"]


def test_substituted_values_are_not_rescanned():
    layouts = {"post": Layout("post", "{{title}}|{{content}}")}
    output, unresolved = compose("<p>{{title}} stays</p>", "post", {"title": "A"}, layouts)
    assert output == "A|<p>{{title}} stays</p>"
    assert unresolved == []


def test_unknown_layout_raises():
    with pytest.raises(UnknownLayoutError) as excinfo:
        compose("<p>x</p>", "missing", {}, {}, source="posts/a.md")
    assert excinfo.value.source == "posts/a.md"
    assert excinfo.value.layout == "missing"


def test_load_layouts_keys_by_stem(tmp_path):
    write(tmp_path, "post.html", "<main>{{content}}</main>")
    write(tmp_path, "notes.txt", "ignored")
    layouts = load_layouts(tmp_path)
    assert list(layouts) == ["post"]
    assert layouts["post"].placeholders == ["content"]


def test_load_layouts_missing_dir(tmp_path):
    assert load_layouts(tmp_path / "nope") == {}
