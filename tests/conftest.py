"""Shared fixtures: a throwaway site tree under tmp_path"""

from pathlib import Path

import pytest
from loguru import logger

from inkwell.config import SiteConfig

POST_LAYOUT = "<html><body>{{title}}{{content}}</body></html>"


def write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def post(title: str, date: str, body: str, layout: str = "post", extra: str = "") -> str:
    return f'---\ntitle: "{title}"\ndate: {date}\nlayout: {layout}\n{extra}---\n{body}\n'


def read_tree(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def site_root(tmp_path):
    """A site root with a `post` layout and one post."""
    write(tmp_path, "layouts/post.html", POST_LAYOUT)
    write(tmp_path, "content/posts/a.md", post("A", "2023-01-01", "# Hi"))
    return tmp_path


@pytest.fixture
def site_config(site_root):
    return SiteConfig(root=site_root, workers=2)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop sinks the CLI installs so they don't outlive pytest's captured streams."""
    yield
    logger.remove()
