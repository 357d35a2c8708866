from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError
from .render import DEFAULT_EXTENSIONS, validate_extensions
from .utils import parse_bool, parse_int

MAX_WORKERS = 32


def load_config(path: Path) -> dict:
    """Read a TOML, YAML or JSON config file; a missing file is an empty config."""
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


@dataclass
class NavItem:
    title: str
    url: str


@dataclass
class SiteConfig:
    root: Path = field(default_factory=Path.cwd)
    content: Path = Path("content")
    layouts: Path = Path("layouts")
    static: Path = Path("static")
    output: Path = Path("dist")
    site_title: str = "inkwell"
    site_description: str = ""
    base_url: str = ""
    default_layout: str = "default"
    posts_per_page: int = 10
    recent_posts: int = 5
    feed_limit: int = 20
    workers: int = 0
    strict: bool = False
    include_drafts: bool = False
    highlight_code: bool = False
    markdown_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    nav: list[NavItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        for name in ("content", "layouts", "static", "output"):
            value = Path(getattr(self, name))
            if not value.is_absolute():
                value = self.root / value
            setattr(self, name, value)

    @property
    def worker_count(self) -> int:
        workers = self.workers if self.workers > 0 else (os.cpu_count() or 1)
        return max(1, min(workers, MAX_WORKERS))

    @classmethod
    def from_mapping(cls, data: dict, root: Optional[Path] = None) -> "SiteConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known - {"typeset"})
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        kwargs: dict = {"root": Path(root) if root is not None else Path.cwd()}
        for key in ("content", "layouts", "static", "output"):
            if data.get(key) is not None:
                kwargs[key] = Path(str(data[key]))
        for key in ("site_title", "site_description", "base_url", "default_layout"):
            if data.get(key) is not None:
                kwargs[key] = str(data[key])
        for key in ("posts_per_page", "recent_posts", "feed_limit", "workers"):
            if data.get(key) is not None:
                kwargs[key] = parse_int(data[key], getattr(cls, key))
        for key in ("strict", "include_drafts", "highlight_code"):
            if data.get(key) is not None:
                kwargs[key] = parse_bool(data[key])
        extensions = data.get("markdown_extensions")
        if extensions is not None:
            if not isinstance(extensions, list):
                raise ConfigError("markdown_extensions must be a list of extension names")
            kwargs["markdown_extensions"] = tuple(str(item) for item in extensions)
            validate_extensions(kwargs["markdown_extensions"])
        nav = data.get("nav") or []
        if not isinstance(nav, list):
            raise ConfigError("nav must be a list of {title, url} tables")
        try:
            kwargs["nav"] = [NavItem(title=str(item["title"]), url=str(item["url"])) for item in nav]
        except (KeyError, TypeError) as exc:
            raise ConfigError(f"Invalid nav entry: {exc}") from exc
        if kwargs.get("posts_per_page", 1) < 1:
            raise ConfigError("posts_per_page must be at least 1")
        return cls(**kwargs)


@dataclass
class TypesetConfig:
    root: Path = field(default_factory=Path.cwd)
    source: Path = Path("cv")
    main: str = "cv.tex"
    engine: str = "latexmk"
    engine_args: list[str] = field(default_factory=lambda: ["-pdf", "-interaction=nonstopmode", "-halt-on-error"])
    checker: str = "chktex"
    checker_args: list[str] = field(default_factory=lambda: ["-q", "-f", "%f:%l:%m\n"])

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.source = Path(self.source)
        if not self.source.is_absolute():
            self.source = self.root / self.source

    @property
    def main_file(self) -> Path:
        return self.source / self.main

    @classmethod
    def from_mapping(cls, data: dict, root: Optional[Path] = None) -> "TypesetConfig":
        section = data.get("typeset") or {}
        if not isinstance(section, dict):
            raise ConfigError("typeset must be a table")
        kwargs: dict = {"root": Path(root) if root is not None else Path.cwd()}
        for key in ("source", "main", "engine", "checker"):
            if section.get(key) is not None:
                kwargs[key] = str(section[key])
        for key in ("engine_args", "checker_args"):
            value = section.get(key)
            if value is None:
                continue
            if not isinstance(value, list):
                raise ConfigError(f"typeset.{key} must be a list of arguments")
            kwargs[key] = [str(item) for item in value]
        return cls(**kwargs)
