from __future__ import annotations

import datetime as dt
import re
import shutil
from pathlib import Path, PurePosixPath

from .errors import UnsafeCleanError


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "untitled"


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def relative_root(output_path: str) -> str:
    """Prefix that leads from ``output_path`` back to the site root ("." or "../..")."""
    depth = len(PurePosixPath(output_path).parts) - 1
    if depth <= 0:
        return "."
    return "/".join([".."] * depth)


def as_datetime(value: dt.date) -> dt.datetime:
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.replace(tzinfo=None)
    return dt.datetime.combine(value, dt.time.min)


def iso_date(value: dt.date) -> str:
    value = as_datetime(value).replace(tzinfo=dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_file(source: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise UnsafeCleanError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise UnsafeCleanError("Refusing to clean output directory outside project root.")
    shutil.rmtree(output_dir)
