"""JSON file helpers shared by the state, blueprint and manifest modules."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from init_kit.errors import JsonReadError


def read_json(path: Path) -> Any:
    """Read and parse a JSON document.

    Raises:
        JsonReadError: If the file is missing, unreadable or not valid JSON.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise JsonReadError(path, f"File not found: {e.filename}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonReadError(path, str(e)) from e
    except OSError as e:
        raise JsonReadError(path, str(e)) from e


def dump_json(data: Any) -> str:
    """Serialize with 2-space indentation and a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to ``path`` atomically.

    The payload goes to a temp file in the target directory first and is
    then moved over the destination with ``os.replace``, so readers never
    observe a partially written document. The temp file is removed if
    either step fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = f.name
            f.write(dump_json(data))
        os.replace(temp_path, path)
    except BaseException:
        if temp_path is not None and os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def display_path(repo_root: Path, path: Path) -> str:
    """Render ``path`` relative to the repo root when it lives inside it."""
    try:
        return path.resolve().relative_to(repo_root.resolve()).as_posix() or "."
    except ValueError:
        return str(path)
