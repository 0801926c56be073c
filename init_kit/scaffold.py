"""Directory scaffold planning for Stage C and template seeding for Stage A.

Planning and applying share one code path: every helper takes ``apply`` and
either reports what it would do (``dry-run``) or does it (``applied``).
Existing directories and files are never overwritten, which makes repeated
runs idempotent.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from init_kit.docs_check import REQUIRED_DOCS
from init_kit.fileio import display_path
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

BLUEPRINT_TEMPLATE = "project-blueprint.example.json"

PLACEHOLDER_READMES = {
    ("apps", "frontend"): (
        "# Frontend app\n\nThis folder is a scaffold placeholder. "
        "Populate it based on your selected frontend stack.\n"
    ),
    ("apps", "backend"): (
        "# Backend app\n\nThis folder is a scaffold placeholder. "
        "Populate it based on your selected backend stack.\n"
    ),
    ("packages", "shared"): (
        "# Shared package\n\nThis folder is a scaffold placeholder for shared types/utilities.\n"
    ),
    ("src", "frontend"): (
        "# Frontend\n\nThis folder is a scaffold placeholder. "
        "Populate it based on your selected frontend stack.\n"
    ),
    ("src", "backend"): (
        "# Backend\n\nThis folder is a scaffold placeholder. "
        "Populate it based on your selected backend stack.\n"
    ),
}


class ScaffoldOp(BaseModel):
    """One planned or applied filesystem operation."""

    op: Literal["mkdir", "write"]
    path: str
    mode: Literal["dry-run", "applied", "skip"]
    reason: Optional[str] = None


def ensure_dir(repo_root: Path, dir_path: Path, apply: bool) -> ScaffoldOp:
    shown = display_path(repo_root, dir_path)
    if dir_path.exists():
        return ScaffoldOp(op="mkdir", path=shown, mode="skip", reason="exists")
    if not apply:
        return ScaffoldOp(op="mkdir", path=shown, mode="dry-run")
    dir_path.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Created directory {dir_path}")
    return ScaffoldOp(op="mkdir", path=shown, mode="applied")


def write_file_if_missing(repo_root: Path, file_path: Path, content: str, apply: bool) -> ScaffoldOp:
    shown = display_path(repo_root, file_path)
    if file_path.exists():
        return ScaffoldOp(op="write", path=shown, mode="skip", reason="exists")
    if not apply:
        return ScaffoldOp(op="write", path=shown, mode="dry-run")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    logger.debug(f"Wrote {file_path}")
    return ScaffoldOp(op="write", path=shown, mode="applied")


def _capability_enabled(blueprint: Dict[str, Any], name: str) -> bool:
    capabilities = blueprint.get("capabilities")
    if not isinstance(capabilities, dict):
        return False
    capability = capabilities.get(name)
    return isinstance(capability, dict) and bool(capability.get("enabled"))


def _placeholder(repo_root: Path, parent: str, child: str, apply: bool) -> List[ScaffoldOp]:
    directory = repo_root / parent / child
    return [
        ensure_dir(repo_root, directory, apply),
        write_file_if_missing(repo_root, directory / "README.md", PLACEHOLDER_READMES[(parent, child)], apply),
    ]


def plan_scaffold(repo_root: Path, blueprint: Dict[str, Any], apply: bool) -> List[ScaffoldOp]:
    """Plan (and optionally create) the layout-specific directory scaffold.

    ``docs/`` is always included. A monorepo gets ``apps/`` and
    ``packages/`` with a shared package; a single repo gets ``src/``.
    Frontend and backend folders follow the enabled capabilities.
    """
    repo = blueprint.get("repo") if isinstance(blueprint.get("repo"), dict) else {}
    frontend = _capability_enabled(blueprint, "frontend")
    backend = _capability_enabled(blueprint, "backend")

    ops = [ensure_dir(repo_root, repo_root / "docs", apply)]

    if repo.get("layout") == "monorepo":
        ops.append(ensure_dir(repo_root, repo_root / "apps", apply))
        ops.append(ensure_dir(repo_root, repo_root / "packages", apply))
        if frontend:
            ops.extend(_placeholder(repo_root, "apps", "frontend", apply))
        if backend:
            ops.extend(_placeholder(repo_root, "apps", "backend", apply))
        ops.extend(_placeholder(repo_root, "packages", "shared", apply))
    else:
        ops.append(ensure_dir(repo_root, repo_root / "src", apply))
        if frontend:
            ops.extend(_placeholder(repo_root, "src", "frontend", apply))
        if backend:
            ops.extend(_placeholder(repo_root, "src", "backend", apply))

    return ops


def seed_init_templates(
    repo_root: Path,
    docs_root: Path,
    blueprint_path: Path,
    apply: bool,
    settings: Optional[InitKitSettings] = None,
) -> List[ScaffoldOp]:
    """Copy the Stage A doc templates and the example blueprint when missing."""
    settings = settings or get_settings()
    templates_root = settings.templates_root

    ops = [ensure_dir(repo_root, docs_root, apply)]

    sources = [
        (templates_root / doc.filename.replace(".md", ".template.md"), docs_root / doc.filename)
        for doc in REQUIRED_DOCS
    ]
    sources.append((templates_root / BLUEPRINT_TEMPLATE, blueprint_path))

    for template_path, target in sources:
        if not template_path.is_file():
            logger.warning(f"Missing template {template_path}")
            ops.append(
                ScaffoldOp(
                    op="write",
                    path=display_path(repo_root, target),
                    mode="skip",
                    reason="missing template",
                )
            )
            continue
        content = template_path.read_text(encoding="utf-8")
        ops.append(write_file_if_missing(repo_root, target, content, apply))

    return ops
