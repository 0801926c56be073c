"""Destructive end-of-pipeline operations.

- ``archive_init_artifacts`` copies Stage A docs and the blueprint into the
  permanent docs tree before the bootstrap kit is removed.
- ``cleanup_init`` removes the bootstrap directory, but only when it carries
  the kit's marker file.
- ``prune_agent_builder`` removes the optional agent builder workflow.

Callers are responsible for the ``--i-understand`` acknowledgement; these
functions enforce the filesystem-side guards only.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from init_kit.docs_check import REQUIRED_DOCS
from init_kit.fileio import display_path
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

TRASH_PREFIX = ".init-trash-"
ARCHIVED_BLUEPRINT_NAME = "project-blueprint.json"


class CleanupResult(BaseModel):
    op: Literal["skip", "refuse", "rm"]
    path: str
    mode: Optional[Literal["dry-run", "applied", "partial"]] = None
    reason: Optional[str] = None
    note: Optional[str] = None


class CopyAction(BaseModel):
    op: Literal["copy"] = "copy"
    src: str
    dest: str
    mode: Literal["dry-run", "applied", "skip", "failed"]
    reason: Optional[str] = None
    error: Optional[str] = None


class ArchiveResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    op: Literal["archive"] = "archive"
    mode: Literal["dry-run", "applied"]
    target_root: str = Field(alias="targetRoot")
    actions: List[CopyAction] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class PruneResult(BaseModel):
    op: Literal["skip", "rm"]
    path: str
    mode: Optional[Literal["dry-run", "applied", "failed"]] = None
    reason: Optional[str] = None
    error: Optional[str] = None


def _trash_name() -> str:
    stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-")
    return f"{TRASH_PREFIX}{stamp}"


def cleanup_init(repo_root: Path, apply: bool, settings: Optional[InitKitSettings] = None) -> CleanupResult:
    """Remove the bootstrap directory when it carries the kit's marker.

    The directory is renamed to a trash name first and then deleted. If the
    delete fails, the trash directory is left behind and the result is
    ``partial``.
    """
    settings = settings or get_settings()
    init_dir = settings.bootstrap_path(repo_root)
    marker = settings.marker_path(repo_root)
    shown = display_path(repo_root, init_dir)

    if not init_dir.exists():
        return CleanupResult(op="skip", path=shown, reason=f"{settings.bootstrap_dir}/ not present")
    if not marker.exists():
        logger.warning(f"Refusing to remove {init_dir}: marker {marker.name} is missing")
        return CleanupResult(
            op="refuse",
            path=shown,
            reason=f"missing {settings.bootstrap_dir}/{settings.marker_file} marker",
        )

    trash_dir = repo_root / _trash_name()
    if not apply:
        return CleanupResult(
            op="rm",
            path=shown,
            mode="dry-run",
            note=f"will move to {trash_dir.name} then delete",
        )

    init_dir.rename(trash_dir)
    try:
        shutil.rmtree(trash_dir)
    except OSError as e:
        logger.warning(f"Could not delete {trash_dir}: {e}")
        return CleanupResult(
            op="rm",
            path=shown,
            mode="partial",
            note=f"renamed to {trash_dir.name} but could not delete automatically: {e}",
        )
    return CleanupResult(op="rm", path=shown, mode="applied")


def archive_init_artifacts(
    repo_root: Path,
    docs_root: Path,
    blueprint_path: Path,
    archive_docs: bool,
    archive_blueprint: bool,
    apply: bool,
    settings: Optional[InitKitSettings] = None,
) -> ArchiveResult:
    """Copy Stage A docs and/or the blueprint into the archive directory.

    Every source is checked before anything is copied, so a missing input
    leaves the archive untouched. Existing archive files are overwritten.
    """
    settings = settings or get_settings()
    target_root = settings.archive_path(repo_root)

    pairs = []
    if archive_docs:
        pairs.extend((docs_root / doc.filename, target_root / doc.filename, "doc") for doc in REQUIRED_DOCS)
    if archive_blueprint:
        pairs.append((blueprint_path, target_root / ARCHIVED_BLUEPRINT_NAME, "blueprint"))

    result = ArchiveResult(
        mode="applied" if apply else "dry-run",
        target_root=display_path(repo_root, target_root),
    )

    missing = [src for src, _, _ in pairs if not src.is_file()]
    for src, dest, kind in pairs:
        action = CopyAction(
            src=display_path(repo_root, src),
            dest=display_path(repo_root, dest),
            mode="dry-run",
        )
        if src in missing:
            action.mode = "skip"
            action.reason = "missing source"
            label = "Stage A doc" if kind == "doc" else "blueprint"
            result.errors.append(f"Missing {label}: {action.src}")
        result.actions.append(action)

    if missing or not apply:
        return result

    for action, (src, dest, kind) in zip(result.actions, pairs):
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)
            action.mode = "applied"
        except OSError as e:
            action.mode = "failed"
            action.error = str(e)
            result.errors.append(f"Failed to archive {kind}: {action.src} ({e})")

    return result


def prune_agent_builder(repo_root: Path, apply: bool, settings: Optional[InitKitSettings] = None) -> PruneResult:
    """Remove the optional agent builder workflow directory."""
    settings = settings or get_settings()
    agent_dir = settings.agent_builder_path(repo_root)
    shown = display_path(repo_root, agent_dir)

    if not agent_dir.exists():
        return PruneResult(op="skip", path=shown, reason="agent workflow not present")
    if not apply:
        return PruneResult(op="rm", path=shown, mode="dry-run")

    try:
        shutil.rmtree(agent_dir)
    except OSError as e:
        logger.error(f"Failed to remove {agent_dir}: {e}")
        return PruneResult(op="rm", path=shown, mode="failed", error=str(e))
    return PruneResult(op="rm", path=shown, mode="applied")
