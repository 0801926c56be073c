"""Skill sync manifest maintenance.

The manifest tells the wrapper sync script which skills to copy into the
provider directories. The blueprint's packs decide ``includePrefixes``;
exclusions come from the blueprint when it sets them and are otherwise
left as they are. Keys this module does not manage are preserved.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from init_kit.blueprint import PACK_PREFIXES, current_packs
from init_kit.errors import JsonReadError
from init_kit.fileio import display_path, read_json, write_json_atomic
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1
LIST_KEYS = ("includePrefixes", "includeSkills", "excludePrefixes", "excludeSkillNames")
LEGACY_EXCLUDE_KEY = "excludeSkills"


class ManifestResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    op: Literal["write"] = "write"
    path: str
    mode: Literal["dry-run", "applied"]
    include_prefixes: List[str] = Field(default_factory=list, alias="includePrefixes")
    exclude_prefixes: List[str] = Field(default_factory=list, alias="excludePrefixes")
    exclude_skill_names: List[str] = Field(default_factory=list, alias="excludeSkillNames")
    warnings: List[str] = Field(default_factory=list)


def _unique(items: List[Any]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if isinstance(item, str) and item not in seen:
            seen.append(item)
    return seen


def default_manifest() -> Dict[str, Any]:
    manifest: Dict[str, Any] = {"version": MANIFEST_VERSION}
    manifest.update({key: [] for key in LIST_KEYS})
    return manifest


def migrate_manifest(raw: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Bring an older manifest into the flat shape the sync script reads.

    ``collections.current`` lists are lifted to the top level when the
    top-level key is absent, and the legacy ``excludeSkills`` key becomes
    ``excludeSkillNames``. Idempotent; the input is not modified.
    """
    manifest = dict(raw)
    warnings: List[str] = []

    collections = manifest.get("collections")
    legacy_current = collections.get("current") if isinstance(collections, dict) else None
    if isinstance(legacy_current, dict):
        for key in ("includePrefixes", "excludePrefixes", "excludeSkillNames"):
            if not isinstance(manifest.get(key), list) and isinstance(legacy_current.get(key), list):
                manifest[key] = list(legacy_current[key])
                warnings.append(f"Migrated manifest collections.current.{key} to top-level {key}.")

    if LEGACY_EXCLUDE_KEY in manifest:
        legacy = manifest.pop(LEGACY_EXCLUDE_KEY)
        if not isinstance(manifest.get("excludeSkillNames"), list) and isinstance(legacy, list):
            manifest["excludeSkillNames"] = list(legacy)
            warnings.append(f"Migrated manifest {LEGACY_EXCLUDE_KEY} to excludeSkillNames.")

    manifest.setdefault("version", MANIFEST_VERSION)
    for key in LIST_KEYS:
        if not isinstance(manifest.get(key), list):
            manifest[key] = []

    return manifest, warnings


def load_manifest(path: Path) -> Dict[str, Any]:
    """Read the manifest, or return an empty one when it does not exist yet."""
    if not path.exists():
        return default_manifest()
    raw = read_json(path)
    if not isinstance(raw, dict):
        raise JsonReadError(path, "Manifest must be a JSON object.")
    return raw


def _blueprint_excludes(blueprint: Dict[str, Any]) -> Tuple[Optional[List[Any]], Optional[List[Any]]]:
    skills = blueprint.get("skills") if isinstance(blueprint.get("skills"), dict) else {}
    prefixes = skills.get("excludePrefixes")
    names = skills.get("excludeSkillNames")
    if not isinstance(names, list):
        names = skills.get(LEGACY_EXCLUDE_KEY)
    return (
        prefixes if isinstance(prefixes, list) else None,
        names if isinstance(names, list) else None,
    )


def update_manifest(
    repo_root: Path,
    blueprint: Dict[str, Any],
    apply: bool,
    settings: Optional[InitKitSettings] = None,
) -> ManifestResult:
    """Align the manifest's include/exclude lists with the blueprint."""
    settings = settings or get_settings()
    path = settings.manifest_path(repo_root)

    manifest, warnings = migrate_manifest(load_manifest(path))
    for warning in warnings:
        logger.info(warning)

    include_prefixes: List[str] = []
    for pack in current_packs(blueprint):
        prefix = PACK_PREFIXES.get(pack)
        if prefix is None:
            warnings.append(f'Unknown pack "{pack}" (no prefix mapping). Ignoring for manifest.includePrefixes.')
            continue
        include_prefixes.append(prefix)
    manifest["includePrefixes"] = _unique(include_prefixes)

    exclude_prefixes, exclude_names = _blueprint_excludes(blueprint)
    if exclude_prefixes is not None:
        manifest["excludePrefixes"] = _unique(exclude_prefixes)
    if exclude_names is not None:
        manifest["excludeSkillNames"] = _unique(exclude_names)

    if apply:
        write_json_atomic(path, manifest)
        logger.debug(f"Updated manifest {path}")

    return ManifestResult(
        path=display_path(repo_root, path),
        mode="applied" if apply else "dry-run",
        include_prefixes=manifest["includePrefixes"],
        exclude_prefixes=_unique(manifest["excludePrefixes"]),
        exclude_skill_names=_unique(manifest["excludeSkillNames"]),
        warnings=warnings,
    )
