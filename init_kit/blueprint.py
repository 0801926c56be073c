"""Blueprint loading, validation and skill pack recommendation.

The blueprint is an external JSON document owned by the user. It is re-read
on every invocation and only written back by ``suggest-packs --write``.
Validation reports errors (blocking) and warnings (advisory) instead of
raising, so the CLI can show every problem at once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from init_kit.fileio import read_json, write_json_atomic
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

VALID_LAYOUTS = ("single", "monorepo")

PACK_ORDER = ("workflows", "standards", "backend", "frontend")

PACK_PREFIXES: Dict[str, str] = {
    "workflows": "workflows/",
    "standards": "standards/",
    "backend": "backend/",
    "frontend": "frontend/",
}


class BlueprintValidation(BaseModel):
    ok: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    packs: List[str] = Field(default_factory=list)


class PackInstallStatus(BaseModel):
    pack: str
    installed: bool
    reason: Optional[str] = None


class PackSuggestion(BaseModel):
    """Comparison of the blueprint's packs with the recommended set."""

    recommended: List[str]
    current: List[str]
    missing: List[str]
    extra: List[str]
    install_checks: List[PackInstallStatus] = Field(default_factory=list, alias="installChecks")
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


def load_blueprint(path: Path) -> Any:
    """Read the blueprint JSON.

    Raises:
        JsonReadError: If the file is missing or not valid JSON.
    """
    logger.debug(f"Loading blueprint from {path}")
    return read_json(path)


def save_blueprint(path: Path, blueprint: Dict[str, Any]) -> None:
    write_json_atomic(path, blueprint)


def _section(blueprint: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = blueprint.get(key)
    return value if isinstance(value, dict) else {}


def _enabled(capabilities: Dict[str, Any], key: str) -> bool:
    capability = capabilities.get(key)
    return isinstance(capability, dict) and bool(capability.get("enabled"))


def normalize_pack_list(packs: Any) -> List[str]:
    """Clean a pack list into canonical order.

    Non-strings and blank entries are dropped, duplicates removed. Known
    packs come first in ``PACK_ORDER``; unknown packs follow in their
    original order.
    """
    if not isinstance(packs, list):
        return []

    cleaned = [p.strip() for p in packs if isinstance(p, str) and p.strip()]
    ordered = [p for p in PACK_ORDER if p in cleaned]
    for pack in cleaned:
        if pack not in ordered:
            ordered.append(pack)
    return ordered


def validate_blueprint(blueprint: Any) -> BlueprintValidation:
    """Validate a parsed blueprint document."""
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(blueprint, dict):
        return BlueprintValidation(ok=False, errors=["Blueprint must be a JSON object."])

    version = blueprint.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        errors.append("Blueprint.version must be an integer >= 1.")

    project = _section(blueprint, "project")
    for field in ("name", "description"):
        value = project.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"project.{field} is required (string).")

    repo = _section(blueprint, "repo")
    if repo.get("layout") not in VALID_LAYOUTS:
        errors.append(f"repo.layout is required and must be one of: {', '.join(VALID_LAYOUTS)}")
    language = repo.get("language")
    if not isinstance(language, str) or not language.strip():
        errors.append("repo.language is required (string).")

    capabilities = _section(blueprint, "capabilities")
    database = capabilities.get("database")
    if isinstance(database, dict) and database.get("enabled"):
        if not isinstance(database.get("kind"), str) or not database.get("kind"):
            warnings.append("capabilities.database.enabled=true but capabilities.database.kind is missing.")
    api = capabilities.get("api")
    if isinstance(api, dict) and api.get("style") is not None and not isinstance(api.get("style"), str):
        warnings.append("capabilities.api.style should be a string.")
    bpmn = capabilities.get("bpmn")
    if isinstance(bpmn, dict) and not isinstance(bpmn.get("enabled"), bool):
        warnings.append("capabilities.bpmn.enabled should be boolean when present.")

    skills = _section(blueprint, "skills")
    raw_packs = skills.get("packs")
    if raw_packs is not None:
        if not isinstance(raw_packs, list) or not all(isinstance(p, str) for p in raw_packs):
            errors.append("skills.packs must be an array of strings when present.")

    packs = normalize_pack_list(raw_packs)
    if "workflows" not in packs:
        warnings.append('skills.packs does not include "workflows". This is usually required.')
    if "standards" not in packs:
        warnings.append('skills.packs does not include "standards". This is usually recommended.')

    return BlueprintValidation(ok=not errors, errors=errors, warnings=warnings, packs=packs)


def recommended_packs(blueprint: Dict[str, Any]) -> List[str]:
    """Packs the blueprint's capabilities call for, in canonical order."""
    capabilities = _section(blueprint, "capabilities")
    recommended = {"workflows", "standards"}
    if _enabled(capabilities, "backend"):
        recommended.add("backend")
    if _enabled(capabilities, "frontend"):
        recommended.add("frontend")
    return [p for p in PACK_ORDER if p in recommended]


def check_pack_install(
    repo_root: Path, pack: str, settings: Optional[InitKitSettings] = None
) -> PackInstallStatus:
    """Check whether the skills directory for ``pack`` exists."""
    settings = settings or get_settings()
    prefix = PACK_PREFIXES.get(pack)
    if prefix is None:
        return PackInstallStatus(pack=pack, installed=False, reason="unknown-pack")

    pack_dir = settings.skills_path(repo_root) / prefix.rstrip("/")
    if not pack_dir.exists():
        return PackInstallStatus(
            pack=pack,
            installed=False,
            reason=f"missing {Path(settings.skills_dir, prefix.rstrip('/')).as_posix()}",
        )
    return PackInstallStatus(pack=pack, installed=True)


def current_packs(blueprint: Dict[str, Any]) -> List[str]:
    return normalize_pack_list(_section(blueprint, "skills").get("packs"))


def suggest_packs(
    repo_root: Path, blueprint: Dict[str, Any], settings: Optional[InitKitSettings] = None
) -> PackSuggestion:
    """Compare the blueprint's packs against the recommended set."""
    recommended = recommended_packs(blueprint)
    current = current_packs(blueprint)
    missing = [p for p in recommended if p not in current]
    extra = [p for p in current if p not in recommended]

    checks = [check_pack_install(repo_root, pack, settings) for pack in recommended]
    warnings = [
        f'Recommended pack "{check.pack}" is not installed ({check.reason}).'
        for check in checks
        if not check.installed
    ]
    if missing:
        warnings.append(f"Blueprint skills.packs is missing recommended packs: {', '.join(missing)}")

    return PackSuggestion(
        recommended=recommended,
        current=current,
        missing=missing,
        extra=extra,
        install_checks=checks,
        warnings=warnings,
    )


def add_missing_packs(blueprint: Dict[str, Any], missing: List[str]) -> Dict[str, Any]:
    """Add ``missing`` packs to ``skills.packs``. Existing packs are kept."""
    skills = blueprint.get("skills")
    if not isinstance(skills, dict):
        skills = {}
        blueprint["skills"] = skills
    skills["packs"] = normalize_pack_list(current_packs(blueprint) + list(missing))
    return blueprint
