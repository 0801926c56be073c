"""Root config file generation from per-language template sets.

Template sets live under ``<templates_root>/scaffold-configs/<set>/`` as
``*.template`` files. Each one renders to a file of the same name (minus the
suffix) at the repository root. Existing files are never overwritten.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel

from init_kit.settings import get_settings

logger = logging.getLogger(__name__)

CONFIG_TEMPLATES_SUBDIR = "scaffold-configs"
TEMPLATE_SUFFIX = ".template"

TEMPLATE_SETS: Dict[str, str] = {
    "typescript-pnpm": "typescript-pnpm",
    "typescript-npm": "typescript-pnpm",
    "typescript-yarn": "typescript-pnpm",
    "javascript-pnpm": "typescript-pnpm",
    "javascript-npm": "typescript-pnpm",
    "typescript": "typescript-pnpm",
    "javascript": "typescript-pnpm",
    "go-go": "go",
    "go": "go",
    "cpp-xmake": "cpp-xmake",
    "c-xmake": "cpp-xmake",
    "cpp": "cpp-xmake",
    "c": "cpp-xmake",
    "python-pip": "python-pip",
    "python-poetry": "python-pip",
    "python": "python-pip",
    "react-native": "react-native-typescript",
}

MONOREPO_ONLY_FILES = frozenset({"pnpm-workspace.yaml", "pnpm-workspace.yml", "go.work"})

TOKEN_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")


class ConfigFileResult(BaseModel):
    file: str
    action: Literal["write", "skip", "error"]
    mode: Optional[Literal["dry-run", "applied", "skip"]] = None
    reason: Optional[str] = None


def resolve_template_dir(templates_root: Path, language: str, package_manager: str) -> Optional[Path]:
    """Find the template set for a language/package-manager pair.

    ``<language>-<packageManager>`` is tried first, then ``<language>``.
    Returns None when no set is mapped or the mapped directory is missing.
    """
    language = language.lower()
    package_manager = package_manager.lower()
    name = TEMPLATE_SETS.get(f"{language}-{package_manager}") or TEMPLATE_SETS.get(language)
    if name is None:
        return None
    template_dir = templates_root / CONFIG_TEMPLATES_SUBDIR / name
    return template_dir if template_dir.is_dir() else None


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_stringify(item) for item in value)
    return str(value)


def flatten_blueprint(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten nested mappings into dot-separated keys with string values."""
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_blueprint(value, full_key))
        else:
            flat[full_key] = _stringify(value)
    return flat


def render_template(text: str, variables: Mapping[str, str]) -> str:
    """Replace ``{{key.path}}`` tokens in a single pass.

    Unknown keys render as an empty string. Substituted values are not
    scanned again, so a value containing ``{{...}}`` is emitted literally.
    """
    return TOKEN_PATTERN.sub(lambda match: variables.get(match.group(1), ""), text)


def generate_config_files(
    repo_root: Path,
    blueprint: Dict[str, Any],
    apply: bool,
    templates_root: Optional[Path] = None,
) -> List[ConfigFileResult]:
    """Render the matching template set into the repository root."""
    templates_root = templates_root or get_settings().templates_root
    repo = blueprint.get("repo") if isinstance(blueprint.get("repo"), dict) else {}
    language = str(repo.get("language") or "typescript").lower()
    package_manager = str(repo.get("packageManager") or "pnpm").lower()
    layout = repo.get("layout") or "single"

    template_dir = resolve_template_dir(templates_root, language, package_manager)
    if template_dir is None:
        return [
            ConfigFileResult(
                file="(none)",
                action="skip",
                mode="skip",
                reason=f"no templates for {language}-{package_manager}",
            )
        ]

    try:
        template_files = sorted(p for p in template_dir.iterdir() if p.name.endswith(TEMPLATE_SUFFIX))
    except OSError as e:
        return [ConfigFileResult(file=str(template_dir), action="error", reason=str(e))]

    variables = flatten_blueprint(blueprint)
    results: List[ConfigFileResult] = []

    for template_path in template_files:
        target_name = template_path.name[: -len(TEMPLATE_SUFFIX)]
        target_path = repo_root / target_name

        if target_name in MONOREPO_ONLY_FILES and layout != "monorepo":
            results.append(ConfigFileResult(file=target_name, action="skip", mode="skip", reason="not monorepo"))
            continue

        if target_path.exists():
            results.append(ConfigFileResult(file=target_name, action="skip", mode="skip", reason="exists"))
            continue

        rendered = render_template(template_path.read_text(encoding="utf-8"), variables)
        if apply:
            target_path.write_text(rendered, encoding="utf-8")
            logger.debug(f"Generated {target_path} from {template_path.name}")
            results.append(ConfigFileResult(file=target_name, action="write", mode="applied"))
        else:
            results.append(ConfigFileResult(file=target_name, action="write", mode="dry-run"))

    return results
