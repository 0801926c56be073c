"""Project README generation from the blueprint.

The kit ships ``README.template.md`` carrying a marker comment. A repository
README is only (re)generated while it is missing or still carries that
marker; once a human edits the README and drops the marker it is left alone.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel

from init_kit.fileio import display_path
from init_kit.settings import get_settings

logger = logging.getLogger(__name__)

README_TEMPLATE = "README.template.md"
TEMPLATE_MARKER = "<!-- init-kit:readme-template -->"

INSTALL_COMMANDS = {
    "pnpm": "pnpm install",
    "npm": "npm install",
    "yarn": "yarn",
    "pip": "pip install -r requirements.txt",
    "poetry": "poetry install",
    "go": "go mod download",
}

DEV_COMMANDS = {
    "pnpm": "pnpm dev",
    "npm": "npm run dev",
    "yarn": "yarn dev",
    "pip": "python main.py",
    "poetry": "poetry run python main.py",
    "go": "go run .",
}

TEST_COMMANDS = {
    "pnpm": "pnpm test",
    "npm": "npm test",
    "yarn": "yarn test",
    "pip": "pytest",
    "poetry": "poetry run pytest",
    "go": "go test ./...",
}

MONOREPO_STRUCTURE = """\
├── apps/
│   ├── frontend/       # Frontend application
│   └── backend/        # Backend services
├── packages/
│   └── shared/         # Shared libraries
├── .ai/skills/         # AI skills (SSOT)
├── docs/               # Documentation
└── ops/                # DevOps configuration"""

SINGLE_STRUCTURE = """\
├── src/
│   ├── frontend/       # Frontend code
│   └── backend/        # Backend code
├── .ai/skills/         # AI skills (SSOT)
├── docs/               # Documentation
└── ops/                # DevOps configuration"""

_LEFTOVER_BLOCK = re.compile(r"\{\{#(\w+)\}\}.*?\{\{/\1\}\}", re.DOTALL)
_LEFTOVER_TOKEN = re.compile(r"\{\{\w+\}\}")
_BLANK_RUNS = re.compile(r"\n{3,}")


class ReadmeResult(BaseModel):
    op: Literal["write", "skip"]
    path: str
    mode: Literal["dry-run", "applied", "skip"]
    reason: Optional[str] = None


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _replace(template: str, key: str, value: str) -> str:
    return template.replace("{{" + key + "}}", value)


def _conditional(template: str, key: str, value: Any, show: bool) -> str:
    """Keep ``{{#KEY}}...{{/KEY}}`` blocks (with ``{{KEY}}`` filled) or drop them."""
    pattern = re.compile(r"\{\{#" + key + r"\}\}(.*?)\{\{/" + key + r"\}\}", re.DOTALL)
    if show and value:
        return pattern.sub(lambda m: _replace(m.group(1), key, str(value)), template)
    return pattern.sub("", template)


def render_readme(template: str, blueprint: Dict[str, Any]) -> str:
    """Fill the README template from the blueprint."""
    project = _section(blueprint, "project")
    repo = _section(blueprint, "repo")
    caps = _section(blueprint, "capabilities")
    frontend = _section(caps, "frontend")
    backend = _section(caps, "backend")
    database = _section(caps, "database")
    api = _section(caps, "api")

    language = repo.get("language") or "typescript"
    package_manager = repo.get("packageManager") or "pnpm"

    text = template.replace(TEMPLATE_MARKER + "\n", "").replace(TEMPLATE_MARKER, "")

    text = _replace(text, "PROJECT_NAME", project.get("name") or "my-project")
    text = _replace(text, "PROJECT_DESCRIPTION", project.get("description") or "Project description")
    text = _replace(text, "LANGUAGE", language)
    text = _replace(text, "PACKAGE_MANAGER", package_manager)
    text = _replace(text, "REPO_LAYOUT", repo.get("layout") or "single")

    text = _conditional(text, "DOMAIN", project.get("domain"), bool(project.get("domain")))
    text = _conditional(text, "FRONTEND_FRAMEWORK", frontend.get("framework"), bool(frontend.get("enabled")))
    text = _conditional(text, "BACKEND_FRAMEWORK", backend.get("framework"), bool(backend.get("enabled")))
    text = _conditional(text, "DATABASE_KIND", database.get("kind"), bool(database.get("enabled")))
    text = _conditional(text, "API_STYLE", api.get("style"), bool(api.get("style")))

    text = _conditional(text, "IS_NODE", "true", language in ("typescript", "javascript"))
    text = _conditional(text, "IS_PYTHON", "true", language == "python")
    text = _conditional(text, "IS_GO", "true", language == "go")

    text = _replace(text, "INSTALL_COMMAND", INSTALL_COMMANDS.get(package_manager, INSTALL_COMMANDS["pnpm"]))
    text = _replace(text, "DEV_COMMAND", DEV_COMMANDS.get(package_manager, DEV_COMMANDS["pnpm"]))
    text = _replace(text, "TEST_COMMAND", TEST_COMMANDS.get(package_manager, TEST_COMMANDS["pnpm"]))

    structure = MONOREPO_STRUCTURE if repo.get("layout") == "monorepo" else SINGLE_STRUCTURE
    text = _replace(text, "PROJECT_STRUCTURE", structure)

    text = _LEFTOVER_BLOCK.sub("", text)
    text = _LEFTOVER_TOKEN.sub("", text)
    return _BLANK_RUNS.sub("\n\n", text)


def generate_project_readme(
    repo_root: Path,
    blueprint: Dict[str, Any],
    apply: bool,
    templates_root: Optional[Path] = None,
) -> ReadmeResult:
    """Write ``README.md`` from the template unless it has been customized."""
    templates_root = templates_root or get_settings().templates_root
    readme_path = repo_root / "README.md"
    template_path = templates_root / README_TEMPLATE
    shown = display_path(repo_root, readme_path)

    if not template_path.is_file():
        return ReadmeResult(op="skip", path=shown, mode="skip", reason="template not found")

    if readme_path.exists():
        existing = readme_path.read_text(encoding="utf-8", errors="replace")
        if TEMPLATE_MARKER not in existing:
            return ReadmeResult(op="skip", path=shown, mode="skip", reason="customized")

    rendered = render_readme(template_path.read_text(encoding="utf-8"), blueprint)
    if not apply:
        return ReadmeResult(op="write", path=shown, mode="dry-run")

    readme_path.write_text(rendered, encoding="utf-8")
    logger.debug(f"Generated {readme_path}")
    return ReadmeResult(op="write", path=shown, mode="applied")
