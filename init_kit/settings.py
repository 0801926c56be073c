"""
Typed settings for the init pipeline using pydantic-settings.

Every path the pipeline touches is expressed relative to the repository root
so that a single ``--repo-root`` flag relocates the whole run. Values can be
overridden through ``INIT_KIT_*`` environment variables or a ``.env`` file.

Usage:
    from init_kit.settings import get_settings

    settings = get_settings()
    state_file = settings.bootstrap_path(repo_root) / settings.state_file
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_TEMPLATES_DIR = Path(__file__).parent / "templates"


class InitKitSettings(BaseSettings):
    """Locations and tunables for the bootstrap pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INIT_KIT_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Bootstrap kit layout (relative to the repo root)
    bootstrap_dir: str = Field(default="init", description="Bootstrap kit directory")
    state_file: str = Field(default=".init-state.json", description="State file inside the bootstrap dir")
    marker_file: str = Field(default=".init-kit", description="Provenance marker inside the bootstrap dir")
    blueprint_file: str = Field(default="project-blueprint.json", description="Default blueprint inside the bootstrap dir")
    docs_dir: str = Field(default="stage-a-docs", description="Stage A docs inside the bootstrap dir")

    # Repository locations (relative to the repo root)
    archive_dir: str = Field(default="docs/project", description="Permanent home for archived Stage A artifacts")
    skills_dir: str = Field(default=".ai/skills", description="Canonical skills root")
    manifest_file: str = Field(default=".ai/skills/_meta/sync-manifest.json", description="Skill sync manifest")
    agent_builder_dir: str = Field(default=".ai/skills/workflows/agent", description="Optional agent builder workflow")

    # Wrapper sync collaborator
    sync_script: str = Field(default=".ai/scripts/sync-skills.mjs", description="Wrapper sync script")
    sync_executable: str = Field(default="node", description="Interpreter used to run the sync script")

    # Templates
    templates_dir: Optional[Path] = Field(default=None, description="Override for the packaged templates")

    # Logging / telemetry
    log_level: str = Field(default="WARNING", description="Root log level for the CLI")
    logfire_token: Optional[SecretStr] = Field(default=None, alias="LOGFIRE_TOKEN")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    def bootstrap_path(self, repo_root: Path) -> Path:
        return repo_root / self.bootstrap_dir

    def state_path(self, repo_root: Path) -> Path:
        return self.bootstrap_path(repo_root) / self.state_file

    def marker_path(self, repo_root: Path) -> Path:
        return self.bootstrap_path(repo_root) / self.marker_file

    def default_blueprint_path(self, repo_root: Path) -> Path:
        return self.bootstrap_path(repo_root) / self.blueprint_file

    def default_docs_root(self, repo_root: Path) -> Path:
        return self.bootstrap_path(repo_root) / self.docs_dir

    def archive_path(self, repo_root: Path) -> Path:
        return repo_root / self.archive_dir

    def skills_path(self, repo_root: Path) -> Path:
        return repo_root / self.skills_dir

    def manifest_path(self, repo_root: Path) -> Path:
        return repo_root / self.manifest_file

    def agent_builder_path(self, repo_root: Path) -> Path:
        return repo_root / self.agent_builder_dir

    def sync_script_path(self, repo_root: Path) -> Path:
        return repo_root / self.sync_script

    @property
    def templates_root(self) -> Path:
        """Packaged templates unless overridden via INIT_KIT_TEMPLATES_DIR."""
        return self.templates_dir or PACKAGE_TEMPLATES_DIR


@lru_cache(maxsize=1)
def get_settings() -> InitKitSettings:
    """Get the cached settings singleton.

    The settings are loaded once and cached for the process lifetime.
    To reload, call clear_settings_cache() first.
    """
    return InitKitSettings()


def clear_settings_cache() -> None:
    """Clear the cached settings instance.

    Call this if environment variables or .env files have changed.
    """
    get_settings.cache_clear()
