"""Tests for the pydantic-settings based configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from init_kit.settings import (
    PACKAGE_TEMPLATES_DIR,
    InitKitSettings,
    clear_settings_cache,
    get_settings,
)


class TestInitKitSettings:
    """Tests for InitKitSettings defaults and overrides."""

    def test_default_paths(self, repo):
        settings = InitKitSettings()

        assert settings.bootstrap_path(repo) == repo / "init"
        assert settings.state_path(repo) == repo / "init" / ".init-state.json"
        assert settings.marker_path(repo) == repo / "init" / ".init-kit"
        assert settings.default_blueprint_path(repo) == repo / "init" / "project-blueprint.json"
        assert settings.default_docs_root(repo) == repo / "init" / "stage-a-docs"
        assert settings.archive_path(repo) == repo / "docs" / "project"
        assert settings.manifest_path(repo) == repo / ".ai" / "skills" / "_meta" / "sync-manifest.json"
        assert settings.sync_script_path(repo) == repo / ".ai" / "scripts" / "sync-skills.mjs"

    def test_env_override(self, monkeypatch, repo):
        monkeypatch.setenv("INIT_KIT_BOOTSTRAP_DIR", "bootstrap")

        settings = InitKitSettings()

        assert settings.state_path(repo) == repo / "bootstrap" / ".init-state.json"

    def test_templates_root_defaults_to_package(self):
        assert InitKitSettings().templates_root == PACKAGE_TEMPLATES_DIR

    def test_templates_root_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("INIT_KIT_TEMPLATES_DIR", str(tmp_path))
        assert InitKitSettings().templates_root == Path(tmp_path)

    def test_log_level_is_normalized(self):
        assert InitKitSettings(log_level=" debug ").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            InitKitSettings(log_level="chatty")

    def test_logfire_token_alias(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_TOKEN", "secret-token")

        settings = InitKitSettings()

        assert settings.logfire_token.get_secret_value() == "secret-token"
        assert "secret-token" not in repr(settings)

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("INIT_KIT_ARCHIVE_DIR=docs/archive\n", encoding="utf-8")

        assert InitKitSettings().archive_dir == "docs/archive"


class TestGetSettings:
    def test_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_cache_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("INIT_KIT_DOCS_DIR", "docs-a")

        assert get_settings().docs_dir == first.docs_dir
        clear_settings_cache()
        assert get_settings().docs_dir == "docs-a"
