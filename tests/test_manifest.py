"""Tests for the skill sync manifest updater."""

import json

import pytest

from init_kit.errors import JsonReadError
from init_kit.manifest import migrate_manifest, update_manifest


def _manifest_path(repo):
    return repo / ".ai" / "skills" / "_meta" / "sync-manifest.json"


def _write_manifest(repo, data):
    path = _manifest_path(repo)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestMigrateManifest:
    def test_lifts_collections_current(self):
        raw = {
            "version": 1,
            "collections": {
                "current": {
                    "includePrefixes": ["workflows/"],
                    "excludePrefixes": ["workflows/agent/"],
                    "excludeSkillNames": ["legacy-skill"],
                }
            },
        }

        manifest, warnings = migrate_manifest(raw)

        assert manifest["includePrefixes"] == ["workflows/"]
        assert manifest["excludePrefixes"] == ["workflows/agent/"]
        assert manifest["excludeSkillNames"] == ["legacy-skill"]
        assert manifest["includeSkills"] == []
        assert len(warnings) == 3

    def test_legacy_exclude_skills_key(self):
        manifest, _ = migrate_manifest({"version": 1, "excludeSkills": ["old"]})

        assert manifest["excludeSkillNames"] == ["old"]
        assert "excludeSkills" not in manifest

    def test_is_idempotent(self):
        once, _ = migrate_manifest({"excludeSkills": ["old"], "collections": {"current": {"includePrefixes": ["x/"]}}})
        twice, warnings = migrate_manifest(once)

        assert once == twice
        assert warnings == []


class TestUpdateManifest:
    """Tests for update_manifest()."""

    def test_creates_manifest_from_packs(self, repo, blueprint):
        result = update_manifest(repo, blueprint, apply=True)

        written = json.loads(_manifest_path(repo).read_text(encoding="utf-8"))
        assert written["includePrefixes"] == ["workflows/", "standards/", "backend/", "frontend/"]
        assert written["excludePrefixes"] == []
        assert written["excludeSkillNames"] == []
        assert written["version"] == 1
        assert result.mode == "applied"
        assert result.path == ".ai/skills/_meta/sync-manifest.json"

    def test_dry_run_does_not_write(self, repo, blueprint):
        result = update_manifest(repo, blueprint, apply=False)

        assert result.mode == "dry-run"
        assert result.include_prefixes == ["workflows/", "standards/", "backend/", "frontend/"]
        assert not _manifest_path(repo).exists()

    def test_unknown_pack_is_dropped_with_warning(self, repo, blueprint):
        blueprint["skills"]["packs"] = ["workflows", "mystery"]

        result = update_manifest(repo, blueprint, apply=True)

        assert result.include_prefixes == ["workflows/"]
        assert any('"mystery"' in w for w in result.warnings)

    def test_blueprint_excludes_override(self, repo, blueprint):
        _write_manifest(repo, {"version": 1, "excludePrefixes": ["old/"], "excludeSkillNames": ["old"]})
        blueprint["skills"]["excludePrefixes"] = ["workflows/agent/", "workflows/agent/"]
        blueprint["skills"]["excludeSkillNames"] = ["heavy-skill"]

        update_manifest(repo, blueprint, apply=True)

        written = json.loads(_manifest_path(repo).read_text(encoding="utf-8"))
        assert written["excludePrefixes"] == ["workflows/agent/"]
        assert written["excludeSkillNames"] == ["heavy-skill"]

    def test_legacy_blueprint_exclude_key(self, repo, blueprint):
        blueprint["skills"]["excludeSkills"] = ["legacy"]

        result = update_manifest(repo, blueprint, apply=True)

        assert result.exclude_skill_names == ["legacy"]

    def test_existing_excludes_kept_when_blueprint_silent(self, repo, blueprint):
        _write_manifest(repo, {"version": 1, "excludePrefixes": ["keep/"], "excludeSkillNames": ["keep-me"]})

        update_manifest(repo, blueprint, apply=True)

        written = json.loads(_manifest_path(repo).read_text(encoding="utf-8"))
        assert written["excludePrefixes"] == ["keep/"]
        assert written["excludeSkillNames"] == ["keep-me"]

    def test_unknown_keys_preserved(self, repo, blueprint):
        _write_manifest(repo, {"version": 1, "notes": "hand-written", "includeSkills": ["extra-skill"]})

        update_manifest(repo, blueprint, apply=True)

        written = json.loads(_manifest_path(repo).read_text(encoding="utf-8"))
        assert written["notes"] == "hand-written"
        assert written["includeSkills"] == ["extra-skill"]

    def test_unreadable_manifest_raises(self, repo, blueprint):
        path = _manifest_path(repo)
        path.parent.mkdir(parents=True)
        path.write_text("not json", encoding="utf-8")

        with pytest.raises(JsonReadError):
            update_manifest(repo, blueprint, apply=True)
