"""Tests for blueprint validation and pack recommendation."""

import pytest

from init_kit.blueprint import (
    add_missing_packs,
    check_pack_install,
    load_blueprint,
    normalize_pack_list,
    recommended_packs,
    suggest_packs,
    validate_blueprint,
)
from init_kit.errors import JsonReadError


class TestValidateBlueprint:
    """Tests for validate_blueprint()."""

    def test_valid_blueprint_has_no_errors_or_warnings(self, blueprint):
        result = validate_blueprint(blueprint)

        assert result.ok is True
        assert result.errors == []
        assert result.warnings == []
        assert result.packs == ["workflows", "standards", "backend", "frontend"]

    def test_minimal_blueprint_with_core_packs_is_clean(self):
        bp = {
            "version": 1,
            "project": {"name": "demo", "description": "A demo"},
            "repo": {"layout": "single", "language": "typescript"},
            "skills": {"packs": ["workflows", "standards"]},
        }

        result = validate_blueprint(bp)

        assert result.ok is True
        assert result.warnings == []

    def test_missing_packs_warn_for_workflows_and_standards(self):
        bp = {
            "version": 1,
            "project": {"name": "demo", "description": "A demo"},
            "repo": {"layout": "single", "language": "typescript"},
        }

        result = validate_blueprint(bp)

        assert result.ok is True
        assert len(result.warnings) == 2
        assert any('"workflows"' in w for w in result.warnings)
        assert any('"standards"' in w for w in result.warnings)

    def test_missing_name_and_description(self, blueprint):
        blueprint["project"] = {}

        result = validate_blueprint(blueprint)

        assert result.ok is False
        assert any("project.name" in e for e in result.errors)
        assert any("project.description" in e for e in result.errors)

    def test_empty_name_is_an_error(self, blueprint):
        blueprint["project"]["name"] = "   "
        result = validate_blueprint(blueprint)
        assert any("project.name" in e for e in result.errors)

    @pytest.mark.parametrize("version", [0, -1, "1", 1.5, True, None])
    def test_bad_version(self, blueprint, version):
        blueprint["version"] = version
        result = validate_blueprint(blueprint)
        assert result.ok is False
        assert any("version" in e for e in result.errors)

    def test_bad_layout_and_language(self, blueprint):
        blueprint["repo"] = {"layout": "polyrepo", "language": 3}

        result = validate_blueprint(blueprint)

        assert any("repo.layout" in e for e in result.errors)
        assert any("repo.language" in e for e in result.errors)

    def test_non_object_blueprint(self):
        result = validate_blueprint(["not", "an", "object"])
        assert result.ok is False
        assert result.errors == ["Blueprint must be a JSON object."]

    def test_packs_must_be_a_list_of_strings(self, blueprint):
        blueprint["skills"]["packs"] = "workflows"
        assert validate_blueprint(blueprint).ok is False

        blueprint["skills"]["packs"] = ["workflows", 7]
        assert validate_blueprint(blueprint).ok is False

    def test_capability_warnings(self, blueprint):
        blueprint["capabilities"]["database"] = {"enabled": True}
        blueprint["capabilities"]["api"] = {"style": 42}
        blueprint["capabilities"]["bpmn"] = {"enabled": "yes"}

        result = validate_blueprint(blueprint)

        assert result.ok is True
        assert any("database.kind" in w for w in result.warnings)
        assert any("api.style" in w for w in result.warnings)
        assert any("bpmn.enabled" in w for w in result.warnings)


class TestPackLists:
    def test_normalize_orders_and_dedupes(self):
        packs = ["frontend", " workflows ", "custom", "workflows", "", 3, "standards"]
        assert normalize_pack_list(packs) == ["workflows", "standards", "frontend", "custom"]

    def test_normalize_non_list(self):
        assert normalize_pack_list(None) == []
        assert normalize_pack_list("workflows") == []

    def test_recommended_follows_capabilities(self, blueprint):
        assert recommended_packs(blueprint) == ["workflows", "standards", "backend", "frontend"]

        blueprint["capabilities"]["frontend"]["enabled"] = False
        assert recommended_packs(blueprint) == ["workflows", "standards", "backend"]

        assert recommended_packs({}) == ["workflows", "standards"]


class TestSuggestPacks:
    def test_missing_and_extra(self, repo, blueprint):
        blueprint["skills"]["packs"] = ["workflows", "custom"]

        suggestion = suggest_packs(repo, blueprint)

        assert suggestion.missing == ["standards", "backend", "frontend"]
        assert suggestion.extra == ["custom"]
        assert any("missing recommended packs" in w for w in suggestion.warnings)

    def test_install_checks(self, repo, blueprint):
        for prefix in ("workflows", "standards", "backend"):
            (repo / ".ai" / "skills" / prefix).mkdir(parents=True)

        suggestion = suggest_packs(repo, blueprint)

        not_installed = [c.pack for c in suggestion.install_checks if not c.installed]
        assert not_installed == ["frontend"]
        assert any('"frontend" is not installed' in w for w in suggestion.warnings)

    def test_unknown_pack_install_check(self, repo):
        status = check_pack_install(repo, "mystery")
        assert status.installed is False
        assert status.reason == "unknown-pack"

    def test_add_missing_packs_is_safe_add(self, blueprint):
        blueprint["skills"]["packs"] = ["custom", "workflows"]

        add_missing_packs(blueprint, ["standards", "backend"])

        assert blueprint["skills"]["packs"] == ["workflows", "standards", "backend", "custom"]

    def test_add_missing_packs_creates_skills_section(self):
        bp = {"version": 1}
        add_missing_packs(bp, ["workflows"])
        assert bp["skills"] == {"packs": ["workflows"]}


class TestLoadBlueprint:
    def test_missing_file_raises_with_path(self, repo):
        path = repo / "init" / "project-blueprint.json"
        with pytest.raises(JsonReadError) as exc_info:
            load_blueprint(path)
        assert exc_info.value.path == path
        assert str(path) in str(exc_info.value)

    def test_invalid_json_raises(self, repo):
        path = repo / "bp.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(JsonReadError):
            load_blueprint(path)
