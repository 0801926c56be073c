"""Pytest configuration and shared fixtures for init-kit tests.

Every test runs with a clean settings cache, no ``INIT_KIT_*`` environment
overrides and telemetry disabled, so results never depend on the developer's
shell or a stray ``.env`` file.
"""

import json
import os
from pathlib import Path

import pytest

from init_kit.settings import clear_settings_cache

VALID_DOCS = {
    "requirements.md": (
        "# Requirements\n\n"
        "## Conclusions\n\n- Track shipments for small retailers.\n\n"
        "## Goals\n\n- Retailers see delivery status in one place.\n\n"
        "## Non-goals\n\n- Carrier billing.\n"
    ),
    "non-functional-requirements.md": (
        "# Non-functional Requirements\n\n"
        "## Conclusions\n\n- p95 page load under 2 seconds.\n"
    ),
    "domain-glossary.md": (
        "# Domain Glossary\n\n"
        "## Terms\n\n| Term | Definition |\n|---|---|\n| Shipment | A tracked parcel |\n"
    ),
    "risk-open-questions.md": (
        "# Risks and Open Questions\n\n"
        "## Open questions\n\n- Which carriers ship first? Owner: product, due next sprint.\n"
    ),
}


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch, tmp_path):
    """Clear cached settings and strip INIT_KIT_* / LOGFIRE_TOKEN env vars."""
    for key in list(os.environ):
        if key.upper().startswith("INIT_KIT_") or key.upper() == "LOGFIRE_TOKEN":
            monkeypatch.delenv(key, raising=False)
    # A .env in the working directory would leak into settings
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def disable_telemetry(monkeypatch):
    monkeypatch.setattr("init_kit.cli.configure_telemetry", lambda settings: None)


@pytest.fixture
def repo(tmp_path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def blueprint() -> dict:
    return {
        "version": 1,
        "project": {"name": "shiptrack", "description": "Shipment tracking for small retailers"},
        "repo": {"layout": "single", "language": "typescript", "packageManager": "pnpm"},
        "capabilities": {
            "frontend": {"enabled": True, "framework": "react"},
            "backend": {"enabled": True, "framework": "fastify"},
        },
        "skills": {"packs": ["workflows", "standards", "backend", "frontend"]},
    }


def _write_blueprint(repo_root: Path, data, name: str = "init/project-blueprint.json") -> Path:
    path = repo_root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def _write_docs(docs_root: Path, overrides: dict = None) -> Path:
    docs_root.mkdir(parents=True, exist_ok=True)
    contents = dict(VALID_DOCS)
    contents.update(overrides or {})
    for name, text in contents.items():
        if text is not None:
            (docs_root / name).write_text(text, encoding="utf-8")
    return docs_root


@pytest.fixture
def write_blueprint():
    """Write a blueprint JSON document under a repo root."""
    return _write_blueprint


@pytest.fixture
def write_docs():
    """Write the four Stage A docs, optionally overriding some contents."""
    return _write_docs
