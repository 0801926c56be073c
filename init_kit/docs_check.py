"""Stage A document checks.

Each required document must exist, contain its required headings, and be
free of template placeholders. TODO/FIXME/TBD markers are soft signals:
they are reported as warnings and only block in strict mode.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Tuple

from pydantic import BaseModel, Field


class RequiredDoc(NamedTuple):
    key: str
    filename: str
    headings: Tuple[str, ...]


REQUIRED_DOCS: Tuple[RequiredDoc, ...] = (
    RequiredDoc(
        "requirements",
        "requirements.md",
        ("# Requirements", "## Conclusions", "## Goals", "## Non-goals"),
    ),
    RequiredDoc(
        "nfr",
        "non-functional-requirements.md",
        ("# Non-functional Requirements", "## Conclusions"),
    ),
    RequiredDoc("glossary", "domain-glossary.md", ("# Domain Glossary", "## Terms")),
    RequiredDoc(
        "riskQuestions",
        "risk-open-questions.md",
        ("# Risks and Open Questions", "## Open questions"),
    ),
)

PLACEHOLDER_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"<[^>\n]{1,80}>"), 'template placeholder "<...>"'),
    (re.compile(r"^\s*[-*]\s*\.\.\.\s*$", re.MULTILINE), 'placeholder bullet "- ..."'),
    (re.compile(r":\s*\.\.\.\s*$", re.MULTILINE), 'placeholder value ": ..."'),
)

TBD_PATTERN = re.compile(r"\bTBD\b", re.IGNORECASE)


class DocsCheckResult(BaseModel):
    ok: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def _check_content(doc: RequiredDoc, content: str, errors: List[str], warnings: List[str]) -> None:
    for heading in doc.headings:
        if heading not in content:
            errors.append(f'{doc.filename} is missing required section/heading: "{heading}"')

    for pattern, label in PLACEHOLDER_PATTERNS:
        if pattern.search(content):
            errors.append(f"{doc.filename} still contains {label}. Replace all template placeholders.")

    if "TODO" in content or "FIXME" in content:
        warnings.append(
            f"{doc.filename} contains TODO/FIXME markers. "
            "Ensure they are tracked in risk-open-questions.md or removed."
        )
    if TBD_PATTERN.search(content):
        warnings.append(
            f"{doc.filename} contains TBD items. "
            "Ensure each TBD is linked to an owner/options/decision due."
        )


def check_docs(docs_root: Path, strict: bool = False) -> DocsCheckResult:
    """Check the four Stage A documents under ``docs_root``.

    Args:
        docs_root: Directory holding the Stage A docs.
        strict: Treat warnings as failures. The lists are unchanged; only
            ``ok`` is affected.
    """
    errors: List[str] = []
    warnings: List[str] = []

    for doc in REQUIRED_DOCS:
        path = docs_root / doc.filename
        if not path.is_file():
            errors.append(f"Missing required Stage A doc: {path}")
            continue
        content = path.read_text(encoding="utf-8", errors="replace")
        _check_content(doc, content, errors, warnings)

    ok = not errors and not (strict and warnings)
    return DocsCheckResult(ok=ok, errors=errors, warnings=warnings)


def docs_written_flags(docs_root: Path) -> Dict[str, bool]:
    """Map each doc key to whether its file exists."""
    return {doc.key: (docs_root / doc.filename).is_file() for doc in REQUIRED_DOCS}
