"""Tests for the Stage A document checks."""

from init_kit.docs_check import check_docs, docs_written_flags


class TestCheckDocs:
    """Tests for check_docs()."""

    def test_valid_docs_pass(self, tmp_path, write_docs):
        docs = write_docs(tmp_path / "docs")

        result = check_docs(docs)

        assert result.ok is True
        assert result.errors == []
        assert result.warnings == []

    def test_missing_doc_is_an_error(self, tmp_path, write_docs):
        docs = write_docs(tmp_path / "docs", {"domain-glossary.md": None})

        result = check_docs(docs)

        assert result.ok is False
        assert len(result.errors) == 1
        assert "Missing required Stage A doc" in result.errors[0]
        assert "domain-glossary.md" in result.errors[0]

    def test_missing_heading_is_an_error(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {"requirements.md": "# Requirements\n\n## Conclusions\n\n- x\n\n## Goals\n\n- y\n"},
        )

        result = check_docs(docs)

        assert result.ok is False
        assert result.errors == ['requirements.md is missing required section/heading: "## Non-goals"']

    def test_angle_bracket_placeholder(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {
                "non-functional-requirements.md": (
                    "# Non-functional Requirements\n\n## Conclusions\n\n- Latency: <TBD>\n"
                )
            },
        )

        result = check_docs(docs)

        assert result.ok is False
        assert any('template placeholder "<...>"' in e for e in result.errors)
        assert any("TBD" in w for w in result.warnings)

    def test_one_error_per_pattern_per_doc(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {"domain-glossary.md": "# Domain Glossary\n\n## Terms\n\n- <a>\n- <b>\n- <c>\n"},
        )

        result = check_docs(docs)

        placeholder_errors = [e for e in result.errors if "domain-glossary.md" in e]
        assert len(placeholder_errors) == 1

    def test_bullet_and_value_placeholders(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {
                "risk-open-questions.md": (
                    "# Risks and Open Questions\n\n## Open questions\n\n- ...\n\nOwner: ...\n"
                )
            },
        )

        result = check_docs(docs)

        assert any('placeholder bullet "- ..."' in e for e in result.errors)
        assert any('placeholder value ": ..."' in e for e in result.errors)

    def test_soft_signals_are_warnings(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {
                "requirements.md": (
                    "# Requirements\n\n## Conclusions\n\n- TODO confirm scope\n\n"
                    "## Goals\n\n- tbd\n\n## Non-goals\n\n- none\n"
                )
            },
        )

        result = check_docs(docs)

        assert result.ok is True
        assert result.errors == []
        assert len(result.warnings) == 2

    def test_strict_fails_on_warnings_without_changing_lists(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {
                "domain-glossary.md": "# Domain Glossary\n\n## Terms\n\n- FIXME add carrier terms\n",
            },
        )

        relaxed = check_docs(docs)
        strict = check_docs(docs, strict=True)

        assert relaxed.ok is True
        assert strict.ok is False
        assert strict.errors == relaxed.errors
        assert strict.warnings == relaxed.warnings

    def test_lone_requirements_doc_with_placeholder(self, tmp_path):
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "requirements.md").write_text(
            "# Requirements\n\n## Conclusions\n\n- Scope: <TBD>\n\n## Goals\n\n- g\n\n## Non-goals\n\n- n\n",
            encoding="utf-8",
        )

        result = check_docs(docs)

        assert result.ok is False
        assert len(result.errors) == 4
        placeholder = [e for e in result.errors if e.startswith("requirements.md")]
        assert placeholder == [
            'requirements.md still contains template placeholder "<...>". Replace all template placeholders.'
        ]
        missing = [e for e in result.errors if e.startswith("Missing required Stage A doc")]
        assert len(missing) == 3

    def test_word_boundary_for_tbd(self, tmp_path, write_docs):
        docs = write_docs(
            tmp_path / "docs",
            {"domain-glossary.md": "# Domain Glossary\n\n## Terms\n\n- TBDX is a product code\n"},
        )

        assert check_docs(docs).warnings == []


def test_docs_written_flags(tmp_path, write_docs):
    docs = write_docs(tmp_path / "docs", {"risk-open-questions.md": None})

    flags = docs_written_flags(docs)

    assert flags == {"requirements": True, "nfr": True, "glossary": True, "riskQuestions": False}
