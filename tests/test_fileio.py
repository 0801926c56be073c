"""Tests for the JSON file helpers."""

import json
from unittest.mock import patch

import pytest

from init_kit.errors import JsonReadError
from init_kit.fileio import read_json, write_json_atomic


def _temp_files(directory):
    return [p for p in directory.iterdir() if p.name.endswith(".tmp")]


class TestWriteJsonAtomic:
    """Tests for write_json_atomic()."""

    def test_writes_with_trailing_newline(self, tmp_path):
        path = tmp_path / "nested" / "state.json"

        write_json_atomic(path, {"stage": "A"})

        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert json.loads(text) == {"stage": "A"}
        assert _temp_files(path.parent) == []

    def test_serialization_failure_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text('{"stage": "A"}\n', encoding="utf-8")

        with pytest.raises(TypeError):
            write_json_atomic(path, {"bad": object()})

        assert _temp_files(tmp_path) == []
        assert path.read_text(encoding="utf-8") == '{"stage": "A"}\n'

    def test_replace_failure_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "state.json"

        with patch("init_kit.fileio.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(OSError, match="read-only"):
                write_json_atomic(path, {"stage": "A"})

        assert _temp_files(tmp_path) == []
        assert not path.exists()


class TestReadJson:
    def test_missing_file(self, tmp_path):
        with pytest.raises(JsonReadError, match="File not found"):
            read_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(JsonReadError) as exc_info:
            read_json(path)

        assert exc_info.value.path == path
