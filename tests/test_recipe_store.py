import json

import pytest

from recipe_import.recipe_store import ImportLoadError, ImportSaveError, load_imports, save_import


class TestSaveImport:
    """Test persisting reviewed imports."""

    def test_first_save_generates_id(self, tmp_path):
        path = tmp_path / "imports.json"

        recipe_id = save_import(path, {
            "recipe": {"name": "Tomato Soup"},
            "matched_ingredients": [{"line": "2 tomatoes", "matched": {"id": 5}}],
        })

        assert recipe_id == "tomato-soup"
        saved = load_imports(path)
        assert saved[0]["id"] == "tomato-soup"
        assert saved[0]["matched_ingredients"] == [{"line": "2 tomatoes", "matched": {"id": 5}}]

    def test_resave_replaces_matches(self, tmp_path):
        """Old matches are cleared, never merged with the new ones."""
        path = tmp_path / "imports.json"
        save_import(path, {"recipe": {"name": "Soup"}, "matched_ingredients": [{"line": "a"}, {"line": "b"}]})

        save_import(path, {"recipe": {"name": "Soup v2"}, "matched_ingredients": [{"line": "c"}]}, recipe_id="soup")

        saved = load_imports(path)
        assert len(saved) == 1
        assert saved[0]["recipe"]["name"] == "Soup v2"
        assert saved[0]["matched_ingredients"] == [{"line": "c"}]

    def test_same_name_without_id_gets_new_slug(self, tmp_path):
        path = tmp_path / "imports.json"
        save_import(path, {"recipe": {"name": "Soup"}})

        second = save_import(path, {"recipe": {"name": "Soup"}})

        assert second == "soup-2"
        assert [item["id"] for item in load_imports(path)] == ["soup", "soup-2"]

    def test_name_is_required(self, tmp_path):
        with pytest.raises(ValueError):
            save_import(tmp_path / "imports.json", {"recipe": {"name": "  "}})

    def test_no_temp_files_left_behind(self, tmp_path):
        path = tmp_path / "imports.json"
        save_import(path, {"recipe": {"name": "Soup"}})

        assert [p.name for p in tmp_path.iterdir()] == ["imports.json"]

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ImportSaveError):
            save_import(blocker / "imports.json", {"recipe": {"name": "Soup"}})


class TestLoadImports:
    """Test loading saved imports."""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_imports(tmp_path / "nothing.json") == []

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "imports.json"
        path.write_text("{broken")

        with pytest.raises(ImportLoadError):
            load_imports(path)

    def test_missing_key(self, tmp_path):
        path = tmp_path / "imports.json"
        path.write_text(json.dumps({"recipes": []}))

        with pytest.raises(ImportLoadError):
            load_imports(path)
