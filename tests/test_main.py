import gzip
import io
import json
from unittest.mock import patch

import pytest

from recipe_import import config
from recipe_import.html_fetcher import FetchError
from recipe_import.main import app, limiter
from recipe_import.recipe_model import ExtractionResult, LOW
from recipe_import.recipe_store import load_imports
from tests.conftest import create_test_recipe

GENERIC_TEXT = "Omelette\n\nIngredients\n- 3 eggs\n- pinch of salt\n\nMethod\n1. Whisk and cook.\n"


@pytest.fixture
def client(tmp_path, catalog_file, monkeypatch):
    """Create a test client with a temporary catalog and imports file."""
    monkeypatch.setattr(config, 'INGREDIENT_CATALOG_FILE', str(catalog_file))
    monkeypatch.setattr(config, 'IMPORTS_FILE', str(tmp_path / "imports.json"))
    monkeypatch.setattr(limiter, 'enabled', False)

    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    with app.test_client() as client:
        yield client


class TestImportRecipe:
    """Test POST /import-recipe."""

    @patch('recipe_import.importer.RecipeParser.parse_from_url')
    def test_success(self, mock_parse, client):
        mock_parse.return_value = ExtractionResult(
            recipe=create_test_recipe(name="Garlic Chicken", ingredients=["2 chicken breasts", "3 cloves garlic"]),
            confidence="high",
            source="jsonld",
        )

        response = client.post('/import-recipe', json={"url": "https://example.com/garlic-chicken"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["recipe"]["name"] == "Garlic Chicken"
        assert data["confidence"] == "high"
        assert data["source"] == "jsonld"
        assert [m["matched"]["name"] for m in data["matched_ingredients"]] == ["Chicken Breast", "Garlic"]
        assert data["unmatched_lines"] == []

    def test_missing_url(self, client):
        response = client.post('/import-recipe', json={})
        assert response.status_code == 400
        assert response.get_json()["message"] == "URL is required"

    def test_invalid_scheme(self, client):
        response = client.post('/import-recipe', json={"url": "ftp://example.com/recipe"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid URL"

    def test_invalid_json(self, client):
        response = client.post('/import-recipe', data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid JSON"

    @patch('recipe_import.importer.RecipeParser.parse_from_url')
    def test_fetch_error_is_502(self, mock_parse, client):
        mock_parse.side_effect = FetchError("Failed to fetch: HTTP 404 Not Found", status_code=404)

        response = client.post('/import-recipe', json={"url": "https://example.com/missing"})

        assert response.status_code == 502
        data = response.get_json()
        assert data["error"] == "Fetch error"
        assert data["status_code"] == 404

    @patch('recipe_import.importer.RecipeParser.parse_from_url')
    def test_no_recipe_is_404(self, mock_parse, client):
        """A page that loads but holds no recipe is distinct from a fetch failure."""
        mock_parse.return_value = ExtractionResult(recipe=None, confidence=LOW, source="heuristic")

        response = client.post('/import-recipe', json={"url": "https://example.com/about"})

        assert response.status_code == 404
        data = response.get_json()
        assert data["error"] == "No recipe found on this page"
        assert data["confidence"] == "low"
        assert data["source"] == "heuristic"

    def test_catalog_error_is_500(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr(config, 'INGREDIENT_CATALOG_FILE', str(tmp_path / "missing.json"))

        response = client.post('/import-recipe', json={"url": "https://example.com/x"})

        assert response.status_code == 500
        assert response.get_json()["error"] == "Catalog error"


class TestImportRecipeText:
    """Test POST /import-recipe-text."""

    def test_success_includes_paprika_text(self, client):
        response = client.post('/import-recipe-text', json={"text": GENERIC_TEXT})

        assert response.status_code == 200
        data = response.get_json()
        assert data["recipe"]["name"] == "Omelette"
        assert data["source"] == "flat-text:generic"
        assert data["paprika_text"].startswith("# Omelette")
        assert len(data["matched_ingredients"]) == 2

    def test_explicit_format(self, client):
        text = "# Toast\n\n## Ingredients\n- 1 slice bread\n\n## Instructions\n1. Toast it.\n"

        response = client.post('/import-recipe-text', json={"text": text, "format": "paprika"})

        assert response.status_code == 200
        assert response.get_json()["source"] == "flat-text:paprika"

    def test_unknown_format(self, client):
        response = client.post('/import-recipe-text', json={"text": GENERIC_TEXT, "format": "markdown"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid format"

    def test_missing_text(self, client):
        response = client.post('/import-recipe-text', json={"text": "   "})
        assert response.status_code == 400

    def test_text_too_long(self, client):
        response = client.post('/import-recipe-text', json={"text": "x" * (config.MAX_TEXT_LENGTH + 1)})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid text"

    def test_unparseable_text_returns_hint(self, client):
        response = client.post('/import-recipe-text', json={"text": "just one line of prose"})

        assert response.status_code == 422
        data = response.get_json()
        assert "Meal-Master" in data["hint"]


class TestImportPaprika:
    """Test POST /import-paprika."""

    def test_success(self, client):
        payload = gzip.compress(json.dumps([
            {"name": "Deviled Eggs", "ingredients": "6 eggs\nsalt"},
            {"ingredients": "nameless"},
        ]).encode())

        response = client.post(
            '/import-paprika',
            data={"file": (io.BytesIO(payload), "export.paprikarecipes")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["imported_count"] == 1
        assert data["skipped_count"] == 1
        assert data["recipes"][0]["recipe"]["name"] == "Deviled Eggs"
        assert data["recipes"][0]["source"] == "paprika"

    def test_missing_file(self, client):
        response = client.post('/import-paprika', data={}, content_type="multipart/form-data")
        assert response.status_code == 400

    def test_empty_file(self, client):
        response = client.post(
            '/import-paprika',
            data={"file": (io.BytesIO(b""), "empty.paprikarecipes")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "Empty file"

    def test_file_too_large(self, client, monkeypatch):
        monkeypatch.setattr(config, 'MAX_UPLOAD_BYTES', 10)

        response = client.post(
            '/import-paprika',
            data={"file": (io.BytesIO(b"x" * 50), "big.paprikarecipes")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 413

    def test_unrecognised_file_imports_nothing(self, client):
        response = client.post(
            '/import-paprika',
            data={"file": (io.BytesIO(b"not an export"), "notes.txt")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        assert response.get_json()["imported_count"] == 0


class TestIngredientRoutes:
    """Test ingredient matching and search."""

    def test_match(self, client):
        response = client.post('/ingredients/match', json={"lines": ["3 Cloves Garlic, Peeled & Minced", "1 tsp saffron"]})

        assert response.status_code == 200
        data = response.get_json()
        assert data["matches"][0]["matched"]["name"] == "Garlic"
        assert data["matches"][1]["matched"] is None
        assert data["unmatched_lines"] == ["1 tsp saffron"]

    def test_match_requires_list_of_strings(self, client):
        response = client.post('/ingredients/match', json={"lines": "garlic"})
        assert response.status_code == 400

    def test_search(self, client):
        response = client.get('/ingredients/search?q=galic')

        assert response.status_code == 200
        assert response.get_json()["results"][0]["name"] == "Garlic"

    def test_search_empty_query(self, client):
        response = client.get('/ingredients/search')
        assert response.get_json() == {"results": []}


class TestSaveImport:
    """Test POST /imports."""

    def test_save_and_replace(self, client):
        first = client.post('/imports', json={
            "recipe": {"name": "Soup"},
            "matched_ingredients": [{"line": "1 onion"}, {"line": "2 carrots"}],
        })
        assert first.status_code == 200
        recipe_id = first.get_json()["id"]

        second = client.post('/imports', json={
            "id": recipe_id,
            "recipe": {"name": "Soup"},
            "matched_ingredients": [{"line": "1 leek"}],
        })

        assert second.status_code == 200
        saved = load_imports(config.IMPORTS_FILE)
        assert len(saved) == 1
        assert saved[0]["matched_ingredients"] == [{"line": "1 leek"}]

    def test_name_required(self, client):
        response = client.post('/imports', json={"recipe": {"name": ""}})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid recipe"
