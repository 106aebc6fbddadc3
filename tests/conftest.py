"""Pytest configuration and fixtures."""

import json

import pytest

from recipe_import.catalog import IngredientCatalog
from recipe_import.ingredient_matcher import CanonicalIngredient, IngredientAlias
from recipe_import.recipe_model import ParsedRecipe


def create_test_recipe(
    name: str = "Test Recipe",
    ingredients: list | None = None,
    instructions: list | None = None,
    **kwargs,
) -> ParsedRecipe:
    """Helper to create a ParsedRecipe with sensible defaults."""
    return ParsedRecipe(
        name=name,
        ingredients=ingredients if ingredients is not None else ["1 cup flour", "2 eggs"],
        instructions=instructions if instructions is not None else ["Mix.", "Bake."],
        **kwargs,
    )


CATALOG_DATA = {
    "ingredients": [
        {"id": 1, "name": "Garlic", "category": "produce"},
        {"id": 2, "name": "Onion", "category": "produce"},
        {"id": 3, "name": "Celery", "category": "produce"},
        {"id": 4, "name": "Egg", "category": "dairy"},
        {"id": 5, "name": "All-Purpose Flour", "category": "pantry"},
        {"id": 6, "name": "Olive Oil", "category": "pantry"},
        {"id": 7, "name": "Salt", "category": "pantry"},
        {"id": 8, "name": "Chicken Breast", "category": "meat"},
    ],
    "aliases": [
        {"id": 1, "alias": "scallion", "ingredient_id": 2},
        {"id": 2, "alias": "eggs", "ingredient_id": 4},
        {"id": 3, "alias": "flour", "ingredient_id": 5},
        {"id": 4, "alias": "extra virgin olive oil", "ingredient_id": 6},
        {"id": 5, "alias": "kosher salt", "ingredient_id": 7},
    ],
}


def create_test_catalog(data: dict | None = None) -> IngredientCatalog:
    """Helper to build the small catalog most matcher tests share."""
    return IngredientCatalog.from_dict(data or CATALOG_DATA)


def ingredients(*names: str) -> list[CanonicalIngredient]:
    """Canonical rows numbered from 1 in the order given."""
    return [CanonicalIngredient(id=i, name=name) for i, name in enumerate(names, start=1)]


def aliases(*pairs: tuple[str, int]) -> list[IngredientAlias]:
    return [IngredientAlias(id=i, alias=alias, ingredient_id=ing_id) for i, (alias, ing_id) in enumerate(pairs, start=1)]


@pytest.fixture
def catalog_file(tmp_path):
    """Write the shared test catalog to a temporary JSON file."""
    path = tmp_path / "ingredient_catalog.json"
    path.write_text(json.dumps(CATALOG_DATA))
    return path
