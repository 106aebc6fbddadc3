import pytest

from recipe_import.ingredient_normalizer import fold_name, normalize_ingredient_line, standardize_unit


class TestNormalizeIngredientLine:
    """Test comparison-key derivation."""

    @pytest.mark.parametrize("line,expected", [
        ("3 Cloves Garlic, Peeled & Minced", "garlic"),
        ("1 Stalk Celery, Diced", "celery"),
        ("2 (14 oz) cans diced tomatoes", "tomatoes"),
        ("1/2 cup unsalted butter, melted", "butter"),
        ("½ cup sugar", "sugar"),
        ("200g plain flour", "plain flour"),
        ("Salt and pepper to taste", "salt pepper"),
        ("2 large eggs, beaten", "eggs"),
        ("1 tbsp extra-virgin olive oil", "virgin olive oil"),
        ("Fresh parsley, for garnish (optional)", "parsley"),
        ("baker's yeast", "baker's yeast"),
    ])
    def test_examples(self, line, expected):
        assert normalize_ingredient_line(line) == expected

    @pytest.mark.parametrize("line", ["", "   ", "2 cups", "(optional)", "!!!", "1/2"])
    def test_lines_with_nothing_left_give_empty_key(self, line):
        assert normalize_ingredient_line(line) == ""

    @pytest.mark.parametrize("line", [
        "3 Cloves Garlic, Peeled & Minced",
        "Salt and pepper to taste",
        "'quoted' herbs",
        "1 (8 oz) package cream cheese, softened",
        "200g plain flour",
    ])
    def test_idempotent(self, line):
        key = normalize_ingredient_line(line)
        assert normalize_ingredient_line(key) == key

    def test_none_is_empty(self):
        assert normalize_ingredient_line(None) == ""


class TestFoldName:
    """Test catalog name folding."""

    def test_keeps_every_word(self):
        assert fold_name("All-Purpose Flour") == "all purpose flour"
        assert fold_name("  Fresh   Basil ") == "fresh basil"

    def test_empty(self):
        assert fold_name("") == ""


class TestStandardizeUnit:
    """Test unit spelling standardization."""

    def test_case_sensitive_spoon_abbreviations(self):
        assert standardize_unit("T") == "tbsp"
        assert standardize_unit("t") == "tsp"

    def test_plurals_and_case(self):
        assert standardize_unit("Cups") == "cup"
        assert standardize_unit("tablespoons") == "tbsp"
        assert standardize_unit("cloves") == "clove"

    def test_unknown_unit_unchanged(self):
        assert standardize_unit("smidgen") == "smidgen"
        assert standardize_unit("") == ""
