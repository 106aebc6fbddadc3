from recipe_import.ingredient_matcher import CanonicalIngredient, IngredientAlias, IngredientMatcher, length_ratio
from tests.conftest import aliases, ingredients


class TestExactMatch:
    """Test the exact rule."""

    def test_normalized_line_equals_canonical_name(self):
        matcher = IngredientMatcher(ingredients("Garlic", "Onion"))

        result = matcher.match_line("3 Cloves Garlic, Peeled & Minced")

        assert result.ingredient.name == "Garlic"
        assert result.match_type == "exact"
        assert result.matched_term == "Garlic"
        assert result.score == 1.0

    def test_exact_beats_alias(self):
        matcher = IngredientMatcher(
            ingredients("Olive Oil", "Vegetable Oil"),
            aliases(("olive", 2)),
        )

        result = matcher.match_line("2 tbsp olive oil")

        assert result.ingredient.id == 1
        assert result.match_type == "exact"


class TestAliasMatch:
    """Test the alias rule."""

    def test_alias_contained_in_key(self):
        matcher = IngredientMatcher(ingredients("Onion"), aliases(("scallion", 1)))

        result = matcher.match_line("2 scallions, sliced")

        assert result.ingredient.name == "Onion"
        assert result.match_type == "alias"
        assert result.matched_term == "scallion"
        assert result.score == round(8 / 9, 4)

    def test_key_token_contained_in_alias(self):
        matcher = IngredientMatcher(ingredients("Cheese"), aliases(("buffalo mozzarella", 1)))

        result = matcher.match_line("200g mozzarella")

        assert result.ingredient.name == "Cheese"
        assert result.match_type == "alias"

    def test_short_tokens_do_not_match_inside_aliases(self):
        matcher = IngredientMatcher(ingredients("Mint"), aliases(("peppermint", 1)))

        assert not matcher.match_line("an ox").matched

    def test_longest_alias_wins(self):
        matcher = IngredientMatcher(
            ingredients("Vegetable Oil", "Olive Oil Blend"),
            aliases(("oil", 1), ("olive oil", 2)),
        )

        result = matcher.match_line("1 tbsp olive oil")

        assert result.ingredient.id == 2
        assert result.matched_term == "olive oil"

    def test_equal_length_aliases_keep_table_order(self):
        matcher = IngredientMatcher(
            ingredients("Chives", "Chili Pepper"),
            aliases(("chive", 1), ("chili", 2)),
        )
        assert matcher.match_line("chive chili oil").ingredient.id == 1

        flipped = IngredientMatcher(
            ingredients("Chives", "Chili Pepper"),
            aliases(("chili", 2), ("chive", 1)),
        )
        assert flipped.match_line("chive chili oil").ingredient.id == 2

    def test_alias_to_unknown_ingredient_is_ignored(self):
        matcher = IngredientMatcher(ingredients("Onion"), aliases(("ghost", 99)))

        assert not matcher.match_line("ghost pepper").matched


class TestPartialMatch:
    """Test the partial rule and its threshold."""

    def test_accepted_above_threshold(self):
        matcher = IngredientMatcher(ingredients("Apple"))

        result = matcher.match_line("1 apple pie")

        assert result.match_type == "partial"
        assert result.ingredient.name == "Apple"
        assert result.score == round(5 / 9, 4)

    def test_exactly_half_is_rejected(self):
        matcher = IngredientMatcher(ingredients("Rice"))

        result = matcher.match_line("rice pie")

        assert length_ratio("rice pie", "rice") == 0.5
        assert not result.matched

    def test_key_inside_longer_name(self):
        matcher = IngredientMatcher(ingredients("Chicken Thigh"))

        result = matcher.match_line("2 chicken")

        assert result.match_type == "partial"
        assert result.score == round(7 / 13, 4)

    def test_custom_threshold(self):
        matcher = IngredientMatcher(ingredients("Apple"), threshold=0.6)
        assert not matcher.match_line("apple pie").matched

    def test_equal_scores_keep_table_order(self):
        matcher = IngredientMatcher(ingredients("Red Curry Paste", "Curry Paste Mix"))
        assert matcher.match_line("2 tbsp curry paste").ingredient.id == 1

        flipped = IngredientMatcher(ingredients("Curry Paste Mix", "Red Curry Paste"))
        assert flipped.match_line("2 tbsp curry paste").ingredient.name == "Curry Paste Mix"

    def test_highest_ratio_wins(self):
        matcher = IngredientMatcher(ingredients("Chicken Thigh", "Chicken"))

        result = matcher.match_line("chicken stock")

        assert result.ingredient.name == "Chicken"


class TestMatchLines:
    """Test batch matching."""

    def test_unmatched_lines_kept_in_order(self):
        matcher = IngredientMatcher(ingredients("Garlic", "Salt"))

        report = matcher.match_lines(["1 tsp saffron", "2 cloves garlic", "", "a dash of bitters", "salt"])

        assert [m.ingredient.name for m in report.matched] == ["Garlic", "Salt"]
        assert report.unmatched_lines == ["1 tsp saffron", "", "a dash of bitters"]

    def test_deterministic(self):
        matcher = IngredientMatcher(
            ingredients("Onion", "Red Onion", "Spring Onion"),
            aliases(("scallion", 3), ("shallot", 1)),
        )
        lines = ["1 red onion", "3 scallions", "2 shallots", "onion powder"]

        first = [m.to_dict() for m in matcher.match_lines(lines).matches]
        second = [m.to_dict() for m in matcher.match_lines(lines).matches]

        assert first == second

    def test_unmatched_to_dict(self):
        result = IngredientMatcher(ingredients("Garlic")).match_line("unobtainium")
        assert result.to_dict() == {"line": "unobtainium", "key": "unobtainium", "matched": None}

    def test_empty_catalog_matches_nothing(self):
        report = IngredientMatcher([]).match_lines(["1 cup flour"])
        assert report.unmatched_lines == ["1 cup flour"]


def test_length_ratio():
    assert length_ratio("abc", "abcdef") == 0.5
    assert length_ratio("", "abc") == 0.0


class TestScenarios:
    """End-to-end normalizer plus matcher scenarios."""

    def test_garlic_exact(self):
        matcher = IngredientMatcher(ingredients("garlic"))

        result = matcher.match_line("3 Cloves Garlic, Peeled & Minced")

        assert result.key == "garlic"
        assert (result.match_type, result.score) == ("exact", 1.0)

    def test_celery_through_alias(self):
        matcher = IngredientMatcher(
            [CanonicalIngredient(id=9, name="Celery Root")],
            [IngredientAlias(id=1, alias="celery stalk", ingredient_id=9)],
        )

        result = matcher.match_line("1 Stalk Celery, Diced")

        assert result.match_type == "alias"
        assert result.ingredient.id == 9
