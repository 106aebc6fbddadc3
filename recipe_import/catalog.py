"""Ingredient catalog: canonical ingredients, aliases, and fuzzy suggestions."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from rapidfuzz import fuzz, process

from recipe_import import config
from recipe_import.ingredient_matcher import CanonicalIngredient, IngredientAlias, IngredientMatcher
from recipe_import.ingredient_normalizer import fold_name, normalize_ingredient_line

logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """Raised when the ingredient catalog cannot be loaded."""
    pass


@dataclass
class IngredientCatalog:
    """Full canonical and alias tables, loaded once per batch."""
    ingredients: list[CanonicalIngredient] = field(default_factory=list)
    aliases: list[IngredientAlias] = field(default_factory=list)

    def matcher(self) -> IngredientMatcher:
        return IngredientMatcher(self.ingredients, self.aliases)

    @classmethod
    def from_dict(cls, data: dict) -> "IngredientCatalog":
        """Build a catalog from `{"ingredients": [...], "aliases": [...]}`.

        Raises:
            ValueError: If a row is missing a required field
        """
        ingredients = []
        for row in data.get("ingredients", []):
            missing = [f for f in ("id", "name") if f not in row]
            if missing:
                raise ValueError(f"Ingredient row missing fields: {', '.join(missing)}")
            ingredients.append(CanonicalIngredient(id=row["id"], name=row["name"], category=row.get("category")))

        aliases = []
        for index, row in enumerate(data.get("aliases", []), start=1):
            missing = [f for f in ("alias", "ingredient_id") if f not in row]
            if missing:
                raise ValueError(f"Alias row missing fields: {', '.join(missing)}")
            aliases.append(IngredientAlias(id=row.get("id", index), alias=row["alias"], ingredient_id=row["ingredient_id"]))

        return cls(ingredients=ingredients, aliases=aliases)


def load_catalog(file_path: Path | str) -> IngredientCatalog:
    file_path = Path(file_path)

    if not file_path.exists():
        raise CatalogLoadError(f"Ingredient catalog not found: {file_path}")

    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Invalid JSON in ingredient catalog: {e}")

    if not isinstance(data, dict) or "ingredients" not in data:
        raise CatalogLoadError("Ingredient catalog must contain an 'ingredients' key")

    try:
        catalog = IngredientCatalog.from_dict(data)
    except ValueError as e:
        raise CatalogLoadError(str(e))

    logger.info(
        "Ingredient catalog loaded",
        extra={"ingredients": len(catalog.ingredients), "aliases": len(catalog.aliases)},
    )
    return catalog


def suggest_ingredients(
    query: str,
    catalog: IngredientCatalog,
    limit: int = config.SUGGESTION_LIMIT,
    score_cutoff: float = config.SUGGESTION_SCORE_CUTOFF,
) -> list[dict]:
    """Rank canonical ingredients that could resolve an unmatched line.

    Aliases count toward their ingredient; each ingredient appears once, at
    its best score. Ties keep catalog order.
    """
    key = normalize_ingredient_line(query) or fold_name(query)
    if not key or not catalog.ingredients:
        return []

    by_id = {ing.id: ing for ing in catalog.ingredients}
    choices: list[tuple[str, CanonicalIngredient]] = [(fold_name(ing.name), ing) for ing in catalog.ingredients]
    choices += [
        (fold_name(alias.alias), by_id[alias.ingredient_id])
        for alias in catalog.aliases
        if alias.ingredient_id in by_id
    ]

    results = process.extract(
        key,
        [name for name, _ in choices],
        scorer=fuzz.WRatio,
        limit=None,
        score_cutoff=score_cutoff,
    )

    best: dict = {}
    order: list = []
    for matched_name, score, index in results:
        ingredient = choices[index][1]
        if ingredient.id not in best:
            order.append(ingredient.id)
            best[ingredient.id] = (score, index, matched_name)
        elif score > best[ingredient.id][0]:
            best[ingredient.id] = (score, index, matched_name)

    ranked = sorted(order, key=lambda ing_id: (-best[ing_id][0], best[ing_id][1]))
    return [
        {**by_id[ing_id].to_dict(), "matched_term": best[ing_id][2], "score": round(best[ing_id][0], 1)}
        for ing_id in ranked[:limit]
    ]
