"""Import pipeline: extract a recipe from a source, then match its ingredients."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from recipe_import.catalog import IngredientCatalog
from recipe_import.ingredient_parser import IngredientParser
from recipe_import.paprika_export import parse_paprika_export
from recipe_import.recipe_model import HIGH, Confidence, ExtractionResult, ParsedRecipe
from recipe_import.recipe_parser import RecipeParser
from recipe_import.text_parser import RecipeFormat, parse_recipe_text

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    recipe: Optional[ParsedRecipe]
    confidence: Confidence
    source: str
    matched_ingredients: list[dict[str, Any]] = field(default_factory=list)
    unmatched_lines: list[str] = field(default_factory=list)
    hint: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "recipe": self.recipe.to_dict() if self.recipe else None,
            "confidence": self.confidence,
            "source": self.source,
            "matched_ingredients": self.matched_ingredients,
            "unmatched_lines": self.unmatched_lines,
        }
        if self.hint:
            data["hint"] = self.hint
        return data


class RecipeImporter:
    """Runs every import path against one catalog snapshot.

    Build one importer per request or batch; the matcher tables are loaded
    once here and shared by every recipe it handles.
    """

    def __init__(self, catalog: IngredientCatalog):
        self.catalog = catalog
        self._matcher = catalog.matcher()
        self._parser = RecipeParser()
        self._ingredient_parser = IngredientParser()

    def match_recipe(self, recipe: ParsedRecipe) -> tuple[list[dict[str, Any]], list[str]]:
        """Match each ingredient line; returns (matched entries, unmatched lines)."""
        report = self._matcher.match_lines(recipe.ingredients)

        matched = []
        for result in report.matched:
            entry = result.to_dict()
            parsed = self._ingredient_parser.parse(result.line).to_dict()
            for key in ("amount", "unit", "unit_canonical", "quantity"):
                entry[key] = parsed[key]
            matched.append(entry)

        return matched, report.unmatched_lines

    def _from_extraction(self, extraction: ExtractionResult) -> ImportResult:
        if extraction.recipe is None:
            return ImportResult(
                recipe=None,
                confidence=extraction.confidence,
                source=extraction.source,
                hint=extraction.hint,
            )

        matched, unmatched = self.match_recipe(extraction.recipe)
        logger.info(
            "Recipe imported",
            extra={
                "recipe_name": extraction.recipe.name,
                "source": extraction.source,
                "matched": len(matched),
                "unmatched": len(unmatched),
            },
        )
        return ImportResult(
            recipe=extraction.recipe,
            confidence=extraction.confidence,
            source=extraction.source,
            matched_ingredients=matched,
            unmatched_lines=unmatched,
            hint=extraction.hint,
        )

    def import_url(self, url: str) -> ImportResult:
        """Fetch and import *url*.

        Raises:
            FetchError: If the page cannot be fetched
        """
        return self._from_extraction(self._parser.parse_from_url(url))

    def import_html(self, html: str, url: str = "") -> ImportResult:
        return self._from_extraction(self._parser.parse_html(html, url))

    def import_text(self, text: str, fmt: RecipeFormat = RecipeFormat.AUTO_DETECT) -> ImportResult:
        return self._from_extraction(parse_recipe_text(text, fmt))

    def import_paprika(self, data: bytes) -> tuple[list[ImportResult], int]:
        """Import every recipe in a Paprika export; returns (results, skipped count)."""
        report = parse_paprika_export(data)
        results = [
            self._from_extraction(ExtractionResult(recipe=recipe, confidence=HIGH, source="paprika"))
            for recipe in report.recipes
        ]
        return results, report.skipped
