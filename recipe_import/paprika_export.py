"""Import of Paprika exports (.paprikarecipes archives, single .paprikarecipe files, raw JSON)."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from bs4 import BeautifulSoup

from recipe_import.archive_decoder import decode_archive
from recipe_import.recipe_model import ParsedRecipe, parse_duration

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r'^data:image/[^;]+;base64,')


@dataclass
class PaprikaImportReport:
    recipes: list[ParsedRecipe] = field(default_factory=list)
    skipped: int = 0


def _first(record: dict, *keys: str) -> Any:
    """Return the first non-empty value among *keys*."""
    for key in keys:
        value = record.get(key)
        if value not in (None, "", []):
            return value
    return None


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_lines(value: Any) -> list[str]:
    """Paprika stores lists either as arrays or as newline-separated strings."""
    if isinstance(value, list):
        lines = [str(v).strip() for v in value if v is not None]
    elif isinstance(value, str):
        lines = [line.strip() for line in re.split(r'\r\n|\r|\n', value)]
    else:
        return []
    return [line for line in lines if line]


def _html_to_lines(html: str) -> list[str]:
    if not isinstance(html, str) or not html.strip():
        return []
    text = BeautifulSoup(html, "html.parser").get_text("\n")
    return _to_lines(text)


def _has_photo(photo_data: Any) -> bool:
    """Paprika embeds the photo as base64, optionally behind a data-URL prefix."""
    if not isinstance(photo_data, str):
        return False
    return bool(_DATA_URL_PREFIX.sub("", photo_data.strip()).strip())


def normalize_paprika_record(record: dict[str, Any]) -> Optional[ParsedRecipe]:
    """Map one Paprika JSON record onto ParsedRecipe.

    Returns None when the record carries no usable name.
    """
    if not isinstance(record, dict):
        return None

    name = _text_or_none(_first(record, "name", "title"))
    if not name:
        return None

    if _first(record, "ingredients", "ingredient_lines"):
        ingredients = _to_lines(_first(record, "ingredients", "ingredient_lines"))
    else:
        ingredients = _html_to_lines(record.get("ingredients_html"))

    if _first(record, "directions", "instructions"):
        instructions = _to_lines(_first(record, "directions", "instructions"))
    else:
        instructions = _html_to_lines(_first(record, "directions_html", "instructions_html"))

    tags_value = _first(record, "categories", "tags")
    if isinstance(tags_value, str):
        tags = [t.strip() for t in tags_value.split(",") if t.strip()]
    else:
        tags = _to_lines(tags_value)

    return ParsedRecipe(
        name=name,
        description=_text_or_none(_first(record, "description", "notes")),
        prep_time=parse_duration(_first(record, "prep_time", "prepTime")),
        cook_time=parse_duration(_first(record, "cook_time", "cookTime")),
        total_time=parse_duration(_first(record, "total_time", "totalTime")),
        recipe_yield=_text_or_none(_first(record, "servings", "yield")),
        ingredients=ingredients,
        instructions=instructions,
        source_name=_text_or_none(_first(record, "source", "source_name")),
        source_url=_text_or_none(_first(record, "source_url", "url")),
        image_url=_text_or_none(record.get("image_url")),
        tags=tags,
        has_image_data=_has_photo(record.get("photo_data")),
    )


def parse_paprika_export(data: bytes) -> PaprikaImportReport:
    """Extract every recipe from a Paprika export buffer.

    Malformed JSON and nameless records are counted as skipped; an
    unrecognised buffer simply yields an empty report.
    """
    report = PaprikaImportReport()

    for entry in decode_archive(data):
        try:
            payload = json.loads(entry.text())
        except ValueError as e:
            logger.warning("Skipping entry with invalid JSON", extra={"path": entry.path, "error": str(e)})
            report.skipped += 1
            continue

        records = payload if isinstance(payload, list) else [payload]
        for record in records:
            recipe = normalize_paprika_record(record)
            if recipe is None:
                logger.warning("Skipping Paprika record without a name", extra={"path": entry.path})
                report.skipped += 1
                continue
            report.recipes.append(recipe)

    logger.info("Paprika export parsed", extra={"imported": len(report.recipes), "skipped": report.skipped})
    return report
