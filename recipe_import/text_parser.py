"""
Parse pasted or exported recipe text (Paprika, Meal-Master, generic).

Each dialect is a small parser with a structural signature. Auto-detection
tries the dialects whose signature matches in a fixed priority order and
always falls through to the generic parser.
"""

import logging
import re
from enum import Enum
from typing import Optional

from recipe_import.recipe_model import HIGH, LOW, MEDIUM, ExtractionResult, ParsedRecipe, parse_duration

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS_HINT = (
    "Supported formats: Paprika, Meal-Master, or generic recipe text "
    "with a title plus an ingredients and/or instructions section"
)

_LABEL = re.compile(
    r'^(prep(?:aration)?(?:\s+time)?|cook(?:ing)?(?:\s+time)?|total(?:\s+time)?|'
    r'servings|serves|yield|source|url)\s*:\s*(.*)$',
    re.IGNORECASE,
)
_BULLET = re.compile(r'^[-*•▢]\s*')
_STEP_NUMBER = re.compile(r'^(?:step\s*)?\d+\s*[.):]\s*', re.IGNORECASE)


class RecipeFormat(Enum):
    PAPRIKA = "paprika"
    MEAL_MASTER = "meal-master"
    GENERIC = "generic"
    AUTO_DETECT = "auto-detect"

    @classmethod
    def from_hint(cls, value: Optional[str]) -> "RecipeFormat":
        """Map a caller-supplied format string to a RecipeFormat.

        Raises:
            ValueError: If the format is not one of the supported values
        """
        if value is None or not str(value).strip():
            return cls.AUTO_DETECT
        normalized = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        if normalized == "mealmaster":
            normalized = "meal-master"
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported recipe format: {value!r}")


def normalize_line_endings(text: str) -> str:
    """Convert \\r\\n and bare \\r to \\n so every dialect splits lines the same way."""
    return re.sub(r'\r\n?', '\n', text)


class _RecipeFields:
    """Mutable accumulator shared by the dialect parsers."""

    def __init__(self):
        self.name: Optional[str] = None
        self.description: list[str] = []
        self.prep_time = None
        self.cook_time = None
        self.total_time = None
        self.recipe_yield: Optional[str] = None
        self.source_name: Optional[str] = None
        self.source_url: Optional[str] = None
        self.tags: list[str] = []
        self.ingredients: list[str] = []
        self.instructions: list[str] = []

    def apply_label(self, line: str) -> bool:
        """Consume a `Label: value` metadata line; return False if it is not one."""
        match = _LABEL.match(line)
        if not match:
            return False
        label, value = match.group(1).lower(), match.group(2).strip()
        if label.startswith("prep"):
            self.prep_time = parse_duration(value)
        elif label.startswith("cook"):
            self.cook_time = parse_duration(value)
        elif label.startswith("total"):
            self.total_time = parse_duration(value)
        elif label in ("servings", "serves", "yield"):
            self.recipe_yield = value or None
        elif label == "url":
            self.source_url = value or None
        elif value.lower().startswith(("http://", "https://")):
            self.source_url = value
        else:
            self.source_name = value or None
        return True

    def build(self) -> Optional[ParsedRecipe]:
        if not self.name or not self.name.strip():
            return None
        return ParsedRecipe(
            name=self.name,
            description="\n".join(self.description) or None,
            prep_time=self.prep_time,
            cook_time=self.cook_time,
            total_time=self.total_time,
            recipe_yield=self.recipe_yield,
            ingredients=self.ingredients,
            instructions=self.instructions,
            source_name=self.source_name,
            source_url=self.source_url,
            tags=self.tags,
        )


class PaprikaDialect:
    """Paprika's plain-text layout:

        # Title
        description
        Prep: 10 mins
        ## Ingredients
        - 1 cup flour
        ## Instructions
        1. Mix.
        ---
        Source: ...
    """
    format = RecipeFormat.PAPRIKA
    _SIGNATURE = re.compile(r'^\s*##\s*(ingredients?|instructions?|directions?)\b', re.IGNORECASE | re.MULTILINE)
    _TITLE = re.compile(r'^#(?!#)\s*(.+)$')

    def matches(self, text: str) -> bool:
        return bool(self._SIGNATURE.search(text))

    def parse(self, text: str) -> Optional[ParsedRecipe]:
        fields = _RecipeFields()
        section = None

        for raw in text.split("\n"):
            line = raw.strip()
            if not line:
                continue

            if fields.name is None:
                title = self._TITLE.match(line)
                if title:
                    fields.name = title.group(1).strip()
                else:
                    fields.description.append(line)
                continue

            if line.startswith("##"):
                heading = line.lstrip("#").strip().lower()
                if "ingredient" in heading:
                    section = "ingredients"
                elif any(word in heading for word in ("instruction", "direction", "method", "step")):
                    section = "instructions"
                else:
                    section = "other"
                continue

            if line == "---":
                section = "footer"
                continue

            if section == "ingredients":
                fields.ingredients.append(_BULLET.sub("", line, count=1))
            elif section == "instructions":
                fields.instructions.append(_STEP_NUMBER.sub("", line, count=1))
            elif fields.apply_label(line):
                continue
            elif section is None:
                fields.description.append(line)

        return fields.build()

    def confidence(self, recipe: ParsedRecipe) -> str:
        return HIGH


class MealMasterDialect:
    """Meal-Master interchange text.

    A header line, `Title:`/`Categories:`/`Yield:` labels, then an ingredient
    block and an instruction block separated either by blank lines or by
    `-----` delimiter lines, closed by an `MMMMM` marker.
    """
    format = RecipeFormat.MEAL_MASTER
    _HEADER = re.compile(r'^(?:M{5}|-{5}).*(?:meal-master|recipe via)', re.IGNORECASE)
    _END = re.compile(r'^M{5}\s*$')
    _DELIMITER = re.compile(r'^-{5,}\s*$')
    _SUBHEADING = re.compile(r'^M{5}-+.*$')
    _META = re.compile(r'^(title|categories|yield|servings|source)\s*:\s*(.*)$', re.IGNORECASE)
    _SIGNATURE = re.compile(r'^\s*title\s*:', re.IGNORECASE | re.MULTILINE)

    def matches(self, text: str) -> bool:
        if self._SIGNATURE.search(text):
            return True
        return any(self._HEADER.match(line.strip()) for line in text.split("\n"))

    def parse(self, text: str) -> Optional[ParsedRecipe]:
        fields = _RecipeFields()
        section = "meta"
        delimited_ingredients = False

        for raw in text.split("\n"):
            line = raw.strip()

            if self._HEADER.match(line):
                if fields.name and section != "meta":
                    break  # next recipe in a multi-recipe file
                continue
            if self._END.match(line):
                if fields.name:
                    break
                continue

            if self._DELIMITER.match(line):
                if section == "meta":
                    section = "ingredients"
                    delimited_ingredients = True
                elif section == "ingredients":
                    if fields.ingredients or delimited_ingredients:
                        section = "instructions"
                    else:
                        delimited_ingredients = True
                continue

            if not line:
                if section == "meta" and fields.name:
                    section = "ingredients"
                elif section == "ingredients" and fields.ingredients and not delimited_ingredients:
                    section = "instructions"
                continue

            if section == "meta":
                self._apply_meta(fields, line)
            elif section == "ingredients":
                if not self._SUBHEADING.match(line):
                    fields.ingredients.append(line)
            else:
                fields.instructions.append(line)

        return fields.build()

    def _apply_meta(self, fields: _RecipeFields, line: str) -> None:
        match = self._META.match(line)
        if not match:
            fields.apply_label(line)
            return
        label, value = match.group(1).lower(), match.group(2).strip()
        if label == "title":
            fields.name = value or None
        elif label == "categories":
            fields.tags = [t.strip() for t in value.split(",") if t.strip()]
        else:
            fields.apply_label(line)

    def confidence(self, recipe: ParsedRecipe) -> str:
        return HIGH


class GenericDialect:
    """Loosely structured pasted text: a title line plus section headers."""
    format = RecipeFormat.GENERIC
    _HEADER = re.compile(
        r'^(?:#+\s*)?(?:[a-z]+\s+)?(ingredients?|instructions?|directions?|method|steps?|preparation)\s*:?$',
        re.IGNORECASE,
    )

    def matches(self, text: str) -> bool:
        return True

    def parse(self, text: str) -> Optional[ParsedRecipe]:
        fields = _RecipeFields()
        section = None
        saw_section = False

        for raw in text.split("\n"):
            line = raw.strip()
            if not line:
                continue

            header = self._HEADER.match(line)
            if header:
                word = header.group(1).lower()
                section = "ingredients" if word.startswith("ingredient") else "instructions"
                saw_section = True
                continue

            if fields.name is None:
                if section is not None:
                    return None  # sections before any title line
                fields.name = line.lstrip("#").strip() or None
                continue

            if section == "ingredients":
                item = _BULLET.sub("", line, count=1).strip()
                if item:
                    fields.ingredients.append(item)
            elif section == "instructions":
                step = _STEP_NUMBER.sub("", line, count=1).strip()
                if step:
                    fields.instructions.append(step)
            elif not fields.apply_label(line):
                fields.description.append(line)

        if not saw_section:
            return None
        return fields.build()

    def confidence(self, recipe: ParsedRecipe) -> str:
        return MEDIUM if recipe.ingredients else LOW


# Priority order for auto-detection; generic is the final fallback.
DIALECTS = (PaprikaDialect(), MealMasterDialect(), GenericDialect())
_BY_FORMAT = {dialect.format: dialect for dialect in DIALECTS}


def parse_recipe_text(text: str, fmt: RecipeFormat = RecipeFormat.AUTO_DETECT) -> ExtractionResult:
    """Parse a block of recipe text.

    Args:
        text: Raw pasted/exported text (any line-ending convention)
        fmt: Dialect to use, or AUTO_DETECT to sniff it

    Returns:
        ExtractionResult whose recipe is None (with a hint) when no dialect
        could establish a recipe name
    """
    text = normalize_line_endings(text or "")

    if fmt is RecipeFormat.AUTO_DETECT:
        candidates = [d for d in DIALECTS if d.matches(text)]
    else:
        candidates = [_BY_FORMAT[fmt]]

    for dialect in candidates:
        recipe = dialect.parse(text)
        if recipe is not None:
            logger.debug("Parsed recipe text", extra={"dialect": dialect.format.value, "recipe_name": recipe.name})
            return ExtractionResult(
                recipe=recipe,
                confidence=dialect.confidence(recipe),
                source=f"flat-text:{dialect.format.value}",
            )

    logger.info("No dialect could parse recipe text", extra={"format": fmt.value, "text_length": len(text)})
    return ExtractionResult(recipe=None, confidence=LOW, source=f"flat-text:{fmt.value}", hint=SUPPORTED_FORMATS_HINT)


def to_paprika_text(recipe: ParsedRecipe) -> str:
    """Render a recipe in the Paprika plain-text layout."""
    text = f"# {recipe.name}\n\n"

    if recipe.description:
        text += f"{recipe.description}\n\n"

    if recipe.prep_time or recipe.cook_time or recipe.total_time:
        text += "## Timing\n"
        if recipe.prep_time:
            text += f"Prep: {recipe.prep_time}\n"
        if recipe.cook_time:
            text += f"Cook: {recipe.cook_time}\n"
        if recipe.total_time:
            text += f"Total: {recipe.total_time}\n"
        text += "\n"

    if recipe.recipe_yield:
        text += f"Servings: {recipe.recipe_yield}\n\n"

    text += "## Ingredients\n"
    for ingredient in recipe.ingredients:
        text += f"- {ingredient}\n"
    text += "\n"

    text += "## Instructions\n"
    for index, instruction in enumerate(recipe.instructions, start=1):
        text += f"{index}. {instruction}\n\n"

    if recipe.source_name or recipe.source_url:
        text += "---\n"
        if recipe.source_name:
            text += f"Source: {recipe.source_name}\n"
        if recipe.source_url:
            text += f"URL: {recipe.source_url}\n"

    return text


def to_meal_master_text(recipe: ParsedRecipe) -> str:
    """Render a recipe as a Meal-Master block with explicit delimiters."""
    lines = ["MMMMM----- Recipe via Meal-Master (tm) v8.05", ""]
    lines.append(f"      Title: {recipe.name}")
    if recipe.tags:
        lines.append(f" Categories: {', '.join(recipe.tags)}")
    if recipe.recipe_yield:
        lines.append(f"      Yield: {recipe.recipe_yield}")
    if recipe.source_name:
        lines.append(f"     Source: {recipe.source_name}")
    lines.append("")
    lines.append("-----")
    lines.extend(recipe.ingredients)
    lines.append("-----")
    for instruction in recipe.instructions:
        lines.append(instruction)
        lines.append("")
    lines.append("MMMMM")
    return "\n".join(lines) + "\n"
