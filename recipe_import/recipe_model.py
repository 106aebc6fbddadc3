"""Normalized recipe model shared by every import strategy."""

import re
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Confidence = Literal["high", "medium", "low"]

HIGH: Confidence = "high"
MEDIUM: Confidence = "medium"
LOW: Confidence = "low"


_ISO_DURATION = re.compile(
    r'^P(?:(\d+(?:\.\d+)?)D)?'
    r'(?:T(?:(\d+(?:\.\d+)?)H)?(?:(\d+(?:\.\d+)?)M)?(?:(\d+(?:\.\d+)?)S)?)?$',
    re.IGNORECASE,
)
_TEXT_DAYS = re.compile(r'(\d+(?:\.\d+)?)\s*(?:d|days?)\b', re.IGNORECASE)
_TEXT_HOURS = re.compile(r'(\d+(?:\.\d+)?)\s*(?:h|hrs?|hours?)\b', re.IGNORECASE)
_TEXT_MINUTES = re.compile(r'(\d+(?:\.\d+)?)\s*(?:m|mins?|minutes?)\b', re.IGNORECASE)


@dataclass(frozen=True)
class Duration:
    """A cooking time as a structured amount (never a display string)."""
    hours: int = 0
    minutes: int = 0

    def __post_init__(self):
        total = self.hours * 60 + self.minutes
        if total < 0:
            raise ValueError("Duration cannot be negative")
        # Normalise so minutes always stays below 60
        object.__setattr__(self, "hours", total // 60)
        object.__setattr__(self, "minutes", total % 60)

    @classmethod
    def from_minutes(cls, total_minutes: int) -> "Duration":
        return cls(hours=0, minutes=int(total_minutes))

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes

    def to_dict(self) -> dict[str, int]:
        return {
            "hours": self.hours,
            "minutes": self.minutes,
            "total_minutes": self.total_minutes,
        }

    def __str__(self) -> str:
        chunks = []
        if self.hours:
            chunks.append(f"{self.hours} hr" + ("s" if self.hours > 1 else ""))
        if self.minutes or not self.hours:
            chunks.append(f"{self.minutes} min" + ("s" if self.minutes != 1 else ""))
        return " ".join(chunks)


def parse_duration(value: Any) -> Optional[Duration]:
    """Parse a duration from ISO-8601, a bare number of minutes, or free text.

    Examples:
        "PT1H30M"          → 1 hr 30 mins
        45                 → 45 mins
        "1 hour 20 minutes" → 1 hr 20 mins
        "1h 5m"            → 1 hr 5 mins

    Returns None when nothing usable is found; never raises.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return Duration.from_minutes(round(value)) if value > 0 else None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if text.isdigit():
        minutes = int(text)
        return Duration.from_minutes(minutes) if minutes > 0 else None

    iso = _ISO_DURATION.match(text)
    if iso and any(iso.groups()):
        days, hours, minutes, seconds = (float(g) if g else 0.0 for g in iso.groups())
        total = days * 24 * 60 + hours * 60 + minutes + seconds / 60
    else:
        total = 0.0
        for pattern, factor in ((_TEXT_DAYS, 24 * 60), (_TEXT_HOURS, 60), (_TEXT_MINUTES, 1)):
            for match in pattern.finditer(text):
                total += float(match.group(1)) * factor

    total_minutes = round(total)
    if total_minutes <= 0:
        return None
    return Duration.from_minutes(total_minutes)


@dataclass
class ParsedRecipe:
    """Normalized recipe produced by every extraction strategy.

    Ingredient and instruction lists keep their display order. The name is
    mandatory: extractors that cannot establish one return no recipe at all
    instead of a placeholder.
    """
    name: str
    description: Optional[str] = None
    prep_time: Optional[Duration] = None
    cook_time: Optional[Duration] = None
    total_time: Optional[Duration] = None
    recipe_yield: Optional[str] = None
    ingredients: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    has_image_data: bool = False

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Recipe name must not be empty")
        self.name = self.name.strip()

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "name": self.name,
            "description": self.description,
            "prep_time": self.prep_time.to_dict() if self.prep_time else None,
            "cook_time": self.cook_time.to_dict() if self.cook_time else None,
            "total_time": self.total_time.to_dict() if self.total_time else None,
            "recipe_yield": self.recipe_yield,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "source_name": self.source_name,
            "source_url": self.source_url,
            "image_url": self.image_url,
            "tags": list(self.tags),
            "has_image_data": self.has_image_data,
        }


@dataclass
class ExtractionResult:
    """A recipe (or None) plus how it was found and how far to trust it.

    Confidence is advisory; it never decides whether the result is returned.
    """
    recipe: Optional[ParsedRecipe]
    confidence: Confidence
    source: str
    hint: Optional[str] = None
