"""
Comparison keys for raw ingredient lines.

`normalize_ingredient_line` strips quantities, units and preparation words so
"3 Cloves Garlic, Peeled & Minced" and "garlic" compare equal. The key is only
ever used for matching; the original line is what gets stored and displayed.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Unit spellings → canonical unit (used for the amount/unit columns)
UNIT_MAPPING = {
    # Volume
    'cup': 'cup', 'cups': 'cup', 'c': 'cup', 'c.': 'cup',
    'tablespoon': 'tbsp', 'tablespoons': 'tbsp', 'tbsp': 'tbsp', 'tbs': 'tbsp', 'tb': 'tbsp', 'T': 'tbsp',
    'teaspoon': 'tsp', 'teaspoons': 'tsp', 'tsp': 'tsp', 'ts': 'tsp', 't': 'tsp',
    'fluid ounce': 'fl oz', 'fluid ounces': 'fl oz', 'fl oz': 'fl oz', 'fl. oz.': 'fl oz',
    'pint': 'pint', 'pints': 'pint', 'pt': 'pint',
    'quart': 'quart', 'quarts': 'quart', 'qt': 'quart',
    'gallon': 'gallon', 'gallons': 'gallon', 'gal': 'gallon',
    'milliliter': 'ml', 'milliliters': 'ml', 'millilitre': 'ml', 'millilitres': 'ml', 'ml': 'ml', 'mL': 'ml',
    'liter': 'L', 'liters': 'L', 'litre': 'L', 'litres': 'L', 'l': 'L', 'L': 'L',
    'deciliter': 'dl', 'deciliters': 'dl', 'dl': 'dl',

    # Weight
    'gram': 'g', 'grams': 'g', 'gramme': 'g', 'grammes': 'g', 'g': 'g', 'gr': 'g',
    'kilogram': 'kg', 'kilograms': 'kg', 'kg': 'kg', 'kilo': 'kg', 'kilos': 'kg',
    'milligram': 'mg', 'milligrams': 'mg', 'mg': 'mg',
    'ounce': 'oz', 'ounces': 'oz', 'oz': 'oz', 'oz.': 'oz',
    'pound': 'lb', 'pounds': 'lb', 'lb': 'lb', 'lbs': 'lb',

    # Count/Whole
    'piece': 'whole', 'pieces': 'whole', 'whole': 'whole',

    # Special units
    'slice': 'slice', 'slices': 'slice',
    'clove': 'clove', 'cloves': 'clove',
    'stalk': 'stalk', 'stalks': 'stalk',
    'stick': 'stick', 'sticks': 'stick',
    'sprig': 'sprig', 'sprigs': 'sprig',
    'head': 'head', 'heads': 'head',
    'bunch': 'bunch', 'bunches': 'bunch',
    'can': 'can', 'cans': 'can',
    'jar': 'jar', 'jars': 'jar',
    'package': 'package', 'packages': 'package', 'pkg': 'package',
    'pinch': 'pinch', 'pinches': 'pinch',
    'dash': 'dash', 'dashes': 'dash',
    'to taste': 'to taste',
}

# Measures and containers stripped from comparison keys
UNIT_WORDS = frozenset({
    'cup', 'cups', 'c', 'tablespoon', 'tablespoons', 'tbsp', 'tbsps', 'tbs', 'tb',
    'teaspoon', 'teaspoons', 'tsp', 'tsps', 'ts', 'fluid', 'fl', 'ounce', 'ounces', 'oz',
    'pint', 'pints', 'pt', 'quart', 'quarts', 'qt', 'gallon', 'gallons', 'gal',
    'milliliter', 'milliliters', 'millilitre', 'millilitres', 'ml',
    'liter', 'liters', 'litre', 'litres', 'l', 'deciliter', 'deciliters', 'dl',
    'pound', 'pounds', 'lb', 'lbs', 'gram', 'grams', 'gramme', 'grammes', 'g',
    'kilogram', 'kilograms', 'kg', 'milligram', 'milligrams', 'mg',
    'inch', 'inches', 'cm', 'centimeter', 'centimeters', 'mm',
    'pinch', 'pinches', 'dash', 'dashes', 'clove', 'cloves', 'stalk', 'stalks',
    'stick', 'sticks', 'piece', 'pieces', 'chunk', 'chunks', 'strip', 'strips',
    'wedge', 'wedges', 'slice', 'slices', 'head', 'heads', 'bunch', 'bunches',
    'sprig', 'sprigs', 'bulb', 'bulbs', 'can', 'cans', 'jar', 'jars',
    'package', 'packages', 'pkg', 'box', 'boxes', 'bag', 'bags',
    'container', 'containers', 'handful', 'handfuls',
})

# Cutting styles, prep actions, states, sizes, optional phrases, connectives
DESCRIPTOR_WORDS = frozenset({
    # cutting / prep styles
    'diced', 'chopped', 'peeled', 'minced', 'sliced', 'grated', 'shredded', 'crushed',
    'mashed', 'pureed', 'ground', 'crumbled', 'julienned', 'cubed', 'halved',
    'quartered', 'torn', 'cut', 'chop', 'dice', 'mince', 'into', 'pieces',
    # prep actions
    'washed', 'rinsed', 'cleaned', 'scrubbed', 'drained', 'patted', 'trimmed',
    'deveined', 'deseeded', 'seeded', 'pitted', 'cored', 'stemmed', 'sifted',
    'beaten', 'whisked', 'divided', 'packed', 'heaping', 'level',
    # states
    'fresh', 'freshly', 'dried', 'frozen', 'thawed', 'defrosted', 'raw', 'cooked',
    'uncooked', 'boiled', 'roasted', 'toasted', 'melted', 'softened', 'cold', 'warm',
    'chilled', 'room', 'temperature', 'unsalted', 'salted', 'sweetened', 'unsweetened',
    'boneless', 'skinless', 'whole',
    # sizes
    'large', 'medium', 'small', 'extra',
    # adverbs
    'finely', 'coarsely', 'roughly', 'thinly', 'thickly', 'lightly',
    'about', 'approximately',
    # optional / serving phrases
    'optional', 'taste', 'needed', 'serving', 'garnish', 'desired', 'preferably',
    'plus', 'more',
    # connectives and articles
    'and', 'or', 'with', 'without', 'a', 'an', 'the', 'of', 'to', 'in', 'for',
    'from', 'on', 'at', 'by', 'as', 'if',
})

_STRIP_WORDS = UNIT_WORDS | DESCRIPTOR_WORDS

_PARENTHETICAL = re.compile(r'\([^)]*\)|\[[^\]]*\]')
_PUNCTUATION = re.compile(r"[^\w\s']|_")
_NUMERIC_TOKEN = re.compile(
    r"^[\d¼½¾⅓⅔⅛⅜⅝⅞]+(?:st|nd|rd|th|x)?$"
    r"|^\d+(?:g|kg|mg|ml|l|oz|lb|lbs|cm|mm)$"
)


def _tokens(text: str) -> list[str]:
    text = _PUNCTUATION.sub(" ", text)
    return [t.strip("'") for t in text.split() if t.strip("'")]


def fold_name(name: str) -> str:
    """Lowercase *name*, turn punctuation into spaces and collapse whitespace.

    Used for catalog names and aliases, which must keep every word.
    """
    if not name:
        return ""
    return " ".join(_tokens(name.lower()))


def normalize_ingredient_line(line: str) -> str:
    """Derive the comparison key for a raw ingredient line.

    Total and idempotent: every string yields a (possibly empty) key, and a
    key normalizes to itself.

    Examples:
        "3 Cloves Garlic, Peeled & Minced" → "garlic"
        "1 Stalk Celery, Diced"            → "celery"
        "2 (14 oz) cans diced tomatoes"    → "tomatoes"
    """
    if not line:
        return ""

    text = _PARENTHETICAL.sub(" ", str(line).lower())
    kept = [
        token for token in _tokens(text)
        if token not in _STRIP_WORDS and not _NUMERIC_TOKEN.match(token)
    ]
    return " ".join(kept)


def standardize_unit(unit: str) -> str:
    """
    Standardize a unit spelling.

    Args:
        unit: Raw unit string

    Returns:
        Standardized unit, or the input unchanged when unknown
    """
    if not unit:
        return ''

    # Direct mapping first: 'T' (tbsp) and 't' (tsp) differ only by case
    if unit.strip() in UNIT_MAPPING:
        return UNIT_MAPPING[unit.strip()]

    unit_lower = unit.lower().strip()
    if unit_lower in UNIT_MAPPING:
        return UNIT_MAPPING[unit_lower]

    # Handle plural forms not in mapping
    if unit_lower.endswith('s') and unit_lower[:-1] in UNIT_MAPPING:
        return UNIT_MAPPING[unit_lower[:-1]]

    logger.debug("Unknown unit %r left as-is", unit)
    return unit
