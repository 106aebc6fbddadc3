"""Split raw ingredient lines into amount, unit and name."""

import re
from dataclasses import dataclass

from recipe_import.ingredient_normalizer import standardize_unit


@dataclass
class ParsedIngredient:
    """Amount/unit/name split of one ingredient line."""
    original: str
    amount: str
    unit: str
    name: str
    quantity: float | None = None  # numeric form of amount (lower bound for ranges)

    def to_dict(self) -> dict:
        return {
            'original': self.original,
            'amount': self.amount,
            'unit': self.unit,
            'unit_canonical': standardize_unit(self.unit) if self.unit else '',
            'name': self.name,
            'quantity': self.quantity,
        }


class IngredientParser:
    """Parse ingredient strings into amount / unit / name."""

    UNICODE_FRACTIONS = {
        '¼': 0.25, '½': 0.5, '¾': 0.75,
        '⅓': 0.333, '⅔': 0.667,
        '⅛': 0.125, '⅜': 0.375, '⅝': 0.625, '⅞': 0.875
    }

    # Longest spellings first so "tablespoons" wins over "t"
    UNITS = sorted([
        # Volume
        'cup', 'cups', 'c',
        'tablespoon', 'tablespoons', 'tbsp', 'tbs', 'tb',
        'teaspoon', 'teaspoons', 'tsp', 'ts',
        'fluid ounce', 'fluid ounces', 'fl oz', 'fl. oz.',
        'pint', 'pints', 'pt', 'quart', 'quarts', 'qt', 'gallon', 'gallons', 'gal',
        'milliliter', 'milliliters', 'millilitre', 'millilitres', 'ml',
        'liter', 'liters', 'litre', 'litres', 'l',
        'deciliter', 'deciliters', 'dl',
        # Weight
        'pound', 'pounds', 'lb', 'lbs', 'ounce', 'ounces', 'oz',
        'gram', 'grams', 'gramme', 'grammes', 'g',
        'kilogram', 'kilograms', 'kg', 'milligram', 'milligrams', 'mg',
        # Length
        'inch', 'inches', 'in', 'centimeter', 'centimeters', 'cm',
        # Other
        'pinch', 'pinches', 'dash', 'dashes', 'clove', 'cloves',
        'slice', 'slices', 'piece', 'pieces', 'can', 'cans', 'jar', 'jars',
        'package', 'packages', 'pkg', 'box', 'boxes', 'bag', 'bags',
        'bunch', 'bunches', 'head', 'heads', 'sprig', 'sprigs',
        'stalk', 'stalks', 'stick', 'sticks', 'sheet', 'sheets',
        'leaf', 'leaves', 'whole', 'small', 'medium', 'large', 'to taste',
    ], key=len, reverse=True)

    # "1", "1.5", "1/2", "1 1/2", "1-2", "½", "1½"
    _AMOUNT = re.compile(
        r'^((?:\d+(?:[./]\d+)?(?:\s*[-–]\s*\d+(?:[./]\d+)?)?(?:\s+\d+/\d+)?[¼½¾⅓⅔⅛⅜⅝⅞]?)'
        r'|[¼½¾⅓⅔⅛⅜⅝⅞])(?=\s|$|[a-zA-Z(])\s*'
    )
    _PAREN_SIZE = re.compile(r'^\(([^)]+)\)\s+')

    def parse(self, ingredient_str: str) -> ParsedIngredient:
        """Parse ingredient string.

        Examples:
            "1 cup flour"                → ("1", "cup", "flour")
            "1/2 teaspoon salt"          → ("1/2", "teaspoon", "salt")
            "1 (14 ounce) can tomatoes"  → ("1", "14 ounce", "can tomatoes")
            "salt and pepper to taste"   → ("", "", "salt and pepper to taste")
        """
        original = (ingredient_str or '').strip()
        if not original:
            return ParsedIngredient(original=original, amount='', unit='', name='')

        text = re.sub(r'^[•▢\-*\s]+', '', original).strip()

        amount = ''
        amount_match = self._AMOUNT.match(text)
        if amount_match:
            amount = amount_match.group(1).strip()
            text = text[amount_match.end():].strip()

        unit = ''
        for candidate in self.UNITS:
            pattern = rf'^({re.escape(candidate)})(?:\.)?(?:\s+|$)'
            unit_match = re.match(pattern, text, re.IGNORECASE)
            if unit_match:
                unit = unit_match.group(1)
                text = text[unit_match.end():].strip()
                break

        name = re.sub(r'^[,\-\s]+', '', text).strip()

        # "1 (14 ounce) can tomatoes": the parenthetical carries the unit
        paren_match = self._PAREN_SIZE.match(name)
        if paren_match and not unit:
            content = paren_match.group(1)
            if any(re.search(rf'\b{re.escape(u)}\b', content, re.IGNORECASE) for u in self.UNITS):
                unit = content.strip()
                name = name[paren_match.end():].strip()

        return ParsedIngredient(
            original=original,
            amount=amount,
            unit=unit,
            name=name or original,
            quantity=self._parse_quantity(amount) if amount else None,
        )

    def _parse_quantity(self, quantity_str: str) -> float | None:
        """Parse quantity string to float.

        Handles: "1", "1.5", "1/4", "1 1/2", "¼", "1½", and ranges like "1-2"
        (lower bound).
        """
        quantity_str = re.split(r'\s*[-–]\s*', quantity_str.strip())[0]

        # Integer + unicode fraction: "1½", or just "½"
        for frac_char, frac_value in self.UNICODE_FRACTIONS.items():
            if frac_char in quantity_str:
                whole = quantity_str.split(frac_char)[0].strip()
                if not whole:
                    return frac_value
                try:
                    return float(whole) + frac_value
                except ValueError:
                    return None

        # Mixed number: "1 1/2"
        if ' ' in quantity_str and '/' in quantity_str:
            parts = quantity_str.split()
            try:
                whole = float(parts[0])
            except ValueError:
                return None
            frac = self._parse_quantity(parts[1])
            return whole + (frac or 0)

        # Simple fraction: "1/2"
        if '/' in quantity_str:
            try:
                num, denom = quantity_str.split('/')
                return float(num) / float(denom)
            except (ValueError, ZeroDivisionError):
                return None

        try:
            return float(quantity_str)
        except ValueError:
            return None
