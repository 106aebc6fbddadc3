"""
Match ingredient lines against the controlled ingredient vocabulary.

Rules run in strict priority order and the first one that produces a
candidate decides the result:

1. exact   – key equals a canonical name (score 1.0)
2. alias   – key contains an alias, or an alias contains one of the key's
             tokens longer than two characters; the longest alias wins
3. partial – key and canonical name contain one another; scored by the
             symmetric length ratio and accepted only strictly above the
             threshold

Every tie is broken by table order, so results never depend on dict or set
iteration order. The tables are passed in by the caller and never mutated.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Sequence

from recipe_import import config
from recipe_import.ingredient_normalizer import fold_name, normalize_ingredient_line

logger = logging.getLogger(__name__)

MatchType = Literal["exact", "alias", "partial"]


@dataclass(frozen=True)
class CanonicalIngredient:
    id: int
    name: str
    category: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "category": self.category}


@dataclass(frozen=True)
class IngredientAlias:
    id: int
    alias: str
    ingredient_id: int


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one ingredient line."""
    line: str
    key: str
    ingredient: Optional[CanonicalIngredient] = None
    match_type: Optional[MatchType] = None
    matched_term: Optional[str] = None
    score: float = 0.0

    @property
    def matched(self) -> bool:
        return self.ingredient is not None

    def to_dict(self) -> dict[str, Any]:
        if not self.matched:
            return {"line": self.line, "key": self.key, "matched": None}
        return {
            "line": self.line,
            "key": self.key,
            "matched": self.ingredient.to_dict(),
            "match_type": self.match_type,
            "matched_term": self.matched_term,
            "score": self.score,
        }


@dataclass
class MatchReport:
    matches: list[MatchResult] = field(default_factory=list)
    unmatched_lines: list[str] = field(default_factory=list)

    @property
    def matched(self) -> list[MatchResult]:
        return [m for m in self.matches if m.matched]


def length_ratio(a: str, b: str) -> float:
    """Symmetric length ratio min/max, 0.0 when either side is empty."""
    if not a or not b:
        return 0.0
    return min(len(a), len(b)) / max(len(a), len(b))


class IngredientMatcher:
    """Matches keys against canonical ingredients and aliases supplied by the caller.

    Load the tables once per batch and reuse the matcher for every line.
    """

    def __init__(
        self,
        ingredients: Sequence[CanonicalIngredient],
        aliases: Sequence[IngredientAlias] = (),
        threshold: Optional[float] = None,
    ):
        self.threshold = config.PARTIAL_MATCH_THRESHOLD if threshold is None else threshold

        # (folded name, ingredient) in table order
        self._ingredients: list[tuple[str, CanonicalIngredient]] = [
            (fold_name(ing.name), ing) for ing in ingredients
        ]

        by_id = {}
        for ing in ingredients:
            by_id.setdefault(ing.id, ing)  # first occurrence wins on duplicate ids

        # (folded alias, alias as written, ingredient) in table order
        self._aliases: list[tuple[str, str, CanonicalIngredient]] = []
        for alias in aliases:
            target = by_id.get(alias.ingredient_id)
            folded = fold_name(alias.alias)
            if target is None:
                logger.warning("Alias points at unknown ingredient", extra={"alias": alias.alias, "ingredient_id": alias.ingredient_id})
                continue
            if not folded:
                continue
            self._aliases.append((folded, alias.alias, target))

    def match_key(self, key: str, line: Optional[str] = None) -> MatchResult:
        """Match an already-normalized key.

        Args:
            key: Comparison key from normalize_ingredient_line
            line: Raw line to carry on the result (defaults to key)
        """
        line = key if line is None else line
        if not key:
            return MatchResult(line=line, key=key)

        return (
            self._exact(key, line)
            or self._alias(key, line)
            or self._partial(key, line)
            or MatchResult(line=line, key=key)
        )

    def match_line(self, line: str) -> MatchResult:
        return self.match_key(normalize_ingredient_line(line), line=line)

    def match_lines(self, lines: Iterable[str]) -> MatchReport:
        """Match each line independently; unmatched lines are kept verbatim, in order."""
        report = MatchReport()
        for line in lines:
            result = self.match_line(line)
            report.matches.append(result)
            if not result.matched:
                report.unmatched_lines.append(line)
        logger.debug(
            "Matched ingredient lines",
            extra={"total": len(report.matches), "unmatched": len(report.unmatched_lines)},
        )
        return report

    def _exact(self, key: str, line: str) -> Optional[MatchResult]:
        for name, ingredient in self._ingredients:
            if name == key:
                return MatchResult(line, key, ingredient, "exact", ingredient.name, 1.0)
        return None

    def _alias(self, key: str, line: str) -> Optional[MatchResult]:
        tokens = [t for t in key.split() if len(t) > 2]
        best: Optional[tuple[str, str, CanonicalIngredient]] = None

        for folded, written, ingredient in self._aliases:
            hit = folded in key or any(token in folded for token in tokens)
            # Strictly longer only: ties keep the earlier alias
            if hit and (best is None or len(folded) > len(best[0])):
                best = (folded, written, ingredient)

        if best is None:
            return None
        folded, written, ingredient = best
        return MatchResult(line, key, ingredient, "alias", written, round(length_ratio(key, folded), 4))

    def _partial(self, key: str, line: str) -> Optional[MatchResult]:
        best: Optional[tuple[float, str, CanonicalIngredient]] = None

        for name, ingredient in self._ingredients:
            if not name or not (name in key or key in name):
                continue
            score = length_ratio(key, name)
            if best is None or score > best[0]:
                best = (score, name, ingredient)

        if best is None or not best[0] > self.threshold:
            return None
        score, _, ingredient = best
        return MatchResult(line, key, ingredient, "partial", ingredient.name, round(score, 4))
