import html as html_lib
import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from recipe_import.html_fetcher import fetch_html
from recipe_import.recipe_model import HIGH, LOW, MEDIUM, ExtractionResult, ParsedRecipe, parse_duration
from recipe_import.text_parser import GenericDialect

logger = logging.getLogger(__name__)

_MEASURE_HINT = re.compile(r'\d|[¼½¾⅓⅔⅛]|\b(cups?|tbsp|tsp|tablespoons?|teaspoons?|lbs?|oz|ounces?|grams?|g|ml|pinch)\b', re.IGNORECASE)
_NUMBERED_STEP = re.compile(r'^(\d+\.|Step \d+:?)\s*', re.IGNORECASE)


def _clean_text(value: Any) -> str:
    """Decode entities, drop inline tags and collapse whitespace."""
    if value is None:
        return ''
    text = html_lib.unescape(str(value))
    if '<' in text:
        text = BeautifulSoup(text, 'html.parser').get_text(' ')
    return re.sub(r'\s+', ' ', text).strip()


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


class RecipeParser:
    """Extract recipes from web pages using multiple strategies.

    Structured data is tried first (JSON-LD, microdata, RDFa, h-recipe,
    WP Recipe Maker); when none of it yields a recipe name the page content
    is searched heuristically.
    """

    def parse_from_url(self, url: str) -> ExtractionResult:
        """Fetch *url* and extract a recipe from it.

        Raises:
            FetchError: If the page cannot be fetched; an empty page is not an error
        """
        page = fetch_html(url)
        return self.parse_html(page.html, page.url)

    def parse_html(self, html: str, url: str = '') -> ExtractionResult:
        """Extract a recipe from markup; never raises on bad markup."""
        soup = BeautifulSoup(html or '', 'html.parser')

        strategies = (
            ('jsonld', self._parse_json_ld),
            ('microdata', self._parse_microdata),
            ('rdfa', self._parse_rdfa),
            ('h-recipe', self._parse_h_recipe),
            ('wprm', lambda s, u: self._parse_wprm(html or '', u)),
        )
        for source, strategy in strategies:
            recipe = strategy(soup, url)
            if recipe:
                logger.info("Recipe extracted from structured data", extra={"source": source, "recipe_name": recipe.name})
                return ExtractionResult(recipe=recipe, confidence=HIGH, source=source)

        recipe = self._parse_heuristic(soup, url)
        if recipe is None:
            logger.info("No recipe found in page", extra={"url": url})
            return ExtractionResult(recipe=None, confidence=LOW, source='heuristic')

        confidence = MEDIUM if recipe.ingredients else LOW
        logger.info("Recipe extracted heuristically", extra={"recipe_name": recipe.name, "confidence": confidence})
        return ExtractionResult(recipe=recipe, confidence=confidence, source='heuristic')

    # ------------------------------------------------------------------
    # JSON-LD
    # ------------------------------------------------------------------

    def _parse_json_ld(self, soup: BeautifulSoup, url: str) -> Optional[ParsedRecipe]:
        """Extract recipe from schema.org JSON-LD markup."""
        for script in soup.find_all('script', type='application/ld+json'):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.debug("Skipping malformed JSON-LD block", extra={"error": str(e)})
                continue

            for item in self._find_recipe_nodes(data):
                recipe = self._recipe_from_schema(item, url)
                if recipe:
                    return recipe

        return None

    def _find_recipe_nodes(self, data: Any) -> list[dict]:
        """Collect Recipe-typed nodes from top-level lists and @graph containers."""
        nodes = []
        pending = _as_list(data)
        while pending:
            item = pending.pop(0)
            if not isinstance(item, dict):
                continue
            types = [str(t) for t in _as_list(item.get('@type'))]
            if any(t == 'Recipe' or t.endswith('/Recipe') for t in types):
                nodes.append(item)
            if '@graph' in item:
                pending.extend(_as_list(item['@graph']))
        return nodes

    def _recipe_from_schema(self, data: dict, url: str) -> Optional[ParsedRecipe]:
        """Map schema.org Recipe fields onto ParsedRecipe."""
        name = _clean_text(data.get('name') or data.get('headline'))
        if not name:
            return None

        ingredients = [
            _clean_text(ing) for ing in _as_list(data.get('recipeIngredient') or data.get('ingredients'))
            if _clean_text(ing)
        ]

        return ParsedRecipe(
            name=name,
            description=_clean_text(data.get('description')) or None,
            prep_time=parse_duration(data.get('prepTime')),
            cook_time=parse_duration(data.get('cookTime')),
            total_time=parse_duration(data.get('totalTime')),
            recipe_yield=self._extract_yield(data.get('recipeYield')),
            ingredients=ingredients,
            instructions=self._flatten_instructions(data.get('recipeInstructions')),
            source_name=self._extract_author(data.get('author')),
            source_url=data.get('url') if isinstance(data.get('url'), str) else url or None,
            image_url=self._extract_image(data.get('image'), url),
            tags=self._extract_tags(data),
        )

    def _flatten_instructions(self, raw: Any) -> list[str]:
        """Handle string, list, HowToStep and nested HowToSection instructions."""
        if isinstance(raw, str):
            text = html_lib.unescape(raw)
            if '<' in text:
                text = BeautifulSoup(text, 'html.parser').get_text('\n')
            return [_clean_text(line) for line in text.split('\n') if _clean_text(line)]

        steps = []
        for item in _as_list(raw):
            if isinstance(item, str):
                if _clean_text(item):
                    steps.append(_clean_text(item))
            elif isinstance(item, dict):
                if 'itemListElement' in item:
                    steps.extend(self._flatten_instructions(item['itemListElement']))
                else:
                    text = _clean_text(item.get('text') or item.get('name'))
                    if text:
                        steps.append(text)
            elif isinstance(item, list):
                steps.extend(self._flatten_instructions(item))
        return steps

    def _extract_yield(self, yield_value: Any) -> Optional[str]:
        """recipeYield can be a number, a string, or a list of both."""
        values = [v for v in _as_list(yield_value) if v not in (None, '')]
        if not values:
            return None
        # Prefer the descriptive form ("4 servings") over a bare number
        texts = [_clean_text(v) for v in values]
        for text in texts:
            if not text.isdigit():
                return text
        return texts[0]

    def _extract_author(self, author: Any) -> Optional[str]:
        for item in _as_list(author):
            if isinstance(item, str) and _clean_text(item):
                return _clean_text(item)
            if isinstance(item, dict) and _clean_text(item.get('name')):
                return _clean_text(item.get('name'))
        return None

    def _extract_image(self, image: Any, url: str) -> Optional[str]:
        for item in _as_list(image):
            candidate = item.get('url') or item.get('contentUrl') if isinstance(item, dict) else item
            if isinstance(candidate, str) and candidate.strip():
                return urljoin(url, candidate.strip()) if url else candidate.strip()
        return None

    def _extract_tags(self, data: dict) -> list[str]:
        tags = []
        for key in ('recipeCategory', 'recipeCuisine', 'keywords'):
            for value in _as_list(data.get(key)):
                parts = value.split(',') if isinstance(value, str) else [value]
                for part in parts:
                    text = _clean_text(part)
                    if text and text not in tags:
                        tags.append(text)
        return tags

    # ------------------------------------------------------------------
    # Microdata / RDFa / h-recipe
    # ------------------------------------------------------------------

    def _prop_value(self, el: Tag) -> str:
        """Value of a microdata/RDFa property element."""
        for attr in ('content', 'datetime'):
            if el.get(attr):
                return _clean_text(el[attr])
        if el.name in ('img', 'source') and el.get('src'):
            return el['src']
        if el.name in ('a', 'link') and el.get('href'):
            return el['href']
        return _clean_text(el.get_text(' '))

    def _props(self, root: Tag, attr: str, *names: str) -> list[Tag]:
        return [
            el for el in root.find_all(attrs={attr: True})
            if any(n in el[attr].split() if isinstance(el[attr], str) else n in el[attr] for n in names)
        ]

    def _first_prop(self, root: Tag, attr: str, *names: str) -> Optional[str]:
        for el in self._props(root, attr, *names):
            value = self._prop_value(el)
            if value:
                return value
        return None

    def _step_texts(self, elements: list[Tag]) -> list[str]:
        steps = []
        for el in elements:
            items = el.find_all(['li', 'p']) if el.name not in ('li', 'p') else []
            if items:
                steps.extend(_clean_text(i.get_text(' ')) for i in items if _clean_text(i.get_text(' ')))
            else:
                text = _clean_text(el.get_text(' '))
                if text:
                    steps.append(text)
        return steps

    def _parse_property_markup(self, root: Tag, attr: str, url: str) -> Optional[ParsedRecipe]:
        """Shared mapping for microdata (itemprop) and RDFa (property)."""
        name = self._first_prop(root, attr, 'name')
        if not name:
            return None

        ingredients = [
            self._prop_value(el) for el in self._props(root, attr, 'recipeIngredient', 'ingredients')
            if self._prop_value(el)
        ]
        image = self._first_prop(root, attr, 'image')

        return ParsedRecipe(
            name=name,
            description=self._first_prop(root, attr, 'description'),
            prep_time=parse_duration(self._first_prop(root, attr, 'prepTime')),
            cook_time=parse_duration(self._first_prop(root, attr, 'cookTime')),
            total_time=parse_duration(self._first_prop(root, attr, 'totalTime')),
            recipe_yield=self._first_prop(root, attr, 'recipeYield', 'yield'),
            ingredients=ingredients,
            instructions=self._step_texts(self._props(root, attr, 'recipeInstructions')),
            source_name=self._first_prop(root, attr, 'author'),
            source_url=url or None,
            image_url=urljoin(url, image) if image and url else image,
        )

    def _parse_microdata(self, soup: BeautifulSoup, url: str) -> Optional[ParsedRecipe]:
        root = soup.find(attrs={'itemtype': re.compile(r'schema\.org/Recipe', re.IGNORECASE)})
        if root is None:
            return None
        return self._parse_property_markup(root, 'itemprop', url)

    def _parse_rdfa(self, soup: BeautifulSoup, url: str) -> Optional[ParsedRecipe]:
        root = soup.find(attrs={'typeof': re.compile(r'Recipe')})
        if root is None:
            return None
        return self._parse_property_markup(root, 'property', url)

    def _parse_h_recipe(self, soup: BeautifulSoup, url: str) -> Optional[ParsedRecipe]:
        root = soup.select_one('.h-recipe')
        if root is None:
            return None

        name_el = root.select_one('.p-name')
        name = _clean_text(name_el.get_text(' ')) if name_el else ''
        if not name:
            return None

        summary = root.select_one('.p-summary')
        author = root.select_one('.p-author')
        recipe_yield = root.select_one('.p-yield')
        duration = root.select_one('.dt-duration')
        photo = root.select_one('.u-photo')
        photo_url = (photo.get('src') or photo.get('href')) if photo else None

        return ParsedRecipe(
            name=name,
            description=_clean_text(summary.get_text(' ')) if summary else None,
            total_time=parse_duration(self._prop_value(duration)) if duration else None,
            recipe_yield=_clean_text(recipe_yield.get_text(' ')) if recipe_yield else None,
            ingredients=[_clean_text(el.get_text(' ')) for el in root.select('.p-ingredient') if _clean_text(el.get_text(' '))],
            instructions=self._step_texts(root.select('.e-instructions')),
            source_name=_clean_text(author.get_text(' ')) if author else None,
            source_url=url or None,
            image_url=urljoin(url, photo_url) if photo_url and url else photo_url,
        )

    # ------------------------------------------------------------------
    # WP Recipe Maker
    # ------------------------------------------------------------------

    def _parse_wprm(self, html: str, url: str) -> Optional[ParsedRecipe]:
        """Parse WP Recipe Maker (WPRM) plugin data from window.wprm_recipes."""
        match = re.search(r'window\.wprm_recipes\s*=\s*(\{.+?\});', html, re.DOTALL)
        if not match:
            return None

        try:
            wprm_data = json.loads(match.group(1))
            # Get first recipe (usually only one)
            recipe_data = next(iter(wprm_data.values()))
        except (json.JSONDecodeError, StopIteration, AttributeError):
            return None

        if not isinstance(recipe_data, dict) or not _clean_text(recipe_data.get('name')):
            return None

        # Rebuild display lines from the amount/unit/name columns
        ingredients = []
        for ing_group in recipe_data.get('ingredients', []):
            for ing in ing_group.get('ingredients', []):
                parts = [_clean_text(ing.get(k)) for k in ('amount', 'unit', 'name', 'notes')]
                line = ' '.join(p for p in parts if p)
                if _clean_text(ing.get('name')):
                    ingredients.append(line)

        instructions = []
        for inst_group in recipe_data.get('instructions', []):
            for inst in inst_group.get('instructions', []):
                text = _clean_text(inst.get('text', ''))
                if text:
                    instructions.append(text)

        image = recipe_data.get('image_url')
        return ParsedRecipe(
            name=_clean_text(recipe_data['name']),
            description=_clean_text(recipe_data.get('summary')) or None,
            prep_time=parse_duration(recipe_data.get('prep_time')),
            cook_time=parse_duration(recipe_data.get('cook_time')),
            total_time=parse_duration(recipe_data.get('total_time')),
            recipe_yield=self._extract_yield(recipe_data.get('servings')),
            ingredients=ingredients,
            instructions=instructions,
            source_url=url or None,
            image_url=image if isinstance(image, str) and image else None,
        )

    # ------------------------------------------------------------------
    # Heuristic fallback
    # ------------------------------------------------------------------

    def _main_content(self, soup: BeautifulSoup) -> Optional[Tag]:
        for tag in soup.find_all(['script', 'style', 'noscript', 'nav', 'footer', 'aside']):
            tag.decompose()
        # Only the site banner; an <article><header> usually holds the recipe title
        if soup.body:
            for tag in soup.body.find_all('header', recursive=False):
                tag.decompose()
        return soup.find('main') or soup.find('article') or soup.find(attrs={'role': 'main'}) or soup.body or soup

    def _heuristic_name(self, soup: BeautifulSoup, content: Tag) -> Optional[str]:
        h1 = content.find('h1') or soup.find('h1')
        if h1 and _clean_text(h1.get_text(' ')):
            return _clean_text(h1.get_text(' '))
        og_title = soup.find('meta', attrs={'property': 'og:title'})
        if og_title and _clean_text(og_title.get('content')):
            return _clean_text(og_title.get('content'))
        if soup.title and _clean_text(soup.title.get_text()):
            return _clean_text(soup.title.get_text())
        return None

    def _list_context(self, lst: Tag) -> str:
        """Class names of the list and its parent, plus the closest preceding heading."""
        context = ' '.join(lst.get('class', []))
        if lst.parent is not None and lst.parent.name:
            context += ' ' + ' '.join(lst.parent.get('class', []))
        heading = lst.find_previous(['h2', 'h3', 'h4', 'strong'])
        if heading:
            context += ' ' + heading.get_text(' ')
        return context.lower()

    def _parse_heuristic(self, soup: BeautifulSoup, url: str) -> Optional[ParsedRecipe]:
        """Fallback parser for pages without structured data."""
        # The name may live in <head>, which _main_content leaves alone
        content = self._main_content(soup)
        name = self._heuristic_name(soup, content)
        if not name:
            return None

        ingredients: list[str] = []
        instructions: list[str] = []
        ingredient_list = None

        lists = content.find_all(['ul', 'ol'])

        # Ingredient list: labelled as such, else the first measurement-heavy list
        for lst in lists:
            items = [_clean_text(li.get_text(' ')) for li in lst.find_all('li')]
            items = [i for i in items if i and len(i) < 200]
            if 'ingredient' in self._list_context(lst) and items:
                ingredient_list, ingredients = lst, items
                break
        if ingredient_list is None:
            for lst in lists:
                items = [_clean_text(li.get_text(' ')) for li in lst.find_all('li')]
                measured = [i for i in items if i and len(i) < 200 and _MEASURE_HINT.search(i)]
                if len(measured) >= 3:
                    ingredient_list, ingredients = lst, measured
                    break

        # Instruction list: labelled list other than the ingredient list
        for lst in lists:
            if lst is ingredient_list:
                continue
            context = self._list_context(lst)
            items = [_clean_text(li.get_text(' ')) for li in lst.find_all('li')]
            items = [i for i in items if len(i) > 10]
            if any(w in context for w in ('direction', 'instruction', 'method', 'step')) and items:
                instructions = items
                break

        # Numbered paragraphs ("1. ..." / "Step 1: ...")
        if not instructions:
            for p in content.find_all('p'):
                text = _clean_text(p.get_text(' '))
                if _NUMBERED_STEP.match(text):
                    instructions.append(_NUMBERED_STEP.sub('', text, count=1))

        # Secondary pass over the page text with the generic text dialect
        if not ingredients and not instructions:
            text = content.get_text('\n')
            parsed = GenericDialect().parse(f"{name}\n{text}")
            if parsed:
                ingredients, instructions = parsed.ingredients, parsed.instructions

        og_image = soup.find('meta', attrs={'property': 'og:image'})
        image = og_image.get('content') if og_image else None

        return ParsedRecipe(
            name=name,
            ingredients=ingredients,
            instructions=instructions,
            source_url=url or None,
            image_url=urljoin(url, image) if image and url else image,
        )


def generate_recipe_id(name: str, existing_ids: set[str]) -> str:
    """Generate unique slugified ID from recipe name."""
    # Convert to lowercase and replace spaces/special chars with hyphens
    slug = re.sub(r'[^\w\s-]', '', name.lower())
    slug = re.sub(r'[-\s]+', '-', slug).strip('-') or 'recipe'

    # Ensure uniqueness
    if slug not in existing_ids:
        return slug

    # Add number suffix if conflict
    counter = 2
    while f"{slug}-{counter}" in existing_ids:
        counter += 1
    return f"{slug}-{counter}"
