"""Recipe extraction from web pages with schema.org Recipe markup."""

import logging
import re

import extruct
import httpx
from fastapi import HTTPException, status
from pydantic import ValidationError

from src.config import get_settings
from src.schemas.recipe import IngredientInput, InstructionInput, RecipePayload
from src.schemas.recipe_import import ParsedIngredient, ParsedRecipe, RecipeImportConfirm
from src.services.text import normalize_ingredient_name

logger = logging.getLogger(__name__)

settings = get_settings()

FETCH_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$",
    re.I,
)

_UNITS = (
    "kg|kilos?|kilogramos?|g|gr|grs|gramos?|mg|ml|mililitros?|cl|dl|l|lt|litros?|"
    "tazas?|cucharadas?|cucharaditas?|cdas?|cdtas?|cdita|pizcas?|dientes?|"
    "rodajas?|hojas?|ramas?|latas?|sobres?|unidad(?:es)?|"
    "cups?|tbsp|tsp|tablespoons?|teaspoons?|oz|ounces?|lbs?|pounds?|cloves?|pinch(?:es)?"
)
_INGREDIENT_LINE = re.compile(
    r"^\s*(?P<quantity>\d+\s+\d+/\d+|\d+/\d+|\d+(?:[.,]\d+)?(?:\s*-\s*\d+(?:[.,]\d+)?)?|[½¼¾⅓⅔⅛])?"
    rf"\s*(?:(?P<unit>{_UNITS})\b\.?)?"
    r"\s*(?:(?:de|of)\s+)?(?P<name>.*?)\s*$",
    re.I,
)


class RecipeImportError(Exception):
    """Raised when a page cannot be fetched or holds no usable recipe."""


class RecipeSourceUnavailable(RecipeImportError):
    """The page could not be reached right now; a later attempt may succeed."""


class RecipePageParser:
    """Turn schema.org Recipe data into a ``ParsedRecipe``."""

    @staticmethod
    def parse_duration(value) -> int | None:
        """ISO 8601 duration ("PT1H30M") to whole minutes."""
        if isinstance(value, list):
            value = value[0] if value else None
        if not isinstance(value, str):
            return None
        match = _DURATION.match(value.strip())
        if not match or not any(match.groupdict().values()):
            return None
        parts = {k: int(v or 0) for k, v in match.groupdict().items()}
        minutes = parts["days"] * 1440 + parts["hours"] * 60 + parts["minutes"]
        return minutes + (1 if parts["seconds"] >= 30 else 0)

    @staticmethod
    def parse_servings(value) -> int | None:
        """First number in ``recipeYield`` ("4 porciones", ["6"], 8)."""
        if isinstance(value, list):
            value = next((v for v in value if v), None)
        if isinstance(value, int | float):
            return int(value) or None
        if isinstance(value, str):
            match = re.search(r"\d+", value)
            if match:
                return int(match.group()) or None
        return None

    @staticmethod
    def parse_ingredient_line(line: str) -> ParsedIngredient:
        """Split "200 g de harina" into quantity, unit, and name."""
        line = " ".join(line.split())
        match = _INGREDIENT_LINE.match(line)
        name = match.group("name") if match else ""
        if len(name) < 2:
            # Nothing left after the quantity; keep the whole line as the name.
            return ParsedIngredient(name=line[:100])
        return ParsedIngredient(
            name=name[:100],
            quantity=match.group("quantity"),
            unit=match.group("unit").lower() if match.group("unit") else None,
        )

    @staticmethod
    def instruction_texts(value) -> list[str]:
        """Flatten ``recipeInstructions`` (text, HowToStep, HowToSection) to step texts."""
        if isinstance(value, str):
            return [line.strip() for line in re.split(r"\n+", value) if line.strip()]
        steps = []
        for item in value or []:
            if isinstance(item, str):
                steps.extend(RecipePageParser.instruction_texts(item))
            elif isinstance(item, dict):
                if "itemListElement" in item:
                    steps.extend(RecipePageParser.instruction_texts(item["itemListElement"]))
                else:
                    text = item.get("text") or item.get("name")
                    if isinstance(text, str) and text.strip():
                        steps.append(text.strip())
        return steps

    @staticmethod
    def image_url(value) -> str | None:
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("url")
        return value if isinstance(value, str) and value else None

    @staticmethod
    def find_recipe(data: dict) -> dict | None:
        """Locate the Recipe node in extruct output (JSON-LD first, then microdata)."""
        for item in data.get("json-ld", []):
            if not isinstance(item, dict):
                continue
            for node in [item, *item.get("@graph", [])]:
                if isinstance(node, dict) and _is_recipe(node.get("@type")):
                    return node
        for item in data.get("microdata", []):
            if isinstance(item, dict) and "Recipe" in str(item.get("type", "")):
                return item.get("properties", {})
        return None

    @classmethod
    def parse(cls, node: dict) -> ParsedRecipe:
        title = node.get("name")
        if isinstance(title, list):
            title = title[0] if title else None
        if not title or not isinstance(title, str):
            raise RecipeImportError("La receta no tiene nombre")

        ingredients = []
        seen = set()
        for line in node.get("recipeIngredient") or node.get("ingredients") or []:
            if not isinstance(line, str) or not line.strip():
                continue
            parsed = cls.parse_ingredient_line(line)
            key = normalize_ingredient_name(parsed.name)
            if key in seen:
                continue
            seen.add(key)
            ingredients.append(parsed)

        description = node.get("description")
        return ParsedRecipe(
            title=" ".join(title.split())[:255],
            description=description.strip() if isinstance(description, str) else None,
            image_url=cls.image_url(node.get("image")),
            prep_time=cls.parse_duration(node.get("prepTime")),
            cooking_time=cls.parse_duration(node.get("cookTime")),
            servings=cls.parse_servings(node.get("recipeYield")),
            ingredients=ingredients,
            instructions=cls.instruction_texts(node.get("recipeInstructions")),
        )


def _is_recipe(node_type) -> bool:
    if isinstance(node_type, list):
        return "Recipe" in node_type
    return node_type == "Recipe"


def fetch_recipe(url: str) -> ParsedRecipe:
    """Download ``url`` and parse the recipe it describes."""
    try:
        with httpx.Client(follow_redirects=True, timeout=settings.import_fetch_timeout) as client:
            response = client.get(url, headers=FETCH_HEADERS)
            response.raise_for_status()
    except httpx.TimeoutException as e:
        raise RecipeSourceUnavailable("La pagina tardo demasiado en responder") from e
    except httpx.HTTPStatusError as e:
        raise RecipeImportError(
            f"No se pudo obtener la pagina: HTTP {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        raise RecipeSourceUnavailable("Error de conexion") from e

    data = extruct.extract(
        response.text, base_url=str(response.url), syntaxes=["json-ld", "microdata"]
    )
    node = RecipePageParser.find_recipe(data)
    if node is None:
        raise RecipeImportError("No se encontro una receta en esta pagina")
    return RecipePageParser.parse(node)


def source_host(url: str) -> str:
    """Host a recipe was imported from, without a leading "www."."""
    host = httpx.URL(url).host
    return host[4:] if host.startswith("www.") else host


def build_payload(parsed: ParsedRecipe, edits: RecipeImportConfirm) -> RecipePayload:
    """Merge user edits over the parsed recipe into a write payload."""
    if edits.ingredients is not None:
        ingredients = edits.ingredients
    else:
        ingredients = [
            {"name": i.name, "quantity": i.quantity, "unit": i.unit} for i in parsed.ingredients
        ]
    if edits.instructions is not None:
        instructions = edits.instructions
    else:
        instructions = [{"content": text[:1000]} for text in parsed.instructions]

    fields = {
        "title": edits.title or parsed.title[:100],
        "description": edits.description
        if edits.description is not None
        else (parsed.description or "")[:500] or None,
        "image_url": parsed.image_url,
        "prep_time": parsed.prep_time,
        "cooking_time": parsed.cooking_time,
        "servings": edits.servings or min(parsed.servings or 4, 50),
        "is_public": edits.is_public,
        "ingredients": [
            i.model_dump() if isinstance(i, IngredientInput) else i for i in ingredients
        ],
        "instructions": [
            s.model_dump() if isinstance(s, InstructionInput) else s for s in instructions
        ],
        "category_ids": edits.category_ids,
        "tag_ids": edits.tag_ids,
    }
    if edits.difficulty is not None:
        fields["difficulty"] = edits.difficulty
    try:
        return RecipePayload(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        logger.info(f"Imported recipe rejected: {location}: {first['msg']}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{location}: {first['msg']}",
        ) from e
