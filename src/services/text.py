"""Slug generation, text normalization, and ingredient quantity scaling helpers."""

import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction

MAX_SEARCH_LENGTH = 100


def generate_slug(title: str) -> str:
    """Build a URL slug from a title: "Pan de Maíz" -> "pan-de-maiz"."""
    decomposed = unicodedata.normalize("NFD", title.lower())
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    slug = re.sub(r"[^a-z0-9\s-]", "", ascii_only)
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def normalize_ingredient_name(name: str) -> str:
    """Catalog key for an ingredient: trimmed, lowercased, single-spaced."""
    return " ".join(name.split()).lower()


def sanitize_search_query(query: str | None) -> str | None:
    """Trim and cap a search query and escape LIKE wildcards.

    The result is meant to be used with ``ESCAPE '\\'``.
    """
    if not query:
        return None
    trimmed = query.strip()[:MAX_SEARCH_LENGTH]
    if not trimmed:
        return None
    return trimmed.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


MIN_SERVINGS = 1
MAX_SERVINGS = 100

_VULGAR_FRACTIONS = {"½": "1/2", "¼": "1/4", "¾": "3/4", "⅓": "1/3", "⅔": "2/3", "⅛": "1/8"}
_AMOUNT = re.compile(r"^(?:(\d+)\s+)?(\d+(?:[.,]\d+)?|\d+/\d+)$")


def clamp_servings(servings: int) -> int:
    return max(MIN_SERVINGS, min(MAX_SERVINGS, servings))


def parse_amount(text: str) -> Fraction | None:
    """Numeric value of "2", "0,5", "1/2", "1 1/2" or "½"; None for anything else."""
    for symbol, fraction in _VULGAR_FRACTIONS.items():
        text = text.replace(symbol, f" {fraction}")
    match = _AMOUNT.match(" ".join(text.split()))
    if match is None:
        return None
    whole, part = match.groups()
    try:
        value = Fraction(part.replace(",", "."))
    except ZeroDivisionError:
        return None
    return value + int(whole) if whole else value


def format_amount(value: Fraction) -> str:
    """Whole numbers as-is, anything else to one decimal: 3 -> "3", 4/3 -> "1.3"."""
    if value.denominator == 1:
        return str(value.numerator)
    rounded = Decimal(value.numerator) / Decimal(value.denominator)
    text = str(rounded.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return text.removesuffix(".0")


def scale_quantity(quantity: str | None, ratio: Fraction) -> str | None:
    """Scale a free-text quantity; ranges ("2-3") scale both ends, text is left alone."""
    if not quantity:
        return quantity
    parts = quantity.split("-")
    amounts = [parse_amount(part) for part in parts]
    if any(amount is None for amount in amounts):
        return quantity
    return "-".join(format_amount(amount * ratio) for amount in amounts)
