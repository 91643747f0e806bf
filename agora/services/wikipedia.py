"""Wikipedia infobox helpers.

extract_population is pure and is what the enrichment job relies on;
fetch_wikipedia_data is the only part that talks to the network.
"""
import re
from typing import NamedTuple, Optional
from urllib.parse import unquote, urlparse

import requests

from agora.core.config import settings
from agora.core.constants import MAX_REASONABLE_POPULATION, WIKIPEDIA_THUMBNAIL_SIZE
from agora.core.logging_config import get_logger

logger = get_logger(__name__)

# A value is digits and separators, optionally wrapped in templates or links.
# The leading minus is captured on purpose so negatives can be rejected.
_VALUE = r"(-?(?:[0-9,.\s]|\{\{[^{}]*\}\}|\[\[[^\[\]]*\]\])+)"

# Most specific field first; the first pattern that yields a valid value wins
POPULATION_PATTERNS = [
    re.compile(r"\|\s*population[_\s]*total\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\|\s*population[_\s]*municipality\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\|\s*pop[_\s]*municipality\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\|\s*population[_\s]*urban\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\|\s*population\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\|\s*pop\s*=[ \t]*" + _VALUE, re.IGNORECASE),
    re.compile(r"\{\{\s*pop\s*\|\s*(-?[0-9,.\s]+)\}\}", re.IGNORECASE),
]

_SEPARATORS = re.compile(r"[,.\s]")
_TEMPLATES = re.compile(r"\{\{[^}]+\}\}")
_WIKI_LINKS = re.compile(r"\[\[[^\]]+\]\]")
_NON_DIGITS = re.compile(r"[^0-9]")


def _parse_population(raw: str) -> Optional[int]:
    """Turn a captured infobox value into a plausible population, or None."""
    if raw.lstrip().startswith("-"):
        return None

    # Commas, periods and spaces are all thousands separators in some locale;
    # populations never carry decimals.
    cleaned = _SEPARATORS.sub("", raw)
    cleaned = _TEMPLATES.sub("", cleaned)
    cleaned = _WIKI_LINKS.sub("", cleaned)
    cleaned = _NON_DIGITS.sub("", cleaned)
    if not cleaned:
        return None

    population = int(cleaned, 10)
    if 0 < population < MAX_REASONABLE_POPULATION:
        return population
    return None


def extract_population(wikitext: Optional[str]) -> Optional[int]:
    """
    Extract a population figure from infobox wikitext.

    Patterns are tried in priority order and every occurrence of a pattern is
    tried before moving to the next one, so `population_total` beats
    `population` even when it appears later in the text.

    Args:
        wikitext: Raw wikitext (may be None or empty)

    Returns:
        Population as an int, or None if nothing plausible was found
    """
    if not wikitext or not isinstance(wikitext, str):
        return None

    for pattern in POPULATION_PATTERNS:
        for match in pattern.finditer(wikitext):
            population = _parse_population(match.group(1))
            if population is not None:
                return population

    return None


class WikipediaData(NamedTuple):
    image_url: Optional[str]
    population: Optional[int]


EMPTY_WIKIPEDIA_DATA = WikipediaData(image_url=None, population=None)


def parse_wikipedia_url(wikipedia_url: str) -> Optional[tuple]:
    """
    Split an article URL into (language code, page title).

    https://en.wikipedia.org/wiki/Athens -> ("en", "Athens")
    """
    parsed = urlparse(wikipedia_url)
    if not parsed.hostname or not parsed.hostname.endswith("wikipedia.org"):
        return None

    lang_code = parsed.hostname.split(".")[0]
    page_title = unquote(parsed.path.rstrip("/").split("/")[-1])
    if not lang_code or not page_title or lang_code == "wikipedia":
        return None
    return lang_code, page_title


def fetch_wikipedia_data(wikipedia_url: Optional[str], session: Optional[requests.Session] = None) -> WikipediaData:
    """
    Fetch the lead image and population for a Wikipedia article.

    Failures are logged and reported as empty data; enrichment is best effort
    and must never break the caller.
    """
    if not wikipedia_url:
        return EMPTY_WIKIPEDIA_DATA

    parts = parse_wikipedia_url(wikipedia_url)
    if parts is None:
        logger.warning("wikipedia_url_invalid", url=wikipedia_url)
        return EMPTY_WIKIPEDIA_DATA
    lang_code, page_title = parts

    http = session or requests
    try:
        response = http.get(
            f"https://{lang_code}.wikipedia.org/w/api.php",
            params={
                "action": "query",
                "prop": "pageimages|revisions",
                "rvprop": "content",
                "rvsection": "0",
                "format": "json",
                "formatversion": "2",
                "pithumbsize": str(WIKIPEDIA_THUMBNAIL_SIZE),
                "titles": page_title,
            },
            headers={"User-Agent": settings.WIKIPEDIA_USER_AGENT},
            timeout=settings.WIKIPEDIA_API_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("wikipedia_fetch_failed", url=wikipedia_url, error=str(e))
        return EMPTY_WIKIPEDIA_DATA

    pages = (payload.get("query") or {}).get("pages") or []
    if not pages:
        logger.info("wikipedia_page_missing", url=wikipedia_url)
        return EMPTY_WIKIPEDIA_DATA

    page = pages[0]
    image_url = (page.get("thumbnail") or {}).get("source")
    revisions = page.get("revisions") or [{}]
    wikitext = revisions[0].get("content") or ""

    return WikipediaData(image_url=image_url, population=extract_population(wikitext))
