"""Search results analysis via Google Programmable Search.

analyze_serp() fetches the top organic results for a keyword, scrapes the
first few pages for their heading structure and length, and derives a
recommended article structure from what ranks.
"""

import math
import logging
from collections import Counter

import requests
from bs4 import BeautifulSoup

from config import get_settings
from error_handler import ConfigurationError, SearchAPIError

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
SCRAPE_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
MIN_TARGET_WORD_COUNT = 1500
MAX_H2_PER_RESULT = 8
MAX_RECOMMENDED_SECTIONS = 6

_SEARCH_ERRORS = {
    429: "Quota Google dépassé - limite de 1000 recherches/jour",
    400: "Erreur configuration API Google (clé API invalide)",
    403: "Accès refusé - vérifier les restrictions API Google",
}


def _fallback_sections(keyword: str) -> list:
    return [
        f"Qu'est-ce qu'un {keyword} ?",
        f"Les meilleurs {keyword} en 2025",
        f"Comment choisir son {keyword}",
        "Guide d'utilisation",
        "FAQ : Questions fréquentes",
    ]


def search(keyword: str, num: int = None) -> list:
    """Top organic results as [{rank, url, title, snippet}]."""
    settings = get_settings()
    if not settings.google_search_api_key or not settings.google_search_engine_id:
        raise ConfigurationError("Google Search API credentials not configured")

    params = {
        "key": settings.google_search_api_key,
        "cx": settings.google_search_engine_id,
        "q": keyword,
        "gl": "fr",
        "hl": "fr",
        "num": num or settings.serp_result_count,
    }
    try:
        resp = requests.get(SEARCH_URL, params=params, timeout=15)
    except requests.RequestException as e:
        raise SearchAPIError(f"Google Search unreachable: {e}") from e

    if not resp.ok:
        logger.error("Google API error %d: %.200s", resp.status_code, resp.text)
        raise SearchAPIError(
            _SEARCH_ERRORS.get(resp.status_code, "Failed to fetch Google search results"),
            context={"status": resp.status_code},
        )

    items = (resp.json() or {}).get("items") or []
    return [
        {
            "rank": index + 1,
            "url": item.get("link", ""),
            "title": item.get("title", ""),
            "snippet": item.get("snippet") or "",
        }
        for index, item in enumerate(items[:params["num"]])
    ]


def scrape_result(result: dict, timeout: int = None) -> dict:
    """Add h1/h2_structure/word_count/has_faq/has_table from the result page.

    Fetch or parse failures return the result unchanged.
    """
    timeout = timeout or get_settings().serp_scrape_timeout
    try:
        resp = requests.get(result["url"], headers={"User-Agent": SCRAPE_USER_AGENT}, timeout=timeout)
        resp.raise_for_status()
        soup = BeautifulSoup(resp.text, "html.parser")
    except Exception as e:
        logger.warning("Error scraping %s: %s", result.get("url"), e)
        return result

    h1 = soup.find("h1")
    h2_structure = [h.get_text(strip=True) for h in soup.find_all("h2")]
    h2_structure = [text for text in h2_structure if text]
    body = soup.body or soup
    heading_text = " ".join(h.get_text() for h in soup.find_all(["h2", "h3"])).lower()
    has_faq = (
        soup.find(attrs={"itemtype": lambda v: v and "FAQPage" in v}) is not None
        or "faq" in heading_text
        or "questions" in heading_text
    )

    return {
        **result,
        "h1": h1.get_text(strip=True) if h1 else "",
        "h2_structure": h2_structure[:MAX_H2_PER_RESULT],
        "word_count": len(body.get_text(" ").split()),
        "has_faq": has_faq,
        "has_table": soup.find("table") is not None,
    }


def _fallback_analysis(keyword: str) -> dict:
    return {
        "top_results": [],
        "recommended_structure": {
            "h2_sections": _fallback_sections(keyword),
            "target_word_count": MIN_TARGET_WORD_COUNT,
            "must_include_keywords": [keyword.lower()],
            "content_types_to_add": ["faq_section", "product_recommendations"],
        },
        "competitive_insights": "Aucun résultat trouvé sur Google pour ce mot-clé.",
    }


def analyze_serp(keyword: str) -> dict:
    """Competitor analysis and recommended structure for a keyword."""
    settings = get_settings()
    results = search(keyword)
    if not results:
        logger.info("No Google results for %r", keyword)
        return _fallback_analysis(keyword)

    scrape_count = settings.serp_scrape_count
    analyzed = [scrape_result(r, settings.serp_scrape_timeout) for r in results[:scrape_count]]
    analyzed.extend(results[scrape_count:])

    h2_frequency = Counter(
        h2.lower().strip()
        for r in analyzed
        for h2 in r.get("h2_structure") or []
    )
    common_h2s = [h2 for h2, _ in h2_frequency.most_common(MAX_RECOMMENDED_SECTIONS)]

    counted = [r["word_count"] for r in analyzed if r.get("word_count")]
    avg_word_count = sum(counted) / (len(counted) or 1)
    target_word_count = max(MIN_TARGET_WORD_COUNT, math.ceil(avg_word_count * 1.2))

    lowered = keyword.lower()
    must_include = [lowered] + [w for w in lowered.split(" ") if len(w) > 3]

    content_types = []
    if any(r.get("has_faq") for r in analyzed):
        content_types.append("faq_section")
    if any(r.get("has_table") for r in analyzed):
        content_types.append("comparison_table")
    content_types.append("product_recommendations")

    keyword_hits = sum(
        1 for r in analyzed
        if lowered in r["title"].lower() or lowered in r["snippet"].lower()
    )

    logger.info("SERP analysis for %r: %d results, target %d words",
                keyword, len(analyzed), target_word_count)
    return {
        "top_results": analyzed,
        "recommended_structure": {
            "h2_sections": common_h2s or _fallback_sections(keyword),
            "target_word_count": target_word_count,
            "must_include_keywords": must_include,
            "content_types_to_add": content_types,
        },
        "competitive_insights": (
            f"Analysé {len(analyzed)} concurrents. Mot-clé présent dans "
            f"{keyword_hits}/{len(analyzed)} résultats top 5."
        ),
    }
