"""Rule-based SEO analysis of one HTML content item.

Each analyze_* function inspects the HTML body (and metadata where relevant)
and returns a CategoryResult: points awarded out of the category maximum,
plus the French issue and recommendation strings shown in the dashboard.
All functions are pure; the same input always yields the same result.
"""

import re
from dataclasses import dataclass, field

from seo_weights import CATEGORY_MAXIMA

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_H1_RE = re.compile(r"<h1[^>]*>", re.IGNORECASE)
_H2_RE = re.compile(r"<h2[^>]*>", re.IGNORECASE)
_H3_RE = re.compile(r"<h3[^>]*>", re.IGNORECASE)
_PARAGRAPH_RE = re.compile(r"<p[^>]*>[\s\S]*?</p>", re.IGNORECASE)
_UL_RE = re.compile(r"<ul[^>]*>", re.IGNORECASE)
_OL_RE = re.compile(r"<ol[^>]*>", re.IGNORECASE)
_IMG_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_ALT_RE = re.compile(r"""alt\s*=\s*["'][^"']+["']""", re.IGNORECASE)
_ANCHOR_RE = re.compile(r"""<a[^>]*href\s*=\s*["'][^"']*["'][^>]*>""", re.IGNORECASE)
_EXTERNAL_ANCHOR_RE = re.compile(r"""<a[^>]*href\s*=\s*["']https?://[^"']*["'][^>]*>""", re.IGNORECASE)
_VISUAL_FAQ_RE = re.compile(
    r"faq-section|<h[23][^>]*>.*?(faq|questions?\s+fr[eé]quentes?).*?</h[23]>",
    re.IGNORECASE | re.DOTALL,
)
_TABLE_RE = re.compile(r"<table[^>]*>", re.IGNORECASE)
_LINK_IN_H1_RE = re.compile(r"<h1[^>]*>.*?<a\s.*?</a>.*?</h1>", re.IGNORECASE | re.DOTALL)

LONG_PARAGRAPH_WORDS = 150


@dataclass
class CategoryResult:
    """Points and feedback for one analysis category."""

    score: int
    max: int
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "max": self.max,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }


def strip_html(content: str) -> str:
    """Replace tags with spaces, collapse whitespace, trim."""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", content or "")).strip()


def count_words(text: str) -> int:
    """Whitespace-delimited word count. Empty text counts as one word."""
    return max(1, len(text.split()))


def keyword_density(plain_text: str, keyword: str) -> float:
    """Case-insensitive substring occurrences per 100 words.

    Occurrences inside longer words are counted too.
    """
    keyword = (keyword or "").lower()
    if not keyword:
        return 0.0
    occurrences = plain_text.lower().count(keyword)
    return occurrences / count_words(plain_text) * 100


def analyze_content(content: str, word_count: int) -> CategoryResult:
    """Length, heading hierarchy, paragraph size and lists."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["content"])

    if word_count >= 1500:
        result.score += 10
    elif word_count >= 1000:
        result.score += 7
        result.recommendations.append(
            f"Augmentez la longueur à 1500+ mots (actuellement {word_count})"
        )
    elif word_count >= 500:
        result.score += 4
        result.issues.append(f"Article trop court: {word_count} mots")
        result.recommendations.append("Visez au minimum 1000 mots pour un bon référencement")
    else:
        result.issues.append(f"Article très court: {word_count} mots")
        result.recommendations.append("Un article de qualité devrait contenir au moins 1000 mots")

    h1_count = len(_H1_RE.findall(content))
    if h1_count == 1:
        result.score += 5
    elif h1_count == 0:
        result.issues.append("Aucun titre H1 trouvé")
        result.recommendations.append("Ajoutez un titre H1 unique pour votre article")
    else:
        result.issues.append(f"{h1_count} titres H1 trouvés")
        result.recommendations.append("Utilisez un seul titre H1 par article")

    h2_count = len(_H2_RE.findall(content))
    h3_count = len(_H3_RE.findall(content))
    if h2_count >= 3 and h3_count >= 2:
        result.score += 5
    elif h2_count >= 2:
        result.score += 3
        result.recommendations.append(
            "Ajoutez plus de sous-titres H2 et H3 pour structurer votre contenu"
        )
    else:
        result.issues.append("Structure de titres insuffisante")
        result.recommendations.append(
            "Utilisez au moins 3 titres H2 et 2 titres H3 pour améliorer la structure"
        )

    paragraphs = _PARAGRAPH_RE.findall(content)
    long_paragraphs = [
        p for p in paragraphs
        if count_words(_TAG_RE.sub("", p).strip()) > LONG_PARAGRAPH_WORDS
    ]
    if not long_paragraphs and paragraphs:
        result.score += 5
    elif len(long_paragraphs) <= 2:
        # Also reached when there are no paragraphs at all
        result.score += 3
        result.recommendations.append("Divisez les paragraphes trop longs (max 150 mots)")
    else:
        result.issues.append(f"{len(long_paragraphs)} paragraphes trop longs")
        result.recommendations.append("Découpez les paragraphes longs pour améliorer la lisibilité")

    list_count = len(_UL_RE.findall(content)) + len(_OL_RE.findall(content))
    if list_count >= 2:
        result.score += 5
    elif list_count >= 1:
        result.score += 3
        result.recommendations.append("Ajoutez plus de listes à puces pour améliorer la lisibilité")
    else:
        result.recommendations.append(
            "Utilisez des listes à puces ou numérotées pour structurer l'information"
        )

    return result


def analyze_keywords(content: str, plain_text: str, focus_keyword: str,
                     title: str, meta_title: str) -> CategoryResult:
    """Focus keyword density and placement."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["keywords"])

    if not focus_keyword:
        result.issues.append("Aucun mot-clé focus défini")
        result.recommendations.append("Définissez un mot-clé focus pour cet article")
        return result

    keyword = focus_keyword.lower()
    density = keyword_density(plain_text, focus_keyword)

    if 0.5 <= density <= 2.5:
        result.score += 8
    elif 0 < density < 0.5:
        result.score += 4
        result.recommendations.append(
            f'Augmentez la densité du mot-clé "{focus_keyword}" (actuellement {density:.2f}%)'
        )
    elif density > 2.5:
        result.score += 4
        result.issues.append(f"Densité du mot-clé trop élevée: {density:.2f}%")
        result.recommendations.append(
            "Réduisez l'utilisation du mot-clé pour éviter le keyword stuffing (idéal: 0.5-2.5%)"
        )
    else:
        result.issues.append("Mot-clé focus absent du contenu")
        result.recommendations.append(
            f'Intégrez naturellement le mot-clé "{focus_keyword}" dans votre contenu'
        )

    if keyword in (title or "").lower():
        result.score += 4
    else:
        result.issues.append("Mot-clé absent du titre")
        result.recommendations.append("Incluez le mot-clé focus dans le titre de l'article")

    if meta_title and keyword in meta_title.lower():
        result.score += 4
    else:
        result.recommendations.append("Incluez le mot-clé focus dans le meta titre")

    first_paragraph = _PARAGRAPH_RE.search(content)
    first_text = _TAG_RE.sub("", first_paragraph.group(0)).lower() if first_paragraph else ""
    if keyword in first_text:
        result.score += 4
    else:
        result.recommendations.append("Incluez le mot-clé focus dans le premier paragraphe")

    return result


def _score_length(result: CategoryResult, value: str, label: str, feminine: bool,
                  ideal: tuple[int, int], acceptable: tuple[int, int]) -> None:
    """Award 10/7/3/0 points for a meta field length against its bands."""
    short_word = "courte" if feminine else "court"
    long_word = "longue" if feminine else "long"
    truncated = "tronquée" if feminine else "tronqué"
    ideal_text = f"{ideal[0]}-{ideal[1]}"

    if not value:
        result.issues.append(f"{label} {'manquante' if feminine else 'manquant'}")
        result.recommendations.append(
            f"Ajoutez {'une' if feminine else 'un'} {label.lower()} optimisé{'e' if feminine else ''} "
            f"de {ideal_text} caractères"
        )
        return

    length = len(value)
    if ideal[0] <= length <= ideal[1]:
        result.score += 10
    elif acceptable[0] <= length <= acceptable[1]:
        result.score += 7
        qualifier = short_word if length < ideal[0] else long_word
        result.recommendations.append(
            f"{label} {qualifier}: {length} caractères (idéal: {ideal_text})"
        )
    elif length < acceptable[0]:
        result.score += 3
        result.issues.append(f"{label} trop {short_word}: {length} caractères")
        result.recommendations.append(f"Allongez {'la' if feminine else 'le'} {label.lower()} à {ideal_text} caractères")
    else:
        result.score += 3
        result.issues.append(f"{label} trop {long_word}: {length} caractères (sera {truncated})")
        result.recommendations.append(
            f"Raccourcissez {'la' if feminine else 'le'} {label.lower()} à {ideal_text} caractères"
        )


def analyze_metadata(meta_title: str, meta_description: str) -> CategoryResult:
    """Meta title and meta description lengths."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["metadata"])
    _score_length(result, meta_title, "Meta titre", False, (50, 60), (40, 70))
    _score_length(result, meta_description, "Meta description", True, (150, 160), (120, 170))
    return result


def analyze_media(content: str, featured_image) -> CategoryResult:
    """Featured image, body images and their alt attributes."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["media"])

    if featured_image:
        result.score += 5
    else:
        result.issues.append("Image à la une manquante")
        result.recommendations.append("Ajoutez une image à la une pour améliorer l'engagement")

    images = _IMG_RE.findall(content)
    if len(images) >= 3:
        result.score += 5
    elif images:
        result.score += 3
        result.recommendations.append("Ajoutez plus d'images pour enrichir le contenu (min 3)")
    else:
        result.recommendations.append("Ajoutez des images pour illustrer votre contenu")

    if images:
        with_alt = [img for img in images if _ALT_RE.search(img)]
        missing = len(images) - len(with_alt)
        ratio = len(with_alt) / len(images)
        if ratio == 1:
            result.score += 5
        elif ratio >= 0.7:
            result.score += 3
            result.recommendations.append(f"{missing} images sans attribut alt")
        else:
            result.issues.append(f"{missing} images sans attribut alt")
            result.recommendations.append("Ajoutez des attributs alt descriptifs à toutes vos images")

    return result


def analyze_links(content: str) -> CategoryResult:
    """Internal (relative) and external (http/https) anchors."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["links"])

    internal = [
        a for a in _ANCHOR_RE.findall(content)
        if "http://" not in a and "https://" not in a
    ]
    if len(internal) >= 3:
        result.score += 5
    elif internal:
        result.score += 3
        result.recommendations.append(
            "Ajoutez plus de liens internes (min 3) pour améliorer le maillage"
        )
    else:
        result.recommendations.append("Ajoutez des liens internes vers d'autres pages de votre site")

    external = _EXTERNAL_ANCHOR_RE.findall(content)
    if len(external) >= 2:
        result.score += 5
    elif external:
        result.score += 3
        result.recommendations.append("Ajoutez au moins 2 liens externes vers des sources fiables")
    else:
        result.recommendations.append("Ajoutez des liens externes vers des sources de référence")

    return result


def analyze_advanced(content: str) -> CategoryResult:
    """FAQ markup, tables, and links nested in the H1."""
    result = CategoryResult(score=0, max=CATEGORY_MAXIMA["advanced"])

    has_json_ld_faq = "application/ld+json" in content and "FAQPage" in content
    if has_json_ld_faq:
        result.score += 3
    elif _VISUAL_FAQ_RE.search(content):
        result.score += 2
        result.recommendations.append(
            "Section FAQ détectée. Ajoutez le schema markup JSON-LD FAQPage "
            "pour le score maximum et Featured Snippets"
        )
    else:
        result.recommendations.append(
            "Ajoutez une section FAQ avec schema markup pour les featured snippets"
        )

    if _TABLE_RE.search(content):
        result.score += 2
    else:
        result.recommendations.append("Utilisez des tableaux pour présenter des données comparatives")

    # Flagged only, no score change
    if _LINK_IN_H1_RE.search(content):
        result.issues.append("⚠️ Lien détecté dans le titre H1 (mauvaise pratique SEO)")
        result.recommendations.append(
            "Retirez les liens du titre H1 pour améliorer l'autorité de la page"
        )

    return result
