"""Prompt builders and response parsing for the content-generation gateway.

Prompts are in French; the target language of the generated text comes
from the shop settings. Parsing helpers deal with the markdown code
fences models like to wrap JSON in.
"""

import re
import json
import logging

logger = logging.getLogger(__name__)

SEO_SYSTEM_PROMPT = "Tu es un expert en rédaction SEO pour le e-commerce."

ALT_TEXT_SYSTEM_PROMPT = (
    "Tu es un expert en SEO et en accessibilité web.\n"
    "Génère un texte alt optimisé pour une image de produit e-commerce.\n"
    "Le texte alt doit :\n"
    "- Décrire précisément ce que montre l'image (50-125 caractères)\n"
    "- Inclure le nom du produit si c'est la première image, sinon décrire l'angle/détail montré\n"
    "- Être optimisé pour le SEO avec des mots-clés pertinents\n"
    "- Être naturel et descriptif pour l'accessibilité\n"
    "Réponds UNIQUEMENT avec le texte alt, sans guillemets ni formatage."
)

TRANSLATION_SYSTEM_PROMPT = "Tu es un traducteur expert qui retourne du JSON valide."

LANGUAGE_NAMES = {
    "en": "anglais",
    "es": "espagnol",
    "de": "allemand",
    "it": "italien",
    "pt": "portugais",
    "nl": "néerlandais",
    "pl": "polonais",
    "ru": "russe",
    "ja": "japonais",
    "zh": "chinois",
    "ar": "arabe",
}

TRANSLATED_FIELDS = ("name", "short_description", "description", "meta_title", "meta_description")

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    text = (text or "").strip()
    text = _FENCE_START_RE.sub("", text)
    return _FENCE_END_RE.sub("", text)


def parse_json_response(text: str) -> dict | None:
    """Parse a completion as a JSON object, None if it is not one."""
    try:
        data = json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError):
        logger.warning("Could not parse LLM response as JSON: %.200s", text)
        return None
    return data if isinstance(data, dict) else None


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def _category_names(product: dict) -> str:
    return ", ".join(c.get("name", "") for c in product.get("categories") or [] if c.get("name"))


def build_short_description_prompt(product: dict, language: str) -> str:
    return (
        "Tu es un expert en rédaction SEO pour le e-commerce.\n"
        f'Génère une description courte et percutante pour ce produit : "{product.get("name", "")}".\n\n'
        "La description doit :\n"
        "- Faire entre 120-160 caractères (optimisé pour les meta descriptions)\n"
        "- Inclure le nom du produit naturellement\n"
        "- Avoir un appel à l'action subtil\n"
        "- Être optimisée pour le SEO\n"
        f"- Être en langue {language}\n"
        "- Être attractive et donner envie d'acheter\n\n"
        "Retourne UNIQUEMENT le texte de la description, sans guillemets ni formatage supplémentaire."
    )


def build_long_description_prompt(product: dict, language: str) -> str:
    current = product.get("description") or ""
    current_block = f"Description actuelle à améliorer : {current}\n\n" if current else ""
    return (
        "Tu es un expert en rédaction SEO pour le e-commerce.\n"
        f'Génère une description longue et détaillée pour ce produit : "{product.get("name", "")}".\n\n'
        "La description doit :\n"
        "- Faire entre 300-500 mots\n"
        "- Commencer par un titre H2 accrocheur\n"
        "- Inclure des sous-titres H3 pour structurer le contenu\n"
        "- Utiliser des listes à puces pour les caractéristiques\n"
        "- Inclure naturellement le nom du produit 2-3 fois\n"
        "- Être optimisée pour le SEO (mots-clés naturels, longue traîne)\n"
        "- Avoir un ton convaincant et professionnel\n"
        f"- Être en langue {language}\n"
        "- Utiliser du HTML valide (<h2>, <h3>, <p>, <ul>, <li>, <strong>)\n\n"
        f"{current_block}"
        "Retourne UNIQUEMENT le HTML de la description, sans balises <html>, <body> ou code markdown."
    )


def build_meta_description_prompt(product: dict) -> str:
    description = product.get("description") or ""
    return (
        "Tu es un expert en référencement SEO et rédaction web. Tu dois générer une "
        "méta-description optimale pour un produit e-commerce.\n\n"
        "CONTEXTE DU PRODUIT:\n"
        f"- Nom: {product.get('name', '')}\n"
        f"- Catégories: {_category_names(product) or 'Aucune'}\n"
        f"- Description courte: {product.get('short_description') or 'Non disponible'}\n"
        f"- Début de la description: {description[:300] if description else 'Non disponible'}\n\n"
        "RÈGLES STRICTES:\n"
        "1. La méta-description doit faire entre 150 et 160 caractères MAXIMUM\n"
        "2. Inclure le nom du produit au début\n"
        "3. Utiliser des mots-clés pertinents basés sur les catégories et la description\n"
        '4. Créer un appel à l\'action subtil (ex: "Découvrez", "Profitez", "Commandez")\n'
        "5. Rester factuel et informatif\n"
        "6. Ne pas utiliser de guillemets ni de caractères spéciaux problématiques\n\n"
        "EXEMPLE DE STRUCTURE:\n"
        "[Nom du produit] : [Bénéfice principal]. [Caractéristique unique]. [Appel à l'action].\n\n"
        "Génère UNIQUEMENT la méta-description, sans aucun texte additionnel, commentaire ou explication."
    )


def build_alt_text_prompt(product: dict, index: int, total: int) -> str:
    """Main image gets product context, other images a secondary-view prompt."""
    name = product.get("name", "")
    if index == 0:
        return (
            f"Produit : {name}\n"
            f"Description courte : {product.get('short_description') or 'N/A'}\n"
            f"Catégories : {_category_names(product) or 'N/A'}\n\n"
            "C'est l'image principale du produit. Génère un texte alt descriptif et optimisé SEO."
        )
    return (
        f"Produit : {name}\n"
        f"Image {index + 1} sur {total}\n\n"
        "C'est une image secondaire du produit (angle différent, détail, ou vue alternative). "
        "Génère un texte alt descriptif qui distingue cette vue de l'image principale."
    )


def build_translation_prompt(product: dict, target_language: str) -> str:
    target = language_name(target_language)
    return (
        "Tu es un traducteur professionnel spécialisé dans le e-commerce. Tu dois traduire "
        f"le contenu suivant d'un produit en {target}.\n\n"
        "CONTENU À TRADUIRE:\n\n"
        f"NOM DU PRODUIT:\n{product.get('name') or 'N/A'}\n\n"
        f"DESCRIPTION COURTE:\n{product.get('short_description') or 'N/A'}\n\n"
        f"DESCRIPTION LONGUE:\n{product.get('description') or 'N/A'}\n\n"
        f"MÉTA-TITRE:\n{product.get('meta_title') or 'N/A'}\n\n"
        f"MÉTA-DESCRIPTION:\n{product.get('meta_description') or 'N/A'}\n\n"
        "RÈGLES STRICTES:\n"
        f"1. Traduire en {target} de manière naturelle et fluide\n"
        "2. Préserver tous les balises HTML (h2, h3, p, ul, li, a, etc.)\n"
        "3. Adapter les expressions idiomatiques au contexte culturel\n"
        "4. Maintenir le ton professionnel et commercial\n"
        "5. Pour la méta-description, respecter la limite de 160 caractères\n"
        "6. Ne pas traduire les URL ou slugs dans les liens\n\n"
        "FORMAT DE RÉPONSE (JSON STRICT):\n"
        "{\n"
        '  "name": "nom traduit",\n'
        '  "short_description": "description courte traduite",\n'
        '  "description": "description longue traduite avec HTML",\n'
        '  "meta_title": "méta-titre traduit",\n'
        '  "meta_description": "méta-description traduite (max 160 chars)"\n'
        "}\n\n"
        "Réponds UNIQUEMENT avec le JSON, sans aucun texte additionnel, sans markdown, sans commentaire."
    )


def truncate_meta_description(text: str, limit: int = 160) -> str:
    """Cut to `limit` characters, ending with '...' when shortened."""
    text = (text or "").strip().strip('"').strip()
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."
