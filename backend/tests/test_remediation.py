"""Tests for the remediation package — per-product content fixes."""

import pytest

import remediation.base
from db.repositories import CatalogRepository
from error_handler import LLMRateLimitError, LLMResponseError, NotFoundError, ValidationError
from remediation import (
    ACTION_HANDLERS,
    add_internal_links,
    generate_alt_texts,
    generate_meta_description,
    generate_product_description,
    get_category_handler,
    translate_product,
)
from remediation.links import build_linking_paragraph
from remediation.translation import restore_hrefs


def _reload(product_id):
    return CatalogRepository().get_product(product_id)


def _user_prompt(mock_gateway):
    messages = mock_gateway.complete.call_args.args[0]
    return messages[-1]["content"]


class TestDescriptions:

    def test_short_description(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete.return_value = "Une description courte et percutante."

        result = generate_product_description(product["id"], "short")
        assert result.success
        assert result.data == {"short_description": "Une description courte et percutante."}
        assert result.remote_updated is None
        assert _reload(product["id"])["short_description"] == "Une description courte et percutante."

    def test_long_description_strips_fences(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete.return_value = "```\n<h2>Titre</h2><p>Texte</p>\n```"

        generate_product_description(product["id"], "long")
        assert _reload(product["id"])["description"] == "<h2>Titre</h2><p>Texte</p>"

    def test_language_follows_shop(self, make_shop, make_product, mock_gateway):
        shop = make_shop(language="en")
        product = make_product(shop["id"])
        generate_product_description(product["id"], "short")
        assert "Être en langue anglais" in _user_prompt(mock_gateway)

    def test_invalid_kind(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        with pytest.raises(ValidationError):
            generate_product_description(product["id"], "medium")
        mock_gateway.complete.assert_not_called()

    def test_unknown_product(self, app, mock_gateway):
        with pytest.raises(NotFoundError):
            generate_product_description("missing", "short")

    def test_meta_description_is_truncated(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete.return_value = '"' + "m" * 200 + '"'

        result = generate_meta_description(product["id"])
        meta = result.data["meta_description"]
        assert len(meta) == 160
        assert meta.endswith("...")
        assert _reload(product["id"])["meta_description"] == meta

    def test_gateway_errors_propagate(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete.side_effect = LLMRateLimitError()
        with pytest.raises(LLMRateLimitError):
            generate_meta_description(product["id"])


class TestAltTexts:

    def test_every_image_gets_alt(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[
            {"id": 1, "src": "a.jpg", "alt": ""},
            {"id": 2, "src": "b.jpg", "alt": ""},
        ])
        mock_gateway.complete.side_effect = ["Sac en cuir vue de face", '"Sac en cuir vue de dos"']

        result = generate_alt_texts(product["id"])
        assert result.success
        alts = [img["alt"] for img in _reload(product["id"])["images"]]
        assert alts == ["Sac en cuir vue de face", "Sac en cuir vue de dos"]
        assert mock_gateway.complete.call_count == 2

    def test_failed_image_keeps_previous_alt(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[
            {"src": "a.jpg", "alt": "ancien"},
            {"src": "b.jpg", "alt": "garde"},
        ])
        mock_gateway.complete.side_effect = ["nouveau", LLMResponseError("Empty response from AI")]

        generate_alt_texts(product["id"])
        alts = [img["alt"] for img in _reload(product["id"])["images"]]
        assert alts == ["nouveau", "garde"]

    def test_rate_limit_aborts_product(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[{"src": "a.jpg", "alt": "ancien"}])
        mock_gateway.complete.side_effect = LLMRateLimitError()
        with pytest.raises(LLMRateLimitError):
            generate_alt_texts(product["id"])
        assert _reload(product["id"])["images"][0]["alt"] == "ancien"

    def test_no_images(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[])
        result = generate_alt_texts(product["id"])
        assert result.success is False
        assert result.error == "No images found for this product"
        assert result.to_dict() == {"success": False, "error": "No images found for this product"}


class TestInternalLinks:

    def test_existing_links_preserved(self, shop, make_product):
        product = make_product(shop["id"])
        result = add_internal_links(product["id"])
        assert result.links_added == 0
        assert result.message == "Internal links preserved"
        assert _reload(product["id"])["description"] == product["description"]

    def test_adds_collection_paragraph(self, shop, make_product):
        product = make_product(shop["id"], description="<p>Texte</p>")
        result = add_internal_links(product["id"])

        assert result.links_added == 1
        assert result.message == "Internal links added successfully"
        description = _reload(product["id"])["description"]
        assert description.startswith("<p>Texte</p>\n\n<p>Découvrez également notre collection ")
        assert 'href="https://boutique.example.com/collections/chaussures"' in description

    def test_custom_collections_slug(self, make_shop, make_product):
        shop = make_shop(url="https://shop.example.com/", collections_slug="categorie-produit")
        product = make_product(shop["id"], description="")
        add_internal_links(product["id"])
        assert 'href="https://shop.example.com/categorie-produit/chaussures"' in _reload(product["id"])["description"]

    def test_replace_existing_links_when_not_preserving(self, shop, make_product):
        product = make_product(shop["id"])
        result = add_internal_links(product["id"], preserve_existing=False)
        assert result.links_added == 1

    def test_no_categories(self, shop, make_product):
        product = make_product(shop["id"], description="<p>x</p>", categories=[])
        result = add_internal_links(product["id"])
        assert result.links_added == 0
        assert result.message == "No categories to link to"

    def test_categories_without_slug(self, shop, make_product):
        product = make_product(shop["id"], description="<p>x</p>", categories=[{"id": 1, "name": "Sans slug"}])
        result = add_internal_links(product["id"])
        assert result.message == "No valid category links to add"

    def test_failed_remote_push_is_reported(self, shop, make_product, monkeypatch):
        product = make_product(shop["id"], description="<p>x</p>", woocommerce_id=42)
        monkeypatch.setattr(remediation.base, "try_push_product", lambda s, p: False)

        result = add_internal_links(product["id"])
        assert result.success
        assert result.remote_updated is False
        assert result.message == "Links added to database but failed to sync to remote site"

    def test_remote_push(self, shop, make_product, monkeypatch):
        pushed = []
        product = make_product(shop["id"], description="<p>x</p>", woocommerce_id=42)
        monkeypatch.setattr(remediation.base, "try_push_product", lambda s, p: pushed.append(p["id"]) or True)

        result = add_internal_links(product["id"])
        assert result.remote_updated is True
        assert pushed == [product["id"]]

    def test_linking_paragraph_for_several_collections(self):
        paragraph = build_linking_paragraph(["<a>A</a>", "<a>B</a>", "<a>C</a>"])
        assert paragraph == ("<p>Découvrez également nos collections <a>A</a>, <a>B</a> "
                             "et <a>C</a> pour plus de produits similaires.</p>")


class TestTranslation:

    def test_restore_hrefs(self):
        original = '<a href="/fr/sacs">Sacs</a> <a href="/fr/cuir">Cuir</a>'
        translated = '<a href="/en/bags">Bags</a> <a href="/en/leather">Leather</a> <a href="/x">X</a>'
        assert restore_hrefs(original, translated) == (
            '<a href="/fr/sacs">Bags</a> <a href="/fr/cuir">Leather</a> <a href="/x">X</a>'
        )

    def test_translate_and_apply(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], description='<p>Texte</p><a href="/collections/sacs">Sacs</a>')
        mock_gateway.complete_json.return_value = {
            "name": "Leather bag",
            "description": '<p>Text</p><a href="/collections/bags">Bags</a>',
            "meta_description": "A bag",
            "unexpected": "ignored",
        }

        result = translate_product(product["id"], "en")
        translation = result.data["translation"]
        assert set(translation) == {"name", "description", "meta_description"}
        assert 'href="/collections/sacs"' in translation["description"]
        assert result.data["applied"] is True
        assert _reload(product["id"])["name"] == "Leather bag"

    def test_translate_without_apply(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete_json.return_value = {"name": "Product"}

        result = translate_product(product["id"], "en", apply=False)
        assert result.message == "Translation generated"
        assert result.data["applied"] is False
        assert _reload(product["id"])["name"] == product["name"]

    def test_links_not_preserved_on_request(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], description='<a href="/fr">x</a>')
        mock_gateway.complete_json.return_value = {"description": '<a href="/en">x</a>'}
        result = translate_product(product["id"], "en", apply=False, preserve_internal_links=False)
        assert result.data["translation"]["description"] == '<a href="/en">x</a>'

    def test_language_required(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        with pytest.raises(ValidationError):
            translate_product(product["id"], "")


class TestHandlers:

    def test_complete_action_runs_every_step(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        result = ACTION_HANDLERS["complete"]({"product_id": product["id"]})
        assert result.success
        # short + long + meta + one alt text
        assert mock_gateway.complete.call_count == 4

    def test_complete_action_skips_alt_texts_without_images(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[])
        assert ACTION_HANDLERS["complete"]({"product_id": product["id"]}).success
        assert mock_gateway.complete.call_count == 3

    def test_translate_action_applies(self, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete_json.return_value = {"name": "Translated"}
        ACTION_HANDLERS["translate"]({"product_id": product["id"], "language": "en"})
        assert _reload(product["id"])["name"] == "Translated"

    @pytest.mark.parametrize("category", ["Images", "SEO Images", "Contenu", "Structure",
                                          "SEO", "Contenu dupliqué", "Maillage interne"])
    def test_supported_categories(self, category):
        assert get_category_handler(category, {"id": "p1", "type": "product"}) is not None

    def test_unsupported_category(self):
        assert get_category_handler("Performance", {"id": "p1"}) is None

    def test_non_product_items_unsupported(self):
        assert get_category_handler("Contenu", {"id": "c1", "type": "collection"}) is None
