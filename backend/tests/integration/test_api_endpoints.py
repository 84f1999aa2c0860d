"""Integration tests for API endpoints."""

import json

import pytest

from db.repositories import CatalogRepository, ResolutionJobRepository
from tests.fixtures.test_data import EMPTY_BLOG_POST, OPTIMIZED_BLOG_POST


def _post(client, url, body=None):
    return client.post(url, data=json.dumps(body or {}), content_type="application/json")


class TestSystemEndpoints:
    """Tests for health and config endpoints."""

    def test_health_endpoint(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "healthy"
        assert data["services"]["database"] == "ok"
        assert data["services"]["llm"] == "configured"
        assert data["services"]["search"] == "not configured"
        assert data["services"]["job_queue"]["type"] == "memory"

    def test_config_hides_secrets(self, client):
        data = json.loads(client.get("/api/v1/config").data)
        assert data["llm_api_key"] == "***configured***"
        assert data["api_key"] == ""
        assert data["port"] == 5780


class TestShopEndpoints:

    def test_create_shop(self, client):
        response = _post(client, "/api/v1/shops", {
            "name": "Ma Boutique",
            "url": "https://ma-boutique.example.com",
            "consumer_key": "ck_secret",
            "consumer_secret": "cs_secret",
        })
        assert response.status_code == 201
        shop = json.loads(response.data)["shop"]
        assert shop["type"] == "woocommerce"
        assert shop["consumer_key"] == "***configured***"
        assert shop["openai_api_key"] == ""

        fetched = json.loads(client.get(f"/api/v1/shops/{shop['id']}").data)["shop"]
        assert fetched["name"] == "Ma Boutique"
        assert "ck_secret" not in json.dumps(fetched)

    @pytest.mark.parametrize("body", [
        {"name": "Sans URL"},
        {"url": "https://x.example.com"},
        {"name": "Mauvais type", "url": "https://x.example.com", "type": "magento"},
    ])
    def test_create_shop_validation(self, client, body):
        response = _post(client, "/api/v1/shops", body)
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["success"] is False
        assert data["code"] == "VAL_001"

    def test_unknown_shop(self, client):
        response = client.get("/api/v1/shops/missing")
        assert response.status_code == 404
        assert json.loads(response.data)["error"] == "Boutique non trouvée"

    def test_list_products(self, client, shop, make_product):
        make_product(shop["id"])
        make_product(shop["id"])
        data = json.loads(client.get(f"/api/v1/shops/{shop['id']}/products").data)
        assert data["count"] == 2
        assert all(p["shop_id"] == shop["id"] for p in data["products"])


class TestDiagnosticEndpoints:

    def test_run_and_fetch(self, client, shop, make_product):
        make_product(shop["id"])
        response = _post(client, "/api/v1/diagnostics/run", {"shop_id": shop["id"]})
        assert response.status_code == 200
        diagnostic = json.loads(response.data)["diagnostic"]
        assert diagnostic["status"] == "completed"
        assert 0 <= diagnostic["score"] <= 100

        fetched = json.loads(client.get(f"/api/v1/diagnostics/{diagnostic['id']}").data)["diagnostic"]
        assert fetched["score"] == diagnostic["score"]

        history = json.loads(client.get(f"/api/v1/shops/{shop['id']}/diagnostics").data)["diagnostics"]
        assert [d["id"] for d in history] == [diagnostic["id"]]

    def test_run_requires_shop_id(self, client):
        assert _post(client, "/api/v1/diagnostics/run", {}).status_code == 400

    def test_run_unknown_shop(self, client):
        assert _post(client, "/api/v1/diagnostics/run", {"shop_id": "missing"}).status_code == 404

    def test_unknown_diagnostic(self, client):
        assert client.get("/api/v1/diagnostics/missing").status_code == 404

    def test_resolve_issue(self, client, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], meta_description="")
        diagnostic = json.loads(_post(client, "/api/v1/diagnostics/run", {"shop_id": shop["id"]}).data)["diagnostic"]
        index = next(i for i, issue in enumerate(diagnostic["issues"])
                     if issue["title"] == "Meta descriptions manquantes")

        response = _post(client, f"/api/v1/diagnostics/{diagnostic['id']}/issues/{index}/resolve",
                         {"item_ids": [bad["id"]]})
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["resolved_count"] == 1
        assert data["new_score"] > diagnostic["score"]
        assert data["diagnostic"]["issues"][index]["type"] == "success"

    def test_resolve_issue_validation(self, client, shop):
        diagnostic = json.loads(_post(client, "/api/v1/diagnostics/run", {"shop_id": shop["id"]}).data)["diagnostic"]
        url = f"/api/v1/diagnostics/{diagnostic['id']}/issues/0/resolve"
        assert _post(client, url, {"item_ids": []}).status_code == 400
        bad_index = f"/api/v1/diagnostics/{diagnostic['id']}/issues/999/resolve"
        assert _post(client, bad_index, {"item_ids": ["p1"]}).status_code == 400


class TestContentEndpoints:

    def test_analyze_unsaved_content(self, client):
        response = _post(client, "/api/v1/seo/analyze", {"content": OPTIMIZED_BLOG_POST})
        analysis = json.loads(response.data)["analysis"]
        assert analysis["score"] == 100
        assert analysis["grade"] == "A+"

    def test_analyze_saved_post(self, client, shop):
        post = CatalogRepository().create_blog_post(shop["id"], EMPTY_BLOG_POST)
        response = _post(client, "/api/v1/seo/analyze", {"post_id": post["id"]})
        assert response.status_code == 200
        assert set(json.loads(response.data)["analysis"]["categories"]) == {
            "content", "keywords", "metadata", "media", "links", "advanced",
        }

    def test_analyze_requires_input(self, client):
        assert _post(client, "/api/v1/seo/analyze", {}).status_code == 400
        assert _post(client, "/api/v1/seo/analyze", {"post_id": "missing"}).status_code == 404

    def test_serp_requires_keyword(self, client):
        assert _post(client, "/api/v1/seo/serp", {"keyword": "  "}).status_code == 400

    def test_serp_without_credentials(self, client):
        response = _post(client, "/api/v1/seo/serp", {"keyword": "chaussures"})
        assert response.status_code == 400
        assert json.loads(response.data)["success"] is False

    def test_generate_description(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        response = _post(client, f"/api/v1/products/{product['id']}/description", {"type": "short"})
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["short_description"] == "Texte généré"

    def test_generate_description_requires_type(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        assert _post(client, f"/api/v1/products/{product['id']}/description", {}).status_code == 400

    def test_meta_description_unknown_product(self, client, mock_gateway):
        assert _post(client, "/api/v1/products/missing/meta-description").status_code == 404

    def test_alt_texts_without_images(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"], images=[])
        response = _post(client, f"/api/v1/products/{product['id']}/alt-texts")
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "No images found for this product"

    def test_internal_links(self, client, shop, make_product):
        product = make_product(shop["id"], description="<p>Texte</p>")
        data = json.loads(_post(client, f"/api/v1/products/{product['id']}/internal-links").data)
        assert data["success"] is True
        assert data["links_added"] == 1

    def test_translate_preview(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        mock_gateway.complete_json.return_value = {"name": "Product"}
        response = _post(client, f"/api/v1/products/{product['id']}/translate", {"target_language": "en"})
        data = json.loads(response.data)
        assert data["translation"] == {"name": "Product"}
        assert data["applied"] is False
        assert CatalogRepository().get_product(product["id"])["name"] == product["name"]

    def test_translate_requires_language(self, client, shop, make_product):
        product = make_product(shop["id"])
        assert _post(client, f"/api/v1/products/{product['id']}/translate", {}).status_code == 400

    def test_llm_rate_limit_maps_to_429(self, client, shop, make_product, mock_gateway):
        from error_handler import LLMRateLimitError

        product = make_product(shop["id"])
        mock_gateway.complete.side_effect = LLMRateLimitError()
        response = _post(client, f"/api/v1/products/{product['id']}/meta-description")
        assert response.status_code == 429
        assert json.loads(response.data)["code"] == "LLM_429"


class TestGenerationJobEndpoints:

    def test_enqueue_list_and_process(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"])
        response = _post(client, "/api/v1/generation-jobs", {
            "shop_id": shop["id"],
            "product_ids": [product["id"]],
            "action": "short_descriptions",
        })
        assert response.status_code == 201
        job = json.loads(response.data)["jobs"][0]

        pending = json.loads(client.get("/api/v1/generation-jobs?status=pending").data)["jobs"]
        assert [j["id"] for j in pending] == [job["id"]]

        result = json.loads(_post(client, "/api/v1/generation-jobs/process").data)
        assert result["processed"] == 1

        fetched = json.loads(client.get(f"/api/v1/generation-jobs/{job['id']}").data)["job"]
        assert fetched["status"] == "completed"

    def test_enqueue_validation(self, client, shop):
        body = {"shop_id": shop["id"], "product_ids": "p1", "action": "complete"}
        assert _post(client, "/api/v1/generation-jobs", body).status_code == 400
        body = {"shop_id": shop["id"], "product_ids": ["p1"], "action": "unknown"}
        assert _post(client, "/api/v1/generation-jobs", body).status_code == 400

    def test_invalid_issue_index(self, client, shop):
        response = _post(client, "/api/v1/resolutions", {
            "shop_id": shop["id"],
            "issue_type": "meta_descriptions",
            "issue_index": "first",
            "affected_items": [{"id": "p1"}],
        })
        assert response.status_code == 400

    def test_unknown_job(self, client):
        assert client.get("/api/v1/generation-jobs/missing").status_code == 404


class TestResolutionEndpoints:

    def test_queue_and_poll(self, client, shop, make_product, mock_gateway):
        product = make_product(shop["id"], meta_description="")
        response = _post(client, "/api/v1/resolutions", {
            "shop_id": shop["id"],
            "issue_type": "meta_descriptions",
            "category": "SEO",
            "affected_items": [{"id": product["id"], "name": product["name"], "type": "product"}],
        })
        assert response.status_code == 202
        data = json.loads(response.data)
        assert data["total_items"] == 1

        job = json.loads(client.get(f"/api/v1/resolutions/{data['job_id']}").data)["job"]
        assert job["status"] == "completed"
        assert job["progress"] == 100
        assert job["success_count"] == 1
        assert job["stale"] is False

    def test_conflict_returns_existing_job(self, client, shop):
        existing = ResolutionJobRepository().create_run(shop["id"], "d1", "alt_texts", "Images", [{"id": "p1"}])
        response = _post(client, "/api/v1/resolutions", {
            "shop_id": shop["id"],
            "diagnostic_id": "d1",
            "issue_type": "alt_texts",
            "affected_items": [{"id": "p1"}],
        })
        assert response.status_code == 409
        assert json.loads(response.data)["existing_job_id"] == existing["id"]

    def test_queue_validation(self, client, shop):
        response = _post(client, "/api/v1/resolutions", {"shop_id": shop["id"], "issue_type": "x"})
        assert response.status_code == 400

    def test_unknown_job(self, client):
        assert client.get("/api/v1/resolutions/missing").status_code == 404
