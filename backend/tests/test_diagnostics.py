"""Tests for diagnostics.py — shop scoring and resolution bookkeeping."""

import pytest

import diagnostics
from db.repositories import CatalogRepository, DiagnosticRepository
from diagnostics import apply_resolution, mark_items_resolved, run_diagnostic
from error_handler import NotFoundError, ValidationError


def _issue(diagnostic, title_fragment):
    return next(i for i in diagnostic["issues"] if title_fragment in i["title"])


def _index(diagnostic, title_fragment):
    return next(n for n, i in enumerate(diagnostic["issues"]) if title_fragment in i["title"])


class TestRunDiagnostic:

    def test_healthy_catalog(self, shop, make_product):
        make_product(shop["id"])
        make_product(shop["id"])
        diagnostic = run_diagnostic(shop["id"])

        assert diagnostic["status"] == "completed"
        assert sum(i["maxPoints"] for i in diagnostic["issues"]) == 100
        assert diagnostic["score"] == sum(i["earnedPoints"] for i in diagnostic["issues"])
        # Only the schema markup check withholds points on a clean catalog
        assert diagnostic["score"] == 97
        assert diagnostic["errors_count"] == 0
        assert diagnostic["info_count"] == 1

    def test_empty_catalog(self, shop):
        diagnostic = run_diagnostic(shop["id"])
        assert diagnostic["score"] == 97
        assert diagnostic["total_issues"] == 1

    def test_partial_credit(self, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], meta_description="", images=[])
        diagnostic = run_diagnostic(shop["id"])

        meta = _issue(diagnostic, "Meta descriptions manquantes")
        assert meta["type"] == "warning"
        assert meta["earnedPoints"] == 6
        assert meta["action_available"] is True
        assert [i["id"] for i in meta["affected_items"]] == [bad["id"]]

        images = _issue(diagnostic, "Images produits manquantes")
        assert images["type"] == "error"
        assert images["earnedPoints"] == 5
        assert diagnostic["score"] == 86

    def test_missing_credentials_are_reported(self, make_shop):
        shop = make_shop(consumer_key="", consumer_secret="", openai_api_key="")
        diagnostic = run_diagnostic(shop["id"])

        config = [i for i in diagnostic["issues"] if i["category"] == "Configuration"]
        assert {i["type"] for i in config} == {"error", "info"}
        assert all(i["maxPoints"] == 0 for i in config)
        assert diagnostic["score"] == 97

    def test_out_of_stock_products(self, shop, make_product):
        product = make_product(shop["id"], stock_status="outofstock")
        issue = _issue(run_diagnostic(shop["id"]), "rupture de stock")
        assert issue["category"] == "Inventaire"
        assert issue["affected_items"][0]["id"] == product["id"]

    def test_collections_and_blog_posts(self, shop):
        catalog = CatalogRepository()
        catalog.create_collection(shop["id"], {"name": "Vide", "slug": "vide"})
        catalog.create_collection(shop["id"], {"name": "Décrite", "slug": "decrite", "description": "Texte"})
        catalog.create_blog_post(shop["id"], {"title": "Brouillon", "content": "<p>court</p>"})

        diagnostic = run_diagnostic(shop["id"])
        collections = _issue(diagnostic, "Descriptions collections manquantes")
        assert collections["resource_type"] == "collection"
        assert collections["earnedPoints"] == 3
        blog = _issue(diagnostic, "Articles de blog peu optimisés")
        assert blog["affected_items"][0]["type"] == "blog"
        assert blog["earnedPoints"] == 0

    def test_unknown_shop(self, app):
        with pytest.raises(NotFoundError):
            run_diagnostic("missing")

    def test_failure_marks_run_failed(self, shop, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("scoring exploded")

        monkeypatch.setattr(diagnostics, "build_issues", _boom)
        with pytest.raises(RuntimeError):
            run_diagnostic(shop["id"])

        history = DiagnosticRepository().list_diagnostics(shop["id"])
        assert history[0]["status"] == "failed"
        assert history[0]["error_message"] == "scoring exploded"

    def test_weights_version_recorded(self, shop):
        from seo_weights import SEO_WEIGHTS_VERSION

        assert run_diagnostic(shop["id"])["weights_version"] == SEO_WEIGHTS_VERSION


class TestMarkItemsResolved:

    def test_resolving_all_items_turns_issue_into_success(self, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], meta_description="")
        diagnostic = run_diagnostic(shop["id"])
        index = _index(diagnostic, "Meta descriptions manquantes")

        updated = mark_items_resolved(diagnostic["id"], index, [bad["id"]])
        issue = updated["issues"][index]
        assert issue["type"] == "success"
        assert issue["resolved"] is True
        assert issue["manually_resolved"] is True
        assert issue["earnedPoints"] == issue["maxPoints"]
        assert updated["score"] == diagnostic["score"] + 6
        assert updated["warnings_count"] == diagnostic["warnings_count"] - 1

    def test_partial_resolution_recomputes_credit(self, shop, make_product):
        make_product(shop["id"])
        first = make_product(shop["id"], meta_description="")
        make_product(shop["id"], meta_description="")
        diagnostic = run_diagnostic(shop["id"])
        index = _index(diagnostic, "Meta descriptions manquantes")
        assert diagnostic["issues"][index]["earnedPoints"] == 4

        updated = mark_items_resolved(diagnostic["id"], index, [first["id"]])
        issue = updated["issues"][index]
        assert issue["type"] == "warning"
        assert issue["earnedPoints"] == 8
        assert first["id"] in issue["resolved_items"]
        assert len(issue["affected_items"]) == 1

    def test_issue_without_affected_items_is_unchanged(self, shop, make_product):
        product = make_product(shop["id"])
        diagnostic = run_diagnostic(shop["id"])
        index = next(n for n, i in enumerate(diagnostic["issues"]) if i["category"] == "Données structurées")

        updated = mark_items_resolved(diagnostic["id"], index, [product["id"]])
        issue = updated["issues"][index]
        assert issue["type"] == "info"
        assert issue["earnedPoints"] == 0
        assert "manually_resolved" not in issue
        assert updated["score"] == diagnostic["score"]

    def test_invalid_index(self, shop):
        diagnostic = run_diagnostic(shop["id"])
        with pytest.raises(ValidationError):
            mark_items_resolved(diagnostic["id"], 999, ["x"])

    def test_unknown_diagnostic(self, app):
        with pytest.raises(NotFoundError):
            mark_items_resolved("missing", 0, ["x"])


class TestApplyResolution:

    def test_category_match_is_case_insensitive(self, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], images=[{"src": "x.jpg", "alt": ""}])
        diagnostic = run_diagnostic(shop["id"])

        updated = apply_resolution(diagnostic["id"], "images", [bad["id"]])
        alt_issue = _issue(updated, "Textes alternatifs")
        assert alt_issue["type"] == "success"
        assert "manually_resolved" not in alt_issue

    def test_only_targeted_issue_is_credited(self, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], meta_title="", meta_description="")
        diagnostic = run_diagnostic(shop["id"])
        index = _index(diagnostic, "Meta descriptions manquantes")
        titles = _issue(diagnostic, "Meta titres manquants")
        assert titles["earnedPoints"] == 4

        updated = apply_resolution(diagnostic["id"], "SEO", [bad["id"]], issue_index=index)
        assert updated["issues"][index]["type"] == "success"
        still_missing = _issue(updated, "Meta titres manquants")
        assert still_missing["type"] == "warning"
        assert still_missing["earnedPoints"] == 4
        assert [i["id"] for i in still_missing["affected_items"]] == [bad["id"]]

    def test_without_index_only_actionable_issue_is_credited(self, shop, make_product):
        make_product(shop["id"])
        bad = make_product(shop["id"], meta_title="", meta_description="")
        diagnostic = run_diagnostic(shop["id"])

        updated = apply_resolution(diagnostic["id"], "SEO", [bad["id"]])
        assert _issue(updated, "Meta descriptions manquantes")["type"] == "success"
        assert _issue(updated, "Meta titres manquants")["earnedPoints"] == 4

    def test_index_out_of_range_leaves_diagnostic_unchanged(self, shop, make_product):
        bad = make_product(shop["id"], meta_description="")
        diagnostic = run_diagnostic(shop["id"])

        updated = apply_resolution(diagnostic["id"], "SEO", [bad["id"]], issue_index=999)
        assert updated["score"] == diagnostic["score"]

    def test_issue_without_affected_items_is_not_credited(self, shop, make_product):
        product = make_product(shop["id"])
        diagnostic = run_diagnostic(shop["id"])
        index = next(n for n, i in enumerate(diagnostic["issues"]) if i["category"] == "Données structurées")

        updated = apply_resolution(diagnostic["id"], "Données structurées", [product["id"]], issue_index=index)
        assert updated["issues"][index]["type"] == "info"
        assert updated["score"] == diagnostic["score"]

    def test_unrelated_category_leaves_diagnostic_unchanged(self, shop, make_product):
        bad = make_product(shop["id"], meta_description="")
        diagnostic = run_diagnostic(shop["id"])

        updated = apply_resolution(diagnostic["id"], "Images", [bad["id"]])
        assert updated["score"] == diagnostic["score"]
