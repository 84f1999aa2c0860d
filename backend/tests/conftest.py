"""Shared pytest fixtures for all tests."""

import os
import tempfile
from unittest.mock import MagicMock

import pytest

from config import reload_settings


@pytest.fixture
def temp_db(monkeypatch):
    """Point settings at a temporary SQLite database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    monkeypatch.setenv("SEOPILOT_DB_PATH", db_path)
    monkeypatch.setenv("SEOPILOT_DATABASE_URL", "")
    monkeypatch.setenv("SEOPILOT_API_KEY", "")  # Disable auth for tests
    monkeypatch.setenv("SEOPILOT_LOG_LEVEL", "ERROR")  # Reduce log noise in tests
    monkeypatch.setenv("SEOPILOT_LOG_FILE", "")
    monkeypatch.setenv("SEOPILOT_LLM_API_KEY", "test-key")
    monkeypatch.setenv("SEOPILOT_RESOLUTION_BATCH_PAUSE_MS", "0")
    monkeypatch.setenv("SEOPILOT_RESOLUTION_RATE_LIMIT_PAUSE_SECONDS", "0")
    monkeypatch.setenv("SEOPILOT_QUEUE_POLL_INTERVAL_SECONDS", "0")
    reload_settings()

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def app(temp_db):
    """Flask app in testing mode with an active app context."""
    from app import create_app
    from db import close_db
    from generation import reset_gateway

    reset_gateway()
    application = create_app(testing=True)
    with application.app_context():
        yield application
        close_db()
    reset_gateway()


@pytest.fixture
def client(app):
    """Create a test client for Flask app."""
    with app.test_client() as client:
        yield client


@pytest.fixture
def mock_gateway(monkeypatch):
    """Replace the LLM gateway singleton with a MagicMock."""
    gateway = MagicMock()
    gateway.complete.return_value = "Texte généré"
    gateway.complete_json.return_value = {}
    monkeypatch.setattr("generation._gateway", gateway)
    return gateway


@pytest.fixture
def make_shop(app):
    """Factory fixture creating shops."""
    from db.repositories import CatalogRepository

    def _create(**overrides):
        data = {
            "name": "Boutique Test",
            "url": "https://boutique.example.com",
            "type": "woocommerce",
            "consumer_key": "ck_test",
            "consumer_secret": "cs_test",
            "openai_api_key": "sk-test",
            "language": "fr",
        }
        data.update(overrides)
        return CatalogRepository().create_shop(data)

    return _create


@pytest.fixture
def shop(make_shop):
    return make_shop()


@pytest.fixture
def make_product(app):
    """Factory fixture creating products for a shop."""
    from db.repositories import CatalogRepository

    counter = {"n": 0}

    def _create(shop_id, **overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "name": f"Produit {n}",
            "slug": f"produit-{n}",
            "status": "publish",
            "description": "<h2>Présentation</h2><p>" + "Une description complète du produit. " * 5 + "</p>"
                           '<a href="/product/produit-1">Voir</a> <a href="/categorie/a">Catégorie</a>',
            "short_description": "Description courte",
            "meta_title": f"Produit {n} | Boutique",
            "meta_description": f"Meta description unique du produit {n}.",
            "images": [{"src": f"https://cdn.example.com/p{n}.jpg", "alt": f"Photo du produit {n}"}],
            "categories": [{"id": 1, "name": "Chaussures", "slug": "chaussures"}],
            "stock_status": "instock",
        }
        data.update(overrides)
        return CatalogRepository().create_product(shop_id, data)

    return _create

