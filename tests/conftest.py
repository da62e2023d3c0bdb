"""
Pytest configuration and fixtures for the menu API tests.
"""

import sys
from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import database
from main import app

DEFAULT_AUTH = ("Epiphany", "epiphany@123")


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def mock_db(monkeypatch):
    """Replace the MongoDB handle with an in-memory database."""
    db = mongomock.MongoClient()["menu_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_auth():
    return DEFAULT_AUTH


# =============================================================================
# Catalog Fixtures
# =============================================================================

@pytest.fixture
def drinks(mock_db):
    """A 'Drinks' category with 'Wine' and 'Beer' subcategories."""
    import catalog

    category = catalog.create_category("Drinks", "https://example.com/drinks.jpg")
    wine, beer = catalog.create_subcategories(["Wine", "Beer"], category["_id"])
    category["subcategories"] = [wine, beer]
    return category


@pytest.fixture
def product_input(drinks):
    wine = drinks["subcategories"][0]
    return {
        "title": "Bordeaux",
        "image": "https://example.com/bordeaux.jpg",
        "price": 24.0,
        "description": "  Red, dry  ",
        "category_id": drinks["_id"],
        "subcategory_id": wine["_id"],
    }
