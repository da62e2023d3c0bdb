"""
Tests for catalog operations.
"""

import pytest

import catalog
from errors import ConflictError, NotFoundError, StorageError, ValidationError


class TestCategories:
    """Tests for category creation, update and listing."""

    def test_create_category_returns_generated_fields(self):
        category = catalog.create_category("  Drinks ", "https://example.com/d.jpg")

        assert category["_id"]
        assert category["name"] == "Drinks"
        assert category["created_at"] is not None
        assert category["updated_at"] is not None

    @pytest.mark.parametrize("name,image", [
        ("", "https://example.com/d.jpg"),
        ("   ", "https://example.com/d.jpg"),
        ("Drinks", ""),
        ("Drinks", "not a url"),
    ])
    def test_create_category_rejects_bad_input(self, mock_db, name, image):
        with pytest.raises(ValidationError):
            catalog.create_category(name, image)

        assert mock_db["categories"].count_documents({}) == 0

    def test_update_category_is_partial(self, drinks):
        updated = catalog.update_category(drinks["_id"], {"name": "Boissons"})

        assert updated["name"] == "Boissons"
        assert updated["image"] == "https://example.com/drinks.jpg"

    def test_update_missing_category(self):
        with pytest.raises(NotFoundError):
            catalog.update_category("65a000000000000000000000", {"name": "X"})

    def test_get_categories_nests_subcategories_in_creation_order(self, drinks):
        catalog.create_category("Food", "https://example.com/food.jpg")

        categories = catalog.get_categories()

        assert [c["name"] for c in categories] == ["Drinks", "Food"]
        assert [s["name"] for s in categories[0]["subcategories"]] == ["Wine", "Beer"]
        assert categories[1]["subcategories"] == []


class TestSubcategories:
    """Tests for subcategory creation and maintenance."""

    def test_blank_names_are_dropped(self, mock_db):
        category = catalog.create_category("Drinks", "https://example.com/d.jpg")

        rows = catalog.create_subcategories(["", "  ", " Drinks "], category["_id"])

        assert [r["name"] for r in rows] == ["Drinks"]
        stored = list(mock_db["subcategories"].find({}))
        assert len(stored) == 1
        assert stored[0]["name"] == "Drinks"
        assert stored[0]["category_id"] == category["_id"]

    def test_all_blank_input_issues_no_write(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("storage must not be touched")

        monkeypatch.setattr(catalog, "create_documents", fail)
        monkeypatch.setattr(catalog, "get_document_by_id", fail)

        assert catalog.create_subcategories(["", "   "], "c1") == []

    def test_missing_category_is_a_storage_error(self):
        with pytest.raises(StorageError):
            catalog.create_subcategories(["Wine"], "65a000000000000000000000")

    def test_create_single_subcategory(self, drinks, mock_db):
        row = catalog.create_subcategory(drinks["_id"], {"name": "  Cider "})

        assert row["name"] == "Cider"
        assert row["category_id"] == drinks["_id"]
        assert mock_db["subcategories"].count_documents({"category_id": drinks["_id"]}) == 3

    def test_create_single_subcategory_blank_name(self, drinks, mock_db):
        with pytest.raises(ValidationError):
            catalog.create_subcategory(drinks["_id"], {"name": "   "})

        assert mock_db["subcategories"].count_documents({}) == 2

    def test_create_single_subcategory_missing_category(self):
        with pytest.raises(NotFoundError):
            catalog.create_subcategory("65a000000000000000000000", {"name": "Cider"})

    def test_rename_and_delete_subcategory(self, drinks, product_input, mock_db):
        wine = drinks["subcategories"][0]
        catalog.create_product(product_input)

        assert catalog.update_subcategory(wine["_id"], {"name": "Vin"})["name"] == "Vin"

        catalog.delete_subcategory(wine["_id"])
        assert mock_db["subcategories"].count_documents({}) == 1
        assert mock_db["products"].count_documents({}) == 0


class TestProducts:
    """Tests for product validation and persistence."""

    def test_create_product(self, product_input):
        product = catalog.create_product(product_input)

        assert product["_id"]
        assert product["title"] == "Bordeaux"
        assert product["description"] == "Red, dry"
        assert product["extras"] == []
        assert product["verres"] == []

    def test_create_minimal_product(self, drinks):
        product = catalog.create_product({
            "title": "Soup",
            "image": "https://x/y.jpg",
            "price": 12.5,
            "category_id": drinks["_id"],
            "subcategory_id": drinks["subcategories"][1]["_id"],
        })

        assert product["_id"]
        assert product["price"] == 12.5
        assert product["description"] == ""

    def test_blank_title_makes_no_storage_call(self, monkeypatch, product_input):
        calls = []
        monkeypatch.setattr(catalog, "get_document_by_id", lambda *a: calls.append(a))
        monkeypatch.setattr(catalog, "create_document", lambda *a: calls.append(a))

        with pytest.raises(ValidationError):
            catalog.create_product({**product_input, "title": ""})

        assert calls == []

    @pytest.mark.parametrize("override", [
        {"price": 0},
        {"price": -3},
        {"image": "ftp//broken"},
        {"category_id": ""},
        {"subcategory_id": "   "},
    ])
    def test_invalid_product_fields(self, product_input, override):
        with pytest.raises(ValidationError):
            catalog.create_product({**product_input, **override})

    def test_subcategory_must_belong_to_category(self, product_input):
        food = catalog.create_category("Food", "https://example.com/food.jpg")
        (starters,) = catalog.create_subcategories(["Starters"], food["_id"])

        with pytest.raises(ValidationError):
            catalog.create_product({**product_input, "subcategory_id": starters["_id"]})

    def test_unknown_category(self, product_input):
        with pytest.raises(NotFoundError):
            catalog.create_product({**product_input, "category_id": "65a000000000000000000000"})

    def test_addons_are_created_with_product(self, product_input, mock_db):
        product = catalog.create_product({
            **product_input,
            "extras": [{"name": "Ice", "price": 0.5}],
            "verres": [{"name": "12cl", "price": 6}, {"name": "Bottle", "price": 24}],
        })

        assert [e["product_id"] for e in product["extras"]] == [product["_id"]]
        assert [v["name"] for v in product["verres"]] == ["12cl", "Bottle"]
        assert mock_db["product_verres"].count_documents({"product_id": product["_id"]}) == 2

    def test_update_product_is_partial(self, product_input):
        product = catalog.create_product(product_input)

        updated = catalog.update_product(product["_id"], {"price": 30})

        assert updated["price"] == 30
        assert updated["title"] == "Bordeaux"
        assert updated["subcategory_id"] == product_input["subcategory_id"]

    def test_update_product_rechecks_subcategory(self, product_input):
        product = catalog.create_product(product_input)
        food = catalog.create_category("Food", "https://example.com/food.jpg")

        with pytest.raises(ValidationError):
            catalog.update_product(product["_id"], {"category_id": food["_id"]})

    def test_get_products_includes_addons(self, product_input):
        product = catalog.create_product(product_input)
        catalog.create_product_extra(product["_id"], {"name": "Cheese", "price": 2})
        catalog.create_product_verre(product["_id"], {"name": "25cl", "price": 9})

        (listed,) = catalog.get_products()

        assert [e["name"] for e in listed["extras"]] == ["Cheese"]
        assert [v["name"] for v in listed["verres"]] == ["25cl"]

    def test_addon_price_cannot_be_negative(self, product_input):
        product = catalog.create_product(product_input)

        with pytest.raises(ValidationError):
            catalog.create_product_extra(product["_id"], {"name": "Cheese", "price": -1})

    def test_delete_product_removes_addons(self, product_input, mock_db):
        product = catalog.create_product({**product_input, "extras": [{"name": "Ice", "price": 0}]})

        catalog.delete_product(product["_id"])

        assert mock_db["products"].count_documents({}) == 0
        assert mock_db["product_extras"].count_documents({}) == 0

    def test_delete_addons(self, product_input, mock_db):
        product = catalog.create_product({
            **product_input,
            "extras": [{"name": "Ice", "price": 0}],
            "verres": [{"name": "12cl", "price": 6}],
        })

        catalog.delete_product_extra(product["extras"][0]["_id"])
        catalog.delete_product_verre(product["verres"][0]["_id"])

        assert mock_db["product_extras"].count_documents({}) == 0
        assert mock_db["product_verres"].count_documents({}) == 0
        with pytest.raises(NotFoundError):
            catalog.delete_product_extra(product["extras"][0]["_id"])

    def test_storage_failure_propagates(self, monkeypatch, product_input):
        def broken(*args, **kwargs):
            raise StorageError("Failed to insert document in products")

        monkeypatch.setattr(catalog, "create_document", broken)

        with pytest.raises(StorageError, match="Failed to insert"):
            catalog.create_product(product_input)


class TestDeleteCategory:
    """Tests for the category delete policies."""

    def test_cascade(self, drinks, product_input, mock_db):
        catalog.create_product({**product_input, "verres": [{"name": "12cl", "price": 6}]})

        catalog.delete_category(drinks["_id"], "cascade")

        for name in ("categories", "subcategories", "products", "product_verres"):
            assert mock_db[name].count_documents({}) == 0

    def test_restrict(self, drinks, mock_db):
        with pytest.raises(ConflictError):
            catalog.delete_category(drinks["_id"], "restrict")

        assert mock_db["categories"].count_documents({}) == 1

    def test_restrict_allows_empty_category(self, mock_db):
        category = catalog.create_category("Empty", "https://example.com/e.jpg")

        catalog.delete_category(category["_id"], "restrict")

        assert mock_db["categories"].count_documents({}) == 0

    def test_orphan(self, drinks, mock_db):
        catalog.delete_category(drinks["_id"], "orphan")

        assert mock_db["categories"].count_documents({}) == 0
        assert mock_db["subcategories"].count_documents({}) == 2

    def test_unknown_policy(self, drinks):
        with pytest.raises(ValidationError):
            catalog.delete_category(drinks["_id"], "shred")


class TestGrouping:
    """Tests for grouping products by subcategory."""

    def _products(self):
        return [
            {"_id": "p1", "subcategory_id": "s2"},
            {"_id": "p2", "subcategory_id": "s1"},
            {"_id": "p3", "subcategory_id": "other"},
            {"_id": "p4", "subcategory_id": "s2"},
            {"_id": "p5", "subcategory_id": "s1"},
        ]

    def test_groups_preserve_relative_order(self):
        category = {"_id": "c1", "subcategories": [{"_id": "s1"}, {"_id": "s2"}, {"_id": "s3"}]}

        groups = catalog.group_products_by_subcategory(category, self._products())

        assert [p["_id"] for p in groups["s1"]] == ["p2", "p5"]
        assert [p["_id"] for p in groups["s2"]] == ["p1", "p4"]
        assert groups["s3"] == []

    def test_groups_partition_the_category_products(self):
        category = {"_id": "c1", "subcategories": [{"_id": "s2"}, {"_id": "s1"}]}
        products = self._products()

        groups = catalog.group_products_by_subcategory(category, products)
        flattened = [p for sub in category["subcategories"] for p in groups[sub["_id"]]]

        belonging = [p for p in products if p["subcategory_id"] in ("s1", "s2")]
        assert sorted(p["_id"] for p in flattened) == sorted(p["_id"] for p in belonging)
        assert len(flattened) == len(set(p["_id"] for p in flattened))

    def test_category_menu_skips_empty_sections(self, drinks, product_input):
        catalog.create_product(product_input)

        menu = catalog.get_category_menu(drinks["_id"])

        assert [s["subcategory"]["name"] for s in menu["sections"]] == ["Wine"]
        assert [p["title"] for p in menu["sections"][0]["products"]] == ["Bordeaux"]
