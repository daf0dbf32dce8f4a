"""
Menu, table and public customer-menu tests.

Verifies:
- Categories append at the end and names are unique per owner
- Menu item price and category validation
- Menu template config must be a JSON object
- Table batches report added and already-existing numbers
- The public customer menu shows only active categories and items
"""

import pytest

from conftest import seed_menu


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:

    def test_create_appends_position(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/category', json={"name": "Desserts"})
        assert resp.status_code == 201
        assert "categoryId" in resp.json["data"]

        categories = auth_client.get('/v1/menu/category').json["categories"]
        assert [(c["name"], c["position"]) for c in categories] == [("Mains", 1), ("Desserts", 2)]

    def test_duplicate_name(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/category', json={"name": "Mains"})
        assert resp.status_code == 400
        assert resp.json["code"] == "CATEGORY_EXISTS"

    def test_blank_name(self, auth_client, owner):
        resp = auth_client.post('/v1/menu/category', json={"name": "  "})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_NAME"

    def test_empty_list_message(self, auth_client, owner):
        resp = auth_client.get('/v1/menu/category')
        assert resp.status_code == 200
        assert resp.json["categories"] == []
        assert resp.json["message"] == "No categories found."

    def test_update(self, auth_client, owner, menu):
        resp = auth_client.put(f'/v1/menu/category/{menu.category_id}', json={"name": "Main course", "status": 0})
        assert resp.status_code == 200

        category = auth_client.get('/v1/menu/category').json["categories"][0]
        assert category["name"] == "Main course"
        assert category["status"] == 0

    @pytest.mark.parametrize("status", [2, -1, True, "1", None])
    def test_update_invalid_status(self, auth_client, owner, menu, status):
        resp = auth_client.put(f'/v1/menu/category/{menu.category_id}', json={"name": "Mains", "status": status})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_STATUS"

    def test_update_to_sibling_name(self, auth_client, owner, menu):
        auth_client.post('/v1/menu/category', json={"name": "Desserts"})
        resp = auth_client.put(f'/v1/menu/category/{menu.category_id}', json={"name": "Desserts", "status": 1})
        assert resp.status_code == 400
        assert resp.json["code"] == "CATEGORY_EXISTS"

    def test_update_foreign_category(self, other_auth_client, owner, menu):
        resp = other_auth_client.put(f'/v1/menu/category/{menu.category_id}', json={"name": "Mine", "status": 1})
        assert resp.status_code == 404
        assert resp.json["code"] == "CATEGORY_NOT_FOUND"


# =============================================================================
# MENU ITEMS
# =============================================================================


class TestMenuItems:

    def test_create_and_filter_by_category(self, auth_client, owner, menu):
        desserts = auth_client.post('/v1/menu/category', json={"name": "Desserts"}).json["data"]["categoryId"]
        resp = auth_client.post('/v1/menu/menu-items', json={
            "category_id": desserts,
            "name": "Gulab Jamun",
            "price": "45.50",
            "availability": "in_stock",
        })
        assert resp.status_code == 201

        everything = auth_client.get('/v1/menu/menu-items').json["menuItems"]
        assert {i["name"] for i in everything} == {"Paneer Tikka", "Gulab Jamun"}

        filtered = auth_client.get(f'/v1/menu/menu-items?categoryId={desserts}').json["menuItems"]
        assert len(filtered) == 1
        assert filtered[0]["price"] == 45.5
        assert filtered[0]["category_name"] == "Desserts"
        assert filtered[0]["position"] == 1

    @pytest.mark.parametrize("price", ["abc", -1, None, True, "1e12"])
    def test_invalid_price(self, auth_client, owner, menu, price):
        resp = auth_client.post('/v1/menu/menu-items', json={
            "category_id": menu.category_id, "name": "Lassi", "price": price,
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_PRICE"

    def test_duplicate_in_category(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/menu-items', json={
            "category_id": menu.category_id, "name": "Paneer Tikka", "price": 120,
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "MENU_ITEM_EXISTS"

    def test_unknown_category(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/menu-items', json={
            "category_id": "no-such-category", "name": "Lassi", "price": 60,
        })
        assert resp.status_code == 404
        assert resp.json["code"] == "CATEGORY_NOT_FOUND"

    def test_invalid_availability(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/menu-items', json={
            "category_id": menu.category_id, "name": "Lassi", "price": 60, "availability": "maybe",
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_AVAILABILITY"

    def test_update(self, auth_client, owner, menu):
        resp = auth_client.put(f'/v1/menu/menu-items/{menu.item_id}', json={
            "category_id": menu.category_id,
            "name": "Paneer Tikka (6 pc)",
            "price": 140,
            "availability": "out_of_stock",
        })
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["name"] == "Paneer Tikka (6 pc)"
        assert data["price"] == 140.0
        assert data["availability"] == "out_of_stock"

    def test_update_foreign_item(self, other_auth_client, owner, menu):
        resp = other_auth_client.put(f'/v1/menu/menu-items/{menu.item_id}', json={
            "category_id": menu.category_id, "name": "Mine", "price": 1,
        })
        assert resp.status_code == 404
        assert resp.json["code"] == "MENU_ITEM_NOT_FOUND"


# =============================================================================
# MENU TEMPLATES
# =============================================================================


class TestMenuTemplates:

    def test_create_and_get(self, auth_client, owner):
        config = {"colors": {"primary": "#222"}, "sections": ["Mains", "Drinks"]}
        resp = auth_client.post('/v1/menu/template', json={"name": "Evening", "config": config})
        assert resp.status_code == 201
        template_id = resp.json["data"]["templateId"]

        detail = auth_client.get(f'/v1/menu/template/{template_id}').json["data"]
        assert detail["config"] == config

        listed = auth_client.get('/v1/menu/template').json["data"]
        assert [t["name"] for t in listed] == ["Evening"]
        assert "config" not in listed[0]

    @pytest.mark.parametrize("config", [["a"], "dark", 3])
    def test_config_must_be_object(self, auth_client, owner, config):
        resp = auth_client.post('/v1/menu/template', json={"name": "Evening", "config": config})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_CONFIG"

    def test_duplicate_name(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/menu/template', json={"name": "Classic"})
        assert resp.status_code == 400
        assert resp.json["code"] == "TEMPLATE_EXISTS"

    def test_update(self, auth_client, owner, menu):
        resp = auth_client.put(f'/v1/menu/template/{menu.template_id}', json={
            "name": "Classic", "config": {"theme": "light"},
        })
        assert resp.status_code == 200
        detail = auth_client.get(f'/v1/menu/template/{menu.template_id}').json["data"]
        assert detail["config"] == {"theme": "light"}

    def test_foreign_template(self, other_auth_client, owner, menu):
        resp = other_auth_client.get(f'/v1/menu/template/{menu.template_id}')
        assert resp.status_code == 404
        assert resp.json["code"] == "TEMPLATE_NOT_FOUND"


# =============================================================================
# TABLES
# =============================================================================


class TestTables:

    def test_batch_reports_existing_and_added(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/tables/', json={
            "table_number": ["T1", "T2", "T3", "T2"],
            "template_id": menu.template_id,
        })
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["addedTables"] == ["T2", "T3"]
        assert data["existingTables"] == ["T1", "T2"]
        assert data["failedTables"] == []
        assert "2 table(s) added successfully: T2, T3." in resp.json["message"]

        tables = auth_client.get('/v1/tables/').json["data"]
        assert [t["table_number"] for t in tables] == ["T1", "T2", "T3"]

    def test_single_number(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/tables/', json={"table_number": "Patio", "template_id": menu.template_id})
        assert resp.json["data"]["addedTables"] == ["Patio"]

    def test_unknown_template(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/tables/', json={"table_number": ["T9"], "template_id": "nope"})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_TEMPLATE"

    def test_foreign_template(self, other_auth_client, owner, menu):
        resp = other_auth_client.post('/v1/tables/', json={"table_number": ["T1"], "template_id": menu.template_id})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_TEMPLATE"

    def test_blank_number(self, auth_client, owner, menu):
        resp = auth_client.post('/v1/tables/', json={"table_number": ["T5", ""], "template_id": menu.template_id})
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_TABLE_NUMBER"
        numbers = [t["table_number"] for t in auth_client.get('/v1/tables/').json["data"]]
        assert numbers == ["T1"]

    def test_get(self, auth_client, owner, menu):
        resp = auth_client.get(f'/v1/tables/{menu.table_id}')
        assert resp.status_code == 200
        assert resp.json["data"]["table_number"] == "T1"
        assert resp.json["data"]["template_id"] == menu.template_id

    def test_get_foreign(self, other_auth_client, owner, menu):
        resp = other_auth_client.get(f'/v1/tables/{menu.table_id}')
        assert resp.status_code == 404
        assert resp.json["code"] == "TABLE_NOT_FOUND"

    def test_update(self, auth_client, owner, menu):
        resp = auth_client.put(f'/v1/tables/{menu.table_id}', json={
            "table_number": "Window 1", "template_id": menu.template_id,
        })
        assert resp.status_code == 200
        assert resp.json["message"] == 'Table "Window 1" updated successfully.'

    def test_update_to_taken_number(self, auth_client, owner, menu):
        auth_client.post('/v1/tables/', json={"table_number": ["T2"], "template_id": menu.template_id})
        resp = auth_client.put(f'/v1/tables/{menu.table_id}', json={
            "table_number": "T2", "template_id": menu.template_id,
        })
        assert resp.status_code == 400
        assert resp.json["code"] == "TABLE_EXISTS"

    def test_update_missing_table(self, auth_client, owner, menu):
        resp = auth_client.put('/v1/tables/missing', json={"table_number": "T7", "template_id": menu.template_id})
        assert resp.status_code == 400
        assert resp.json["code"] == "TABLE_NOT_FOUND"


# =============================================================================
# PUBLIC CUSTOMER MENU
# =============================================================================


class TestCustomerMenu:

    def test_template_for_table(self, client, owner, menu):
        resp = client.get(f'/v1/customer-menu/template/{owner.unique_id}/{menu.table_id}')
        assert resp.status_code == 200
        assert resp.json["menuTemplate"]["name"] == "Classic"
        assert resp.json["menuTemplate"]["config"] == {"theme": "dark"}

    def test_table_of_other_owner(self, client, owner, other_owner, menu):
        resp = client.get(f'/v1/customer-menu/template/{other_owner.unique_id}/{menu.table_id}')
        assert resp.status_code == 404
        assert resp.json["code"] == "TABLE_NOT_FOUND"

    def test_only_active_categories_and_items(self, client, auth_client, owner, menu):
        hidden = auth_client.post('/v1/menu/category', json={"name": "Seasonal"}).json["data"]["categoryId"]
        auth_client.post('/v1/menu/menu-items', json={"category_id": hidden, "name": "Mango Kulfi", "price": 80})
        auth_client.put(f'/v1/menu/category/{hidden}', json={"name": "Seasonal", "status": 0})
        auth_client.post('/v1/menu/menu-items', json={
            "category_id": menu.category_id, "name": "Off Menu", "price": 10, "status": 0,
        })

        categories = client.get(f'/v1/customer-menu/category/{owner.unique_id}').json["categories"]
        assert [c["name"] for c in categories] == ["Mains"]

        items = client.get(f'/v1/customer-menu/items/{owner.unique_id}').json["menuItems"]
        assert [(i["name"], i["category_name"]) for i in items] == [("Paneer Tikka", "Mains")]

    def test_menus_are_per_owner(self, client, owner, other_owner, menu):
        seed_menu(other_owner.unique_id, price=50)
        items = client.get(f'/v1/customer-menu/items/{other_owner.unique_id}').json["menuItems"]
        assert [i["price"] for i in items] == [50.0]
