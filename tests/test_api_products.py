"""API tests for product endpoints, ownership rules and stored images."""
from decimal import Decimal
from pathlib import Path
import uuid

import pytest

from app.models import Category, Product

from conftest import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def category(test_db):
    category = Category(name="Electronics")
    test_db.add(category)
    test_db.commit()
    return category


def product_form(category, **overrides):
    form = {
        "name": "Desk Lamp",
        "description": "Adjustable LED lamp",
        "price": "19.99",
        "category_id": str(category.id),
    }
    form.update(overrides)
    return form


def create_product(client, user, category, image=None, **overrides):
    files = {"image": ("lamp.png", image, "image/png")} if image is not None else None
    return client.post(
        "/api/v1/products",
        data=product_form(category, **overrides),
        files=files,
        headers=auth_headers(user)
    )


class TestProductCreation:

    def test_create_sets_caller_as_owner(self, client, regular_user, other_user, category):
        response = create_product(client, regular_user, category, user_id=str(other_user.id))
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == str(regular_user.id)
        assert Decimal(body["price"]) == Decimal("19.99")
        assert body["image_url"] is None

    def test_create_with_image(self, client, regular_user, category, upload_dir):
        response = create_product(client, regular_user, category, image=PNG_BYTES)
        assert response.status_code == 201
        image_url = response.json()["image_url"]
        assert image_url.startswith("/uploads/")
        assert (upload_dir / Path(image_url).name).read_bytes() == PNG_BYTES

    @pytest.mark.parametrize("price", ["0", "-5", "abc", "1.234"])
    def test_invalid_price(self, client, regular_user, category, price):
        response = create_product(client, regular_user, category, price=price)
        assert response.status_code == 422
        assert "price" in response.json()["details"]["validation_errors"]

    def test_unknown_category(self, client, regular_user, category):
        response = create_product(client, regular_user, category, category_id=str(uuid.uuid4()))
        assert response.status_code == 422
        assert "category_id" in response.json()["details"]["validation_errors"]

    def test_rejects_unsupported_image(self, client, regular_user, category):
        response = client.post(
            "/api/v1/products",
            data=product_form(category),
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(regular_user)
        )
        assert response.status_code == 422
        assert "image" in response.json()["details"]["validation_errors"]


class TestProductListing:

    @pytest.fixture
    def catalogue(self, test_db, regular_user, other_user):
        electronics = Category(name="Electronics")
        test_db.add(electronics)
        test_db.flush()
        phones = Category(name="Phones", parent_id=electronics.id)
        garden = Category(name="Garden")
        test_db.add_all([phones, garden])
        test_db.flush()
        test_db.add_all([
            Product(user_id=regular_user.id, category_id=electronics.id, name="Television",
                    description="55 inch", price=Decimal("499.00")),
            Product(user_id=regular_user.id, category_id=phones.id, name="Phone Case",
                    description="Silicone", price=Decimal("9.50")),
            Product(user_id=other_user.id, category_id=garden.id, name="Garden Hose",
                    description="20 m", price=Decimal("25.00")),
        ])
        test_db.commit()
        return {"electronics": electronics, "phones": phones, "garden": garden}

    def test_list_all(self, client, regular_user, catalogue):
        response = client.get("/api/v1/products", headers=auth_headers(regular_user))
        assert response.status_code == 200
        assert response.json()["total"] == 3

    def test_category_filter_includes_subcategories(self, client, regular_user, catalogue):
        response = client.get(
            "/api/v1/products",
            params={"category_id": str(catalogue["electronics"].id)},
            headers=auth_headers(regular_user)
        )
        names = {item["name"] for item in response.json()["items"]}
        assert names == {"Television", "Phone Case"}

    def test_search_and_price_filters(self, client, regular_user, catalogue):
        response = client.get(
            "/api/v1/products",
            params={"search": "e", "min_price": "9", "max_price": "30"},
            headers=auth_headers(regular_user)
        )
        names = {item["name"] for item in response.json()["items"]}
        assert names == {"Phone Case", "Garden Hose"}

    def test_inverted_price_range_rejected(self, client, regular_user, catalogue):
        response = client.get(
            "/api/v1/products",
            params={"min_price": "50", "max_price": "10"},
            headers=auth_headers(regular_user)
        )
        assert response.status_code == 422
        assert "max_price" in response.json()["details"]["validation_errors"]

    def test_list_mine(self, client, other_user, catalogue):
        response = client.get("/api/v1/products/mine", headers=auth_headers(other_user))
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Garden Hose"


class TestProductOwnership:

    def test_owner_updates_product(self, client, regular_user, category):
        product = create_product(client, regular_user, category).json()

        response = client.put(
            f"/api/v1/products/{product['id']}",
            data={"price": "24.50"},
            headers=auth_headers(regular_user)
        )
        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("24.50")
        assert response.json()["name"] == product["name"]

    def test_other_user_cannot_update(self, client, regular_user, other_user, category):
        product = create_product(client, regular_user, category).json()

        response = client.put(
            f"/api/v1/products/{product['id']}",
            data={"name": "Hijacked"},
            headers=auth_headers(other_user)
        )
        assert response.status_code == 403

    def test_other_user_cannot_delete(self, client, test_db, regular_user, other_user, category):
        product = create_product(client, regular_user, category).json()

        response = client.delete(f"/api/v1/products/{product['id']}", headers=auth_headers(other_user))
        assert response.status_code == 403
        assert test_db.get(Product, uuid.UUID(product["id"])) is not None

    def test_admin_deletes_users_product_and_image(
        self, client, test_db, regular_user, admin_user, category, upload_dir
    ):
        product = create_product(client, regular_user, category, image=PNG_BYTES).json()
        stored = upload_dir / Path(product["image_url"]).name
        assert stored.exists()

        response = client.delete(f"/api/v1/products/{product['id']}", headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert response.json()["product_id"] == product["id"]

        test_db.expire_all()
        assert test_db.get(Product, uuid.UUID(product["id"])) is None
        assert not stored.exists()
        assert client.get(
            f"/api/v1/products/{product['id']}", headers=auth_headers(admin_user)
        ).status_code == 404

    def test_new_image_replaces_old(self, client, regular_user, category, upload_dir):
        product = create_product(client, regular_user, category, image=PNG_BYTES).json()
        old_file = upload_dir / Path(product["image_url"]).name

        response = client.put(
            f"/api/v1/products/{product['id']}",
            files={"image": ("new.png", PNG_BYTES + b"\x01", "image/png")},
            headers=auth_headers(regular_user)
        )
        assert response.status_code == 200
        new_url = response.json()["image_url"]
        assert new_url != product["image_url"]
        assert (upload_dir / Path(new_url).name).exists()
        assert not old_file.exists()

    def test_empty_update_rejected(self, client, regular_user, category):
        product = create_product(client, regular_user, category).json()
        response = client.put(
            f"/api/v1/products/{product['id']}",
            data={},
            headers=auth_headers(regular_user)
        )
        assert response.status_code == 422

    def test_missing_product(self, client, regular_user):
        response = client.delete(f"/api/v1/products/{uuid.uuid4()}", headers=auth_headers(regular_user))
        assert response.status_code == 404
