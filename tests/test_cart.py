import re

from fastapi.testclient import TestClient

from app.main import create_app

from conftest import read_users, register


def test_cart_requires_login(client):
    resp = client.get("/api/cart")

    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "message": "Chưa đăng nhập"}


def test_new_user_has_empty_cart(client):
    register(client)

    resp = client.get("/api/cart")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "cart": []}


def test_cart_round_trip(client, users_file):
    register(client)
    cart = [{"sku": "A", "qty": 2}]

    saved = client.post("/api/cart", json={"cart": cart})
    fetched = client.get("/api/cart")

    assert saved.json() == {"ok": True, "cart": cart}
    assert fetched.json() == {"ok": True, "cart": cart}
    assert read_users(users_file)[0]["cart"] == cart


def test_cart_items_are_stored_verbatim(client):
    register(client)
    cart = [{"sku": "A", "note": "không đường", "opts": {"size": "L"}}, 3, "free-form", None]

    client.post("/api/cart", json={"cart": cart})

    assert client.get("/api/cart").json()["cart"] == cart


def test_non_list_cart_is_stored_empty(client, users_file):
    register(client)
    client.post("/api/cart", json={"cart": [{"sku": "A", "qty": 1}]})

    resp = client.post("/api/cart", json={"cart": {"sku": "A"}})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "cart": []}
    assert read_users(users_file)[0]["cart"] == []


def test_cart_without_body_is_stored_empty(client):
    register(client)
    client.post("/api/cart", json={"cart": [{"sku": "A", "qty": 1}]})

    resp = client.post("/api/cart")

    assert resp.status_code == 200
    assert resp.json()["cart"] == []


def test_checkout_empty_cart_is_rejected_without_writing(client, users_file):
    register(client)
    before = users_file.read_bytes()

    resp = client.post("/api/checkout")

    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "message": "Giỏ hàng trống"}
    assert users_file.read_bytes() == before


def test_checkout_issues_order_and_clears_cart(client, users_file):
    register(client)
    client.post("/api/cart", json={"cart": [{"sku": "A", "qty": 2}]})

    resp = client.post("/api/checkout")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert re.fullmatch(r"ORD-\d+", body["orderId"])
    assert body["message"] == "Thanh toán thành công (mô phỏng)"
    assert client.get("/api/cart").json()["cart"] == []
    assert read_users(users_file)[0]["cart"] == []


def test_carts_are_per_user(client):
    register(client, email="a@example.com")
    client.post("/api/cart", json={"cart": ["a-item"]})
    client.post("/api/logout")

    register(client, email="b@example.com")
    assert client.get("/api/cart").json()["cart"] == []
    client.post("/api/logout")

    client.post("/api/login", json={"email": "a@example.com", "password": "secret"})
    assert client.get("/api/cart").json()["cart"] == ["a-item"]


def test_store_failure_is_server_error(tmp_path, settings):
    # A directory where the users file should be makes every read fail
    broken = create_app(settings.model_copy(update={"USERS_FILE": str(tmp_path)}))

    with TestClient(broken) as c:
        resp = register(c)

    assert resp.status_code == 500
    assert resp.json() == {"ok": False, "message": "Lỗi server"}


def test_non_object_body_is_stored_empty(client, users_file):
    register(client)
    client.post("/api/cart", json={"cart": [{"sku": "A", "qty": 1}]})

    resp = client.post("/api/cart", json=[1, 2])

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "cart": []}
    assert read_users(users_file)[0]["cart"] == []
