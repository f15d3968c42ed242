from datetime import datetime, timezone

import pytest


async def login(api, username, password):
    response = await api.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def sales_headers(api, sales_user):
    return await login(api, "asha", "secret123")


@pytest.fixture
async def admin_headers(api, admin_user):
    return await login(api, "admin", "admin123")


def order_body(client_id, products, **extra):
    body = {
        "customer_id": client_id,
        "products": [{"ads_id": p.ads_id, "price": str(p.cost_price)} for p in products],
        "contract_date": datetime.now(timezone.utc).isoformat(),
    }
    body.update(extra)
    return body


# ---------------------------------------------------
# Auth
# ---------------------------------------------------
async def test_health(api):
    response = await api.get("/")
    assert response.json()["status"] == "ok"


async def test_login_and_me(api, sales_headers):
    response = await api.get("/auth/me", headers=sales_headers)
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "asha"
    assert response.json()["data"]["last_login"] is not None


async def test_bad_password(api, sales_user):
    response = await api.post("/auth/login", json={"username": "asha", "password": "nope"})
    assert response.status_code == 401


async def test_missing_token(api, db):
    assert (await api.get("/billing/orders/")).status_code == 401


async def test_logout_invalidates_token(api, sales_headers):
    assert (await api.post("/auth/logout", headers=sales_headers)).status_code == 200
    response = await api.get("/auth/me", headers=sales_headers)
    assert response.status_code == 401


async def test_sales_cannot_create_products(api, sales_headers):
    response = await api.post("/inventory/products/", json={"brand": "HP", "model": "840"}, headers=sales_headers)
    assert response.status_code == 403


# ---------------------------------------------------
# Clients
# ---------------------------------------------------
async def test_create_client_returns_entity(api, sales_headers):
    response = await api.post(
        "/billing/clients/",
        json={"name": "Meera Iyer", "email": "meera@example.com", "gst": "29ABCDE1234F1Z5"},
        headers=sales_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["customer_id"] == f"CX{data['id']:06d}"
    assert data["created_by"] == "asha"
    assert data["total_security_money"] == "0.00"


async def test_search_clients_by_field(api, sales_headers, client_record):
    by_pan = await api.get("/billing/clients/", params={"search": "abcde", "search_field": "pan"}, headers=sales_headers)
    assert [c["name"] for c in by_pan.json()["data"]] == ["Rahul Sharma"]

    by_code = await api.get(
        "/billing/clients/", params={"search": client_record.customer_id, "search_field": "id"}, headers=sales_headers
    )
    assert by_code.json()["total"] == 1

    bad_field = await api.get("/billing/clients/", params={"search_field": "phone"}, headers=sales_headers)
    assert bad_field.json()["warning"]


async def test_only_admin_updates_clients(api, sales_headers, admin_headers, client_record):
    url = f"/billing/clients/{client_record.id}"
    assert (await api.put(url, json={"city": "Pune"}, headers=sales_headers)).status_code == 403

    response = await api.put(url, json={"city": "Pune"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["city"] == "Pune"


# ---------------------------------------------------
# Products
# ---------------------------------------------------
async def test_create_and_list_available_products(api, admin_headers, make_product):
    response = await api.post(
        "/inventory/products/",
        json={"brand": "Lenovo", "model": "T14", "cost_price": "1200.00", "specifications": "i7 / 16GB"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    created = response.json()["data"]
    assert created["order_status"] == "INVENTORY"
    assert created["reference_number"].startswith("REF-")

    await make_product(order_status="RENT")

    available = await api.get("/inventory/products/available", headers=admin_headers)
    assert [p["ads_id"] for p in available.json()["data"]] == [created["ads_id"]]


async def test_product_history_endpoint(api, admin_headers, make_product):
    product = await make_product()
    await api.put(f"/inventory/products/{product.ads_id}", json={"prod_health": "maintenance"}, headers=admin_headers)

    response = await api.get(f"/inventory/products/{product.ads_id}/history", headers=admin_headers)

    data = response.json()["data"]
    assert data["version"] == 2
    assert data["diffs"][0]["changes"] == [{"field": "prod_health", "old_value": "working", "new_value": "maintenance"}]
    assert (await api.get("/inventory/products/000999/history", headers=admin_headers)).status_code == 404


# ---------------------------------------------------
# Orders
# ---------------------------------------------------
async def test_create_purchase_order(api, sales_headers, client_record, make_product):
    p1 = await make_product(cost_price="1000")
    p2 = await make_product(cost_price="500")

    response = await api.post(
        "/billing/orders/",
        json=order_body(client_record.id, [p1, p2], discount_percentage="10", created_by="someone-else"),
        headers=sales_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["data"]["order_id"].startswith(f"ORD{client_record.id:06d}_")
    assert body["data"]["quoted_price"] == "1350.00"
    assert body["data"]["created_by"] == "asha"
    assert {h["ads_id"] for h in body["history_updates"]} == {p1.ads_id, p2.ads_id}

    product = await api.get(f"/inventory/products/{p1.ads_id}", headers=sales_headers)
    assert product.json()["data"]["order_status"] == "PURCHASE"

    listed = await api.get("/billing/orders/", params={"order_type": "PURCHASE"}, headers=sales_headers)
    assert listed.json()["total"] == 1


async def test_rent_order_records_deposit(api, sales_headers, client_record, make_product):
    response = await api.post(
        "/billing/orders/",
        json=order_body(client_record.id, [await make_product()], order_type="RENT", security_deposit="2500"),
        headers=sales_headers,
    )
    assert response.status_code == 201

    client = await api.get(f"/billing/clients/{client_record.id}", headers=sales_headers)
    assert client.json()["data"]["total_security_money"] == "2500.00"


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"products": []}, "PRODUCTS_REQUIRED"),
        ({"customer_id": None}, "CUSTOMER_REQUIRED"),
        ({"contract_date": None}, "CONTRACT_DATE_REQUIRED"),
        ({"discount_percentage": "120"}, "INVALID_DISCOUNT"),
    ],
)
async def test_invalid_order_is_rejected(api, sales_headers, client_record, make_product, overrides, reason):
    body = order_body(client_record.id, [await make_product()])
    body.update(overrides)

    response = await api.post("/billing/orders/", json=body, headers=sales_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == reason
    assert (await api.get("/billing/orders/", headers=sales_headers)).json()["total"] == 0


async def test_product_already_ordered_is_conflict(api, sales_headers, client_record, make_product):
    product = await make_product()
    first = await api.post("/billing/orders/", json=order_body(client_record.id, [product]), headers=sales_headers)
    assert first.status_code == 201

    second = await api.post(
        "/billing/orders/",
        json=order_body(client_record.id, [await make_product(), product], order_type="RENT"),
        headers=sales_headers,
    )

    assert second.status_code == 409
    assert second.json()["detail"]["reason"] == "PRODUCT_UNAVAILABLE"
    assert second.json()["detail"]["ads_ids"] == [product.ads_id]


async def test_get_order_by_id(api, sales_headers, client_record, make_product):
    created = await api.post(
        "/billing/orders/", json=order_body(client_record.id, [await make_product()]), headers=sales_headers
    )
    order_id = created.json()["data"]["order_id"]

    response = await api.get(f"/billing/orders/{order_id}", headers=sales_headers)
    assert response.json()["data"]["items"][0]["selling_price"] == "1000.00"
    assert (await api.get("/billing/orders/ORD-MISSING", headers=sales_headers)).status_code == 404


async def test_repeated_product_is_rejected_before_saving(api, sales_headers, client_record, make_product):
    product = await make_product()

    response = await api.post(
        "/billing/orders/", json=order_body(client_record.id, [product, product]), headers=sales_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "DUPLICATE_PRODUCT"
    assert (await api.get("/billing/orders/", headers=sales_headers)).json()["total"] == 0
    stored = await api.get(f"/inventory/products/{product.ads_id}", headers=sales_headers)
    assert stored.json()["data"]["order_status"] == "INVENTORY"


async def test_sub_cent_price_is_rejected(api, sales_headers, client_record, make_product):
    body = order_body(client_record.id, [await make_product()])
    body["products"][0]["price"] = "0.004"

    response = await api.post("/billing/orders/", json=body, headers=sales_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "INVALID_PRICE"
    assert (await api.get("/billing/orders/", headers=sales_headers)).json()["total"] == 0


async def test_null_for_required_product_field_is_rejected(api, admin_headers, make_product):
    product = await make_product()

    response = await api.put(f"/inventory/products/{product.ads_id}", json={"brand": None}, headers=admin_headers)
    assert response.status_code == 422

    response = await api.put(
        f"/inventory/products/{product.ads_id}", json={"specifications": None, "prod_health": None}, headers=admin_headers
    )
    assert response.status_code == 422

    stored = await api.get(f"/inventory/products/{product.ads_id}", headers=admin_headers)
    assert stored.json()["data"]["brand"] == "Dell"
    history = await api.get(f"/inventory/products/{product.ads_id}/history", headers=admin_headers)
    assert history.json()["data"]["version"] == 1


async def test_pan_and_gst_are_stored_upper_case(api, sales_headers, admin_headers):
    created = await api.post(
        "/billing/clients/",
        json={"name": "Kiran Rao", "email": "kiran@example.com", "pan": "fghij5678k", "gst": " 27fghij5678k1z2 "},
        headers=sales_headers,
    )
    data = created.json()["data"]
    assert data["pan"] == "FGHIJ5678K"
    assert data["gst"] == "27FGHIJ5678K1Z2"

    updated = await api.put(f"/billing/clients/{data['id']}", json={"pan": "zzzzz0000z"}, headers=admin_headers)
    assert updated.json()["data"]["pan"] == "ZZZZZ0000Z"
