"""
HTTP tests: routes, status codes, and error bodies.

The ASGI transport does not run the lifespan, so the client fixture creates
the schema itself.
"""
import httpx
import pytest
import pytest_asyncio

from restaurant_orders.database import init_db
from restaurant_orders.main import create_app


@pytest_asyncio.fixture
async def client(settings):
    app = create_app(settings)
    await init_db(app.state.engine)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.engine.dispose()


async def seed(client):
    customer = await client.post("/customer", json={"name": "Ann", "email": "ann@x.com", "phone": "555"})
    burger = await client.post(
        "/menu",
        json={"name": "Burger", "description": "Beef burger", "price": 10.00, "category": "main_course"},
    )
    fries = await client.post(
        "/menu",
        json={"name": "Fries", "description": "French fries", "price": 5.00, "category": "starter"},
    )
    assert customer.status_code == 201
    assert burger.status_code == 201
    assert fries.status_code == 201
    return customer.json(), burger.json(), fries.json()


async def place_order(client, customer, burger, fries):
    response = await client.post(
        "/order",
        json={
            "customer_id": customer["id"],
            "items": [
                {"menu_item_id": burger["id"], "quantity": 2},
                {"menu_item_id": fries["id"], "quantity": 1},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_order_flow(client):
    customer, burger, fries = await seed(client)

    order = await place_order(client, customer, burger, fries)
    assert order["status"] == "pending"
    assert order["total_amount"] == 25.0
    assert [item["subtotal"] for item in order["items"]] == [20.0, 5.0]
    assert order["items"][0]["menu_item"]["name"] == "Burger"

    response = await client.patch(f"/order/{order['id']}", json={"status": "preparing"})
    assert response.status_code == 200
    assert response.json()["status"] == "preparing"

    response = await client.patch(
        f"/order/modify/{order['id']}",
        json={"items": [{"menu_item_id": fries["id"], "quantity": 3}]},
    )
    assert response.status_code == 200
    modified = response.json()
    assert modified["total_amount"] == 15.0
    assert len(modified["items"]) == 1

    response = await client.get(f"/order/{order['id']}")
    assert response.status_code == 200
    assert response.json()["total_amount"] == 15.0


@pytest.mark.asyncio
async def test_invalid_status_is_bad_request(client):
    customer, burger, fries = await seed(client)
    order = await place_order(client, customer, burger, fries)

    response = await client.patch(f"/order/{order['id']}", json={"status": "eaten"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Status must be one of: pending, preparing, ready, delivered, canceled"


@pytest.mark.asyncio
async def test_delivered_order_cannot_be_modified(client):
    customer, burger, fries = await seed(client)
    order = await place_order(client, customer, burger, fries)
    await client.patch(f"/order/{order['id']}", json={"status": "delivered"})

    response = await client.patch(
        f"/order/modify/{order['id']}",
        json={"items": [{"menu_item_id": fries["id"], "quantity": 1}]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == 'Only orders with status "pending" or "preparing" can be modified'

    unchanged = (await client.get(f"/order/{order['id']}")).json()
    assert unchanged["total_amount"] == 25.0


@pytest.mark.asyncio
async def test_customer_orders_endpoint(client):
    customer, burger, fries = await seed(client)
    first = await place_order(client, customer, burger, fries)
    second = await place_order(client, customer, burger, fries)

    response = await client.get(f"/customer/orders/{customer['id']}", params={"page": 1, "limit": 1})

    assert response.status_code == 200
    page = response.json()
    assert page["total_orders"] == 2
    assert page["total_pages"] == 2
    assert page["current_page"] == 1
    assert [o["id"] for o in page["orders"]] == [second["id"]]
    assert first["id"] != second["id"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path, payload, error",
    [
        ("get", "/order/999", None, "Order not found"),
        ("patch", "/order/999", {"status": "ready"}, "Order not found"),
        ("get", "/customer/orders/999", None, "Customer not found"),
        ("post", "/order", {"customer_id": 999, "items": [{"menu_item_id": 1, "quantity": 1}]}, "Customer not found"),
    ],
)
async def test_missing_resources_are_not_found(client, method, path, payload, error):
    kwargs = {"json": payload} if payload is not None else {}
    response = await client.request(method.upper(), path, **kwargs)

    assert response.status_code == 404
    assert response.json()["error"] == error


@pytest.mark.asyncio
async def test_unknown_menu_item_is_bad_request(client):
    customer, _, _ = await seed(client)

    response = await client.post(
        "/order",
        json={"customer_id": customer["id"], "items": [{"menu_item_id": 999, "quantity": 1}]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "One or more menu items do not exist"


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [True, "2", "abc", 1.5, 10**30])
async def test_non_integer_quantity_is_rejected(client, quantity):
    customer, burger, fries = await seed(client)
    order = await place_order(client, customer, burger, fries)

    response = await client.post(
        "/order",
        json={"customer_id": customer["id"], "items": [{"menu_item_id": burger["id"], "quantity": quantity}]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Quantity must be a positive integer for all items"

    response = await client.patch(
        f"/order/modify/{order['id']}",
        json={"items": [{"menu_item_id": fries["id"], "quantity": quantity}]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Quantity must be a positive integer for all items"

    page = (await client.get(f"/customer/orders/{customer['id']}")).json()
    assert page["total_orders"] == 1
    assert page["orders"][0]["total_amount"] == 25.0


@pytest.mark.asyncio
async def test_duplicate_email(client):
    await seed(client)

    response = await client.post("/customer", json={"name": "Ann B", "email": "ann@x.com", "phone": "556"})

    assert response.status_code == 400
    assert response.json()["error"] == "Email already exists"


@pytest.mark.asyncio
async def test_missing_customer_fields(client):
    response = await client.post("/customer", json={"name": "Ann"})

    assert response.status_code == 400
    assert response.json()["error"] == "All fields are required: name, email, phone"


@pytest.mark.asyncio
async def test_malformed_body_is_bad_request(client):
    response = await client.post("/order", json={"items": []})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid request"
    assert "customer_id" in body["detail"]


@pytest.mark.asyncio
async def test_menu_listing(client):
    await seed(client)

    response = await client.get("/menu", params={"category": "starter"})
    assert response.status_code == 200
    assert [item["name"] for item in response.json()["menu_items"]] == ["Fries"]
    assert response.json()["menu_items"][0]["price"] == 5.0

    response = await client.get("/menu", params={"category": "beverage"})
    assert response.status_code == 400
    assert response.json()["error"] == "Category must be one of: starter, main_course, dessert, drink"


@pytest.mark.asyncio
async def test_negative_menu_price(client):
    response = await client.post(
        "/menu",
        json={"name": "Soup", "description": "Tomato", "price": -1, "category": "starter"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Price must be greater than or equal to zero"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"
    assert response.json()["database"] == "healthy"
