"""
Resource clients end to end against a fake backend (httpx.MockTransport):
list/get/create/update/delete, validation before any request, and cache reconciliation.
"""
import asyncio
import json
import unittest
from decimal import Decimal

import httpx

from shopadmin.core.config import Settings
from shopadmin.schemas.catalog import ProductCreate
from shopadmin.services.api.base import UNEXPECTED_FORMAT
from shopadmin.services.api.cache import ViewCache
from shopadmin.services.api.errors import ApiErrorKind
from shopadmin.services.api.factory import ShopAdminClient


def order_json(oid: str, status: str = "pending", **extra) -> dict:
    data = {
        "_id": oid,
        "userId": "u1",
        "productId": "p1",
        "quantity": 1,
        "unitPrice": 9.99,
        "totalAmount": 9.99,
        "status": status,
        "type": "purchase",
        "statusHistory": [{"status": status, "timestamp": "2024-05-01T10:00:00Z"}],
        "createdAt": "2024-05-01T10:00:00Z",
    }
    data.update(extra)
    return data


class FakeBackend:
    """Routes by (method, path); records every request it receives."""

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route {request.method} {path}"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def bodies(self, method: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.method == method]


def run_scenario(backend, scenario, **settings_kw):
    async def _main():
        settings = Settings(api_base_url="http://api.test/api", **settings_kw)
        async with ShopAdminClient.from_settings(settings, transport=httpx.MockTransport(backend)) as client:
            return await scenario(client)

    return asyncio.run(_main())


class TestList(unittest.TestCase):
    def test_keyed_envelope_with_total(self):
        backend = FakeBackend({
            ("GET", "/orders"): (200, {"orders": [order_json("o1"), order_json("o2"), order_json("o3")], "total": 12}),
        })
        cache = ViewCache()
        result = run_scenario(backend, lambda c: c.orders.list(cache=cache))
        self.assertTrue(result.ok)
        self.assertEqual([o.id for o in result.value], ["o1", "o2", "o3"])
        self.assertEqual(len(cache), 3)

    def test_transactions_envelope(self):
        backend = FakeBackend({
            ("GET", "/payments"): (200, {"transactions": [{"_id": "t1", "amount": 5, "status": "pending"}], "total": 1}),
        })
        result = run_scenario(backend, lambda c: c.payments.list())
        self.assertEqual(result.value[0].amount, Decimal("5"))

    def test_data_envelope_and_bare_array(self):
        backend = FakeBackend({
            ("GET", "/categories"): (200, {"success": True, "data": [{"_id": "c1", "name": "Streaming"}]}),
            ("GET", "/users"): (200, [{"_id": "u1", "telegramId": 1001}]),
        })

        async def scenario(client):
            return await client.categories.list(), await client.users.list()

        categories, users = run_scenario(backend, scenario)
        self.assertEqual(categories.value[0].name, "Streaming")
        self.assertEqual(users.value[0].telegram_id, "1001")

    def test_categories_display_order(self):
        backend = FakeBackend({
            ("GET", "/categories"): (200, [
                {"_id": "c1", "name": "b", "sortOrder": 2},
                {"_id": "c2", "name": "Z", "sortOrder": 1},
                {"_id": "c3", "name": "a", "sortOrder": 2},
            ]),
        })

        async def scenario(client):
            result = await client.categories.list()
            return client.categories.sorted_for_display(result.value)

        self.assertEqual([c.id for c in run_scenario(backend, scenario)], ["c2", "c3", "c1"])

    def test_empty_list_is_success(self):
        backend = FakeBackend({("GET", "/products"): (200, {"data": []})})
        result = run_scenario(backend, lambda c: c.products.list())
        self.assertTrue(result.ok)
        self.assertEqual(result.value, [])

    def test_unrecognized_shape_empties_cache(self):
        backend = FakeBackend({("GET", "/products"): (200, {"success": True, "items": []})})
        cache = ViewCache()

        async def scenario(client):
            from shopadmin.schemas.catalog import Product

            cache.replace([Product(id="old", name="Old", price=1)])
            return await client.products.list(cache=cache)

        result = run_scenario(backend, scenario)
        self.assertEqual(result.error_kind, ApiErrorKind.UNRECOGNIZED_SHAPE)
        self.assertEqual(result.error.message, UNEXPECTED_FORMAT)
        self.assertEqual(len(cache), 0)

    def test_network_failure_keeps_previous_snapshot(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        backend = FakeBackend({("GET", "/orders"): refuse})
        cache = ViewCache()

        async def scenario(client):
            from shopadmin.schemas.orders import Order

            cache.replace([Order.model_validate(order_json("o1"))])
            return await client.orders.list(cache=cache)

        result = run_scenario(backend, scenario)
        self.assertEqual(result.error_kind, ApiErrorKind.NETWORK)
        self.assertEqual([o.id for o in cache], ["o1"])

    def test_undecodable_body_is_a_result_not_an_exception(self):
        backend = FakeBackend({
            ("GET", "/products"): lambda r: httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip"),
        })
        result = run_scenario(backend, lambda c: c.products.list())
        self.assertFalse(result.ok)
        self.assertEqual(result.error_kind, ApiErrorKind.NETWORK)

    def test_invalid_items_are_dropped(self):
        backend = FakeBackend({
            ("GET", "/products"): (200, [{"_id": "p1", "name": "Ok", "price": 3}, {"_id": "p2"}]),
        })
        result = run_scenario(backend, lambda c: c.products.list())
        self.assertEqual([p.id for p in result.value], ["p1"])

    def test_query_params(self):
        backend = FakeBackend({("GET", "/products"): (200, [])})
        run_scenario(backend, lambda c: c.products.list({"page": 2, "category": "c1", "search": "", "min_price": 0}))
        self.assertEqual(str(backend.requests[0].url.query, "ascii"), "page=2&category=c1&minPrice=0.0")

    def test_invalid_query_fails_before_request(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.orders.list({"limit": 1000}))
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])


class TestOrderHistoryOnLoad(unittest.TestCase):
    def test_list_fills_missing_and_stale_history(self):
        no_history = order_json("o1", "paid", updatedAt="2024-05-02T09:00:00Z")
        del no_history["statusHistory"]
        stale = order_json("o2", "pending")
        stale["status"] = "paid"
        backend = FakeBackend({("GET", "/orders"): (200, [no_history, stale])})
        result = run_scenario(backend, lambda c: c.orders.list())
        first, second = result.value
        self.assertEqual([h.status for h in first.status_history], ["paid"])
        self.assertEqual(first.status_history[0].timestamp.isoformat(), "2024-05-02T09:00:00+00:00")
        self.assertEqual([h.status for h in second.status_history], ["pending", "paid"])

    def test_get_fills_stale_history(self):
        stale = order_json("o1", "pending")
        stale["status"] = "cancelled"
        backend = FakeBackend({("GET", "/orders/o1"): (200, {"data": stale})})
        order = run_scenario(backend, lambda c: c.orders.get("o1")).value
        self.assertEqual(order.status_history[-1].status, order.status.value)
        self.assertEqual(len(order.status_history), 2)

    def test_consistent_history_is_kept(self):
        backend = FakeBackend({("GET", "/orders/o1"): (200, order_json("o1", "paid"))})
        order = run_scenario(backend, lambda c: c.orders.get("o1")).value
        self.assertEqual(len(order.status_history), 1)


class TestGet(unittest.TestCase):
    def test_get_wrapped_entity(self):
        backend = FakeBackend({("GET", "/products/p1"): (200, {"success": True, "data": {"_id": "p1", "name": "A", "price": 2}})})
        result = run_scenario(backend, lambda c: c.products.get("p1"))
        self.assertEqual(result.value.name, "A")

    def test_missing_is_not_found(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.orders.get("nope"))
        self.assertEqual(result.error_kind, ApiErrorKind.NOT_FOUND)

    def test_server_error_is_http(self):
        backend = FakeBackend({("GET", "/orders/o1"): (500, {"message": "boom"})})
        result = run_scenario(backend, lambda c: c.orders.get("o1"))
        self.assertEqual(result.error_kind, ApiErrorKind.HTTP)
        self.assertEqual(result.error.http_status, 500)

    def test_blank_id_is_validation(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.users.get("  "))
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])

    def test_get_by_telegram_id(self):
        backend = FakeBackend({("GET", "/users/telegram/1001"): (200, {"user": {"_id": "u1", "telegramId": 1001}})})
        result = run_scenario(backend, lambda c: c.users.get_by_telegram_id(1001))
        self.assertEqual(result.value.id, "u1")


class TestCreate(unittest.TestCase):
    def test_empty_required_field_sends_nothing(self):
        backend = FakeBackend()

        async def scenario(client):
            return (
                await client.categories.create({"name": "   "}),
                await client.products.create({"name": "", "price": 5, "category_id": "c1"}),
                await client.notifications.create({"title": "Hi", "message": ""}),
                await client.orders.create({"user_id": "u1"}),
            )

        for result in run_scenario(backend, scenario):
            self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])

    def test_non_positive_price_is_validation(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.products.create({"name": "A", "price": 0, "category_id": "c1"}))
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertIn("price", result.error.message)

    def test_product_without_content_is_created_unavailable(self):
        store = {}

        def create(request):
            body = json.loads(request.content)
            store["p9"] = {"_id": "p9", **body}
            return httpx.Response(201, json={"success": True, "data": store["p9"]})

        def fetch(request):
            return httpx.Response(200, json=store["p9"])

        backend = FakeBackend({("POST", "/products"): create, ("GET", "/products/p9"): fetch})
        draft = ProductCreate(name="Spotify", price="4.50", category_id="c1", digital_content=["", "  "], is_available=True)

        async def scenario(client):
            created = await client.products.create(draft)
            fetched = await client.products.get(created.value.id)
            return created, fetched

        created, fetched = run_scenario(backend, scenario)
        self.assertFalse(created.value.is_available)
        self.assertFalse(fetched.value.is_available)
        sent = backend.bodies("POST")[0]
        self.assertEqual(sent["isAvailable"], False)
        self.assertEqual(sent["digitalContent"], [])
        self.assertEqual(sent["categoryId"], "c1")
        self.assertEqual(sent["price"], 4.5)

    def test_created_entity_goes_into_cache(self):
        backend = FakeBackend({("POST", "/categories"): (201, {"_id": "c2", "name": "Games", "sortOrder": 3})})
        cache = ViewCache()
        result = run_scenario(backend, lambda c: c.categories.create({"name": "Games", "sort_order": 3}, cache=cache))
        self.assertEqual(result.value.sort_order, 3)
        self.assertEqual([c.id for c in cache], ["c2"])

    def test_unrecognized_echo_leaves_cache_alone(self):
        backend = FakeBackend({("POST", "/categories"): (201, {"success": True})})
        cache = ViewCache()
        result = run_scenario(backend, lambda c: c.categories.create({"name": "Games"}, cache=cache))
        self.assertEqual(result.error_kind, ApiErrorKind.UNRECOGNIZED_SHAPE)
        self.assertEqual(len(cache), 0)

    def test_order_create_body(self):
        backend = FakeBackend({("POST", "/orders"): (201, {"order": order_json("o5")})})
        result = run_scenario(backend, lambda c: c.orders.create({"user_id": "u1", "product_id": "p1", "quantity": 2}))
        self.assertEqual(result.value.id, "o5")
        self.assertEqual(backend.bodies("POST")[0], {"userId": "u1", "productId": "p1", "quantity": 2})


class TestUpdate(unittest.TestCase):
    def test_only_changed_fields_are_sent(self):
        backend = FakeBackend({("PUT", "/categories/c1"): (200, {"_id": "c1", "name": "Streaming", "isActive": False})})
        cache = ViewCache()
        result = run_scenario(backend, lambda c: c.categories.update("c1", {"is_active": False}, cache=cache))
        self.assertFalse(result.value.is_active)
        self.assertEqual(backend.bodies("PUT")[0], {"isActive": False})
        self.assertFalse(cache.get("c1").is_active)

    def test_nothing_to_update(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.categories.update("c1", {}))
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])

    def test_product_without_stock_cannot_be_switched_on(self):
        from shopadmin.schemas.catalog import Product

        backend = FakeBackend({("PUT", "/products/p1"): lambda r: httpx.Response(200, json={"_id": "p1", "name": "A", "price": 1, **json.loads(r.content)})})
        cache = ViewCache([Product(id="p1", name="A", price=1, digital_content=[])])
        result = run_scenario(backend, lambda c: c.products.update("p1", {"is_available": True}, cache=cache))
        self.assertEqual(backend.bodies("PUT")[0], {"isAvailable": False})
        self.assertFalse(result.value.is_available)

    def test_callers_draft_is_not_modified(self):
        from shopadmin.schemas.catalog import Product, ProductUpdate

        backend = FakeBackend({("PUT", "/products/p1"): (200, {"_id": "p1", "name": "A", "price": 1})})
        cache = ViewCache([Product(id="p1", name="A", price=1)])
        draft = ProductUpdate(is_available=True)
        run_scenario(backend, lambda c: c.products.update("p1", draft, cache=cache))
        self.assertEqual(backend.bodies("PUT")[0], {"isAvailable": False})
        self.assertTrue(draft.is_available)

    def test_clearing_content_forces_unavailable(self):
        backend = FakeBackend({("PUT", "/products/p1"): (200, {"_id": "p1", "name": "A", "price": 1})})
        run_scenario(backend, lambda c: c.products.update("p1", {"digital_content": [" "], "is_available": True}))
        self.assertEqual(backend.bodies("PUT")[0], {"digitalContent": [], "isAvailable": False})

    def test_accept_user_patches_cache_on_bare_ack(self):
        from shopadmin.schemas.users import User

        backend = FakeBackend({("PUT", "/users/u1"): (200, {"success": True})})
        cache = ViewCache([User(id="u1", telegram_id="1001", is_accepted=False)])
        result = run_scenario(backend, lambda c: c.users.accept("u1", cache=cache))
        self.assertTrue(result.ok)
        self.assertEqual(backend.bodies("PUT")[0], {"isAccepted": True})
        self.assertTrue(cache.get("u1").is_accepted)

    def test_revoke_failure_leaves_cache(self):
        from shopadmin.schemas.users import User

        backend = FakeBackend({("PUT", "/users/u1"): (500, {"message": "db down"})})
        cache = ViewCache([User(id="u1", telegram_id="1001", is_accepted=True)])
        result = run_scenario(backend, lambda c: c.users.revoke("u1", cache=cache))
        self.assertEqual(result.error.message, "db down")
        self.assertTrue(cache.get("u1").is_accepted)


class TestDelete(unittest.TestCase):
    def test_second_delete_returns_not_found(self):
        calls = {"n": 0}

        def delete(request):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(200, json={"success": True})
            return httpx.Response(404, json={"message": "Category not found"})

        backend = FakeBackend({("DELETE", "/categories/c1"): delete})
        from shopadmin.schemas.catalog import Category

        cache = ViewCache([Category(id="c1", name="A"), Category(id="c2", name="B")])

        async def scenario(client):
            return await client.categories.delete("c1", cache=cache), await client.categories.delete("c1", cache=cache)

        first, second = run_scenario(backend, scenario)
        self.assertTrue(first.ok)
        self.assertIsNone(first.value)
        self.assertEqual(second.error_kind, ApiErrorKind.NOT_FOUND)
        self.assertEqual([c.id for c in cache], ["c2"])

    def test_failed_delete_keeps_entry(self):
        from shopadmin.schemas.catalog import Category

        backend = FakeBackend({("DELETE", "/categories/c1"): (409, {"message": "Category has products"})})
        cache = ViewCache([Category(id="c1", name="A")])
        result = run_scenario(backend, lambda c: c.categories.delete("c1", cache=cache))
        self.assertEqual(result.error_kind, ApiErrorKind.HTTP)
        self.assertIn("c1", cache)


class TestNotificationsAndMessages(unittest.TestCase):
    def test_created_notification_is_prepended(self):
        from shopadmin.schemas.notifications import Notification

        backend = FakeBackend({
            ("POST", "/notifications"): (201, {"data": {"_id": "n2", "title": "New", "message": "m", "audience": "all_users"}}),
        })
        cache = ViewCache([Notification(id="n1", title="Old", message="m")])
        result = run_scenario(backend, lambda c: c.notifications.create({"title": "New", "message": "m"}, cache=cache))
        self.assertEqual(result.value.audience.value, "all")
        self.assertEqual([n.id for n in cache], ["n2", "n1"])

    def test_specific_users_requires_targets(self):
        backend = FakeBackend()
        result = run_scenario(
            backend,
            lambda c: c.notifications.create({"title": "T", "message": "m", "audience": "specific_users"}),
        )
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])

    def test_send_message(self):
        backend = FakeBackend({("POST", "/users/1001/send-message"): (200, {"success": True, "data": {"messageId": 5}})})
        result = run_scenario(backend, lambda c: c.users.send_message(1001, "  Your code is ready  "))
        self.assertEqual(result.value, {"messageId": 5})
        self.assertEqual(backend.bodies("POST")[0], {"message": "Your code is ready"})

    def test_blank_message_is_not_sent(self):
        backend = FakeBackend()
        result = run_scenario(backend, lambda c: c.users.send_message(1001, "   "))
        self.assertEqual(result.error_kind, ApiErrorKind.VALIDATION)
        self.assertEqual(backend.requests, [])


if __name__ == "__main__":
    unittest.main()
