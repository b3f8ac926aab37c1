"""
Purchase transaction and purchase ledger tests.

Verifies:
- A purchase decrements stock and appends exactly one ledger entry
- Insufficient stock leaves both stock and ledger untouched
- Ledger entries snapshot name/category/price at purchase time
- History is per-user; /all is admin-only and carries usernames
"""

from datetime import timedelta

import pytest

from sweetshop.models import Purchase, Sweet
from sweetshop.services import sweets_service
from sweetshop.errors import InsufficientStock, NotFound, ValidationError

from conftest import auth_headers, get_auth_token


def purchase(client, headers, sweet_id, quantity=None):
    body = {} if quantity is None else {"quantity": quantity}
    return client.post(f"/api/sweets/{sweet_id}/purchase", json=body, headers=headers)


class TestPurchaseFlow:

    def test_full_purchase_scenario(self, client, admin_headers, user_headers, db_session):
        created = client.post(
            "/api/sweets",
            json={"name": "Lollipop", "category": "Hard Candy", "price": 1.25, "quantity": 3},
            headers=admin_headers,
        ).get_json()

        too_many = purchase(client, user_headers, created["id"], 1000)
        assert too_many.status_code == 400
        assert too_many.get_json() == {"error": "Insufficient quantity in stock"}

        ok = purchase(client, user_headers, created["id"], 2)
        assert ok.status_code == 200
        body = ok.get_json()
        assert body["message"] == "Purchase successful"
        assert body["sweet"]["quantity"] == 1

        history = client.get("/api/purchases/history", headers=user_headers).get_json()
        assert len(history) == 1
        assert history[0]["sweet_name"] == "Lollipop"
        assert history[0]["quantity"] == 2
        assert history[0]["total_amount"] == pytest.approx(2.5)

    def test_default_quantity_is_one(self, client, user_headers, sweet):
        resp = purchase(client, user_headers, sweet.id)
        assert resp.status_code == 200
        assert resp.get_json()["sweet"]["quantity"] == 9

    def test_buy_exact_remaining_stock(self, client, user_headers, sweet):
        resp = purchase(client, user_headers, sweet.id, 10)
        assert resp.status_code == 200
        assert resp.get_json()["sweet"]["quantity"] == 0

        again = purchase(client, user_headers, sweet.id, 1)
        assert again.status_code == 400

    def test_fractional_quantity(self, client, user_headers, sweet):
        resp = purchase(client, user_headers, sweet.id, 0.5)
        assert resp.status_code == 200
        assert resp.get_json()["sweet"]["quantity"] == pytest.approx(9.5)

    def test_insufficient_stock_writes_nothing(self, client, user_headers, sweet, db_session):
        sweet_id = sweet.id
        resp = purchase(client, user_headers, sweet_id, 11)
        assert resp.status_code == 400

        db_session.expire_all()
        assert db_session.get(Sweet, sweet_id).quantity == 10
        assert db_session.query(Purchase).count() == 0

    @pytest.mark.parametrize("quantity", [0, -1, 0.001, "lots", True])
    def test_invalid_quantity(self, client, user_headers, sweet, quantity):
        resp = purchase(client, user_headers, sweet.id, quantity)
        assert resp.status_code == 400

    def test_missing_sweet(self, client, user_headers):
        resp = purchase(client, user_headers, 99999, 1)
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Sweet not found"}

    def test_invalid_id(self, client, user_headers):
        resp = purchase(client, user_headers, "abc", 1)
        assert resp.status_code == 400

    def test_admin_can_purchase(self, client, admin_headers, sweet):
        resp = purchase(client, admin_headers, sweet.id, 1)
        assert resp.status_code == 200


class TestLedgerSnapshot:

    def test_total_is_price_times_quantity(self, client, user_headers, sweet, db_session):
        purchase(client, user_headers, sweet.id, 3)

        entry = db_session.query(Purchase).one()
        assert entry.price == pytest.approx(5.99)
        assert entry.quantity == 3
        assert entry.total_amount == pytest.approx(5.99 * 3)

    def test_snapshot_survives_edit(self, client, admin_headers, user_headers, sweet):
        purchase(client, user_headers, sweet.id, 1)
        client.put(
            f"/api/sweets/{sweet.id}",
            json={"name": "Renamed", "category": "Other", "price": 100},
            headers=admin_headers,
        )

        entry = client.get("/api/purchases/history", headers=user_headers).get_json()[0]
        assert entry["sweet_name"] == "Test Sweet"
        assert entry["category"] == "Test"
        assert entry["price"] == pytest.approx(5.99)

    def test_snapshot_survives_delete(self, client, admin_headers, user_headers, sweet):
        sweet_id = sweet.id
        purchase(client, user_headers, sweet_id, 2)

        # SQLite does not enforce the purchases foreign key, so the delete goes through
        resp = client.delete(f"/api/sweets/{sweet_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/sweets/{sweet_id}", headers=user_headers).status_code == 404

        history = client.get("/api/purchases/history", headers=user_headers).get_json()
        assert len(history) == 1
        assert history[0]["sweet_id"] == sweet_id
        assert history[0]["sweet_name"] == "Test Sweet"


class TestPurchaseHistory:

    def test_history_only_shows_own_purchases(self, client, admin_headers, user_headers, sweet):
        purchase(client, user_headers, sweet.id, 1)
        purchase(client, admin_headers, sweet.id, 2)

        mine = client.get("/api/purchases/history", headers=user_headers).get_json()
        assert [p["quantity"] for p in mine] == [1]

    def test_history_empty(self, client, user_headers):
        assert client.get("/api/purchases/history", headers=user_headers).get_json() == []

    def test_history_newest_first(self, client, user_headers, sweet):
        for qty in (1, 2, 3):
            purchase(client, user_headers, sweet.id, qty)

        history = client.get("/api/purchases/history", headers=user_headers).get_json()
        assert [p["quantity"] for p in history] == [3, 2, 1]

    def test_all_includes_username(self, client, admin_headers, user_headers, sweet):
        purchase(client, user_headers, sweet.id, 1)
        purchase(client, admin_headers, sweet.id, 2)

        everything = client.get("/api/purchases/all", headers=admin_headers).get_json()
        assert [(p["username"], p["quantity"]) for p in everything] == [("admin", 2), ("user", 1)]

    def test_all_orders_by_timestamp_then_id(self, client, admin_headers, user_headers, sweet, db_session):
        purchase(client, user_headers, sweet.id, 1)
        purchase(client, user_headers, sweet.id, 2)

        # Force identical timestamps; the later id must still come first
        first, second = db_session.query(Purchase).order_by(Purchase.id).all()
        second.purchased_at = first.purchased_at
        db_session.commit()

        everything = client.get("/api/purchases/all", headers=admin_headers).get_json()
        assert [p["quantity"] for p in everything] == [2, 1]

    def test_all_lists_older_purchase_last(self, client, admin_headers, user_headers, sweet, db_session):
        purchase(client, user_headers, sweet.id, 1)
        purchase(client, user_headers, sweet.id, 2)

        first, second = db_session.query(Purchase).order_by(Purchase.id).all()
        second.purchased_at = first.purchased_at - timedelta(days=1)
        db_session.commit()

        everything = client.get("/api/purchases/all", headers=admin_headers).get_json()
        assert [p["quantity"] for p in everything] == [1, 2]

    def test_newly_registered_user_history(self, client, sweet):
        client.post(
            "/api/auth/register",
            json={"username": "shopper", "email": "shopper@example.com", "password": "shop123"},
        )
        headers = auth_headers(get_auth_token(client, "shopper", "shop123"))

        purchase(client, headers, sweet.id, 4)
        history = client.get("/api/purchases/history", headers=headers).get_json()
        assert len(history) == 1
        assert history[0]["total_amount"] == pytest.approx(5.99 * 4)


class TestPurchaseService:

    def test_purchase_returns_post_decrement_sweet(self, regular_user, sweet):
        result = sweets_service.purchase_sweet(sweet_id=sweet.id, quantity=4, user_id=regular_user.id)
        assert result["quantity"] == 6

    def test_insufficient_stock(self, regular_user, sweet):
        with pytest.raises(InsufficientStock):
            sweets_service.purchase_sweet(sweet_id=sweet.id, quantity=10.5, user_id=regular_user.id)

    def test_missing_sweet(self, regular_user):
        with pytest.raises(NotFound):
            sweets_service.purchase_sweet(sweet_id=424242, quantity=1, user_id=regular_user.id)

    def test_non_positive_quantity(self, regular_user, sweet):
        with pytest.raises(ValidationError):
            sweets_service.purchase_sweet(sweet_id=sweet.id, quantity=0, user_id=regular_user.id)

    def test_stale_read_loses_to_concurrent_purchase(self, regular_user, sweet, db_session, monkeypatch):
        from sweetshop.services import concurrency

        real_decrement = concurrency.decrement_stock_if_available

        def drain_first(sweet_id, quantity):
            # Another buyer takes the last units between our read and our write
            db_session.execute(
                Sweet.__table__.update().where(Sweet.id == sweet_id).values(quantity=0)
            )
            return real_decrement(sweet_id, quantity)

        monkeypatch.setattr(sweets_service, "decrement_stock_if_available", drain_first)

        with pytest.raises(InsufficientStock):
            sweets_service.purchase_sweet(sweet_id=sweet.id, quantity=5, user_id=regular_user.id)

        assert db_session.query(Purchase).count() == 0
