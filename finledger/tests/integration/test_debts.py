"""
tests/integration/test_debts.py — individual debts and partial payments.

What this file proves:
  - 999.99 paid against 1000 leaves the debt open with 0.01 remaining
  - 500 paid as 400 then 150 is refused on the second payment
  - A replayed idempotency key is 409 DUPLICATE_PAYMENT and does not
    double-count
  - Debts are private: another user's debt is 404
"""

from __future__ import annotations

import pytest

from finledger.tests.integration.conftest import auth_headers, make_debt, make_token


@pytest.fixture
def token(app):
    return make_token(app, "u1", "owner@x.io", "Owner")


def _pay(client, token, debt_id, amount, key=None):
    payload = {"amount": amount}
    if key is not None:
        payload["idempotencyKey"] = key
    return client.post(
        f"/api/v1/debts/{debt_id}/payments",
        json=payload,
        headers=auth_headers(token),
    )


class TestDebtCrud:

    def test_create_and_get(self, client, token):
        debt = make_debt(client, token, 1000, dueDate="2026-04-01", description="Laptop")

        assert debt["paidAmount"] == 0
        assert debt["isSettled"] is False
        assert debt["remaining"] == 1000
        assert debt["dueDate"] == "2026-04-01"
        assert debt["version"] == 1

        resp = client.get(f"/api/v1/debts/{debt['id']}", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["description"] == "Laptop"

    def test_non_positive_amount_is_422(self, client, token):
        resp = client.post(
            "/api/v1/debts",
            json={"creditorName": "Sam", "amount": 0, "type": "i_owe"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "INVALID_AMOUNT"

    def test_unknown_type_is_400(self, client, token):
        resp = client.post(
            "/api/v1/debts",
            json={"creditorName": "Sam", "amount": 10, "type": "loan"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_DEBT_TYPE"

    def test_list_is_private(self, app, client, token):
        make_debt(client, token, 10)
        other = make_token(app, "u2", "other@x.io")
        make_debt(client, other, 20)

        resp = client.get("/api/v1/debts", headers=auth_headers(token))

        assert [d["amount"] for d in resp.get_json()["data"]] == [10]

    def test_other_users_debt_is_404(self, app, client, token):
        debt = make_debt(client, token)
        other = make_token(app, "u2", "other@x.io")

        resp = client.get(f"/api/v1/debts/{debt['id']}", headers=auth_headers(other))

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "DEBT_NOT_FOUND"

    def test_patch_amount_below_paid_is_422(self, client, token):
        debt = make_debt(client, token, 1000)
        _pay(client, token, debt["id"], 600)

        resp = client.patch(
            f"/api/v1/debts/{debt['id']}",
            json={"amount": 500},
            headers=auth_headers(token),
        )

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "AMOUNT_BELOW_PAID"

    def test_patch_description(self, client, token):
        debt = make_debt(client, token)

        resp = client.patch(
            f"/api/v1/debts/{debt['id']}",
            json={"description": "Rent share"},
            headers=auth_headers(token),
        )

        assert resp.status_code == 200
        assert resp.get_json()["data"]["description"] == "Rent share"
        assert resp.get_json()["data"]["version"] == 2

    def test_delete(self, client, token):
        debt = make_debt(client, token)

        resp = client.delete(f"/api/v1/debts/{debt['id']}", headers=auth_headers(token))
        assert resp.status_code == 200

        again = client.get(f"/api/v1/debts/{debt['id']}", headers=auth_headers(token))
        assert again.status_code == 404


class TestPayments:

    def test_payment_one_cent_short_stays_open(self, client, token):
        debt = make_debt(client, token, 1000)

        resp = _pay(client, token, debt["id"], 999.99)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["data"]["isSettled"] is False
        assert body["data"]["remaining"] == pytest.approx(0.01)
        assert body["warnings"] == []

    def test_final_payment_settles_with_warning(self, client, token):
        debt = make_debt(client, token, 1000)
        _pay(client, token, debt["id"], 600)

        resp = _pay(client, token, debt["id"], 400)

        body = resp.get_json()
        assert body["data"]["isSettled"] is True
        assert body["data"]["debt"]["paidAmount"] == 1000
        assert body["warnings"] == ["DEBT_SETTLED"]

    def test_overpayment_is_refused(self, client, token):
        debt = make_debt(client, token, 500)
        assert _pay(client, token, debt["id"], 400).status_code == 201

        resp = _pay(client, token, debt["id"], 150)

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "PAYMENT_EXCEEDS_REMAINING"
        stored = client.get(f"/api/v1/debts/{debt['id']}", headers=auth_headers(token))
        assert stored.get_json()["data"]["paidAmount"] == 400

    def test_zero_payment_is_refused(self, client, token):
        debt = make_debt(client, token)

        resp = _pay(client, token, debt["id"], 0)

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "INVALID_PAYMENT"

    def test_replayed_key_is_not_double_counted(self, client, token):
        debt = make_debt(client, token, 1000)
        assert _pay(client, token, debt["id"], 300, key="pay-1").status_code == 201

        resp = _pay(client, token, debt["id"], 300, key="pay-1")

        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "DUPLICATE_PAYMENT"
        stored = client.get(f"/api/v1/debts/{debt['id']}", headers=auth_headers(token))
        assert stored.get_json()["data"]["paidAmount"] == 300

    def test_payment_on_settled_debt(self, client, token):
        debt = make_debt(client, token, 100)
        _pay(client, token, debt["id"], 100)

        resp = _pay(client, token, debt["id"], 1)

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "DEBT_ALREADY_SETTLED"


class TestSettle:

    def test_settle_without_body(self, client, token):
        debt = make_debt(client, token, 1000)

        resp = client.post(f"/api/v1/debts/{debt['id']}/settle", headers=auth_headers(token))

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["isSettled"] is True
        assert data["paidAmount"] == 0

    def test_reopen(self, client, token):
        debt = make_debt(client, token, 1000)
        client.post(f"/api/v1/debts/{debt['id']}/settle", headers=auth_headers(token))

        resp = client.post(
            f"/api/v1/debts/{debt['id']}/settle",
            json={"isSettled": False},
            headers=auth_headers(token),
        )

        assert resp.get_json()["data"]["isSettled"] is False
