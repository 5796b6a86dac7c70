"""
tests/integration/test_expenses.py — recording expenses through the API.

What this file proves:
  - An equal split paid by A moves A by +200 and B, C by -100 each
  - A custom split paid by B moves A -50, B +175, C -125
  - Balances accumulate across expenses and always sum to zero
  - Every rejected expense leaves the stored group (balances, expenses,
    version) exactly as it was
  - Schema-level mistakes are 400; ledger mistakes are 422
"""

from __future__ import annotations

import pytest

from finledger.tests.integration.conftest import (
    auth_headers,
    balances_by_email,
    make_expense,
    make_group,
    make_token,
)

A, B, C = "a@x.io", "b@x.io", "c@x.io"


@pytest.fixture
def token(app):
    return make_token(app, "u-a", A, "A")


@pytest.fixture
def group(client, token):
    return make_group(client, token, "Trip", [B, C])


def _stored_group(client, token, group_id) -> dict:
    return client.get(f"/api/v1/groups/{group_id}", headers=auth_headers(token)).get_json()["data"]


class TestRecordExpense:

    def test_equal_split(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 300, description="Dinner")

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["groupVersion"] == 2
        assert data["expense"]["splitType"] == "equal"
        assert [s["amount"] for s in data["expense"]["splits"]] == [100.0, 100.0, 100.0]
        assert {m["email"]: m["balance"] for m in data["members"]} == {
            A: 200.0, B: -100.0, C: -100.0,
        }

    def test_custom_split_paid_by_b(self, client, token, group):
        resp = make_expense(
            client, token, group["id"], B, 300,
            split_type="custom",
            splits={A: 50, B: 125, C: 125},
        )

        assert resp.status_code == 201
        assert balances_by_email(client, token, group["id"]) == {
            A: -50.0, B: 175.0, C: -125.0,
        }

    def test_balances_accumulate_and_sum_to_zero(self, client, token, group):
        make_expense(client, token, group["id"], A, 300)
        make_expense(client, token, group["id"], B, 300, split_type="custom",
                     splits={A: 50, B: 125, C: 125})
        make_expense(client, token, group["id"], C, 10)

        balances = balances_by_email(client, token, group["id"])

        assert balances[A] == pytest.approx(200 - 50 - 10 / 3)
        assert balances[B] == pytest.approx(-100 + 175 - 10 / 3)
        assert balances[C] == pytest.approx(-100 - 125 + 10 - 10 / 3)
        assert sum(balances.values()) == pytest.approx(0.0, abs=1e-9)

    def test_custom_split_may_omit_members(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 90, split_type="custom",
                            splits={B: 90})

        assert resp.status_code == 201
        assert balances_by_email(client, token, group["id"]) == {A: 90.0, B: -90.0, C: 0.0}

    def test_payer_may_be_an_unjoined_placeholder(self, client, token, group):
        resp = make_expense(client, token, group["id"], C, 30)
        assert resp.status_code == 201

    def test_list_newest_first(self, client, token, group):
        make_expense(client, token, group["id"], A, 30, description="first")
        make_expense(client, token, group["id"], A, 60, description="second")

        resp = client.get(f"/api/v1/groups/{group['id']}/expenses", headers=auth_headers(token))

        assert resp.status_code == 200
        assert [e["description"] for e in resp.get_json()["data"]] == ["second", "first"]

    def test_category_defaults_to_other(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 30)
        assert resp.get_json()["data"]["expense"]["category"] == "Other"


class TestRejectedExpenseChangesNothing:

    @pytest.mark.parametrize("kwargs, code", [
        ({"amount": 300, "split_type": "custom", "splits": {A: 100, B: 100, C: 90}},
         "SPLIT_SUM_MISMATCH"),
        ({"amount": 300, "split_type": "custom", "splits": {A: 300, "z@x.io": 0}},
         "SPLIT_MEMBER_NOT_IN_GROUP"),
        ({"amount": 100, "split_type": "custom", "splits": {A: 150, B: -50}},
         "NEGATIVE_SPLIT"),
        ({"amount": 0}, "INVALID_AMOUNT"),
        ({"amount": -20}, "INVALID_AMOUNT"),
    ])
    def test_ledger_rejections_are_422(self, client, token, group, kwargs, code):
        make_expense(client, token, group["id"], A, 300)
        before = _stored_group(client, token, group["id"])

        resp = make_expense(client, token, group["id"], A, **kwargs)

        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == code
        assert _stored_group(client, token, group["id"]) == before

    def test_payer_not_member(self, client, token, group):
        before = _stored_group(client, token, group["id"])

        resp = make_expense(client, token, group["id"], "z@x.io", 50)

        assert resp.status_code == 422
        error = resp.get_json()["error"]
        assert error["code"] == "PAYER_NOT_MEMBER"
        assert error["field"] == "paidBy"
        assert _stored_group(client, token, group["id"]) == before

    def test_split_within_one_cent_is_accepted(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 100, split_type="custom",
                            splits={A: 33.33, B: 33.33, C: 33.335})
        assert resp.status_code == 201


class TestSchemaErrors:

    def test_splits_sent_for_equal_mode(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 300, splits={A: 300})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "SPLITS_SENT_FOR_EQUAL_MODE"
        assert error["field"] == "splits"

    def test_unknown_split_type(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 300, split_type="shares")

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_SPLIT_TYPE"

    def test_custom_without_splits(self, client, token, group):
        resp = make_expense(client, token, group["id"], A, 300, split_type="custom")
        assert resp.status_code == 400

    def test_non_member_cannot_record(self, app, client, group):
        outsider = make_token(app, "u-z", "z@x.io")

        resp = make_expense(client, outsider, group["id"], A, 300)

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"
