"""
tests/test_operation_logs.py -- Audit trail through the HTTP surface.

Coverage:
  - Every 2xx mutation writes exactly one entry with matching method/route/action
  - Failed mutations (4xx) write nothing; reads write nothing
  - An audit store outage never changes the business response
  - GET /api/operation-logs filters, ordering and date parsing
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

FABRIC = {"name": "Linen", "color": "sand", "width": 140, "gram_weight": 210, "price": "12.50"}


def _entries(stores) -> list:
    return stores.audit.store.query()


class TestAuditCompleteness:
    def test_create_update_delete_each_log_once(
        self, client: TestClient, stores, editor_headers: dict[str, str]
    ) -> None:
        created = client.post("/api/fabrics", json=FABRIC, headers=editor_headers)
        assert created.status_code == 201
        fid = created.json()["id"]

        [entry] = _entries(stores)
        assert (entry.method, entry.route, entry.action) == ("POST", "/api/fabrics", "CREATE")
        assert entry.entity_type == "fabrics"
        assert entry.entity_id == str(fid)

        assert client.put(f"/api/fabrics/{fid}", json={"color": "oat"}, headers=editor_headers).status_code == 200
        assert client.delete(f"/api/fabrics/{fid}", headers=editor_headers).status_code == 204

        entries = _entries(stores)
        assert len(entries) == 3
        newest_first = [(e.method, e.route, e.action) for e in entries]
        assert newest_first == [
            ("DELETE", f"/api/fabrics/{fid}", "DELETE"),
            ("PUT", f"/api/fabrics/{fid}", "UPDATE"),
            ("POST", "/api/fabrics", "CREATE"),
        ]

    def test_entries_are_attributed_to_the_caller(
        self, client: TestClient, stores, make_user, headers_for
    ) -> None:
        uid = make_user("jo@example.com", role="editor")
        client.post("/api/fabrics", json=FABRIC, headers=headers_for(uid))
        assert [e.user_id for e in _entries(stores)] == [uid]

    @pytest.mark.parametrize(
        "path, body",
        [
            ("/api/accessories", {"name": "Zipper", "price": "0.40"}),
            ("/api/products", {"code": "P-9", "name": "Bolster"}),
            ("/api/design-ideas", {"title": "T", "description": "D"}),
            ("/api/client-requirements", {"client_name": "C", "description": "D", "requirements": "R"}),
        ],
    )
    def test_every_collection_is_audited(
        self, client: TestClient, stores, admin_headers: dict[str, str], path: str, body: dict
    ) -> None:
        assert client.post(path, json=body, headers=admin_headers).status_code == 201
        [entry] = _entries(stores)
        assert entry.route == path
        assert entry.action == "CREATE"

    def test_failed_mutations_and_reads_log_nothing(
        self, client: TestClient, stores, editor_headers: dict[str, str], guest_headers: dict[str, str]
    ) -> None:
        client.post("/api/fabrics", json=FABRIC, headers=guest_headers)  # 403
        client.post("/api/fabrics", json={"name": "x"}, headers=editor_headers)  # 422
        client.put("/api/fabrics/999", json={"color": "x"}, headers=editor_headers)  # 404
        client.delete("/api/fabrics/999", headers=editor_headers)  # 404
        client.get("/api/fabrics")
        assert _entries(stores) == []

    def test_auth_routes_are_not_audited(self, client: TestClient, stores) -> None:
        client.post("/api/register", json={"email": "k@example.com", "name": "K", "password": "pw"})
        client.post("/api/logout")
        assert _entries(stores) == []


class TestAuditFailureContainment:
    def test_store_outage_does_not_change_response(
        self, client: TestClient, stores, editor_headers: dict[str, str], monkeypatch, caplog
    ) -> None:
        def broken_append(**kwargs):
            raise RuntimeError("audit database unavailable")

        monkeypatch.setattr(stores.audit.store, "append", broken_append)
        with caplog.at_level(logging.ERROR, logger="cushiontrack.audit"):
            resp = client.post("/api/fabrics", json=FABRIC, headers=editor_headers)

        assert resp.status_code == 201
        assert resp.json()["name"] == "Linen"
        assert stores.catalog.get("fabrics", resp.json()["id"]) is not None
        assert "Audit write failed" in caplog.text

    def test_store_outage_on_delete(
        self, client: TestClient, stores, editor_headers: dict[str, str], monkeypatch
    ) -> None:
        fid = client.post("/api/fabrics", json=FABRIC, headers=editor_headers).json()["id"]

        def broken_append(**kwargs):
            raise RuntimeError("audit database unavailable")

        monkeypatch.setattr(stores.audit.store, "append", broken_append)
        assert client.delete(f"/api/fabrics/{fid}", headers=editor_headers).status_code == 204
        assert stores.catalog.get("fabrics", fid) is None


class TestOperationLogQuery:
    @pytest.fixture
    def seeded(self, stores, make_user):
        alice = make_user("alice@example.com", role="admin")
        bob = make_user("bob@example.com", role="editor")
        log = stores.audit.store
        log.append(user_id=alice, method="POST", route="/api/fabrics", action="CREATE", entity_type="fabrics")
        log.append(user_id=bob, method="POST", route="/api/products", action="CREATE", entity_type="products")
        log.append(user_id=bob, method="PUT", route="/api/fabrics/1", action="UPDATE", entity_type="fabrics")
        return alice, bob

    def test_admin_sees_newest_first(self, client: TestClient, seeded, headers_for) -> None:
        alice, _ = seeded
        resp = client.get("/api/operation-logs", headers=headers_for(alice))
        assert resp.status_code == 200
        body = resp.json()
        assert [e["route"] for e in body] == ["/api/fabrics/1", "/api/products", "/api/fabrics"]
        assert set(body[0]) == {
            "id",
            "user_id",
            "method",
            "route",
            "action",
            "entity_type",
            "entity_id",
            "metadata",
            "created_at",
        }

    def test_filters_compose(self, client: TestClient, seeded, headers_for) -> None:
        alice, bob = seeded
        resp = client.get(
            "/api/operation-logs", params={"userId": bob, "entityType": "fabrics"}, headers=headers_for(alice)
        )
        assert [e["route"] for e in resp.json()] == ["/api/fabrics/1"]

    def test_date_range(self, client: TestClient, seeded, headers_for) -> None:
        alice, _ = seeded
        headers = headers_for(alice)
        assert len(client.get("/api/operation-logs", params={"startDate": "2000-01-01"}, headers=headers).json()) == 3
        assert client.get("/api/operation-logs", params={"endDate": "2000-01-01"}, headers=headers).json() == []
        assert (
            client.get("/api/operation-logs", params={"startDate": "2999-01-01T00:00:00Z"}, headers=headers).json()
            == []
        )

    @pytest.mark.parametrize("param", ["startDate", "endDate"])
    def test_unparseable_date_is_422(self, client: TestClient, seeded, headers_for, param: str) -> None:
        alice, _ = seeded
        resp = client.get("/api/operation-logs", params={param: "last tuesday"}, headers=headers_for(alice))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_failure"

    def test_non_integer_user_id_is_422(self, client: TestClient, seeded, headers_for) -> None:
        alice, _ = seeded
        resp = client.get("/api/operation-logs", params={"userId": "alice"}, headers=headers_for(alice))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_failure"

    def test_editor_is_refused(self, client: TestClient, seeded, headers_for) -> None:
        _, bob = seeded
        assert client.get("/api/operation-logs", headers=headers_for(bob)).status_code == 403

    def test_empty_user_id_is_unconstrained(self, client: TestClient, seeded, headers_for) -> None:
        alice, _ = seeded
        resp = client.get(
            "/api/operation-logs",
            params={"userId": "", "entityType": "", "startDate": "", "endDate": ""},
            headers=headers_for(alice),
        )
        assert resp.status_code == 200
        assert len(resp.json()) == 3

    @pytest.mark.parametrize(
        "param, value",
        [("startDate", "0001-01-01T00:00:00+01:00"), ("endDate", "9999-12-31T23:59:59-01:00")],
    )
    def test_date_outside_utc_range_is_422(
        self, client: TestClient, seeded, headers_for, param: str, value: str
    ) -> None:
        alice, _ = seeded
        resp = client.get("/api/operation-logs", params={param: value}, headers=headers_for(alice))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_failure"
