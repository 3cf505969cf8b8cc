"""
tests/test_users_routes.py -- Admin user management routes.

Coverage:
  - List returns public profiles only
  - Provisioning with an explicit role; duplicate email -> 400
  - PATCH name / role; empty patch -> 422; unknown user -> 404
  - Last-admin protection on demotion; no self-delete
  - DELETE revokes the user's sessions and anonymizes their audit entries
  - Every successful mutation is audited
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _admin(make_user, headers_for) -> tuple[int, dict[str, str]]:
    uid = make_user("root@example.com", role="admin")
    return uid, headers_for(uid)


class TestListAndCreate:
    def test_list_users(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        make_user("lee@example.com", role="editor")
        resp = client.get("/api/users", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert [u["email"] for u in body] == ["root@example.com", "lee@example.com"]
        assert all("password_hash" not in u for u in body)

    def test_provision_editor(self, client: TestClient, stores, make_user, headers_for) -> None:
        admin_id, headers = _admin(make_user, headers_for)
        resp = client.post(
            "/api/users",
            json={"email": "mia@example.com", "name": "Mia", "password": "pw-mia", "role": "editor"},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "editor"

        login = client.post("/api/login", json={"email": "mia@example.com", "password": "pw-mia"})
        assert login.status_code == 200

        [entry] = stores.audit.store.query()
        assert (entry.user_id, entry.action, entry.entity_type) == (admin_id, "CREATE", "users")
        assert entry.entity_id == str(resp.json()["id"])
        assert "pw-mia" not in (entry.metadata or "")

    def test_provision_defaults_to_guest(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        resp = client.post(
            "/api/users", json={"email": "ned@example.com", "name": "Ned", "password": "pw"}, headers=headers
        )
        assert resp.json()["role"] == "guest"

    def test_provision_unknown_role_is_422(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        resp = client.post(
            "/api/users",
            json={"email": "o@example.com", "name": "O", "password": "pw", "role": "owner"},
            headers=headers,
        )
        assert resp.status_code == 422

    def test_provision_duplicate_email(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        resp = client.post(
            "/api/users", json={"email": "root@example.com", "name": "Again", "password": "pw"}, headers=headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "duplicate_email"


class TestPatch:
    def test_promote_and_rename(self, client: TestClient, stores, make_user, headers_for) -> None:
        admin_id, headers = _admin(make_user, headers_for)
        uid = make_user("pat@example.com")
        resp = client.patch(f"/api/users/{uid}", json={"role": "editor", "name": "Patricia"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "editor"
        assert resp.json()["name"] == "Patricia"

        [entry] = stores.audit.store.query()
        assert (entry.method, entry.route, entry.action) == ("PATCH", f"/api/users/{uid}", "UPDATE")
        assert entry.user_id == admin_id

    def test_empty_patch_is_422(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        uid = make_user("q@example.com")
        resp = client.patch(f"/api/users/{uid}", json={}, headers=headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_failure"

    def test_unknown_user_is_404(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        resp = client.patch("/api/users/999", json={"role": "editor"}, headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_last_admin_cannot_be_demoted(self, client: TestClient, stores, make_user, headers_for) -> None:
        admin_id, headers = _admin(make_user, headers_for)
        resp = client.patch(f"/api/users/{admin_id}", json={"role": "editor"}, headers=headers)
        assert resp.status_code == 409
        assert stores.users.get_by_id(admin_id).role == "admin"
        assert stores.audit.store.query() == []

    def test_admin_can_be_demoted_when_another_remains(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        other = make_user("second@example.com", role="admin")
        resp = client.patch(f"/api/users/{other}", json={"role": "guest"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "guest"


class TestDelete:
    def test_delete_revokes_sessions_and_detaches_audit(
        self, client: TestClient, stores, make_user, headers_for
    ) -> None:
        admin_id, headers = _admin(make_user, headers_for)
        uid = make_user("rex@example.com", role="editor")
        rex_headers = headers_for(uid)
        fabric = {"name": "Linen", "color": "sand", "width": 140, "gram_weight": 210, "price": "12.50"}
        assert client.post("/api/fabrics", json=fabric, headers=rex_headers).status_code == 201

        resp = client.delete(f"/api/users/{uid}", headers=headers)
        assert resp.status_code == 204
        assert stores.users.get_by_id(uid) is None
        assert client.get("/api/user", headers=rex_headers).status_code == 401

        entries = stores.audit.store.query()
        assert stores.audit.store.query(user_id=uid) == []
        assert [(e.user_id, e.action) for e in entries] == [(admin_id, "DELETE"), (None, "CREATE")]

    def test_cannot_delete_self(self, client: TestClient, stores, make_user, headers_for) -> None:
        admin_id, headers = _admin(make_user, headers_for)
        make_user("backup@example.com", role="admin")
        resp = client.delete(f"/api/users/{admin_id}", headers=headers)
        assert resp.status_code == 409
        assert stores.users.get_by_id(admin_id) is not None

    def test_delete_unknown_user_is_404(self, client: TestClient, make_user, headers_for) -> None:
        _, headers = _admin(make_user, headers_for)
        assert client.delete("/api/users/999", headers=headers).status_code == 404

    def test_non_admin_cannot_delete(self, client: TestClient, stores, make_user, headers_for) -> None:
        uid = make_user("sam@example.com")
        editor = make_user("ed@example.com", role="editor")
        assert client.delete(f"/api/users/{uid}", headers=headers_for(editor)).status_code == 403
        assert stores.users.get_by_id(uid) is not None
