"""
Authorization tests for Stockroom.

Verifies:
- Unauthenticated requests return 401
- The "user" role is denied catalog deletes and writes (403, no state change)
- Staff run the stock but cannot delete products or manage users
- Own-record variants let read-mostly roles touch only their own trades
- Denials are written to the security event log
"""

import pytest

from stockroom.extensions import db
from stockroom.models import Product, SecurityEvent
from stockroom.permissions import OWNED_VARIANTS, ROLE_PERMISSIONS, get_all_permission_codes, get_role_permissions
from stockroom.services import permission_service

from conftest import auth_headers, reload_product


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("DELETE", "/api/products/1"),
            ("GET", "/api/categories"),
            ("GET", "/api/brands"),
            ("GET", "/api/firms"),
            ("GET", "/api/purchases"),
            ("POST", "/api/purchases"),
            ("GET", "/api/sells"),
            ("POST", "/api/sells"),
            ("GET", "/api/users"),
            ("GET", "/api/reports/overview"),
            ("GET", "/api/reports/categories/Electronics"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["error"] is True

    def test_garbage_token_is_401(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_non_bearer_scheme_is_401(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401


# =============================================================================
# USER ROLE DENIED - 403
# =============================================================================


class TestUserDenied:
    """The lowest role cannot change the catalog or manage people."""

    def test_cannot_delete_product(self, client, catalog, headers_for):
        before = reload_product(catalog["product_id"])
        snapshot = (before.name, before.quantity, before.price)

        resp = client.delete(f"/api/products/{catalog['product_id']}", headers=headers_for("user"))

        assert resp.status_code == 403
        body = resp.get_json()
        assert body["error"] is True
        assert body["required_permission"] == "DELETE_PRODUCTS"
        after = reload_product(catalog["product_id"])
        assert after is not None
        assert (after.name, after.quantity, after.price) == snapshot
        assert db.session.query(Product).count() == 1

    def test_denial_is_logged(self, client, catalog, headers_for, users):
        client.delete(f"/api/products/{catalog['product_id']}", headers=headers_for("user"))

        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == users["user"].id
        assert event.action == "DELETE_PRODUCTS"
        assert event.success is False
        assert event.resource == f"/api/products/{catalog['product_id']}"

    def test_cannot_update_product(self, client, catalog, headers_for):
        resp = client.patch(
            f"/api/products/{catalog['product_id']}", json={"price": 1}, headers=headers_for("user")
        )
        assert resp.status_code == 403
        assert reload_product(catalog["product_id"]).price == 100.0

    def test_cannot_delete_category(self, client, catalog, headers_for):
        resp = client.delete(f"/api/categories/{catalog['category_id']}", headers=headers_for("user"))
        assert resp.status_code == 403

    def test_cannot_list_users(self, client, users, headers_for):
        assert client.get("/api/users", headers=headers_for("user")).status_code == 403

    def test_cannot_create_user(self, client, users, headers_for):
        resp = client.post(
            "/api/users",
            json={"username": "x", "email": "x@stockroom.test", "password": "P@ssw0rd123!"},
            headers=headers_for("user"),
        )
        assert resp.status_code == 403

    def test_cannot_promote_self(self, client, users, headers_for):
        resp = client.patch(f"/api/users/{users['user'].id}", json={"role": "admin"}, headers=headers_for("user"))
        assert resp.status_code == 403

    def test_can_read_catalog(self, client, catalog, headers_for):
        assert client.get("/api/products", headers=headers_for("user")).status_code == 200
        assert client.get("/api/categories", headers=headers_for("user")).status_code == 200

    def test_can_edit_own_profile(self, client, users, headers_for):
        resp = client.patch(f"/api/users/{users['user'].id}", json={"first_name": "Renamed"}, headers=headers_for("user"))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["first_name"] == "Renamed"


# =============================================================================
# STAFF
# =============================================================================


class TestStaffAccess:

    def test_cannot_delete_product(self, client, catalog, headers_for):
        resp = client.delete(f"/api/products/{catalog['product_id']}", headers=headers_for("staff"))
        assert resp.status_code == 403
        assert reload_product(catalog["product_id"]) is not None

    def test_can_list_users_but_not_manage(self, client, users, headers_for):
        assert client.get("/api/users", headers=headers_for("staff")).status_code == 200
        resp = client.delete(f"/api/users/{users['user'].id}", headers=headers_for("staff"))
        assert resp.status_code == 403

    def test_can_manage_catalog(self, client, catalog, headers_for):
        resp = client.post("/api/brands", json={"name": "Globex"}, headers=headers_for("staff"))
        assert resp.status_code == 201


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminAccess:

    def test_can_create_user_with_any_role(self, client, users, headers_for):
        resp = client.post(
            "/api/users",
            json={"username": "boss", "email": "boss@stockroom.test", "password": "P@ssw0rd123!", "role": "staff"},
            headers=headers_for("admin"),
        )
        assert resp.status_code == 201
        assert resp.get_json()["data"]["role"] == "staff"

    def test_cannot_deactivate_self(self, client, users, headers_for):
        resp = client.delete(f"/api/users/{users['admin'].id}", headers=headers_for("admin"))
        assert resp.status_code == 409

    def test_user_list_conventions(self, client, users, headers_for):
        body = client.get("/api/users?filter[role]=staff", headers=headers_for("admin")).get_json()
        assert [u["username"] for u in body["data"]] == ["staff"]

    def test_deactivated_user_token_stops_working(self, client, users, headers_for):
        user_headers = headers_for("coordinator")
        client.patch(f"/api/users/{users['coordinator'].id}", json={"is_active": False}, headers=headers_for("admin"))

        assert client.get("/api/products", headers=user_headers).status_code == 401


# =============================================================================
# PERMISSION SERVICE
# =============================================================================


class TestPermissionService:

    def test_admin_has_every_permission(self):
        assert ROLE_PERMISSIONS["admin"] == frozenset(get_all_permission_codes())

    def test_unknown_role_gets_nothing(self):
        assert get_role_permissions("superuser") == frozenset()
        assert get_role_permissions(None) == frozenset()

    @pytest.mark.parametrize("role", ["admin", "staff", "coordinator", "user"])
    def test_every_role_can_view_catalog(self, users, role):
        assert permission_service.can_access(users[role], "VIEW_CATALOG")

    def test_own_variant_needs_ownership(self, users):
        user = users["user"]
        assert permission_service.can_access(user, "MODIFY_ANY_TRADE", owner_ids={user.id})
        assert not permission_service.can_access(user, "MODIFY_ANY_TRADE", owner_ids={users["staff"].id})
        assert not permission_service.can_access(user, "MODIFY_ANY_TRADE")

    def test_owned_variants_are_known_codes(self):
        codes = set(get_all_permission_codes())
        for broad, owned in OWNED_VARIANTS.items():
            assert broad in codes
            assert owned in codes

    def test_inactive_user_has_no_permissions(self, users):
        admin = users["admin"]
        admin.is_active = False
        assert permission_service.user_permissions(admin) == frozenset()
        assert not permission_service.can_access(admin, "VIEW_CATALOG")
        db.session.rollback()

    def test_require_access_raises_and_logs(self, users):
        with pytest.raises(permission_service.PermissionDeniedError) as exc_info:
            permission_service.require_access(users["coordinator"], "MANAGE_USERS")

        assert exc_info.value.action == "MANAGE_USERS"
        assert db.session.query(SecurityEvent).count() == 1

    def test_sees_all_trades(self, users):
        assert permission_service.sees_all_trades(users["staff"])
        assert not permission_service.sees_all_trades(users["coordinator"])


# =============================================================================
# PUBLIC ENDPOINTS - NO AUTH REQUIRED
# =============================================================================


class TestPublicEndpoints:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
