# Overview: HTTP-level tests for the JSON API (auth, status codes, end-to-end flows).

"""
API surface tests.

Verifies:
- 401 without or with a bad token; 403 on policy denial
- Auth: register (customer only), login, me, logout
- DomainError kinds map to their HTTP status
- A full purchase with a purchase donation never moves total_received
- A direct donation confirmed twice is credited once (second call is 400)
- Pagination envelope on list endpoints
"""

import pytest

from givemarket.services import donation_service

from conftest import PASSWORD, auth_headers, get_auth_token, make_product, reload


class TestSystem:

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert response.json["checks"]["database"]["status"] == "healthy"

    def test_version(self, client):
        response = client.get("/version")
        assert response.status_code == 200
        assert response.json["name"] == "givemarket"


class TestAuth:

    def test_register_creates_customer(self, client, db_session):
        response = client.post("/api/auth/register", json={
            "email": "New.User@Example.com",
            "password": PASSWORD,
            "full_name": "New User",
            "role": "admin",
        })
        assert response.status_code == 201
        assert response.json["user"]["role"] == "customer"
        assert response.json["user"]["email"] == "new.user@example.com"

    def test_register_weak_password(self, client, db_session):
        response = client.post("/api/auth/register", json={"email": "weak@example.com", "password": "short"})
        assert response.status_code == 400
        assert response.json["kind"] == "validation_error"

    def test_register_duplicate_email(self, client, customer):
        response = client.post("/api/auth/register", json={"email": customer.email, "password": PASSWORD})
        assert response.status_code == 409

    def test_login_and_me(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": PASSWORD})
        assert response.status_code == 200
        token = response.json["token"]

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["user"] == {
            "id": customer.id,
            "email": customer.email,
            "role": "customer",
            "full_name": "Customer One",
        }

    def test_login_bad_password(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": "Wrong123!"})
        assert response.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "x@example.com"}).status_code == 400

    def test_logout_revokes_token(self, client, customer):
        token = get_auth_token(client, customer.email)
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401


class TestAuthenticationSurface:

    @pytest.mark.parametrize("method, url", [
        ("post", "/api/products"),
        ("get", "/api/products"),
        ("post", "/api/orders"),
        ("get", "/api/orders"),
        ("post", "/api/order-items"),
        ("post", "/api/donations"),
        ("put", "/api/donations/1/confirm"),
        ("post", "/api/organizations"),
        ("get", "/api/organizations/pending"),
    ])
    def test_requires_token(self, client, db_session, method, url):
        response = getattr(client, method)(url, json={})
        assert response.status_code == 401
        assert response.json["kind"] == "not_authenticated"

    def test_bad_token_rejected_even_on_public_product_route(self, client, db_session):
        response = client.get("/api/products/1", headers=auth_headers("not-a-real-token"))
        assert response.status_code == 401

    def test_public_routes_need_no_token(self, client, db_session):
        assert client.get("/api/products/public").status_code == 200
        assert client.get("/api/products/search?q=oil").status_code == 200
        assert client.get("/api/organizations").status_code == 200
        assert client.get("/api/organizations/verified").status_code == 200


class TestPolicySurface:

    def test_seller_cannot_create_product(self, client, seller, seller_headers):
        response = client.post("/api/products", headers=seller_headers, json={
            "seller_id": seller.id, "name_en": "Honey", "price_cents": 900,
        })
        assert response.status_code == 403
        assert response.json["kind"] == "not_authorized"

    def test_customer_cannot_read_stats(self, client, customer_headers):
        assert client.get("/api/orders/stats", headers=customer_headers).status_code == 403
        assert client.get("/api/products/statistics/admin", headers=customer_headers).status_code == 403

    def test_customer_cannot_update_order(self, client, customer, customer_headers):
        created = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 1000})
        order_id = created.json["order"]["id"]
        response = client.put(f"/api/orders/{order_id}", headers=customer_headers, json={"status": "completed"})
        assert response.status_code == 403

    def test_customer_cannot_confirm_donation(self, client, customer_headers, organization):
        created = client.post("/api/donations", headers=customer_headers, json={
            "organization_id": organization.id, "amount_cents": 500, "type": "direct",
        })
        donation_id = created.json["donation"]["id"]
        response = client.put(f"/api/donations/{donation_id}/confirm", headers=customer_headers,
                              json={"blockchainTxId": "0xSELF"})
        assert response.status_code == 403
        assert reload(organization).total_received_cents == 0


class TestProductRoutes:

    def test_workflow_over_http(self, client, admin_headers, seller, seller_headers):
        created = client.post("/api/products", headers=admin_headers, json={
            "seller_id": seller.id, "name_en": "Olive Oil", "price_cents": 2500,
        })
        assert created.status_code == 201
        product_id = created.json["product"]["id"]

        approve_draft = client.put(f"/api/products/{product_id}/approve", headers=admin_headers, json={})
        assert approve_draft.status_code == 400
        assert approve_draft.json["kind"] == "invalid_transition"

        assert client.patch(f"/api/products/{product_id}/submit", headers=seller_headers).status_code == 200

        reject_blank = client.put(f"/api/products/{product_id}/reject", headers=admin_headers, json={"reason": ""})
        assert reject_blank.status_code == 400
        assert reject_blank.json["kind"] == "validation_error"

        approved = client.put(f"/api/products/{product_id}/approve", headers=admin_headers, json={"note": "ok"})
        assert approved.status_code == 200
        assert approved.json["product"]["approval_status"] == "approved"

        public = client.get(f"/api/products/{product_id}")
        assert public.status_code == 200

    def test_hidden_product_is_not_found(self, client, admin, seller, customer_headers, seller_headers):
        product = make_product(admin, seller)
        assert client.get(f"/api/products/{product.id}").status_code == 404
        assert client.get(f"/api/products/{product.id}", headers=customer_headers).status_code == 404
        assert client.get(f"/api/products/{product.id}", headers=seller_headers).status_code == 200

    def test_pagination_envelope(self, client, admin, seller):
        for i in range(3):
            make_product(admin, seller, name=f"Item {i}", status="approved")

        response = client.get("/api/products/public?page=2&per_page=2")
        assert response.status_code == 200
        assert response.json["count"] == 1
        assert response.json["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    def test_bad_pagination(self, client, db_session):
        assert client.get("/api/products/public?page=0").status_code == 400
        assert client.get("/api/products/public?per_page=abc").status_code == 400


class TestOrganizationRoutes:

    def test_create_verify_reject(self, client, admin_headers):
        created = client.post("/api/organizations", headers=admin_headers, json={
            "name_en": "Food Bank", "name_ar": "بنك الطعام", "blockchain_address": "0xFOOD",
        })
        assert created.status_code == 201
        org_id = created.json["organization"]["id"]

        pending = client.get("/api/organizations/pending", headers=admin_headers)
        assert [o["id"] for o in pending.json["items"]] == [org_id]

        verified = client.put(f"/api/organizations/{org_id}/verify", headers=admin_headers)
        assert verified.json["organization"]["is_verified"] is True

        no_reason = client.put(f"/api/organizations/{org_id}/reject", headers=admin_headers, json={})
        assert no_reason.status_code == 400

        rejected = client.put(f"/api/organizations/{org_id}/reject", headers=admin_headers,
                              json={"rejection_reason": "Expired registration"})
        assert rejected.status_code == 200
        assert rejected.json["organization"]["verification_status"] == "rejected"

    def test_duplicate_name_conflict(self, client, admin_headers, organization):
        response = client.post("/api/organizations", headers=admin_headers, json={
            "name_en": "Clean Water Fund", "name_ar": "اسم اخر", "blockchain_address": "0xOTHER",
        })
        assert response.status_code == 409
        assert response.json["kind"] == "conflict"

    def test_delete_with_dependents(self, client, admin_headers, customer, organization):
        donation_service.create_donation(customer, organization.id, 100, "direct")
        response = client.delete(f"/api/organizations/{organization.id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json["kind"] == "has_dependents"


class TestOrderRoutes:

    def test_delete_order_with_items_is_blocked(self, client, admin, seller, customer_headers, admin_headers):
        product = make_product(admin, seller, status="approved")
        order = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 2500})
        order_id = order.json["order"]["id"]
        added = client.post("/api/order-items", headers=customer_headers, json={
            "order_id": order_id, "product_id": product.id, "quantity": 1,
        })
        assert added.status_code == 201

        response = client.delete(f"/api/orders/{order_id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json["kind"] == "has_dependents"

    def test_cancel_paid_order_is_rejected(self, client, customer_headers, admin_headers):
        order = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 1000})
        order_id = order.json["order"]["id"]

        missing_tx = client.put(f"/api/orders/{order_id}/payment-status", headers=admin_headers,
                                json={"payment_status": "paid"})
        assert missing_tx.status_code == 400

        paid = client.put(f"/api/orders/{order_id}/payment-status", headers=admin_headers,
                          json={"payment_status": "paid", "blockchain_tx_id": "0xPAID"})
        assert paid.status_code == 200

        cancel = client.put(f"/api/orders/{order_id}/cancel", headers=customer_headers)
        assert cancel.status_code == 400
        assert cancel.json["kind"] == "invalid_transition"

    def test_order_by_number(self, client, customer_headers):
        order = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 1000})
        number = order.json["order"]["order_number"]
        response = client.get(f"/api/orders/number/{number}", headers=customer_headers)
        assert response.status_code == 200
        assert response.json["order"]["items"] == []


class TestEndToEnd:

    def test_purchase_donation_leaves_total_received(
        self, client, admin, seller, organization, customer_headers, admin_headers
    ):
        product = make_product(admin, seller, organization=organization, status="approved", price_cents=2000)

        order = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 4000})
        order_id = order.json["order"]["id"]
        item = client.post("/api/order-items", headers=customer_headers, json={
            "order_id": order_id, "product_id": product.id, "quantity": 2, "donation_amount_cents": 200,
        })
        assert item.json["order_item"]["line_total_cents"] == 4000

        donation = client.post("/api/donations", headers=customer_headers, json={
            "organization_id": organization.id, "order_id": order_id,
            "amount_cents": 200, "type": "purchase",
        })
        assert donation.status_code == 201
        donation_id = donation.json["donation"]["id"]

        client.put(f"/api/orders/{order_id}/payment-status", headers=admin_headers,
                   json={"payment_status": "paid", "blockchain_tx_id": "0xORDER"})
        completed = client.put(f"/api/donations/{donation_id}/status", headers=admin_headers,
                               json={"status": "completed"})
        assert completed.status_code == 200
        assert completed.json["donation"]["status"] == "completed"

        org = client.get(f"/api/organizations/{organization.id}").json["organization"]
        assert org["total_received_cents"] == 0

        stats = client.get(f"/api/donations/organization/{organization.id}/stats").json
        assert stats["completed_amount_cents"] == 200
        assert stats["balance_consistent"] is True

    def test_approved_product_purchase_confirmed_on_chain(
        self, client, admin_headers, seller, seller_headers, organization, customer_headers
    ):
        created = client.post("/api/products", headers=admin_headers, json={
            "seller_id": seller.id, "name_en": "Olive Oil", "price_cents": 2500,
            "organization_id": organization.id,
        })
        product_id = created.json["product"]["id"]
        assert client.patch(f"/api/products/{product_id}/submit", headers=seller_headers).status_code == 200
        assert client.put(f"/api/products/{product_id}/approve", headers=admin_headers, json={}).status_code == 200

        public = client.get("/api/products/public")
        assert [p["id"] for p in public.json["items"]] == [product_id]

        order = client.post("/api/orders", headers=customer_headers, json={"total_amount_cents": 2500})
        assert order.status_code == 201
        order_id = order.json["order"]["id"]
        item = client.post("/api/order-items", headers=customer_headers, json={
            "order_id": order_id, "product_id": product_id, "quantity": 1,
        })
        assert item.status_code == 201

        donation = client.post("/api/donations", headers=customer_headers, json={
            "organization_id": organization.id, "order_id": order_id,
            "amount_cents": 2500, "type": "purchase",
        })
        assert donation.status_code == 201
        donation_id = donation.json["donation"]["id"]

        confirmed = client.put(f"/api/donations/{donation_id}/confirm", headers=admin_headers,
                               json={"blockchainTxId": "0xPURCHASE"})
        assert confirmed.status_code == 200
        assert confirmed.json["donation"]["status"] == "completed"
        assert confirmed.json["donation"]["blockchain_tx_id"] == "0xPURCHASE"

        org = client.get(f"/api/organizations/{organization.id}").json["organization"]
        assert org["total_received_cents"] == 0

    def test_direct_donation_confirmed_once(self, client, organization, customer_headers, admin_headers):
        donation = client.post("/api/donations", headers=customer_headers, json={
            "organization_id": organization.id, "amount_cents": 1000, "type": "direct",
        })
        donation_id = donation.json["donation"]["id"]

        missing = client.put(f"/api/donations/{donation_id}/confirm", headers=admin_headers, json={})
        assert missing.status_code == 400

        first = client.put(f"/api/donations/{donation_id}/confirm", headers=admin_headers,
                           json={"blockchainTxId": "0xDIRECT"})
        assert first.status_code == 200
        assert first.json["donation"]["status"] == "completed"

        second = client.put(f"/api/donations/{donation_id}/confirm", headers=admin_headers,
                            json={"blockchainTxId": "0xDIRECT"})
        assert second.status_code == 400
        assert second.json["kind"] == "invalid_transition"

        org = client.get(f"/api/organizations/{organization.id}").json["organization"]
        assert org["total_received_cents"] == 1000

    def test_donation_history(self, client, customer, organization, customer_headers):
        client.post("/api/donations", headers=customer_headers, json={
            "organization_id": organization.id, "amount_cents": 300, "type": "direct",
        })
        history = client.get("/api/donations/user/history", headers=customer_headers)
        assert history.status_code == 200
        assert history.json["pagination"]["total"] == 1
        assert history.json["items"][0]["user_id"] == customer.id
