# Overview: Pytest coverage for the product approval workflow.

"""
Product approval workflow tests.

Verifies:
- Creation is admin-only and requires an active seller
- draft/rejected -> pending_approval -> approved/rejected
- Approving from draft is rejected; reject needs a reason
- Editing an approved product returns it to draft with flags cleared
- Soft delete only from draft/rejected; hard delete keeps order item snapshots
- Public listing/search only show approved, active, live products
"""

import pytest

from givemarket.errors import (
    ConflictError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from givemarket.models import OrderItem
from givemarket.services import audit_service, order_item_service, product_service

from conftest import make_order, make_product, reload


class TestCreateProduct:

    def test_admin_creates_draft(self, db_session, admin, seller):
        product = product_service.create_product(
            {"seller_id": seller.id, "name_en": "Olive Oil", "name_ar": "زيت زيتون", "price_cents": 2500},
            admin,
        )
        assert product.approval_status == "draft"
        assert product.is_active is False
        assert product.is_approved is False
        assert product.creator_id == admin.id
        assert product.seller_id == seller.id

    def test_seller_cannot_create(self, db_session, seller):
        with pytest.raises(NotAuthorizedError):
            product_service.create_product({"seller_id": seller.id, "name_en": "X", "price_cents": 100}, seller)

    def test_seller_id_must_be_a_seller(self, db_session, admin, customer):
        with pytest.raises(ValidationError):
            product_service.create_product({"seller_id": customer.id, "name_en": "X", "price_cents": 100}, admin)

    @pytest.mark.parametrize("price", [0, -5, 12.5, "1e3"])
    def test_price_must_be_positive_integer(self, db_session, admin, seller, price):
        with pytest.raises(ValidationError):
            product_service.create_product({"seller_id": seller.id, "name_en": "X", "price_cents": price}, admin)

    def test_unknown_field_rejected(self, db_session, admin, seller):
        with pytest.raises(ValidationError):
            product_service.create_product(
                {"seller_id": seller.id, "name_en": "X", "price_cents": 100, "approval_status": "approved"},
                admin,
            )

    def test_name_unique_per_seller_case_insensitive(self, db_session, admin, seller, other_seller):
        make_product(admin, seller, name="Olive Oil")
        with pytest.raises(ConflictError):
            make_product(admin, seller, name="OLIVE oil")
        # Another seller may reuse the name
        assert make_product(admin, other_seller, name="Olive Oil").id is not None


class TestApprovalFlow:

    def test_submit_by_owner(self, db_session, admin, seller):
        product = make_product(admin, seller)
        submitted = product_service.submit_for_approval(product.id, seller)
        assert submitted.approval_status == "pending_approval"

    def test_submit_by_other_seller_denied(self, db_session, admin, seller, other_seller):
        product = make_product(admin, seller)
        with pytest.raises(NotAuthorizedError):
            product_service.submit_for_approval(product.id, other_seller)
        assert reload(product).approval_status == "draft"

    def test_submit_twice_is_invalid(self, db_session, admin, seller):
        product = make_product(admin, seller, status="pending_approval")
        with pytest.raises(InvalidTransitionError):
            product_service.submit_for_approval(product.id, seller)

    def test_approve_from_draft_is_invalid(self, db_session, admin, seller):
        product = make_product(admin, seller)
        with pytest.raises(InvalidTransitionError):
            product_service.approve(product.id, admin)
        assert reload(product).approval_status == "draft"

    def test_approve_sets_flags_and_stamps(self, db_session, admin, seller):
        product = make_product(admin, seller, status="pending_approval")
        approved = product_service.approve(product.id, admin, note="Looks good")
        assert approved.approval_status == "approved"
        assert approved.is_approved is True
        assert approved.is_active is True
        assert approved.approved_by == admin.id
        assert approved.approved_at is not None
        assert approved.approval_note == "Looks good"
        assert approved.rejection_reason is None

    def test_seller_cannot_approve(self, db_session, admin, seller):
        product = make_product(admin, seller, status="pending_approval")
        with pytest.raises(NotAuthorizedError):
            product_service.approve(product.id, seller)

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason_before_state_check(self, db_session, admin, seller, reason):
        product = make_product(admin, seller)  # draft: the state guard would also fail
        with pytest.raises(ValidationError):
            product_service.reject(product.id, admin, reason)

    def test_reject_and_resubmit(self, db_session, admin, seller):
        product = make_product(admin, seller, status="pending_approval")
        rejected = product_service.reject(product.id, admin, "Blurry photos")
        assert rejected.approval_status == "rejected"
        assert rejected.is_active is False
        assert rejected.is_approved is False
        assert rejected.rejection_reason == "Blurry photos"
        assert rejected.approved_by is None

        resubmitted = product_service.submit_for_approval(product.id, seller)
        assert resubmitted.approval_status == "pending_approval"
        assert resubmitted.rejection_reason is None

    def test_toggle_activation_only_when_approved(self, db_session, admin, seller):
        draft = make_product(admin, seller, name="Draft")
        with pytest.raises(InvalidTransitionError):
            product_service.toggle_activation(draft.id, admin)

        approved = make_product(admin, seller, name="Approved", status="approved")
        assert product_service.toggle_activation(approved.id, admin).is_active is False
        assert product_service.toggle_activation(approved.id, admin).is_active is True
        assert reload(approved).approval_status == "approved"

    def test_transitions_are_audited(self, db_session, admin, seller):
        product = make_product(admin, seller, status="approved")
        types = [e.event_type for e in audit_service.list_entity_events("product", product.id)]
        assert types == ["product.created", "product.submitted", "product.approved"]


class TestEdit:

    def test_admin_edit_of_approved_resets_to_draft(self, db_session, admin, seller):
        product = make_product(admin, seller, status="approved")
        edited = product_service.edit(product.id, {"price_cents": 3000}, admin)
        assert edited.price_cents == 3000
        assert edited.approval_status == "draft"
        assert edited.is_active is False
        assert edited.is_approved is False
        assert edited.approved_by is None
        assert edited.approved_at is None

    def test_admin_edit_of_rejected_clears_reason(self, db_session, admin, seller):
        product = make_product(admin, seller, status="rejected")
        edited = product_service.edit(product.id, {"description_en": "Cold pressed"}, admin)
        assert edited.approval_status == "draft"
        assert edited.rejection_reason is None

    def test_admin_edit_of_pending_stays_pending(self, db_session, admin, seller):
        product = make_product(admin, seller, status="pending_approval")
        assert product_service.edit(product.id, {"name_en": "Renamed"}, admin).approval_status == "pending_approval"

    def test_seller_edits_own_draft(self, db_session, admin, seller):
        product = make_product(admin, seller)
        assert product_service.edit(product.id, {"name_en": "Better Name"}, seller).name_en == "Better Name"

    @pytest.mark.parametrize("status", ["approved", "pending_approval"])
    def test_seller_cannot_edit_outside_draft_or_rejected(self, db_session, admin, seller, status):
        product = make_product(admin, seller, status=status)
        with pytest.raises(InvalidTransitionError):
            product_service.edit(product.id, {"name_en": "Sneaky"}, seller)
        assert reload(product).approval_status == status

    def test_other_seller_cannot_edit(self, db_session, admin, seller, other_seller):
        product = make_product(admin, seller)
        with pytest.raises(NotAuthorizedError):
            product_service.edit(product.id, {"name_en": "Mine now"}, other_seller)

    def test_rename_to_existing_name_conflicts(self, db_session, admin, seller):
        make_product(admin, seller, name="Honey")
        product = make_product(admin, seller, name="Dates")
        with pytest.raises(ConflictError):
            product_service.edit(product.id, {"name_en": "honey"}, admin)


class TestDelete:

    def test_soft_delete_draft(self, db_session, admin, seller):
        product = make_product(admin, seller)
        deleted = product_service.delete(product.id, admin)
        assert deleted.deleted_at is not None
        assert deleted.is_active is False
        with pytest.raises(NotFoundError):
            product_service.get_product(product.id, viewer=admin)
        with pytest.raises(NotFoundError):
            product_service.submit_for_approval(product.id, seller)

    def test_soft_delete_approved_is_invalid(self, db_session, admin, seller):
        product = make_product(admin, seller, status="approved")
        with pytest.raises(InvalidTransitionError):
            product_service.delete(product.id, admin)

    def test_hard_delete_keeps_order_item_snapshot(self, db_session, admin, seller, customer):
        product = make_product(admin, seller, status="approved", price_cents=2500)
        order = make_order(customer, 5000)
        item = order_item_service.add_item(order.id, product.id, 2, customer)

        product_service.hard_delete(product.id, admin)

        item = reload(item)
        assert item.product_id is None
        assert item.unit_price_cents == 2500
        assert item.line_total_cents == 5000
        assert db_session.query(OrderItem).count() == 1

    def test_seller_cannot_hard_delete(self, db_session, admin, seller):
        product = make_product(admin, seller)
        with pytest.raises(NotAuthorizedError):
            product_service.hard_delete(product.id, seller)


class TestQueries:

    def test_public_listing_only_shows_purchasable(self, db_session, admin, seller):
        visible = make_product(admin, seller, name="Visible", status="approved")
        make_product(admin, seller, name="Draft")
        make_product(admin, seller, name="Pending", status="pending_approval")
        hidden = make_product(admin, seller, name="Paused", status="approved")
        product_service.toggle_activation(hidden.id, admin)

        result = product_service.list_public_products()
        assert [p.id for p in result["items"]] == [visible.id]
        assert result["pagination"]["total"] == 1

    def test_search_matches_public_names(self, db_session, admin, seller):
        oil = make_product(admin, seller, name="Olive Oil", status="approved")
        make_product(admin, seller, name="Olive Soap")  # draft: not public

        result = product_service.search_products("olive")
        assert [p.id for p in result["items"]] == [oil.id]

    def test_blank_search_rejected(self, db_session):
        with pytest.raises(ValidationError):
            product_service.search_products("  ")

    def test_hidden_product_visible_to_owner_only(self, db_session, admin, seller, other_seller):
        product = make_product(admin, seller)
        assert product_service.get_product(product.id, viewer=seller).id == product.id
        assert product_service.get_product(product.id, viewer=admin).id == product.id
        with pytest.raises(NotFoundError):
            product_service.get_product(product.id, viewer=other_seller)
        with pytest.raises(NotFoundError):
            product_service.get_product(product.id)

    def test_seller_listing_depends_on_viewer(self, db_session, admin, seller, customer):
        make_product(admin, seller, name="Draft")
        make_product(admin, seller, name="Live", status="approved")

        assert product_service.list_seller_products(seller.id, viewer=seller)["pagination"]["total"] == 2
        assert product_service.list_seller_products(seller.id, viewer=customer)["pagination"]["total"] == 1
        assert product_service.list_seller_products(seller.id)["pagination"]["total"] == 1

    def test_admin_listing_filters(self, db_session, admin, seller, other_seller):
        make_product(admin, seller, name="Cheap", price_cents=500, status="approved")
        make_product(admin, seller, name="Pricey", price_cents=9000)
        make_product(admin, other_seller, name="Other", price_cents=700)

        assert product_service.list_products(admin, seller_id=seller.id)["pagination"]["total"] == 2
        assert product_service.list_products(admin, approval_status="approved")["pagination"]["total"] == 1
        assert product_service.list_products(admin, max_price_cents=800)["pagination"]["total"] == 2
        assert product_service.list_products(admin, is_active=True)["pagination"]["total"] == 1
        with pytest.raises(ValidationError):
            product_service.list_products(admin, approval_status="archived")
        with pytest.raises(NotAuthorizedError):
            product_service.list_products(seller)

    def test_admin_statistics(self, db_session, admin, seller):
        make_product(admin, seller, name="A")
        make_product(admin, seller, name="B", status="pending_approval")
        make_product(admin, seller, name="C", status="approved")
        make_product(admin, seller, name="D", status="rejected")

        stats = product_service.get_admin_statistics(admin)
        assert stats == {
            "total": 4,
            "active": 1,
            "approved": 1,
            "pending": 1,
            "draft": 1,
            "rejected": 1,
            "suspended": 0,
        }

    def test_list_by_status(self, db_session, admin, seller):
        pending = make_product(admin, seller, name="Waiting", status="pending_approval")
        make_product(admin, seller, name="Draft")
        result = product_service.list_by_status("pending_approval", admin)
        assert [p.id for p in result["items"]] == [pending.id]
