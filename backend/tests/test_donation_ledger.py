# Overview: Pytest coverage for the donation ledger and the organization total.

"""
Donation ledger tests.

Verifies:
- Donations start pending; purchase donations need an order owned by the donor
- Completing a direct donation adds its amount to the organization total once
- Purchase donations never move the organization total
- completed and failed are terminal; a second confirm is rejected
- Stats and check_balances agree with the stored total
"""

import pytest

from givemarket.errors import (
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from givemarket.models import AuditEvent, Donation
from givemarket.services import donation_service, organization_service

from conftest import make_direct_donation, make_order, reload


class TestCreateDonation:

    def test_direct_donation_starts_pending(self, db_session, customer, organization):
        donation = make_direct_donation(customer, organization, 1500)
        assert donation.status == "pending"
        assert donation.type == "direct"
        assert donation.order_id is None
        assert donation.completed_at is None
        assert reload(organization).total_received_cents == 0

    def test_purchase_donation_requires_order(self, db_session, customer, organization):
        with pytest.raises(ValidationError):
            donation_service.create_donation(customer, organization.id, 500, "purchase")

    def test_direct_donation_rejects_order(self, db_session, customer, organization):
        order = make_order(customer)
        with pytest.raises(ValidationError):
            donation_service.create_donation(customer, organization.id, 500, "direct", order_id=order.id)

    def test_purchase_order_must_belong_to_donor(self, db_session, customer, other_customer, organization):
        order = make_order(other_customer)
        with pytest.raises(NotAuthorizedError):
            donation_service.create_donation(customer, organization.id, 500, "purchase", order_id=order.id)

    @pytest.mark.parametrize("amount", [0, -100, 10.5, "abc"])
    def test_amount_must_be_positive_integer(self, db_session, customer, organization, amount):
        with pytest.raises(ValidationError):
            donation_service.create_donation(customer, organization.id, amount, "direct")

    def test_unknown_type(self, db_session, customer, organization):
        with pytest.raises(ValidationError):
            donation_service.create_donation(customer, organization.id, 500, "gift")

    def test_unknown_organization(self, db_session, customer):
        with pytest.raises(NotFoundError):
            donation_service.create_donation(customer, 9999, 500, "direct")


class TestStatusTransitions:

    def test_completing_direct_donation_increments_total(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 1500)

        completed = donation_service.update_status(donation.id, "completed", "0xTX1", actor=admin)
        assert completed.status == "completed"
        assert completed.completed_at is not None
        assert completed.blockchain_tx_id == "0xTX1"
        assert reload(organization).total_received_cents == 1500

    def test_completing_purchase_donation_leaves_total(self, db_session, admin, customer, organization):
        order = make_order(customer)
        donation = donation_service.create_donation(customer, organization.id, 800, "purchase", order_id=order.id)

        donation_service.update_status(donation.id, "completed", actor=admin)
        assert reload(donation).status == "completed"
        assert reload(organization).total_received_cents == 0

    def test_failing_leaves_total(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 700)
        failed = donation_service.update_status(donation.id, "failed", actor=admin)
        assert failed.status == "failed"
        assert failed.completed_at is None
        assert reload(organization).total_received_cents == 0

    @pytest.mark.parametrize("first", ["completed", "failed"])
    @pytest.mark.parametrize("second", ["completed", "failed", "pending"])
    def test_terminal_states(self, db_session, admin, customer, organization, first, second):
        donation = make_direct_donation(customer, organization, 700)
        donation_service.update_status(donation.id, first, actor=admin)
        total_before = reload(organization).total_received_cents

        with pytest.raises(InvalidTransitionError):
            donation_service.update_status(donation.id, second, actor=admin)
        assert reload(donation).status == first
        assert reload(organization).total_received_cents == total_before

    def test_unknown_status(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization)
        with pytest.raises(ValidationError):
            donation_service.update_status(donation.id, "refunded", actor=admin)

    def test_customer_cannot_change_status(self, db_session, customer, organization):
        donation = make_direct_donation(customer, organization)
        with pytest.raises(NotAuthorizedError):
            donation_service.update_status(donation.id, "completed", actor=customer)
        assert reload(organization).total_received_cents == 0

    def test_missing_donation(self, db_session, admin):
        with pytest.raises(NotFoundError):
            donation_service.update_status(9999, "completed", actor=admin)

    def test_completion_is_audited(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 1200)
        donation_service.update_status(donation.id, "completed", "0xTX", actor=admin)

        donation_events = [
            e.event_type for e in db_session.query(AuditEvent)
            .filter_by(entity_type="donation", entity_id=donation.id)
            .order_by(AuditEvent.id.asc())
        ]
        assert donation_events == ["donation.created", "donation.completed"]

        org_events = db_session.query(AuditEvent).filter_by(
            entity_type="organization", entity_id=organization.id,
            event_type="organization.balance_incremented",
        ).all()
        assert len(org_events) == 1


class TestConfirmBlockchainTransaction:

    def test_confirm_completes_and_increments(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 2500)
        confirmed = donation_service.confirm_blockchain_transaction(donation.id, " 0xABC ", actor=admin)
        assert confirmed.status == "completed"
        assert confirmed.blockchain_tx_id == "0xABC"
        assert reload(organization).total_received_cents == 2500

    def test_confirming_purchase_donation_leaves_total(self, db_session, admin, customer, organization):
        order = make_order(customer, 2500)
        donation = donation_service.create_donation(customer, organization.id, 2500, "purchase", order_id=order.id)

        confirmed = donation_service.confirm_blockchain_transaction(donation.id, "0xBUY", actor=admin)
        assert confirmed.status == "completed"
        assert reload(organization).total_received_cents == 0

    def test_double_confirm_is_rejected(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 2500)
        donation_service.confirm_blockchain_transaction(donation.id, "0xABC", actor=admin)

        with pytest.raises(InvalidTransitionError):
            donation_service.confirm_blockchain_transaction(donation.id, "0xDEF", actor=admin)
        assert reload(organization).total_received_cents == 2500
        assert reload(donation).blockchain_tx_id == "0xABC"

    @pytest.mark.parametrize("tx", [None, "", "   "])
    def test_tx_id_required(self, db_session, admin, customer, organization, tx):
        donation = make_direct_donation(customer, organization)
        with pytest.raises(ValidationError):
            donation_service.confirm_blockchain_transaction(donation.id, tx, actor=admin)
        assert reload(donation).status == "pending"


class TestRemoveDonation:

    def test_remove_pending(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization)
        donation_service.remove_donation(donation.id, admin)
        assert db_session.get(Donation, donation.id) is None

    def test_remove_completed_is_rejected(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization)
        donation_service.update_status(donation.id, "completed", actor=admin)
        with pytest.raises(InvalidTransitionError):
            donation_service.remove_donation(donation.id, admin)


class TestQueriesAndBalances:

    def test_listing_pins_customers(self, db_session, admin, customer, other_customer, organization):
        mine = make_direct_donation(customer, organization)
        make_direct_donation(other_customer, organization)

        assert [d.id for d in donation_service.list_donations(customer)["items"]] == [mine.id]
        with pytest.raises(NotAuthorizedError):
            donation_service.list_donations(customer, user_id=other_customer.id)
        assert donation_service.list_donations(admin)["pagination"]["total"] == 2
        assert donation_service.list_donations(admin, type="direct", status="pending")["pagination"]["total"] == 2

    def test_view_own_only(self, db_session, customer, other_customer, organization):
        donation = make_direct_donation(customer, organization)
        assert donation_service.get_donation_for(donation.id, customer).id == donation.id
        with pytest.raises(NotAuthorizedError):
            donation_service.get_donation_for(donation.id, other_customer)

    def test_organization_stats(self, db_session, admin, customer, organization):
        order = make_order(customer)
        direct = make_direct_donation(customer, organization, 1000)
        purchase = donation_service.create_donation(customer, organization.id, 300, "purchase", order_id=order.id)
        failed = make_direct_donation(customer, organization, 50)
        make_direct_donation(customer, organization, 75)

        donation_service.update_status(direct.id, "completed", actor=admin)
        donation_service.update_status(purchase.id, "completed", actor=admin)
        donation_service.update_status(failed.id, "failed", actor=admin)

        stats = donation_service.get_organization_stats(organization.id)
        assert stats == {
            "organization_id": organization.id,
            "total_donations": 4,
            "completed_donations": 2,
            "pending_donations": 1,
            "failed_donations": 1,
            "completed_amount_cents": 1300,
            "completed_direct_amount_cents": 1000,
            "total_received_cents": 1000,
            "balance_consistent": True,
        }

    def test_check_balances_flags_drift(self, db_session, admin, customer, organization):
        donation = make_direct_donation(customer, organization, 1000)
        donation_service.update_status(donation.id, "completed", actor=admin)

        report = organization_service.check_balances()
        assert report == [{
            "organization_id": organization.id,
            "name_en": "Clean Water Fund",
            "total_received_cents": 1000,
            "expected_cents": 1000,
            "consistent": True,
        }]

        org = reload(organization)
        org.total_received_cents = 1
        db_session.commit()
        assert organization_service.check_balances()[0]["consistent"] is False

    def test_organization_donations_admin_only(self, db_session, admin, customer, organization):
        make_direct_donation(customer, organization)
        assert donation_service.get_organization_donations(organization.id, admin)["pagination"]["total"] == 1
        with pytest.raises(NotAuthorizedError):
            donation_service.get_organization_donations(organization.id, customer)
