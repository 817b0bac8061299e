from datetime import timedelta

from django.test import SimpleTestCase, TestCase

from blood.exceptions import Forbidden, InvalidState, NotFound
from blood.models import BloodRequest, Notification, RequestStatus
from blood.services import lifecycle
from blood.services.lifecycle import compute_status
from donor.models import Donor

from .helpers import TODAY, FulfillmentFixtures

TOMORROW = TODAY + timedelta(days=1)
YESTERDAY = TODAY - timedelta(days=1)


class ComputeStatusTests(SimpleTestCase):
    def test_pending_without_donations_becomes_active(self):
        self.assertEqual(compute_status(RequestStatus.PENDING, 0, 3, TOMORROW, TODAY), RequestStatus.ACTIVE)

    def test_active_without_donations_stays_active(self):
        self.assertEqual(compute_status(RequestStatus.ACTIVE, 0, 3, TOMORROW, TODAY), RequestStatus.ACTIVE)

    def test_partial(self):
        self.assertEqual(compute_status(RequestStatus.ACTIVE, 1, 3, TOMORROW, TODAY), RequestStatus.PARTIALLY_FULFILLED)
        self.assertEqual(compute_status(RequestStatus.PENDING, 2, 3, TOMORROW, TODAY), RequestStatus.PARTIALLY_FULFILLED)

    def test_fulfilled_when_units_reached_or_exceeded(self):
        self.assertEqual(compute_status(RequestStatus.PARTIALLY_FULFILLED, 3, 3, TOMORROW, TODAY), RequestStatus.FULFILLED)
        self.assertEqual(compute_status(RequestStatus.ACTIVE, 5, 3, TOMORROW, TODAY), RequestStatus.FULFILLED)

    def test_fulfilment_wins_over_expiry(self):
        self.assertEqual(compute_status(RequestStatus.ACTIVE, 3, 3, YESTERDAY, TODAY), RequestStatus.FULFILLED)

    def test_overdue_request_expires(self):
        self.assertEqual(compute_status(RequestStatus.PARTIALLY_FULFILLED, 1, 3, YESTERDAY, TODAY), RequestStatus.EXPIRED)

    def test_required_date_today_is_not_overdue(self):
        self.assertEqual(compute_status(RequestStatus.ACTIVE, 0, 3, TODAY, TODAY), RequestStatus.ACTIVE)

    def test_terminal_statuses_are_sticky(self):
        for status in (RequestStatus.FULFILLED, RequestStatus.CANCELLED, RequestStatus.EXPIRED):
            self.assertEqual(compute_status(status, 0, 3, YESTERDAY, TODAY), status)


class RecomputeTests(FulfillmentFixtures, TestCase):
    def setUp(self):
        self.blood_request = self._create_request(units_required=3)
        self.donor = self._create_donor()

    def _refresh(self):
        self.blood_request.refresh_from_db()
        return self.blood_request

    def test_pending_moves_to_active(self):
        transition = lifecycle.recompute(self.blood_request.pk, today=TODAY)
        self.assertTrue(transition.changed)
        self.assertEqual(self._refresh().status, RequestStatus.ACTIVE)

    def test_partial_then_fulfilled(self):
        self._completed_donation(self.donor, days_ago=0, blood_request=self.blood_request, units=1)
        lifecycle.recompute(self.blood_request.pk, today=TODAY)
        request = self._refresh()
        self.assertEqual(request.status, RequestStatus.PARTIALLY_FULFILLED)
        self.assertEqual(request.fulfilled_units, 1)

        other = self._create_donor()
        self._completed_donation(other, days_ago=0, blood_request=self.blood_request, units=2)
        lifecycle.recompute(self.blood_request.pk, today=TODAY)
        request = self._refresh()
        self.assertEqual(request.status, RequestStatus.FULFILLED)
        self.assertEqual(request.fulfilled_units, 3)

    def test_only_completed_donations_count(self):
        self._create_donation(self.donor, self.blood_request, units=2)
        self._completed_donation(self._create_donor(), days_ago=0, blood_request=self.blood_request, units=1)
        lifecycle.recompute(self.blood_request.pk, today=TODAY)
        self.assertEqual(self._refresh().fulfilled_units, 1)

    def test_second_recompute_is_a_no_op(self):
        self._completed_donation(self.donor, days_ago=0, blood_request=self.blood_request)
        self.assertTrue(lifecycle.recompute_request_status(self.blood_request.pk, today=TODAY))
        updated_at = self._refresh().updated_at

        self.assertFalse(lifecycle.recompute_request_status(self.blood_request.pk, today=TODAY))
        self.assertEqual(self._refresh().updated_at, updated_at)

    def test_fulfilled_stays_fulfilled(self):
        self._completed_donation(self.donor, days_ago=0, blood_request=self.blood_request, units=3)
        lifecycle.recompute(self.blood_request.pk, today=TODAY)
        self.assertEqual(self._refresh().status, RequestStatus.FULFILLED)

        # Well past the required date
        lifecycle.recompute(self.blood_request.pk, today=TODAY + timedelta(days=30))
        self.assertEqual(self._refresh().status, RequestStatus.FULFILLED)

    def test_overdue_request_expires_and_owner_is_told(self):
        lifecycle.recompute(self.blood_request.pk, today=TODAY + timedelta(days=8))
        self.assertEqual(self._refresh().status, RequestStatus.EXPIRED)
        notification = Notification.objects.get(recipient=self.blood_request.owner)
        self.assertEqual(notification.type, Notification.Type.REQUEST_EXPIRED)

    def test_owner_is_told_when_fulfilled(self):
        self._completed_donation(self.donor, days_ago=0, blood_request=self.blood_request, units=3)
        lifecycle.recompute(self.blood_request.pk, today=TODAY)
        notification = Notification.objects.get(recipient=self.blood_request.owner)
        self.assertEqual(notification.type, Notification.Type.REQUEST_FULFILLED)
        self.assertEqual(notification.link, f"/requests/{self.blood_request.pk}")

    def test_fulfilled_units_refreshed_on_terminal_request(self):
        BloodRequest.objects.filter(pk=self.blood_request.pk).update(status=RequestStatus.CANCELLED)
        self._completed_donation(self.donor, days_ago=0, blood_request=self.blood_request)
        transition = lifecycle.recompute(self.blood_request.pk, today=TODAY)
        request = self._refresh()
        self.assertEqual(transition.status_after, RequestStatus.CANCELLED)
        self.assertEqual(request.status, RequestStatus.CANCELLED)
        self.assertEqual(request.fulfilled_units, 1)

    def test_missing_request(self):
        with self.assertRaises(NotFound):
            lifecycle.recompute(999999, today=TODAY)


class CancelRequestTests(FulfillmentFixtures, TestCase):
    def setUp(self):
        self.owner = self._create_user("owner")
        self.blood_request = self._create_request(owner=self.owner)

    def test_owner_can_cancel(self):
        cancelled = lifecycle.cancel_request(self.blood_request.pk, actor=self.owner)
        self.assertEqual(cancelled.status, RequestStatus.CANCELLED)

    def test_admin_can_cancel(self):
        admin = self._create_donor(role=Donor.Role.ADMIN).user
        lifecycle.cancel_request(self.blood_request.pk, actor=admin)
        self.blood_request.refresh_from_db()
        self.assertEqual(self.blood_request.status, RequestStatus.CANCELLED)

    def test_superuser_can_cancel(self):
        superuser = self._create_user("root", is_superuser=True)
        lifecycle.cancel_request(self.blood_request.pk, actor=superuser)

    def test_stranger_cannot_cancel(self):
        stranger = self._create_donor().user
        with self.assertRaises(Forbidden):
            lifecycle.cancel_request(self.blood_request.pk, actor=stranger)
        self.blood_request.refresh_from_db()
        self.assertEqual(self.blood_request.status, RequestStatus.PENDING)

    def test_closed_request_cannot_be_cancelled(self):
        for status in (RequestStatus.FULFILLED, RequestStatus.CANCELLED, RequestStatus.EXPIRED):
            BloodRequest.objects.filter(pk=self.blood_request.pk).update(status=status)
            with self.assertRaises(InvalidState):
                lifecycle.cancel_request(self.blood_request.pk, actor=self.owner)

    def test_missing_request(self):
        with self.assertRaises(NotFound):
            lifecycle.cancel_request(999999, actor=self.owner)


class ExpireOverdueRequestsTests(FulfillmentFixtures, TestCase):
    def test_only_overdue_open_requests_expire(self):
        overdue = self._create_request(required_date=TODAY - timedelta(days=2), status=RequestStatus.ACTIVE)
        due_today = self._create_request(required_date=TODAY)
        already_cancelled = self._create_request(required_date=TODAY - timedelta(days=2), status=RequestStatus.CANCELLED)

        transitions = lifecycle.expire_overdue_requests(today=TODAY)

        self.assertEqual([t.request_id for t in transitions], [overdue.pk])
        overdue.refresh_from_db()
        due_today.refresh_from_db()
        already_cancelled.refresh_from_db()
        self.assertEqual(overdue.status, RequestStatus.EXPIRED)
        self.assertEqual(due_today.status, RequestStatus.PENDING)
        self.assertEqual(already_cancelled.status, RequestStatus.CANCELLED)

    def test_sweep_is_idempotent(self):
        self._create_request(required_date=TODAY - timedelta(days=1))
        self.assertEqual(len(lifecycle.expire_overdue_requests(today=TODAY)), 1)
        self.assertEqual(lifecycle.expire_overdue_requests(today=TODAY), [])
