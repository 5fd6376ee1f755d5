# apps/bulk_orders/tests_review_flow.py
import uuid
from decimal import Decimal
from smtplib import SMTPException
from unittest.mock import patch

from django.contrib.auth.models import Permission
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import Role, User
from apps.catalog.models import Product
from apps.notifications.models import EmailNotification, NotificationStatus
from apps.utils.exceptions import (
    ActionNotPermitted,
    BusinessLogicException,
    InvalidStatusTransition,
    ResourceNotFound,
)

from .models import BulkOrder, BulkOrderItem, BulkOrderTimeline
from .services import BulkOrderIntakeService, BulkOrderReviewService


class ReviewFixtures:

    def setUp(self):
        self.buyer = User.objects.create_user(email="buyer@example.com")
        self.admin = User.objects.create_user(email="ops@example.com", role=Role.ADMIN)
        self.product = Product.objects.create(name="Cotton Tee", price=Decimal("199.00"))
        self.order = BulkOrderIntakeService.submit(self.buyer, {
            "name": "Asha Traders",
            "phone": "+919876543210",
            "email": "asha@example.com",
            "buyer_type": "Wholesale",
            "address": "12 Market Road",
            "products": [{"product": self.product.id, "quantity": 40}],
        })

    def grant_reopen(self, user):
        user.user_permissions.add(Permission.objects.get(codename="reopen_bulkorder"))
        # has_perm caches per instance
        return User.objects.get(pk=user.pk)


class ReviewServiceTests(ReviewFixtures, TestCase):

    def test_approve_stamps_admin_and_time(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            order = BulkOrderReviewService.update_status(
                self.order.id, "Approved", admin=self.admin, admin_notes="Ship by Friday"
            )

        order.refresh_from_db()
        self.assertEqual(order.status, BulkOrder.Status.APPROVED)
        self.assertEqual(order.approved_by, self.admin)
        self.assertIsNotNone(order.approved_at)
        self.assertEqual(order.admin_notes, "Ship by Friday")
        self.assertEqual(order.rejection_reason, "")
        self.assertEqual(len(callbacks), 1)

        self.assertTrue(
            BulkOrderTimeline.objects.filter(order=order, status="Approved", created_by=self.admin).exists()
        )
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Bulk Order Approved - {order.id}")
        self.assertEqual(mail.outbox[0].to, ["asha@example.com"])

    def test_reject_persists_reason(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = BulkOrderReviewService.update_status(
                self.order.id, "Rejected", admin=self.admin, rejection_reason="Minimum 100 units"
            )

        order.refresh_from_db()
        self.assertEqual(order.status, BulkOrder.Status.REJECTED)
        self.assertEqual(order.rejection_reason, "Minimum 100 units")
        self.assertIsNone(order.approved_by)
        self.assertIsNone(order.approved_at)
        self.assertIn("Minimum 100 units", mail.outbox[0].alternatives[0][0])

    def test_invalid_status_value(self):
        with self.assertRaisesMessage(
            BusinessLogicException, "Invalid status. Must be 'Requested', 'Approved', or 'Rejected'"
        ):
            BulkOrderReviewService.update_status(self.order.id, "Shipped", admin=self.admin)

    def test_terminal_state_cannot_flip(self):
        BulkOrderReviewService.approve(self.order.id, admin=self.admin)

        with self.assertRaises(InvalidStatusTransition):
            BulkOrderReviewService.reject(self.order.id, admin=self.admin, rejection_reason="Changed mind")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, BulkOrder.Status.APPROVED)
        self.assertEqual(self.order.rejection_reason, "")

    def test_same_status_only_updates_annotations(self):
        BulkOrderReviewService.approve(self.order.id, admin=self.admin)
        self.order.refresh_from_db()
        first_approved_at = self.order.approved_at
        other_admin = User.objects.create_user(email="ops2@example.com", role=Role.ADMIN)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            BulkOrderReviewService.approve(self.order.id, admin=other_admin, admin_notes="Confirmed by phone")

        self.order.refresh_from_db()
        self.assertEqual(self.order.approved_by, self.admin)
        self.assertEqual(self.order.approved_at, first_approved_at)
        self.assertEqual(self.order.admin_notes, "Confirmed by phone")
        self.assertEqual(callbacks, [])
        self.assertEqual(BulkOrderTimeline.objects.filter(order=self.order, status="Approved").count(), 1)

    def test_reopen_requires_permission(self):
        BulkOrderReviewService.reject(self.order.id, admin=self.admin, rejection_reason="No stock")

        with self.assertRaises(ActionNotPermitted):
            BulkOrderReviewService.update_status(self.order.id, "Requested", admin=self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, BulkOrder.Status.REJECTED)

    def test_reopen_clears_decision(self):
        BulkOrderReviewService.approve(self.order.id, admin=self.admin)
        reviewer = self.grant_reopen(self.admin)

        with self.captureOnCommitCallbacks(execute=True):
            order = BulkOrderReviewService.reopen(self.order.id, admin=reviewer, admin_notes="Price changed")

        order.refresh_from_db()
        self.assertEqual(order.status, BulkOrder.Status.REQUESTED)
        self.assertIsNone(order.approved_by)
        self.assertIsNone(order.approved_at)
        self.assertEqual(order.admin_notes, "Price changed")
        self.assertIn("back under review", mail.outbox[-1].alternatives[0][0])

        # open again for a fresh decision
        BulkOrderReviewService.reject(order.id, admin=reviewer, rejection_reason="Sold out")
        order.refresh_from_db()
        self.assertEqual(order.status, BulkOrder.Status.REJECTED)

    def test_superuser_can_reopen(self):
        root = User.objects.create_superuser(email="root@example.com", password="pass12345")
        BulkOrderReviewService.reject(self.order.id, admin=self.admin)
        order = BulkOrderReviewService.update_status(self.order.id, "Requested", admin=root)
        self.assertEqual(order.status, BulkOrder.Status.REQUESTED)

    def test_unknown_order(self):
        with self.assertRaises(ResourceNotFound):
            BulkOrderReviewService.approve(uuid.uuid4(), admin=self.admin)
        with self.assertRaises(ResourceNotFound):
            BulkOrderReviewService.approve("garbage", admin=self.admin)

    def test_mail_failure_keeps_status(self):
        with patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down")):
            with self.assertLogs("apps.notifications.services", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    BulkOrderReviewService.approve(self.order.id, admin=self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, BulkOrder.Status.APPROVED)
        notification = EmailNotification.objects.get()
        self.assertEqual(notification.status, NotificationStatus.FAILED)

    def test_broken_receiver_does_not_undo_review(self):
        with patch(
            "apps.notifications.receivers.notify_bulk_order_status", side_effect=RuntimeError("template missing")
        ):
            with self.assertLogs("apps.bulk_orders.signals", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    BulkOrderReviewService.reject(self.order.id, admin=self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, BulkOrder.Status.REJECTED)

    def test_delete(self):
        BulkOrderReviewService.delete(self.order.id, admin=self.admin)

        self.assertFalse(BulkOrder.objects.exists())
        self.assertFalse(BulkOrderItem.objects.exists())
        self.assertFalse(BulkOrderTimeline.objects.exists())

        with self.assertRaises(ResourceNotFound):
            BulkOrderReviewService.delete(self.order.id, admin=self.admin)


class ReviewApiTests(ReviewFixtures, APITestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin)

    def _update(self, order_id, payload):
        return self.client.put(reverse("bulk-order-update-status", args=[order_id]), payload, format="json")

    def test_approve_endpoint(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self._update(self.order.id, {"status": "Approved", "adminNotes": "Great"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Bulk order approved successfully")
        data = response.data["data"]
        self.assertEqual(data["status"], "Approved")
        self.assertEqual(data["approvedBy"]["email"], "ops@example.com")
        self.assertIsNotNone(data["approvedAt"])
        self.assertEqual(data["adminNotes"], "Great")
        self.assertEqual(len(mail.outbox), 1)

    def test_reject_endpoint(self):
        response = self._update(self.order.id, {"status": "Rejected", "rejectionReason": "Too small"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Bulk order rejected successfully")
        self.assertEqual(response.data["data"]["rejectionReason"], "Too small")

    def test_invalid_status(self):
        response = self._update(self.order.id, {"status": "Shipped"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_status")

    def test_flip_terminal_state_conflicts(self):
        self._update(self.order.id, {"status": "Approved"})
        response = self._update(self.order.id, {"status": "Rejected"})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data["success"])

    def test_requested_without_reopen_permission(self):
        self._update(self.order.id, {"status": "Rejected"})
        response = self._update(self.order.id, {"status": "Requested"})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.put(reverse("bulk-order-reopen", args=[self.order.id]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reopen_endpoint(self):
        self._update(self.order.id, {"status": "Rejected"})
        self.client.force_authenticate(user=self.grant_reopen(self.admin))

        response = self.client.put(
            reverse("bulk-order-reopen", args=[self.order.id]), {"adminNotes": "Retry"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Bulk order reopened successfully")
        self.assertEqual(response.data["data"]["status"], "Requested")

    def test_update_unknown_order(self):
        response = self._update(uuid.uuid4(), {"status": "Approved"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mail_failure_still_returns_success(self):
        with patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down")):
            with self.assertLogs("apps.notifications.services", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    response = self._update(self.order.id, {"status": "Approved"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, BulkOrder.Status.APPROVED)

    def test_delete_endpoint(self):
        url = reverse("bulk-order-delete", args=[self.order.id])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Bulk order deleted successfully")

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Bulk order not found")
