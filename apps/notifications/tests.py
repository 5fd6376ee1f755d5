# apps/notifications/tests.py
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings

from apps.accounts.models import User
from apps.bulk_orders.models import BulkOrder
from apps.bulk_orders.signals import bulk_order_status_changed

from .models import EmailNotification, NotificationStatus
from .services import (
    BULK_ORDER_STATUS_EVENT,
    deliver_email_notification,
    notify_bulk_order_status,
    queue_email,
    render_bulk_order_status_email,
)
from .tasks import EmailDeliveryError, send_email_notification_task


def make_order(user, **overrides):
    fields = {
        "user": user,
        "name": "Asha Traders",
        "phone": "9876543210",
        "email": "asha@example.com",
        "address": "12 Market Road",
        "buyer_type": BulkOrder.BuyerType.SHOP,
    }
    fields.update(overrides)
    return BulkOrder.objects.create(**fields)


@override_settings(EMAIL_SIGNATURE="Support Team")
class RenderEmailTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com")

    def test_approved_email_has_notes(self):
        order = make_order(self.user, status=BulkOrder.Status.APPROVED)
        subject, html = render_bulk_order_status_email(order, admin_notes="Call on Monday")

        self.assertEqual(subject, f"Bulk Order Approved - {order.id}")
        self.assertIn("Hello Asha Traders", html)
        self.assertIn("Call on Monday", html)
        self.assertIn("Support Team", html)

    def test_rejected_email_has_reason(self):
        order = make_order(self.user, status=BulkOrder.Status.REJECTED)
        subject, html = render_bulk_order_status_email(order, rejection_reason="Out of stock")

        self.assertEqual(subject, f"Bulk Order Rejected - {order.id}")
        self.assertIn("Out of stock", html)
        self.assertIn("declined", html)

    def test_reopened_email(self):
        order = make_order(self.user)
        _, html = render_bulk_order_status_email(order)
        self.assertIn("back under review", html)


class DeliveryTests(TestCase):
    def _queue(self):
        return queue_email(
            recipient="asha@example.com",
            subject="Hello",
            html="<p>Hi there</p>",
            event_key="test_event",
        )

    def test_inline_delivery_marks_sent(self):
        notification = self._queue()

        notification.refresh_from_db()
        self.assertEqual(notification.status, NotificationStatus.SENT)
        self.assertEqual(notification.attempts, 1)
        self.assertIsNotNone(notification.sent_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["asha@example.com"])
        self.assertEqual(mail.outbox[0].body, "Hi there")

    @patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down"))
    def test_transport_failure_is_recorded(self, _send_mail):
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            notification = self._queue()

        notification.refresh_from_db()
        self.assertEqual(notification.status, NotificationStatus.FAILED)
        self.assertIn("relay down", notification.error_message)
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(NOTIFICATIONS_ASYNC=True)
    @patch("apps.notifications.tasks.send_email_notification_task.delay")
    def test_async_mode_enqueues(self, delay):
        notification = self._queue()

        delay.assert_called_once_with(str(notification.id))
        notification.refresh_from_db()
        self.assertEqual(notification.status, NotificationStatus.PENDING)
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(NOTIFICATIONS_ASYNC=True)
    @patch(
        "apps.notifications.tasks.send_email_notification_task.delay",
        side_effect=ConnectionError("broker unreachable"),
    )
    def test_enqueue_failure_leaves_pending_row(self, _delay):
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            notification = self._queue()

        notification.refresh_from_db()
        self.assertEqual(notification.status, NotificationStatus.PENDING)


class EmailTaskTests(TestCase):
    def setUp(self):
        self.notification = EmailNotification.objects.create(
            recipient="asha@example.com",
            subject="Hello",
            body_html="<p>Hi</p>",
            event_key="test_event",
        )

    def test_task_sends_pending_email(self):
        self.assertTrue(send_email_notification_task(str(self.notification.id)))
        self.notification.refresh_from_db()
        self.assertEqual(self.notification.status, NotificationStatus.SENT)
        self.assertEqual(len(mail.outbox), 1)

    def test_task_skips_already_sent(self):
        self.notification.status = NotificationStatus.SENT
        self.notification.save()

        self.assertTrue(send_email_notification_task(str(self.notification.id)))
        self.assertEqual(len(mail.outbox), 0)

    def test_task_missing_row(self):
        with self.assertLogs("apps.notifications.tasks", level="ERROR"):
            self.assertFalse(send_email_notification_task("00000000-0000-0000-0000-000000000000"))

    @patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down"))
    def test_task_failure_requests_retry(self, _send_mail):
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            with self.assertRaises(EmailDeliveryError):
                send_email_notification_task(str(self.notification.id))

        self.notification.refresh_from_db()
        self.assertEqual(self.notification.status, NotificationStatus.FAILED)
        self.assertEqual(self.notification.attempts, 1)

    @patch("apps.notifications.services.send_mail", side_effect=SMTPException("relay down"))
    def test_manual_resend_increments_attempts(self, _send_mail):
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            self.assertFalse(deliver_email_notification(self.notification))
            self.assertFalse(deliver_email_notification(self.notification))
        self.assertEqual(self.notification.attempts, 2)


class BulkOrderStatusNotificationTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com")
        self.order = make_order(self.user, status=BulkOrder.Status.APPROVED)

    def test_signal_sends_buyer_email(self):
        bulk_order_status_changed.send(
            sender=BulkOrder,
            order_id=self.order.id,
            old_status=BulkOrder.Status.REQUESTED,
            new_status=BulkOrder.Status.APPROVED,
            admin_notes="Welcome aboard",
            rejection_reason="",
            changed_by_id=None,
        )

        notification = EmailNotification.objects.get()
        self.assertEqual(notification.event_key, BULK_ORDER_STATUS_EVENT)
        self.assertEqual(notification.recipient, "asha@example.com")
        self.assertEqual(notification.user, self.user)
        self.assertEqual(notification.data, {"order_id": str(self.order.id), "status": "Approved"})
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("Welcome aboard", mail.outbox[0].alternatives[0][0])

    def test_missing_order_is_skipped(self):
        order_id = self.order.id
        self.order.delete()

        with self.assertLogs("apps.notifications.services", level="WARNING"):
            self.assertIsNone(notify_bulk_order_status(order_id))
        self.assertFalse(EmailNotification.objects.exists())
