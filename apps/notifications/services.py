# apps/notifications/services.py
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from .models import EmailNotification, NotificationStatus

logger = logging.getLogger(__name__)

BULK_ORDER_STATUS_EVENT = "bulk_order_status_changed"


def render_bulk_order_status_email(order, *, admin_notes="", rejection_reason="") -> tuple[str, str]:
    """
    Subject and HTML body telling the buyer where their bulk order stands.
    """
    subject = f"Bulk Order {order.status} - {order.id}"
    body = render_to_string(
        "notifications/emails/bulk_order_status.html",
        {
            "name": order.name,
            "order_id": str(order.id),
            "status": order.status,
            "admin_notes": admin_notes,
            "rejection_reason": rejection_reason,
            "signature": settings.EMAIL_SIGNATURE,
        },
    )
    return subject, body


def deliver_email_notification(notification: EmailNotification) -> bool:
    """
    Hand one stored email to the mail transport and record the outcome.
    """
    notification.attempts += 1
    try:
        send_mail(
            subject=notification.subject,
            message=strip_tags(notification.body_html),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[notification.recipient],
            html_message=notification.body_html,
            fail_silently=False,
        )
    except Exception as exc:
        notification.status = NotificationStatus.FAILED
        notification.error_message = str(exc)[:2000]
        notification.save(update_fields=["attempts", "status", "error_message", "updated_at"])
        logger.exception(
            "Failed to send email notification %s to %s",
            notification.id, notification.recipient,
            extra={"notification_id": notification.id},
        )
        return False

    notification.status = NotificationStatus.SENT
    notification.error_message = ""
    notification.sent_at = timezone.now()
    notification.save(update_fields=["attempts", "status", "error_message", "sent_at", "updated_at"])
    logger.info(
        "Email notification %s sent to %s", notification.id, notification.recipient,
        extra={"notification_id": notification.id},
    )
    return True


def queue_email(*, recipient, subject, html, event_key, user=None, data=None) -> EmailNotification:
    """
    Store the email, then deliver it inline or through Celery
    depending on NOTIFICATIONS_ASYNC.
    """
    from .tasks import send_email_notification_task

    notification = EmailNotification.objects.create(
        user=user,
        recipient=recipient,
        subject=subject,
        body_html=html,
        event_key=event_key,
        data=data or {},
        status=NotificationStatus.PENDING,
    )

    if settings.NOTIFICATIONS_ASYNC:
        try:
            send_email_notification_task.delay(str(notification.id))
        except Exception:
            # Broker down: row stays PENDING and can be re-sent from the admin
            logger.exception(
                "Could not enqueue email notification %s", notification.id,
                extra={"notification_id": notification.id},
            )
    else:
        deliver_email_notification(notification)

    return notification


def notify_bulk_order_status(order_id, *, admin_notes="", rejection_reason="") -> EmailNotification | None:
    """
    Email the buyer of `order_id` about its current status.
    """
    from apps.bulk_orders.models import BulkOrder

    try:
        order = BulkOrder.objects.get(id=order_id)
    except BulkOrder.DoesNotExist:
        logger.warning("Bulk order %s vanished before its status email was sent", order_id)
        return None

    subject, html = render_bulk_order_status_email(
        order, admin_notes=admin_notes, rejection_reason=rejection_reason
    )
    return queue_email(
        recipient=order.email,
        subject=subject,
        html=html,
        event_key=BULK_ORDER_STATUS_EVENT,
        user=order.user,
        data={"order_id": str(order.id), "status": order.status},
    )
