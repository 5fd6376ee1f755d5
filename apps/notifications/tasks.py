import logging
from celery import shared_task
from django.db import transaction

from .models import EmailNotification, NotificationStatus
from .services import deliver_email_notification

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


@shared_task(bind=True, max_retries=3, default_retry_delay=10)
def send_email_notification_task(self, notification_id: str):
    try:
        with transaction.atomic():
            # Lock the row so a retry and an admin resend cannot both send
            notification = EmailNotification.objects.select_for_update().get(id=notification_id)

            if notification.status == NotificationStatus.SENT:
                return True

            delivered = deliver_email_notification(notification)
    except EmailNotification.DoesNotExist:
        logger.error(f"Email notification {notification_id} not found.")
        return False

    if not delivered:
        # FAILED state is already committed; Celery re-queues the attempt
        raise self.retry(exc=EmailDeliveryError(notification.error_message))
    return True
