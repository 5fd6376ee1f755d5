# apps/notifications/receivers.py
import logging

from django.dispatch import receiver

from apps.bulk_orders.signals import bulk_order_status_changed
from .services import notify_bulk_order_status

logger = logging.getLogger(__name__)


@receiver(bulk_order_status_changed, dispatch_uid="notify_buyer_on_bulk_order_status")
def handle_bulk_order_status_changed(
    sender,
    order_id,
    old_status,
    new_status,
    admin_notes="",
    rejection_reason="",
    **kwargs,
):
    """
    Review decision -> buyer email.
    """
    logger.debug("Bulk order %s: %s -> %s, notifying buyer", order_id, old_status, new_status)
    notify_bulk_order_status(
        order_id,
        admin_notes=admin_notes,
        rejection_reason=rejection_reason,
    )
