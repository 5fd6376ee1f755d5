# apps/bulk_orders/signals.py
import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Fired after a review transition has been committed.
# args: order_id, old_status, new_status, admin_notes, rejection_reason, changed_by_id
bulk_order_status_changed = Signal()


def publish_status_changed(order, old_status, *, admin_notes="", changed_by=None):
    """
    Deliver the status-change fact to every receiver.

    Receivers run through send_robust: a failing consumer is logged and never
    reaches the caller, the committed transition stands either way.
    """
    responses = bulk_order_status_changed.send_robust(
        sender=order.__class__,
        order_id=order.id,
        old_status=old_status,
        new_status=order.status,
        admin_notes=admin_notes or "",
        rejection_reason=order.rejection_reason,
        changed_by_id=getattr(changed_by, "pk", None),
    )
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Receiver %s failed for bulk order %s status change: %s",
                getattr(receiver, "__name__", repr(receiver)),
                order.id,
                response,
                exc_info=response,
                extra={"bulk_order_id": order.id},
            )
    return responses
