import logging
import uuid
from datetime import timedelta
from functools import partial

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Prefetch, Sum
from django.utils import timezone

from apps.catalog.services import ProductLookupService
from apps.utils.exceptions import (
    ActionNotPermitted,
    BusinessLogicException,
    InvalidStatusTransition,
    ResourceNotFound,
)
from apps.utils.pagination import PageRequest
from .models import BulkOrder, BulkOrderItem, BulkOrderTimeline
from .permissions import can_reopen
from .signals import publish_status_changed

logger = logging.getLogger(__name__)

REQUIRED_CONTACT_FIELDS = ("name", "phone", "email", "buyer_type", "address")


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _order_pk(order_id):
    pk = _as_uuid(order_id)
    if pk is None:
        raise ResourceNotFound("Bulk order not found")
    return pk


class BulkOrderIntakeService:

    @staticmethod
    def _validate(data: dict) -> list:
        """
        Check required fields and line items; return the items with integer quantities.
        """
        if any(not data.get(field) for field in REQUIRED_CONTACT_FIELDS) or data.get("products") is None:
            raise BusinessLogicException("All fields are required", code="missing_fields")

        if data["buyer_type"] not in BulkOrder.BuyerType.values:
            raise BusinessLogicException("Invalid buyer type", code="invalid_buyer_type")

        items = data["products"]
        if not isinstance(items, (list, tuple)) or len(items) == 0:
            raise BusinessLogicException("At least one product must be selected", code="empty_products")

        cleaned = []
        for item in items:
            try:
                quantity = int(item.get("quantity"))
            except (AttributeError, TypeError, ValueError):
                quantity = 0
            if not isinstance(item, dict) or not item.get("product") or quantity < 1:
                raise BusinessLogicException(
                    "Each product must have valid product ID and quantity", code="invalid_line_item"
                )
            cleaned.append({**item, "quantity": quantity})
        return cleaned

    @staticmethod
    def _resolve_products(items) -> list:
        """
        All-or-nothing: every reference must exist before anything is written.
        """
        product_ids = []
        for item in items:
            product_id = _as_uuid(item["product"])
            if product_id is None:
                raise BusinessLogicException(
                    f"Product with ID {item['product']} not found", code="product_not_found"
                )
            product_ids.append(product_id)

        missing = ProductLookupService.find_missing(product_ids)
        if missing:
            raise BusinessLogicException(f"Product with ID {missing[0]} not found", code="product_not_found")
        return product_ids

    @staticmethod
    def submit(user, data: dict) -> BulkOrder:
        """
        Create a bulk order in state Requested for `user`.

        `data` keys: name, phone, email, buyer_type, address,
        products=[{product, quantity, size?}]
        """
        items = BulkOrderIntakeService._validate(data)
        product_ids = BulkOrderIntakeService._resolve_products(items)

        with transaction.atomic():
            order = BulkOrder.objects.create(
                user=user,
                name=data["name"].strip(),
                phone=data["phone"].strip(),
                email=data["email"].strip().lower(),
                buyer_type=data["buyer_type"],
                address=data["address"].strip(),
                status=BulkOrder.Status.REQUESTED,
            )

            BulkOrderItem.objects.bulk_create([
                BulkOrderItem(
                    order=order,
                    product_id=product_id,
                    quantity=item["quantity"],
                    size=(item.get("size") or "").strip(),
                )
                for product_id, item in zip(product_ids, items)
            ])
            # bulk_create skips save(), so the derived total is synced explicitly
            order.sync_total_quantity()

            BulkOrderTimeline.objects.create(
                order=order,
                status=order.status,
                note="Bulk order request submitted.",
                created_by=user,
            )

        logger.info(
            "Bulk order %s submitted by user %s (%d items, qty %d)",
            order.id, user.pk, len(product_ids), order.total_quantity,
            extra={"bulk_order_id": order.id, "user_id": user.pk},
        )
        return order


class BulkOrderReviewService:
    """
    Admin review of bulk orders.

    Only two forward transitions exist (approve, reject). Moving a reviewed
    order back to Requested is a separate, separately authorized reopen.
    Submitting the current status again only updates the annotations.
    """

    @staticmethod
    def _get_for_update(order_id) -> BulkOrder:
        try:
            return BulkOrder.objects.select_for_update().get(pk=_order_pk(order_id))
        except BulkOrder.DoesNotExist:
            raise ResourceNotFound("Bulk order not found")

    @classmethod
    def update_status(cls, order_id, status, *, admin, admin_notes=None, rejection_reason=None) -> BulkOrder:
        if status not in BulkOrder.Status.values:
            raise BusinessLogicException(
                "Invalid status. Must be 'Requested', 'Approved', or 'Rejected'", code="invalid_status"
            )

        if status == BulkOrder.Status.APPROVED:
            return cls.approve(order_id, admin=admin, admin_notes=admin_notes)
        if status == BulkOrder.Status.REJECTED:
            return cls.reject(
                order_id, admin=admin, rejection_reason=rejection_reason, admin_notes=admin_notes
            )
        return cls.reopen(order_id, admin=admin, admin_notes=admin_notes)

    @classmethod
    def approve(cls, order_id, *, admin, admin_notes=None) -> BulkOrder:
        return cls._transition(order_id, BulkOrder.Status.APPROVED, admin=admin, admin_notes=admin_notes)

    @classmethod
    def reject(cls, order_id, *, admin, rejection_reason=None, admin_notes=None) -> BulkOrder:
        return cls._transition(
            order_id,
            BulkOrder.Status.REJECTED,
            admin=admin,
            admin_notes=admin_notes,
            rejection_reason=rejection_reason,
        )

    @classmethod
    def reopen(cls, order_id, *, admin, admin_notes=None) -> BulkOrder:
        return cls._transition(order_id, BulkOrder.Status.REQUESTED, admin=admin, admin_notes=admin_notes)

    @classmethod
    def _transition(cls, order_id, target, *, admin, admin_notes=None, rejection_reason=None) -> BulkOrder:
        with transaction.atomic():
            order = cls._get_for_update(order_id)
            previous = order.status
            update_fields = ["updated_at"]

            if previous != target:
                if target == BulkOrder.Status.REQUESTED:
                    if not can_reopen(admin):
                        raise ActionNotPermitted("You are not allowed to reopen bulk orders")
                    order.approved_by = None
                    order.approved_at = None
                    order.rejection_reason = ""
                    update_fields += ["approved_by", "approved_at", "rejection_reason"]
                elif not order.can_transition_to(target):
                    raise InvalidStatusTransition(
                        f"Bulk order is already {previous} and cannot be moved to {target}"
                    )
                elif target == BulkOrder.Status.APPROVED:
                    order.approved_by = admin
                    order.approved_at = timezone.now()
                    order.rejection_reason = ""
                    update_fields += ["approved_by", "approved_at", "rejection_reason"]

                order.status = target
                update_fields.append("status")

            if target == BulkOrder.Status.REJECTED and rejection_reason:
                order.rejection_reason = rejection_reason.strip()
                update_fields.append("rejection_reason")

            if admin_notes:
                order.admin_notes = admin_notes.strip()
                update_fields.append("admin_notes")

            order.save(update_fields=list(dict.fromkeys(update_fields)))

            if previous != target:
                BulkOrderTimeline.objects.create(
                    order=order,
                    status=target,
                    note=f"{previous} -> {target} by {admin}",
                    created_by=admin,
                )
                transaction.on_commit(partial(
                    publish_status_changed, order, previous, admin_notes=admin_notes, changed_by=admin
                ))

        if previous != target:
            logger.info(
                "Bulk order %s moved %s -> %s by %s",
                order.id, previous, target, admin.pk,
                extra={"bulk_order_id": order.id, "user_id": admin.pk},
            )
        else:
            logger.info(
                "Bulk order %s annotations updated (status %s unchanged)", order.id, target,
                extra={"bulk_order_id": order.id, "user_id": admin.pk},
            )
        return order

    @staticmethod
    def delete(order_id, *, admin) -> None:
        deleted, _ = BulkOrder.objects.filter(pk=_order_pk(order_id)).delete()
        if not deleted:
            raise ResourceNotFound("Bulk order not found")

        logger.warning(
            "Bulk order %s permanently deleted by %s", order_id, admin.pk,
            extra={"bulk_order_id": order_id, "user_id": admin.pk},
        )


class BulkOrderQueryService:

    @staticmethod
    def base_queryset():
        return BulkOrder.objects.select_related("user", "approved_by").prefetch_related(
            Prefetch("items", queryset=BulkOrderItem.objects.select_related("product__category"))
        )

    @staticmethod
    def list_orders(*, user=None, status=None, page_request: PageRequest | None = None):
        """
        Newest submission first. `user` scopes to one requester; `status` is
        ignored unless it is a recognized value.

        Returns (orders, pagination dict).
        """
        page_request = page_request or PageRequest()
        qs = BulkOrderQueryService.base_queryset()

        if user is not None:
            qs = qs.filter(user=user)
        if status in BulkOrder.Status.values:
            qs = qs.filter(status=status)

        total = qs.count()
        orders = list(page_request.slice(qs.order_by("-submitted_at", "-created_at")))
        return orders, page_request.summary(total)

    @staticmethod
    def get_order_for_user(order_id, user) -> BulkOrder:
        """
        Owner-only lookup; someone else's order is reported as missing.
        """
        qs = BulkOrderQueryService.base_queryset().prefetch_related("timeline__created_by")
        try:
            return qs.get(pk=_order_pk(order_id), user=user)
        except BulkOrder.DoesNotExist:
            raise ResourceNotFound("Bulk order not found")

    @staticmethod
    def status_counts() -> dict:
        counts = {value: 0 for value in BulkOrder.Status.values}
        rows = BulkOrder.objects.order_by().values("status").annotate(count=Count("id"))
        for row in rows:
            counts[row["status"]] = row["count"]
        return counts

    @staticmethod
    def buyer_type_counts() -> dict:
        counts = {value: 0 for value in BulkOrder.BuyerType.values}
        rows = BulkOrder.objects.order_by().values("buyer_type").annotate(count=Count("id"))
        for row in rows:
            counts[row["buyer_type"]] = row["count"]
        return counts

    @staticmethod
    def analytics(now=None) -> dict:
        now = now or timezone.now()
        window_days = getattr(settings, "BULK_ORDER_RECENT_DAYS", 30)
        since = now - timedelta(days=window_days)

        status_counts = BulkOrderQueryService.status_counts()
        recent_orders = BulkOrder.objects.filter(submitted_at__gte=since).count()
        total_quantity = BulkOrder.objects.aggregate(total=Sum("total_quantity"))["total"] or 0

        return {
            "statusCounts": status_counts,
            "recentOrders": recent_orders,
            "totalQuantity": total_quantity,
            "buyerTypes": BulkOrderQueryService.buyer_type_counts(),
            "totalOrders": sum(status_counts.values()),
        }
