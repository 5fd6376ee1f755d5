from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from apps.utils.models import TimestampedModel

__all__ = ["BulkOrder"]


class BulkOrder(TimestampedModel):
    """
    One bulk-purchase inquiry, reviewed manually by an admin.

    Contact fields are a snapshot taken at submission time and do not follow
    later edits to the requester's profile.
    """

    class Status(models.TextChoices):
        REQUESTED = "Requested", "Requested"
        APPROVED = "Approved", "Approved"
        REJECTED = "Rejected", "Rejected"

    class BuyerType(models.TextChoices):
        SHOP = "Shop", "Shop"
        SOLO = "Solo", "Solo"
        WHOLESALE = "Wholesale", "Wholesale"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bulk_orders",
    )

    # Contact snapshot
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    email = models.EmailField()
    address = models.TextField()
    buyer_type = models.CharField(max_length=20, choices=BuyerType.choices)

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.REQUESTED, db_index=True
    )
    admin_notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")

    # Always the sum of item quantities, see save() and sync_total_quantity()
    total_quantity = models.PositiveIntegerField(default=0, editable=False)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="approved_bulk_orders",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["-submitted_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="bulk_order_user_status_idx"),
            models.Index(fields=["status", "-submitted_at"], name="bulk_order_status_sub_idx"),
        ]
        permissions = [
            ("reopen_bulkorder", "Can reopen a reviewed bulk order"),
        ]

    def __str__(self):
        return f"{self.id} [{self.status}]"

    @property
    def is_terminal(self):
        return self.status in (self.Status.APPROVED, self.Status.REJECTED)

    def can_transition_to(self, target):
        """
        Forward moves only: Requested -> Approved | Rejected.
        """
        return not self.is_terminal and target in (
            self.Status.APPROVED,
            self.Status.REJECTED,
        )

    def compute_total_quantity(self) -> int:
        if self._state.adding:
            return 0
        return self.items.aggregate(total=Sum("quantity"))["total"] or 0

    def sync_total_quantity(self) -> int:
        """
        Recompute from the stored items without touching other columns.
        """
        self.total_quantity = self.compute_total_quantity()
        type(self).objects.filter(pk=self.pk).update(total_quantity=self.total_quantity)
        return self.total_quantity

    def save(self, *args, **kwargs):
        self.total_quantity = self.compute_total_quantity()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_quantity" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total_quantity"]
        super().save(*args, **kwargs)
