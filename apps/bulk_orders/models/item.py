from django.core.validators import MinValueValidator
from django.db import models

from apps.catalog.models import Product
from .order import BulkOrder

__all__ = ["BulkOrderItem"]


class BulkOrderItem(models.Model):
    order = models.ForeignKey(BulkOrder, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="bulk_order_items")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    size = models.CharField(max_length=10, blank=True, default="")

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity}x {self.product_id}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        self.order.sync_total_quantity()

    def delete(self, *args, **kwargs):
        order = self.order
        result = super().delete(*args, **kwargs)
        order.sync_total_quantity()
        return result
