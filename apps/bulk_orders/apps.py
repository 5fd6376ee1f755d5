# apps/bulk_orders/apps.py

from django.apps import AppConfig


class BulkOrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bulk_orders"
    verbose_name = "Bulk Orders"
