from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'

    def ready(self):
        # Subscribes the buyer email to bulk order status changes
        import apps.notifications.receivers  # noqa: F401
