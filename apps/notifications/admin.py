# apps/notifications/admin.py
from django.contrib import admin, messages

from .models import EmailNotification, NotificationStatus
from .services import deliver_email_notification


@admin.register(EmailNotification)
class EmailNotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "event_key", "subject", "status", "attempts", "created_at", "sent_at")
    list_filter = ("event_key", "status")
    search_fields = ("recipient", "subject", "user__email")
    readonly_fields = (
        "user",
        "recipient",
        "subject",
        "body_html",
        "event_key",
        "data",
        "status",
        "attempts",
        "error_message",
        "sent_at",
        "created_at",
        "updated_at",
    )
    actions = ["resend"]

    def has_add_permission(self, request):
        return False

    @admin.action(description="Resend selected emails")
    def resend(self, request, queryset):
        sent = 0
        for notification in queryset.exclude(status=NotificationStatus.SENT):
            if deliver_email_notification(notification):
                sent += 1
        self.message_user(request, f"Resent {sent} email(s).", messages.SUCCESS)
