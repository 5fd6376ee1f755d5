from django.contrib import admin
from .models import BulkOrder, BulkOrderItem, BulkOrderTimeline


class BulkOrderItemInline(admin.TabularInline):
    model = BulkOrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'size')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class BulkOrderTimelineInline(admin.TabularInline):
    model = BulkOrderTimeline
    extra = 0
    readonly_fields = ('timestamp', 'status', 'note', 'created_by')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BulkOrder)
class BulkOrderAdmin(admin.ModelAdmin):
    """
    Read-only view; status changes go through the review API so that
    transitions, timeline rows and buyer notifications stay consistent.
    """
    list_display = ('id', 'name', 'email', 'buyer_type', 'status', 'total_quantity', 'submitted_at')
    list_filter = ('status', 'buyer_type', 'submitted_at')
    search_fields = ('id', 'name', 'email', 'phone', 'user__email')
    inlines = [BulkOrderItemInline, BulkOrderTimelineInline]

    readonly_fields = (
        'id', 'user', 'name', 'phone', 'email', 'address', 'buyer_type',
        'status', 'admin_notes', 'rejection_reason', 'total_quantity',
        'approved_by', 'approved_at', 'submitted_at', 'created_at', 'updated_at',
    )

    fieldsets = (
        ('Request', {
            'fields': ('id', 'user', 'status', 'buyer_type', 'total_quantity', 'submitted_at')
        }),
        ('Contact Snapshot', {
            'fields': ('name', 'phone', 'email', 'address')
        }),
        ('Review', {
            'fields': ('admin_notes', 'rejection_reason', 'approved_by', 'approved_at')
        }),
        ('System Data', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False
