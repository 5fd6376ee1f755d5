from rest_framework.permissions import BasePermission

REOPEN_PERMISSION = "bulk_orders.reopen_bulkorder"


def can_reopen(user) -> bool:
    """
    Moving a reviewed order back to Requested needs more than plain admin rights.
    """
    return bool(user and user.is_active and user.has_perm(REOPEN_PERMISSION))


class CanReopenBulkOrder(BasePermission):
    message = "You are not allowed to reopen bulk orders"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and can_reopen(request.user))
