from rest_framework.permissions import BasePermission


class IsAdmin(BasePermission):
    """
    Role ADMIN, staff or superuser.
    """
    message = "Admin permission required"

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.is_admin
        )
