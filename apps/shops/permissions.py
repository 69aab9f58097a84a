from rest_framework import permissions

from apps.accounts.models import UserRole


class IsBackOffice(permissions.BasePermission):
    """
    Permission: Logged-in admin, operator or field agent.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated
            and (user.is_admin or user.role in (UserRole.OPERATOR, UserRole.AGENT))
        )


class IsAdminRole(permissions.BasePermission):
    """
    Permission: User must be an admin.
    """

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)
