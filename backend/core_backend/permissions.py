"""
Role gates for the POS API.

Services re-check these as preconditions; the permission classes only stop
obviously unauthorized requests before any work is done.
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from core_backend.context import ADMIN_ROLES, MANAGER_ROLES


class IsPOSStaff(BasePermission):
    """Any authenticated staff member of the tenant."""

    def has_permission(self, request, view):
        return bool(request.user and getattr(request.user, "is_authenticated", False))


class IsManagerOrHigher(IsPOSStaff):
    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.role in MANAGER_ROLES


class IsAdminOrHigher(IsPOSStaff):
    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.role in ADMIN_ROLES


class ReadOnlyOrManager(IsPOSStaff):
    """Staff may read; catalog writes need a manager."""

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        if request.method in SAFE_METHODS:
            return True
        return request.user.role in MANAGER_ROLES
