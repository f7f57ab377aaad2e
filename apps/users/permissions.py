"""Permission classes shared by the API apps."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


class IsPlatformAdmin(permissions.BasePermission):
    """
    Only platform admins: role='admin', staff or superusers.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return hasattr(user, "is_platform_admin") and user.is_platform_admin()
