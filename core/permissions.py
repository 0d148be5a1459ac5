"""
Custom permission classes for the Lakehouse Calendar.
"""

from rest_framework import permissions


class IsActiveMember(permissions.BasePermission):
    """
    Permission class that allows only users whose access is active.

    Deactivated users keep their account (and may still hold a valid access
    token until it expires) but can no longer read or change the calendar.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsActiveMember]
    """

    message = 'Access is not active for this account. Ask an admin to approve it.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        return request.user.is_active


class IsCalendarAdmin(permissions.BasePermission):
    """
    Permission class that allows only calendar admins to access the endpoint.

    A calendar admin is an active user with role 'admin', or a staff user.
    Returns 403 Forbidden for members.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsCalendarAdmin]
    """

    message = 'You do not have permission to perform this action. Admin privileges required.'

    def has_permission(self, request, view):
        """
        Check if user is authenticated, active and an admin.

        Args:
            request: HTTP request object
            view: View being accessed

        Returns:
            bool: True if user is a calendar admin, False otherwise
        """
        # User must be authenticated
        if not request.user or not request.user.is_authenticated:
            return False

        if not request.user.is_active:
            return False

        return request.user.is_calendar_admin()
