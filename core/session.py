"""
Explicit session context.

Views build one SessionContext per request and hand it to the service
functions, so the services never reach for request-global state to find
out who is acting.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, and what they are allowed to do."""

    user: Optional[object] = None
    client_ip: Optional[str] = None

    @classmethod
    def from_request(cls, request):
        user = getattr(request, 'user', None)
        if user is not None and not user.is_authenticated:
            user = None
        return cls(user=user, client_ip=get_client_ip(request))

    @classmethod
    def for_user(cls, user):
        return cls(user=user)

    @property
    def is_authenticated(self):
        return self.user is not None

    @property
    def is_active_member(self):
        return self.is_authenticated and self.user.is_active

    @property
    def is_admin(self):
        return self.is_active_member and self.user.is_calendar_admin()

    @property
    def display_name(self):
        return self.user.display_name if self.user is not None else 'Anonymous'

    @property
    def actor(self):
        """Short identification for audit log lines."""
        if self.user is None:
            return f'anonymous (IP: {self.client_ip})'
        return f'{self.user.email} (ID: {self.user.pk}, IP: {self.client_ip})'


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    meta = getattr(request, 'META', {})
    x_forwarded_for = meta.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return meta.get('REMOTE_ADDR')
