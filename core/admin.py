"""
Django admin configuration for the calendar models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import AccessRequest, Booking, LoginCode, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.

    Extends Django's UserAdmin with role, phone number and avatar.
    """

    list_display = [
        'email',
        'first_name',
        'last_name',
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'username',
        'first_name',
        'last_name',
    ]

    ordering = ['first_name', 'last_name', 'email']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': (
                'first_name',
                'last_name',
                'email',
                'phone_number',
                'avatar',
            )
        }),
        (_('Calendar Access'), {
            'fields': ('role', 'is_active')
        }),
        (_('Permissions'), {
            'fields': (
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'email',
                'first_name',
                'last_name',
                'password1',
                'password2',
                'role',
            ),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:  # Editing an existing object
            return self.readonly_fields
        return []


@admin.register(AccessRequest)
class AccessRequestAdmin(admin.ModelAdmin):
    """Admin interface for AccessRequest model."""

    list_display = [
        'email',
        'first_name',
        'last_name',
        'status',
        'created_at',
        'reviewed_by',
        'reviewed_at',
    ]

    list_filter = [
        'status',
        'created_at',
    ]

    search_fields = [
        'email',
        'first_name',
        'last_name',
        'invite_code',
    ]

    readonly_fields = ['created_at', 'reviewed_at', 'reviewed_by']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """
    Admin interface for Booking model.

    ``end`` is shown as stored (the day after the last occupied day);
    ``display_range`` shows the inclusive range.
    """

    list_display = [
        'label',
        'start',
        'end',
        'display_range',
        'is_blocked',
        'created_by',
        'created_at',
    ]

    list_filter = [
        'is_blocked',
        'start',
    ]

    search_fields = [
        'label',
        'notes',
        'created_by__email',
    ]

    filter_horizontal = ['people']

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['start', 'label']

    date_hierarchy = 'start'

    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('label', 'start', 'end', 'is_blocked')
        }),
        (_('Details'), {
            'fields': ('notes', 'people', 'created_by')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(LoginCode)
class LoginCodeAdmin(admin.ModelAdmin):
    """Read-only view of issued sign-in codes (hashes only)."""

    list_display = [
        'user',
        'created_at',
        'expires_at',
        'consumed_at',
        'attempts',
    ]

    list_filter = [
        'created_at',
    ]

    search_fields = [
        'user__email',
    ]

    readonly_fields = ['user', 'code_hash', 'created_at', 'expires_at', 'consumed_at', 'attempts']

    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False
