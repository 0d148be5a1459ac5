"""
Serializers for access requests, sign-in, profiles and bookings.
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model

from .exceptions import InvalidRangeError
from .intervals import make_interval, to_exclusive_end
from .models import AccessRequest, Booking
from .validators import validate_phone_number

User = get_user_model()

DATE_INPUT_FORMATS = ['%Y-%m-%d']


def absolute_media_url(file_field, request):
    """Full URL for a stored file, or None when nothing is stored."""
    if not file_field:
        return None
    if request is not None:
        return request.build_absolute_uri(file_field.url)
    return file_field.url


# ============================================================================
# Access request and sign-in serializers
# ============================================================================

class AccessRequestCreateSerializer(serializers.Serializer):
    """
    Serializer for the public registration form.

    Fields:
    - email: Required, the address sign-in codes will be sent to
    - first_name / last_name: Required
    - phone: Optional, validated format
    - invite_code: Optional
    """

    email = serializers.EmailField(required=True)
    first_name = serializers.CharField(required=True, max_length=150)
    last_name = serializers.CharField(required=True, max_length=150)
    phone = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=20,
        validators=[validate_phone_number]
    )
    invite_code = serializers.CharField(required=False, allow_blank=True, max_length=64)

    def validate_email(self, value):
        return value.strip().lower()


class AccessRequestSerializer(serializers.ModelSerializer):
    """Access request as shown to admins."""

    full_name = serializers.CharField(read_only=True)
    reviewed_by_email = serializers.SerializerMethodField()

    class Meta:
        model = AccessRequest
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'phone',
            'invite_code',
            'status',
            'created_at',
            'reviewed_at',
            'reviewed_by_email',
        ]
        read_only_fields = fields

    def get_reviewed_by_email(self, obj):
        return obj.reviewed_by.email if obj.reviewed_by_id else None


class LoginCodeRequestSerializer(serializers.Serializer):
    """
    Serializer for requesting a one-time sign-in code.

    Only the email is checked here. Whether sign-in is available for it is
    decided in the view.
    """
    email = serializers.EmailField(
        required=True,
        help_text='Email address of an approved user'
    )


class LoginCodeVerifySerializer(serializers.Serializer):
    """Serializer for exchanging an emailed code for tokens."""

    email = serializers.EmailField(required=True)
    code = serializers.RegexField(
        r'^\d{6}$',
        required=True,
        error_messages={'invalid': 'Enter the 6-digit code from the email.'},
        help_text='6-digit code from the sign-in email'
    )


# ============================================================================
# User serializers
# ============================================================================

class UserSummarySerializer(serializers.ModelSerializer):
    """Minimal user representation for tagging people on bookings."""

    display_name = serializers.CharField(read_only=True)
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'display_name', 'email', 'avatar_url']
        read_only_fields = fields

    def get_avatar_url(self, obj):
        return absolute_media_url(obj.avatar, self.context.get('request'))


class UserProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for user profile retrieval.

    Excludes sensitive fields (password, permissions). ``is_admin`` tells the
    client whether to show admin tools; ``avatar_url`` is the full URL of the
    stored avatar or null.
    """

    display_name = serializers.CharField(read_only=True)
    is_admin = serializers.SerializerMethodField()
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'display_name',
            'phone_number',
            'role',
            'is_active',
            'is_admin',
            'avatar_url',
            'created_at',
        ]
        read_only_fields = fields

    def get_is_admin(self, obj):
        return obj.is_active and obj.is_calendar_admin()

    def get_avatar_url(self, obj):
        return absolute_media_url(obj.avatar, self.context.get('request'))


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Serializer for profile updates (PUT/PATCH).

    Only names and phone number can be changed here. Email, role and access
    are managed by admins; unknown keys are ignored.
    """

    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone_number = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=20,
        validators=[validate_phone_number]
    )


class AvatarUploadSerializer(serializers.Serializer):
    avatar = serializers.ImageField(required=True)


class UserActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField(required=True)


# ============================================================================
# Booking serializers
# ============================================================================

class BookingSerializer(serializers.ModelSerializer):
    """
    Booking representation for lists, details and the day view.

    Fields:
    - start: First occupied day
    - end: Day after the last occupied day (stored form)
    - end_inclusive: Last occupied day (date picker form)
    - display_range: "MM/DD/YYYY → MM/DD/YYYY" with the inclusive end
    - people: Tagged users
    - created_by_name: Display name of whoever created the entry
    """

    start = serializers.DateField(read_only=True)
    end = serializers.DateField(read_only=True)
    end_inclusive = serializers.DateField(read_only=True)
    display_range = serializers.CharField(read_only=True)
    created_by_name = serializers.CharField(read_only=True)
    people = UserSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'label',
            'start',
            'end',
            'end_inclusive',
            'display_range',
            'notes',
            'is_blocked',
            'people',
            'created_by',
            'created_by_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BookingDraftSerializer(serializers.Serializer):
    """
    Serializer for the booking form.

    The form sends the last occupied day as ``end_inclusive``; validation
    converts it to the stored exclusive ``end`` exactly once. Pass the
    existing booking as ``instance`` for partial updates so that a missing
    bound is taken from it.
    """

    start = serializers.DateField(required=True, input_formats=DATE_INPUT_FORMATS)
    end_inclusive = serializers.DateField(required=True, input_formats=DATE_INPUT_FORMATS)
    label = serializers.CharField(required=False, allow_blank=True, max_length=200)
    notes = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    people = serializers.PrimaryKeyRelatedField(
        many=True,
        required=False,
        queryset=User.objects.filter(is_active=True)
    )
    is_blocked = serializers.BooleanField(required=False)

    def validate(self, attrs):
        instance = self.instance

        start = attrs.get('start', instance.start if instance is not None else None)
        if 'end_inclusive' in attrs:
            end = to_exclusive_end(attrs.pop('end_inclusive'))
        else:
            end = instance.end if instance is not None else None

        if start is None or end is None:
            raise serializers.ValidationError('Both a start and an end date are required.')

        try:
            interval = make_interval(start, end)
        except InvalidRangeError:
            raise serializers.ValidationError({
                'end_inclusive': ['End date must be on or after the start date.']
            })

        attrs['start'] = interval.start
        attrs['end'] = interval.end
        return attrs


class DayOccurrenceSerializer(serializers.Serializer):
    """One booking drawn on one calendar day."""

    date = serializers.DateField(source='day')
    booking_id = serializers.IntegerField()
    label = serializers.CharField()
    is_blocked = serializers.BooleanField()


class CalendarDaySerializer(serializers.Serializer):
    """
    Serializer for a single day's calendar data.

    Fields:
    - date: Date string (YYYY-MM-DD)
    - occurrences: Bookings covering the day, ordered by label
    - is_booked: True if anyone is there that day
    - is_blocked: True if an admin blocked the day
    """

    date = serializers.DateField()
    occurrences = DayOccurrenceSerializer(many=True, read_only=True)
    is_booked = serializers.BooleanField(read_only=True)
    is_blocked = serializers.BooleanField(read_only=True)


class CalendarResponseSerializer(serializers.Serializer):
    """
    Top-level serializer for calendar response.

    ``start_date`` and ``end_date`` echo the requested window, both
    inclusive.
    """

    start_date = serializers.DateField()
    end_date = serializers.DateField()
    days = CalendarDaySerializer(many=True, read_only=True)
