"""
Models for the Lakehouse Calendar.

Users request access, admins approve them, and approved users book the
house for date ranges. Booking ranges are stored half-open: ``end`` is the
day after the last occupied day.
"""

from datetime import date

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .dates import as_date, format_display_date
from .exceptions import InvalidRangeError
from .intervals import BookingInterval, make_interval, to_inclusive_end
from .validators import validate_avatar_image, validate_phone_number

BLOCKED_LABEL_PREFIX = 'Blocked: '


def avatar_upload_path(instance, filename):
    """
    Generate upload path for avatars.

    Path format: avatars/{user_id}/{timestamp}.{ext}
    A fresh name per upload keeps cached copies of the old avatar from
    being served for the new one.

    Args:
        instance: User model instance
        filename: Original filename

    Returns:
        str: Upload path
    """
    user_id = instance.id if instance.id else 'temp'
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'jpg'
    stamp = int(timezone.now().timestamp() * 1000)
    return f'avatars/{user_id}/{stamp}.{ext}'


def ensure_blocked_prefix(label):
    """
    Mark an administrative block in its label.

    Labels that already start with "blocked" (any case) are kept as-is.
    """
    label = (label or '').strip()
    if not label:
        return label
    if label.lower().startswith('blocked'):
        return label
    return f'{BLOCKED_LABEL_PREFIX}{label}'


class User(AbstractUser):
    """
    Calendar user.

    Additional fields:
    - email: Required, unique email address (sign-in codes are sent here)
    - phone_number: Optional phone number with validation
    - avatar: Optional profile picture
    - role: Either 'admin' or 'member'
    - created_at / updated_at: Timestamps

    ``is_active`` is the access flag: admins deactivate a user to remove
    their access to the calendar.
    """

    ROLE_ADMIN = 'admin'
    ROLE_MEMBER = 'member'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_MEMBER, 'Member'),
    ]

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. One-time sign-in codes are sent to this address.')
    )

    phone_number = models.CharField(
        _('phone number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional. Enter phone number in international format.')
    )

    avatar = models.ImageField(
        _('avatar'),
        upload_to=avatar_upload_path,
        blank=True,
        null=True,
        validators=[validate_avatar_image],
        help_text=_('Optional. Profile picture (max 5MB, formats: jpg, png, webp).')
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=ROLE_CHOICES,
        default=ROLE_MEMBER,
        help_text=_('Admins manage users, access requests and all entries.')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
        help_text=_('Timestamp when the account was created.')
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
        help_text=_('Timestamp when the account was last updated.')
    )

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['first_name', 'last_name', 'email']
        indexes = [
            models.Index(fields=['email'], name='user_email_idx'),
            models.Index(fields=['role'], name='user_role_idx'),
            models.Index(fields=['is_active'], name='user_is_active_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def display_name(self):
        """Full name if known, otherwise the email, otherwise 'Member'."""
        name = ' '.join(
            part for part in [(self.first_name or '').strip(), (self.last_name or '').strip()]
            if part
        )
        return name or self.email or 'Member'

    def is_calendar_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_staff

    def clean(self):
        super().clean()

        if self.email:
            self.email = self.email.strip().lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

    def save(self, *args, **kwargs):
        """
        Normalize email and validate.

        Creation skips full_clean so that duplicate emails surface as the
        database IntegrityError. Targeted saves (``update_fields``, e.g.
        ``last_login``) skip it as well.
        """
        if self.email:
            self.email = self.email.strip().lower()

        if self.pk is not None and not kwargs.get('update_fields'):
            self.full_clean()

        super().save(*args, **kwargs)


class AccessRequest(models.Model):
    """
    A pending registration awaiting admin review.

    Distinct from a User: approving a request activates (or creates) the
    user account for its email.
    """

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    email = models.EmailField(
        _('email address'),
        blank=False,
        null=False,
        help_text=_('Email the requester will sign in with.')
    )

    first_name = models.CharField(
        _('first name'),
        max_length=150,
        blank=False,
        null=False,
    )

    last_name = models.CharField(
        _('last name'),
        max_length=150,
        blank=False,
        null=False,
    )

    phone = models.CharField(
        _('phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
    )

    invite_code = models.CharField(
        _('invite code'),
        max_length=64,
        blank=True,
        default='',
        help_text=_('Optional code shared by an existing member.')
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    reviewed_at = models.DateTimeField(
        _('reviewed at'),
        blank=True,
        null=True,
    )

    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='reviewed_access_requests',
        help_text=_('Admin who approved or rejected the request')
    )

    class Meta:
        verbose_name = _('access request')
        verbose_name_plural = _('access requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='access_request_email_idx'),
            models.Index(fields=['status'], name='access_request_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['email'],
                name='unique_pending_access_request_per_email',
                condition=models.Q(status='pending')
            )
        ]

    def __str__(self):
        return f'{self.email} ({self.status})'

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'.strip()

    def is_pending(self):
        return self.status == self.STATUS_PENDING

    def clean(self):
        super().clean()

        if self.email:
            self.email = self.email.strip().lower()

        if not self.first_name or not self.first_name.strip():
            raise ValidationError({
                'first_name': _('First name cannot be empty.')
            })

        if not self.last_name or not self.last_name.strip():
            raise ValidationError({
                'last_name': _('Last name cannot be empty.')
            })

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        self.full_clean()
        super().save(*args, **kwargs)


class Booking(models.Model):
    """
    A stay (or an administrative block) at the house.

    Fields:
    - label: Display name, may name one or more people
    - start: First occupied day (inclusive)
    - end: Day after the last occupied day (exclusive)
    - notes: Optional free text
    - created_by: User who submitted the entry
    - is_blocked: Administrative block rather than a guest stay
    - people: Users tagged on the booking

    Overlapping bookings are allowed so everyone can see who is there.
    """

    label = models.CharField(
        _('label'),
        max_length=200,
        blank=False,
        null=False,
        help_text=_('Who is staying, e.g. "Zack" or "Cousins"')
    )

    start = models.DateField(
        _('start'),
        blank=False,
        null=False,
        help_text=_('First occupied day')
    )

    end = models.DateField(
        _('end (exclusive)'),
        blank=False,
        null=False,
        help_text=_('Day after the last occupied day')
    )

    notes = models.TextField(
        _('notes'),
        blank=True,
        default='',
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_bookings',
        help_text=_('User who created the entry')
    )

    is_blocked = models.BooleanField(
        _('blocked'),
        default=False,
        help_text=_('Dates blocked by an admin (maintenance, private event, etc.)')
    )

    people = models.ManyToManyField(
        User,
        blank=True,
        related_name='tagged_bookings',
        help_text=_('Users tagged on this booking')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('booking')
        verbose_name_plural = _('bookings')
        ordering = ['start', 'label']
        indexes = [
            models.Index(fields=['start'], name='booking_start_idx'),
            models.Index(fields=['end'], name='booking_end_idx'),
            models.Index(fields=['is_blocked'], name='booking_is_blocked_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end__gt=models.F('start')),
                name='booking_end_after_start'
            )
        ]

    def __str__(self):
        return f'{self.label} ({self.start} to {self.end})'

    @property
    def interval(self):
        return BookingInterval(start=as_date(self.start), end=as_date(self.end))

    @property
    def end_inclusive(self):
        return to_inclusive_end(self.end)

    @property
    def display_range(self):
        return (
            f'{format_display_date(self.start)} → '
            f'{format_display_date(self.end_inclusive)}'
        )

    @property
    def created_by_name(self):
        return self.created_by.display_name if self.created_by_id else ''

    def clean(self):
        """
        Validate label and date range, and prefix blocked labels.

        Raises:
            ValidationError: If the label is empty or the range does not
                cover at least one day
        """
        super().clean()

        if not self.label or not self.label.strip():
            raise ValidationError({
                'label': _('Label cannot be empty.')
            })

        self.label = self.label.strip()
        self.notes = (self.notes or '').strip()

        if self.is_blocked:
            self.label = ensure_blocked_prefix(self.label)

            # clean_fields() checked the label before the prefix was added
            max_length = self._meta.get_field('label').max_length
            if len(self.label) > max_length:
                raise ValidationError({
                    'label': _(
                        'Label is too long for a blocked entry. Use at most '
                        '%(limit)d characters.'
                    ) % {'limit': max_length - len(BLOCKED_LABEL_PREFIX)}
                })

        if isinstance(self.start, date) and isinstance(self.end, date):
            try:
                make_interval(self.start, self.end)
            except InvalidRangeError:
                raise ValidationError({
                    'end': _('End date must be after the start date.')
                })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class LoginCode(models.Model):
    """
    One-time sign-in code emailed to a user.

    Only a hash of the code is stored. A code is usable once, until it
    expires or the attempt limit is reached.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='login_codes',
    )

    code_hash = models.CharField(
        _('code hash'),
        max_length=128,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    expires_at = models.DateTimeField(
        _('expires at'),
    )

    consumed_at = models.DateTimeField(
        _('consumed at'),
        blank=True,
        null=True,
    )

    attempts = models.PositiveSmallIntegerField(
        _('attempts'),
        default=0,
    )

    class Meta:
        verbose_name = _('login code')
        verbose_name_plural = _('login codes')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='login_code_user_created_idx'),
            models.Index(fields=['expires_at'], name='login_code_expires_at_idx'),
        ]

    def __str__(self):
        return f'Login code for {self.user_id} (expires {self.expires_at})'

    def is_expired(self, now=None):
        now = now or timezone.now()
        return now >= self.expires_at

    def is_consumed(self):
        return self.consumed_at is not None
