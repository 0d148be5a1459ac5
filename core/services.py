"""
Service layer for access requests, sign-in codes, users and bookings.

Every operation that depends on who is acting takes a SessionContext as its
first argument. Failures are raised as CalendarServiceError subclasses (or
InvalidRangeError for date ranges) and translated to HTTP by the views.
"""

import logging
import secrets
from collections import defaultdict
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .dates import as_date
from .exceptions import (
    AccessInactiveError,
    AccessRequestStateError,
    BookingDraftError,
    DuplicateAccessRequestError,
    InvalidOperationError,
    LoginCodeDeliveryError,
    LoginCodeError,
    PermissionDeniedError,
    RecordNotFoundError,
    SignInUnavailableError,
)
from .intervals import make_interval
from .models import AccessRequest, Booking, LoginCode, User
from .occurrences import expand, label_sort_key
from .validators import validate_avatar_image

logger = logging.getLogger(__name__)

LOGIN_CODE_DIGITS = 6


@dataclass
class ApprovalResult:
    access_request: AccessRequest
    user: User
    user_created: bool


def require_active_member(ctx):
    if not ctx.is_active_member:
        raise PermissionDeniedError('Access is not active for this account.')


def require_admin(ctx):
    if not ctx.is_admin:
        logger.warning(f"Admin-only action denied. Actor: {ctx.actor}")
        raise PermissionDeniedError(
            'You do not have permission to perform this action. Admin privileges required.'
        )


# ============================================================================
# Access requests
# ============================================================================

def submit_access_request(data):
    """
    Record a new registration request.

    Args:
        data: dict with email, first_name, last_name and optional phone,
            invite_code

    Returns:
        AccessRequest: The pending request

    Raises:
        DuplicateAccessRequestError: If a pending request exists for the email
    """
    email = data['email'].strip().lower()

    if AccessRequest.objects.filter(email=email, status=AccessRequest.STATUS_PENDING).exists():
        raise DuplicateAccessRequestError()

    try:
        with transaction.atomic():
            access_request = AccessRequest.objects.create(
                email=email,
                first_name=data['first_name'].strip(),
                last_name=data['last_name'].strip(),
                phone=(data.get('phone') or '').strip(),
                invite_code=(data.get('invite_code') or '').strip(),
            )
    except IntegrityError:
        # Concurrent submission for the same email
        raise DuplicateAccessRequestError()

    logger.info(f"Access request submitted. Request ID: {access_request.id}, Email: {email}")
    return access_request


def list_access_requests(ctx, status=None):
    require_admin(ctx)
    queryset = AccessRequest.objects.select_related('reviewed_by')
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-created_at')


def _get_access_request_for_update(request_id):
    try:
        return AccessRequest.objects.select_for_update().get(pk=request_id)
    except AccessRequest.DoesNotExist:
        raise RecordNotFoundError(f'Access request with ID {request_id} does not exist.')


def approve_access_request(ctx, request_id):
    """
    Approve a request and give the requester access.

    The existing user for the email is activated; if there is none, a member
    account is created. Approving an already approved request re-runs the
    activation, so a failed activation can be retried.

    Raises:
        PermissionDeniedError: If the actor is not an admin
        RecordNotFoundError: If the request does not exist
        AccessRequestStateError: If the request was rejected
    """
    require_admin(ctx)

    with transaction.atomic():
        access_request = _get_access_request_for_update(request_id)

        if access_request.status == AccessRequest.STATUS_REJECTED:
            raise AccessRequestStateError('Rejected requests cannot be approved.')

        access_request.status = AccessRequest.STATUS_APPROVED
        access_request.reviewed_at = timezone.now()
        access_request.reviewed_by = ctx.user
        access_request.save()

        user = User.objects.filter(email__iexact=access_request.email).first()
        user_created = user is None

        if user_created:
            user = User.objects.create_user(
                username=access_request.email[:150],
                email=access_request.email,
                first_name=access_request.first_name,
                last_name=access_request.last_name,
                phone_number=access_request.phone,
                role=User.ROLE_MEMBER,
            )
        elif not user.is_active:
            user.is_active = True
            user.save(update_fields=['is_active', 'updated_at'])

    logger.info(
        f"Access request approved. Request ID: {access_request.id}, "
        f"Email: {access_request.email}, User ID: {user.id}, "
        f"User created: {user_created}, Admin: {ctx.actor}"
    )
    return ApprovalResult(access_request=access_request, user=user, user_created=user_created)


def reject_access_request(ctx, request_id):
    require_admin(ctx)

    with transaction.atomic():
        access_request = _get_access_request_for_update(request_id)

        if not access_request.is_pending():
            raise AccessRequestStateError(
                f'Only pending requests can be rejected. This request is {access_request.status}.'
            )

        access_request.status = AccessRequest.STATUS_REJECTED
        access_request.reviewed_at = timezone.now()
        access_request.reviewed_by = ctx.user
        access_request.save()

    logger.info(
        f"Access request rejected. Request ID: {access_request.id}, "
        f"Email: {access_request.email}, Admin: {ctx.actor}"
    )
    return access_request


# ============================================================================
# Users
# ============================================================================

def list_users(ctx):
    require_admin(ctx)
    return User.objects.order_by('first_name', 'last_name', 'email')


def set_user_active(ctx, user_id, is_active):
    """
    Grant or remove a user's access.

    Raises:
        InvalidOperationError: If an admin tries to deactivate themselves
    """
    require_admin(ctx)

    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise RecordNotFoundError(f'User with ID {user_id} does not exist.')

    if not is_active and user.pk == ctx.user.pk:
        raise InvalidOperationError('You cannot deactivate your own account.')

    if user.is_active != is_active:
        user.is_active = is_active
        user.save(update_fields=['is_active', 'updated_at'])

    logger.info(
        f"User {'activated' if is_active else 'deactivated'}. "
        f"User: {user.email} (ID: {user.id}), Admin: {ctx.actor}"
    )
    return user


# ============================================================================
# Sign-in codes
# ============================================================================

def _find_user_for_sign_in(email):
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        raise SignInUnavailableError()
    if not user.is_active:
        raise AccessInactiveError()
    return user


def request_login_code(email, now=None):
    """
    Email a one-time sign-in code.

    Earlier unused codes for the user stop working. No account is created
    for unknown emails.

    Returns:
        LoginCode: The stored (hashed) code record

    Raises:
        SignInUnavailableError: If no user has this email
        AccessInactiveError: If the user's access is not active
        LoginCodeDeliveryError: If the email could not be sent (the new
            code is discarded)
    """
    now = now or timezone.now()
    user = _find_user_for_sign_in(email)

    code = f'{secrets.randbelow(10 ** LOGIN_CODE_DIGITS):0{LOGIN_CODE_DIGITS}d}'
    ttl_minutes = settings.LOGIN_CODE_TTL_MINUTES

    with transaction.atomic():
        LoginCode.objects.filter(user=user, consumed_at__isnull=True).delete()
        login_code = LoginCode.objects.create(
            user=user,
            code_hash=make_password(code),
            expires_at=now + timedelta(minutes=ttl_minutes),
        )

    try:
        send_mail(
            subject='Your Lakehouse Calendar sign-in code',
            message=(
                f'Your sign-in code is {code}\n\n'
                f'It expires in {ttl_minutes} minutes. '
                f'If you did not request it, you can ignore this email.'
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
        )
    except OSError as exc:
        # smtplib.SMTPException and socket errors are both OSError
        login_code.delete()
        raise LoginCodeDeliveryError() from exc

    logger.info(f"Sign-in code sent. User: {user.email} (ID: {user.id})")
    return login_code


def verify_login_code(email, code, now=None):
    """
    Redeem a one-time code.

    Returns:
        User: The signed-in user

    Raises:
        SignInUnavailableError / AccessInactiveError: As for request_login_code
        LoginCodeError: If the code is wrong, expired or out of attempts
    """
    now = now or timezone.now()
    user = _find_user_for_sign_in(email)
    failure = None

    with transaction.atomic():
        login_code = (
            LoginCode.objects.select_for_update()
            .filter(user=user, consumed_at__isnull=True)
            .order_by('-created_at')
            .first()
        )

        if login_code is None:
            failure = 'invalid'
        elif login_code.is_expired(now):
            failure = 'expired'
        elif login_code.attempts >= settings.LOGIN_CODE_MAX_ATTEMPTS:
            failure = 'too_many_attempts'
        elif not check_password((code or '').strip(), login_code.code_hash):
            login_code.attempts += 1
            login_code.save(update_fields=['attempts'])
            failure = 'invalid'
        else:
            login_code.consumed_at = now
            login_code.save(update_fields=['consumed_at'])

    if failure is not None:
        logger.warning(f"Sign-in code rejected. User: {user.email} (ID: {user.id}), Reason: {failure}")
        raise LoginCodeError(failure)

    logger.info(f"Sign-in code accepted. User: {user.email} (ID: {user.id})")
    return user


def prune_login_codes_queryset(now=None):
    """Codes that can never be redeemed again."""
    now = now or timezone.now()
    return LoginCode.objects.filter(Q(expires_at__lte=now) | Q(consumed_at__isnull=False))


# ============================================================================
# Profile
# ============================================================================

PROFILE_FIELDS = ('first_name', 'last_name', 'phone_number')


def update_profile(ctx, data):
    """
    Update the acting user's name and phone number.

    Unknown keys in ``data`` are ignored; email and role cannot be changed
    here.
    """
    require_active_member(ctx)
    user = ctx.user

    changed = []
    for field in PROFILE_FIELDS:
        if field in data:
            setattr(user, field, (data[field] or '').strip())
            changed.append(field)

    if changed:
        user.save()
        logger.info(f"Profile updated. User: {user.email} (ID: {user.id}), Fields: {', '.join(changed)}")
    return user


def store_avatar(ctx, uploaded_file):
    """
    Save a new avatar through the configured storage.

    Returns:
        str: Public URL of the stored image

    Raises:
        django.core.exceptions.ValidationError: If the file is not an
            acceptable image
    """
    require_active_member(ctx)
    validate_avatar_image(uploaded_file)

    user = ctx.user
    old_name = user.avatar.name if user.avatar else None

    user.avatar.save(uploaded_file.name, uploaded_file, save=True)

    if old_name and old_name != user.avatar.name:
        user.avatar.storage.delete(old_name)

    logger.info(f"Avatar updated. User: {user.email} (ID: {user.id}), Path: {user.avatar.name}")
    return user.avatar.url


# ============================================================================
# Bookings
# ============================================================================

def label_from_people(people):
    return ', '.join(person.display_name for person in people)


def create_booking(ctx, draft):
    """
    Create a booking from a validated draft.

    Args:
        ctx: SessionContext of the acting user
        draft: dict with start, end (exclusive), and optional label, notes,
            people, is_blocked

    Returns:
        Booking

    Raises:
        PermissionDeniedError: If the actor has no access, or a non-admin
            tries to block dates
        BookingDraftError: If there is neither a label nor anyone tagged
        InvalidRangeError: If end <= start
    """
    require_active_member(ctx)

    is_blocked = bool(draft.get('is_blocked', False))
    if is_blocked and not ctx.is_admin:
        raise PermissionDeniedError('Only admins can block dates.')

    people = list(draft.get('people') or [])
    label = (draft.get('label') or '').strip() or label_from_people(people)
    if not label:
        raise BookingDraftError()

    interval = make_interval(draft['start'], draft['end'])

    with transaction.atomic():
        booking = Booking(
            label=label,
            start=interval.start,
            end=interval.end,
            notes=draft.get('notes') or '',
            is_blocked=is_blocked,
            created_by=ctx.user,
        )
        booking.save()
        if people:
            booking.people.set(people)

    logger.info(
        f"Booking created. Booking ID: {booking.id}, Label: {booking.label}, "
        f"Range: [{booking.start}, {booking.end}), Blocked: {booking.is_blocked}, "
        f"Creator: {ctx.actor}"
    )
    return booking


def get_booking(booking_id):
    try:
        return Booking.objects.select_related('created_by').prefetch_related('people').get(pk=booking_id)
    except Booking.DoesNotExist:
        raise RecordNotFoundError(f'Booking with ID {booking_id} does not exist.')


def update_booking(ctx, booking_id, draft):
    """
    Replace the editable fields of a booking (admin only).

    Fields missing from ``draft`` keep their current values.
    """
    require_admin(ctx)
    booking = get_booking(booking_id)

    people = draft.get('people')
    label = draft.get('label', booking.label)
    if people is not None and not (label or '').strip():
        label = label_from_people(people)
    if not (label or '').strip():
        raise BookingDraftError()

    interval = make_interval(draft.get('start', booking.start), draft.get('end', booking.end))

    booking.label = label
    booking.start = interval.start
    booking.end = interval.end
    booking.notes = draft.get('notes', booking.notes) or ''
    booking.is_blocked = bool(draft.get('is_blocked', booking.is_blocked))

    with transaction.atomic():
        booking.save()
        if people is not None:
            booking.people.set(people)

    logger.info(
        f"Booking updated. Booking ID: {booking.id}, Label: {booking.label}, "
        f"Range: [{booking.start}, {booking.end}), Blocked: {booking.is_blocked}, "
        f"Admin: {ctx.actor}"
    )
    return booking


def delete_booking(ctx, booking_id):
    require_admin(ctx)
    booking = get_booking(booking_id)
    label = booking.label
    booking.delete()
    logger.info(f"Booking deleted. Booking ID: {booking_id}, Label: {label}, Admin: {ctx.actor}")


def bookings_in_window(window):
    """Bookings sharing at least one day with the half-open ``window``."""
    return (
        Booking.objects.filter(start__lt=window.end, end__gt=window.start)
        .select_related('created_by')
        .prefetch_related('people')
        .order_by('start', 'label', 'id')
    )


def calendar_days(bookings, window):
    """
    Per-day calendar grid for ``window``.

    Each booking contributes one occurrence per visible day it covers.
    Days nobody has booked are still listed, with no occurrences.

    Returns:
        list of dicts: {'date', 'occurrences', 'is_booked', 'is_blocked'}
    """
    occurrences_by_day = defaultdict(list)
    for booking in bookings:
        for occurrence in expand(booking, window=window):
            occurrences_by_day[occurrence.day].append(occurrence)

    days = []
    day = as_date(window.start)
    stop = as_date(window.end)
    while day < stop:
        occurrences = sorted(occurrences_by_day.get(day, []), key=label_sort_key)
        days.append({
            'date': day,
            'occurrences': occurrences,
            'is_booked': bool(occurrences),
            'is_blocked': any(o.is_blocked for o in occurrences),
        })
        day += timedelta(days=1)
    return days
