"""
API views for the Lakehouse Calendar.

Views validate input with serializers, build a SessionContext for the
caller and delegate to the service layer. Service errors are translated to
HTTP responses with a ``detail`` message.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import update_last_login
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from . import services
from .dates import parse_ymd
from .exceptions import (
    AccessInactiveError,
    CalendarServiceError,
    DuplicateAccessRequestError,
    InvalidRangeError,
    LoginCodeDeliveryError,
    LoginCodeError,
    PermissionDeniedError,
    RecordNotFoundError,
    SignInUnavailableError,
)
from .intervals import make_interval
from .models import AccessRequest
from .occurrences import bookings_for_day
from .permissions import IsActiveMember, IsCalendarAdmin
from .serializers import (
    AccessRequestCreateSerializer,
    AccessRequestSerializer,
    AvatarUploadSerializer,
    BookingDraftSerializer,
    BookingSerializer,
    CalendarResponseSerializer,
    LoginCodeRequestSerializer,
    LoginCodeVerifySerializer,
    ProfileUpdateSerializer,
    UserActiveSerializer,
    UserProfileSerializer,
    UserSummarySerializer,
)
from .session import SessionContext

User = get_user_model()
logger = logging.getLogger(__name__)


def service_error_status(exc):
    """HTTP status for a service-layer error."""
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, RecordNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, DuplicateAccessRequestError):
        return status.HTTP_409_CONFLICT
    # Checked before its parent: known but not yet approved
    if isinstance(exc, AccessInactiveError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, LoginCodeDeliveryError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, SignInUnavailableError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def service_error_response(exc):
    body = {'detail': exc.message}
    if isinstance(exc, LoginCodeError):
        body['reason'] = exc.reason
    return Response(body, status=service_error_status(exc))


def validation_error_response(exc, field=None):
    """400 response for a Django ValidationError raised by model validation."""
    if hasattr(exc, 'error_dict'):
        return Response(exc.message_dict, status=status.HTTP_400_BAD_REQUEST)
    if field:
        return Response({field: exc.messages}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'detail': ' '.join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)


def range_error_response():
    return Response(
        {'end_inclusive': ['End date must be on or after the start date.']},
        status=status.HTTP_400_BAD_REQUEST
    )


def parse_window(request):
    """
    Read the visible window from ``start_date``/``end_date`` query params.

    Both bounds are inclusive, the way a month grid shows them.

    Returns:
        tuple: (BookingInterval, start_date, end_date)

    Raises:
        ValueError: With a user-facing message if the params are missing,
            malformed, reversed or span too many days
    """
    start_date_str = request.query_params.get('start_date')
    end_date_str = request.query_params.get('end_date')

    if not start_date_str:
        raise ValueError('start_date parameter is required (format: YYYY-MM-DD)')
    if not end_date_str:
        raise ValueError('end_date parameter is required (format: YYYY-MM-DD)')

    try:
        start_date = parse_ymd(start_date_str)
    except ValueError:
        raise ValueError(f'Invalid start_date format: {start_date_str}. Use YYYY-MM-DD format.')
    try:
        end_date = parse_ymd(end_date_str)
    except ValueError:
        raise ValueError(f'Invalid end_date format: {end_date_str}. Use YYYY-MM-DD format.')

    if end_date < start_date:
        raise ValueError('end_date must be greater than or equal to start_date')

    max_days = settings.CALENDAR_MAX_WINDOW_DAYS
    if (end_date - start_date).days + 1 > max_days:
        raise ValueError(f'Date range cannot exceed {max_days} days. Please use a smaller date range.')

    window = make_interval(start_date, end_date + timedelta(days=1))
    return window, start_date, end_date


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


# ============================================================================
# Authentication
# ============================================================================

class AccessRequestCreateView(APIView):
    """
    API endpoint for requesting access to the calendar.

    POST /api/auth/register/
    Request body: {
        "email": "jeff@example.com",
        "first_name": "Jeff",
        "last_name": "Smith",
        "phone": "+1 555 010 2000",    # Optional
        "invite_code": "LAKE2026"      # Optional
    }

    Success response (201): the pending access request

    Error responses:
    - 400: Invalid data
    - 409: A pending request already exists for this email
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'access_request'

    def post(self, request, *args, **kwargs):
        serializer = AccessRequestCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        ctx = SessionContext.from_request(request)

        try:
            access_request = services.submit_access_request(serializer.validated_data)
        except DuplicateAccessRequestError as e:
            logger.info(
                f"Duplicate access request. "
                f"Email: {serializer.validated_data['email']}, IP: {ctx.client_ip}"
            )
            return service_error_response(e)
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(
            AccessRequestSerializer(access_request).data,
            status=status.HTTP_201_CREATED
        )


class LoginCodeRequestView(APIView):
    """
    API endpoint that emails a one-time sign-in code.

    POST /api/auth/login/
    Request body: {"email": "zack@example.com"}

    Success response (200): {"detail": "...", "expires_in_minutes": 10}

    Error responses:
    - 400: Invalid email format
    - 403: Account exists but access is not active yet
    - 404: Sign-in is not available for this email
    - 429: Rate limit exceeded
    - 503: The sign-in email could not be sent
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login_code'

    def post(self, request, *args, **kwargs):
        serializer = LoginCodeRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email'].lower().strip()
        ctx = SessionContext.from_request(request)

        try:
            services.request_login_code(email)
        except SignInUnavailableError as e:
            logger.warning(
                f"Sign-in code requested for unavailable account. "
                f"Email: {email}, Reason: {type(e).__name__}, IP: {ctx.client_ip}"
            )
            return service_error_response(e)
        except LoginCodeDeliveryError as e:
            logger.error(
                f"Sign-in code email failed. Email: {email}, "
                f"Error: {e.__cause__!r}, IP: {ctx.client_ip}"
            )
            return service_error_response(e)

        return Response({
            'detail': 'Check your email for a sign-in code.',
            'expires_in_minutes': settings.LOGIN_CODE_TTL_MINUTES,
        }, status=status.HTTP_200_OK)


class LoginCodeVerifyView(APIView):
    """
    API endpoint for exchanging an emailed code for JWT tokens.

    POST /api/auth/verify/
    Request body: {"email": "zack@example.com", "code": "123456"}

    Success response (200):
    {
        "access": "<jwt_access_token>",
        "refresh": "<jwt_refresh_token>",
        "user": {...profile...}
    }

    Error responses:
    - 400: Wrong, expired or exhausted code
    - 403: Access is not active
    - 404: Sign-in is not available for this email
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'verify_code'

    def post(self, request, *args, **kwargs):
        serializer = LoginCodeVerifySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email'].lower().strip()
        ctx = SessionContext.from_request(request)

        try:
            user = services.verify_login_code(email, serializer.validated_data['code'])
        except CalendarServiceError as e:
            logger.warning(
                f"Failed sign-in. Email: {email}, "
                f"Reason: {getattr(e, 'reason', type(e).__name__)}, IP: {ctx.client_ip}"
            )
            return service_error_response(e)

        update_last_login(None, user)
        logger.info(f"Successful sign-in. Email: {email}, IP: {ctx.client_ip}")

        response_data = issue_tokens(user)
        response_data['user'] = UserProfileSerializer(user, context={'request': request}).data
        return Response(response_data, status=status.HTTP_200_OK)


class ThrottledTokenRefreshView(TokenRefreshView):
    """
    Token refresh with rate limiting.

    Rotation and blacklisting of the old refresh token follow SIMPLE_JWT.
    """
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'refresh'


class SessionView(APIView):
    """
    Current session.

    GET /api/auth/session/
    Success response (200): {"user": {...profile...}}
    Error responses:
    - 401: Not signed in
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response({
            'user': UserProfileSerializer(request.user, context={'request': request}).data
        }, status=status.HTTP_200_OK)


# ============================================================================
# Profile
# ============================================================================

class UserProfileView(APIView):
    """
    API endpoint for retrieving and updating the signed-in user's profile.

    GET /api/profile/
    PUT /api/profile/
    PATCH /api/profile/
    Body: {"first_name": "...", "last_name": "...", "phone_number": "..."}

    Error responses:
    - 401: Missing, invalid, or expired JWT token
    - 400: Invalid data
    - 403: Access is not active
    """
    permission_classes = [IsAuthenticated, IsActiveMember]

    def get(self, request, *args, **kwargs):
        serializer = UserProfileSerializer(request.user, context={'request': request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        return self._update_profile(request, partial=False)

    def patch(self, request, *args, **kwargs):
        return self._update_profile(request, partial=True)

    def _update_profile(self, request, partial=False):
        serializer = ProfileUpdateSerializer(data=request.data, partial=partial)
        if not serializer.is_valid():
            logger.warning(
                f"Profile update validation failed. "
                f"User ID: {request.user.id}, Errors: {serializer.errors}"
            )
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        ctx = SessionContext.from_request(request)
        try:
            user = services.update_profile(ctx, serializer.validated_data)
        except CalendarServiceError as e:
            return service_error_response(e)
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(
            UserProfileSerializer(user, context={'request': request}).data,
            status=status.HTTP_200_OK
        )


class AvatarUploadView(APIView):
    """
    API endpoint for uploading a profile picture.

    POST /api/profile/avatar/  (multipart/form-data, field "avatar")

    Success response (200): {"avatar_url": "http://.../media/avatars/1/....jpg"}

    Error responses:
    - 400: Not an image, unsupported format, or larger than 5MB
    """
    permission_classes = [IsAuthenticated, IsActiveMember]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, *args, **kwargs):
        serializer = AvatarUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        ctx = SessionContext.from_request(request)
        try:
            avatar_url = services.store_avatar(ctx, serializer.validated_data['avatar'])
        except CalendarServiceError as e:
            return service_error_response(e)
        except DjangoValidationError as e:
            return validation_error_response(e, field='avatar')

        return Response(
            {'avatar_url': request.build_absolute_uri(avatar_url)},
            status=status.HTTP_200_OK
        )


class PeopleListView(APIView):
    """
    Active users that can be tagged on a booking.

    GET /api/people/
    """
    permission_classes = [IsAuthenticated, IsActiveMember]

    def get(self, request, *args, **kwargs):
        people = User.objects.filter(is_active=True).order_by('first_name', 'last_name', 'email')
        serializer = UserSummarySerializer(people, many=True, context={'request': request})
        return Response(serializer.data, status=status.HTTP_200_OK)


# ============================================================================
# Bookings and calendar
# ============================================================================

class BookingListCreateView(APIView):
    """
    API endpoint for listing and creating bookings.

    GET /api/bookings/?start_date=2026-02-01&end_date=2026-02-28
    Returns every booking sharing at least one day with the window.

    POST /api/bookings/
    Request body: {
        "start": "2026-02-06",
        "end_inclusive": "2026-02-08",     # last night at the house
        "label": "Family",                 # Optional if people are tagged
        "notes": "Bringing the boat",      # Optional
        "people": [2, 3],                  # Optional
        "is_blocked": false                # Admins only
    }

    Error responses:
    - 400: Invalid data, end before start, or neither label nor people
    - 401: Not signed in
    - 403: Access not active, or a member tried to block dates
    """
    permission_classes = [IsAuthenticated, IsActiveMember]

    def get(self, request, *args, **kwargs):
        try:
            window, start_date, end_date = parse_window(request)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        bookings = services.bookings_in_window(window)
        serializer = BookingSerializer(bookings, many=True, context={'request': request})
        return Response({
            'start_date': start_date,
            'end_date': end_date,
            'count': len(serializer.data),
            'bookings': serializer.data,
        }, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        serializer = BookingDraftSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        ctx = SessionContext.from_request(request)
        try:
            booking = services.create_booking(ctx, serializer.validated_data)
        except PermissionDeniedError as e:
            logger.warning(f"Booking creation denied. Reason: {e.message}, Actor: {ctx.actor}")
            return service_error_response(e)
        except CalendarServiceError as e:
            return service_error_response(e)
        except InvalidRangeError:
            return range_error_response()
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(
            BookingSerializer(booking, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )


class CalendarView(APIView):
    """
    API endpoint for the calendar grid.

    GET /api/calendar/?start_date=2026-02-01&end_date=2026-02-28

    Both dates are inclusive and the range cannot exceed
    CALENDAR_MAX_WINDOW_DAYS (90 by default). Every day in the range is
    listed, with one occurrence per booking covering it.

    Success response (200):
    {
        "start_date": "2026-02-01",
        "end_date": "2026-02-28",
        "days": [
            {
                "date": "2026-02-08",
                "occurrences": [
                    {"date": "2026-02-08", "booking_id": 3, "label": "Cousins", "is_blocked": false},
                    {"date": "2026-02-08", "booking_id": 2, "label": "Family", "is_blocked": false}
                ],
                "is_booked": true,
                "is_blocked": false
            },
            ...
        ]
    }
    """
    permission_classes = [IsAuthenticated, IsActiveMember]

    def get(self, request, *args, **kwargs):
        try:
            window, start_date, end_date = parse_window(request)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        bookings = list(services.bookings_in_window(window))
        days = services.calendar_days(bookings, window)

        serializer = CalendarResponseSerializer({
            'start_date': start_date,
            'end_date': end_date,
            'days': days,
        })
        return Response(serializer.data, status=status.HTTP_200_OK)


class CalendarDayView(APIView):
    """
    Who is at the house on one day.

    GET /api/calendar/day/2026-02-08/

    Returns the bookings covering the day ordered by label, each with its
    inclusive end for display. An empty list means nobody is booked.
    """
    permission_classes = [IsAuthenticated, IsActiveMember]

    def get(self, request, day, *args, **kwargs):
        try:
            day = parse_ymd(day)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        window = make_interval(day, day + timedelta(days=1))
        bookings = bookings_for_day(services.bookings_in_window(window), day)
        serializer = BookingSerializer(bookings, many=True, context={'request': request})
        return Response({
            'date': day,
            'bookings': serializer.data,
        }, status=status.HTTP_200_OK)


# ============================================================================
# Admin
# ============================================================================

class AdminAccessRequestListView(APIView):
    """
    GET /api/admin/access-requests/?status=pending

    ``status`` is optional; without it every request is listed, newest first.
    """
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def get(self, request, *args, **kwargs):
        status_filter = request.query_params.get('status')
        valid_statuses = [choice[0] for choice in AccessRequest.STATUS_CHOICES]
        if status_filter and status_filter not in valid_statuses:
            return Response(
                {'error': f'Invalid status: {status_filter}. Valid values: {", ".join(valid_statuses)}'},
                status=status.HTTP_400_BAD_REQUEST
            )

        ctx = SessionContext.from_request(request)
        access_requests = services.list_access_requests(ctx, status=status_filter)
        return Response(
            AccessRequestSerializer(access_requests, many=True).data,
            status=status.HTTP_200_OK
        )


class AdminAccessRequestApproveView(APIView):
    """
    Approve an access request and activate (or create) the user.

    POST /api/admin/access-requests/<id>/approve/

    Success response (200):
    {"access_request": {...}, "user": {...}, "user_created": true}

    Error responses:
    - 400: Request was already rejected
    - 403: Not an admin
    - 404: Request does not exist
    """
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def post(self, request, pk, *args, **kwargs):
        ctx = SessionContext.from_request(request)
        try:
            result = services.approve_access_request(ctx, pk)
        except CalendarServiceError as e:
            logger.warning(f"Access request approval failed. Request ID: {pk}, Reason: {e.message}, Admin: {ctx.actor}")
            return service_error_response(e)

        return Response({
            'access_request': AccessRequestSerializer(result.access_request).data,
            'user': UserProfileSerializer(result.user, context={'request': request}).data,
            'user_created': result.user_created,
        }, status=status.HTTP_200_OK)


class AdminAccessRequestRejectView(APIView):
    """POST /api/admin/access-requests/<id>/reject/ (pending requests only)."""
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def post(self, request, pk, *args, **kwargs):
        ctx = SessionContext.from_request(request)
        try:
            access_request = services.reject_access_request(ctx, pk)
        except CalendarServiceError as e:
            logger.warning(f"Access request rejection failed. Request ID: {pk}, Reason: {e.message}, Admin: {ctx.actor}")
            return service_error_response(e)

        return Response(AccessRequestSerializer(access_request).data, status=status.HTTP_200_OK)


class AdminUserListView(APIView):
    """GET /api/admin/users/"""
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def get(self, request, *args, **kwargs):
        ctx = SessionContext.from_request(request)
        users = services.list_users(ctx)
        return Response(
            UserProfileSerializer(users, many=True, context={'request': request}).data,
            status=status.HTTP_200_OK
        )


class AdminUserActiveView(APIView):
    """
    Grant or remove a user's access.

    POST /api/admin/users/<id>/active/
    Request body: {"is_active": false}

    Error responses:
    - 400: Admin tried to deactivate their own account
    - 404: User does not exist
    """
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def post(self, request, pk, *args, **kwargs):
        serializer = UserActiveSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        ctx = SessionContext.from_request(request)
        try:
            user = services.set_user_active(ctx, pk, serializer.validated_data['is_active'])
        except CalendarServiceError as e:
            return service_error_response(e)

        return Response(
            UserProfileSerializer(user, context={'request': request}).data,
            status=status.HTTP_200_OK
        )


class AdminBookingDetailView(APIView):
    """
    Admin management of a single booking.

    GET    /api/admin/bookings/<id>/
    PUT    /api/admin/bookings/<id>/   (start and end_inclusive required;
                                        omitted label, notes, people and
                                        is_blocked are cleared)
    PATCH  /api/admin/bookings/<id>/   (only the given fields change)
    DELETE /api/admin/bookings/<id>/

    Error responses:
    - 400: Invalid data or end before start
    - 403: Not an admin
    - 404: Booking does not exist
    """
    permission_classes = [IsAuthenticated, IsCalendarAdmin]

    def get(self, request, pk, *args, **kwargs):
        try:
            booking = services.get_booking(pk)
        except RecordNotFoundError as e:
            return service_error_response(e)
        return Response(BookingSerializer(booking, context={'request': request}).data)

    def put(self, request, pk, *args, **kwargs):
        return self._update_booking(request, pk, partial=False)

    def patch(self, request, pk, *args, **kwargs):
        return self._update_booking(request, pk, partial=True)

    def _update_booking(self, request, pk, partial=False):
        try:
            booking = services.get_booking(pk)
        except RecordNotFoundError as e:
            return service_error_response(e)

        serializer = BookingDraftSerializer(booking, data=request.data, partial=partial)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        draft = dict(serializer.validated_data)
        if not partial:
            draft.setdefault('label', '')
            draft.setdefault('notes', '')
            draft.setdefault('people', [])
            draft.setdefault('is_blocked', False)

        ctx = SessionContext.from_request(request)
        try:
            booking = services.update_booking(ctx, pk, draft)
        except CalendarServiceError as e:
            return service_error_response(e)
        except InvalidRangeError:
            return range_error_response()
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(BookingSerializer(booking, context={'request': request}).data)

    def delete(self, request, pk, *args, **kwargs):
        ctx = SessionContext.from_request(request)
        try:
            services.delete_booking(ctx, pk)
        except CalendarServiceError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
