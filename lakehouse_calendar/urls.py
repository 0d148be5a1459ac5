"""
URL configuration for the lakehouse_calendar project.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenBlacklistView

from core.views import (
    AccessRequestCreateView,
    AdminAccessRequestApproveView,
    AdminAccessRequestListView,
    AdminAccessRequestRejectView,
    AdminBookingDetailView,
    AdminUserActiveView,
    AdminUserListView,
    AvatarUploadView,
    BookingListCreateView,
    CalendarDayView,
    CalendarView,
    LoginCodeRequestView,
    LoginCodeVerifyView,
    PeopleListView,
    SessionView,
    ThrottledTokenRefreshView,
    UserProfileView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/register/', AccessRequestCreateView.as_view(), name='access_request_create'),
    path('api/auth/login/', LoginCodeRequestView.as_view(), name='login_code_request'),
    path('api/auth/verify/', LoginCodeVerifyView.as_view(), name='login_code_verify'),
    path('api/auth/logout/', TokenBlacklistView.as_view(), name='user_logout'),
    path('api/auth/refresh/', ThrottledTokenRefreshView.as_view(), name='token_refresh'),
    path('api/auth/session/', SessionView.as_view(), name='session'),

    # Profile endpoints
    path('api/profile/', UserProfileView.as_view(), name='user_profile'),
    path('api/profile/avatar/', AvatarUploadView.as_view(), name='avatar_upload'),
    path('api/people/', PeopleListView.as_view(), name='people_list'),

    # Calendar endpoints
    path('api/bookings/', BookingListCreateView.as_view(), name='booking_list_create'),
    path('api/calendar/', CalendarView.as_view(), name='calendar'),
    path('api/calendar/day/<str:day>/', CalendarDayView.as_view(), name='calendar_day'),

    # Admin endpoints
    path('api/admin/access-requests/', AdminAccessRequestListView.as_view(), name='admin_access_request_list'),
    path('api/admin/access-requests/<int:pk>/approve/', AdminAccessRequestApproveView.as_view(), name='admin_access_request_approve'),
    path('api/admin/access-requests/<int:pk>/reject/', AdminAccessRequestRejectView.as_view(), name='admin_access_request_reject'),
    path('api/admin/users/', AdminUserListView.as_view(), name='admin_user_list'),
    path('api/admin/users/<int:pk>/active/', AdminUserActiveView.as_view(), name='admin_user_active'),
    path('api/admin/bookings/<int:pk>/', AdminBookingDetailView.as_view(), name='admin_booking_detail'),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
