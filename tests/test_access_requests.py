"""
Test suite for the access request flow.

Test Coverage:
- Public registration creates a pending request
- Duplicate pending requests are rejected with 409
- Admin listing, approval and rejection
- Approval activates an existing user or creates a member account
- Non-admins cannot review requests
"""

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.models import AccessRequest
from core.services import approve_access_request
from core.session import SessionContext
from core.exceptions import AccessRequestStateError, PermissionDeniedError

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='zack@example.com',
        email='zack@example.com',
        first_name='Zack',
        last_name='Miller',
        role=User.ROLE_ADMIN
    )


@pytest.fixture
def member_user(db):
    return User.objects.create_user(
        username='jeff@example.com',
        email='jeff@example.com',
        first_name='Jeff',
        last_name='Miller',
        role=User.ROLE_MEMBER
    )


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def pending_request(db):
    return AccessRequest.objects.create(
        email='sam@example.com',
        first_name='Sam',
        last_name='Lake',
        phone='+1 555 010 2000'
    )


def registration_payload(**overrides):
    data = {
        'email': 'Sam@Example.com',
        'first_name': 'Sam',
        'last_name': 'Lake',
        'phone': '+1 555 010 2000',
        'invite_code': 'LAKE2026',
    }
    data.update(overrides)
    return data


# ============================================================================
# 1. REGISTRATION
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    def test_registration_creates_pending_request(self, api_client):
        response = api_client.post(reverse('access_request_create'), registration_payload(), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'pending'
        assert response.data['email'] == 'sam@example.com'
        assert AccessRequest.objects.filter(email='sam@example.com', status='pending').count() == 1

    def test_registration_does_not_create_user(self, api_client):
        api_client.post(reverse('access_request_create'), registration_payload(), format='json')
        assert not User.objects.filter(email='sam@example.com').exists()

    def test_duplicate_pending_request_returns_409(self, api_client, pending_request):
        response = api_client.post(reverse('access_request_create'), registration_payload(), format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert 'already exists' in response.data['detail']
        assert AccessRequest.objects.filter(email='sam@example.com').count() == 1

    @pytest.mark.parametrize('field', ['email', 'first_name', 'last_name'])
    def test_required_fields(self, api_client, field):
        payload = registration_payload()
        payload.pop(field)
        response = api_client.post(reverse('access_request_create'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert field in response.data

    def test_invalid_phone_rejected(self, api_client):
        response = api_client.post(
            reverse('access_request_create'),
            registration_payload(phone='call me'),
            format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone' in response.data

    def test_optional_fields_may_be_omitted(self, api_client):
        payload = registration_payload()
        payload.pop('phone')
        payload.pop('invite_code')
        response = api_client.post(reverse('access_request_create'), payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED


# ============================================================================
# 2. ADMIN REVIEW
# ============================================================================

@pytest.mark.django_db
class TestAdminReview:

    def test_admin_lists_requests(self, admin_client, pending_request):
        response = admin_client.get(reverse('admin_access_request_list'))

        assert response.status_code == status.HTTP_200_OK
        assert [r['email'] for r in response.data] == ['sam@example.com']

    def test_list_filters_by_status(self, admin_client, pending_request):
        response = admin_client.get(reverse('admin_access_request_list'), {'status': 'approved'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data == []

    def test_invalid_status_filter(self, admin_client):
        response = admin_client.get(reverse('admin_access_request_list'), {'status': 'maybe'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_approve_creates_member(self, admin_client, admin_user, pending_request):
        url = reverse('admin_access_request_approve', args=[pending_request.id])
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user_created'] is True
        assert response.data['access_request']['status'] == 'approved'
        assert response.data['access_request']['reviewed_by_email'] == admin_user.email

        user = User.objects.get(email='sam@example.com')
        assert user.is_active
        assert user.role == User.ROLE_MEMBER
        assert user.first_name == 'Sam'
        assert not user.has_usable_password()

    def test_approve_activates_existing_user(self, admin_client, pending_request):
        existing = User.objects.create_user(
            username='sam', email='sam@example.com', is_active=False
        )
        url = reverse('admin_access_request_approve', args=[pending_request.id])
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user_created'] is False
        existing.refresh_from_db()
        assert existing.is_active
        assert User.objects.filter(email='sam@example.com').count() == 1

    def test_approve_is_idempotent(self, admin_client, pending_request):
        url = reverse('admin_access_request_approve', args=[pending_request.id])
        admin_client.post(url)
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user_created'] is False
        assert User.objects.filter(email='sam@example.com').count() == 1

    def test_reject_pending_request(self, admin_client, pending_request):
        url = reverse('admin_access_request_reject', args=[pending_request.id])
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'rejected'
        assert not User.objects.filter(email='sam@example.com').exists()

    def test_rejected_request_cannot_be_approved(self, admin_client, pending_request):
        admin_client.post(reverse('admin_access_request_reject', args=[pending_request.id]))
        response = admin_client.post(reverse('admin_access_request_approve', args=[pending_request.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email='sam@example.com').exists()

    def test_approved_request_cannot_be_rejected(self, admin_client, pending_request):
        admin_client.post(reverse('admin_access_request_approve', args=[pending_request.id]))
        response = admin_client.post(reverse('admin_access_request_reject', args=[pending_request.id]))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_request_returns_404(self, admin_client):
        response = admin_client.post(reverse('admin_access_request_approve', args=[9999]))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_member_cannot_review(self, member_user, pending_request):
        client = APIClient()
        client.force_authenticate(user=member_user)

        assert client.get(reverse('admin_access_request_list')).status_code == status.HTTP_403_FORBIDDEN
        response = client.post(reverse('admin_access_request_approve', args=[pending_request.id]))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        pending_request.refresh_from_db()
        assert pending_request.is_pending()

    def test_anonymous_cannot_review(self, api_client, pending_request):
        response = api_client.get(reverse('admin_access_request_list'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestApprovalService:
    """The service enforces the same rules without going through HTTP."""

    def test_member_context_is_denied(self, member_user, pending_request):
        with pytest.raises(PermissionDeniedError):
            approve_access_request(SessionContext.for_user(member_user), pending_request.id)

    def test_rejected_request_raises(self, admin_user, pending_request):
        pending_request.status = AccessRequest.STATUS_REJECTED
        pending_request.save()
        with pytest.raises(AccessRequestStateError):
            approve_access_request(SessionContext.for_user(admin_user), pending_request.id)
