"""
Test suite for the Booking, AccessRequest and User models.
"""

from datetime import date

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from core.models import AccessRequest, Booking, ensure_blocked_prefix

User = get_user_model()


class BookingModelBasicTests(TestCase):
    """Test basic Booking model creation and fields."""

    def setUp(self):
        self.zack = User.objects.create_user(
            username='zack',
            email='zack@example.com',
            password='testpass123',
            first_name='Zack',
            last_name='Miller',
            role=User.ROLE_ADMIN
        )

    def test_booking_creation(self):
        booking = Booking.objects.create(
            label='Zack',
            start=date(2026, 1, 16),
            end=date(2026, 1, 19),
            created_by=self.zack
        )

        self.assertIsNotNone(booking.id)
        self.assertEqual(booking.end_inclusive, date(2026, 1, 18))
        self.assertEqual(booking.interval.days, 3)
        self.assertEqual(booking.display_range, '01/16/2026 → 01/18/2026')
        self.assertEqual(booking.created_by_name, 'Zack Miller')

    def test_label_and_notes_are_trimmed(self):
        booking = Booking.objects.create(
            label='  Family  ',
            notes='  Bring the boat  ',
            start=date(2026, 2, 6),
            end=date(2026, 2, 9)
        )
        self.assertEqual(booking.label, 'Family')
        self.assertEqual(booking.notes, 'Bring the boat')

    def test_empty_label_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            Booking.objects.create(label='   ', start=date(2026, 2, 6), end=date(2026, 2, 9))
        self.assertIn('label', ctx.exception.message_dict)

    def test_end_equal_to_start_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            Booking.objects.create(label='Family', start=date(2026, 2, 6), end=date(2026, 2, 6))
        self.assertIn('end', ctx.exception.message_dict)
        self.assertEqual(ctx.exception.message_dict['end'], ['End date must be after the start date.'])

    def test_end_before_start_rejected(self):
        with self.assertRaises(ValidationError):
            Booking.objects.create(label='Family', start=date(2026, 2, 6), end=date(2026, 2, 1))

    def test_database_constraint_enforces_range(self):
        booking = Booking.objects.create(label='Family', start=date(2026, 2, 6), end=date(2026, 2, 9))
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Booking.objects.filter(pk=booking.pk).update(end=date(2026, 2, 6))

    def test_overlapping_bookings_allowed(self):
        Booking.objects.create(label='Family', start=date(2026, 2, 6), end=date(2026, 2, 9))
        Booking.objects.create(label='Cousins', start=date(2026, 2, 8), end=date(2026, 2, 13))
        self.assertEqual(Booking.objects.count(), 2)

    def test_created_by_is_optional(self):
        booking = Booking.objects.create(label='Guests', start=date(2026, 3, 1), end=date(2026, 3, 2))
        self.assertEqual(booking.created_by_name, '')

    def test_people_can_be_tagged(self):
        jeff = User.objects.create_user(username='jeff', email='jeff@example.com', first_name='Jeff')
        booking = Booking.objects.create(label='Jeff', start=date(2026, 3, 1), end=date(2026, 3, 4))
        booking.people.set([jeff, self.zack])
        self.assertEqual(set(jeff.tagged_bookings.all()), {booking})


class BlockedBookingTests(TestCase):
    """Blocked entries carry a visible prefix."""

    def test_blocked_label_gets_prefix(self):
        booking = Booking.objects.create(
            label='Maintenance',
            start=date(2026, 2, 20),
            end=date(2026, 2, 24),
            is_blocked=True
        )
        self.assertEqual(booking.label, 'Blocked: Maintenance')

    def test_existing_prefix_not_doubled(self):
        booking = Booking.objects.create(
            label='BLOCKED - dock repair',
            start=date(2026, 2, 20),
            end=date(2026, 2, 24),
            is_blocked=True
        )
        self.assertEqual(booking.label, 'BLOCKED - dock repair')

    def test_resaving_keeps_single_prefix(self):
        booking = Booking.objects.create(
            label='Maintenance',
            start=date(2026, 2, 20),
            end=date(2026, 2, 24),
            is_blocked=True
        )
        booking.save()
        self.assertEqual(booking.label, 'Blocked: Maintenance')

    def test_prefixed_label_must_fit_column(self):
        with self.assertRaises(ValidationError) as ctx:
            Booking.objects.create(
                label='x' * 200,
                start=date(2026, 2, 1),
                end=date(2026, 2, 2),
                is_blocked=True
            )
        self.assertIn('label', ctx.exception.message_dict)
        self.assertIn('191 characters', ctx.exception.message_dict['label'][0])
        self.assertFalse(Booking.objects.exists())

    def test_longest_allowed_blocked_label(self):
        booking = Booking.objects.create(
            label='x' * 191,
            start=date(2026, 2, 1),
            end=date(2026, 2, 2),
            is_blocked=True
        )
        booking.refresh_from_db()
        self.assertEqual(len(booking.label), 200)

    def test_long_guest_label_keeps_full_length(self):
        booking = Booking.objects.create(
            label='x' * 200,
            start=date(2026, 2, 1),
            end=date(2026, 2, 2)
        )
        self.assertEqual(len(booking.label), 200)

    def test_helper_leaves_empty_labels_alone(self):
        self.assertEqual(ensure_blocked_prefix(''), '')


class AccessRequestModelTests(TestCase):

    def test_email_is_normalized(self):
        request = AccessRequest.objects.create(
            email='  Jeff@Example.COM ',
            first_name='Jeff',
            last_name='Miller'
        )
        self.assertEqual(request.email, 'jeff@example.com')
        self.assertTrue(request.is_pending())
        self.assertEqual(request.full_name, 'Jeff Miller')

    def test_names_required(self):
        with self.assertRaises(ValidationError):
            AccessRequest.objects.create(email='jeff@example.com', first_name=' ', last_name='Miller')

    def test_one_pending_request_per_email(self):
        AccessRequest.objects.create(email='jeff@example.com', first_name='Jeff', last_name='Miller')
        with self.assertRaises((ValidationError, IntegrityError)):
            with transaction.atomic():
                AccessRequest.objects.create(email='jeff@example.com', first_name='Jeff', last_name='Miller')

    def test_new_request_allowed_after_rejection(self):
        first = AccessRequest.objects.create(email='jeff@example.com', first_name='Jeff', last_name='Miller')
        first.status = AccessRequest.STATUS_REJECTED
        first.save()
        AccessRequest.objects.create(email='jeff@example.com', first_name='Jeff', last_name='Miller')
        self.assertEqual(AccessRequest.objects.filter(email='jeff@example.com').count(), 2)


class UserModelTests(TestCase):

    def test_display_name_falls_back_to_email(self):
        user = User.objects.create_user(username='rob', email='rob@example.com')
        self.assertEqual(user.display_name, 'rob@example.com')

    def test_display_name_uses_full_name(self):
        user = User.objects.create_user(
            username='jeff', email='jeff@example.com', first_name='Jeff', last_name='Miller'
        )
        self.assertEqual(user.display_name, 'Jeff Miller')

    def test_email_lowercased_on_save(self):
        user = User.objects.create_user(username='zack', email='Zack@Example.com')
        self.assertEqual(user.email, 'zack@example.com')

    def test_calendar_admin_roles(self):
        member = User.objects.create_user(username='m', email='m@example.com')
        admin = User.objects.create_user(username='a', email='a@example.com', role=User.ROLE_ADMIN)
        staff = User.objects.create_user(username='s', email='s@example.com', is_staff=True)
        self.assertFalse(member.is_calendar_admin())
        self.assertTrue(admin.is_calendar_admin())
        self.assertTrue(staff.is_calendar_admin())

    def test_invalid_phone_rejected_on_update(self):
        user = User.objects.create_user(username='jeff', email='jeff@example.com')
        user.phone_number = '12345'
        with self.assertRaises(ValidationError):
            user.save()
