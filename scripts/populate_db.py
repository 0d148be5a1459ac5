import os
import sys
import django
import random
from datetime import date, timedelta
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lakehouse_calendar.settings')
django.setup()

from core.intervals import to_exclusive_end
from core.models import AccessRequest, Booking, User

fake = Faker()

SAMPLE_USERS = [
    # email, first name, last name, role, active
    ('zack@example.com', 'Zack', 'Miller', User.ROLE_ADMIN, True),
    ('jeff@example.com', 'Jeff', 'Miller', User.ROLE_MEMBER, True),
    ('rob@example.com', 'Rob', 'Turner', User.ROLE_MEMBER, False),
]

SAMPLE_BOOKINGS = [
    # label, start, last occupied day, blocked
    ('Zack', date(2026, 1, 16), date(2026, 1, 18), False),
    ('Family', date(2026, 2, 6), date(2026, 2, 8), False),
    ('Cousins', date(2026, 2, 8), date(2026, 2, 11), False),
    ('Maintenance', date(2026, 2, 20), date(2026, 2, 22), True),
]


def create_users(num_members=5):
    print(f"Creating sample users and {num_members} extra members...")

    users = {}
    for email, first_name, last_name, role, is_active in SAMPLE_USERS:
        user, _ = User.objects.get_or_create(
            email=email,
            defaults={
                'username': email,
                'first_name': first_name,
                'last_name': last_name,
                'role': role,
                'is_active': is_active,
            }
        )
        user.set_unusable_password()
        user.save()
        users[first_name] = user

    members = []
    for _ in range(num_members):
        email = fake.unique.email()
        user = User.objects.create_user(
            username=email,
            email=email,
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            role=User.ROLE_MEMBER,
        )
        members.append(user)

    print(f"Created {len(users) + len(members)} users.")
    return users, members


def create_access_requests(num_requests=3):
    print("Creating pending access requests...")
    requests = []
    for _ in range(num_requests):
        requests.append(AccessRequest.objects.create(
            email=fake.unique.email(),
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            invite_code=random.choice(['', 'LAKE2026']),
        ))
    print(f"Created {len(requests)} access requests.")
    return requests


def create_bookings(users, members):
    print("Creating bookings...")
    admin = users['Zack']
    bookings = []

    for label, start, last_day, is_blocked in SAMPLE_BOOKINGS:
        booking = Booking.objects.create(
            label=label,
            start=start,
            end=to_exclusive_end(last_day),
            is_blocked=is_blocked,
            created_by=admin,
        )
        if label == 'Zack':
            booking.people.set([admin])
        bookings.append(booking)

    # A few random weekends for the extra members
    for member in members:
        start = date(2026, random.randint(3, 9), random.randint(1, 25))
        nights = random.randint(1, 4)
        booking = Booking.objects.create(
            label=member.display_name,
            start=start,
            end=start + timedelta(days=nights),
            notes=fake.sentence() if random.random() < 0.5 else '',
            created_by=member,
        )
        booking.people.set([member])
        bookings.append(booking)

    print(f"Created {len(bookings)} bookings.")
    return bookings


def main():
    print("Starting database population...")

    users, members = create_users(num_members=5)
    create_access_requests(num_requests=3)
    create_bookings(users, members)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
