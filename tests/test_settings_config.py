"""
Configuration checks for the lakehouse_calendar project.

These verify the settings the rest of the suite relies on: the custom user
model, JWT refresh rotation with blacklisting, the scoped throttles and the
media store used for avatars.
"""

from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TestCase


class InstalledAppsTestCase(TestCase):

    def test_core_app_is_loaded(self):
        self.assertTrue(apps.is_installed('core'))

    def test_third_party_apps_are_loaded(self):
        for app in ('rest_framework', 'rest_framework_simplejwt.token_blacklist', 'corsheaders'):
            with self.subTest(app=app):
                self.assertTrue(apps.is_installed(app), f'{app} is not installed')

    def test_custom_user_model(self):
        self.assertEqual(settings.AUTH_USER_MODEL, 'core.User')
        self.assertEqual(get_user_model()._meta.label, 'core.User')


class DatabaseTestCase(TestCase):

    def test_database_connection_succeeds(self):
        connection.ensure_connection()
        self.assertTrue(connection.is_usable())

    def test_booking_table_exists(self):
        self.assertIn('core_booking', connection.introspection.table_names())


class AuthSettingsTestCase(TestCase):

    def test_refresh_tokens_rotate_and_blacklist(self):
        self.assertTrue(settings.SIMPLE_JWT['ROTATE_REFRESH_TOKENS'])
        self.assertTrue(settings.SIMPLE_JWT['BLACKLIST_AFTER_ROTATION'])

    def test_jwt_is_default_authentication(self):
        self.assertIn(
            'rest_framework_simplejwt.authentication.JWTAuthentication',
            settings.REST_FRAMEWORK['DEFAULT_AUTHENTICATION_CLASSES']
        )

    def test_throttle_scopes_configured(self):
        rates = settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']
        for scope in ('access_request', 'login_code', 'verify_code', 'refresh'):
            with self.subTest(scope=scope):
                self.assertIn(scope, rates)

    def test_login_code_limits(self):
        self.assertGreater(settings.LOGIN_CODE_TTL_MINUTES, 0)
        self.assertGreater(settings.LOGIN_CODE_MAX_ATTEMPTS, 0)


class MediaSettingsTestCase(TestCase):

    def test_media_configured(self):
        self.assertEqual(settings.MEDIA_URL, '/media/')
        self.assertTrue(str(settings.MEDIA_ROOT))

    def test_avatar_limit_fits_upload_limit(self):
        self.assertLessEqual(settings.AVATAR_MAX_BYTES, settings.DATA_UPLOAD_MAX_MEMORY_SIZE)
