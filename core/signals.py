"""
Django signals for access revocation.

When a user's access is turned off, every refresh token issued to them is
blacklisted so that existing sessions cannot be renewed.
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from .models import User

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def revoke_tokens_on_deactivation(sender, instance, created, **kwargs):
    """
    Blacklist outstanding refresh tokens of an inactive user.

    Args:
        sender: The User model class
        instance: The User instance that was saved
        created: Boolean indicating if this is a new user
        **kwargs: Additional keyword arguments (``update_fields``, ``raw``)
    """
    if created or instance.is_active or kwargs.get('raw'):
        return

    update_fields = kwargs.get('update_fields')
    if update_fields is not None and 'is_active' not in update_fields:
        return

    revoked = 0
    for token in OutstandingToken.objects.filter(user=instance):
        _, was_created = BlacklistedToken.objects.get_or_create(token=token)
        if was_created:
            revoked += 1

    if revoked:
        logger.info(f"Revoked {revoked} refresh token(s) for deactivated user {instance.email} (ID: {instance.id})")
