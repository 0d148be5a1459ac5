"""
Field validators for users and access requests.
"""

import re

from django.conf import settings
from django.core.exceptions import ValidationError

AVATAR_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp']
AVATAR_CONTENT_TYPES = ['image/jpeg', 'image/png', 'image/webp']


def validate_phone_number(value):
    """
    Validate phone number format.

    Accepts international formats with optional country codes, spaces,
    dashes, and parentheses. Requires at least 10 digits.

    Valid formats:
    - +1-234-567-8900
    - +1 (234) 567-8900
    - 2345678900

    Raises:
        ValidationError: If phone number format is invalid
    """
    if not value:
        return

    if not re.match(r'^[\d\s\-\+\(\)]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)

    if len(digits) < 10:
        raise ValidationError(
            'Phone number must contain at least 10 digits.',
            code='phone_too_short'
        )

    if len(set(digits)) == 1:
        raise ValidationError(
            'Phone number cannot be all the same digit.',
            code='invalid_phone_pattern'
        )


def validate_avatar_image(image):
    """
    Validate an uploaded avatar.

    Checks:
    - File size (AVATAR_MAX_BYTES, 5MB by default)
    - File extension (jpg, jpeg, png, webp)
    - MIME type, when the upload carries one

    Raises:
        ValidationError: If image is invalid
    """
    if not image:
        return

    # Already in storage: checked when it was uploaded
    if getattr(image, '_committed', False):
        return

    max_size = getattr(settings, 'AVATAR_MAX_BYTES', 5 * 1024 * 1024)
    if image.size > max_size:
        raise ValidationError(
            f'Please choose an image under {max_size // (1024 * 1024)}MB. '
            f'Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    file_name = image.name.lower()
    if not any(file_name.endswith(f'.{ext}') for ext in AVATAR_EXTENSIONS):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(AVATAR_EXTENSIONS)}',
            code='invalid_image_format'
        )

    content_type = getattr(image, 'content_type', None)
    if content_type and content_type not in AVATAR_CONTENT_TYPES:
        raise ValidationError(
            f'Please choose an image file. Got: {content_type}',
            code='invalid_content_type'
        )
