"""
Coercion of raw JSON/query values into the types the services expect.

Anything of the wrong shape becomes a ValidationError so the caller gets a
400, never a 500.
"""
from medibook.errors import ValidationError


def parse_id(value, field='id'):
    """Positive integer id from an int or a numeric string; None stays None."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f'Invalid {field}')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {field}')
    if number < 1:
        raise ValidationError(f'Invalid {field}')
    return number


def clean_text(value, field, required=False):
    """Stripped string, or None when blank; non-strings are rejected."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f'Field "{field}" must be text')
    text = (value or '').strip()
    if required and not text:
        raise ValidationError(f'Field "{field}" is required')
    return text or None
