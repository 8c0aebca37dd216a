from datetime import date, datetime, time
from medibook.errors import ValidationError
from medibook.models import WEEKDAYS


def parse_date(value, field='date'):
    """Parse YYYY-MM-DD (or a date/datetime) to a date; None stays None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) > 10 and text[10] in 'T ':
            # Full ISO datetime; only its calendar date counts
            return datetime.fromisoformat(text).date()
        return datetime.strptime(text, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'Invalid {field} format. Use YYYY-MM-DD')


def parse_time(value, field='time'):
    """Parse HH:MM or HH:MM:SS to a time; None stays None."""
    if value is None or value == '':
        return None
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f'Invalid {field} format. Use HH:MM (e.g., 10:30)')


def normalize_day(value):
    """Canonical weekday name ('monday ' -> 'Monday')."""
    if not value or not str(value).strip():
        raise ValidationError('Field "day" is required')
    day = str(value).strip().capitalize()
    if day not in WEEKDAYS:
        raise ValidationError(f'Invalid day. Valid values: {", ".join(WEEKDAYS)}')
    return day


def weekday_name(value):
    return WEEKDAYS[value.weekday()]
