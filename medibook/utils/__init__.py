from .decorators import require_role, resolve_identity

from .audit import log_audit, recent_entries

from .validators import parse_id, clean_text

from .datetime_utils import (
    parse_date,
    parse_time,
    normalize_day,
    weekday_name,
)

__all__ = [
    # Decorators
    "require_role",
    "resolve_identity",
    # Audit
    "log_audit",
    "recent_entries",
    # Field coercion
    "parse_id",
    "clean_text",
    # Date/time parsing
    "parse_date",
    "parse_time",
    "normalize_day",
    "weekday_name",
]
