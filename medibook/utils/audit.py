"""
Audit trail for who booked, moved, cancelled or paid what.

Entries are written after the change they describe has been committed, in a
commit of their own. A failed audit write is logged and dropped; the booking
or payment it describes stands.
"""
import json
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from medibook.extensions import db
from medibook.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(entity_type: str, action: str, user_id: Optional[int] = None,
              entity_id=None, details: Optional[dict] = None) -> Optional[AuditLog]:
    entry = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        action=action.strip().lower(),
        user_id=user_id,
        # Decimal fees and dates serialize as strings
        details=json.dumps(details, default=str, sort_keys=True) if details else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning("Audit entry %s:%s %s not written: %s", entity_type, entity_id, action, e)
        return None
    return entry


def recent_entries(entity_type: Optional[str] = None, entity_id=None, limit: int = 50) -> List[AuditLog]:
    """Newest first, optionally narrowed to one entity type or one entity."""
    query = AuditLog.query
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type.strip().lower())
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(max(1, min(limit, 500))).all()
