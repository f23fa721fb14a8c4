# Overview: Append-only audit trail for domain transitions.

from __future__ import annotations

import json
from typing import Any, Optional

from ..extensions import db
from ..models import AuditEvent
from givemarket.time_utils import utcnow

"""
Audit trail invariants

- Append-only: no updates or deletes of existing events.
- No domain logic here; callers decide what happened.
- Events are flushed inside the caller's transaction and committed with it,
  so a rolled-back transition leaves no event behind.
"""


def append_audit_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id: int | None,
    actor_user_id: int | None = None,
    note: Optional[str] = None,
    payload: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    ev = AuditEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_user_id=actor_user_id,
        occurred_at=utcnow(),
        note=note,
        payload=json.dumps(payload, sort_keys=True) if payload is not None else None,
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev


def list_entity_events(entity_type: str, entity_id: int) -> list[AuditEvent]:
    return (
        db.session.query(AuditEvent)
        .filter_by(entity_type=entity_type, entity_id=entity_id)
        .order_by(AuditEvent.occurred_at.asc(), AuditEvent.id.asc())
        .all()
    )
