"""Utilities for recording structure job audit events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models

# purpose: shareable helpers for persisting structure job timeline events across services
# inputs: SQLAlchemy session, job identifier, event metadata
# outputs: normalized StructureJobEvent rows with sequential ordering
# status: active


def _job_lock_query(db: Session, job_id: UUID):
    return (
        db.query(models.StructureJob.job_id)
        .filter(models.StructureJob.job_id == job_id)
        .with_for_update()
    )


def record_job_event(
    db: Session,
    job_id: UUID,
    event_type: str,
    payload: dict[str, Any] | None = None,
    actor_id: UUID | None = None,
) -> models.StructureJobEvent:
    """Persist a structured job event inside the caller's transaction."""

    payload_dict = payload if isinstance(payload, dict) else {}
    # the job row serialises sequence allocation between concurrent writers
    _job_lock_query(db, job_id).one_or_none()
    latest = (
        db.query(func.max(models.StructureJobEvent.sequence))
        .filter(models.StructureJobEvent.job_id == job_id)
        .scalar()
    )
    event = models.StructureJobEvent(
        job_id=job_id,
        event_type=event_type,
        payload=payload_dict,
        actor_id=actor_id,
        sequence=(latest or 0) + 1,
        created_at=datetime.now(timezone.utc),
    )
    db.add(event)
    db.flush()
    return event


def list_job_events(db: Session, job_id: UUID) -> list[models.StructureJobEvent]:
    return (
        db.query(models.StructureJobEvent)
        .filter(models.StructureJobEvent.job_id == job_id)
        .order_by(models.StructureJobEvent.sequence.asc())
        .all()
    )
