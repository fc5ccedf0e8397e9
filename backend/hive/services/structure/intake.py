"""Persistence for intake questionnaires, one immutable row per job."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ... import models, schemas


def save_intake(db: Session, job_id: UUID, intake: schemas.IntakeFormIn) -> models.IntakeForm:
    """Write the intake row for ``job_id`` inside the caller's transaction.

    No retries; storage errors propagate to the workflow boundary.
    """

    row = models.IntakeForm(
        job_id=job_id,
        community_size=intake.community_size,
        core_activities=list(intake.core_activities),
        moderation_capacity=intake.moderation_capacity,
        channel_budget=intake.channel_budget,
        additional_context=intake.additional_context or None,
    )
    db.add(row)
    db.flush()
    return row


def load_intake(db: Session, job_id: UUID) -> models.IntakeForm | None:
    return db.get(models.IntakeForm, job_id)


def build_context(intake: models.IntakeForm, workspace_name: str) -> schemas.StructureContext:
    return schemas.StructureContext(
        community_size=intake.community_size,
        core_activities=list(intake.core_activities or []),
        moderation_capacity=intake.moderation_capacity,
        channel_budget=intake.channel_budget,
        additional_context=intake.additional_context,
        workspace_name=workspace_name,
    )
