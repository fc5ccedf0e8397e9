"""Versioned proposal persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ... import models, schemas

# purpose: append-only proposal versions per structure job
# inputs: SQLAlchemy session owned by the caller, job id, normalized proposal and score
# outputs: StructureProposalRecord rows and typed ProposalRecord views
# status: active


@dataclass(frozen=True, slots=True)
class ProposalRecord:
    job_id: UUID
    version: int
    score: float | None
    rationale: str | None
    proposal: schemas.StructureProposal
    created_at: datetime

    def to_schema(self) -> schemas.ProposalRecordOut:
        return schemas.ProposalRecordOut(
            job_id=self.job_id,
            version=self.version,
            score=self.score,
            rationale=self.rationale,
            proposal=self.proposal,
            created_at=self.created_at,
        )


def _to_record(row: models.StructureProposalRecord) -> ProposalRecord:
    # stored documents are re-validated on every read
    payload: Any = row.proposal or {}
    return ProposalRecord(
        job_id=row.job_id,
        version=row.version,
        score=row.score,
        rationale=row.rationale,
        proposal=schemas.StructureProposal.model_validate(payload),
        created_at=row.created_at,
    )


def next_version(db: Session, job_id: UUID) -> int:
    current = (
        db.query(func.max(models.StructureProposalRecord.version))
        .filter(models.StructureProposalRecord.job_id == job_id)
        .scalar()
    )
    return (current or 0) + 1


def insert_proposal(
    db: Session,
    job_id: UUID,
    version: int,
    score: float | None,
    rationale: str | None,
    proposal: schemas.StructureProposal,
) -> ProposalRecord:
    row = models.StructureProposalRecord(
        job_id=job_id,
        version=version,
        score=score,
        rationale=rationale,
        proposal=proposal.model_dump(mode="json"),
    )
    db.add(row)
    db.flush()
    return _to_record(row)


def append_proposal(
    db: Session,
    job_id: UUID,
    score: float | None,
    rationale: str | None,
    proposal: schemas.StructureProposal,
) -> ProposalRecord:
    """Allocate the next version and insert it in the caller's transaction.

    The ``(job_id, version)`` unique constraint rejects a concurrent writer
    that allocated the same version; the caller retries in a new transaction.
    """

    version = next_version(db, job_id)
    return insert_proposal(db, job_id, version, score, rationale, proposal)


def latest_proposal(db: Session, job_id: UUID) -> ProposalRecord | None:
    row = (
        db.query(models.StructureProposalRecord)
        .filter(models.StructureProposalRecord.job_id == job_id)
        .order_by(models.StructureProposalRecord.version.desc())
        .first()
    )
    return _to_record(row) if row is not None else None


def list_proposals(db: Session, job_id: UUID) -> list[ProposalRecord]:
    rows = (
        db.query(models.StructureProposalRecord)
        .filter(models.StructureProposalRecord.job_id == job_id)
        .order_by(models.StructureProposalRecord.version.asc())
        .all()
    )
    return [_to_record(row) for row in rows]
