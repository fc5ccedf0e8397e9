"""Transactional application of a proposal to its workspace."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from ... import models, schemas
from ...eventlog import record_job_event
from ...results import Issue, Result
from ..workspace_directory import WorkspaceDirectory
from . import proposals
from .jobs import JobStateMachine, JobStatus

logger = logging.getLogger(__name__)

# purpose: turn the latest proposal into channels and committees in one unit of work
# inputs: job id, workspace id, acting user
# outputs: ApplyOutcome counts, blueprint snapshot, job status applied or failed
# status: active


@dataclass(slots=True)
class ApplyOutcome:
    created_count: int = 0
    committees_created: int = 0
    skipped_channels: list[str] = field(default_factory=list)
    skipped_committees: list[str] = field(default_factory=list)


def upsert_blueprint(
    db: Session, job_id: UUID, proposal: schemas.StructureProposal
) -> models.Blueprint:
    now = datetime.now(timezone.utc)
    document = proposal.model_dump(mode="json")
    blueprint = (
        db.query(models.Blueprint).filter(models.Blueprint.job_id == job_id).one_or_none()
    )
    if blueprint is None:
        blueprint = models.Blueprint(job_id=job_id, blueprint=document, applied_at=now)
        db.add(blueprint)
    else:
        blueprint.blueprint = document
        blueprint.applied_at = now
    db.flush()
    return blueprint


class ApplyEngine:
    """Creates workspace entities from a job's latest proposal.

    Existence is checked by ``(workspace_id, name)``, so a repeated apply skips
    everything already present instead of failing or duplicating rows. The
    final ``applied`` status is written in the same transaction as the
    entities; the ``applying`` and ``failed`` writes are best-effort.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        state_machine: JobStateMachine,
        directory: WorkspaceDirectory | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._jobs = state_machine
        self._directory = directory or WorkspaceDirectory()

    def _apply_within(
        self,
        db: Session,
        job_id: UUID,
        workspace_id: UUID,
        actor_id: UUID,
        record: proposals.ProposalRecord,
    ) -> ApplyOutcome:
        directory = self._directory
        if directory.lock_workspace(db, workspace_id) is None:
            raise LookupError(f"Workspace {workspace_id} not found")

        outcome = ApplyOutcome()
        for channel in record.proposal.channels:
            if directory.channel_exists(db, workspace_id, channel.name):
                outcome.skipped_channels.append(channel.name)
                continue
            channel_id = directory.create_channel(
                db,
                workspace_id,
                channel.name,
                channel.description,
                channel.type,
                channel.is_private,
                actor_id,
            )
            # membership propagation is not guaranteed for new (esp. private) channels
            directory.add_channel_member(db, channel_id, actor_id)
            outcome.created_count += 1

        for committee in record.proposal.committees:
            if directory.committee_exists(db, workspace_id, committee.name):
                outcome.skipped_committees.append(committee.name)
                continue
            directory.create_committee(db, workspace_id, committee.name, committee.description)
            outcome.committees_created += 1

        upsert_blueprint(db, job_id, record.proposal)
        directory.mark_blueprint_approved(db, workspace_id)
        record_job_event(
            db,
            job_id,
            "structure.applied",
            {
                "version": record.version,
                "channels_created": outcome.created_count,
                "committees_created": outcome.committees_created,
                "skipped_channels": list(outcome.skipped_channels),
                "skipped_committees": list(outcome.skipped_committees),
            },
            actor_id=actor_id,
        )
        self._jobs.transition_within(db, job_id, JobStatus.APPLIED, actor_id=actor_id)
        return outcome

    def apply(self, job_id: UUID, workspace_id: UUID, actor_id: UUID) -> Result[ApplyOutcome]:
        db = self._session_factory()
        try:
            record = proposals.latest_proposal(db, job_id)
        except Exception:
            logger.exception("Failed to load proposal for apply", extra={"job_id": str(job_id)})
            return Result.failure(Issue.internal("Failed to load proposal"))
        finally:
            db.close()
        if record is None:
            return Result.failure(Issue.not_found("Proposal for job", job_id))

        self._jobs.transition(job_id, JobStatus.APPLYING)

        db = self._session_factory()
        try:
            with db.begin():
                outcome = self._apply_within(db, job_id, workspace_id, actor_id, record)
        except Exception:
            logger.exception(
                "Failed to apply proposal",
                extra={"job_id": str(job_id), "workspace_id": str(workspace_id)},
            )
            self._jobs.transition(job_id, JobStatus.FAILED)
            return Result.failure(Issue.internal("Failed to apply proposal"))
        finally:
            db.close()

        logger.info(
            "Proposal applied",
            extra={
                "job_id": str(job_id),
                "version": record.version,
                "channels_created": outcome.created_count,
                "committees_created": outcome.committees_created,
            },
        )
        return Result.success(outcome)
