"""Structure job lifecycle.

State transitions:
- CREATED -> PROPOSED (first proposal stored)
- PROPOSED -> PROPOSED (regeneration appends a new version)
- PROPOSED / VALIDATED -> VALIDATED, APPLYING, APPLIED
- APPLYING -> APPLIED (inside the apply transaction)
- any non-terminal -> FAILED

APPLIED and FAILED are terminal. Writing a job's current status again is
accepted as an idempotent refresh so that re-applying an applied job stays
safe.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ... import models
from ...eventlog import record_job_event

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    CREATED = "created"
    PROPOSED = "proposed"
    VALIDATED = "validated"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {JobStatus.APPLIED, JobStatus.FAILED}


VALID_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.CREATED: {JobStatus.PROPOSED, JobStatus.FAILED},
    # APPLIED is reachable directly because the APPLYING pre-transition is best-effort
    JobStatus.PROPOSED: {
        JobStatus.PROPOSED,
        JobStatus.VALIDATED,
        JobStatus.APPLYING,
        JobStatus.APPLIED,
        JobStatus.FAILED,
    },
    JobStatus.VALIDATED: {
        JobStatus.PROPOSED,
        JobStatus.APPLYING,
        JobStatus.APPLIED,
        JobStatus.FAILED,
    },
    JobStatus.APPLYING: {JobStatus.APPLIED, JobStatus.FAILED},
    JobStatus.APPLIED: set(),
    JobStatus.FAILED: set(),
}


class InvalidTransition(ValueError):
    def __init__(self, current: JobStatus, requested: JobStatus) -> None:
        super().__init__(f"Invalid transition: {current.value} -> {requested.value}")
        self.current = current
        self.requested = requested


def can_transition(current: JobStatus, requested: JobStatus) -> bool:
    return requested == current or requested in VALID_TRANSITIONS.get(current, set())


class JobStateMachine:
    """Sole writer of ``StructureJob.status``."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def transition_within(
        self,
        db: Session,
        job_id: UUID,
        new_status: JobStatus,
        *,
        actor_id: UUID | None = None,
    ) -> models.StructureJob:
        """Update status in the caller's transaction; raises on an illegal edge."""

        job = db.get(models.StructureJob, job_id)
        if job is None:
            raise LookupError(f"Structure job {job_id} not found")
        current = JobStatus(job.status)
        if not can_transition(current, new_status):
            raise InvalidTransition(current, new_status)
        job.status = new_status.value
        job.updated_at = datetime.now(timezone.utc)
        db.flush()
        if current != new_status:
            record_job_event(
                db,
                job_id,
                "status.changed",
                {"from": current.value, "to": new_status.value},
                actor_id=actor_id,
            )
        return job

    def transition(self, job_id: UUID, new_status: JobStatus) -> bool:
        """Best-effort status write in its own transaction.

        Failures are logged and swallowed: callers may already have completed
        side effects that an exception here must not undo.
        """

        db = self._session_factory()
        try:
            with db.begin():
                self.transition_within(db, job_id, new_status)
        except InvalidTransition as exc:
            logger.warning(
                "Rejected structure job transition",
                extra={"job_id": str(job_id), "status": new_status.value, "reason": str(exc)},
            )
            return False
        except (SQLAlchemyError, LookupError, ValueError):
            logger.exception(
                "Failed to update structure job status",
                extra={"job_id": str(job_id), "status": new_status.value},
            )
            return False
        finally:
            db.close()
        return True
