"""Orchestration of the structure proposal workflow.

``StructureWorkflow`` composes the intake store, the injected generator, the
normalizer, the proposal store, the job state machine and the apply engine
into the public operations used by the HTTP layer. Every operation returns a
:class:`~hive.results.Result`; storage and generator failures are converted at
this boundary instead of being raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, TypeVar
from uuid import UUID

from prometheus_client import Counter
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import config, models, schemas
from ...eventlog import list_job_events, record_job_event
from ...results import Issue, IssueKind, Result
from ..workspace_directory import WorkspaceDirectory
from . import intake as intake_store
from . import proposals
from .apply import ApplyEngine, ApplyOutcome
from .generators import StructureGenerator
from .jobs import InvalidTransition, JobStateMachine, JobStatus
from .normalizer import normalize_proposal
from .preview import compute_change_set

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERATOR_SERVICE = "structure-generator"

STRUCTURE_GENERATIONS = Counter(
    "structure_generation_total", "Structure proposal generations", ["outcome"]
)
STRUCTURE_APPLIES = Counter("structure_apply_total", "Structure proposal applies", ["outcome"])


def _validation_issues(exc: ValidationError) -> list[Issue]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        issues.append(Issue.validation(error.get("msg", "invalid value"), field=location or None))
    return issues


class StructureWorkflow:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        generator: StructureGenerator,
        *,
        directory: WorkspaceDirectory | None = None,
        generation_timeout: float | None = config.STRUCTURE_GENERATION_TIMEOUT,
        max_version_attempts: int = 3,
    ) -> None:
        self._session_factory = session_factory
        self._generator = generator
        self._directory = directory or WorkspaceDirectory()
        self._generation_timeout = generation_timeout
        self._max_version_attempts = max(1, max_version_attempts)
        self.jobs = JobStateMachine(session_factory)
        self.apply_engine = ApplyEngine(session_factory, self.jobs, self._directory)

    def _read(self, operation: str, fn: Callable[[Session], Result[T]]) -> Result[T]:
        db = self._session_factory()
        try:
            return fn(db)
        except Exception:
            logger.exception("Structure read failed", extra={"operation": operation})
            return Result.failure(Issue.internal(f"Failed to {operation}"))
        finally:
            db.close()

    # ------------------------------------------------------------------
    # job creation
    # ------------------------------------------------------------------
    def create_job(
        self,
        workspace_id: UUID,
        user_id: UUID,
        intake: schemas.IntakeFormIn | Mapping[str, Any],
    ) -> Result[schemas.StructureJobOut]:
        if not isinstance(intake, schemas.IntakeFormIn):
            try:
                intake = schemas.IntakeFormIn.model_validate(intake)
            except ValidationError as exc:
                return Result.failure(*_validation_issues(exc))

        db = self._session_factory()
        try:
            with db.begin():
                if db.get(models.Workspace, workspace_id) is None:
                    return Result.failure(Issue.not_found("Workspace", workspace_id))
                job = models.StructureJob(
                    workspace_id=workspace_id,
                    status=JobStatus.CREATED.value,
                    created_by=user_id,
                )
                db.add(job)
                db.flush()
                intake_store.save_intake(db, job.job_id, intake)
                record_job_event(
                    db,
                    job.job_id,
                    "job.created",
                    {"channel_budget": intake.channel_budget},
                    actor_id=user_id,
                )
                job_out = schemas.StructureJobOut.model_validate(job)
        except Exception:
            logger.exception(
                "Failed to create structure job", extra={"workspace_id": str(workspace_id)}
            )
            return Result.failure(Issue.internal("Failed to create job"))
        finally:
            db.close()

        logger.info(
            "Structure job created",
            extra={"job_id": str(job_out.job_id), "workspace_id": str(workspace_id)},
        )
        return Result.success(job_out)

    # ------------------------------------------------------------------
    # proposal generation
    # ------------------------------------------------------------------
    def _load_context(self, db: Session, job_id: UUID) -> Result[schemas.StructureContext]:
        job = db.get(models.StructureJob, job_id)
        if job is None:
            return Result.failure(Issue.not_found("Job", job_id))
        if JobStatus(job.status).is_terminal:
            return Result.failure(
                Issue.validation(f"Job is {job.status}; start a new job to regenerate", field="status")
            )
        intake = intake_store.load_intake(db, job_id)
        if intake is None:
            return Result.failure(Issue.not_found("Intake form for job", job_id))
        workspace = db.get(models.Workspace, job.workspace_id)
        workspace_name = workspace.name if workspace is not None else ""
        return Result.success(intake_store.build_context(intake, workspace_name))

    async def _call_generator(
        self, context: schemas.StructureContext, timeout: float | None
    ) -> Result[schemas.StructureProposal]:
        try:
            return await asyncio.wait_for(self._generator.generate(context), timeout=timeout)
        except asyncio.TimeoutError:
            return Result.failure(
                Issue.external(GENERATOR_SERVICE, f"timed out after {timeout} seconds")
            )
        except Exception as exc:
            logger.exception("Structure generator raised")
            return Result.failure(Issue.external(GENERATOR_SERVICE, str(exc) or type(exc).__name__))

    def _store_proposal(
        self,
        job_id: UUID,
        normalized_score: float,
        proposal: schemas.StructureProposal,
    ) -> proposals.ProposalRecord:
        for attempt in range(1, self._max_version_attempts + 1):
            db = self._session_factory()
            try:
                with db.begin():
                    record = proposals.append_proposal(
                        db, job_id, normalized_score, proposal.rationale, proposal
                    )
                    record_job_event(
                        db,
                        job_id,
                        "proposal.generated",
                        {
                            "version": record.version,
                            "score": record.score,
                            "channel_count": len(proposal.channels),
                            "committee_count": len(proposal.committees),
                        },
                    )
                return record
            except IntegrityError:
                if attempt == self._max_version_attempts:
                    raise
                # a concurrent generation took this version; allocate again
                logger.warning(
                    "Proposal version collision",
                    extra={"job_id": str(job_id), "attempt": attempt},
                )
            finally:
                db.close()
        raise RuntimeError("proposal version allocation exhausted")

    async def generate_proposal(
        self, job_id: UUID, *, timeout: float | None = None
    ) -> Result[schemas.ProposalRecordOut]:
        loaded = self._read("load intake", lambda db: self._load_context(db, job_id))
        if not loaded.ok:
            if any(issue.kind is IssueKind.INTERNAL for issue in loaded.issues):
                self.jobs.transition(job_id, JobStatus.FAILED)
            STRUCTURE_GENERATIONS.labels("rejected").inc()
            return Result.failure(*loaded.issues)
        context = loaded.value

        effective_timeout = timeout if timeout is not None else self._generation_timeout
        logger.info(
            "Generating structure proposal",
            extra={"job_id": str(job_id), "workspace_name": context.workspace_name},
        )
        generated = await self._call_generator(context, effective_timeout)
        if not generated.ok:
            logger.warning(
                "Structure generation failed",
                extra={"job_id": str(job_id), "issues": [issue.message for issue in generated.issues]},
            )
            self.jobs.transition(job_id, JobStatus.FAILED)
            STRUCTURE_GENERATIONS.labels("generator_failed").inc()
            return Result.failure(*generated.issues)

        normalized = normalize_proposal(generated.value, context)
        try:
            record = self._store_proposal(job_id, normalized.score, normalized.proposal)
        except Exception:
            logger.exception("Failed to store proposal", extra={"job_id": str(job_id)})
            self.jobs.transition(job_id, JobStatus.FAILED)
            STRUCTURE_GENERATIONS.labels("storage_failed").inc()
            return Result.failure(Issue.internal("Failed to generate proposal"))

        self.jobs.transition(job_id, JobStatus.PROPOSED)
        STRUCTURE_GENERATIONS.labels("proposed").inc()
        logger.info(
            "Proposal generated",
            extra={
                "job_id": str(job_id),
                "version": record.version,
                "channel_count": len(record.proposal.channels),
                "score": record.score,
            },
        )
        return Result.success(record.to_schema())

    # ------------------------------------------------------------------
    # review and apply
    # ------------------------------------------------------------------
    def validate_proposal(self, job_id: UUID, user_id: UUID) -> Result[schemas.StructureJobOut]:
        db = self._session_factory()
        try:
            with db.begin():
                if db.get(models.StructureJob, job_id) is None:
                    return Result.failure(Issue.not_found("Job", job_id))
                record = proposals.latest_proposal(db, job_id)
                if record is None:
                    return Result.failure(Issue.not_found("Proposal for job", job_id))
                job = self.jobs.transition_within(
                    db, job_id, JobStatus.VALIDATED, actor_id=user_id
                )
                record_job_event(
                    db, job_id, "proposal.validated", {"version": record.version}, actor_id=user_id
                )
                job_out = schemas.StructureJobOut.model_validate(job)
        except InvalidTransition as exc:
            return Result.failure(Issue.validation(str(exc), field="status"))
        except Exception:
            logger.exception("Failed to validate proposal", extra={"job_id": str(job_id)})
            return Result.failure(Issue.internal("Failed to validate proposal"))
        finally:
            db.close()
        return Result.success(job_out)

    def apply_proposal(
        self, job_id: UUID, workspace_id: UUID, user_id: UUID
    ) -> Result[ApplyOutcome]:
        def _check(db: Session) -> Result[UUID]:
            job = db.get(models.StructureJob, job_id)
            if job is None:
                return Result.failure(Issue.not_found("Job", job_id))
            if job.status == JobStatus.FAILED.value:
                return Result.failure(
                    Issue.validation("Failed jobs cannot be applied", field="status")
                )
            if job.workspace_id != workspace_id:
                return Result.failure(
                    Issue.validation("Job belongs to a different workspace", field="workspace_id")
                )
            return Result.success(job.job_id)

        checked = self._read("load job", _check)
        if not checked.ok:
            STRUCTURE_APPLIES.labels("rejected").inc()
            return Result.failure(*checked.issues)

        applied = self.apply_engine.apply(job_id, workspace_id, user_id)
        STRUCTURE_APPLIES.labels("applied" if applied.ok else "failed").inc()
        return applied

    def preview_changes(self, job_id: UUID) -> Result[schemas.ChangeSetPreviewOut]:
        def _preview(db: Session) -> Result[schemas.ChangeSetPreviewOut]:
            job = db.get(models.StructureJob, job_id)
            if job is None:
                return Result.failure(Issue.not_found("Job", job_id))
            record = proposals.latest_proposal(db, job_id)
            if record is None:
                return Result.failure(Issue.not_found("Proposal for job", job_id))
            return Result.success(
                compute_change_set(db, self._directory, job.workspace_id, record)
            )

        return self._read("preview changes", _preview)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_job(self, job_id: UUID) -> Result[schemas.StructureJobOut]:
        def _get(db: Session) -> Result[schemas.StructureJobOut]:
            job = db.get(models.StructureJob, job_id)
            if job is None:
                return Result.failure(Issue.not_found("Job", job_id))
            return Result.success(schemas.StructureJobOut.model_validate(job))

        return self._read("get job", _get)

    def get_latest_proposal(self, job_id: UUID) -> Result[schemas.ProposalRecordOut]:
        def _latest(db: Session) -> Result[schemas.ProposalRecordOut]:
            record = proposals.latest_proposal(db, job_id)
            if record is None:
                return Result.failure(Issue.not_found("Proposal for job", job_id))
            return Result.success(record.to_schema())

        return self._read("get proposal", _latest)

    def list_proposals(self, job_id: UUID) -> Result[list[schemas.ProposalRecordOut]]:
        def _list(db: Session) -> Result[list[schemas.ProposalRecordOut]]:
            if db.get(models.StructureJob, job_id) is None:
                return Result.failure(Issue.not_found("Job", job_id))
            return Result.success([record.to_schema() for record in proposals.list_proposals(db, job_id)])

        return self._read("list proposals", _list)

    def get_blueprint(self, job_id: UUID) -> Result[schemas.BlueprintOut]:
        def _blueprint(db: Session) -> Result[schemas.BlueprintOut]:
            row = (
                db.query(models.Blueprint)
                .filter(models.Blueprint.job_id == job_id)
                .one_or_none()
            )
            if row is None:
                return Result.failure(Issue.not_found("Blueprint for job", job_id))
            return Result.success(
                schemas.BlueprintOut(
                    job_id=row.job_id,
                    blueprint=schemas.StructureProposal.model_validate(row.blueprint),
                    applied_at=row.applied_at,
                )
            )

        return self._read("get blueprint", _blueprint)

    def list_job_events(self, job_id: UUID) -> Result[list[schemas.StructureJobEventOut]]:
        def _events(db: Session) -> Result[list[schemas.StructureJobEventOut]]:
            if db.get(models.StructureJob, job_id) is None:
                return Result.failure(Issue.not_found("Job", job_id))
            return Result.success(
                [schemas.StructureJobEventOut.model_validate(event) for event in list_job_events(db, job_id)]
            )

        return self._read("list job events", _events)
