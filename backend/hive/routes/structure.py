from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from functools import lru_cache
from typing import List, NoReturn
from uuid import UUID

from .. import config
from ..database import SessionLocal, get_db
from ..auth import get_current_user
from .. import models, schemas
from ..ratelimit import rate_limit
from ..rbac import ensure_workspace_admin, ensure_workspace_member
from ..results import IssueKind, Result
from ..services.structure import StructureGenerator, StructureWorkflow, build_structure_generator

router = APIRouter(prefix="/api/structure", tags=["structure"])

_ISSUE_STATUS = {
    IssueKind.NOT_FOUND: 404,
    IssueKind.VALIDATION: 422,
    IssueKind.EXTERNAL: 502,
    IssueKind.INTERNAL: 500,
}


@lru_cache(maxsize=1)
def get_structure_generator() -> StructureGenerator:
    """Process-wide generator; its HTTP client is shared across requests."""
    return build_structure_generator()


async def close_structure_generator() -> None:
    if get_structure_generator.cache_info().currsize:
        await get_structure_generator().aclose()
        get_structure_generator.cache_clear()


def get_structure_workflow(
    generator: StructureGenerator = Depends(get_structure_generator),
) -> StructureWorkflow:
    return StructureWorkflow(SessionLocal, generator)


def _raise_issues(result: Result) -> NoReturn:
    status_code = max(_ISSUE_STATUS[issue.kind] for issue in result.issues)
    raise HTTPException(
        status_code=status_code, detail=[issue.to_dict() for issue in result.issues]
    )


def _load_job(workflow: StructureWorkflow, job_id: UUID) -> schemas.StructureJobOut:
    job = workflow.get_job(job_id)
    if not job.ok:
        _raise_issues(job)
    return job.value


@router.post("/generate", response_model=schemas.StructureJobDetail, status_code=201)
@rate_limit(config.STRUCTURE_GENERATE_RATE_LIMIT)
async def generate_structure(
    request: Request,
    payload: schemas.StructureGenerateRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    if db.get(models.Workspace, payload.workspace_id) is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    ensure_workspace_member(db, user, payload.workspace_id)
    intake = schemas.IntakeFormIn.model_validate(
        payload.model_dump(exclude={"workspace_id"})
    )
    created = workflow.create_job(payload.workspace_id, user.id, intake)
    if not created.ok:
        _raise_issues(created)
    generated = await workflow.generate_proposal(created.value.job_id)
    if not generated.ok:
        _raise_issues(generated)
    return schemas.StructureJobDetail(
        job=_load_job(workflow, created.value.job_id), proposal=generated.value
    )


@router.get("/jobs/{job_id}", response_model=schemas.StructureJobDetail)
def get_structure_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    proposal = workflow.get_latest_proposal(job_id)
    return schemas.StructureJobDetail(job=job, proposal=proposal.value if proposal.ok else None)


@router.post(
    "/jobs/{job_id}/proposals", response_model=schemas.ProposalRecordOut, status_code=201
)
@rate_limit(config.STRUCTURE_GENERATE_RATE_LIMIT)
async def regenerate_proposal(
    request: Request,
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    generated = await workflow.generate_proposal(job_id)
    if not generated.ok:
        _raise_issues(generated)
    return generated.value


@router.get("/jobs/{job_id}/proposals", response_model=List[schemas.ProposalRecordOut])
def list_proposals(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    records = workflow.list_proposals(job_id)
    if not records.ok:
        _raise_issues(records)
    return records.value


@router.get("/jobs/{job_id}/preview", response_model=schemas.ChangeSetPreviewOut)
def preview_structure_changes(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    preview = workflow.preview_changes(job_id)
    if not preview.ok:
        _raise_issues(preview)
    return preview.value


@router.get("/jobs/{job_id}/events", response_model=List[schemas.StructureJobEventOut])
def list_structure_job_events(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    events = workflow.list_job_events(job_id)
    if not events.ok:
        _raise_issues(events)
    return events.value


@router.get("/jobs/{job_id}/blueprint", response_model=schemas.BlueprintOut)
def get_structure_blueprint(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_member(db, user, job.workspace_id)
    blueprint = workflow.get_blueprint(job_id)
    if not blueprint.ok:
        _raise_issues(blueprint)
    return blueprint.value


@router.post("/proposals/{job_id}/validate", response_model=schemas.StructureJobOut)
def validate_structure_proposal(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_admin(db, user, job.workspace_id)
    validated = workflow.validate_proposal(job_id, user.id)
    if not validated.ok:
        _raise_issues(validated)
    return validated.value


@router.post("/proposals/{job_id}/approve", response_model=schemas.ApplyOutcomeOut)
def approve_structure_proposal(
    job_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    workflow: StructureWorkflow = Depends(get_structure_workflow),
):
    job = _load_job(workflow, job_id)
    ensure_workspace_admin(db, user, job.workspace_id)
    applied = workflow.apply_proposal(job_id, job.workspace_id, user.id)
    if not applied.ok:
        _raise_issues(applied)
    outcome = applied.value
    return schemas.ApplyOutcomeOut(
        job_id=job_id,
        status=_load_job(workflow, job_id).status,
        created_count=outcome.created_count,
        committees_created=outcome.committees_created,
        skipped_channels=outcome.skipped_channels,
        skipped_committees=outcome.skipped_committees,
    )
