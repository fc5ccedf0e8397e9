from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..rbac import ensure_workspace_admin, ensure_workspace_member
from ..services.workspace_directory import WorkspaceDirectory

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])

directory = WorkspaceDirectory()


@router.post("", response_model=schemas.WorkspaceOut, status_code=201)
def create_workspace(
    payload: schemas.WorkspaceCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        workspace = directory.create_workspace(
            db, name=payload.name, slug=payload.slug, creator_id=user.id
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Workspace slug already taken")
    db.refresh(workspace)
    return workspace


@router.post("/{workspace_id}/members", response_model=schemas.WorkspaceMemberOut)
def add_member(
    workspace_id: UUID,
    member: schemas.WorkspaceMemberAdd,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    if db.get(models.Workspace, workspace_id) is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    ensure_workspace_admin(db, user, workspace_id)
    if db.get(models.User, member.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    membership = directory.add_member(db, workspace_id, member.user_id, member.role)
    db.commit()
    db.refresh(membership)
    return membership


@router.get("/{workspace_id}/channels", response_model=List[schemas.ChannelOut])
def list_channels(
    workspace_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    ensure_workspace_member(db, user, workspace_id)
    return directory.list_channels(db, workspace_id)


@router.get("/{workspace_id}/committees", response_model=List[schemas.CommitteeOut])
def list_committees(
    workspace_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    ensure_workspace_member(db, user, workspace_id)
    return directory.list_committees(db, workspace_id)
