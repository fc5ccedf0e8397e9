from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from . import models

# purpose: centralize workspace role checks for structure workflow routes
# status: active


def ensure_workspace_member(
    db: Session,
    user: models.User,
    workspace_id: UUID,
    roles: list[str] | tuple[str, ...] = ("member", "admin"),
) -> models.WorkspaceMember:
    """Return the membership if the user holds one of ``roles``, otherwise raise 403."""
    membership = (
        db.query(models.WorkspaceMember)
        .filter(
            models.WorkspaceMember.workspace_id == workspace_id,
            models.WorkspaceMember.user_id == user.id,
        )
        .first()
    )
    if not membership or membership.role not in roles:
        raise HTTPException(status_code=403, detail="Not authorized")
    return membership


def ensure_workspace_admin(db: Session, user: models.User, workspace_id: UUID) -> models.WorkspaceMember:
    return ensure_workspace_member(db, user, workspace_id, roles=("admin",))
