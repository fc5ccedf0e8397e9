"""Workspace-domain operations used by the structure workflow and routes."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models

# purpose: expose the channel/committee namespace of a workspace to the apply engine
# inputs: SQLAlchemy session owned by the caller, workspace identifiers, entity names
# outputs: created channels, committees and memberships; workspace flags
# status: active


class WorkspaceDirectory:
    """Reads and writes workspace-owned entities inside the caller's transaction.

    None of the methods commit; the caller owns the unit of work so that the
    existence checks and creations of one apply call share a transaction.
    """

    def lock_workspace(self, db: Session, workspace_id: UUID) -> models.Workspace | None:
        # serialises concurrent applies against one workspace namespace
        return (
            db.query(models.Workspace)
            .filter(models.Workspace.id == workspace_id)
            .with_for_update()
            .one_or_none()
        )

    def channel_exists(self, db: Session, workspace_id: UUID, name: str) -> bool:
        return (
            db.query(models.Channel.id)
            .filter(models.Channel.workspace_id == workspace_id, models.Channel.name == name)
            .first()
            is not None
        )

    def create_channel(
        self,
        db: Session,
        workspace_id: UUID,
        name: str,
        description: str | None,
        type: str,
        is_private: bool,
        creator_id: UUID,
    ) -> UUID:
        channel = models.Channel(
            workspace_id=workspace_id,
            name=name,
            description=description,
            type=type,
            is_private=is_private,
            created_by=creator_id,
        )
        db.add(channel)
        db.flush()
        return channel.id

    def add_channel_member(self, db: Session, channel_id: UUID, user_id: UUID) -> None:
        existing = db.get(models.ChannelMember, (channel_id, user_id))
        if existing is not None:
            return
        db.add(models.ChannelMember(channel_id=channel_id, user_id=user_id))
        db.flush()

    def committee_exists(self, db: Session, workspace_id: UUID, name: str) -> bool:
        return (
            db.query(models.Committee.id)
            .filter(models.Committee.workspace_id == workspace_id, models.Committee.name == name)
            .first()
            is not None
        )

    def create_committee(
        self, db: Session, workspace_id: UUID, name: str, description: str | None
    ) -> UUID:
        committee = models.Committee(
            workspace_id=workspace_id, name=name, description=description
        )
        db.add(committee)
        db.flush()
        return committee.id

    def mark_blueprint_approved(self, db: Session, workspace_id: UUID) -> None:
        workspace = db.get(models.Workspace, workspace_id)
        if workspace is None:
            raise LookupError(f"Workspace {workspace_id} not found")
        workspace.blueprint_approved = True
        workspace.updated_at = datetime.now(timezone.utc)
        db.flush()

    # ------------------------------------------------------------------
    # workspace lifecycle helpers used by the HTTP layer
    # ------------------------------------------------------------------
    def create_workspace(
        self, db: Session, *, name: str, slug: str, creator_id: UUID
    ) -> models.Workspace:
        workspace = models.Workspace(name=name, slug=slug, created_by=creator_id)
        db.add(workspace)
        db.flush()
        db.add(
            models.WorkspaceMember(
                workspace_id=workspace.id, user_id=creator_id, role="admin"
            )
        )
        db.flush()
        return workspace

    def add_member(
        self, db: Session, workspace_id: UUID, user_id: UUID, role: str = "member"
    ) -> models.WorkspaceMember:
        member = db.get(models.WorkspaceMember, (workspace_id, user_id))
        if member is None:
            member = models.WorkspaceMember(
                workspace_id=workspace_id, user_id=user_id, role=role
            )
            db.add(member)
        else:
            member.role = role
        db.flush()
        return member

    def list_channels(self, db: Session, workspace_id: UUID) -> list[models.Channel]:
        return (
            db.query(models.Channel)
            .filter(models.Channel.workspace_id == workspace_id)
            .order_by(models.Channel.created_at.asc(), models.Channel.name.asc())
            .all()
        )

    def list_committees(self, db: Session, workspace_id: UUID) -> list[models.Committee]:
        return (
            db.query(models.Committee)
            .filter(models.Committee.workspace_id == workspace_id)
            .order_by(models.Committee.name.asc())
            .all()
        )
