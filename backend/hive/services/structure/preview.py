"""Change-set preview: what an apply of the latest proposal would do."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ... import schemas
from ..workspace_directory import WorkspaceDirectory
from .proposals import ProposalRecord


def compute_change_set(
    db: Session,
    directory: WorkspaceDirectory,
    workspace_id: UUID,
    record: ProposalRecord,
) -> schemas.ChangeSetPreviewOut:
    """Group proposed entities into creations and skips.

    Uses the same exact-name existence checks as the apply engine so the
    preview matches what apply will create.
    """

    create_channels: list[schemas.ChangeItem] = []
    skip_channels: list[schemas.ChangeItem] = []
    for channel in record.proposal.channels:
        if directory.channel_exists(db, workspace_id, channel.name):
            skip_channels.append(
                schemas.ChangeItem(name=channel.name, rationale="channel already exists")
            )
        else:
            visibility = "private" if channel.is_private else "public"
            create_channels.append(
                schemas.ChangeItem(
                    name=channel.name, rationale=f"new {visibility} {channel.type} channel"
                )
            )

    create_committees: list[schemas.ChangeItem] = []
    skip_committees: list[schemas.ChangeItem] = []
    for committee in record.proposal.committees:
        if directory.committee_exists(db, workspace_id, committee.name):
            skip_committees.append(
                schemas.ChangeItem(name=committee.name, rationale="committee already exists")
            )
        else:
            create_committees.append(
                schemas.ChangeItem(name=committee.name, rationale="new committee")
            )

    groups: list[schemas.ChangeGroup] = []
    for change_type, entity, items in (
        ("create", "channel", create_channels),
        ("create", "committee", create_committees),
        ("skip", "channel", skip_channels),
        ("skip", "committee", skip_committees),
    ):
        if items:
            groups.append(
                schemas.ChangeGroup(type=change_type, entity=entity, count=len(items), items=items)
            )
    return schemas.ChangeSetPreviewOut(
        job_id=record.job_id,
        workspace_id=workspace_id,
        version=record.version,
        groups=groups,
    )
