"""Pydantic schemas consolidating backend API contracts."""

# purpose: aggregate request and response schemas for FastAPI surfaces and services
# status: active

from .structure import (
    ApplyOutcomeOut,
    BlueprintOut,
    ChangeGroup,
    ChangeItem,
    ChangeSetPreviewOut,
    IntakeFormIn,
    ProposalRecordOut,
    ProposedChannel,
    ProposedCommittee,
    StructureContext,
    StructureGenerateRequest,
    StructureJobDetail,
    StructureJobEventOut,
    StructureJobOut,
    StructureProposal,
)
from .workspace import (
    ChannelOut,
    CommitteeOut,
    WorkspaceCreate,
    WorkspaceMemberAdd,
    WorkspaceMemberOut,
    WorkspaceOut,
)


__all__ = [
    "ApplyOutcomeOut",
    "BlueprintOut",
    "ChangeGroup",
    "ChangeItem",
    "ChangeSetPreviewOut",
    "ChannelOut",
    "CommitteeOut",
    "IntakeFormIn",
    "ProposalRecordOut",
    "ProposedChannel",
    "ProposedCommittee",
    "StructureContext",
    "StructureGenerateRequest",
    "StructureJobDetail",
    "StructureJobEventOut",
    "StructureJobOut",
    "StructureProposal",
    "WorkspaceCreate",
    "WorkspaceMemberAdd",
    "WorkspaceMemberOut",
    "WorkspaceOut",
]
