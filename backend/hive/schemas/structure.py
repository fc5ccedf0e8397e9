from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProposedChannel(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: str = ""
    type: Literal["core", "workstream", "committee"] = "workstream"
    is_private: bool = False
    suggested_members: list[str] = Field(default_factory=list)


class ProposedCommittee(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    purpose: Optional[str] = None


class StructureProposal(BaseModel):
    """Typed view of the proposal document persisted as JSON."""

    channels: list[ProposedChannel] = Field(default_factory=list)
    committees: list[ProposedCommittee] = Field(default_factory=list)
    rationale: str = ""
    estimated_complexity: Literal["simple", "moderate", "complex"] = "simple"


class IntakeFormIn(BaseModel):
    community_size: str = Field(..., min_length=1)
    core_activities: list[str] = Field(..., min_length=1)
    moderation_capacity: str = Field(..., min_length=1)
    channel_budget: int = Field(..., ge=1, le=100)
    additional_context: Optional[str] = None

    @field_validator("core_activities")
    @classmethod
    def _strip_activities(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("at least one core activity is required")
        return cleaned


class StructureContext(BaseModel):
    """Input handed to a structure generator."""

    community_size: str
    core_activities: list[str]
    moderation_capacity: str
    channel_budget: int
    additional_context: Optional[str] = None
    workspace_name: str


class StructureGenerateRequest(IntakeFormIn):
    workspace_id: UUID


class StructureJobOut(BaseModel):
    job_id: UUID
    workspace_id: UUID
    status: str
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ProposalRecordOut(BaseModel):
    job_id: UUID
    version: int
    score: Optional[float] = None
    rationale: Optional[str] = None
    proposal: StructureProposal
    created_at: datetime


class StructureJobDetail(BaseModel):
    job: StructureJobOut
    proposal: Optional[ProposalRecordOut] = None


class ApplyOutcomeOut(BaseModel):
    job_id: UUID
    status: str
    created_count: int
    committees_created: int
    skipped_channels: list[str] = Field(default_factory=list)
    skipped_committees: list[str] = Field(default_factory=list)


class ChangeItem(BaseModel):
    name: str
    rationale: str


class ChangeGroup(BaseModel):
    type: Literal["create", "skip"]
    entity: Literal["channel", "committee"]
    count: int
    items: list[ChangeItem] = Field(default_factory=list)


class ChangeSetPreviewOut(BaseModel):
    job_id: UUID
    workspace_id: UUID
    version: int
    groups: list[ChangeGroup] = Field(default_factory=list)


class BlueprintOut(BaseModel):
    job_id: UUID
    blueprint: StructureProposal
    applied_at: datetime


class StructureJobEventOut(BaseModel):
    sequence: int
    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    actor_id: Optional[UUID] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
