from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")


class WorkspaceOut(BaseModel):
    id: UUID
    name: str
    slug: str
    blueprint_approved: bool = False
    created_by: Optional[UUID] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class WorkspaceMemberAdd(BaseModel):
    user_id: UUID
    role: Literal["member", "admin"] = "member"


class WorkspaceMemberOut(BaseModel):
    workspace_id: UUID
    user_id: UUID
    role: str
    model_config = ConfigDict(from_attributes=True)


class ChannelOut(BaseModel):
    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str] = None
    type: str
    is_private: bool
    created_by: Optional[UUID] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CommitteeOut(BaseModel):
    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
