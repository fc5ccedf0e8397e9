import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
    Float,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False)
    full_name = Column(String)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)

    workspaces = relationship("WorkspaceMember", back_populates="user")


class Workspace(Base):
    __tablename__ = "workspaces"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False)
    blueprint_approved = Column(Boolean, default=False, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    members = relationship(
        "WorkspaceMember", back_populates="workspace", cascade="all, delete-orphan"
    )
    channels = relationship("Channel", back_populates="workspace")
    committees = relationship("Committee", back_populates="workspace")


class WorkspaceMember(Base):
    __tablename__ = "workspace_members"
    workspace_id = Column(
        UUID(as_uuid=True), ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    role = Column(String, default="member", nullable=False)
    joined_at = Column(DateTime, default=_utcnow)

    user = relationship("User", back_populates="workspaces")
    workspace = relationship("Workspace", back_populates="members")


class Channel(Base):
    __tablename__ = "channels"

    # purpose: communication channels owned by the workspace aggregate
    # status: active
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(80), nullable=False)
    description = Column(Text)
    type = Column(String, default="core", nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    workspace = relationship("Workspace", back_populates="channels")
    members = relationship(
        "ChannelMember", back_populates="channel", cascade="all, delete-orphan"
    )

    __table_args__ = (
        sa.UniqueConstraint("workspace_id", "name", name="uq_channel_workspace_name"),
    )


class ChannelMember(Base):
    __tablename__ = "channel_members"
    channel_id = Column(
        UUID(as_uuid=True), ForeignKey("channels.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    joined_at = Column(DateTime, default=_utcnow)

    channel = relationship("Channel", back_populates="members")


class Committee(Base):
    __tablename__ = "committees"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=_utcnow)

    workspace = relationship("Workspace", back_populates="committees")

    __table_args__ = (
        sa.UniqueConstraint("workspace_id", "name", name="uq_committee_workspace_name"),
    )


class StructureJob(Base):
    __tablename__ = "structure_jobs"

    # purpose: one run of the structure generation workflow for a workspace
    # inputs: workspace id, creator, status driven by the job state machine
    # status: active
    job_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String, default="created", nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    workspace = relationship("Workspace")
    intake = relationship(
        "IntakeForm", back_populates="job", uselist=False, cascade="all, delete-orphan"
    )
    proposals = relationship(
        "StructureProposalRecord",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="StructureProposalRecord.version",
    )
    blueprint = relationship(
        "Blueprint", back_populates="job", uselist=False, cascade="all, delete-orphan"
    )
    events = relationship(
        "StructureJobEvent",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="StructureJobEvent.sequence",
    )


class IntakeForm(Base):
    __tablename__ = "intake_forms"
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("structure_jobs.job_id", ondelete="CASCADE"),
        primary_key=True,
    )
    community_size = Column(String, nullable=False)
    core_activities = Column(JSON, default=list, nullable=False)
    moderation_capacity = Column(String, nullable=False)
    channel_budget = Column(Integer, nullable=False)
    additional_context = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    job = relationship("StructureJob", back_populates="intake")


class StructureProposalRecord(Base):
    __tablename__ = "proposals"

    # purpose: immutable, versioned AI proposals per structure job
    # status: active
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("structure_jobs.job_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    score = Column(Float, nullable=True)
    rationale = Column(Text, nullable=True)
    proposal = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    job = relationship("StructureJob", back_populates="proposals")

    __table_args__ = (
        sa.UniqueConstraint("job_id", "version", name="uq_proposal_job_version"),
    )


class Blueprint(Base):
    __tablename__ = "blueprints"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("structure_jobs.job_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    blueprint = Column(JSON, nullable=False)
    applied_at = Column(DateTime, default=_utcnow, nullable=False)

    job = relationship("StructureJob", back_populates="blueprint")


class StructureJobEvent(Base):
    __tablename__ = "structure_job_events"

    # purpose: append-only audit trail for structure job lifecycle
    # status: active
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(
        UUID(as_uuid=True),
        ForeignKey("structure_jobs.job_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)
    event_type = Column(String, nullable=False)
    payload = Column(JSON, default=dict)
    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    job = relationship("StructureJob", back_populates="events")

    __table_args__ = (
        sa.UniqueConstraint("job_id", "sequence", name="uq_structure_job_event_sequence"),
    )
