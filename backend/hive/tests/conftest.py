import os
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("USE_REAL_AI", "0")
import asyncio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from hive.main import app
from hive.database import Base, get_db
from hive import models, schemas
from hive.results import Issue, Result
from hive.routes.structure import get_structure_workflow
from hive.services.structure import StaticStructureGenerator, StructureWorkflow
from hive.services.workspace_directory import WorkspaceDirectory

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

def override_get_structure_workflow():
    return StructureWorkflow(TestingSessionLocal, StaticStructureGenerator())

app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_structure_workflow] = override_get_structure_workflow


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


class ScriptedGenerator:
    """Generator double returning queued proposals, issues or exceptions in order."""

    def __init__(self, *outcomes, delay: float = 0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.contexts: list[schemas.StructureContext] = []

    async def generate(self, context):
        self.contexts.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, Issue):
            return Result.failure(outcome)
        return Result.success(outcome)


def make_proposal(*channel_names: str, committees=(), rationale: str = "", **kwargs):
    return schemas.StructureProposal(
        channels=[
            schemas.ProposedChannel(name=name, description=f"{name} channel", type="core")
            for name in channel_names
        ],
        committees=[schemas.ProposedCommittee(name=name) for name in committees],
        rationale=rationale,
        **kwargs,
    )


def make_intake(**overrides):
    payload = {
        "community_size": "50-100",
        "core_activities": ["Research", "Outreach"],
        "moderation_capacity": "medium",
        "channel_budget": 10,
    }
    payload.update(overrides)
    return schemas.IntakeFormIn(**payload)


def create_user(*, email: str | None = None, full_name: str = "Test User") -> models.User:
    """
    hive: purpose: persist a throwaway user for service and API tests
    hive: outputs: detached models.User with a committed id
    hive: status: active
    """

    db = TestingSessionLocal()
    try:
        user = models.User(email=email or f"user-{uuid.uuid4()}@example.com", full_name=full_name)
        db.add(user)
        db.commit()
        db.refresh(user)
        db.expunge(user)
        return user
    finally:
        db.close()


def create_workspace(owner: models.User, *, name: str = "Test Workspace") -> models.Workspace:
    db = TestingSessionLocal()
    try:
        workspace = WorkspaceDirectory().create_workspace(
            db, name=name, slug=f"ws-{uuid.uuid4().hex[:12]}", creator_id=owner.id
        )
        db.commit()
        db.refresh(workspace)
        db.expunge(workspace)
        return workspace
    finally:
        db.close()


def auth_headers(user: models.User) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def owner():
    return create_user(full_name="Workspace Owner")


@pytest.fixture
def workspace(owner):
    return create_workspace(owner)


@pytest.fixture
def make_workflow():
    def _build(generator=None, **kwargs):
        return StructureWorkflow(
            TestingSessionLocal, generator or StaticStructureGenerator(), **kwargs
        )

    return _build
