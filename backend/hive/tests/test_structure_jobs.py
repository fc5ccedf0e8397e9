import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from hive import models
from hive.eventlog import list_job_events, record_job_event
from hive.services.structure.jobs import (
    InvalidTransition,
    JobStateMachine,
    JobStatus,
    can_transition,
)

from .conftest import TestingSessionLocal, make_intake


def _status(job_id):
    db = TestingSessionLocal()
    try:
        return db.get(models.StructureJob, job_id).status
    finally:
        db.close()


@pytest.fixture
def job(make_workflow, workspace, owner):
    return make_workflow().create_job(workspace.id, owner.id, make_intake()).unwrap()


def test_transition_graph():
    assert can_transition(JobStatus.CREATED, JobStatus.PROPOSED)
    assert can_transition(JobStatus.PROPOSED, JobStatus.PROPOSED)
    assert can_transition(JobStatus.VALIDATED, JobStatus.APPLYING)
    assert can_transition(JobStatus.APPLYING, JobStatus.APPLIED)
    assert can_transition(JobStatus.APPLIED, JobStatus.APPLIED)
    assert not can_transition(JobStatus.CREATED, JobStatus.APPLIED)
    assert not can_transition(JobStatus.APPLIED, JobStatus.PROPOSED)
    assert not can_transition(JobStatus.FAILED, JobStatus.PROPOSED)
    assert JobStatus.APPLIED.is_terminal and JobStatus.FAILED.is_terminal
    assert not JobStatus.PROPOSED.is_terminal


def test_transition_persists_and_records_event(job):
    machine = JobStateMachine(TestingSessionLocal)
    assert machine.transition(job.job_id, JobStatus.PROPOSED) is True
    assert _status(job.job_id) == "proposed"

    db = TestingSessionLocal()
    try:
        events = list_job_events(db, job.job_id)
    finally:
        db.close()
    assert [e.event_type for e in events] == ["job.created", "status.changed"]
    assert events[-1].payload == {"from": "created", "to": "proposed"}


def test_invalid_transition_returns_false(job):
    machine = JobStateMachine(TestingSessionLocal)
    assert machine.transition(job.job_id, JobStatus.APPLIED) is False
    assert _status(job.job_id) == "created"


def test_terminal_status_is_sticky(job):
    machine = JobStateMachine(TestingSessionLocal)
    assert machine.transition(job.job_id, JobStatus.FAILED)
    assert machine.transition(job.job_id, JobStatus.PROPOSED) is False
    assert _status(job.job_id) == "failed"


def test_missing_job_returns_false():
    machine = JobStateMachine(TestingSessionLocal)
    assert machine.transition(uuid.uuid4(), JobStatus.PROPOSED) is False


def test_same_status_write_is_silent(job):
    machine = JobStateMachine(TestingSessionLocal)
    machine.transition(job.job_id, JobStatus.PROPOSED)
    assert machine.transition(job.job_id, JobStatus.PROPOSED) is True

    db = TestingSessionLocal()
    try:
        changes = [e for e in list_job_events(db, job.job_id) if e.event_type == "status.changed"]
    finally:
        db.close()
    assert len(changes) == 1


def test_transition_within_raises_for_illegal_edge(job):
    machine = JobStateMachine(TestingSessionLocal)
    db = TestingSessionLocal()
    try:
        with pytest.raises(InvalidTransition):
            with db.begin():
                machine.transition_within(db, job.job_id, JobStatus.APPLYING)
    finally:
        db.close()
    assert _status(job.job_id) == "created"


def test_event_sequence_allocated_under_job_row_lock(job, db):
    statements = []

    @event.listens_for(db, "do_orm_execute")
    def capture(state):
        statements.append(str(state.statement.compile(dialect=postgresql.dialect())))

    first = record_job_event(db, job.job_id, "note.added", {"n": 1})
    second = record_job_event(db, job.job_id, "note.added", {"n": 2})
    db.commit()

    assert second.sequence == first.sequence + 1
    assert "structure_jobs" in statements[0]
    assert statements[0].rstrip().endswith("FOR UPDATE")
    assert "max(structure_job_events.sequence)" in statements[1]
