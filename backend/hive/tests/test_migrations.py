import importlib.util
from pathlib import Path

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from hive import models
from hive.database import Base

VERSIONS = Path(__file__).resolve().parents[2] / "alembic" / "versions"


def _load(name: str):
    spec = importlib.util.spec_from_file_location(name, VERSIONS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_structure_migration_matches_models():
    migration = _load("20261019_01_structure_workflow")
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        context = MigrationContext.configure(conn)
        with Operations.context(context):
            migration.upgrade()
        inspector = sa.inspect(conn)
        tables = set(inspector.get_table_names())
        assert set(Base.metadata.tables) <= tables

        for table in Base.metadata.sorted_tables:
            migrated = {col["name"] for col in inspector.get_columns(table.name)}
            assert migrated == set(table.columns.keys()), table.name

        constraints = {uc["name"] for uc in inspector.get_unique_constraints("proposals")}
        assert "uq_proposal_job_version" in constraints

        with Operations.context(context):
            migration.downgrade()
        assert sa.inspect(conn).get_table_names() == []
    assert models.StructureProposalRecord.__tablename__ == "proposals"
