"""Structure proposal workflow: intake, generation, normalization, versioning and apply."""

# purpose: aggregate the structure workflow components for routes and workers
# status: active

from .apply import ApplyEngine, ApplyOutcome
from .generators import (
    OpenAIStructureGenerator,
    StaticStructureGenerator,
    StructureGenerator,
    build_structure_generator,
)
from .jobs import InvalidTransition, JobStateMachine, JobStatus
from .normalizer import NormalizedProposal, normalize_proposal
from .proposals import ProposalRecord
from .workflow import StructureWorkflow

__all__ = [
    "ApplyEngine",
    "ApplyOutcome",
    "InvalidTransition",
    "JobStateMachine",
    "JobStatus",
    "NormalizedProposal",
    "OpenAIStructureGenerator",
    "ProposalRecord",
    "StaticStructureGenerator",
    "StructureGenerator",
    "StructureWorkflow",
    "build_structure_generator",
    "normalize_proposal",
]
