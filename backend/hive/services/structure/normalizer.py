"""Domain repairs and quality scoring for generated proposals."""

from __future__ import annotations

from dataclasses import dataclass

from ... import schemas

# purpose: enforce structure invariants on raw generator output and score it deterministically
# inputs: StructureProposal from a generator plus the StructureContext it was generated for
# outputs: repaired proposal copy and a score in [0.0, 1.0]
# status: active

GENERAL_CHANNEL = "general"
ANNOUNCEMENTS_CHANNEL = "announcements"
GENERAL_DESCRIPTION = "General discussion for the workspace"

BASE_SCORE = 0.5
WITHIN_BUDGET_BONUS = 0.2
GENERAL_BONUS = 0.1
ANNOUNCEMENTS_BONUS = 0.1
RATIONALE_BONUS = 0.1
RATIONALE_MIN_LENGTH = 50


@dataclass(frozen=True, slots=True)
class NormalizedProposal:
    proposal: schemas.StructureProposal
    score: float


def ensure_general_channel(proposal: schemas.StructureProposal) -> schemas.StructureProposal:
    """Return a copy of ``proposal`` guaranteed to contain a ``general`` channel.

    A case variant such as ``General`` is renamed first; otherwise generators
    tend to emit ``general-discussion``, so the first channel whose name starts
    with "general" is renamed before a fresh one is inserted.
    """

    repaired = proposal.model_copy(deep=True)
    if any(channel.name == GENERAL_CHANNEL for channel in repaired.channels):
        return repaired
    for matches in (
        lambda name: name == GENERAL_CHANNEL,
        lambda name: name.startswith(GENERAL_CHANNEL),
    ):
        for channel in repaired.channels:
            if matches(channel.name.lower()):
                channel.name = GENERAL_CHANNEL
                return repaired
    repaired.channels.insert(
        0,
        schemas.ProposedChannel(
            name=GENERAL_CHANNEL,
            description=GENERAL_DESCRIPTION,
            type="core",
            is_private=False,
        ),
    )
    return repaired


def drop_duplicate_names(proposal: schemas.StructureProposal) -> schemas.StructureProposal:
    """Keep the first channel and committee of each exact name.

    Apply checks existence by exact name, so a repeated name would be created
    once and then reported as skipped.
    """

    seen_channels: set[str] = set()
    channels = []
    for channel in proposal.channels:
        if channel.name not in seen_channels:
            seen_channels.add(channel.name)
            channels.append(channel)
    seen_committees: set[str] = set()
    committees = []
    for committee in proposal.committees:
        if committee.name not in seen_committees:
            seen_committees.add(committee.name)
            committees.append(committee)
    return proposal.model_copy(update={"channels": channels, "committees": committees})


def score_proposal(
    proposal: schemas.StructureProposal, context: schemas.StructureContext
) -> float:
    score = BASE_SCORE
    if len(proposal.channels) <= context.channel_budget:
        score += WITHIN_BUDGET_BONUS
    names = {channel.name for channel in proposal.channels}
    if GENERAL_CHANNEL in names:
        score += GENERAL_BONUS
    if ANNOUNCEMENTS_CHANNEL in names:
        score += ANNOUNCEMENTS_BONUS
    if proposal.rationale and len(proposal.rationale) > RATIONALE_MIN_LENGTH:
        score += RATIONALE_BONUS
    # increments are whole hundredths; drop float drift
    return round(min(max(score, 0.0), 1.0), 2)


def normalize_proposal(
    proposal: schemas.StructureProposal, context: schemas.StructureContext
) -> NormalizedProposal:
    repaired = drop_duplicate_names(ensure_general_channel(proposal))
    return NormalizedProposal(proposal=repaired, score=score_proposal(repaired, context))
