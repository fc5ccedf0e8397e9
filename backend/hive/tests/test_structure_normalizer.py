from hive import schemas
from hive.services.structure.normalizer import (
    GENERAL_DESCRIPTION,
    RATIONALE_MIN_LENGTH,
    drop_duplicate_names,
    ensure_general_channel,
    normalize_proposal,
    score_proposal,
)

from .conftest import make_proposal

LONG_RATIONALE = "A structure sized for a mid-sized research community with active outreach."


def _context(budget: int = 10) -> schemas.StructureContext:
    return schemas.StructureContext(
        community_size="50-100",
        core_activities=["Research"],
        moderation_capacity="medium",
        channel_budget=budget,
        workspace_name="Lab",
    )


def test_general_prefixed_channel_is_renamed():
    proposal = make_proposal("general-discussion", "announcements")
    repaired = ensure_general_channel(proposal)
    assert [c.name for c in repaired.channels] == ["general", "announcements"]
    # the generator output is left untouched
    assert proposal.channels[0].name == "general-discussion"


def test_general_inserted_first_when_missing():
    repaired = ensure_general_channel(make_proposal("random", "research"))
    assert [c.name for c in repaired.channels] == ["general", "random", "research"]
    general = repaired.channels[0]
    assert general.type == "core"
    assert general.is_private is False
    assert general.description == GENERAL_DESCRIPTION


def test_existing_general_channel_kept_as_is():
    repaired = ensure_general_channel(make_proposal("announcements", "general"))
    assert [c.name for c in repaired.channels] == ["announcements", "general"]


def test_only_first_general_prefixed_channel_renamed():
    repaired = ensure_general_channel(make_proposal("general-chat", "general-help"))
    assert [c.name for c in repaired.channels] == ["general", "general-help"]


def test_score_without_announcements_or_rationale():
    proposal = make_proposal("general", "random")
    assert score_proposal(proposal, _context()) == 0.8


def test_score_full_marks():
    proposal = make_proposal("general", "announcements", rationale=LONG_RATIONALE)
    assert score_proposal(proposal, _context()) == 1.0


def test_score_over_budget_loses_budget_bonus():
    proposal = make_proposal("general", "announcements", "random", rationale=LONG_RATIONALE)
    assert score_proposal(proposal, _context(budget=2)) == 0.8


def test_short_rationale_earns_nothing():
    proposal = make_proposal("general", rationale="Too short.")
    assert score_proposal(proposal, _context()) == 0.8


def test_normalize_scores_repaired_proposal():
    normalized = normalize_proposal(
        make_proposal("general-discussion", "announcements", rationale=LONG_RATIONALE),
        _context(),
    )
    assert normalized.proposal.channels[0].name == "general"
    assert normalized.score == 1.0
    assert 0.0 <= normalized.score <= 1.0


def test_case_variant_general_renamed_before_prefixed_channel():
    repaired = ensure_general_channel(make_proposal("general-discussion", "General"))
    assert [c.name for c in repaired.channels] == ["general-discussion", "general"]

    repaired = ensure_general_channel(make_proposal("General-Discussion", "random"))
    assert [c.name for c in repaired.channels] == ["general", "random"]


def test_duplicate_names_keep_first_occurrence():
    proposal = make_proposal(
        "general", "research", "research", committees=("Ethics", "Budget", "Ethics")
    )
    proposal.channels[2].description = "second copy"
    deduped = drop_duplicate_names(proposal)
    assert [c.name for c in deduped.channels] == ["general", "research"]
    assert deduped.channels[1].description == "research channel"
    assert [c.name for c in deduped.committees] == ["Ethics", "Budget"]
    assert len(proposal.channels) == 3


def test_normalize_drops_duplicates_before_scoring():
    normalized = normalize_proposal(
        make_proposal("general", "announcements", "announcements", rationale=LONG_RATIONALE),
        _context(budget=2),
    )
    assert [c.name for c in normalized.proposal.channels] == ["general", "announcements"]
    assert normalized.score == 1.0


def test_channel_count_equal_to_budget_earns_budget_bonus():
    channels = ("general", "announcements", "random")
    assert score_proposal(make_proposal(*channels, rationale=LONG_RATIONALE), _context(budget=3)) == 1.0
    assert score_proposal(
        make_proposal(*channels, "help", rationale=LONG_RATIONALE), _context(budget=3)
    ) == 0.8


def test_rationale_bonus_needs_more_than_fifty_characters():
    assert RATIONALE_MIN_LENGTH == 50
    at_limit = make_proposal("general", "announcements", rationale="x" * 50)
    over_limit = make_proposal("general", "announcements", rationale="x" * 51)
    assert score_proposal(at_limit, _context()) == 0.9
    assert score_proposal(over_limit, _context()) == 1.0


def test_eight_channels_with_general_discussion_scores_at_least_point_eight():
    proposal = make_proposal(
        "general-discussion", "announcements", "random", "research",
        "outreach", "events", "help", "resources",
        rationale=LONG_RATIONALE,
    )
    normalized = normalize_proposal(proposal, _context(budget=10))
    assert normalized.proposal.channels[0].name == "general"
    assert len(normalized.proposal.channels) == 8
    assert normalized.score >= 0.8
