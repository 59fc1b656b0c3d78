"""
Partner pipeline stage registry.

Fixed, ordered list of onboarding stages. Steps are 1-based and contiguous;
``inactive`` is a sentinel outside the registry used for denied partners.
"""
from dataclasses import dataclass


class StageNotFoundError(Exception):
    """Raised when a stage id is not in the registry."""
    pass


@dataclass(frozen=True)
class PipelineStage:
    id: str
    name: str
    step: int


INACTIVE = "inactive"

PIPELINE_STAGES: tuple[PipelineStage, ...] = (
    PipelineStage("application", "Application", 1),
    PipelineStage("initial_review", "Initial Review", 2),
    PipelineStage("discovery_scheduled", "Discovery Call", 3),
    PipelineStage("discovery_complete", "Post-Call Review", 4),
    PipelineStage("venues_setup", "Venues Setup", 5),
    PipelineStage("loi_sent", "LOI Sent", 6),
    PipelineStage("loi_signed", "LOI Signed", 7),
    PipelineStage("install_scheduled", "Install Scheduled", 8),
    PipelineStage("trial_active", "Trial Active", 9),
    PipelineStage("trial_ending", "Trial Ending", 10),
    PipelineStage("contract_decision", "Contract Decision", 11),
    PipelineStage("active", "Active Client", 12),
)

_BY_ID = {stage.id: stage for stage in PIPELINE_STAGES}

# Stages the admin UI groups together
REVIEW_STAGES = frozenset({"initial_review", "discovery_complete"})
TRIAL_STAGES = frozenset({"trial_active", "trial_ending"})


def list_stages() -> tuple[PipelineStage, ...]:
    """All stages in step order. Returns the same immutable tuple on every call."""
    return PIPELINE_STAGES


def get_stage(stage_id: str) -> PipelineStage:
    try:
        return _BY_ID[stage_id]
    except KeyError:
        raise StageNotFoundError(f"Unknown pipeline stage '{stage_id}'") from None


def step_of(stage_id: str) -> int:
    """Step index of a registry stage; raises StageNotFoundError otherwise."""
    return get_stage(stage_id).step


def is_valid_stage(stage_id: str | None) -> bool:
    return stage_id in _BY_ID


def is_assignable_stage(stage_id: str | None) -> bool:
    """Registry ids plus the inactive sentinel."""
    return stage_id == INACTIVE or stage_id in _BY_ID
