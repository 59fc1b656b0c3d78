"""
Unit tests for the stage registry and the pure transition arithmetic.
"""
import pytest
from types import SimpleNamespace

from partner_portal.models.stage import (
    INACTIVE,
    StageNotFoundError,
    get_stage,
    is_assignable_stage,
    is_valid_stage,
    list_stages,
    step_of,
)
from partner_portal.services.pipeline_service import (
    compute_skipped_stages,
    current_step,
    selectable_targets,
)


def _partner(stage: str) -> SimpleNamespace:
    return SimpleNamespace(pipeline_stage=stage)


class TestRegistry:
    def test_twelve_contiguous_steps(self):
        stages = list_stages()
        assert len(stages) == 12
        assert [s.step for s in stages] == list(range(1, 13))

    def test_ids_are_unique(self):
        ids = [s.id for s in list_stages()]
        assert len(ids) == len(set(ids))

    def test_registry_is_restartable(self):
        assert list(list_stages()) == list(list_stages())

    def test_first_and_last(self):
        stages = list_stages()
        assert stages[0].id == "application"
        assert stages[-1].id == "active"

    def test_step_of_known_stage(self):
        assert step_of("loi_sent") == 6
        assert get_stage("trial_active").name == "Trial Active"

    def test_step_of_unknown_stage_raises(self):
        with pytest.raises(StageNotFoundError):
            step_of("nonexistent")

    def test_inactive_is_assignable_but_not_in_registry(self):
        assert not is_valid_stage(INACTIVE)
        assert is_assignable_stage(INACTIVE)
        assert not is_assignable_stage("bogus")


class TestCurrentStep:
    def test_registry_stage(self):
        assert current_step(_partner("venues_setup")) == 5

    def test_inactive_is_zero(self):
        assert current_step(_partner(INACTIVE)) == 0

    def test_garbage_is_zero(self):
        assert current_step(_partner("???")) == 0


class TestSkippedStages:
    def test_skip_three_stages(self):
        assert compute_skipped_stages("initial_review", "venues_setup") == [
            "discovery_scheduled",
            "discovery_complete",
        ]

    def test_skip_from_application(self):
        assert compute_skipped_stages("application", "venues_setup") == [
            "initial_review",
            "discovery_scheduled",
            "discovery_complete",
        ]

    def test_adjacent_target_skips_nothing(self):
        assert compute_skipped_stages("initial_review", "discovery_scheduled") == []

    def test_backward_target_skips_nothing(self):
        assert compute_skipped_stages("loi_signed", "application") == []

    def test_unknown_target_skips_nothing(self):
        assert compute_skipped_stages("application", "nonexistent") == []

    def test_skipped_are_strictly_between_and_ascending(self):
        stages = list_stages()
        for i, current in enumerate(stages):
            for target in stages[i + 1:]:
                skipped = compute_skipped_stages(current.id, target.id)
                steps = [step_of(s) for s in skipped]
                assert steps == sorted(steps)
                assert all(current.step < s < target.step for s in steps)
                assert len(skipped) == max(0, target.step - current.step - 1)

    def test_from_inactive_counts_from_zero(self):
        assert compute_skipped_stages(INACTIVE, "discovery_scheduled") == ["application", "initial_review"]


class TestSelectableTargets:
    def test_only_later_stages(self):
        targets = selectable_targets(_partner("loi_sent"))
        assert [t.id for t in targets] == [s.id for s in list_stages() if s.step > 6]

    def test_inactive_can_target_everything(self):
        assert len(selectable_targets(_partner(INACTIVE))) == 12

    def test_last_stage_has_no_targets(self):
        assert selectable_targets(_partner("active")) == []
