"""
Unit tests for sampling strategies.

Tests cover strategy construction in each mode, objective filtering,
next-objective selection, session end detection and progress summaries.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.dto.distribution import ObjectiveAllocation, SamplingStrategy
from core.dto.exam import ExamConstraints, ExamProfile, Objective, SamplingMode
from core.errors import ConfigurationError, UnknownModeError, UnknownObjectiveError
from core.sampling import (
    build_strategy,
    next_objective,
    parse_mode,
    progress_summary,
    resolve_total_questions,
    should_end_session,
    strategy_problems,
    validate_strategy,
)


def make_profile():
    return ExamProfile(
        id="test-exam",
        name="Test Exam",
        objectives=[
            Objective(id="a", title="Alpha", weight=50),
            Objective(id="b", title="Beta", weight=30),
            Objective(id="c", title="Gamma", weight=20),
        ],
        constraints=ExamConstraints(total_questions=100, time_minutes=150),
    )


def counts(strategy):
    return [a.question_count for a in strategy.distribution]


# ============================================================================
# Test build_strategy()
# ============================================================================


def test_build_prep_strategy_is_unbounded():
    """Test prep mode has no budget and reports weight percentages."""
    strategy = build_strategy(make_profile(), "prep")
    assert strategy.mode == SamplingMode.PREP
    assert strategy.total_questions is None
    assert strategy.is_unbounded
    assert counts(strategy) == [50, 30, 20], f"Got {counts(strategy)}"
    print("✓ test_build_prep_strategy_is_unbounded passed")


def test_build_efficient_strategy_uses_30_percent():
    """Test efficient mode samples 30% of the real exam."""
    strategy = build_strategy(make_profile(), SamplingMode.EFFICIENT)
    assert strategy.total_questions == 30, f"Expected 30, got {strategy.total_questions}"
    assert counts(strategy) == [15, 9, 6], f"Got {counts(strategy)}"
    print("✓ test_build_efficient_strategy_uses_30_percent passed")


def test_build_efficient_strategy_with_target():
    """Test an explicit efficient budget overrides the 30% default."""
    strategy = build_strategy(make_profile(), "efficient", target_questions=10)
    assert strategy.total_questions == 10
    assert counts(strategy) == [5, 3, 2]
    print("✓ test_build_efficient_strategy_with_target passed")


def test_build_mock_strategy_uses_full_exam():
    """Test mock mode samples the full exam length."""
    strategy = build_strategy(make_profile(), "MOCK")
    assert strategy.total_questions == 100
    assert counts(strategy) == [50, 30, 20]
    print("✓ test_build_mock_strategy_uses_full_exam passed")


def test_build_strategy_with_focus_renormalizes():
    """Test focusing on a subset renormalizes the remaining weights."""
    strategy = build_strategy(make_profile(), "efficient", focus_objective_ids=["a", "c"])
    assert [a.objective_id for a in strategy.distribution] == ["a", "c"]
    # 30 * 50/70 = 21.4 -> 21, remainder 9
    assert counts(strategy) == [21, 9], f"Got {counts(strategy)}"
    assert sum(a.weight_percent for a in strategy.distribution) == pytest.approx(100.0)
    print("✓ test_build_strategy_with_focus_renormalizes passed")


def test_build_strategy_unknown_focus_objective():
    """Test an unknown focus objective is rejected."""
    with pytest.raises(UnknownObjectiveError) as excinfo:
        build_strategy(make_profile(), "prep", focus_objective_ids=["a", "zzz"])
    assert excinfo.value.objective_id == "zzz"
    assert "test-exam" in str(excinfo.value)
    print("✓ test_build_strategy_unknown_focus_objective passed")


def test_build_strategy_unknown_mode():
    """Test an unknown mode raises UnknownModeError."""
    with pytest.raises(UnknownModeError, match="Unknown sampling mode: sprint"):
        build_strategy(make_profile(), "sprint")
    print("✓ test_build_strategy_unknown_mode passed")


def test_negative_target_is_rejected():
    with pytest.raises(ConfigurationError):
        resolve_total_questions(make_profile(), SamplingMode.EFFICIENT, -5)


def test_parse_mode():
    assert parse_mode("Prep") == SamplingMode.PREP
    assert parse_mode(SamplingMode.MOCK) == SamplingMode.MOCK


# ============================================================================
# Test validate_strategy()
# ============================================================================


def test_built_strategies_are_valid():
    """Test every mode produces a valid strategy."""
    for mode in ("prep", "efficient", "mock"):
        strategy = build_strategy(make_profile(), mode)
        assert validate_strategy(strategy), f"{mode} strategy invalid: {strategy_problems(strategy)}"
    print("✓ test_built_strategies_are_valid passed")


def test_validate_rejects_empty_allocation():
    """Test an objective with zero questions invalidates a bounded strategy."""
    strategy = SamplingStrategy(
        mode=SamplingMode.EFFICIENT,
        total_questions=2,
        distribution=[
            ObjectiveAllocation("a", 1, 33.4),
            ObjectiveAllocation("b", 1, 33.3),
            ObjectiveAllocation("c", 0, 33.3),
        ],
    )
    assert not validate_strategy(strategy)
    assert strategy_problems(strategy) == ["c has 0 questions"]
    print("✓ test_validate_rejects_empty_allocation passed")


def test_validate_rejects_wrong_total():
    strategy = SamplingStrategy(
        mode=SamplingMode.MOCK,
        total_questions=10,
        distribution=[ObjectiveAllocation("a", 5, 50.0), ObjectiveAllocation("b", 4, 50.0)],
    )
    assert strategy_problems(strategy) == ["allocated 9 of 10 questions"]


def test_validate_rejects_bad_weight_total():
    strategy = SamplingStrategy(
        mode=SamplingMode.PREP,
        total_questions=None,
        distribution=[ObjectiveAllocation("a", 50, 50.0), ObjectiveAllocation("b", 30, 30.0)],
    )
    assert not validate_strategy(strategy)


# ============================================================================
# Test next_objective() / should_end_session()
# ============================================================================


class TestNextObjective:
    """Objective selection per mode."""

    def test_prep_starts_with_first_objective(self):
        strategy = build_strategy(make_profile(), "prep")
        assert next_objective(strategy, {}) == "a"

    def test_prep_picks_objective_furthest_behind_weight(self):
        strategy = build_strategy(make_profile(), "prep")
        assert next_objective(strategy, {"a": 1}) == "b"
        assert next_objective(strategy, {"a": 5, "b": 3, "c": 1}) == "c"

    def test_prep_ties_go_to_profile_order(self):
        strategy = build_strategy(make_profile(), "prep")
        assert next_objective(strategy, {"a": 5, "b": 3, "c": 2}) == "a"

    def test_efficient_fills_objectives_in_order(self):
        strategy = build_strategy(make_profile(), "efficient")
        assert next_objective(strategy, {}) == "a"
        assert next_objective(strategy, {"a": 15}) == "b"
        assert next_objective(strategy, {"a": 15, "b": 9}) == "c"

    def test_complete_strategy_returns_none(self):
        strategy = build_strategy(make_profile(), "efficient")
        assert next_objective(strategy, {"a": 15, "b": 9, "c": 6}) is None


def test_should_end_session():
    """Test bounded runs end once every objective reaches its target and prep never ends."""
    prep = build_strategy(make_profile(), "prep")
    efficient = build_strategy(make_profile(), "efficient")

    assert not should_end_session(prep, {"a": 500, "b": 300, "c": 200})
    assert not should_end_session(efficient, {})
    assert not should_end_session(efficient, {"a": 15, "b": 9, "c": 5})
    assert should_end_session(efficient, {"a": 15, "b": 9, "c": 6})
    assert should_end_session(efficient, {"a": 16, "b": 9, "c": 6})
    print("✓ test_should_end_session passed")


def test_should_end_session_waits_for_short_objective():
    """Test a used-up budget does not end the run while one objective is short."""
    profile = ExamProfile(
        id="two-part",
        name="Two Part",
        objectives=[
            Objective(id="a", title="Alpha", weight=70),
            Objective(id="b", title="Beta", weight=30),
        ],
        constraints=ExamConstraints(total_questions=10, time_minutes=15),
    )
    mock = build_strategy(profile, "mock")
    assert [a.question_count for a in mock.distribution] == [7, 3]

    assert not should_end_session(mock, {"a": 10, "b": 0}), "b is still at 0/3"
    assert not should_end_session(mock, {"a": 9, "b": 2})
    assert should_end_session(mock, {"a": 7, "b": 3})
    print("✓ test_should_end_session_waits_for_short_objective passed")


# ============================================================================
# Test progress_summary()
# ============================================================================


def test_progress_summary_bounded():
    """Test completion against an efficient budget."""
    strategy = build_strategy(make_profile(), "efficient")
    summary = progress_summary(strategy, {"a": 15, "b": 3})

    assert summary.total_completed == 18
    assert summary.total_target == 30
    assert summary.completion_percentage == pytest.approx(60.0)
    rows = {row.objective_id: row for row in summary.objectives}
    assert rows["a"].percentage == pytest.approx(100.0)
    assert rows["b"].percentage == pytest.approx(100 / 3)
    assert rows["c"].completed == 0
    print("✓ test_progress_summary_bounded passed")


def test_progress_summary_prep_target_grows():
    """Test the prep target is at least 100 and grows with the run."""
    strategy = build_strategy(make_profile(), "prep")

    early = progress_summary(strategy, {"a": 10})
    assert early.total_target == 100
    assert early.completion_percentage == pytest.approx(10.0)

    late = progress_summary(strategy, {"a": 80, "b": 50, "c": 20})
    assert late.total_target == 150
    assert late.completion_percentage == pytest.approx(100.0)
    print("✓ test_progress_summary_prep_target_grows passed")


def test_progress_summary_caps_objective_percentage():
    strategy = build_strategy(make_profile(), "efficient")
    summary = progress_summary(strategy, {"c": 12})
    assert summary.objectives[2].percentage == 100.0
