"""
Unit tests for executor/builtin.py
"""

import pytest

from bindflow.executor.builtin import (
    calculate_balance,
    calculate_ranking,
    detect_gaps,
    filter_high_priority,
    generate_summary,
)


class TestCalculateRanking:
    """Test calculate_ranking."""

    def test_ranks_by_axis_sum(self):
        """Test items are sorted by summed axis scores, highest first."""
        ranking = calculate_ranking({
            "a": {"cost": 1, "impact": 2},
            "b": {"cost": 5, "impact": 4},
            "c": {"cost": 2, "impact": 2},
        })

        assert [item["id"] for item in ranking] == ["b", "c", "a"]
        assert ranking[0]["score"] == 9
        assert ranking[0]["label"] == "b"
        assert ranking[0]["metadata"] == {"axisValues": {"cost": 5, "impact": 4}}

    def test_empty(self):
        """Test an empty mapping ranks to an empty list."""
        assert calculate_ranking({}) == []

    def test_rejects_non_mapping(self):
        """Test a non-mapping raises TypeError."""
        with pytest.raises(TypeError):
            calculate_ranking([1, 2])


class TestCalculateBalance:
    """Test calculate_balance."""

    def test_right_heavy(self):
        """Test (right - left) / total with the split at the midpoint."""
        assert calculate_balance({"a": 1, "b": 1, "c": 2, "d": 4}) == pytest.approx(0.5)

    def test_odd_count_puts_extra_on_right(self):
        """Test the midpoint index sends the middle value right."""
        assert calculate_balance({"a": 2, "b": 1, "c": 1}) == 0

    def test_zero_total(self):
        """Test empty pans balance to zero."""
        assert calculate_balance({}) == 0
        assert calculate_balance({"a": 0, "b": 0}) == 0


class TestFilterHighPriority:
    """Test filter_high_priority."""

    def test_keeps_upper_right_quadrant(self):
        """Test only x > 0.5 and y > 0.5 are kept."""
        items = [
            {"id": 1, "position": {"x": 0.9, "y": 0.9}},
            {"id": 2, "position": {"x": 0.5, "y": 0.9}},
            {"id": 3, "position": {"x": 0.9, "y": 0.1}},
            {"id": 4},
        ]
        assert [item["id"] for item in filter_high_priority(items)] == [1]


class TestGenerateSummary:
    """Test generate_summary."""

    def test_string_passthrough(self):
        assert generate_summary("hello") == "hello"

    def test_list(self):
        assert generate_summary([1, 2]) == "2個のアイテム"

    def test_short_mapping(self):
        assert generate_summary({"a": 1, "b": 2}) == "2個のプロパティ: a, b"

    def test_long_mapping_truncated(self):
        """Test only the first three keys are listed."""
        data = {"a": 1, "b": 2, "c": 3, "d": 4}
        assert generate_summary(data) == "4個のプロパティ: a, b, c..."

    def test_scalar(self):
        assert generate_summary(42) == "42"


class TestDetectGaps:
    """Test detect_gaps."""

    def test_missing_and_empty_quadrants(self):
        """Test missing or empty quadrants are reported in canonical order."""
        data = {"strengths": ["fast"], "weaknesses": [], "threats": ["x"]}
        assert detect_gaps(data) == ["weaknesses", "opportunities"]

    def test_complete(self):
        data = {q: ["item"] for q in ("strengths", "weaknesses", "opportunities", "threats")}
        assert detect_gaps(data) == []


class TestReferenceScenarios:
    """Test the documented example inputs."""

    def test_ranking_example(self):
        ranking = calculate_ranking({
            "a": {"x": 5, "y": 3},
            "b": {"x": 2, "y": 4},
            "c": {"x": 4, "y": 5},
        })
        scores = [item["score"] for item in ranking]

        assert ranking[0]["id"] == "c"
        assert scores == sorted(scores, reverse=True)

    def test_balance_example_in_range(self):
        assert -1 <= calculate_balance({"r1": 3, "r2": 5, "b1": 4, "b2": 6}) <= 1

    def test_filter_example(self):
        items = [
            {"id": 1, "position": {"x": 0.8, "y": 0.8}},
            {"id": 2, "position": {"x": 0.3, "y": 0.7}},
            {"id": 3, "position": {"x": 0.6, "y": 0.6}},
            {"id": 4, "position": {"x": 0.2, "y": 0.2}},
        ]
        assert filter_high_priority(items) == [items[0], items[2]]
