"""Unit tests for quick-add heuristics."""

from remind.models import Priority
from remind.nlp.quick_capture import analyze_quick_add, extract_priority, extract_tags, has_time_reference


class TestAnalyzeQuickAdd:
    """Test suite for analyze_quick_add."""

    def test_urgent_text_is_high_priority(self) -> None:
        """Test that urgency keywords raise the priority."""
        insights = analyze_quick_add("URGENT: send the contract")

        assert insights.is_urgent is True
        assert insights.priority == Priority.HIGH

    def test_no_time_reference_is_low_priority(self) -> None:
        """Test that undated, non-urgent items are low priority."""
        insights = analyze_quick_add("Buy milk")

        assert insights.priority == Priority.LOW
        assert insights.category == "shopping"
        assert insights.tags == ["shopping"]
        assert insights.has_time_reference is False

    def test_time_reference_is_medium_priority(self) -> None:
        """Test that dated, non-urgent items keep medium priority."""
        insights = analyze_quick_add("Call dentist tomorrow at 3pm")

        assert insights.priority == Priority.MEDIUM
        assert insights.category == "work"
        assert insights.tags == ["call"]
        assert insights.has_time_reference is True

    def test_notes_contribute_to_urgency_and_tags(self) -> None:
        """Test that notes are considered alongside the title."""
        insights = analyze_quick_add("Electricity", notes="pay the bill asap")

        assert insights.is_urgent is True
        assert "finance" in insights.tags
        assert insights.category == "general"


class TestHelpers:
    """Test suite for the individual heuristics."""

    def test_extract_priority(self) -> None:
        """Test spoken priority hints."""
        assert extract_priority("fix the leak asap") == Priority.URGENT
        assert extract_priority("important: renew visa") == Priority.HIGH
        assert extract_priority("clean garage whenever") == Priority.LOW
        assert extract_priority("water plants") == Priority.MEDIUM

    def test_extract_tags(self) -> None:
        """Test tag extraction order and content."""
        assert extract_tags("phone the doctor and email the clinic") == ["call", "email", "health"]

    def test_has_time_reference(self) -> None:
        """Test the recognised time references."""
        assert has_time_reference("in 20 minutes")
        assert has_time_reference("this weekend")
        assert has_time_reference("at 10:30 pm")
        assert not has_time_reference("someday")
