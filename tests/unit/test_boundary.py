"""Tests for boundary detection."""

import pytest

from session_graph.segment.boundary import (
    detect_boundaries,
    detect_handoff_target,
    get_boundary_stats,
)


class TestResumeBoundary:
    def test_gap_scenario(self, build):
        """A(t=0) -> B(t=1) -> C(t=16) gives one resume boundary at C."""
        entries = [
            build.user("A", None, 0),
            build.assistant("B", "A", 1, text="hi"),
            build.user("C", "B", 16),
        ]

        boundaries = detect_boundaries(entries)

        assert len(boundaries) == 1
        assert boundaries[0].type == "resume"
        assert boundaries[0].entry_id == "C"
        assert boundaries[0].previous_entry_id == "B"
        assert boundaries[0].metadata.gap_minutes == 15.0

    def test_threshold_is_inclusive(self, build):
        """A gap of exactly the threshold fires; one second less does not."""
        at_threshold = [build.user("a", None, 0), build.user("b", "a", 10)]
        below_threshold = [build.user("a", None, 0), build.user("b", "a", 9, seconds=59)]

        assert [b.type for b in detect_boundaries(at_threshold, 10)] == ["resume"]
        assert detect_boundaries(below_threshold, 10) == []

    def test_custom_threshold(self, build):
        entries = [build.user("a", None, 0), build.user("b", "a", 15)]

        assert detect_boundaries(entries, resume_gap_minutes=20) == []
        assert len(detect_boundaries(entries, resume_gap_minutes=5)) == 1

    def test_gap_measured_across_metadata(self, build):
        entries = [
            build.user("a", None, 0),
            build.label("l", "a", 14, target_id="a"),
            build.user("b", "a", 15),
        ]

        boundaries = detect_boundaries(entries)

        assert len(boundaries) == 1
        assert boundaries[0].previous_entry_id == "a"
        assert boundaries[0].metadata.gap_minutes == 15.0

    def test_gap_rounded_to_two_decimals(self, build):
        entries = [build.user("a", None, 0), build.user("b", "a", 12, seconds=20)]

        assert detect_boundaries(entries)[0].metadata.gap_minutes == 12.33

    def test_unparseable_timestamp_never_fires(self, build):
        bad = build.user("b", "a", 0).model_copy(update={"timestamp": "yesterday"})
        entries = [build.user("a", None, 0), bad]

        assert detect_boundaries(entries) == []


class TestStructuralBoundaries:
    def test_branch_summary(self, build):
        """A branch summary splits the work before it from the work after."""
        entries = [
            build.user("A", None, 0),
            build.assistant("B", "A", 1, text="first approach"),
            build.branch_summary("S", "A", 2, from_id="B", summary="Tried approach one"),
            build.user("D", "S", 3),
        ]

        boundaries = detect_boundaries(entries)

        assert len(boundaries) == 1
        assert boundaries[0].type == "branch"
        assert boundaries[0].entry_id == "S"
        assert boundaries[0].previous_entry_id == "B"
        assert boundaries[0].metadata.summary == "Tried approach one"

    def test_compaction(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="hi"),
            build.compaction("c", "b", 2, summary="Earlier work", tokens_before=80000),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["compaction"]
        assert boundaries[0].metadata.tokens_before == 80000
        assert boundaries[0].metadata.summary == "Earlier work"

    def test_tree_jump(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="answer one"),
            build.assistant("c", "a", 2, text="answer two"),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["tree_jump"]
        assert boundaries[0].entry_id == "c"
        assert boundaries[0].previous_entry_id == "b"
        assert boundaries[0].metadata.expected_parent_id == "b"
        assert boundaries[0].metadata.actual_parent_id == "a"

    def test_no_tree_jump_right_after_branch_summary(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="hi"),
            build.branch_summary("s", "a", 2, from_id="b"),
            build.user("d", "a", 3),
        ]

        assert [b.type for b in detect_boundaries(entries)] == ["branch"]

    def test_labels_do_not_cause_tree_jumps(self, build):
        entries = [
            build.user("a", None, 0),
            build.label("l", "a", 1, target_id="a"),
            build.assistant("b", "a", 2, text="hi"),
        ]

        assert detect_boundaries(entries) == []

    def test_label_as_parent_is_not_a_tree_jump(self, build):
        entries = [
            build.user("a", None, 0),
            build.label("l", "a", 1, target_id="a"),
            build.assistant("b", "l", 2, text="hi"),
            build.user("c", "b", 3),
        ]

        assert detect_boundaries(entries) == []

    def test_session_info_as_parent_is_not_a_tree_jump(self, build):
        entries = [
            build.user("a", None, 0),
            build.session_info("i", "a", 1, name="named"),
            build.assistant("b", "i", 2, text="hi"),
        ]

        assert detect_boundaries(entries) == []

    def test_jump_after_label_still_detected(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="first"),
            build.label("l", "b", 2, target_id="b"),
            build.user("c", "a", 3, "go back"),
        ]

        boundaries = detect_boundaries(entries)

        assert [(b.type, b.entry_id) for b in boundaries] == [("tree_jump", "c")]
        assert boundaries[0].metadata.expected_parent_id == "b"
        assert boundaries[0].metadata.actual_parent_id == "a"

    def test_jump_through_label_reports_content_parent(self, build):
        entries = [
            build.user("a", None, 0),
            build.label("l", "a", 1, target_id="a"),
            build.assistant("b", "a", 2, text="first"),
            build.user("c", "l", 3, "back to the start"),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["tree_jump"]
        assert boundaries[0].metadata.actual_parent_id == "a"

    def test_linear_session_has_no_boundaries(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="hi"),
            build.tool_result("c", "b", 2),
            build.assistant("d", "c", 3, text="done"),
        ]

        assert detect_boundaries(entries) == []


class TestHandoffBoundaries:
    @pytest.mark.parametrize("text,target", [
        ("Let's handoff to reviewer now", "reviewer"),
        ("Please hand this off to codex", "codex"),
        ("hand off to planner", "planner"),
        ("Passing to gpt-5 for the tests", "gpt-5"),
        ("continue with research agent", "research"),
    ])
    def test_handoff_phrases(self, text, target):
        assert detect_handoff_target(text) == target

    def test_no_handoff_phrase(self):
        assert detect_handoff_target("handle the offset properly") is None

    def test_handoff_in_user_message(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="done"),
            build.user("c", "b", 2, "OK, handoff to reviewer"),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["handoff"]
        assert boundaries[0].previous_entry_id == "b"
        assert boundaries[0].metadata.handoff_target == "reviewer"

    def test_handoff_previous_entry_is_current_leaf(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="done"),
            build.user("c", "a", 2, "passing to codex"),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["handoff", "tree_jump"]
        # the leaf, not the message's parent
        assert boundaries[0].previous_entry_id == "b"

    def test_handoff_phrase_in_assistant_text_ignored(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="I will handoff to reviewer"),
        ]

        assert detect_boundaries(entries) == []

    def test_explicit_handoff_marker(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="done"),
            build.custom("h", "b", 2, custom_type="handoff", data={"target": "codex"}),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["handoff"]
        assert boundaries[0].entry_id == "h"
        assert boundaries[0].previous_entry_id == "b"
        assert boundaries[0].metadata.handoff_target == "codex"

    def test_explicit_handoff_custom_type_configurable(self, build):
        entries = [
            build.user("a", None, 0),
            build.custom("h", "a", 1, custom_type="delegate", data={}),
        ]

        assert detect_boundaries(entries) == []
        boundaries = detect_boundaries(entries, handoff_custom_type="delegate")
        assert [b.type for b in boundaries] == ["handoff"]
        assert boundaries[0].metadata.handoff_target is None


class TestMultipleBoundaries:
    def test_one_entry_can_carry_several_boundaries(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="hi"),
            build.compaction("c", "b", 30),
        ]

        boundaries = detect_boundaries(entries)

        assert [b.type for b in boundaries] == ["compaction", "resume"]
        assert all(b.entry_id == "c" for b in boundaries)

    def test_tree_jump_and_resume_order(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="one"),
            build.assistant("c", "a", 20, text="two"),
        ]

        assert [b.type for b in detect_boundaries(entries)] == ["tree_jump", "resume"]

    def test_detection_is_idempotent(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="one"),
            build.assistant("c", "a", 20, text="two"),
            build.compaction("d", "c", 21),
            build.user("e", "d", 22, "handoff to reviewer"),
        ]

        assert detect_boundaries(entries) == detect_boundaries(entries)

    def test_boundaries_follow_entry_order(self, build):
        entries = [
            build.user("a", None, 0),
            build.compaction("b", "a", 1),
            build.user("c", "b", 20),
            build.assistant("d", "a", 21, text="jump"),
        ]

        ids = [b.entry_id for b in detect_boundaries(entries)]

        assert ids == sorted(ids)

    def test_empty_entries(self):
        assert detect_boundaries([]) == []


class TestBoundaryStats:
    def test_counts_by_type(self, build):
        entries = [
            build.user("a", None, 0),
            build.assistant("b", "a", 1, text="hi"),
            build.compaction("c", "b", 30),
            build.user("d", "c", 31),
        ]

        stats = get_boundary_stats(entries)

        assert stats.total == 2
        assert stats.by_type["compaction"] == 1
        assert stats.by_type["resume"] == 1
        assert stats.by_type["branch"] == 0
        assert stats.segment_count == 2
