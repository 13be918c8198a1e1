"""Tests for LeafTracker."""

from session_graph.segment.leaf_tracker import LeafTracker


class TestLeafTracker:
    def test_starts_empty(self):
        tracker = LeafTracker()

        assert tracker.current_leaf is None
        assert tracker.previous_entry_id is None
        assert tracker.previous_timestamp is None

    def test_follows_latest_entry(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.assistant("b", "a", 1, text="hi"))

        assert tracker.current_leaf == "b"
        assert tracker.previous_entry_id == "a"
        assert tracker.previous_timestamp == build.ts(1)

    def test_metadata_entries_do_not_move_frontier(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.label("l", "a", 1, target_id="a"))
        tracker.update(build.session_info("i", "a", 2, name="x"))

        assert tracker.current_leaf == "a"
        assert tracker.previous_timestamp == build.ts(0)

    def test_resolve_parent_through_metadata(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.label("l", "a", 1, target_id="a"))
        tracker.update(build.session_info("i", "l", 2, name="x"))

        assert tracker.resolve_parent("i") == "a"
        assert tracker.resolve_parent("l") == "a"
        assert tracker.resolve_parent("a") == "a"
        assert tracker.resolve_parent(None) is None

    def test_child_of_label_counts_for_content_parent(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.label("l", "a", 1, target_id="a"))
        tracker.update(build.assistant("b", "l", 2, text="hi"))

        assert tracker.current_leaf == "b"
        assert tracker.child_count("a") == 1
        assert tracker.is_leaf("l") is True

    def test_child_counts(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.assistant("b", "a", 1, text="one"))
        tracker.update(build.assistant("c", "a", 2, text="two"))

        assert tracker.child_count("a") == 2
        assert tracker.is_branch_point("a") is True
        assert tracker.is_branch_point("b") is False
        assert tracker.is_leaf("b") is True
        assert tracker.is_leaf("a") is False

    def test_reset(self, build):
        tracker = LeafTracker()
        tracker.update(build.user("a", None, 0))
        tracker.update(build.assistant("b", "a", 1, text="hi"))

        tracker.update(build.label("l", "b", 2, target_id="b"))

        tracker.reset()

        assert tracker.resolve_parent("l") == "l"
        assert tracker.current_leaf is None
        assert tracker.previous_entry_id is None
        assert tracker.child_count("a") == 0
