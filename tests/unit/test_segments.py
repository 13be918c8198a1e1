"""Tests for segment extraction."""

from session_graph.segment.boundary import detect_boundaries
from session_graph.segment.segments import extract_segments, group_boundaries, segment_entries
from session_graph.session_schema import content_entries


def mixed_session(build):
    """Session with a compaction+resume at one entry, a tree jump and a handoff."""
    return [
        build.user("a", None, 0),
        build.assistant("b", "a", 1, text="hi"),
        build.compaction("c", "b", 30),
        build.label("l", "c", 30, target_id="c"),
        build.user("d", "c", 31),
        build.assistant("e", "d", 32, text="one"),
        build.assistant("f", "d", 33, text="two"),
        build.user("g", "f", 34, "handoff to reviewer"),
        build.assistant("h", "g", 35, text="ok"),
    ]


class TestExtractSegments:
    def test_resume_scenario(self, build):
        """[A, B] closes with the resume at C; [C] is the open tail."""
        entries = [
            build.user("A", None, 0),
            build.assistant("B", "A", 1, text="hi"),
            build.user("C", "B", 16),
        ]

        segments = extract_segments(entries)

        assert len(segments) == 2
        assert (segments[0].start_entry_id, segments[0].end_entry_id) == ("A", "B")
        assert segments[0].entry_count == 2
        assert [b.type for b in segments[0].boundaries] == ["resume"]
        assert segments[0].boundaries[0].entry_id == "C"
        assert (segments[1].start_entry_id, segments[1].end_entry_id) == ("C", "C")
        assert segments[1].boundaries == []

    def test_branch_scenario(self, build):
        entries = [
            build.user("A", None, 0),
            build.assistant("B", "A", 1, text="first"),
            build.branch_summary("S", "A", 2, from_id="B"),
            build.user("D", "S", 3),
            build.assistant("E", "D", 4, text="second"),
        ]

        segments = extract_segments(entries)

        assert [(s.start_entry_id, s.end_entry_id) for s in segments] == [("A", "B"), ("S", "E")]
        assert [b.type for b in segments[0].boundaries] == ["branch"]
        assert segments[1].boundaries == []

    def test_no_boundaries_gives_one_segment(self, build):
        entries = [build.user("a", None, 0), build.assistant("b", "a", 1, text="hi")]

        segments = extract_segments(entries)

        assert len(segments) == 1
        assert segments[0].entry_count == 2
        assert segments[0].start_timestamp == build.ts(0)
        assert segments[0].end_timestamp == build.ts(1)

    def test_empty_entries(self):
        assert extract_segments([]) == []

    def test_only_metadata_entries(self, build):
        assert extract_segments([build.session_info("i", None, 0)]) == []

    def test_segments_cover_every_content_entry_once(self, build):
        entries = mixed_session(build)

        segments = extract_segments(entries)

        covered = []
        for segment in segments:
            covered.extend(e.id for e in segment_entries(entries, segment))
        assert covered == [e.id for e in content_entries(entries)]
        assert sum(s.entry_count for s in segments) == len(content_entries(entries))

    def test_every_boundary_retained(self, build):
        entries = mixed_session(build)
        boundaries = detect_boundaries(entries)

        segments = extract_segments(entries, boundaries)

        attached = [b for s in segments for b in s.boundaries]
        assert attached == boundaries
        assert segments[-1].boundaries == []

    def test_segment_count_is_distinct_boundary_entries_plus_one(self, build):
        entries = mixed_session(build)
        boundaries = detect_boundaries(entries)

        segments = extract_segments(entries, boundaries)

        distinct = {b.entry_id for b in boundaries}
        assert len(distinct) == 3
        assert len(segments) == len(distinct) + 1

    def test_multiple_boundaries_at_one_entry_grouped(self, build):
        segments = extract_segments(mixed_session(build))

        assert [b.type for b in segments[0].boundaries] == ["compaction", "resume"]

    def test_boundary_at_first_entry_dropped(self, build):
        entries = [build.compaction("c", None, 0), build.user("d", "c", 1)]
        boundaries = detect_boundaries(entries)

        segments = extract_segments(entries, boundaries)

        assert [b.type for b in boundaries] == ["compaction"]
        assert len(segments) == 1
        assert segments[0].entry_count == 2
        assert segments[0].boundaries == []

    def test_uses_resume_threshold_when_detecting(self, build):
        entries = [build.user("a", None, 0), build.user("b", "a", 15)]

        assert len(extract_segments(entries, resume_gap_minutes=20)) == 1
        assert len(extract_segments(entries, resume_gap_minutes=10)) == 2

    def test_extraction_is_idempotent(self, build):
        entries = mixed_session(build)

        assert extract_segments(entries) == extract_segments(entries)


class TestSegmentHelpers:
    def test_group_boundaries(self, build):
        boundaries = detect_boundaries(mixed_session(build))

        grouped = group_boundaries(boundaries)

        assert list(grouped) == ["c", "f", "g"]
        assert [b.type for b in grouped["c"]] == ["compaction", "resume"]

    def test_segment_entries_unknown_start(self, build):
        entries = mixed_session(build)
        segment = extract_segments(entries)[0].model_copy(update={"start_entry_id": "nope"})

        assert segment_entries(entries, segment) == []
