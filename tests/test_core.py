"""
Gateway Flow - Unit Tests: Timeline Reconstruction

Tests:
1. Phase ranking
2. Session grouping (completeness, discovery order)
3. Sequencing (phase, then seq, then ts; stability)
4. Assembly (markers, identities)
5. Reconstruction (scenarios, idempotence, append stability, malformed input)
"""
import pytest


def ev(type_, sid=None, seq=None, ts=None, src="a", dst="b", **extra):
    raw = {"type": type_, "src": src, "dst": dst, **extra}
    if sid is not None:
        raw["sessionId"] = sid
    if seq is not None:
        raw["seq"] = seq
    if ts is not None:
        raw["ts"] = ts
    return raw


# ═══════════════════════════════════════════════════════════
# 1. Phase Tests
# ═══════════════════════════════════════════════════════════

class TestPhase:

    def test_declaration_order_is_rank(self):
        from models import Phase
        ranks = [Phase.M1.rank, Phase.M2.rank, Phase.M3.rank, Phase.M4.rank, Phase.UNCLASSIFIED.rank]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 5

    def test_unknown_tags_are_unclassified(self):
        from models import Phase
        assert Phase.from_tag("M3") is Phase.M3
        assert Phase.from_tag("M9") is Phase.UNCLASSIFIED
        assert Phase.from_tag("") is Phase.UNCLASSIFIED
        assert Phase.from_tag(None) is Phase.UNCLASSIFIED

    def test_log_event_accepts_gateway_field_names(self):
        from models import LogEvent
        e = LogEvent.model_validate({"type": "M2", "sessionId": "s1", "seq": 4, "ts": 1.5})
        assert e.session_id == "s1"
        assert e.phase.value == "M2"
        assert e.src == "" and e.details is None


# ═══════════════════════════════════════════════════════════
# 2. Session Grouper Tests
# ═══════════════════════════════════════════════════════════

class TestGrouping:

    def _events(self, raws):
        from reconstruction import coerce_event
        return [coerce_event(r) for r in raws]

    def test_every_event_lands_in_exactly_one_bucket(self):
        from reconstruction import group_sessions
        events = self._events([
            ev("M1", "s1"), ev("M2"), ev("M1", "s2"), ev("M3", "s1"), ev("M4", ""), ev("X", "s2"),
        ])
        groups = group_sessions(events)
        flat = [e for bucket in groups.values() for e in bucket]
        assert len(flat) == len(events)
        assert all(any(e is f for f in flat) for e in events)
        assert sum(1 for e in flat for f in events if e is f) == len(events)

    def test_missing_or_empty_session_goes_to_default(self):
        from reconstruction import DEFAULT_SESSION, group_sessions
        groups = group_sessions(self._events([ev("M1"), ev("M2", "")]))
        assert list(groups) == [DEFAULT_SESSION]
        assert len(groups[DEFAULT_SESSION]) == 2

    def test_keys_in_discovery_order_and_buckets_keep_input_order(self):
        from reconstruction import group_sessions
        events = self._events([
            ev("M2", "b", src="first-b"), ev("M1", "a"), ev("M1", "b", src="second-b"), ev("M1", "c"),
        ])
        groups = group_sessions(events)
        assert list(groups) == ["b", "a", "c"]
        assert [e.src for e in groups["b"]] == ["first-b", "second-b"]


# ═══════════════════════════════════════════════════════════
# 3. Sequencer Tests
# ═══════════════════════════════════════════════════════════

class TestSequencer:

    def _order(self, raws):
        from reconstruction import coerce_event, sequence_session
        return [e for _, e in sequence_session([coerce_event(r) for r in raws])]

    def test_phase_wins_over_seq_and_ts(self):
        ordered = self._order([ev("M3", seq=1, ts=1), ev("M1", seq=9, ts=99), ev("M2", seq=5, ts=50)])
        assert [e.type for e in ordered] == ["M1", "M2", "M3"]

    def test_seq_breaks_phase_ties(self):
        ordered = self._order([ev("M1", seq=3, ts=1), ev("M1", seq=1, ts=5)])
        assert [e.seq for e in ordered] == [1, 3]

    def test_ts_breaks_seq_ties(self):
        ordered = self._order([ev("M2", seq=1, ts=7.5), ev("M2", seq=1, ts=2.25)])
        assert [e.ts for e in ordered] == [2.25, 7.5]

    def test_missing_seq_and_ts_count_as_zero(self):
        ordered = self._order([ev("M1", seq=1), ev("M1", ts=3), ev("M1")])
        assert [(e.seq, e.ts) for e in ordered] == [(None, None), (None, 3.0), (1, None)]

    def test_equal_keys_keep_input_order(self):
        ordered = self._order([ev("M4", src="x"), ev("M4", src="y"), ev("M4", src="z")])
        assert [e.src for e in ordered] == ["x", "y", "z"]

    def test_returns_pre_sort_bucket_index(self):
        from reconstruction import coerce_event, sequence_session
        pairs = sequence_session([coerce_event(ev("M2")), coerce_event(ev("M1"))])
        assert [(i, e.type) for i, e in pairs] == [(1, "M1"), (0, "M2")]


# ═══════════════════════════════════════════════════════════
# 4. Reconstruction Tests
# ═══════════════════════════════════════════════════════════

class TestReconstruct:

    def test_phase_order_beats_timestamp_order(self):
        from reconstruction import reconstruct
        timeline = reconstruct([
            {"type": "M2", "sessionId": "s1", "seq": 2, "ts": 10},
            {"type": "M1", "sessionId": "s1", "seq": 1, "ts": 12},
        ])
        assert [e.type for e in timeline] == ["SESSION", "M1", "M2"]
        marker = timeline[0]
        assert marker.kind.value == "session"
        assert marker.id == "sess-s1"
        assert marker.label == "Session s1"
        assert marker.ts == 12
        assert [e.id for e in timeline[1:]] == [1, 2]

    def test_no_session_ids_means_no_markers(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M3", seq=1), ev("M1", seq=5), ev("M1", seq=2)])
        assert all(e.kind.value == "message" for e in timeline)
        assert [(e.type, e.seq) for e in timeline] == [("M1", 2), ("M1", 5), ("M3", 1)]

    def test_unknown_phase_sorts_last(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M9", "s1", ts=1), ev("M1", "s1", ts=100)])
        assert [e.type for e in timeline] == ["SESSION", "M1", "M9"]
        assert timeline[2].phase.value == "UNCLASSIFIED"

    def test_markers_follow_discovery_order(self):
        from reconstruction import reconstruct, session_ids
        timeline = reconstruct([
            ev("M1", "zeta"), ev("M1"), ev("M1", "alpha"), ev("M2", "zeta"), ev("M1", "mid"),
        ])
        assert session_ids(timeline) == ["zeta", "alpha", "mid"]
        # default session keeps its discovery slot, without a marker
        assert [e.type for e in timeline] == [
            "SESSION", "M1", "M2", "M1", "SESSION", "M1", "SESSION", "M1",
        ]

    def test_marker_ts_unset_when_first_event_has_none(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M2", "s", ts=5), ev("M1", "s")])
        assert timeline[0].ts is None

    def test_identity_falls_back_to_pre_sort_index(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M2", "s"), ev("M1", "s"), ev("M3", "s", seq=7)])
        assert [(e.type, e.id) for e in timeline[1:]] == [("M1", 1), ("M2", 0), ("M3", 7)]
        assert timeline[1].key == "s/idx-1"
        assert timeline[3].key == "s/seq-7"

    def test_seq_scoped_per_session_in_render_keys(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M1", "a", seq=1), ev("M1", "b", seq=1)])
        messages = [e for e in timeline if e.kind.value == "message"]
        assert [e.id for e in messages] == [1, 1]
        assert len({e.key for e in timeline}) == len(timeline)

    def test_details_pass_through(self):
        from reconstruction import reconstruct
        timeline = reconstruct([ev("M1", details={"nonce": "abc", "round": 2})])
        assert timeline[0].details == {"nonce": "abc", "round": 2}

    def test_idempotent(self):
        from reconstruction import reconstruct
        logs = [
            ev("M2", "s1", seq=2, ts=10), ev("M1"), ev("M1", "s1", seq=1, ts=12),
            ev("M4", "s2", ts=3), ev("M7", "s2"), ev("M3"),
        ]
        first = [e.model_dump() for e in reconstruct(logs)]
        second = [e.model_dump() for e in reconstruct(logs)]
        assert first == second

    def test_identities_survive_append(self):
        from reconstruction import reconstruct
        s1 = [ev("M2", "s1", seq=2, ts=10), ev("M3", "s1"), ev("M1"), ev("M1", "s1", seq=1, ts=12)]
        s2 = s1 + [ev("M1", "s1"), ev("M4", "s2", seq=1), ev("M2"), ev("M4", "s1", seq=4)]

        before = {e.key: (e.id, e.kind, e.type) for e in reconstruct(s1)}
        after = {e.key: (e.id, e.kind, e.type) for e in reconstruct(s2)}
        for key, value in before.items():
            assert after.get(key) == value

    def test_empty_snapshot(self):
        from reconstruction import reconstruct
        assert reconstruct([]) == []


# ═══════════════════════════════════════════════════════════
# 5. Malformed Input Tests
# ═══════════════════════════════════════════════════════════

class TestMalformed:

    def test_bad_records_degrade_without_aborting(self):
        from reconstruction import reconstruct
        timeline = reconstruct([
            None,
            "garbage",
            {"type": 5, "sessionId": "s1", "src": ["x"], "ts": "soon"},
            ev("M1", "s1", ts=1),
        ])
        assert [e.type for e in timeline] == ["", "", "SESSION", "M1", ""]

        first, second, marker, good, bad = timeline
        assert first.malformed and second.malformed
        assert "not an object" in first.issues[0]
        assert (first.id, second.id) == (0, 1)

        assert marker.ts == 1.0
        assert not good.malformed and good.issues == []

        assert bad.malformed
        assert bad.phase.value == "UNCLASSIFIED"
        assert bad.src == "" and bad.ts is None
        flagged = {issue.split(":")[0] for issue in bad.issues}
        assert {"type", "src", "ts", "dst"} <= flagged

    def test_missing_display_fields_are_flagged(self):
        from reconstruction import coerce_event
        event = coerce_event({"sessionId": "s1", "seq": 3})
        assert sorted(event.issues) == ["dst: missing", "src: missing", "type: missing"]
        assert event.seq == 3 and event.session_id == "s1"

    def test_bad_details_dropped_rest_kept(self):
        from reconstruction import coerce_event
        event = coerce_event({"type": "M2", "src": "a", "dst": "b", "seq": 2, "details": "oops"})
        assert event.details is None
        assert event.seq == 2 and event.type == "M2"
        assert [i.split(":")[0] for i in event.issues] == ["details"]

    def test_numeric_session_ids_stay_separate_sessions(self):
        from reconstruction import reconstruct, session_ids
        timeline = reconstruct([ev("M2", 7, seq=1), ev("M1", 8, seq=9), ev("M3", 7.0, seq=2)])
        assert session_ids(timeline) == ["7", "8"]
        assert [e.type for e in timeline] == ["SESSION", "M2", "M3", "SESSION", "M1"]
        assert not any(e.malformed for e in timeline)

    def test_non_string_session_id_flagged(self):
        from reconstruction import coerce_event
        event = coerce_event(ev("M1", True))
        assert event.session_id is None
        assert [i.split(":")[0] for i in event.issues] == ["sessionId"]

    def test_non_finite_ts_flagged_and_sorted_as_zero(self):
        from reconstruction import reconstruct
        timeline = reconstruct([
            ev("M1", seq=1, ts=5), ev("M1", seq=1, ts="nan"), ev("M1", seq=1, ts=1),
            ev("M1", seq=1, ts=float("inf")),
        ])
        assert [e.ts for e in timeline] == [None, None, 1.0, 5.0]
        assert [e.malformed for e in timeline] == [True, True, False, False]
        assert timeline[0].issues[0].startswith("ts:")

    def test_issues_key_from_gateway_is_ignored(self):
        from reconstruction import coerce_event
        event = coerce_event({**ev("M1"), "issues": ["forged"]})
        assert event.issues == []


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
