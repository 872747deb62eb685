"""Tests for InstinctStore reinforcement, bounds, persistence and decay."""

import json
from datetime import timedelta

import pytest

from errors import InvalidInput, NotFound, SchemaMismatch
from instincts import Instinct, InstinctCandidate, InstinctStore
from shared_types import InstinctSource, utcnow


def _rec(store, id="compose-state-hoisting", confidence=0.5, **kwargs):
    return store.record({"id": id, "confidence": confidence, "context": "compose", **kwargs})


class TestRecord:
    def test_new_instinct(self, instinct_store):
        inst = _rec(instinct_store, description="Hoist state", example="HomeScreen.kt")
        assert inst.observation_count == 1
        assert inst.confidence == 0.5
        assert inst.examples == ["HomeScreen.kt"]
        assert inst.source == InstinctSource.DIRECT

    def test_three_observations_reinforce(self, instinct_store):
        for _ in range(3):
            inst = _rec(instinct_store)
        assert inst.observation_count == 3
        assert inst.confidence == pytest.approx(0.65)

    def test_six_observations_reinforce_twice(self, instinct_store):
        for _ in range(6):
            inst = _rec(instinct_store)
        assert inst.observation_count == 6
        assert inst.confidence == pytest.approx(0.80)

    def test_capped_at_ceiling(self, instinct_store):
        for _ in range(9):
            inst = _rec(instinct_store, confidence=0.85)
        assert inst.confidence == pytest.approx(0.9)

    def test_higher_offer_raises_confidence(self, instinct_store):
        _rec(instinct_store, confidence=0.3)
        assert _rec(instinct_store, confidence=0.6).confidence == pytest.approx(0.6)

    def test_lower_offer_never_lowers(self, instinct_store):
        _rec(instinct_store, confidence=0.6)
        assert _rec(instinct_store, confidence=0.1).confidence == pytest.approx(0.6)

    def test_value_above_ceiling_is_kept(self, instinct_store):
        _rec(instinct_store, confidence=0.95)
        for _ in range(3):
            inst = _rec(instinct_store, confidence=0.2)
        assert inst.confidence == pytest.approx(0.95)

    def test_confidence_monotonic(self, instinct_store):
        last = 0.0
        for offered in [0.4, 0.1, 0.7, 0.2, 0.0, 1.0, 0.3]:
            inst = _rec(instinct_store, confidence=offered)
            assert 0.0 <= inst.confidence <= 1.0
            assert inst.confidence >= last
            last = inst.confidence

    def test_examples_capped_and_deduplicated(self, instinct_store):
        for i in range(7):
            _rec(instinct_store, example=f"File{i}.kt")
        inst = _rec(instinct_store, example="File6.kt")
        assert inst.examples == ["File2.kt", "File3.kt", "File4.kt", "File5.kt", "File6.kt"]

    def test_candidate_object(self, instinct_store):
        inst = instinct_store.record(
            InstinctCandidate(id="x", confidence=0.4, source=InstinctSource.OBSERVED)
        )
        assert inst.source == InstinctSource.OBSERVED

    @pytest.mark.parametrize("confidence", [1.5, -0.1, "high", True])
    def test_invalid_confidence(self, instinct_store, confidence):
        with pytest.raises(InvalidInput):
            _rec(instinct_store, confidence=confidence)

    def test_empty_id_rejected(self, instinct_store):
        with pytest.raises(InvalidInput):
            instinct_store.record({"id": "  ", "confidence": 0.5})

    def test_unknown_source_rejected(self, instinct_store):
        with pytest.raises(InvalidInput):
            instinct_store.record({"id": "x", "source": "guessed"})


class TestReads:
    def test_list_sorted_and_filtered(self, instinct_store):
        _rec(instinct_store, id="b", confidence=0.5)
        _rec(instinct_store, id="a", confidence=0.5)
        instinct_store.record({"id": "c", "confidence": 0.8, "context": "testing"})

        assert [i.id for i in instinct_store.list()] == ["c", "a", "b"]
        assert [i.id for i in instinct_store.list(min_confidence=0.7)] == ["c"]
        assert [i.id for i in instinct_store.list(context="compose")] == ["a", "b"]

    def test_get_and_remove(self, instinct_store):
        _rec(instinct_store, id="a")
        assert instinct_store.get("a").id == "a"
        instinct_store.remove("a")
        with pytest.raises(NotFound):
            instinct_store.get("a")
        with pytest.raises(NotFound):
            instinct_store.remove("a")

    def test_stats(self, instinct_store):
        _rec(instinct_store, id="a", confidence=0.9)
        _rec(instinct_store, id="b", confidence=0.2)
        assert instinct_store.stats() == {"total": 2, "high_confidence": 1, "by_context": {"compose": 2}}

    def test_persists_across_instances(self, instinct_store, memory_root):
        _rec(instinct_store, id="a", example="One.kt")
        other = InstinctStore(memory_root)
        assert other.get("a").examples == ["One.kt"]

    def test_snapshot_is_independent(self, instinct_store):
        _rec(instinct_store, id="a")
        snap = instinct_store.snapshot()
        snap[0].confidence = 0.0
        assert instinct_store.get("a").confidence == 0.5


class TestCorruption:
    def test_corrupt_file_gives_empty_store(self, instinct_store):
        instinct_store.path.write_text("[[[")
        assert instinct_store.list() == []
        assert instinct_store.path.with_name("instincts.json.corrupt").exists()

    def test_bad_record_is_skipped(self, instinct_store):
        _rec(instinct_store, id="good")
        data = json.loads(instinct_store.path.read_text())
        data["instincts"].append({"id": "bad", "confidence": 7})
        instinct_store.path.write_text(json.dumps(data))
        assert [i.id for i in instinct_store.list()] == ["good"]


class TestDecay:
    def test_decay_only_touches_unused(self, instinct_store):
        old = utcnow() - timedelta(days=60)
        instinct_store.replace_all(
            [
                Instinct(id="stale", description="", context="", confidence=0.5, last_used=old),
                Instinct(id="floor", description="", context="", confidence=0.12, last_used=old),
                Instinct(id="fresh", description="", context="", confidence=0.5),
            ]
        )
        changed = instinct_store.decay(timedelta(days=30), step=0.05, floor=0.1)
        assert changed == 2
        assert instinct_store.get("stale").confidence == pytest.approx(0.45)
        assert instinct_store.get("floor").confidence == pytest.approx(0.1)
        assert instinct_store.get("fresh").confidence == pytest.approx(0.5)

    def test_record_never_decays(self, instinct_store):
        _rec(instinct_store, id="a", confidence=0.5)
        _rec(instinct_store, id="a", confidence=0.0)
        assert instinct_store.get("a").confidence == 0.5


class TestExportImport:
    def test_round_trip_into_empty_store(self, instinct_store, tmp_path):
        _rec(instinct_store, id="a", confidence=0.6)
        document = instinct_store.export_document()

        other = InstinctStore(tmp_path / "other")
        assert other.import_document(document) == {"added": 1, "updated": 0, "skipped": 0}
        assert other.get("a").confidence == 0.6

    def test_import_keeps_higher_confidence(self, instinct_store, tmp_path):
        _rec(instinct_store, id="a", confidence=0.8)
        _rec(instinct_store, id="b", confidence=0.2)
        document = instinct_store.export_document()

        other = InstinctStore(tmp_path / "other")
        _rec(other, id="a", confidence=0.5)
        _rec(other, id="b", confidence=0.4)
        counts = other.import_document(document)
        assert counts == {"added": 0, "updated": 1, "skipped": 1}
        assert other.get("a").confidence == 0.8
        assert other.get("b").confidence == 0.4

    @pytest.mark.parametrize(
        "document",
        [
            {"format": "something-else", "schema_version": 1, "instincts": []},
            {"format": "project-memory-instincts", "schema_version": 2, "instincts": []},
            {"format": "project-memory-instincts", "schema_version": 1, "instincts": {}},
            {"format": "project-memory-instincts", "schema_version": 1, "instincts": [{"id": "x"}]},
        ],
    )
    def test_import_rejects_bad_documents(self, instinct_store, document):
        with pytest.raises(SchemaMismatch):
            instinct_store.import_document(document)
