import asyncio
from datetime import datetime, timezone

import pytest

from core.models import Entity, RawArticle
from core.utils import content_hash
from processing.enricher import BatchEnricher, validate_category


def _make_article(i: int, **kwargs) -> RawArticle:
    defaults = dict(
        id=f"a{i}",
        source="Test",
        source_kind="feed",
        title=f"Title {i}",
        content=f"Content of article {i}",
        published_at=datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
    )
    defaults.update(kwargs)
    return RawArticle(**defaults)


class FakeOracle:
    """Answers classify() with a callable(batch) -> payload, recording each batch."""

    def __init__(self, answer):
        self.answer = answer
        self.batches = []

    async def classify(self, batch):
        self.batches.append(list(batch))
        return self.answer(batch)


def _all_world(batch):
    return {"articles": [
        {"index": i, "category": "world", "language": "fr",
         "entities": [{"type": "person", "name": "Marie Curie"}]}
        for i in range(len(batch))
    ]}


def _enrich(oracle, articles, batch_size=5):
    enricher = BatchEnricher(oracle, batch_size=batch_size, delay=0)
    return asyncio.run(enricher.enrich(articles))


# ── validate_category ─────────────────────────────────────────

class TestValidateCategory:
    def test_known_category(self):
        assert validate_category("science") == "science"

    def test_case_and_spaces(self):
        assert validate_category("  Technology ") == "technology"

    def test_unknown_maps_to_other(self):
        assert validate_category("cooking") == "other"

    def test_none_maps_to_other(self):
        assert validate_category(None) == "other"

    def test_non_string_maps_to_other(self):
        assert validate_category(3) == "other"


# ── batching ──────────────────────────────────────────────────

class TestBatching:
    def test_batches_of_configured_size(self):
        oracle = FakeOracle(_all_world)
        _enrich(oracle, [_make_article(i) for i in range(12)], batch_size=5)
        assert [len(b) for b in oracle.batches] == [5, 5, 2]

    def test_empty_input_no_call(self):
        oracle = FakeOracle(_all_world)
        assert _enrich(oracle, []) == []
        assert oracle.batches == []

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            BatchEnricher(FakeOracle(_all_world), batch_size=0)

    def test_delay_only_between_batches(self, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("processing.enricher.asyncio.sleep", fake_sleep)
        enricher = BatchEnricher(FakeOracle(_all_world), batch_size=5, delay=1.0)
        asyncio.run(enricher.enrich([_make_article(i) for i in range(11)]))
        assert sleeps == [1.0, 1.0]


# ── merge ─────────────────────────────────────────────────────

class TestMerge:
    def test_success_merges_fields(self):
        articles = [_make_article(i) for i in range(3)]
        result = _enrich(FakeOracle(_all_world), articles)
        assert [p.article for p in result] == articles
        assert all(p.category == "world" for p in result)
        assert all(p.language == "fr" for p in result)
        assert result[0].entities == [Entity(kind="person", name="Marie Curie", mentions=1)]

    def test_hash_is_md5_of_title_and_content(self):
        a = _make_article(0)
        result = _enrich(FakeOracle(_all_world), [a])
        assert result[0].content_hash == content_hash(a.title + a.content)

    def test_merge_by_index_not_by_order(self):
        def reversed_answer(batch):
            return {"articles": [
                {"index": 1, "category": "sports", "language": "en"},
                {"index": 0, "category": "health", "language": "de"},
            ]}
        result = _enrich(FakeOracle(reversed_answer), [_make_article(0), _make_article(1)])
        assert result[0].category == "health"
        assert result[0].language == "de"
        assert result[1].category == "sports"

    def test_unknown_category_becomes_other(self):
        def answer(batch):
            return {"articles": [{"index": 0, "category": "Gossip", "language": "en"}]}
        result = _enrich(FakeOracle(answer), [_make_article(0)])
        assert result[0].category == "other"

    def test_missing_article_falls_back_individually(self):
        def answer(batch):
            return {"articles": [{"index": 0, "category": "business", "language": "en"}]}
        result = _enrich(FakeOracle(answer), [_make_article(0), _make_article(1)])
        assert len(result) == 2
        assert result[0].category == "business"
        assert result[1].category == "other"
        assert result[1].language == "en"

    def test_out_of_range_index_ignored(self):
        def answer(batch):
            return {"articles": [{"index": 7, "category": "business"}, {"index": -1, "category": "world"}]}
        result = _enrich(FakeOracle(answer), [_make_article(0)])
        assert [p.category for p in result] == ["other"]

    def test_duplicate_index_keeps_first(self):
        def answer(batch):
            return {"articles": [
                {"index": 0, "category": "science"},
                {"index": 0, "category": "sports"},
            ]}
        result = _enrich(FakeOracle(answer), [_make_article(0)])
        assert result[0].category == "science"

    def test_invalid_entities_skipped(self):
        def answer(batch):
            return {"articles": [{"index": 0, "category": "world", "entities": [
                {"type": "person", "name": "Ada"},
                {"type": "animal", "name": "Dolly"},
                {"type": "location", "name": ""},
                "garbage",
                {"type": "Organization", "name": "UN", "mentions": 3},
            ]}]}
        result = _enrich(FakeOracle(answer), [_make_article(0)])
        assert result[0].entities == [
            Entity(kind="person", name="Ada"),
            Entity(kind="organization", name="UN", mentions=3),
        ]

    def test_missing_language_defaults_to_en(self):
        def answer(batch):
            return {"articles": [{"index": 0, "category": "world"}]}
        assert _enrich(FakeOracle(answer), [_make_article(0)])[0].language == "en"


# ── fallback ──────────────────────────────────────────────────

class TestFallback:
    @pytest.mark.parametrize("answer", [
        lambda batch: None,
        lambda batch: "not json at all",
        lambda batch: {"unexpected": True},
        lambda batch: {"articles": "nope"},
        lambda batch: [1, 2, 3],
    ])
    def test_garbage_payload_keeps_cardinality(self, answer):
        articles = [_make_article(i) for i in range(7)]
        result = _enrich(FakeOracle(answer), articles)
        assert len(result) == 7
        assert all(p.category == "other" and p.language == "en" and p.entities == [] for p in result)

    def test_oracle_exception_keeps_cardinality(self):
        def boom(batch):
            raise RuntimeError("service down")
        articles = [_make_article(i) for i in range(6)]
        result = _enrich(FakeOracle(boom), articles)
        assert [p.article for p in result] == articles
        assert all(p.content_hash for p in result)

    def test_failure_limited_to_one_batch(self):
        calls = {"n": 0}

        def first_fails(batch):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("timeout")
            return _all_world(batch)

        result = _enrich(FakeOracle(first_fails), [_make_article(i) for i in range(7)], batch_size=5)
        assert [p.category for p in result] == ["other"] * 5 + ["world"] * 2
