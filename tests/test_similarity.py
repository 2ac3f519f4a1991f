import pytest
from processing.similarity import normalize_text, jaccard_similarity


# ── normalize_text ────────────────────────────────────────────

class TestNormalizeText:
    def test_lowercases(self):
        assert normalize_text("Market CRASH") == "market crash"

    def test_strips_punctuation(self):
        assert normalize_text("Breaking: Market, Crashes!") == "breaking market crashes"

    def test_collapses_whitespace(self):
        assert normalize_text("  a \t b\n\nc  ") == "a b c"

    def test_none_input(self):
        assert normalize_text(None) == ""


# ── jaccard_similarity ────────────────────────────────────────

class TestJaccardSimilarity:
    def test_identical_text_is_one(self):
        assert jaccard_similarity("Stocks rally on Friday", "Stocks rally on Friday") == 1.0

    def test_symmetric(self):
        a = "Central bank raises interest rates"
        b = "Bank raises rates again"
        assert jaccard_similarity(a, b) == jaccard_similarity(b, a)

    def test_punctuation_ignored(self):
        assert jaccard_similarity(
            "Breaking: Market Crashes Today", "Breaking Market Crashes Today"
        ) == 1.0

    def test_partial_overlap(self):
        # {a, b, c} vs {b, c, d}: 2 / 4
        assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)

    def test_disjoint(self):
        assert jaccard_similarity("alpha beta", "gamma delta") == 0.0

    def test_both_empty_is_zero(self):
        assert jaccard_similarity("", "") == 0.0

    def test_only_punctuation_is_zero(self):
        assert jaccard_similarity("!!!", "...") == 0.0

    def test_one_empty(self):
        assert jaccard_similarity("", "something") == 0.0

    def test_duplicate_words_count_once(self):
        assert jaccard_similarity("news news news", "news") == 1.0
