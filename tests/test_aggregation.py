from pathlib import Path

import pytest

from llmgrep.models import ScoreVerdict, Subject
from llmgrep.search.aggregation import aggregate, get_reducer, max_score, mean_score, top_k_mean

FILE = Path("/repo/doc.txt")


def chunk_verdicts(*pairs: tuple[float, str]) -> list[ScoreVerdict]:
    return [ScoreVerdict(Subject(FILE, i), score, text) for i, (score, text) in enumerate(pairs)]


class TestReducers:
    def test_max(self):
        assert max_score([10, 95, 40]) == 95

    def test_mean(self):
        assert mean_score([10, 95, 40]) == pytest.approx(145 / 3)

    def test_top_k_mean(self):
        assert top_k_mean([10, 95, 40, 80], k=2) == pytest.approx(87.5)

    def test_top_k_mean_with_fewer_scores_than_k(self):
        assert top_k_mean([30], k=3) == 30

    def test_get_reducer(self):
        assert get_reducer("max") is max_score
        assert get_reducer("top_k_mean", top_k=1)([5, 9]) == 9

    def test_unknown_reducer(self):
        with pytest.raises(ValueError):
            get_reducer("median")


class TestAggregate:
    def test_explanation_from_best_chunk(self):
        verdict = aggregate(Subject(FILE), chunk_verdicts((10, "first"), (95, "second"), (40, "third")))
        assert verdict.score == 95
        assert verdict.explanation == "second"
        assert verdict.subject == Subject(FILE)

    def test_explanation_from_best_chunk_with_mean(self):
        verdict = aggregate(Subject(FILE), chunk_verdicts((10, "a"), (90, "b")), mean_score)
        assert verdict.score == 50
        assert verdict.explanation == "b"

    def test_ties_pick_earliest_chunk(self):
        verdict = aggregate(Subject(FILE), chunk_verdicts((70, "early"), (70, "late")))
        assert verdict.explanation == "early"

    def test_empty(self):
        with pytest.raises(ValueError):
            aggregate(Subject(FILE), [])
