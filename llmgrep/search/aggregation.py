from collections.abc import Callable, Sequence
from functools import partial

from llmgrep.constants import DEFAULT_TOP_K
from llmgrep.models import ScoreVerdict, Subject
from llmgrep.parsing import clamp_score

Reducer = Callable[[Sequence[float]], float]


def max_score(scores: Sequence[float]) -> float:
    return max(scores)


def mean_score(scores: Sequence[float]) -> float:
    return sum(scores) / len(scores)


def top_k_mean(scores: Sequence[float], k: int = DEFAULT_TOP_K) -> float:
    best = sorted(scores, reverse=True)[:k]
    return sum(best) / len(best)


def get_reducer(name: str, top_k: int = DEFAULT_TOP_K) -> Reducer:
    match name:
        case "max":
            return max_score
        case "mean":
            return mean_score
        case "top_k_mean":
            return partial(top_k_mean, k=top_k)
        case _:
            raise ValueError(f"Unknown aggregation: {name}")


def aggregate(subject: Subject, verdicts: Sequence[ScoreVerdict], reducer: Reducer = max_score) -> ScoreVerdict:
    """Fold chunk verdicts into one file verdict.

    The explanation always comes from the best-scoring chunk (the earliest one on ties),
    whatever the reducer.
    """
    if not verdicts:
        raise ValueError("cannot aggregate zero verdicts")
    best = max(verdicts, key=lambda v: v.score)
    score = clamp_score(reducer([v.score for v in verdicts]))
    return ScoreVerdict(subject=subject, score=score, explanation=best.explanation)
