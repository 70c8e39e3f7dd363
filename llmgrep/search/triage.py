from collections.abc import Sequence
from dataclasses import dataclass, field

from llmgrep.constants import TRIAGE_ROUNDS
from llmgrep.logging import get_logger
from llmgrep.models import CandidateFile, ScoreVerdict, Subject, Unscored
from llmgrep.prompts import filename_prompt
from llmgrep.search.dispatch import ScoringDispatcher

_logger = get_logger(__name__)


@dataclass
class TriageResult:
    ranked: list[tuple[CandidateFile, ScoreVerdict]] = field(default_factory=list)
    unscored: list[Unscored] = field(default_factory=list)
    top_n: int = 0
    rounds: int = 1

    @property
    def survivors(self) -> list[CandidateFile]:
        return [c for c, _ in self.ranked[: self.top_n]]

    @property
    def all_zero(self) -> bool:
        return bool(self.ranked) and all(v.score == 0 for _, v in self.ranked)


class FilenameRanker:
    """Phase 1: score every candidate by its path alone and keep the best N.

    A pass in which every scored filename comes back as zero is repeated, up to
    `rounds` passes in total; the last pass stands.
    """

    def __init__(self, dispatcher: ScoringDispatcher, top_n: int, rounds: int = TRIAGE_ROUNDS):
        self.dispatcher = dispatcher
        self.top_n = top_n
        self.rounds = rounds

    async def triage(self, candidates: Sequence[CandidateFile], query: str) -> TriageResult:
        for round_no in range(1, self.rounds + 1):
            result = await self._triage_once(candidates, query)
            result.rounds = round_no
            if not result.all_zero:
                break
            if round_no < self.rounds:
                _logger.info("Every filename scored zero, triaging again", round=round_no, rounds=self.rounds)
        return result

    async def _triage_once(self, candidates: Sequence[CandidateFile], query: str) -> TriageResult:
        jobs = [(Subject(c.path), filename_prompt(c.rel_path, query)) for c in candidates]
        verdicts = await self.dispatcher.judge_all(jobs)

        result = TriageResult(top_n=self.top_n)
        scored: list[tuple[CandidateFile, ScoreVerdict]] = []
        for candidate, verdict in zip(candidates, verdicts, strict=True):
            if isinstance(verdict, ScoreVerdict):
                scored.append((candidate, verdict))
            else:
                result.unscored.append(verdict)

        # stable: equal scores keep traversal order
        result.ranked = sorted(scored, key=lambda cv: cv[1].score, reverse=True)
        _logger.info(
            "Filename triage done",
            scored=len(scored),
            unscored=len(result.unscored),
            kept=len(result.survivors),
        )
        return result

    async def rank(self, candidates: Sequence[CandidateFile], query: str) -> list[CandidateFile]:
        return (await self.triage(candidates, query)).survivors
