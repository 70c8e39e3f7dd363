import asyncio
from collections.abc import Callable, Sequence

from llmgrep.chunking import chunk
from llmgrep.constants import CHUNK_SIZE
from llmgrep.logging import get_logger
from llmgrep.models import (
    CandidateFile,
    FileAnalysis,
    ScoreVerdict,
    Subject,
    Unscored,
    UnscoredReason,
)
from llmgrep.prompts import content_prompt
from llmgrep.search.aggregation import Reducer, aggregate, max_score
from llmgrep.search.dispatch import ScoringDispatcher

_logger = get_logger(__name__)


def _read_text(candidate: CandidateFile) -> str:
    return candidate.path.read_text(encoding="utf-8", errors="replace")


class ContentAnalyzer:
    """Phase 2: score file content chunk by chunk and reduce to one verdict per file."""

    def __init__(
        self,
        dispatcher: ScoringDispatcher,
        chunk_size: int = CHUNK_SIZE,
        reducer: Reducer = max_score,
    ):
        self.dispatcher = dispatcher
        self.chunk_size = chunk_size
        self.reducer = reducer

    async def analyze(self, candidate: CandidateFile, query: str) -> FileAnalysis:
        subject = Subject(candidate.path)
        try:
            text = await asyncio.to_thread(_read_text, candidate)
        except OSError as e:
            _logger.warning("Cannot read file for content analysis", path=str(candidate.path), error=str(e))
            verdict = Unscored(subject=subject, reason=UnscoredReason.SCORING_FAILURE, detail=f"read failed: {e}")
            return FileAnalysis(candidate, verdict, chunks_scored=0, chunks_total=0)

        if not text.strip():
            verdict = ScoreVerdict(subject=subject, score=0.0, explanation="empty file")
            return FileAnalysis(candidate, verdict, chunks_scored=0, chunks_total=0)

        chunks = chunk(text, self.chunk_size)
        total = len(chunks)
        jobs = [
            (Subject(candidate.path, i), content_prompt(candidate.rel_path, part, query, i, total))
            for i, part in enumerate(chunks)
        ]
        verdicts = await self.dispatcher.judge_all(jobs)

        scored = [v for v in verdicts if isinstance(v, ScoreVerdict)]
        failed = [v for v in verdicts if isinstance(v, Unscored)]
        if failed:
            _logger.debug("Some chunks unscored", path=str(candidate.path), failed=len(failed), total=total)

        if not scored:
            reasons = {v.reason for v in failed}
            reason = reasons.pop() if len(reasons) == 1 else UnscoredReason.PARSE_FAILURE
            verdict = Unscored(
                subject=subject,
                reason=reason,
                detail=f"all {total} chunk(s) unscored: {failed[0].detail}",
                raw_sample=next((v.raw_sample for v in failed if v.raw_sample), None),
            )
            return FileAnalysis(candidate, verdict, chunks_scored=0, chunks_total=total)

        return FileAnalysis(
            candidate,
            aggregate(subject, scored, self.reducer),
            chunks_scored=len(scored),
            chunks_total=total,
        )

    async def analyze_all(
        self,
        candidates: Sequence[CandidateFile],
        query: str,
        on_result: Callable[[FileAnalysis], None] | None = None,
    ) -> list[FileAnalysis]:
        slots: list[FileAnalysis | None] = [None] * len(candidates)

        async def run(i: int, candidate: CandidateFile) -> None:
            slots[i] = analysis = await self.analyze(candidate, query)
            if on_result is not None:
                on_result(analysis)

        async with asyncio.TaskGroup() as tg:
            for i, candidate in enumerate(candidates):
                tg.create_task(run(i, candidate))

        return slots  # type: ignore[return-value]
