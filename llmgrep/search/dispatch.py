import asyncio
from collections.abc import Sequence

from llmgrep.errors import ScoringError
from llmgrep.llm.base import ScoringClient
from llmgrep.logging import get_logger
from llmgrep.models import Subject, Unscored, UnscoredReason, Verdict
from llmgrep.parsing import ResponseParser

_logger = get_logger(__name__)


class ScoringDispatcher:
    """Runs scoring calls under one shared cap on in-flight requests."""

    def __init__(self, client: ScoringClient, parser: ResponseParser, concurrency: int):
        self.client = client
        self.parser = parser
        self._sem = asyncio.Semaphore(concurrency)

    async def judge(self, subject: Subject, prompt: str) -> Verdict:
        async with self._sem:
            try:
                raw = await self.client.score(prompt)
            except ScoringError as e:
                _logger.warning("Scoring failed", subject=str(subject), error=str(e))
                return Unscored(subject=subject, reason=UnscoredReason.SCORING_FAILURE, detail=str(e))
        return self.parser.parse(raw, subject)

    async def judge_all(self, jobs: Sequence[tuple[Subject, str]]) -> list[Verdict]:
        """Judge every (subject, prompt) pair; results line up with `jobs`."""
        slots: list[Verdict | None] = [None] * len(jobs)

        async def run(i: int, subject: Subject, prompt: str) -> None:
            slots[i] = await self.judge(subject, prompt)

        async with asyncio.TaskGroup() as tg:
            for i, (subject, prompt) in enumerate(jobs):
                tg.create_task(run(i, subject, prompt))

        return slots  # type: ignore[return-value]
