import asyncio
from abc import ABC, abstractmethod

from llmgrep.errors import ScoringError
from llmgrep.llm.retry import RetryPolicy, with_retry


class ScoringClient(ABC):
    """Narrow `prompt -> text` capability with per-call timeout and bounded retry."""

    def __init__(self, policy: RetryPolicy | None = None):
        self.policy = policy or RetryPolicy()

    @abstractmethod
    async def _complete(self, prompt: str) -> str: ...

    async def score(self, prompt: str) -> str:
        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            async with asyncio.timeout(self.policy.timeout):
                return await self._complete(prompt)

        try:
            return await with_retry(attempt, self.policy)
        except Exception as e:
            reason = str(e) or type(e).__name__
            raise ScoringError(f"{reason} (after {attempts} attempt(s))", attempts=attempts) from e

    async def ping(self) -> None:
        """Raise SetupError if the service cannot be reached."""

    async def close(self) -> None:
        pass
