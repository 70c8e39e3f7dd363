import inspect
import logging
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from llmgrep.config import Config
from llmgrep.llm.base import ScoringClient
from llmgrep.llm.retry import RetryPolicy
from llmgrep.logging import LIBRARY_LOGGERS
from llmgrep.models import CandidateFile

FAST_POLICY = RetryPolicy(max_attempts=1, timeout=5.0, initial_wait=0, max_wait=0)


class StubClient(ScoringClient):
    """Deterministic scoring client; `responder` maps a prompt to a reply (or raises)."""

    def __init__(self, responder: Callable[[str], object], policy: RetryPolicy = FAST_POLICY):
        super().__init__(policy)
        self.responder = responder
        self.prompts: list[str] = []
        self.closed = False

    async def _complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        result = self.responder(prompt)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def close(self) -> None:
        self.closed = True


def make_config(**overrides) -> Config:
    defaults = {"max_attempts": 1, "retry_initial_wait": 0, "retry_max_wait": 0}
    return Config(**{**defaults, **overrides})


def make_candidate(root: Path, rel_path: str, content: str | None = None) -> CandidateFile:
    path = root / rel_path
    if content is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return CandidateFile(path=path, rel_path=rel_path, size=len(content or ""))


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).handlers.clear()
