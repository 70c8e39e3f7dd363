from llmgrep.llm.base import ScoringClient
from llmgrep.llm.retry import RetryPolicy
from llmgrep.llm.router import create_client

__all__ = ["RetryPolicy", "ScoringClient", "create_client"]
