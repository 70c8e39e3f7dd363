import anthropic

from llmgrep.constants import SCORING_MAX_TOKENS, SCORING_TEMPERATURE
from llmgrep.errors import SetupError
from llmgrep.llm.base import ScoringClient
from llmgrep.llm.retry import RetryPolicy


class AnthropicClient(ScoringClient):
    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        system: str | None = None,
        temperature: float = SCORING_TEMPERATURE,
        max_tokens: int = SCORING_MAX_TOKENS,
        policy: RetryPolicy | None = None,
    ):
        super().__init__(policy)
        self.model = model
        self.system = system
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=self.policy.timeout,
            max_retries=0,
        )

    async def _complete(self, prompt: str) -> str:
        request: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.system:
            request["system"] = self.system

        response = await self._client.messages.create(**request)
        return "".join(block.text for block in response.content if block.type == "text")

    async def ping(self) -> None:
        try:
            await self._client.models.list(limit=1)
        except anthropic.AnthropicError as e:
            raise SetupError(f"Anthropic API is not reachable: {e}") from e

    async def close(self) -> None:
        await self._client.close()
