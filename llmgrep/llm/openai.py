import openai

from llmgrep.constants import SCORING_MAX_TOKENS, SCORING_TEMPERATURE
from llmgrep.errors import SetupError
from llmgrep.llm.base import ScoringClient
from llmgrep.llm.retry import RetryPolicy


class OpenAIClient(ScoringClient):
    """Chat completions against OpenAI or any OpenAI-compatible server."""

    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        api_key: str | None = None,
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
        # retries are owned by ScoringClient.score
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.policy.timeout,
            max_retries=0,
        )

    async def _complete(self, prompt: str) -> str:
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": prompt})

        response = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""

    async def ping(self) -> None:
        try:
            await self._client.models.list()
        except openai.OpenAIError as e:
            raise SetupError(f"OpenAI-compatible endpoint is not reachable at {self._client.base_url}: {e}") from e

    async def close(self) -> None:
        await self._client.close()
