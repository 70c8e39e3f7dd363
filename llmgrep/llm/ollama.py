import httpx

from llmgrep.constants import OLLAMA_BASE_URL, SCORING_MAX_TOKENS, SCORING_TEMPERATURE
from llmgrep.errors import SetupError
from llmgrep.llm.base import ScoringClient
from llmgrep.llm.retry import RetryPolicy
from llmgrep.logging import get_logger

_logger = get_logger(__name__)


class OllamaClient(ScoringClient):
    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        system: str | None = None,
        temperature: float = SCORING_TEMPERATURE,
        max_tokens: int = SCORING_MAX_TOKENS,
        policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(policy)
        self.model = model
        self.system = system
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = httpx.AsyncClient(
            base_url=base_url or OLLAMA_BASE_URL,
            timeout=self.policy.timeout,
            transport=transport,
        )

    async def _complete(self, prompt: str) -> str:
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        if self.system:
            body["system"] = self.system

        resp = await self._client.post("/api/generate", json=body)
        resp.raise_for_status()
        return resp.json().get("response") or ""

    async def ping(self) -> None:
        try:
            resp = await self._client.get("/api/tags")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise SetupError(f"Ollama is not reachable at {self._client.base_url}: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise SetupError(f"{self._client.base_url} did not answer like an Ollama server: {e}") from e
        models = payload.get("models") if isinstance(payload, dict) else None
        if not isinstance(models, list):
            raise SetupError(f"{self._client.base_url} did not answer like an Ollama server: no model list")

        names = {m.get("name") for m in models if isinstance(m, dict)}
        if self.model not in names:
            _logger.warning("Model not listed by Ollama", model=self.model, available=sorted(n for n in names if n))

    async def close(self) -> None:
        await self._client.aclose()
