from llmgrep.config import Config
from llmgrep.errors import SetupError
from llmgrep.llm.anthropic import AnthropicClient
from llmgrep.llm.base import ScoringClient
from llmgrep.llm.ollama import OllamaClient
from llmgrep.llm.openai import OpenAIClient
from llmgrep.llm.retry import RetryPolicy


def create_client(config: Config, system: str | None = None) -> ScoringClient:
    policy = RetryPolicy.from_config(config)
    common = {
        "model": config.model,
        "system": system,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "policy": policy,
    }
    match config.provider:
        case "ollama":
            return OllamaClient(base_url=config.base_url, **common)
        case "openai":
            api_key = config.openai_api_key
            if not api_key:
                if not config.base_url:
                    raise SetupError("provider 'openai' requires OPENAI_API_KEY or a --base-url")
                # local OpenAI-compatible servers accept any key
                api_key = "unused"
            return OpenAIClient(base_url=config.base_url, api_key=api_key, **common)
        case "anthropic":
            return AnthropicClient(api_key=config.anthropic_api_key, base_url=config.base_url, **common)
        case _:
            raise SetupError(f"Unknown provider: {config.provider}")
