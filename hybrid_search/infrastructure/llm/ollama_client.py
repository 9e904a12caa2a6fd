
import logging

from openai import OpenAI

logger = logging.getLogger(__name__)


class OllamaClient:
    """LLM client for Ollama (OpenAI-compatible API)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5:7b",
        max_tokens: int = 1024,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API URL.
            model: Model name.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
        """
        self._client = OpenAI(base_url=base_url, api_key="ollama", timeout=timeout, max_retries=0)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run a single completion.

        Args:
            system_prompt: Instruction for the model.
            user_prompt: User's message.

        Returns:
            Response text, empty if the model returned nothing.
        """
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        content = response.choices[0].message.content or ""
        logger.debug(f"[complete] {len(content)} chars from {self._model}")
        return content
