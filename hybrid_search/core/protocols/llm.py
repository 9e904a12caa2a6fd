"""LLM protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for LLM client."""

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run a single non-streaming completion.

        Args:
            system_prompt: Instruction for the model.
            user_prompt: User's message.

        Returns:
            Raw model output text.
        """
        ...
