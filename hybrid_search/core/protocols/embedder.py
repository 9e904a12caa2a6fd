"""Embedding model protocol for dependency injection."""
from typing import Protocol, runtime_checkable
import numpy as np


@runtime_checkable
class EmbeddingModelProtocol(Protocol):
    """Protocol for the raw embedding model."""

    @property
    def dimension(self) -> int:
        """Length of the vectors the model produces."""
        ...

    def encode(self, texts: list[str]) -> np.ndarray:
        """Encode texts to embeddings.

        Args:
            texts: Texts to encode.

        Returns:
            Matrix of shape (len(texts), dimension).
        """
        ...

    def warmup(self) -> None:
        """Pre-load the model for faster inference."""
        ...
