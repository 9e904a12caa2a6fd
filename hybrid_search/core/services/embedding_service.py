"""Embedding service - memoized text vectors and vector utilities."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

import numpy as np

from ..exceptions import DimensionMismatchError, EmbeddingError
from ..protocols.embedder import EmbeddingModelProtocol

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Text to vector conversion with caching and graceful degradation.

    Model failures never reach the caller: a zero vector of the configured
    dimension is returned instead, which ranks near zero in vector search.
    """

    def __init__(
        self,
        model: EmbeddingModelProtocol,
        dimension: int = 768,
        max_workers: int = 2,
    ):
        """Initialize embedding service.

        Args:
            model: Raw embedding model.
            dimension: Expected vector length.
            max_workers: Threads for the asynchronous embedding path.
        """
        self._model = model
        self._dimension = dimension
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()
        # Pure memoization: concurrent writers store identical values.
        self._cache: dict[str, np.ndarray] = {}

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def zero_vector(self) -> np.ndarray:
        """Sentinel for an unavailable embedding."""
        return np.zeros(self._dimension, dtype=np.float32)

    @staticmethod
    def empty_vector() -> np.ndarray:
        """Marker for text that has nothing to embed."""
        return np.zeros(0, dtype=np.float32)

    def _to_vector(self, raw) -> np.ndarray:
        try:
            vector = np.array(raw, dtype=np.float32).reshape(-1)
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Model returned a non-numeric vector: {e}") from e
        if vector.shape[0] != self._dimension:
            raise EmbeddingError(
                f"Model returned {vector.shape[0]} dims, expected {self._dimension}"
            )
        vector.flags.writeable = False
        return vector

    def _encode(self, texts: list[str]) -> list[np.ndarray]:
        try:
            matrix = self._model.encode(texts)
        except Exception as e:
            raise EmbeddingError(f"Embedding model call failed: {e}") from e

        if matrix is None or len(matrix) != len(texts):
            raise EmbeddingError(
                f"Model returned {0 if matrix is None else len(matrix)} vectors "
                f"for {len(texts)} texts"
            )
        return [self._to_vector(row) for row in matrix]

    def embed(self, text: str) -> np.ndarray:
        """Embed a single text.

        Args:
            text: Text to embed.

        Returns:
            Vector of configured dimension, an empty vector for blank text,
            or the zero vector when the model is unavailable.
        """
        if not text or not text.strip():
            logger.warning("Embedding requested for blank text")
            return self.empty_vector()

        cached = self._cache.get(text)
        if cached is not None:
            return cached

        try:
            vector = self._encode([text])[0]
        except EmbeddingError as e:
            logger.error(f"Embedding failed for '{text[:50]}': {e}")
            return self.zero_vector()

        self._cache[text] = vector
        logger.debug(f"Embedded '{text[:50]}' ({vector.shape[0]} dims)")
        return vector

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed many texts with one model call, preserving order.

        Falls back to per-text embedding if the batched call fails.
        """
        if not texts:
            return []

        pending = list(
            dict.fromkeys(
                t for t in texts if t and t.strip() and t not in self._cache
            )
        )

        if pending:
            logger.info(f"Batch embedding {len(pending)} texts")
            try:
                vectors = self._encode(pending)
            except EmbeddingError as e:
                logger.error(f"Batch embedding failed, embedding one by one: {e}")
                return [self.embed(t) for t in texts]

            for text, vector in zip(pending, vectors):
                self._cache[text] = vector

        return [self.embed(t) for t in texts]

    @property
    def executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="embedding"
                )
            return self._executor

    def embed_async(self, text: str) -> Future:
        """Embed off the calling thread; the future resolves to a vector."""
        return self.executor.submit(self.embed, text)

    def embed_batch_async(self, texts: list[str]) -> Future:
        """Batch embed off the calling thread; the future resolves to a list."""
        return self.executor.submit(self.embed_batch, list(texts))

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    @staticmethod
    def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
        """Cosine similarity of two vectors, 0.0 if either has zero norm.

        Raises:
            DimensionMismatchError: If the vectors differ in length.
        """
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        if a.shape[0] != b.shape[0]:
            raise DimensionMismatchError(a.shape[0], b.shape[0])

        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0
        return float(np.dot(a, b) / (norm_a * norm_b))

    @staticmethod
    def combine(
        a: np.ndarray, weight_a: float, b: np.ndarray, weight_b: float
    ) -> np.ndarray:
        """Weighted elementwise average of two vectors.

        Raises:
            DimensionMismatchError: If the vectors differ in length.
            ValueError: If the weights sum to zero.
        """
        a = np.asarray(a, dtype=np.float32)
        b = np.asarray(b, dtype=np.float32)
        if a.shape[0] != b.shape[0]:
            raise DimensionMismatchError(a.shape[0], b.shape[0])

        total = weight_a + weight_b
        if total == 0:
            raise ValueError("Combination weights must not sum to zero")
        return ((a * weight_a + b * weight_b) / total).astype(np.float32)

    def is_available(self) -> bool:
        """Probe the model with a short text, bypassing the cache."""
        try:
            self._encode(["health check"])
            return True
        except EmbeddingError as e:
            logger.error(f"Embedding model unavailable: {e}")
            return False
