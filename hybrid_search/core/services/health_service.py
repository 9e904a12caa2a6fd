"""Health service - backend readiness checks."""

import logging
import time
from typing import Optional

from ..exceptions import InitializationError
from ..protocols.embedder import EmbeddingModelProtocol
from .search_backend import SearchBackend

logger = logging.getLogger(__name__)


class HealthService:
    """Startup initialization and liveness probing of the search backend."""

    def __init__(
        self,
        backend: SearchBackend,
        embedding_model: Optional[EmbeddingModelProtocol] = None,
        dimension: Optional[int] = None,
    ):
        """Initialize health service.

        Args:
            backend: Search backend facade.
            embedding_model: Model whose output size is checked at startup.
            dimension: Configured vector length, used for the index mapping.
        """
        self._backend = backend
        self._embedding_model = embedding_model
        self._dimension = dimension

    def is_healthy(self) -> bool:
        """True iff a document count against the backend succeeds."""
        try:
            count = self._backend.count_all()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

        logger.info(f"Health check: {count} documents in index")
        return True

    def _check_dimension(self) -> None:
        if self._embedding_model is None or self._dimension is None:
            return
        actual = self._embedding_model.dimension
        if actual != self._dimension:
            raise InitializationError(
                f"Embedding model produces {actual} dims, "
                f"configured embedding_dimension is {self._dimension}"
            )
        logger.info(f"Embedding dimension verified: {actual}")

    def initialize(self) -> None:
        """Verify the embedding dimension and make sure the index exists.

        Call at startup only.

        Raises:
            InitializationError: If the model and configuration disagree or
                the index cannot be prepared.
        """
        logger.info("Initializing search system...")
        try:
            self._check_dimension()
            self._backend.ensure_collection_ready()
        except InitializationError as e:
            logger.error(f"Search system initialization failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Search system initialization failed: {e}")
            raise InitializationError("Search system initialization failed") from e
        logger.info("Search system initialized")

    def status(self) -> dict:
        """Health summary for operators."""
        try:
            count = self._backend.count_all()
            healthy = True
        except Exception as e:
            logger.error(f"Status check failed: {e}")
            count = None
            healthy = False

        return {
            "status": "UP" if healthy else "DOWN",
            "backend": "reachable" if healthy else "unreachable",
            "index": self._backend.index_name,
            "document_count": count,
            "timestamp": int(time.time() * 1000),
        }
