"""Error taxonomy for the search core."""


class HybridSearchError(Exception):
    """Base class for all search core errors."""


class TranslationError(HybridSearchError):
    """Model output is not a usable structured query."""


class EmbeddingError(HybridSearchError):
    """Embedding model call failed or returned unusable output."""


class BackendError(HybridSearchError):
    """Search backend could not be reached or rejected the request."""


class DimensionMismatchError(HybridSearchError, ValueError):
    """Two vectors of different length were compared or combined."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class InvalidQueryError(HybridSearchError, ValueError):
    """Inbound request or structured query failed validation."""


class InitializationError(HybridSearchError):
    """Search system could not be prepared at startup."""
