import logging
from functools import cached_property

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    def __init__(
        self,
        model_name: str = "intfloat/multilingual-e5-base",
        prefix: str = "query: ",
    ):
        self._model_name = model_name
        self._prefix = prefix

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    @property
    def dimension(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def encode(self, texts: list[str]) -> np.ndarray:
        # e5 models expect a role prefix on every input
        prefixed = [f"{self._prefix}{t}" for t in texts]
        return self.model.encode(prefixed, convert_to_numpy=True)
