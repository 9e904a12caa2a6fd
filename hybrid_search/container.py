import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    """Lazy service registry keyed by protocol or concrete class."""
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _instances: dict[type, Any] = field(default_factory=dict)
    _shared: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Re-registering drops any instance already built for the interface.

        Args:
            interface: Interface type.
            factory: Zero-argument factory.
            singleton: Build once and share.
        """
        self._factories[interface] = factory
        self._instances.pop(interface, None)
        if singleton:
            self._shared.add(interface)
        else:
            self._shared.discard(interface)

    def register_instance(self, interface: type[T], instance: T) -> None:
        """Bind a ready-made instance, e.g. a fake collaborator."""
        self._factories[interface] = lambda: instance
        self._shared.add(interface)
        self._instances[interface] = instance

    def is_registered(self, interface: type) -> bool:
        return interface in self._factories

    def resolve(self, interface: type[T]) -> T:
        if interface in self._instances:
            return self._instances[interface]

        factory = self._factories.get(interface)
        if factory is None:
            raise KeyError(f"No factory registered for {interface.__name__}")

        logger.debug(f"Building {interface.__name__}")
        instance = factory()

        if interface in self._shared:
            self._instances[interface] = instance

        return instance

    def shutdown(self) -> None:
        """Release worker pools held by shared instances."""
        for instance in self._instances.values():
            close = getattr(instance, "shutdown", None)
            if callable(close):
                close()

    def reset(self, clear_factories: bool = False) -> None:
        """Forget built instances, and registrations too if asked."""
        self._instances.clear()
        if clear_factories:
            self._factories.clear()
            self._shared.clear()


container = Container()


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.embedder import EmbeddingModelProtocol
    from .core.protocols.llm import LLMProtocol
    from .core.protocols.search_client import SearchClientProtocol
    from .core.services.document_service import DocumentService
    from .core.services.embedding_service import EmbeddingService
    from .core.services.health_service import HealthService
    from .core.services.hybrid_search_service import HybridSearchService
    from .core.services.query_translator import QueryTranslator
    from .core.services.search_backend import SearchBackend
    from .core.strategies.selection import StrategySelector
    from .infrastructure.embeddings.sentence_transformer import (
        SentenceTransformerEmbedder,
    )
    from .infrastructure.llm.ollama_client import OllamaClient
    from .infrastructure.search.elasticsearch_client import ElasticsearchClient

    container.register(
        EmbeddingModelProtocol,
        lambda: SentenceTransformerEmbedder(settings.embedding_model),
        singleton=True,
    )

    container.register(
        SearchClientProtocol,
        lambda: ElasticsearchClient(
            host=settings.elasticsearch_host,
            port=settings.elasticsearch_port,
            scheme=settings.elasticsearch_scheme,
            username=settings.elasticsearch_username,
            password=settings.elasticsearch_password,
            timeout=settings.elasticsearch_timeout,
        ),
        singleton=True,
    )

    container.register(
        LLMProtocol,
        lambda: OllamaClient(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    container.register(
        EmbeddingService,
        lambda: EmbeddingService(
            model=container.resolve(EmbeddingModelProtocol),
            dimension=settings.embedding_dimension,
            max_workers=settings.embedding_workers,
        ),
        singleton=True,
    )

    container.register(
        QueryTranslator,
        lambda: QueryTranslator(
            llm=container.resolve(LLMProtocol),
            system_prompt=settings.translator_system_prompt,
        ),
        singleton=True,
    )

    container.register(
        SearchBackend,
        lambda: SearchBackend(
            client=container.resolve(SearchClientProtocol),
            index_name=settings.elasticsearch_index,
            dimension=settings.embedding_dimension,
        ),
        singleton=True,
    )

    container.register(StrategySelector, StrategySelector, singleton=True)

    container.register(
        HybridSearchService,
        lambda: HybridSearchService(
            embedding_service=container.resolve(EmbeddingService),
            translator=container.resolve(QueryTranslator),
            backend=container.resolve(SearchBackend),
            selector=container.resolve(StrategySelector),
            text_boost=settings.hybrid_text_boost,
            vector_boost=settings.hybrid_vector_boost,
            vector_min_score=settings.vector_min_score,
        ),
        singleton=True,
    )

    container.register(
        HealthService,
        lambda: HealthService(
            backend=container.resolve(SearchBackend),
            embedding_model=container.resolve(EmbeddingModelProtocol),
            dimension=settings.embedding_dimension,
        ),
        singleton=True,
    )

    container.register(
        DocumentService,
        lambda: DocumentService(
            embedding_service=container.resolve(EmbeddingService),
            backend=container.resolve(SearchBackend),
            title_weight=settings.title_weight,
            content_weight=settings.content_weight,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
