
import argparse
import json
import logging
import sys
import time

import httpx

from hybrid_search.config.settings import settings
from hybrid_search.container import configure_container, container
from hybrid_search.core.exceptions import InitializationError, InvalidQueryError
from hybrid_search.core.models.search import RetrievalStrategy, SearchQuery
from hybrid_search.core.protocols.embedder import EmbeddingModelProtocol
from hybrid_search.core.services.document_service import DocumentService
from hybrid_search.core.services.health_service import HealthService
from hybrid_search.core.services.hybrid_search_service import HybridSearchService

logger = logging.getLogger(__name__)


def ensure_ollama_model(attempts: int = 30) -> bool:
    """Ensure the query-translation model is available in Ollama.

    Returns:
        True if model ready, False otherwise.
    """
    model = settings.llm_model
    base_url = settings.llm_base_url.replace("/v1", "")

    logger.info(f"Checking Ollama model: {model}")

    for attempt in range(attempts):
        try:
            resp = httpx.get(f"{base_url}/api/tags", timeout=5)
            if resp.status_code == 200:
                models = [m["name"] for m in resp.json().get("models", [])]
                if any(model in m for m in models):
                    logger.info(f"Model {model} is ready")
                    return True

                logger.info(f"Pulling model {model}...")
                pull_resp = httpx.post(
                    f"{base_url}/api/pull",
                    json={"name": model},
                    timeout=600,
                )
                if pull_resp.status_code == 200:
                    logger.info(f"Model {model} pulled successfully")
                    return True
                logger.error(f"Failed to pull model: {pull_resp.text}")
        except httpx.HTTPError:
            logger.info(f"Waiting for Ollama... ({attempt + 1}/{attempts})")
            time.sleep(2)

    logger.error("Ollama not available")
    return False


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def cmd_startup(args: argparse.Namespace) -> int:
    """Check the models, create the index and report health."""
    logger.info("Starting hybrid search...")

    if not args.skip_llm and not ensure_ollama_model():
        return 1

    logger.info("Loading embedding model...")
    container.resolve(EmbeddingModelProtocol).warmup()

    health = container.resolve(HealthService)
    try:
        health.initialize()
    except InitializationError as e:
        logger.error(f"Startup failed: {e}")
        return 1

    _print_json(health.status())
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    try:
        query = SearchQuery(text=args.query, page=args.page, size=args.size)
    except InvalidQueryError as e:
        logger.error(f"Invalid query: {e}")
        return 2

    strategy = RetrievalStrategy(args.strategy) if args.strategy else None
    outcome = container.resolve(HybridSearchService).search(query, strategy=strategy)
    _print_json(outcome.to_dict())
    return 0


def cmd_index(args: argparse.Namespace) -> int:
    service = container.resolve(DocumentService)
    documents = service.load_file(args.file)
    ids = service.index_documents(documents)
    logger.info(f"Indexed {len(ids)} documents")
    return 0


def cmd_similar(args: argparse.Namespace) -> int:
    result = container.resolve(DocumentService).find_similar(
        args.document_id, size=args.size, min_score=settings.similar_min_score
    )
    _print_json(
        {
            "document_id": args.document_id,
            "documents": [d.to_dict() for d in result.documents],
            "total_hits": result.total_hits,
        }
    )
    return 0


def cmd_health(args: argparse.Namespace) -> int:
    status = container.resolve(HealthService).status()
    _print_json(status)
    return 0 if status["status"] == "UP" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hybrid-search")
    commands = parser.add_subparsers(dest="command", required=True)

    startup = commands.add_parser("startup", help="initialize index and check health")
    startup.add_argument("--skip-llm", action="store_true", help="do not wait for Ollama")
    startup.set_defaults(func=cmd_startup)

    search = commands.add_parser("search", help="run a search query")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=0)
    search.add_argument("--size", type=int, default=settings.search_default_size)
    search.add_argument(
        "--strategy", choices=[s.value for s in RetrievalStrategy], default=None
    )
    search.set_defaults(func=cmd_search)

    index = commands.add_parser("index", help="index documents from a JSON file")
    index.add_argument("file")
    index.set_defaults(func=cmd_index)

    similar = commands.add_parser("similar", help="find documents similar to one by id")
    similar.add_argument("document_id")
    similar.add_argument("--size", type=int, default=settings.search_default_size)
    similar.set_defaults(func=cmd_similar)

    health = commands.add_parser("health", help="check backend health")
    health.set_defaults(func=cmd_health)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    logging.basicConfig(level=settings.log_level, format="%(message)s")
    args = build_parser().parse_args(argv)
    configure_container(settings)
    try:
        return args.func(args)
    finally:
        container.shutdown()


if __name__ == "__main__":
    sys.exit(main())
