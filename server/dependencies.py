"""Construction of the tool handler and its collaborators."""

from pathlib import Path

from api.perplexity_client import PerplexityClient
from config.config import Config
from orchestrator.query_analyzer import QueryAnalyzer
from orchestrator.synthesis_engine import SynthesisEngine
from server.tools import ResearchToolHandler
from storage.research_store import ResearchStore
from utils.logger import get_logger

logger = get_logger(__name__)


def build_handler(
    config: Config | None = None, research_dir: str | Path | None = None
) -> ResearchToolHandler:
    """
    Build the client, synthesis engine and store once and wire them together.

    Args:
        config: Loaded configuration; read from the environment when omitted
        research_dir: Optional override of the research directory

    Returns:
        A ready ResearchToolHandler

    Raises:
        ConfigurationError: If PERPLEXITY_API_KEY is missing
    """
    config = config or Config()
    config.validate()

    analyzer = QueryAnalyzer()
    client = PerplexityClient(
        api_key=config.PERPLEXITY_API_KEY,
        base_url=config.PERPLEXITY_BASE_URL,
        analyzer=analyzer,
    )
    store = ResearchStore(research_dir=research_dir, config=config)
    handler = ResearchToolHandler(
        client=client,
        synthesizer=SynthesisEngine(client),
        store=store,
        analyzer=analyzer,
    )

    logger.info(
        "Research handler ready",
        extra={"extra_fields": {"research_dir": str(store.research_dir)}},
    )
    return handler
