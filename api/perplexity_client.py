import time

import openai

from api.base_client import BaseSearchClient
from api.errors import APIError, NetworkError
from config.config import PERPLEXITY_BASE_URL
from config.prompts import SYSTEM_PROMPTS
from models.search_response import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    SONAR_REASONING_PRO,
    Message,
    ModelRecommendation,
    SearchOptions,
    SearchRequest,
    SearchResponse,
)
from orchestrator.query_analyzer import QueryAnalyzer
from utils.logger import get_logger
from utils.text_utils import extract_domain, strip_thinking_blocks

logger = get_logger(__name__)

# Request fields the OpenAI SDK does not know about; sent through extra_body
PERPLEXITY_EXTRA_FIELDS = (
    "search_domain_filter",
    "search_recency_filter",
    "return_citations",
    "return_images",
    "return_related_questions",
)


def build_request(query: str, model: str, options: SearchOptions | None = None) -> SearchRequest:
    """
    Build the request for one search.

    The system message comes from the caller's first message when it is tagged
    ``system``, otherwise the general prompt is used. Any other caller messages
    are dropped so the request always holds exactly one system message followed
    by the user query.
    """
    options = options or SearchOptions()

    if options.messages and options.messages[0].role == "system":
        system_prompt = options.messages[0].content
    else:
        system_prompt = SYSTEM_PROMPTS["general"]

    return SearchRequest(
        model=model,
        messages=(Message("system", system_prompt), Message("user", query)),
        max_tokens=options.max_tokens or DEFAULT_MAX_TOKENS,
        temperature=(
            options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
        ),
        top_p=options.top_p,
        search_domain_filter=options.search_domain_filter,
        search_recency_filter=options.search_recency_filter,
        return_citations=(
            options.return_citations if options.return_citations is not None else True
        ),
        return_images=options.return_images,
        return_related_questions=options.return_related_questions,
    )


class PerplexityClient(BaseSearchClient):
    """
    Perplexity Sonar API client returning SearchResponse.

    Uses the OpenAI SDK with a custom base URL since the Sonar API is
    OpenAI-compatible. Retries are disabled: retrying is a caller decision.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = PERPLEXITY_BASE_URL,
        client: openai.OpenAI | None = None,
        analyzer: QueryAnalyzer | None = None,
    ):
        """
        Initialize the Perplexity client.

        Args:
            api_key: The Perplexity API key
            base_url: API root (default: https://api.perplexity.ai)
            client: Optional pre-built SDK client, mainly for tests
            analyzer: Optional query analyzer used for model auto-selection
        """
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.client = client or openai.OpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self.analyzer = analyzer or QueryAnalyzer()

    def search(
        self,
        query: str,
        model: str = SONAR_REASONING_PRO,
        options: SearchOptions | None = None,
    ) -> SearchResponse:
        """
        Send one chat completion request and normalize the response.

        Args:
            query: The research question
            model: Sonar model name
            options: Optional SearchOptions (system prompt, filters, toggles)

        Returns:
            SearchResponse

        Raises:
            NetworkError: If the API could not be reached
            APIError: If the API returned a non-success status
        """
        request = build_request(query, model, options)
        payload = request.to_payload()
        extra_body = {k: payload.pop(k) for k in PERPLEXITY_EXTRA_FIELDS if k in payload}
        start_time = time.time()

        try:
            completion = self.client.chat.completions.create(**payload, extra_body=extra_body)
        except openai.APIConnectionError as e:
            logger.error(
                "Perplexity request failed: network",
                extra={"extra_fields": {"model": model, "error": str(e)}},
            )
            raise NetworkError(str(e)) from e
        except openai.APIStatusError as e:
            logger.error(
                f"Perplexity request failed: HTTP {e.status_code}",
                extra={"extra_fields": {"model": model, "status": e.status_code}},
            )
            raise APIError(e.status_code, e.response.text) from e

        response = SearchResponse.from_dict(completion.model_dump())
        latency_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "Perplexity search successful",
            extra={
                "extra_fields": {
                    "response_id": response.id,
                    "model": model,
                    "latency_ms": latency_ms,
                    "tokens": response.usage.total_tokens,
                    "citations": len(response.citations),
                }
            },
        )
        return response

    def analyze_query_for_model(self, query: str) -> ModelRecommendation:
        """Recommend a model for ``query`` using keyword heuristics."""
        return self.analyzer.recommend_model(query)

    def format_response_with_citations(self, response: SearchResponse) -> str:
        """
        Render a response as markdown with sources, related questions and a metadata line.
        """
        formatted = strip_thinking_blocks(response.content)

        if response.citations:
            formatted += "\n\n---\n\n## Sources\n\n"
            for index, url in enumerate(response.citations, start=1):
                domain = extract_domain(url, strip_www=False)
                if domain == url:
                    formatted += f"[{index}] {url}\n"
                else:
                    formatted += f"[{index}] {domain}\n    {url}\n"

        if response.related_questions:
            formatted += "\n---\n\n## Related Questions\n\n"
            for index, question in enumerate(response.related_questions, start=1):
                formatted += f"{index}. {question}\n"

        formatted += f"\n---\n\n*Model: {response.model} | Tokens: {response.usage.total_tokens}*"

        if response.usage.num_search_queries:
            formatted += f" | *Searches: {response.usage.num_search_queries}*"

        return formatted
