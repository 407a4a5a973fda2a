"""MCP application factory."""

from typing import Annotated, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from config.prompts import PromptContext
from models.search_response import RecencyFilter, SonarModel
from server.schemas.requests import PatternName
from server.tools import ResearchToolHandler, ToolReply
from utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "perplexity-intelligent-mcp"

RESEARCH_DESCRIPTION = """Intelligent Perplexity search with auto-logging.

BEFORE calling this tool:
1. Use search_research() to check for existing research on this topic.
2. Present a Research Plan (objective, scope, methodology, expected output,
   alternatives, open questions, blind spots) and wait for the user's approval.
3. Call this tool with the approved plan in approved_plan.

MODEL SELECTION (auto-selected when not given):
- Simple factual lookup (what is X?) -> sonar
- Analysis, reasoning, most queries -> sonar-reasoning-pro (default)
- Exhaustive research, comprehensive reports -> sonar-deep-research
- RCA/debugging (context "rca") -> sonar-reasoning-pro

Results are saved as a markdown thread plus a raw JSON backup in the research directory."""

DEEP_RESEARCH_DESCRIPTION = """Multi-model synthesis for comprehensive research.

Check search_research() first and get the user's approval for a plan: multi-model
runs are expensive and take 30-120 seconds.

PATTERNS:
- fact-reasoning: sonar-pro -> sonar-reasoning-pro (verified facts + causal explanation)
- quick-deep: sonar -> sonar-deep-research (quick assessment, then a deep dive)
- truthtracer: sonar-pro -> sonar-reasoning-pro -> sonar-deep-research (fact-checking, due diligence)
- multi-perspective: sonar-pro -> sonar-reasoning-pro (controversial topics, trade-offs)

Output: summary, findings by approach, agreement, conflicts, confidence, combined citations."""


def _drop_unset(**arguments) -> dict:
    return {k: v for k, v in arguments.items() if v is not None}


def _unwrap(reply: ToolReply) -> str:
    if reply.is_error:
        raise ToolError(reply.text)
    return reply.text


def create_app(handler: ResearchToolHandler) -> FastMCP:
    """Factory function to create the MCP server around ``handler``."""
    mcp = FastMCP(name=SERVER_NAME)

    @mcp.tool(name="research", description=RESEARCH_DESCRIPTION)
    def research(
        query: Annotated[str, Field(description="The research question or topic to investigate")],
        approved_plan: Annotated[
            Optional[str], Field(description="The research plan approved by the user")
        ] = None,
        model: Annotated[
            Optional[SonarModel],
            Field(description="Perplexity model to use. Auto-selected when omitted."),
        ] = None,
        context: Annotated[
            Optional[PromptContext],
            Field(description='System prompt context. Use "rca" for debugging. Default: general'),
        ] = None,
        recency: Annotated[
            Optional[RecencyFilter],
            Field(description="Filter results by recency"),
        ] = None,
        domain_filter: Annotated[
            Optional[list[str]],
            Field(description='Domains to include (max 10); prefix with "-" to exclude'),
        ] = None,
        return_related_questions: Annotated[
            Optional[bool], Field(description="Include suggested follow-up questions")
        ] = None,
    ) -> str:
        return _unwrap(
            handler.research(
                **_drop_unset(
                    query=query,
                    approved_plan=approved_plan,
                    model=model,
                    context=context,
                    recency=recency,
                    domain_filter=domain_filter,
                    return_related_questions=return_related_questions,
                )
            )
        )

    @mcp.tool(name="deep_research", description=DEEP_RESEARCH_DESCRIPTION)
    def deep_research(
        query: Annotated[str, Field(description="The research question requiring comprehensive analysis")],
        approved_plan: Annotated[
            Optional[str], Field(description="The research plan approved by the user")
        ] = None,
        pattern: Annotated[
            Optional[PatternName],
            Field(description="Synthesis pattern. Auto-selected when omitted."),
        ] = None,
    ) -> str:
        return _unwrap(
            handler.deep_research(
                **_drop_unset(query=query, approved_plan=approved_plan, pattern=pattern)
            )
        )

    @mcp.tool(
        name="search_research",
        description="Search past research for existing findings. Call this before new queries.",
    )
    def search_research(
        keywords: Annotated[str, Field(description="Keywords to search for in past research")],
    ) -> str:
        return _unwrap(handler.search_research(keywords=keywords))

    @mcp.tool(
        name="list_research_threads",
        description="List all saved research threads with dates and summaries.",
    )
    def list_research_threads() -> str:
        return _unwrap(handler.list_research_threads())

    @mcp.tool(
        name="read_research_thread",
        description="Read the full content of a past research thread.",
    )
    def read_research_thread(
        topic: Annotated[str, Field(description="Topic or ID of the research thread to read")],
    ) -> str:
        return _unwrap(handler.read_research_thread(topic=topic))

    @mcp.tool(
        name="list_models",
        description="Show available Perplexity models and when to use each.",
    )
    def list_models() -> str:
        return _unwrap(handler.list_models())

    logger.info(f"MCP server {SERVER_NAME} created")
    return mcp
