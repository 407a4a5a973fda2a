"""
Tool dispatcher: maps MCP tool calls onto the client, the synthesis engine and the store.

Every method returns a ToolReply. API failures come back as error replies
carrying the next-step options for the user; they are never raised to the
transport.
"""

import time
from dataclasses import dataclass

from pydantic import ValidationError

from api.errors import ResearchError
from api.perplexity_client import PerplexityClient
from config.prompts import SYSTEM_PROMPTS
from models.search_response import (
    SONAR_DEEP_RESEARCH,
    SONAR_PRO,
    SONAR_REASONING_PRO,
    Choice,
    Message,
    SearchOptions,
    SearchResponse,
)
from orchestrator.query_analyzer import QueryAnalyzer
from orchestrator.synthesis_engine import SynthesisEngine
from server.schemas.requests import (
    DeepResearchRequest,
    ReadThreadRequest,
    ResearchRequest,
    SearchResearchRequest,
)
from storage.research_store import ResearchStore
from utils.logger import get_logger
from utils.text_utils import truncate

logger = get_logger(__name__)

SNIPPET_CHARS = 200

MODEL_GUIDE = """## Perplexity Sonar Models

### sonar
**Best for**: Simple factual lookups, current events, definitions
- "What is the current Bitcoin price?"
- "Who won the game last night?"
- "What is quantum entanglement?"

### sonar-pro
**Best for**: Multi-source research, fact-checking, technical docs
- "Compare React vs Vue for enterprise apps"
- "What are the key findings from recent climate reports?"
- 2x more citations than sonar

### sonar-reasoning-pro (DEFAULT)
**Best for**: Why/how questions, complex analysis, debugging, trade-offs
- "Why did the 2008 financial crisis happen?"
- "Evaluate microservices vs monolith for a small team"
- Shows reasoning process for transparency

### sonar-deep-research
**Best for**: Exhaustive research, reports, due diligence
- "Comprehensive analysis of the EV market through 2030"
- Runs ~30 searches, processes hundreds of sources
- 128K token context

---

**Selection guidance**:
- Default to sonar-reasoning-pro unless query is trivially simple
- Use sonar-deep-research for comprehensive reports
- For critical decisions, use deep_research with multi-model synthesis"""


@dataclass(frozen=True)
class ToolReply:
    text: str
    is_error: bool = False


def describe_failure(error: ResearchError) -> str:
    """Failure description followed by the remediation for its error type."""
    return f"{error}\n\n**Suggested action**: {error.suggested_action()}"


def validation_reply(error: ValidationError) -> ToolReply:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'arguments'}: {e['msg']}" for e in error.errors()
    )
    return ToolReply(f"**Invalid arguments**: {problems}", is_error=True)


class ResearchToolHandler:
    """
    Handles the six research tools.

    Collaborators are passed in explicitly; see server.dependencies.build_handler.
    """

    def __init__(
        self,
        client: PerplexityClient,
        synthesizer: SynthesisEngine,
        store: ResearchStore,
        analyzer: QueryAnalyzer | None = None,
    ):
        self.client = client
        self.synthesizer = synthesizer
        self.store = store
        self.analyzer = analyzer or QueryAnalyzer()

    def research(self, **arguments) -> ToolReply:
        try:
            request = ResearchRequest(**arguments)
        except ValidationError as e:
            return validation_reply(e)

        model = request.model
        system_prompt = SYSTEM_PROMPTS[request.context]

        # RCA always goes to the reasoning model unless the caller picked one
        if request.context == "rca" and not model:
            model = SONAR_REASONING_PRO
            model_rationale = "RCA/debugging requires reasoning model"
        elif not model:
            recommendation = self.analyzer.recommend_model(request.query)
            model = recommendation.recommended
            model_rationale = recommendation.reason
        else:
            model_rationale = "user-specified"

        options = SearchOptions(
            messages=(Message("system", system_prompt),),
            search_recency_filter=request.recency,
            search_domain_filter=tuple(request.domain_filter) if request.domain_filter else None,
            return_related_questions=True if request.return_related_questions else None,
        )

        logger.info(
            "research tool called",
            extra={
                "extra_fields": {
                    "model": model,
                    "context": request.context,
                    "rationale": model_rationale,
                }
            },
        )

        try:
            response = self.client.search(request.query, model, options)
        except ResearchError as e:
            alternative = SONAR_PRO if model == SONAR_REASONING_PRO else SONAR_REASONING_PRO
            return ToolReply(
                f"**API call failed**: {describe_failure(e)}\n\n"
                "**Options:**\n"
                f"1. **Retry** with same model ({model})\n"
                f"2. **Try alternative model**: {alternative}\n"
                "3. **Reformulate query** - simplify or clarify the question\n"
                "4. **Abort** - cancel this research\n\n"
                "What would you like to do?",
                is_error=True,
            )

        file_path = self.store.save_research(
            request.query,
            response,
            model,
            system_prompt=system_prompt,
            model_rationale=model_rationale,
            approved_plan=request.approved_plan,
        )

        formatted = self.client.format_response_with_citations(response)
        return ToolReply(f"{formatted}\n\n---\n*Saved to: {file_path}*")

    def deep_research(self, **arguments) -> ToolReply:
        try:
            request = DeepResearchRequest(**arguments)
        except ValidationError as e:
            return validation_reply(e)

        if request.pattern:
            pattern = request.pattern
            pattern_rationale = f"user-specified {pattern} pattern"
        else:
            pattern = self.analyzer.recommend_pattern(request.query)
            pattern_rationale = f"auto-selected {pattern} pattern based on query analysis"

        try:
            result = self.synthesizer.synthesize(request.query, pattern)
        except ResearchError as e:
            simpler = "fact-reasoning" if pattern == "truthtracer" else "quick-deep"
            return ToolReply(
                f"**Deep research failed**: {describe_failure(e)}\n\n"
                "**Options:**\n"
                f"1. **Retry** with same pattern ({pattern})\n"
                f"2. **Try simpler pattern**: {simpler}\n"
                "3. **Use single model** instead via research tool\n"
                "4. **Abort** - cancel this research\n\n"
                "What would you like to do?",
                is_error=True,
            )

        synthetic = SearchResponse(
            id="synthesis",
            model="multi-model",
            created=int(time.time()),
            choices=(Choice(index=0, content=result.summary, finish_reason="stop"),),
            usage=result.total_usage,
            citations=result.all_citations,
        )
        file_path = self.store.save_research(
            f"[Deep Research] {request.query}",
            synthetic,
            SONAR_DEEP_RESEARCH,
            system_prompt=f"Multi-model synthesis ({pattern})",
            model_rationale=pattern_rationale,
            approved_plan=request.approved_plan,
        )

        formatted = self.synthesizer.format_synthesis(result)
        return ToolReply(f"{formatted}\n\n---\n*Saved to: {file_path}*")

    def search_research(self, **arguments) -> ToolReply:
        try:
            request = SearchResearchRequest(**arguments)
        except ValidationError as e:
            return validation_reply(e)

        hits = self.store.search_research(request.keywords)
        if not hits:
            return ToolReply(
                f'No existing research found for "{request.keywords}". '
                "You may proceed with a new query."
            )

        output = f'## Found {len(hits)} research thread(s) matching "{request.keywords}"\n\n'
        for i, hit in enumerate(hits, start=1):
            output += f"### {i}. {hit.topic}\n*File: {hit.file}*\n\n"
            for match in hit.matches:
                output += f"> {truncate(match, SNIPPET_CHARS)}\n\n"
        return ToolReply(output)

    def list_research_threads(self) -> ToolReply:
        threads = self.store.list_threads()
        if not threads:
            return ToolReply(
                f"No research threads found.\nResearch directory: {self.store.research_dir}"
            )

        output = f"## Research Threads ({len(threads)})\n\n"
        output += f"*Directory: {self.store.research_dir}*\n\n"
        output += "| Date | Topic | Model | Summary |\n"
        output += "|------|-------|-------|----------|\n"
        for t in threads:
            output += f"| {t.date} | {t.topic} | {t.model} | {t.summary} |\n"
        return ToolReply(output)

    def read_research_thread(self, **arguments) -> ToolReply:
        try:
            request = ReadThreadRequest(**arguments)
        except ValidationError as e:
            return validation_reply(e)

        content = self.store.read_thread(request.topic)
        if content is None:
            return ToolReply(
                f'Research thread "{request.topic}" not found. '
                "Use list_research_threads to see available threads."
            )
        return ToolReply(content)

    def list_models(self) -> ToolReply:
        return ToolReply(MODEL_GUIDE)
