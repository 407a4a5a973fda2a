"""
SynthesisEngine - Sequential multi-model research with heuristic consistency scoring.

Runs the models of a named pattern one after another against the same query,
then merges their answers into a SynthesisResult. At most one request is in
flight at a time and a failing step aborts the whole run.
"""

import math
import uuid

from api.base_client import BaseSearchClient
from models.search_response import (
    SONAR,
    SONAR_DEEP_RESEARCH,
    SONAR_PRO,
    SONAR_REASONING_PRO,
    Message,
    SearchOptions,
)
from models.synthesis_result import Confidence, Finding, ModelResult, SynthesisResult
from utils.logger import get_logger
from utils.text_utils import extract_domain, strip_thinking_blocks

logger = get_logger(__name__)

SYNTHESIS_PATTERNS: dict[str, tuple[str, ...]] = {
    "fact-reasoning": (SONAR_PRO, SONAR_REASONING_PRO),
    "quick-deep": (SONAR, SONAR_DEEP_RESEARCH),
    "truthtracer": (SONAR_PRO, SONAR_REASONING_PRO, SONAR_DEEP_RESEARCH),
    "multi-perspective": (SONAR_PRO, SONAR_REASONING_PRO),
}
FALLBACK_MODELS: tuple[str, ...] = (SONAR_REASONING_PRO,)

PATTERN_DESCRIPTIONS = {
    "fact-reasoning": "Factual research followed by reasoning analysis",
    "quick-deep": "Quick assessment followed by deep research",
    "truthtracer": "Comprehensive fact-check with reasoning verification",
    "multi-perspective": "Multi-perspective analysis",
}

MODEL_LABELS = {
    SONAR: "Quick Factual Research",
    SONAR_PRO: "Multi-Source Research",
    SONAR_REASONING_PRO: "Reasoning Analysis",
    SONAR_DEEP_RESEARCH: "Deep Investigation",
}

CONFIDENCE_NOTES = {
    "high": "Strong source agreement and consistent findings across models",
    "medium-high": "Good source overlap with minor variations in depth",
    "medium": "Moderate agreement; consider additional verification for critical decisions",
    "low": "Significant variance between models; findings should be verified independently",
}

SUMMARY_EXCERPT_CHARS = 500


def models_for_pattern(pattern: str) -> tuple[str, ...]:
    """Model sequence for ``pattern``; unknown patterns run the reasoning model alone."""
    return SYNTHESIS_PATTERNS.get(pattern, FALLBACK_MODELS)


def model_label(model: str) -> str:
    return MODEL_LABELS.get(model, model)


def deduplicate_citations(citations) -> tuple[str, ...]:
    """Drop repeated URLs, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for url in citations:
        if url in seen:
            continue
        seen.add(url)
        unique.append(url)
    return tuple(unique)


def confidence_from_signals(common_citations: int, conflicts: int) -> Confidence:
    """Map shared-citation and conflict counts onto the confidence ladder."""
    if common_citations > 3 and conflicts == 0:
        return "high"
    if common_citations > 1:
        return "medium-high"
    if conflicts >= 2:
        return "low"
    return "medium"


class SynthesisEngine:
    """
    Orchestrates a fixed sequence of search calls and combines the answers.

    Example usage:
        engine = SynthesisEngine(perplexity_client)
        result = engine.synthesize("Is intermittent fasting effective?", "truthtracer")
        print(engine.format_synthesis(result))
    """

    def __init__(self, client: BaseSearchClient):
        self.client = client

    def synthesize(
        self, query: str, pattern: str, system_prompt: str | None = None
    ) -> SynthesisResult:
        """
        Run every model of ``pattern`` in order and combine the results.

        Args:
            query: The research question
            pattern: Synthesis pattern name
            system_prompt: Optional system prompt sent with every step

        Returns:
            SynthesisResult

        Raises:
            Whatever the client raises for a failing step (NetworkError, APIError).
            The remaining steps are not executed and no partial result is built.
        """
        models = models_for_pattern(pattern)
        run_id = str(uuid.uuid4())
        options = SearchOptions(
            messages=(Message("system", system_prompt),) if system_prompt else ()
        )

        logger.info(
            f"Starting synthesis with {len(models)} models",
            extra={
                "extra_fields": {
                    "run_id": run_id,
                    "pattern": pattern,
                    "models": list(models),
                }
            },
        )

        results: list[ModelResult] = []
        for step, model in enumerate(models, start=1):
            try:
                response = self.client.search(query, model, options)
            except Exception as e:
                logger.error(
                    f"Synthesis step {step} failed for {model}: {e}",
                    extra={
                        "extra_fields": {
                            "run_id": run_id,
                            "step": step,
                            "model": model,
                            "error_type": type(e).__name__,
                        }
                    },
                )
                raise

            results.append(
                ModelResult(
                    model=model,
                    response=response,
                    content=strip_thinking_blocks(response.content),
                    citations=tuple(response.citations),
                )
            )

        result = self.combine_results(query, results, pattern)

        logger.info(
            "Synthesis complete",
            extra={
                "extra_fields": {
                    "run_id": run_id,
                    "pattern": pattern,
                    "confidence": result.confidence,
                    "citations": len(result.all_citations),
                    "total_tokens": result.total_usage.total_tokens,
                }
            },
        )
        return result

    def combine_results(
        self, query: str, results: list[ModelResult], pattern: str
    ) -> SynthesisResult:
        all_citations = deduplicate_citations(url for r in results for url in r.citations)
        findings = tuple(Finding(r.model, r.content, r.citations) for r in results)
        agreements, conflicts, confidence = self.analyze_consistency(results)
        summary = self.generate_summary(query, results, pattern, confidence)

        return SynthesisResult(
            summary=summary,
            findings=findings,
            agreements=tuple(agreements),
            conflicts=tuple(conflicts),
            confidence=confidence,
            all_citations=all_citations,
            results=tuple(results),
        )

    def analyze_consistency(
        self, results: list[ModelResult]
    ) -> tuple[list[str], list[str], Confidence]:
        """
        Estimate cross-model agreement from citation overlap and answer depth.

        This is a heuristic proxy, not a semantic comparison: shared sources are
        read as agreement and a wide spread of answer lengths as a conflict.
        """
        agreements: list[str] = []
        conflicts: list[str] = []

        if len(results) < 2:
            return agreements, conflicts, "medium"

        citation_sets = [set(r.citations) for r in results]
        common_citations = [
            url
            for url in deduplicate_citations(results[0].citations)
            if all(url in s for s in citation_sets)
        ]
        if len(common_citations) > 2:
            agreements.append(f"{len(common_citations)} sources cited by all models")

        lengths = [len(r.content) for r in results]
        mean = sum(lengths) / len(lengths)
        std_dev = math.sqrt(sum((n - mean) ** 2 for n in lengths) / len(lengths))
        if std_dev > mean * 0.5:
            conflicts.append("Significant variance in response depth between models")

        confidence = confidence_from_signals(len(common_citations), len(conflicts))
        return agreements, conflicts, confidence

    def generate_summary(
        self, query: str, results: list[ModelResult], pattern: str, confidence: Confidence
    ) -> str:
        model_chain = " → ".join(r.model for r in results)
        total_sources = len(deduplicate_citations(url for r in results for url in r.citations))
        pattern_desc = PATTERN_DESCRIPTIONS.get(pattern, "Multi-model synthesis")

        steps = []
        for i, r in enumerate(results, start=1):
            excerpt = r.content[:SUMMARY_EXCERPT_CHARS]
            if len(r.content) > SUMMARY_EXCERPT_CHARS:
                excerpt += "..."
            steps.append(f"### {i}. {r.model}\n\n{excerpt}\n\n*[{len(r.citations)} citations]*\n")

        return (
            "## Synthesis Summary\n\n"
            f"**Query**: {query}\n"
            f"**Pattern**: {pattern_desc}\n"
            f"**Models**: {model_chain}\n"
            f"**Total Sources**: {total_sources}\n"
            f"**Confidence**: {confidence}\n\n"
            "---\n\n" + "\n".join(steps)
        )

    def format_synthesis(self, result: SynthesisResult) -> str:
        """Render a SynthesisResult as the markdown report returned to the chat client."""
        output = f"## Summary\n\n{result.summary}\n\n---\n\n## Findings by Approach\n\n"

        for finding in result.findings:
            output += (
                f"### {model_label(finding.model)} ({finding.model})\n\n"
                f"{finding.content}\n\n"
                f"*Sources: {len(finding.citations)} citations*\n\n"
            )

        output += "---\n\n## Synthesis\n\n### Areas of Agreement\n"
        if result.agreements:
            output += "".join(f"- ✓ {a}\n" for a in result.agreements)
        else:
            output += "- *Cross-model agreement analysis pending deeper semantic comparison*\n"

        output += "\n### Areas of Conflict\n"
        if result.conflicts:
            output += "".join(f"- ⚠️ {c}\n" for c in result.conflicts)
        else:
            output += "- *No significant conflicts detected*\n"

        output += (
            "\n### Confidence Assessment\n"
            f"- **Overall Confidence**: {result.confidence}\n"
            f"- *{CONFIDENCE_NOTES[result.confidence]}*\n"
        )

        output += "\n---\n\n## Citations\n\n"
        for i, url in enumerate(result.all_citations, start=1):
            domain = extract_domain(url)
            if domain == url:
                output += f"[{i}] {url}\n\n"
            else:
                output += f"[{i}] {domain}\n    {url}\n\n"

        return output
