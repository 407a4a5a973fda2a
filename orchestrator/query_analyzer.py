from models.search_response import (
    SONAR,
    SONAR_DEEP_RESEARCH,
    SONAR_REASONING_PRO,
    ModelRecommendation,
)

DEEP_RESEARCH_PHRASES = [
    "comprehensive",
    "exhaustive",
    "deep dive",
    "deep-dive",
    "research report",
    "due diligence",
    "market analysis",
]

REASONING_PHRASES = [
    "why",
    "how does",
    "explain",
    "analyze",
    "compare",
    "evaluate",
    "trade-off",
    "pros and cons",
    "debug",
    "troubleshoot",
    "root cause",
]

FACTUAL_PHRASES = [
    "what is",
    "who is",
    "when did",
    "where is",
    "current price",
    "latest",
]

FACT_CHECK_PHRASES = ["fact check", "fact-check", "is it true", "verify", "due diligence"]
COMPREHENSIVE_PHRASES = ["comprehensive", "exhaustive", "deep dive", "deep-dive"]
ANALYTICAL_PHRASES = ["why", "how", "compare", "evaluate"]

SHORT_QUERY_WORDS = 10


class QueryAnalyzer:
    """
    Keyword classifiers that pick a model or a synthesis pattern for a query.

    Phrases match case-insensitively anywhere in the query, inflected forms
    included. Rules are evaluated in a fixed priority order and the first match
    wins, so a query that mentions both "comprehensive" and "why" is a
    deep-research query.
    """

    def recommend_model(self, query: str) -> ModelRecommendation:
        text = query or ""

        if self._contains_phrase(text, DEEP_RESEARCH_PHRASES):
            return ModelRecommendation(
                recommended=SONAR_DEEP_RESEARCH,
                reason="Query requests comprehensive/exhaustive research",
            )

        if self._contains_phrase(text, REASONING_PHRASES):
            return ModelRecommendation(
                recommended=SONAR_REASONING_PRO,
                reason="Query requires reasoning, analysis, or causal explanation",
            )

        if len(text.split()) < SHORT_QUERY_WORDS and (
            self._contains_phrase(text, FACTUAL_PHRASES)
            or text.strip().lower().startswith("define ")
        ):
            return ModelRecommendation(recommended=SONAR, reason="Simple factual lookup query")

        return ModelRecommendation(
            recommended=SONAR_REASONING_PRO,
            reason="Default model for comprehensive analysis with reasoning traces",
        )

    def recommend_pattern(self, query: str) -> str:
        text = query or ""

        if self._contains_phrase(text, FACT_CHECK_PHRASES):
            return "truthtracer"
        if self._contains_phrase(text, COMPREHENSIVE_PHRASES):
            return "quick-deep"
        if self._contains_phrase(text, ANALYTICAL_PHRASES):
            return "fact-reasoning"
        return "multi-perspective"

    def _contains_phrase(self, text: str, patterns: list[str]) -> bool:
        # Plain substring test: "debugging" matches "debug", "show" matches "how"
        lowered = text.lower()
        return any(pattern.lower() in lowered for pattern in patterns)
