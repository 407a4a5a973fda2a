import pytest

from orchestrator.query_analyzer import QueryAnalyzer


def test_deep_research_rule_wins_over_reasoning_rule():
    analyzer = QueryAnalyzer()
    result = analyzer.recommend_model("comprehensive analysis of why the market crashed")
    assert result.recommended == "sonar-deep-research"
    assert "comprehensive" in result.reason


def test_reasoning_phrases_select_reasoning_model():
    analyzer = QueryAnalyzer()
    result = analyzer.recommend_model("Explain the trade-off between latency and throughput")
    assert result.recommended == "sonar-reasoning-pro"
    assert result.reason == "Query requires reasoning, analysis, or causal explanation"


def test_short_factual_query_selects_lightweight_model():
    analyzer = QueryAnalyzer()
    result = analyzer.recommend_model("What is the boiling point of water?")
    assert result.recommended == "sonar"
    assert result.reason == "Simple factual lookup query"


def test_define_prefix_is_a_factual_lookup():
    analyzer = QueryAnalyzer()
    assert analyzer.recommend_model("Define entropy").recommended == "sonar"


def test_long_factual_query_falls_back_to_default():
    analyzer = QueryAnalyzer()
    query = "what is the full list of every single treaty signed in europe during 1900s"
    result = analyzer.recommend_model(query)
    assert result.recommended == "sonar-reasoning-pro"
    assert result.reason.startswith("Default model")


def test_matching_is_case_insensitive():
    analyzer = QueryAnalyzer()
    assert analyzer.recommend_model("DUE DILIGENCE on Acme Corp").recommended == "sonar-deep-research"


@pytest.mark.parametrize(
    "query,pattern",
    [
        ("Fact check: the moon landing was staged", "truthtracer"),
        ("Is it true that glass is a liquid?", "truthtracer"),
        ("verify this comprehensive claim", "truthtracer"),
        ("An exhaustive survey of battery chemistries", "quick-deep"),
        ("How do vaccines train the immune system", "fact-reasoning"),
        ("Compare Rust and Go", "fact-reasoning"),
        ("Show me the evidence on remote work productivity", "fact-reasoning"),
        ("Comprehensively survey battery chemistry", "quick-deep"),
        ("Remote work and productivity", "multi-perspective"),
    ],
)
def test_recommend_pattern_priority(query, pattern):
    assert QueryAnalyzer().recommend_pattern(query) == pattern


@pytest.mark.parametrize(
    "query",
    [
        "What is debugging?",
        "What is troubleshooting?",
        "Who is explaining inflation?",
        "What is the latest analyzed data",
    ],
)
def test_inflected_reasoning_words_select_reasoning_model(query):
    assert QueryAnalyzer().recommend_model(query).recommended == "sonar-reasoning-pro"
