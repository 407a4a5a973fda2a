"""
End-to-end tests for the tool handler: real client, engine and store, with
only the OpenAI SDK client mocked out.
"""

from unittest.mock import MagicMock

import httpx
import openai
import pytest
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from api.perplexity_client import PerplexityClient
from config.prompts import SYSTEM_PROMPTS
from orchestrator.synthesis_engine import SynthesisEngine
from server.app import _unwrap, create_app
from server.tools import ResearchToolHandler, ToolReply
from storage.research_store import ResearchStore

API_URL = "https://api.perplexity.ai/chat/completions"


@pytest.fixture
def sdk(payload_factory):
    sdk = MagicMock()
    completion = MagicMock()
    completion.model_dump.return_value = payload_factory(
        content="Water boils at 100 degrees Celsius at sea level.",
        citations=["https://www.example.com/boiling", "https://science.org/water"],
    )
    sdk.chat.completions.create.return_value = completion
    return sdk


@pytest.fixture
def handler(tmp_path, clock, sdk):
    client = PerplexityClient(api_key="test-key", client=sdk)
    store = ResearchStore(research_dir=tmp_path / "research", clock=clock)
    return ResearchToolHandler(client=client, synthesizer=SynthesisEngine(client), store=store)


def _sent_models(sdk) -> list[str]:
    return [call.kwargs["model"] for call in sdk.chat.completions.create.call_args_list]


class TestResearch:
    def test_simple_query_end_to_end(self, handler, sdk):
        reply = handler.research(query="What is the boiling point of water?")

        assert reply.is_error is False
        assert _sent_models(sdk) == ["sonar"]
        assert "Water boils at 100 degrees Celsius" in reply.text
        assert "## Sources" in reply.text

        thread = handler.store.research_dir / "what-is-the-boiling-point-of-water-2026-10-18.md"
        assert reply.text.endswith(f"\n\n---\n*Saved to: {thread}*")
        content = thread.read_text(encoding="utf-8")
        assert content.count("## Query ") == 1
        assert "**Model**: sonar (Simple factual lookup query)" in content
        assert f"Context: {SYSTEM_PROMPTS['general']}" in content

        raw_files = handler.store.list_raw_files()
        assert [r.timestamp for r in raw_files] == ["20261018_093000"]
        assert f"[raw/{raw_files[0].filename}]" in content

        listing = handler.list_research_threads()
        assert listing.text.startswith("## Research Threads (1)")
        assert "| What is the boiling point of water? | sonar |" in listing.text

    def test_rca_context_forces_reasoning_model(self, handler, sdk):
        handler.research(query="What is wrong with my cache?", context="rca")

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "sonar-reasoning-pro"
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPTS["rca"]}

        content = handler.read_research_thread(topic="what-is-wrong").text
        assert "(RCA/debugging requires reasoning model)" in content

    def test_user_model_and_filters_are_passed_through(self, handler, sdk):
        handler.research(
            query="Latest kernel release",
            model="sonar-pro",
            recency="week",
            domain_filter=["kernel.org"],
            return_related_questions=True,
        )

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "sonar-pro"
        assert kwargs["extra_body"] == {
            "search_domain_filter": ["kernel.org"],
            "search_recency_filter": "week",
            "return_citations": True,
            "return_related_questions": True,
        }
        content = handler.read_research_thread(topic="latest-kernel-release").text
        assert "**Model**: sonar-pro (user-specified)" in content

    def test_approved_plan_is_saved(self, handler):
        handler.research(query="Why is the sky blue?", approved_plan="Check Rayleigh scattering")
        content = handler.read_research_thread(topic="sky-blue").text
        assert "### Approved Plan\nCheck Rayleigh scattering" in content

    def test_api_error_returns_options_and_writes_nothing(self, handler, sdk):
        request = httpx.Request("POST", API_URL)
        sdk.chat.completions.create.side_effect = openai.APIStatusError(
            "HTTP 429",
            response=httpx.Response(429, text="slow down", request=request),
            body=None,
        )

        reply = handler.research(query="Why is the sky blue?")

        assert reply.is_error is True
        assert reply.text.startswith("**API call failed**: Perplexity API error (429): slow down")
        assert "**Suggested action**: Rate limited." in reply.text
        assert "1. **Retry** with same model (sonar-reasoning-pro)" in reply.text
        assert "2. **Try alternative model**: sonar-pro" in reply.text
        assert handler.store.list_threads() == []
        assert handler.store.list_raw_files() == []

    @pytest.mark.parametrize(
        "arguments",
        [
            {},
            {"query": "   "},
            {"query": "q", "model": "gpt-4"},
            {"query": "q", "domain_filter": [f"d{i}.com" for i in range(11)]},
        ],
    )
    def test_invalid_arguments_are_rejected_before_any_call(self, handler, sdk, arguments):
        reply = handler.research(**arguments)

        assert reply.is_error is True
        assert reply.text.startswith("**Invalid arguments**")
        sdk.chat.completions.create.assert_not_called()


class TestDeepResearch:
    def test_user_pattern_is_saved_as_one_entry(self, handler, sdk):
        reply = handler.deep_research(query="Is coffee healthy?", pattern="quick-deep")

        assert reply.is_error is False
        assert _sent_models(sdk) == ["sonar", "sonar-deep-research"]
        assert reply.text.startswith("## Summary\n\n## Synthesis Summary")
        assert "[1] example.com\n    https://www.example.com/boiling" in reply.text

        thread = handler.store.research_dir / "deep-research-is-coffee-healthy-2026-10-18.md"
        content = thread.read_text(encoding="utf-8")
        assert content.startswith("# [Deep Research] Is coffee healthy?")
        assert "Context: Multi-model synthesis (quick-deep)" in content
        assert "**Model**: sonar-deep-research (user-specified quick-deep pattern)" in content
        assert "**Tokens**: 600" in content
        assert content.count("## Query ") == 1

        raw = handler.store.read_raw_file(handler.store.list_raw_files()[0].filename)
        assert raw["response"]["id"] == "synthesis"
        assert raw["response"]["model"] == "multi-model"

    def test_pattern_is_auto_selected(self, handler, sdk):
        reply = handler.deep_research(query="Fact check: cracking knuckles causes arthritis")

        assert _sent_models(sdk) == ["sonar-pro", "sonar-reasoning-pro", "sonar-deep-research"]
        content = handler.read_research_thread(topic="knuckles").text
        assert "auto-selected truthtracer pattern based on query analysis" in content
        assert reply.is_error is False

    def test_failure_reports_simpler_pattern(self, handler, sdk):
        sdk.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", API_URL)
        )

        reply = handler.deep_research(query="Anything", pattern="truthtracer")

        assert reply.is_error is True
        assert reply.text.startswith("**Deep research failed**: Network error calling Perplexity API")
        assert "2. **Try simpler pattern**: fact-reasoning" in reply.text
        assert _sent_models(sdk) == ["sonar-pro"]
        assert handler.store.list_threads() == []

    def test_unknown_pattern_is_rejected(self, handler, sdk):
        reply = handler.deep_research(query="q", pattern="everything")
        assert reply.is_error is True
        sdk.chat.completions.create.assert_not_called()


class TestJournalTools:
    def test_search_with_and_without_hits(self, handler):
        handler.research(query="What is the boiling point of water?")

        found = handler.search_research(keywords="boiling celsius")
        assert found.text.startswith('## Found 1 research thread(s) matching "boiling celsius"')
        assert "*File: what-is-the-boiling-point-of-water-2026-10-18.md*" in found.text

        missing = handler.search_research(keywords="volcano")
        assert missing.text == (
            'No existing research found for "volcano". You may proceed with a new query.'
        )

    def test_empty_listing_mentions_directory(self, handler):
        reply = handler.list_research_threads()
        assert reply.text == (
            f"No research threads found.\nResearch directory: {handler.store.research_dir}"
        )

    def test_read_missing_thread(self, handler):
        reply = handler.read_research_thread(topic="nope")
        assert reply.is_error is False
        assert reply.text.startswith('Research thread "nope" not found.')

    def test_list_models(self, handler):
        text = handler.list_models().text
        for model in ("sonar", "sonar-pro", "sonar-reasoning-pro", "sonar-deep-research"):
            assert f"### {model}" in text


class TestApp:
    def test_create_app_returns_named_server(self, handler):
        app = create_app(handler)
        assert isinstance(app, FastMCP)
        assert app.name == "perplexity-intelligent-mcp"

    def test_error_replies_become_tool_errors(self):
        assert _unwrap(ToolReply("fine")) == "fine"
        with pytest.raises(ToolError, match="broken"):
            _unwrap(ToolReply("broken", is_error=True))
