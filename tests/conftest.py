from datetime import datetime, timedelta, timezone

import pytest

from models.search_response import SearchResponse


def make_payload(
    content: str = "Answer text",
    model: str = "sonar",
    citations: list[str] | None = None,
    related_questions: list[str] | None = None,
    prompt_tokens: int = 100,
    completion_tokens: int = 200,
    num_search_queries: int | None = None,
    response_id: str = "resp-1",
) -> dict:
    usage = {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
    if num_search_queries is not None:
        usage["num_search_queries"] = num_search_queries
    payload = {
        "id": response_id,
        "model": model,
        "created": 1760000000,
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": usage,
    }
    if citations is not None:
        payload["citations"] = citations
    if related_questions is not None:
        payload["related_questions"] = related_questions
    return payload


@pytest.fixture
def payload_factory():
    return make_payload


@pytest.fixture
def response_factory():
    """Build a SearchResponse from the keyword arguments of make_payload."""

    def _factory(**kwargs) -> SearchResponse:
        return SearchResponse.from_dict(make_payload(**kwargs))

    return _factory


class SteppingClock:
    """Returns a fixed start time that advances one second per call."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


@pytest.fixture
def clock():
    return SteppingClock(datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc))


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real credentials and research directories out of the tests."""
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)
    monkeypatch.setenv("PERPLEXITY_RESEARCH_DIR", str(tmp_path / "env-research"))
