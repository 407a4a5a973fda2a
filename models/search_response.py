from dataclasses import dataclass, field
from typing import Any, Literal

SonarModel = Literal["sonar", "sonar-pro", "sonar-reasoning-pro", "sonar-deep-research"]
MessageRole = Literal["system", "user", "assistant"]
RecencyFilter = Literal["day", "week", "month", "year"]

SONAR = "sonar"
SONAR_PRO = "sonar-pro"
SONAR_REASONING_PRO = "sonar-reasoning-pro"
SONAR_DEEP_RESEARCH = "sonar-deep-research"

SONAR_MODELS: tuple[str, ...] = (SONAR, SONAR_PRO, SONAR_REASONING_PRO, SONAR_DEEP_RESEARCH)

DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.2
MAX_DOMAIN_FILTERS = 10


@dataclass(frozen=True)
class Message:
    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class SearchOptions:
    """Caller-supplied knobs for a single search. ``None`` means "use the default"."""

    messages: tuple[Message, ...] = ()
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    search_domain_filter: tuple[str, ...] | None = None
    search_recency_filter: RecencyFilter | None = None
    return_citations: bool | None = None
    return_images: bool | None = None
    return_related_questions: bool | None = None

    def __post_init__(self):
        if self.search_domain_filter is not None and len(self.search_domain_filter) > MAX_DOMAIN_FILTERS:
            raise ValueError(f"search_domain_filter accepts at most {MAX_DOMAIN_FILTERS} entries")


@dataclass(frozen=True)
class SearchRequest:
    model: str
    messages: tuple[Message, ...]
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float | None = None
    search_domain_filter: tuple[str, ...] | None = None
    search_recency_filter: RecencyFilter | None = None
    return_citations: bool = True
    return_images: bool | None = None
    return_related_questions: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        """Wire payload for the chat completions endpoint, unset optionals omitted."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "return_citations": self.return_citations,
        }
        if self.top_p is not None:
            payload["top_p"] = self.top_p
        if self.search_domain_filter:
            payload["search_domain_filter"] = list(self.search_domain_filter)
        if self.search_recency_filter:
            payload["search_recency_filter"] = self.search_recency_filter
        if self.return_images is not None:
            payload["return_images"] = self.return_images
        if self.return_related_questions is not None:
            payload["return_related_questions"] = self.return_related_questions
        return payload


@dataclass(frozen=True)
class UsageRecord:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    citation_tokens: int | None = None
    num_search_queries: int | None = None
    reasoning_tokens: int | None = None

    def __post_init__(self):
        if self.total_tokens == 0 and (self.prompt_tokens > 0 or self.completion_tokens > 0):
            object.__setattr__(self, "total_tokens", self.prompt_tokens + self.completion_tokens)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UsageRecord":
        data = data or {}
        return cls(
            prompt_tokens=data.get("prompt_tokens") or 0,
            completion_tokens=data.get("completion_tokens") or 0,
            total_tokens=data.get("total_tokens") or 0,
            citation_tokens=data.get("citation_tokens"),
            num_search_queries=data.get("num_search_queries"),
            reasoning_tokens=data.get("reasoning_tokens"),
        )

    def to_dict(self) -> dict[str, int]:
        data = {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }
        for key in ("citation_tokens", "num_search_queries", "reasoning_tokens"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    def __add__(self, other: "UsageRecord") -> "UsageRecord":
        return UsageRecord(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            num_search_queries=(
                (self.num_search_queries or 0) + (other.num_search_queries or 0)
                if self.num_search_queries is not None or other.num_search_queries is not None
                else None
            ),
        )


@dataclass(frozen=True)
class Choice:
    index: int
    content: str
    role: str = "assistant"
    finish_reason: str | None = None


@dataclass(frozen=True)
class SearchResponse:
    id: str
    model: str
    created: int
    choices: tuple[Choice, ...]
    usage: UsageRecord
    citations: tuple[str, ...] = ()
    related_questions: tuple[str, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def content(self) -> str:
        """Text of the first choice, empty when the API returned no choices."""
        if not self.choices:
            return ""
        return self.choices[0].content or ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResponse":
        choices = tuple(
            Choice(
                index=choice.get("index", i),
                content=(choice.get("message") or {}).get("content") or "",
                role=(choice.get("message") or {}).get("role") or "assistant",
                finish_reason=choice.get("finish_reason"),
            )
            for i, choice in enumerate(data.get("choices") or [])
        )
        return cls(
            id=str(data.get("id", "")),
            model=str(data.get("model", "")),
            created=int(data.get("created") or 0),
            choices=choices,
            usage=UsageRecord.from_dict(data.get("usage")),
            citations=tuple(data.get("citations") or ()),
            related_questions=tuple(data.get("related_questions") or ()),
            raw=dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for the raw backup; prefers the untouched payload."""
        if self.raw:
            return self.raw
        data: dict[str, Any] = {
            "id": self.id,
            "model": self.model,
            "created": self.created,
            "choices": [
                {
                    "index": c.index,
                    "message": {"role": c.role, "content": c.content},
                    "finish_reason": c.finish_reason,
                }
                for c in self.choices
            ],
            "usage": self.usage.to_dict(),
        }
        if self.citations:
            data["citations"] = list(self.citations)
        if self.related_questions:
            data["related_questions"] = list(self.related_questions)
        return data


@dataclass(frozen=True)
class ModelRecommendation:
    recommended: str
    reason: str
