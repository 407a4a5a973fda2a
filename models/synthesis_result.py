"""
Result containers for multi-model synthesis.

ModelResult holds one executed step of a pattern; SynthesisResult is the
combined, immutable outcome handed to formatting and storage.
"""

from dataclasses import dataclass, field
from typing import Literal

from models.search_response import SearchResponse, UsageRecord

Confidence = Literal["low", "medium", "medium-high", "high"]


@dataclass(frozen=True)
class ModelResult:
    model: str
    response: SearchResponse
    content: str
    citations: tuple[str, ...] = ()


@dataclass(frozen=True)
class Finding:
    model: str
    content: str
    citations: tuple[str, ...] = ()


@dataclass(frozen=True)
class SynthesisResult:
    """
    Combined multi-model outcome.

    Attributes:
        summary: Markdown summary of the run
        findings: One Finding per executed step, in execution order
        agreements: Heuristic agreement notes
        conflicts: Heuristic conflict notes
        confidence: low < medium < medium-high < high
        all_citations: Union of step citations, first-seen order
        results: The raw step results, kept for usage accounting
    """

    summary: str
    findings: tuple[Finding, ...]
    agreements: tuple[str, ...]
    conflicts: tuple[str, ...]
    confidence: Confidence
    all_citations: tuple[str, ...]
    results: tuple[ModelResult, ...] = field(default_factory=tuple, repr=False)

    @property
    def total_usage(self) -> UsageRecord:
        """Sum of token usage across all steps."""
        usage = UsageRecord()
        for result in self.results:
            usage = usage + result.response.usage
        return usage

    @property
    def models(self) -> tuple[str, ...]:
        return tuple(f.model for f in self.findings)
