"""
Models package for search, synthesis and journal records.
"""

from .research_thread import RawFileInfo, ResearchThread, SearchHit
from .search_response import (
    Choice,
    Message,
    ModelRecommendation,
    SearchOptions,
    SearchRequest,
    SearchResponse,
    UsageRecord,
)
from .synthesis_result import Finding, ModelResult, SynthesisResult

__all__ = [
    "Choice",
    "Finding",
    "Message",
    "ModelRecommendation",
    "ModelResult",
    "RawFileInfo",
    "ResearchThread",
    "SearchHit",
    "SearchOptions",
    "SearchRequest",
    "SearchResponse",
    "SynthesisResult",
    "UsageRecord",
]
