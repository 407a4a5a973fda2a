"""Pydantic argument models for the MCP tools."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from config.prompts import DEFAULT_CONTEXT, PromptContext
from models.search_response import MAX_DOMAIN_FILTERS, RecencyFilter, SonarModel

PatternName = Literal["fact-reasoning", "quick-deep", "truthtracer", "multi-perspective"]


class ResearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    approved_plan: Optional[str] = None
    model: Optional[SonarModel] = None
    context: PromptContext = DEFAULT_CONTEXT
    recency: Optional[RecencyFilter] = None
    domain_filter: Optional[list[str]] = Field(None, max_length=MAX_DOMAIN_FILTERS)
    return_related_questions: bool = False

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value


class DeepResearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    approved_plan: Optional[str] = None
    pattern: Optional[PatternName] = None


class SearchResearchRequest(BaseModel):
    keywords: str = Field(..., min_length=1)


class ReadThreadRequest(BaseModel):
    topic: str = Field(..., min_length=1)
