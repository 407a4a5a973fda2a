"""
Parsers for the historical layouts of research thread files.

Thread files have gone through three header layouts:

    v1  "# Research Thread: <topic>"   "## Research: <query>"    "## Model Used\\n<model>"
    v2  "# <topic> Research"           "## Query\\n<query>"      "**Model**: <model>"
    v3  "# <topic>"                    "## Query N: <query>"     "**Model**: <model>"

Each field has its own ordered tuple of parsers. The first parser returning a
match wins, so a v2 title is never mistaken for a v3 one.
"""

import re
from dataclasses import dataclass
from typing import Literal

from models.search_response import SONAR_REASONING_PRO

FormatVersion = Literal["v1", "v2", "v3"]

DEFAULT_MODEL = SONAR_REASONING_PRO


@dataclass(frozen=True)
class FieldMatch:
    value: str
    version: FormatVersion


@dataclass(frozen=True)
class RegexFieldParser:
    version: FormatVersion
    pattern: re.Pattern

    def parse(self, content: str) -> FieldMatch | None:
        match = self.pattern.search(content)
        if not match:
            return None
        return FieldMatch(value=match.group(1).strip(), version=self.version)


TOPIC_PARSERS: tuple[RegexFieldParser, ...] = (
    RegexFieldParser("v2", re.compile(r"^# (.+) Research$", re.M)),
    RegexFieldParser("v1", re.compile(r"^# Research Thread: (.+)$", re.M)),
    RegexFieldParser("v3", re.compile(r"^# (.+?)$", re.M)),
)

QUERY_PARSERS: tuple[RegexFieldParser, ...] = (
    RegexFieldParser("v3", re.compile(r"^## Query \d+: (.+)$", re.M)),
    RegexFieldParser("v2", re.compile(r"^## Query\n(.+)$", re.M)),
    RegexFieldParser("v1", re.compile(r"^## Research: (.+)$", re.M)),
)

MODEL_PARSERS: tuple[RegexFieldParser, ...] = (
    RegexFieldParser("v3", re.compile(r"\*\*Model\*\*: (\S+)")),
    RegexFieldParser("v1", re.compile(r"^## Model Used\n(\S+)", re.M)),
)


def first_match(parsers: tuple[RegexFieldParser, ...], content: str) -> FieldMatch | None:
    for parser in parsers:
        match = parser.parse(content)
        if match is not None:
            return match
    return None


@dataclass(frozen=True)
class ThreadHeader:
    topic: str
    query: str
    model: str


def parse_thread_header(content: str, fallback_topic: str) -> ThreadHeader:
    """
    Extract topic, first query and model from a thread file of any layout.

    Args:
        content: Full file content
        fallback_topic: Used when no title header is present (the file stem)
    """
    topic = first_match(TOPIC_PARSERS, content)
    query = first_match(QUERY_PARSERS, content)
    model = first_match(MODEL_PARSERS, content)
    return ThreadHeader(
        topic=topic.value if topic else fallback_topic,
        query=query.value if query else "",
        model=model.value if model else DEFAULT_MODEL,
    )
