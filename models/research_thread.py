from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ResearchThread:
    """Listing record for one journal file."""

    id: str
    topic: str
    date: str
    model: str
    query: str
    summary: str
    file_path: Path
    modified_at: float = field(default=0.0, compare=False, repr=False)


@dataclass(frozen=True)
class SearchHit:
    file: str
    topic: str
    matches: tuple[str, ...]


@dataclass(frozen=True)
class RawFileInfo:
    filename: str
    timestamp: str
    topic: str
