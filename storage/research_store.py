"""
ResearchStore - Append-only markdown journal of research interactions.

Layout of the research directory:

    <dir>/<slug>-<YYYY-MM-DD>.md            one thread per topic and day
    <dir>/raw/<YYYYMMDD_HHMMSS>_<slug>.json  untouched API response per entry

Every save writes the raw JSON first, then appends one "## Query N:" entry to
the thread and regenerates the trailing "## Synthesis" section, which is the
only part of a thread file that is ever rewritten.
"""

import json
import re
from collections.abc import Callable
from datetime import date, datetime, timezone
from pathlib import Path

from config.config import Config
from models.research_thread import RawFileInfo, ResearchThread, SearchHit
from models.search_response import SearchResponse
from storage.thread_formats import parse_thread_header
from utils.cost_calculator import CostCalculator
from utils.logger import get_logger
from utils.text_utils import extract_domain, slugify, strip_thinking_blocks, truncate

logger = get_logger(__name__)

FILENAME_SLUG_CHARS = 50
RAW_SLUG_CHARS = 30
QUERY_TITLE_CHARS = 60
THREAD_TITLE_CHARS = 80
SUMMARY_CHARS = 100
MAX_SNIPPETS = 5

QUERY_HEADER_RE = re.compile(r"^## Query \d+:", re.M)
SYNTHESIS_HEADER = "## Synthesis (Updated: "
RAW_FILENAME_RE = re.compile(r"^(\d{8}_\d{6})_(.+)\.json$")


def generate_filename(query: str, on_date: date) -> str:
    """Thread filename for ``query`` created on ``on_date``. Pure."""
    return f"{slugify(query, FILENAME_SLUG_CHARS)}-{on_date.isoformat()}.md"


def format_dual_timestamp(now: datetime) -> str:
    """UTC ISO timestamp followed by the local zone name and wall-clock time."""
    utc = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    local = now.astimezone()
    return f"{utc} ({local.tzname()} {local.strftime('%H:%M:%S')})"


def format_citations(citations) -> str:
    if not citations:
        return "*No citations provided*"
    return "\n\n".join(
        f"[{i}] {extract_domain(url)}\n    {url}" for i, url in enumerate(citations, start=1)
    )


def synthesis_section(query_count: int, today: date) -> str:
    noun = "query" if query_count == 1 else "queries"
    return (
        f"{SYNTHESIS_HEADER}{today.isoformat()})\n\n"
        f"*{query_count} {noun} in this thread*\n\n"
        "### Key Conclusions\n"
        "- *(Update after reviewing findings)*\n\n"
        "### Open Questions\n"
        "- *(What remains unresolved)*\n\n"
        "### Confidence Assessment\n"
        "- High confidence: *(topics)*\n"
        "- Needs verification: *(topics)*\n"
    )


def strip_synthesis_section(content: str) -> str:
    """Drop the trailing synthesis section, if any, leaving the entries intact."""
    index = content.rfind("\n" + SYNTHESIS_HEADER)
    if index == -1:
        if content.startswith(SYNTHESIS_HEADER):
            return ""
        return content
    return content[:index].rstrip() + "\n\n"


class ResearchStore:
    """
    Owns every read and write under the research directory.

    Not safe for concurrent writers: each append is one whole-file
    read-modify-write, which is sufficient for a single-process server.
    """

    def __init__(
        self,
        research_dir: str | Path | None = None,
        config: Config | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the store and create its directories.

        Args:
            research_dir: Explicit directory; wins over PERPLEXITY_RESEARCH_DIR
            config: Optional Config used to resolve the directory
            clock: Returns the current aware datetime; injectable for tests
        """
        config = config or Config()
        self.research_dir = config.resolve_research_dir(research_dir)
        self.raw_dir = self.research_dir / "raw"
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        self.research_dir.mkdir(parents=True, exist_ok=True)
        self.raw_dir.mkdir(parents=True, exist_ok=True)

    def _thread_files(self) -> list[Path]:
        return sorted(
            p for p in self.research_dir.iterdir() if p.is_file() and p.suffix == ".md"
        )

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def save_raw_response(
        self, topic: str, response: SearchResponse, model: str, now: datetime | None = None
    ) -> str:
        """
        Write the untouched response to raw/ and return its filename.

        Args:
            topic: The query the response answers
            response: The API response
            model: Model that produced it
            now: Timestamp to use; defaults to the store clock
        """
        self._ensure_directories()
        now = now or self._clock()
        stem = f"{now.strftime('%Y%m%d_%H%M%S')}_{slugify(topic, RAW_SLUG_CHARS)}"
        filename = f"{stem}.json"
        suffix = 2
        while (self.raw_dir / filename).exists():
            filename = f"{stem}-{suffix}.json"
            suffix += 1
        raw_data = {
            "saved_at": now.isoformat(),
            "model": model,
            "topic": topic,
            "response": response.to_dict(),
        }
        (self.raw_dir / filename).write_text(
            json.dumps(raw_data, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        logger.debug(f"Saved raw response {filename}")
        return filename

    def count_queries(self, file_path: Path) -> int:
        if not file_path.exists():
            return 0
        return len(QUERY_HEADER_RE.findall(file_path.read_text(encoding="utf-8")))

    def save_research(
        self,
        query: str,
        response: SearchResponse,
        model: str,
        system_prompt: str | None = None,
        model_rationale: str | None = None,
        approved_plan: str | None = None,
    ) -> Path:
        """
        Save one interaction: raw backup, thread entry, regenerated synthesis section.

        Args:
            query: The research question
            response: The API response (or a synthetic one for multi-model runs)
            model: Model recorded in the entry and used for pricing
            system_prompt: Written as the thread context line when the thread is new
            model_rationale: Why the model was chosen
            approved_plan: Research plan approved by the user, kept for audit

        Returns:
            Path to the thread file
        """
        now = self._clock()

        # Raw backup is written before any markdown
        raw_filename = self.save_raw_response(query, response, model, now=now)

        file_path = self.research_dir / generate_filename(query, now.date())
        query_num = self.count_queries(file_path) + 1
        entry = self._render_entry(
            query_num, query, response, model, now, raw_filename, model_rationale, approved_plan
        )

        if file_path.exists():
            existing = strip_synthesis_section(file_path.read_text(encoding="utf-8"))
            content = existing + entry + synthesis_section(query_num, now.date())
        else:
            title = truncate(query, THREAD_TITLE_CHARS)
            context_line = f"\nContext: {system_prompt}\n" if system_prompt else ""
            content = (
                f"# {title}\n\n"
                "Research thread for this topic.\n"
                f"{context_line}\n"
                "---\n\n"
                f"{entry}{synthesis_section(query_num, now.date())}"
            )

        file_path.write_text(content, encoding="utf-8")

        logger.info(
            "Research saved",
            extra={
                "extra_fields": {
                    "file": file_path.name,
                    "raw": raw_filename,
                    "query_num": query_num,
                    "model": model,
                }
            },
        )
        return file_path

    def _render_entry(
        self,
        query_num: int,
        query: str,
        response: SearchResponse,
        model: str,
        now: datetime,
        raw_filename: str,
        model_rationale: str | None,
        approved_plan: str | None,
    ) -> str:
        usage = response.usage
        cost = CostCalculator(model).estimate(usage.prompt_tokens, usage.completion_tokens)

        model_line = f"**Model**: {model}"
        if model_rationale:
            model_line += f" ({model_rationale})"
        model_line += f" | **Tokens**: {usage.total_tokens:,}"
        if usage.num_search_queries:
            model_line += f" | **Searches**: {usage.num_search_queries}"

        entry = (
            f"## Query {query_num}: {truncate(query, QUERY_TITLE_CHARS)}\n"
            f"**Timestamp**: {format_dual_timestamp(now)}\n"
            f"**Raw**: [raw/{raw_filename}](raw/{raw_filename})\n"
            f"{model_line}\n\n"
        )

        if approved_plan:
            entry += f"### Approved Plan\n{approved_plan}\n\n"

        entry += (
            f"### Findings\n\n{strip_thinking_blocks(response.content)}\n\n"
            f"### Citations\n\n{format_citations(response.citations)}\n"
        )

        if response.related_questions:
            questions = "\n".join(
                f"{i}. {q}" for i, q in enumerate(response.related_questions, start=1)
            )
            entry += f"\n### Related Questions\n\n{questions}\n"

        entry += f"\n### Cost\n{cost}\n\n---\n\n"
        return entry

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def list_threads(self) -> list[ResearchThread]:
        """All thread files in the research directory, most recently modified first."""
        self._ensure_directories()
        threads = []
        for file_path in self._thread_files():
            stat = file_path.stat()
            header = parse_thread_header(
                file_path.read_text(encoding="utf-8"), fallback_topic=file_path.stem
            )
            threads.append(
                ResearchThread(
                    id=file_path.stem,
                    topic=header.topic,
                    date=datetime.fromtimestamp(stat.st_mtime).date().isoformat(),
                    model=header.model,
                    query=header.query,
                    summary=truncate(header.query, SUMMARY_CHARS),
                    file_path=file_path,
                    modified_at=stat.st_mtime,
                )
            )
        return sorted(threads, key=lambda t: t.modified_at, reverse=True)

    def read_thread(self, topic_or_id: str) -> str | None:
        """
        Content of a thread by exact id, else by case-insensitive filename substring.

        Returns:
            The file content, or None when nothing matches
        """
        self._ensure_directories()

        if topic_or_id and Path(topic_or_id).name == topic_or_id:
            exact = self.research_dir / f"{topic_or_id}.md"
            if exact.is_file():
                return exact.read_text(encoding="utf-8")

        needle = (topic_or_id or "").lower()
        for file_path in self._thread_files():
            if needle in file_path.name.lower():
                return file_path.read_text(encoding="utf-8")

        return None

    def search_research(self, keywords: str) -> list[SearchHit]:
        """
        Threads containing every keyword, each with up to five context snippets.

        A snippet is a matching line plus one line either side; a line matches
        when it contains any of the keywords.
        """
        self._ensure_directories()
        terms = keywords.lower().split()
        hits: list[SearchHit] = []

        for file_path in self._thread_files():
            content = file_path.read_text(encoding="utf-8")
            content_lower = content.lower()
            if not all(term in content_lower for term in terms):
                continue

            lines = content.split("\n")
            snippets: list[str] = []
            for i, line in enumerate(lines):
                line_lower = line.lower()
                if not any(term in line_lower for term in terms):
                    continue
                snippet = "\n".join(lines[max(0, i - 1) : i + 2]).strip()
                if snippet and snippet not in snippets:
                    snippets.append(snippet)
                if len(snippets) == MAX_SNIPPETS:
                    break

            if snippets:
                header = parse_thread_header(content, fallback_topic=file_path.name)
                hits.append(SearchHit(file=file_path.name, topic=header.topic, matches=tuple(snippets)))

        logger.debug(f"Search for {keywords!r} matched {len(hits)} threads")
        return hits

    def list_raw_files(self) -> list[RawFileInfo]:
        """Raw backups, newest first."""
        self._ensure_directories()
        infos = []
        for file_path in self.raw_dir.glob("*.json"):
            match = RAW_FILENAME_RE.match(file_path.name)
            if match:
                infos.append(
                    RawFileInfo(
                        filename=file_path.name,
                        timestamp=match.group(1),
                        topic=match.group(2).replace("-", " "),
                    )
                )
            else:
                infos.append(RawFileInfo(filename=file_path.name, timestamp="", topic=file_path.name))
        return sorted(infos, key=lambda info: info.timestamp, reverse=True)

    def read_raw_file(self, filename: str) -> dict | None:
        """Parsed raw backup, or None when missing or not valid JSON."""
        if Path(filename).name != filename:
            return None
        file_path = self.raw_dir / filename
        if not file_path.is_file():
            return None
        try:
            return json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"Raw file {filename} is not valid JSON")
            return None
