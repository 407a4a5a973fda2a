"""Text helpers shared by response formatting, synthesis and the journal."""

import re
from urllib.parse import urlparse

THINKING_BLOCK_RE = re.compile(r"<think>[\s\S]*?</think>")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def strip_thinking_blocks(content: str) -> str:
    """Remove every <think>...</think> block emitted by reasoning models and trim."""
    return THINKING_BLOCK_RE.sub("", content or "").strip()


def extract_domain(url: str, strip_www: bool = True) -> str:
    """
    Hostname of ``url``, or the URL itself when it does not parse as one.

    Args:
        url: Citation URL
        strip_www: Drop a leading ``www.`` from the hostname
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    if not host:
        return url
    if strip_www and host.startswith("www."):
        host = host[4:]
    return host


def slugify(text: str, max_length: int) -> str:
    """Lower-case, collapse non-alphanumeric runs into one hyphen, trim hyphens, truncate."""
    slug = NON_ALNUM_RE.sub("-", (text or "").lower()).strip("-")
    # a cut can land right after a hyphen
    return slug[:max_length].rstrip("-")


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    return text if len(text) <= limit else text[:limit] + suffix
