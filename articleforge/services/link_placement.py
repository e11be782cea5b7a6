"""Keyword extraction and markdown link placement shared by the linking stages."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlparse

STOPWORDS = frozenset(
    {
        "a", "about", "after", "all", "also", "an", "and", "any", "are", "as", "at",
        "be", "been", "before", "best", "but", "by", "can", "do", "does", "each",
        "for", "from", "get", "guide", "has", "have", "how", "in", "into", "is", "it",
        "its", "more", "most", "my", "need", "new", "not", "of", "on", "or", "our",
        "out", "so", "than", "that", "the", "their", "them", "these", "they", "this",
        "those", "to", "top", "up", "use", "was", "we", "what", "when", "which",
        "while", "who", "why", "will", "with", "you", "your",
    }
)

_WORD_RE = re.compile(r"[a-z0-9][a-z0-9'-]*")
_EXISTING_LINK_RE = re.compile(r"\[[^\]]*\]\(([^)\s]+)\)")
CONTEXT_RADIUS = 80


@dataclass(frozen=True, slots=True)
class LinkPlacement:
    anchor_text: str
    url: str


def tokenize(text: str) -> list[str]:
    """Lowercase content words with stopwords and very short tokens removed."""
    return [
        token
        for token in _WORD_RE.findall(text.lower())
        if len(token) > 2 and token not in STOPWORDS
    ]


def extract_terms(text: str, limit: int = 15) -> list[str]:
    """Most frequent content words, ties broken by first appearance."""
    counts = Counter(tokenize(text))
    return [term for term, _ in counts.most_common(limit)]


def normalize_domain(url_or_domain: str) -> str:
    raw = url_or_domain.strip().lower()
    if "://" in raw:
        raw = urlparse(raw).hostname or ""
    raw = raw.split("/", 1)[0]
    return raw.removeprefix("www.")


def linked_domains(content: str) -> set[str]:
    """Domains of absolute links already present in markdown content."""
    domains = set()
    for url in _EXISTING_LINK_RE.findall(content):
        if url.startswith(("http://", "https://")):
            domain = normalize_domain(url)
            if domain:
                domains.add(domain)
    return domains


def find_phrase(content: str, phrase: str) -> tuple[int, str] | None:
    """Position and surrounding snippet of the first plain-text occurrence of ``phrase``.

    Occurrences on heading lines or inside existing links are ignored.
    """
    if not phrase.strip():
        return None
    pattern = re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)
    for match in pattern.finditer(content):
        start = match.start()
        line_start = content.rfind("\n", 0, start) + 1
        if content.startswith("#", line_start):
            continue
        if _inside_link(content, start):
            continue
        snippet_start = max(0, start - CONTEXT_RADIUS)
        snippet_end = min(len(content), match.end() + CONTEXT_RADIUS)
        snippet = " ".join(content[snippet_start:snippet_end].split())
        return start, snippet
    return None


def _inside_link(content: str, index: int) -> bool:
    return any(match.start() <= index < match.end() for match in _EXISTING_LINK_RE.finditer(content))


def apply_markdown_links(content: str, placements: Iterable[LinkPlacement]) -> tuple[str, int]:
    """Wrap the first eligible occurrence of each anchor text in a markdown link."""
    applied = 0
    for placement in placements:
        found = find_phrase(content, placement.anchor_text)
        if found is None:
            continue
        start, _ = found
        end = start + len(placement.anchor_text)
        matched = content[start:end]
        content = f"{content[:start]}[{matched}]({placement.url}){content[end:]}"
        applied += 1
    return content, applied
