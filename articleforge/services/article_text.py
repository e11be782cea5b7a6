"""Text helpers shared by the draft, SEO and finalization stages."""

from __future__ import annotations

import math
import re

from articleforge.config import settings

META_TITLE_MAX_LENGTH = 60
META_DESCRIPTION_MAX_LENGTH = 160
EXCERPT_MAX_LENGTH = 200
SLUG_MAX_LENGTH = 500

_MARKDOWN_HEADING_RE = re.compile(r"#{1,6}\s")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated slug limited to word characters."""
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, ending with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def strip_markdown(content: str) -> str:
    text = _MARKDOWN_LINK_RE.sub(r"\1", content)
    text = _MARKDOWN_HEADING_RE.sub("", text)
    return text.replace("**", "").replace("*", "")


def build_excerpt(content: str, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """First non-heading paragraph of ``content`` with markdown removed."""
    body = "\n".join(line for line in content.splitlines() if not line.lstrip().startswith("#"))
    clean = re.sub(r"\n\s*\n+", "\n", strip_markdown(body)).strip()
    first_paragraph = clean.split("\n", 1)[0].strip() if clean else ""
    return truncate(first_paragraph, max_length)


def meta_title_for(title: str) -> str:
    return truncate(title, META_TITLE_MAX_LENGTH)


def count_words(content: str) -> int:
    return len(content.split())


def reading_time_minutes(word_count: int, words_per_minute: int | None = None) -> int:
    """Estimated reading time, never less than one minute."""
    wpm = words_per_minute or settings.reading_words_per_minute
    return max(1, math.ceil(word_count / wpm))


def extract_headings(content: str) -> list[tuple[int, str]]:
    """Markdown ATX headings as ``(level, text)`` pairs in document order."""
    headings: list[tuple[int, str]] = []
    for line in content.splitlines():
        match = re.match(r"^(#{1,6})\s+(.+?)\s*#*\s*$", line)
        if match:
            headings.append((len(match.group(1)), match.group(2)))
    return headings


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in re.split(r"[.!?]+", text) if part.strip()]


def count_syllables(word: str) -> int:
    """Rough English syllable count used for readability scoring."""
    word = re.sub(r"[^a-z]", "", word.lower())
    if not word:
        return 0
    if len(word) <= 3:
        return 1
    word = re.sub(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$", "", word)
    word = re.sub(r"^y", "", word)
    groups = re.findall(r"[aeiouy]{1,2}", word)
    return max(1, len(groups))


def flesch_kincaid_grade(text: str) -> float:
    """Flesch-Kincaid grade level of plain text; 0.0 for empty input."""
    words = re.findall(r"[A-Za-z']+", text)
    sentences = split_sentences(text)
    if not words or not sentences:
        return 0.0
    syllables = sum(count_syllables(word) for word in words)
    grade = 0.39 * (len(words) / len(sentences)) + 11.8 * (syllables / len(words)) - 15.59
    return round(grade, 1)
