"""Keyword-overlap matching of a draft against existing articles."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from articleforge.schemas.pipeline import InternalLinkSuggestion
from articleforge.services.link_placement import extract_terms, find_phrase, tokenize
from articleforge.services.pipeline.ports import LinkableArticle

logger = logging.getLogger(__name__)

MIN_RELEVANCE_SCORE = 20


@dataclass(slots=True)
class _ScoredCandidate:
    article: LinkableArticle
    relevance: int
    anchor_text: str
    position: int
    snippet: str


def _anchor_candidates(article: LinkableArticle) -> list[str]:
    """Phrases that may serve as anchor text, most specific first."""
    phrases = [article.title, *article.meta_keywords]
    title_terms = tokenize(article.title)
    for size in (3, 2):
        for index in range(len(title_terms) - size + 1):
            phrases.append(" ".join(title_terms[index : index + size]))
    phrases.extend(title_terms)
    seen: set[str] = set()
    unique = []
    for phrase in phrases:
        normalized = phrase.strip().lower()
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(phrase.strip())
    return unique


def score_candidate(article: LinkableArticle, source_terms: set[str]) -> int:
    """Relevance of ``article`` to a draft described by ``source_terms`` (0-100)."""
    title_overlap = len(set(tokenize(article.title)) & source_terms)
    keyword_overlap = sum(
        1 for keyword in article.meta_keywords if set(tokenize(keyword)) & source_terms
    )
    excerpt_overlap = len(set(tokenize(article.excerpt or "")) & source_terms)
    return min(100, title_overlap * 20 + keyword_overlap * 15 + min(excerpt_overlap, 4) * 5)


def match_internal_links(
    *,
    keyword: str,
    title: str,
    content: str,
    candidates: Sequence[LinkableArticle],
    max_links: int,
) -> list[InternalLinkSuggestion]:
    """Rank candidate articles and pick anchor text that exists in ``content``.

    Each target and each anchor text is used at most once.
    """
    if max_links <= 0 or not candidates or not content:
        return []

    source_terms = set(tokenize(keyword)) | set(tokenize(title)) | set(extract_terms(content, limit=25))
    scored: list[_ScoredCandidate] = []
    for article in candidates:
        relevance = score_candidate(article, source_terms)
        if relevance < MIN_RELEVANCE_SCORE:
            continue
        for phrase in _anchor_candidates(article):
            found = find_phrase(content, phrase)
            if found is None:
                continue
            position, snippet = found
            scored.append(
                _ScoredCandidate(
                    article=article,
                    relevance=relevance,
                    anchor_text=content[position : position + len(phrase)],
                    position=position,
                    snippet=snippet,
                )
            )
            break

    scored.sort(key=lambda item: (-item.relevance, item.position))

    suggestions: list[InternalLinkSuggestion] = []
    used_anchors: set[str] = set()
    for item in scored:
        anchor_key = item.anchor_text.lower()
        if anchor_key in used_anchors:
            continue
        used_anchors.add(anchor_key)
        suggestions.append(
            InternalLinkSuggestion(
                target_article_id=item.article.id,
                target_article_title=item.article.title,
                target_article_slug=item.article.slug,
                suggested_anchor_text=item.anchor_text,
                context_snippet=item.snippet,
                relevance_score=item.relevance,
                position_in_content=item.position,
            )
        )
        if len(suggestions) >= max_links:
            break

    logger.info(
        "Internal link matching finished",
        extra={
            "candidates": len(candidates),
            "matched": len(scored),
            "suggested": len(suggestions),
        },
    )
    return suggestions
