"""Authority source catalog and external link opportunity matching."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from articleforge.schemas.pipeline import ExternalLinkOpportunity, SerpResult
from articleforge.services.link_placement import find_phrase, linked_domains, normalize_domain, tokenize

logger = logging.getLogger(__name__)

MIN_AUTHORITY_RELEVANCE = 30
MIN_SERP_RELEVANCE = 40


@dataclass(frozen=True, slots=True)
class AuthoritySource:
    """Well-known reference site that articles may cite."""

    name: str
    domain: str
    url: str
    description: str
    topics: tuple[str, ...] = ()
    domain_authority: int | None = None


DEFAULT_AUTHORITY_SOURCES: tuple[AuthoritySource, ...] = (
    AuthoritySource(
        name="Google Search Central",
        domain="developers.google.com",
        url="https://developers.google.com/search/docs",
        description="Official documentation on how Google search crawls, indexes and ranks content",
        topics=("seo", "search", "google", "ranking", "indexing", "content"),
        domain_authority=96,
    ),
    AuthoritySource(
        name="Statista",
        domain="statista.com",
        url="https://www.statista.com",
        description="Statistics and market data across industries",
        topics=("statistics", "market", "data", "industry", "trends"),
        domain_authority=92,
    ),
    AuthoritySource(
        name="Harvard Business Review",
        domain="hbr.org",
        url="https://hbr.org",
        description="Research and ideas on management, leadership, strategy and marketing",
        topics=("business", "management", "leadership", "strategy", "marketing"),
        domain_authority=93,
    ),
    AuthoritySource(
        name="MDN Web Docs",
        domain="developer.mozilla.org",
        url="https://developer.mozilla.org",
        description="Reference documentation for web development, html, css and javascript",
        topics=("web", "javascript", "html", "css", "development", "browser"),
        domain_authority=95,
    ),
    AuthoritySource(
        name="NIST",
        domain="nist.gov",
        url="https://www.nist.gov",
        description="Standards and guidance for technology, cybersecurity and measurement",
        topics=("security", "cybersecurity", "standards", "technology", "privacy"),
        domain_authority=92,
    ),
    AuthoritySource(
        name="Mayo Clinic",
        domain="mayoclinic.org",
        url="https://www.mayoclinic.org",
        description="Medical and health information reviewed by clinicians",
        topics=("health", "medical", "fitness", "nutrition", "wellness"),
        domain_authority=92,
    ),
    AuthoritySource(
        name="Investopedia",
        domain="investopedia.com",
        url="https://www.investopedia.com",
        description="Definitions and guides on finance, investing and personal money",
        topics=("finance", "investing", "money", "budget", "economics"),
        domain_authority=91,
    ),
    AuthoritySource(
        name="Nielsen Norman Group",
        domain="nngroup.com",
        url="https://www.nngroup.com",
        description="Research-based usability and user experience guidance",
        topics=("ux", "usability", "design", "user", "interface"),
        domain_authority=82,
    ),
    AuthoritySource(
        name="Pew Research Center",
        domain="pewresearch.org",
        url="https://www.pewresearch.org",
        description="Survey research on society, technology and consumer behavior",
        topics=("research", "survey", "society", "consumer", "technology"),
        domain_authority=91,
    ),
    AuthoritySource(
        name="U.S. Small Business Administration",
        domain="sba.gov",
        url="https://www.sba.gov",
        description="Guidance for starting, managing and growing a small business",
        topics=("small business", "startup", "business", "funding", "entrepreneur"),
        domain_authority=88,
    ),
)


def score_authority_source(source: AuthoritySource, terms: Sequence[str]) -> int:
    """Relevance of ``source`` to the content terms (0-100)."""
    name = source.name.lower()
    description = source.description.lower()
    topics = [topic.lower() for topic in source.topics]
    score = 0
    for term in terms:
        if term in name:
            score += 15
        if term in description:
            score += 10
        if any(term in topic or topic in term for topic in topics):
            score += 10

    if source.domain_authority:
        if source.domain_authority >= 80:
            score += 15
        elif source.domain_authority >= 60:
            score += 10
        elif source.domain_authority >= 40:
            score += 5
    return min(100, score)


def score_serp_result(result: SerpResult, keyword_terms: set[str]) -> int:
    title_terms = set(tokenize(f"{result.title} {result.snippet}"))
    overlap = len(title_terms & keyword_terms)
    position_bonus = 15 if result.position <= 3 else 5 if result.position <= 10 else 0
    return min(100, 30 + overlap * 15 + position_bonus)


def _anchor_in_content(content: str, phrases: Sequence[str]) -> tuple[str, str] | None:
    for phrase in phrases:
        found = find_phrase(content, phrase)
        if found is not None:
            position, snippet = found
            return content[position : position + len(phrase)], snippet
    return None


def match_external_links(
    *,
    keyword: str,
    content: str,
    serp_results: Sequence[SerpResult],
    authority_sources: Sequence[AuthoritySource],
    include_authority_sources: bool,
    max_links: int,
) -> list[ExternalLinkOpportunity]:
    """Rank external link targets from SERP results and the authority catalog.

    Domains already linked from ``content`` are excluded and each domain is
    suggested once.
    """
    if max_links <= 0 or not content:
        return []

    keyword_terms = set(tokenize(keyword))
    content_terms = list(dict.fromkeys([*tokenize(keyword), *tokenize(content)]))[:40]
    excluded = linked_domains(content)
    anchor_phrases = [keyword, *sorted(keyword_terms, key=len, reverse=True)]

    opportunities: list[ExternalLinkOpportunity] = []

    for result in serp_results:
        domain = normalize_domain(result.domain or result.url)
        if not domain or domain in excluded:
            continue
        relevance = score_serp_result(result, keyword_terms)
        if relevance < MIN_SERP_RELEVANCE:
            continue
        anchor = _anchor_in_content(content, anchor_phrases)
        opportunities.append(
            ExternalLinkOpportunity(
                url=result.url,
                anchor_text=anchor[0] if anchor else result.title,
                context_snippet=anchor[1] if anchor else result.snippet,
                relevance_score=relevance,
                authority=None,
                source="serp",
            )
        )
        excluded.add(domain)

    if include_authority_sources:
        for source in authority_sources:
            domain = normalize_domain(source.domain)
            if domain in excluded:
                continue
            relevance = score_authority_source(source, content_terms)
            if relevance < MIN_AUTHORITY_RELEVANCE:
                continue
            topic_phrases = [topic for topic in source.topics if topic in content_terms or " " in topic]
            anchor = _anchor_in_content(content, [*topic_phrases, *anchor_phrases])
            opportunities.append(
                ExternalLinkOpportunity(
                    url=source.url,
                    anchor_text=anchor[0] if anchor else source.name,
                    context_snippet=anchor[1] if anchor else source.description,
                    relevance_score=relevance,
                    authority=source.domain_authority,
                    source="authority",
                )
            )
            excluded.add(domain)

    opportunities.sort(key=lambda item: (-item.relevance_score, -(item.authority or 0)))
    selected = opportunities[:max_links]
    logger.info(
        "External link matching finished",
        extra={"serp_results": len(serp_results), "candidates": len(opportunities), "selected": len(selected)},
    )
    return selected
