"""Unit tests for internal and external link matching."""

from __future__ import annotations

from articleforge.schemas.pipeline import SerpResult
from articleforge.services.external_link_sources import (
    DEFAULT_AUTHORITY_SOURCES,
    AuthoritySource,
    match_external_links,
    score_authority_source,
)
from articleforge.services.internal_link_matcher import match_internal_links, score_candidate
from articleforge.services.link_placement import (
    LinkPlacement,
    apply_markdown_links,
    find_phrase,
    linked_domains,
    normalize_domain,
    tokenize,
)
from articleforge.services.pipeline.ports import LinkableArticle

INTERNAL_CONTENT = (
    "# Email Marketing\n\n"
    "Email marketing works best with email automation and clear goals.\n\n"
    "## Tools\n\n"
    "Pick tools that support email automation and segmentation.\n"
)

EXTERNAL_CONTENT = (
    "# Email Marketing Basics\n\n"
    "Email marketing builds customer relationships over time. A good email marketing "
    "strategy relies on market data and statistics, as [HubSpot](https://www.hubspot.com/blog) notes.\n"
)


def test_tokenize_drops_stopwords_and_short_tokens() -> None:
    assert tokenize("How to get the BEST email tips in 2 days") == ["email", "tips", "days"]


def test_normalize_domain() -> None:
    assert normalize_domain("https://www.Example.com/path?q=1") == "example.com"
    assert normalize_domain("www.statista.com") == "statista.com"


def test_linked_domains_only_counts_absolute_links() -> None:
    content = "See [a](https://www.a.com/x), [b](/internal) and [c](http://c.org)."

    assert linked_domains(content) == {"a.com", "c.org"}


def test_find_phrase_ignores_headings_and_existing_links() -> None:
    content = "# Email automation\n\n[email automation](/x) and later email automation again."

    found = find_phrase(content, "email automation")

    assert found is not None
    position, snippet = found
    assert content[position:].startswith("email automation again")
    assert "later email automation again" in snippet


def test_apply_markdown_links_skips_missing_anchors() -> None:
    content, applied = apply_markdown_links(
        "Segmentation improves results.",
        [LinkPlacement("segmentation", "/segmentation"), LinkPlacement("missing phrase", "/missing")],
    )

    assert applied == 1
    assert content == "[Segmentation](/segmentation) improves results."


def test_apply_markdown_links_never_links_inside_urls() -> None:
    content = "Read [our guide](/email-marketing) before email planning."

    updated, applied = apply_markdown_links(content, [LinkPlacement("email", "/email")])

    assert applied == 1
    assert updated == "Read [our guide](/email-marketing) before [email](/email) planning."


def test_score_candidate_weights_title_keywords_and_excerpt() -> None:
    article = LinkableArticle(
        id="a1",
        title="Email Automation Workflows",
        slug="email-automation-workflows",
        excerpt="Automation sequences for email",
        meta_keywords=("email automation",),
    )

    assert score_candidate(article, {"email", "automation"}) == 2 * 20 + 15 + 2 * 5
    assert score_candidate(article, {"sourdough"}) == 0


def test_match_internal_links_picks_relevant_articles_with_unique_anchors() -> None:
    candidates = [
        LinkableArticle(id="a1", title="Email Automation Workflows", slug="email-automation-workflows", meta_keywords=("email automation",)),
        LinkableArticle(id="a2", title="Email Automation Tools", slug="email-automation-tools", meta_keywords=("email automation",)),
        LinkableArticle(id="a3", title="Sourdough Starter Basics", slug="sourdough-starter"),
    ]

    suggestions = match_internal_links(
        keyword="email marketing",
        title="Email Marketing",
        content=INTERNAL_CONTENT,
        candidates=candidates,
        max_links=5,
    )

    # a2 also matches "tools", so it outranks a1 and claims the shared anchor.
    assert [item.target_article_id for item in suggestions] == ["a2"]
    suggestion = suggestions[0]
    assert suggestion.suggested_anchor_text == "email automation"
    assert suggestion.target_article_slug == "email-automation-tools"
    assert INTERNAL_CONTENT[suggestion.position_in_content:].startswith("email automation")
    assert suggestion.relevance_score >= 20


def test_match_internal_links_respects_max_links() -> None:
    candidates = [
        LinkableArticle(id="a1", title="Email Automation Workflows", slug="a1", meta_keywords=("email automation",)),
    ]

    assert match_internal_links(keyword="email marketing", title="t", content=INTERNAL_CONTENT, candidates=candidates, max_links=0) == []


def _serp() -> list[SerpResult]:
    return [
        SerpResult(title="Email Marketing Guide", url="https://www.hubspot.com/email", snippet="Email marketing strategy", position=1, domain="www.hubspot.com"),
        SerpResult(title="Email Marketing Tips", url="https://mailchimp.com/tips", snippet="Email marketing tips", position=2, domain="mailchimp.com"),
        SerpResult(title="More Email Marketing", url="https://mailchimp.com/more", snippet="Email marketing again", position=3, domain="mailchimp.com"),
    ]


def test_match_external_links_excludes_linked_domains_and_dedupes() -> None:
    opportunities = match_external_links(
        keyword="email marketing",
        content=EXTERNAL_CONTENT,
        serp_results=_serp(),
        authority_sources=DEFAULT_AUTHORITY_SOURCES,
        include_authority_sources=True,
        max_links=10,
    )

    domains = [normalize_domain(item.url) for item in opportunities]
    assert "hubspot.com" not in domains
    assert domains.count("mailchimp.com") == 1
    assert len(domains) == len(set(domains))
    serp_item = next(item for item in opportunities if item.source == "serp")
    assert serp_item.anchor_text == "Email marketing"
    assert any(item.source == "authority" and item.url == "https://www.statista.com" for item in opportunities)
    scores = [item.relevance_score for item in opportunities]
    assert scores == sorted(scores, reverse=True)


def test_match_external_links_without_authority_sources() -> None:
    opportunities = match_external_links(
        keyword="email marketing",
        content=EXTERNAL_CONTENT,
        serp_results=_serp(),
        authority_sources=DEFAULT_AUTHORITY_SOURCES,
        include_authority_sources=False,
        max_links=10,
    )

    assert opportunities
    assert all(item.source == "serp" for item in opportunities)


def test_score_authority_source_rewards_topic_matches() -> None:
    source = AuthoritySource(
        name="Bread Lab",
        domain="breadlab.example",
        url="https://breadlab.example",
        description="Research on sourdough fermentation",
        topics=("sourdough", "baking"),
        domain_authority=65,
    )

    assert score_authority_source(source, ["sourdough"]) == 10 + 10 + 10
    assert score_authority_source(source, ["marketing"]) == 10
