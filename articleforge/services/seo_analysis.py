"""Deterministic SEO analysis for markdown articles."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from articleforge.services.article_text import (
    extract_headings,
    flesch_kincaid_grade,
    strip_markdown,
)

OPTIMAL_TITLE_LENGTH = (30, 60)
OPTIMAL_DESCRIPTION_LENGTH = (120, 160)

METRIC_WEIGHTS: dict[str, float] = {
    "content_length": 0.15,
    "keyword_density": 0.20,
    "readability": 0.15,
    "heading_structure": 0.15,
    "meta_tags": 0.15,
    "links": 0.10,
    "image_alt_text": 0.10,
}

_LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)\)")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")


@dataclass(slots=True)
class SeoArticleInput:
    title: str
    content: str
    slug: str = ""
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None


@dataclass(slots=True)
class SeoAnalysisOptions:
    target_keyword: str = ""
    min_word_count: int = 500
    max_word_count: int = 5000
    target_grade_min: float = 8.0
    target_grade_max: float = 12.0


@dataclass(slots=True)
class SeoMetric:
    """Single scored check. ``score`` is always on a 0-100 scale."""

    score: int
    passed: bool
    message: str
    recommendations: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SeoReport:
    overall_score: int
    grade: str
    keyword_density: float
    metrics: dict[str, SeoMetric]
    recommendations: list[str]


def grade_for_score(score: int) -> str:
    """Letter grade for a 0-100 score."""
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def _count_occurrences(text: str, phrase: str) -> int:
    phrase = phrase.strip().lower()
    if not phrase:
        return 0
    return len(re.findall(rf"\b{re.escape(phrase)}\b", text.lower()))


def _first_paragraph(content: str) -> str:
    for block in re.split(r"\n\s*\n", content):
        stripped = block.strip()
        if stripped and not stripped.startswith("#") and len(stripped) > 20:
            return stripped
    return content[:500]


def score_content_length(word_count: int, options: SeoAnalysisOptions) -> SeoMetric:
    low, high = options.min_word_count, options.max_word_count
    if word_count < low:
        message = f"Content is too short. Add at least {low - word_count} more words (minimum: {low})."
        return SeoMetric(score=round(word_count / low * 50), passed=False, message=message, recommendations=[message])
    if word_count > high:
        message = f"Content is very long. Consider splitting into multiple articles (optimal: {low}-{high} words)."
        return SeoMetric(score=50, passed=False, message=message, recommendations=[message])
    return SeoMetric(score=100, passed=True, message=f"Content length is optimal ({word_count} words).")


def score_keyword_density(
    article: SeoArticleInput,
    plain_text: str,
    word_count: int,
    keyword: str,
) -> tuple[SeoMetric, float]:
    """Density plus keyword placement in title, intro, headings, meta description and slug."""
    if not keyword or word_count == 0:
        return SeoMetric(score=0, passed=False, message="No target keyword specified."), 0.0

    count = _count_occurrences(plain_text, keyword)
    density = round(count / word_count * 100, 2)

    score = 0
    if 1 <= density <= 2:
        score += 40
    elif 0.5 <= density < 3:
        score += 25
    elif 0 < density < 4:
        score += 10

    placements = {
        "title": _count_occurrences(article.title, keyword) > 0,
        "first paragraph": _count_occurrences(strip_markdown(_first_paragraph(article.content)), keyword) > 0,
        "headings": _count_occurrences(" ".join(text for _, text in extract_headings(article.content)), keyword) > 0,
        "meta description": _count_occurrences(article.meta_description or "", keyword) > 0,
        "URL": _count_occurrences(article.slug.replace("-", " "), keyword) > 0,
    }
    placement_points = {"title": 20, "first paragraph": 10, "headings": 10, "meta description": 10, "URL": 10}
    score += sum(placement_points[name] for name, found in placements.items() if found)
    score = min(100, score)

    passed = score >= 60
    message = f'Keyword "{keyword}" density: {density}%'
    found_in = [name for name, found in placements.items() if found]
    if found_in:
        message += f". Found in: {', '.join(found_in)}."
    recommendations = []
    if not passed:
        recommendations.append(f"{message} Aim for 1-2% density with keyword in key positions.")
    return SeoMetric(score=score, passed=passed, message=message, recommendations=recommendations), density


def score_readability(plain_text: str, options: SeoAnalysisOptions) -> SeoMetric:
    grade = flesch_kincaid_grade(plain_text)
    low, high = options.target_grade_min, options.target_grade_max
    if low <= grade <= high:
        return SeoMetric(score=100, passed=True, message=f"Flesch-Kincaid grade: {grade}. Optimal!")
    distance = min(abs(grade - low), abs(grade - high))
    message = f"Flesch-Kincaid grade: {grade}. Target: {low:g}-{high:g}."
    return SeoMetric(
        score=max(0, round(100 - distance * 10)),
        passed=False,
        message=message,
        recommendations=[message],
    )


def score_heading_structure(content: str) -> SeoMetric:
    headings = extract_headings(content)
    levels = [level for level, _ in headings]
    h1_count = levels.count(1)

    skipped: list[int] = []
    previous = 0
    for level in levels:
        if previous == 0 and level != 1 and 1 not in skipped:
            skipped.append(1)
        if previous and level > previous + 1:
            skipped.extend(missing for missing in range(previous + 1, level) if missing not in skipped)
        previous = level

    score = 0
    if h1_count == 1:
        score += 30
    elif h1_count == 2:
        score += 15
    if not skipped:
        score += 40
    elif len(skipped) <= 2:
        score += 20
    if 2 in levels and 3 in levels:
        score += 30
    elif 2 in levels:
        score += 20
    elif len(headings) > 1:
        score += 10

    recommendations: list[str] = []
    if not headings:
        recommendations.append("Add headings to structure your content.")
    elif h1_count == 0:
        recommendations.append("Add an H1 heading to your content.")
    elif h1_count > 1:
        recommendations.append("Use only one H1 per page and use H2-H6 for subheadings.")
    if skipped and headings:
        recommendations.append(
            f"Heading hierarchy skips levels: {', '.join(str(level) for level in skipped)}."
        )
    if headings and 2 not in levels:
        recommendations.append("Add H2 subheadings to break up your content.")

    score = min(100, score)
    message = "Heading structure is good." if not recommendations else recommendations[0]
    return SeoMetric(score=score, passed=score >= 60, message=message, recommendations=recommendations)


def score_meta_tags(article: SeoArticleInput) -> SeoMetric:
    title = article.meta_title or article.title or ""
    description = article.meta_description or ""
    recommendations: list[str] = []
    score = 0

    title_low, title_high = OPTIMAL_TITLE_LENGTH
    if not title:
        recommendations.append("Add a meta title to your page.")
    elif title_low <= len(title) <= title_high:
        score += 45
    else:
        score += 20
        recommendations.append(
            f"Meta title is {len(title)} chars. Aim for {title_low}-{title_high} characters."
        )

    desc_low, desc_high = OPTIMAL_DESCRIPTION_LENGTH
    if not description:
        recommendations.append("Add a meta description to improve click-through rates.")
    elif desc_low <= len(description) <= desc_high:
        score += 40
    else:
        score += 20
        recommendations.append(
            f"Meta description is {len(description)} chars. Aim for {desc_low}-{desc_high} characters."
        )

    if article.meta_keywords:
        score += 15
    else:
        recommendations.append("Add meta keywords to describe the article topic.")

    message = "Meta tags are well optimized." if not recommendations else "Meta tags need improvement."
    return SeoMetric(score=score, passed=score >= 60, message=message, recommendations=recommendations)


def score_links(content: str) -> SeoMetric:
    internal = 0
    external = 0
    for _, url in _LINK_RE.findall(content):
        if url.startswith(("http://", "https://")):
            external += 1
        else:
            internal += 1

    score = 0
    if internal >= 5:
        score += 50
    elif internal >= 3:
        score += 40
    elif internal >= 2:
        score += 30
    elif internal == 1:
        score += 15
    if external >= 3:
        score += 30
    elif external == 2:
        score += 25
    elif external == 1:
        score += 20
    total = internal + external
    if total >= 5:
        score += 20
    elif total >= 3:
        score += 15
    elif total >= 1:
        score += 10

    recommendations: list[str] = []
    if internal < 2:
        recommendations.append(f"Add more internal links (currently {internal}, recommend at least 2-3).")
    if external < 1:
        recommendations.append("Add external links to authoritative sources.")
    message = f"{internal} internal and {external} external links."
    return SeoMetric(score=min(100, score), passed=not recommendations, message=message, recommendations=recommendations)


def score_image_alt_text(content: str) -> SeoMetric:
    images = _IMAGE_RE.findall(content)
    if not images:
        return SeoMetric(score=100, passed=True, message="No images in content.")
    missing = sum(1 for alt, _ in images if not alt.strip())
    score = round((len(images) - missing) / len(images) * 100)
    if missing == 0:
        return SeoMetric(score=score, passed=True, message=f"All {len(images)} image(s) have alt text.")
    message = f"{missing} of {len(images)} image(s) missing alt text."
    return SeoMetric(score=score, passed=False, message=message, recommendations=[message])


def analyze_seo(article: SeoArticleInput, options: SeoAnalysisOptions | None = None) -> SeoReport:
    """Score an article across weighted checks and collect recommendations."""
    opts = options or SeoAnalysisOptions()
    plain_text = re.sub(r"\s+", " ", strip_markdown(article.content)).strip()
    word_count = len(plain_text.split()) if plain_text else 0

    keyword = opts.target_keyword.strip() or next(iter(article.meta_keywords or []), "")
    keyword_metric, density = score_keyword_density(article, plain_text, word_count, keyword)

    metrics = {
        "content_length": score_content_length(word_count, opts),
        "keyword_density": keyword_metric,
        "readability": score_readability(plain_text, opts),
        "heading_structure": score_heading_structure(article.content),
        "meta_tags": score_meta_tags(article),
        "links": score_links(article.content),
        "image_alt_text": score_image_alt_text(article.content),
    }

    overall = round(sum(metrics[name].score * weight for name, weight in METRIC_WEIGHTS.items()))
    overall = max(0, min(100, overall))

    recommendations: list[str] = []
    for metric in metrics.values():
        if not metric.passed:
            recommendations.extend(metric.recommendations)

    return SeoReport(
        overall_score=overall,
        grade=grade_for_score(overall),
        keyword_density=density,
        metrics=metrics,
        recommendations=recommendations,
    )
