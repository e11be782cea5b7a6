"""Constants for pipeline routes."""

PIPELINE_NAME = "article-generation"
PIPELINE_DESCRIPTION = (
    "Generates a complete SEO-optimized article from a keyword: SERP research, outline, "
    "draft, internal and external links, images, SEO scoring, and persistence."
)
