"""Custom exception classes for the application."""

from typing import Any


class ArticleForgeError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Pipeline Errors
class PipelineError(ArticleForgeError):
    """Base class for pipeline errors."""

    pass


class PipelineConfigurationError(PipelineError):
    """Stage registry or orchestrator wiring is invalid."""

    pass


class StageExecutionError(PipelineError):
    """A stage could not produce its artifact."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage} failed: {message}", {"stage": stage})


class StageTimeoutError(PipelineError):
    """A stage exceeded the configured per-stage timeout."""

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Stage {stage} timed out after {timeout_seconds:g}s",
            {"stage": stage, "timeout_seconds": timeout_seconds},
        )


# External API Errors
class ExternalAPIError(ArticleForgeError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded")


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


# Persistence Errors
class ArticlePersistenceError(ArticleForgeError):
    """Article row could not be written."""

    pass


class ArticleNotFoundError(ArticlePersistenceError):
    """Article not found."""

    def __init__(self, article_id: str) -> None:
        super().__init__(f"Article not found: {article_id}")
