"""SQLAlchemy models."""

from articleforge.models.article import Article
from articleforge.models.base import Base

__all__ = ["Article", "Base"]
